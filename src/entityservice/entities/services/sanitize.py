"""
Private Attribute Stripping

Attributes listed as private in a schema never leave the entity service:
they are removed from every returned entity and from event payloads.
Populated relations are stripped with their target schema.
"""

from typing import Any, Optional

from ...schemas.attributes import RelationAttribute
from ...schemas.content_type import ContentTypeSchema
from ...schemas.registry import SchemaRegistry


def strip_private(schema: ContentTypeSchema, value: Any, schemas: Optional[SchemaRegistry] = None) -> Any:
    """
    Remove private attributes from an entity or a list of entities.

    Args:
        schema: Schema of the entities
        value: Entity dict, list of entity dicts, or None
        schemas: Registry used to strip populated relations; optional

    Returns:
        A sanitized copy (None stays None)
    """
    if value is None:
        return None
    if isinstance(value, list):
        return [strip_private(schema, item, schemas) for item in value]
    if not isinstance(value, dict):
        return value

    private = schema.private_attribute_names
    result = {}
    for name, item in value.items():
        if name in private:
            continue
        attribute = schema.attributes.get(name)
        if schemas is not None and isinstance(attribute, RelationAttribute) and isinstance(item, (dict, list)):
            target = schemas.get_model(attribute.target)
            if target is not None:
                item = strip_private(target, item, schemas)
        result[name] = item
    return result
