"""
Relation Resolution and Validation

Relation attributes accept directives describing how their links change:

    {"connect": [{"id": 1}, {"id": 4, "position": {"before": 1}}],
     "disconnect": [{"id": 2}],
     "set": [...]}

A bare id, a list of ids/references or None are shorthands for ``set``.

Before a write, every id that would end up linked (``connect`` and
``set``) is checked against the target content type's store with one
count query per attribute. Ids only listed in ``disconnect`` are not
checked: removing a link that does not exist is not an error. The first
attribute with missing entities (in schema order) fails the write.
"""

import logging
from typing import Any, Dict, List, Optional

from ...errors import RelationNotFoundError, SchemaNotFoundError, ValidationError
from ...persistence.interface import Database
from ...persistence.relations import RelationChange, RelationRef
from ...schemas.attributes import (
    AttributeVisitor, EnumerationAttribute, PasswordAttribute, RelationAttribute, ScalarAttribute
)
from ...schemas.content_type import ContentTypeSchema
from ...schemas.registry import SchemaRegistry

logger = logging.getLogger(__name__)

DIRECTIVE_KEYS = ("connect", "disconnect", "set")


class _RelationOnly(AttributeVisitor[Optional[RelationAttribute]]):
    def visit_scalar(self, name: str, attribute: ScalarAttribute) -> None:
        return None

    def visit_enumeration(self, name: str, attribute: EnumerationAttribute) -> None:
        return None

    def visit_password(self, name: str, attribute: PasswordAttribute) -> None:
        return None

    def visit_relation(self, name: str, attribute: RelationAttribute) -> RelationAttribute:
        return attribute


_relation_only = _RelationOnly()


def _refs(value: Any) -> List[RelationRef]:
    if value is None:
        return []
    if not isinstance(value, (list, tuple)):
        value = [value]
    return [RelationRef.from_input(item) for item in value]


def normalize_relation_value(name: str, attribute: RelationAttribute, value: Any) -> RelationChange:
    """
    Turn caller input for one relation attribute into a ``RelationChange``.

    Raises:
        ValidationError: If the value is malformed or links several
            entities to a to-one relation
    """
    try:
        if isinstance(value, RelationChange):
            change = value
        elif isinstance(value, dict) and "id" not in value:
            unknown = set(value) - set(DIRECTIVE_KEYS)
            if unknown:
                raise ValueError(f"unknown relation directive(s): {', '.join(sorted(unknown))}")
            change = RelationChange(
                connect=_refs(value.get("connect")),
                disconnect=_refs(value.get("disconnect")),
                set=_refs(value["set"]) if "set" in value else None,
            )
        else:
            change = RelationChange(set=_refs(value))
    except ValueError as e:
        raise ValidationError(
            f"Invalid relation value for {name}: {e}", field=name, errors={name: [str(e)]}
        ) from e

    if not attribute.is_to_many and (len(change.set or []) > 1 or len(change.connect) > 1):
        message = f"Relation {name} ({attribute.relation}) accepts a single entity"
        raise ValidationError(message, field=name, errors={name: [message]})

    return change


async def resolve_relations(
    schema: ContentTypeSchema,
    payload: Dict[str, Any],
    database: Database,
    schemas: SchemaRegistry,
) -> Dict[str, Any]:
    """
    Check that every linked entity exists and normalise relation values.

    Args:
        schema: Schema of the entity being written
        payload: Attribute values (not modified)
        database: Store used for existence counts
        schemas: Registry used to resolve relation targets

    Returns:
        New payload where relation values are ``RelationChange`` objects

    Raises:
        RelationNotFoundError: If referenced entities are missing
        SchemaNotFoundError: If a relation target is not registered
        ValidationError: If a relation value is malformed
    """
    result = dict(payload)

    for name, attribute in schema.attributes.items():
        relation = attribute.accept(name, _relation_only)
        if relation is None or name not in result:
            continue

        change = normalize_relation_value(name, relation, result[name])
        if schemas.get_model(relation.target) is None:
            raise SchemaNotFoundError(relation.target)

        ids = change.referenced_ids()
        if ids:
            found = await database.query(relation.target).count({"where": {"id": {"$in": ids}}})
            if found < len(ids):
                missing = len(ids) - found
                logger.warning(
                    f"{missing} missing {relation.target} relation(s) on {schema.uid}.{name}"
                )
                raise RelationNotFoundError(missing, relation.target, attribute=name)

        result[name] = change

    return result
