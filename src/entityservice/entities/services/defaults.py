"""
Default Value Assignment

Fills attributes the caller did not supply with the default declared in
the schema. Only the create path assigns defaults: on update an omitted
attribute means "leave unchanged".
"""

import copy
from typing import Any, Dict

from ...schemas.content_type import ContentTypeSchema


def assign_defaults(schema: ContentTypeSchema, payload: Dict[str, Any]) -> Dict[str, Any]:
    """
    Return a copy of ``payload`` with schema defaults applied.

    Only attributes whose key is missing get a default. Supplied values are
    kept as-is, including ``None`` and falsy values such as ``False``, ``0``
    or ``""``.
    Required attributes without a default stay absent; rejecting them is
    the structural validator's job.

    Args:
        schema: Content type schema
        payload: Caller supplied attribute values (not modified)

    Returns:
        New payload dictionary
    """
    result = dict(payload)
    for name, attribute in schema.attributes.items():
        if name in result or not attribute.has_default:
            continue
        default = attribute.default
        result[name] = default() if callable(default) else copy.deepcopy(default)
    return result
