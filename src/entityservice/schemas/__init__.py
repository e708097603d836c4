"""Content type schemas and the registry that serves them."""

from .attributes import (
    AttributeDefinition, AttributeVisitor, BaseAttribute, EnumerationAttribute,
    PasswordAttribute, RelationAttribute, ScalarAttribute
)
from .content_type import ContentTypeKind, ContentTypeSchema
from .registry import InMemorySchemaRegistry, SchemaRegistry

__all__ = [
    "AttributeDefinition",
    "AttributeVisitor",
    "BaseAttribute",
    "EnumerationAttribute",
    "PasswordAttribute",
    "RelationAttribute",
    "ScalarAttribute",
    "ContentTypeKind",
    "ContentTypeSchema",
    "InMemorySchemaRegistry",
    "SchemaRegistry",
]
