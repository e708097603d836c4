"""
Content Type Schemas

A content type schema describes one kind of entity: whether it is a
single type (at most one record) or a collection type, its attributes
and which of them must never leave the service.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Set

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .attributes import AttributeDefinition


class ContentTypeKind(str, Enum):
    """Read semantics of a content type"""
    SINGLE = "singleType"
    COLLECTION = "collectionType"

    @classmethod
    def _missing_(cls, value):
        aliases = {"single": cls.SINGLE, "collection": cls.COLLECTION}
        if isinstance(value, str):
            return aliases.get(value)
        return None


class ContentTypeSchema(BaseModel):
    """
    Schema of a content type, as handed out by the schema registry.

    Schemas are immutable once built. Definitions in the camelCase form
    used by schema files (``privateAttributes``, ``modelName``,
    ``mappedBy``) are accepted alongside the snake_case field names.

    Example:
        schema = ContentTypeSchema.model_validate({
            "uid": "api::article.article",
            "kind": "collectionType",
            "attributes": {
                "title": {"type": "string", "required": True},
                "status": {"type": "enumeration", "enum": ["draft", "live"], "default": "draft"},
                "author": {"type": "relation", "relation": "manyToOne", "target": "api::author.author"},
            },
        })
    """

    model_config = ConfigDict(
        frozen=True, extra="allow", populate_by_name=True, protected_namespaces=()
    )

    uid: str
    kind: ContentTypeKind = ContentTypeKind.COLLECTION
    attributes: Dict[str, AttributeDefinition] = Field(default_factory=dict)
    private_attributes: List[str] = Field(default_factory=list, alias="privateAttributes")
    options: Dict[str, Any] = Field(default_factory=dict)
    model_name: Optional[str] = Field(default=None, alias="modelName")
    info: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("kind", mode="before")
    @classmethod
    def _normalize_kind(cls, value: Any) -> Any:
        if isinstance(value, str):
            return ContentTypeKind(value)
        return value

    @property
    def is_single_type(self) -> bool:
        return self.kind is ContentTypeKind.SINGLE

    @property
    def private_attribute_names(self) -> Set[str]:
        """Names listed as private plus attributes flagged ``private``"""
        names = set(self.private_attributes)
        names.update(name for name, attribute in self.attributes.items() if attribute.private)
        return names
