"""
Attribute Definitions

🧩 Tagged Attribute Kinds:
Content type attributes are modelled as a discriminated union keyed on the
``type`` tag. The handful of kinds the entity service treats specially
(enumeration, password, relation) get their own model; every other type
tag falls back to ``ScalarAttribute`` so new scalar types never break
schema loading.

Code that needs to branch on the attribute kind implements
``AttributeVisitor`` instead of inspecting types at runtime. The visitor
is abstract, so forgetting a kind fails at instantiation time.
"""

from abc import ABC, abstractmethod
from typing import Annotated, Any, Generic, List, Literal, Optional, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag

T = TypeVar('T')


class BaseAttribute(BaseModel):
    """Options shared by every attribute kind"""

    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)

    type: str
    default: Any = None
    required: bool = False
    private: bool = False
    unique: bool = False

    @property
    def has_default(self) -> bool:
        return self.default is not None

    @abstractmethod
    def accept(self, name: str, visitor: 'AttributeVisitor[T]') -> T:
        """Dispatch to the visitor method for this attribute kind"""
        pass


class ScalarAttribute(BaseAttribute):
    """Plain value attribute (string, boolean, integer, datetime, json, ...)"""

    def accept(self, name: str, visitor: 'AttributeVisitor[T]') -> T:
        return visitor.visit_scalar(name, self)


class EnumerationAttribute(BaseAttribute):
    """Attribute restricted to a fixed list of string values"""

    type: Literal["enumeration"] = "enumeration"
    enum: List[str] = Field(default_factory=list)

    def accept(self, name: str, visitor: 'AttributeVisitor[T]') -> T:
        return visitor.visit_enumeration(name, self)


class PasswordAttribute(BaseAttribute):
    """Sensitive attribute, only ever stored as a one-way hash"""

    type: Literal["password"] = "password"

    def accept(self, name: str, visitor: 'AttributeVisitor[T]') -> T:
        return visitor.visit_password(name, self)


class RelationAttribute(BaseAttribute):
    """
    Link to entities of another content type.

    ``relation`` is the cardinality as declared in the schema
    (``oneToOne``, ``oneToMany``, ``manyToOne``, ``manyToMany`` and the
    polymorphic ``morph*`` variants). ``target`` names the content type
    the linked entities belong to.
    """

    type: Literal["relation"] = "relation"
    relation: str = "manyToOne"
    target: str
    mapped_by: Optional[str] = Field(default=None, alias="mappedBy")
    inversed_by: Optional[str] = Field(default=None, alias="inversedBy")

    @property
    def is_to_many(self) -> bool:
        return self.relation.endswith("Many")

    @property
    def is_owning_side(self) -> bool:
        return self.mapped_by is None

    def accept(self, name: str, visitor: 'AttributeVisitor[T]') -> T:
        return visitor.visit_relation(name, self)


def _attribute_tag(value: Any) -> str:
    attribute_type = value.get("type") if isinstance(value, dict) else getattr(value, "type", None)
    if attribute_type in ("enumeration", "password", "relation"):
        return attribute_type
    return "scalar"


AttributeDefinition = Annotated[
    Union[
        Annotated[ScalarAttribute, Tag("scalar")],
        Annotated[EnumerationAttribute, Tag("enumeration")],
        Annotated[PasswordAttribute, Tag("password")],
        Annotated[RelationAttribute, Tag("relation")],
    ],
    Discriminator(_attribute_tag),
]


class AttributeVisitor(ABC, Generic[T]):
    """Exhaustive dispatch over attribute kinds"""

    @abstractmethod
    def visit_scalar(self, name: str, attribute: ScalarAttribute) -> T:
        pass

    @abstractmethod
    def visit_enumeration(self, name: str, attribute: EnumerationAttribute) -> T:
        pass

    @abstractmethod
    def visit_password(self, name: str, attribute: PasswordAttribute) -> T:
        pass

    @abstractmethod
    def visit_relation(self, name: str, attribute: RelationAttribute) -> T:
        pass
