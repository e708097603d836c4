"""
Store Interface

💾 Narrow Store Contract:
The entity service never talks to a database directly. It asks a
``Database`` for the query capability of one content type and uses the
handful of operations defined here. Any record store (SQL, document,
in-memory) can back the service by implementing these two classes.

Query parameters are plain dictionaries:

- ``where``: filter mapping, e.g. ``{"id": {"$in": [1, 2]}}``
- ``data``: attribute values for ``create`` / ``update``
- ``select``, ``order_by``, ``offset``, ``limit``, ``page``, ``page_size``,
  ``populate``: read options
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Generic, Iterator, List, Optional, TypeVar

Entity = Dict[str, Any]
T = TypeVar('T')


@dataclass
class Pagination:
    """Page position and totals"""
    page: int
    page_size: int
    page_count: int
    total: int

    def to_dict(self) -> Dict[str, int]:
        return {
            "page": self.page,
            "pageSize": self.page_size,
            "pageCount": self.page_count,
            "total": self.total,
        }


@dataclass
class Page(Generic[T]):
    """One page of entities"""
    results: List[T] = field(default_factory=list)
    pagination: Optional[Pagination] = None

    def __len__(self) -> int:
        return len(self.results)

    def __iter__(self) -> Iterator[T]:
        return iter(self.results)

    def __getitem__(self, index):
        return self.results[index]

    def first(self) -> Optional[T]:
        """Get first entity or None"""
        return self.results[0] if self.results else None


class EntityQuery(ABC):
    """
    Query capability for a single content type.

    All operations are coroutines; implementations own their own
    timeout and retry policy.
    """

    @abstractmethod
    async def find_one(self, params: Dict[str, Any]) -> Optional[Entity]:
        """
        Find the first entity matching ``params["where"]``.

        Returns:
            The entity or None if nothing matches
        """
        pass

    @abstractmethod
    async def find_many(self, params: Dict[str, Any]) -> List[Entity]:
        pass

    @abstractmethod
    async def create(self, params: Dict[str, Any]) -> Entity:
        """
        Create an entity from ``params["data"]``.

        Relation attributes arrive as ``RelationChange`` values and must be
        applied by the store.

        Returns:
            The stored entity, including its generated ``id``
        """
        pass

    @abstractmethod
    async def update(self, params: Dict[str, Any]) -> Optional[Entity]:
        """Apply ``params["data"]`` to the entity matching ``params["where"]``"""
        pass

    @abstractmethod
    async def delete(self, params: Dict[str, Any]) -> Optional[Entity]:
        """Delete the entity matching ``params["where"]`` and return it"""
        pass

    @abstractmethod
    async def delete_many(self, params: Dict[str, Any]) -> Dict[str, int]:
        """
        Delete every entity matching ``params["where"]``.

        Returns:
            ``{"count": <number of deleted entities>}``
        """
        pass

    @abstractmethod
    async def count(self, params: Dict[str, Any]) -> int:
        """Count entities matching ``params["where"]``"""
        pass

    @abstractmethod
    async def find_page(self, params: Dict[str, Any]) -> Page[Entity]:
        """Find one page of entities using ``page`` / ``page_size``"""
        pass


class Database(ABC):
    """Hands out the query capability of each content type"""

    @abstractmethod
    def query(self, uid: str) -> EntityQuery:
        """
        Get the query capability for a content type.

        Args:
            uid: Content type identifier

        Returns:
            Query object bound to that content type
        """
        pass
