"""
Memory Store - In-Memory Record Store

🧠 Reference Store Implementation:
A complete in-memory implementation of the store contract. It is used by
the test-suite and is good enough for prototypes and single-process
tools. Records are plain dictionaries keyed by an auto-incremented
integer id per content type.

Supported query options:

- ``where``: attribute equality or operator mappings (``$eq``, ``$ne``,
  ``$in``, ``$notIn``, ``$lt``, ``$lte``, ``$gt``, ``$gte``, ``$null``,
  ``$notNull``, ``$contains``, ``$startsWith``) combined with ``$and`` /
  ``$or`` / ``$not``
- ``select``: attribute names to return (``id`` is always returned)
- ``order_by``: ``"title"``, ``"title:desc"``, ``{"title": "desc"}`` or a
  list of those
- ``offset`` / ``limit`` and ``page`` / ``page_size``
- ``populate``: relation attribute names to expand into target records
"""

import copy
import logging
import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from ..errors import StoreError
from ..schemas.attributes import RelationAttribute
from ..schemas.registry import SchemaRegistry
from .interface import Database, Entity, EntityQuery, Page, Pagination
from .relations import RelationChange

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 25


@dataclass
class EntityRecord:
    """Record stored in memory with metadata"""
    data: Entity
    created_at: datetime = field(default_factory=datetime.now)
    updated_at: datetime = field(default_factory=datetime.now)

    def touch(self):
        self.updated_at = datetime.now()


@dataclass
class StoreMetrics:
    """Operation counters of a memory database"""
    reads: int = 0
    writes: int = 0
    failed_operations: int = 0
    operations_by_uid: Dict[str, int] = field(default_factory=dict)

    def record(self, uid: str, write: bool = False):
        if write:
            self.writes += 1
        else:
            self.reads += 1
        self.operations_by_uid[uid] = self.operations_by_uid.get(uid, 0) + 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "reads": self.reads,
            "writes": self.writes,
            "failed_operations": self.failed_operations,
            "operations_by_uid": dict(self.operations_by_uid),
        }


def _compare(operator: str, actual: Any, expected: Any) -> bool:
    if operator == "$eq":
        return actual == expected
    if operator == "$ne":
        return actual != expected
    if operator == "$in":
        return actual in expected
    if operator == "$notIn":
        return actual not in expected
    if operator == "$null":
        return (actual is None) == bool(expected)
    if operator == "$notNull":
        return (actual is not None) == bool(expected)
    if operator == "$contains":
        return actual is not None and str(expected) in str(actual)
    if operator == "$startsWith":
        return actual is not None and str(actual).startswith(str(expected))
    if actual is None:
        return False
    if operator == "$lt":
        return actual < expected
    if operator == "$lte":
        return actual <= expected
    if operator == "$gt":
        return actual > expected
    if operator == "$gte":
        return actual >= expected
    raise StoreError(f"Unsupported filter operator: {operator}")


def _match_value(actual: Any, condition: Any) -> bool:
    if isinstance(condition, dict) and condition and all(key.startswith("$") for key in condition):
        for operator, expected in condition.items():
            if operator == "$not":
                if _match_value(actual, expected):
                    return False
                continue
            # to-many relations match when any linked id matches
            if isinstance(actual, list) and operator not in ("$null", "$notNull"):
                if not any(_compare(operator, item, expected) for item in actual):
                    return False
            elif not _compare(operator, actual, expected):
                return False
        return True
    if isinstance(actual, list) and not isinstance(condition, list):
        return condition in actual
    return actual == condition


def matches(record: Entity, where: Optional[Dict[str, Any]]) -> bool:
    """Check a record against a ``where`` mapping"""
    if not where:
        return True
    for key, condition in where.items():
        if key == "$and":
            if not all(matches(record, clause) for clause in condition):
                return False
        elif key == "$or":
            if not any(matches(record, clause) for clause in condition):
                return False
        elif key == "$not":
            if matches(record, condition):
                return False
        elif key.startswith("$"):
            raise StoreError(f"Unsupported logical operator: {key}")
        elif not _match_value(record.get(key), condition):
            return False
    return True


def _sort_criteria(order_by: Any) -> List[tuple]:
    if not order_by:
        return []
    if not isinstance(order_by, list):
        order_by = [order_by]

    criteria = []
    for item in order_by:
        if isinstance(item, dict):
            criteria.extend((name, str(direction).lower() == "desc") for name, direction in item.items())
        else:
            name, _, direction = str(item).partition(":")
            criteria.append((name, direction.lower() == "desc"))
    return criteria


class MemoryEntityQuery(EntityQuery):
    """Query capability of one content type inside a ``MemoryDatabase``"""

    def __init__(self, database: 'MemoryDatabase', uid: str):
        self.database = database
        self.uid = uid

    @property
    def _table(self) -> Dict[Any, EntityRecord]:
        return self.database._tables.setdefault(self.uid, {})

    def _select(self, params: Dict[str, Any]) -> List[Entity]:
        records = [record.data for record in self._table.values() if matches(record.data, params.get("where"))]

        for name, descending in reversed(_sort_criteria(params.get("order_by"))):
            records.sort(key=lambda record: (record.get(name) is None, record.get(name)), reverse=descending)

        offset = params.get("offset") or 0
        limit = params.get("limit")
        if offset:
            records = records[offset:]
        if limit is not None and limit >= 0:
            records = records[:limit]
        return records

    def _present(self, record: Entity, params: Dict[str, Any]) -> Entity:
        entity = copy.deepcopy(record)
        for name in params.get("populate") or []:
            entity[name] = self.database._populate(self.uid, name, entity.get(name))
        select = params.get("select")
        if select:
            keep = set(select) | {"id"}
            entity = {key: value for key, value in entity.items() if key in keep}
        return entity

    def _write_data(self, data: Dict[str, Any], current: Optional[Entity] = None) -> Entity:
        values = {}
        for name, value in data.items():
            if name == "id":
                continue
            if isinstance(value, RelationChange):
                value = self.database._apply_relation(self.uid, name, value, (current or {}).get(name))
            values[name] = copy.deepcopy(value)
        return values

    async def find_one(self, params: Dict[str, Any]) -> Optional[Entity]:
        self.database.metrics.record(self.uid)
        records = self._select({**params, "limit": 1})
        return self._present(records[0], params) if records else None

    async def find_many(self, params: Dict[str, Any]) -> List[Entity]:
        self.database.metrics.record(self.uid)
        return [self._present(record, params) for record in self._select(params)]

    async def create(self, params: Dict[str, Any]) -> Entity:
        self.database.metrics.record(self.uid, write=True)
        entity_id = self.database._next_id(self.uid)
        values = self._write_data(params.get("data") or {})
        record = EntityRecord(data={"id": entity_id, **values})
        self._table[entity_id] = record
        logger.debug(f"Created {self.uid} record {entity_id}")
        return self._present(record.data, params)

    async def update(self, params: Dict[str, Any]) -> Optional[Entity]:
        self.database.metrics.record(self.uid, write=True)
        records = self._select({"where": params.get("where"), "limit": 1})
        if not records:
            return None
        record = self._table[records[0]["id"]]
        record.data.update(self._write_data(params.get("data") or {}, record.data))
        record.touch()
        logger.debug(f"Updated {self.uid} record {record.data['id']}")
        return self._present(record.data, params)

    async def delete(self, params: Dict[str, Any]) -> Optional[Entity]:
        self.database.metrics.record(self.uid, write=True)
        records = self._select({"where": params.get("where"), "limit": 1})
        if not records:
            return None
        record = self._table.pop(records[0]["id"])
        logger.debug(f"Deleted {self.uid} record {record.data['id']}")
        return self._present(record.data, params)

    async def delete_many(self, params: Dict[str, Any]) -> Dict[str, int]:
        self.database.metrics.record(self.uid, write=True)
        doomed = [record["id"] for record in self._select({"where": params.get("where")})]
        for entity_id in doomed:
            del self._table[entity_id]
        logger.debug(f"Deleted {len(doomed)} {self.uid} records")
        return {"count": len(doomed)}

    async def count(self, params: Dict[str, Any]) -> int:
        self.database.metrics.record(self.uid)
        return len(self._select({"where": params.get("where")}))

    async def find_page(self, params: Dict[str, Any]) -> Page[Entity]:
        self.database.metrics.record(self.uid)
        page = max(int(params.get("page") or 1), 1)
        page_size = max(int(params.get("page_size") or DEFAULT_PAGE_SIZE), 1)

        matching = self._select({"where": params.get("where"), "order_by": params.get("order_by")})
        total = len(matching)
        start = (page - 1) * page_size
        results = [self._present(record, params) for record in matching[start:start + page_size]]

        return Page(
            results=results,
            pagination=Pagination(
                page=page,
                page_size=page_size,
                page_count=math.ceil(total / page_size),
                total=total,
            ),
        )


class MemoryDatabase(Database):
    """
    In-memory database holding one table per content type.

    A schema registry is optional. Without one, relation links are always
    stored as lists of ids; with one, to-one relations are stored as a
    single id (or None) and ``populate`` can expand links.
    """

    def __init__(self, schemas: Optional[SchemaRegistry] = None):
        self.schemas = schemas
        self.metrics = StoreMetrics()
        self._tables: Dict[str, Dict[Any, EntityRecord]] = {}
        self._sequences: Dict[str, int] = {}

    def query(self, uid: str) -> MemoryEntityQuery:
        return MemoryEntityQuery(self, uid)

    def seed(self, uid: str, records: List[Entity]) -> None:
        """
        Insert records as-is, keeping their ids.

        Args:
            uid: Content type identifier
            records: Records, each with an ``id``
        """
        table = self._tables.setdefault(uid, {})
        for record in records:
            if "id" not in record:
                raise StoreError(f"Seed records for {uid} need an id")
            table[record["id"]] = EntityRecord(data=copy.deepcopy(record))
            if isinstance(record["id"], int):
                self._sequences[uid] = max(self._sequences.get(uid, 0), record["id"])

    def records(self, uid: str) -> List[Entity]:
        """Snapshot of every stored record of a content type"""
        return [copy.deepcopy(record.data) for record in self._tables.get(uid, {}).values()]

    def clear(self) -> None:
        self._tables.clear()
        self._sequences.clear()
        self.metrics = StoreMetrics()

    def _next_id(self, uid: str) -> int:
        self._sequences[uid] = self._sequences.get(uid, 0) + 1
        return self._sequences[uid]

    def _relation_attribute(self, uid: str, name: str) -> Optional[RelationAttribute]:
        if self.schemas is None:
            return None
        schema = self.schemas.get_model(uid)
        if schema is None:
            return None
        attribute = schema.attributes.get(name)
        return attribute if isinstance(attribute, RelationAttribute) else None

    def _apply_relation(self, uid: str, name: str, change: RelationChange, current: Any) -> Any:
        if current is None:
            current_links = []
        elif isinstance(current, list):
            current_links = current
        else:
            current_links = [current]

        try:
            links = change.apply(current_links)
        except ValueError as e:
            self.metrics.failed_operations += 1
            raise StoreError(str(e)) from e

        attribute = self._relation_attribute(uid, name)
        if attribute is not None and not attribute.is_to_many:
            return links[-1] if links else None
        return links

    def _populate(self, uid: str, name: str, links: Any) -> Any:
        attribute = self._relation_attribute(uid, name)
        if attribute is None:
            raise StoreError(f"Cannot populate {name} on {uid}: not a known relation")

        table = self._tables.get(attribute.target, {})
        lookup: Callable[[Any], Optional[Entity]] = (
            lambda link: copy.deepcopy(table[link].data) if link in table else None
        )
        if isinstance(links, list):
            return [entity for entity in map(lookup, links) if entity is not None]
        return lookup(links) if links is not None else None
