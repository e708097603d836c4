"""
Persistence Layer

💾 The store contract used by the entity service and an in-memory
implementation of it.
"""

from .interface import Database, Entity, EntityQuery, Page, Pagination
from .memory import MemoryDatabase, MemoryEntityQuery, StoreMetrics
from .params import transform_params_to_query
from .relations import RelationChange, RelationRef

__all__ = [
    "Database",
    "Entity",
    "EntityQuery",
    "Page",
    "Pagination",
    "MemoryDatabase",
    "MemoryEntityQuery",
    "StoreMetrics",
    "transform_params_to_query",
    "RelationChange",
    "RelationRef",
]
