"""
Entity Service

💾 Schema Driven Entity Persistence:
Creates, updates, reads and deletes entities of content types described
by schemas. Writes go through a fixed pipeline (defaults, validation,
password hashing, relation checks) before reaching a pluggable store, and
committed mutations are announced as lifecycle events.

Example:
    service = configure_entity_service(models=[article_schema])
    article = await service.create("api::article.article", {"data": {"title": "Hello"}})
"""

from .entities import EntityOperations, EntityService, ServiceOperations
from .errors import (
    EntityServiceError, RelationNotFoundError, SchemaNotFoundError, StoreError, ValidationError
)
from .events import EventHub, EventType, InProcessEventHub, LifecycleEvent, create_event_hub
from .infrastructure import (
    ApplicationConfig, Environment, configure_logging, get_config, set_config
)
from .infrastructure.configurator import EntityServiceConfigurator, configure_entity_service
from .persistence import Database, EntityQuery, MemoryDatabase, Page, Pagination
from .schemas import ContentTypeKind, ContentTypeSchema, InMemorySchemaRegistry, SchemaRegistry

__version__ = "0.1.0"

__all__ = [
    "EntityOperations",
    "EntityService",
    "ServiceOperations",
    "EntityServiceError",
    "RelationNotFoundError",
    "SchemaNotFoundError",
    "StoreError",
    "ValidationError",
    "EventHub",
    "EventType",
    "InProcessEventHub",
    "LifecycleEvent",
    "create_event_hub",
    "ApplicationConfig",
    "Environment",
    "EntityServiceConfigurator",
    "configure_entity_service",
    "configure_logging",
    "get_config",
    "set_config",
    "Database",
    "EntityQuery",
    "MemoryDatabase",
    "Page",
    "Pagination",
    "ContentTypeKind",
    "ContentTypeSchema",
    "InMemorySchemaRegistry",
    "SchemaRegistry",
]
