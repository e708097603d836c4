"""
Entity Service Configurator

🚀 Service Wiring:
Builds an ``EntityService`` from configuration, creating the default
collaborators (in-memory schema registry, memory database, in-process
event hub, PBKDF2 hasher, schema validator) for anything not supplied.
"""

import logging
from typing import Any, Dict, Iterable, List, Optional, Union

from ..entities.pipeline import EntityOperations
from ..entities.service import Decorator, EntityService
from ..entities.services.sensitive import PasswordHasher, PBKDF2PasswordHasher
from ..entities.services.validation_service import EntityValidator, SchemaEntityValidator
from ..events.event_hub import EventHub, create_event_hub
from ..persistence.interface import Database
from ..persistence.memory import MemoryDatabase
from ..schemas.content_type import ContentTypeSchema
from ..schemas.registry import InMemorySchemaRegistry, SchemaRegistry
from .configuration import ApplicationConfig, get_config
from .log_setup import configure_logging

logger = logging.getLogger(__name__)

ModelDefinition = Union[ContentTypeSchema, Dict[str, Any]]


class EntityServiceConfigurator:
    """
    Step-by-step builder for an entity service.

    Example:
        service = (
            EntityServiceConfigurator(config)
            .add_models([article_schema, author_schema])
            .add_decorator(audit)
            .configure()
        )
    """

    def __init__(self, config: Optional[ApplicationConfig] = None):
        self.config = config or get_config()
        self._models: List[ModelDefinition] = []
        self._decorators: List[Decorator] = []
        self.schemas: Optional[SchemaRegistry] = None
        self.database: Optional[Database] = None
        self.event_hub: Optional[EventHub] = None
        self.hasher: Optional[PasswordHasher] = None
        self.validator: Optional[EntityValidator] = None

    def add_model(self, model: ModelDefinition) -> 'EntityServiceConfigurator':
        """Add a content type schema to the registry"""
        self._models.append(model)
        return self

    def add_models(self, models: Iterable[ModelDefinition]) -> 'EntityServiceConfigurator':
        self._models.extend(models)
        return self

    def add_decorator(self, decorator: Decorator) -> 'EntityServiceConfigurator':
        """Decorators are applied in the order they are added"""
        self._decorators.append(decorator)
        return self

    def use_schemas(self, schemas: SchemaRegistry) -> 'EntityServiceConfigurator':
        self.schemas = schemas
        return self

    def use_database(self, database: Database) -> 'EntityServiceConfigurator':
        self.database = database
        return self

    def use_event_hub(self, event_hub: EventHub) -> 'EntityServiceConfigurator':
        self.event_hub = event_hub
        return self

    def use_hasher(self, hasher: PasswordHasher) -> 'EntityServiceConfigurator':
        self.hasher = hasher
        return self

    def use_validator(self, validator: EntityValidator) -> 'EntityServiceConfigurator':
        self.validator = validator
        return self

    def _configure_schemas(self) -> SchemaRegistry:
        if self.schemas is None:
            self.schemas = InMemorySchemaRegistry()
        if self._models:
            if not isinstance(self.schemas, InMemorySchemaRegistry):
                raise ValueError("add_model requires an InMemorySchemaRegistry")
            for model in self._models:
                self.schemas.register(model)
        return self.schemas

    def configure(self) -> EntityService:
        """Wire every component and return the (decorated) service"""
        schemas = self._configure_schemas()

        if self.database is None:
            self.database = MemoryDatabase(schemas=schemas)
        if self.event_hub is None:
            event_hub_config = self.config.event_hub
            self.event_hub = create_event_hub(event_hub_config.implementation, enabled=event_hub_config.enabled)
        if self.hasher is None:
            self.hasher = PBKDF2PasswordHasher(
                iterations=self.config.security.password_hash_iterations,
                salt_bytes=self.config.security.password_salt_bytes,
            )
        if self.validator is None:
            self.validator = SchemaEntityValidator()

        pipeline = EntityOperations(
            schemas=schemas,
            database=self.database,
            event_hub=self.event_hub,
            hasher=self.hasher,
            validator=self.validator,
            config=self.config,
        )
        service = EntityService.from_pipeline(pipeline)
        for decorator in self._decorators:
            service = service.decorate(decorator)

        logger.info(
            f"Entity service configured ({self.config.environment.value}) "
            f"with {len(self._models)} model(s) and {len(self._decorators)} decorator(s)"
        )
        return service


def configure_entity_service(
    models: Optional[Iterable[ModelDefinition]] = None,
    config: Optional[ApplicationConfig] = None,
    database: Optional[Database] = None,
    event_hub: Optional[EventHub] = None,
    decorators: Optional[Iterable[Decorator]] = None,
    setup_logging: bool = False,
) -> EntityService:
    """
    Main entry point for building an entity service.

    Args:
        models: Content type schemas (models or raw definitions)
        config: Settings; the global configuration when None
        database: Store; an in-memory database when None
        event_hub: Event hub; built from ``config.event_hub`` when None
        decorators: Decorators applied in order
        setup_logging: Install log handlers from ``config.logging``

    Returns:
        Configured entity service
    """
    configurator = EntityServiceConfigurator(config)
    if setup_logging:
        configure_logging(configurator.config.logging)

    configurator.add_models(models or [])
    if database is not None:
        configurator.use_database(database)
    if event_hub is not None:
        configurator.use_event_hub(event_hub)
    for decorator in decorators or []:
        configurator.add_decorator(decorator)

    return configurator.configure()
