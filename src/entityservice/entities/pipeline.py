"""
Entity Pipeline - Write Pipeline and Read Dispatcher

🎯 The Operations Behind the Service Facade:
``EntityOperations`` implements every public entity service operation
against explicitly injected collaborators (schema registry, database,
event hub, password hasher, structural validator).

Write path (create):
    defaults -> structural validation -> sensitive hashing
    -> relation resolution -> store create -> ``entry.create`` event

Write path (update):
    existing entity lookup (None if absent) -> structural validation
    -> sensitive hashing -> relation resolution -> store update
    -> ``entry.update`` event

A validation failure aborts before anything is written. Read operations
pick single-record or collection semantics from the content type kind.
Private attributes are stripped from every returned entity.
"""

import logging
from typing import Any, Dict, List, Optional, Union

from ..errors import SchemaNotFoundError
from ..events.event_hub import EventHub
from ..events.lifecycle import EventType, LifecycleEvent
from ..infrastructure.configuration import ApplicationConfig
from ..persistence.interface import Database, Entity, Page
from ..persistence.params import transform_params_to_query
from ..schemas.content_type import ContentTypeSchema
from ..schemas.registry import SchemaRegistry
from .services.defaults import assign_defaults
from .services.relations import resolve_relations
from .services.sanitize import strip_private
from .services.sensitive import HashFunction, PasswordHasher, PBKDF2PasswordHasher, transform_sensitive
from .services.validation_service import EntityValidator

logger = logging.getLogger(__name__)

Params = Optional[Dict[str, Any]]

READ_OPTIONS = ("select", "populate")


class EntityOperations:
    """
    Concrete implementation of the entity service operations.

    Args:
        schemas: Schema registry used to resolve content types
        database: Store giving access to each content type's query capability
        event_hub: Receives lifecycle events; events are skipped when None
        hasher: One-way transform for password attributes
        validator: Structural validator; validation is skipped when None
        config: Settings; ``ApplicationConfig()`` defaults when None
    """

    def __init__(
        self,
        schemas: SchemaRegistry,
        database: Database,
        event_hub: Optional[EventHub] = None,
        hasher: Optional[Union[PasswordHasher, HashFunction]] = None,
        validator: Optional[EntityValidator] = None,
        config: Optional[ApplicationConfig] = None,
    ):
        self.config = config or ApplicationConfig()
        self.schemas = schemas
        self.database = database
        self.event_hub = event_hub
        self.hasher = hasher or PBKDF2PasswordHasher(
            iterations=self.config.security.password_hash_iterations,
            salt_bytes=self.config.security.password_salt_bytes,
        )
        self.validator = validator

    def get_model(self, uid: str) -> ContentTypeSchema:
        """
        Resolve a content type schema.

        Raises:
            SchemaNotFoundError: If the uid is unknown
        """
        schema = self.schemas.get_model(uid)
        if schema is None:
            raise SchemaNotFoundError(uid)
        return schema

    def _query(self, params: Params) -> Dict[str, Any]:
        return transform_params_to_query(params, max_page_size=self.config.pagination.max_page_size)

    def _read_options(self, params: Params) -> Dict[str, Any]:
        query = self._query(params)
        return {key: query[key] for key in READ_OPTIONS if key in query}

    def _sanitize(self, schema: ContentTypeSchema, value: Any) -> Any:
        return strip_private(schema, value, self.schemas)

    async def _emit(self, event_type: EventType, schema: ContentTypeSchema, entry: Entity):
        if self.event_hub is None:
            return
        event = LifecycleEvent.for_entry(event_type, schema.uid, entry, schema.model_name)
        try:
            await self.event_hub.emit(event.name, event.payload)
        except Exception:
            # the write is already committed
            logger.exception(f"Failed to emit {event.name} for {schema.uid}")

    # Write path

    async def create(self, uid: str, params: Params = None) -> Entity:
        """Create an entity from ``params["data"]``"""
        params = params or {}
        schema = self.get_model(uid)

        data = assign_defaults(schema, params.get("data") or {})
        if self.validator is not None:
            data = self.validator.validate_entity_creation(schema, data)
        data = await transform_sensitive(schema, data, self.hasher)
        data = await resolve_relations(schema, data, self.database, self.schemas)

        entity = await self.database.query(uid).create({**self._read_options(params), "data": data})
        entry = self._sanitize(schema, entity)

        logger.info(f"Created {uid} entry {entity.get('id')}")
        await self._emit(EventType.ENTRY_CREATE, schema, entry)
        return entry

    async def update(self, uid: str, entity_id: Any, params: Params = None) -> Optional[Entity]:
        """
        Update an existing entity with ``params["data"]``.

        Omitted attributes are left untouched; no defaults are applied.

        Returns:
            The updated entity, or None if no entity has this id
        """
        params = params or {}
        schema = self.get_model(uid)
        query = self.database.query(uid)

        existing = await query.find_one({"where": {"id": entity_id}})
        if existing is None:
            logger.debug(f"Update of missing {uid} entry {entity_id} skipped")
            return None

        data = dict(params.get("data") or {})
        if self.validator is not None:
            data = self.validator.validate_entity_update(schema, data)
        data = await transform_sensitive(schema, data, self.hasher)
        data = await resolve_relations(schema, data, self.database, self.schemas)

        entity = await query.update({**self._read_options(params), "where": {"id": entity_id}, "data": data})
        if entity is None:
            return None
        entry = self._sanitize(schema, entity)

        logger.info(f"Updated {uid} entry {entity_id}")
        await self._emit(EventType.ENTRY_UPDATE, schema, entry)
        return entry

    async def delete(self, uid: str, entity_id: Any, params: Params = None) -> Optional[Entity]:
        """
        Delete an entity.

        Returns:
            The deleted entity, or None if no entity has this id
        """
        schema = self.get_model(uid)
        query = self.database.query(uid)

        existing = await query.find_one({**self._read_options(params), "where": {"id": entity_id}})
        if existing is None:
            return None

        await query.delete({"where": {"id": entity_id}})
        entry = self._sanitize(schema, existing)

        logger.info(f"Deleted {uid} entry {entity_id}")
        await self._emit(EventType.ENTRY_DELETE, schema, entry)
        return entry

    async def delete_many(self, uid: str, params: Params = None) -> Dict[str, int]:
        """Delete every entity matching ``params["filters"]``; emits no events"""
        self.get_model(uid)
        where = self._query(params).get("where")
        result = await self.database.query(uid).delete_many({"where": where})
        logger.info(f"Deleted {result.get('count', 0)} {uid} entries")
        return result

    # Read path

    async def find_many(self, uid: str, params: Params = None) -> Union[Optional[Entity], List[Entity]]:
        """
        Find entities of a content type.

        Single types return their only entity (or None); collection types
        return a list.
        """
        schema = self.get_model(uid)
        query = self._query(params)

        if schema.is_single_type:
            logger.debug(f"{uid} is a single type, reading one entry")
            return self._sanitize(schema, await self.database.query(uid).find_one(query))

        return self._sanitize(schema, await self.database.query(uid).find_many(query))

    async def find_one(self, uid: str, entity_id: Any, params: Params = None) -> Optional[Entity]:
        schema = self.get_model(uid)
        query = {**self._query(params), "where": {"id": entity_id}}
        return self._sanitize(schema, await self.database.query(uid).find_one(query))

    async def count(self, uid: str, params: Params = None) -> int:
        self.get_model(uid)
        return await self.database.query(uid).count(self._query(params))

    async def find_page(self, uid: str, params: Params = None) -> Page[Entity]:
        """Find one page of entities (``page`` / ``pageSize`` parameters)"""
        schema = self.get_model(uid)
        query = self._query(params)
        query.setdefault("page", 1)
        query.setdefault("page_size", self.config.pagination.default_page_size)

        page = await self.database.query(uid).find_page(query)
        return Page(results=self._sanitize(schema, list(page.results)), pagination=page.pagination)
