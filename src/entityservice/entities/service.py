"""
Entity Service - Decorable Service Facade

⭐ The Public Surface:
``EntityService`` exposes ``create``, ``update``, ``find_one``,
``find_many``, ``delete``, ``count`` and ``find_page`` (plus
``delete_many``). Each operation is a field of an immutable
``ServiceOperations`` record, so any of them can be replaced on its own.

Decoration:
    ``decorate`` takes a function that receives the current service and
    returns a mapping of operation names to replacements. It returns a NEW
    service; the decorated one is left untouched. A replacement does not
    call the previous implementation automatically, it delegates
    explicitly through the service it was given:

        def audit(previous):
            async def create(uid, params=None):
                entity = await previous.create(uid, params)
                audit_log.append(entity["id"])
                return entity
            return {"create": create}

        service = service.decorate(audit)

    Decorations stack: the latest decorator sees every earlier one
    through ``previous``.
"""

import inspect
import logging
from dataclasses import dataclass, fields, replace
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Union

from ..persistence.interface import Entity, Page
from .pipeline import EntityOperations, Params

logger = logging.getLogger(__name__)

Operation = Callable[..., Union[Any, Awaitable[Any]]]
Decorator = Callable[['EntityService'], Mapping[str, Operation]]


@dataclass(frozen=True)
class ServiceOperations:
    """One callable per public operation"""
    create: Operation
    update: Operation
    find_one: Operation
    find_many: Operation
    delete: Operation
    count: Operation
    find_page: Operation
    delete_many: Operation

    @classmethod
    def from_pipeline(cls, pipeline: EntityOperations) -> 'ServiceOperations':
        return cls(**{name: getattr(pipeline, name) for name in cls.names()})

    @classmethod
    def names(cls) -> List[str]:
        return [f.name for f in fields(cls)]


async def _resolve(result: Any) -> Any:
    if inspect.isawaitable(result):
        return await result
    return result


class EntityService:
    """
    Entity service facade.

    Build one with ``EntityService.from_pipeline`` or, with configuration
    driven wiring, ``configure_entity_service``.
    """

    def __init__(self, operations: ServiceOperations, pipeline: Optional[EntityOperations] = None):
        self._operations = operations
        self.pipeline = pipeline

    @classmethod
    def from_pipeline(cls, pipeline: EntityOperations) -> 'EntityService':
        return cls(ServiceOperations.from_pipeline(pipeline), pipeline=pipeline)

    @property
    def operations(self) -> ServiceOperations:
        return self._operations

    def decorate(self, decorator: Decorator) -> 'EntityService':
        """
        Compose replacements over the current operations.

        Args:
            decorator: Called with this service, returns ``{name: replacement}``

        Returns:
            A new service using the replacements

        Raises:
            ValueError: If the decorator names an unknown operation
            TypeError: If a replacement is not callable
        """
        overrides = dict(decorator(self) or {})

        unknown = set(overrides) - set(ServiceOperations.names())
        if unknown:
            raise ValueError(f"Cannot decorate unknown operation(s): {', '.join(sorted(unknown))}")
        for name, replacement in overrides.items():
            if not callable(replacement):
                raise TypeError(f"Replacement for {name} must be callable")

        logger.debug(f"Decorating entity service operations: {sorted(overrides)}")
        return EntityService(replace(self._operations, **overrides), pipeline=self.pipeline)

    async def create(self, uid: str, params: Params = None) -> Entity:
        return await _resolve(self._operations.create(uid, params))

    async def update(self, uid: str, entity_id: Any, params: Params = None) -> Optional[Entity]:
        return await _resolve(self._operations.update(uid, entity_id, params))

    async def find_one(self, uid: str, entity_id: Any, params: Params = None) -> Optional[Entity]:
        return await _resolve(self._operations.find_one(uid, entity_id, params))

    async def find_many(self, uid: str, params: Params = None) -> Union[Optional[Entity], List[Entity]]:
        return await _resolve(self._operations.find_many(uid, params))

    async def delete(self, uid: str, entity_id: Any, params: Params = None) -> Optional[Entity]:
        return await _resolve(self._operations.delete(uid, entity_id, params))

    async def count(self, uid: str, params: Params = None) -> int:
        return await _resolve(self._operations.count(uid, params))

    async def find_page(self, uid: str, params: Params = None) -> Page[Entity]:
        return await _resolve(self._operations.find_page(uid, params))

    async def delete_many(self, uid: str, params: Params = None) -> Dict[str, int]:
        return await _resolve(self._operations.delete_many(uid, params))
