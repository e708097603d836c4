"""
Schema Registry

Read-only access to content type schemas. The entity service only needs
``get_model``; the in-memory registry is what applications and tests use
to declare their content types.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, List, Optional, Union

from .content_type import ContentTypeSchema

logger = logging.getLogger(__name__)

SchemaDefinition = Union[ContentTypeSchema, Dict[str, Any]]


class SchemaRegistry(ABC):
    """Contract for looking up content type schemas by uid"""

    @abstractmethod
    def get_model(self, uid: str) -> Optional[ContentTypeSchema]:
        """
        Get the schema of a content type.

        Args:
            uid: Content type identifier

        Returns:
            The schema, or None if the uid is unknown
        """
        pass


class InMemorySchemaRegistry(SchemaRegistry):
    """Schema registry backed by a dictionary"""

    def __init__(self, models: Optional[Iterable[SchemaDefinition]] = None):
        self._models: Dict[str, ContentTypeSchema] = {}
        for model in models or []:
            self.register(model)

    def register(self, model: SchemaDefinition) -> ContentTypeSchema:
        """Register a schema, given as a model or as a raw definition"""
        schema = model if isinstance(model, ContentTypeSchema) else ContentTypeSchema.model_validate(model)
        if schema.uid in self._models:
            logger.warning(f"Replacing schema for content type {schema.uid}")
        self._models[schema.uid] = schema
        logger.debug(f"Registered content type {schema.uid} ({schema.kind.value})")
        return schema

    def get_model(self, uid: str) -> Optional[ContentTypeSchema]:
        return self._models.get(uid)

    @property
    def uids(self) -> List[str]:
        return list(self._models)

    def __contains__(self, uid: str) -> bool:
        return uid in self._models

    def __len__(self) -> int:
        return len(self._models)
