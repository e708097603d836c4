"""Entity write pipeline, read dispatcher and the decorable service facade."""

from .pipeline import EntityOperations
from .service import EntityService, ServiceOperations

__all__ = ["EntityOperations", "EntityService", "ServiceOperations"]
