"""
Entity Service Errors

Exception hierarchy shared by every layer of the entity service.
Failures coming from collaborators (store, schema registry) are not
wrapped: they propagate to the caller unchanged.
"""

from typing import Any, Dict, List, Optional


class EntityServiceError(Exception):
    """Base exception for entity service errors"""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class SchemaNotFoundError(EntityServiceError):
    """Raised when a content type uid is not known to the schema registry"""

    def __init__(self, uid: str):
        super().__init__(f"Content type {uid} not found", details={"uid": uid})
        self.uid = uid


class ValidationError(EntityServiceError):
    """
    Raised when an entity payload fails validation.

    Args:
        message: Human readable message, safe to display as-is
        field: Attribute the failure is attached to, if any
        errors: Mapping of attribute name to the list of messages for it
    """

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        errors: Optional[Dict[str, List[str]]] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details=details)
        self.field = field
        self.errors = errors or {}


class RelationNotFoundError(ValidationError):
    """Raised when connected relations reference entities that do not exist"""

    def __init__(self, missing_count: int, target_uid: str, attribute: Optional[str] = None):
        message = (
            f"{missing_count} relation(s) of type {target_uid} "
            f"associated with this entity do not exist"
        )
        super().__init__(
            message,
            field=attribute,
            errors={attribute: [message]} if attribute else {},
            details={"missing_count": missing_count, "target_uid": target_uid},
        )
        self.missing_count = missing_count
        self.target_uid = target_uid
        self.attribute = attribute


class StoreError(EntityServiceError):
    """Raised by store implementations for malformed queries"""
    pass
