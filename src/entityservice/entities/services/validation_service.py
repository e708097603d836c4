"""
Validation Service - Structural Payload Validation

✅ Schema Driven Checks:
Rejects payloads that cannot possibly be stored: values of the wrong
type, enumeration values outside the allowed list, length and range
violations, and required attributes left empty. Relation existence is
not checked here; that is the relation resolver's job.

The entity service only depends on the ``EntityValidator`` interface, so
applications can plug in their own validation library.
"""

import datetime
import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Dict, List

from ...errors import ValidationError
from ...schemas.attributes import (
    AttributeVisitor, BaseAttribute, EnumerationAttribute, PasswordAttribute,
    RelationAttribute, ScalarAttribute
)
from ...schemas.content_type import ContentTypeSchema

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

STRING_TYPES = {"string", "text", "richtext", "email", "uid"}
INTEGER_TYPES = {"integer", "biginteger"}
NUMBER_TYPES = {"float", "decimal"}
TEMPORAL_TYPES = {
    "date": (str, datetime.date),
    "datetime": (str, datetime.datetime),
    "time": (str, datetime.time),
    "timestamp": (str, int, datetime.datetime),
}


class EntityValidator(ABC):
    """Interface for structural validation of entity payloads"""

    @abstractmethod
    def validate_entity_creation(self, schema: ContentTypeSchema, data: Dict[str, Any]) -> Dict[str, Any]:
        """
        Validate a complete payload (defaults already applied).

        Returns:
            The validated data

        Raises:
            ValidationError: With per-attribute ``errors``
        """
        pass

    @abstractmethod
    def validate_entity_update(self, schema: ContentTypeSchema, data: Dict[str, Any]) -> Dict[str, Any]:
        """Validate a partial payload: only attributes present are checked"""
        pass


def _option(attribute: BaseAttribute, name: str) -> Any:
    return (attribute.model_extra or {}).get(name)


def _length_errors(attribute: BaseAttribute, value: str) -> List[str]:
    errors = []
    min_length = _option(attribute, "minLength")
    max_length = _option(attribute, "maxLength")
    if min_length is not None and len(value) < min_length:
        errors.append(f"must be at least {min_length} characters")
    if max_length is not None and len(value) > max_length:
        errors.append(f"must be at most {max_length} characters")
    return errors


class _ValueErrors(AttributeVisitor[List[str]]):
    """Collects error messages for one non-null value"""

    def __init__(self, value: Any):
        self.value = value

    def visit_scalar(self, name: str, attribute: ScalarAttribute) -> List[str]:
        value = self.value
        attribute_type = attribute.type

        if attribute_type in STRING_TYPES:
            if not isinstance(value, str):
                return [f"must be a string, got {type(value).__name__}"]
            errors = _length_errors(attribute, value)
            if attribute_type == "email" and not EMAIL_PATTERN.match(value):
                errors.append("must be a valid email")
            return errors

        if attribute_type == "boolean":
            return [] if isinstance(value, bool) else [f"must be a boolean, got {type(value).__name__}"]

        if attribute_type in INTEGER_TYPES or attribute_type in NUMBER_TYPES:
            if attribute_type in INTEGER_TYPES:
                allowed, expected = (int,), "an integer"
            else:
                allowed, expected = (int, float), "a number"
            if isinstance(value, bool) or not isinstance(value, allowed):
                return [f"must be {expected}, got {type(value).__name__}"]
            errors = []
            minimum = _option(attribute, "min")
            maximum = _option(attribute, "max")
            if minimum is not None and value < minimum:
                errors.append(f"must be greater than or equal to {minimum}")
            if maximum is not None and value > maximum:
                errors.append(f"must be less than or equal to {maximum}")
            return errors

        if attribute_type in TEMPORAL_TYPES:
            allowed = TEMPORAL_TYPES[attribute_type]
            if isinstance(value, bool) or not isinstance(value, allowed):
                return [f"must be a {attribute_type}, got {type(value).__name__}"]
            return []

        # json, media, components and unknown types are not checked
        return []

    def visit_enumeration(self, name: str, attribute: EnumerationAttribute) -> List[str]:
        if self.value not in attribute.enum:
            return [f"must be one of the following values: {', '.join(attribute.enum)}"]
        return []

    def visit_password(self, name: str, attribute: PasswordAttribute) -> List[str]:
        if not isinstance(self.value, str):
            return [f"must be a string, got {type(self.value).__name__}"]
        return _length_errors(attribute, self.value)

    def visit_relation(self, name: str, attribute: RelationAttribute) -> List[str]:
        return []


class SchemaEntityValidator(EntityValidator):
    """Default validator driven by the content type schema"""

    def validate_entity_creation(self, schema: ContentTypeSchema, data: Dict[str, Any]) -> Dict[str, Any]:
        return self._validate(schema, data, partial=False)

    def validate_entity_update(self, schema: ContentTypeSchema, data: Dict[str, Any]) -> Dict[str, Any]:
        return self._validate(schema, data, partial=True)

    def _validate(self, schema: ContentTypeSchema, data: Dict[str, Any], partial: bool) -> Dict[str, Any]:
        errors: Dict[str, List[str]] = {}

        for name, attribute in schema.attributes.items():
            if partial and name not in data:
                continue

            value = data.get(name)
            if value is None:
                if attribute.required:
                    errors[name] = ["must be defined" if name not in data else "cannot be null"]
                continue

            field_errors = attribute.accept(name, _ValueErrors(value))
            if field_errors:
                errors[name] = field_errors

        if errors:
            messages = [f"{name} {message}" for name, field_errors in errors.items() for message in field_errors]
            logger.debug(f"Validation of {schema.uid} failed: {messages}")
            raise ValidationError(
                f"{len(messages)} error(s) occurred: {', '.join(messages)}",
                field=next(iter(errors)) if len(errors) == 1 else None,
                errors=errors,
            )

        return data
