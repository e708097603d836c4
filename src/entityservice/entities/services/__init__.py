"""
Entity Services

The building blocks of the write pipeline: default assignment, sensitive
field hashing, relation resolution, structural validation and private
attribute stripping.
"""

from .defaults import assign_defaults
from .relations import normalize_relation_value, resolve_relations
from .sanitize import strip_private
from .sensitive import PasswordHasher, PBKDF2PasswordHasher, transform_sensitive
from .validation_service import EntityValidator, SchemaEntityValidator

__all__ = [
    "assign_defaults",
    "normalize_relation_value",
    "resolve_relations",
    "strip_private",
    "PasswordHasher",
    "PBKDF2PasswordHasher",
    "transform_sensitive",
    "EntityValidator",
    "SchemaEntityValidator",
]
