"""
Sensitive Field Transformation

Password attributes are never stored in clear text. Before a write, every
password value present in the payload is replaced with a one-way hash.
Hashing an already hashed value is a caller error and is not detected.
"""

import inspect
import logging
import secrets
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, Union

from cryptography.exceptions import InvalidKey
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from ...schemas.attributes import (
    AttributeVisitor, EnumerationAttribute, PasswordAttribute, RelationAttribute, ScalarAttribute
)
from ...schemas.content_type import ContentTypeSchema

logger = logging.getLogger(__name__)

HASH_ALGORITHM = "pbkdf2_sha256"
DIGEST_LENGTH = 32


class PasswordHasher(ABC):
    """One-way transform applied to sensitive values"""

    @abstractmethod
    def hash(self, plaintext: str) -> Union[str, Awaitable[str]]:
        """Hash a plaintext value, synchronously or as a coroutine"""
        pass


class PBKDF2PasswordHasher(PasswordHasher):
    """
    PBKDF2-HMAC-SHA256 hasher with a random salt per value.

    Hashes are encoded as ``pbkdf2_sha256$<iterations>$<salt>$<digest>``.
    """

    def __init__(self, iterations: int = 260000, salt_bytes: int = 16):
        if iterations < 1:
            raise ValueError("iterations must be positive")
        self.iterations = iterations
        self.salt_bytes = salt_bytes

    def _kdf(self, salt: bytes, iterations: int) -> PBKDF2HMAC:
        return PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=DIGEST_LENGTH,
            salt=salt,
            iterations=iterations,
        )

    def hash(self, plaintext: str) -> str:
        salt = secrets.token_bytes(self.salt_bytes)
        digest = self._kdf(salt, self.iterations).derive(str(plaintext).encode("utf-8"))
        return f"{HASH_ALGORITHM}${self.iterations}${salt.hex()}${digest.hex()}"

    def verify(self, plaintext: str, hashed: str) -> bool:
        """Check a plaintext value against a hash produced by ``hash``"""
        try:
            algorithm, iterations, salt, digest = hashed.split("$")
            kdf = self._kdf(bytes.fromhex(salt), int(iterations))
            expected = bytes.fromhex(digest)
        except (AttributeError, ValueError):
            return False
        if algorithm != HASH_ALGORITHM:
            return False
        try:
            kdf.verify(str(plaintext).encode("utf-8"), expected)
        except InvalidKey:
            return False
        return True


HashFunction = Callable[[str], Union[str, Awaitable[str]]]


class _SensitiveAttributes(AttributeVisitor[bool]):
    def visit_scalar(self, name: str, attribute: ScalarAttribute) -> bool:
        return False

    def visit_enumeration(self, name: str, attribute: EnumerationAttribute) -> bool:
        return False

    def visit_password(self, name: str, attribute: PasswordAttribute) -> bool:
        return True

    def visit_relation(self, name: str, attribute: RelationAttribute) -> bool:
        return False


_is_sensitive = _SensitiveAttributes()


async def transform_sensitive(
    schema: ContentTypeSchema,
    payload: Dict[str, Any],
    hasher: Union[PasswordHasher, HashFunction],
) -> Dict[str, Any]:
    """
    Return a copy of ``payload`` with sensitive values hashed.

    Args:
        schema: Content type schema
        payload: Attribute values (not modified)
        hasher: ``PasswordHasher`` or bare hash function, sync or async

    Returns:
        New payload dictionary
    """
    hash_value = hasher.hash if isinstance(hasher, PasswordHasher) else hasher
    result = dict(payload)

    for name, attribute in schema.attributes.items():
        if result.get(name) is None or not attribute.accept(name, _is_sensitive):
            continue
        hashed = hash_value(result[name])
        if inspect.isawaitable(hashed):
            hashed = await hashed
        result[name] = hashed
        logger.debug(f"Hashed sensitive attribute {name} of {schema.uid}")

    return result
