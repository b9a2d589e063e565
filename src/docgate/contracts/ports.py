"""Collaborator protocols consumed by DocumentGate.

The gate depends only on these structural types, so tests can inject
plain callables and fakes instead of real crypto and network code.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from docgate.contracts.document import Document


class Limiter(Protocol):
    """Non-blocking admission check (TokenBucket or NoOpLimiter)."""

    def try_consume(self, permits: int = 1) -> bool:
        """Return True if permits were granted, False to reject."""
        ...


class Serializer(Protocol):
    """Encode a document to the bytes that get signed and sent.

    Raises:
        SerializationError: If the document cannot be encoded.
    """

    def __call__(self, document: Document) -> bytes: ...


class Signer(Protocol):
    """Sign bytes with private key material, returning a base64 signature.

    Raises:
        InvalidKeyError: If the key cannot be loaded.
        SignatureError: If signing fails.
    """

    def __call__(self, data: bytes, private_key: str | bytes) -> str: ...


class Transport(Protocol):
    """Deliver the request envelope to the registry.

    Raises:
        TransportError: If no status code could be obtained.
    """

    def transmit(self, body: dict[str, Any]) -> int: ...
