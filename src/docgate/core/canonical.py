# src/docgate/core/canonical.py
"""
Canonical JSON serialization for signing.

The bytes that get signed must be exactly the bytes the registry decodes
from product_document, so serialization is deterministic per RFC 8785/JCS
(rfc8785 package): sorted keys, no insignificant whitespace, fixed number
formatting.

IMPORTANT: NaN and Infinity are REJECTED, not converted. JSON has no
representation for them.
"""

from __future__ import annotations

import base64
from typing import TYPE_CHECKING, Any

import rfc8785

from docgate.contracts.errors import SerializationError

if TYPE_CHECKING:
    from docgate.contracts.document import Document


def canonical_json(obj: Any) -> bytes:
    """Serialize a JSON-safe object to canonical RFC 8785 bytes.

    Args:
        obj: dict/list/str/int/float/bool/None tree

    Returns:
        UTF-8 encoded canonical JSON

    Raises:
        SerializationError: If obj contains non-finite floats, non-string
            keys, or types JSON cannot represent.
    """
    try:
        return rfc8785.dumps(obj)
    except (rfc8785.CanonicalizationError, TypeError, ValueError) as e:
        raise SerializationError(f"Cannot canonicalize value: {e}") from e


def serialize_document(document: Document) -> bytes:
    """Encode a Document to canonical JSON bytes.

    None-valued optional fields are omitted, matching what the registry
    expects for absent values.

    Raises:
        SerializationError: If the document cannot be encoded.
    """
    try:
        payload = document.model_dump(mode="json", exclude_none=True)
    except ValueError as e:
        raise SerializationError(f"Cannot dump document {document.doc_id}: {e}") from e
    return canonical_json(payload)


def to_base64(data: bytes) -> str:
    """Standard base64 with padding, as ASCII text."""
    return base64.b64encode(data).decode("ascii")
