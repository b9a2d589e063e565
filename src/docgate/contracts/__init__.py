"""Shared contracts: enums, errors, results, ports and the document model.

This package is a leaf: it imports nothing from docgate.core or
docgate.engine.
"""

from docgate.contracts.document import Document, Product
from docgate.contracts.enums import (
    CertificateType,
    DocumentFormat,
    FailureKind,
    SubmissionStatus,
)
from docgate.contracts.errors import (
    DocgateError,
    InvalidConfigurationError,
    InvalidKeyError,
    SerializationError,
    SignatureError,
    SigningError,
    TransportError,
)
from docgate.contracts.ports import Limiter, Serializer, Signer, Transport
from docgate.contracts.results import FailureInfo, SubmissionOutcome, SubmissionResult

__all__ = [
    "CertificateType",
    "DocgateError",
    "Document",
    "DocumentFormat",
    "FailureInfo",
    "FailureKind",
    "InvalidConfigurationError",
    "InvalidKeyError",
    "Limiter",
    "Product",
    "SerializationError",
    "SignatureError",
    "Serializer",
    "Signer",
    "SigningError",
    "SubmissionOutcome",
    "SubmissionResult",
    "SubmissionStatus",
    "Transport",
    "TransportError",
]
