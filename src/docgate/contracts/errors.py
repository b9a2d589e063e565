"""Exception hierarchy for docgate.

Rate-limit rejection has no exception here. It is reported as
SubmissionResult.rejected().
"""

from __future__ import annotations


class DocgateError(Exception):
    """Base class for all docgate errors."""


class InvalidConfigurationError(DocgateError, ValueError):
    """Raised synchronously when a component is constructed with bad settings."""


class SerializationError(DocgateError):
    """Document could not be encoded to canonical JSON bytes."""


class SigningError(DocgateError):
    """Base class for signing failures."""


class InvalidKeyError(SigningError):
    """Private key material could not be decoded, parsed, or is not RSA."""


class SignatureError(SigningError):
    """Key was valid but producing the signature failed."""


class TransportError(DocgateError):
    """HTTP request to the registry failed before a status code was received.

    The underlying httpx exception is chained as __cause__.
    """

    def __init__(self, message: str, *, endpoint: str) -> None:
        super().__init__(message)
        self.endpoint = endpoint
