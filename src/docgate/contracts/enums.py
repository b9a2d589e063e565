"""Status codes and kinds shared across module boundaries."""

from enum import StrEnum


class SubmissionStatus(StrEnum):
    """Whether a submission got past the rate limiter."""

    ADMITTED = "admitted"
    REJECTED = "rejected"


class FailureKind(StrEnum):
    """Why an admitted submission did not succeed.

    Each kind maps to exactly one collaborator failure so callers can
    decide retry policy per kind. The gate itself never retries.
    """

    SERIALIZATION = "serialization"
    INVALID_KEY = "invalid_key"
    SIGNATURE = "signature"
    TRANSPORT = "transport"
    REMOTE_REJECTED = "remote_rejected"


class CertificateType(StrEnum):
    """Conformity document attached to a product."""

    CONFORMITY_CERTIFICATE = "CONFORMITY_CERTIFICATE"
    CONFORMITY_DECLARATION = "CONFORMITY_DECLARATION"


class DocumentFormat(StrEnum):
    """Envelope document_format values accepted by the registry."""

    MANUAL = "MANUAL"
    XML = "XML"
    CSV = "CSV"
