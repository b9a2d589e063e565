# src/docgate/engine/gate.py
"""DocumentGate: rate-limited serialize → sign → transmit.

The limiter is consulted first. Its lock is released before any
serialization, crypto or network work begins.

Each submission costs exactly one permit.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from docgate.contracts.enums import DocumentFormat, FailureKind
from docgate.contracts.errors import (
    InvalidKeyError,
    SerializationError,
    SignatureError,
    TransportError,
)
from docgate.contracts.results import SubmissionOutcome, SubmissionResult
from docgate.core.canonical import serialize_document, to_base64
from docgate.core.clock import DEFAULT_CLOCK, Clock
from docgate.core.logging import get_logger
from docgate.core.rate_limit import create_limiter
from docgate.core.security.signing import sign_sha256_rsa

if TYPE_CHECKING:
    import structlog

    from docgate.contracts.document import Document
    from docgate.contracts.ports import Limiter, Serializer, Signer, Transport
    from docgate.core.config import DocgateSettings, RegistrySettings

# Permits consumed per submission.
SUBMISSION_COST = 1

_SUCCESS_STATUS = 200


@dataclass(frozen=True, slots=True)
class RequestEnvelope:
    """Static fields of the registry request body."""

    product_group: str
    document_type: str = "SETS_AGGREGATION"
    document_format: DocumentFormat = DocumentFormat.MANUAL

    @classmethod
    def from_settings(cls, settings: RegistrySettings) -> RequestEnvelope:
        return cls(
            product_group=settings.product_group,
            document_type=settings.document_type,
            document_format=settings.document_format,
        )

    def build(self, document_bytes: bytes, signature: str) -> dict[str, Any]:
        """Assemble the JSON body POSTed to the registry."""
        return {
            "document_format": str(self.document_format),
            "product_document": to_base64(document_bytes),
            "signature": signature,
            "type": self.document_type,
            "product_group": self.product_group,
        }


class DocumentGate:
    """Admits submissions through a limiter, then runs the expensive path.

    Example:
        gate = DocumentGate(
            limiter=TokenBucket(timedelta(minutes=1), permits=30),
            serializer=serialize_document,
            signer=sign_sha256_rsa,
            transport=RegistryHTTPClient(endpoint, auth_token=token),
            envelope=RequestEnvelope(product_group="shoes"),
        )

        result = gate.submit(document, signing_key)
        if result.is_rejected:
            ...  # not sent; the caller may try again later
    """

    def __init__(
        self,
        limiter: Limiter,
        serializer: Serializer,
        signer: Signer,
        transport: Transport,
        envelope: RequestEnvelope,
        *,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        self._limiter = limiter
        self._serializer = serializer
        self._signer = signer
        self._transport = transport
        self._envelope = envelope
        self._logger = logger if logger is not None else get_logger(__name__)

    @classmethod
    def from_settings(
        cls,
        settings: DocgateSettings,
        transport: Transport,
        *,
        clock: Clock = DEFAULT_CLOCK,
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> DocumentGate:
        """Wire a gate with the production serializer and signer.

        The transport is passed in so the caller owns its lifetime.
        """
        return cls(
            limiter=create_limiter(settings.rate_limit, clock=clock),
            serializer=serialize_document,
            signer=sign_sha256_rsa,
            transport=transport,
            envelope=RequestEnvelope.from_settings(settings.registry),
            logger=logger,
        )

    def submit(self, document: Document, signing_key: str | bytes) -> SubmissionResult:
        """Submit a document if the limiter admits it.

        Args:
            document: Document to serialize, sign and send
            signing_key: RSA private key material for the signer

        Returns:
            SubmissionResult.rejected() if the limiter denied admission,
            otherwise SubmissionResult.admitted() with a success or a
            FailureInfo naming the failed step.
        """
        log = self._logger.bind(doc_id=str(document.doc_id))

        if not self._limiter.try_consume(SUBMISSION_COST):
            log.debug("submission_rejected")
            return SubmissionResult.rejected()

        outcome = self._run(document, signing_key, log)
        if outcome.succeeded:
            log.info("submission_succeeded", status_code=outcome.status_code)
        return SubmissionResult.admitted(outcome)

    def _run(
        self,
        document: Document,
        signing_key: str | bytes,
        log: structlog.stdlib.BoundLogger,
    ) -> SubmissionOutcome:
        try:
            document_bytes = self._serializer(document)
        except SerializationError as e:
            log.warning("submission_serialization_failed", error=str(e))
            return SubmissionOutcome.from_exception(FailureKind.SERIALIZATION, e)

        try:
            signature = self._signer(document_bytes, signing_key)
        except InvalidKeyError as e:
            log.warning("submission_invalid_key", error=str(e))
            return SubmissionOutcome.from_exception(FailureKind.INVALID_KEY, e)
        except SignatureError as e:
            log.warning("submission_signing_failed", error=str(e))
            return SubmissionOutcome.from_exception(FailureKind.SIGNATURE, e)

        body = self._envelope.build(document_bytes, signature)

        try:
            status_code = self._transport.transmit(body)
        except TransportError as e:
            log.warning("submission_transport_failed", error=str(e), endpoint=e.endpoint)
            return SubmissionOutcome.from_exception(FailureKind.TRANSPORT, e)

        if status_code != _SUCCESS_STATUS:
            log.warning("submission_remote_rejected", status_code=status_code)
            return SubmissionOutcome.failed(
                FailureKind.REMOTE_REJECTED,
                f"Registry responded with HTTP {status_code}",
                status_code=status_code,
            )
        return SubmissionOutcome.success(status_code)
