# tests/engine/test_gate.py
"""Tests for DocumentGate orchestration.

Collaborators are injected as fakes so each failure kind can be driven
directly; TestGateEndToEnd wires the real serializer, signer and HTTP
transport against a respx-mocked registry.
"""

from __future__ import annotations

import base64
import json
import threading
from datetime import timedelta
from typing import Any
from unittest.mock import MagicMock

import httpx
import pytest
import respx
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from docgate.contracts import (
    Document,
    FailureKind,
    InvalidKeyError,
    SerializationError,
    SignatureError,
    TransportError,
)
from docgate.core.clock import MockClock
from docgate.core.rate_limit import NoOpLimiter, TokenBucket
from docgate.engine import SUBMISSION_COST, DocumentGate, RequestEnvelope

ENDPOINT = "https://registry.example.test/documents/create"


class FakeTransport:
    def __init__(self, status_code: int = 200, error: Exception | None = None) -> None:
        self.status_code = status_code
        self.error = error
        self.bodies: list[dict[str, Any]] = []

    def transmit(self, body: dict[str, Any]) -> int:
        self.bodies.append(body)
        if self.error is not None:
            raise self.error
        return self.status_code


class RecordingLimiter:
    def __init__(self, grant: bool) -> None:
        self.grant = grant
        self.requests: list[int] = []

    def try_consume(self, permits: int = 1) -> bool:
        self.requests.append(permits)
        return self.grant


def _serializer(document: Document) -> bytes:
    return b'{"doc":"x"}'


def _signer(data: bytes, private_key: str | bytes) -> str:
    return "c2lnbmF0dXJl"


def _gate(
    *,
    limiter: Any = None,
    serializer: Any = _serializer,
    signer: Any = _signer,
    transport: Any = None,
    logger: Any = None,
) -> DocumentGate:
    return DocumentGate(
        limiter=limiter if limiter is not None else NoOpLimiter(),
        serializer=serializer,
        signer=signer,
        transport=transport if transport is not None else FakeTransport(),
        envelope=RequestEnvelope(product_group="shoes"),
        logger=logger,
    )


class TestAdmission:
    def test_each_submission_costs_one_permit(self, sample_document: Document) -> None:
        limiter = RecordingLimiter(grant=True)
        _gate(limiter=limiter).submit(sample_document, "key")

        assert SUBMISSION_COST == 1
        assert limiter.requests == [1]

    def test_rejection_has_no_side_effects(self, sample_document: Document) -> None:
        serializer = MagicMock()
        signer = MagicMock()
        transport = FakeTransport()

        result = _gate(
            limiter=RecordingLimiter(grant=False),
            serializer=serializer,
            signer=signer,
            transport=transport,
        ).submit(sample_document, "key")

        assert result.is_rejected
        assert result.outcome is None
        serializer.assert_not_called()
        signer.assert_not_called()
        assert transport.bodies == []

    def test_bucket_capacity_bounds_submissions(self, sample_document: Document) -> None:
        """capacity=3 admits three submissions then rejects under static time."""
        clock = MockClock()
        transport = FakeTransport()
        gate = _gate(limiter=TokenBucket(timedelta(seconds=1), 3, clock=clock), transport=transport)

        results = [gate.submit(sample_document, "key") for _ in range(4)]

        assert [r.is_admitted for r in results] == [True, True, True, False]
        assert len(transport.bodies) == 3

        clock.advance(1 / 3)
        assert gate.submit(sample_document, "key").is_admitted

    def test_rejection_logged_at_debug(self, sample_document: Document) -> None:
        logger = MagicMock()
        bound = logger.bind.return_value

        _gate(limiter=RecordingLimiter(grant=False), logger=logger).submit(sample_document, "key")

        logger.bind.assert_called_once_with(doc_id=str(sample_document.doc_id))
        bound.debug.assert_called_once_with("submission_rejected")
        bound.warning.assert_not_called()


class TestOutcomeMapping:
    def test_http_200_is_success(self, sample_document: Document) -> None:
        result = _gate(transport=FakeTransport(200)).submit(sample_document, "key")

        assert result.succeeded
        assert result.outcome is not None
        assert result.outcome.status_code == 200

    @pytest.mark.parametrize("status", [201, 202, 400, 403, 500])
    def test_other_status_is_remote_rejected(self, sample_document: Document, status: int) -> None:
        result = _gate(transport=FakeTransport(status)).submit(sample_document, "key")

        assert result.is_admitted
        assert not result.succeeded
        assert result.outcome is not None
        assert result.outcome.status_code == status
        assert result.outcome.failure is not None
        assert result.outcome.failure.kind == FailureKind.REMOTE_REJECTED

    @pytest.mark.parametrize(
        ("stage", "error", "kind"),
        [
            ("serializer", SerializationError("bad float"), FailureKind.SERIALIZATION),
            ("signer", InvalidKeyError("not RSA"), FailureKind.INVALID_KEY),
            ("signer", SignatureError("boom"), FailureKind.SIGNATURE),
            ("transport", TransportError("refused", endpoint=ENDPOINT), FailureKind.TRANSPORT),
        ],
    )
    def test_collaborator_failures_map_to_kinds(
        self,
        sample_document: Document,
        stage: str,
        error: Exception,
        kind: FailureKind,
    ) -> None:
        failing = MagicMock(side_effect=error)
        if stage == "serializer":
            gate = _gate(serializer=failing)
        elif stage == "signer":
            gate = _gate(signer=failing)
        else:
            gate = _gate(transport=FakeTransport(error=error))

        result = gate.submit(sample_document, "key")

        assert result.is_admitted
        assert result.outcome is not None
        assert result.outcome.failure is not None
        assert result.outcome.failure.kind == kind
        assert str(error) in result.outcome.failure.message

    def test_later_stages_skipped_after_failure(self, sample_document: Document) -> None:
        transport = FakeTransport()
        gate = _gate(signer=MagicMock(side_effect=InvalidKeyError("bad")), transport=transport)

        gate.submit(sample_document, "key")

        assert transport.bodies == []

    def test_unexpected_exceptions_propagate(self, sample_document: Document) -> None:
        """Bugs are not outcomes."""
        gate = _gate(serializer=MagicMock(side_effect=RuntimeError("bug")))
        with pytest.raises(RuntimeError, match="bug"):
            gate.submit(sample_document, "key")

    def test_failures_are_not_retried(self, sample_document: Document) -> None:
        transport = FakeTransport(error=TransportError("refused", endpoint=ENDPOINT))
        _gate(transport=transport).submit(sample_document, "key")
        assert len(transport.bodies) == 1


class TestEnvelope:
    def test_body_shape(self, sample_document: Document) -> None:
        transport = FakeTransport()
        _gate(transport=transport).submit(sample_document, "key")

        assert transport.bodies == [
            {
                "document_format": "MANUAL",
                "product_document": base64.b64encode(b'{"doc":"x"}').decode(),
                "signature": "c2lnbmF0dXJl",
                "type": "SETS_AGGREGATION",
                "product_group": "shoes",
            }
        ]

    def test_from_settings(self) -> None:
        from docgate.core.config import RegistrySettings

        envelope = RequestEnvelope.from_settings(RegistrySettings(product_group="milk", document_type="LP_INTRODUCE_GOODS"))
        assert envelope == RequestEnvelope(product_group="milk", document_type="LP_INTRODUCE_GOODS")


class TestConcurrentSubmissions:
    def test_no_overselling_through_gate(self, sample_document: Document) -> None:
        capacity = 5
        workers = 30
        transport = FakeTransport()
        transport_lock = threading.Lock()

        class LockedTransport:
            def transmit(self, body: dict[str, Any]) -> int:
                with transport_lock:
                    return transport.transmit(body)

        gate = _gate(limiter=TokenBucket(timedelta(seconds=10), capacity, clock=MockClock()), transport=LockedTransport())
        barrier = threading.Barrier(workers)
        admitted: list[bool] = []
        admitted_lock = threading.Lock()

        def worker() -> None:
            barrier.wait()
            result = gate.submit(sample_document, "key")
            with admitted_lock:
                admitted.append(result.is_admitted)

        threads = [threading.Thread(target=worker) for _ in range(workers)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sum(admitted) == capacity
        assert len(transport.bodies) == capacity


class TestGateEndToEnd:
    """Real serializer and signer, respx-mocked registry."""

    @respx.mock
    def test_signed_document_reaches_registry(
        self,
        sample_document: Document,
        rsa_private_key: rsa.RSAPrivateKey,
        rsa_key_b64: str,
    ) -> None:
        from docgate.clients.http import RegistryHTTPClient
        from docgate.core.config import DocgateSettings, RegistrySettings

        route = respx.post(ENDPOINT).mock(return_value=httpx.Response(200, json={"value": "ok"}))
        settings = DocgateSettings(registry=RegistrySettings(endpoint=ENDPOINT, product_group="shoes"))

        with RegistryHTTPClient.from_settings(settings.registry) as transport:
            gate = DocumentGate.from_settings(settings, transport, clock=MockClock())
            first = gate.submit(sample_document, rsa_key_b64)
            second = gate.submit(sample_document, rsa_key_b64)

        assert first.succeeded
        # Default settings: one permit per second, static mock clock
        assert second.is_rejected
        assert route.call_count == 1

        body = json.loads(route.calls.last.request.content)
        document_bytes = base64.b64decode(body["product_document"])
        assert json.loads(document_bytes)["doc_id"] == str(sample_document.doc_id)
        rsa_private_key.public_key().verify(
            base64.b64decode(body["signature"]),
            document_bytes,
            padding.PKCS1v15(),
            hashes.SHA256(),
        )

    @respx.mock(assert_all_called=False)
    def test_bad_key_never_reaches_network(self, sample_document: Document) -> None:
        from docgate.clients.http import RegistryHTTPClient
        from docgate.core.config import DocgateSettings, RegistrySettings

        route = respx.post(ENDPOINT).mock(return_value=httpx.Response(200))
        settings = DocgateSettings(registry=RegistrySettings(endpoint=ENDPOINT, product_group="shoes"))

        with RegistryHTTPClient.from_settings(settings.registry) as transport:
            result = DocumentGate.from_settings(settings, transport, clock=MockClock()).submit(sample_document, "garbage!")

        assert result.outcome is not None
        assert result.outcome.failure is not None
        assert result.outcome.failure.kind == FailureKind.INVALID_KEY
        assert not route.called
