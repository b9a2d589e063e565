# src/docgate/clients/http.py
"""HTTP transport for registry submissions.

Wraps one shared httpx.Client. The transport only reports the status
code; deciding what a status means is the gate's job.
"""

from __future__ import annotations

import re
import time
from typing import TYPE_CHECKING, Any
from urllib.parse import urlparse

import httpx
import structlog

from docgate.contracts.errors import InvalidConfigurationError, TransportError

if TYPE_CHECKING:
    from types import TracebackType

    from docgate.core.config import RegistrySettings

logger = structlog.get_logger(__name__)

_DEFAULT_HEADERS: dict[str, str] = {
    "Content-Type": "application/json; charset=UTF-8",
    "Accept": "application/json",
    "Accept-Charset": "utf-8",
}

_BODY_PREVIEW_CHARS = 200


class RegistryHTTPClient:
    """POSTs request envelopes to the registry's document-create endpoint.

    Example:
        with RegistryHTTPClient(DEFAULT_ENDPOINT, auth_token=token) as client:
            status = client.transmit({"document_format": "MANUAL", ...})
    """

    # Well-known sensitive headers (exact match, case-insensitive).
    _SENSITIVE_HEADERS_EXACT = frozenset(
        {
            "authorization",
            "proxy-authorization",
            "cookie",
            "x-api-key",
            "api-key",
            "x-auth-token",
            "x-access-token",
        }
    )

    # Words that indicate sensitive content when they appear as complete
    # delimiter-separated segments in header names.
    # e.g. "X-Auth-Token" splits to {"x","auth","token"} but "X-Author" does not match.
    _SENSITIVE_HEADER_WORDS = frozenset(
        {
            "auth",
            "authorization",
            "apikey",
            "key",
            "secret",
            "token",
            "password",
            "credential",
        }
    )

    def __init__(
        self,
        endpoint: str,
        *,
        timeout: float = 30.0,
        auth_token: str | None = None,
        headers: dict[str, str] | None = None,
        allow_insecure: bool = False,
    ) -> None:
        """Initialize the transport.

        Args:
            endpoint: Absolute document-create URL
            timeout: Request timeout in seconds (default: 30.0)
            auth_token: Optional bearer token for the Authorization header
            headers: Extra headers merged over the JSON defaults
            allow_insecure: Permit plain http:// endpoints (local mocks only)

        Raises:
            InvalidConfigurationError: If the endpoint is not an absolute
                https URL (or http with allow_insecure).
        """
        parsed = urlparse(endpoint)
        allowed_schemes = {"https", "http"} if allow_insecure else {"https"}
        if parsed.scheme not in allowed_schemes or not parsed.hostname:
            raise InvalidConfigurationError(
                f"Registry endpoint must be an absolute {' or '.join(sorted(allowed_schemes))} URL, got {endpoint!r}"
            )

        self._endpoint = endpoint
        self._timeout = timeout
        self._headers = {**_DEFAULT_HEADERS, **(headers or {})}
        if auth_token:
            self._headers["Authorization"] = f"Bearer {auth_token}"
        # httpx.Client is thread-safe; the internal pool handles concurrency.
        self._client = httpx.Client(timeout=timeout, follow_redirects=False)

    @classmethod
    def from_settings(cls, settings: RegistrySettings) -> RegistryHTTPClient:
        """Build a transport from registry settings."""
        return cls(
            settings.endpoint,
            timeout=settings.timeout_seconds,
            auth_token=settings.auth_token,
            allow_insecure=settings.allow_insecure,
        )

    @property
    def endpoint(self) -> str:
        return self._endpoint

    def _is_sensitive_header(self, header_name: str) -> bool:
        lower_name = header_name.lower()
        if lower_name in self._SENSITIVE_HEADERS_EXACT:
            return True
        segments = [seg for seg in re.split(r"[^a-z0-9]+", lower_name) if seg]
        return any(seg in self._SENSITIVE_HEADER_WORDS for seg in segments)

    def redacted_headers(self) -> dict[str, str]:
        """Request headers safe to log: sensitive values replaced."""
        return {k: ("<redacted>" if self._is_sensitive_header(k) else v) for k, v in self._headers.items()}

    def _host(self) -> str:
        # hostname, not netloc, so embedded userinfo never reaches logs
        return urlparse(self._endpoint).hostname or "unknown"

    def transmit(self, body: dict[str, Any]) -> int:
        """POST the envelope as JSON and return the HTTP status code.

        Args:
            body: JSON-serializable request envelope

        Returns:
            HTTP status code from the registry

        Raises:
            TransportError: For connection, timeout, or protocol errors
        """
        logger.debug(
            "registry_request",
            host=self._host(),
            headers=self.redacted_headers(),
        )
        start = time.perf_counter()
        try:
            response = self._client.post(self._endpoint, json=body, headers=self._headers)
        except httpx.HTTPError as e:
            latency_ms = (time.perf_counter() - start) * 1000
            logger.warning(
                "registry_transport_failed",
                host=self._host(),
                error=str(e),
                error_type=type(e).__name__,
                latency_ms=latency_ms,
            )
            raise TransportError(f"{type(e).__name__}: {e}", endpoint=self._endpoint) from e

        latency_ms = (time.perf_counter() - start) * 1000
        if not 200 <= response.status_code < 300:
            logger.warning(
                "registry_non_success_status",
                host=self._host(),
                status_code=response.status_code,
                body_preview=response.text[:_BODY_PREVIEW_CHARS],
                latency_ms=latency_ms,
            )
        else:
            logger.debug(
                "registry_response",
                host=self._host(),
                status_code=response.status_code,
                latency_ms=latency_ms,
            )
        return response.status_code

    def close(self) -> None:
        """Close the underlying httpx client and release connections."""
        self._client.close()

    def __enter__(self) -> RegistryHTTPClient:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()
