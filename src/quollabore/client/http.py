"""Async transport for the ingestion endpoint."""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, Mapping, Optional, Protocol

import httpx
from opentelemetry import trace
from opentelemetry.trace import SpanKind, Status, StatusCode

from quollabore.errors import map_httpx_error
from quollabore.telemetry.metrics import ingest_events_total, ingest_latency_ms

logger = logging.getLogger(__name__)
_tracer = trace.get_tracer("quollabore.client.http")


class EventSender(Protocol):
    async def send(self, payload: Mapping[str, Any]) -> Dict[str, Any]: ...


def _parse_body(response: httpx.Response) -> Dict[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}
    if not isinstance(body, dict):
        return {}
    return body


class IngestClient:
    """
    Performs one authenticated JSON POST per event against the ingestion endpoint.

    The client holds no reporter state. Non-2xx responses and network failures
    raise :class:`TransportError`; a 2xx response whose body is not a JSON
    object yields ``{}`` so callers treat every response field as optional.
    """

    def __init__(
        self,
        portal_url: str,
        token: str,
        *,
        client: Optional[httpx.AsyncClient] = None,
        timeout_s: float = 10.0,
    ) -> None:
        self.portal_url = portal_url
        self._token = token
        self._owns_client = client is None
        self.http = client or httpx.AsyncClient(timeout=timeout_s)

    @classmethod
    def from_settings(cls, settings, *, client: Optional[httpx.AsyncClient] = None) -> "IngestClient":
        return cls(settings.portal_url, settings.token, client=client, timeout_s=settings.timeout_s)

    def _headers(self) -> Dict[str, str]:
        return {
            "content-type": "application/json",
            "authorization": f"Bearer {self._token}",
        }

    async def send(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        operation = str(payload.get("type", "unknown"))
        start = time.perf_counter()
        outcome = "error"
        with _tracer.start_as_current_span("ingest.send", kind=SpanKind.CLIENT) as span:
            span.set_attribute("ingest.event_type", operation)
            try:
                try:
                    response = await self.http.post(
                        self.portal_url,
                        json=dict(payload),
                        headers=self._headers(),
                    )
                    span.set_attribute("http.status_code", response.status_code)
                    response.raise_for_status()
                except httpx.HTTPError as exc:
                    error = map_httpx_error(operation, exc)
                    span.record_exception(exc)
                    reason = "network_error" if error.status is None else f"http_{error.status}"
                    span.set_status(Status(StatusCode.ERROR, reason))
                    raise error from exc
                outcome = "ok"
                logger.debug("ingest.send %s -> %s", operation, response.status_code)
                return _parse_body(response)
            finally:
                latency_ms = round((time.perf_counter() - start) * 1000.0, 3)
                ingest_latency_ms.record(latency_ms, {"type": operation})
                ingest_events_total.add(1, {"type": operation, "outcome": outcome})

    async def aclose(self) -> None:
        """Close the underlying AsyncClient if this instance created it."""
        if self._owns_client:
            await self.http.aclose()

    async def __aenter__(self) -> "IngestClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()


async def send(
    portal_url: str,
    token: str,
    payload: Mapping[str, Any],
    *,
    client: Optional[httpx.AsyncClient] = None,
) -> Dict[str, Any]:
    """Send a single event with a short-lived :class:`IngestClient`."""

    async with IngestClient(portal_url, token, client=client) as ingest:
        return await ingest.send(payload)


__all__ = ["EventSender", "IngestClient", "send"]
