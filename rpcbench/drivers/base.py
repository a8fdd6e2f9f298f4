"""Common interface for protocol drivers."""

import abc
import logging
import time
from typing import Any, Dict, List, Optional, Sequence

from ..core.models import PayloadMode, RequestOutcome, RequestSpec

# Per-request timeout floor and per-byte allowance
MIN_REQUEST_TIMEOUT_MS = 120_000
MIN_STREAM_TIMEOUT_MS = 300_000
TIMEOUT_MS_PER_BYTE = 0.01


def request_timeout_seconds(payload_bytes: int) -> float:
    """Timeout for one request: at least 2 minutes, or 0.01ms per payload byte."""
    return max(MIN_REQUEST_TIMEOUT_MS, payload_bytes * TIMEOUT_MS_PER_BYTE) / 1000


def stream_timeout_seconds(total_payload_bytes: int) -> float:
    """Timeout for a whole stream: at least 5 minutes, or 0.01ms per byte sent."""
    return max(MIN_STREAM_TIMEOUT_MS, total_payload_bytes * TIMEOUT_MS_PER_BYTE) / 1000


def request_metadata(request: RequestSpec, protocol: str) -> Dict[str, str]:
    """Metadata map sent with every request to the echo service."""
    return {
        "requestIndex": str(request.index),
        "expectedResponseSize": str(request.response_size),
        "requestSize": str(len(request.payload)),
        "testType": "performance",
        "protocol": protocol,
    }


class TransportDriver(abc.ABC):
    """
    Issues requests over one protocol and normalizes the results.

    A single driver instance serves every in-flight request of a run, so
    implementations must be safe for concurrent ``send_one`` calls.
    ``send_one`` reports per-request failures as outcomes; only
    ``connect`` raises.
    """

    protocol: str = ""
    default_payload_mode: PayloadMode = PayloadMode.BINARY
    supports_streaming: bool = False

    def __init__(self):
        self.logger = logging.getLogger(self.__class__.__module__)

    @classmethod
    @abc.abstractmethod
    def from_settings(cls, settings) -> "TransportDriver":
        """Build a driver from runtime Settings."""

    async def __aenter__(self) -> "TransportDriver":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    @abc.abstractmethod
    async def connect(self) -> None:
        """Open the channel or pool. Raises DriverInitializationError."""

    @abc.abstractmethod
    async def close(self) -> None:
        """Release the channel or pool."""

    @abc.abstractmethod
    async def send_one(self, request: RequestSpec) -> RequestOutcome:
        """Send one request and return its outcome."""

    async def send_stream(self, requests: Sequence[RequestSpec], window: int) -> List[RequestOutcome]:
        """Send all requests over one stream. Only streaming drivers implement this."""
        raise NotImplementedError(f"{self.protocol} driver does not support streaming")

    @abc.abstractmethod
    async def health_check(self) -> Dict[str, Any]:
        """Probe the upstream service."""

    def _failure(self, request: RequestSpec, error: Any, started: Optional[float] = None) -> RequestOutcome:
        elapsed = ""
        if started is not None:
            elapsed = f" after {(time.perf_counter() - started) * 1000:.0f}ms"
        message = str(error) or error.__class__.__name__
        self.logger.warning(f"{self.protocol} request {request.request_id} failed{elapsed}: {message[:200]}")
        return RequestOutcome(success=False, error_message=message)
