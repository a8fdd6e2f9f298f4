"""In-memory drivers used by the engine tests."""

import asyncio
import time
from typing import Any, Dict, List, Optional, Sequence

from rpcbench.core.errors import DriverInitializationError
from rpcbench.core.models import PayloadMode, RequestOutcome, RequestSpec
from rpcbench.drivers.base import TransportDriver


class FakeDriver(TransportDriver):
    """Driver that sleeps instead of doing I/O and records what it saw."""

    def __init__(
        self,
        protocol: str = "grpc",
        latency_seconds: float = 0.005,
        fail_indices: Sequence[int] = (),
        raise_indices: Sequence[int] = (),
        connect_error: Optional[str] = None,
        supports_streaming: bool = False,
        timeline: Optional[List[tuple]] = None,
    ):
        super().__init__()
        self.protocol = protocol
        self.default_payload_mode = PayloadMode.BINARY
        self.supports_streaming = supports_streaming
        self.latency_seconds = latency_seconds
        self.fail_indices = set(fail_indices)
        self.raise_indices = set(raise_indices)
        self.connect_error = connect_error
        self.timeline = timeline if timeline is not None else []

        self.connected = False
        self.closed = False
        self.in_flight = 0
        self.max_in_flight = 0
        self.requests: List[RequestSpec] = []
        self.stream_calls: List[int] = []

    @classmethod
    def from_settings(cls, settings) -> "FakeDriver":
        return cls()

    async def connect(self) -> None:
        if self.connect_error:
            raise DriverInitializationError(self.protocol, self.connect_error)
        self.connected = True

    async def close(self) -> None:
        self.closed = True

    async def send_one(self, request: RequestSpec) -> RequestOutcome:
        self.requests.append(request)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        self.timeline.append((self.protocol, "start", time.perf_counter()))
        try:
            await asyncio.sleep(self.latency_seconds)
        finally:
            self.in_flight -= 1
            self.timeline.append((self.protocol, "end", time.perf_counter()))

        if request.index in self.raise_indices:
            raise RuntimeError(f"driver bug on {request.request_id}")
        if request.index in self.fail_indices:
            return RequestOutcome(success=False, error_message="connection reset")
        return RequestOutcome(
            success=True,
            client_latency_ms=self.latency_seconds * 1000,
            server_processing_time_ns=1_000_000,
        )

    async def send_stream(self, requests: Sequence[RequestSpec], window: int) -> List[RequestOutcome]:
        self.stream_calls.append(window)
        self.requests.extend(requests)
        await asyncio.sleep(self.latency_seconds)
        latency_ms = self.latency_seconds * 1000 / len(requests)
        return [RequestOutcome(success=True, client_latency_ms=latency_ms) for _ in requests]

    async def health_check(self) -> Dict[str, Any]:
        return {"status": "healthy"}
