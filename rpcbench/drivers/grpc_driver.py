"""gRPC driver built on grpc.aio."""

import asyncio
import time
from typing import Any, Dict, List, Optional, Sequence

import grpc

from ..config import GRPC_CHANNEL_OPTIONS, Settings
from ..core.errors import DriverInitializationError
from ..core.models import PayloadMode, RequestOutcome, RequestSpec
from . import messages
from .base import (
    TransportDriver,
    request_metadata,
    request_timeout_seconds,
    stream_timeout_seconds,
)


def _rpc_error_message(error: grpc.aio.AioRpcError) -> str:
    return f"{error.code().name}: {error.details()}"


class GrpcDriver(TransportDriver):
    """
    Drives the echo service over one long-lived gRPC channel.

    Every concurrent call is multiplexed over the same HTTP/2 connection.
    """

    protocol = "grpc"
    default_payload_mode = PayloadMode.STRUCTURED
    supports_streaming = True

    def __init__(
        self,
        target: str,
        connect_timeout_seconds: float = 10.0,
        compression: bool = True,
        options: Optional[Dict[str, Any]] = None,
    ):
        """
        Args:
            target: host:port of the gRPC echo service
            connect_timeout_seconds: How long connect() waits for the channel
            compression: Use gzip for messages
            options: Channel options, defaults to GRPC_CHANNEL_OPTIONS
        """
        super().__init__()
        self.target = target
        self.connect_timeout_seconds = connect_timeout_seconds
        self.compression = compression
        self.options = dict(GRPC_CHANNEL_OPTIONS if options is None else options)
        self._channel: Optional[grpc.aio.Channel] = None
        self._process_data = None
        self._process_data_stream = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "GrpcDriver":
        return cls(
            target=settings.grpc_target,
            connect_timeout_seconds=settings.grpc_connect_timeout_seconds,
            compression=settings.grpc_compression,
        )

    async def connect(self) -> None:
        if self._channel is not None:
            return

        channel = grpc.aio.insecure_channel(
            self.target,
            options=list(self.options.items()),
            compression=grpc.Compression.Gzip if self.compression else None,
        )
        try:
            await asyncio.wait_for(channel.channel_ready(), timeout=self.connect_timeout_seconds)
        except asyncio.TimeoutError:
            await channel.close()
            raise DriverInitializationError(
                self.protocol,
                f"no connection to {self.target} within {self.connect_timeout_seconds:g}s",
            )
        except Exception as e:
            await channel.close()
            raise DriverInitializationError(self.protocol, str(e)) from e

        self._channel = channel
        self._process_data = channel.unary_unary(
            messages.PROCESS_DATA_METHOD,
            request_serializer=messages.serialize,
            response_deserializer=messages.parse_response,
        )
        self._process_data_stream = channel.stream_stream(
            messages.PROCESS_DATA_STREAM_METHOD,
            request_serializer=messages.serialize,
            response_deserializer=messages.parse_response,
        )
        self.logger.info(f"gRPC channel ready: {self.target}")

    async def close(self) -> None:
        if self._channel is None:
            return
        await self._channel.close()
        self._channel = None
        self._process_data = None
        self._process_data_stream = None
        self.logger.info("gRPC channel closed")

    def _build_message(self, request: RequestSpec):
        return messages.DataRequest(
            id=request.request_id,
            timestamp=int(time.time() * 1000),
            payload=request.payload,
            metadata=request_metadata(request, self.protocol),
        )

    async def send_one(self, request: RequestSpec) -> RequestOutcome:
        if self._process_data is None:
            return self._failure(request, "driver is not connected")

        message = self._build_message(request)
        timeout = request_timeout_seconds(len(request.payload))

        started = time.perf_counter()
        try:
            response = await self._process_data(message, timeout=timeout)
        except grpc.aio.AioRpcError as e:
            return self._failure(request, _rpc_error_message(e), started)
        except Exception as e:
            return self._failure(request, e, started)
        latency_ms = (time.perf_counter() - started) * 1000

        if response.status_code >= 400:
            return self._failure(request, f"status {response.status_code}: {response.message}", started)

        self.logger.debug(
            f"gRPC {request.request_id} completed in {latency_ms:.2f}ms "
            f"(server: {response.processing_time_ns / 1_000_000:.2f}ms)"
        )
        return RequestOutcome(
            success=True,
            client_latency_ms=latency_ms,
            server_processing_time_ns=response.processing_time_ns,
        )

    async def send_stream(self, requests: Sequence[RequestSpec], window: int) -> List[RequestOutcome]:
        """
        Send every request over one bidirectional stream.

        At most ``window`` requests are unanswered at any time. Per-message
        timing is not available on a stream, so each answered request is
        assigned the stream duration divided by the number of responses.
        Responses with a status code of 400 or above, and requests left
        unanswered when the stream ends or errors, are failures.
        """
        if not requests:
            return []
        if self._process_data_stream is None:
            return [self._failure(r, "driver is not connected") for r in requests]

        total_bytes = sum(len(r.payload) for r in requests)
        call = self._process_data_stream(timeout=stream_timeout_seconds(total_bytes))
        credits = asyncio.Semaphore(max(window, 1))
        write_errors: List[BaseException] = []

        async def write_all() -> None:
            try:
                for request in requests:
                    await credits.acquire()
                    await call.write(self._build_message(request))
                await call.done_writing()
            except grpc.aio.AioRpcError:
                # The read side sees the same status
                pass
            except Exception as e:
                write_errors.append(e)
                call.cancel()

        responses = []
        error: Optional[str] = None

        started = time.perf_counter()
        writer = asyncio.create_task(write_all())
        try:
            while len(responses) < len(requests):
                response = await call.read()
                if response is grpc.aio.EOF:
                    error = f"stream ended after {len(responses)} of {len(requests)} responses"
                    break
                responses.append(response)
                credits.release()
        except grpc.aio.AioRpcError as e:
            error = _rpc_error_message(e)
        except asyncio.CancelledError:
            if not write_errors:
                raise
            error = str(write_errors[0]) or write_errors[0].__class__.__name__
        finally:
            if not writer.done():
                writer.cancel()
            await asyncio.gather(writer, return_exceptions=True)
            if error is not None and not call.done():
                call.cancel()
        duration_ms = (time.perf_counter() - started) * 1000

        received = len(responses)
        self.logger.info(f"gRPC stream completed in {duration_ms:.0f}ms, received {received} responses")
        if error:
            self.logger.warning(f"gRPC stream error: {error}")

        latency_ms = duration_ms / received if received else None
        outcomes = []
        for response in responses:
            if response.status_code >= 400:
                outcomes.append(RequestOutcome(
                    success=False,
                    error_message=f"status {response.status_code}: {response.message}",
                ))
            else:
                outcomes.append(RequestOutcome(
                    success=True,
                    client_latency_ms=latency_ms,
                    server_processing_time_ns=response.processing_time_ns,
                ))
        outcomes.extend(
            RequestOutcome(success=False, error_message=error)
            for _ in range(len(requests) - received)
        )
        return outcomes

    async def health_check(self) -> Dict[str, Any]:
        probe = RequestSpec(request_id="health-check", index=0, payload=b"health")
        outcome = await self.send_one(probe)
        if outcome.success:
            return {"status": "healthy", "response_time_ms": outcome.client_latency_ms}
        return {"status": "unhealthy", "error": outcome.error_message}
