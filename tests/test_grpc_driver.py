"""gRPC driver tests against an in-process grpc.aio echo service."""

import asyncio
import time

import grpc
import pytest

from rpcbench.core.errors import DriverInitializationError
from rpcbench.core.models import RequestSpec
from rpcbench.drivers import messages
from rpcbench.drivers.grpc_driver import GrpcDriver


def _response(request, started: float):
    size = int(request.metadata.get("expectedResponseSize", "0"))
    return messages.DataResponse(
        id=request.id,
        timestamp=int(time.time() * 1000),
        payload=b"r" * size,
        status_code=200,
        message="ok",
        processing_time_ns=time.perf_counter_ns() - started,
    )


class EchoService:
    """Configurable stand-in for the gRPC echo service."""

    def __init__(
        self,
        unary_status: int = 200,
        stream_status: int = 200,
        abort_unary: bool = False,
        abort_stream_after: int = None,
    ):
        self.unary_status = unary_status
        self.stream_status = stream_status
        self.abort_unary = abort_unary
        self.abort_stream_after = abort_stream_after
        self.received = []
        self.max_unanswered = 0

    async def process_data(self, request, context):
        started = time.perf_counter_ns()
        self.received.append(request)
        if self.abort_unary:
            await context.abort(grpc.StatusCode.RESOURCE_EXHAUSTED, "payload too large")
        response = _response(request, started)
        response.status_code = self.unary_status
        return response

    async def process_data_stream(self, request_iterator, context):
        sent = 0
        async for request in request_iterator:
            started = time.perf_counter_ns()
            self.received.append(request)
            self.max_unanswered = max(self.max_unanswered, len(self.received) - sent)
            if self.abort_stream_after is not None and sent == self.abort_stream_after:
                await context.abort(grpc.StatusCode.INTERNAL, "stream exploded")
            response = _response(request, started)
            response.status_code = self.stream_status
            response.message = "ok" if self.stream_status < 400 else "upstream error"
            yield response
            sent += 1

    def handler(self):
        return grpc.method_handlers_generic_handler(
            messages.SERVICE_NAME,
            {
                "ProcessData": grpc.unary_unary_rpc_method_handler(
                    self.process_data,
                    request_deserializer=messages.parse_request,
                    response_serializer=messages.serialize,
                ),
                "ProcessDataStream": grpc.stream_stream_rpc_method_handler(
                    self.process_data_stream,
                    request_deserializer=messages.parse_request,
                    response_serializer=messages.serialize,
                ),
            },
        )


def _with_server(service: EchoService, scenario):
    async def run():
        server = grpc.aio.server()
        server.add_generic_rpc_handlers((service.handler(),))
        port = server.add_insecure_port("127.0.0.1:0")
        await server.start()
        try:
            async with GrpcDriver(f"127.0.0.1:{port}", connect_timeout_seconds=5) as driver:
                return await scenario(driver)
        finally:
            await server.stop(None)

    return asyncio.run(run())


def _requests(count: int, payload: bytes = b"payload", response_size: int = 16):
    return [
        RequestSpec(request_id=f"grpc-request-{i}", index=i, payload=payload, response_size=response_size)
        for i in range(count)
    ]


# -----------------------------------------------------------------------
# Messages
# -----------------------------------------------------------------------


class TestMessages:
    def test_request_roundtrip_keeps_metadata(self) -> None:
        request = messages.DataRequest(id="a", timestamp=5, payload=b"\x00\x01", metadata={"k": "v"})
        parsed = messages.parse_request(messages.serialize(request))
        assert parsed.id == "a"
        assert parsed.payload == b"\x00\x01"
        assert dict(parsed.metadata) == {"k": "v"}

    def test_response_defaults(self) -> None:
        response = messages.parse_response(b"")
        assert response.status_code == 0
        assert response.processing_time_ns == 0


# -----------------------------------------------------------------------
# Unary
# -----------------------------------------------------------------------


class TestGrpcUnary:
    def test_success(self) -> None:
        service = EchoService()
        (request,) = _requests(1)
        outcome = _with_server(service, lambda driver: driver.send_one(request))

        assert outcome.success
        assert outcome.client_latency_ms > 0
        assert outcome.server_processing_time_ns > 0

        (received,) = service.received
        assert received.id == "grpc-request-0"
        assert received.payload == b"payload"
        assert received.metadata["protocol"] == "grpc"
        assert received.metadata["expectedResponseSize"] == "16"
        assert received.metadata["requestSize"] == "7"

    def test_rpc_error_is_a_failure(self) -> None:
        (request,) = _requests(1)
        outcome = _with_server(EchoService(abort_unary=True), lambda driver: driver.send_one(request))
        assert not outcome.success
        assert outcome.error_message == "RESOURCE_EXHAUSTED: payload too large"

    def test_error_status_code_is_a_failure(self) -> None:
        (request,) = _requests(1)
        outcome = _with_server(EchoService(unary_status=500), lambda driver: driver.send_one(request))
        assert not outcome.success
        assert outcome.error_message.startswith("status 500")

    def test_concurrent_calls_share_the_channel(self) -> None:
        service = EchoService()

        async def scenario(driver):
            return await asyncio.gather(*(driver.send_one(r) for r in _requests(12)))

        outcomes = _with_server(service, scenario)
        assert all(o.success for o in outcomes)
        assert len(service.received) == 12

    def test_health_check(self) -> None:
        health = _with_server(EchoService(), lambda driver: driver.health_check())
        assert health["status"] == "healthy"

    def test_unreachable_target_fails_to_connect(self) -> None:
        async def run():
            async with GrpcDriver("127.0.0.1:1", connect_timeout_seconds=0.5):
                pass

        with pytest.raises(DriverInitializationError, match="grpc driver failed to initialize"):
            asyncio.run(run())


# -----------------------------------------------------------------------
# Streaming
# -----------------------------------------------------------------------


class TestGrpcStream:
    def test_every_request_answered(self) -> None:
        service = EchoService()
        requests = _requests(20)
        outcomes = _with_server(service, lambda driver: driver.send_stream(requests, 4))

        assert len(outcomes) == 20
        assert all(o.success for o in outcomes)
        assert len({o.client_latency_ms for o in outcomes}) == 1
        assert [r.id for r in service.received] == [r.request_id for r in requests]

    def test_window_bounds_unanswered_messages(self) -> None:
        service = EchoService()
        _with_server(service, lambda driver: driver.send_stream(_requests(30), 3))
        assert service.max_unanswered <= 3

    def test_abort_fails_the_remaining_requests(self) -> None:
        service = EchoService(abort_stream_after=3)
        outcomes = _with_server(service, lambda driver: driver.send_stream(_requests(20), 4))

        assert len(outcomes) == 20
        assert sum(o.success for o in outcomes) == 3
        failures = [o for o in outcomes if not o.success]
        assert len(failures) == 17
        assert failures[0].error_message == "INTERNAL: stream exploded"

    def test_error_status_responses_are_failures(self) -> None:
        service = EchoService(stream_status=500)
        outcomes = _with_server(service, lambda driver: driver.send_stream(_requests(5), 2))

        assert len(outcomes) == 5
        assert sum(o.success for o in outcomes) == 0
        assert all(o.client_latency_ms is None for o in outcomes)
        assert outcomes[0].error_message == "status 500: upstream error"

    def test_stream_and_unary_agree_on_error_status(self) -> None:
        service = EchoService(unary_status=500, stream_status=500)

        async def scenario(driver):
            (request,) = _requests(1)
            unary = await driver.send_one(request)
            streamed = await driver.send_stream(_requests(3), 3)
            return unary, streamed

        unary, streamed = _with_server(service, scenario)
        assert not unary.success
        assert not any(o.success for o in streamed)

    def test_empty_stream(self) -> None:
        assert _with_server(EchoService(), lambda driver: driver.send_stream([], 4)) == []
