"""Sequencing of protocol runs into a single comparison test."""

import logging
import time
import uuid
from datetime import datetime
from typing import Any, Callable, Dict, List, Mapping, Optional

from ..config import Settings
from ..drivers import TransportDriver, create_driver
from .comparison import compare
from .controller import ConcurrencyController
from .errors import BenchmarkError
from .metrics import aggregate, error_result
from .models import (
    PROTOCOL_ORDER,
    Protocol,
    ProtocolResult,
    RequestSpec,
    TestConfiguration,
    TestRecord,
    TestStatus,
)
from .payload import PayloadGenerator, format_bytes
from .registry import TestRegistry

DriverFactory = Callable[[], TransportDriver]


class Orchestrator:
    """
    Runs protocol comparison tests and keeps their records.

    Protocols of a test run strictly one after another, each with a fresh
    driver, so one protocol's load never overlaps another's measurements.
    A protocol that fails to run is reported as an error entry and does not
    stop the others.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        registry: Optional[TestRegistry] = None,
        driver_factories: Optional[Mapping[Protocol, DriverFactory]] = None,
        controller: Optional[ConcurrencyController] = None,
        payload_generator: Optional[PayloadGenerator] = None,
    ):
        """
        Args:
            settings: Connection settings, read from the environment if omitted
            registry: Test registry, a fresh one if omitted
            driver_factories: Per-protocol driver constructors, overriding Settings
            controller: Concurrency controller
            payload_generator: Payload generator
        """
        self.settings = settings or Settings.from_env()
        self.registry = registry if registry is not None else TestRegistry()
        self.controller = controller or ConcurrencyController()
        self.payload_generator = payload_generator or PayloadGenerator()
        self.logger = logging.getLogger(__name__)

        self._driver_factories: Dict[Protocol, DriverFactory] = {
            protocol: (lambda p=protocol: create_driver(p, self.settings))
            for protocol in PROTOCOL_ORDER
        }
        if driver_factories:
            self._driver_factories.update(driver_factories)

    async def run_comparison(self, config: TestConfiguration) -> TestRecord:
        """
        Run every requested protocol and compare the results.

        Args:
            config: Test configuration

        Returns:
            Snapshot of the finished TestRecord
        """
        test_id = str(uuid.uuid4())
        test_name = config.test_name or f"Performance Test {datetime.now().isoformat()}"
        record = TestRecord(
            test_id=test_id,
            test_name=test_name,
            config=config,
            start_time=datetime.now(),
        )
        self.registry.register(record)

        protocols = [p for p in PROTOCOL_ORDER if p in config.protocols]
        self.logger.info(
            f"Starting performance comparison test {test_id} ({test_name}): "
            f"{config.num_requests} requests, concurrency {config.concurrency}, "
            f"request {format_bytes(config.request_size)}, "
            f"response {format_bytes(config.response_size)}, "
            f"protocols {[p.value for p in protocols]}"
        )

        if not protocols or config.num_requests <= 0:
            self.logger.info(f"Test {test_id} has nothing to run")
            return self.registry.finish(test_id, TestStatus.COMPLETED, comparison=compare({}))

        try:
            results: Dict[str, ProtocolResult] = {}
            for protocol in protocols:
                result = await self._run_protocol_safely(protocol, config)
                results[protocol.value] = result
                self.registry.record_result(test_id, result)

            comparison = compare(results)
        except Exception as e:
            self.logger.error(f"Performance comparison test {test_id} failed: {e}")
            self.registry.finish(test_id, TestStatus.FAILED, error=str(e))
            raise

        finished = self.registry.finish(test_id, TestStatus.COMPLETED, comparison=comparison)
        self.logger.info(f"Performance comparison test {test_id} {finished.status.value}")
        return finished

    async def _run_protocol_safely(self, protocol: Protocol, config: TestConfiguration) -> ProtocolResult:
        try:
            return await self._run_protocol(protocol, config)
        except BenchmarkError as e:
            self.logger.warning(f"{protocol.value} performance test failed: {e}")
            return error_result(protocol.value, config, str(e))
        except Exception as e:
            self.logger.exception(f"{protocol.value} performance test failed unexpectedly")
            return error_result(protocol.value, config, str(e) or e.__class__.__name__)

    async def _run_protocol(self, protocol: Protocol, config: TestConfiguration) -> ProtocolResult:
        driver = self._driver_factories[protocol]()
        streaming = config.use_streaming and driver.supports_streaming
        mode = "stream" if streaming else "unary"

        # One payload per protocol run, shared by every request
        payload = self.payload_generator.generate(
            config.request_size, config.payload_mode or driver.default_payload_mode
        )

        def request_factory(index: int) -> RequestSpec:
            return RequestSpec(
                request_id=f"{protocol.value}-request-{index}",
                index=index,
                payload=payload,
                response_size=config.response_size,
            )

        self.logger.info(
            f"Starting {protocol.value} performance test: {config.num_requests} requests, "
            f"concurrency: {config.concurrency}, mode: {mode}"
        )

        async with driver:
            started = time.perf_counter()
            if streaming:
                outcomes = await self.controller.run_stream(
                    config.num_requests, config.concurrency, request_factory, driver
                )
            else:
                outcomes = await self.controller.run(
                    config.num_requests, config.concurrency, request_factory, driver
                )
            duration_ms = (time.perf_counter() - started) * 1000

        result = aggregate(
            outcomes,
            duration_ms,
            config.num_requests,
            protocol=protocol.value,
            mode=mode,
            request_size_bytes=len(payload),
        )
        self.logger.info(
            f"{protocol.value} performance test summary: "
            f"{result.successful_requests}/{result.total_requests} succeeded in "
            f"{result.total_duration_ms:.0f}ms, avg latency {result.average_latency_ms:.2f}ms, "
            f"throughput {result.throughput_rps:.2f} req/sec"
        )
        return result

    def get_test_status(self, test_id: str) -> TestRecord:
        """Snapshot of a test record. Raises TestNotFoundError."""
        return self.registry.get(test_id)

    def list_tests(self) -> List[Dict[str, Any]]:
        """Lightweight summaries of every test, newest first."""
        return [record.to_summary_dict() for record in self.registry.list()]

    async def health_check(self) -> Dict[str, Any]:
        """
        Probe both transports.

        HTTP being unhealthy degrades the overall status; gRPC alone being
        down does not, since HTTP-only comparisons still work.
        """
        checks: Dict[str, Any] = {}
        for protocol in PROTOCOL_ORDER:
            driver = self._driver_factories[protocol]()
            try:
                async with driver:
                    checks[protocol.value] = await driver.health_check()
            except BenchmarkError as e:
                checks[protocol.value] = {"status": "unhealthy", "error": str(e)}

        http_healthy = checks[Protocol.HTTP.value].get("status") == "healthy"
        checks["overall"] = "healthy" if http_healthy else "degraded"
        return checks

    def shutdown(self) -> List[str]:
        """Mark running tests as interrupted. Returns the affected test ids."""
        self.logger.info("Shutting down orchestrator")
        interrupted = self.registry.interrupt_running()
        for test_id in interrupted:
            self.logger.warning(f"Test {test_id} interrupted")
        self.logger.info("Orchestrator shutdown complete")
        return interrupted
