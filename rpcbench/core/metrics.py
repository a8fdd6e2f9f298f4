"""Reduction of per-request outcomes into protocol results."""

from typing import List, Sequence

from .models import ProtocolResult, RequestOutcome, TestConfiguration


def _mean(values: Sequence[float]) -> float:
    """Arithmetic mean, or 0.0 for an empty sequence."""
    if not values:
        return 0.0
    return sum(values) / len(values)


def aggregate(
    outcomes: Sequence[RequestOutcome],
    wall_clock_duration_ms: float,
    total_requests_attempted: int,
    protocol: str = "",
    mode: str = "unary",
    request_size_bytes: int = 0,
) -> ProtocolResult:
    """
    Reduce request outcomes to a ProtocolResult.

    Args:
        outcomes: Outcomes collected during the run
        wall_clock_duration_ms: Duration of the whole run
        total_requests_attempted: Requests the run was asked to send
        protocol: Protocol name stored on the result
        mode: "unary" or "stream"
        request_size_bytes: Size of each request payload

    Returns:
        ProtocolResult with counts, latency and throughput
    """
    successful = sum(1 for o in outcomes if o.success)
    failed = total_requests_attempted - successful

    latencies: List[float] = [
        o.client_latency_ms for o in outcomes if o.client_latency_ms is not None
    ]
    server_times_ms = [
        o.server_processing_time_ns / 1_000_000
        for o in outcomes
        if o.success and o.server_processing_time_ns is not None
    ]

    if wall_clock_duration_ms > 0:
        throughput = successful / wall_clock_duration_ms * 1000
    else:
        throughput = 0.0

    return ProtocolResult(
        protocol=protocol,
        total_requests=total_requests_attempted,
        successful_requests=successful,
        failed_requests=failed,
        average_latency_ms=_mean(latencies),
        min_latency_ms=min(latencies) if latencies else 0.0,
        max_latency_ms=max(latencies) if latencies else 0.0,
        average_server_processing_ms=_mean(server_times_ms),
        throughput_rps=throughput,
        total_duration_ms=wall_clock_duration_ms,
        mode=mode,
        request_size_bytes=request_size_bytes,
    )


def error_result(protocol: str, config: TestConfiguration, message: str) -> ProtocolResult:
    """Result entry for a protocol whose run could not take place."""
    return ProtocolResult(
        protocol=protocol,
        total_requests=config.num_requests,
        successful_requests=0,
        failed_requests=config.num_requests,
        average_latency_ms=0.0,
        mode="stream" if config.use_streaming and protocol == "grpc" else "unary",
        request_size_bytes=config.request_size,
        error=message,
    )
