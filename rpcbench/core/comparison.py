"""Relative throughput and latency comparison between protocols."""

import logging
from typing import Dict, Mapping, Optional, Tuple

from .models import (
    ComparisonMetrics,
    ComparisonSummary,
    Protocol,
    ProtocolComparison,
    ProtocolResult,
)

logger = logging.getLogger(__name__)

# gRPC is the reference point whenever it was measured
BASELINE_PROTOCOL = Protocol.GRPC.value


def _relative(value: float, baseline: float, lower_is_better: bool = False) -> Tuple[Optional[float], Optional[float]]:
    """Return (ratio, improvement_percent), or (None, None) for a zero baseline."""
    if baseline == 0:
        return None, None
    ratio = value / baseline
    if lower_is_better:
        improvement = (baseline - value) / baseline * 100
    else:
        improvement = (value - baseline) / baseline * 100
    return ratio, improvement


def select_baseline(results: Mapping[str, ProtocolResult]) -> ProtocolResult:
    """gRPC result if present, else the first result in insertion order."""
    if BASELINE_PROTOCOL in results:
        return results[BASELINE_PROTOCOL]
    return next(iter(results.values()))


def compare(results: Mapping[str, ProtocolResult]) -> ComparisonMetrics:
    """
    Compare protocol results against a baseline.

    Results carrying an error, and results without a single successful
    request, are not compared. An empty mapping yields empty comparison
    maps and an empty summary.

    Args:
        results: Protocol name to ProtocolResult, in run order

    Returns:
        ComparisonMetrics
    """
    comparable = {
        name: r for name, r in results.items()
        if r.error is None and r.successful_requests > 0
    }
    if not comparable:
        return ComparisonMetrics()

    baseline = select_baseline(comparable)
    throughput: Dict[str, ProtocolComparison] = {}
    latency: Dict[str, ProtocolComparison] = {}

    for name, result in comparable.items():
        ratio, improvement = _relative(result.throughput_rps, baseline.throughput_rps)
        throughput[name] = ProtocolComparison(
            value=result.throughput_rps,
            relative_to=baseline.protocol,
            ratio=ratio,
            improvement_percent=improvement,
        )

        ratio, improvement = _relative(
            result.average_latency_ms, baseline.average_latency_ms, lower_is_better=True
        )
        latency[name] = ProtocolComparison(
            value=result.average_latency_ms,
            relative_to=baseline.protocol,
            ratio=ratio,
            improvement_percent=improvement,
        )

    # Strict comparisons keep the first-encountered protocol on ties
    fastest = None
    lowest = None
    for result in comparable.values():
        if fastest is None or result.throughput_rps > fastest.throughput_rps:
            fastest = result
        if lowest is None or result.average_latency_ms < lowest.average_latency_ms:
            lowest = result

    summary = ComparisonSummary(
        fastest_protocol=fastest.protocol,
        lowest_latency_protocol=lowest.protocol,
        max_throughput=fastest.throughput_rps,
        min_latency=lowest.average_latency_ms,
    )
    logger.debug(
        f"Comparison baseline={baseline.protocol} fastest={summary.fastest_protocol} "
        f"lowest_latency={summary.lowest_latency_protocol}"
    )

    return ComparisonMetrics(
        throughput_comparison=throughput,
        latency_comparison=latency,
        summary=summary,
    )
