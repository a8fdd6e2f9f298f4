"""Unit tests for the comparison engine."""

import math

from rpcbench.core.comparison import compare, select_baseline
from rpcbench.core.models import ProtocolResult


def _result(protocol: str, throughput: float, latency: float, error: str = None) -> ProtocolResult:
    return ProtocolResult(
        protocol=protocol,
        total_requests=10,
        successful_requests=10 if error is None else 0,
        failed_requests=0 if error is None else 10,
        average_latency_ms=latency,
        throughput_rps=throughput,
        error=error,
    )


# -----------------------------------------------------------------------
# Baseline selection
# -----------------------------------------------------------------------


class TestBaseline:
    """gRPC is preferred as the baseline; this is a reporting choice."""

    def test_grpc_preferred_even_when_not_first(self) -> None:
        results = {"http": _result("http", 50, 10), "grpc": _result("grpc", 100, 5)}
        assert select_baseline(results).protocol == "grpc"
        metrics = compare(results)
        assert metrics.throughput_comparison["http"].relative_to == "grpc"

    def test_first_entry_without_grpc(self) -> None:
        results = {"http": _result("http", 50, 10), "other": _result("other", 25, 20)}
        metrics = compare(results)
        assert metrics.throughput_comparison["other"].relative_to == "http"


# -----------------------------------------------------------------------
# Ratios
# -----------------------------------------------------------------------


class TestRatios:
    def test_equal_throughput_is_neutral(self) -> None:
        metrics = compare({"grpc": _result("grpc", 80, 12), "http": _result("http", 80, 12)})
        tp = metrics.throughput_comparison["http"]
        assert math.isclose(tp.ratio, 1.0)
        assert math.isclose(tp.improvement_percent, 0.0, abs_tol=1e-9)

    def test_baseline_compares_to_itself(self) -> None:
        metrics = compare({"grpc": _result("grpc", 80, 12)})
        assert metrics.throughput_comparison["grpc"].ratio == 1.0
        assert metrics.latency_comparison["grpc"].improvement_percent == 0.0

    def test_throughput_improvement(self) -> None:
        metrics = compare({"grpc": _result("grpc", 100, 10), "http": _result("http", 50, 20)})
        tp = metrics.throughput_comparison["http"]
        assert tp.value == 50
        assert tp.ratio == 0.5
        assert tp.improvement_percent == -50.0

    def test_latency_improvement_is_inverted(self) -> None:
        metrics = compare({"grpc": _result("grpc", 100, 20), "http": _result("http", 50, 10)})
        lat = metrics.latency_comparison["http"]
        assert lat.ratio == 0.5
        # Lower latency than the baseline is a positive improvement
        assert lat.improvement_percent == 50.0


# -----------------------------------------------------------------------
# Zero baseline guard
# -----------------------------------------------------------------------


class TestZeroBaseline:
    def test_zero_throughput_baseline_yields_none(self) -> None:
        metrics = compare({"grpc": _result("grpc", 0, 0), "http": _result("http", 50, 10)})
        tp = metrics.throughput_comparison["http"]
        lat = metrics.latency_comparison["http"]
        assert tp.ratio is None
        assert tp.improvement_percent is None
        assert lat.ratio is None
        assert lat.improvement_percent is None

    def test_no_nan_or_inf_anywhere(self) -> None:
        metrics = compare({"grpc": _result("grpc", 0, 0), "http": _result("http", 0, 0)})
        data = metrics.to_dict()
        for section in ("throughput_comparison", "latency_comparison"):
            for entry in data[section].values():
                for value in entry.values():
                    if isinstance(value, float):
                        assert math.isfinite(value)


# -----------------------------------------------------------------------
# Summary
# -----------------------------------------------------------------------


class TestSummary:
    def test_fastest_and_lowest_latency(self) -> None:
        metrics = compare({"grpc": _result("grpc", 100, 30), "http": _result("http", 50, 10)})
        assert metrics.summary.fastest_protocol == "grpc"
        assert metrics.summary.max_throughput == 100
        assert metrics.summary.lowest_latency_protocol == "http"
        assert metrics.summary.min_latency == 10

    def test_ties_go_to_first_encountered(self) -> None:
        metrics = compare({"http": _result("http", 70, 15), "other": _result("other", 70, 15)})
        assert metrics.summary.fastest_protocol == "http"
        assert metrics.summary.lowest_latency_protocol == "http"

    def test_empty_results(self) -> None:
        metrics = compare({})
        assert metrics.throughput_comparison == {}
        assert metrics.latency_comparison == {}
        assert metrics.summary.fastest_protocol is None
        assert metrics.summary.lowest_latency_protocol is None
        assert metrics.summary.max_throughput == 0
        assert metrics.summary.min_latency == 0

    def test_error_entries_are_not_compared(self) -> None:
        metrics = compare({
            "grpc": _result("grpc", 0, 0, error="UNAVAILABLE"),
            "http": _result("http", 40, 25),
        })
        assert list(metrics.throughput_comparison) == ["http"]
        assert metrics.throughput_comparison["http"].relative_to == "http"
        assert metrics.summary.fastest_protocol == "http"

    def test_protocol_without_successes_is_not_compared(self) -> None:
        all_failed = ProtocolResult(
            protocol="grpc",
            total_requests=10,
            successful_requests=0,
            failed_requests=10,
            average_latency_ms=0.0,
        )
        metrics = compare({"grpc": all_failed, "http": _result("http", 40, 25)})

        assert list(metrics.latency_comparison) == ["http"]
        assert metrics.latency_comparison["http"].ratio == 1.0
        assert metrics.summary.lowest_latency_protocol == "http"
        assert metrics.summary.min_latency == 25

    def test_all_errors_is_empty_comparison(self) -> None:
        metrics = compare({"grpc": _result("grpc", 0, 0, error="down")})
        assert metrics.summary.fastest_protocol is None
