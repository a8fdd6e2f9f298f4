"""Result aggregation and reporting."""

import json
from typing import List, Optional

import pandas as pd

from ..core.models import ComparisonMetrics, TestRecord


def _format_optional(value: Optional[float], suffix: str = "") -> str:
    if value is None:
        return "n/a"
    return f"{value:.2f}{suffix}"


class ResultAggregator:
    """Aggregates and formats test records for export."""

    def __init__(self):
        self.records: List[TestRecord] = []

    def add_record(self, record: TestRecord) -> None:
        """Add a single test record."""
        self.records.append(record)

    def add_records(self, records: List[TestRecord]) -> None:
        """Add multiple test records."""
        self.records.extend(records)

    def to_dataframe(self) -> pd.DataFrame:
        """One row per protocol per test."""
        data = []
        for record in self.records:
            for result in record.results.values():
                data.append({
                    "Test": record.test_name,
                    "Protocol": result.protocol,
                    "Mode": result.mode,
                    "Total": result.total_requests,
                    "Success": result.successful_requests,
                    "Failed": result.failed_requests,
                    "Success%": f"{result.success_rate:.2f}",
                    "Avg_ms": f"{result.average_latency_ms:.2f}",
                    "Min_ms": f"{result.min_latency_ms:.2f}",
                    "Max_ms": f"{result.max_latency_ms:.2f}",
                    "Server_ms": f"{result.average_server_processing_ms:.2f}",
                    "RPS": f"{result.throughput_rps:.2f}",
                    "Duration_ms": f"{result.total_duration_ms:.0f}",
                    "Error": result.error or "",
                })
        return pd.DataFrame(data)

    def to_tsv(self, path: str) -> None:
        """Export to TSV file."""
        df = self.to_dataframe()
        df.to_csv(path, sep="\t", index=False)

    def to_json(self, path: str) -> None:
        """Export full records (scalar metrics only) as JSON."""
        with open(path, "w") as f:
            json.dump([r.to_dict() for r in self.records], f, indent=2)

    def print_comparison(self, comparison: Optional[ComparisonMetrics]) -> None:
        """Print relative throughput and latency against the baseline."""
        if comparison is None or not comparison.throughput_comparison:
            print("\nNo comparison available.")
            return

        print(f"\nCOMPARISON")
        print("-" * 30)
        for name, tp in comparison.throughput_comparison.items():
            lat = comparison.latency_comparison[name]
            print(f"{name} vs {tp.relative_to}:")
            print(
                f"  Throughput:        {tp.value:.2f} req/s "
                f"(ratio {_format_optional(tp.ratio)}, {_format_optional(tp.improvement_percent, '%')})"
            )
            print(
                f"  Latency:           {lat.value:.2f} ms "
                f"(ratio {_format_optional(lat.ratio)}, {_format_optional(lat.improvement_percent, '%')} better)"
            )

        summary = comparison.summary
        print(f"\nFastest Protocol:    {summary.fastest_protocol} ({summary.max_throughput:.2f} req/s)")
        print(f"Lowest Latency:      {summary.lowest_latency_protocol} ({summary.min_latency:.2f} ms)")

    def print_detailed_record(self, record: TestRecord) -> None:
        """Print one test record in full."""
        config = record.config
        print()
        print("=" * 60)
        print("PROTOCOL COMPARISON RESULTS")
        print("=" * 60)

        print(f"\nTEST CONFIGURATION")
        print("-" * 30)
        print(f"Test:                {record.test_name}")
        print(f"Test ID:             {record.test_id}")
        print(f"Status:              {record.status.value}")
        if record.duration_seconds is not None:
            print(f"Elapsed:             {record.duration_seconds:.3f}s")
        print(f"Requests:            {config.num_requests}")
        print(f"Concurrency:         {config.concurrency}")
        print(f"Request Size:        {config.request_size} bytes")
        print(f"Response Size:       {config.response_size} bytes")
        print(f"Streaming:           {config.use_streaming}")

        for result in record.results.values():
            print(f"\n{result.protocol.upper()} ({result.mode})")
            print("-" * 30)
            if result.error:
                print(f"Error:               {result.error}")
                continue
            print(f"Successful:          {result.successful_requests}/{result.total_requests}")
            print(f"Failed:              {result.failed_requests}")
            print(f"Average Latency:     {result.average_latency_ms:.2f} ms")
            print(f"Min/Max Latency:     {result.min_latency_ms:.2f} / {result.max_latency_ms:.2f} ms")
            print(f"Server Processing:   {result.average_server_processing_ms:.2f} ms")
            print(f"Throughput:          {result.throughput_rps:.2f} req/s")
            print(f"Duration:            {result.total_duration_ms / 1000:.3f}s")

        self.print_comparison(record.comparison)

        if record.error:
            print(f"\nError: {record.error}")
        print("=" * 60)
