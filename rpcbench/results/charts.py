"""Chart generation for protocol comparisons."""

import matplotlib.pyplot as plt
from datetime import datetime
from typing import Optional

from ..core.models import TestRecord

PROTOCOL_COLORS = {"grpc": "tab:blue", "http": "tab:orange"}


def generate_comparison_chart(
    record: TestRecord,
    output_path: Optional[str] = None,
    show: bool = False,
) -> Optional[str]:
    """
    Generate side-by-side charts for one comparison test.

    Args:
        record: Finished test record
        output_path: Path to save the chart (auto-generated if None)
        show: Whether to display the chart

    Returns:
        Path to saved chart file, or None if there was nothing to plot
    """
    results = [r for r in record.results.values() if r.error is None]
    if not results:
        print("No results to chart.")
        return None

    labels = [f"{r.protocol}\n({r.mode})" for r in results]
    colors = [PROTOCOL_COLORS.get(r.protocol, "tab:gray") for r in results]

    fig, (ax1, ax2, ax3) = plt.subplots(1, 3, figsize=(16, 5))
    fig.suptitle(f"Protocol Comparison: {record.test_name}", fontsize=14, fontweight="bold")

    # Throughput chart
    ax1.bar(labels, [r.throughput_rps for r in results], color=colors)
    ax1.set_ylabel("Throughput (requests/second)")
    ax1.set_title("Throughput")
    ax1.grid(True, axis="y", alpha=0.3)

    # Latency chart with min/max range
    averages = [r.average_latency_ms for r in results]
    lower = [r.average_latency_ms - r.min_latency_ms for r in results]
    upper = [r.max_latency_ms - r.average_latency_ms for r in results]
    ax2.bar(labels, averages, color=colors, yerr=[lower, upper], capsize=6)
    ax2.set_ylabel("Latency (ms)")
    ax2.set_title("Average Latency (min-max range)")
    ax2.grid(True, axis="y", alpha=0.3)

    # Success rate chart
    ax3.bar(labels, [r.success_rate for r in results], color=colors)
    ax3.set_ylabel("Success Rate (%)")
    ax3.set_ylim(0, 105)
    ax3.set_title("Success Rate")
    ax3.grid(True, axis="y", alpha=0.3)

    plt.tight_layout()

    if output_path:
        saved_path = output_path
    else:
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        saved_path = f"protocol_comparison_{timestamp}.png"

    plt.savefig(saved_path, dpi=150, bbox_inches="tight")
    print(f"\nChart saved as: {saved_path}")

    if show:
        plt.show()
    plt.close(fig)

    return saved_path
