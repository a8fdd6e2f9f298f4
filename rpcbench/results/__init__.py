"""Result reporting."""

from .aggregator import ResultAggregator
from .charts import generate_comparison_chart

__all__ = ["ResultAggregator", "generate_comparison_chart"]
