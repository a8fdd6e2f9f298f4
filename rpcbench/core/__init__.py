"""Core benchmarking components."""

from .comparison import compare
from .controller import ConcurrencyController
from .errors import BenchmarkError, DriverInitializationError, TestNotFoundError
from .metrics import aggregate
from .models import (
    ComparisonMetrics,
    PayloadMode,
    Protocol,
    ProtocolResult,
    RequestOutcome,
    RequestSpec,
    TestConfiguration,
    TestRecord,
    TestStatus,
)
from .payload import PayloadGenerator
from .registry import TestRegistry

__all__ = [
    "BenchmarkError",
    "ComparisonMetrics",
    "ConcurrencyController",
    "DriverInitializationError",
    "PayloadGenerator",
    "PayloadMode",
    "Protocol",
    "ProtocolResult",
    "RequestOutcome",
    "RequestSpec",
    "TestConfiguration",
    "TestNotFoundError",
    "TestRecord",
    "TestRegistry",
    "TestStatus",
    "aggregate",
    "compare",
]
