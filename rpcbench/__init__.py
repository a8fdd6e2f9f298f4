"""gRPC vs HTTP performance comparison toolkit."""

from .config import Settings
from .core.models import Protocol, TestConfiguration, TestRecord, TestStatus
from .core.orchestrator import Orchestrator

__version__ = "1.0.0"

__all__ = [
    "Orchestrator",
    "Protocol",
    "Settings",
    "TestConfiguration",
    "TestRecord",
    "TestStatus",
]
