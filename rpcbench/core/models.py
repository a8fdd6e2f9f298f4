"""Data models for protocol benchmarking."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional, Tuple, Dict, Any


class Protocol(str, Enum):
    """Transports the engine knows how to drive."""

    GRPC = "grpc"
    HTTP = "http"

    @classmethod
    def parse(cls, value: str) -> "Protocol":
        """Parse a protocol name, accepting a few common aliases."""
        key = value.strip().lower()
        aliases = {"binaryrpc": "grpc", "binary-rpc": "grpc", "rest": "http"}
        return cls(aliases.get(key, key))


# Protocols always run in this order, one after another
PROTOCOL_ORDER: Tuple[Protocol, ...] = (Protocol.GRPC, Protocol.HTTP)


class PayloadMode(str, Enum):
    """How request bodies are filled."""

    BINARY = "binary"
    STRUCTURED = "structured"


class TestStatus(str, Enum):
    """Lifecycle states of a test record."""

    __test__ = False

    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    INTERRUPTED = "interrupted"


@dataclass(frozen=True)
class TestConfiguration:
    """Configuration for a single protocol comparison run."""

    __test__ = False

    num_requests: int = 100
    concurrency: int = 10
    request_size: int = 1024 * 1024
    response_size: int = 10 * 1024 * 1024
    protocols: Tuple[Protocol, ...] = PROTOCOL_ORDER
    use_streaming: bool = False
    test_name: str = ""

    # None lets each driver pick its own default
    payload_mode: Optional[PayloadMode] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "num_requests": self.num_requests,
            "concurrency": self.concurrency,
            "request_size": self.request_size,
            "response_size": self.response_size,
            "protocols": [p.value for p in self.protocols],
            "use_streaming": self.use_streaming,
            "test_name": self.test_name,
            "payload_mode": self.payload_mode.value if self.payload_mode else None,
        }


@dataclass(frozen=True)
class RequestSpec:
    """Parameters for one logical request.

    ``payload`` is shared by every request of a run and must be treated as
    read-only.
    """

    request_id: str
    index: int
    payload: bytes = field(repr=False)
    response_size: int = 0


@dataclass(frozen=True)
class RequestOutcome:
    """Result of a single request, consumed only by the aggregator."""

    success: bool
    client_latency_ms: Optional[float] = None
    server_processing_time_ns: Optional[int] = None
    error_message: Optional[str] = None


@dataclass(frozen=True)
class ProtocolResult:
    """Aggregated metrics for one protocol in one test."""

    protocol: str

    # Request counts
    total_requests: int
    successful_requests: int
    failed_requests: int

    # Latency metrics (milliseconds)
    average_latency_ms: float
    min_latency_ms: float = 0.0
    max_latency_ms: float = 0.0
    average_server_processing_ms: float = 0.0

    # Throughput metrics
    throughput_rps: float = 0.0
    total_duration_ms: float = 0.0

    mode: str = "unary"
    request_size_bytes: int = 0

    # Set when the protocol could not be run at all
    error: Optional[str] = None

    @property
    def success_rate(self) -> float:
        """Percentage of requests that succeeded."""
        if self.total_requests <= 0:
            return 0.0
        return self.successful_requests / self.total_requests * 100

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "protocol": self.protocol,
            "mode": self.mode,
            "total_requests": self.total_requests,
            "successful_requests": self.successful_requests,
            "failed_requests": self.failed_requests,
            "average_latency_ms": self.average_latency_ms,
            "min_latency_ms": self.min_latency_ms,
            "max_latency_ms": self.max_latency_ms,
            "average_server_processing_ms": self.average_server_processing_ms,
            "throughput_rps": self.throughput_rps,
            "total_duration_ms": self.total_duration_ms,
            "request_size_bytes": self.request_size_bytes,
            "error": self.error,
        }


@dataclass(frozen=True)
class ProtocolComparison:
    """One protocol's metric relative to the baseline.

    ``ratio`` and ``improvement_percent`` are None when the baseline value
    is zero.
    """

    value: float
    relative_to: str
    ratio: Optional[float]
    improvement_percent: Optional[float]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "value": self.value,
            "relative_to": self.relative_to,
            "ratio": self.ratio,
            "improvement_percent": self.improvement_percent,
        }


@dataclass(frozen=True)
class ComparisonSummary:
    fastest_protocol: Optional[str] = None
    lowest_latency_protocol: Optional[str] = None
    max_throughput: float = 0.0
    min_latency: float = 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fastest_protocol": self.fastest_protocol,
            "lowest_latency_protocol": self.lowest_latency_protocol,
            "max_throughput": self.max_throughput,
            "min_latency": self.min_latency,
        }


@dataclass(frozen=True)
class ComparisonMetrics:
    """Relative throughput and latency across the protocols of one test."""

    throughput_comparison: Dict[str, ProtocolComparison] = field(default_factory=dict)
    latency_comparison: Dict[str, ProtocolComparison] = field(default_factory=dict)
    summary: ComparisonSummary = field(default_factory=ComparisonSummary)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "throughput_comparison": {
                name: c.to_dict() for name, c in self.throughput_comparison.items()
            },
            "latency_comparison": {
                name: c.to_dict() for name, c in self.latency_comparison.items()
            },
            "summary": self.summary.to_dict(),
        }


@dataclass
class TestRecord:
    """Everything known about one comparison run."""

    __test__ = False

    test_id: str
    test_name: str
    config: TestConfiguration
    start_time: datetime
    end_time: Optional[datetime] = None
    status: TestStatus = TestStatus.RUNNING

    # Keyed by protocol name, in the order protocols finished
    results: Dict[str, ProtocolResult] = field(default_factory=dict)
    comparison: Optional[ComparisonMetrics] = None
    error: Optional[str] = None

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.end_time is None:
            return None
        return (self.end_time - self.start_time).total_seconds()

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "test_id": self.test_id,
            "test_name": self.test_name,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "status": self.status.value,
            "config": self.config.to_dict(),
            "results": {name: r.to_dict() for name, r in self.results.items()},
            "comparison": self.comparison.to_dict() if self.comparison else None,
            "error": self.error,
        }

    def to_summary_dict(self) -> Dict[str, Any]:
        """Lightweight form used when listing tests."""
        return {
            "test_id": self.test_id,
            "test_name": self.test_name,
            "start_time": self.start_time.isoformat(),
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "status": self.status.value,
            "results": {
                name: {
                    "total_requests": r.total_requests,
                    "successful_requests": r.successful_requests,
                    "failed_requests": r.failed_requests,
                    "average_latency_ms": r.average_latency_ms,
                    "throughput_rps": r.throughput_rps,
                    "total_duration_ms": r.total_duration_ms,
                }
                for name, r in self.results.items()
            },
        }
