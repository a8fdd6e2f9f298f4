"""CLI for a single protocol comparison test."""

import argparse
import asyncio
import logging
import sys

from ..config import LIMITS, Settings, clamp, configure_logging
from ..core.models import PayloadMode, Protocol, TestConfiguration, TestRecord
from ..core.orchestrator import Orchestrator
from ..core.payload import parse_size
from ..results.aggregator import ResultAggregator
from ..results.charts import generate_comparison_chart

logger = logging.getLogger(__name__)


def parse_protocols(value: str):
    """Parse a comma separated protocol list; an empty string means none."""
    protocols = []
    for name in value.split(","):
        if not name.strip():
            continue
        try:
            protocols.append(Protocol.parse(name))
        except ValueError:
            raise argparse.ArgumentTypeError(f"unknown protocol: {name.strip()}")
    return tuple(protocols)


def _size(value: str) -> int:
    try:
        return parse_size(value)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e))


def build_parser(settings: Settings) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Compare gRPC and HTTP performance against the echo service",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Default comparison (100 requests, concurrency 10, 1MB requests)
  python -m rpcbench compare

  # Small payloads, gRPC streaming mode, save results
  python -m rpcbench compare --num-requests 1000 --concurrency 50 \\
      --request-size 1K --response-size 1K --streaming \\
      --output results.tsv --json results.json

  # HTTP only
  python -m rpcbench compare --protocols http --no-chart
        """,
    )

    # Load parameters
    parser.add_argument(
        "--num-requests",
        type=int,
        default=settings.default_num_requests,
        help=f"Requests per protocol (default: {settings.default_num_requests})",
    )
    parser.add_argument(
        "--concurrency",
        type=int,
        default=settings.default_concurrency,
        help=f"Maximum requests in flight (default: {settings.default_concurrency})",
    )
    parser.add_argument(
        "--request-size",
        type=_size,
        default=settings.default_request_size,
        help="Request payload size, e.g. 1024, 100K, 1MB (default: 1MB)",
    )
    parser.add_argument(
        "--response-size",
        type=_size,
        default=settings.default_response_size,
        help="Response payload size requested from the server (default: 10MB)",
    )
    parser.add_argument(
        "--protocols",
        type=parse_protocols,
        default=(Protocol.GRPC, Protocol.HTTP),
        help="Comma separated protocols to test (default: grpc,http)",
    )
    parser.add_argument(
        "--streaming",
        action="store_true",
        help="Use a bidirectional stream for gRPC instead of unary calls",
    )
    parser.add_argument(
        "--payload-mode",
        choices=[m.value for m in PayloadMode],
        default=None,
        help="Payload fill for both protocols (default: structured for gRPC, binary for HTTP)",
    )
    parser.add_argument("--test-name", type=str, default="", help="Name of the test")

    # Connection overrides
    parser.add_argument("--grpc-host", type=str, default=settings.grpc_host)
    parser.add_argument("--grpc-port", type=int, default=settings.grpc_port)
    parser.add_argument("--http-host", type=str, default=settings.http_host)
    parser.add_argument("--http-port", type=int, default=settings.http_port)
    parser.add_argument(
        "--max-sockets",
        type=int,
        default=settings.http_max_sockets,
        help=f"HTTP connection pool size (default: {settings.http_max_sockets})",
    )

    # Output options
    parser.add_argument("--output", type=str, help="Output TSV file path for results")
    parser.add_argument("--json", type=str, help="Output JSON file path for the full record")
    parser.add_argument("--chart", type=str, help="Output chart PNG path")
    parser.add_argument("--no-chart", action="store_true", help="Skip chart generation")
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output (only show final results)",
    )
    return parser


def build_config(args: argparse.Namespace) -> TestConfiguration:
    """Clamp CLI arguments into the supported bounds."""
    num_requests = clamp(args.num_requests, LIMITS["min_requests"], LIMITS["max_requests"])
    concurrency = clamp(args.concurrency, LIMITS["min_concurrency"], LIMITS["max_concurrency"])
    request_size = clamp(args.request_size, 0, LIMITS["max_payload_bytes"])
    response_size = clamp(args.response_size, 0, LIMITS["max_payload_bytes"])

    if (num_requests, concurrency, request_size, response_size) != (
        args.num_requests, args.concurrency, args.request_size, args.response_size
    ):
        logger.warning(
            f"Arguments clamped to limits: requests={num_requests}, concurrency={concurrency}, "
            f"request_size={request_size}, response_size={response_size}"
        )

    return TestConfiguration(
        num_requests=num_requests,
        concurrency=concurrency,
        request_size=request_size,
        response_size=response_size,
        protocols=args.protocols,
        use_streaming=args.streaming,
        test_name=args.test_name,
        payload_mode=PayloadMode(args.payload_mode) if args.payload_mode else None,
    )


def save_outputs(aggregator: ResultAggregator, args: argparse.Namespace) -> None:
    """Write the TSV and JSON files requested on the command line."""
    if args.output:
        aggregator.to_tsv(args.output)
        print(f"\nResults saved to: {args.output}")
    if args.json:
        aggregator.to_json(args.json)
        print(f"Record saved to: {args.json}")


async def run_test(orchestrator: Orchestrator, config: TestConfiguration) -> TestRecord:
    """Run one comparison; a cancelled run leaves its record interrupted."""
    try:
        return await orchestrator.run_comparison(config)
    finally:
        orchestrator.shutdown()


def main():
    """Main entry point for the compare CLI."""
    settings = Settings.from_env()
    args = build_parser(settings).parse_args()

    configure_logging("WARNING" if args.quiet else settings.log_level)

    settings.grpc_host = args.grpc_host
    settings.grpc_port = args.grpc_port
    settings.http_host = args.http_host
    settings.http_port = args.http_port
    settings.http_max_sockets = args.max_sockets

    config = build_config(args)
    orchestrator = Orchestrator(settings)
    aggregator = ResultAggregator()

    print(f"\nProtocol Comparison: {', '.join(p.value for p in config.protocols) or 'none'}")
    print("=" * 60)

    try:
        record = asyncio.run(run_test(orchestrator, config))
    except KeyboardInterrupt:
        print("\nTest interrupted by user")
        aggregator.add_records(orchestrator.registry.list())
        for record in aggregator.records:
            aggregator.print_detailed_record(record)
        save_outputs(aggregator, args)
        sys.exit(130)
    except Exception as e:
        print(f"\nError: {e}")
        sys.exit(1)

    aggregator.add_record(record)
    aggregator.print_detailed_record(record)

    save_outputs(aggregator, args)

    if not args.no_chart and record.results:
        generate_comparison_chart(record, output_path=args.chart, show=False)

    # Exit with error code if there were failures
    if any(r.failed_requests > 0 for r in record.results.values()):
        sys.exit(1)


if __name__ == "__main__":
    main()
