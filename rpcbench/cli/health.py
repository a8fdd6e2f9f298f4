"""CLI for probing both echo service transports."""

import argparse
import asyncio
import json
import sys

from ..config import Settings, configure_logging
from ..core.orchestrator import Orchestrator


def main():
    """Main entry point for the health CLI."""
    settings = Settings.from_env()
    parser = argparse.ArgumentParser(description="Check gRPC and HTTP echo service health")
    parser.add_argument("--grpc-host", type=str, default=settings.grpc_host)
    parser.add_argument("--grpc-port", type=int, default=settings.grpc_port)
    parser.add_argument("--http-host", type=str, default=settings.http_host)
    parser.add_argument("--http-port", type=int, default=settings.http_port)
    parser.add_argument(
        "--connect-timeout",
        type=float,
        default=settings.grpc_connect_timeout_seconds,
        help="Seconds to wait for the gRPC channel (default: %(default)s)",
    )
    args = parser.parse_args()

    configure_logging(settings.log_level)
    settings.grpc_host = args.grpc_host
    settings.grpc_port = args.grpc_port
    settings.http_host = args.http_host
    settings.http_port = args.http_port
    settings.grpc_connect_timeout_seconds = args.connect_timeout

    checks = asyncio.run(Orchestrator(settings).health_check())
    print(json.dumps(checks, indent=2))

    if checks["overall"] != "healthy":
        sys.exit(1)


if __name__ == "__main__":
    main()
