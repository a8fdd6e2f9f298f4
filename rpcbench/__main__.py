"""Main entry point for the rpcbench package.

Usage:
    python -m rpcbench compare --num-requests 100 --concurrency 10
    python -m rpcbench compare --protocols grpc --streaming --request-size 1K
    python -m rpcbench health
"""

import sys


def main():
    """Main entry point that dispatches to subcommands."""
    if len(sys.argv) < 2:
        print_help()
        sys.exit(1)

    command = sys.argv[1]

    if command in ["-h", "--help", "help"]:
        print_help()
        sys.exit(0)

    # Remove the command from argv so subcommand parsers see correct args
    sys.argv = [sys.argv[0]] + sys.argv[2:]

    if command == "compare":
        from .cli.compare import main as compare_main

        compare_main()
    elif command == "health":
        from .cli.health import main as health_main

        health_main()
    else:
        print(f"Unknown command: {command}")
        print_help()
        sys.exit(1)


def print_help():
    """Print help message."""
    print(
        """gRPC vs HTTP Benchmarking Tool

Usage: python -m rpcbench <command> [options]

Commands:
    compare       Run a protocol comparison test and report the results
    health        Check that both echo service transports respond

Examples:
    # Compare both protocols with 100 x 1MB requests, 10 in flight
    python -m rpcbench compare --num-requests 100 --concurrency 10 --request-size 1MB

    # gRPC bidirectional streaming against HTTP
    python -m rpcbench compare --streaming --request-size 1K --response-size 1K

    # Check the echo service
    python -m rpcbench health

Connection settings come from GRPC_SERVER_HOST, GRPC_SERVER_PORT,
HTTP_SERVER_HOST, HTTP_SERVER_PORT and HTTP_SERVER_PROTOCOL.

For command-specific help:
    python -m rpcbench <command> --help
"""
    )


if __name__ == "__main__":
    main()
