"""Runtime settings and predefined limits.

Settings come from environment variables so the tool can be pointed at a
containerized echo service without code changes.
"""

import logging
import os
from dataclasses import dataclass
from typing import Mapping, Optional

# Input bounds applied by the CLI before a configuration reaches the engine
LIMITS = {
    "min_requests": 1,
    "max_requests": 10000,
    "min_concurrency": 1,
    "max_concurrency": 100,
    "max_payload_bytes": 100 * 1024 * 1024,  # 100MB
}

# Channel options sized for payloads up to 200MB with long-lived keepalive
GRPC_CHANNEL_OPTIONS = {
    "grpc.max_receive_message_length": 200 * 1024 * 1024,
    "grpc.max_send_message_length": 200 * 1024 * 1024,
    "grpc.keepalive_time_ms": 60000,
    "grpc.keepalive_timeout_ms": 10000,
    "grpc.keepalive_permit_without_calls": 1,
    "grpc.http2.max_pings_without_data": 0,
    "grpc.http2.min_time_between_pings_ms": 10000,
    "grpc.http2.min_ping_interval_without_data_ms": 300000,
    "grpc.max_metadata_size": 8 * 1024 * 1024,
    "grpc.client_idle_timeout_ms": 300000,
    "grpc.max_concurrent_streams": 1000,
}

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


def _env_int(environ: Mapping[str, str], name: str, default: int) -> int:
    value = environ.get(name)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be an integer, got {value!r}")


def _env_float(environ: Mapping[str, str], name: str, default: float) -> float:
    value = environ.get(name)
    if value is None or value == "":
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"Environment variable {name} must be a number, got {value!r}")


def _env_bool(environ: Mapping[str, str], name: str, default: bool) -> bool:
    value = environ.get(name)
    if value is None or value == "":
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    """Connection and default-load settings."""

    # gRPC echo service
    grpc_host: str = "localhost"
    grpc_port: int = 9090
    grpc_connect_timeout_seconds: float = 10.0
    grpc_compression: bool = True

    # HTTP echo service
    http_host: str = "localhost"
    http_port: int = 8080
    http_protocol: str = "http"
    http_max_sockets: int = 50
    insecure_ssl: bool = True

    # Load defaults
    default_request_size: int = 1024 * 1024  # 1MB
    default_response_size: int = 10 * 1024 * 1024  # 10MB
    default_concurrency: int = 10
    default_num_requests: int = 100

    log_level: str = "INFO"

    @property
    def grpc_target(self) -> str:
        return f"{self.grpc_host}:{self.grpc_port}"

    @property
    def http_base_url(self) -> str:
        return f"{self.http_protocol}://{self.http_host}:{self.http_port}/api/v1/performance"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from environment variables, falling back to defaults."""
        env = os.environ if environ is None else environ
        defaults = cls()
        return cls(
            grpc_host=env.get("GRPC_SERVER_HOST", defaults.grpc_host),
            grpc_port=_env_int(env, "GRPC_SERVER_PORT", defaults.grpc_port),
            grpc_connect_timeout_seconds=_env_float(
                env, "GRPC_CONNECT_TIMEOUT", defaults.grpc_connect_timeout_seconds
            ),
            grpc_compression=_env_bool(env, "GRPC_COMPRESSION", defaults.grpc_compression),
            http_host=env.get("HTTP_SERVER_HOST", defaults.http_host),
            http_port=_env_int(env, "HTTP_SERVER_PORT", defaults.http_port),
            http_protocol=env.get("HTTP_SERVER_PROTOCOL", defaults.http_protocol),
            http_max_sockets=_env_int(env, "HTTP_MAX_SOCKETS", defaults.http_max_sockets),
            insecure_ssl=_env_bool(env, "INSECURE_SSL", defaults.insecure_ssl),
            default_request_size=_env_int(
                env, "DEFAULT_REQUEST_SIZE", defaults.default_request_size
            ),
            default_response_size=_env_int(
                env, "DEFAULT_RESPONSE_SIZE", defaults.default_response_size
            ),
            default_concurrency=_env_int(
                env, "DEFAULT_CONCURRENT_REQUESTS", defaults.default_concurrency
            ),
            default_num_requests=_env_int(
                env, "DEFAULT_NUM_REQUESTS", defaults.default_num_requests
            ),
            log_level=env.get("LOG_LEVEL", defaults.log_level).upper(),
        )


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once for CLI entry points."""
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)


def clamp(value: int, lower: int, upper: int) -> int:
    """Clamp ``value`` into ``[lower, upper]``."""
    return max(lower, min(value, upper))
