"""Tests for settings and CLI argument handling."""

import argparse

import pytest

from rpcbench.cli.compare import build_config, build_parser, parse_protocols
from rpcbench.config import LIMITS, Settings, clamp
from rpcbench.core.models import PayloadMode, Protocol


class TestSettings:
    def test_defaults(self) -> None:
        settings = Settings.from_env({})
        assert settings.grpc_target == "localhost:9090"
        assert settings.http_base_url == "http://localhost:8080/api/v1/performance"
        assert settings.default_request_size == 1024 * 1024
        assert settings.default_response_size == 10 * 1024 * 1024

    def test_environment_overrides(self) -> None:
        settings = Settings.from_env({
            "GRPC_SERVER_HOST": "grpc.internal",
            "GRPC_SERVER_PORT": "50051",
            "HTTP_SERVER_HOST": "api.internal",
            "HTTP_SERVER_PORT": "8443",
            "HTTP_SERVER_PROTOCOL": "https",
            "INSECURE_SSL": "false",
            "GRPC_COMPRESSION": "0",
            "DEFAULT_CONCURRENT_REQUESTS": "25",
            "LOG_LEVEL": "debug",
        })
        assert settings.grpc_target == "grpc.internal:50051"
        assert settings.http_base_url == "https://api.internal:8443/api/v1/performance"
        assert settings.insecure_ssl is False
        assert settings.grpc_compression is False
        assert settings.default_concurrency == 25
        assert settings.log_level == "DEBUG"

    def test_bad_integer_names_the_variable(self) -> None:
        with pytest.raises(ValueError, match="GRPC_SERVER_PORT"):
            Settings.from_env({"GRPC_SERVER_PORT": "ninety"})

    def test_connect_timeout_accepts_fractions(self) -> None:
        settings = Settings.from_env({"GRPC_CONNECT_TIMEOUT": "2.5"})
        assert settings.grpc_connect_timeout_seconds == 2.5

    def test_bad_connect_timeout_names_the_variable(self) -> None:
        with pytest.raises(ValueError, match="GRPC_CONNECT_TIMEOUT"):
            Settings.from_env({"GRPC_CONNECT_TIMEOUT": "soon"})

    def test_clamp(self) -> None:
        assert clamp(0, 1, 100) == 1
        assert clamp(500, 1, 100) == 100
        assert clamp(42, 1, 100) == 42


class TestProtocolParsing:
    def test_aliases(self) -> None:
        assert parse_protocols("grpc,http") == (Protocol.GRPC, Protocol.HTTP)
        assert parse_protocols("binary-rpc, REST") == (Protocol.GRPC, Protocol.HTTP)

    def test_empty_means_none(self) -> None:
        assert parse_protocols("") == ()

    def test_unknown_rejected(self) -> None:
        with pytest.raises(argparse.ArgumentTypeError, match="soap"):
            parse_protocols("grpc,soap")


class TestBuildConfig:
    def _args(self, *argv):
        return build_parser(Settings()).parse_args(list(argv))

    def test_defaults_from_settings(self) -> None:
        config = build_config(self._args())
        assert config.num_requests == 100
        assert config.concurrency == 10
        assert config.protocols == (Protocol.GRPC, Protocol.HTTP)
        assert config.payload_mode is None
        assert not config.use_streaming

    def test_sizes_and_options(self) -> None:
        config = build_config(self._args(
            "--request-size", "1K",
            "--response-size", "2MB",
            "--protocols", "http",
            "--streaming",
            "--payload-mode", "structured",
            "--test-name", "smoke",
        ))
        assert config.request_size == 1024
        assert config.response_size == 2 * 1024 * 1024
        assert config.protocols == (Protocol.HTTP,)
        assert config.use_streaming
        assert config.payload_mode == PayloadMode.STRUCTURED
        assert config.test_name == "smoke"

    def test_values_clamped_to_limits(self) -> None:
        config = build_config(self._args("--num-requests", "999999", "--concurrency", "0"))
        assert config.num_requests == LIMITS["max_requests"]
        assert config.concurrency == LIMITS["min_concurrency"]

    def test_invalid_size_exits(self) -> None:
        with pytest.raises(SystemExit):
            self._args("--request-size", "lots")
