"""HTTP driver built on aiohttp."""

import asyncio
import base64
import json
import ssl
import time
from typing import Any, Dict, Optional

import aiohttp

from ..config import Settings
from ..core.errors import DriverInitializationError
from ..core.models import PayloadMode, RequestOutcome, RequestSpec
from .base import TransportDriver, request_metadata, request_timeout_seconds


class HttpDriver(TransportDriver):
    """
    Drives the echo service over HTTP/1.1 with a bounded keep-alive pool.

    Payloads are base64 encoded into a JSON body.
    """

    protocol = "http"
    default_payload_mode = PayloadMode.BINARY

    def __init__(
        self,
        base_url: str,
        max_sockets: int = 50,
        insecure_ssl: bool = False,
        keepalive_seconds: float = 30.0,
    ):
        """
        Args:
            base_url: Base URL of the performance API, e.g. http://host:8080/api/v1/performance
            max_sockets: Upper bound on open connections
            insecure_ssl: Disable TLS certificate verification (self-signed certs)
            keepalive_seconds: How long idle connections are kept
        """
        super().__init__()
        self.base_url = base_url.rstrip("/")
        self.max_sockets = max_sockets
        self.insecure_ssl = insecure_ssl
        self.keepalive_seconds = keepalive_seconds
        self._session: Optional[aiohttp.ClientSession] = None

        # Last payload encoded, reused while a run shares the same buffer
        self._encoded_for: Optional[bytes] = None
        self._encoded: str = ""

    @classmethod
    def from_settings(cls, settings: Settings) -> "HttpDriver":
        return cls(
            base_url=settings.http_base_url,
            max_sockets=settings.http_max_sockets,
            insecure_ssl=settings.insecure_ssl,
        )

    def _create_ssl_context(self) -> Optional[ssl.SSLContext]:
        """Create SSL context if insecure mode is enabled."""
        if self.insecure_ssl:
            ctx = ssl.create_default_context()
            ctx.check_hostname = False
            ctx.verify_mode = ssl.CERT_NONE
            return ctx
        return None

    async def connect(self) -> None:
        if self._session is not None:
            return
        try:
            connector = aiohttp.TCPConnector(
                limit=self.max_sockets,
                keepalive_timeout=self.keepalive_seconds,
                ssl=self._create_ssl_context() or True,
            )
            self._session = aiohttp.ClientSession(
                connector=connector,
                headers={"Content-Type": "application/json", "Accept": "application/json"},
            )
        except Exception as e:
            raise DriverInitializationError(self.protocol, str(e)) from e
        self.logger.info(f"HTTP client initialized with base URL: {self.base_url}")

    async def close(self) -> None:
        if self._session is None:
            return
        await self._session.close()
        self._session = None
        self._encoded_for = None
        self.logger.info("HTTP client closed")

    def _encode(self, payload: bytes) -> str:
        if payload is not self._encoded_for:
            self._encoded = base64.b64encode(payload).decode("ascii")
            self._encoded_for = payload
        return self._encoded

    @staticmethod
    def _processing_time_ns(raw: bytes) -> Optional[int]:
        try:
            data = json.loads(raw)
        except (json.JSONDecodeError, UnicodeDecodeError, ValueError):
            return None
        if isinstance(data, dict) and data.get("processingTimeNs") is not None:
            return int(data["processingTimeNs"])
        return None

    async def send_one(self, request: RequestSpec) -> RequestOutcome:
        if self._session is None:
            return self._failure(request, "driver is not connected")

        body = {
            "id": request.request_id,
            "timestamp": int(time.time() * 1000),
            "payload": self._encode(request.payload),
            "metadata": request_metadata(request, self.protocol),
        }
        params = {"responseSize": str(request.response_size)} if request.response_size > 0 else None
        timeout_seconds = request_timeout_seconds(len(request.payload))
        timeout = aiohttp.ClientTimeout(total=timeout_seconds)

        started = time.perf_counter()
        try:
            async with self._session.post(
                f"{self.base_url}/process-base64", json=body, params=params, timeout=timeout
            ) as response:
                raw = await response.read()
                latency_ms = (time.perf_counter() - started) * 1000
                status = response.status
        except asyncio.TimeoutError:
            return self._failure(request, f"timed out after {timeout_seconds:g}s", started)
        except aiohttp.ClientError as e:
            return self._failure(request, f"{e.__class__.__name__}: {e}", started)
        except Exception as e:
            return self._failure(request, e, started)

        if not 200 <= status < 300:
            text = raw[:200].decode("utf-8", errors="replace")
            return self._failure(request, f"HTTP {status}: {text}", started)

        self.logger.debug(f"HTTP {request.request_id} completed in {latency_ms:.2f}ms")
        return RequestOutcome(
            success=True,
            client_latency_ms=latency_ms,
            server_processing_time_ns=self._processing_time_ns(raw),
        )

    async def health_check(self) -> Dict[str, Any]:
        if self._session is None:
            return {"status": "unhealthy", "error": "driver is not connected"}
        started = time.perf_counter()
        try:
            async with self._session.get(
                f"{self.base_url}/health", timeout=aiohttp.ClientTimeout(total=10)
            ) as response:
                text = await response.text()
                status = response.status
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            return {"status": "unhealthy", "error": str(e) or e.__class__.__name__}
        response_time_ms = (time.perf_counter() - started) * 1000

        if status != 200:
            return {"status": "unhealthy", "error": f"HTTP {status}: {text[:200]}"}
        return {"status": "healthy", "response_time_ms": response_time_ms}
