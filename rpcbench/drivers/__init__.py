"""Protocol drivers."""

from typing import Dict, Type

from ..config import Settings
from ..core.models import Protocol
from .base import TransportDriver
from .grpc_driver import GrpcDriver
from .http_driver import HttpDriver

DRIVERS: Dict[Protocol, Type[TransportDriver]] = {
    Protocol.GRPC: GrpcDriver,
    Protocol.HTTP: HttpDriver,
}


def create_driver(protocol: Protocol, settings: Settings) -> TransportDriver:
    """Create a new, unconnected driver for ``protocol``."""
    return DRIVERS[protocol].from_settings(settings)


__all__ = ["DRIVERS", "GrpcDriver", "HttpDriver", "TransportDriver", "create_driver"]
