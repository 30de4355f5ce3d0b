"""Cache server registry: where invalidation requests are sent."""

import logging
from typing import NamedTuple, Protocol

from django.conf import settings

from ..models import DEFAULT_CACHE_PORT, CacheServer

logger = logging.getLogger(__name__)


class ServerAddress(NamedTuple):
    """Network address of a cache server."""

    host: str
    port: int

    def __str__(self):
        return f"{self.host}:{self.port}"


class ServerRegistry(Protocol):
    def list_live_servers(self) -> list[ServerAddress]: ...


class ModelServerRegistry:
    """Registry backed by the CacheServer table, read on every call."""

    def list_live_servers(self) -> list[ServerAddress]:
        return [ServerAddress(s.host, s.port) for s in CacheServer.objects.alive()]


class StaticServerRegistry:
    """Registry with a fixed server list (from settings or tests)."""

    def __init__(self, servers: list[ServerAddress]):
        self.servers = list(servers)

    @classmethod
    def from_strings(cls, entries: list[str]) -> "StaticServerRegistry":
        """Build from ``host`` or ``host:port`` entries; blanks are ignored."""
        return cls([parse_server_address(entry) for entry in entries if entry.strip()])

    def list_live_servers(self) -> list[ServerAddress]:
        return list(self.servers)


def parse_server_address(entry: str) -> ServerAddress:
    """Parse ``host[:port]`` into a ServerAddress.

    Raises ValueError if the port is not a number.
    """
    host, sep, port = entry.strip().rpartition(":")
    if not sep:
        return ServerAddress(port, DEFAULT_CACHE_PORT)
    if not port.isdigit():
        raise ValueError(f"Invalid cache server port in {entry!r}")
    return ServerAddress(host, int(port))


def get_server_registry() -> ServerRegistry:
    """Static registry if EDGE_CACHE_SERVERS is set, else the database one."""
    entries = getattr(settings, "EDGE_CACHE_SERVERS", None) or []
    if any(entry.strip() for entry in entries):
        registry = StaticServerRegistry.from_strings(entries)
        logger.debug("Using static cache server registry: %s", ", ".join(map(str, registry.servers)))
        return registry
    return ModelServerRegistry()
