"""Fan-out of invalidation requests to the live cache servers."""

import http.client
import logging
from dataclasses import dataclass, field

from .registry import ServerAddress, ServerRegistry

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 3.0  # seconds, per server


@dataclass
class DispatchResult:
    """Outcome of one fan-out: which servers were tried and which failed."""

    attempted: list[ServerAddress] = field(default_factory=list)
    failed: dict[ServerAddress, str] = field(default_factory=dict)

    @property
    def succeeded(self) -> list[ServerAddress]:
        return [server for server in self.attempted if server not in self.failed]


class InvalidationDispatcher:
    """Sends one invalidation request per live cache server.

    Each server gets its own short-lived connection. A failing server is
    logged and skipped; dispatch never raises.
    """

    def __init__(self, registry: ServerRegistry, timeout: float = DEFAULT_TIMEOUT):
        self.registry = registry
        self.timeout = timeout

    def dispatch(self, method: str, url_pattern: str, host: str | None = None) -> DispatchResult:
        """Send ``method url_pattern`` to every live server.

        Args:
            method: Request verb understood by the cache servers (e.g. BAN)
            url_pattern: Ban regex, sent verbatim as the request target
            host: Value for the Host header; omitted when None

        Returns:
            DispatchResult with per-server failures
        """
        logger.debug("Cache %s request for url %s and host %s", method, url_pattern, host)

        headers = {"Host": host} if host else {}
        result = DispatchResult()

        for server in self.registry.list_live_servers():
            result.attempted.append(server)
            try:
                self._send(server, method, url_pattern, headers)
            except (OSError, ValueError, http.client.HTTPException) as e:
                result.failed[server] = repr(e)
                logger.warning("Cache server %s is not available, impossible to delete cache: %r", server, e)

        if result.failed:
            logger.warning(
                "Cache %s for %s failed on %d of %d servers",
                method,
                url_pattern,
                len(result.failed),
                len(result.attempted),
            )
        return result

    def _send(self, server: ServerAddress, method: str, url_pattern: str, headers: dict):
        # http.client sends the target untouched; the pattern must not be percent-encoded
        connection = http.client.HTTPConnection(server.host, server.port, timeout=self.timeout)
        try:
            connection.request(method, url_pattern, headers=headers)
            response = connection.getresponse()
            response.read()
        finally:
            connection.close()

        if response.status >= 400:
            raise http.client.HTTPException(f"{method} returned {response.status} {response.reason}")
