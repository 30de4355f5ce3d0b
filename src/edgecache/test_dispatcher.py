"""Tests for invalidation dispatch to cache servers."""

import socket
import threading
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from unittest.mock import MagicMock, patch

import pytest

from edgecache.services.dispatcher import DispatchResult, InvalidationDispatcher
from edgecache.services.patterns import ban_pattern
from edgecache.services.registry import ServerAddress, StaticServerRegistry

SERVERS = [
    ServerAddress("cache1", 6081),
    ServerAddress("cache2", 6081),
    ServerAddress("cache3", 6081),
]


def make_connection(status=200, error=None):
    """Build a fake HTTPConnection instance."""
    connection = MagicMock()
    if error:
        connection.request.side_effect = error
    connection.getresponse.return_value.status = status
    connection.getresponse.return_value.reason = "OK" if status < 400 else "Error"
    return connection


class TestInvalidationDispatcher:
    """Tests for InvalidationDispatcher with a fake connection."""

    @patch("edgecache.services.dispatcher.http.client.HTTPConnection")
    def test_sends_request_to_every_server(self, mock_connection_class):
        """Verify each live server gets one request."""
        connection = make_connection()
        mock_connection_class.return_value = connection
        dispatcher = InvalidationDispatcher(StaticServerRegistry(SERVERS), timeout=2)

        result = dispatcher.dispatch("BAN", r"^/news/?\?", "site")

        assert result.attempted == SERVERS
        assert result.failed == {}
        assert mock_connection_class.call_count == 3
        mock_connection_class.assert_any_call("cache2", 6081, timeout=2)
        connection.request.assert_called_with("BAN", r"^/news/?\?", headers={"Host": "site"})
        assert connection.close.call_count == 3

    @patch("edgecache.services.dispatcher.http.client.HTTPConnection")
    def test_omits_host_header_without_host(self, mock_connection_class):
        connection = make_connection()
        mock_connection_class.return_value = connection
        dispatcher = InvalidationDispatcher(StaticServerRegistry(SERVERS[:1]))

        dispatcher.dispatch("BAN", "^/news/?", None)

        connection.request.assert_called_once_with("BAN", "^/news/?", headers={})

    @patch("edgecache.services.dispatcher.http.client.HTTPConnection")
    def test_failure_on_one_server_does_not_stop_others(self, mock_connection_class):
        """Verify a refused connection on one of three servers still reaches the other two."""
        connections = {
            "cache1": make_connection(),
            "cache2": make_connection(error=ConnectionRefusedError("refused")),
            "cache3": make_connection(),
        }
        mock_connection_class.side_effect = lambda host, port, timeout: connections[host]
        dispatcher = InvalidationDispatcher(StaticServerRegistry(SERVERS))

        result = dispatcher.dispatch("BAN", "^/news/?", "site")

        assert result.attempted == SERVERS
        assert list(result.failed) == [SERVERS[1]]
        assert result.succeeded == [SERVERS[0], SERVERS[2]]
        connections["cache1"].request.assert_called_once()
        connections["cache3"].request.assert_called_once()
        connections["cache2"].close.assert_called_once()

    @patch("edgecache.services.dispatcher.http.client.HTTPConnection")
    def test_timeout_is_isolated(self, mock_connection_class):
        connections = [make_connection(error=TimeoutError("timed out")), make_connection()]
        mock_connection_class.side_effect = connections
        dispatcher = InvalidationDispatcher(StaticServerRegistry(SERVERS[:2]))

        result = dispatcher.dispatch("BAN", "^/news/?", "site")

        assert list(result.failed) == [SERVERS[0]]
        connections[1].request.assert_called_once()

    @patch("edgecache.services.dispatcher.http.client.HTTPConnection")
    def test_error_status_counts_as_failure(self, mock_connection_class):
        mock_connection_class.return_value = make_connection(status=405)
        dispatcher = InvalidationDispatcher(StaticServerRegistry(SERVERS[:1]))

        result = dispatcher.dispatch("BAN", "^/news/?", "site")

        assert "405" in result.failed[SERVERS[0]]

    @patch("edgecache.services.dispatcher.http.client.HTTPConnection")
    def test_failures_are_logged_as_warnings(self, mock_connection_class, caplog):
        mock_connection_class.return_value = make_connection(error=OSError("unreachable"))
        dispatcher = InvalidationDispatcher(StaticServerRegistry(SERVERS[:1]))

        with caplog.at_level("WARNING", logger="edgecache.services.dispatcher"):
            dispatcher.dispatch("BAN", "^/news/?", "site")

        assert "cache1:6081" in caplog.text
        assert "unreachable" in caplog.text

    @patch("edgecache.services.dispatcher.http.client.HTTPConnection")
    def test_no_live_servers_is_a_no_op(self, mock_connection_class):
        dispatcher = InvalidationDispatcher(StaticServerRegistry([]))

        result = dispatcher.dispatch("BAN", "^/news/?", "site")

        assert result == DispatchResult()
        mock_connection_class.assert_not_called()

    def test_reads_registry_on_every_dispatch(self):
        registry = MagicMock()
        registry.list_live_servers.return_value = []
        dispatcher = InvalidationDispatcher(registry)

        dispatcher.dispatch("BAN", "^/a/?", None)
        dispatcher.dispatch("BAN", "^/b/?", None)

        assert registry.list_live_servers.call_count == 2


class _RecordingHandler(BaseHTTPRequestHandler):
    requests: list = []

    def do_BAN(self):
        self.requests.append((self.command, self.path, self.headers.get("Host")))
        self.send_response(200)
        self.send_header("Content-Length", "0")
        self.end_headers()

    def log_message(self, format, *args):
        pass


@pytest.fixture
def cache_server():
    """Local HTTP server accepting BAN requests."""
    _RecordingHandler.requests = []
    server = ThreadingHTTPServer(("127.0.0.1", 0), _RecordingHandler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    yield ServerAddress("127.0.0.1", server.server_address[1])
    server.shutdown()
    server.server_close()


@pytest.fixture
def closed_port():
    """A local port nothing is listening on."""
    with socket.socket() as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


class TestDispatchOverNetwork:
    """Tests against a real local server."""

    def test_pattern_reaches_server_verbatim(self, cache_server):
        dispatcher = InvalidationDispatcher(StaticServerRegistry([cache_server]), timeout=2)
        pattern = r"^/news/?($|\?(?!.*(?<=[?&])widget=))"

        result = dispatcher.dispatch("BAN", pattern, "site")

        assert result.failed == {}
        assert _RecordingHandler.requests == [("BAN", pattern, "site")]

    def test_non_ascii_page_url_reaches_every_server(self, cache_server):
        pattern, host = ban_pattern("http://site/café", r"\?")
        dispatcher = InvalidationDispatcher(StaticServerRegistry([cache_server, cache_server]), timeout=2)

        result = dispatcher.dispatch("BAN", pattern, host)

        assert result.failed == {}
        assert _RecordingHandler.requests == [("BAN", r"^/caf%C3%A9/?\?", "site")] * 2

    def test_unencodable_pattern_does_not_raise(self, cache_server):
        """Verify a pattern http.client cannot encode fails per server without escaping dispatch."""
        dispatcher = InvalidationDispatcher(StaticServerRegistry([cache_server, cache_server]), timeout=2)

        result = dispatcher.dispatch("BAN", "^/café/?", "site")

        assert len(result.attempted) == 2
        assert cache_server in result.failed
        assert _RecordingHandler.requests == []

    def test_dead_servers_around_live_one(self, cache_server, closed_port):
        dead = ServerAddress("127.0.0.1", closed_port)
        dispatcher = InvalidationDispatcher(StaticServerRegistry([dead, cache_server, dead]), timeout=2)

        result = dispatcher.dispatch("BAN", r"^/news/?\?.*widget=7", "site")

        assert len(result.attempted) == 3
        assert result.succeeded == [cache_server]
        assert len(_RecordingHandler.requests) == 1
