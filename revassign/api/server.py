"""HTTP server for the reviewer assignment API.

Thin IO layer: reads the request, hands it to handlers.dispatch() and writes
the JSON response. Requests are served on separate threads; every engine
operation runs in its own repository transaction.
"""

import json
import logging
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any
from urllib.parse import parse_qs, urlsplit

from revassign.api.handlers import dispatch, error_response
from revassign.config import ServerConfig
from revassign.engine import ReviewerAssignmentEngine
from revassign.errors import ErrorCode

LOG = logging.getLogger("revassign.api.server")
ACCESS_LOG = logging.getLogger("revassign.api.access")


def _content_length(value: str | None) -> int | None:
    """Body length from the header; None when it is not a non-negative integer."""
    if not value:
        return 0
    try:
        length = int(value)
    except ValueError:
        return None
    return length if length >= 0 else None


class ApiHandler(BaseHTTPRequestHandler):
    """Handle every API route via dispatch()."""

    engine: ReviewerAssignmentEngine

    def do_GET(self) -> None:
        self._handle("GET")

    def do_POST(self) -> None:
        self._handle("POST")

    def do_PUT(self) -> None:
        self._handle("PUT")

    def do_DELETE(self) -> None:
        self._handle("DELETE")

    def _handle(self, method: str) -> None:
        url = urlsplit(self.path)
        length = _content_length(self.headers.get("Content-Length"))
        if length is None:
            self._send_json(*error_response(ErrorCode.BAD_REQUEST, "invalid Content-Length"))
            return
        body = self.rfile.read(length) if length else b""
        try:
            status, payload = dispatch(
                self.engine,
                method,
                url.path,
                parse_qs(url.query, keep_blank_values=True),
                body,
            )
        except Exception as e:
            LOG.exception("Unhandled error on %s %s: %s", method, url.path, e)
            status, payload = error_response(ErrorCode.INTERNAL_ERROR, "internal error")
        self._send_json(status, payload)

    def _send_json(self, status: int, payload: Any) -> None:
        data = json.dumps(payload).encode()
        self.send_response(status)
        self.send_header("Content-Type", "application/json")
        self.send_header("Content-Length", str(len(data)))
        self.end_headers()
        self.wfile.write(data)

    def log_message(self, format: str, *args: Any) -> None:
        ACCESS_LOG.info("%s - " + format, self.address_string(), *args)


def make_server(engine: ReviewerAssignmentEngine, host: str, port: int) -> ThreadingHTTPServer:
    """Bind a threaded HTTP server whose handler is wired to engine."""
    handler = type("BoundApiHandler", (ApiHandler,), {"engine": engine})
    server = ThreadingHTTPServer((host, port), handler)
    server.daemon_threads = True
    return server


def run_server(engine: ReviewerAssignmentEngine, config: ServerConfig) -> None:
    """Serve the API until interrupted."""
    server = make_server(engine, config.host, config.port)
    host, port = server.server_address[:2]
    LOG.info("Server listening on %s:%s", host, port)
    try:
        server.serve_forever()
    finally:
        server.server_close()
