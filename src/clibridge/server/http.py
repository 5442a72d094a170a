"""HTTP transport for the bridge, built on :mod:`http.server`.

One thread per connection (:class:`~http.server.ThreadingHTTPServer`), each
delegating to the shared :class:`~clibridge.server.router.RequestRouter`.
The transport owns the socket read/write timeout; the router and the
command tree it reads are immutable, so handler threads share them freely.

Paths the router does not serve get an empty ``404``.
"""

from __future__ import annotations

from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Optional
from urllib.parse import urlsplit

from clibridge import __version__
from clibridge.models import ServerConfig, ServeSettings
from clibridge.output import info
from clibridge.server.executor import CommandExecutor
from clibridge.server.router import RequestRouter, Response


def make_handler(router: RequestRouter, timeout: Optional[float]) -> type[BaseHTTPRequestHandler]:
    """Build a request handler class bound to *router*."""

    class BridgeRequestHandler(BaseHTTPRequestHandler):
        server_version = f"clibridge/{__version__}"

        def setup(self) -> None:
            self.timeout = timeout
            super().setup()

        def do_GET(self) -> None:
            parts = urlsplit(self.path)
            response = router.handle(
                parts.path,
                parts.query,
                client=f"{self.client_address[0]}:{self.client_address[1]}",
            )
            self._send(response or Response(status=404))

        def _send(self, response: Response) -> None:
            payload = response.body.encode("utf-8")
            self.send_response(response.status)
            self.send_header("Content-Type", response.content_type)
            self.send_header("Content-Length", str(len(payload)))
            self.end_headers()
            self.wfile.write(payload)

        def log_message(self, format: str, *args: Any) -> None:
            # Requests are logged by the router.
            pass

    return BridgeRequestHandler


class BridgeHTTPServer(ThreadingHTTPServer):
    """A threading HTTP server serving one :class:`RequestRouter`."""

    daemon_threads = True

    def __init__(self, router: RequestRouter, settings: ServeSettings) -> None:
        self.router = router
        self.settings = settings
        super().__init__(
            (settings.host, settings.port),
            make_handler(router, settings.timeout),
        )

    @property
    def url(self) -> str:
        host, port = self.server_address[:2]
        return f"http://{host}:{port}"


def create_server(config: ServerConfig, settings: ServeSettings) -> BridgeHTTPServer:
    """Bind a server for *config*; call ``serve_forever()`` to start it."""
    executor = CommandExecutor(
        max_concurrency=settings.max_concurrency,
        queue_timeout=settings.queue_timeout,
    )
    return BridgeHTTPServer(RequestRouter(config, executor), settings)


def serve(config: ServerConfig, settings: ServeSettings) -> None:
    """Serve *config* until interrupted."""
    server = create_server(config, settings)
    host, port = server.server_address[:2]
    info(f"Starting clibridge server for {config.exec_path} at {host}:{port}")
    info(f"Swagger UI: http://{host}:{port}/swaggerui")
    try:
        server.serve_forever()
    finally:
        server.server_close()
