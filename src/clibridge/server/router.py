"""Dispatch bridge requests, independent of any HTTP transport.

Three literal routes plus a default:

* ``/swaggerui`` -- the static Swagger UI page, verbatim.
* ``/swagger`` -- the generated YAML document.
* ``/<root>`` and anything below it -- map to a command line, run it,
  return stdout (plus ``(stderr)`` when the command wrote any).
* anything else -- no response; :meth:`RequestRouter.handle` returns
  ``None`` and the transport decides what to send.

Every failure ends its own request with a ``500`` and is logged with the
caller address and request URI. No failure affects other requests.
"""

from __future__ import annotations

from importlib import resources
from typing import Optional
from urllib.parse import unquote

from pydantic import BaseModel

from clibridge.exceptions import ExecutionError, SpecGenerationError, UnknownPathError
from clibridge.models import ServerConfig
from clibridge.output import error, info
from clibridge.server.executor import CommandExecutor
from clibridge.server.mapper import map_request, parse_query
from clibridge.spec.generator import render_spec

VIEWER_ROUTE = "/swaggerui"
SPEC_ROUTE = "/swagger"

HTML_TYPE = "text/html; charset=utf-8"
YAML_TYPE = "application/x-yaml; charset=utf-8"
TEXT_TYPE = "text/plain; charset=utf-8"


class Response(BaseModel):
    """A transport-neutral HTTP response."""

    status: int = 200
    body: str = ""
    content_type: str = TEXT_TYPE


def load_viewer_page() -> str:
    """Read the packaged Swagger UI page."""
    return resources.files("clibridge").joinpath("static/swaggerui.html").read_text(
        encoding="utf-8"
    )


class RequestRouter:
    """Route one request to the viewer, the document, or a command run.

    Args:
        config: The immutable server configuration.
        executor: Runner for mapped commands; a default bounded executor is
            created when omitted.
        viewer_page: HTML served on ``/swaggerui``; the packaged page when
            omitted.
    """

    def __init__(
        self,
        config: ServerConfig,
        executor: Optional[CommandExecutor] = None,
        viewer_page: Optional[str] = None,
    ) -> None:
        self._config = config
        self._executor = executor or CommandExecutor()
        self._viewer_page = viewer_page if viewer_page is not None else load_viewer_page()

    @property
    def config(self) -> ServerConfig:
        return self._config

    def owns(self, path: str) -> bool:
        """Return ``True`` if the first (percent-decoded) segment of *path*
        is the root command's name."""
        parts = path.split("/", 2)
        return len(parts) > 1 and parts[0] == "" and unquote(parts[1]) == self._config.root_name

    def handle(self, path: str, query: str = "", client: str = "-") -> Optional[Response]:
        """Handle a ``GET`` for *path* with raw query string *query*.

        Args:
            path: The URL path, already separated from the query string.
            query: The raw query string (without ``?``).
            client: Caller address, used in log lines.

        Returns:
            The response, or ``None`` when *path* is not served.
        """
        uri = f"{path}?{query}" if query else path
        info(f"Request from {client}: {uri}")

        if path == VIEWER_ROUTE:
            return Response(body=self._viewer_page, content_type=HTML_TYPE)
        if path == SPEC_ROUTE:
            return self._serve_spec(client, uri)
        if self.owns(path):
            return self._serve_run(path, query, client, uri)
        return None

    def _serve_spec(self, client: str, uri: str) -> Response:
        try:
            return Response(body=render_spec(self._config), content_type=YAML_TYPE)
        except SpecGenerationError as exc:
            return _failure(exc.status_code, str(exc), client, uri)

    def _serve_run(self, path: str, query: str, client: str, uri: str) -> Response:
        try:
            invocation = map_request(self._config, path, parse_query(query))
        except UnknownPathError as exc:
            return _failure(
                exc.status_code, f"Failed to generate command: {exc}", client, uri
            )

        try:
            result = self._executor.run(invocation)
        except ExecutionError as exc:
            return _failure(exc.status_code, f"Failed to run command: {exc}", client, uri)

        return Response(body=result.as_body())


def _failure(status: int, message: str, client: str, uri: str) -> Response:
    error(f"{message} (request from {client}: {uri})")
    return Response(status=status, body=f"Error: {message}\n")
