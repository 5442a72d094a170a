"""HTTP side of the bridge.

Sub-modules:

* :mod:`~clibridge.server.mapper` -- request path + query to command line.
* :mod:`~clibridge.server.executor` -- bounded subprocess runner.
* :mod:`~clibridge.server.router` -- transport-neutral request dispatch.
* :mod:`~clibridge.server.http` -- :mod:`http.server` transport.
"""

from clibridge.server.executor import CommandExecutor
from clibridge.server.http import BridgeHTTPServer, create_server, serve
from clibridge.server.mapper import map_request, parse_query
from clibridge.server.router import RequestRouter, Response

__all__ = [
    "BridgeHTTPServer",
    "CommandExecutor",
    "RequestRouter",
    "Response",
    "create_server",
    "map_request",
    "parse_query",
    "serve",
]
