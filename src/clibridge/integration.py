"""The ``server`` sub-command that turns a host CLI into an HTTP service.

:func:`add_server_command` registers a hidden ``server`` command on a click
group or a Typer app. Running ``mycli server`` snapshots the *enclosing*
CLI (found through the click context, so commands registered after the call
are included), then serves it: every request re-runs ``mycli`` itself with
the arguments derived from the URL.

Example::

    import typer
    from clibridge import add_server_command

    app = typer.Typer()

    @app.command()
    def add(val: int = 0): ...

    add_server_command(app, version="2.1.0")

    if __name__ == "__main__":
        app()   # python cli.py server --port 8080
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Optional

import click
import typer

from clibridge.config import build_server_config, resolve_serve_settings
from clibridge.exceptions import ClibridgeError
from clibridge.output import OutputManager, error, set_output
from clibridge.server.http import serve

SERVER_COMMAND = "server"

SERVER_HELP = """\
HTTP server for this command-line tool.

Open /swaggerui to browse and run the available commands."""


def add_server_command(
    target: Any,
    name: str = SERVER_COMMAND,
    description: Optional[str] = None,
    version: Optional[str] = None,
    root_name: Optional[str] = None,
) -> None:
    """Register a hidden server command on *target*.

    Args:
        target: A :class:`click.Group` or :class:`typer.Typer` app.
        name: Name of the registered command.
        description: Swagger description; the root help text by default.
        version: Swagger version; ``"1.0.0"`` when omitted.
        root_name: Root name in URLs; the root command's name, or the
            invoked program's name when the root has none.

    Raises:
        TypeError: If *target* cannot hold sub-commands.
    """

    def run(
        ctx: click.Context,
        host: Optional[str],
        port: Optional[int],
        timeout: Optional[float],
        max_concurrency: Optional[int],
        verbose: bool,
    ) -> None:
        _run_server(
            ctx,
            settings={
                "host": host,
                "port": port,
                "timeout": timeout,
                "max_concurrency": max_concurrency,
            },
            verbose=verbose,
            description=description,
            version=version,
            root_name=root_name,
        )

    if isinstance(target, typer.Typer):
        _register_typer(target, name, run)
    elif isinstance(target, click.Group):
        _register_click(target, name, run)
    else:
        raise TypeError(f"Cannot add a server command to {target!r}")


def _register_click(group: click.Group, name: str, run: Any) -> None:
    @group.command(name=name, hidden=True, help=SERVER_HELP)
    @click.option("--host", default=None, help="Interface to bind.")
    @click.option("--port", type=int, default=None, help="Port to listen on.")
    @click.option("--timeout", type=float, default=None, help="Socket read/write timeout (seconds).")
    @click.option("--max-concurrency", type=int, default=None, help="Max concurrent commands (0 = unbounded).")
    @click.option("--verbose", "-v", is_flag=True, help="Log every spawned command line.")
    @click.pass_context
    def server(ctx: click.Context, **kwargs: Any) -> None:
        run(ctx, **kwargs)


def _register_typer(app: typer.Typer, name: str, run: Any) -> None:
    @app.command(name=name, hidden=True, help=SERVER_HELP)
    def server(
        ctx: typer.Context,
        host: Optional[str] = typer.Option(None, "--host", help="Interface to bind."),
        port: Optional[int] = typer.Option(None, "--port", help="Port to listen on."),
        timeout: Optional[float] = typer.Option(
            None, "--timeout", help="Socket read/write timeout (seconds)."
        ),
        max_concurrency: Optional[int] = typer.Option(
            None, "--max-concurrency", help="Max concurrent commands (0 = unbounded)."
        ),
        verbose: bool = typer.Option(
            False, "--verbose", "-v", help="Log every spawned command line."
        ),
    ) -> None:
        run(ctx, host, port, timeout, max_concurrency, verbose)


def _run_server(
    ctx: click.Context,
    settings: dict[str, Any],
    verbose: bool,
    description: Optional[str],
    version: Optional[str],
    root_name: Optional[str],
) -> None:
    set_output(OutputManager(verbose=verbose, timestamps=True))

    root_ctx = ctx.find_root()
    name = root_name or root_ctx.command.name or Path(root_ctx.info_name or "").stem
    try:
        config = build_server_config(
            root_ctx.command,
            root_name=name,
            description=description,
            version=version,
        )
        serve(config, resolve_serve_settings(**settings))
    except ClibridgeError as exc:
        error(str(exc))
        raise typer.Exit(code=exc.exit_code) from None
    except OSError as exc:
        error(f"Cannot start server: {exc}")
        raise typer.Exit(code=1) from None
    except KeyboardInterrupt:
        raise typer.Exit(code=130) from None
