"""Typer application and console-script entry point for clibridge.

``clibridge`` serves or documents a CLI that lives in any importable module,
without touching that CLI's code:

* ``clibridge serve pkg.cli:app`` -- run the HTTP bridge.
* ``clibridge spec pkg.cli:app`` -- print the Swagger document.
* ``clibridge tree pkg.cli:app`` -- print the visible command tree.
* ``clibridge run pkg.cli:app -- ARGS`` -- invoke the CLI with ``ARGS``;
  the bridge uses it to re-run targets that have no executable of their
  own.

CLIs that embed the bridge with :func:`~clibridge.add_server_command` do
not need this script at all.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. Unhandled exceptions are written to a crash log under
the data directory.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import typer
from rich.tree import Tree

from clibridge import __version__
from clibridge.exceptions import ClibridgeError
from clibridge.exit_codes import EXIT_GENERIC_FAILURE
from clibridge.models import CommandNode, ServerConfig
from clibridge.output import OutputManager, error, print_data, print_tree, set_output


app = typer.Typer(
    name="clibridge",
    help="Serve a click/Typer command tree as a Swagger-described HTTP API.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

_TARGET_HELP = "CLI to bridge, as 'module:attribute' (a click command or Typer app)."


def _version_callback(value: bool) -> None:
    """Print version and exit when --version is passed."""
    if value:
        typer.echo(f"clibridge {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    no_color: bool = typer.Option(
        False, "--no-color", help="Disable color output."
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
) -> None:
    """Initialise the global :class:`~clibridge.output.OutputManager`."""
    set_output(OutputManager(no_color=no_color, quiet=quiet, verbose=verbose))


def _config_for(
    target: str,
    app_dir: str,
    root_name: Optional[str],
    description: Optional[str],
    version: Optional[str],
    exec_path: Optional[str],
) -> ServerConfig:
    """Load *target* and freeze its tree into a :class:`ServerConfig`.

    Without *exec_path* the target is re-run through ``clibridge run``
    under the current interpreter.
    """
    from clibridge.config import build_server_config
    from clibridge.loader import load_target

    app_dir = str(Path(app_dir).resolve())
    obj = load_target(target, app_dir=app_dir)
    exec_args: tuple[str, ...] = ()
    if exec_path is None:
        exec_path = sys.executable
        exec_args = ("-m", "clibridge", "run", "--app-dir", app_dir, target, "--")
    return build_server_config(
        obj,
        root_name=root_name or _default_name(obj, target),
        description=description,
        version=version,
        exec_path=exec_path,
        exec_args=exec_args,
    )


def _default_name(obj: Any, target: str) -> str:
    """Name of the root command: its own, else the target module's last part."""
    from clibridge.loader import to_click

    return to_click(obj).name or target.partition(":")[0].rsplit(".", 1)[-1]


@app.command("serve")
def serve_command(
    target: str = typer.Argument(..., help=_TARGET_HELP),
    host: Optional[str] = typer.Option(None, "--host", help="Interface to bind."),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port to listen on."),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", help="Socket read/write timeout in seconds."
    ),
    max_concurrency: Optional[int] = typer.Option(
        None, "--max-concurrency", help="Max concurrently running commands (0 = unbounded)."
    ),
    exec_path: Optional[str] = typer.Option(
        None, "--exec", help="Program to run for each request (default: the target via this interpreter)."
    ),
    root_name: Optional[str] = typer.Option(None, "--name", help="Root command name in URLs."),
    description: Optional[str] = typer.Option(None, "--description", help="Swagger description."),
    doc_version: Optional[str] = typer.Option(None, "--doc-version", help="Swagger version."),
    app_dir: str = typer.Option(".", "--app-dir", help="Directory added to the import path."),
) -> None:
    """Serve TARGET over HTTP (Swagger UI at /swaggerui)."""
    from clibridge.config import resolve_serve_settings
    from clibridge.output import get_output
    from clibridge.server.http import serve

    out = get_output()
    set_output(
        OutputManager(quiet=out.is_quiet, verbose=out.is_verbose, timestamps=True)
    )
    config = _config_for(target, app_dir, root_name, description, doc_version, exec_path)
    settings = resolve_serve_settings(
        host=host, port=port, timeout=timeout, max_concurrency=max_concurrency
    )
    try:
        serve(config, settings)
    except OSError as exc:
        error(f"Cannot start server: {exc}")
        raise typer.Exit(code=1) from None


@app.command("spec")
def spec_command(
    target: str = typer.Argument(..., help=_TARGET_HELP),
    root_name: Optional[str] = typer.Option(None, "--name", help="Root command name in URLs."),
    description: Optional[str] = typer.Option(None, "--description", help="Swagger description."),
    doc_version: Optional[str] = typer.Option(None, "--doc-version", help="Swagger version."),
    app_dir: str = typer.Option(".", "--app-dir", help="Directory added to the import path."),
) -> None:
    """Print the Swagger document for TARGET."""
    from clibridge.spec.generator import render_spec

    config = _config_for(target, app_dir, root_name, description, doc_version, sys.executable)
    print_data(render_spec(config))


@app.command("tree")
def tree_command(
    target: str = typer.Argument(..., help=_TARGET_HELP),
    root_name: Optional[str] = typer.Option(None, "--name", help="Root command name."),
    one_line: bool = typer.Option(False, "--one-line", help="Print the compact one-line form."),
    app_dir: str = typer.Option(".", "--app-dir", help="Directory added to the import path."),
) -> None:
    """Print the commands and flags TARGET exposes."""
    from clibridge.loader import load_target
    from clibridge.tree.builder import build_command_tree, describe_tree
    from clibridge.tree.sources import as_source

    obj = load_target(target, app_dir=app_dir)
    root = build_command_tree(as_source(obj, name=root_name or _default_name(obj, target)))
    if one_line:
        print_data(describe_tree(root))
    else:
        print_tree(_rich_tree(root))


def _rich_tree(node: CommandNode, tree: Optional[Tree] = None) -> Tree:
    label = f"[bold]{node.name}[/bold]"
    if node.flags:
        label += " [dim]" + " ".join(f"--{name}" for name in node.flag_names) + "[/dim]"
    branch = Tree(label) if tree is None else tree.add(label)
    for child in node.children:
        _rich_tree(child, branch)
    return branch


@app.command(
    "run",
    hidden=True,
    context_settings={"allow_extra_args": True, "ignore_unknown_options": True},
)
def run_command(
    ctx: typer.Context,
    target: str = typer.Argument(..., help=_TARGET_HELP),
    app_dir: str = typer.Option(".", "--app-dir", help="Directory added to the import path."),
) -> None:
    """Invoke TARGET with the remaining arguments."""
    from clibridge.loader import load_target, to_click

    command = to_click(load_target(target, app_dir=app_dir))
    args = list(ctx.args)
    if args[:1] == ["--"]:
        args = args[1:]
    command.main(args=args, prog_name=command.name or target.partition(":")[0])


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nStopped.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from clibridge.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(traceback.format_exc())
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``clibridge`` console script.

    :class:`~clibridge.exceptions.ClibridgeError` instances cause a clean
    exit with the error's ``exit_code``. All other exceptions produce a
    crash log and a generic failure exit.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except ClibridgeError as exc:
        error(str(exc))
        sys.exit(exc.exit_code)
    except Exception as exc:
        log_path = _write_crash_log(exc)
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
