"""Shared test fixtures for clibridge.

Provides command definitions mirroring the sample ``example`` CLI, ready
server configurations, and output-state management. These fixtures are
automatically discovered by pytest and available to all test modules
without explicit imports.
"""

from __future__ import annotations

import importlib.util
import sys
from pathlib import Path
from types import ModuleType

import pytest

from clibridge.config import build_server_config
from clibridge.models import Flag, ServerConfig
from clibridge.output import OutputManager, reset_output, set_output
from clibridge.tree.sources import StaticCommand


FIXTURES_DIR = Path(__file__).parent / "fixtures"
EXAMPLE_CLI = FIXTURES_DIR / "example_cli.py"


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When pytest or CliRunner swap those streams the cached
    references go stale, so every test starts from a fresh manager.
    """
    yield
    reset_output()


@pytest.fixture
def plain_output() -> OutputManager:
    """Install a colourless, verbose OutputManager so stderr is easy to assert on."""
    output = OutputManager(no_color=True, verbose=True)
    set_output(output)
    return output


# ---------------------------------------------------------------------------
# Command definitions
# ---------------------------------------------------------------------------


@pytest.fixture
def example_source() -> StaticCommand:
    """``example`` with persistent ``--val`` and children ``add``/``longest``,
    plus commands that must stay invisible."""
    return StaticCommand(
        "example",
        persistent_flags=[Flag(name="val", kind="integer", help="Value used by other commands")],
        summary="Example CLI",
        commands=[
            StaticCommand(
                "add",
                flags=[
                    Flag(name="five", kind="boolean", help="Add 5 to val"),
                    Flag(name="ten", kind="boolean", help="Add 10 to val"),
                ],
            ),
            StaticCommand("longest"),
            StaticCommand("server", hidden=True, flags=[Flag(name="port")]),
            StaticCommand("help"),
            StaticCommand("completion", commands=[StaticCommand("bash")]),
        ],
    )


@pytest.fixture
def flat_source() -> StaticCommand:
    """Root ``example`` whose ``add`` owns ``five`` and ``val`` and inherits nothing."""
    return StaticCommand(
        "example",
        commands=[
            StaticCommand(
                "add",
                flags=[Flag(name="five", kind="boolean"), Flag(name="val", kind="integer")],
            ),
        ],
    )


@pytest.fixture
def flat_config(flat_source: StaticCommand) -> ServerConfig:
    return build_server_config(
        flat_source,
        description="Example CLI",
        version="2.0.0",
        exec_path="/usr/local/bin/example",
    )


@pytest.fixture
def example_config(example_source: StaticCommand) -> ServerConfig:
    return build_server_config(example_source, exec_path="/usr/local/bin/example")


# ---------------------------------------------------------------------------
# The sample click CLI, runnable as a subprocess
# ---------------------------------------------------------------------------


@pytest.fixture
def example_cli() -> ModuleType:
    """Import ``tests/fixtures/example_cli.py`` as a module."""
    spec = importlib.util.spec_from_file_location("example_cli", EXAMPLE_CLI)
    assert spec is not None and spec.loader is not None
    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture
def cli_config(example_cli: ModuleType) -> ServerConfig:
    """Server config that re-runs the sample CLI through this interpreter."""
    return build_server_config(
        example_cli.example,
        description="Example CLI for clibridge tests.",
        version="2.0.0",
        exec_path=sys.executable,
        exec_args=[str(EXAMPLE_CLI)],
    )


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
