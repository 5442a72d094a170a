"""Tests for clibridge.spec.generator.

Covers:
- Header block: swagger 2.0, info description/version/title, in that order
- One path per visible command, keyed by the root-to-node name chain
- Parameters: one query string per flag in flag order, then ``argv``
- Default version fallback
- Repeated generation is byte-identical
- Serialisation failures surface as SpecGenerationError
"""

from __future__ import annotations

import pytest
import yaml

from clibridge.config import build_server_config
from clibridge.exceptions import SpecGenerationError
from clibridge.models import DEFAULT_VERSION, CommandNode, ServerConfig
from clibridge.spec.generator import (
    ARGV_PARAM,
    build_operation,
    generate_spec,
    path_key,
    render_spec,
)
from clibridge.tree.sources import StaticCommand

ARGV_ENTRY = {
    "in": "query",
    "type": "array",
    "name": "argv",
    "items": {"type": "string"},
    "collectionFormat": "csv",
}


def _params(document: dict, path: str) -> list[dict]:
    return document["paths"][path]["get"]["parameters"]


class TestHeader:
    def test_header_fields(self, flat_config: ServerConfig) -> None:
        document = yaml.safe_load(render_spec(flat_config))
        assert document["swagger"] == "2.0"
        assert document["info"] == {
            "description": "Example CLI",
            "version": "2.0.0",
            "title": "example",
        }

    def test_header_precedes_paths(self, flat_config: ServerConfig) -> None:
        text = render_spec(flat_config)
        assert text.startswith("swagger: '2.0'\ninfo:\n")
        assert text.index("info:") < text.index("paths:")

    def test_default_version(self) -> None:
        config = ServerConfig(root=CommandNode(name="solo"), exec_path="/bin/solo")
        assert generate_spec(config).info.version == DEFAULT_VERSION

    def test_empty_version_falls_back(self) -> None:
        config = ServerConfig(root=CommandNode(name="solo"), exec_path="/bin/solo", version="")
        assert yaml.safe_load(render_spec(config))["info"]["version"] == "1.0.0"


class TestPaths:
    def test_one_path_per_visible_command(self, example_config: ServerConfig) -> None:
        document = yaml.safe_load(render_spec(example_config))
        assert list(document["paths"]) == ["/example", "/example/add", "/example/longest"]

    def test_each_path_has_single_get(self, example_config: ServerConfig) -> None:
        document = yaml.safe_load(render_spec(example_config))
        for item in document["paths"].values():
            assert list(item) == ["get"]
            assert item["get"]["responses"] == {"200": {"description": "OK"}}

    def test_path_key(self) -> None:
        assert path_key(("example",)) == "/example"
        assert path_key(("example", "group", "leaf")) == "/example/group/leaf"

    def test_nested_paths(self) -> None:
        source = StaticCommand(
            "tool",
            commands=[StaticCommand("db", commands=[StaticCommand("migrate")])],
        )
        config = build_server_config(source, exec_path="/bin/tool")
        assert list(generate_spec(config).paths) == ["/tool", "/tool/db", "/tool/db/migrate"]


class TestParameters:
    def test_flags_then_argv(self, example_config: ServerConfig) -> None:
        document = yaml.safe_load(render_spec(example_config))
        params = _params(document, "/example/add")
        assert [p["name"] for p in params] == ["val", "five", "ten", ARGV_PARAM]
        assert params[-1] == ARGV_ENTRY

    def test_flag_parameters_are_query_strings(self, example_config: ServerConfig) -> None:
        document = yaml.safe_load(render_spec(example_config))
        for param in _params(document, "/example/add")[:-1]:
            assert param["in"] == "query"
            assert param["type"] == "string"

    def test_flag_help_becomes_description(self, example_config: ServerConfig) -> None:
        document = yaml.safe_load(render_spec(example_config))
        five = _params(document, "/example/add")[1]
        assert five["description"] == "Add 5 to val"

    def test_no_description_key_without_help(self) -> None:
        operation = build_operation(
            CommandNode(name="x", flags=({"name": "bare"},))  # type: ignore[arg-type]
        )
        dumped = operation.parameters[0].model_dump(by_alias=True, exclude_none=True)
        assert dumped == {"name": "bare", "in": "query", "type": "string"}

    def test_command_without_flags_has_only_argv(self) -> None:
        operation = build_operation(CommandNode(name="plain"))
        assert [p.name for p in operation.parameters] == [ARGV_PARAM]

    def test_summary_from_command(self, example_cli) -> None:
        config = build_server_config(example_cli.example, exec_path="/bin/example")
        document = generate_spec(config)
        assert document.paths["/example/add"]["get"].summary == "Add 5 and/or 10 to val."
        assert document.info.description == "Example CLI for clibridge tests."


class TestDeterminism:
    def test_repeated_renders_are_identical(self, example_config: ServerConfig) -> None:
        assert render_spec(example_config) == render_spec(example_config)

    def test_non_ascii_is_kept(self) -> None:
        config = ServerConfig(
            root=CommandNode(name="café", summary="Crème brûlée"),
            exec_path="/bin/cafe",
        )
        assert "Crème brûlée" in render_spec(config)


class TestErrors:
    def test_yaml_failure_raises(
        self, example_config: ServerConfig, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        def broken(*args, **kwargs):
            raise yaml.representer.RepresenterError("cannot represent")

        monkeypatch.setattr("clibridge.spec.generator.yaml.safe_dump", broken)
        with pytest.raises(SpecGenerationError, match="Failed to generate swagger file"):
            render_spec(example_config)

    def test_error_maps_to_500(self) -> None:
        assert SpecGenerationError("x").status_code == 500
