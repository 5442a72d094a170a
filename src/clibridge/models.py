"""Canonical Pydantic models shared across all clibridge modules.

This is the single source of truth for data shapes in the project. The
models fall into three groups:

**Command tree** -- the immutable snapshot built once at startup from the
CLI definition and read concurrently by every request:
    :class:`Flag` and :class:`CommandNode`.

**Server** -- process-wide values and per-request results:
    :class:`ServerConfig`, :class:`ServeSettings`, :class:`Invocation`,
    :class:`CommandResult`.

**Swagger document** -- the shape of the generated API description:
    :class:`SpecParameter`, :class:`SpecResponse`, :class:`SpecOperation`,
    :class:`SpecInfo`, and :class:`SpecDocument`.

Tree and server models are frozen; nothing mutates them after construction,
so they can be shared between request threads without locking.
"""

from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator, model_validator

DEFAULT_VERSION = "1.0.0"
"""Version reported in the Swagger header when the CLI declares none."""


# --- Command tree ---


class Flag(BaseModel):
    """A single ``--name=value`` flag accepted by a command.

    ``kind`` is the source type tag (``"boolean"``, ``"integer"``,
    ``"text"``, ``"array"``...). It is informational: values always travel
    as strings and are validated by the command itself.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    kind: str = "string"
    help: str = ""


class CommandNode(BaseModel):
    """One visible command in the tree.

    ``flags`` holds every flag the command accepts: flags inherited from
    ancestors (in ancestor-declaration order) followed by the flags declared
    on this command. ``children`` keeps declaration order for stable
    documents; :meth:`child` gives keyed lookup for routing.

    Example::

        add = CommandNode(name="add", flags=(Flag(name="five"),))
        root = CommandNode(name="example", children=(add,))
        assert root.child("add") is add
    """

    model_config = ConfigDict(frozen=True)

    name: str
    summary: str = ""
    flags: tuple[Flag, ...] = ()
    children: tuple[CommandNode, ...] = ()

    _index: dict[str, CommandNode] = PrivateAttr(default_factory=dict)

    @field_validator("children")
    @classmethod
    def _unique_child_names(cls, value: tuple[CommandNode, ...]) -> tuple[CommandNode, ...]:
        seen: set[str] = set()
        for node in value:
            if node.name in seen:
                raise ValueError(f"duplicate child command name: {node.name!r}")
            seen.add(node.name)
        return value

    def model_post_init(self, __context: Any) -> None:
        self._index = {node.name: node for node in self.children}

    def child(self, name: str) -> Optional[CommandNode]:
        """Return the direct child called *name*, or ``None``."""
        return self._index.get(name)

    @property
    def flag_names(self) -> list[str]:
        """Flag names in flag order."""
        return [flag.name for flag in self.flags]

    def walk(self, prefix: tuple[str, ...] = ()) -> list[tuple[tuple[str, ...], CommandNode]]:
        """Return ``(names_from_root, node)`` pairs depth-first, self first."""
        names = prefix + (self.name,)
        pairs = [(names, self)]
        for node in self.children:
            pairs.extend(node.walk(names))
        return pairs


# --- Server ---


class ServerConfig(BaseModel):
    """Process-wide bridge configuration, built once before serving.

    ``exec_path`` is the absolute path of the program that is re-invoked
    for every command request. ``exec_args`` are placed between it and the
    derived arguments; it is empty for a standalone executable and holds the
    script path when the program is run through the Python interpreter.

    ``description`` and ``version`` are resolved here at construction time
    and never changed afterwards. An empty ``version`` falls back to
    :data:`DEFAULT_VERSION`.
    """

    model_config = ConfigDict(frozen=True)

    root: CommandNode
    root_name: str = ""
    exec_path: str
    exec_args: tuple[str, ...] = ()
    description: str = ""
    version: str = DEFAULT_VERSION

    @model_validator(mode="before")
    @classmethod
    def _default_root_name(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("root_name"):
            root = data.get("root")
            name = root.name if isinstance(root, CommandNode) else (root or {}).get("name")
            data = {**data, "root_name": name or ""}
        return data

    @field_validator("version", mode="before")
    @classmethod
    def _default_version(cls, value: Optional[str]) -> str:
        return value or DEFAULT_VERSION

    @field_validator("description", mode="before")
    @classmethod
    def _default_description(cls, value: Optional[str]) -> str:
        return value or ""

    @property
    def route_prefix(self) -> str:
        """URL prefix under which commands are served, e.g. ``/example``."""
        return "/" + self.root_name


class ServeSettings(BaseModel):
    """Transport settings for the HTTP server.

    Resolved by :func:`~clibridge.config.resolve_serve_settings` from CLI
    flags, ``CLIBRIDGE_*`` environment variables and ``./clibridge.json``.
    """

    host: str = Field(default="0.0.0.0", description="Interface to bind")
    port: int = Field(default=8000, ge=0, le=65535, description="TCP port to listen on")
    timeout: float = Field(
        default=900.0, gt=0, description="Socket read/write timeout in seconds"
    )
    max_concurrency: int = Field(
        default=8,
        ge=0,
        description="Maximum concurrently running commands (0 = unbounded)",
    )
    queue_timeout: float = Field(
        default=30.0,
        ge=0,
        description="Seconds a request waits for a free execution slot",
    )


class Invocation(BaseModel):
    """A fully resolved command line for one request."""

    model_config = ConfigDict(frozen=True)

    executable: str
    leading: tuple[str, ...] = ()
    args: tuple[str, ...] = ()

    @property
    def argv(self) -> list[str]:
        """The complete command line, executable first."""
        return [self.executable, *self.leading, *self.args]


class CommandResult(BaseModel):
    """Captured output of a successful command run."""

    model_config = ConfigDict(frozen=True)

    stdout: str = ""
    stderr: str = ""

    def as_body(self) -> str:
        """Render as an HTTP body: stdout, then ``(stderr)`` when non-empty."""
        if self.stderr:
            return f"{self.stdout}({self.stderr})"
        return self.stdout


# --- Swagger document ---


class SpecParameter(BaseModel):
    """A query parameter of a Swagger 2.0 operation."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    location: str = Field(default="query", alias="in")
    type: str = "string"
    description: Optional[str] = None
    items: Optional[dict[str, str]] = None
    collection_format: Optional[str] = Field(default=None, alias="collectionFormat")


class SpecResponse(BaseModel):
    description: str = "OK"


class SpecOperation(BaseModel):
    """The single ``get`` operation attached to a command path."""

    summary: str = ""
    parameters: list[SpecParameter] = Field(default_factory=list)
    responses: dict[str, SpecResponse] = Field(
        default_factory=lambda: {"200": SpecResponse()}
    )


class SpecInfo(BaseModel):
    description: str = ""
    version: str = DEFAULT_VERSION
    title: str


class SpecDocument(BaseModel):
    """A complete Swagger 2.0 document for a command tree."""

    model_config = ConfigDict(populate_by_name=True)

    swagger: str = "2.0"
    info: SpecInfo
    paths: dict[str, dict[str, SpecOperation]] = Field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        """Dump using Swagger field names, omitting unset optional keys."""
        return self.model_dump(by_alias=True, exclude_none=True)
