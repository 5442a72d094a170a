"""CLI definition adapters consumed by the tree builder.

The builder never touches click or Typer directly. It reads any object that
satisfies :class:`CommandSource`: a name, a hidden marker, a one-line
summary, the flags declared on the command, the subset of those that
descendants inherit, and the child commands.

Three adapters ship with clibridge:

* :class:`StaticCommand` -- a plain in-memory definition, handy for
  programmatic trees and tests.
* :class:`ClickCommandSource` -- wraps a :class:`click.Command` or
  :class:`click.Group`.
* :func:`from_typer` -- compiles a :class:`typer.Typer` app to click and
  wraps the result.

**Persistent options.** click has no notion of an option declared on a
group that every descendant also accepts. :class:`PersistentOption` marks
such an option, and :class:`PersistentGroup` (or
:class:`PersistentTyperGroup` for Typer apps, where every callback option is
persistent) copies the marked options onto each sub-command as it is
resolved, so ``example add --val=3`` parses. Copies do not reach the
sub-command's callback; read them with :func:`inherited_value`. A
sub-command that declares an option of the same name keeps its own.
"""

from __future__ import annotations

import copy
from typing import Any, Optional, Protocol, Sequence, runtime_checkable

import click
import typer
from typer.core import TyperGroup

from clibridge.models import Flag

_META_KEY = "clibridge.inherited"

# Shell-completion options Typer adds to the root group.
_COMPLETION_PARAMS = frozenset({"install_completion", "show_completion"})


@runtime_checkable
class CommandSource(Protocol):
    """Capability interface implemented by every CLI framework adapter."""

    @property
    def name(self) -> str: ...

    @property
    def hidden(self) -> bool: ...

    @property
    def summary(self) -> str: ...

    def own_flags(self) -> Sequence[Flag]: ...

    def inheritable_flags(self) -> Sequence[Flag]: ...

    def children(self) -> Sequence[CommandSource]: ...


# ---------------------------------------------------------------------------
# In-memory definitions
# ---------------------------------------------------------------------------


class StaticCommand:
    """A command definition built directly in Python.

    ``persistent_flags`` apply to this command and every descendant;
    ``flags`` apply to this command only.

    Example::

        root = StaticCommand(
            "example",
            persistent_flags=[Flag(name="val", kind="integer")],
            commands=[StaticCommand("add", flags=[Flag(name="five")])],
        )
    """

    def __init__(
        self,
        name: str,
        flags: Sequence[Flag] = (),
        persistent_flags: Sequence[Flag] = (),
        commands: Sequence[StaticCommand] = (),
        hidden: bool = False,
        summary: str = "",
    ) -> None:
        self._name = name
        self._flags = list(flags)
        self._persistent = list(persistent_flags)
        self._commands = list(commands)
        self._hidden = hidden
        self._summary = summary

    @property
    def name(self) -> str:
        return self._name

    @property
    def hidden(self) -> bool:
        return self._hidden

    @property
    def summary(self) -> str:
        return self._summary

    def own_flags(self) -> list[Flag]:
        return [*self._persistent, *self._flags]

    def inheritable_flags(self) -> list[Flag]:
        return list(self._persistent)

    def children(self) -> list[StaticCommand]:
        return list(self._commands)

    def __repr__(self) -> str:
        return f"StaticCommand({self._name!r}, commands={len(self._commands)})"


# ---------------------------------------------------------------------------
# Persistent options for click and Typer
# ---------------------------------------------------------------------------


class PersistentOption(click.Option):
    """A :class:`click.Option` that every descendant command also accepts.

    Use it with ``cls=``::

        @click.group(cls=PersistentGroup)
        @click.option("--val", type=int, default=0, cls=PersistentOption)
        def example(val): ...
    """

    persistent = True


def _store_inherited(ctx: click.Context, param: click.Parameter, value: Any) -> Any:
    ctx.meta.setdefault(_META_KEY, {})[param.name] = value
    return value


def inherited_value(ctx: click.Context, name: str, default: Any = None) -> Any:
    """Return the value an inherited persistent option received in *ctx*."""
    return ctx.meta.get(_META_KEY, {}).get(name, default)


def _is_persistent(param: click.Parameter) -> bool:
    return isinstance(param, click.Option) and bool(getattr(param, "persistent", False))


def _is_inherited(param: click.Parameter) -> bool:
    return bool(getattr(param, "inherited", False))


def inherit_persistent_options(parent: click.Command, child: click.Command) -> None:
    """Copy *parent*'s persistent options onto *child* unless already there.

    Idempotent: a name the child already declares (or inherited earlier) is
    skipped.
    """
    existing = {p.name for p in child.params}
    for param in parent.params:
        if not _is_persistent(param) or param.name in existing:
            continue
        clone = copy.copy(param)
        clone.expose_value = False
        clone.callback = _store_inherited
        clone.persistent = True  # type: ignore[attr-defined]
        clone.inherited = True  # type: ignore[attr-defined]
        child.params.append(clone)


class _PersistentMixin:
    def get_command(self, ctx: click.Context, cmd_name: str) -> Optional[click.Command]:
        cmd = super().get_command(ctx, cmd_name)  # type: ignore[misc]
        if cmd is not None:
            inherit_persistent_options(self, cmd)  # type: ignore[arg-type]
        return cmd


class PersistentGroup(_PersistentMixin, click.Group):
    """A click group that hands its :class:`PersistentOption` params down.

    Nested groups created through ``@group.group()`` use this class too.
    """

    group_class = type


class PersistentTyperGroup(_PersistentMixin, TyperGroup):
    """A Typer group whose callback options are all persistent.

    Pass it as ``typer.Typer(cls=PersistentTyperGroup)``.
    """

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        for param in self.params:
            if isinstance(param, click.Option) and param.name not in _COMPLETION_PARAMS:
                param.persistent = True  # type: ignore[attr-defined]


def propagate_persistent_options(group: click.Command) -> None:
    """Eagerly push persistent options down the whole tree under *group*.

    :class:`PersistentGroup` does this lazily for the command being run;
    the tree builder needs every command at once.
    """
    if not isinstance(group, click.Group):
        return
    for cmd in group.commands.values():
        inherit_persistent_options(group, cmd)
        propagate_persistent_options(cmd)


# ---------------------------------------------------------------------------
# click adapter
# ---------------------------------------------------------------------------


def _long_name(option: click.Option) -> Optional[str]:
    for opt in option.opts:
        if opt.startswith("--"):
            return opt[2:]
    return None


def _flag_kind(option: click.Option) -> str:
    if option.is_flag and not option.count:
        return "switch"
    if option.multiple or option.nargs != 1:
        return "array"
    return option.type.name


def option_to_flag(option: click.Option) -> Flag:
    """Describe a click option as a :class:`~clibridge.models.Flag`.

    Raises:
        ValueError: If *option* has no ``--long`` form; the bridge only
            emits ``--name=value`` arguments.
    """
    name = _long_name(option)
    if name is None:
        raise ValueError(f"option {option.opts[0]!r} has no long form")
    return Flag(name=name, kind=_flag_kind(option), help=option.help or "")


class ClickCommandSource:
    """Adapter exposing a click command through :class:`CommandSource`.

    Args:
        command: The click command or group to wrap.
        name: Display name override; click leaves the root group's name
            unset when it is derived from the script name at runtime.
    """

    def __init__(self, command: click.Command, name: Optional[str] = None) -> None:
        self._command = command
        self._name = name or command.name or ""
        if isinstance(command, click.Group):
            propagate_persistent_options(command)

    @property
    def command(self) -> click.Command:
        return self._command

    @property
    def name(self) -> str:
        return self._name

    @property
    def hidden(self) -> bool:
        return bool(self._command.hidden)

    @property
    def summary(self) -> str:
        return self._command.get_short_help_str(limit=120)

    def _options(self) -> list[click.Option]:
        # Short-only options cannot be passed as --name=value.
        return [
            p
            for p in self._command.params
            if isinstance(p, click.Option)
            and not p.hidden
            and p.name not in _COMPLETION_PARAMS
            and _long_name(p) is not None
        ]

    def own_flags(self) -> list[Flag]:
        return [option_to_flag(p) for p in self._options() if not _is_inherited(p)]

    def inheritable_flags(self) -> list[Flag]:
        return [
            option_to_flag(p)
            for p in self._options()
            if _is_persistent(p) and not _is_inherited(p)
        ]

    def children(self) -> list[ClickCommandSource]:
        if not isinstance(self._command, click.Group):
            return []
        return [
            ClickCommandSource(cmd, name=name)
            for name, cmd in self._command.commands.items()
        ]

    def __repr__(self) -> str:
        return f"ClickCommandSource({self._name!r})"


def from_typer(app: typer.Typer, name: Optional[str] = None) -> ClickCommandSource:
    """Compile *app* with Typer and wrap the resulting click command."""
    command = typer.main.get_command(app)
    return ClickCommandSource(command, name=name or command.name)


def as_source(target: Any, name: Optional[str] = None) -> CommandSource:
    """Coerce a Typer app, click command or ready-made source to a source."""
    if isinstance(target, typer.Typer):
        return from_typer(target, name=name)
    if isinstance(target, click.Command):
        return ClickCommandSource(target, name=name)
    if isinstance(target, CommandSource):
        return target
    raise TypeError(f"Not a CLI definition: {target!r}")
