"""Tests for clibridge.tree.builder.

Covers:
- Flag inheritance: ancestors first, in declaration order, then own flags
- Inheritance flows downward only (never between siblings)
- Duplicate names are listed once
- Hidden and reserved (help*/completion*) commands are dropped with their subtree
- Children keep declaration order
- describe_tree one-line rendering
"""

from __future__ import annotations

import pytest

from clibridge.models import CommandNode, Flag
from clibridge.tree.builder import (
    RESERVED_PREFIXES,
    build_command_tree,
    describe_tree,
    is_exposed,
)
from clibridge.tree.sources import StaticCommand


def _names(node: CommandNode) -> list[str]:
    return [name for name in node.flag_names]


class TestFlagInheritance:
    def test_root_has_its_own_flags(self, example_source: StaticCommand) -> None:
        root = build_command_tree(example_source)
        assert _names(root) == ["val"]

    def test_child_lists_inherited_flags_first(self, example_source: StaticCommand) -> None:
        root = build_command_tree(example_source)
        add = root.child("add")
        assert add is not None
        assert _names(add) == ["val", "five", "ten"]

    def test_child_without_own_flags_still_inherits(self, example_source: StaticCommand) -> None:
        longest = build_command_tree(example_source).child("longest")
        assert longest is not None
        assert _names(longest) == ["val"]

    def test_inheritance_accumulates_over_generations(self) -> None:
        source = StaticCommand(
            "root",
            persistent_flags=[Flag(name="a")],
            commands=[
                StaticCommand(
                    "mid",
                    persistent_flags=[Flag(name="b")],
                    flags=[Flag(name="local")],
                    commands=[StaticCommand("leaf", flags=[Flag(name="c")])],
                )
            ],
        )
        leaf = build_command_tree(source).child("mid").child("leaf")
        assert _names(leaf) == ["a", "b", "c"]

    def test_local_flags_are_not_inherited(self) -> None:
        source = StaticCommand(
            "root",
            flags=[Flag(name="only-root")],
            commands=[StaticCommand("child")],
        )
        root = build_command_tree(source)
        assert _names(root) == ["only-root"]
        assert _names(root.child("child")) == []

    def test_siblings_do_not_share_flags(self) -> None:
        source = StaticCommand(
            "root",
            commands=[
                StaticCommand(
                    "left",
                    persistent_flags=[Flag(name="left-flag")],
                    commands=[StaticCommand("niece")],
                ),
                StaticCommand("right", commands=[StaticCommand("nephew")]),
            ],
        )
        root = build_command_tree(source)
        assert _names(root.child("left").child("niece")) == ["left-flag"]
        assert _names(root.child("right")) == []
        assert _names(root.child("right").child("nephew")) == []

    def test_redeclared_flag_appears_once_in_inherited_position(self) -> None:
        source = StaticCommand(
            "root",
            persistent_flags=[Flag(name="val", kind="integer")],
            commands=[StaticCommand("add", flags=[Flag(name="five"), Flag(name="val", kind="text")])],
        )
        add = build_command_tree(source).child("add")
        assert _names(add) == ["val", "five"]
        assert add.flags[0].kind == "integer"


class TestVisibility:
    def test_hidden_and_reserved_children_are_dropped(self, example_source: StaticCommand) -> None:
        root = build_command_tree(example_source)
        assert [child.name for child in root.children] == ["add", "longest"]

    def test_dropped_subtree_is_never_visited(self) -> None:
        class Exploding(StaticCommand):
            def children(self) -> list[StaticCommand]:
                raise AssertionError("hidden subtree was visited")

        source = StaticCommand("root", commands=[Exploding("ghost", hidden=True)])
        assert build_command_tree(source).children == ()

    @pytest.mark.parametrize("name", ["help", "helpme", "completion", "completion-zsh"])
    def test_reserved_prefixes(self, name: str) -> None:
        assert not is_exposed(StaticCommand(name))

    def test_names_containing_reserved_words_are_kept(self) -> None:
        assert is_exposed(StaticCommand("get-help"))
        assert RESERVED_PREFIXES == ("help", "completion")

    def test_hidden_root_is_still_built(self) -> None:
        root = build_command_tree(StaticCommand("root", hidden=True))
        assert root.name == "root"

    def test_children_keep_declaration_order(self) -> None:
        names = ["zeta", "alpha", "mu", "beta"]
        source = StaticCommand("root", commands=[StaticCommand(n) for n in names])
        assert [c.name for c in build_command_tree(source).children] == names


class TestTreeSnapshot:
    def test_tree_is_frozen(self, example_source: StaticCommand) -> None:
        root = build_command_tree(example_source)
        with pytest.raises(Exception):
            root.name = "other"  # type: ignore[misc]

    def test_child_lookup(self, example_source: StaticCommand) -> None:
        root = build_command_tree(example_source)
        assert root.child("add").name == "add"
        assert root.child("server") is None
        assert root.child("missing") is None

    def test_walk_yields_every_node_once(self, example_source: StaticCommand) -> None:
        walked = [names for names, _ in build_command_tree(example_source).walk()]
        assert walked == [("example",), ("example", "add"), ("example", "longest")]

    def test_later_source_changes_do_not_leak(self) -> None:
        commands = [StaticCommand("a")]
        source = StaticCommand("root", commands=commands)
        root = build_command_tree(source)
        source._commands.append(StaticCommand("b"))
        assert [c.name for c in root.children] == ["a"]


class TestDescribeTree:
    def test_leaf_is_bare_name(self) -> None:
        assert describe_tree(CommandNode(name="solo")) == "solo"

    def test_full_tree(self, example_source: StaticCommand) -> None:
        text = describe_tree(build_command_tree(example_source))
        assert text == "example: (val) [add: (val, five, ten) [], longest: (val) []]"
