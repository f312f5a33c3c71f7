"""Tests for nlf.tree_reader."""

from __future__ import annotations

import pytest

from nlf.errors import TreeReadError
from nlf.tree_reader import NodeModulesReader
from tests._fixtures.tree_builder import TreeBuilder


def test_read_resolves_declared_dependencies(tree_builder: TreeBuilder) -> None:
    tree_builder.manifest(name="app", version="1.0.0", dependencies={"a": "^1.0.0"})
    tree_builder.install("a", "1.0.0", dependencies={"b": "^2.0.0"}, license="MIT")
    tree_builder.install("b", "2.0.0", repository={"type": "git", "url": "git://example/b"})

    root = tree_builder.read()

    assert root.id == "app@1.0.0"
    a = root.dependencies["a"]
    assert a is not None
    assert a.id == "a@1.0.0"
    assert a.license == "MIT"
    b = a.dependencies["b"]
    assert b is not None
    assert b.version == "2.0.0"
    assert b.repository == "git://example/b"
    assert b.path == str(tree_builder.root / "node_modules" / "b")


def test_read_prefers_nested_installation(tree_builder: TreeBuilder) -> None:
    tree_builder.manifest(name="app", version="1.0.0", dependencies={"a": "*", "c": "*"})
    tree_builder.install("a", "1.0.0", dependencies={"c": "^1.0.0"})
    tree_builder.install("c", "1.0.0", under="node_modules/a")
    tree_builder.install("c", "2.0.0")

    root = tree_builder.read()

    assert root.dependencies["c"].version == "2.0.0"
    assert root.dependencies["a"].dependencies["c"].version == "1.0.0"


def test_read_shares_nodes_for_hoisted_packages(tree_builder: TreeBuilder) -> None:
    tree_builder.manifest(name="app", version="1.0.0", dependencies={"a": "*", "b": "*"})
    tree_builder.install("a", "1.0.0", dependencies={"c": "*"})
    tree_builder.install("b", "1.0.0", dependencies={"c": "*"})
    tree_builder.install("c", "1.0.0")

    root = tree_builder.read()

    assert root.dependencies["a"].dependencies["c"] is root.dependencies["b"].dependencies["c"]


def test_read_handles_scoped_packages(tree_builder: TreeBuilder) -> None:
    tree_builder.manifest(name="app", version="1.0.0", dependencies={"@scope/a": "*"})
    tree_builder.install("@scope/a", "1.0.0", dependencies={"b": "*"})
    tree_builder.install("b", "1.0.0")

    root = tree_builder.read()

    scoped = root.dependencies["@scope/a"]
    assert scoped.name == "@scope/a"
    assert scoped.dependencies["b"].id == "b@1.0.0"


def test_read_marks_missing_dependencies_as_unresolved(tree_builder: TreeBuilder) -> None:
    tree_builder.manifest(name="app", version="1.0.0", dependencies={"ghost": "*"})

    root = tree_builder.read()

    assert root.dependencies == {"ghost": None}


def test_read_resolves_root_dev_dependencies_only(tree_builder: TreeBuilder) -> None:
    tree_builder.manifest(
        name="app", version="1.0.0", dependencies={"a": "*"}, devDependencies={"tool": "*"}
    )
    tree_builder.install("a", "1.0.0", devDependencies={"tool": "*"})
    tree_builder.install("tool", "1.0.0")

    root = tree_builder.read()

    assert root.dev_dependencies["tool"].id == "tool@1.0.0"
    assert root.dependencies["a"].dev_dependencies == {"tool": None}


def test_read_flags_extraneous_packages(tree_builder: TreeBuilder) -> None:
    tree_builder.manifest(name="app", version="1.0.0", dependencies={"a": "*"})
    tree_builder.install("a", "1.0.0")
    tree_builder.install("stray", "0.1.0", dependencies={"a": "*"})

    root = tree_builder.read()

    stray = root.dependencies["stray"]
    assert stray.extraneous is True
    assert root.dependencies["a"].extraneous is False
    assert stray.dependencies["a"] is root.dependencies["a"]


def test_read_skips_packages_with_malformed_manifests(tree_builder: TreeBuilder) -> None:
    tree_builder.manifest(name="app", version="1.0.0", dependencies={"bad": "*"})
    tree_builder.write({"node_modules/bad/package.json": "{not json"})

    root = tree_builder.read()

    assert root.dependencies["bad"] is None


def test_read_handles_dependency_cycles(tree_builder: TreeBuilder) -> None:
    tree_builder.manifest(name="app", version="1.0.0", dependencies={"a": "*"})
    tree_builder.install("a", "1.0.0", dependencies={"b": "*"})
    tree_builder.install("b", "1.0.0", dependencies={"a": "*"})

    root = tree_builder.read()

    a = root.dependencies["a"]
    assert a.dependencies["b"].dependencies["a"] is a


def test_read_uses_empty_identity_when_manifest_lacks_name(tree_builder: TreeBuilder) -> None:
    tree_builder.manifest(name="app", version="1.0.0", dependencies={"anon": "*"})
    tree_builder.manifest("node_modules/anon")

    root = tree_builder.read()

    assert root.dependencies["anon"].id == "@"


def test_read_fails_without_root_manifest(tmp_path) -> None:
    with pytest.raises(TreeReadError):
        NodeModulesReader().read(str(tmp_path))


def test_read_does_not_flag_packages_required_by_extraneous_ones(tree_builder: TreeBuilder) -> None:
    tree_builder.manifest(name="app", version="1.0.0", dependencies={"a": "*"})
    tree_builder.install("a", "1.0.0")
    tree_builder.install("helper", "1.0.0")
    tree_builder.install("stray", "0.1.0", dependencies={"helper": "*"})

    root = tree_builder.read()

    stray = root.dependencies["stray"]
    assert stray.extraneous is True
    assert stray.dependencies["helper"].extraneous is False
    assert "helper" not in root.dependencies
