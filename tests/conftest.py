"""Pytest configuration and fixtures."""

from collections import Counter

import pytest


@pytest.fixture
def write_source(tmp_path):
    """Write a source file under tmp_path and return its path."""
    def _write(name: str, text: str):
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text)
        return path
    return _write


@pytest.fixture
def check_outline():
    """Assert the structural invariants of an outline graph."""
    from codegraph.models import BlockKind

    def _check(graph):
        root = graph.nodes[0]
        assert root.level == 0
        assert root.block_kind == BlockKind.NORMAL
        assert root.file_location == 0

        incoming = Counter(edge.target for edge in graph.edges)
        assert incoming[0] == 0, "root must have no parent"
        for index in range(1, len(graph)):
            assert incoming[index] == 1, f"node {index} must have exactly one parent"

        for edge in graph.edges:
            parent = graph.nodes[edge.source]
            child = graph.nodes[edge.target]
            assert child.level == parent.level + 1, (
                f"{child.label!r} at level {child.level} under {parent.label!r} at {parent.level}"
            )

        # Every node reachable from the root, with one parent each: no cycles
        assert sorted(graph.descendants(0)) == list(range(1, len(graph)))
    return _check


@pytest.fixture
def outline_shape():
    """(label, kind, level) per node plus edges; ignores record ids."""
    def _shape(graph):
        nodes = [(n.label, n.block_kind, n.level) for n in graph.nodes[1:]]
        edges = [(e.source, e.target) for e in graph.edges]
        return nodes, edges
    return _shape
