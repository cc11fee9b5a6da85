"""
Outline and call-site extraction over tree-sitter syntax trees.

Two pre-order walks share one parse:
- walk_outline: nests definition records into a SymbolGraph
- walk_calls: yields call-site records in discovery order

Key functions:
- fetch_symbols(path, code, query) - parse and build the outline graph
- fetch_calls(path, code, query) - parse and collect call sites
- extract_file(path) - both of the above for a file on disk
"""

import logging
import os
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator

from tree_sitter import Node, Parser, Tree

from .languages import SymbolQuery, _safe_decode, get_symbol_query_for_path
from .models import BlockKind, CodeNode, SymbolGraph

logger = logging.getLogger(__name__)

# tree-sitter memory usage grows with file size; override with CODEGRAPH_MAX_FILE_SIZE
DEFAULT_MAX_FILE_SIZE = 5_000_000  # 5MB
MAX_FILE_SIZE = int(os.environ.get("CODEGRAPH_MAX_FILE_SIZE", DEFAULT_MAX_FILE_SIZE))


class FileTooLargeError(Exception):
    """Raised when a file exceeds MAX_FILE_SIZE."""
    def __init__(self, file_path: Path, size: int, limit: int):
        self.file_path = file_path
        self.size = size
        self.limit = limit
        super().__init__(
            f"File {file_path} is {size:,} bytes, exceeds limit of {limit:,} bytes. "
            f"Set CODEGRAPH_MAX_FILE_SIZE environment variable to increase limit."
        )


class ParseError(Exception):
    """Raised when tree-sitter parsing fails."""
    def __init__(self, file_path: str, language: str, error: Exception):
        self.file_path = file_path
        self.language = language
        self.original_error = error
        super().__init__(f"Failed to parse {file_path} as {language}: {error}")


@dataclass
class FileSymbols:
    """Outline graph and call sites of one file."""

    path: str
    language: str
    graph: SymbolGraph
    calls: list[CodeNode] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "file": self.path,
            "language": self.language,
            "outline": self.graph.to_dict(),
            "calls": [call.to_dict() for call in self.calls],
        }


def _to_bytes(code: str | bytes) -> bytes:
    return code.encode("utf-8") if isinstance(code, str) else code


def parse_source(code: str | bytes, query: SymbolQuery, file_path: str = "<string>") -> Tree:
    """Parse source text with a fresh parser for the adapter's grammar.

    Parsers are not shared between calls, so independent files can be
    parsed concurrently.

    Raises:
        GrammarUnavailableError: If the grammar cannot be loaded
        ParseError: If tree-sitter fails to produce a tree
    """
    parser = Parser(query.get_lang())
    try:
        tree = parser.parse(_to_bytes(code))
    except Exception as e:
        logger.error(f"Tree-sitter parse failed for {file_path} ({query.name}): {e}")
        raise ParseError(file_path, query.name, e)

    if tree.root_node.has_error:
        # Error nodes match no rule; the walks still descend into them
        logger.debug(f"Syntax errors in {file_path} ({query.name}), results may be partial")
    return tree


def _seed_graph(graph: SymbolGraph, path: str, text: str) -> int:
    """Add the synthetic file root and return its index."""
    return graph.add_node(CodeNode(
        id=str(uuid.uuid4()),
        label=path,
        block=text,
        file_location=0,
        block_kind=BlockKind.NORMAL,
        level=0,
        file_path=path,
    ))


def walk_outline(root_node: Node, code: bytes, query: SymbolQuery, graph: SymbolGraph, path: str):
    """Attach every definition below `root_node` to a seeded graph.

    Pre-order: a definition becomes the parent of definitions nested inside
    it at level + 1. Nodes that are not definitions are transparent, so
    their descendants attach to the nearest enclosing definition.
    """
    # (node, parent index, level); children pushed in reverse keep pre-order
    stack: list[tuple[Node, int, int]] = [(root_node, 0, 1)]
    while stack:
        node, parent_index, level = stack.pop()
        definition = query.get_definition(code, node)
        if definition is not None:
            definition.file_path = path
            definition.level = level
            index = graph.add_node(definition)
            graph.add_edge(parent_index, index)
            parent_index = index
            level += 1
        for child in reversed(node.children):
            stack.append((child, parent_index, level))


def walk_calls(root_node: Node, code: bytes, query: SymbolQuery, path: str) -> Iterator[CodeNode]:
    """Yield call-site records below `root_node` in pre-order.

    Descends into every node, including the arguments of a matched call.
    """
    stack: list[Node] = [root_node]
    while stack:
        node = stack.pop()
        call = query.get_call(code, node)
        if call is not None:
            call.file_path = path
            yield call
        stack.extend(reversed(node.children))


def fetch_symbols(
    path: str,
    code: str | bytes,
    query: SymbolQuery,
    graph: SymbolGraph | None = None,
) -> SymbolGraph:
    """Build the outline graph of one source text.

    Args:
        path: File path stamped on every record; also the root's label
        code: Source text
        query: Adapter for the file's language
        graph: Optional graph to fill; it is cleared first

    Returns:
        The graph, with the file root at index 0
    """
    source = _to_bytes(code)
    tree = parse_source(source, query, path)

    if graph is None:
        graph = SymbolGraph()
    else:
        graph.clear()
    text = code if isinstance(code, str) else _safe_decode(code)
    _seed_graph(graph, path, text)
    walk_outline(tree.root_node, source, query, graph, path)
    logger.debug(f"Outline of {path}: {len(graph) - 1} definitions")
    return graph


def iter_calls(path: str, code: str | bytes, query: SymbolQuery) -> Iterator[CodeNode]:
    """Parse eagerly, then lazily yield call sites in discovery order."""
    source = _to_bytes(code)
    tree = parse_source(source, query, path)
    return walk_calls(tree.root_node, source, query, path)


def fetch_calls(path: str, code: str | bytes, query: SymbolQuery) -> list[CodeNode]:
    """Collect every call site of one source text, in discovery order."""
    return list(iter_calls(path, code, query))


def read_source(file_path: str | Path) -> str:
    """Read a source file as text, replacing invalid UTF-8.

    Raises:
        FileTooLargeError: If the file exceeds MAX_FILE_SIZE
        OSError: If the file cannot be read
    """
    file_path = Path(file_path)
    size = file_path.stat().st_size
    if size > MAX_FILE_SIZE:
        raise FileTooLargeError(file_path, size, MAX_FILE_SIZE)
    return _safe_decode(file_path.read_bytes())


def extract_file(file_path: str | Path) -> FileSymbols:
    """Outline and call sites of a file, from a single parse.

    Raises:
        UnsupportedLanguageError: If the extension has no adapter; raised
            before the file is read
        FileTooLargeError, OSError: If the file cannot be read
        GrammarUnavailableError, ParseError: If parsing fails
    """
    query = get_symbol_query_for_path(file_path)
    path = str(file_path)
    code = read_source(file_path)
    source = code.encode("utf-8")
    tree = parse_source(source, query, path)

    graph = SymbolGraph()
    _seed_graph(graph, path, code)
    walk_outline(tree.root_node, source, query, graph, path)
    calls = list(walk_calls(tree.root_node, source, query, path))
    logger.debug(f"Extracted {path}: {len(graph) - 1} definitions, {len(calls)} calls")
    return FileSymbols(path=path, language=query.name, graph=graph, calls=calls)
