"""
Data model shared by the outline and call-site walks.

- CodeNode: one symbol record (a definition, a call site, or the file root)
- SymbolGraph: ordered records plus parent -> child edges forming a tree
- FileTree: directory listing of an indexed project
"""

from collections import deque
from dataclasses import dataclass, field
from enum import Enum


class BlockKind(str, Enum):
    """Classification of a symbol record."""

    FUNCTION = "function"
    METHOD = "method"
    STRUCT = "struct"
    IMPL = "impl"
    CLASS = "class"
    CONST = "const"
    NORMAL = "normal"
    CALL = "call"


@dataclass(slots=True)
class CodeNode:
    """
    A symbol record.

    label, block and file_location are fixed when the record is created.
    level and file_path are stamped by the walker that discovers it.
    """

    id: str
    label: str
    block: str  # verbatim source span
    file_location: int  # 1-based start line, 0 for the file root
    block_kind: BlockKind
    level: int = 0
    file_path: str = ""

    @property
    def location(self) -> tuple[str, int]:
        """(file_path, line) pair for open-at-location integrations."""
        return (self.file_path, self.file_location)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "label": self.label,
            "kind": self.block_kind.value,
            "file": self.file_path,
            "line": self.file_location,
            "level": self.level,
            "block": self.block,
        }


@dataclass(slots=True)
class Edge:
    source: int
    target: int

    def to_dict(self) -> dict:
        return {"from": self.source, "to": self.target}


@dataclass
class SymbolGraph:
    """
    Outline of one file.

    Node indices are stable handles; index 0 is the synthetic file root.
    Edges point from the nearest enclosing definition (or the root) to the
    nested definition, so every non-root node has exactly one parent.
    """

    nodes: list[CodeNode] = field(default_factory=list)
    edges: list[Edge] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.nodes)

    @property
    def root(self) -> CodeNode | None:
        return self.nodes[0] if self.nodes else None

    def add_node(self, node: CodeNode) -> int:
        """Append a node and return its index."""
        self.nodes.append(node)
        return len(self.nodes) - 1

    def add_edge(self, source: int, target: int):
        self.edges.append(Edge(source, target))

    def clear(self):
        self.nodes.clear()
        self.edges.clear()

    def get_node(self, index: int) -> CodeNode | None:
        if 0 <= index < len(self.nodes):
            return self.nodes[index]
        return None

    def node_index(self, node_id: str) -> int | None:
        """Find the index of the node with the given id."""
        for index, node in enumerate(self.nodes):
            if node.id == node_id:
                return index
        return None

    def children(self, index: int) -> list[int]:
        """Direct children of a node, in discovery order."""
        return [edge.target for edge in self.edges if edge.source == index]

    def parent(self, index: int) -> int | None:
        for edge in self.edges:
            if edge.target == index:
                return edge.source
        return None

    def descendants(self, index: int) -> list[int]:
        """
        All nodes below `index`, breadth-first.

        This is the set a presentation layer hides or shows when a subtree
        is collapsed.
        """
        children_of: dict[int, list[int]] = {}
        for edge in self.edges:
            children_of.setdefault(edge.source, []).append(edge.target)

        result = []
        queue = deque(children_of.get(index, []))
        while queue:
            current = queue.popleft()
            result.append(current)
            queue.extend(children_of.get(current, []))
        return result

    def to_dict(self) -> dict:
        return {
            "nodes": [node.to_dict() for node in self.nodes],
            "edges": [edge.to_dict() for edge in self.edges],
        }


class TreeType(str, Enum):
    FILE = "file"
    DIRECTORY = "directory"


@dataclass
class FileTree:
    """A directory listing node. Children are sorted by name."""

    label: str
    full_path: str
    tree_type: TreeType
    children: list["FileTree"] = field(default_factory=list)

    def files(self) -> list[str]:
        """Paths of every file below this node, in traversal order."""
        if self.tree_type == TreeType.FILE:
            return [self.full_path]
        paths = []
        for child in self.children:
            paths.extend(child.files())
        return paths

    def to_dict(self) -> dict:
        d = {
            "name": self.label,
            "path": self.full_path,
            "type": self.tree_type.value,
        }
        if self.tree_type == TreeType.DIRECTORY:
            d["children"] = [child.to_dict() for child in self.children]
        return d
