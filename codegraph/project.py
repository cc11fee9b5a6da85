"""
Project-wide aggregation of call sites.

The project call index is the concatenation, in file traversal order, of
each file's call sites in discovery order. Traversal visits directory
entries sorted by name, depth first, so the order is reproducible.

Key functions:
- build_file_tree(root) - directory listing of the project
- scan_project(root) - files with a registered language adapter
- collect_calls(files) - call index over an explicit file list
- build_call_index(root) - call index over a directory
- index_project(root) - file tree and call index together
- find_related_calls(node, calls) - name-token match of calls to a definition
"""

import logging
import os
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path

from .extractor import FileTooLargeError, ParseError, fetch_calls, read_source
from .languages import (
    LANGUAGE_QUERIES,
    UnsupportedLanguageError,
    detect_language,
    get_symbol_query_for_path,
)
from .models import CodeNode, FileTree, TreeType

logger = logging.getLogger(__name__)

# Below this many files, sequential extraction beats process spawn overhead
MIN_FILES_FOR_PARALLEL = 50
DEFAULT_MAX_WORKERS = min(os.cpu_count() or 4, 8)
MAX_WORKERS = int(os.environ.get("CODEGRAPH_MAX_WORKERS", DEFAULT_MAX_WORKERS))


@dataclass
class ProjectIndex:
    """File tree and call index of one project directory."""

    root: str
    tree: FileTree
    calls: list[CodeNode] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "root": self.root,
            "files": self.tree.to_dict(),
            "calls": [call.to_dict() for call in self.calls],
        }


def _check_directory(root: Path):
    if not root.exists():
        raise FileNotFoundError(f"Directory not found: {root}")
    if not root.is_dir():
        raise NotADirectoryError(f"Not a directory: {root}")


def _build_tree(directory: Path) -> FileTree:
    tree = FileTree(
        label=directory.name or str(directory),
        full_path=str(directory),
        tree_type=TreeType.DIRECTORY,
    )
    try:
        entries = sorted(os.scandir(directory), key=lambda entry: entry.name)
    except OSError as e:
        logger.warning(f"Could not list {directory}: {e}")
        return tree

    for entry in entries:
        # Symlinked directories are not followed, so cycles cannot occur
        if entry.is_dir(follow_symlinks=False):
            tree.children.append(_build_tree(Path(entry.path)))
        elif entry.is_file():
            tree.children.append(FileTree(
                label=entry.name,
                full_path=entry.path,
                tree_type=TreeType.FILE,
            ))
    return tree


def build_file_tree(root: str | Path) -> FileTree:
    """Directory tree of every regular file under root.

    Raises:
        FileNotFoundError: If root does not exist
        NotADirectoryError: If root is not a directory
    """
    root = Path(root)
    _check_directory(root)
    return _build_tree(root)


def scan_project(root: str | Path) -> list[str]:
    """
    Find every source file under root that has a language adapter.

    Files with other extensions are skipped silently.

    Returns:
        File paths in traversal order
    """
    tree = build_file_tree(root)
    return [path for path in tree.files() if detect_language(path) is not None]


def _collect_file_calls(file_path: str) -> list[CodeNode]:
    """Call sites of one file; runs in worker processes."""
    try:
        query = get_symbol_query_for_path(file_path)
    except UnsupportedLanguageError:
        return []

    try:
        code = read_source(file_path)
        return fetch_calls(file_path, code, query)
    except (FileTooLargeError, ParseError, OSError) as e:
        logger.warning(f"Skipping {file_path}: {e}")
        return []


def collect_calls(files: list[str | Path], max_workers: int | None = None) -> list[CodeNode]:
    """Concatenate the call sites of `files`, in the given order.

    For MIN_FILES_FOR_PARALLEL files or more, extraction runs in a process
    pool; each worker builds its own parsers, and map() returns results in
    input order.

    Raises:
        GrammarUnavailableError: If a needed grammar cannot be loaded
    """
    file_list = [str(f) for f in files]

    # Surface missing grammars here instead of inside a worker
    languages = {detect_language(f) for f in file_list}
    for language in sorted(lang for lang in languages if lang is not None):
        LANGUAGE_QUERIES[language].get_lang()

    workers = MAX_WORKERS if max_workers is None else max_workers
    if len(file_list) >= MIN_FILES_FOR_PARALLEL and workers > 1:
        with ProcessPoolExecutor(max_workers=workers) as executor:
            per_file = list(executor.map(_collect_file_calls, file_list))
    else:
        per_file = [_collect_file_calls(f) for f in file_list]

    calls: list[CodeNode] = []
    for file_calls in per_file:
        calls.extend(file_calls)
    logger.debug(f"Collected {len(calls)} calls from {len(file_list)} files")
    return calls


def build_call_index(root: str | Path, max_workers: int | None = None) -> list[CodeNode]:
    """Project call index for every supported file under root."""
    return collect_calls(scan_project(root), max_workers=max_workers)


def index_project(root: str | Path, max_workers: int | None = None) -> ProjectIndex:
    """File tree and call index of a project, from one directory traversal."""
    tree = build_file_tree(root)
    files = [path for path in tree.files() if detect_language(path) is not None]
    calls = collect_calls(files, max_workers=max_workers)
    return ProjectIndex(root=str(root), tree=tree, calls=calls)


def find_related_calls(node: CodeNode, calls: list[CodeNode]) -> list[CodeNode]:
    """
    Calls whose callee name equals a whitespace-separated token of node.label.

    This is a name match, not resolution. It reports unrelated symbols that
    share a name (false positives) and misses calls made through an alias or
    a renamed import (false negatives). Results keep call-index order.
    """
    tokens = set(node.label.split())
    return [call for call in calls if call.label in tokens]
