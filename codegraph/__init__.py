"""Definition outlines and call sites from C, Java, JavaScript and Rust sources."""

from .extractor import (
    FileSymbols,
    FileTooLargeError,
    ParseError,
    extract_file,
    fetch_calls,
    fetch_symbols,
    iter_calls,
    parse_source,
    read_source,
    walk_calls,
    walk_outline,
)
from .languages import (
    BAD_SYMBOL_LABEL,
    EXTENSION_TO_LANGUAGE,
    LANGUAGE_QUERIES,
    SUPPORTED_LANGUAGES,
    CQuery,
    GrammarUnavailableError,
    JavaQuery,
    JsQuery,
    RustQuery,
    SymbolQuery,
    UnsupportedLanguageError,
    detect_language,
    get_symbol_query,
    get_symbol_query_for_path,
    is_supported_extension,
)
from .models import BlockKind, CodeNode, Edge, FileTree, SymbolGraph, TreeType
from .project import (
    ProjectIndex,
    build_call_index,
    build_file_tree,
    collect_calls,
    find_related_calls,
    index_project,
    scan_project,
)

__version__ = "0.1.0"

__all__ = [
    "BAD_SYMBOL_LABEL",
    "EXTENSION_TO_LANGUAGE",
    "LANGUAGE_QUERIES",
    "SUPPORTED_LANGUAGES",
    "BlockKind",
    "CQuery",
    "CodeNode",
    "Edge",
    "FileSymbols",
    "FileTooLargeError",
    "FileTree",
    "GrammarUnavailableError",
    "JavaQuery",
    "JsQuery",
    "ParseError",
    "ProjectIndex",
    "RustQuery",
    "SymbolGraph",
    "SymbolQuery",
    "TreeType",
    "UnsupportedLanguageError",
    "build_call_index",
    "build_file_tree",
    "collect_calls",
    "detect_language",
    "extract_file",
    "fetch_calls",
    "fetch_symbols",
    "find_related_calls",
    "get_symbol_query",
    "get_symbol_query_for_path",
    "index_project",
    "is_supported_extension",
    "iter_calls",
    "parse_source",
    "read_source",
    "scan_project",
    "walk_calls",
    "walk_outline",
]
