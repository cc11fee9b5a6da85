"""
Language adapters: per-language rules that classify tree-sitter nodes.

Each adapter answers three questions about a syntax tree:
- get_definition(code, node): is this node a definition? If so, which label and kind?
- get_call(code, node): is this node a call? If so, which callee name?
- get_lang(): which tree-sitter grammar parses this language?

Supports: C (.c, .h), Java (.java), JavaScript (.js, .jsx), Rust (.rs)

Labels are built by joining the verbatim text of a definition's leading
children up to (not including) its body node. The result is lossy;
downstream name matching splits it on whitespace.
"""

import logging
import uuid
from pathlib import Path
from types import MappingProxyType
from typing import Mapping

from tree_sitter import Language, Node

from .models import BlockKind, CodeNode

logger = logging.getLogger(__name__)

TREE_SITTER_C_AVAILABLE = False
try:
    import tree_sitter_c
    TREE_SITTER_C_AVAILABLE = True
except ImportError:
    pass

TREE_SITTER_JAVA_AVAILABLE = False
try:
    import tree_sitter_java
    TREE_SITTER_JAVA_AVAILABLE = True
except ImportError:
    pass

TREE_SITTER_JAVASCRIPT_AVAILABLE = False
try:
    import tree_sitter_javascript
    TREE_SITTER_JAVASCRIPT_AVAILABLE = True
except ImportError:
    pass

TREE_SITTER_RUST_AVAILABLE = False
try:
    import tree_sitter_rust
    TREE_SITTER_RUST_AVAILABLE = True
except ImportError:
    pass

# Label used when truncating a C signature at "(" leaves nothing
BAD_SYMBOL_LABEL = "bad symbol"


class UnsupportedLanguageError(ValueError):
    """Raised when no adapter is registered for a file extension."""
    def __init__(self, extension: str):
        self.extension = extension
        supported = ", ".join(sorted(EXTENSION_TO_LANGUAGE))
        super().__init__(
            f"Unsupported file extension: {extension or '<none>'} "
            f"(supported: {supported})"
        )


class GrammarUnavailableError(RuntimeError):
    """Raised when the tree-sitter grammar for a language cannot be loaded."""
    def __init__(self, language: str, reason: str):
        self.language = language
        self.reason = reason
        super().__init__(f"Grammar for {language} is unavailable: {reason}")


def _safe_decode(data: bytes) -> str:
    """Decode bytes as UTF-8, replacing invalid sequences."""
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError:
        return data.decode("utf-8", errors="replace")


def node_text(code: bytes, node: Node) -> str:
    """Verbatim source text of a node."""
    return _safe_decode(code[node.start_byte:node.end_byte])


def _new_id() -> str:
    return str(uuid.uuid4())


class SymbolQuery:
    """
    Base adapter. Subclasses fill in the class-level tables.

    definitions: (definition node type, terminator child type) pairs
    block_kinds: definition node type -> BlockKind
    call_kind: node type of a call expression
    callee_field: field of the call node holding the callee
    member_field: field of the callee holding a member name, if any
    """

    name: str = ""
    definitions: tuple[tuple[str, str], ...] = ()
    block_kinds: Mapping[str, BlockKind] = MappingProxyType({})
    call_kind: str = "call_expression"
    callee_field: str = "function"
    member_field: str | None = None

    def __init__(self):
        self._language: Language | None = None

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"

    def _grammar(self):
        """Return the raw grammar pointer from the grammar package."""
        raise NotImplementedError

    def get_lang(self) -> Language:
        """Return the tree-sitter Language for this adapter."""
        if self._language is None:
            try:
                self._language = Language(self._grammar())
            except GrammarUnavailableError:
                raise
            except Exception as e:
                raise GrammarUnavailableError(self.name, str(e)) from e
            logger.debug(f"Loaded tree-sitter grammar for {self.name}")
        return self._language

    def get_definition(self, code: bytes, node: Node) -> CodeNode | None:
        """Build a definition record for `node`, or None if it is not one."""
        for definition_kind, terminator in self.definitions:
            if node.type != definition_kind:
                continue
            parts = []
            for child in node.children:
                if child.type == terminator:
                    break
                parts.append(node_text(code, child))
            return CodeNode(
                id=_new_id(),
                label=self._format_label(" ".join(parts)),
                block=node_text(code, node),
                file_location=node.start_point[0] + 1,
                block_kind=self.block_kinds.get(definition_kind, BlockKind.NORMAL),
            )
        return None

    def get_call(self, code: bytes, node: Node) -> CodeNode | None:
        """Build a call-site record for `node`, or None if it is not a call.

        `obj.method(...)` is labeled `method`, `foo(...)` is labeled `foo`.
        """
        if node.type != self.call_kind:
            return None
        callee = node.child_by_field_name(self.callee_field)
        if callee is None:
            return None

        target = callee
        if self.member_field:
            member = callee.child_by_field_name(self.member_field)
            if member is not None:
                target = member

        return CodeNode(
            id=_new_id(),
            label=node_text(code, target),
            block=node_text(code, node),
            file_location=target.start_point[0] + 1,
            block_kind=BlockKind.CALL,
        )

    def _format_label(self, label: str) -> str:
        return label


class CQuery(SymbolQuery):
    name = "c"
    definitions = (("function_definition", "compound_statement"),)
    block_kinds = MappingProxyType({"function_definition": BlockKind.FUNCTION})
    member_field = "field"

    def _grammar(self):
        if not TREE_SITTER_C_AVAILABLE:
            raise GrammarUnavailableError(self.name, "tree-sitter-c not installed")
        return tree_sitter_c.language()

    def _format_label(self, label: str) -> str:
        # The declarator carries the parameter list; keep what precedes it
        return label.split("(", 1)[0] or BAD_SYMBOL_LABEL


class JavaQuery(SymbolQuery):
    name = "java"
    definitions = (
        ("class_declaration", "class_body"),
        ("method_declaration", "formal_parameters"),
        ("interface_declaration", "interface_body"),
    )
    block_kinds = MappingProxyType({
        "method_declaration": BlockKind.FUNCTION,
        "class_declaration": BlockKind.CLASS,
        "interface_declaration": BlockKind.CLASS,
    })
    call_kind = "method_invocation"
    callee_field = "name"

    def _grammar(self):
        if not TREE_SITTER_JAVA_AVAILABLE:
            raise GrammarUnavailableError(self.name, "tree-sitter-java not installed")
        return tree_sitter_java.language()


class JsQuery(SymbolQuery):
    name = "javascript"
    definitions = (
        ("function_declaration", "formal_parameters"),
        ("class_declaration", "class_body"),
        ("method_definition", "formal_parameters"),
    )
    block_kinds = MappingProxyType({
        "function_declaration": BlockKind.FUNCTION,
        "method_definition": BlockKind.FUNCTION,
        "class_declaration": BlockKind.CLASS,
    })
    member_field = "property"

    def _grammar(self):
        if not TREE_SITTER_JAVASCRIPT_AVAILABLE:
            raise GrammarUnavailableError(self.name, "tree-sitter-javascript not installed")
        return tree_sitter_javascript.language()

    def get_definition(self, code: bytes, node: Node) -> CodeNode | None:
        definition = super().get_definition(code, node)
        if definition is not None:
            return definition

        # Top-level `const a = 1, b = 2;` -> "const a b"
        if node.type == "lexical_declaration":
            parent = node.parent
            if parent is not None and parent.type == "program":
                return self._get_const(code, node)
        return None

    def _get_const(self, code: bytes, node: Node) -> CodeNode:
        parts = []
        kind_node = node.child_by_field_name("kind")
        if kind_node is not None:
            parts.append(node_text(code, kind_node))
        for child in node.children:
            if child.type == "variable_declarator":
                name = child.child_by_field_name("name")
                if name is not None:
                    parts.append(node_text(code, name))
        return CodeNode(
            id=_new_id(),
            label=" ".join(parts),
            block=node_text(code, node),
            file_location=node.start_point[0] + 1,
            block_kind=BlockKind.CONST,
        )


class RustQuery(SymbolQuery):
    name = "rust"
    definitions = (
        ("function_item", "parameters"),
        ("impl_item", "declaration_list"),
        ("struct_item", "field_declaration_list"),
        ("trait_item", "declaration_list"),
        ("function_signature_item", "parameters"),
    )
    block_kinds = MappingProxyType({
        "function_item": BlockKind.FUNCTION,
        "function_signature_item": BlockKind.FUNCTION,
        "struct_item": BlockKind.STRUCT,
        "trait_item": BlockKind.CLASS,
        "impl_item": BlockKind.CLASS,
    })
    member_field = "field"

    def _grammar(self):
        if not TREE_SITTER_RUST_AVAILABLE:
            raise GrammarUnavailableError(self.name, "tree-sitter-rust not installed")
        return tree_sitter_rust.language()


# Adapters are stateless apart from the lazily loaded grammar, so one
# instance per language is shared.
LANGUAGE_QUERIES: Mapping[str, SymbolQuery] = MappingProxyType({
    "c": CQuery(),
    "java": JavaQuery(),
    "javascript": JsQuery(),
    "rust": RustQuery(),
})

EXTENSION_TO_LANGUAGE: Mapping[str, str] = MappingProxyType({
    ".c": "c",
    ".h": "c",
    ".java": "java",
    ".js": "javascript",
    ".jsx": "javascript",
    ".rs": "rust",
})

SUPPORTED_LANGUAGES = frozenset(LANGUAGE_QUERIES)


def _normalize_extension(extension: str) -> str:
    extension = extension.lower()
    if extension and not extension.startswith("."):
        extension = "." + extension
    return extension


def is_supported_extension(extension: str) -> bool:
    """Check whether an extension ("rs" or ".rs") has an adapter."""
    return _normalize_extension(extension) in EXTENSION_TO_LANGUAGE


def detect_language(file_path: str | Path) -> str | None:
    """Language name for a file path, or None if unsupported."""
    return EXTENSION_TO_LANGUAGE.get(Path(file_path).suffix.lower())


def get_symbol_query(extension: str) -> SymbolQuery:
    """Select the adapter for a file extension.

    Raises:
        UnsupportedLanguageError: If no adapter handles the extension. There
            is no default adapter.
    """
    language = EXTENSION_TO_LANGUAGE.get(_normalize_extension(extension))
    if language is None:
        raise UnsupportedLanguageError(extension)
    return LANGUAGE_QUERIES[language]


def get_symbol_query_for_path(file_path: str | Path) -> SymbolQuery:
    """Select the adapter for a file path by its extension."""
    return get_symbol_query(Path(file_path).suffix)
