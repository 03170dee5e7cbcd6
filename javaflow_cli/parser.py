"""Java syntax trees via Tree-sitter, and method declaration collection.

Tree-sitter produces a *concrete syntax tree* (CST) with byte ranges and
named fields for every node.  This module owns the only direct contact with
the grammar:

- loading the Java ``Language`` from ``tree-sitter-java``
- turning source text into a tree (:func:`parse_tree`)
- walking class bodies to build the method registry
  (:func:`collect_declarations`)
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Tuple

from .models import MethodNode

logger = logging.getLogger(__name__)

# Node kinds that declare a method (constructors have no return type).
DECLARATION_KINDS = {"method_declaration", "constructor_declaration"}

# Type declarations and bodies that may contain member declarations.
CONTAINER_KINDS = {
    "program",
    "class_declaration",
    "class_body",
    "interface_declaration",
    "interface_body",
    "enum_declaration",
    "enum_body",
    "enum_body_declarations",
    "record_declaration",
}

_LANGUAGE: Any = None


class ParseError(Exception):
    """Raised when Java source cannot be turned into a usable syntax tree."""


# ===================================================================
# Tree-sitter plumbing
# ===================================================================

def load_java_language() -> Any:
    """Return the Tree-sitter Java ``Language`` (loaded once per process)."""
    global _LANGUAGE
    if _LANGUAGE is not None:
        return _LANGUAGE
    try:
        import tree_sitter_java
        from tree_sitter import Language
    except ImportError as exc:
        raise ParseError(
            "tree-sitter Java grammar is not installed. "
            "Install with: pip install tree-sitter tree-sitter-java"
        ) from exc

    try:
        # tree-sitter >=0.22 per-language packages expose a
        # language() function that returns the Language capsule.
        _LANGUAGE = Language(tree_sitter_java.language())
    except Exception as exc:
        raise ParseError(f"Could not load tree-sitter grammar for java: {exc}") from exc
    logger.debug("Loaded tree-sitter parser for java")
    return _LANGUAGE


def node_text(source_bytes: bytes, node: Any) -> str:
    """Slice a node's ``[start_byte:end_byte]`` out of the source bytes."""
    return source_bytes[node.start_byte:node.end_byte].decode("utf-8", errors="replace")


def node_line(node: Any) -> int:
    """1-based line of the node's first character."""
    return node.start_point[0] + 1


def find_first_error(node: Any) -> Optional[Any]:
    """Return the first ``ERROR`` or missing node in document order, if any."""
    if node.type == "ERROR" or node.is_missing:
        return node
    if not node.has_error:
        return None
    for child in node.children:
        found = find_first_error(child)
        if found is not None:
            return found
    return None


def parse_tree(source: str, strict: bool = True) -> Tuple[Any, bytes]:
    """Parse *source* into a Tree-sitter tree.

    Returns ``(tree, source_bytes)``.  With *strict* set, a tree that needed
    error recovery is rejected with :class:`ParseError`; otherwise the
    error-tolerant tree is returned as-is.
    """
    language = load_java_language()
    from tree_sitter import Parser as TSParser

    parser = TSParser(language)
    source_bytes = source.encode("utf-8")
    tree = parser.parse(source_bytes)
    if tree is None:
        raise ParseError("Failed to parse source")

    if strict:
        bad = find_first_error(tree.root_node)
        if bad is not None:
            row, col = bad.start_point
            what = f"missing '{bad.type}'" if bad.is_missing else "syntax error"
            raise ParseError(f"{what} at line {row + 1}, column {col + 1}")
    return tree, source_bytes


# ===================================================================
# Declaration collection
# ===================================================================

def collect_declarations(
    root: Any,
    source_bytes: bytes,
) -> Tuple[Dict[str, MethodNode], List[Tuple[str, Any]]]:
    """Find every method declaration reachable through type bodies.

    Returns the registry (name -> :class:`MethodNode`) and the ordered
    ``(name, declaration node)`` pairs for flow extraction.  A later
    declaration with an already-seen name replaces the earlier registry
    entry.
    """
    methods: Dict[str, MethodNode] = {}
    declarations: List[Tuple[str, Any]] = []
    _walk_declarations(root, source_bytes, methods, declarations)
    logger.debug("Collected %d method declaration(s)", len(declarations))
    return methods, declarations


def _walk_declarations(
    node: Any,
    source_bytes: bytes,
    methods: Dict[str, MethodNode],
    declarations: List[Tuple[str, Any]],
) -> None:
    for child in node.children:
        if child.type in DECLARATION_KINDS:
            method = _method_node(child, source_bytes)
            if method is None:
                continue
            if method.name in methods:
                logger.debug("Method '%s' declared again; keeping the later one", method.name)
            methods[method.name] = method
            declarations.append((method.name, child))
        elif child.type in CONTAINER_KINDS:
            _walk_declarations(child, source_bytes, methods, declarations)


def _method_node(decl: Any, source_bytes: bytes) -> Optional[MethodNode]:
    name_node = decl.child_by_field_name("name")
    if name_node is None:
        return None
    name = node_text(source_bytes, name_node).strip()

    ret_node = decl.child_by_field_name("type")
    return_type = node_text(source_bytes, ret_node).strip() if ret_node is not None else ""

    return MethodNode(
        name=name,
        range=(decl.start_byte, decl.end_byte),
        modifiers=tuple(_modifiers(decl, source_bytes)),
        return_type=return_type,
        line=node_line(decl),
    )


def _modifiers(decl: Any, source_bytes: bytes) -> List[str]:
    mods_node = decl.child_by_field_name("modifiers")
    if mods_node is None:
        mods_node = next((c for c in decl.children if c.type == "modifiers"), None)
    if mods_node is None:
        return []

    tokens = [node_text(source_bytes, c).strip() for c in mods_node.children]
    tokens = [t for t in tokens if t]
    if not tokens:
        # single-token modifiers node with no children
        whole = node_text(source_bytes, mods_node).strip()
        if whole:
            tokens.append(whole)
    return tokens
