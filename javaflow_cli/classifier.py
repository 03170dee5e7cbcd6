"""Find method invocations in a subtree and classify them as internal or external."""

from __future__ import annotations

from typing import Any, Container, List, Optional

from .models import Call
from .parser import node_line, node_text

SELF_REFERENCE = "this"


def is_internal(name: str, receiver: Optional[str], registry: Container[str]) -> bool:
    """Decide whether a call stays inside the analyzed unit.

    ``name()`` resolves only when *name* is declared; ``this.name()`` is
    always internal; any other receiver makes the call external.
    """
    if receiver is None:
        return name in registry
    return receiver == SELF_REFERENCE


def find_calls(node: Any, source_bytes: bytes, registry: Container[str]) -> List[Call]:
    """Every ``method_invocation`` under *node* in document (pre-order) order.

    Invocations nested in arguments or receivers are included, so
    ``a(b())`` yields ``a`` then ``b``.
    """
    calls: List[Call] = []
    _collect(node, source_bytes, registry, calls)
    return calls


def _collect(node: Any, source_bytes: bytes, registry: Container[str], calls: List[Call]) -> None:
    if node.type == "method_invocation":
        call = _classify(node, source_bytes, registry)
        if call is not None:
            calls.append(call)
    for child in node.children:
        _collect(child, source_bytes, registry, calls)


def _classify(node: Any, source_bytes: bytes, registry: Container[str]) -> Optional[Call]:
    name_node = node.child_by_field_name("name")
    if name_node is None:
        return None
    name = node_text(source_bytes, name_node)

    obj_node = node.child_by_field_name("object")
    receiver = node_text(source_bytes, obj_node).strip() if obj_node is not None else None

    return Call(
        name=name,
        is_external=not is_internal(name, receiver, registry),
        raw_text=node_text(source_bytes, node),
        offset=node.start_byte,
        line=node_line(node),
        receiver=receiver,
    )
