"""Call graph assembly: the two entry points the surrounding application uses."""

from __future__ import annotations

import logging
from typing import Optional

from .flow import extract_method_flow
from .models import CallGraph, DiagramResult, RenderConfig
from .parser import ParseError, collect_declarations, parse_tree
from .renderer import render

logger = logging.getLogger(__name__)


def parse(source: str, strict: bool = True) -> CallGraph:
    """Analyze one Java source unit.

    Raises :class:`ParseError` when no usable tree can be produced; with
    *strict* (default) a source that needed error recovery counts as broken.
    """
    tree, source_bytes = parse_tree(source, strict=strict)
    methods, declarations = collect_declarations(tree.root_node, source_bytes)

    graph = CallGraph(nodes=methods)
    for name, declaration in declarations:
        steps, callees = extract_method_flow(declaration, source_bytes, methods)
        graph.flows[name] = steps
        graph.calls[name] = callees

    logger.debug(
        "Analyzed %d method(s), %d internal call(s)",
        len(graph.nodes),
        sum(len(c) for c in graph.calls.values()),
    )
    return graph


def render_source(
    source: str,
    method: Optional[str] = None,
    config: Optional[RenderConfig] = None,
    strict: bool = True,
) -> DiagramResult:
    """Parse and render in one step, for callers that only hold source text.

    A parse failure does not raise: it comes back as an ``error: ...``
    diagram text with no external services, so a UI always has something
    to display.
    """
    try:
        graph = parse(source, strict=strict)
    except ParseError as exc:
        logger.warning("Could not render flow: %s", exc)
        return DiagramResult(diagram_text=f"error: {exc}", external_services=[])
    return render(graph, method=method, config=config)
