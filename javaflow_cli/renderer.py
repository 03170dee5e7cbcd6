"""Mermaid flowchart rendering of a :class:`CallGraph`.

Rendering never touches a syntax tree: it replays the step model stored in
the graph, so the same graph can be rendered many times with different
filters.  Per-render state (node counter, output lines, discovered
services) lives on a :class:`FlowchartRenderer` created for each call.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence, Set

from .flow import clean_label
from .models import (
    Call,
    CallGraph,
    Decision,
    DiagramResult,
    FlowStep,
    Loop,
    MethodNode,
    RenderConfig,
    Return,
    Switch,
)

logger = logging.getLogger(__name__)

HEADER = "flowchart TD"

CLASS_DEFS = (
    "  classDef public fill:#f9f,stroke:#333,stroke-width:2px;",
    "  classDef internal fill:#e1f5fe,stroke:#01579b,stroke-width:1px;",
    "  classDef external fill:#ffe0b2,stroke:#e65100,stroke-width:1px,stroke-dasharray: 5 5;",
    "  classDef decision fill:#fff9c4,stroke:#fbc02d,stroke-width:1px,shape:rhombus;",
    "  classDef loop fill:#e8f5e9,stroke:#2e7d32,stroke-width:1px;",
    "  classDef endNode fill:#fce4ec,stroke:#c62828,stroke-width:2px;",
)

MAX_LOOP_LABEL = 60
MAX_CASE_LABEL = 30

YES = "Yes"
NO = "No"
LOOP_BODY = "loop body"
REPEAT = "repeat"


def _truncate(text: str, limit: int) -> str:
    if len(text) <= limit:
        return text
    return text[: limit - 3] + "..."


def _esc(text: str) -> str:
    # node declarations must stay on one line
    return clean_label(text)


def collect_external_services(steps: Iterable[FlowStep]) -> Set[str]:
    """Receiver prefixes of every external call anywhere in *steps*."""
    found: Set[str] = set()
    for step in steps:
        if isinstance(step, Call):
            if step.service:
                found.add(step.service)
        elif isinstance(step, Decision):
            found |= collect_external_services(step.yes_branch)
            found |= collect_external_services(step.no_branch)
        elif isinstance(step, Loop):
            found |= collect_external_services(step.body)
        elif isinstance(step, Switch):
            for case in step.cases:
                found |= collect_external_services(case.steps)
    return found


def matches_ignore(receiver: str, names: Iterable[str]) -> bool:
    """True when *receiver* is one of *names* or a member path below one."""
    return any(receiver == name or receiver.startswith(name + ".") for name in names)


def select_targets(graph: CallGraph, method: Optional[str]) -> List[str]:
    if method is not None:
        if method in graph.nodes:
            return [method]
        logger.warning("Method '%s' is not declared; rendering all public methods", method)
    return graph.eligible_methods()


class FlowchartRenderer:
    """Single-use Mermaid writer for one render call."""

    def __init__(self, graph: CallGraph, config: RenderConfig) -> None:
        self.graph = graph
        self.config = config
        self.lines: List[str] = [HEADER]
        self.node_counter = 0
        self.detected_externals: Set[str] = set()

    # ------------------------------------------------------------------
    # Output primitives
    # ------------------------------------------------------------------

    def next_id(self) -> str:
        self.node_counter += 1
        return f"N{self.node_counter}"

    def _emit(self, line: str) -> None:
        self.lines.append(f"    {line}")

    def _node(self, shape: str, offset: int, style: Optional[str] = None) -> str:
        node_id = self.next_id()
        suffix = f":::{style}" if style else ""
        self._emit(f"{node_id}{shape}{suffix}")
        self._emit(f'click {node_id} call onNodeClick("offset-{offset}") "Scroll to source"')
        return node_id

    def _connect(self, frontier: Sequence[str], target: str, label: Optional[str]) -> None:
        for index, prev in enumerate(frontier):
            if label and index == 0:
                self._emit(f"{prev} -->|{label}| {target}")
            else:
                self._emit(f"{prev} --> {target}")

    def _label(self, text: str, line: int) -> str:
        if self.config.show_source_reference:
            text = f"{text} (L{line})"
        return _esc(text)

    # ------------------------------------------------------------------
    # Methods
    # ------------------------------------------------------------------

    def render_method(self, name: str) -> None:
        node = self.graph.nodes[name]
        steps = self.graph.flows.get(name, [])
        self.detected_externals |= collect_external_services(steps)

        self.lines.append(f'  subgraph sg_{name} ["{name}"]')
        self._emit("direction TB")
        start_id = self._node(f'(["{name}"])', node.range[0], "public")
        frontier = self.render_steps(steps, [start_id], None)
        end_id = self._node(f'(["End of {name}"])', node.range[1], "endNode")
        self._connect(frontier, end_id, None)
        self.lines.append("  end")

    def render_placeholder(self, node: MethodNode) -> None:
        self.detected_externals |= collect_external_services(self.graph.flows.get(node.name, []))
        self._node(f'(["{node.name}"])', node.range[0], "public")

    def finish(self) -> DiagramResult:
        self.lines.extend(CLASS_DEFS)
        return DiagramResult(
            diagram_text="\n".join(self.lines) + "\n",
            external_services=sorted(self.detected_externals),
        )

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def render_steps(
        self,
        steps: Sequence[FlowStep],
        frontier: List[str],
        pending_label: Optional[str],
    ) -> List[str]:
        """Render *steps* after *frontier*; return the new frontier.

        *pending_label* decorates the edge into the first node actually
        drawn and is then dropped.
        """
        for step in steps:
            next_frontier = self.render_step(step, frontier, pending_label)
            if next_frontier != frontier:
                pending_label = None
                frontier = next_frontier
        return frontier

    def render_step(self, step: FlowStep, frontier: List[str], label: Optional[str]) -> List[str]:
        if isinstance(step, Call):
            return self._call(step, frontier, label)
        if isinstance(step, Decision):
            return self._decision(step, frontier, label)
        if isinstance(step, Loop):
            return self._loop(step, frontier, label)
        if isinstance(step, Switch):
            return self._switch(step, frontier, label)
        if isinstance(step, Return):
            return self._return(step, frontier, label)
        raise TypeError(f"Unknown flow step: {step!r}")

    def _is_ignored(self, call: Call) -> bool:
        if not call.is_external or not call.receiver:
            return False
        return matches_ignore(call.receiver, self.config.ignored_service_names) or matches_ignore(
            call.receiver, self.config.ignored_variable_names
        )

    def _call(self, call: Call, frontier: List[str], label: Optional[str]) -> List[str]:
        if self._is_ignored(call):
            return frontier
        if call.is_external:
            text, style = f"External: {call.raw_text}", "external"
        else:
            text, style = call.name, "internal"
        node_id = self._node(f'["{self._label(text, call.line)}"]', call.offset, style)
        self._connect(frontier, node_id, label)
        return [node_id]

    def _decision(self, step: Decision, frontier: List[str], label: Optional[str]) -> List[str]:
        node_id = self._node(f'{{"{self._label(step.label, step.line)}"}}', step.offset, "decision")
        self._connect(frontier, node_id, label)

        exits = self.render_steps(step.yes_branch, [node_id], YES)
        exits = exits + self.render_steps(step.no_branch, [node_id], NO)
        return list(dict.fromkeys(exits))

    def _loop(self, step: Loop, frontier: List[str], label: Optional[str]) -> List[str]:
        text = self._label(_truncate(step.label, MAX_LOOP_LABEL), step.line)
        node_id = self._node(f'{{{{"{text}"}}}}', step.offset, "loop")
        self._connect(frontier, node_id, label)

        for exit_id in self.render_steps(step.body, [node_id], LOOP_BODY):
            if exit_id != node_id:
                self._emit(f"{exit_id} -.->|{REPEAT}| {node_id}")
        return [node_id]

    def _switch(self, step: Switch, frontier: List[str], label: Optional[str]) -> List[str]:
        node_id = self._node(f'{{"{self._label(step.label, step.line)}"}}', step.offset, "decision")
        self._connect(frontier, node_id, label)

        exits: List[str] = []
        for case in step.cases:
            case_label = _esc(_truncate(case.label, MAX_CASE_LABEL))
            exits.extend(self.render_steps(case.steps, [node_id], case_label))
        exits = list(dict.fromkeys(exits))
        return exits or [node_id]

    def _return(self, step: Return, frontier: List[str], label: Optional[str]) -> List[str]:
        node_id = self._node(f'["{self._label(step.label, step.line)}"]', step.offset)
        self._connect(frontier, node_id, label)
        return [node_id]


def render(
    graph: CallGraph,
    method: Optional[str] = None,
    config: Optional[RenderConfig] = None,
) -> DiagramResult:
    """Render *graph* as a Mermaid flowchart.

    With *method* naming a declared method only that method is drawn;
    otherwise every public/protected method is drawn in name order.
    ``collapse_details`` (honoured unless *method* names a declared
    method) draws one placeholder per method instead of its body.
    """
    config = config or RenderConfig()
    targets = select_targets(graph, method)
    logger.debug("Rendering %d method(s): %s", len(targets), ", ".join(targets))

    renderer = FlowchartRenderer(graph, config)
    if config.collapse_details and method not in graph.nodes:
        for name in targets:
            renderer.render_placeholder(graph.nodes[name])
    else:
        for name in targets:
            renderer.render_method(name)
    return renderer.finish()
