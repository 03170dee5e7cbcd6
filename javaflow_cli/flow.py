"""Control-flow extraction: method body syntax tree -> nested FlowStep model.

The extractor dispatches on statement kind.  Kinds it does not know fall
back to a walk over their named children, so unfamiliar syntax degrades to
"whatever calls and structures we can find inside" instead of being dropped.
"""

from __future__ import annotations

import logging
from typing import Any, Container, List, Optional, Tuple

from .classifier import find_calls
from .models import Call, Decision, FlowStep, Loop, Return, Switch, SwitchCase
from .parser import node_line, node_text

logger = logging.getLogger(__name__)

BLOCK_KINDS = {"block", "constructor_body"}
CALL_STATEMENT_KINDS = {
    "expression_statement",
    "local_variable_declaration",
    "throw_statement",
    "yield_statement",
    "explicit_constructor_invocation",
    "method_invocation",
}
LOOP_KINDS = {"for_statement", "while_statement", "do_statement", "enhanced_for_statement"}
SWITCH_KINDS = {"switch_expression", "switch_statement"}
CASE_GROUP_KINDS = {"switch_block_statement_group", "switch_rule"}

# Declarations and comments inside a body are not part of its flow.
SKIPPED_KINDS = {
    "class_declaration",
    "interface_declaration",
    "enum_declaration",
    "record_declaration",
    "method_declaration",
    "line_comment",
    "block_comment",
}

PLACEHOLDER = "(...)"


def clean_label(text: str) -> str:
    """Make literal source text safe for a single-line quoted diagram label."""
    return text.replace("\r", "").replace("\n", " ").replace('"', "'")


class FlowExtractor:
    """Builds the step model for one method body.

    ``internal_calls`` accumulates the names of registry-resolved internal
    calls in traversal order, including calls that do not become steps
    (return expressions, loop headers, switch subjects).
    """

    def __init__(self, source_bytes: bytes, registry: Container[str]) -> None:
        self.source_bytes = source_bytes
        self.registry = registry
        self.internal_calls: List[str] = []

    def extract(self, node: Optional[Any]) -> List[FlowStep]:
        if node is None:
            return []
        kind = node.type
        if kind in SKIPPED_KINDS:
            return []
        if kind in BLOCK_KINDS:
            return self._children(node)
        if kind in CALL_STATEMENT_KINDS:
            return list(self._calls_in(node))
        if kind == "return_statement":
            return [self._return(node)]
        if kind == "if_statement":
            return self._if(node)
        if kind in LOOP_KINDS:
            return [self._loop(node)]
        if kind in SWITCH_KINDS:
            return [self._switch(node)]
        return self._children(node)

    # ------------------------------------------------------------------
    # Statement handlers
    # ------------------------------------------------------------------

    def _children(self, node: Any) -> List[FlowStep]:
        steps: List[FlowStep] = []
        for child in node.named_children:
            steps.extend(self.extract(child))
        return steps

    def _calls_in(self, node: Optional[Any]) -> List[Call]:
        if node is None:
            return []
        calls = find_calls(node, self.source_bytes, self.registry)
        self.internal_calls.extend(
            c.name for c in calls if not c.is_external and c.name in self.registry
        )
        return calls

    def _text(self, node: Any) -> str:
        return node_text(self.source_bytes, node)

    def _return(self, node: Any) -> Return:
        self._calls_in(node)
        return Return(label=clean_label(self._text(node)), offset=node.start_byte, line=node_line(node))

    def _if(self, node: Any) -> List[FlowStep]:
        condition = node.child_by_field_name("condition")
        steps: List[FlowStep] = list(self._calls_in(condition))

        anchor = condition if condition is not None else node
        label = clean_label(self._text(condition)) if condition is not None else f"if {PLACEHOLDER}"
        steps.append(
            Decision(
                label=label,
                offset=anchor.start_byte,
                line=node_line(anchor),
                yes_branch=tuple(self.extract(node.child_by_field_name("consequence"))),
                no_branch=tuple(self.extract(node.child_by_field_name("alternative"))),
            )
        )
        return steps

    def _loop(self, node: Any) -> Loop:
        body = node.child_by_field_name("body")
        for child in node.named_children:
            if body is None or child.id != body.id:
                self._calls_in(child)

        return Loop(
            label=clean_label(self._loop_label(node)),
            offset=node.start_byte,
            line=node_line(node),
            body=tuple(self.extract(body)),
        )

    def _loop_label(self, node: Any) -> str:
        kind = node.type
        if kind == "for_statement":
            return f"for {PLACEHOLDER}"
        if kind == "enhanced_for_statement":
            name = self._field_text(node, "name")
            value = self._field_text(node, "value")
            if not (name and value):
                return f"for {PLACEHOLDER}"
            return f"for ({name} : {value})"
        condition = self._field_text(node, "condition") or PLACEHOLDER
        if kind == "do_statement":
            return f"do...while {condition}"
        return f"while {condition}"

    def _field_text(self, node: Any, field_name: str) -> str:
        child = node.child_by_field_name(field_name)
        return self._text(child).strip() if child is not None else ""

    def _switch(self, node: Any) -> Switch:
        condition = node.child_by_field_name("condition")
        self._calls_in(condition)
        subject = self._text(condition).strip() if condition is not None else PLACEHOLDER

        cases: List[SwitchCase] = []
        body = node.child_by_field_name("body")
        if body is not None:
            for group in body.named_children:
                if group.type in CASE_GROUP_KINDS:
                    cases.append(self._case(group))

        return Switch(
            label=clean_label(f"switch {subject}"),
            offset=node.start_byte,
            line=node_line(node),
            cases=tuple(cases),
        )

    def _case(self, group: Any) -> SwitchCase:
        labels: List[str] = []
        steps: List[FlowStep] = []
        for child in group.named_children:
            if child.type == "switch_label":
                labels.append(self._text(child).strip())
            else:
                steps.extend(self.extract(child))
        label = ", ".join(labels) if labels else "case"
        return SwitchCase(label=clean_label(label), steps=tuple(steps))


def extract_method_flow(
    declaration: Any,
    source_bytes: bytes,
    registry: Container[str],
) -> Tuple[List[FlowStep], List[str]]:
    """Return ``(steps, internal callee names)`` for one method declaration."""
    extractor = FlowExtractor(source_bytes, registry)
    steps = extractor.extract(declaration.child_by_field_name("body"))
    return steps, extractor.internal_calls
