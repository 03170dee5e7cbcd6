"""Core data models shared by analysis and rendering."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, FrozenSet, List, Optional, Tuple, Union

VISIBLE_MODIFIERS = ("public", "protected")


@dataclass(frozen=True)
class MethodNode:
    name: str
    range: Tuple[int, int]
    modifiers: Tuple[str, ...] = ()
    return_type: str = ""
    line: int = 0

    @property
    def is_visible(self) -> bool:
        """True for methods shown in the default (public surface) view."""
        return any(m in self.modifiers for m in VISIBLE_MODIFIERS)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "range": list(self.range),
            "modifiers": list(self.modifiers),
            "return_type": self.return_type,
            "line": self.line,
        }


# ---------------------------------------------------------------------------
# Flow steps (closed union: Call | Decision | Loop | Switch | Return)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Call:
    """A single invocation site."""
    kind: ClassVar[str] = "call"

    name: str
    is_external: bool
    raw_text: str
    offset: int
    line: int
    receiver: Optional[str] = None

    @property
    def service(self) -> Optional[str]:
        """Receiver prefix before the first dot, for external calls with a receiver."""
        if not self.is_external or not self.receiver:
            return None
        return self.receiver.split(".", 1)[0]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "name": self.name,
            "is_external": self.is_external,
            "raw_text": self.raw_text,
            "offset": self.offset,
            "line": self.line,
            "receiver": self.receiver,
        }


@dataclass(frozen=True)
class Decision:
    kind: ClassVar[str] = "decision"

    label: str
    offset: int
    line: int
    yes_branch: Tuple["FlowStep", ...] = ()
    no_branch: Tuple["FlowStep", ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "label": self.label,
            "offset": self.offset,
            "line": self.line,
            "yes_branch": [s.to_dict() for s in self.yes_branch],
            "no_branch": [s.to_dict() for s in self.no_branch],
        }


@dataclass(frozen=True)
class Loop:
    kind: ClassVar[str] = "loop"

    label: str
    offset: int
    line: int
    body: Tuple["FlowStep", ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "label": self.label,
            "offset": self.offset,
            "line": self.line,
            "body": [s.to_dict() for s in self.body],
        }


@dataclass(frozen=True)
class SwitchCase:
    """One case group of a switch: its display label and extracted steps."""
    label: str
    steps: Tuple["FlowStep", ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {"label": self.label, "steps": [s.to_dict() for s in self.steps]}


@dataclass(frozen=True)
class Switch:
    kind: ClassVar[str] = "switch"

    label: str
    offset: int
    line: int
    cases: Tuple[SwitchCase, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "label": self.label,
            "offset": self.offset,
            "line": self.line,
            "cases": [c.to_dict() for c in self.cases],
        }


@dataclass(frozen=True)
class Return:
    kind: ClassVar[str] = "return"

    label: str
    offset: int
    line: int

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "label": self.label, "offset": self.offset, "line": self.line}


FlowStep = Union[Call, Decision, Loop, Switch, Return]


# ---------------------------------------------------------------------------
# Assembled artifacts
# ---------------------------------------------------------------------------

@dataclass
class CallGraph:
    """Everything known about one Java source unit."""
    nodes: Dict[str, MethodNode] = field(default_factory=dict)
    calls: Dict[str, List[str]] = field(default_factory=dict)
    flows: Dict[str, List[FlowStep]] = field(default_factory=dict)

    def eligible_methods(self) -> List[str]:
        """Public and protected method names in ascending order."""
        return sorted(name for name, node in self.nodes.items() if node.is_visible)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "nodes": {name: node.to_dict() for name, node in self.nodes.items()},
            "calls": {name: list(callees) for name, callees in self.calls.items()},
            "flows": {name: [s.to_dict() for s in steps] for name, steps in self.flows.items()},
        }

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)


@dataclass(frozen=True)
class RenderConfig:
    ignored_variable_names: FrozenSet[str] = frozenset()
    ignored_service_names: FrozenSet[str] = frozenset()
    collapse_details: bool = False
    show_source_reference: bool = False


@dataclass
class DiagramResult:
    diagram_text: str
    external_services: List[str] = field(default_factory=list)
