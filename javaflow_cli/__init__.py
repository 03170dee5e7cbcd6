"""javaflow: call graphs and Mermaid flowcharts for Java source files."""

from .analyzer import parse, render_source
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
    SwitchCase,
)
from .parser import ParseError
from .renderer import render

__version__ = "0.1.0"

__all__ = [
    "Call",
    "CallGraph",
    "Decision",
    "DiagramResult",
    "FlowStep",
    "Loop",
    "MethodNode",
    "ParseError",
    "RenderConfig",
    "Return",
    "Switch",
    "SwitchCase",
    "parse",
    "render",
    "render_source",
]
