"""Export helpers: call graph JSON and a standalone HTML flowchart viewer."""

from __future__ import annotations

import html
import json
from pathlib import Path

from .models import CallGraph, DiagramResult


def export_json(graph: CallGraph, output_file: Path) -> None:
    output_file.write_text(graph.to_json(), encoding="utf-8")


def export_html(
    source: str,
    result: DiagramResult,
    output_file: Path,
    title: str = "Java Flow",
) -> None:
    """Write a self-contained page showing the flowchart next to its source.

    Clicking a node calls ``onNodeClick("offset-<n>")`` (the directive every
    rendered node carries), which scrolls the source panel to the line that
    contains byte offset *n* and highlights it.
    """
    output_file.write_text(build_html(source, result, title), encoding="utf-8")


def build_html(source: str, result: DiagramResult, title: str = "Java Flow") -> str:
    # Byte offset of each line start; only "\n" ends a line, as in tree-sitter.
    lines = source.split("\n")
    if len(lines) > 1 and lines[-1] == "":
        lines.pop()
    line_starts = []
    offset = 0
    for text in lines:
        line_starts.append(offset)
        offset += len(text.encode("utf-8")) + 1

    source_lines = "\n".join(
        f'<span class="src-line" id="L{i + 1}">{html.escape(text) or " "}</span>'
        for i, text in enumerate(line.rstrip("\r") for line in lines)
    )
    services = ", ".join(html.escape(s) for s in result.external_services) or "none"

    return f"""<!doctype html>
<html>
<head>
  <meta charset="utf-8" />
  <title>{html.escape(title)}</title>
  <script src="https://cdn.jsdelivr.net/npm/mermaid@10/dist/mermaid.min.js"></script>
  <style>
    body {{ font-family: ui-monospace, SFMono-Regular, Menlo, monospace; margin: 20px; }}
    #container {{ display: grid; grid-template-columns: 3fr 2fr; gap: 18px; }}
    .panel {{ border: 1px solid #ddd; border-radius: 8px; padding: 10px; overflow: auto; max-height: 85vh; }}
    .src-line {{ display: block; white-space: pre; }}
    .src-line.active {{ background: #fff59d; }}
  </style>
</head>
<body>
  <h1>{html.escape(title)}</h1>
  <p>External services: {services}</p>
  <div id="container">
    <div class="panel"><pre class="mermaid">{html.escape(result.diagram_text)}</pre></div>
    <div class="panel"><pre id="source">{source_lines}</pre></div>
  </div>
  <script>
    const lineStarts = {json.dumps(line_starts)};
    function lineForOffset(offset) {{
      let line = 1;
      for (let i = 0; i < lineStarts.length; i++) {{
        if (lineStarts[i] <= offset) line = i + 1; else break;
      }}
      return line;
    }}
    window.onNodeClick = function (id) {{
      if (!id.startsWith('offset-')) return;
      const line = lineForOffset(parseInt(id.slice(7), 10));
      document.querySelectorAll('.src-line.active').forEach(el => el.classList.remove('active'));
      const el = document.getElementById('L' + line);
      if (el) {{ el.classList.add('active'); el.scrollIntoView({{ block: 'center' }}); }}
    }};
    mermaid.initialize({{ startOnLoad: true, securityLevel: 'loose' }});
  </script>
</body>
</html>
"""
