"""Export the laid-out chart to SVG, JSON and Mermaid Gantt formats."""

from __future__ import annotations

import json
from html import escape
from pathlib import Path
from typing import Any

from tui_gantt import dates
from tui_gantt.arrows import fmt_num
from tui_gantt.engine import GanttEngine
from tui_gantt.loader import task_to_record

SVG_STYLE = """
  .grid-row { fill: #ffffff; }
  .grid-row:nth-child(even) { fill: #f5f5f5; }
  .tick { stroke: #e0e0e0; stroke-width: 0.5; }
  .tick.thick { stroke: #c0c0c0; stroke-width: 1; }
  .ignored { fill: #ededed; }
  .upper-text { font: bold 14px sans-serif; fill: #333; }
  .lower-text { font: 12px sans-serif; fill: #555; text-anchor: middle; }
  .bar { fill: #b8c2cc; }
  .bar.invalid { fill: #e7b6b6; }
  .bar-progress { fill: #a3a3ff; }
  .bar-expected-progress { fill: #e0e0e0; }
  .bar-label { font: 12px sans-serif; fill: #fff; dominant-baseline: central; }
  .arrow { fill: none; stroke: #666; stroke-width: 1.4; }
  .today-highlight { stroke: #e15050; stroke-width: 2; }
"""


def render_svg(engine: GanttEngine) -> str:
    """Render the current layout as a standalone SVG document."""
    opts = engine.options
    axis = engine.axis
    header = opts.chart_header_height
    row_height = opts.padding + opts.bar_height
    width = axis.width
    height = header + row_height * len(engine.tasks) + opts.padding

    parts: list[str] = [
        f'<svg xmlns="http://www.w3.org/2000/svg" width="{fmt_num(width)}" '
        f'height="{fmt_num(height)}" viewBox="0 0 {fmt_num(width)} {fmt_num(height)}">',
        f"<style>{SVG_STYLE}</style>",
        '<g class="grid">',
    ]
    for i in range(len(engine.tasks)):
        y = header + row_height * i
        parts.append(
            f'<rect class="grid-row" x="0" y="{fmt_num(y)}" '
            f'width="{fmt_num(width)}" height="{fmt_num(row_height)}"/>'
        )
    for color, day, span in axis.highlights:
        parts.append(
            f'<rect class="holiday" x="{fmt_num(span.start)}" y="{fmt_num(header)}" '
            f'width="{fmt_num(span.width)}" height="{fmt_num(height - header)}" fill="{escape(color)}">'
            f"<title>{dates.format_date(day, 'YYYY-MM-DD')}</title></rect>"
        )
    for span in axis.ignored_regions:
        parts.append(
            f'<rect class="ignored" x="{fmt_num(span.start)}" y="{fmt_num(header)}" '
            f'width="{fmt_num(span.width)}" height="{fmt_num(height - header)}"/>'
        )
    today_x = engine.today_x()
    if today_x is not None:
        parts.append(
            f'<line class="today-highlight" x1="{fmt_num(today_x)}" y1="{fmt_num(header)}" '
            f'x2="{fmt_num(today_x)}" y2="{fmt_num(height)}"/>'
        )
    parts.append("</g>")

    parts.append('<g class="date">')
    lower_y = opts.upper_header_height + opts.lower_header_height / 2
    for label in axis.column_labels(opts.language):
        tick_class = "tick thick" if label.thick else "tick"
        parts.append(
            f'<line class="{tick_class}" x1="{fmt_num(label.x)}" y1="{fmt_num(header)}" '
            f'x2="{fmt_num(label.x)}" y2="{fmt_num(height)}"/>'
        )
        parts.append(
            f'<text class="lower-text" x="{fmt_num(label.x + axis.column_width / 2)}" '
            f'y="{fmt_num(lower_y)}">{escape(label.lower)}</text>'
        )
        if label.upper:
            parts.append(
                f'<text class="upper-text" x="{fmt_num(label.x + 5)}" '
                f'y="{fmt_num(opts.upper_header_height / 2)}">{escape(label.upper)}</text>'
            )
    parts.append("</g>")

    parts.append('<g class="arrows">')
    for arrow in engine.arrow_paths():
        parts.append(
            f'<path class="arrow" data-from="{escape(arrow.from_task_id)}" '
            f'data-to="{escape(arrow.to_task_id)}" d="{arrow.d}"/>'
        )
    parts.append("</g>")

    parts.append('<g class="bars">')
    radius = opts.bar_corner_radius
    date_format = engine.view_mode.date_format
    for task in engine.tasks:
        bar = engine.geometry(task.id)
        classes = " ".join(c for c in ("bar", "invalid" if task.invalid else "", task.custom_class) if c)
        parts.append(f'<g class="bar-wrapper" data-id="{escape(task.id)}">')
        span = " - ".join(dates.format_date(d, date_format, opts.language) for d in task.date_range)
        parts.append(f"<title>{escape(task.name)}: {escape(span)}</title>")
        parts.append(
            f'<rect class="{escape(classes)}" x="{fmt_num(bar.x)}" y="{fmt_num(bar.y)}" '
            f'width="{fmt_num(bar.width)}" height="{fmt_num(bar.height)}" '
            f'rx="{fmt_num(radius)}" ry="{fmt_num(radius)}"/>'
        )
        if bar.expected_progress_width > 0:
            parts.append(
                f'<rect class="bar-expected-progress" x="{fmt_num(bar.x)}" y="{fmt_num(bar.y)}" '
                f'width="{fmt_num(bar.expected_progress_width)}" height="{fmt_num(bar.height)}" '
                f'rx="{fmt_num(radius)}" ry="{fmt_num(radius)}"/>'
            )
        if bar.progress_width > 0:
            parts.append(
                f'<rect class="bar-progress" x="{fmt_num(bar.x)}" y="{fmt_num(bar.y)}" '
                f'width="{fmt_num(bar.progress_width)}" height="{fmt_num(bar.height)}" '
                f'rx="{fmt_num(radius)}" ry="{fmt_num(radius)}"/>'
            )
        parts.append(
            f'<text class="bar-label" x="{fmt_num(bar.x + 5)}" '
            f'y="{fmt_num(bar.rect.mid_y)}">{escape(task.name)}</text>'
        )
        parts.append("</g>")
    parts.append("</g>")
    parts.append("</svg>")
    return "\n".join(parts) + "\n"


def export_svg(engine: GanttEngine, output_path: Path) -> None:
    """Export the chart to an SVG file."""
    output_path.write_text(render_svg(engine), encoding="utf-8")


def chart_to_dict(engine: GanttEngine) -> dict[str, Any]:
    axis = engine.axis
    tasks = []
    for task in engine.tasks:
        bar = engine.geometry(task.id)
        record = task_to_record(task)
        record.update(
            index=task.index,
            invalid=task.invalid,
            actual_duration=task.actual_duration,
            ignored_duration=task.ignored_duration,
            bar={
                "x": bar.x,
                "y": bar.y,
                "width": bar.width,
                "height": bar.height,
                "progress_width": bar.progress_width,
                "expected_progress_width": bar.expected_progress_width,
            },
        )
        tasks.append(record)
    return {
        "view_mode": engine.view_mode.name,
        "axis": {
            "start": axis.start.isoformat(),
            "end": axis.end.isoformat(),
            "unit": axis.unit,
            "step": axis.step,
            "column_width": axis.column_width,
            "columns": len(axis.columns),
            "ignored_regions": [[r.start, r.end] for r in axis.ignored_regions],
        },
        "tasks": tasks,
        "arrows": [
            {"from": a.from_task_id, "to": a.to_task_id, "d": a.d}
            for a in engine.arrow_paths()
        ],
    }


def export_json(engine: GanttEngine, output_path: Path) -> None:
    """Export task bars and arrow paths to a JSON file."""
    output_path.write_text(
        json.dumps(chart_to_dict(engine), indent=2, ensure_ascii=False), encoding="utf-8"
    )


def _safe_mermaid_id(task_id: str) -> str:
    """Create a safe Mermaid task ID."""
    return "".join(c if c.isalnum() or c in "_-" else "_" for c in task_id)[:30]


def render_mermaid(engine: GanttEngine) -> str:
    lines: list[str] = ["gantt"]
    lines.append("    dateFormat YYYY-MM-DD")
    lines.append("")

    for task in engine.tasks:
        status_tag = ""
        if task.progress >= 100:
            status_tag = "done, "
        elif task.progress > 0:
            status_tag = "active, "
        task_id = _safe_mermaid_id(task.id)
        title = task.name.replace(":", " ")
        days = max(1, round(dates.diff(task.end, task.start, dates.DAY)))
        if task.dependencies:
            after = " ".join(_safe_mermaid_id(d) for d in task.dependencies)
            lines.append(f"    {title} :{status_tag}{task_id}, after {after}, {days}d")
        else:
            start_str = task.start.date().isoformat()
            lines.append(f"    {title} :{status_tag}{task_id}, {start_str}, {days}d")
    return "\n".join(lines) + "\n"


def export_mermaid(engine: GanttEngine, output_path: Path) -> None:
    """Export the chart to a Mermaid Gantt (.mmd) file."""
    output_path.write_text(render_mermaid(engine), encoding="utf-8")
