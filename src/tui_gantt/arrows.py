"""Dependency arrow routing.

Paths are built from typed segments and turned into SVG path text only by
:func:`to_svg_path`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Union

from tui_gantt.models import Bar


def fmt_num(value: float) -> str:
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return f"{value:.3f}".rstrip("0").rstrip(".")


@dataclass(frozen=True)
class MoveTo:
    x: float
    y: float
    relative: bool = False

    def to_svg(self) -> str:
        return f"{'m' if self.relative else 'M'} {fmt_num(self.x)} {fmt_num(self.y)}"


@dataclass(frozen=True)
class LineTo:
    x: float
    y: float
    relative: bool = False

    def to_svg(self) -> str:
        return f"{'l' if self.relative else 'L'} {fmt_num(self.x)} {fmt_num(self.y)}"


@dataclass(frozen=True)
class VerticalTo:
    y: float
    relative: bool = False

    def to_svg(self) -> str:
        return f"{'v' if self.relative else 'V'} {fmt_num(self.y)}"


@dataclass(frozen=True)
class HorizontalTo:
    x: float
    relative: bool = False

    def to_svg(self) -> str:
        return f"{'h' if self.relative else 'H'} {fmt_num(self.x)}"


@dataclass(frozen=True)
class ArcTo:
    """Elliptical arc; relative by default since routes only use ``a``."""

    rx: float
    ry: float
    rotation: float
    large_arc: int
    sweep: int
    x: float
    y: float
    relative: bool = True

    def to_svg(self) -> str:
        cmd = "a" if self.relative else "A"
        return (
            f"{cmd} {fmt_num(self.rx)} {fmt_num(self.ry)} {fmt_num(self.rotation)} "
            f"{self.large_arc} {self.sweep} {fmt_num(self.x)} {fmt_num(self.y)}"
        )


Segment = Union[MoveTo, LineTo, VerticalTo, HorizontalTo, ArcTo]

CHEVRON: tuple[Segment, ...] = (
    MoveTo(-5, -5, relative=True),
    LineTo(5, 5, relative=True),
    LineTo(-5, 5, relative=True),
)


def to_svg_path(segments: Iterable[Segment]) -> str:
    return " ".join(seg.to_svg() for seg in segments)


@dataclass(frozen=True)
class Arrow:
    from_task_id: str
    to_task_id: str
    path: tuple[Segment, ...]
    clockwise: int = 0

    @property
    def d(self) -> str:
        return to_svg_path(self.path)

    @property
    def start(self) -> tuple[float, float]:
        first = self.path[0]
        return first.x, first.y

    @property
    def end(self) -> tuple[float, float]:
        """Arrow tip: the target point of the last absolute ``L``."""
        for seg in reversed(self.path):
            if isinstance(seg, LineTo) and not seg.relative:
                return seg.x, seg.y
        return self.start


def route_arrow(
    from_bar: Bar,
    to_bar: Bar,
    from_index: int,
    to_index: int,
    padding: float,
    curve: float,
    *,
    from_task_id: str = "",
    to_task_id: str = "",
) -> Arrow:
    """Route an arrow from the bottom of *from_bar* to the left edge of *to_bar*.

    When the target starts left of (or too close to) the source the path goes
    down, back past the target's left edge, then across; otherwise it drops
    straight down and turns right into the target.
    """
    start_x = from_bar.x + from_bar.width / 2
    while to_bar.x < start_x + padding and start_x > from_bar.x + padding:
        start_x -= 10
    start_x -= 10

    start_y = from_bar.y + from_bar.height
    end_x = to_bar.x - 13
    end_y = to_bar.y + to_bar.height / 2

    from_is_below_to = from_index > to_index
    clockwise = 1 if from_is_below_to else 0
    curve_y = -curve if from_is_below_to else curve

    path: list[Segment] = [MoveTo(start_x, start_y)]
    if to_bar.x <= from_bar.x + padding:
        down_1 = padding / 2 - curve
        if down_1 < 0:
            down_1 = 0
            curve = padding / 2
            curve_y = -curve if from_is_below_to else curve
        down_2 = to_bar.y + to_bar.height / 2 - curve_y
        left = to_bar.x - padding
        path += [
            VerticalTo(down_1, relative=True),
            ArcTo(curve, curve, 0, 0, 1, -curve, curve),
            HorizontalTo(left),
            ArcTo(curve, curve, 0, 0, clockwise, -curve, curve_y),
            VerticalTo(down_2),
            ArcTo(curve, curve, 0, 0, clockwise, curve, curve_y),
            LineTo(end_x, end_y),
        ]
    else:
        if end_x < start_x + curve:
            curve = end_x - start_x
            curve_y = -curve if from_is_below_to else curve
        offset = end_y + curve if from_is_below_to else end_y - curve
        path += [
            VerticalTo(offset),
            ArcTo(curve, curve, 0, 0, clockwise, curve, curve_y),
            LineTo(end_x, end_y),
        ]
    path += CHEVRON
    return Arrow(from_task_id, to_task_id, tuple(path), clockwise)
