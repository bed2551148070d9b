"""Tests for dependency arrow routing."""

from tui_gantt.arrows import (
    CHEVRON,
    ArcTo,
    HorizontalTo,
    LineTo,
    MoveTo,
    VerticalTo,
    fmt_num,
    route_arrow,
    to_svg_path,
)
from tui_gantt.models import Bar


def _bar(x, y, width, height=30):
    return Bar(x=x, y=y, width=width, height=height, progress_width=0)


class TestSegments:
    def test_fmt_num(self):
        assert fmt_num(2.0) == "2"
        assert fmt_num(1.5) == "1.5"
        assert fmt_num(-0.125) == "-0.125"

    def test_segment_text(self):
        path = [
            MoveTo(1, 2),
            VerticalTo(4, relative=True),
            HorizontalTo(10),
            ArcTo(5, 5, 0, 0, 1, -5, 5),
            LineTo(3, 4),
        ]
        assert to_svg_path(path) == "M 1 2 v 4 H 10 a 5 5 0 0 1 -5 5 L 3 4"

    def test_chevron(self):
        assert to_svg_path(CHEVRON) == "m -5 -5 l 5 5 l -5 5"


class TestRouteArrow:
    def test_forward_arrow(self):
        a = _bar(0, 94, 120)
        b = _bar(60, 142, 150)
        arrow = route_arrow(a, b, 0, 1, padding=18, curve=5, from_task_id="a", to_task_id="b")
        assert arrow.clockwise == 0
        assert arrow.d == "M 30 124 V 152 a 5 5 0 0 0 5 5 L 47 157 m -5 -5 l 5 5 l -5 5"
        assert arrow.start == (30, 124)
        assert arrow.end == (47, 157)
        assert (arrow.from_task_id, arrow.to_task_id) == ("a", "b")

    def test_backward_arrow_goes_around(self):
        a = _bar(100, 94, 60)
        b = _bar(40, 142, 30)
        arrow = route_arrow(a, b, 0, 1, padding=18, curve=5)
        assert arrow.d == (
            "M 100 124 v 4 a 5 5 0 0 1 -5 5 H 22 a 5 5 0 0 0 -5 5 "
            "V 152 a 5 5 0 0 0 5 5 L 27 157 m -5 -5 l 5 5 l -5 5"
        )

    def test_target_above_source_is_clockwise(self):
        a = _bar(0, 142, 120)
        b = _bar(200, 94, 60)
        arrow = route_arrow(a, b, 1, 0, padding=18, curve=5)
        assert arrow.clockwise == 1
        arcs = [seg for seg in arrow.path if isinstance(seg, ArcTo)]
        assert arcs[0].sweep == 1
        assert arcs[0].y == -5
        assert arrow.end == (187, 109)

    def test_small_padding_shrinks_curve(self):
        a = _bar(100, 10, 60, height=4)
        b = _bar(40, 20, 30, height=4)
        arrow = route_arrow(a, b, 0, 1, padding=6, curve=5)
        assert arrow.path[1] == VerticalTo(0, relative=True)
        assert arrow.path[2] == ArcTo(3, 3, 0, 0, 1, -3, 3)

    def test_curve_clamped_when_target_close(self):
        a = _bar(0, 94, 40)
        b = _bar(15, 142, 60)
        arrow = route_arrow(a, b, 0, 1, padding=10, curve=5)
        # start_x 0, end_x 2: curve shrinks to the 2px gap
        assert arrow.start == (0, 124)
        arcs = [seg for seg in arrow.path if isinstance(seg, ArcTo)]
        assert arrow.path[1] == VerticalTo(155)
        assert arcs[0] == ArcTo(2, 2, 0, 0, 0, 2, 2)
        # the arc lands on the target row before the final line
        assert 155 + arcs[0].y == 157
        assert arrow.end == (2, 157)

    def test_curve_clamped_when_target_close_and_above(self):
        a = _bar(0, 142, 40)
        b = _bar(15, 94, 60)
        arrow = route_arrow(a, b, 1, 0, padding=10, curve=5)
        assert arrow.start == (0, 172)
        assert arrow.path[1] == VerticalTo(111)
        assert arrow.path[2] == ArcTo(2, 2, 0, 0, 1, 2, -2)
        assert arrow.end == (2, 109)
