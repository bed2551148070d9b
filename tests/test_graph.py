"""Tests for the dependency graph."""

from datetime import datetime

from tui_gantt.graph import DependencyGraph
from tui_gantt.models import Task


def _tasks(deps: dict[str, tuple[str, ...]]) -> list[Task]:
    start = datetime(2024, 1, 1)
    end = datetime(2024, 1, 2)
    return [Task(id=i, name=i, start=start, end=end, dependencies=d) for i, d in deps.items()]


class TestDependents:
    def test_direct_dependents(self):
        graph = DependencyGraph(_tasks({"a": (), "b": ("a",), "c": ("a",), "d": ("b",)}))
        assert graph.get_dependents("a") == ["b", "c"]
        assert graph.get_dependents("d") == []
        assert graph.get_dependents("missing") == []

    def test_transitive_dependents(self):
        graph = DependencyGraph(_tasks({"a": (), "b": ("a",), "c": ("b",), "d": ("c", "a")}))
        assert graph.get_all_dependents("a") == ["b", "d", "c"]
        assert graph.get_all_dependents("c") == ["d"]

    def test_diamond_visits_once(self):
        graph = DependencyGraph(_tasks({"a": (), "b": ("a",), "c": ("a",), "d": ("b", "c")}))
        assert sorted(graph.get_all_dependents("a")) == ["b", "c", "d"]

    def test_cycle_terminates(self):
        graph = DependencyGraph(_tasks({"a": ("c",), "b": ("a",), "c": ("b",)}))
        assert graph.get_all_dependents("a") == ["b", "c"]

    def test_dependencies_of(self):
        graph = DependencyGraph(_tasks({"a": (), "b": ("a",)}))
        assert graph.dependencies_of("b") == ("a",)
        assert graph.dependencies_of("nope") == ()

    def test_edges(self):
        graph = DependencyGraph(_tasks({"a": (), "b": ("a",), "c": ("a", "b")}))
        assert sorted(graph.edges()) == [("a", "b"), ("a", "c"), ("b", "c")]

    def test_rebuild_replaces_edges(self):
        graph = DependencyGraph(_tasks({"a": (), "b": ("a",)}))
        graph.rebuild(_tasks({"a": ("b",), "b": ()}))
        assert graph.get_dependents("a") == []
        assert graph.get_dependents("b") == ["a"]


class TestFindCycle:
    def test_no_cycle(self):
        graph = DependencyGraph(_tasks({"a": (), "b": ("a",), "c": ("b",)}))
        assert graph.find_cycle() is None

    def test_cycle(self):
        graph = DependencyGraph(_tasks({"a": ("c",), "b": ("a",), "c": ("b",)}))
        cycle = graph.find_cycle()
        assert cycle[0] == cycle[-1]
        assert set(cycle) == {"a", "b", "c"}

    def test_self_loop(self):
        graph = DependencyGraph(_tasks({"a": ("a",)}))
        assert graph.find_cycle() == ["a", "a"]
