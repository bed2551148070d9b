"""Dependency graph over task ids."""

from __future__ import annotations

from collections import deque
from typing import Iterable

from tui_gantt.models import Task


class DependencyGraph:
    """Reverse adjacency: dependency id -> ids of tasks that depend on it.

    Cycles are allowed; traversals carry a visited set.
    """

    def __init__(self, tasks: Iterable[Task] = ()) -> None:
        self._dependents: dict[str, list[str]] = {}
        self._dependencies: dict[str, tuple[str, ...]] = {}
        self.rebuild(tasks)

    def rebuild(self, tasks: Iterable[Task]) -> None:
        self._dependents = {}
        self._dependencies = {}
        for task in tasks:
            self._dependencies[task.id] = tuple(task.dependencies)
            for dep in task.dependencies:
                children = self._dependents.setdefault(dep, [])
                if task.id not in children:
                    children.append(task.id)

    def get_dependents(self, task_id: str) -> list[str]:
        return list(self._dependents.get(task_id, []))

    def dependencies_of(self, task_id: str) -> tuple[str, ...]:
        return self._dependencies.get(task_id, ())

    def get_all_dependents(self, task_id: str) -> list[str]:
        """Transitive dependents in breadth-first order, excluding *task_id*."""
        visited = {task_id}
        order: list[str] = []
        queue = deque(self._dependents.get(task_id, []))
        while queue:
            current = queue.popleft()
            if current in visited:
                continue
            visited.add(current)
            order.append(current)
            queue.extend(self._dependents.get(current, []))
        return order

    def edges(self) -> list[tuple[str, str]]:
        """All ``(dependency, dependent)`` pairs."""
        return [
            (dep, task_id)
            for task_id, deps in self._dependencies.items()
            for dep in deps
        ]

    def find_cycle(self) -> list[str] | None:
        """Return one dependency cycle as a list of ids, or None."""
        WHITE, GREY, BLACK = 0, 1, 2
        color = {task_id: WHITE for task_id in self._dependencies}
        for root in self._dependencies:
            if color[root] != WHITE:
                continue
            path: list[str] = []
            stack = [(root, iter(self._dependencies.get(root, ())))]
            color[root] = GREY
            path.append(root)
            while stack:
                node, deps = stack[-1]
                for dep in deps:
                    state = color.get(dep)
                    if state == GREY:
                        return path[path.index(dep):] + [dep]
                    if state == WHITE:
                        color[dep] = GREY
                        path.append(dep)
                        stack.append((dep, iter(self._dependencies.get(dep, ()))))
                        break
                else:
                    color[node] = BLACK
                    path.pop()
                    stack.pop()
        return None
