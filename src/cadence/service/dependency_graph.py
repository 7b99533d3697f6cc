# SPDX-License-Identifier: MIT

"""
Directed graph of dependency links between tasks.

Tasks are kept in an id-keyed arena with successor and predecessor
adjacency maps. Every link type is an ordinary directed edge as far as
cycles are concerned, so A -FS-> B -SS-> A is rejected like any other cycle.
"""

import heapq
from typing import Iterable, Iterator, Optional

from cadence.error import CycleDetected, LinkNotFound, SelfDependency
from cadence.model.entity_id import EntityId
from cadence.model.link import DependencyLink, LinkType


class TopologicalOrder:
    """
    Lazy topological ordering of a graph (or a subset of it).

    Each iteration recomputes the order from the graph's current state with
    Kahn's algorithm, so the object can be iterated any number of times.
    Ties are broken on task id to keep the order deterministic. Iteration
    raises CycleDetected once it cannot make progress.
    """

    def __init__(
        self, graph: "DependencyGraph", subset: Optional[Iterable[EntityId]] = None
    ) -> None:
        self._graph = graph
        self._subset = None if subset is None else frozenset(subset)

    def __iter__(self) -> Iterator[EntityId]:
        nodes = self._graph.nodes if self._subset is None else self._subset
        in_degree = {
            node: sum(
                1 for predecessor in self._graph.predecessors(node) if predecessor in nodes
            )
            for node in nodes
        }
        ready = [node for node, degree in in_degree.items() if degree == 0]
        heapq.heapify(ready)

        emitted = 0
        while ready:
            node = heapq.heappop(ready)
            emitted += 1
            yield node
            for successor in self._graph.successors(node):
                if successor in in_degree:
                    in_degree[successor] -= 1
                    if in_degree[successor] == 0:
                        heapq.heappush(ready, successor)

        if emitted != len(nodes):
            raise CycleDetected(
                remaining_ids=[node for node, degree in in_degree.items() if degree > 0]
            )


class DependencyGraph:
    def __init__(self) -> None:
        self._nodes: set[EntityId] = set()
        self._successors: dict[EntityId, dict[EntityId, LinkType]] = {}
        self._predecessors: dict[EntityId, dict[EntityId, LinkType]] = {}

    @classmethod
    def from_links(
        cls,
        links: Iterable[DependencyLink],
        task_ids: Iterable[EntityId] = (),
    ) -> "DependencyGraph":
        """
        Build a graph from persisted links without validating them.

        Persisted data is trusted here; a corrupted link set surfaces as
        CycleDetected the next time a topological order is taken.
        """
        graph = cls()
        for task_id in task_ids:
            graph.add_task(task_id)
        for link in links:
            graph._insert(
                link["source_task_id"], link["target_task_id"], link["link_type"]
            )
        return graph

    @property
    def nodes(self) -> frozenset[EntityId]:
        return frozenset(self._nodes)

    def __contains__(self, task_id: object) -> bool:
        return task_id in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def add_task(self, task_id: EntityId) -> None:
        self._nodes.add(task_id)
        self._successors.setdefault(task_id, {})
        self._predecessors.setdefault(task_id, {})

    def _insert(self, source: EntityId, target: EntityId, link_type: LinkType) -> None:
        self.add_task(source)
        self.add_task(target)
        self._successors[source][target] = LinkType(link_type)
        self._predecessors[target][source] = LinkType(link_type)

    def add_link(
        self,
        source: EntityId,
        target: EntityId,
        link_type: LinkType = LinkType.FINISH_TO_START,
    ) -> None:
        """
        Add source -> target, or change the type of an existing link.

        A rejected link leaves the graph untouched.
        """
        if source == target:
            raise SelfDependency(source)
        if self.has_path(target, source):
            raise CycleDetected(source, target)
        self._insert(source, target, link_type)

    def remove_link(self, source: EntityId, target: EntityId) -> LinkType:
        if not self.has_link(source, target):
            raise LinkNotFound(source, target)
        link_type = self._successors[source].pop(target)
        del self._predecessors[target][source]
        return link_type

    def remove_task(self, task_id: EntityId) -> list[tuple[EntityId, EntityId, LinkType]]:
        """Drop a task and every link touching it. Returns the removed links."""
        if task_id not in self._nodes:
            return []
        removed = []
        for predecessor, link_type in self._predecessors.pop(task_id).items():
            del self._successors[predecessor][task_id]
            removed.append((predecessor, task_id, link_type))
        for successor, link_type in self._successors.pop(task_id).items():
            del self._predecessors[successor][task_id]
            removed.append((task_id, successor, link_type))
        self._nodes.discard(task_id)
        return removed

    def has_link(self, source: EntityId, target: EntityId) -> bool:
        return target in self._successors.get(source, {})

    def predecessors(self, task_id: EntityId) -> dict[EntityId, LinkType]:
        return dict(self._predecessors.get(task_id, {}))

    def successors(self, task_id: EntityId) -> dict[EntityId, LinkType]:
        return dict(self._successors.get(task_id, {}))

    def links(self) -> Iterator[tuple[EntityId, EntityId, LinkType]]:
        for source in sorted(self._successors):
            for target, link_type in sorted(self._successors[source].items()):
                yield (source, target, link_type)

    def has_path(self, start: EntityId, goal: EntityId) -> bool:
        """Depth-first reachability from start to goal over existing links."""
        if start == goal:
            return True
        seen = {start}
        stack = [start]
        while stack:
            node = stack.pop()
            for successor in self._successors.get(node, {}):
                if successor == goal:
                    return True
                if successor not in seen:
                    seen.add(successor)
                    stack.append(successor)
        return False

    def transitive_successors(self, task_ids: Iterable[EntityId]) -> set[EntityId]:
        """Every task reachable from task_ids, excluding the seeds themselves
        unless they are reachable from another seed."""
        seeds = list(task_ids)
        reached: set[EntityId] = set()
        stack = list(seeds)
        while stack:
            node = stack.pop()
            for successor in self._successors.get(node, {}):
                if successor not in reached:
                    reached.add(successor)
                    stack.append(successor)
        return reached

    def affected_subgraph(self, task_ids: Iterable[EntityId]) -> set[EntityId]:
        seeds = set(task_ids)
        return seeds | self.transitive_successors(seeds)

    def topological_order(
        self, subset: Optional[Iterable[EntityId]] = None
    ) -> TopologicalOrder:
        return TopologicalOrder(self, subset)
