from __future__ import annotations

import graphlib
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from skilltree.core.errors import DataIntegrityError, NodeNotFoundError


@dataclass(frozen=True, slots=True)
class SkillNode:
    """One learning unit in the skill tree.

    prerequisites: ids that must be completed before this node is
    reachable.  An empty set means the node is open from the start.
    is_checkpoint is informational only; it never changes unlock logic.
    """

    id: str
    prerequisites: frozenset[str] = frozenset()
    base_xp: int = 0
    is_checkpoint: bool = False
    title: str = ""
    category: str = ""
    position: int = 0


@dataclass(frozen=True, slots=True)
class SkillEdge:
    """Rendering-only connector mirroring ``to_node.prerequisites ∋ from_node``."""

    from_node: str
    to_node: str
    is_active: bool = False


class Catalog:
    """The fixed, validated skill tree shared by every learner.

    Built once at startup.  Construction fails with DataIntegrityError if
    the nodes do not form a DAG, reference unknown prerequisites, repeat
    an id, or if a supplied edge is not backed by a prerequisite.
    """

    def __init__(
        self, nodes: Iterable[SkillNode], edges: Iterable[SkillEdge] | None = None
    ) -> None:
        self._nodes: dict[str, SkillNode] = {}
        for node in nodes:
            if node.id in self._nodes:
                raise DataIntegrityError(f"duplicate node id {node.id!r}")
            if node.base_xp < 0:
                raise DataIntegrityError(f"node {node.id!r} has negative base_xp")
            self._nodes[node.id] = node

        for node in self._nodes.values():
            if node.id in node.prerequisites:
                raise DataIntegrityError(f"node {node.id!r} requires itself")
            missing = sorted(node.prerequisites - self._nodes.keys())
            if missing:
                raise DataIntegrityError(
                    f"node {node.id!r} references unknown prerequisites {missing}"
                )

        self._order = self._topological_order()

        self._dependents: dict[str, tuple[str, ...]] = {
            node_id: tuple(
                n.id for n in self._nodes.values() if node_id in n.prerequisites
            )
            for node_id in self._nodes
        }

        derived = [
            SkillEdge(from_node=prereq, to_node=node.id)
            for node in self._nodes.values()
            for prereq in sorted(node.prerequisites)
        ]
        if edges is None:
            self._edges = tuple(derived)
        else:
            self._edges = tuple(edges)
            self._check_edges()

    def _topological_order(self) -> tuple[str, ...]:
        sorter = graphlib.TopologicalSorter(
            {node.id: node.prerequisites for node in self._nodes.values()}
        )
        try:
            return tuple(sorter.static_order())
        except graphlib.CycleError as exc:
            cycle = " -> ".join(exc.args[1])
            raise DataIntegrityError(f"catalog contains a cycle: {cycle}") from None

    def _check_edges(self) -> None:
        for edge in self._edges:
            target = self._nodes.get(edge.to_node)
            if edge.from_node not in self._nodes or target is None:
                raise DataIntegrityError(
                    f"edge {edge.from_node!r} -> {edge.to_node!r} "
                    "references an unknown node"
                )
            if edge.from_node not in target.prerequisites:
                raise DataIntegrityError(
                    f"edge {edge.from_node!r} -> {edge.to_node!r} "
                    "has no matching prerequisite"
                )

    def __iter__(self) -> Iterator[SkillNode]:
        return iter(self._nodes.values())

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def get(self, node_id: str) -> SkillNode:
        node = self._nodes.get(node_id)
        if node is None:
            raise NodeNotFoundError(node_id)
        return node

    @property
    def node_ids(self) -> tuple[str, ...]:
        return tuple(self._nodes)

    @property
    def edges(self) -> tuple[SkillEdge, ...]:
        return self._edges

    @property
    def topological_order(self) -> tuple[str, ...]:
        return self._order

    def dependents(self, node_id: str) -> tuple[str, ...]:
        """Nodes that list ``node_id`` as a direct prerequisite."""
        self.get(node_id)
        return self._dependents[node_id]

    def checkpoints(self) -> list[SkillNode]:
        return [n for n in self._nodes.values() if n.is_checkpoint]

    def in_category(self, category: str) -> list[SkillNode]:
        return [n for n in self._nodes.values() if n.category == category]

    @property
    def categories(self) -> tuple[str, ...]:
        seen: dict[str, None] = {}
        for node in self._nodes.values():
            seen.setdefault(node.category, None)
        return tuple(seen)
