"""
Parent/child lookup maps built from a flat edge list.

The index is rebuilt from the snapshot on every evaluation. Edges that would
break the forest shape (second parent, cycle, self-loop) or that point at
unknown nodes are rejected and recorded; they take no part in any lookup.
"""
from enum import Enum
from typing import Dict, Iterable, List, Optional, Set, Union

from pydantic import BaseModel, ConfigDict

from .errors import UnknownTaskError
from .logs import get_logger
from .models import Edge, HierarchicalCompletion, SubtaskProgress, TaskNode, TaskStatus, coerce_edges, coerce_nodes

log = get_logger("hierarchy")

class RejectReason(Enum):
    SELF_LOOP = "self-loop"
    DUPLICATE = "duplicate"
    SECOND_PARENT = "second-parent"
    CYCLE = "cycle"
    UNKNOWN_NODE = "unknown-node"

class RejectedEdge(BaseModel):
    model_config = ConfigDict(frozen=True)

    edge: Edge
    reason: RejectReason


class HierarchyIndex:
    """Two adjacency maps keyed by task id."""

    def __init__(self):
        self.parent_of: Dict[str, str] = {}
        self.children_of: Dict[str, List[str]] = {}
        self.rejected_edges: List[RejectedEdge] = []

    @classmethod
    def build(cls, edges: Iterable[Union[Edge, dict]], node_ids: Optional[Iterable[str]] = None) -> 'HierarchyIndex':
        """
        Build the index from edges, in input order.

        Args:
            edges: Parent -> child edges.
            node_ids: Known node ids. When given, edges naming any other id are rejected.

        Returns:
            The populated index.
        """
        index = cls()
        known = set(node_ids) if node_ids is not None else None

        for edge in coerce_edges(edges):
            reason = index._check(edge, known)
            if reason is not None:
                log.warning(f"Ignoring edge {edge.parent_id} -> {edge.child_id}: {reason.value}")
                index.rejected_edges.append(RejectedEdge(edge=edge, reason=reason))
                continue
            index.parent_of[edge.child_id] = edge.parent_id
            index.children_of.setdefault(edge.parent_id, []).append(edge.child_id)

        log.debug(f"Built hierarchy: {len(index.parent_of)} edges, {len(index.rejected_edges)} rejected")
        return index

    def _check(self, edge: Edge, known: Optional[Set[str]]) -> Optional[RejectReason]:
        if known is not None and (edge.parent_id not in known or edge.child_id not in known):
            return RejectReason.UNKNOWN_NODE
        if edge.parent_id == edge.child_id:
            return RejectReason.SELF_LOOP
        existing = self.parent_of.get(edge.child_id)
        if existing == edge.parent_id:
            return RejectReason.DUPLICATE
        if existing is not None:
            return RejectReason.SECOND_PARENT
        if edge.child_id in self.ancestors(edge.parent_id):
            return RejectReason.CYCLE
        return None

    def parent(self, node_id: str) -> Optional[str]:
        return self.parent_of.get(node_id)

    def children(self, node_id: str) -> List[str]:
        return list(self.children_of.get(node_id, []))

    def ancestors(self, node_id: str) -> List[str]:
        """Ancestors of a node, nearest first."""
        result = []
        current = self.parent_of.get(node_id)
        while current is not None:
            result.append(current)
            current = self.parent_of.get(current)
        return result

    def descendants(self, node_id: str) -> List[str]:
        """All transitive descendants in depth-first pre-order."""
        result = []
        stack = list(reversed(self.children_of.get(node_id, [])))
        while stack:
            current = stack.pop()
            result.append(current)
            stack.extend(reversed(self.children_of.get(current, [])))
        return result

    def depth(self, node_id: str) -> int:
        return len(self.ancestors(node_id))

    def roots(self, node_ids: Iterable[str]) -> List[str]:
        """The given ids that have no parent, in input order."""
        return [node_id for node_id in node_ids if node_id not in self.parent_of]


def subtask_progress(parent_id: str, nodes: Iterable[Union[TaskNode, dict]], edges: Iterable[Union[Edge, dict]]) -> SubtaskProgress:
    """Completion counts over a parent's direct children."""
    node_map = {n.id: n for n in coerce_nodes(nodes)}
    if parent_id not in node_map:
        raise UnknownTaskError(parent_id)
    index = HierarchyIndex.build(edges, node_map.keys())
    children = [node_map[child_id] for child_id in index.children(parent_id)]

    required = [c for c in children if not c.is_optional]
    return SubtaskProgress(
        completed=sum(1 for c in children if c.is_completed),
        total=len(children),
        required=len(required),
        optional=len(children) - len(required),
    )

def hierarchical_completion(node_id: str, nodes: Iterable[Union[TaskNode, dict]], edges: Iterable[Union[Edge, dict]]) -> HierarchicalCompletion:
    """Completion over a node and all of its descendants, the node itself included."""
    node_map = {n.id: n for n in coerce_nodes(nodes)}
    if node_id not in node_map:
        raise UnknownTaskError(node_id)
    index = HierarchyIndex.build(edges, node_map.keys())
    subtree = [node_map[node_id]] + [node_map[d] for d in index.descendants(node_id)]

    completed = sum(1 for n in subtree if n.status == TaskStatus.COMPLETED)
    total = len(subtree)
    return HierarchicalCompletion(
        completed=completed,
        total=total,
        percentage=round(completed / total * 100) if total else 0,
    )
