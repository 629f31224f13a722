"""
Smart task completion with AND/OR subtask relationships.

Given one task's status transition, work out which ancestors (and, on
request, descendants) should follow. Nothing is mutated: the result is a list
of recommended status changes for the caller to apply to the store.
"""
from typing import Dict, Iterable, List, Optional, Union

from .errors import InvalidStatusError, UnknownTaskError
from .hierarchy import HierarchyIndex
from .logs import get_logger
from .models import CompletionResult, Edge, StatusChange, SubtaskLogic, TaskNode, TaskStatus, coerce_edges, coerce_nodes

log = get_logger("completion")


def effective_logic(parent: TaskNode, children: List[TaskNode]) -> SubtaskLogic:
    """
    The rule a parent applies to its children.

    An explicit ``subtask_logic`` wins. Otherwise a child flagged
    ``auto_complete_parent`` switches the parent to OR, and AND is the default.
    """
    if parent.subtask_logic is not None:
        return parent.subtask_logic
    if any(child.auto_complete_parent for child in children):
        return SubtaskLogic.OR
    return SubtaskLogic.AND

def rule_satisfied(logic: SubtaskLogic, children: List[TaskNode], statuses: Dict[str, TaskStatus]) -> bool:
    """Whether the required children meet the rule. No required children never satisfies it."""
    required = [child for child in children if not child.is_optional]
    if not required:
        return False

    done = [statuses[child.id] == TaskStatus.COMPLETED for child in required]
    if logic == SubtaskLogic.OR:
        return any(done)
    return all(done)


def _parse_status(new_status: Union[TaskStatus, str]) -> TaskStatus:
    if isinstance(new_status, TaskStatus):
        return new_status
    try:
        return TaskStatus(new_status)
    except ValueError:
        raise InvalidStatusError(f"Invalid task status: {new_status!r}") from None

def evaluate_task_completion(
    task_id: str,
    new_status: Union[TaskStatus, str],
    nodes: Iterable[Union[TaskNode, dict]],
    edges: Iterable[Union[Edge, dict]],
    propagate_to_children: bool = False,
) -> CompletionResult:
    """
    Evaluate what should happen when a task's status changes.

    Args:
        task_id: The task being changed.
        new_status: Its new status.
        nodes: Every node in the snapshot.
        edges: Every parent -> child edge in the snapshot.
        propagate_to_children: Also complete the descendants of a completed AND task.

    Returns:
        The changed task followed by every cascaded change, nearest first.

    Raises:
        UnknownTaskError: task_id is not in nodes.
        InvalidStatusError: new_status is not a task status.
    """
    status = _parse_status(new_status)
    node_map = {n.id: n for n in coerce_nodes(nodes)}
    if task_id not in node_map:
        raise UnknownTaskError(task_id)

    index = HierarchyIndex.build(coerce_edges(edges), node_map.keys())

    # Snapshot statuses with the transition already applied
    statuses = {node_id: node.status for node_id, node in node_map.items()}
    statuses[task_id] = status

    changes = [StatusChange(node_id=task_id, recommended_status=status)]
    if status == TaskStatus.COMPLETED:
        parents = _cascade_completion(task_id, node_map, index, statuses)
    else:
        parents = _cascade_reopen(task_id, node_map, index, statuses)
    changes.extend(StatusChange(node_id=p, recommended_status=statuses[p]) for p in parents)

    children: List[str] = []
    if propagate_to_children and status == TaskStatus.COMPLETED:
        children = _cascade_to_descendants(task_id, node_map, index, statuses)
        changes.extend(StatusChange(node_id=c, recommended_status=TaskStatus.COMPLETED) for c in children)

    result = CompletionResult(
        changes=changes,
        cascades_to_parents=bool(parents),
        cascades_to_children=bool(children),
        message=_summarize(node_map[task_id], status, [node_map[p] for p in parents], len(children)),
    )
    log.debug(f"{task_id} -> {status.value}: {result.affected_node_ids}")
    return result

def _cascade_completion(task_id: str, node_map: Dict[str, TaskNode], index: HierarchyIndex, statuses: Dict[str, TaskStatus]) -> List[str]:
    completed = []
    parent_id = index.parent(task_id)
    while parent_id is not None:
        if statuses[parent_id] == TaskStatus.COMPLETED:
            break
        children = [node_map[c] for c in index.children(parent_id)]
        if not rule_satisfied(effective_logic(node_map[parent_id], children), children, statuses):
            break
        statuses[parent_id] = TaskStatus.COMPLETED
        completed.append(parent_id)
        parent_id = index.parent(parent_id)
    return completed

def _cascade_reopen(task_id: str, node_map: Dict[str, TaskNode], index: HierarchyIndex, statuses: Dict[str, TaskStatus]) -> List[str]:
    reopened = []
    child_id = task_id
    parent_id = index.parent(task_id)
    while parent_id is not None:
        # An optional child was never the reason its parent completed
        if statuses[parent_id] != TaskStatus.COMPLETED or node_map[child_id].is_optional:
            break
        children = [node_map[c] for c in index.children(parent_id)]
        if rule_satisfied(effective_logic(node_map[parent_id], children), children, statuses):
            break
        statuses[parent_id] = TaskStatus.PENDING
        reopened.append(parent_id)
        child_id, parent_id = parent_id, index.parent(parent_id)
    return reopened

def _cascade_to_descendants(task_id: str, node_map: Dict[str, TaskNode], index: HierarchyIndex, statuses: Dict[str, TaskStatus]) -> List[str]:
    children = [node_map[c] for c in index.children(task_id)]
    if effective_logic(node_map[task_id], children) != SubtaskLogic.AND:
        return []

    completed = []
    for descendant in index.descendants(task_id):
        if statuses[descendant] != TaskStatus.COMPLETED:
            statuses[descendant] = TaskStatus.COMPLETED
            completed.append(descendant)
    return completed

def _summarize(task: TaskNode, status: TaskStatus, parents: List[TaskNode], children: int) -> Optional[str]:
    parts = []
    if parents:
        labels = ", ".join(f'"{p.label or p.id}"' for p in parents)
        if status == TaskStatus.COMPLETED:
            parts.append(f"Completed parent {labels} because the required subtasks are done")
        else:
            parts.append(f"Uncompleted parent {labels} because a required subtask was uncompleted")
    if children:
        parts.append(f'Completed {children} subtasks because parent "{task.label or task.id}" was completed')
    return "; ".join(parts) or None
