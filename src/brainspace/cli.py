"""
Command Line Interface for the Brain Space task engine.

Every command reads a snapshot exported from the store, runs one engine
operation and prints the recommended changes. Nothing is written back to the
store; ``--out`` saves the result to a file instead.
"""

import click
import json
import sys
from datetime import date
from pathlib import Path
from .version import VERSION
from .errors import BrainSpaceError
from .io import atomic_write, data_type_for, load_snapshot
from .models import TaskStatus, TaskType
from .priority import get_quadrant, get_quadrant_info, linear_to_log, log_to_linear
from .completion import evaluate_task_completion
from .recurrence import calculate_current_streak, calculate_longest_streak, generate_recurring_task_instances, parse_day
from .validate import snapshot_schema, validate_snapshot_file

SNAPSHOT_PATH = click.Path(exists=True, dir_okay=False, path_type=Path)
OUT_PATH = click.Path(dir_okay=False, path_type=Path)

STATUS_ICONS = {
    TaskStatus.COMPLETED: "✅",
    TaskStatus.PENDING: "⬜",
    TaskStatus.IN_PROGRESS: "🔄",
    TaskStatus.DEFERRED: "💤",
}


def _fail(message):
    click.echo(f"❌ {message}", err=True)
    sys.exit(1)

def _save(out, data):
    atomic_write(data_type_for(out), out, data)
    click.echo(f"💾 Saved result to {out}")


@click.group()
@click.version_option(version=VERSION, prog_name="brainspace")
def main():
    """
    Brain Space task engine - completion cascades, recurring tasks and priorities.
    """
    pass


@main.command()
@click.argument('importance', type=float)
@click.argument('urgency', type=float)
@click.option('--log-scale', is_flag=True, help='Values are stored log-scale priorities')
def quadrant(importance, urgency, log_scale):
    """Classify an importance/urgency pair into an Eisenhower quadrant."""
    if log_scale:
        importance, urgency = log_to_linear(importance), log_to_linear(urgency)

    info = get_quadrant_info(get_quadrant(importance, urgency))
    click.echo(f"{info.icon} {info.label}")
    click.echo(f"   {info.description}")
    click.echo(f"   📈 Linear: importance {importance:.2f}, urgency {urgency:.2f}")
    click.echo(f"   📉 Stored: importance {linear_to_log(importance):.2f}, urgency {linear_to_log(urgency):.2f}")


@main.command()
@click.argument('snapshot', type=SNAPSHOT_PATH)
@click.argument('task_id')
@click.option('--status', 'new_status', type=click.Choice([s.value for s in TaskStatus]), default=TaskStatus.COMPLETED.value, show_default=True, help='New status of the task')
@click.option('--cascade-children', is_flag=True, help='Also complete the subtasks of a completed AND task')
@click.option('--out', type=OUT_PATH, help='Write the changes to a YAML or JSON file')
def complete(snapshot, task_id, new_status, cascade_children, out):
    """Show the cascade of changing TASK_ID's status."""
    try:
        data = load_snapshot(snapshot)
        result = evaluate_task_completion(task_id, new_status, data.nodes, data.edges, propagate_to_children=cascade_children)

        click.echo(f"📋 Changes for {task_id} -> {new_status}:")
        for change in result.changes:
            click.echo(f"   {STATUS_ICONS[change.recommended_status]} {change.node_id}: {change.recommended_status.value}")
        if result.message:
            click.echo(f"💡 {result.message}")

        if out:
            _save(out, result.to_dict())

    except BrainSpaceError as e:
        _fail(e)


@main.command()
@click.argument('snapshot', type=SNAPSHOT_PATH)
@click.option('--date', 'target_date', help='Day to expand (YYYY-MM-DD, default today)')
@click.option('--out', type=OUT_PATH, help='Write the instances to a YAML or JSON file')
def today(snapshot, target_date, out):
    """List the recurring task instances due on a day."""
    try:
        day = parse_day(target_date) if target_date else date.today()
        data = load_snapshot(snapshot)
        instances = generate_recurring_task_instances(data.nodes, day)

        if not instances:
            click.echo(f"📭 Nothing recurring on {day.isoformat()}")
        else:
            click.echo(f"📅 {day.isoformat()}:")
            for instance in instances:
                mark = "✅" if instance.completed else "⬜"
                line = f"   {mark} {instance.label or instance.original_node_id} ({instance.instance_id})"
                if instance.task_type == TaskType.HABIT:
                    line += f" 🔥 {instance.streak} (best {instance.longest_streak})"
                click.echo(line)

        if out:
            _save(out, [instance.to_dict() for instance in instances])

    except BrainSpaceError as e:
        _fail(e)


@main.command()
@click.argument('snapshot', type=SNAPSHOT_PATH)
@click.argument('task_id')
@click.option('--as-of', help='Day to measure the current streak at (YYYY-MM-DD, default today)')
def streak(snapshot, task_id, as_of):
    """Show the current and longest streak of a recurring task."""
    try:
        day = parse_day(as_of) if as_of else date.today()
        node = load_snapshot(snapshot).find_node(task_id)
        if node is None:
            _fail(f"Unknown task id: {task_id}")
        if not node.is_recurring:
            _fail(f"{task_id} is a one-time task")

        current = calculate_current_streak(node.recurring_completions, node.recurrence_pattern, as_of=day)
        longest = calculate_longest_streak(node.recurring_completions, node.recurrence_pattern)
        click.echo(f"🔥 {node.label or node.id}")
        click.echo(f"   Current streak: {current} (as of {day.isoformat()})")
        click.echo(f"   Longest streak: {longest}")

    except BrainSpaceError as e:
        _fail(e)


@main.command()
@click.argument('snapshot', type=SNAPSHOT_PATH)
def validate(snapshot):
    """Check a snapshot file against the snapshot schema."""
    try:
        problems = validate_snapshot_file(snapshot)
    except BrainSpaceError as e:
        _fail(e)

    if not problems:
        click.echo(f"✅ {snapshot} is valid")
        return

    click.echo(f"⚠️  {snapshot} has {len(problems)} problem(s):")
    for problem in problems:
        click.echo(f"   • {problem}")
    sys.exit(1)


@main.command()
def schema():
    """Print the JSON schema of snapshot files."""
    click.echo(json.dumps(snapshot_schema(), indent=2))


if __name__ == "__main__":
    main()
