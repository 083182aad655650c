"""Topological batching of instrumentation tasks.

All functions are pure and have no external dependencies.
"""

from otel_orchestrator.agents.exceptions import TaskDependencyError
from otel_orchestrator.models import InstrumentationTask


def validate_task_references(tasks: list[InstrumentationTask]) -> None:
    """Check task ids are unique and every prerequisite names a known task.

    Raises:
        TaskDependencyError: On a duplicate id or a dangling prerequisite.
    """
    task_ids: set[str] = set()
    for task in tasks:
        if task.task_id in task_ids:
            raise TaskDependencyError(f"Duplicate task id '{task.task_id}'")
        task_ids.add(task.task_id)

    for task in tasks:
        for dep_id in task.dependencies:
            if dep_id not in task_ids:
                raise TaskDependencyError(
                    f"Task '{task.task_id}' depends on missing task '{dep_id}'"
                )


def compute_execution_batches(tasks: list[InstrumentationTask]) -> list[list[str]]:
    """Group tasks into layers that can each run concurrently.

    Layered Kahn's algorithm: each round selects every remaining task whose
    prerequisites are all in earlier layers, preserving input order within
    the layer.

    Args:
        tasks: The full task set.

    Returns:
        Ordered list of batches of task ids. Every task appears exactly once
        and after all of its prerequisites.

    Raises:
        TaskDependencyError: If references are invalid or the graph has a cycle.
    """
    validate_task_references(tasks)

    batches: list[list[str]] = []
    completed: set[str] = set()
    remaining = list(tasks)

    while remaining:
        ready = [
            task for task in remaining
            if all(dep_id in completed for dep_id in task.dependencies)
        ]

        if not ready:
            stuck = ", ".join(task.task_id for task in remaining)
            raise TaskDependencyError(
                f"Circular dependency detected among tasks: {stuck}"
            )

        batches.append([task.task_id for task in ready])
        completed.update(task.task_id for task in ready)
        ready_ids = {task.task_id for task in ready}
        remaining = [task for task in remaining if task.task_id not in ready_ids]

    return batches


def find_task_batch(batches: list[list[str]], task_id: str) -> int:
    """Return the index of the batch holding task_id, or -1 if absent."""
    for index, batch in enumerate(batches):
        if task_id in batch:
            return index
    return -1
