"""Batch executor: runs planned tasks batch by batch with concurrent workers."""

from __future__ import annotations

import asyncio
import logging
import time
from enum import Enum
from typing import TYPE_CHECKING, Callable

from otel_orchestrator.agents.exceptions import PlanningError, WorkerTimeoutError
from otel_orchestrator.agents.workers import BaseWorker, create_worker
from otel_orchestrator.models import (
    ChangeOperation,
    InstrumentationPoint,
    InstrumentationTask,
    OrchestrationPlan,
    OrchestrationResult,
    RunSummary,
    WorkerResult,
    WorkerType,
)

if TYPE_CHECKING:
    from otel_orchestrator.utils.llm_client import LLMClient

logger = logging.getLogger(__name__)

DEFAULT_TASK_TIMEOUT = 300.0  # seconds

WorkerFactory = Callable[[WorkerType, "LLMClient", str], BaseWorker]


class ExecutorState(str, Enum):
    IDLE = "idle"
    RUNNING_BATCH = "running_batch"
    BATCH_COMPLETE = "batch_complete"
    DONE = "done"


class BatchExecutor:
    """Executes an OrchestrationPlan.

    Tasks within a batch run concurrently; the next batch starts only after
    every task of the current batch has settled. A failed task never stops
    its siblings or later batches.

    State moves IDLE -> (RUNNING_BATCH -> BATCH_COMPLETE) per batch -> DONE,
    with current_batch_index naming the batch of the latest phase. Every
    transition is appended to state_history.
    """

    def __init__(
        self,
        client: LLMClient,
        root_path: str,
        task_timeout_seconds: float | None = DEFAULT_TASK_TIMEOUT,
        worker_factory: WorkerFactory = create_worker,
    ) -> None:
        """Initialize the executor.

        Args:
            client: Completion client shared by all workers.
            root_path: Source root the workers read target files from.
            task_timeout_seconds: Per-task time budget; None disables it.
            worker_factory: Builds the worker for a task type.
        """
        self.client = client
        self.root_path = root_path
        self.task_timeout_seconds = task_timeout_seconds
        self.worker_factory = worker_factory
        self.state = ExecutorState.IDLE
        self.current_batch_index = -1
        self.state_history: list[tuple[ExecutorState, int]] = []

    def _transition(self, state: ExecutorState, batch_index: int) -> None:
        self.state = state
        self.current_batch_index = batch_index
        self.state_history.append((state, batch_index))

    async def execute(self, plan: OrchestrationPlan) -> OrchestrationResult:
        """Run every batch of the plan and aggregate the results.

        Args:
            plan: Plan with tasks and execution_order.

        Returns:
            OrchestrationResult; success is True only if every task succeeded.

        Raises:
            PlanningError: If execution_order does not list every plan task
                exactly once.
        """
        task_map = {task.task_id: task for task in plan.tasks}
        validate_execution_order(plan)

        start = time.monotonic()
        worker_results: list[WorkerResult] = []
        errors: list[str] = []
        self.state_history = []

        for index, batch in enumerate(plan.execution_order):
            self._transition(ExecutorState.RUNNING_BATCH, index)
            batch_tasks = [task_map[task_id] for task_id in batch]
            logger.info(
                "Running batch %d/%d: %s",
                index + 1,
                len(plan.execution_order),
                ", ".join(batch),
            )

            # All coroutines are created before the gather awaits them
            batch_results = await asyncio.gather(
                *(self.run_task(task) for task in batch_tasks)
            )

            worker_results.extend(batch_results)
            for result in batch_results:
                if not result.success:
                    errors.extend(result.errors)

            failed = sum(1 for r in batch_results if not r.success)
            if failed:
                logger.warning("Batch %d finished with %d failed task(s)", index + 1, failed)
            self._transition(ExecutorState.BATCH_COMPLETE, index)

        duration = time.monotonic() - start
        self._transition(ExecutorState.DONE, self.current_batch_index)

        return OrchestrationResult(
            success=all(result.success for result in worker_results),
            plan=plan,
            worker_results=worker_results,
            summary=build_run_summary(plan, worker_results, duration),
            errors=errors,
        )

    async def run_task(self, task: InstrumentationTask) -> WorkerResult:
        """Run one task through its worker, converting any failure into a result."""
        try:
            worker = self.worker_factory(task.task_type, self.client, self.root_path)
            if self.task_timeout_seconds is None:
                return await worker.execute(task)
            try:
                return await asyncio.wait_for(
                    worker.execute(task), timeout=self.task_timeout_seconds
                )
            except asyncio.TimeoutError as e:
                raise WorkerTimeoutError(
                    f"Task '{task.task_id}' timed out after {self.task_timeout_seconds}s"
                ) from e
        except Exception as e:
            logger.error("Task %s failed: %s", task.task_id, e)
            return WorkerResult(
                task_id=task.task_id,
                worker_type=task.task_type,
                success=False,
                message="Task failed",
                errors=[str(e) or type(e).__name__],
            )


def validate_execution_order(plan: OrchestrationPlan) -> None:
    """Check that the batches list every plan task exactly once.

    Raises:
        PlanningError: Naming unknown, duplicated or omitted task ids.
    """
    known = {task.task_id for task in plan.tasks}
    seen: set[str] = set()
    duplicated: list[str] = []
    for batch in plan.execution_order:
        for task_id in batch:
            if task_id not in known:
                raise PlanningError(f"Execution order references unknown task '{task_id}'")
            if task_id in seen and task_id not in duplicated:
                duplicated.append(task_id)
            seen.add(task_id)

    if duplicated:
        raise PlanningError(
            f"Execution order lists task(s) more than once: {', '.join(duplicated)}"
        )
    omitted = [task.task_id for task in plan.tasks if task.task_id not in seen]
    if omitted:
        raise PlanningError(f"Execution order omits task(s): {', '.join(omitted)}")


def build_run_summary(
    plan: OrchestrationPlan,
    results: list[WorkerResult],
    duration_seconds: float,
) -> RunSummary:
    """Derive run statistics from the plan and worker results."""
    files_modified = 0
    files_created = 0
    for result in results:
        for change in result.changes:
            if change.operation == ChangeOperation.MODIFY:
                files_modified += 1
            elif change.operation == ChangeOperation.CREATE:
                files_created += 1

    instrumentation_points = [
        InstrumentationPoint(
            file=result.changes[0].path if result.changes else "unknown",
            point_type="init" if result.worker_type == WorkerType.CONFIG else "span",
            location=result.worker_type.value,
            description=result.message,
        )
        for result in results
        if result.success and result.worker_type != WorkerType.DEPENDENCY
    ]

    dependencies_updated = any(
        result.success and result.worker_type == WorkerType.DEPENDENCY for result in results
    )

    return RunSummary(
        files_analyzed=len(plan.analysis.files),
        files_modified=files_modified,
        files_created=files_created,
        files_skipped=len(plan.skipped_files),
        instrumentation_points=instrumentation_points,
        packages_added=list(plan.analysis.dependencies.missing) if dependencies_updated else [],
        total_tasks=len(plan.tasks),
        batch_count=len(plan.execution_order),
        duration_seconds=duration_seconds,
    )
