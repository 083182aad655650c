"""Tests for BatchExecutor: batch barriers, concurrency and failure isolation."""

import asyncio

import pytest

from otel_orchestrator.agents.batch_executor import (
    BatchExecutor,
    ExecutorState,
    build_run_summary,
)
from otel_orchestrator.agents.exceptions import PlanningError
from otel_orchestrator.agents.planner import Planner
from otel_orchestrator.models import (
    ChangeOperation,
    FileChange,
    FileRole,
    OrchestrationPlan,
    WorkerResult,
    WorkerType,
)

from helpers import make_analysis, make_file, make_task


# ---------------------------------------------------------------------------
# Fake workers
# ---------------------------------------------------------------------------

class RecordingWorker:
    """Worker stand-in that logs start/end events and returns a canned result."""

    def __init__(self, worker_type, events, delay=0.01, fail_ids=(), raise_ids=()):
        self.worker_type = worker_type
        self.events = events
        self.delay = delay
        self.fail_ids = set(fail_ids)
        self.raise_ids = set(raise_ids)

    async def execute(self, task):
        self.events.append(("start", task.task_id))
        await asyncio.sleep(self.delay)
        self.events.append(("end", task.task_id))
        if task.task_id in self.raise_ids:
            raise RuntimeError(f"worker exploded on {task.task_id}")
        if task.task_id in self.fail_ids:
            return WorkerResult(
                task_id=task.task_id,
                worker_type=task.task_type,
                success=False,
                message="Task failed",
                errors=[f"{task.task_id} failed"],
            )
        operation = (
            ChangeOperation.CREATE if task.task_type == WorkerType.CONFIG else ChangeOperation.MODIFY
        )
        return WorkerResult(
            task_id=task.task_id,
            worker_type=task.task_type,
            success=True,
            changes=[
                FileChange(path=task.target_file, operation=operation, new_content="// traced")
            ],
            message=f"done {task.task_id}",
        )


def recording_factory(events, **kwargs):
    def factory(worker_type, client, root_path):
        return RecordingWorker(worker_type, events, **kwargs)

    return factory


def make_plan(analysis):
    return Planner().create_plan(analysis)


def make_executor(factory, timeout=5.0):
    return BatchExecutor(
        client=None,
        root_path="/tmp/src",
        task_timeout_seconds=timeout,
        worker_factory=factory,
    )


# ---------------------------------------------------------------------------
# Execution order
# ---------------------------------------------------------------------------
class TestBatchOrdering:
    @pytest.mark.asyncio
    async def test_batches_are_barriers(self, full_analysis):
        """No task of batch k+1 starts before every task of batch k has ended."""
        events = []
        plan = make_plan(full_analysis)
        await make_executor(recording_factory(events)).execute(plan)

        position = {event: index for index, event in enumerate(events)}
        for earlier, later in zip(plan.execution_order, plan.execution_order[1:]):
            last_end = max(position[("end", task_id)] for task_id in earlier)
            first_start = min(position[("start", task_id)] for task_id in later)
            assert last_end < first_start

    @pytest.mark.asyncio
    async def test_tasks_within_batch_run_concurrently(self, full_analysis):
        events = []
        plan = make_plan(full_analysis)
        await make_executor(recording_factory(events)).execute(plan)

        last_batch = plan.execution_order[-1]
        starts = [events.index(("start", task_id)) for task_id in last_batch]
        ends = [events.index(("end", task_id)) for task_id in last_batch]
        assert max(starts) < min(ends)

    @pytest.mark.asyncio
    async def test_results_follow_execution_order(self, full_analysis):
        plan = make_plan(full_analysis)
        result = await make_executor(recording_factory([])).execute(plan)

        flat_order = [task_id for batch in plan.execution_order for task_id in batch]
        assert [r.task_id for r in result.worker_results] == flat_order

    @pytest.mark.asyncio
    async def test_state_transitions(self, full_analysis):
        executor = make_executor(recording_factory([]))
        assert executor.state == ExecutorState.IDLE
        await executor.execute(make_plan(full_analysis))
        assert executor.state == ExecutorState.DONE
        assert executor.current_batch_index == 2
        assert executor.state_history == [
            (ExecutorState.RUNNING_BATCH, 0),
            (ExecutorState.BATCH_COMPLETE, 0),
            (ExecutorState.RUNNING_BATCH, 1),
            (ExecutorState.BATCH_COMPLETE, 1),
            (ExecutorState.RUNNING_BATCH, 2),
            (ExecutorState.BATCH_COMPLETE, 2),
            (ExecutorState.DONE, 2),
        ]

    @pytest.mark.asyncio
    async def test_state_is_running_batch_while_workers_execute(self, full_analysis):
        observed = []

        class StateObservingWorker(RecordingWorker):
            async def execute(self, task):
                observed.append((executor.state, executor.current_batch_index))
                return await super().execute(task)

        executor = make_executor(
            lambda worker_type, client, root_path: StateObservingWorker(worker_type, [])
        )
        await executor.execute(make_plan(full_analysis))

        assert observed[0] == (ExecutorState.RUNNING_BATCH, 0)
        assert observed[1] == (ExecutorState.RUNNING_BATCH, 1)
        assert set(observed[2:]) == {(ExecutorState.RUNNING_BATCH, 2)}


# ---------------------------------------------------------------------------
# Failure isolation
# ---------------------------------------------------------------------------
class TestFailureIsolation:
    @pytest.mark.asyncio
    async def test_failed_task_does_not_stop_siblings_or_later_batches(self, full_analysis):
        events = []
        plan = make_plan(full_analysis)
        executor = make_executor(recording_factory(events, fail_ids={"config-2", "http-3"}))

        result = await executor.execute(plan)

        assert result.success is False
        assert len(result.worker_results) == 7
        succeeded = {r.task_id for r in result.worker_results if r.success}
        assert succeeded == {"dependency-1", "service-4", "database-5", "cache-6", "external-api-7"}
        assert result.errors == ["config-2 failed", "http-3 failed"]

    @pytest.mark.asyncio
    async def test_raising_worker_becomes_failed_result(self, full_analysis):
        plan = make_plan(full_analysis)
        executor = make_executor(recording_factory([], raise_ids={"cache-6"}))

        result = await executor.execute(plan)
        cache = next(r for r in result.worker_results if r.task_id == "cache-6")

        assert cache.success is False
        assert cache.changes == []
        assert cache.errors == ["worker exploded on cache-6"]
        assert cache.worker_type == WorkerType.CACHE

    @pytest.mark.asyncio
    async def test_timeout_becomes_failed_result(self):
        plan = make_plan(make_analysis(missing=[]))
        executor = make_executor(recording_factory([], delay=1.0), timeout=0.05)

        result = await executor.execute(plan)

        assert result.success is False
        assert result.worker_results[0].errors == ["Task 'config-1' timed out after 0.05s"]

    @pytest.mark.asyncio
    async def test_factory_error_becomes_failed_result(self):
        def broken_factory(worker_type, client, root_path):
            raise KeyError(worker_type)

        plan = make_plan(make_analysis(missing=[]))
        result = await make_executor(broken_factory).execute(plan)

        assert result.worker_results[0].success is False
        assert result.worker_results[0].errors

    @pytest.mark.asyncio
    async def test_timeout_disabled(self):
        plan = make_plan(make_analysis(missing=[]))
        result = await make_executor(recording_factory([]), timeout=None).execute(plan)
        assert result.success is True

    @pytest.mark.asyncio
    async def test_unknown_task_in_execution_order(self):
        plan = OrchestrationPlan(
            analysis=make_analysis(),
            tasks=[make_task("a")],
            execution_order=[["a"], ["ghost"]],
        )
        with pytest.raises(PlanningError, match="ghost"):
            await make_executor(recording_factory([])).execute(plan)

    @pytest.mark.asyncio
    async def test_omitted_task_in_execution_order(self):
        events = []
        plan = OrchestrationPlan(
            analysis=make_analysis(),
            tasks=[make_task("a"), make_task("b", ["a"])],
            execution_order=[["a"]],
        )
        with pytest.raises(PlanningError, match="omits task\\(s\\): b"):
            await make_executor(recording_factory(events)).execute(plan)
        assert events == []

    @pytest.mark.asyncio
    async def test_duplicated_task_in_execution_order(self):
        events = []
        plan = OrchestrationPlan(
            analysis=make_analysis(),
            tasks=[make_task("a")],
            execution_order=[["a"], ["a"]],
        )
        with pytest.raises(PlanningError, match="more than once: a"):
            await make_executor(recording_factory(events)).execute(plan)
        assert events == []


# ---------------------------------------------------------------------------
# Summary
# ---------------------------------------------------------------------------
class TestRunSummary:
    @pytest.mark.asyncio
    async def test_summary_counts(self, full_analysis):
        plan = make_plan(full_analysis)
        result = await make_executor(recording_factory([])).execute(plan)
        summary = result.summary

        assert result.success is True
        assert summary.files_analyzed == 5
        assert summary.files_created == 1
        assert summary.files_modified == 6
        assert summary.total_tasks == 7
        assert summary.batch_count == 3
        assert summary.packages_added == full_analysis.dependencies.missing
        assert len(summary.instrumentation_points) == 6
        assert summary.instrumentation_points[0].point_type == "init"

    def test_packages_not_reported_when_dependency_task_failed(self, full_analysis):
        plan = make_plan(full_analysis)
        results = [
            WorkerResult(
                task_id="dependency-1",
                worker_type=WorkerType.DEPENDENCY,
                success=False,
                errors=["bad json"],
            )
        ]
        summary = build_run_summary(plan, results, 1.5)

        assert summary.packages_added == []
        assert summary.duration_seconds == 1.5

    def test_skipped_files_counted(self):
        plan = make_plan(
            make_analysis(files=[make_file("src/middleware/auth.ts", FileRole.MIDDLEWARE)], missing=[])
        )
        summary = build_run_summary(plan, [], 0.0)
        assert summary.files_skipped == 1

