"""Planner agent: turns a codebase analysis into a batched task graph."""

import logging
import math
from typing import Callable

from otel_orchestrator.agents.batch_scheduler import compute_execution_batches
from otel_orchestrator.models import (
    CodebaseAnalysis,
    FileAnalysis,
    FileRole,
    InstrumentationTask,
    OrchestrationPlan,
    TaskContext,
    WorkerType,
)

logger = logging.getLogger(__name__)

DEPENDENCY_TARGET = "package.json"
CONFIG_TARGET = "src/tracing.ts"
DEPENDENCY_PRIORITY = 1
CONFIG_PRIORITY = 2
FILE_PRIORITY = 3
SECONDS_PER_TASK = 10

# Path markers for utility files, checked in order
_UTILITY_MARKERS: list[tuple[tuple[str, ...], WorkerType]] = [
    (("database",), WorkerType.DATABASE),
    (("cache",), WorkerType.CACHE),
    (("external", "api"), WorkerType.EXTERNAL_API),
]

_WORKER_INSTRUCTIONS: dict[WorkerType, str] = {
    WorkerType.HTTP: """HTTP Instrumentation Instructions:
1. Import tracer: import { trace, SpanStatusCode } from '@opentelemetry/api';
2. Get tracer instance: const tracer = trace.getTracer('http-routes');
3. For each route handler:
   - Start a span with a descriptive name (e.g., 'GET /users/:id')
   - Add attributes: http.method, http.route, http.status_code
   - Wrap the handler logic in the span context
   - End the span when the response is sent
   - Record errors if they occur
4. Preserve the existing error handling logic
5. Maintain TypeScript types

Return the complete instrumented file.""",
    WorkerType.SERVICE: """Service Layer Instrumentation Instructions:
1. Import tracer: import { trace } from '@opentelemetry/api';
2. Get tracer instance: const tracer = trace.getTracer('services');
3. For each public method:
   - Start a span with format: 'ServiceName.methodName'
   - Add relevant attributes (e.g., userId, orderId, productId)
   - Use span.addEvent() for significant operations
   - Record any errors
4. For async operations, ensure proper span context propagation
5. Preserve all existing logic and TypeScript types

Return the complete instrumented file.""",
    WorkerType.DATABASE: """Database Instrumentation Instructions:
1. Import tracer: import { trace } from '@opentelemetry/api';
2. Get tracer instance: const tracer = trace.getTracer('database');
3. For each database operation:
   - Start a span with operation name (e.g., 'db.findUserById')
   - Add attributes: db.operation, db.collection/table, query parameters
   - Add event for query execution
   - Record query duration
4. Preserve simulated delays and all existing logic

Return the complete instrumented file.""",
    WorkerType.CACHE: """Cache Instrumentation Instructions:
1. Import tracer: import { trace } from '@opentelemetry/api';
2. Get tracer instance: const tracer = trace.getTracer('cache');
3. For each cache operation (get, set, delete):
   - Start a span with operation name (e.g., 'cache.get')
   - Add attributes: cache.key, cache.hit (for get operations)
   - Record cache hit/miss events
4. Preserve all existing logic

Return the complete instrumented file.""",
    WorkerType.EXTERNAL_API: """External API Instrumentation Instructions:
1. Import tracer: import { trace } from '@opentelemetry/api';
2. Get tracer instance: const tracer = trace.getTracer('external-api');
3. For each external API call:
   - Start a span with API name (e.g., 'external.processPayment')
   - Add attributes: api.endpoint, api.method, response.status
   - Add events for request/response
   - Record any errors or failures
4. Preserve all existing logic

Return the complete instrumented file.""",
}


def select_worker_type(file: FileAnalysis) -> WorkerType | None:
    """Map a file's detected role to the worker that instruments it.

    Returns:
        The WorkerType, or None when no worker handles the file.
    """
    if file.role == FileRole.ROUTE:
        return WorkerType.HTTP
    if file.role == FileRole.SERVICE:
        return WorkerType.SERVICE
    if file.role == FileRole.UTILITY:
        for markers, worker_type in _UTILITY_MARKERS:
            if any(marker in file.path for marker in markers):
                return worker_type
    return None


def estimate_duration(task_count: int) -> str:
    """Rough wall-clock estimate at ten seconds per task."""
    seconds = task_count * SECONDS_PER_TASK
    if seconds < 60:
        return f"{seconds} seconds"
    minutes = math.ceil(seconds / 60)
    return f"{minutes} minute{'s' if minutes > 1 else ''}"


class Planner:
    """Builds the instrumentation task graph for a codebase."""

    def create_plan(self, analysis: CodebaseAnalysis) -> OrchestrationPlan:
        """Build tasks, batch them and estimate the run.

        Args:
            analysis: Output of CodebaseAnalyzer.

        Returns:
            OrchestrationPlan with tasks, execution_order and skipped_files.

        Raises:
            TaskDependencyError: If the task graph cannot be batched.
        """
        tasks, skipped_files = self.build_tasks(analysis)
        execution_order = compute_execution_batches(tasks)

        logger.info(
            "Planned %d tasks in %d batches (%d files skipped)",
            len(tasks),
            len(execution_order),
            len(skipped_files),
        )

        return OrchestrationPlan(
            analysis=analysis,
            tasks=tasks,
            execution_order=execution_order,
            skipped_files=skipped_files,
            estimated_duration=estimate_duration(len(tasks)),
        )

    def build_tasks(
        self, analysis: CodebaseAnalysis
    ) -> tuple[list[InstrumentationTask], list[str]]:
        """Emit the dependency, config and per-file tasks.

        Returns:
            Tuple of (tasks, paths of files no worker handles).
        """
        tasks: list[InstrumentationTask] = []
        next_id = self._id_generator()

        if analysis.dependencies.missing:
            tasks.append(
                InstrumentationTask(
                    task_id=next_id(WorkerType.DEPENDENCY),
                    task_type=WorkerType.DEPENDENCY,
                    target_file=DEPENDENCY_TARGET,
                    instructions=self._dependency_instructions(analysis),
                    priority=DEPENDENCY_PRIORITY,
                    dependencies=[],
                    context=self._task_context(analysis, []),
                )
            )

        config_task = InstrumentationTask(
            task_id=next_id(WorkerType.CONFIG),
            task_type=WorkerType.CONFIG,
            target_file=CONFIG_TARGET,
            instructions=self._config_instructions(analysis),
            priority=CONFIG_PRIORITY,
            dependencies=[t.task_id for t in tasks if t.task_type == WorkerType.DEPENDENCY],
            context=self._task_context(analysis, []),
        )
        tasks.append(config_task)

        skipped_files: list[str] = []
        for file in analysis.files:
            worker_type = select_worker_type(file)
            if worker_type is None:
                logger.debug("No worker for %s (role=%s), skipping", file.path, file.role.value)
                skipped_files.append(file.path)
                continue

            tasks.append(
                InstrumentationTask(
                    task_id=next_id(worker_type),
                    task_type=worker_type,
                    target_file=file.path,
                    instructions=self._file_instructions(file, worker_type),
                    priority=FILE_PRIORITY,
                    dependencies=[config_task.task_id],
                    context=self._task_context(analysis, [file]),
                )
            )

        return tasks, skipped_files

    def _id_generator(self) -> Callable[[WorkerType], str]:
        counter = 0

        def next_id(worker_type: WorkerType) -> str:
            nonlocal counter
            counter += 1
            return f"{worker_type.value}-{counter}"

        return next_id

    def _task_context(
        self, analysis: CodebaseAnalysis, relevant_files: list[FileAnalysis]
    ) -> TaskContext:
        return TaskContext(
            all_files=[f.path for f in analysis.files],
            relevant_files=relevant_files,
            dependencies=analysis.dependencies,
        )

    def _dependency_instructions(self, analysis: CodebaseAnalysis) -> str:
        required_versions = {dep.name: dep.version for dep in analysis.dependencies.required}
        packages = "\n".join(
            f"- {name}@{required_versions[name]}" if name in required_versions else f"- {name}"
            for name in analysis.dependencies.missing
        )
        return f"""You are a dependency management worker. Your task is to update package.json \
with OpenTelemetry packages.

Required packages to add:
{packages}

Instructions:
1. Add these packages to the "dependencies" section
2. Use the versions specified in the required dependencies list
3. Maintain proper JSON formatting
4. Keep existing dependencies intact

Return the complete updated package.json file."""

    def _config_instructions(self, analysis: CodebaseAnalysis) -> str:
        framework = analysis.framework.value
        return f"""You are an OpenTelemetry configuration worker. Your task is to create a \
tracing initialization file.

Framework detected: {framework}
Entry point: {analysis.entry_point or "unknown"}

Instructions:
1. Create a new file called "tracing.ts"
2. Import necessary OpenTelemetry packages:
   - @opentelemetry/sdk-node
   - @opentelemetry/auto-instrumentations-node
   - @opentelemetry/exporter-trace-otlp-http
3. Initialize the NodeSDK with:
   - Service name: Extract from package.json or use "sample-app"
   - Auto-instrumentations for {framework}
   - Console exporter for development
   - Optional OTLP exporter for production
4. Export a function to start tracing
5. Add proper TypeScript types

Return the complete tracing.ts file content."""

    def _file_instructions(self, file: FileAnalysis, worker_type: WorkerType) -> str:
        functions = "\n".join(
            f"- {f.name} (async: {f.is_async}, calls DB: {f.calls_database}, "
            f"calls cache: {f.calls_cache}, calls external API: {f.calls_external_apis})"
            for f in file.functions
        )
        base = f"""You are a {worker_type.value} instrumentation worker. Your task is to add \
OpenTelemetry spans to the following file.

File: {file.path}
Type: {file.role.value}
Has async operations: {file.has_async_operations}

Functions in this file:
{functions or "- (none detected)"}"""
        return f"{base}\n\n{_WORKER_INSTRUCTIONS.get(worker_type, '')}".rstrip()
