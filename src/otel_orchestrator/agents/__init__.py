"""Agent components for the instrumentation orchestrator."""

from otel_orchestrator.agents.exceptions import (
    AgentError,
    AnalysisError,
    ChangeWriteError,
    ExecutionError,
    LLMClientError,
    PayloadExtractionError,
    PlanningError,
    TaskDependencyError,
    WorkerTimeoutError,
)
from otel_orchestrator.agents.batch_executor import BatchExecutor, ExecutorState
from otel_orchestrator.agents.batch_scheduler import compute_execution_batches
from otel_orchestrator.agents.change_writer import ChangeWriter
from otel_orchestrator.agents.codebase_analyzer import CodebaseAnalyzer
from otel_orchestrator.agents.planner import Planner

__all__ = [
    "AgentError",
    "AnalysisError",
    "BatchExecutor",
    "ChangeWriteError",
    "ChangeWriter",
    "CodebaseAnalyzer",
    "ExecutionError",
    "ExecutorState",
    "LLMClientError",
    "PayloadExtractionError",
    "Planner",
    "PlanningError",
    "TaskDependencyError",
    "WorkerTimeoutError",
    "compute_execution_batches",
]
