"""Data models for the instrumentation orchestrator."""

from otel_orchestrator.models.analysis_models import (
    CodebaseAnalysis,
    DependencyInfo,
    FileAnalysis,
    FileRole,
    Framework,
    FunctionInfo,
    PackageDependency,
    SourceFile,
)
from otel_orchestrator.models.result_models import (
    ChangeOperation,
    FileChange,
    InstrumentationPoint,
    OrchestrationResult,
    RunSummary,
    WorkerResult,
    WriteReport,
)
from otel_orchestrator.models.task_models import (
    InstrumentationTask,
    OrchestrationPlan,
    TaskContext,
    WorkerType,
)

__all__ = [
    "ChangeOperation",
    "CodebaseAnalysis",
    "DependencyInfo",
    "FileAnalysis",
    "FileChange",
    "FileRole",
    "Framework",
    "FunctionInfo",
    "InstrumentationPoint",
    "InstrumentationTask",
    "OrchestrationPlan",
    "OrchestrationResult",
    "PackageDependency",
    "RunSummary",
    "SourceFile",
    "TaskContext",
    "WorkerResult",
    "WorkerType",
    "WriteReport",
]
