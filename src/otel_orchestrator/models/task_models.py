"""Task-related models for the instrumentation orchestrator."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from otel_orchestrator.models.analysis_models import (
    CodebaseAnalysis,
    DependencyInfo,
    FileAnalysis,
)


class WorkerType(str, Enum):
    """Category of work a task performs; selects the worker that runs it."""

    DEPENDENCY = "dependency"  # Updates package.json
    CONFIG = "config"  # Creates the tracing bootstrap file
    HTTP = "http"
    SERVICE = "service"
    DATABASE = "database"
    CACHE = "cache"
    EXTERNAL_API = "external-api"


class TaskContext(BaseModel):
    """Codebase facts handed to the worker alongside a task."""

    model_config = ConfigDict(frozen=True)

    all_files: list[str] = Field(default_factory=list)
    relevant_files: list[FileAnalysis] = Field(default_factory=list)
    dependencies: DependencyInfo = Field(default_factory=DependencyInfo)


class InstrumentationTask(BaseModel):
    """A single unit of instrumentation work with its prerequisites."""

    model_config = ConfigDict(frozen=True)

    task_id: str
    task_type: WorkerType
    target_file: str
    instructions: str
    priority: int  # Lower is more important; never used for ordering
    dependencies: list[str] = Field(default_factory=list)
    context: TaskContext = Field(default_factory=TaskContext)


class OrchestrationPlan(BaseModel):
    """Task graph plus its batched execution order."""

    model_config = ConfigDict(frozen=True)

    analysis: CodebaseAnalysis
    tasks: list[InstrumentationTask] = Field(default_factory=list)
    execution_order: list[list[str]] = Field(default_factory=list)
    skipped_files: list[str] = Field(default_factory=list)
    estimated_duration: str = ""

    def get_task(self, task_id: str) -> InstrumentationTask | None:
        for task in self.tasks:
            if task.task_id == task_id:
                return task
        return None
