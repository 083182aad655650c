"""Worker result and run report models."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, model_validator

from otel_orchestrator.models.task_models import OrchestrationPlan, WorkerType


class ChangeOperation(str, Enum):
    CREATE = "create"
    MODIFY = "modify"
    NONE = "none"


class FileChange(BaseModel):
    """A proposed change to one file, produced by a worker."""

    model_config = ConfigDict(frozen=True)

    path: str  # Relative to the source root
    operation: ChangeOperation
    original_content: str | None = None
    new_content: str | None = None
    description: str = ""


class WorkerResult(BaseModel):
    """Outcome of executing one task.

    A failed result always carries at least one error and never carries
    changes.
    """

    model_config = ConfigDict(frozen=True)

    task_id: str
    worker_type: WorkerType
    success: bool
    changes: list[FileChange] = Field(default_factory=list)
    message: str = ""
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_failure_shape(self) -> "WorkerResult":
        if not self.success:
            if not self.errors:
                raise ValueError("failed WorkerResult must carry at least one error")
            if self.changes:
                raise ValueError("failed WorkerResult must not carry changes")
        return self


class InstrumentationPoint(BaseModel):
    model_config = ConfigDict(frozen=True)

    file: str
    point_type: str = "span"  # "span" | "attribute" | "event" | "init"
    location: str
    description: str


class RunSummary(BaseModel):
    """Aggregate statistics for one orchestration run."""

    model_config = ConfigDict(frozen=True)

    files_analyzed: int = 0
    files_modified: int = 0
    files_created: int = 0
    files_skipped: int = 0  # Files whose role maps to no worker
    instrumentation_points: list[InstrumentationPoint] = Field(default_factory=list)
    packages_added: list[str] = Field(default_factory=list)
    total_tasks: int = 0
    batch_count: int = 0
    duration_seconds: float = 0.0


class OrchestrationResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool
    plan: OrchestrationPlan
    worker_results: list[WorkerResult] = Field(default_factory=list)
    summary: RunSummary
    errors: list[str] = Field(default_factory=list)


class WriteReport(BaseModel):
    """Outcome of materializing worker changes on disk."""

    model_config = ConfigDict(frozen=True)

    output_root: str
    written_files: list[str] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors
