"""Base class for LLM-backed instrumentation workers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING

from otel_orchestrator.models import (
    FileChange,
    InstrumentationTask,
    WorkerResult,
    WorkerType,
)
from otel_orchestrator.utils.file_system import read_file, resolve_within

if TYPE_CHECKING:
    from otel_orchestrator.utils.llm_client import LLMClient


class BaseWorker(ABC):
    """Turns one task into a WorkerResult.

    Implementations must never raise out of execute(); every failure is
    reported through failure_result().
    """

    worker_type: WorkerType
    max_tokens: int = 4000

    def __init__(self, client: LLMClient, root_path: str, worker_type: WorkerType | None = None):
        self.client = client
        self.root_path = root_path
        if worker_type is not None:
            self.worker_type = worker_type

    @abstractmethod
    async def execute(self, task: InstrumentationTask) -> WorkerResult:
        """Run the task and report the outcome."""

    @abstractmethod
    def system_prompt(self) -> str:
        ...

    @abstractmethod
    def build_user_prompt(self, task: InstrumentationTask, original_content: str = "") -> str:
        ...

    def read_target(self, task: InstrumentationTask) -> str:
        """Read the task's target file from the source root."""
        path: Path = resolve_within(self.root_path, task.target_file)
        return read_file(path)

    def success_result(
        self, task_id: str, changes: list[FileChange], message: str
    ) -> WorkerResult:
        return WorkerResult(
            task_id=task_id,
            worker_type=self.worker_type,
            success=True,
            changes=changes,
            message=message,
        )

    def failure_result(self, task_id: str, error: str) -> WorkerResult:
        return WorkerResult(
            task_id=task_id,
            worker_type=self.worker_type,
            success=False,
            message="Task failed",
            errors=[error or "Unknown error occurred"],
        )
