"""Per-task workers and the dispatch from task type to worker."""

from __future__ import annotations

from typing import TYPE_CHECKING, assert_never

from otel_orchestrator.agents.workers.base import BaseWorker
from otel_orchestrator.agents.workers.config_worker import ConfigWorker
from otel_orchestrator.agents.workers.dependency_worker import DependencyWorker
from otel_orchestrator.agents.workers.file_instrumentation_worker import (
    FileInstrumentationWorker,
)
from otel_orchestrator.models import WorkerType

if TYPE_CHECKING:
    from otel_orchestrator.utils.llm_client import LLMClient


def create_worker(worker_type: WorkerType, client: LLMClient, root_path: str) -> BaseWorker:
    """Build the worker responsible for a task type."""
    match worker_type:
        case WorkerType.DEPENDENCY:
            return DependencyWorker(client, root_path)
        case WorkerType.CONFIG:
            return ConfigWorker(client, root_path)
        case (
            WorkerType.HTTP
            | WorkerType.SERVICE
            | WorkerType.DATABASE
            | WorkerType.CACHE
            | WorkerType.EXTERNAL_API
        ):
            return FileInstrumentationWorker(client, root_path, worker_type)
        case _:
            assert_never(worker_type)


__all__ = [
    "BaseWorker",
    "ConfigWorker",
    "DependencyWorker",
    "FileInstrumentationWorker",
    "create_worker",
]
