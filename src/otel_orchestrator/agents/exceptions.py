"""Exceptions for agent operations."""


class AgentError(Exception):
    """Base exception for all agent operations."""


class AnalysisError(AgentError):
    """Raised when the source tree cannot be read or analyzed."""


class PlanningError(AgentError):
    """Raised when the instrumentation plan cannot be built."""


class TaskDependencyError(PlanningError):
    """Raised when task dependencies form a cycle or reference missing tasks."""


class ExecutionError(AgentError):
    """Base exception for task execution operations."""


class WorkerTimeoutError(ExecutionError):
    """Raised when a single task exceeds its time budget."""


class LLMClientError(ExecutionError):
    """Raised when the completion provider call fails."""


class PayloadExtractionError(ExecutionError):
    """Raised when a model response does not contain a usable payload."""


class ChangeWriteError(AgentError):
    """Raised when a proposed file change cannot be written."""
