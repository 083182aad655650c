"""LangGraph orchestrator package for the instrumentation pipeline."""

from otel_orchestrator.orchestrator.exceptions import GraphBuildError, OrchestratorError
from otel_orchestrator.orchestrator.graph import build_graph
from otel_orchestrator.orchestrator.state import InstrumentationState, make_initial_state

__all__ = [
    "GraphBuildError",
    "InstrumentationState",
    "OrchestratorError",
    "build_graph",
    "make_initial_state",
]
