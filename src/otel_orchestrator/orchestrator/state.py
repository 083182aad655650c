"""State definition for the LangGraph instrumentation pipeline."""

import operator
from typing import Annotated, TypedDict

from otel_orchestrator.models import (
    CodebaseAnalysis,
    OrchestrationPlan,
    OrchestrationResult,
    WriteReport,
)


class InstrumentationState(TypedDict):
    """State for the instrumentation pipeline.

    errors uses an operator.add reducer and accumulates across nodes.
    All other fields use default overwrite semantics.
    """

    # Input
    source_path: str
    output_path: str | None
    template_path: str | None
    plan_only: bool

    # Stages
    analysis: CodebaseAnalysis | None
    plan: OrchestrationPlan | None
    result: OrchestrationResult | None
    write_report: WriteReport | None

    # Error accumulation
    errors: Annotated[list[str], operator.add]


def make_initial_state(
    source_path: str,
    output_path: str | None = None,
    template_path: str | None = None,
    plan_only: bool = False,
) -> InstrumentationState:
    """Create the initial pipeline state.

    Args:
        source_path: Root of the codebase to instrument.
        output_path: Where changes are written; None skips writing.
        template_path: Tree copied into output_path before writing.
        plan_only: Stop after planning.
    """
    return {
        "source_path": source_path,
        "output_path": output_path,
        "template_path": template_path,
        "plan_only": plan_only,
        "analysis": None,
        "plan": None,
        "result": None,
        "write_report": None,
        "errors": [],
    }
