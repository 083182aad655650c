"""LangGraph pipeline wiring analysis, planning, execution and writing.

    START -> analyze_node -> plan_node -> execute_node -> write_node -> END

analyze_node and plan_node route straight to END when they fail; plan_node
also ends the run when only a plan was requested. A dependency cycle is
caught in plan_node, so no task ever runs against an invalid graph.
"""

from typing import Awaitable, Callable

from langgraph.graph import END, START, StateGraph

from otel_orchestrator.agents.batch_executor import BatchExecutor
from otel_orchestrator.agents.change_writer import ChangeWriter
from otel_orchestrator.agents.codebase_analyzer import CodebaseAnalyzer
from otel_orchestrator.agents.exceptions import AgentError
from otel_orchestrator.agents.planner import Planner
from otel_orchestrator.orchestrator.exceptions import GraphBuildError
from otel_orchestrator.orchestrator.state import InstrumentationState


def make_analyze_node(analyzer: CodebaseAnalyzer) -> Callable[[InstrumentationState], dict]:
    """Factory: returns a node closure that analyzes the source tree.

    On error: returns {"errors": [str], "analysis": None}
    """

    def analyze_node(state: InstrumentationState) -> dict:
        try:
            return {"analysis": analyzer.analyze_path(state["source_path"])}
        except Exception as exc:
            return {"errors": [f"analyze_node error: {exc}"], "analysis": None}

    return analyze_node


def make_plan_node(planner: Planner) -> Callable[[InstrumentationState], dict]:
    """Factory: returns a node closure that builds the batched task plan.

    On error (including a dependency cycle): returns {"errors": [str], "plan": None}
    """

    def plan_node(state: InstrumentationState) -> dict:
        try:
            return {"plan": planner.create_plan(state["analysis"])}
        except AgentError as exc:
            return {"errors": [f"plan_node error: {exc}"], "plan": None}

    return plan_node


def make_execute_node(
    executor: BatchExecutor,
) -> Callable[[InstrumentationState], Awaitable[dict]]:
    """Factory: returns an async node closure that runs every batch.

    Task failures are part of the result; they are also copied into errors.
    """

    async def execute_node(state: InstrumentationState) -> dict:
        try:
            result = await executor.execute(state["plan"])
        except AgentError as exc:
            return {"errors": [f"execute_node error: {exc}"], "result": None}
        return {"result": result, "errors": list(result.errors)}

    return execute_node


def make_write_node(writer: ChangeWriter) -> Callable[[InstrumentationState], dict]:
    """Factory: returns a node closure that writes changes to output_path."""

    def write_node(state: InstrumentationState) -> dict:
        result = state["result"]
        if result is None or not state["output_path"]:
            return {"write_report": None}
        report = writer.write(
            result.worker_results,
            state["output_path"],
            template_dir=state["template_path"],
        )
        return {"write_report": report, "errors": list(report.errors)}

    return write_node


def after_analyze(state: InstrumentationState) -> str:
    return "continue" if state["analysis"] is not None else "done"


def after_plan(state: InstrumentationState) -> str:
    if state["plan"] is None or state["plan_only"]:
        return "done"
    return "continue"


def build_graph(
    analyzer: CodebaseAnalyzer,
    planner: Planner,
    executor: BatchExecutor,
    writer: ChangeWriter,
):
    """Build and compile the pipeline StateGraph.

    Args:
        analyzer: CodebaseAnalyzer instance.
        planner: Planner instance.
        executor: BatchExecutor instance.
        writer: ChangeWriter instance.

    Returns:
        CompiledStateGraph ready for ainvoke().

    Raises:
        GraphBuildError: If graph construction fails.
    """
    try:
        graph = StateGraph(InstrumentationState)

        graph.add_node("analyze_node", make_analyze_node(analyzer))
        graph.add_node("plan_node", make_plan_node(planner))
        graph.add_node("execute_node", make_execute_node(executor))
        graph.add_node("write_node", make_write_node(writer))

        graph.add_edge(START, "analyze_node")
        graph.add_conditional_edges(
            "analyze_node",
            after_analyze,
            {"continue": "plan_node", "done": END},
        )
        graph.add_conditional_edges(
            "plan_node",
            after_plan,
            {"continue": "execute_node", "done": END},
        )
        graph.add_edge("execute_node", "write_node")
        graph.add_edge("write_node", END)

        return graph.compile()

    except Exception as exc:
        raise GraphBuildError(f"Failed to build orchestrator graph: {exc}") from exc
