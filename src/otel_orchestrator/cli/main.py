"""CLI entry point for the OpenTelemetry instrumentation orchestrator."""
import argparse
import asyncio
from dotenv import load_dotenv
import json
import logging
import sys
import traceback
from pathlib import Path

from otel_orchestrator.agents.exceptions import AgentError
from otel_orchestrator.orchestrator.exceptions import OrchestratorError

load_dotenv()

# Exit codes
EXIT_SUCCESS = 0
EXIT_ERROR = 1
EXIT_INVALID_INPUT = 2
EXIT_PARTIAL_FAILURE = 3
EXIT_KEYBOARD_INTERRUPT = 130

# Defaults
DEFAULT_MODEL = "claude-sonnet-4-20250514"
DEFAULT_TASK_TIMEOUT = 300
DEFAULT_OUTPUT_DIR = "./instrumented"

# Safe keys allowed in config output (no secrets)
_SAFE_CONFIG_KEYS = frozenset({
    "source_path", "output_path", "template_dir", "model", "llm_provider",
    "llm_fallback_provider", "allow_llm_fallback", "task_timeout", "plan_only",
    "output_json", "verbose",
})


def _non_negative_float(value: str) -> float:
    """argparse type for timeouts: a float that is zero or greater."""
    try:
        number = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid number: '{value}'") from None
    if number < 0:
        raise argparse.ArgumentTypeError(f"must be 0 or greater, got {value}")
    return number


def build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    parser = argparse.ArgumentParser(
        prog="otel-orchestrator",
        description="Add OpenTelemetry tracing to a Node.js/TypeScript codebase",
    )
    parser.add_argument("source_path", type=str, help="Path to the codebase to instrument")
    parser.add_argument(
        "output_path",
        type=str,
        nargs="?",
        default=DEFAULT_OUTPUT_DIR,
        help=f"Directory for instrumented files (default: {DEFAULT_OUTPUT_DIR})",
    )
    parser.add_argument(
        "--template-dir",
        type=str,
        default="",
        help="Directory copied into the output before changes are written",
    )
    parser.add_argument(
        "--model",
        type=str,
        default=DEFAULT_MODEL,
        help=f"Model ID to use (default: {DEFAULT_MODEL})",
    )
    parser.add_argument(
        "--llm-provider",
        type=str,
        default="auto",
        choices=("auto", "anthropic", "openai"),
        help="LLM provider for workers: auto (default), anthropic, or openai",
    )
    parser.add_argument(
        "--llm-fallback-provider",
        type=str,
        default="",
        choices=("", "anthropic", "openai"),
        help="Optional fallback provider when the primary provider fails",
    )
    parser.add_argument(
        "--allow-llm-fallback",
        action="store_true",
        help="Allow fallback to the alternate provider when the primary fails",
    )
    parser.add_argument(
        "--task-timeout",
        type=_non_negative_float,
        default=DEFAULT_TASK_TIMEOUT,
        help=f"Per-task timeout in seconds, 0 disables (default: {DEFAULT_TASK_TIMEOUT})",
    )
    parser.add_argument(
        "--plan-only",
        action="store_true",
        help="Analyze and plan, print the batches, and exit without calling the LLM",
    )
    parser.add_argument("--output-json", action="store_true", help="Output results as JSON")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose output")
    return parser


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.INFO if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def validate_source_path(raw_path: str) -> str:
    """Validate and resolve the source path.

    Raises:
        SystemExit: If path is not a valid directory.
    """
    resolved = Path(raw_path).resolve()
    if not resolved.is_dir():
        print(f"Error: '{raw_path}' is not a valid directory.", file=sys.stderr)
        raise SystemExit(EXIT_INVALID_INPUT)
    return str(resolved)


def create_agents(args: argparse.Namespace, source_path: str) -> dict:
    """Create all pipeline components from CLI arguments.

    The LLM client is only built when tasks will actually execute, so
    --plan-only works without API keys.

    Returns:
        Dict with keys: analyzer, planner, executor, writer.
    """
    from otel_orchestrator.agents.batch_executor import BatchExecutor
    from otel_orchestrator.agents.change_writer import ChangeWriter
    from otel_orchestrator.agents.codebase_analyzer import CodebaseAnalyzer
    from otel_orchestrator.agents.planner import Planner
    from otel_orchestrator.utils.llm_client import LLMClient

    client = None
    if not args.plan_only:
        client = LLMClient(
            model=args.model,
            llm_provider=args.llm_provider,
            llm_fallback_provider=args.llm_fallback_provider or None,
            allow_fallback=args.allow_llm_fallback,
        )

    return {
        "analyzer": CodebaseAnalyzer(),
        "planner": Planner(),
        "executor": BatchExecutor(
            client=client,
            root_path=source_path,
            task_timeout_seconds=args.task_timeout or None,
        ),
        "writer": ChangeWriter(),
    }


def format_result_json(result: dict) -> str:
    """Serialize the final pipeline state to JSON."""

    def _serialize(obj):
        if obj is None:
            return None
        if hasattr(obj, "model_dump"):
            return obj.model_dump(mode="json")
        return obj

    prepared = {k: _serialize(v) for k, v in result.items()}
    return json.dumps(prepared, indent=2, default=str)


def print_result_human(result: dict) -> None:
    """Print the plan, per-batch composition, summary and errors."""
    print(f"\n{'='*60}")
    print("OpenTelemetry Instrumentation Results")
    print(f"{'='*60}")

    plan = result.get("plan")
    if plan is not None:
        print(f"\nTasks ({len(plan.tasks)} total, estimated {plan.estimated_duration}):")
        for index, batch in enumerate(plan.execution_order, 1):
            print(f"  Batch {index}: {', '.join(batch)}")
        if plan.skipped_files:
            print(f"  Skipped files (no matching worker): {len(plan.skipped_files)}")

    run = result.get("result")
    if run is not None:
        summary = run.summary
        print(f"\nStatus: {'success' if run.success else 'completed with failures'}")
        print(f"Files analyzed: {summary.files_analyzed}")
        print(f"Files modified: {summary.files_modified}")
        print(f"Files created: {summary.files_created}")
        print(f"Files skipped: {summary.files_skipped}")
        if summary.packages_added:
            print(f"Packages added: {', '.join(summary.packages_added)}")
        print(f"Duration: {summary.duration_seconds:.2f}s")

    report = result.get("write_report")
    if report is not None:
        print(f"\nWritten to {report.output_root}: {len(report.written_files)} files")

    errors = result.get("errors", [])
    if errors:
        print(f"\nErrors ({len(errors)}):")
        for err in errors:
            print(f"  - {err}")

    print(f"\n{'='*60}")


def determine_exit_code(result: dict) -> int:
    """Map the final pipeline state to an exit code."""
    if result.get("plan") is None:
        return EXIT_ERROR
    if result.get("errors"):
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS


def print_config_human(config: dict) -> None:
    """Print configuration, restricted to the safe allowlist."""
    print("\nConfiguration:")
    print(f"{'='*40}")
    for key, value in config.items():
        if key in _SAFE_CONFIG_KEYS:
            print(f"  {key}: {value}")
    print(f"{'='*40}")


def _handle_error(label: str, exc: BaseException, verbose: bool, exit_code: int) -> int:
    """Print error message to stderr and return the exit code."""
    print(f"{label}: {exc}", file=sys.stderr)
    if verbose:
        traceback.print_exc(file=sys.stderr)
    return exit_code


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:]).

    Returns:
        Exit code integer.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)

    try:
        source_path = validate_source_path(args.source_path)
    except SystemExit as exc:
        return exc.code

    output_path = str(Path(args.output_path).resolve())
    config = {
        "source_path": source_path,
        "output_path": output_path,
        "template_dir": args.template_dir,
        "model": args.model,
        "llm_provider": args.llm_provider,
        "llm_fallback_provider": args.llm_fallback_provider,
        "allow_llm_fallback": args.allow_llm_fallback,
        "task_timeout": args.task_timeout,
        "plan_only": args.plan_only,
        "output_json": args.output_json,
        "verbose": args.verbose,
    }
    if args.verbose and not args.output_json:
        print_config_human(config)

    try:
        agents = create_agents(args, source_path)

        from otel_orchestrator.orchestrator.graph import build_graph
        from otel_orchestrator.orchestrator.state import make_initial_state

        graph = build_graph(**agents)
        state = make_initial_state(
            source_path=source_path,
            output_path=output_path,
            template_path=args.template_dir or None,
            plan_only=args.plan_only,
        )
        result = asyncio.run(graph.ainvoke(state))

        if args.output_json:
            print(format_result_json(result))
        else:
            print_result_human(result)

        return determine_exit_code(result)

    except AgentError as exc:
        return _handle_error("Agent error", exc, args.verbose, EXIT_ERROR)

    except OrchestratorError as exc:
        return _handle_error("Orchestrator error", exc, args.verbose, EXIT_ERROR)

    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return EXIT_KEYBOARD_INTERRUPT

    except Exception as exc:
        return _handle_error("Unexpected error", exc, args.verbose, EXIT_ERROR)


if __name__ == "__main__":
    sys.exit(main())
