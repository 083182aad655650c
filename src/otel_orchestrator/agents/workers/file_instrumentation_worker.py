"""Worker that adds spans to an existing source file."""

import logging

from otel_orchestrator.agents.exceptions import PayloadExtractionError
from otel_orchestrator.agents.workers.base import BaseWorker
from otel_orchestrator.models import (
    ChangeOperation,
    FileChange,
    InstrumentationTask,
    WorkerResult,
    WorkerType,
)
from otel_orchestrator.utils.payload_extractor import extract_code

logger = logging.getLogger(__name__)

CHANGE_DESCRIPTIONS: dict[WorkerType, str] = {
    WorkerType.HTTP: "Added OpenTelemetry spans to HTTP routes",
    WorkerType.SERVICE: "Added OpenTelemetry spans to service methods",
    WorkerType.DATABASE: "Added OpenTelemetry spans to database operations",
    WorkerType.CACHE: "Added OpenTelemetry spans to cache operations",
    WorkerType.EXTERNAL_API: "Added OpenTelemetry spans to external API calls",
}


class FileInstrumentationWorker(BaseWorker):
    """Handles http, service, database, cache and external-api tasks."""

    max_tokens = 6000

    async def execute(self, task: InstrumentationTask) -> WorkerResult:
        try:
            original_content = self.read_target(task)
            response = await self.client.complete(
                self.system_prompt(),
                self.build_user_prompt(task, original_content),
                self.max_tokens,
            )
            new_content = extract_code(response.content)
            if not new_content:
                raise PayloadExtractionError(
                    f"Empty response, no instrumented content for {task.target_file}"
                )

            change = FileChange(
                path=task.target_file,
                operation=ChangeOperation.MODIFY,
                original_content=original_content,
                new_content=new_content,
                description=CHANGE_DESCRIPTIONS.get(self.worker_type, "Added OpenTelemetry spans"),
            )
            return self.success_result(
                task.task_id,
                [change],
                f"Successfully instrumented {task.target_file}",
            )
        except Exception as e:
            logger.warning("Instrumentation task %s failed: %s", task.task_id, e)
            return self.failure_result(task.task_id, str(e))

    def system_prompt(self) -> str:
        return """You are an OpenTelemetry instrumentation expert.

Your task is to add tracing spans to existing code while:
1. Preserving ALL existing functionality and logic
2. Maintaining proper TypeScript types
3. Importing required OpenTelemetry packages (@opentelemetry/api)
4. Adding spans that capture important operations
5. Including proper error handling and span status
6. Following OpenTelemetry best practices

Return ONLY the complete instrumented file content. Do not include explanations or extra \
commentary."""

    def build_user_prompt(self, task: InstrumentationTask, original_content: str = "") -> str:
        return f"""{task.instructions}

Original file content:
{original_content}

Please return the complete instrumented file with OpenTelemetry spans added.
Preserve all existing functionality and maintain TypeScript types.
Return ONLY the code, no markdown code blocks or explanations."""
