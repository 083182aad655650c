"""Worker that adds OpenTelemetry packages to package.json."""

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
from otel_orchestrator.utils.payload_extractor import extract_json

logger = logging.getLogger(__name__)


class DependencyWorker(BaseWorker):
    worker_type = WorkerType.DEPENDENCY
    max_tokens = 2000

    async def execute(self, task: InstrumentationTask) -> WorkerResult:
        try:
            original_content = self.read_target(task)
            response = await self.client.complete(
                self.system_prompt(),
                self.build_user_prompt(task, original_content),
                self.max_tokens,
            )

            payload = extract_json(response.content)
            if not payload.ok:
                raise PayloadExtractionError(payload.error)

            change = FileChange(
                path=task.target_file,
                operation=ChangeOperation.MODIFY,
                original_content=original_content,
                new_content=payload.content,
                description="Added OpenTelemetry dependencies to package.json",
            )
            return self.success_result(
                task.task_id,
                [change],
                "Successfully updated package.json with OpenTelemetry dependencies",
            )
        except Exception as e:
            logger.warning("Dependency task %s failed: %s", task.task_id, e)
            return self.failure_result(task.task_id, str(e))

    def system_prompt(self) -> str:
        return """You are a dependency management expert specializing in Node.js and OpenTelemetry.

Your task is to update package.json files to include OpenTelemetry packages while:
1. Maintaining proper JSON formatting
2. Preserving all existing dependencies
3. Adding new dependencies in alphabetical order
4. Using appropriate version numbers

Return ONLY the complete updated package.json content. Do not include any explanations \
or markdown code blocks."""

    def build_user_prompt(self, task: InstrumentationTask, original_content: str = "") -> str:
        return f"""{task.instructions}

Current package.json:
{original_content}

Please return the updated package.json with the required OpenTelemetry packages added.
Return ONLY the JSON content, no markdown code blocks or explanations."""
