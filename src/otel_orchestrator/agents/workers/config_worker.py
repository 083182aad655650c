"""Worker that creates the tracing bootstrap file."""

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


class ConfigWorker(BaseWorker):
    worker_type = WorkerType.CONFIG
    max_tokens = 3000

    async def execute(self, task: InstrumentationTask) -> WorkerResult:
        try:
            response = await self.client.complete(
                self.system_prompt(),
                self.build_user_prompt(task),
                self.max_tokens,
            )
            new_content = extract_code(response.content)
            if not new_content:
                raise PayloadExtractionError("Empty response, no tracing file content returned")

            change = FileChange(
                path=task.target_file,
                operation=ChangeOperation.CREATE,
                new_content=new_content,
                description="Created OpenTelemetry tracing initialization file",
            )
            return self.success_result(
                task.task_id,
                [change],
                "Successfully created tracing configuration file",
            )
        except Exception as e:
            logger.warning("Config task %s failed: %s", task.task_id, e)
            return self.failure_result(task.task_id, str(e))

    def system_prompt(self) -> str:
        return """You are an OpenTelemetry configuration expert.

Your task is to create tracing initialization files that:
1. Import necessary OpenTelemetry packages
2. Configure the NodeSDK with appropriate instrumentations
3. Set up exporters (console for dev, OTLP for production)
4. Provide a clean initialization function
5. Include proper TypeScript types and error handling
6. Follow best practices for OpenTelemetry setup

Return ONLY the complete file content. Do not include explanations or extra commentary."""

    def build_user_prompt(self, task: InstrumentationTask, original_content: str = "") -> str:
        return f"""{task.instructions}

Please create a complete tracing initialization file.

The file should:
- Export a function called 'initTracing()' that starts the SDK
- Use environment variables for configuration (OTEL_EXPORTER_OTLP_ENDPOINT, etc.)
- Include console exporter by default for development
- Handle errors gracefully
- Use TypeScript with proper types

Return ONLY the file content, no markdown code blocks or explanations."""
