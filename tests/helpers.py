"""Shared builders and sample sources for the test suite."""

from unittest.mock import AsyncMock, MagicMock

from otel_orchestrator.models import (
    CodebaseAnalysis,
    DependencyInfo,
    FileAnalysis,
    FileRole,
    Framework,
    InstrumentationTask,
    PackageDependency,
    WorkerType,
)
from otel_orchestrator.utils.llm_client import LLMResponse

OTEL_PACKAGES = [
    "@opentelemetry/sdk-node",
    "@opentelemetry/api",
    "@opentelemetry/auto-instrumentations-node",
    "@opentelemetry/exporter-trace-otlp-http",
]

PACKAGE_JSON = {
    "name": "sample-app",
    "version": "1.0.0",
    "dependencies": {"express": "^4.18.2"},
    "devDependencies": {"typescript": "^5.3.0"},
}

SERVER_TS = """import express from 'express';
import { userRouter } from './routes/users';

const app = express();
app.use('/users', userRouter);

app.listen(3000, () => {
  console.log('listening');
});
"""

USERS_ROUTE_TS = """import { Router } from 'express';
import { UserService } from '../services/userService';

export const userRouter = Router();
const service = new UserService();

router.get('/:id', async (req, res) => {
  const user = await service.getUser(req.params.id);
  res.json(user);
});
"""

USER_SERVICE_TS = """import { findUserById } from '../utils/database';
import { cacheGet, cacheSet } from '../utils/cache';

export class UserService {
  async getUser(id: string) {
    const cached = await cacheGet(id);
    if (cached) {
      return cached;
    }
    const user = await findUserById(id);
    await cacheSet(id, user);
    return user;
  }
}
"""

DATABASE_TS = """export async function findUserById(id: string) {
  return db.query('SELECT * FROM users WHERE id = $1', [id]);
}
"""

CACHE_TS = """const store = new Map<string, unknown>();

export async function cacheGet(key: string) {
  return store.get(key);
}

export async function cacheSet(key: string, value: unknown) {
  store.set(key, value);
}
"""

EXTERNAL_API_TS = """export async function processPayment(amount: number) {
  const response = await fetch('https://payments.example.com/charge', {
    method: 'POST',
    body: JSON.stringify({ amount }),
  });
  return response.json();
}
"""


def make_task(
    task_id: str,
    dependencies: list[str] | None = None,
    task_type: WorkerType = WorkerType.SERVICE,
    target_file: str = "src/services/userService.ts",
) -> InstrumentationTask:
    return InstrumentationTask(
        task_id=task_id,
        task_type=task_type,
        target_file=target_file,
        instructions=f"Instrument {target_file}",
        priority=3,
        dependencies=dependencies if dependencies is not None else [],
    )


def make_file(path: str, role: FileRole) -> FileAnalysis:
    return FileAnalysis(path=path, role=role)


def make_analysis(
    files: list[FileAnalysis] | None = None,
    missing: list[str] | None = None,
) -> CodebaseAnalysis:
    missing = list(OTEL_PACKAGES) if missing is None else missing
    return CodebaseAnalysis(
        files=files or [],
        dependencies=DependencyInfo(
            current=[PackageDependency(name="express", version="^4.18.2")],
            required=[PackageDependency(name=name, version="^1.0.0") for name in OTEL_PACKAGES],
            missing=missing,
        ),
        framework=Framework.EXPRESS,
        entry_point="src/server.ts",
    )


def make_client(content: str = "") -> MagicMock:
    """Mock LLMClient whose complete() returns fixed content."""
    client = MagicMock()
    client.complete = AsyncMock(return_value=LLMResponse(content=content))
    return client
