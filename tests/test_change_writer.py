"""Tests for ChangeWriter."""

from otel_orchestrator.agents.change_writer import ChangeWriter
from otel_orchestrator.models import ChangeOperation, FileChange, WorkerResult, WorkerType


def ok_result(task_id, *changes, worker_type=WorkerType.SERVICE):
    return WorkerResult(task_id=task_id, worker_type=worker_type, success=True, changes=list(changes))


def change(path, content="// traced", operation=ChangeOperation.MODIFY):
    return FileChange(path=path, operation=operation, new_content=content)


class TestChangeWriter:
    def test_writes_successful_changes(self, tmp_path):
        results = [
            ok_result("config-1", change("src/tracing.ts", "init()", ChangeOperation.CREATE)),
            ok_result("service-2", change("src/services/a.ts")),
        ]
        report = ChangeWriter().write(results, str(tmp_path / "out"))

        assert report.success
        assert report.written_files == ["src/tracing.ts", "src/services/a.ts"]
        assert (tmp_path / "out" / "src" / "tracing.ts").read_text() == "init()"

    def test_skips_failed_results_and_none_operations(self, tmp_path):
        results = [
            WorkerResult(
                task_id="http-1", worker_type=WorkerType.HTTP, success=False, errors=["boom"]
            ),
            ok_result("service-2", FileChange(path="src/x.ts", operation=ChangeOperation.NONE)),
        ]
        report = ChangeWriter().write(results, str(tmp_path))
        assert report.written_files == []
        assert not (tmp_path / "src").exists()

    def test_template_copied_before_changes(self, tmp_path, sample_codebase):
        output = tmp_path / "out"
        results = [ok_result("service-1", change("src/services/userService.ts", "new"))]

        report = ChangeWriter().write(results, str(output), template_dir=str(sample_codebase))

        assert report.success
        assert (output / "src" / "server.ts").exists()
        assert (output / "src" / "services" / "userService.ts").read_text() == "new"
        assert not (output / "node_modules").exists()

    def test_missing_template_reported_and_writing_continues(self, tmp_path):
        results = [ok_result("service-1", change("src/a.ts"))]
        report = ChangeWriter().write(
            results, str(tmp_path / "out"), template_dir=str(tmp_path / "no-template")
        )

        assert not report.success
        assert "Failed to copy template" in report.errors[0]
        assert report.written_files == ["src/a.ts"]

    def test_path_traversal_is_collected_not_raised(self, tmp_path):
        results = [
            ok_result("service-1", change("../escape.ts")),
            ok_result("service-2", change("src/fine.ts")),
        ]
        report = ChangeWriter().write(results, str(tmp_path / "out"))

        assert report.written_files == ["src/fine.ts"]
        assert len(report.errors) == 1
        assert "Failed to write '../escape.ts'" in report.errors[0]
        assert not (tmp_path / "escape.ts").exists()
