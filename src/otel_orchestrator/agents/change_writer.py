"""Writes worker changes to an output directory."""

import logging
from pathlib import Path

from otel_orchestrator.agents.exceptions import ChangeWriteError
from otel_orchestrator.models import ChangeOperation, WorkerResult, WriteReport
from otel_orchestrator.utils.file_system import copy_directory, resolve_within, write_file

logger = logging.getLogger(__name__)


class ChangeWriter:
    """Materializes the new_content of successful changes under an output root.

    Write failures are collected in the report; writing always continues with
    the next change.
    """

    def write(
        self,
        results: list[WorkerResult],
        output_root: str,
        template_dir: str | None = None,
    ) -> WriteReport:
        """Write every successful change.

        Args:
            results: Worker results in execution order.
            output_root: Directory changes are written under.
            template_dir: Optional tree copied into output_root first.

        Returns:
            WriteReport listing written paths and collected errors.
        """
        root = Path(output_root)
        written: list[str] = []
        errors: list[str] = []

        if template_dir:
            try:
                copy_directory(template_dir, root)
            except OSError as e:
                errors.append(f"Failed to copy template '{template_dir}': {e}")
                logger.error("Template copy failed: %s", e)

        for result in results:
            if not result.success:
                continue
            for change in result.changes:
                if change.operation == ChangeOperation.NONE or change.new_content is None:
                    continue
                try:
                    self._write_change(root, change.path, change.new_content)
                    written.append(change.path)
                except ChangeWriteError as e:
                    errors.append(str(e))
                    logger.error("%s", e)

        logger.info("Wrote %d files to %s (%d errors)", len(written), root, len(errors))
        return WriteReport(output_root=str(root), written_files=written, errors=errors)

    def _write_change(self, root: Path, relative_path: str, content: str) -> None:
        try:
            target = resolve_within(root, relative_path)
            write_file(target, content)
        except (OSError, ValueError) as e:
            raise ChangeWriteError(f"Failed to write '{relative_path}': {e}") from e
