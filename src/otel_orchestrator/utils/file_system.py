"""Filesystem helpers for reading a codebase and materializing changes."""

import logging
import shutil
from pathlib import Path

from otel_orchestrator.models import SourceFile

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = {".ts", ".js", ".json"}
EXCLUDED_DIRS = {"node_modules", "dist"}


def _is_excluded(relative: Path) -> bool:
    for part in relative.parts[:-1]:
        if part in EXCLUDED_DIRS or part.startswith("."):
            return True
    return False


def read_codebase(root_path: str) -> list[SourceFile]:
    """Recursively read all supported source files under root_path.

    Skips node_modules, dist, hidden directories and symlinks.

    Args:
        root_path: Directory to scan.

    Returns:
        SourceFile list sorted by path.

    Raises:
        FileNotFoundError: If root_path is not a directory.
    """
    root = Path(root_path).resolve()
    if not root.is_dir():
        raise FileNotFoundError(f"Source path not found: {root_path}")

    files: list[SourceFile] = []
    for path in sorted(root.rglob("*")):
        if path.is_symlink() or not path.is_file():
            continue
        if _is_excluded(path.relative_to(root)):
            continue
        if path.suffix not in SUPPORTED_EXTENSIONS:
            continue
        files.append(
            SourceFile(
                path=str(path),
                content=path.read_text(encoding="utf-8"),
                extension=path.suffix,
            )
        )

    logger.debug("Read %d source files from %s", len(files), root)
    return files


def read_file(file_path: str | Path) -> str:
    return Path(file_path).read_text(encoding="utf-8")


def write_file(file_path: str | Path, content: str) -> None:
    """Write content to file_path, creating parent directories as needed."""
    path = Path(file_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def copy_directory(source: str | Path, destination: str | Path) -> None:
    """Copy a directory tree, skipping node_modules and dist."""
    shutil.copytree(
        source,
        destination,
        ignore=shutil.ignore_patterns(*EXCLUDED_DIRS),
        dirs_exist_ok=True,
    )


def resolve_within(root: str | Path, relative_path: str) -> Path:
    """Resolve relative_path under root, rejecting traversal outside it.

    Raises:
        ValueError: If the resolved path escapes root.
    """
    resolved_root = Path(root).resolve()
    candidate = (resolved_root / relative_path).resolve()
    if not candidate.is_relative_to(resolved_root):
        raise ValueError(f"Path '{relative_path}' escapes output root")
    return candidate
