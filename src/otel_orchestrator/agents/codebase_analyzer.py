"""Codebase analyzer for Node.js/TypeScript services."""

import json
import logging
import re
from pathlib import Path

from otel_orchestrator.agents.exceptions import AnalysisError
from otel_orchestrator.models import (
    CodebaseAnalysis,
    DependencyInfo,
    FileAnalysis,
    FileRole,
    Framework,
    FunctionInfo,
    PackageDependency,
    SourceFile,
)
from otel_orchestrator.utils.file_system import read_codebase

logger = logging.getLogger(__name__)

# Lines after a function header scanned for call-site heuristics
CALL_SCAN_WINDOW = 50

REQUIRED_PACKAGES: list[PackageDependency] = [
    PackageDependency(name="@opentelemetry/sdk-node", version="^0.45.0"),
    PackageDependency(name="@opentelemetry/api", version="^1.7.0"),
    PackageDependency(name="@opentelemetry/auto-instrumentations-node", version="^0.40.0"),
    PackageDependency(name="@opentelemetry/exporter-trace-otlp-http", version="^0.45.0"),
]

_PACKAGE_SECTIONS = {
    "dependencies": "dependency",
    "devDependencies": "devDependency",
}

_ES6_IMPORT = re.compile(r"""import\s+.*?\s+from\s+['"]([^'"]+)['"]""")
_CJS_REQUIRE = re.compile(r"""require\(['"]([^'"]+)['"]\)""")
_NAMED_EXPORT = re.compile(r"export\s+(?:class|function|const|let|var|interface|type)\s+(\w+)")
_SERVICE_CLASS = re.compile(r"class \w+Service")

_FUNCTION_PATTERNS = [
    re.compile(r"(?:async\s+)?function\s+(\w+)\s*\("),  # declarations
    re.compile(r"(?:async\s+)?(\w+)\s*=\s*\("),  # arrow functions
    re.compile(r"(?:async\s+)?(\w+)\s*\([^)]*\)\s*{"),  # class methods
    re.compile(r"router\.(get|post|put|patch|delete)\("),  # express handlers
]


class CodebaseAnalyzer:
    """Static, regex-based analyzer producing a CodebaseAnalysis."""

    def analyze_path(self, root_path: str) -> CodebaseAnalysis:
        """Read and analyze every supported file under root_path.

        Raises:
            AnalysisError: If the tree cannot be read.
        """
        try:
            files = read_codebase(root_path)
        except (OSError, UnicodeDecodeError) as e:
            raise AnalysisError(f"Failed to read codebase at '{root_path}': {e}") from e
        return self.analyze(files, root_path)

    def analyze(self, files: list[SourceFile], root_path: str) -> CodebaseAnalysis:
        """Analyze already-read files.

        Args:
            files: Source files with absolute paths.
            root_path: Root that file paths are made relative to.

        Returns:
            CodebaseAnalysis with per-file facts and dependency gaps.
        """
        root = Path(root_path).resolve()
        analyses: list[FileAnalysis] = []
        entry_point = ""
        framework = Framework.UNKNOWN

        for source in files:
            # package.json is handled by _analyze_dependencies
            if source.extension == ".json":
                continue

            analyses.append(self._analyze_file(source, root))

            if "app.listen" in source.content or ".listen(" in source.content:
                entry_point = self._relative_path(source.path, root)

            if "from 'express'" in source.content or "require('express')" in source.content:
                framework = Framework.EXPRESS
            elif "from 'fastify'" in source.content or "require('fastify')" in source.content:
                framework = Framework.FASTIFY

        dependencies = self._analyze_dependencies(files, root)
        logger.info(
            "Analyzed %d files (framework=%s, missing packages=%d)",
            len(analyses),
            framework.value,
            len(dependencies.missing),
        )

        return CodebaseAnalysis(
            files=analyses,
            dependencies=dependencies,
            framework=framework,
            entry_point=entry_point,
        )

    def _relative_path(self, file_path: str, root: Path) -> str:
        path = Path(file_path)
        if path.is_absolute() and path.resolve().is_relative_to(root):
            return path.resolve().relative_to(root).as_posix()
        return path.as_posix()

    def _analyze_file(self, source: SourceFile, root: Path) -> FileAnalysis:
        relative_path = self._relative_path(source.path, root)
        return FileAnalysis(
            path=relative_path,
            role=detect_file_role(source.content, relative_path),
            imports=extract_imports(source.content),
            exports=extract_exports(source.content),
            functions=extract_functions(source.content),
            has_async_operations=detect_async_operations(source.content),
        )

    def _analyze_dependencies(self, files: list[SourceFile], root: Path) -> DependencyInfo:
        """Compare the root package.json against the required OpenTelemetry packages."""
        package_json = next(
            (f for f in files if self._relative_path(f.path, root) == "package.json"),
            None,
        )
        current: list[PackageDependency] = []

        if package_json is not None:
            try:
                data = json.loads(package_json.content)
                for section, dependency_type in _PACKAGE_SECTIONS.items():
                    for name, version in (data.get(section) or {}).items():
                        current.append(
                            PackageDependency(
                                name=name,
                                version=str(version),
                                dependency_type=dependency_type,
                            )
                        )
            except (json.JSONDecodeError, AttributeError) as e:
                logger.error("Failed to parse package.json: %s", e)

        current_names = {dep.name for dep in current}
        missing = [req.name for req in REQUIRED_PACKAGES if req.name not in current_names]

        return DependencyInfo(
            current=current,
            required=list(REQUIRED_PACKAGES),
            missing=missing,
        )


def detect_file_role(content: str, relative_path: str) -> FileRole:
    """Classify a file by path and content, first match wins."""
    path_lower = relative_path.lower()

    if "app.listen" in content or "index.ts" in path_lower or "main.ts" in path_lower:
        return FileRole.ENTRY

    if (
        "route" in path_lower
        or "Router()" in content
        or "router.get" in content
        or "router.post" in content
    ):
        return FileRole.ROUTE

    if "service" in path_lower or _SERVICE_CLASS.search(content):
        return FileRole.SERVICE

    if "middleware" in path_lower or "NextFunction" in content:
        return FileRole.MIDDLEWARE

    if "util" in path_lower or "helper" in path_lower:
        return FileRole.UTILITY

    return FileRole.CONFIG


def extract_imports(content: str) -> list[str]:
    imports = _ES6_IMPORT.findall(content)
    imports.extend(_CJS_REQUIRE.findall(content))
    return imports


def extract_exports(content: str) -> list[str]:
    exports = _NAMED_EXPORT.findall(content)
    if "export default" in content:
        exports.append("default")
    return exports


def extract_functions(content: str) -> list[FunctionInfo]:
    """Find function-like declarations line by line.

    A line matching several patterns yields one entry per pattern.
    """
    functions: list[FunctionInfo] = []
    lines = content.split("\n")

    for index, line in enumerate(lines):
        for pattern in _FUNCTION_PATTERNS:
            match = pattern.search(line)
            if not match:
                continue
            snippet = "\n".join(lines[index:index + CALL_SCAN_WINDOW])
            functions.append(
                FunctionInfo(
                    name=match.group(1) or "anonymous",
                    is_async="async" in line,
                    calls_external_apis=_calls_external_api(snippet),
                    calls_database=_calls_database(snippet),
                    calls_cache=_calls_cache(snippet),
                    start_line=index + 1,
                    end_line=find_function_end(lines, index),
                )
            )

    return functions


def find_function_end(lines: list[str], start_index: int) -> int:
    """Return the 1-based line closing the first brace opened at or after start_index."""
    depth = 0
    found_start = False

    for index in range(start_index, len(lines)):
        for char in lines[index]:
            if char == "{":
                depth += 1
                found_start = True
            elif char == "}":
                depth -= 1
                if found_start and depth == 0:
                    return index + 1

    return start_index + 1


def _calls_external_api(snippet: str) -> bool:
    return "externalAPI" in snippet or "fetch(" in snippet or "axios" in snippet


def _calls_database(snippet: str) -> bool:
    return any(marker in snippet for marker in ("db.", "query(", "findOne", "findMany"))


def _calls_cache(snippet: str) -> bool:
    return (
        "cache." in snippet
        or "redis." in snippet
        or ("get(" in snippet and "set(" in snippet)
    )


def detect_async_operations(content: str) -> bool:
    return "async " in content or "await " in content or "Promise<" in content
