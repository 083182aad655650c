"""Models describing a statically analyzed Node.js codebase."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class FileRole(str, Enum):
    """Role detected for a source file."""

    ROUTE = "route"
    SERVICE = "service"
    UTILITY = "utility"
    MIDDLEWARE = "middleware"
    CONFIG = "config"
    ENTRY = "entry"


class Framework(str, Enum):
    EXPRESS = "express"
    FASTIFY = "fastify"
    UNKNOWN = "unknown"


class SourceFile(BaseModel):
    """Raw file read from disk before analysis."""

    model_config = ConfigDict(frozen=True)

    path: str  # Absolute path
    content: str
    extension: str  # ".ts", ".js" or ".json"


class FunctionInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    is_async: bool = False
    calls_external_apis: bool = False
    calls_database: bool = False
    calls_cache: bool = False
    start_line: int
    end_line: int


class FileAnalysis(BaseModel):
    """Structural facts about a single source file."""

    model_config = ConfigDict(frozen=True)

    path: str  # Relative to the analyzed root
    role: FileRole
    imports: list[str] = Field(default_factory=list)
    exports: list[str] = Field(default_factory=list)
    functions: list[FunctionInfo] = Field(default_factory=list)
    has_async_operations: bool = False


class PackageDependency(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    version: str
    dependency_type: str = "dependency"  # "dependency" | "devDependency"


class DependencyInfo(BaseModel):
    """Current, required and missing npm packages."""

    model_config = ConfigDict(frozen=True)

    current: list[PackageDependency] = Field(default_factory=list)
    required: list[PackageDependency] = Field(default_factory=list)
    missing: list[str] = Field(default_factory=list)  # Package names to add


class CodebaseAnalysis(BaseModel):
    """Complete analysis of a codebase, input to the planner."""

    model_config = ConfigDict(frozen=True)

    files: list[FileAnalysis] = Field(default_factory=list)
    dependencies: DependencyInfo = Field(default_factory=DependencyInfo)
    framework: Framework = Framework.UNKNOWN
    entry_point: str = ""
