"""Execution data models for the recipe engine."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any


class StepStatus(str, Enum):
    """Lifecycle state of a recipe step."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"
    CANCELLED = "cancelled"


class StepExecutionError(Exception):
    """Raised when a step cannot be executed."""

    def __init__(self, message: str, step_name: str | None = None):
        super().__init__(message)
        self.step_name = step_name


class CircularDependencyError(StepExecutionError):
    """Raised when step dependencies form a cycle."""

    def __init__(self, message: str, cycle: list[str]):
        super().__init__(message)
        self.cycle = cycle


@dataclass
class ToolResult:
    """What a tool reports back after executing a step."""

    files_created: list[str] = field(default_factory=list)
    files_modified: list[str] = field(default_factory=list)
    files_deleted: list[str] = field(default_factory=list)
    output: Any = None
    # Values exported to the recipe variables of later steps
    variables: dict[str, Any] = field(default_factory=dict)

    def merge(self, other: "ToolResult") -> None:
        self.files_created.extend(other.files_created)
        self.files_modified.extend(other.files_modified)
        self.files_deleted.extend(other.files_deleted)
        self.variables.update(other.variables)


@dataclass
class StepResult:
    """Outcome of one step."""

    step_name: str
    tool: str
    status: StepStatus = StepStatus.PENDING
    started_at: datetime | None = None
    finished_at: datetime | None = None
    retry_count: int = 0
    condition_result: bool | None = None
    files_created: list[str] = field(default_factory=list)
    files_modified: list[str] = field(default_factory=list)
    files_deleted: list[str] = field(default_factory=list)
    output: Any = None
    variables: dict[str, Any] = field(default_factory=dict)
    error: str | None = None

    @property
    def duration(self) -> float:
        """Duration in seconds."""
        if self.started_at and self.finished_at:
            return (self.finished_at - self.started_at).total_seconds()
        return 0.0

    @property
    def succeeded(self) -> bool:
        return self.status in (StepStatus.COMPLETED, StepStatus.SKIPPED)

    def start(self) -> None:
        self.status = StepStatus.RUNNING
        self.started_at = datetime.now(UTC)

    def finish(self, status: StepStatus, error: str | None = None) -> None:
        self.status = status
        self.error = error
        self.finished_at = datetime.now(UTC)
        if self.started_at is None:
            self.started_at = self.finished_at

    def apply_tool_result(self, result: ToolResult) -> None:
        self.files_created.extend(result.files_created)
        self.files_modified.extend(result.files_modified)
        self.files_deleted.extend(result.files_deleted)
        self.output = result.output
        self.variables = dict(result.variables)

    def to_dict(self) -> dict[str, Any]:
        return {
            "step_name": self.step_name,
            "tool": self.tool,
            "status": self.status.value,
            "duration": self.duration,
            "retry_count": self.retry_count,
            "files_created": list(self.files_created),
            "files_modified": list(self.files_modified),
            "error": self.error,
        }


@dataclass
class DependencyNode:
    step_name: str
    dependencies: list[str] = field(default_factory=list)
    dependents: list[str] = field(default_factory=list)
    priority: int = 0
    parallelizable: bool = True


@dataclass
class ExecutionPhase:
    index: int
    steps: list[str]
    parallel: bool


@dataclass
class ExecutionPlan:
    phases: list[ExecutionPhase]
    graph: dict[str, DependencyNode]
    estimated_duration: int = 0  # milliseconds

    @property
    def step_count(self) -> int:
        return sum(len(phase.steps) for phase in self.phases)


@dataclass
class RecipeExecutionResult:
    """Aggregate outcome of a recipe run."""

    recipe_name: str
    success: bool = False
    step_results: list[StepResult] = field(default_factory=list)
    variables: dict[str, Any] = field(default_factory=dict)
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    started_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    finished_at: datetime | None = None
    dry_run: bool = False

    @property
    def duration(self) -> float:
        if self.finished_at is None:
            return 0.0
        return (self.finished_at - self.started_at).total_seconds()

    def _count(self, status: StepStatus) -> int:
        return sum(1 for result in self.step_results if result.status == status)

    @property
    def completed_steps(self) -> int:
        return self._count(StepStatus.COMPLETED)

    @property
    def failed_steps(self) -> int:
        return self._count(StepStatus.FAILED)

    @property
    def skipped_steps(self) -> int:
        return self._count(StepStatus.SKIPPED)

    @property
    def cancelled_steps(self) -> int:
        return self._count(StepStatus.CANCELLED)

    @property
    def files_created(self) -> list[str]:
        return [path for result in self.step_results for path in result.files_created]

    @property
    def files_modified(self) -> list[str]:
        return [path for result in self.step_results for path in result.files_modified]

    def to_dict(self) -> dict[str, Any]:
        return {
            "recipe": self.recipe_name,
            "success": self.success,
            "duration": self.duration,
            "completed": self.completed_steps,
            "failed": self.failed_steps,
            "skipped": self.skipped_steps,
            "files_created": self.files_created,
            "files_modified": self.files_modified,
            "errors": list(self.errors),
            "steps": [result.to_dict() for result in self.step_results],
        }


__all__ = [
    "CircularDependencyError",
    "DependencyNode",
    "ExecutionPhase",
    "ExecutionPlan",
    "RecipeExecutionResult",
    "StepExecutionError",
    "StepResult",
    "StepStatus",
    "ToolResult",
]
