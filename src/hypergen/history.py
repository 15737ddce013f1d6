"""Run history for recipe executions.

Records each recipe run in <project>/.hypergen/history.toml. Used by
`hypergen history` and the dashboard Runs tab.
"""

import logging
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any

try:
    import tomli
except ImportError as e:
    raise ImportError("tomli library not available. Install with: pip install tomli") from e

try:
    import tomli_w
except ImportError as e:
    raise ImportError("tomli-w library not available. Install with: pip install tomli-w") from e

if TYPE_CHECKING:
    from hypergen.recipe_engine.models import RecipeExecutionResult

logger = logging.getLogger(__name__)

HISTORY_DIR = ".hypergen"
HISTORY_FILE = "history.toml"
DEFAULT_HISTORY_LIMIT = 100


class HistoryError(Exception):
    """Raised when run history cannot be saved."""

    pass


@dataclass
class RunRecord:
    recipe: str
    success: bool
    started_at: str
    duration: float = 0.0
    completed: int = 0
    failed: int = 0
    skipped: int = 0
    files_created: list[str] = field(default_factory=list)
    files_modified: list[str] = field(default_factory=list)
    dry_run: bool = False

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RunRecord":
        return cls(
            recipe=data.get("recipe", "unknown"),
            success=bool(data.get("success", False)),
            started_at=data.get("started_at", ""),
            duration=float(data.get("duration", 0.0)),
            completed=int(data.get("completed", 0)),
            failed=int(data.get("failed", 0)),
            skipped=int(data.get("skipped", 0)),
            files_created=list(data.get("files_created", [])),
            files_modified=list(data.get("files_modified", [])),
            dry_run=bool(data.get("dry_run", False)),
        )

    @classmethod
    def from_result(cls, result: "RecipeExecutionResult") -> "RunRecord":
        return cls(
            recipe=result.recipe_name,
            success=result.success,
            started_at=result.started_at.astimezone(UTC).isoformat(),
            duration=round(result.duration, 3),
            completed=result.completed_steps,
            failed=result.failed_steps,
            skipped=result.skipped_steps,
            files_created=result.files_created,
            files_modified=result.files_modified,
            dry_run=result.dry_run,
        )

    @property
    def started(self) -> datetime | None:
        try:
            return datetime.fromisoformat(self.started_at)
        except ValueError:
            return None


class RunHistory:
    """TOML-backed list of recent runs, newest last on disk."""

    def __init__(self, project_root: Path, limit: int = DEFAULT_HISTORY_LIMIT):
        self.path = Path(project_root) / HISTORY_DIR / HISTORY_FILE
        self.limit = limit

    def load(self) -> list[RunRecord]:
        """Load records from disk, returning [] when missing or unreadable."""
        if not self.path.exists():
            return []
        try:
            with open(self.path, "rb") as f:
                data = tomli.load(f)
        except (OSError, tomli.TOMLDecodeError) as e:
            logger.warning(f"Failed to load run history: {e}")
            return []
        return [RunRecord.from_dict(item) for item in data.get("runs", [])]

    def save(self, records: list[RunRecord]) -> None:
        """Write records atomically.

        Raises:
            HistoryError: If the file cannot be written
        """
        temp_path = self.path.with_suffix(".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(temp_path, "wb") as f:
                tomli_w.dump({"runs": [record.to_dict() for record in records]}, f)
            temp_path.replace(self.path)
        except OSError as e:
            if temp_path.exists():
                temp_path.unlink()
            raise HistoryError(f"Failed to save run history: {e}") from e

    def record(self, result: "RecipeExecutionResult") -> RunRecord:
        """Append a run, keeping only the newest `limit` records."""
        record = RunRecord.from_result(result)
        records = self.load()
        records.append(record)
        if self.limit and len(records) > self.limit:
            records = records[-self.limit :]
        self.save(records)
        logger.debug(f"Recorded run of {record.recipe} in {self.path}")
        return record

    def list_runs(self, limit: int | None = None) -> list[RunRecord]:
        """Recent runs, newest first."""
        records = list(reversed(self.load()))
        return records[:limit] if limit else records

    def clear(self) -> None:
        if self.path.exists():
            self.path.unlink()
            logger.info(f"Cleared run history: {self.path}")


__all__ = ["HistoryError", "RunHistory", "RunRecord"]
