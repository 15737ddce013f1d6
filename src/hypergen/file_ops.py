"""File operations for rendered templates.

Applies a RenderedFile to the filesystem following hygen semantics:

- add: write a new file (or overwrite when forced)
- inject: insert the body into an existing file at an anchor
- skip: honour `skip_if` and `unless_exists`
- sh: pipe the body to a shell command after writing

Conflict handling for existing files that differ is controlled by the
`conflict_strategy` (fail, overwrite, skip) unless the operation is forced.
"""

import logging
import re
import subprocess
from dataclasses import dataclass
from pathlib import Path

from hypergen.template_engine import RenderedFile

logger = logging.getLogger(__name__)

CONFLICT_STRATEGIES = ("fail", "overwrite", "skip")

TRUTHY_STRINGS = ("true", "yes", "1", "on")


class FileOperationError(Exception):
    """Raised when a rendered file cannot be applied."""

    pass


@dataclass
class FileOperationResult:
    """Outcome of applying one rendered file."""

    status: str  # added, forced, injected, skipped, identical
    path: Path | None
    reason: str = ""

    @property
    def created(self) -> bool:
        return self.status in ("added", "forced")

    @property
    def modified(self) -> bool:
        return self.status == "injected"


def _is_truthy(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in TRUTHY_STRINGS
    return bool(value)


def _find_anchor(lines: list[str], pattern: str) -> int | None:
    try:
        regex = re.compile(pattern)
    except re.error as e:
        raise FileOperationError(f"Invalid injection pattern '{pattern}': {e}") from e
    for index, line in enumerate(lines):
        if regex.search(line):
            return index
    return None


def inject_content(existing: str, rendered: RenderedFile) -> str | None:
    """Compute file content after injecting the rendered body.

    Returns:
        The new content, or None when no anchor matched.
    """
    attributes = rendered.attributes
    body = rendered.body
    if attributes.get("eof_last") is False and body.endswith("\n"):
        body = body[:-1]
    if body and not body.endswith("\n") and attributes.get("eof_last") is not False:
        body += "\n"

    lines = existing.splitlines(keepends=True)
    if lines and not lines[-1].endswith("\n"):
        lines[-1] += "\n"

    if _is_truthy(attributes.get("prepend")):
        return body + existing
    if _is_truthy(attributes.get("append")):
        return "".join(lines) + body

    if attributes.get("at_line") is not None:
        try:
            at_line = int(attributes["at_line"])
        except (TypeError, ValueError) as e:
            raise FileOperationError(f"at_line must be an integer: {attributes['at_line']}") from e
        at_line = max(0, min(at_line, len(lines)))
        return "".join(lines[:at_line]) + body + "".join(lines[at_line:])

    if attributes.get("before"):
        index = _find_anchor(lines, str(attributes["before"]))
        if index is None:
            return None
        return "".join(lines[:index]) + body + "".join(lines[index:])

    if attributes.get("after"):
        index = _find_anchor(lines, str(attributes["after"]))
        if index is None:
            return None
        return "".join(lines[: index + 1]) + body + "".join(lines[index + 1 :])

    return None


class FileWriter:
    """Apply rendered templates beneath a base directory."""

    def __init__(
        self,
        base_dir: Path,
        conflict_strategy: str = "fail",
        force: bool = False,
        dry_run: bool = False,
        create_directories: bool = True,
    ):
        if conflict_strategy not in CONFLICT_STRATEGIES:
            raise FileOperationError(
                f"Invalid conflict strategy: {conflict_strategy}. "
                f"Must be one of: {', '.join(CONFLICT_STRATEGIES)}"
            )
        self.base_dir = Path(base_dir)
        self.conflict_strategy = conflict_strategy
        self.force = force
        self.dry_run = dry_run
        self.create_directories = create_directories

    def resolve_target(self, to: str) -> Path:
        """Destination for `to:`, which must stay inside the base directory.

        Raises:
            FileOperationError: If the destination escapes the base directory
        """
        target = Path(to).expanduser()
        if not target.is_absolute():
            target = self.base_dir / target

        try:
            normalized = target.resolve(strict=False)
        except (ValueError, RuntimeError) as e:
            raise FileOperationError(f"Invalid destination path {to}: {e}") from e
        if not normalized.is_relative_to(self.base_dir.resolve()):
            raise FileOperationError(f"Destination escapes output directory: {normalized}")
        return target

    def apply(self, rendered: RenderedFile) -> FileOperationResult:
        """Apply a rendered file.

        Raises:
            FileOperationError: On conflicts under the `fail` strategy,
                injecting into a missing file, or write failures
        """
        to = rendered.to
        if to is None:
            return FileOperationResult("skipped", None, "no destination")

        target = self.resolve_target(to)
        attributes = rendered.attributes

        if _is_truthy(attributes.get("inject")):
            result = self._inject(target, rendered)
        else:
            result = self._add(target, rendered)

        if result.status in ("added", "forced", "injected") and attributes.get("sh"):
            self._run_sh(str(attributes["sh"]), rendered.body)

        return result

    def _add(self, target: Path, rendered: RenderedFile) -> FileOperationResult:
        attributes = rendered.attributes

        if "skip_if" in attributes and _is_truthy(attributes.get("skip_if")):
            return FileOperationResult("skipped", target, "skip_if")

        forced = self.force or _is_truthy(attributes.get("force"))
        status = "added"

        if target.exists():
            if _is_truthy(attributes.get("unless_exists")):
                return FileOperationResult("skipped", target, "exists")
            try:
                current = target.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError):
                current = None
            if current == rendered.body:
                return FileOperationResult("identical", target)
            if forced or self.conflict_strategy == "overwrite":
                status = "forced"
            elif self.conflict_strategy == "skip":
                return FileOperationResult("skipped", target, "conflict")
            else:
                raise FileOperationError(
                    f"File already exists: {target}. Use --force to overwrite."
                )

        self._write(target, rendered.body)
        logger.debug(f"{status}: {target}")
        return FileOperationResult(status, target)

    def _inject(self, target: Path, rendered: RenderedFile) -> FileOperationResult:
        if not target.exists():
            raise FileOperationError(f"Cannot inject into missing file: {target}")

        try:
            existing = target.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise FileOperationError(f"Failed to read {target}: {e}") from e

        skip_if = rendered.attributes.get("skip_if")
        if skip_if:
            try:
                if re.search(str(skip_if), existing):
                    return FileOperationResult("skipped", target, "skip_if")
            except re.error as e:
                raise FileOperationError(f"Invalid skip_if pattern '{skip_if}': {e}") from e

        new_content = inject_content(existing, rendered)
        if new_content is None:
            logger.warning(f"No injection anchor matched in {target}")
            return FileOperationResult("skipped", target, "no anchor")

        self._write(target, new_content)
        logger.debug(f"injected: {target}")
        return FileOperationResult("injected", target)

    def _write(self, target: Path, content: str) -> None:
        if self.dry_run:
            return
        try:
            if self.create_directories:
                target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(content, encoding="utf-8")
        except OSError as e:
            raise FileOperationError(f"Failed to write {target}: {e}") from e

    def _run_sh(self, command: str, body: str) -> None:
        if self.dry_run:
            logger.info(f"Would run: {command}")
            return
        try:
            subprocess.run(
                command,
                shell=True,
                input=body,
                text=True,
                cwd=self.base_dir,
                check=True,
                capture_output=True,
            )
        except subprocess.CalledProcessError as e:
            raise FileOperationError(f"Shell command failed ({command}): {e.stderr.strip()}") from e
        except OSError as e:
            raise FileOperationError(f"Shell command failed ({command}): {e}") from e


__all__ = [
    "CONFLICT_STRATEGIES",
    "FileOperationError",
    "FileOperationResult",
    "FileWriter",
    "inject_content",
]
