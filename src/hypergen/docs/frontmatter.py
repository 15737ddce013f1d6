"""MDX frontmatter standardization.

Every page of the documentation site must carry:

    ---
    title: Installation
    description: <150-160 character SEO description>
    icon: download
    og:title: Installation
    og:description: <same as description>
    ---

`FrontmatterProcessor` fills whatever is missing, optionally backing up
all pages first, and can validate a tree without modifying it.
"""

import logging
import re
import shutil
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import yaml

from hypergen.inflections import title_case

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("title", "description")

SEO_MIN_LENGTH = 150
SEO_MAX_LENGTH = 160
SEO_PADDING = " Get started with comprehensive documentation and examples."

VALID_MIN_LENGTH = 50
VALID_MAX_LENGTH = 170

DEFAULT_ICON = "document-text"

CATEGORY_ICONS = {
    "api-reference": "api",
    "cli": "terminal",
    "guides": "book-open",
    "tools": "wrench-screwdriver",
    "examples": "code",
    "essentials": "lightbulb",
    "methodology": "academic-cap",
    "community": "users",
    "snippets": "document-duplicate",
}

# Checked in order against the file path before the category map.
FILENAME_ICONS = (
    ("installation", "download"),
    ("quickstart", "rocket"),
    ("troubleshooting", "exclamation-triangle"),
    ("security", "shield-check"),
    ("performance", "bolt"),
    ("migration", "arrow-path"),
)

DESCRIPTION_TEMPLATES = {
    "api-reference": "{title} API endpoint documentation with examples, parameters, and responses for {product} integration.",
    "cli": "Learn how to use the {title} command in {product} CLI with practical examples, options, and best practices.",
    "guides": "Comprehensive {title} guide for {product} developers with step-by-step instructions and real-world examples.",
    "tools": "{title} tool documentation for {product} ecosystem with features, configuration, and integration examples.",
    "examples": "Real-world {title} examples and patterns for {product} development with code samples and best practices.",
    "essentials": "Essential {title} concepts and fundamentals for effective {product} development and workflow optimization.",
    "methodology": "{title} methodology and approach in {product} development lifecycle with principles and implementation strategies.",
    "community": "Community resources and {title} information for {product} developers, contributors, and ecosystem participants.",
    "default": "Complete {title} documentation for {product} with examples, best practices, and implementation guidance.",
}

_FRONTMATTER_RE = re.compile(r"^---\r?\n(.*?)\r?\n---\r?\n?(.*)$", re.DOTALL)
_HEADING_RE = re.compile(r"^#\s+(.+?)\s*$", re.MULTILINE)


class DocsError(Exception):
    """Raised when documentation files cannot be processed."""

    pass


@dataclass
class MdxFile:
    path: Path
    relative_path: str
    category: str


@dataclass
class FrontmatterReport:
    processed: int = 0
    fixed: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    changes: dict[str, list[str]] = field(default_factory=dict)
    backup_path: Path | None = None

    @property
    def is_valid(self) -> bool:
        return not self.errors


def get_icon(category: str, relative_path: str) -> str:
    name = relative_path.lower()
    for needle, icon in FILENAME_ICONS:
        if needle in name:
            return icon
    return CATEGORY_ICONS.get(category, DEFAULT_ICON)


def clamp_description(description: str) -> str:
    """Pad or truncate a description into the SEO length window."""
    description = re.sub(r"\s+", " ", description).strip()
    if len(description) > SEO_MAX_LENGTH:
        return description[: SEO_MAX_LENGTH - 3] + "..."
    if len(description) < SEO_MIN_LENGTH:
        return description + SEO_PADDING
    return description


def generate_description(title: str, category: str, product: str = "hypergen") -> str:
    template = DESCRIPTION_TEMPLATES.get(category, DESCRIPTION_TEMPLATES["default"])
    return clamp_description(template.format(title=title, product=product))


def split_frontmatter(content: str) -> tuple[dict[str, Any], str, bool]:
    """Split MDX content into (frontmatter, body, had_frontmatter).

    Raises:
        DocsError: If the frontmatter block is not valid YAML
    """
    match = _FRONTMATTER_RE.match(content)
    if not match:
        return {}, content, False

    header, body = match.groups()
    try:
        data = yaml.safe_load(header) or {}
    except yaml.YAMLError as e:
        raise DocsError(f"Invalid frontmatter YAML: {e}") from e
    if not isinstance(data, dict):
        raise DocsError("Frontmatter must be a YAML mapping")
    return data, body, True


def render_frontmatter(frontmatter: dict[str, Any], body: str) -> str:
    header = yaml.dump(
        frontmatter, default_flow_style=False, sort_keys=False, allow_unicode=True, width=1000
    )
    return f"---\n{header}---\n{body}"


class FrontmatterProcessor:
    """Scan and standardize MDX frontmatter under a docs directory."""

    def __init__(self, docs_dir: Path, product: str = "hypergen"):
        self.docs_dir = Path(docs_dir).resolve()
        self.product = product
        self.backup_dir = self.docs_dir.parent / "frontmatter-backups"

    def scan(self) -> list[MdxFile]:
        if not self.docs_dir.is_dir():
            raise DocsError(f"Docs directory not found: {self.docs_dir}")

        files = []
        for path in sorted(self.docs_dir.rglob("*.mdx")):
            relative = path.relative_to(self.docs_dir)
            category = relative.parts[0] if len(relative.parts) > 1 else "root"
            files.append(MdxFile(path=path, relative_path=relative.as_posix(), category=category))
        return files

    def create_backup(self, files: list[MdxFile] | None = None) -> Path:
        files = files if files is not None else self.scan()
        timestamp = datetime.now(UTC).strftime("%Y-%m-%dT%H-%M-%S-%fZ")
        backup_path = self.backup_dir / f"backup-{timestamp}"
        for mdx in files:
            target = backup_path / mdx.relative_path
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(mdx.path, target)
        logger.info(f"Backup created at: {backup_path}")
        return backup_path

    def fill_frontmatter(self, mdx: MdxFile, frontmatter: dict[str, Any], body: str) -> tuple[dict[str, Any], list[str]]:
        """Return the completed frontmatter and the fields that were added."""
        updated = dict(frontmatter)
        added = []

        if not updated.get("title"):
            heading = _HEADING_RE.search(body)
            updated["title"] = heading.group(1) if heading else title_case(Path(mdx.relative_path).stem)
            added.append("title")

        if not updated.get("description"):
            updated["description"] = generate_description(str(updated["title"]), mdx.category, self.product)
            added.append("description")

        if not updated.get("icon"):
            updated["icon"] = get_icon(mdx.category, mdx.relative_path)
            added.append("icon")

        if not updated.get("og:title"):
            updated["og:title"] = updated["title"]
            added.append("og:title")

        if not updated.get("og:description"):
            updated["og:description"] = updated["description"]
            added.append("og:description")

        return updated, added

    def process(self, dry_run: bool = False, backup: bool = False) -> FrontmatterReport:
        """Standardize every MDX file.

        Args:
            dry_run: Report changes without writing
            backup: Copy all pages to frontmatter-backups/ first
        """
        files = self.scan()
        report = FrontmatterReport()

        if backup and not dry_run:
            report.backup_path = self.create_backup(files)

        for mdx in files:
            report.processed += 1
            try:
                content = mdx.path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                report.errors.append(f"{mdx.relative_path}: {e}")
                continue

            try:
                frontmatter, body, _ = split_frontmatter(content)
            except DocsError as e:
                # Rebuild the block from scratch
                report.warnings.append(f"{mdx.relative_path}: {e}")
                frontmatter, body = {}, _FRONTMATTER_RE.match(content).group(2)

            updated, added = self.fill_frontmatter(mdx, frontmatter, body)
            if not added:
                report.skipped += 1
                continue

            report.fixed += 1
            report.changes[mdx.relative_path] = added
            logger.debug(f"{mdx.relative_path}: added {', '.join(added)}")
            if not dry_run:
                mdx.path.write_text(render_frontmatter(updated, body), encoding="utf-8")

        return report

    def validate(self) -> FrontmatterReport:
        """Check every page has a title and description without writing."""
        report = FrontmatterReport()
        for mdx in self.scan():
            report.processed += 1
            try:
                frontmatter, _, _ = split_frontmatter(mdx.path.read_text(encoding="utf-8"))
            except (OSError, UnicodeDecodeError, DocsError) as e:
                report.errors.append(f"{mdx.relative_path}: {e}")
                continue

            missing = [name for name in REQUIRED_FIELDS if not frontmatter.get(name)]
            if missing:
                report.errors.append(f"{mdx.relative_path}: missing {', '.join(missing)}")
                continue

            length = len(str(frontmatter["description"]))
            if length < VALID_MIN_LENGTH or length > VALID_MAX_LENGTH:
                report.warnings.append(
                    f"{mdx.relative_path}: description length {length} chars "
                    f"(target: {SEO_MIN_LENGTH}-{SEO_MAX_LENGTH})"
                )
            report.skipped += 1
        return report


__all__ = [
    "DocsError",
    "FrontmatterProcessor",
    "FrontmatterReport",
    "clamp_description",
    "generate_description",
    "get_icon",
    "split_frontmatter",
]
