"""docs.json navigation generation for generated API reference pages.

Scans an output directory of MDX pages and rewrites one tab of a
Mintlify-style docs.json so its project group lists those pages, grouped
by folder, file and/or kind.
"""

import json
import logging
import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from hypergen.docs.frontmatter import DocsError

logger = logging.getLogger(__name__)

VALID_STRATEGIES = ("folder", "file", "kind")
DEFAULT_STRATEGIES = ["folder", "file"]
ICON_TARGETS = ("folder", "file", "kind")

# Checked in order against the lowercased file path.
KIND_DIRECTORIES = (
    ("/classes/", "Class"),
    ("/interfaces/", "Interface"),
    ("/functions/", "Function"),
    ("/type-aliases/", "TypeAlias"),
    ("/variables/", "Variable"),
    ("/enumerations/", "Enum"),
    ("/modules/", "Module"),
    ("/namespaces/", "Namespace"),
)

KIND_ICONS = {
    "Class": "cube",
    "Interface": "plug",
    "Function": "bolt",
    "TypeAlias": "file-text",
    "Variable": "package",
    "Enum": "list",
    "Module": "folder",
    "Namespace": "folder",
}

KIND_GROUP_NAMES = {
    "Class": "Classes",
    "Interface": "Interfaces",
    "Function": "Functions",
    "TypeAlias": "Types",
    "Variable": "Variables",
    "Enum": "Enums",
}

LEGACY_TAB_NAME = "SDK Reference"
PLACEHOLDER_GROUPS = ("Introduction", "API Endpoints")


@dataclass
class PageEntry:
    """One generated MDX page."""

    page: str  # path relative to docs.json without extension
    name: str
    folder: str
    file_name: str
    kind: str

    @property
    def kind_icon(self) -> str:
        return KIND_ICONS.get(self.kind, "circle")


def infer_kind(path: str) -> str:
    lowered = "/" + path.lower().lstrip("/")
    for needle, kind in KIND_DIRECTORIES:
        if needle in lowered:
            return kind
    return "Unknown"


def format_folder_name(folder: str) -> str:
    """recipe-engine -> Recipe Engine"""
    return " ".join(part[:1].upper() + part[1:] for part in folder.split("-"))


def format_kind_name(kind: str) -> str:
    return KIND_GROUP_NAMES.get(kind, kind + "s")


def _file_group_name(name: str) -> str:
    return re.sub(r"([A-Z])", r"-\1", name).lower().lstrip("-")


def parse_sidebar_icons(value: str | list[str] | None) -> str | list[str]:
    """Normalize "all", "none" or a comma list of folder/file/kind."""
    if value is None:
        return "all"
    if isinstance(value, str):
        if value in ("all", "none"):
            return value
        value = [item.strip() for item in value.split(",") if item.strip()]
    invalid = [item for item in value if item not in ICON_TARGETS]
    if invalid:
        raise DocsError(f"Invalid sidebar icon targets: {', '.join(invalid)}")
    return list(value)


def parse_strategies(value: str | list[str] | None) -> list[str]:
    if not value:
        return list(DEFAULT_STRATEGIES)
    if isinstance(value, str):
        value = [item.strip() for item in value.split(",") if item.strip()]
    invalid = [item for item in value if item not in VALID_STRATEGIES]
    if invalid:
        raise DocsError(
            f"Invalid navigation strategy: {', '.join(invalid)} "
            f"(valid: {', '.join(VALID_STRATEGIES)})"
        )
    return list(value)


class DocsJsonUpdater:
    """Rebuild the navigation of one docs.json tab from generated pages."""

    def __init__(
        self,
        docs_json_path: Path,
        output_dir: Path,
        project_name: str,
        tab_name: str = "SDK Reference",
        strategies: list[str] | None = None,
        sidebar_icons: str | list[str] = "all",
    ):
        self.docs_json_path = Path(docs_json_path).resolve()
        self.output_dir = Path(output_dir).resolve()
        self.project_name = project_name
        self.tab_name = tab_name
        self.strategies = parse_strategies(strategies)
        self.sidebar_icons = parse_sidebar_icons(sidebar_icons)

    def shows_icons(self, target: str) -> bool:
        if self.sidebar_icons == "all":
            return True
        if self.sidebar_icons == "none":
            return False
        return target in self.sidebar_icons

    def _relative(self, path: Path) -> str:
        return Path(os.path.relpath(path, self.docs_json_path.parent)).as_posix()

    def scan_pages(self) -> list[PageEntry]:
        """Generated pages sorted by path, excluding README.mdx."""
        if not self.output_dir.is_dir():
            raise DocsError(f"Output directory not found: {self.output_dir}")

        entries = []
        for path in self.output_dir.rglob("*.mdx"):
            if path.name == "README.mdx":
                continue
            inner = path.relative_to(self.output_dir).with_suffix("")
            entries.append(
                PageEntry(
                    page=self._relative(path.with_suffix("")),
                    name=path.stem,
                    folder="/".join(inner.parts[:-2]) or "root",
                    file_name=_file_group_name(inner.name) if len(inner.parts) > 1 else inner.name,
                    kind=infer_kind(inner.as_posix()),
                )
            )
        return sorted(entries, key=lambda entry: entry.page)

    def build_navigation(self) -> list[Any]:
        pages: list[Any] = []
        readme = self.output_dir / "README.mdx"
        if readme.is_file():
            pages.append(self._relative(readme.with_suffix("")))

        entries = self.scan_pages()
        if not entries:
            logger.warning("No MDX files found in output directory for navigation generation")
            return pages

        pages.extend(self._group(entries, self.strategies))
        logger.debug(f"Generated navigation for {len(entries)} pages")
        return pages

    def _group(self, entries: list[PageEntry], strategies: list[str]) -> list[Any]:
        if not strategies:
            return self._group_by_kind(entries, [])
        first, rest = strategies[0], strategies[1:]
        if first == "folder":
            return self._group_by_folder(entries, rest)
        if first == "file":
            return self._group_by_file(entries, rest)
        return self._group_by_kind(entries, rest)

    def _leaf(self, entry: PageEntry) -> Any:
        if self.shows_icons("kind"):
            return {"group": entry.name, "icon": entry.kind_icon, "pages": [entry.page]}
        return entry.page

    def _group_by_folder(self, entries: list[PageEntry], rest: list[str]) -> list[Any]:
        folders: dict[str, list[PageEntry]] = {}
        for entry in entries:
            folders.setdefault(entry.folder, []).append(entry)

        pages = []
        for folder, items in folders.items():
            sub_pages = self._group(items, rest) if rest else [self._leaf(item) for item in items]
            group: dict[str, Any] = {"group": format_folder_name(folder), "pages": sub_pages}
            if self.shows_icons("folder"):
                group["icon"] = "folder"
            pages.append(group)
        return pages

    def _group_by_file(self, entries: list[PageEntry], rest: list[str]) -> list[Any]:
        files: dict[str, list[PageEntry]] = {}
        for entry in entries:
            files.setdefault(entry.file_name, []).append(entry)

        pages: list[Any] = []
        for file_name, items in files.items():
            if rest:
                sub_pages = self._group(items, rest)
                if len(sub_pages) == 1 and isinstance(sub_pages[0], str):
                    pages.append(sub_pages[0])
                    continue
            elif len(items) == 1:
                pages.append(items[0].page)
                continue
            else:
                sub_pages = [item.page for item in items]

            group: dict[str, Any] = {"group": file_name, "pages": sub_pages}
            if self.shows_icons("file"):
                group["icon"] = "file"
            pages.append(group)
        return pages

    def _group_by_kind(self, entries: list[PageEntry], rest: list[str]) -> list[Any]:
        kinds: dict[str, list[PageEntry]] = {}
        for entry in entries:
            kinds.setdefault(entry.kind, []).append(entry)

        pages: list[Any] = []
        for kind, items in kinds.items():
            if not rest:
                pages.extend(self._leaf(item) for item in items)
                continue
            group: dict[str, Any] = {"group": format_kind_name(kind), "pages": self._group(items, rest)}
            if self.shows_icons("kind"):
                group["icon"] = KIND_ICONS.get(kind, "circle")
            pages.append(group)
        return pages

    def load(self) -> dict[str, Any]:
        try:
            data = json.loads(self.docs_json_path.read_text(encoding="utf-8"))
        except FileNotFoundError as e:
            raise DocsError(f"docs.json not found: {self.docs_json_path}") from e
        except (OSError, ValueError) as e:
            raise DocsError(f"Failed to read {self.docs_json_path}: {e}") from e
        if not isinstance(data, dict):
            raise DocsError(f"{self.docs_json_path} must contain a JSON object")
        return data

    def apply(self, docs_json: dict[str, Any], navigation: list[Any]) -> dict[str, Any]:
        """Replace the project group's pages inside the target tab."""
        nav = docs_json.setdefault("navigation", {})
        tabs = nav.setdefault("tabs", [])

        tab = next(
            (
                t
                for t in tabs
                if self.tab_name in t.get("tab", "") or LEGACY_TAB_NAME in t.get("tab", "")
            ),
            None,
        )
        if tab is None:
            tab = {"tab": self.tab_name, "groups": []}
            tabs.append(tab)
        else:
            tab["tab"] = self.tab_name
            tab["groups"] = [
                group
                for group in tab.get("groups", [])
                if not any(marker in group.get("group", "") for marker in PLACEHOLDER_GROUPS)
            ]

        project_group = next(
            (g for g in tab["groups"] if self.project_name in g.get("group", "")), None
        )
        if project_group is None:
            project_group = {"group": self.project_name, "pages": []}
            if self.shows_icons("folder"):
                project_group["icon"] = "cog"
            tab["groups"].append(project_group)

        project_group["pages"] = navigation
        return docs_json

    def update(self) -> list[Any]:
        """Rewrite docs.json and return the generated navigation."""
        docs_json = self.load()
        navigation = self.build_navigation()
        self.apply(docs_json, navigation)
        self.docs_json_path.write_text(json.dumps(docs_json, indent=2), encoding="utf-8")
        logger.info(f"Updated {self.docs_json_path} with {self.project_name} navigation")
        return navigation


__all__ = [
    "DocsJsonUpdater",
    "PageEntry",
    "format_folder_name",
    "format_kind_name",
    "infer_kind",
    "parse_sidebar_icons",
    "parse_strategies",
]
