"""Unit tests for docs.navigation module."""

import json

import pytest

from hypergen.docs.frontmatter import DocsError
from hypergen.docs.navigation import (
    DocsJsonUpdater,
    format_folder_name,
    format_kind_name,
    infer_kind,
    parse_sidebar_icons,
    parse_strategies,
)


@pytest.fixture
def site(tmp_path):
    """A docs site with generated API pages under docs/api.

    Layout:
        docs/docs.json
        docs/api/README.mdx
        docs/api/recipe-engine/classes/RecipeEngine.mdx
        docs/api/recipe-engine/functions/executeRecipe.mdx
        docs/api/utils/functions/slugify.mdx
    """
    docs = tmp_path / "docs"
    api = docs / "api"
    for page in (
        "README.mdx",
        "recipe-engine/classes/RecipeEngine.mdx",
        "recipe-engine/functions/executeRecipe.mdx",
        "utils/functions/slugify.mdx",
    ):
        path = api / page
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text("---\ntitle: x\n---\n")

    (docs / "docs.json").write_text(
        json.dumps(
            {
                "name": "Site",
                "navigation": {
                    "tabs": [
                        {
                            "tab": "SDK Reference",
                            "groups": [
                                {"group": "Introduction", "pages": ["intro"]},
                                {"group": "Guides", "pages": ["guides/start"]},
                            ],
                        }
                    ]
                },
            }
        )
    )
    return docs


def updater(site, **kwargs):
    return DocsJsonUpdater(site / "docs.json", site / "api", "hypergen", **kwargs)


class TestHelpers:
    """Test naming and parsing helpers."""

    @pytest.mark.parametrize(
        "path,kind",
        [
            ("engine/classes/Engine", "Class"),
            ("engine/type-aliases/Options", "TypeAlias"),
            ("engine/enumerations/Status", "Enum"),
            ("engine/Engine", "Unknown"),
        ],
    )
    def test_infer_kind(self, path, kind):
        """Test kinds come from TypeDoc directory names."""
        assert infer_kind(path) == kind

    def test_format_names(self):
        """Test folder and kind group names."""
        assert format_folder_name("recipe-engine") == "Recipe Engine"
        assert format_kind_name("TypeAlias") == "Types"
        assert format_kind_name("Namespace") == "Namespaces"

    def test_parse_strategies(self):
        """Test strategy lists are parsed and validated."""
        assert parse_strategies(None) == ["folder", "file"]
        assert parse_strategies("kind, folder") == ["kind", "folder"]
        with pytest.raises(DocsError, match="Invalid navigation strategy: alpha"):
            parse_strategies("alpha")

    def test_parse_sidebar_icons(self):
        """Test icon targets are parsed and validated."""
        assert parse_sidebar_icons("all") == "all"
        assert parse_sidebar_icons("folder,kind") == ["folder", "kind"]
        with pytest.raises(DocsError, match="Invalid sidebar icon targets"):
            parse_sidebar_icons("everything,folder")


class TestScanPages:
    """Test page discovery."""

    def test_entries(self, site):
        """Test README is excluded and pages are relative to docs.json."""
        entries = updater(site).scan_pages()

        assert [entry.page for entry in entries] == [
            "api/recipe-engine/classes/RecipeEngine",
            "api/recipe-engine/functions/executeRecipe",
            "api/utils/functions/slugify",
        ]
        first = entries[0]
        assert (first.folder, first.file_name, first.kind) == ("recipe-engine", "recipe-engine", "Class")

    def test_missing_output(self, site):
        """Test a missing output directory raises."""
        with pytest.raises(DocsError, match="Output directory not found"):
            DocsJsonUpdater(site / "docs.json", site / "missing", "hypergen").scan_pages()


class TestBuildNavigation:
    """Test navigation grouping strategies."""

    def test_by_folder_without_icons(self, site):
        """Test folder grouping with plain page leaves."""
        navigation = updater(site, strategies=["folder"], sidebar_icons="none").build_navigation()

        assert navigation == [
            "api/README",
            {
                "group": "Recipe Engine",
                "pages": [
                    "api/recipe-engine/classes/RecipeEngine",
                    "api/recipe-engine/functions/executeRecipe",
                ],
            },
            {"group": "Utils", "pages": ["api/utils/functions/slugify"]},
        ]

    def test_by_kind_with_icons(self, site):
        """Test kind-only grouping yields icon leaves."""
        navigation = updater(site, strategies=["kind"]).build_navigation()

        assert navigation[1] == {
            "group": "RecipeEngine",
            "icon": "cube",
            "pages": ["api/recipe-engine/classes/RecipeEngine"],
        }
        assert len(navigation) == 4

    def test_kind_then_folder(self, site):
        """Test nested strategies nest groups."""
        navigation = updater(site, strategies=["kind", "folder"], sidebar_icons="none").build_navigation()

        functions = navigation[2]
        assert functions["group"] == "Functions"
        assert [group["group"] for group in functions["pages"]] == ["Recipe Engine", "Utils"]

    def test_empty_output(self, tmp_path):
        """Test an empty output directory yields no pages."""
        (tmp_path / "api").mkdir()
        navigation = DocsJsonUpdater(tmp_path / "docs.json", tmp_path / "api", "x").build_navigation()
        assert navigation == []


class TestUpdate:
    """Test rewriting docs.json."""

    def test_replaces_legacy_tab(self, site):
        """Test the legacy tab is renamed, placeholders dropped and the project group added."""
        navigation = updater(site, tab_name="API", strategies=["folder"]).update()

        data = json.loads((site / "docs.json").read_text())
        tab = data["navigation"]["tabs"][0]
        assert tab["tab"] == "API"
        assert [group["group"] for group in tab["groups"]] == ["Guides", "hypergen"]
        project_group = tab["groups"][1]
        assert project_group["icon"] == "cog"
        assert project_group["pages"] == navigation
        assert data["name"] == "Site"

    def test_creates_tab(self, tmp_path, site):
        """Test a missing tab is created."""
        docs_json = tmp_path / "fresh.json"
        docs_json.write_text("{}")

        DocsJsonUpdater(docs_json, site / "api", "hypergen", tab_name="Reference").update()

        tabs = json.loads(docs_json.read_text())["navigation"]["tabs"]
        assert tabs[0]["tab"] == "Reference"
        assert tabs[0]["groups"][0]["group"] == "hypergen"

    def test_missing_docs_json(self, site):
        """Test a missing docs.json raises."""
        with pytest.raises(DocsError, match="docs.json not found"):
            DocsJsonUpdater(site / "none.json", site / "api", "hypergen").update()
