"""Unit tests for cli module.

Covers:
- Global options and help output
- Default command routing (`hypergen <generator> ...` -> run)
- discover / list / info
- recipe, config, docs and history command groups
"""

import json
from unittest.mock import patch

import pytest

from hypergen import __version__
from hypergen.cli import main
from hypergen.history import RunHistory


@pytest.fixture
def invoke(cli_runner, project_dir):
    """Invoke the CLI inside the temporary project with a wide console."""

    def _invoke(*args, cwd=None):
        return cli_runner.invoke(
            main,
            ["--cwd", str(cwd or project_dir), *args],
            env={"COLUMNS": "300"},
        )

    return _invoke


# ============================================================================
# GLOBAL OPTIONS
# ============================================================================


class TestGlobalOptions:
    """Test top-level behavior."""

    def test_no_command_shows_help(self, invoke):
        """Test running without a command prints help."""
        result = invoke()

        assert result.exit_code == 0
        assert "recipe-driven code generation" in result.output

    def test_version(self, cli_runner):
        """Test --version prints the package version."""
        result = cli_runner.invoke(main, ["--version"])
        assert __version__ in result.output

    def test_invalid_choice_shows_error(self, invoke):
        """Test usage errors print a message and help."""
        result = invoke("config", "init", "--format", "json")

        assert result.exit_code != 0
        assert "Error" in result.output

    def test_invalid_config_file(self, invoke, project_dir):
        """Test broken configuration exits with the validation message."""
        (project_dir / "hypergen.yml").write_text("output:\n  conflict_strategy: merge\n")

        result = invoke("list")

        assert result.exit_code == 1
        assert "Invalid conflict strategy" in result.output


# ============================================================================
# GENERATION
# ============================================================================


class TestRunCommand:
    """Test recipe execution from the command line."""

    def test_default_command_routing(self, invoke, project_dir, component_recipe):
        """Test an unknown command name runs as a generator."""
        result = invoke("component", "Button", "-y")

        assert result.exit_code == 0, result.output
        assert (project_dir / "src" / "button.py").exists()
        assert "1 steps completed" in result.output

    def test_explicit_run_with_variables(self, invoke, project_dir, component_recipe):
        """Test --key=value variables reach the recipe."""
        result = invoke("run", "component", "--name=NavBar", "--yes")

        assert result.exit_code == 0, result.output
        assert (project_dir / "src" / "nav_bar.py").exists()

    def test_dry_run(self, invoke, project_dir, component_recipe):
        """Test --dry writes nothing."""
        result = invoke("component", "Button", "--dry", "-y")

        assert result.exit_code == 0
        assert "dry run" in result.output
        assert not (project_dir / "src").exists()

    def test_existing_file_fails_without_force(self, invoke, project_dir, component_recipe):
        """Test conflicts fail unless --force is given."""
        (project_dir / "src").mkdir()
        (project_dir / "src" / "button.py").write_text("# mine\n")

        failed = invoke("component", "Button", "-y")
        assert failed.exit_code == 1
        assert "File already exists" in failed.output

        forced = invoke("component", "Button", "-y", "--force")
        assert forced.exit_code == 0
        assert "class Button" in (project_dir / "src" / "button.py").read_text()

    def test_kit_recipe(self, invoke, project_dir, sample_kit):
        """Test kit/cookbook/recipe segments."""
        result = invoke("demo", "crud", "list", "Order", "-y")

        assert result.exit_code == 0, result.output
        assert (project_dir / "out" / "list" / "order").is_dir()

    def test_group(self, invoke, sample_kit):
        """Test a cookbook directory runs as a group."""
        result = invoke("run", "./kits/demo/cookbooks/crud", "-y")

        assert result.exit_code == 0, result.output
        assert "2 recipes executed" in result.output

    def test_missing_variable(self, invoke, component_recipe):
        """Test --yes fails on missing required variables."""
        result = invoke("component", "-y")

        assert result.exit_code == 1
        assert "Missing required variables: name" in result.output

    def test_unexpected_error(self, invoke, component_recipe):
        """Test unexpected exceptions print a message and exit 1."""
        with patch("hypergen.commands.run.GenerationService") as mock_service:
            mock_service.return_value.run.side_effect = RuntimeError("boom")
            result = invoke("component", "Button", "-y")

        assert result.exit_code == 1
        assert "Unexpected error: boom" in result.output

    def test_unknown_generator(self, invoke):
        """Test unresolvable segments exit with a hint."""
        result = invoke("nothing-here")

        assert result.exit_code == 1
        assert "No generator or recipe found" in result.output

    def test_no_segments(self, invoke):
        """Test run without segments."""
        result = invoke("run")

        assert result.exit_code == 1
        assert "No recipe specified" in result.output


# ============================================================================
# DISCOVERY
# ============================================================================


class TestDiscoveryCommands:
    """Test discover, list and info."""

    def test_discover_json(self, invoke, sample_kit, component_recipe):
        """Test JSON output lists every generator."""
        result = invoke("discover", "--source", "local", "--json")

        assert result.exit_code == 0
        names = [item["name"] for item in json.loads(result.output)]
        assert names == ["demo", "workspace"]

    def test_discover_table(self, invoke, sample_kit):
        """Test the table output."""
        result = invoke("discover")

        assert result.exit_code == 0
        assert "Discovered Generators" in result.output

    def test_discover_nothing(self, invoke):
        """Test the empty message."""
        result = invoke("discover", "--source", "local")
        assert "No generators found" in result.output

    def test_list(self, invoke, sample_kit):
        """Test generators are listed with their recipes."""
        result = invoke("list")

        assert result.exit_code == 0
        assert "demo" in result.output
        assert "crud/create" in result.output
        assert "Cookbooks: crud" in result.output

    def test_list_unknown(self, invoke, sample_kit):
        """Test filtering by an unknown generator fails."""
        result = invoke("list", "ghost")

        assert result.exit_code == 1
        assert "Generator not found: ghost" in result.output

    def test_info(self, invoke, sample_kit):
        """Test generator details."""
        result = invoke("info", "demo")

        assert result.exit_code == 0
        assert "Demo kit" in result.output
        assert "1.2.0" in result.output
        assert "Recipes (2)" in result.output


# ============================================================================
# KIT AND COOKBOOK COMMANDS
# ============================================================================


class TestKitCommands:
    """Test the kit command group."""

    def test_list(self, invoke, sample_kit, component_recipe):
        """Test only kits are listed, with version and cookbooks."""
        result = invoke("kit", "list")

        assert result.exit_code == 0, result.output
        assert "demo" in result.output
        assert "v1.2.0" in result.output
        assert "Cookbooks:   crud" in result.output
        assert "component" not in result.output

    def test_list_json(self, invoke, sample_kit):
        """Test JSON output omits actions."""
        result = invoke("kit", "list", "--json")

        kits = json.loads(result.output)
        assert [kit["name"] for kit in kits] == ["demo"]
        assert "actions" not in kits[0]
        assert kits[0]["recipes"] == ["crud/create", "crud/list"]

    def test_list_verbose(self, invoke, sample_kit):
        """Test --verbose shows the kit location."""
        result = invoke("kit", "list", "--verbose")
        assert str(sample_kit) in result.output

    def test_list_empty(self, invoke):
        """Test the message when no kit is installed."""
        result = invoke("kit", "list")

        assert result.exit_code == 0
        assert "No kits installed" in result.output

    def test_unexpected_error(self, invoke):
        """Test discovery crashes are reported."""
        with patch("hypergen.commands.kit.GeneratorDiscovery") as mock_discovery:
            mock_discovery.return_value.discover_all.side_effect = RuntimeError("boom")
            result = invoke("kit", "list")

        assert result.exit_code == 1
        assert "Unexpected error: boom" in result.output


class TestCookbookCommands:
    """Test the cookbook command group."""

    def test_list(self, invoke, sample_kit):
        """Test cookbooks are listed with their recipe count and default."""
        result = invoke("cookbook", "list")

        assert result.exit_code == 0, result.output
        assert "Cookbooks (1)" in result.output
        assert "CRUD recipes" in result.output
        assert "create" in result.output

    def test_list_json_filtered_by_kit(self, invoke, sample_kit):
        """Test filtering by kit name."""
        assert json.loads(invoke("cookbook", "list", "ghost", "--json").output) == []

        data = json.loads(invoke("cookbook", "list", "demo", "--json").output)
        assert data[0]["name"] == "crud"
        assert data[0]["default_recipe"] == "create"

    def test_info(self, invoke, sample_kit):
        """Test cookbook details list its recipes."""
        result = invoke("cookbook", "info", "crud")

        assert result.exit_code == 0, result.output
        assert "Kit:      demo" in result.output
        assert "Recipes (2):" in result.output
        assert "hypergen demo crud create" in result.output

    def test_info_json(self, invoke, sample_kit):
        """Test JSON details with a kit-qualified name."""
        result = invoke("cookbook", "info", "demo/crud", "--json")

        data = json.loads(result.output)
        assert data["kit"] == "demo"
        assert [recipe["name"] for recipe in data["recipes"]] == ["create", "list"]
        assert data["recipes"][0]["title"] == "crud-create"
        assert data["recipes"][0]["variables"] == ["model"]

    def test_info_unknown(self, invoke, sample_kit):
        """Test unknown cookbooks fail and list what exists."""
        result = invoke("cookbook", "info", "blog")

        assert result.exit_code == 1
        assert "Cookbook not found: blog" in result.output
        assert "demo/crud" in result.output


# ============================================================================
# RECIPE COMMANDS
# ============================================================================


class TestRecipeCommands:
    """Test the recipe command group."""

    def test_validate(self, invoke, component_recipe):
        """Test a valid recipe."""
        result = invoke("recipe", "validate", "_templates/component")

        assert result.exit_code == 0
        assert "is valid" in result.output

    def test_validate_invalid(self, invoke, project_dir, make_recipe):
        """Test invalid recipes list their error codes."""
        make_recipe(project_dir / "bad", steps=[])

        result = invoke("recipe", "validate", "bad")

        assert result.exit_code == 1
        assert "MISSING_STEPS" in result.output

    def test_validate_missing_directory_recipe(self, invoke, project_dir):
        """Test directories without a recipe."""
        (project_dir / "empty").mkdir()
        result = invoke("recipe", "validate", "empty")

        assert result.exit_code == 1
        assert "No recipe.yml found" in result.output

    def test_info(self, invoke, component_recipe):
        """Test recipe details show variables and steps."""
        result = invoke("recipe", "info", "_templates/component")

        assert result.exit_code == 0
        assert "Variables" in result.output
        assert "render" in result.output

    def test_list(self, invoke, component_recipe, sample_kit):
        """Test every recipe below the directory is listed."""
        result = invoke("recipe", "list")

        assert result.exit_code == 0
        assert "Recipes (3)" in result.output

    def test_steps(self, invoke, project_dir, make_recipe):
        """Test the execution plan is printed by phase."""
        make_recipe(
            project_dir / "plan",
            steps=[
                {"name": "a", "tool": "shell", "command": "true"},
                {"name": "b", "tool": "shell", "command": "true"},
                {"name": "c", "tool": "shell", "command": "true", "depends_on": ["a", "b"]},
            ],
        )

        result = invoke("recipe", "steps", "plan")

        assert result.exit_code == 0
        assert "3 steps in 2 phases (estimated 15.0s)" in result.output
        assert "Phase 1 (parallel)" in result.output
        assert "Phase 2 (sequential)" in result.output


# ============================================================================
# CONFIG COMMANDS
# ============================================================================


class TestConfigCommands:
    """Test the config command group."""

    def test_show_json(self, invoke):
        """Test JSON output of the effective config."""
        result = invoke("config", "show", "--json")

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["templates"] == ["_templates"]
        assert data["environment"] == "development"

    def test_show_environment(self, invoke):
        """Test --env selects the environment."""
        result = invoke("--env", "ci", "config", "show")

        assert result.exit_code == 0
        assert "ci" in result.output

    def test_init(self, invoke, tmp_path):
        """Test a config file is created."""
        target = tmp_path / "fresh"
        target.mkdir()

        result = invoke("config", "init", "--format", "toml", cwd=target)

        assert result.exit_code == 0
        assert (target / "hypergen.toml").exists()

    def test_init_existing(self, invoke):
        """Test existing files need --force."""
        result = invoke("config", "init")

        assert result.exit_code == 1
        assert "already exists" in result.output
        assert invoke("config", "init", "--force").exit_code == 0

    def test_validate(self, invoke, project_dir):
        """Test validating the nearest config and an invalid file."""
        assert "is valid" in invoke("config", "validate").output

        (project_dir / "bad.yml").write_text("discovery:\n  sources: [remote]\n")
        result = invoke("config", "validate", "bad.yml")

        assert result.exit_code == 1
        assert "Invalid discovery sources: remote" in result.output


# ============================================================================
# DOCS COMMANDS
# ============================================================================


class TestDocsCommands:
    """Test the docs command group."""

    def test_frontmatter(self, invoke, project_dir):
        """Test pages are fixed and summarized."""
        docs = project_dir / "docs"
        docs.mkdir()
        (docs / "intro.mdx").write_text("# Intro\n")

        result = invoke("docs", "frontmatter", "docs")

        assert result.exit_code == 0
        assert "Fixed: 1" in result.output
        assert (docs / "intro.mdx").read_text().startswith("---\ntitle: Intro\n")

    def test_frontmatter_check(self, invoke, project_dir):
        """Test --check fails on missing fields without writing."""
        docs = project_dir / "docs"
        docs.mkdir()
        (docs / "intro.mdx").write_text("# Intro\n")

        result = invoke("docs", "frontmatter", "docs", "--check")

        assert result.exit_code == 1
        assert (docs / "intro.mdx").read_text() == "# Intro\n"

    def test_nav(self, invoke, project_dir):
        """Test docs.json is rewritten."""
        api = project_dir / "site" / "api" / "core" / "functions"
        api.mkdir(parents=True)
        (api / "run.mdx").write_text("# run\n")
        (project_dir / "site" / "docs.json").write_text("{}")

        result = invoke("docs", "nav", "site/api", "--docs-json", "site/docs.json", "--strategy", "folder")

        assert result.exit_code == 0, result.output
        data = json.loads((project_dir / "site" / "docs.json").read_text())
        assert data["navigation"]["tabs"][0]["tab"] == "SDK Reference"

    def test_nav_invalid_strategy(self, invoke, project_dir):
        """Test invalid strategies exit with an error."""
        (project_dir / "api").mkdir()
        result = invoke("docs", "nav", "api", "--docs-json", "docs.json", "--strategy", "alpha")

        assert result.exit_code == 1
        assert "Invalid navigation strategy" in result.output


# ============================================================================
# HISTORY AND DASHBOARD
# ============================================================================


class TestHistoryCommands:
    """Test history and dash."""

    def test_empty_history(self, invoke):
        """Test the empty message."""
        assert "No runs recorded yet" in invoke("history").output

    def test_history_after_run(self, invoke, project_dir, component_recipe):
        """Test runs appear in the history table."""
        invoke("component", "Button", "-y")

        result = invoke("history")

        assert result.exit_code == 0
        assert "component" in result.output
        assert "success" in result.output

    def test_clear(self, invoke, project_dir, component_recipe):
        """Test --clear removes recorded runs."""
        invoke("component", "Button", "-y")

        result = invoke("history", "--clear")

        assert "Run history cleared" in result.output
        assert RunHistory(project_dir).load() == []

    def test_dash(self, invoke):
        """Test dash starts the dashboard."""
        with patch("hypergen.commands.history.Dashboard") as mock_dashboard:
            result = invoke("dash")

        assert result.exit_code == 0
        mock_dashboard.return_value.run.assert_called_once()
