"""
Shared test fixtures and configuration for hypergen tests.

This module provides common fixtures used across all test types:
- Temporary project directories with a hypergen.yml
- Recipe, kit and cookbook factories
- A click CliRunner
- Action registry isolation
"""

import os
from pathlib import Path
from typing import Any

import pytest
import yaml
from click.testing import CliRunner

from hypergen.actions import ActionRegistry

# ============================================================================
# DIRECTORY FIXTURES
# ============================================================================


@pytest.fixture
def project_dir(tmp_path):
    """Temporary project root.

    Contains an empty hypergen.yml so project and config discovery stop
    here instead of walking up into the real filesystem.
    """
    project = tmp_path / "project"
    project.mkdir()
    (project / "hypergen.yml").write_text("templates: [_templates]\n")
    return project


@pytest.fixture
def in_project(project_dir, monkeypatch):
    """Change the working directory to the temporary project."""
    monkeypatch.chdir(project_dir)
    return project_dir


# ============================================================================
# RECIPE FIXTURES
# ============================================================================


def write_yaml(path: Path, data: Any) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(yaml.dump(data, sort_keys=False))
    return path


def write_template(path: Path, frontmatter: dict[str, Any], body: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    header = yaml.dump(frontmatter, sort_keys=False)
    path.write_text(f"---\n{header}---\n{body}")
    return path


@pytest.fixture
def make_recipe():
    """Factory writing a recipe.yml into a directory.

    Usage:
        recipe_file = make_recipe(tmp_path / "component", steps=[...])
    """

    def _make(directory: Path, name: str | None = None, variables=None, steps=None, **extra) -> Path:
        data = {
            "name": name or directory.name,
            "variables": variables if variables is not None else {},
            "steps": steps
            if steps is not None
            else [{"name": "hello", "tool": "shell", "command": "echo hello"}],
        }
        data.update(extra)
        return write_yaml(directory / "recipe.yml", data)

    return _make


@pytest.fixture
def component_recipe(project_dir, make_recipe):
    """A template recipe under _templates/component rendering one file."""
    directory = project_dir / "_templates" / "component"
    write_template(
        directory / "templates" / "component.py.j2",
        {"to": "src/{{ name | snake_case }}.py"},
        "class {{ name | pascal_case }}:\n    pass\n",
    )
    make_recipe(
        directory,
        variables={"name": {"type": "string", "required": True, "position": 0}},
        steps=[{"name": "render", "tool": "template", "template": "templates/component.py.j2"}],
    )
    return directory


@pytest.fixture
def sample_kit(project_dir, make_recipe):
    """A kit with one cookbook (crud) holding two recipes (create, list).

    Layout:
        kits/demo/kit.yml
        kits/demo/cookbooks/crud/cookbook.yml
        kits/demo/cookbooks/crud/create/recipe.yml
        kits/demo/cookbooks/crud/list/recipe.yml
    """
    kit_dir = project_dir / "kits" / "demo"
    write_yaml(
        kit_dir / "kit.yml",
        {
            "name": "@acme/demo",
            "description": "Demo kit",
            "version": "1.2.0",
            "defaults": {"cookbook": "crud"},
            "variables": {"author": {"type": "string", "default": "acme"}},
        },
    )
    cookbook_dir = kit_dir / "cookbooks" / "crud"
    write_yaml(
        cookbook_dir / "cookbook.yml",
        {"name": "crud", "description": "CRUD recipes", "defaults": {"recipe": "create"}},
    )
    for recipe in ("create", "list"):
        make_recipe(
            cookbook_dir / recipe,
            name=f"crud-{recipe}",
            variables={"model": {"type": "string", "position": 0, "default": "Item"}},
            steps=[
                {
                    "name": "touch",
                    "tool": "ensure-dirs",
                    "paths": [f"out/{recipe}/{{{{ model | kebab_case }}}}"],
                }
            ],
        )
    return kit_dir


# ============================================================================
# CLI FIXTURES
# ============================================================================


@pytest.fixture
def cli_runner():
    """Click CliRunner for invoking the hypergen CLI."""
    return CliRunner()


# ============================================================================
# ISOLATION FIXTURES
# ============================================================================


@pytest.fixture(autouse=True)
def clean_action_registry():
    """Reset the process-wide action registry around every test."""
    ActionRegistry.clear()
    yield
    ActionRegistry.clear()


@pytest.fixture(autouse=True)
def no_hypergen_env(monkeypatch):
    """Keep a developer's HYPERGEN_ENV from leaking into tests."""
    if "HYPERGEN_ENV" in os.environ:
        monkeypatch.delenv("HYPERGEN_ENV")


# ============================================================================
# FILE HELPER FIXTURES
# ============================================================================


@pytest.fixture
def yaml_file():
    """Helper writing a YAML document: yaml_file(path, data) -> path."""
    return write_yaml


@pytest.fixture
def template_file():
    """Helper writing a frontmatter template: template_file(path, attrs, body) -> path."""
    return write_template
