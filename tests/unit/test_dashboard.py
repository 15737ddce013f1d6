"""Unit tests for dashboard module."""

from io import StringIO
from unittest.mock import Mock, patch

import pytest
from rich.console import Console

from hypergen.config_manager import ConfigManager
from hypergen.dashboard import (
    TABS,
    Dashboard,
    DashboardData,
    KEY_SHIFT_TAB,
    KEY_TAB,
    DashboardState,
    collect_dashboard_data,
)
from hypergen.history import RunRecord


def render_text(dashboard):
    console = Console(file=StringIO(), width=200, color_system=None)
    console.print(dashboard.render())
    return console.file.getvalue()


@pytest.fixture
def data(project_dir, sample_kit, component_recipe):
    """Dashboard data gathered from a project with a kit and a recipe."""
    config = ConfigManager.load_config(start_dir=project_dir)
    with patch("hypergen.discovery.entry_points", return_value=[]):
        return collect_dashboard_data(config, project_dir)


@pytest.fixture
def dashboard(project_dir, data):
    """Dashboard with a fixed data loader."""
    loader = Mock(return_value=data)
    console = Console(file=StringIO(), width=200, color_system=None)
    return Dashboard(data.config, project_dir, console=console, loader=loader)


class TestDashboardState:
    """Test key handling."""

    def test_number_keys(self):
        """Test 1-6 select tabs."""
        state = DashboardState()
        state.handle_key("4")
        assert state.tab == "Runs"

    def test_cycling(self):
        """Test Tab and Shift-Tab wrap around."""
        state = DashboardState()
        state.handle_key(KEY_SHIFT_TAB)
        assert state.tab == "Help"
        state.handle_key(KEY_TAB)
        assert state.tab == "Overview"

    def test_refresh_and_quit(self):
        """Test r requests a refresh and q stops."""
        state = DashboardState()
        assert state.handle_key("r") is True
        assert state.refresh_requested
        assert state.handle_key("q") is False
        assert not state.running

    def test_unknown_key_ignored(self):
        """Test other keys change nothing."""
        state = DashboardState()
        state.handle_key("x")
        assert state.active == 0
        assert state.running


class TestCollectDashboardData:
    """Test data gathering."""

    def test_generators_and_recipes(self, data, project_dir):
        """Test generators and per-recipe rows are collected."""
        assert data.project_root == project_dir.resolve()
        assert [g.name for g in data.generators] == ["demo", "workspace"]

        rows = {(row.generator, row.name): row for row in data.recipes}
        assert ("demo", "crud/create") in rows
        component = rows[("workspace", "_templates/component")]
        assert component.variable_count == 1
        assert component.step_count == 1
        assert component.valid

    def test_discovery_failure(self, project_dir):
        """Test discovery errors become error lines."""
        config = ConfigManager.load_config(start_dir=project_dir)
        config.discovery.sources = ["remote"]

        data = collect_dashboard_data(config, project_dir)

        assert data.generators == []
        assert data.errors[0].startswith("Discovery failed")


class TestDashboardRender:
    """Test tab rendering."""

    def test_every_tab_renders(self, dashboard):
        """Test each tab shows its title."""
        for index, name in enumerate(TABS):
            dashboard.state.active = index
            assert f"hypergen - {name}" in render_text(dashboard)

    def test_kits_tab(self, dashboard):
        """Test kits list their source and type."""
        dashboard.state.handle_key("2")
        output = render_text(dashboard)

        assert "demo" in output
        assert "Demo kit" in output

    def test_runs_tab(self, dashboard):
        """Test recorded runs are listed with status."""
        dashboard.data.runs = [
            RunRecord(recipe="component", success=False, started_at="2024-05-01T12:00:00+00:00", failed=1)
        ]
        dashboard.state.handle_key("4")
        output = render_text(dashboard)

        assert "2024-05-01 12:00:00" in output
        assert "failed" in output

    def test_overview_errors(self, project_dir, dashboard):
        """Test errors are shown on the overview."""
        dashboard.data = DashboardData(project_root=project_dir, config=dashboard.config, errors=["boom"])
        assert "boom" in render_text(dashboard)


class TestDashboardRun:
    """Test the key loop."""

    def test_keys_until_quit(self, dashboard):
        """Test keys are processed until q and refresh reloads data."""
        keys = iter(["3", "r", "q", "1"])

        dashboard.run(getchar=lambda: next(keys))

        assert dashboard.state.tab == "Recipes"
        assert dashboard.loader.call_count == 2
        assert "Dashboard closed" in dashboard.console.file.getvalue()

    def test_keyboard_interrupt(self, dashboard):
        """Test Ctrl-C during a read exits cleanly."""
        dashboard.run(getchar=Mock(side_effect=KeyboardInterrupt))
        assert not dashboard.state.running
