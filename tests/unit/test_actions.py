"""Unit tests for actions module."""

from pathlib import Path

import pytest

from hypergen.actions import (
    ActionContext,
    ActionError,
    ActionRegistry,
    ActionResult,
    action,
    load_actions_from_file,
)


@pytest.fixture
def context(tmp_path):
    """ActionContext rooted in a temporary directory."""
    return ActionContext(variables={"name": "Post"}, project_root=tmp_path)


class TestActionDecorator:
    """Test @action registration."""

    def test_registers_with_derived_name(self):
        """Test the name defaults to the function name with dashes."""

        @action(category="web")
        def add_route(context):
            """Register a route.

            Longer explanation.
            """

        definition = ActionRegistry.get("add-route")
        assert definition.func is add_route
        assert definition.description == "Register a route."
        assert definition.category == "web"
        assert add_route.hypergen_action is definition

    def test_invalid_parameter_declaration(self):
        """Test bad parameter declarations fail at decoration time."""
        with pytest.raises(ActionError, match="Invalid parameters declared"):

            @action(parameters={"path": {"type": "unknown"}})
            def broken(context):
                pass

    def test_duplicate_name_replaces(self):
        """Test registering a name twice keeps the latest."""

        @action(name="dup")
        def first(context):
            pass

        @action(name="dup")
        def second(context):
            pass

        assert ActionRegistry.get("dup").func is second


class TestActionRun:
    """Test running actions."""

    def test_parameters_and_defaults(self, context):
        """Test declared defaults are passed along with given parameters."""
        calls = []

        @action(
            name="route",
            parameters={
                "path": {"type": "string", "required": True},
                "handler": {"type": "string", "default": "index"},
            },
        )
        def route(ctx, path, handler):
            calls.append((ctx, path, handler))
            return {"files_modified": ["routes.py"], "message": "added"}

        result = ActionRegistry.get("route").run(context, {"path": "/posts"})

        assert calls == [(context, "/posts", "index")]
        assert result.files_modified == ["routes.py"]
        assert result.message == "added"

    def test_invalid_parameters(self, context):
        """Test parameter validation errors raise."""

        @action(name="strict", parameters={"path": {"type": "string", "required": True}})
        def strict(ctx, path):
            pass

        with pytest.raises(ActionError, match="Invalid parameters for action 'strict'"):
            ActionRegistry.get("strict").run(context, {})

    def test_exception_wrapped(self, context):
        """Test exceptions from the action become ActionError."""

        @action(name="explode")
        def explode(ctx):
            raise ValueError("bad input")

        with pytest.raises(ActionError, match="Action 'explode' failed: bad input"):
            ActionRegistry.get("explode").run(context, {})

    def test_reported_failure(self, context):
        """Test a result with success=False raises."""

        @action(name="refuse")
        def refuse(ctx):
            return ActionResult(success=False, message="not today")

        with pytest.raises(ActionError, match="not today"):
            ActionRegistry.get("refuse").run(context, {})

    @pytest.mark.parametrize(
        "value,message",
        [(None, None), ("done", "done"), ({"message": "ok"}, "ok")],
    )
    def test_result_from_value(self, value, message):
        """Test return values are normalized."""
        assert ActionResult.from_value(value).message == message


class TestActionRegistry:
    """Test registry lookups."""

    def test_lookups(self):
        """Test has, names, categories and by_category."""

        @action(name="a", category="files")
        def a(ctx):
            pass

        @action(name="b", category="git")
        def b(ctx):
            pass

        assert ActionRegistry.has("a")
        assert ActionRegistry.names() == ["a", "b"]
        assert ActionRegistry.categories() == ["files", "git"]
        assert [d.name for d in ActionRegistry.by_category("git")] == ["b"]

    def test_missing_action(self):
        """Test unknown names list what is available."""
        with pytest.raises(ActionError, match=r"Action not found: nope \(available: none\)"):
            ActionRegistry.get("nope")

    def test_clear(self):
        """Test clear empties the registry."""

        @action(name="gone")
        def gone(ctx):
            pass

        ActionRegistry.clear()
        assert ActionRegistry.names() == []


class TestLoadActionsFromFile:
    """Test importing actions.py files."""

    def test_load(self, tmp_path):
        """Test decorated functions in the file register."""
        actions_file = tmp_path / "actions.py"
        actions_file.write_text(
            "from hypergen.actions import action\n"
            "\n"
            "@action(name='hello')\n"
            "def hello(context):\n"
            "    return 'hi'\n"
        )

        assert load_actions_from_file(actions_file) == ["hello"]
        assert ActionRegistry.get("hello").source == Path(actions_file).resolve()

    def test_import_error(self, tmp_path):
        """Test broken files raise ActionError."""
        actions_file = tmp_path / "actions.py"
        actions_file.write_text("import does_not_exist_anywhere\n")

        with pytest.raises(ActionError, match="Failed to import actions"):
            load_actions_from_file(actions_file)
