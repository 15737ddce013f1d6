"""Unit tests for recipe_engine module."""

import pytest

from hypergen.history import RunHistory
from hypergen.recipe_engine import RecipeEngine
from hypergen.recipe_engine.group import execute_group, find_group_recipes
from hypergen.recipe_engine.models import StepStatus
from hypergen.recipe_parser import parse_recipe_data
from hypergen.template_engine import TemplateEngine
from hypergen.variables import VariableError, parse_variables


def build_recipe(directory, steps, variables=None, **extra):
    data = {"name": "test-recipe", "variables": variables or {}, "steps": steps, **extra}
    parsed = parse_recipe_data(data, path=directory / "recipe.yml")
    assert parsed.is_valid, [issue.message for issue in parsed.errors]
    return parsed.config


@pytest.fixture
def engine(tmp_path):
    """RecipeEngine rooted in tmp_path that never sleeps."""
    return RecipeEngine(tmp_path, sleep=lambda seconds: None)


def statuses(result):
    return {step.step_name: step.status for step in result.step_results}


class TestExecuteRecipe:
    """Test end-to-end recipe execution."""

    def test_renders_variables_into_steps(self, engine, tmp_path):
        """Test step options are rendered with resolved variables."""
        recipe = build_recipe(
            tmp_path,
            [{"name": "dirs", "tool": "ensure-dirs", "paths": ["out/{{ name | kebab_case }}"]}],
            variables={"name": {"type": "string", "required": True}},
        )

        result = engine.execute_recipe(recipe, {"name": "BlogPost"})

        assert result.success
        assert (tmp_path / "out" / "blog-post").is_dir()
        assert result.files_created == [str(tmp_path.resolve() / "out" / "blog-post")]
        assert result.variables["name"] == "BlogPost"
        assert result.finished_at is not None

    def test_missing_required_variables(self, engine, tmp_path):
        """Test missing variables raise before any step runs."""
        recipe = build_recipe(
            tmp_path,
            [{"name": "noop", "tool": "shell", "command": "true"}],
            variables={"name": {"type": "string", "required": True}},
        )

        with pytest.raises(VariableError, match="Missing required variables: name"):
            engine.execute_recipe(recipe, {})

    def test_loads_recipe_from_path(self, engine, tmp_path, make_recipe):
        """Test a recipe directory can be executed directly."""
        make_recipe(tmp_path / "hello")
        result = engine.execute_recipe(tmp_path / "hello")

        assert result.recipe_name == "hello"
        assert result.success

    def test_failure_stops_recipe(self, engine, tmp_path):
        """Test a failed step cancels the remaining steps."""
        recipe = build_recipe(
            tmp_path,
            [
                {"name": "broken", "tool": "shell", "command": "exit 3"},
                {"name": "after", "tool": "shell", "command": "true"},
            ],
            settings={"max_parallel_steps": 1},
        )

        result = engine.execute_recipe(recipe)

        assert not result.success
        assert result.errors[0].startswith("broken: Command failed with exit code 3")
        assert statuses(result) == {"broken": StepStatus.FAILED, "after": StepStatus.CANCELLED}
        assert result.step_results[1].error == "recipe stopped"

    def test_continue_on_error(self, engine, tmp_path):
        """Test continuing past failures still cancels dependents."""
        recipe = build_recipe(
            tmp_path,
            [
                {"name": "broken", "tool": "shell", "command": "exit 1"},
                {"name": "dependent", "tool": "shell", "command": "true", "depends_on": ["broken"]},
                {"name": "independent", "tool": "shell", "command": "true"},
            ],
        )

        result = engine.execute_recipe(recipe, continue_on_error=True)

        assert result.success
        assert result.warnings[0].startswith("broken:")
        assert statuses(result) == {
            "broken": StepStatus.FAILED,
            "dependent": StepStatus.CANCELLED,
            "independent": StepStatus.COMPLETED,
        }
        assert result.step_results[1].error == "dependency failed: broken"

    def test_step_continue_on_error(self, engine, tmp_path):
        """Test a step-level continue_on_error is not fatal."""
        recipe = build_recipe(
            tmp_path,
            [
                {"name": "optional", "tool": "shell", "command": "exit 1", "continue_on_error": True},
                {"name": "next", "tool": "shell", "command": "true", "depends_on": ["optional"]},
            ],
        )

        result = engine.execute_recipe(recipe)

        assert result.success
        assert statuses(result)["next"] == StepStatus.CANCELLED

    def test_conditions_and_skips(self, engine, tmp_path):
        """Test skipped steps satisfy their dependents."""
        recipe = build_recipe(
            tmp_path,
            [
                {"name": "tests", "tool": "ensure-dirs", "paths": ["tests"], "when": "with_tests"},
                {"name": "docs", "tool": "ensure-dirs", "paths": ["docs"]},
                {"name": "src", "tool": "ensure-dirs", "paths": ["src"], "depends_on": ["tests"]},
            ],
            variables={"with_tests": {"type": "boolean", "default": False}},
        )

        result = engine.execute_recipe(recipe, skip_steps=["docs"])

        assert result.success
        assert statuses(result) == {
            "tests": StepStatus.SKIPPED,
            "docs": StepStatus.SKIPPED,
            "src": StepStatus.COMPLETED,
        }
        assert not (tmp_path / "docs").exists()
        assert (tmp_path / "src").is_dir()

    def test_step_outputs_visible_to_later_steps(self, engine, tmp_path):
        """Test `steps.<name>.output` is available in later steps."""
        recipe = build_recipe(
            tmp_path,
            [
                {"name": "first", "tool": "shell", "command": "true"},
                {
                    "name": "second",
                    "tool": "shell",
                    "command": "echo {{ steps.first.output.exit_code }} > code.txt",
                    "depends_on": ["first"],
                },
            ],
        )

        assert engine.execute_recipe(recipe).success
        assert (tmp_path / "code.txt").read_text().strip() == "0"

    def test_query_exports_reach_dependent_steps(self, engine, tmp_path):
        """Test variables exported by a query are visible to dependent steps."""
        (tmp_path / "package.json").write_text('{"dependencies": {"drizzle-orm": "1"}}')
        recipe = build_recipe(
            tmp_path,
            [
                {
                    "name": "detect",
                    "tool": "query",
                    "file": "package.json",
                    "checks": [{"path": "dependencies.drizzle-orm", "export_exists": "has_drizzle"}],
                },
                {"name": "unrelated", "tool": "shell", "command": "true"},
                {
                    "name": "use",
                    "tool": "shell",
                    "command": "echo {{ has_drizzle }} > orm.txt",
                    "depends_on": ["detect"],
                },
            ],
        )

        result = engine.execute_recipe(recipe)

        assert result.success
        assert (tmp_path / "orm.txt").read_text().strip() == "True"
        assert result.variables["has_drizzle"] is True

    def test_dry_run(self, engine, tmp_path):
        """Test dry runs report without touching the filesystem."""
        recipe = build_recipe(tmp_path, [{"name": "dirs", "tool": "ensure-dirs", "paths": ["out"]}])

        result = engine.execute_recipe(recipe, dry_run=True)

        assert result.success
        assert result.dry_run
        assert result.files_created == [str(tmp_path.resolve() / "out")]
        assert not (tmp_path / "out").exists()

    def test_working_dir_setting(self, engine, tmp_path):
        """Test settings.working_dir is relative to the base directory."""
        recipe = build_recipe(
            tmp_path,
            [{"name": "dirs", "tool": "ensure-dirs", "paths": ["lib"]}],
            settings={"working_dir": "packages/core"},
        )

        engine.execute_recipe(recipe)

        assert (tmp_path / "packages" / "core" / "lib").is_dir()

    def test_extra_variables(self, engine, tmp_path):
        """Test inherited definitions supply defaults under the recipe's own."""
        extra = parse_variables({"author": {"type": "string", "default": "acme"}}, [], [])
        recipe = build_recipe(tmp_path, [{"name": "noop", "tool": "shell", "command": "true"}])

        result = engine.execute_recipe(recipe, extra_variables=extra)

        assert result.variables["author"] == "acme"

    def test_on_success_render_failure_warns(self, engine, tmp_path):
        """Test a broken on_success message is only a warning."""
        recipe = build_recipe(
            tmp_path,
            [{"name": "noop", "tool": "shell", "command": "true"}],
            on_success="Done {{ name | no_such_filter }}",
        )

        result = engine.execute_recipe(recipe)

        assert result.success
        assert "on_success message failed to render" in result.warnings[0]


class TestHooks:
    """Test recipe lifecycle hooks."""

    def test_before_and_after(self, engine, tmp_path):
        """Test hooks run in the working directory around the steps."""
        recipe = build_recipe(
            tmp_path,
            [{"name": "noop", "tool": "shell", "command": "true"}],
            hooks={"before_recipe": "echo before > before.txt", "after_recipe": "echo after > after.txt"},
        )

        assert engine.execute_recipe(recipe).success
        assert (tmp_path / "before.txt").exists()
        assert (tmp_path / "after.txt").exists()

    def test_on_error(self, engine, tmp_path):
        """Test on_error runs when the recipe fails."""
        recipe = build_recipe(
            tmp_path,
            [{"name": "broken", "tool": "shell", "command": "exit 1"}],
            hooks={"on_error": "echo failed > error.txt", "after_recipe": "echo after > after.txt"},
        )

        assert not engine.execute_recipe(recipe).success
        assert (tmp_path / "error.txt").exists()
        assert not (tmp_path / "after.txt").exists()

    def test_failing_before_hook(self, engine, tmp_path):
        """Test a failing before_recipe hook prevents the steps."""
        recipe = build_recipe(
            tmp_path,
            [{"name": "dirs", "tool": "ensure-dirs", "paths": ["out"]}],
            hooks={"before_recipe": "exit 2"},
        )

        result = engine.execute_recipe(recipe)

        assert not result.success
        assert "before_recipe hook failed" in result.errors[0]
        assert not (tmp_path / "out").exists()

    def test_unrenderable_hook(self, engine, tmp_path):
        """Test a hook with broken template syntax fails the recipe."""
        recipe = build_recipe(
            tmp_path,
            [{"name": "dirs", "tool": "ensure-dirs", "paths": ["out"]}],
            hooks={"before_recipe": ["echo {{ broken"]},
        )

        result = engine.execute_recipe(recipe)

        assert not result.success
        assert "before_recipe hook failed to render" in result.errors[0]
        assert not (tmp_path / "out").exists()

    def test_hooks_skipped_in_dry_run(self, engine, tmp_path):
        """Test hooks are only reported during dry runs."""
        recipe = build_recipe(
            tmp_path,
            [{"name": "noop", "tool": "shell", "command": "true"}],
            hooks={"before_recipe": "echo before > before.txt"},
        )

        engine.execute_recipe(recipe, dry_run=True)

        assert not (tmp_path / "before.txt").exists()


class TestStepFailures:
    """Test errors raised inside steps become failed step results."""

    def test_strict_undefined_variable(self, tmp_path):
        """Test undefined variables in strict mode fail the step."""
        engine = RecipeEngine(tmp_path, template_engine=TemplateEngine(strict=True), sleep=lambda seconds: None)
        recipe = build_recipe(tmp_path, [{"name": "echo", "tool": "shell", "command": "echo {{ missing.sub }}"}])

        result = engine.execute_recipe(recipe)

        assert not result.success
        assert statuses(result) == {"echo": StepStatus.FAILED}
        assert "missing" in result.step_results[0].error

    def test_unserializable_toml_patch(self, engine, tmp_path):
        """Test patch values TOML cannot represent fail the step."""
        (tmp_path / "cfg.toml").write_text("b = 1\n")
        recipe = build_recipe(tmp_path, [{"name": "cfg", "tool": "patch", "file": "cfg.toml", "merge": {"a": None}}])

        result = engine.execute_recipe(recipe)

        assert statuses(result) == {"cfg": StepStatus.FAILED}
        assert "Cannot write TOML" in result.step_results[0].error
        assert (tmp_path / "cfg.toml").read_text() == "b = 1\n"

    def test_sub_recipe_missing_variable(self, engine, tmp_path, make_recipe):
        """Test a sub-recipe rejecting its variables fails the step."""
        make_recipe(tmp_path / "sub", variables={"title": {"type": "string", "required": True}})
        recipe = build_recipe(tmp_path, [{"name": "nested", "tool": "recipe", "recipe": "sub"}])

        result = engine.execute_recipe(recipe)

        assert statuses(result) == {"nested": StepStatus.FAILED}
        assert "could not start" in result.step_results[0].error

    def test_failure_in_parallel_phase_cancels_dependents(self, engine, tmp_path):
        """Test a failed step in a parallel phase cancels the steps needing it."""
        recipe = build_recipe(
            tmp_path,
            [
                {"name": "bad", "tool": "shell", "command": "exit 3"},
                {"name": "good", "tool": "shell", "command": "touch good.txt"},
                {"name": "after-bad", "tool": "shell", "command": "touch after.txt", "depends_on": ["bad"]},
            ],
        )
        assert engine.plan(recipe).phases[0].parallel

        result = engine.execute_recipe(recipe, continue_on_error=True)

        assert statuses(result) == {
            "bad": StepStatus.FAILED,
            "good": StepStatus.COMPLETED,
            "after-bad": StepStatus.CANCELLED,
        }
        assert result.step_results[2].error == "dependency failed: bad"
        assert (tmp_path / "good.txt").exists()
        assert not (tmp_path / "after.txt").exists()

    def test_failure_in_parallel_phase_stops_recipe(self, engine, tmp_path):
        """Test later phases are cancelled when a parallel step fails."""
        recipe = build_recipe(
            tmp_path,
            [
                {"name": "bad", "tool": "shell", "command": "exit 3"},
                {"name": "good", "tool": "shell", "command": "true"},
                {"name": "last", "tool": "shell", "command": "true", "depends_on": ["good"]},
            ],
        )

        result = engine.execute_recipe(recipe)

        assert not result.success
        assert statuses(result)["last"] == StepStatus.CANCELLED
        assert result.step_results[2].error == "recipe stopped"


class TestHistoryRecording:
    """Test run history integration."""

    def test_records_runs(self, tmp_path):
        """Test runs are recorded unless disabled."""
        history = RunHistory(tmp_path)
        engine = RecipeEngine(tmp_path, history=history)
        recipe = build_recipe(tmp_path, [{"name": "noop", "tool": "shell", "command": "true"}])

        engine.execute_recipe(recipe)
        engine.execute_recipe(recipe, record_history=False)

        runs = history.list_runs()
        assert len(runs) == 1
        assert runs[0].recipe == "test-recipe"
        assert runs[0].completed == 1


class TestPlan:
    """Test plan settings."""

    def test_single_worker_disables_parallel(self, engine, tmp_path):
        """Test max_parallel_steps 1 plans sequential phases."""
        recipe = build_recipe(
            tmp_path,
            [
                {"name": "a", "tool": "shell", "command": "true"},
                {"name": "b", "tool": "shell", "command": "true"},
            ],
            settings={"max_parallel_steps": 1},
        )

        assert engine.plan(recipe).phases[0].parallel is False


class TestRecipeGroups:
    """Test running every recipe in a directory."""

    def test_find_group_recipes(self, tmp_path, make_recipe):
        """Test recipe directories are found in name order."""
        make_recipe(tmp_path / "b-second")
        make_recipe(tmp_path / "a-first")
        (tmp_path / "not-a-recipe").mkdir()

        recipes = find_group_recipes(tmp_path)

        assert [path.parent.name for path in recipes] == ["a-first", "b-second"]

    def test_stops_at_failure(self, engine, tmp_path, make_recipe):
        """Test the group stops after a failed recipe."""
        make_recipe(tmp_path / "group" / "a", steps=[{"name": "x", "tool": "shell", "command": "exit 1"}])
        make_recipe(tmp_path / "group" / "b")

        results = execute_group(engine, tmp_path / "group", {})

        assert [r.recipe_name for r in results] == ["a"]

    def test_continue_on_error(self, engine, tmp_path, make_recipe):
        """Test continue_on_error runs every recipe."""
        make_recipe(tmp_path / "group" / "a", steps=[{"name": "x", "tool": "shell", "command": "exit 1"}])
        make_recipe(tmp_path / "group" / "b")

        results = execute_group(engine, tmp_path / "group", {}, continue_on_error=True)

        assert [r.recipe_name for r in results] == ["a", "b"]
