"""Unit tests for template_engine module."""

import pytest

from hypergen.template_engine import (
    RenderedFile,
    TemplateEngine,
    TemplateRenderError,
    parse_frontmatter,
)


class TestParseFrontmatter:
    """Test frontmatter splitting."""

    def test_with_frontmatter(self):
        """Test attributes and body are separated."""
        attributes, body = parse_frontmatter("---\nto: out.txt\nforce: true\n---\nhello\n")

        assert attributes == {"to": "out.txt", "force": True}
        assert body == "hello\n"

    def test_without_frontmatter(self):
        """Test plain documents return no attributes."""
        assert parse_frontmatter("just text\n") == ({}, "just text\n")

    def test_unclosed_frontmatter(self):
        """Test an unterminated block is treated as body."""
        text = "---\nto: out.txt\nbody\n"
        assert parse_frontmatter(text) == ({}, text)

    def test_empty_frontmatter(self):
        """Test an empty block yields no attributes."""
        assert parse_frontmatter("---\n---\nbody") == ({}, "body")

    def test_non_mapping_raises(self):
        """Test a list frontmatter is rejected."""
        with pytest.raises(TemplateRenderError, match="mapping"):
            parse_frontmatter("---\n- a\n- b\n---\nbody")

    def test_invalid_yaml_raises(self):
        """Test broken YAML is reported."""
        with pytest.raises(TemplateRenderError, match="Invalid frontmatter YAML"):
            parse_frontmatter("---\nto: [unclosed\n---\nbody")


class TestRenderedFile:
    """Test RenderedFile destination handling."""

    @pytest.mark.parametrize("value", [None, "", "  ", "null", "None", "false"])
    def test_blank_destinations(self, value):
        """Test blank or null-like destinations mean no output."""
        assert RenderedFile(None, {"to": value}).to is None

    def test_destination_is_stripped(self):
        """Test surrounding whitespace is removed."""
        assert RenderedFile(None, {"to": "  src/app.py \n"}).to == "src/app.py"


class TestTemplateEngine:
    """Test TemplateEngine rendering."""

    def test_render_string_with_filters(self):
        """Test inflection filters are available."""
        engine = TemplateEngine()
        assert engine.render_string("{{ name | pascal_case }}", {"name": "blog-post"}) == "BlogPost"

    def test_inflections_as_globals(self):
        """Test inflections can also be called as functions."""
        engine = TemplateEngine()
        assert engine.render_string("{{ snake_case(name) }}", {"name": "BlogPost"}) == "blog_post"

    def test_keeps_trailing_newline(self):
        """Test the trailing newline survives rendering."""
        assert TemplateEngine().render_string("a\n", {}) == "a\n"

    def test_strict_undefined_raises(self):
        """Test strict mode rejects undefined variables."""
        engine = TemplateEngine(strict=True)
        with pytest.raises(TemplateRenderError, match="Failed to render"):
            engine.render_string("{{ missing }}", {})

    def test_lenient_undefined_renders_empty(self):
        """Test lenient mode renders undefined variables as empty."""
        engine = TemplateEngine(strict=False)
        assert engine.render_string("[{{ missing.attr }}]", {}) == "[]"

    def test_syntax_error_raises(self):
        """Test template syntax errors are wrapped."""
        with pytest.raises(TemplateRenderError):
            TemplateEngine().render_string("{% if %}", {})

    def test_register_helpers(self):
        """Test helpers become globals and filters."""
        engine = TemplateEngine(helpers={"shout": lambda value: value.upper(), "ignored": 42})

        assert engine.render_string("{{ shout(name) }}/{{ name | shout }}", {"name": "hi"}) == "HI/HI"
        assert "ignored" not in engine.env.globals


class TestEvaluateCondition:
    """Test condition evaluation."""

    def test_empty_conditions_are_true(self):
        """Test None and blank strings pass."""
        engine = TemplateEngine()
        assert engine.evaluate_condition(None, {}) is True
        assert engine.evaluate_condition("  ", {}) is True

    def test_booleans_and_numbers(self):
        """Test literal values pass through."""
        engine = TemplateEngine()
        assert engine.evaluate_condition(False, {}) is False
        assert engine.evaluate_condition(0, {}) is False
        assert engine.evaluate_condition(1, {}) is True

    def test_expression(self):
        """Test a Jinja2 expression against the context."""
        engine = TemplateEngine()
        assert engine.evaluate_condition("count > 2", {"count": 3}) is True
        assert engine.evaluate_condition("count > 2", {"count": 1}) is False

    def test_braced_expression(self):
        """Test a {{ }} wrapper is tolerated."""
        engine = TemplateEngine()
        assert engine.evaluate_condition("{{ style == 'scss' }}", {"style": "scss"}) is True

    def test_invalid_expression_raises(self):
        """Test syntax errors are reported as render errors."""
        with pytest.raises(TemplateRenderError, match="Invalid condition"):
            TemplateEngine().evaluate_condition("count ==", {"count": 1})


class TestRenderText:
    """Test full document rendering."""

    def test_attributes_and_body_rendered(self):
        """Test attributes are rendered and visible to the body."""
        engine = TemplateEngine()
        rendered = engine.render_text(
            "---\nto: src/{{ name | snake_case }}.py\nforce: true\n---\n# {{ attributes.to }}\n",
            {"name": "BlogPost"},
        )

        assert rendered.to == "src/blog_post.py"
        assert rendered.attributes["force"] is True
        assert rendered.body == "# src/blog_post.py\n"

    def test_render_file(self, tmp_path):
        """Test rendering a template from disk."""
        template = tmp_path / "model.py.j2"
        template.write_text("---\nto: \"{{ name }}.py\"\n---\nclass {{ name }}: ...\n")

        rendered = TemplateEngine().render_file(template, {"name": "Post"})

        assert rendered.template_path == template
        assert rendered.to == "Post.py"
        assert rendered.body == "class Post: ...\n"

    def test_render_missing_file(self, tmp_path):
        """Test unreadable templates raise."""
        with pytest.raises(TemplateRenderError, match="Failed to read template"):
            TemplateEngine().render_file(tmp_path / "missing.j2", {})

    def test_render_file_error_names_path(self, tmp_path):
        """Test render failures mention the template path."""
        template = tmp_path / "broken.j2"
        template.write_text("{{ missing }}")

        with pytest.raises(TemplateRenderError, match="broken.j2"):
            TemplateEngine(strict=True).render_file(template, {})
