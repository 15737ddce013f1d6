"""Unit tests for inflections module."""

import pytest

from hypergen.inflections import (
    INFLECTION_FILTERS,
    camel_case,
    constant_case,
    kebab_case,
    pascal_case,
    pluralize,
    singularize,
    snake_case,
    split_words,
    title_case,
)


class TestSplitWords:
    """Test identifier splitting."""

    def test_mixed_separators(self):
        """Test camelCase, dashes and underscores in one identifier."""
        assert split_words("userProfile-card_item") == ["user", "profile", "card", "item"]

    def test_acronym_followed_by_word(self):
        """Test an uppercase run followed by a capitalized word."""
        assert split_words("HTMLParser") == ["html", "parser"]

    def test_digits_stay_with_word(self):
        """Test digits are kept on the preceding word."""
        assert split_words("version2Beta") == ["version2", "beta"]

    def test_empty_string(self):
        """Test empty input yields no words."""
        assert split_words("") == []


class TestCaseConversions:
    """Test case conversion helpers."""

    @pytest.mark.parametrize(
        "func,value,expected",
        [
            (pascal_case, "user_profile", "UserProfile"),
            (pascal_case, "html-parser", "HtmlParser"),
            (camel_case, "user-profile", "userProfile"),
            (camel_case, "UserProfile", "userProfile"),
            (kebab_case, "UserProfile", "user-profile"),
            (snake_case, "UserProfile", "user_profile"),
            (snake_case, "user profile", "user_profile"),
            (constant_case, "userProfile", "USER_PROFILE"),
            (title_case, "user_profile", "User Profile"),
        ],
    )
    def test_conversions(self, func, value, expected):
        """Test each conversion on representative input."""
        assert func(value) == expected

    def test_camel_case_empty(self):
        """Test camel_case tolerates empty input."""
        assert camel_case("") == ""


class TestPluralize:
    """Test English pluralization."""

    @pytest.mark.parametrize(
        "word,expected",
        [
            ("user", "users"),
            ("category", "categories"),
            ("day", "days"),
            ("box", "boxes"),
            ("church", "churches"),
            ("person", "people"),
            ("Person", "People"),
            ("people", "people"),
            ("", ""),
        ],
    )
    def test_pluralize(self, word, expected):
        """Test regular, irregular and already-plural words."""
        assert pluralize(word) == expected


class TestSingularize:
    """Test English singularization."""

    @pytest.mark.parametrize(
        "word,expected",
        [
            ("users", "user"),
            ("categories", "category"),
            ("boxes", "box"),
            ("class", "class"),
            ("people", "person"),
            ("Children", "Child"),
            ("person", "person"),
            ("", ""),
        ],
    )
    def test_singularize(self, word, expected):
        """Test regular, irregular and already-singular words."""
        assert singularize(word) == expected


class TestInflectionFilters:
    """Test the filter map exposed to templates."""

    def test_aliases(self):
        """Test hygen-style aliases map to the expected helpers."""
        assert INFLECTION_FILTERS["camelize"] is pascal_case
        assert INFLECTION_FILTERS["dasherize"] is kebab_case

    def test_all_filters_callable(self):
        """Test every registered filter is callable on a string."""
        for name, func in INFLECTION_FILTERS.items():
            assert isinstance(func("blogPost"), str), name
