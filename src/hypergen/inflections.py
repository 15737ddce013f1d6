"""String inflection helpers.

Case conversions and English pluralization used by templates. Every
function here is registered as a Jinja2 filter by the template engine.
"""

import re

_WORD_BOUNDARY = re.compile(r"[A-Z]?[a-z0-9]+|[A-Z]+(?=[A-Z][a-z]|\b|[^a-zA-Z]|$)|[A-Z]+")

IRREGULAR_PLURALS = {
    "person": "people",
    "man": "men",
    "woman": "women",
    "child": "children",
    "tooth": "teeth",
    "foot": "feet",
    "mouse": "mice",
    "goose": "geese",
}

IRREGULAR_SINGULARS = {plural: singular for singular, plural in IRREGULAR_PLURALS.items()}


def split_words(value: str) -> list[str]:
    """Split an identifier in any casing into lowercase words.

    >>> split_words("userProfile-card_item")
    ['user', 'profile', 'card', 'item']
    """
    words = []
    for chunk in re.split(r"[\s_\-./]+", str(value)):
        if not chunk:
            continue
        words.extend(match.group(0).lower() for match in _WORD_BOUNDARY.finditer(chunk))
    return words


def pascal_case(value: str) -> str:
    return "".join(word.capitalize() for word in split_words(value))


def camel_case(value: str) -> str:
    pascal = pascal_case(value)
    return pascal[:1].lower() + pascal[1:]


def kebab_case(value: str) -> str:
    return "-".join(split_words(value))


def snake_case(value: str) -> str:
    return "_".join(split_words(value))


def constant_case(value: str) -> str:
    return snake_case(value).upper()


def title_case(value: str) -> str:
    return " ".join(word.capitalize() for word in split_words(value))


def _match_case(original: str, replacement: str) -> str:
    if original.isupper() and len(original) > 1:
        return replacement.upper()
    if original[:1].isupper():
        return replacement[:1].upper() + replacement[1:]
    return replacement


def pluralize(word: str) -> str:
    """Return the English plural of a single word."""
    if not word:
        return word

    lower = word.lower()
    if lower in IRREGULAR_PLURALS:
        return _match_case(word, IRREGULAR_PLURALS[lower])
    if lower in IRREGULAR_SINGULARS:
        return word

    if re.search(r"[^aeiou]y$", lower):
        return word[:-1] + "ies"
    if re.search(r"(s|x|z|ch|sh)$", lower):
        return word + "es"
    return word + "s"


def singularize(word: str) -> str:
    """Return the English singular of a single word."""
    if not word:
        return word

    lower = word.lower()
    if lower in IRREGULAR_SINGULARS:
        return _match_case(word, IRREGULAR_SINGULARS[lower])
    if lower in IRREGULAR_PLURALS:
        return word

    if lower.endswith("ies") and len(lower) > 3:
        return word[:-3] + "y"
    if re.search(r"(ss|x|z|ch|sh)es$", lower):
        return word[:-2]
    if lower.endswith("s") and not lower.endswith("ss"):
        return word[:-1]
    return word


INFLECTION_FILTERS = {
    "pascal_case": pascal_case,
    "camel_case": camel_case,
    "kebab_case": kebab_case,
    "snake_case": snake_case,
    "constant_case": constant_case,
    "title_case": title_case,
    "pluralize": pluralize,
    "singularize": singularize,
    # hygen-style aliases
    "camelize": pascal_case,
    "dasherize": kebab_case,
}

__all__ = [
    "INFLECTION_FILTERS",
    "camel_case",
    "constant_case",
    "kebab_case",
    "pascal_case",
    "pluralize",
    "singularize",
    "snake_case",
    "split_words",
    "title_case",
]
