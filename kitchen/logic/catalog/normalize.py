"""Canonical ingredient names and category slugs.

normalize_name() is the merge key used everywhere ingredients are
deduplicated (dish ingredient lists, day overrides, shopping items, catalog
lookups). It is a best-effort heuristic tuned for Spanish plurals, not a
linguistic analyzer:

    >>> normalize_name("  Tomates ")
    'tomat'
    >>> normalize_name("Luces")
    'luz'
    >>> slugify("Frutas y Verduras!")
    'frutas-y-verduras'
"""
import re
import unicodedata

from kitchen.utilities.constants import NAME_PUNCTUATION

_PUNCTUATION_RE = re.compile("[" + re.escape(NAME_PUNCTUATION) + "]")
_SPACES_RE = re.compile(r"\s+")
_SLUG_DROP_RE = re.compile(r"[^\w\s-]", re.ASCII)
_HYPHENS_RE = re.compile(r"-+")
_CATEGORY_KEY_DROP_RE = re.compile(r"[^a-z0-9\s-]")


def strip_accents(value: str) -> str:
    decomposed = unicodedata.normalize("NFD", value)
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def _singularize(word: str) -> str:
    if len(word) <= 3:
        return word
    if word.endswith("ces"):
        return word[:-3] + "z"  # luces -> luz
    if word.endswith("es"):
        return word[:-2]  # tomates -> tomat
    if word.endswith("s"):
        return word[:-1]  # patatas -> patata
    return word


def singularize(value: str) -> str:
    """Apply the plural heuristic until it no longer changes the value."""
    current = value
    while True:
        # "pan s" -> "pan " must not keep a trailing space
        nxt = _singularize(current).rstrip()
        if nxt == current:
            return current
        current = nxt


def normalize_name(value: str = "") -> str:
    trimmed = (value or "").strip().lower()
    if not trimmed:
        return ""
    no_accents = strip_accents(trimmed)
    no_punctuation = _PUNCTUATION_RE.sub("", no_accents)
    collapsed = _SPACES_RE.sub(" ", no_punctuation).strip()
    return singularize(collapsed)


def slugify(value: str = "") -> str:
    """URL-safe token used as category identity."""
    trimmed = (value or "").strip().lower()
    if not trimmed:
        return ""
    no_accents = strip_accents(trimmed)
    no_punctuation = _SLUG_DROP_RE.sub("", no_accents)
    hyphenated = _HYPHENS_RE.sub("-", _SPACES_RE.sub("-", no_punctuation))
    return hyphenated.strip("-")


def normalize_category_key(value: str = "") -> str:
    """Case and accent insensitive comparison key for category names."""
    lowered = strip_accents(str(value or "").strip().lower())
    return _SPACES_RE.sub(" ", _CATEGORY_KEY_DROP_RE.sub("", lowered)).strip()


__all__ = ["normalize_name", "slugify", "normalize_category_key", "singularize", "strip_accents"]
