import re
from docverify.matchers.patterns import SPELLING_RULES

_NON_WORD = re.compile(r"[^\w\s]|_")
_WHITESPACE = re.compile(r"\s+")


def normalize_text(text: str) -> str:
    """
    Lowercase, replace punctuation with spaces, fold known misspellings to
    their canonical spelling and collapse whitespace.

    Idempotent: normalizing an already normalized string returns it unchanged.
    """
    if not text:
        return ""
    normalized = _NON_WORD.sub(" ", text.lower())
    for rule in SPELLING_RULES:
        normalized = rule.pattern.sub(rule.canonical, normalized)
    return _WHITESPACE.sub(" ", normalized).strip()


def normalize_for_matching(text: str) -> str:
    """Normalized text with all whitespace removed, for character-level comparison."""
    return _WHITESPACE.sub("", normalize_text(text))
