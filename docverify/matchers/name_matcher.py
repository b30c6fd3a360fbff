import re
from rapidfuzz import process
from rapidfuzz.distance import Levenshtein

from docverify.config import NAME_MATCH_THRESHOLD
from docverify.models import NameMatch

_NON_LETTER = re.compile(r"[^a-z\s]")
_WHITESPACE = re.compile(r"\s+")

NO_NAME_MATCH = NameMatch(matched=False, score=0, ratio=0.0)


def _normalize_name(name: str) -> str:
    return _WHITESPACE.sub(" ", _NON_LETTER.sub("", name.lower())).strip()


def _normalize_name_text(text: str) -> str:
    # Separators in the document become spaces so adjacent words stay apart
    return _WHITESPACE.sub(" ", _NON_LETTER.sub(" ", text.lower())).strip()


def match_name(
    provided_full_name: str,
    text: str,
    threshold: float = NAME_MATCH_THRESHOLD,
) -> NameMatch:
    """
    Check whether a person's name appears in document text.

    A verbatim occurrence scores 100. Otherwise every name token is paired
    with its most similar document word (Levenshtein) and the similarities
    are averaged.

    Args:
        provided_full_name (str): Name typed by the user. Empty skips matching.
        text (str): OCR text of the document.
        threshold (float): Minimum average token similarity for a match (default=0.6).

    Returns:
        NameMatch: Verdict, 0-100 score and the raw ratio.
    """
    if not provided_full_name:
        return NO_NAME_MATCH

    name = _normalize_name(provided_full_name)
    if not name:
        return NO_NAME_MATCH

    normalized_text = _normalize_name_text(text or "")
    if name in normalized_text:
        return NameMatch(matched=True, score=100, ratio=1.0)

    text_words = normalized_text.split(" ") if normalized_text else []
    name_tokens = name.split(" ")
    total = 0.0
    for token in name_tokens:
        best = process.extractOne(token, text_words, scorer=Levenshtein.normalized_similarity)
        if best is not None:
            total += best[1]

    ratio = total / len(name_tokens)
    return NameMatch(matched=ratio >= threshold, score=int(ratio * 100 + 0.5), ratio=ratio)
