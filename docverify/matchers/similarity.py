from typing import Dict, Optional
from rapidfuzz.distance import Jaro, Levenshtein

from docverify.config import (
    EXACT_MATCH_TYPE_THRESHOLD,
    FUZZY_MATCH_TYPE_THRESHOLD,
    SIMILARITY_WEIGHTS,
)
from docverify.matchers.normalizer import normalize_for_matching
from docverify.matchers.patterns import PHONETIC_GROUPS, PHONETIC_SIMILARITY
from docverify.models import MatchType

MIN_SUBSTRING_LENGTH = 3
WINKLER_PREFIX_LENGTH = 4
WINKLER_SCALING = 0.1


def exact_similarity(a: str, b: str) -> float:
    return 1.0 if normalize_for_matching(a) == normalize_for_matching(b) else 0.0


def substring_similarity(a: str, b: str) -> float:
    """Length ratio of shorter to longer when one string contains the other."""
    if len(a) < MIN_SUBSTRING_LENGTH or len(b) < MIN_SUBSTRING_LENGTH:
        return 0.0
    if a in b or b in a:
        return min(len(a), len(b)) / max(len(a), len(b))
    return 0.0


def levenshtein_similarity(a: str, b: str) -> float:
    """1 - edit distance / longer length. Two empty strings are identical."""
    return Levenshtein.normalized_similarity(a, b)


def jaro_winkler_similarity(a: str, b: str) -> float:
    """
    Jaro similarity boosted by up to four shared leading characters.

    The boost is applied at every Jaro level, not only above 0.7.
    """
    if a == b:
        return 1.0
    if not a or not b:
        return 0.0
    jaro = Jaro.similarity(a, b)
    prefix = 0
    for left, right in zip(a[:WINKLER_PREFIX_LENGTH], b[:WINKLER_PREFIX_LENGTH]):
        if left != right:
            break
        prefix += 1
    return jaro + WINKLER_SCALING * prefix * (1 - jaro)


def phonetic_similarity(a: str, b: str) -> float:
    for variants in PHONETIC_GROUPS.values():
        if a in variants and b in variants:
            return PHONETIC_SIMILARITY
    return 0.0


def combined_similarity(a: str, b: str, weights: Optional[Dict[str, float]] = None) -> float:
    """
    Weighted ensemble of the individual metrics, computed on the
    whitespace-free normalized forms of both blocks.

    Args:
        a (str): Provided block.
        b (str): Extracted block.
        weights (Dict[str, float]): Per-metric weights (default=SIMILARITY_WEIGHTS).

    Returns:
        float: Similarity in [0, 1]; identical non-empty blocks score exactly 1.0.
    """
    weights = weights or SIMILARITY_WEIGHTS
    left = normalize_for_matching(a)
    right = normalize_for_matching(b)
    if not left or not right:
        return 0.0
    if left == right:
        return 1.0

    # The exact term is zero from here on
    score = (
        weights["substring"] * substring_similarity(left, right)
        + weights["levenshtein"] * levenshtein_similarity(left, right)
        + weights["jaro_winkler"] * jaro_winkler_similarity(left, right)
        + weights["phonetic"] * phonetic_similarity(left, right)
    )
    return max(0.0, min(score, 1.0))


def classify_match(similarity: float) -> MatchType:
    if similarity >= EXACT_MATCH_TYPE_THRESHOLD:
        return MatchType.EXACT
    if similarity >= FUZZY_MATCH_TYPE_THRESHOLD:
        return MatchType.FUZZY
    return MatchType.PARTIAL
