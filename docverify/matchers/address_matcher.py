from typing import Tuple
from loguru import logger

from docverify.config import (
    FORCE_FULL_BLOCK_SCORE,
    FUZZY_THRESHOLD,
    MODERATE_BLOCK_COUNT,
    MODERATE_BLOCK_FLOOR,
    NGRAM_WINDOW,
    STRONG_BLOCK_COUNT,
    STRONG_BLOCK_FLOOR,
    STRONG_FUZZY_THRESHOLD,
)
from docverify.matchers.normalizer import normalize_text
from docverify.models import AddressDecision, BlockMatchResult


def boosted_address_score(block_score: float, total_matches: int) -> Tuple[float, bool]:
    """
    Turn a block score into a 0-100 address score.

    Many corroborating blocks raise the score to a floor, and five or more
    blocks with a strong average force it to 100.

    Returns:
        Tuple[float, bool]: (final score, whether the score was forced to 100)
    """
    address_score = max(0.0, min(block_score * 100, 100.0))
    if total_matches >= STRONG_BLOCK_COUNT:
        final_score = max(address_score, STRONG_BLOCK_FLOOR)
    elif total_matches >= MODERATE_BLOCK_COUNT:
        final_score = max(address_score, MODERATE_BLOCK_FLOOR)
    else:
        final_score = address_score

    if total_matches >= STRONG_BLOCK_COUNT and block_score > FORCE_FULL_BLOCK_SCORE:
        return 100.0, True
    return final_score, False


def fuzzy_threshold(total_matches: int) -> float:
    """Stricter acceptance threshold once many blocks have matched."""
    return STRONG_FUZZY_THRESHOLD if total_matches >= STRONG_BLOCK_COUNT else FUZZY_THRESHOLD


def find_matching_ngram(
    normalized_address: str,
    normalized_text: str,
    window: int = NGRAM_WINDOW,
) -> str:
    """
    Return the first run of `window` consecutive address words found verbatim
    in the text, or an empty string.
    """
    words = [word for word in normalized_address.split(" ") if word]
    for i in range(len(words) - window + 1):
        ngram = " ".join(words[i:i + window])
        if ngram in normalized_text:
            return ngram
    return ""


def decide_address_match(
    provided_address: str,
    extracted_text: str,
    block_result: BlockMatchResult,
    window: int = NGRAM_WINDOW,
) -> AddressDecision:
    """
    Combine the fuzzy block verdict with the strict n-gram phrase verdict.

    The strict verdict binds. Addresses with fewer than `window` words cannot
    support the phrase test and fall back to the fuzzy verdict.

    Args:
        provided_address (str): Address typed by the user.
        extracted_text (str): OCR text of the document.
        block_result (BlockMatchResult): Output of match_blocks for the same inputs.
        window (int): Words per n-gram (default=5).

    Returns:
        AddressDecision: Both verdicts, the final address score and debug fields.
    """
    final_score, forced = boosted_address_score(block_result.block_score, block_result.total_matches)
    threshold = fuzzy_threshold(block_result.total_matches)
    fuzzy_matched = final_score >= round(threshold * 100, 6)

    normalized_address = normalize_text(provided_address)
    normalized_text = normalize_text(extracted_text)
    logger.debug(f"Normalized provided address: {normalized_address}")
    logger.debug(f"Normalized extracted text: {normalized_text}")

    matched_ngram = ""
    word_count = len([word for word in normalized_address.split(" ") if word])
    if word_count >= window:
        matched_ngram = find_matching_ngram(normalized_address, normalized_text, window)
        strict_matched = bool(matched_ngram)
        logger.debug(f"Strict {window}-word n-gram match: {strict_matched} ('{matched_ngram}')")
    else:
        strict_matched = fuzzy_matched
        logger.debug(f"Short address fallback to fuzzy verdict: {strict_matched}")

    return AddressDecision(
        address_matched=strict_matched,
        fuzzy_address_matched=fuzzy_matched,
        strict_address_matched=strict_matched,
        final_score=final_score,
        forced_full_score=forced,
        matched_ngram=matched_ngram,
        normalized_provided_address=normalized_address,
        normalized_extracted_text=normalized_text,
    )
