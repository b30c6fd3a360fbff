# docverify/matchers/matching_orchestrator.py

import math
from loguru import logger

from docverify.config import ADDRESS_WEIGHT, NAME_WEIGHT
from docverify.models import MatchInput, MatchResult
from docverify.matchers.address_finder import find_addresses
from docverify.matchers.address_matcher import decide_address_match
from docverify.matchers.block_matcher import match_blocks
from docverify.matchers.name_matcher import match_name


def blend_scores(
    address_score: float,
    name_score: float,
    forced_full_score: bool = False,
    address_weight: float = ADDRESS_WEIGHT,
    name_weight: float = NAME_WEIGHT,
) -> int:
    """
    Weighted 0-100 match score; address corroboration dominates.

    A forced full address score forces the blended score to 100 as well.
    """
    if forced_full_score:
        return 100
    # Trim float noise (85 * 0.7 is 59.49999...) before rounding half up
    blended = round(address_score * address_weight + name_score * name_weight, 6)
    return max(0, min(int(math.floor(blended + 0.5)), 100))


def verify_document_text(
    provided_address: str,
    provided_full_name: str,
    extracted_text: str,
    confidence: float = 0.0,
) -> MatchResult:
    """
    Decide whether a document's text corroborates the address and name a user
    supplied. Pure and synchronous; safe to run for many documents in parallel.

    Args:
        provided_address (str): Address typed by the user.
        provided_full_name (str): Name typed by the user, may be empty.
        extracted_text (str): OCR text of the document, may be empty.
        confidence (float): OCR confidence, passed through unchanged.

    Returns:
        MatchResult: Verdicts, blended score and diagnostics for this document.
    """
    provided_address = provided_address or ""
    extracted_text = extracted_text or ""

    block_result = match_blocks(provided_address, extracted_text)
    decision = decide_address_match(provided_address, extracted_text, block_result)
    name = match_name(provided_full_name, extracted_text)

    match_score = blend_scores(decision.final_score, name.score, decision.forced_full_score)

    logger.debug(
        f"Address matched: {decision.address_matched} (fuzzy {decision.fuzzy_address_matched}), "
        f"name matched: {name.matched}, score: {match_score}"
    )

    return MatchResult(
        extracted_text=extracted_text,
        found_addresses=find_addresses(extracted_text),
        address_matched=decision.address_matched,
        fuzzy_address_matched=decision.fuzzy_address_matched,
        strict_address_matched=decision.strict_address_matched,
        name_matched=name.matched,
        address_match=decision.address_matched and name.matched,
        full_name=provided_full_name if name.matched else "",
        match_score=match_score,
        confidence=confidence,
        block_matches=block_result.total_matches,
        total_blocks=len(block_result.provided_blocks),
        matching_blocks=[match.provided for match in block_result.matched_blocks],
        block_match_details=block_result,
        normalized_provided_address=decision.normalized_provided_address,
        normalized_extracted_text=decision.normalized_extracted_text,
        matched_ngram=decision.matched_ngram,
    )


def verify_match_input(match_input: MatchInput) -> MatchResult:
    """Run verify_document_text for a MatchInput."""
    return verify_document_text(
        match_input.provided_address,
        match_input.provided_full_name,
        match_input.extracted_text,
        match_input.confidence,
    )
