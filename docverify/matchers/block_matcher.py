from loguru import logger

from docverify.config import BLOCK_ACCEPT_THRESHOLD
from docverify.matchers.block_extractor import extract_provided_blocks, extract_text_blocks
from docverify.matchers.similarity import classify_match, combined_similarity
from docverify.models import BlockMatch, BlockMatchResult


def match_blocks(
    provided_address: str,
    extracted_text: str,
    threshold: float = BLOCK_ACCEPT_THRESHOLD,
) -> BlockMatchResult:
    """
    Pair every provided address block with its best scoring block from the
    document text.

    Args:
        provided_address (str): Address typed by the user.
        extracted_text (str): OCR text of the document.
        threshold (float): Minimum similarity for a pairing to count (default=0.70).

    Returns:
        BlockMatchResult: Accepted pairings and the block score, which averages
                          accepted similarities over all provided blocks.
    """
    provided_blocks = sorted(extract_provided_blocks(provided_address))
    extracted_blocks = sorted(extract_text_blocks(extracted_text))

    matched_blocks = []
    total_similarity = 0.0
    for provided in provided_blocks:
        best_block = ""
        best_similarity = 0.0
        for candidate in extracted_blocks:
            similarity = combined_similarity(provided, candidate)
            if similarity > best_similarity:
                best_block, best_similarity = candidate, similarity
                # Nothing can beat an identical block
                if best_similarity >= 1.0:
                    break

        if best_block and best_similarity >= threshold:
            matched_blocks.append(BlockMatch(
                provided=provided,
                matched=best_block,
                similarity=best_similarity,
                match_type=classify_match(best_similarity),
            ))
            total_similarity += best_similarity

    block_score = total_similarity / len(provided_blocks) if provided_blocks else 0.0

    logger.debug(
        f"Block matching: {len(matched_blocks)}/{len(provided_blocks)} provided blocks matched "
        f"against {len(extracted_blocks)} extracted blocks (score {block_score:.3f})"
    )

    return BlockMatchResult(
        provided_blocks=provided_blocks,
        extracted_blocks=extracted_blocks,
        matched_blocks=matched_blocks,
        block_score=block_score,
        total_matches=len(matched_blocks),
    )
