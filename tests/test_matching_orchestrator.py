from concurrent.futures import ThreadPoolExecutor

import pytest

from docverify.matchers.matching_orchestrator import (
    blend_scores,
    verify_document_text,
    verify_match_input,
)
from docverify.models import MatchInput, MatchResult

LEKKI_ADDRESS = "Plot 45, Block C, Lekki Peninsula Residential Scheme, Eti Osa, Lagos"
CONCATENATED_BILL = (
    "IKEJA ELECTRIC PLC\n"
    "ACCOUNT NAME: JOHN OKAFOR\n"
    "PLOT45 BLOCKC LEKKI PENINSULA RESIDENTIAL SCHEME ETIOSA LAGOS\n"
    "AMOUNT DUE: 12,500.00"
)
FULL_BILL = (
    "IKEJA ELECTRIC PLC\n"
    "ACCOUNT NAME: JOHN OKAFOR\n"
    "SERVICE ADDRESS: Plot 45, Block C, Lekki Peninsula Residential Scheme, Eti Osa, Lagos\n"
    "PLOT45 BLOCKC LEKKI PENINSULA RESIDENTIAL SCHEME ETIOSA LAGOS"
)


@pytest.mark.parametrize("address_score, name_score, forced, expected", [
    (85, 50, False, 75),  # 74.5 rounds half up
    (100, 100, False, 100),
    (0, 0, False, 0),
    (40, 100, True, 100),
    (60, 0, False, 42),
])
def test_blend_scores(address_score, name_score, forced, expected):
    assert blend_scores(address_score, name_score, forced) == expected


def test_verbatim_address_passes_strict_gate():
    text = "EKEDC\nACCOUNT NAME: ADA OBI\n15, ADELABU STREET, SURULERE, LAGOS."
    result = verify_document_text("15 Adelabu Street Surulere Lagos", "Ada Obi", text, confidence=88.0)

    assert isinstance(result, MatchResult)
    assert result.address_matched is True
    assert result.strict_address_matched is True
    assert result.matched_ngram == "15 adelabu street surulere lagos"
    assert result.name_matched is True
    assert result.address_match is True
    assert result.full_name == "Ada Obi"
    assert result.confidence == 88.0
    assert result.match_score == 100


def test_concatenated_ocr_still_corroborates_blocks():
    # Only 11 of the 20 address blocks have a counterpart in the concatenated
    # line (block score about 0.55), so five or more matches floor the score
    # at 85 but do not force it to 100. Forcing needs the spaced line too,
    # see test_strong_block_evidence_forces_full_score.
    result = verify_document_text(LEKKI_ADDRESS, "John Okafor", CONCATENATED_BILL)

    assert result.block_matches >= 5
    assert result.fuzzy_address_matched is True
    assert {"lekkipeninsula", "plot45", "blockc", "etiosa"} <= set(result.matching_blocks)
    # Address score is floored at 85 for five or more matching blocks: 85 * 0.7 + 100 * 0.3
    assert result.match_score >= 90
    assert result.total_blocks == 20


def test_strong_block_evidence_forces_full_score():
    result = verify_document_text(LEKKI_ADDRESS, "", FULL_BILL)

    assert result.block_matches >= 5
    assert result.block_match_details.block_score > 0.75
    # Forced to 100 even though no name was given
    assert result.match_score == 100
    assert result.name_matched is False
    assert result.address_match is False


def test_found_addresses_are_reported():
    result = verify_document_text(LEKKI_ADDRESS, "John Okafor", FULL_BILL)
    assert any("Lekki Peninsula Residential Scheme" in found for found in result.found_addresses)


def test_empty_extracted_text():
    result = verify_document_text(LEKKI_ADDRESS, "John Okafor", "")

    assert result.address_matched is False
    assert result.fuzzy_address_matched is False
    assert result.block_matches == 0
    assert result.name_matched is False
    assert result.match_score == 0
    assert result.found_addresses == []


def test_empty_address_and_name():
    result = verify_document_text("", "", CONCATENATED_BILL)

    assert result.address_matched is False
    assert result.total_blocks == 0
    assert result.name_matched is False
    assert result.full_name == ""
    assert result.match_score == 0


def test_name_only_document():
    result = verify_document_text(LEKKI_ADDRESS, "John Okafor", "NATIONAL ID\nSURNAME OKAFOR\nFIRST NAME JOHN")

    assert result.address_matched is False
    assert result.name_matched is True
    assert result.match_score < 70


def test_verify_match_input_passes_confidence_through():
    match_input = MatchInput(
        provided_address="15 Adelabu Street Surulere Lagos",
        provided_full_name="Ada Obi",
        extracted_text="ADA OBI 15 ADELABU STREET SURULERE LAGOS",
        confidence=87.5,
    )
    result = verify_match_input(match_input)

    assert result.confidence == 87.5
    assert result.address_matched is True


def test_results_are_identical_across_threads():
    args = (LEKKI_ADDRESS, "John Okafor", CONCATENATED_BILL)
    expected = verify_document_text(*args)

    with ThreadPoolExecutor(max_workers=4) as pool:
        results = list(pool.map(lambda _: verify_document_text(*args), range(8)))

    assert all(result == expected for result in results)
