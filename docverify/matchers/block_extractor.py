import re
from typing import Iterable, Iterator, List, Set

from docverify.matchers.normalizer import normalize_text, normalize_for_matching
from docverify.matchers.patterns import (
    LOCATION_KEYWORDS,
    MIN_LOCATION_KEYWORDS,
    PHRASE_RULES,
)

MIN_BIGRAM_LENGTH = 4
MIN_TRIGRAM_LENGTH = 6
MIN_LINE_LENGTH = 3
MIN_CONTEXT_LENGTH = 5

_SEPARATORS = re.compile(r"[,\s]+")
_NON_WORD = re.compile(r"[^\w]|_")
_LINE_BREAKS = re.compile(r"[\n\r]+")


def _clean_tokens(tokens: Iterable[str]) -> List[str]:
    """Strip non-word characters and drop single characters."""
    cleaned = []
    for token in tokens:
        if len(token) <= 1:
            continue
        token = _NON_WORD.sub("", token)
        if len(token) > 1:
            cleaned.append(token)
    return cleaned


def _ngrams(words: List[str], n: int, min_length: int) -> Iterator[str]:
    """Adjacent words joined without a separator, kept when longer than min_length."""
    for i in range(len(words) - n + 1):
        gram = "".join(words[i:i + n])
        if len(gram) > min_length:
            yield gram


def phrase_blocks(text: str) -> Set[str]:
    """Blocks contributed by the compound phrase rules, matched on the raw text."""
    blocks = set()
    for rule in PHRASE_RULES:
        for match in rule.pattern.finditer(text or ""):
            block = normalize_for_matching(match.expand(rule.block))
            if block:
                blocks.add(block)
    return blocks


def extract_location_contexts(text: str) -> Set[str]:
    """
    Whole lines that mention at least two location keywords, compacted.

    Recovers address lines that tokenization would otherwise fragment.
    """
    contexts = set()
    for line in _LINE_BREAKS.split(text or ""):
        normalized_line = normalize_text(line)
        found = sum(1 for keyword in LOCATION_KEYWORDS if keyword in normalized_line)
        if found >= MIN_LOCATION_KEYWORDS:
            compact = normalized_line.replace(" ", "")
            if len(compact) > MIN_CONTEXT_LENGTH:
                contexts.add(compact)
    return contexts


def extract_provided_blocks(address: str) -> Set[str]:
    """
    Break a user supplied address into comparable blocks.

    Args:
        address (str): Address exactly as the user typed it.

    Returns:
        Set[str]: Tokens, compound phrases and adjacent-word bigrams.
    """
    normalized = normalize_text(address)
    blocks = set(_clean_tokens(_SEPARATORS.split(normalized)))
    blocks.update(phrase_blocks(address))

    # Short words such as unit letters are skipped before pairing
    words = [word for word in normalized.split(" ") if len(word) > 2]
    blocks.update(_ngrams(words, 2, MIN_BIGRAM_LENGTH))

    return {block for block in blocks if len(block) > 1}


def extract_text_blocks(text: str) -> Set[str]:
    """
    Break OCR text into comparable blocks.

    Args:
        text (str): Raw OCR output, line breaks preserved.

    Returns:
        Set[str]: Tokens, compacted lines, bigrams, trigrams and location lines.
    """
    normalized = normalize_text(text)
    words = _clean_tokens(normalized.split(" "))
    blocks = set(words)

    for line in _LINE_BREAKS.split(text or ""):
        compact = normalize_for_matching(line)
        if len(compact) > MIN_LINE_LENGTH:
            blocks.add(compact)

    blocks.update(_ngrams(words, 2, MIN_BIGRAM_LENGTH))
    blocks.update(_ngrams(words, 3, MIN_TRIGRAM_LENGTH))
    blocks.update(extract_location_contexts(text))

    return {block for block in blocks if len(block) > 1}
