"""
Pattern tables used by the text matchers.

Every rule is plain data so each one can be exercised on its own in tests.
"""
import re
from typing import Dict, FrozenSet, List, NamedTuple, Pattern, Tuple


class SpellingRule(NamedTuple):
    """OCR or user misspelling variants folded to one canonical spelling."""
    name: str
    pattern: Pattern
    canonical: str


class PhraseRule(NamedTuple):
    """Multi-word idiom collapsed into a single block.

    `block` is a `Match.expand` template, so `plot\\1` becomes `plot45`.
    """
    name: str
    pattern: Pattern
    block: str


class AddressPattern(NamedTuple):
    name: str
    pattern: Pattern


# Applied in order after punctuation has been replaced with spaces
SPELLING_RULES: List[SpellingRule] = [
    SpellingRule("peninsula", re.compile(r"\b(pen+isula|peninsular)\b"), "peninsula"),
    SpellingRule("residential", re.compile(r"\b(res[ie]dent[iae]al)\b"), "residential"),
    SpellingRule("scheme", re.compile(r"\b(sch?eme?)\b"), "scheme"),
    SpellingRule("lekki", re.compile(r"\b(lek+i)\b"), "lekki"),
    SpellingRule("etiosa", re.compile(r"\b(etio[sa]a?)\b"), "etiosa"),
    SpellingRule("lagos", re.compile(r"\b(lag[ou]s)\b"), "lagos"),
]

# Matched against the raw (non-normalized) address
PHRASE_RULES: List[PhraseRule] = [
    # Known place names
    PhraseRule("lekki_peninsula", re.compile(r"lekki\s+pen+isula", re.IGNORECASE), "lekkipeninsula"),
    PhraseRule("peninsula_residential", re.compile(r"peninsula\s+residential", re.IGNORECASE), "peninsularesidential"),
    PhraseRule("residential_scheme", re.compile(r"residential\s+scheme", re.IGNORECASE), "residentialscheme"),
    PhraseRule("eti_osa", re.compile(r"eti\s+osa", re.IGNORECASE), "etiosa"),
    PhraseRule("lagos_state", re.compile(r"lagos\s+state", re.IGNORECASE), "lagosstate"),
    PhraseRule("victoria_island", re.compile(r"victoria\s+island", re.IGNORECASE), "victoriaisland"),
    PhraseRule("port_harcourt", re.compile(r"port\s+harcourt", re.IGNORECASE), "portharcourt"),
    # Generic address idioms
    PhraseRule("estate", re.compile(r"(\w+)\s+estate", re.IGNORECASE), r"\1estate"),
    PhraseRule("close", re.compile(r"(\w+)\s+close", re.IGNORECASE), r"\1close"),
    PhraseRule("street", re.compile(r"(\w+)\s+street", re.IGNORECASE), r"\1street"),
    PhraseRule("road", re.compile(r"(\w+)\s+road", re.IGNORECASE), r"\1road"),
    PhraseRule("avenue", re.compile(r"(\w+)\s+avenue", re.IGNORECASE), r"\1avenue"),
    PhraseRule("plot", re.compile(r"plot\s+(\w+)", re.IGNORECASE), r"plot\1"),
    PhraseRule("block", re.compile(r"block\s+(\w+)", re.IGNORECASE), r"block\1"),
    PhraseRule("phase", re.compile(r"phase\s+(\w+)", re.IGNORECASE), r"phase\1"),
]

# A text line naming at least MIN_LOCATION_KEYWORDS of these is treated as an address line
LOCATION_KEYWORDS: Tuple[str, ...] = (
    "lekki", "peninsula", "residential", "scheme", "eti", "osa",
    "lagos", "estate", "plot", "block", "phase",
)
MIN_LOCATION_KEYWORDS = 2

_STREET_TYPES = r"(?:road|rd|street|st|avenue|ave|close|crescent|way|lane|drive|dr)"

ADDRESS_PATTERNS: List[AddressPattern] = [
    AddressPattern(
        "numbered_street",
        re.compile(r"\d+[,\s]+[^,\n]+" + _STREET_TYPES + r"\b[^,\n]*", re.IGNORECASE),
    ),
    AddressPattern(
        "street_in_city",
        re.compile(
            r"[^,\n]*" + _STREET_TYPES + r"[^,\n]*,?\s*[^,\n]*"
            r"(?:lagos|abuja|kano|ibadan|port harcourt|ph|portharcourt)\b[^,\n]*",
            re.IGNORECASE,
        ),
    ),
    AddressPattern(
        "estate_in_locality",
        re.compile(
            r"[^,\n]*(?:residential|estate|scheme|phase|block|plot)[^,\n]*"
            r"(?:lagos|abuja|kano|ibadan|port harcourt|lekki|victoria island|ikoyi|vi|surulere|ikeja)\b[^,\n]*",
            re.IGNORECASE,
        ),
    ),
    AddressPattern(
        "lekki_scheme",
        re.compile(r"lekki[^,\n]*(?:residential|estate|scheme|peninsula)[^,\n]*", re.IGNORECASE),
    ),
    AddressPattern(
        "peninsula_residential_scheme",
        re.compile(r"[^,\n]*peninsula[^,\n]*residential[^,\n]*scheme[^,\n]*", re.IGNORECASE),
    ),
    AddressPattern(
        "eti_osa",
        re.compile(r"[^,\n]*(?:eti\s*osa|etiosa)[^,\n]*(?:lagos|lekki)[^,\n]*", re.IGNORECASE),
    ),
    AddressPattern(
        "plot_block",
        re.compile(r"plot[^,\n]*\d+[^,\n]*block[^,\n]*\d+[^,\n]*", re.IGNORECASE),
    ),
]

ADDRESS_LINE_KEYWORDS: Tuple[str, ...] = (
    "lekki", "residential", "scheme", "peninsula", "estate", "plot",
    "block", "phase", "eti osa", "etiosa", "lagos",
)
MIN_ADDRESS_LENGTH = 10

# Known spelling variants that sound alike
PHONETIC_GROUPS: Dict[str, FrozenSet[str]] = {
    "peninsula": frozenset({"peninsula", "pennisula", "peninsular", "penninsula"}),
    "residential": frozenset({"residential", "residental", "residencial", "resedential"}),
    "scheme": frozenset({"scheme", "sheme", "sceme", "skeme"}),
    "lekki": frozenset({"lekki", "leki", "leky", "lecki"}),
    "etiosa": frozenset({"etiosa", "etios", "etiossa", "etioosa"}),
}
PHONETIC_SIMILARITY = 0.9
