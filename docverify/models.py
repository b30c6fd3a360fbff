"""
Typed data models for the document verification pipeline.
All data structures used throughout the codebase should be defined here.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional


class MatchType(str, Enum):
    """How closely a provided block matched its best extracted block."""
    EXACT = "exact"
    FUZZY = "fuzzy"
    PARTIAL = "partial"


@dataclass(frozen=True)
class MatchInput:
    """One document to check against what the user typed."""
    provided_address: str
    provided_full_name: str = ""
    extracted_text: str = ""
    confidence: float = 0.0  # Passed through from OCR, 0-100


@dataclass(frozen=True)
class OcrResult:
    """Output of the OCR collaborator."""
    text: str
    confidence: float


@dataclass(frozen=True)
class BlockMatch:
    provided: str
    matched: str
    similarity: float
    match_type: MatchType


@dataclass(frozen=True)
class BlockMatchResult:
    """Block-level comparison between a provided address and document text."""
    provided_blocks: List[str]
    extracted_blocks: List[str]
    matched_blocks: List[BlockMatch]
    block_score: float  # Sum of accepted similarities over len(provided_blocks)
    total_matches: int


@dataclass(frozen=True)
class AddressDecision:
    """Fuzzy and strict address verdicts plus the boosted address score."""
    address_matched: bool  # Binding verdict, equal to strict_address_matched
    fuzzy_address_matched: bool
    strict_address_matched: bool
    final_score: float  # 0-100
    forced_full_score: bool  # 5+ strong blocks forced the score to 100
    matched_ngram: str = ""
    normalized_provided_address: str = ""
    normalized_extracted_text: str = ""


@dataclass(frozen=True)
class NameMatch:
    matched: bool
    score: int  # 0-100
    ratio: float  # Average best token similarity, 0-1


@dataclass(frozen=True)
class MatchResult:
    """Final matching result for one document."""
    extracted_text: str
    found_addresses: List[str]
    address_matched: bool  # Strict n-gram verdict (or fuzzy fallback for short addresses)
    fuzzy_address_matched: bool
    strict_address_matched: bool
    name_matched: bool
    address_match: bool  # address_matched and name_matched
    full_name: str  # Provided name when it matched, else ""
    match_score: int  # Blended 0-100
    confidence: float
    block_matches: int
    total_blocks: int
    matching_blocks: List[str]
    block_match_details: Optional[BlockMatchResult] = None
    normalized_provided_address: str = ""
    normalized_extracted_text: str = ""
    matched_ngram: str = ""


@dataclass
class VerificationRequest:
    """Address verification request. Documents are base64 strings, optionally data URLs."""
    typed_address: str
    utility_bill: str
    id_document: str
    full_name: Optional[str] = None
    land_document: Optional[str] = None
    gps_latitude: Optional[float] = None
    gps_longitude: Optional[float] = None


@dataclass
class VerificationReport:
    """Outcome of verifying every document supplied with a request."""
    verification_id: str
    passed: bool
    documents: Dict[str, MatchResult] = field(default_factory=dict)
    recommendations: List[str] = field(default_factory=list)
    timestamp: str = ""


@dataclass
class DocumentRecord:
    """Input row for the batch runner."""
    address: str
    full_name: str = ""
    text: Optional[str] = None
    document_path: Optional[str] = None
