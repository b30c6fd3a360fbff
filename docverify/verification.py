import asyncio
import time
import uuid
from datetime import datetime, timezone
from typing import Dict, List
from loguru import logger

from docverify.clients import OcrClient
from docverify.config import LOW_MATCH_SCORE, LOW_OCR_CONFIDENCE
from docverify.matchers.matching_orchestrator import verify_document_text
from docverify.models import MatchResult, VerificationReport, VerificationRequest
from docverify.validation import decode_document, sanitize_input, validate_request

DOCUMENT_LABELS = {
    "utility_bill": "Utility bill",
    "id_document": "ID document",
    "land_document": "Land document",
}


async def verify_document(
    ocr_client: OcrClient,
    data: bytes,
    provided_address: str,
    provided_full_name: str = "",
) -> MatchResult:
    """
    OCR one document and match its text against the typed address and name.

    Args:
        ocr_client (OcrClient): An open OCR client.
        data (bytes): Image or PDF bytes.
        provided_address (str): Address typed by the user.
        provided_full_name (str): Name typed by the user.

    Returns:
        MatchResult: Matching result for this document.
    """
    ocr = await ocr_client.recognize(data)
    return verify_document_text(provided_address, provided_full_name, ocr.text, ocr.confidence)


def build_recommendations(results: Dict[str, MatchResult]) -> List[str]:
    """User facing advice derived from each document's match score and OCR confidence."""
    recommendations = []
    for key, result in results.items():
        label = DOCUMENT_LABELS.get(key, key)
        if result.match_score < LOW_MATCH_SCORE:
            recommendations.append(
                f"{label} address match is low. Please ensure the document clearly shows the address."
            )
        if result.confidence < LOW_OCR_CONFIDENCE:
            recommendations.append(f"{label} OCR confidence is low. Please upload a clearer image.")

    if not recommendations:
        recommendations.append("All verifications passed successfully. Your address verification is complete.")
    return recommendations


def new_verification_id() -> str:
    return f"VER_{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"


async def verify_request(request: VerificationRequest) -> VerificationReport:
    """
    Verify every document attached to a request.

    Documents are recognized and matched concurrently with one OCR client that
    lives only for this request.

    Args:
        request (VerificationRequest): Typed address, name and base64 documents.

    Returns:
        VerificationReport: Per-document results, overall verdict and recommendations.

    Raises:
        RequestValidationError: The request is malformed.
        OcrError: A document could not be read.
    """
    validate_request(request)

    address = sanitize_input(request.typed_address)
    full_name = sanitize_input(request.full_name or "")

    documents = {"utility_bill": request.utility_bill, "id_document": request.id_document}
    if request.land_document:
        documents["land_document"] = request.land_document

    payloads = [decode_document(value) for value in documents.values()]

    async with OcrClient() as ocr_client:
        tasks = [
            asyncio.create_task(verify_document(ocr_client, data, address, full_name))
            for data in payloads
        ]
        try:
            results = await asyncio.gather(*tasks)
        except BaseException:
            # One document failed: stop the others before the client is released
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    by_document = dict(zip(documents.keys(), results))
    passed = by_document["utility_bill"].address_match
    verification_id = new_verification_id()

    logger.info(
        f"Verification {verification_id}: passed={passed}, "
        + ", ".join(f"{key}={result.match_score}" for key, result in by_document.items())
    )

    return VerificationReport(
        verification_id=verification_id,
        passed=passed,
        documents=by_document,
        recommendations=build_recommendations(by_document),
        timestamp=datetime.now(timezone.utc).isoformat(),
    )
