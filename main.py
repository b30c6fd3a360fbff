import os
import asyncio
import pandas as pd
import csv
from pathlib import Path
from typing import List, Optional, Tuple
import sys
from loguru import logger

from docverify.models import DocumentRecord, MatchResult
from docverify.matchers.matching_orchestrator import verify_document_text
from docverify.verification import verify_document
from docverify.config import INPUT_CSV, OUTPUT_CSV, BATCH_SIZE, LOG_LEVEL
from docverify.clients import OcrClient
from docverify.exceptions import OcrError

OUTPUT_COLUMNS = [
    "Address", "Full name", "address_matched", "fuzzy_address_matched", "name_matched",
    "match_score", "block_matches", "total_blocks", "matched_ngram", "error",
]


def load_documents_from_csv(file_path: str, nrows: int = None) -> List[DocumentRecord]:
    """Load documents from CSV and convert to DocumentRecord objects."""
    df = pd.read_csv(file_path, nrows=nrows, dtype=str)
    records = []
    for _, row in df.iterrows():
        # Helper to safely extract values from pandas Series, converting NaN to None
        def safe_get(col):
            if col not in row.index:
                return None
            val = row[col]
            if pd.isna(val):
                return None
            return val

        records.append(DocumentRecord(
            address=safe_get("Address") or "",
            full_name=safe_get("Full name") or "",
            text=safe_get("Text"),
            document_path=safe_get("Document"),
        ))
    return records


def batch_iter(records: List[DocumentRecord], batch_size: int):
    """
    Yield index and DocumentRecord slices of size `batch_size` for batched processing.
    """
    n = len(records)
    for i in range(0, n, batch_size):
        yield i, records[i:i+batch_size]


async def process_record(
    record: DocumentRecord,
    ocr_client: OcrClient,
) -> Tuple[Optional[MatchResult], str]:
    """
    Match a single document, running OCR first when only an image path is given.

    Args:
        record (DocumentRecord): Input document record.
        ocr_client (OcrClient): Open OCR client shared by the batch.

    Returns:
        Tuple[Optional[MatchResult], str]: The result, or None and an error message.
    """
    try:
        if record.text is not None:
            return verify_document_text(record.address, record.full_name, record.text), ""
        if not record.document_path:
            return None, "no Text or Document given"
        data = Path(record.document_path).read_bytes()
        return await verify_document(ocr_client, data, record.address, record.full_name), ""
    except (OcrError, OSError) as e:
        logger.warning(f"⚠️ Could not verify document for '{record.address}': {e}")
        return None, str(e)


def result_row(record: DocumentRecord, result: Optional[MatchResult], error: str) -> list:
    if result is None:
        return [record.address, record.full_name, False, False, False, 0, 0, 0, "", error]
    return [
        record.address,
        record.full_name,
        result.address_matched,
        result.fuzzy_address_matched,
        result.name_matched,
        result.match_score,
        result.block_matches,
        result.total_blocks,
        result.matched_ngram,
        error,
    ]


async def main():
    """
    Orchestrate the full batch verification pipeline.

    - Loads input CSV in batches.
    - Processes each batch asynchronously, one OCR client per batch.
    - Writes results incrementally to an output CSV.
    """
    # Initialize logs
    logger.remove()  # Remove default handler
    logger.add(sys.stderr, level=LOG_LEVEL, format="<green>{time:HH:mm:ss}</green> | <level>{message}</level>")

    all_documents = load_documents_from_csv(INPUT_CSV)

    # Initialize output file
    output_path = OUTPUT_CSV
    if os.path.exists(output_path):
        os.remove(output_path)
    with open(output_path, "w", newline="") as f:
        writer = csv.writer(f)
        writer.writerow(OUTPUT_COLUMNS)

    for start_idx, batch_records in batch_iter(all_documents, BATCH_SIZE):
        logger.info(f"Processing rows {start_idx}..{start_idx + len(batch_records) - 1}")

        # The OCR client is released when the batch finishes, even on error
        async with OcrClient() as ocr_client:
            results = await asyncio.gather(*[process_record(record, ocr_client) for record in batch_records])

        with open(output_path, "a", newline="") as f:
            writer = csv.writer(f)
            for record, (result, error) in zip(batch_records, results):
                writer.writerow(result_row(record, result, error))


if __name__ == "__main__":
    asyncio.run(main())
