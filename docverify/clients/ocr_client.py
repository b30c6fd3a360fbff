"""
Scoped Tesseract OCR client with rate limiting using aiolimiter.
"""
import asyncio
import io
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Dict, List, Optional, Tuple

import fitz  # PyMuPDF
import pytesseract
from aiolimiter import AsyncLimiter
from loguru import logger
from PIL import Image, ImageOps, UnidentifiedImageError

from docverify.config import (
    MIN_TEXT_LENGTH,
    OCR_LANGUAGE,
    OCR_MAX_WIDTH,
    OCR_RATE,
    PDF_RENDER_SCALE,
    PDF_TEXT_MIN_LENGTH,
    TESSERACT_CMD,
)
from docverify.exceptions import OcrError
from docverify.models import OcrResult

if TESSERACT_CMD:
    pytesseract.pytesseract.tesseract_cmd = TESSERACT_CMD

PDF_MAGIC = b"%PDF"
# A PDF text layer is exact, not recognized
TEXT_LAYER_CONFIDENCE = 100.0


def preprocess_image(image: Image.Image) -> Image.Image:
    """Grayscale, stretch contrast and shrink wide scans before recognition."""
    image = ImageOps.autocontrast(image.convert("L"))
    if image.width > OCR_MAX_WIDTH:
        image.thumbnail((OCR_MAX_WIDTH, image.height))
    return image


def assemble_text(ocr_data: Dict[str, Any]) -> Tuple[str, float]:
    """
    Rebuild line structured text and a mean word confidence from
    pytesseract's word-level output.

    Args:
        ocr_data: Result of pytesseract.image_to_data with Output.DICT.

    Returns:
        Tuple[str, float]: (text with one line per OCR line, confidence 0-100)
    """
    lines: Dict[Tuple[int, int, int], list] = {}
    confidences = []
    for i, word in enumerate(ocr_data.get("text", [])):
        word = (word or "").strip()
        if not word:
            continue
        key = (ocr_data["block_num"][i], ocr_data["par_num"][i], ocr_data["line_num"][i])
        lines.setdefault(key, []).append(word)
        conf = float(ocr_data["conf"][i])
        if conf >= 0:
            confidences.append(conf)

    text = "\n".join(" ".join(words) for words in lines.values())
    confidence = sum(confidences) / len(confidences) if confidences else 0.0
    return text, confidence


def render_page(page: "fitz.Page", scale: float = PDF_RENDER_SCALE) -> Image.Image:
    """Rasterize a PDF page for OCR."""
    pix = page.get_pixmap(matrix=fitz.Matrix(scale, scale), alpha=False)
    return Image.frombytes("RGB", (pix.width, pix.height), pix.samples)


class OcrClient:
    """
    OCR engine handle scoped to one batch of work.

    Use as an async context manager; the worker threads are released on every
    exit path and a closed client refuses further work.
    """

    def __init__(
        self,
        language: str = OCR_LANGUAGE,
        rate: int = OCR_RATE,
        min_text_length: int = MIN_TEXT_LENGTH,
        max_workers: Optional[int] = None,
    ):
        self.language = language
        self.min_text_length = min_text_length
        self.max_workers = max_workers
        # Rate limiter: start at most `rate` recognitions per second
        self.rate_limiter = AsyncLimiter(max_rate=rate, time_period=1.0)
        self._executor: Optional[ThreadPoolExecutor] = None

    async def __aenter__(self) -> "OcrClient":
        self._executor = ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="ocr")
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.close()

    @property
    def closed(self) -> bool:
        return self._executor is None

    async def recognize(self, data: bytes) -> OcrResult:
        """
        Extract text from an image or a PDF.

        PDFs use their text layer when it carries enough text; otherwise every
        page is rasterized and recognized.

        Args:
            data: Raw document bytes (PNG, JPEG, PDF, ...).

        Returns:
            OcrResult: Extracted text and mean confidence.

        Raises:
            OcrError: The client is closed, the input is unreadable, or too
                      little text was recognized.
        """
        if self._executor is None:
            raise OcrError("OCR client is closed")

        async with self.rate_limiter:
            # The client may have closed while this call waited for the limiter
            executor = self._executor
            if executor is None:
                raise OcrError("OCR client is closed")

            loop = asyncio.get_running_loop()
            try:
                return await loop.run_in_executor(executor, self._recognize, data)
            except OcrError as e:
                logger.debug(f"⚠️ OCR failed: {e}")
                raise

    def _recognize(self, data: bytes) -> OcrResult:
        if data[:len(PDF_MAGIC)] == PDF_MAGIC:
            text, confidence = self._read_pdf(data)
        else:
            try:
                image = Image.open(io.BytesIO(data))
                image.load()
            except (UnidentifiedImageError, OSError) as e:
                raise OcrError(f"Unreadable image: {e}") from e
            text, confidence = self._ocr_image(image)

        if len(text.strip()) < self.min_text_length:
            raise OcrError("No text could be extracted from the document")

        logger.debug(f"OCR extracted {len(text)} chars (confidence {confidence:.1f})")
        return OcrResult(text=text, confidence=confidence)

    def _ocr_image(self, image: Image.Image) -> Tuple[str, float]:
        try:
            ocr_data = pytesseract.image_to_data(
                preprocess_image(image),
                lang=self.language,
                output_type=pytesseract.Output.DICT,
            )
        except (pytesseract.TesseractError, pytesseract.TesseractNotFoundError) as e:
            raise OcrError(f"OCR engine failed: {e}") from e
        return assemble_text(ocr_data)

    def _read_pdf(self, data: bytes) -> Tuple[str, float]:
        try:
            doc = fitz.open(stream=data, filetype="pdf")
        except RuntimeError as e:
            # fitz.FileDataError derives from RuntimeError
            raise OcrError(f"Unreadable PDF: {e}") from e

        try:
            text_layer = "\n".join(page.get_text().strip() for page in doc).strip()
            if len(text_layer) > PDF_TEXT_MIN_LENGTH:
                logger.debug(f"Using PDF text layer ({len(doc)} pages)")
                return text_layer, TEXT_LAYER_CONFIDENCE

            # Scanned PDF: recognize every page and average over pages with text
            page_texts: List[str] = []
            confidences: List[float] = []
            for page in doc:
                text, confidence = self._ocr_image(render_page(page))
                if text.strip():
                    page_texts.append(text)
                    confidences.append(confidence)
        finally:
            doc.close()

        confidence = sum(confidences) / len(confidences) if confidences else 0.0
        return "\n".join(page_texts), confidence

    async def close(self):
        """Shut down the worker threads, waiting for in-flight work off the event loop."""
        executor, self._executor = self._executor, None
        if executor is not None:
            await asyncio.to_thread(executor.shutdown, wait=True)
