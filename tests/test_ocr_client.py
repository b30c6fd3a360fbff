import asyncio
import io
import threading

import fitz
import pytest
import pytesseract
from unittest.mock import patch
from PIL import Image

from docverify.clients import OcrClient
from docverify.clients.ocr_client import assemble_text, preprocess_image
from docverify.exceptions import OcrError
from docverify.models import OcrResult

OCR_DATA = {
    "text": ["", "PLOT", "45", "BLOCK", "C", "LEKKI", "LAGOS"],
    "conf": ["-1", "90", "80", "70", "60", "95", "85"],
    "block_num": [0, 1, 1, 1, 1, 1, 1],
    "par_num": [0, 1, 1, 1, 1, 1, 1],
    "line_num": [0, 1, 1, 1, 1, 2, 2],
}


@pytest.fixture
def png_bytes():
    buffer = io.BytesIO()
    Image.new("RGB", (200, 50), "white").save(buffer, format="PNG")
    return buffer.getvalue()


def test_assemble_text_rebuilds_lines():
    text, confidence = assemble_text(OCR_DATA)
    assert text == "PLOT 45 BLOCK C\nLEKKI LAGOS"
    assert confidence == pytest.approx(80.0)


def test_assemble_text_without_words():
    assert assemble_text({"text": []}) == ("", 0.0)


def test_preprocess_image_grayscales_and_shrinks():
    image = preprocess_image(Image.new("RGB", (3600, 100), "white"))
    assert image.mode == "L"
    assert image.width == 1800
    assert image.height == 50


@pytest.mark.asyncio
async def test_recognize_returns_text_and_confidence(png_bytes):
    with patch("docverify.clients.ocr_client.pytesseract.image_to_data", return_value=OCR_DATA) as mock_ocr:
        async with OcrClient() as client:
            result = await client.recognize(png_bytes)

    assert isinstance(result, OcrResult)
    assert result.text == "PLOT 45 BLOCK C\nLEKKI LAGOS"
    assert result.confidence == pytest.approx(80.0)
    assert mock_ocr.called
    assert client.closed


@pytest.mark.asyncio
async def test_too_little_text_is_an_error(png_bytes):
    sparse = {"text": ["A"], "conf": ["50"], "block_num": [1], "par_num": [1], "line_num": [1]}
    with patch("docverify.clients.ocr_client.pytesseract.image_to_data", return_value=sparse):
        async with OcrClient() as client:
            with pytest.raises(OcrError, match="No text"):
                await client.recognize(png_bytes)


@pytest.mark.asyncio
async def test_engine_failure_is_wrapped(png_bytes):
    with patch(
        "docverify.clients.ocr_client.pytesseract.image_to_data",
        side_effect=pytesseract.TesseractError(1, "boom"),
    ):
        async with OcrClient() as client:
            with pytest.raises(OcrError, match="OCR engine failed"):
                await client.recognize(png_bytes)


@pytest.mark.asyncio
async def test_unreadable_inputs_are_rejected():
    async with OcrClient() as client:
        with pytest.raises(OcrError, match="Unreadable image"):
            await client.recognize(b"definitely not an image")
        with pytest.raises(OcrError):
            await client.recognize(b"%PDF-1.7 truncated garbage")


@pytest.mark.asyncio
async def test_pdf_text_layer_is_used_without_ocr():
    doc = fitz.open()
    page = doc.new_page()
    page.insert_text((72, 72), "IKEJA ELECTRIC PLC")
    page.insert_text((72, 96), "SERVICE ADDRESS: Plot 45, Block C, Lekki Peninsula Residential Scheme")
    data = doc.tobytes()
    doc.close()

    with patch("docverify.clients.ocr_client.pytesseract.image_to_data") as mock_ocr:
        async with OcrClient() as client:
            result = await client.recognize(data)

    assert "Lekki Peninsula Residential Scheme" in result.text
    assert result.confidence == 100.0
    mock_ocr.assert_not_called()


@pytest.mark.asyncio
async def test_scanned_pdf_pages_are_rasterized_and_recognized():
    doc = fitz.open()
    doc.new_page()
    doc.new_page()
    data = doc.tobytes()
    doc.close()

    with patch("docverify.clients.ocr_client.pytesseract.image_to_data", return_value=OCR_DATA) as mock_ocr:
        async with OcrClient() as client:
            result = await client.recognize(data)

    assert mock_ocr.call_count == 2
    assert result.text == "PLOT 45 BLOCK C\nLEKKI LAGOS\nPLOT 45 BLOCK C\nLEKKI LAGOS"
    assert result.confidence == pytest.approx(80.0)


@pytest.mark.asyncio
async def test_client_is_released_on_error_and_refuses_work_after(png_bytes):
    client = OcrClient()
    with pytest.raises(RuntimeError):
        async with client:
            assert not client.closed
            raise RuntimeError("caller failed")

    assert client.closed
    with pytest.raises(OcrError, match="closed"):
        await client.recognize(png_bytes)


@pytest.mark.asyncio
async def test_call_waiting_on_rate_limit_is_refused_after_close(png_bytes):
    with patch("docverify.clients.ocr_client.pytesseract.image_to_data", return_value=OCR_DATA) as mock_ocr:
        async with OcrClient(rate=1) as client:
            await client.recognize(png_bytes)

            # The limiter budget is spent, so this call waits before it can start
            pending = asyncio.create_task(client.recognize(png_bytes))
            await asyncio.sleep(0.05)
            assert not pending.done()

            await client.close()
            with pytest.raises(OcrError, match="closed"):
                await pending

    assert mock_ocr.call_count == 1


@pytest.mark.asyncio
async def test_close_does_not_block_the_event_loop(png_bytes):
    started = threading.Event()
    release = threading.Event()
    # Unblocks the worker even if close() stalls the loop
    safety = threading.Timer(2.0, release.set)
    safety.start()

    def slow_image_to_data(*args, **kwargs):
        started.set()
        release.wait()
        return OCR_DATA

    try:
        with patch("docverify.clients.ocr_client.pytesseract.image_to_data", side_effect=slow_image_to_data):
            client = OcrClient()
            await client.__aenter__()
            in_flight = asyncio.create_task(client.recognize(png_bytes))
            while not started.is_set():
                await asyncio.sleep(0.01)

            closing = asyncio.create_task(client.close())
            loop = asyncio.get_running_loop()
            before = loop.time()
            await asyncio.sleep(0.05)
            assert loop.time() - before < 1.0
            assert not closing.done()

            release.set()
            await closing
            result = await in_flight
    finally:
        release.set()
        safety.cancel()

    assert client.closed
    assert result.text == "PLOT 45 BLOCK C\nLEKKI LAGOS"
