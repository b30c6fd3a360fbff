"""Clients for external collaborators."""
from docverify.clients.ocr_client import OcrClient

__all__ = ["OcrClient"]
