import base64
import binascii
import re
from typing import List, Optional

from docverify.exceptions import RequestValidationError
from docverify.models import VerificationRequest

_BASE64 = re.compile(r"^[A-Za-z0-9+/]*={0,2}$")


def strip_data_url(value: str) -> str:
    """Drop a `data:<mime>;base64,` prefix if present."""
    if value.startswith("data:"):
        return value.split(",", 1)[1] if "," in value else ""
    return value


def decode_document(value: str) -> bytes:
    """
    Decode a base64 document, optionally given as a data URL.

    Raises:
        ValueError: The value is not valid base64 or decodes to nothing.
    """
    cleaned = strip_data_url(value or "")
    if not cleaned or not _BASE64.match(cleaned):
        raise ValueError("not valid base64")
    try:
        data = base64.b64decode(cleaned, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"cannot decode base64: {e}") from e
    if not data:
        raise ValueError("decodes to an empty document")
    return data


def _is_blank(value: Optional[str]) -> bool:
    return not isinstance(value, str) or not value.strip()


def _is_number(value) -> bool:
    # bool is an int subclass
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _check_document(field_name: str, value: Optional[str], required: bool, errors: List[str]):
    if _is_blank(value):
        if required:
            errors.append(f"{field_name} is required and must be a non-empty string")
        return
    try:
        decode_document(value)
    except ValueError:
        errors.append(f"{field_name} must be a valid base64 encoded image")


def validate_request(request: VerificationRequest) -> None:
    """
    Check a verification request, collecting every problem before failing.

    Raises:
        RequestValidationError: At least one field is missing or malformed.
    """
    errors: List[str] = []

    if _is_blank(request.typed_address):
        errors.append("typed_address is required and must be a non-empty string")

    _check_document("utility_bill", request.utility_bill, True, errors)
    _check_document("id_document", request.id_document, True, errors)
    _check_document("land_document", request.land_document, False, errors)

    if request.gps_latitude is not None:
        if not _is_number(request.gps_latitude) or not -90 <= request.gps_latitude <= 90:
            errors.append("gps_latitude must be a valid number between -90 and 90")

    if request.gps_longitude is not None:
        if not _is_number(request.gps_longitude) or not -180 <= request.gps_longitude <= 180:
            errors.append("gps_longitude must be a valid number between -180 and 180")

    if request.full_name is not None and _is_blank(request.full_name):
        errors.append("full_name must be a non-empty string if provided")

    if errors:
        raise RequestValidationError(errors)


def sanitize_input(value: str) -> str:
    """Trim and drop angle brackets from free text."""
    return value.strip().replace("<", "").replace(">", "")
