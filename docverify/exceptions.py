from typing import List


class OcrError(Exception):
    """Raised when text cannot be extracted from a document."""


class RequestValidationError(ValueError):
    """Raised when a verification request is malformed. Carries every problem found."""

    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors))
