from typing import List

from docverify.matchers.patterns import (
    ADDRESS_LINE_KEYWORDS,
    ADDRESS_PATTERNS,
    MIN_ADDRESS_LENGTH,
    MIN_LOCATION_KEYWORDS,
)


def find_addresses(text: str) -> List[str]:
    """
    Locate address-like passages in raw document text.

    Informational only; the match verdicts never depend on it.
    """
    if not text:
        return []

    addresses = []
    for address_pattern in ADDRESS_PATTERNS:
        addresses.extend(match.strip() for match in address_pattern.pattern.findall(text))

    for line in text.split("\n"):
        lowered = line.lower()
        found = sum(1 for keyword in ADDRESS_LINE_KEYWORDS if keyword in lowered)
        if found >= MIN_LOCATION_KEYWORDS:
            addresses.append(line.strip())

    unique = dict.fromkeys(addresses)
    return [address for address in unique if len(address) > MIN_ADDRESS_LENGTH]
