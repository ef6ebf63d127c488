"""
Guest QR payload decoding.

Guest badges carry either ``guest-<uuid>``, a bare ``<uuid>`` or a link with
a ``guestId`` query parameter.
"""

import re
from typing import NamedTuple, Optional
from urllib.parse import parse_qs

GUEST_PREFIX = "guest-"
INVALID_QR_MESSAGE = "Invalid QR code format. Please scan a valid guest QR code."

UUID_PATTERN = re.compile(
    r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}",
    re.IGNORECASE,
)


class ScannedIdentifier(NamedTuple):
    candidate: str
    valid: bool


def _guest_id_from_query(text: str) -> Optional[str]:
    _, sep, query = text.partition("?")
    if not sep:
        return None
    try:
        values = parse_qs(query).get("guestId")
    except ValueError:
        return None
    return values[0] if values else None


def normalize(raw_text: str) -> str:
    """Extract the candidate guest identifier from scanned text."""
    if raw_text.startswith(GUEST_PREFIX):
        return raw_text[len(GUEST_PREFIX):]
    if "/guest/" in raw_text or "guestId=" in raw_text:
        return _guest_id_from_query(raw_text) or raw_text
    return raw_text


def decode(raw_text: Optional[str]) -> ScannedIdentifier:
    """
    Decode scanned QR text into a guest identifier.

    Args:
        raw_text: Text produced by the QR/barcode reader

    Returns:
        ScannedIdentifier with the normalized candidate and whether it has
        the canonical UUID shape
    """
    if not raw_text:
        return ScannedIdentifier(candidate="", valid=False)

    candidate = normalize(raw_text)
    return ScannedIdentifier(candidate=candidate, valid=UUID_PATTERN.fullmatch(candidate) is not None)
