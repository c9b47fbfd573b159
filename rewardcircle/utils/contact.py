"""
Contact identifier normalization.

Customers are matched by phone or email, so both sides of every comparison
must go through the same normalization.
"""
import re
from typing import Optional

_NON_DIGITS = re.compile(r'\D')
_EMAIL_PATTERN = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')

# E.164 caps a number at 15 digits including the country code
MAX_E164_DIGITS = 15
MIN_INTERNATIONAL_DIGITS = 8


def normalize_phone(raw) -> Optional[str]:
    """
    Normalize a phone number to E.164.

    US numbers may be written without a country code:
    - "5556667777" -> "+15556667777"
    - "(555) 666-7777" -> "+15556667777"
    - "1-555-666-7777" -> "+15556667777"

    Anything else keeps all of its digits:
    - "+44 7700 900123" -> "+447700900123"

    Digits are never dropped, so two different numbers can't normalize to
    the same value. Returns None when the digit count can't be a phone
    number (too short, or longer than E.164 allows).
    """
    if raw is None:
        return None
    text = str(raw).strip()
    digits = _NON_DIGITS.sub('', text)

    if text.startswith('+'):
        if MIN_INTERNATIONAL_DIGITS <= len(digits) <= MAX_E164_DIGITS:
            return f'+{digits}'
        return None

    if len(digits) == 10:
        return f'+1{digits}'
    # 11+ digits already carry a country code ("1" for the US)
    if 11 <= len(digits) <= MAX_E164_DIGITS:
        return f'+{digits}'
    return None


def normalize_email(raw) -> Optional[str]:
    """Lower-case and trim an email; None when blank or malformed."""
    if raw is None:
        return None
    email = str(raw).strip().lower()
    if not email or not _EMAIL_PATTERN.match(email):
        return None
    return email
