"""
Deliverability check for participant email addresses.

Every address is run through is_valid_email before anything is sent to it.
"""

import re
from typing import Any

EMAIL_SHAPE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

# Placeholder addresses that pass the shape check but are never deliverable
PLACEHOLDER_PATTERNS = [
    re.compile(pattern)
    for pattern in (
        r"^test@test\.",
        r"^dummy@",
        r"^fake@",
        r"^noemail@",
        r"^no-email@",
        r"^example@example\.",
        r"^user@example\.",
        r"^admin@example\.",
        r"@example\.com$",
        r"@example\.org$",
        r"@test\.com$",
        r"@dummy\.com$",
        r"@fake\.com$",
        r"^[0-9]+@",
        r"^abc@",
        r"^xyz@",
        r"^test\d*@",
    )
]

PLACEHOLDER_PREFIXES = ("n/a@", "na@", "none@", "null@", "undefined@")

MIN_LENGTH = 5
MAX_LENGTH = 254


def is_valid_email(candidate: Any) -> bool:
    """
    Check whether an address is deliverable and not a placeholder.

    Case and surrounding whitespace are ignored.

    Args:
        candidate: Value to check (non-strings are rejected)

    Returns:
        True if the address may be used for delivery
    """
    if not candidate or not isinstance(candidate, str):
        return False

    email = candidate.strip().lower()

    if not EMAIL_SHAPE.match(email):
        return False

    if any(pattern.search(email) for pattern in PLACEHOLDER_PATTERNS):
        return False

    if email.startswith(PLACEHOLDER_PREFIXES) or email.startswith("@"):
        return False

    return MIN_LENGTH <= len(email) <= MAX_LENGTH
