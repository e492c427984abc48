"""
mailtext/email_parser/addresses.py
----------------------------------
Helpers for sender header values such as "First Last <first@example.com>".
"""

import re
from typing import Tuple

EMAIL_REGEX = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}", re.IGNORECASE)


def extract_email_and_name(value: str) -> Tuple[str, str]:
    """
    Split a From/To value into (address, display_name).

    The display name is the text before '<', when there is one.
    Returns ("", "") if no address can be found.
    """
    value = value or ""
    name = ""
    if "<" in value:
        name = value.split("<", 1)[0].strip().strip('"').strip()

    match = EMAIL_REGEX.search(value)
    if not match:
        return "", ""
    return match.group(0), name


def is_no_reply(sender: str) -> bool:
    s = (sender or "").lower()
    return "noreply" in s or "no-reply" in s
