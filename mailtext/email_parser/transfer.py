"""
mailtext/email_parser/transfer.py
---------------------------------
Content-Transfer-Encoding decoding for leaf body parts.

Only base64 and quoted-printable are decoded; 7bit, 8bit, binary, absent
or unknown encodings pass the bytes through unchanged.
"""

import base64
import binascii
import quopri
import re
from typing import Optional

from mailtext.email_parser.errors import TransferDecodeFailed

_WHITESPACE_RE = re.compile(rb"\s+")


def normalize_encoding(encoding: Optional[str]) -> str:
    return (encoding or "").strip().lower()


def decode_base64(data: bytes) -> bytes:
    """
    Standard base64 decode, ignoring surrounding whitespace and line breaks.
    Anything outside the base64 alphabet, or bad padding, is a failure.
    """
    compact = _WHITESPACE_RE.sub(b"", data)
    try:
        return base64.b64decode(compact, validate=True)
    except (binascii.Error, ValueError) as exc:
        raise TransferDecodeFailed("base64", str(exc)) from exc


def decode_quoted_printable(data: bytes) -> bytes:
    """
    RFC 2045 quoted-printable decode: soft line breaks ('=' at end of line)
    are joined and =XX escapes decoded byte-wise.
    """
    try:
        return quopri.decodestring(data)
    except (binascii.Error, ValueError) as exc:
        raise TransferDecodeFailed("quoted-printable", str(exc)) from exc


def decode_transfer(data: bytes, encoding: Optional[str]) -> bytes:
    enc = normalize_encoding(encoding)
    if enc == "base64":
        return decode_base64(data)
    if enc == "quoted-printable":
        return decode_quoted_printable(data)
    return data
