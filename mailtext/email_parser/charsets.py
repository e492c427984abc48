"""
mailtext/email_parser/charsets.py
---------------------------------
Charset table shared by the header decoder and the body decoder.

Both paths resolve names through the same immutable mapping, so a charset
either works everywhere or nowhere.
"""

import codecs
from types import MappingProxyType
from typing import Optional

from loguru import logger

from mailtext.email_parser.errors import UnsupportedCharset

# Canonical charset name -> Python codec name
SUPPORTED_CHARSETS = MappingProxyType({
    "utf-8": "utf-8",
    "us-ascii": "utf-8",   # ASCII is a subset, read it as UTF-8
    "iso-8859-1": "latin-1",
    "shift_jis": "shift_jis",
    "euc-jp": "euc_jp",
    "iso-2022-jp": "iso2022_jp",
})

# Common spellings seen in the wild -> canonical name
CHARSET_ALIASES = MappingProxyType({
    "utf8": "utf-8",
    "ascii": "us-ascii",
    "latin1": "iso-8859-1",
    "latin-1": "iso-8859-1",
    "iso8859-1": "iso-8859-1",
    "iso_8859-1": "iso-8859-1",
    "shift-jis": "shift_jis",
    "sjis": "shift_jis",
    "x-sjis": "shift_jis",
    "euc_jp": "euc-jp",
    "eucjp": "euc-jp",
    "iso2022-jp": "iso-2022-jp",
})


def normalize_charset(charset: Optional[str]) -> str:
    """Lowercase, unquote and alias-resolve a charset label ('' when absent)."""
    name = (charset or "").strip().strip('"\'').lower()
    return CHARSET_ALIASES.get(name, name)


def is_supported(charset: Optional[str]) -> bool:
    name = normalize_charset(charset)
    return not name or name in SUPPORTED_CHARSETS


def decode_to_text(data: bytes, charset: Optional[str]) -> str:
    """
    Decode bytes in the declared charset to a str.

    An empty/absent charset is read as UTF-8. Undecodable byte sequences are
    replaced rather than raised; an unknown charset raises UnsupportedCharset.
    """
    name = normalize_charset(charset)
    if not name:
        name = "utf-8"

    codec = SUPPORTED_CHARSETS.get(name)
    if codec is None:
        _log_registry_mismatch(name)
        raise UnsupportedCharset(name)

    return data.decode(codec, errors="replace")


def _log_registry_mismatch(name: str) -> None:
    # The codec registry could read this text, the supported table refuses it.
    try:
        codecs.lookup(name)
    except LookupError:
        return
    logger.warning(
        "Charset {charset!r} is known to the codec registry but not in the supported table",
        charset=name,
    )
