"""
mailtext/email_parser/headers.py
--------------------------------
Header extractor: splits a raw RFC 822 message at the first blank line,
unfolds continuation lines and decodes RFC 2047 encoded words
(=?charset?B|Q?text?=) in every value.

A header that cannot be decoded keeps its raw text; one bad header never
stops the others from being extracted.
"""

import re
from collections.abc import Mapping
from email.errors import HeaderParseError
from email.header import decode_header
from typing import Dict, Iterator, List, Optional, Tuple, Union

from loguru import logger

from mailtext.email_parser.charsets import decode_to_text
from mailtext.email_parser.errors import MalformedHeaderBlock, UnsupportedCharset

RawMessage = Union[bytes, str]

_BLANK_LINE_RE = re.compile(rb"\r?\n\r?\n")
_LINE_SPLIT_RE = re.compile(r"\r?\n")
_ENCODED_WORD_RE = re.compile(
    r"=\?(?P<charset>[^?\s]+)\?(?P<encoding>[bBqQ])\?(?P<text>[^?\s]*)\?="
)

MESSAGE_ID = "Message-ID"


class HeaderMap(Mapping):
    """
    Header name -> list of decoded values, in the order they appeared.

    Names keep the spelling of their first occurrence; lookups are
    case-insensitive, so headers["message-id"] finds "Message-Id".
    """

    def __init__(self, pairs: Optional[List[Tuple[str, str]]] = None):
        self._names: Dict[str, str] = {}
        self._values: Dict[str, List[str]] = {}
        for name, value in pairs or []:
            self.add(name, value)

    def add(self, name: str, value: str) -> None:
        key = self._names.setdefault(name.lower(), name)
        self._values.setdefault(key, []).append(value)

    def __getitem__(self, name: str) -> List[str]:
        return self._values[self._names[name.lower()]]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    def get_first(self, name: str, default: str = "") -> str:
        values = self.get(name)
        return values[0] if values else default

    def to_dict(self) -> Dict[str, List[str]]:
        return {name: list(values) for name, values in self._values.items()}

    def __repr__(self) -> str:
        return f"HeaderMap({self._values!r})"


def to_bytes(raw: RawMessage) -> bytes:
    if isinstance(raw, str):
        return raw.encode("utf-8", errors="surrogateescape")
    return bytes(raw)


# ---------------------------------------------------------------------------
# RFC 2047
# ---------------------------------------------------------------------------

def _decode_word(word: str) -> str:
    out: List[str] = []
    for chunk, charset in decode_header(word):
        if isinstance(chunk, str):
            out.append(chunk)
            continue
        # RFC 2231 allows a language suffix: =?utf-8*en?Q?...?=
        out.append(decode_to_text(chunk, (charset or "").split("*", 1)[0]))
    return "".join(out)


def decode_encoded_words(value: str) -> str:
    """
    Replace every encoded word in `value` with its decoded text.

    Whitespace between two adjacent encoded words is dropped (RFC 2047 6.2).
    A word that fails to decode is left as the raw =?...?= text.
    """
    out: List[str] = []
    pos = 0
    prev_was_word = False
    for m in _ENCODED_WORD_RE.finditer(value):
        gap = value[pos:m.start()]
        if not (prev_was_word and gap.strip() == ""):
            out.append(gap)
        try:
            out.append(_decode_word(m.group(0)))
            prev_was_word = True
        except (UnsupportedCharset, HeaderParseError, ValueError) as exc:
            logger.warning(
                "Failed to decode encoded word {word!r}: {err}; keeping raw text",
                word=m.group(0),
                err=exc,
            )
            out.append(m.group(0))
            prev_was_word = False
        pos = m.end()
    out.append(value[pos:])
    return "".join(out)


# ---------------------------------------------------------------------------
# Header block
# ---------------------------------------------------------------------------

def split_message(raw: RawMessage) -> Tuple[bytes, bytes]:
    """
    Split at the first empty line into (header_block, body).
    A message that starts with an empty line has no headers.
    """
    data = to_bytes(raw)
    if data.startswith(b"\r\n"):
        return b"", data[2:]
    if data.startswith(b"\n"):
        return b"", data[1:]

    m = _BLANK_LINE_RE.search(data)
    if m is None:
        raise MalformedHeaderBlock("no blank line between header block and body")
    return data[:m.start()], data[m.end():]


def _decode_block(block: bytes) -> str:
    try:
        return block.decode("utf-8")
    except UnicodeDecodeError:
        logger.warning("Header block is not valid UTF-8; reading raw 8-bit bytes as ISO-8859-1")
        return decode_to_text(block, "iso-8859-1")


def parse_header_lines(block: bytes) -> List[Tuple[str, str]]:
    """
    Parse a header block into raw (name, value) pairs, unfolding continued
    lines. Duplicates and order are preserved.
    """
    text = _decode_block(block)
    pairs: List[Tuple[str, str]] = []
    for line in _LINE_SPLIT_RE.split(text):
        if not line:
            continue
        if line[0] in " \t":
            if not pairs:
                raise MalformedHeaderBlock(f"continuation line before first header: {line!r}")
            name, value = pairs[-1]
            pairs[-1] = (name, f"{value} {line.strip()}".strip())
            continue

        name, colon, value = line.partition(":")
        if not colon or not name or name != name.strip() or " " in name:
            raise MalformedHeaderBlock(f"malformed header line: {line!r}")
        pairs.append((name, value.strip()))
    return pairs


def parse_headers(block: bytes) -> HeaderMap:
    return HeaderMap([(name, decode_encoded_words(value)) for name, value in parse_header_lines(block)])


def extract_headers(raw: RawMessage) -> Tuple[HeaderMap, bytes]:
    """
    Top-level header pass.

    Returns (headers, body). Message-ID is always present in the map,
    as an empty string when the message carries none.
    """
    block, body = split_message(raw)
    headers = parse_headers(block)

    if MESSAGE_ID not in headers:
        headers.add(MESSAGE_ID, "")
    return headers, body
