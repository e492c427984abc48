"""
mailtext/email_parser/body.py
-----------------------------
Body extractor: resolves the best plain-text rendering of a message body.

A body is either a Leaf (bytes + Content-Type + transfer encoding) or a
Container (multipart bytes whose children are framed by the boundary).
Containers are walked in declaration order and the first child that yields
non-empty text wins; the walk stops there. The policy is positional, not
"prefer text/plain", so a multipart/alternative that lists text/html first
returns the HTML rendering.
"""

import re
from dataclasses import dataclass
from typing import Iterator, List, Optional, Union

from loguru import logger

from mailtext.email_parser.charsets import decode_to_text
from mailtext.email_parser.content_type import ContentType, parse_content_type
from mailtext.email_parser.errors import (
    MessageError,
    MissingBoundary,
    NestingTooDeep,
    UnsupportedCharset,
    UnsupportedMediaType,
)
from mailtext.email_parser.headers import parse_headers, split_message
from mailtext.email_parser.html_text import html_to_text
from mailtext.email_parser.transfer import decode_transfer, normalize_encoding
from mailtext.utils.config import CONFIG

_LINE_END_RE = re.compile(rb"\r?\n\Z")


@dataclass(frozen=True)
class Leaf:
    content: bytes
    content_type: ContentType
    transfer_encoding: str = ""


@dataclass(frozen=True)
class Container:
    content: bytes
    content_type: ContentType

    def iter_chunks(self) -> Iterator[bytes]:
        return split_multipart(self.content, self.content_type.boundary or "")


BodyPart = Union[Leaf, Container]


# ---------------------------------------------------------------------------
# Building parts
# ---------------------------------------------------------------------------

def build_body_part(
    content: bytes,
    content_type: Union[str, ContentType, None],
    transfer_encoding: Optional[str] = None,
) -> BodyPart:
    if not isinstance(content_type, ContentType):
        content_type = parse_content_type(content_type)

    if content_type.is_multipart:
        if not content_type.boundary:
            raise MissingBoundary(content_type.media_type)
        return Container(content=content, content_type=content_type)
    return Leaf(
        content=content,
        content_type=content_type,
        transfer_encoding=normalize_encoding(transfer_encoding),
    )


def parse_part(chunk: bytes) -> BodyPart:
    """A multipart child: its own header block, a blank line, then its body."""
    block, body = split_message(chunk)
    headers = parse_headers(block)
    return build_body_part(
        body,
        headers.get_first("Content-Type") or None,
        headers.get_first("Content-Transfer-Encoding") or None,
    )


def split_multipart(content: bytes, boundary: str) -> Iterator[bytes]:
    """
    Yield the raw bytes of each part between `--boundary` delimiter lines.

    The preamble before the first delimiter and the epilogue after the
    closing `--boundary--` are discarded. The line break that precedes a
    delimiter belongs to the delimiter. A body truncated before its closing
    delimiter still yields the part in progress.
    """
    delimiter = b"--" + boundary.encode("utf-8")
    closing = delimiter + b"--"

    current: Optional[List[bytes]] = None
    for line in content.splitlines(keepends=True):
        marker = line.rstrip(b" \t\r\n")
        if marker == delimiter or marker == closing:
            if current is not None:
                yield _LINE_END_RE.sub(b"", b"".join(current))
            if marker == closing:
                return
            current = []
        elif current is not None:
            current.append(line)

    if current:
        yield b"".join(current)


# ---------------------------------------------------------------------------
# Extraction
# ---------------------------------------------------------------------------

def _extract_leaf(leaf: Leaf) -> str:
    media_type = leaf.content_type.media_type

    if media_type.startswith("text/plain"):
        data = decode_transfer(leaf.content.strip(), leaf.transfer_encoding)
        text = decode_to_text(data, leaf.content_type.charset)
        return text.replace("\r\n", "\n").strip()

    if media_type.startswith("text/html"):
        data = decode_transfer(leaf.content.strip(), leaf.transfer_encoding)
        try:
            markup = decode_to_text(data, leaf.content_type.charset)
        except UnsupportedCharset as exc:
            # HTML never hard-failed on charset; keep reading it as UTF-8
            logger.warning("HTML part in {charset!r}; reading as UTF-8", charset=exc.charset)
            markup = data.decode("utf-8", errors="replace")
        return html_to_text(markup).replace("\r\n", "\n")

    raise UnsupportedMediaType(media_type)


def _extract_container(container: Container, depth: int, max_depth: int) -> str:
    if depth >= max_depth:
        raise NestingTooDeep(max_depth)

    last_error: Optional[MessageError] = None
    for index, chunk in enumerate(container.iter_chunks()):
        try:
            text = _extract(parse_part(chunk), depth + 1, max_depth)
        except NestingTooDeep:
            raise
        except MessageError as exc:
            logger.debug(
                "Skipping part {index} of {media_type}: {err}",
                index=index,
                media_type=container.content_type.media_type,
                err=exc,
            )
            last_error = exc
            continue
        if text:
            return text

    raise UnsupportedMediaType(container.content_type.media_type) from last_error


def _extract(part: BodyPart, depth: int, max_depth: int) -> str:
    if isinstance(part, Container):
        return _extract_container(part, depth, max_depth)
    return _extract_leaf(part)


def extract_plain_text(
    body: bytes,
    content_type: Union[str, ContentType, None],
    transfer_encoding: Optional[str] = None,
    max_depth: int = CONFIG.MAX_NESTING_DEPTH,
) -> str:
    """
    Return the best-effort plain text of a body.

    Args:
        body: raw body bytes (after the header block).
        content_type: Content-Type header value or parsed ContentType;
            None/blank means text/plain; charset="utf-8".
        transfer_encoding: Content-Transfer-Encoding header value.
        max_depth: how many multipart levels may be nested.

    Raises:
        ExtractError / ParseError subclasses; see errors.py.
    """
    part = build_body_part(body, content_type, transfer_encoding)
    return _extract(part, 0, max_depth)
