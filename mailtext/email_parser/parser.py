"""
mailtext/email_parser/parser.py
-------------------------------
Entry point: raw RFC 822 message -> (plain_text_body, headers).

Two independent passes over the input:
- header extraction (RFC 822 framing + RFC 2047 decoding)
- body extraction (transfer/charset decoding, recursive multipart walk)
"""

from typing import Tuple

from loguru import logger

from mailtext.email_parser.body import extract_plain_text
from mailtext.email_parser.headers import HeaderMap, RawMessage, extract_headers
from mailtext.utils.config import CONFIG


def parse_email(raw: RawMessage, max_depth: int = CONFIG.MAX_NESTING_DEPTH) -> Tuple[str, HeaderMap]:
    """
    Parses a raw email into its best plain-text body and decoded headers.

    Args:
        raw: the full message as retrieved from the transport (bytes or str).
        max_depth: multipart nesting bound.

    Returns:
        body: plain text, possibly empty
        headers: HeaderMap, always containing a Message-ID key

    Raises:
        ParseError when the header block or a Content-Type is malformed,
        ExtractError when the top-level body yields no text.
    """
    headers, body = extract_headers(raw)

    content_type = headers.get_first("Content-Type") or None
    encoding = headers.get_first("Content-Transfer-Encoding") or None
    text = extract_plain_text(body, content_type, encoding, max_depth=max_depth)

    logger.debug(
        "Parsed message {message_id!r}: {n_headers} headers, {n_chars} body chars",
        message_id=headers.get_first("Message-ID"),
        n_headers=len(headers),
        n_chars=len(text),
    )
    return text, headers
