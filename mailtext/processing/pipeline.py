"""
mailtext/processing/pipeline.py
-------------------------------
Turns a transport-level message into an Email record and screens out
messages that are not worth further (LLM) processing.

Steps:
- Decode the base64url transport envelope (Gmail "raw" format)
- parse_email -> plain text body + headers
- Split the sender into address / display name
- Screen: too old, empty or overlong body, no-reply senders

Fetching, caching and spam classification are the caller's business.
"""

import base64
import binascii
import re
from dataclasses import asdict, dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from loguru import logger

from mailtext.email_parser.addresses import extract_email_and_name, is_no_reply
from mailtext.email_parser.errors import TransferDecodeFailed
from mailtext.email_parser.headers import RawMessage
from mailtext.email_parser.parser import parse_email
from mailtext.utils.config import CONFIG, ParserConfig

# Junk reasons
BAD_FORM = "BAD_FORM"
NOREPLY = "NOREPLY"
OLD = "OLD"

_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class Email:
    id: str
    thread_id: str
    sender: str
    sender_name: str
    sender_address: str
    subject: str
    body: str
    snippet: str = ""
    date: Optional[datetime] = None
    message_id: str = ""


# ---------------------------------------------------------------------------
# Utility helpers
# ---------------------------------------------------------------------------

def decode_raw_message(raw_b64url: str) -> bytes:
    """
    Decode a base64url transport envelope. Missing '=' padding is tolerated.
    """
    compact = _WHITESPACE_RE.sub("", raw_b64url or "")
    compact += "=" * (-len(compact) % 4)
    try:
        return base64.b64decode(compact, altchars=b"-_", validate=True)
    except (binascii.Error, ValueError) as exc:
        raise TransferDecodeFailed("base64url", str(exc)) from exc


def internal_date_to_datetime(internal_date_ms: int) -> datetime:
    """Epoch milliseconds -> aware UTC datetime."""
    return datetime.fromtimestamp(internal_date_ms / 1000, tz=timezone.utc)


def email_to_dict(email: Email) -> Dict[str, Any]:
    out = asdict(email)
    out["date"] = email.date.isoformat() if email.date else None
    return out


# ---------------------------------------------------------------------------
# Main entry points
# ---------------------------------------------------------------------------

def process_message(
    raw: RawMessage,
    message_id: str = "",
    thread_id: str = "",
    snippet: str = "",
    internal_date: Optional[int] = None,
) -> Email:
    """
    Parse a raw message and assemble an Email record.

    A missing From or Subject is recorded as "" (unknown), never an error.
    Parser errors propagate to the caller, which decides whether to skip
    the message or abort the batch.
    """
    body, headers = parse_email(raw)

    sender = headers.get_first("From")
    address, name = extract_email_and_name(sender)
    date = internal_date_to_datetime(internal_date) if internal_date is not None else None

    return Email(
        id=message_id,
        thread_id=thread_id,
        sender=sender,
        sender_name=name,
        sender_address=address,
        subject=headers.get_first("Subject"),
        body=body,
        snippet=snippet,
        date=date,
        message_id=headers.get_first("Message-ID"),
    )


def is_too_old(email: Email, now: Optional[datetime] = None, lookback_days: int = CONFIG.LOOKBACK_DAYS) -> bool:
    if lookback_days <= 0 or email.date is None:
        return False
    now = now or datetime.now(timezone.utc)
    return email.date < now - timedelta(days=lookback_days)


def screen_email(email: Email, now: Optional[datetime] = None, config: ParserConfig = CONFIG) -> Optional[str]:
    """
    Cheap, non-LLM junk screen.

    Returns None for a message worth processing, otherwise one of
    OLD, BAD_FORM, NOREPLY (checked in that order).
    """
    if is_too_old(email, now=now, lookback_days=config.LOOKBACK_DAYS):
        logger.debug("email too old: {date} {sender}", date=email.date, sender=email.sender)
        return OLD
    if not email.body:
        logger.debug("empty email: {sender}", sender=email.sender)
        return BAD_FORM
    size = len(email.body.encode("utf-8"))
    if size > config.MAX_BODY_BYTES:
        logger.debug("email too long: {n} bytes {sender}", n=size, sender=email.sender)
        return BAD_FORM
    if is_no_reply(email.sender):
        logger.debug("no reply email: {sender}", sender=email.sender)
        return NOREPLY
    return None
