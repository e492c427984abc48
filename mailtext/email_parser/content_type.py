"""
mailtext/email_parser/content_type.py
-------------------------------------
Content-Type resolver: turns a header value such as

    multipart/alternative; boundary="b1"; charset=UTF-8

into a ContentType(media_type, params). The media type is lowercased and
parameter names are matched case-insensitively. RFC 2231 extended and
continued parameters (name*=utf-8''..., name*0=, name*1*=) are folded
back into a single value.
"""

import re
from dataclasses import dataclass, field
from email.utils import collapse_rfc2231_value, decode_params, unquote
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple

from loguru import logger

from mailtext.email_parser.charsets import decode_to_text
from mailtext.email_parser.errors import InvalidContentType, UnsupportedCharset
from mailtext.utils.config import CONFIG

_TOKEN_RE = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")


@dataclass(frozen=True)
class ContentType:
    media_type: str
    params: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    @property
    def maintype(self) -> str:
        return self.media_type.split("/", 1)[0]

    @property
    def is_multipart(self) -> bool:
        return self.maintype == "multipart"

    def param(self, name: str, default: Optional[str] = None) -> Optional[str]:
        return self.params.get(name.lower(), default)

    @property
    def charset(self) -> Optional[str]:
        return self.param("charset")

    @property
    def boundary(self) -> Optional[str]:
        return self.param("boundary")


# ---------------------------------------------------------------------------
# Tokenizing
# ---------------------------------------------------------------------------

def _split_segments(value: str) -> List[str]:
    """Split on ';' outside of quoted strings."""
    segments: List[str] = []
    buf: List[str] = []
    in_quotes = False
    escaped = False
    for ch in value:
        if escaped:
            buf.append(ch)
            escaped = False
        elif ch == "\\" and in_quotes:
            buf.append(ch)
            escaped = True
        elif ch == '"':
            buf.append(ch)
            in_quotes = not in_quotes
        elif ch == ";" and not in_quotes:
            segments.append("".join(buf))
            buf = []
        else:
            buf.append(ch)
    if in_quotes:
        raise InvalidContentType(value, "unterminated quoted string")
    segments.append("".join(buf))
    return segments


def _parse_media_type(value: str, segment: str) -> str:
    media_type = segment.strip().lower()
    maintype, slash, subtype = media_type.partition("/")
    if not slash or not _TOKEN_RE.match(maintype) or not _TOKEN_RE.match(subtype):
        raise InvalidContentType(value, "expected type/subtype")
    return media_type


def _parse_param(value: str, segment: str) -> Tuple[str, str]:
    """Validate one `name=value` segment; the value keeps its quotes."""
    name, eq, raw = segment.partition("=")
    name = name.strip().lower()
    raw = raw.strip()
    if not eq or not _TOKEN_RE.match(name) or not raw:
        raise InvalidContentType(value, f"bad parameter {segment.strip()!r}")
    if raw.startswith('"') and (len(raw) < 2 or not raw.endswith('"')):
        raise InvalidContentType(value, f"bad quoted value for {name!r}")
    return name, raw


def _collapse(name: str, decoded) -> str:
    if not isinstance(decoded, tuple):
        return collapse_rfc2231_value(decoded)
    # RFC 2231 extended value: (charset, language, "percent-decoded latin-1 text")
    charset, language, text = decoded
    data = unquote(text).encode("latin-1", errors="replace")
    try:
        return decode_to_text(data, charset)
    except UnsupportedCharset:
        logger.warning("Parameter {name!r} in unsupported charset {charset!r}", name=name, charset=charset)
        return collapse_rfc2231_value((charset, language, unquote(text)))


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def parse_content_type(value: Optional[str], default: str = CONFIG.DEFAULT_CONTENT_TYPE) -> ContentType:
    """
    Parse a Content-Type header value.

    An absent or blank value resolves to `default` (text/plain; charset=utf-8).
    Raises InvalidContentType when the value is not `type/subtype; k=v; ...`.
    """
    if value is None or not value.strip():
        value = default

    segments = _split_segments(value)
    media_type = _parse_media_type(value, segments[0])

    pairs = [_parse_param(value, seg) for seg in segments[1:] if seg.strip()]
    params: Dict[str, str] = {}
    for name, decoded in decode_params([(media_type, "")] + pairs)[1:]:
        params.setdefault(name, _collapse(name, decoded))
    return ContentType(media_type=media_type, params=MappingProxyType(params))
