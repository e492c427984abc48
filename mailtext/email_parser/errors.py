"""
mailtext/email_parser/errors.py
-------------------------------
Typed failures raised while parsing a raw message.

ParseError covers the structural side (header block, Content-Type syntax),
ExtractError covers turning a body into plain text.
"""


class MessageError(Exception):
    """Base class for every failure raised by the parser."""


# ---------------------------------------------------------------------------
# Structural failures
# ---------------------------------------------------------------------------

class ParseError(MessageError):
    pass


class MalformedHeaderBlock(ParseError):
    pass


class InvalidContentType(ParseError):
    def __init__(self, value: str, reason: str = ""):
        self.value = value
        self.reason = reason
        msg = f"invalid Content-Type: {value!r}"
        if reason:
            msg += f" ({reason})"
        super().__init__(msg)


# ---------------------------------------------------------------------------
# Body extraction failures
# ---------------------------------------------------------------------------

class ExtractError(MessageError):
    pass


class MissingBoundary(ExtractError):
    def __init__(self, media_type: str):
        self.media_type = media_type
        super().__init__(f"{media_type}: no boundary in params")


class TransferDecodeFailed(ExtractError):
    def __init__(self, encoding: str, detail: str = ""):
        self.encoding = encoding
        super().__init__(f"failed to decode {encoding} payload: {detail}".rstrip(": "))


class UnsupportedCharset(ExtractError):
    def __init__(self, charset: str):
        self.charset = charset
        super().__init__(f"unsupported charset: {charset}")


class UnsupportedMediaType(ExtractError):
    def __init__(self, media_type: str):
        self.media_type = media_type
        super().__init__(f"no plain text content found: {media_type}")


class NestingTooDeep(ExtractError):
    def __init__(self, depth: int):
        self.depth = depth
        super().__init__(f"multipart nesting exceeds {depth} levels")
