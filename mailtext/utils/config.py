"""
Global configuration values for the message parser and screening helpers.
"""

import os
from dataclasses import dataclass, field


def env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class ParserConfig:
    # Multipart recursion bound; deeper input raises NestingTooDeep
    MAX_NESTING_DEPTH: int = 20
    # Used when a message or part carries no Content-Type header
    DEFAULT_CONTENT_TYPE: str = 'text/plain; charset="utf-8"'

    # Screening
    MAX_BODY_BYTES: int = 3000   # UTF-8 size above which a body is bad form
    LOOKBACK_DAYS: int = 0       # 0 disables the age check

    # MAILTEXT_DEBUG=1 turns on DEBUG-level logging in the API service
    DEBUG: bool = field(default_factory=lambda: env_flag("MAILTEXT_DEBUG"))


CONFIG = ParserConfig()
