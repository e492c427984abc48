# mailtext/utils/logging_utils.py

from pathlib import Path
from loguru import logger

_LOGGER_CONFIGURED = False


def configure_logging(log_dir: str = "logs", debug: bool = False) -> None:
    """
    Configure loguru logger to log to both stdout and a file.
    Idempotent: safe to call multiple times.

    debug=True lowers both sinks to DEBUG so the parser's per-part
    diagnostics (skipped multipart children, charset fallbacks) show up.
    """
    global _LOGGER_CONFIGURED
    if _LOGGER_CONFIGURED:
        return

    level = "DEBUG" if debug else "INFO"
    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)

    # Remove default handlers (so we don't double-log)
    logger.remove()

    # Console
    logger.add(
        sink=lambda msg: print(msg, end=""),
        level=level,
        backtrace=False,
        diagnose=False,
    )

    # File
    logger.add(
        log_path / "mailtext.log",
        rotation="10 MB",
        retention="14 days",
        level=level,
        backtrace=False,
        diagnose=False,
        enqueue=True,
        encoding="utf-8",
    )

    if debug:
        logger.debug("Debug mode enabled; parser diagnostics will be logged")

    _LOGGER_CONFIGURED = True


def get_logger():
    """
    Return the shared loguru logger. Make sure configure_logging()
    was called once at app startup.
    """
    return logger
