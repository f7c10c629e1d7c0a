import re
import sys

from loguru import logger

_BEARER_RE = re.compile(r"(Bearer\s+)[^\s'\",}]+", re.IGNORECASE)
_KEY_RE = re.compile(r"sk-[A-Za-z0-9_\-]{8,}")


def redact(text: str) -> str:
    """Mask bearer tokens and provider keys before they reach a sink."""
    text = _BEARER_RE.sub(r"\1***", text)
    return _KEY_RE.sub("sk-***", text)


def _redact_record(record):
    record["message"] = redact(record["message"])


def configure_logging(level: str = "INFO") -> None:
    logger.remove()
    logger.configure(patcher=_redact_record)
    logger.add(
        sys.stderr,
        level=level,
        format="<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | "
               "<cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>",
        backtrace=True,
        diagnose=False,
    )
