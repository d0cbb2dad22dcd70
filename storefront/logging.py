"""
Storefront logging.

One stdout handler on the root logger, installed at import. Module code only
needs `get_logger(__name__)`; anything that ends up in a log line from a
shopper (session ids, emails, gateway messages) goes through one of the
masking helpers below first.

Env:
    LOG_LEVEL  - DEBUG / INFO / WARNING / ERROR (default INFO)
    VERCEL     - "1" on Vercel, whose log drain stamps its own time
"""

import logging
import os
import sys
from functools import cache
from typing import Optional

LOCAL_FORMAT = "%(asctime)s %(levelname)-7s [%(name)s] %(message)s"
VERCEL_FORMAT = "%(levelname)s [%(name)s] %(message)s"

# Client libraries that log every Supabase / Upstash / Stripe round trip at INFO
NOISY_LOGGERS = ("httpx", "httpcore", "hpack", "postgrest", "upstash_redis")

ID_PREFIX_LENGTH = 8


def _level_from_env() -> int:
    name = os.environ.get("LOG_LEVEL", "INFO").upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def configure_logging(level: Optional[int] = None, *, force: bool = False) -> logging.Logger:
    """
    Install the storefront handler on the root logger.

    A second call is a no-op unless `force` is set, so importing this module
    from every package never stacks handlers. Returns the root logger.
    """
    root = logging.getLogger()
    if root.handlers and not force:
        return root

    for existing in list(root.handlers):
        root.removeHandler(existing)

    level = _level_from_env() if level is None else level
    on_vercel = os.environ.get("VERCEL") == "1"

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(VERCEL_FORMAT if on_vercel else LOCAL_FORMAT))
    root.addHandler(handler)
    root.setLevel(level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
    return root


configure_logging()


@cache
def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


# ==================== MASKING ====================

def _strip_control(value: str) -> str:
    """Neutralize line breaks and NULs so one value stays one log line (CWE-117)."""
    return value.replace("\r", "\\r").replace("\n", "\\n").replace("\t", "\\t").replace("\x00", "")


def sanitize_id_for_logging(id_value: Optional[str]) -> str:
    """
    Cart session ids double as bearer tokens for the cart, and Stripe ids are
    long; the first few characters are enough to follow a request in the logs.
    """
    if not id_value:
        return "N/A"
    return _strip_control(str(id_value))[:ID_PREFIX_LENGTH]


def sanitize_string_for_logging(value: Optional[str], max_length: int = 50) -> str:
    """Artwork titles, gateway messages and other free text, cut to `max_length`."""
    if not value:
        return "N/A"
    text = _strip_control(str(value))
    return text if len(text) <= max_length else text[:max_length] + "..."


def mask_email_for_logging(email: Optional[str]) -> str:
    """Buyer email as `a***@domain` so order logs can be matched without storing the address."""
    if not email or "@" not in email:
        return "N/A"
    local, _, domain = _strip_control(str(email)).rpartition("@")
    return f"{local[:1]}***@{domain}"


__all__ = [
    "NOISY_LOGGERS",
    "configure_logging",
    "get_logger",
    "mask_email_for_logging",
    "sanitize_id_for_logging",
    "sanitize_string_for_logging",
]
