from __future__ import annotations

import hashlib
import logging
import re
from logging.config import dictConfig


EMAIL_RE = re.compile(r"[A-Za-z0-9._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,}")
# Supabase access and refresh tokens are JWTs.
JWT_RE = re.compile(r"eyJ[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+")


class _CredentialRedactionFilter(logging.Filter):
    """Scrub sign-in emails and session tokens from auth and store log lines."""

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = redact(record.msg)
        if isinstance(record.args, tuple):
            record.args = tuple(redact(arg) if isinstance(arg, str) else arg for arg in record.args)
        return True


def redact(value: str) -> str:
    value = JWT_RE.sub("[redacted-token]", value)
    return EMAIL_RE.sub("[redacted-email]", value)


def setup_logging(level: str = "INFO") -> None:
    dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "filters": {
                "redact_credentials": {
                    "()": _CredentialRedactionFilter,
                }
            },
            "formatters": {
                "default": {
                    "format": "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
                }
            },
            "handlers": {
                "console": {
                    "class": "logging.StreamHandler",
                    "formatter": "default",
                    "filters": ["redact_credentials"],
                }
            },
            "root": {
                "handlers": ["console"],
                "level": level,
            },
        }
    )


def user_fingerprint(user_id: str) -> str:
    return hashlib.sha256(user_id.encode("utf-8")).hexdigest()[:12]
