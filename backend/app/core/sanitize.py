"""Input sanitization helpers for request payloads."""

from __future__ import annotations

import re
import unicodedata

_WHITESPACE_RE = re.compile(r"\s+")


def _strip_control_chars(value: str) -> str:
    return "".join(ch for ch in value if unicodedata.category(ch) != "Cc")


def clean_single_line(value: str | None) -> str:
    if value is None:
        return ""
    if not isinstance(value, str):
        value = str(value)
    value = _strip_control_chars(value).strip()
    return _WHITESPACE_RE.sub(" ", value)


def clean_email(value: str | None) -> str:
    return clean_single_line(value).lower()


def clean_code(value: str | None) -> str:
    return clean_single_line(value).replace(" ", "")
