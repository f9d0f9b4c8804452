"""Address checks applied before any token is issued or looked up."""

from __future__ import annotations

import ipaddress

from email_validator import EmailNotValidError, validate_email

from app.core.exceptions import InvalidEmail

BLOCKED_DOMAINS = frozenset({"localhost", "localhost.localdomain"})
BLOCKED_SUFFIXES = (".localhost", ".local", ".internal", ".lan", ".home.arpa", ".localdomain")


def _is_ip_address(domain: str) -> bool:
    candidate = domain.strip("[]")
    if candidate.lower().startswith("ipv6:"):
        candidate = candidate[5:]
    try:
        ipaddress.ip_address(candidate)
    except ValueError:
        return False
    return True


def is_internal_domain(domain: str) -> bool:
    domain = domain.lower().rstrip(".")
    if domain in BLOCKED_DOMAINS or _is_ip_address(domain):
        return True
    return domain.endswith(BLOCKED_SUFFIXES)


def validate_email_address(email: str | None) -> str:
    """Return the normalized address or raise :class:`InvalidEmail`."""
    if not email or not isinstance(email, str):
        raise InvalidEmail()
    if "\n" in email or "\r" in email:
        raise InvalidEmail("invalid_email_newline")

    candidate = email.strip().lower()
    _, sep, domain = candidate.rpartition("@")
    if not sep or not domain:
        raise InvalidEmail()
    if is_internal_domain(domain):
        raise InvalidEmail("invalid_email_domain")

    try:
        validate_email(candidate, check_deliverability=False)
    except EmailNotValidError as exc:
        raise InvalidEmail() from exc
    return candidate
