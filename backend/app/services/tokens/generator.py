"""Secret generation for reset codes and verification links.

Both generators draw from :mod:`secrets`, which reads the operating system
CSPRNG. Nothing here is seeded or derived from the clock.
"""

from __future__ import annotations

import secrets

from app.core.exceptions import GenerationError

MIN_CODE_LENGTH = 1
MAX_CODE_LENGTH = 10
OPAQUE_TOKEN_BYTES = 32  # 256 bits


def generate_numeric_code(length: int) -> str:
    """Return ``length`` decimal digits drawn uniformly from ``[0, 10**length)``."""
    if isinstance(length, bool) or not isinstance(length, int):
        raise GenerationError("code_length_must_be_int")
    if not MIN_CODE_LENGTH <= length <= MAX_CODE_LENGTH:
        raise GenerationError("code_length_out_of_range")
    try:
        value = secrets.randbelow(10**length)
    except (OSError, NotImplementedError) as exc:
        raise GenerationError("entropy_source_unavailable") from exc
    return f"{value:0{length}d}"


def generate_opaque_token() -> str:
    """Return a URL-safe token carrying 256 bits of entropy."""
    try:
        return secrets.token_urlsafe(OPAQUE_TOKEN_BYTES)
    except (OSError, NotImplementedError) as exc:
        raise GenerationError("entropy_source_unavailable") from exc
