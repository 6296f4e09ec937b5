"""
Hex input helpers (small, focused)

Goals
- Centralize hex parsing so malformed hex and wrong lengths fail with
  distinct, typed errors.
- Keep the "is this hex" check usable on its own.
"""
from __future__ import annotations

import binascii
import re
from typing import Optional

from .errors import BadLengthError, HexError


_HEX_RE = re.compile(r"^[0-9a-fA-F]*$")


def is_hex_str(s: str) -> bool:
    return bool(_HEX_RE.fullmatch(s or "")) and len(s) % 2 == 0


def parse_hex(name: str, s: Optional[str], length: Optional[int] = None) -> bytes:
    """Parse a hex string into bytes with optional fixed-length validation.

    Args:
        name: human-readable name for error messages.
        s: hex string (case-insensitive, even length required, may be empty).
        length: expected length in bytes (optional). If set, enforce exact length.

    Returns:
        Decoded bytes.

    Raises:
        HexError: the input is missing or not valid hex.
        BadLengthError: the decoded byte count differs from ``length``.
    """
    if s is None:
        raise HexError(name, s)
    s = s.strip()
    if not is_hex_str(s):
        raise HexError(name, s)
    try:
        b = binascii.unhexlify(s)
    except (binascii.Error, ValueError) as exc:  # pragma: no cover - regex already filters
        raise HexError(name, s) from exc
    if length is not None and len(b) != length:
        raise BadLengthError(name, len(b), length)
    return b
