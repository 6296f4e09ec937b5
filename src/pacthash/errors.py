"""
Error taxonomy for contract parsing, key tweaking and option resolution.

Every error is a ValueError so callers that only care about "bad input" can
catch that; each subclass carries the offending value(s) as attributes.
"""
from __future__ import annotations

from typing import Any, Optional


class PactHashError(ValueError):
    """Base class for all pacthash input and derivation failures."""


class Base58Error(PactHashError):
    """Base58check decoding failed (alphabet, checksum, version or length)."""

    def __init__(self, value: str, reason: str) -> None:
        super().__init__(f"invalid base58check string {value!r}: {reason}")
        self.value = value
        self.reason = reason


class HexError(PactHashError):
    def __init__(self, name: str, value: Optional[str]) -> None:
        super().__init__(f"Invalid hex for {name}: {value!r}")
        self.name = name
        self.value = value


class WrongNetworkError(PactHashError):
    """Decoded network did not match the configured one."""

    def __init__(self, observed: Any, expected: Any) -> None:
        super().__init__(f"network mismatch: got {observed}, expected {expected}")
        self.observed = observed
        self.expected = expected


class BadLengthError(PactHashError):
    def __init__(self, name: str, length: int, expected: int) -> None:
        super().__init__(f"{name} must be {expected} bytes (got {length})")
        self.name = name
        self.length = length
        self.expected = expected


class BadTypeError(PactHashError):
    """Unrecognized 4-byte contract type tag."""

    def __init__(self, data: bytes) -> None:
        super().__init__(f"unknown contract type {bytes(data)!r}")
        self.data = bytes(data)


class UsageError(PactHashError):
    """Illegal combination of command options."""


class ScriptError(PactHashError):
    def __init__(self, offset: int, reason: str) -> None:
        super().__init__(f"script parse error at byte {offset}: {reason}")
        self.offset = offset
        self.reason = reason


class TemplateError(PactHashError):
    """Redeem script could not be split into a template and keys, or refilled."""


class TweakError(PactHashError):
    """Contract hash produced an unusable tweak or tweaked key."""


class HashUnavailableError(PactHashError):
    """hashlib's OpenSSL build does not provide a required digest."""

    def __init__(self, algorithm: str) -> None:
        super().__init__(f"{algorithm} is not available in this Python's hashlib (OpenSSL build)")
        self.algorithm = algorithm
