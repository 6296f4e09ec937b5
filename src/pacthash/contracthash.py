"""
Contract-hash key tweaking.

Each public key P in a redeem script is replaced by

    P' = P + HMAC-SHA256(key=ser(P), msg=contract) * G

and the holder of the matching secret s derives s' = s + tweak (mod n), so
s' * G == P'. ``ser(P)`` is the 33-byte compressed encoding.

A redeem script is first split into a template (script with key
placeholders) and its keys; the tweaked keys are then put back in order.
"""
from __future__ import annotations

import hashlib
import hmac
from dataclasses import dataclass
from enum import Enum
from typing import Any, List, Sequence, Tuple, Union

from .errors import TemplateError, TweakError
from .script import (
    OP_CHECKMULTISIG,
    OP_CHECKMULTISIGVERIFY,
    OP_CHECKSIG,
    OP_CHECKSIGVERIFY,
    is_small_num,
    iter_instructions,
    pushdata,
)

SECP256K1_ORDER = int(
    "FFFFFFFFFFFFFFFFFFFFFFFFFFFFFFFEBAAEDCE6AF48A03BBFD25E8CD0364141", 16
)
COMPRESSED_KEY_LEN = 33
UNCOMPRESSED_KEY_LEN = 65


def _imp_coincurve() -> Any:
    import importlib
    try:
        return importlib.import_module('coincurve')
    except ImportError as e:
        raise ImportError(f'coincurve not available: {e}')


class _Key:
    """Placeholder for a public key inside a template."""

    def __repr__(self) -> str:
        return 'KEY'


KEY = _Key()

Element = Union[bytes, _Key]


class _Seek(Enum):
    KEYS = 1           # arbitrary pushes allowed, no key seen since last CHECKSIG
    COPYING_KEYS = 2   # inside a run of keys
    CHECKMULTISIG = 3  # keys followed by a number, expecting CHECKMULTISIG


@dataclass(frozen=True)
class Template:
    """Redeem script with its public keys replaced by ``KEY`` placeholders.

    Non-key elements hold the raw encoding of the original instruction so
    refilling a template with the original keys reproduces the script.
    """
    elements: Tuple[Element, ...]

    def required_keys(self) -> int:
        return sum(1 for e in self.elements if e is KEY)

    def to_script(self, keys: Sequence[bytes]) -> bytes:
        need = self.required_keys()
        if len(keys) < need:
            raise TemplateError(f'too few keys for template: need {need}, got {len(keys)}')
        if len(keys) > need:
            raise TemplateError(f'too many keys for template: need {need}, got {len(keys)}')
        out = bytearray()
        it = iter(keys)
        for e in self.elements:
            if e is KEY:
                out += pushdata(next(it))
            else:
                out += e
        return bytes(out)


def _parse_pubkey(data: bytes) -> Any:
    if len(data) not in (COMPRESSED_KEY_LEN, UNCOMPRESSED_KEY_LEN):
        return None
    PublicKey = _imp_coincurve().PublicKey
    try:
        return PublicKey(data)
    except ValueError:
        return None


def untemplate(script: bytes) -> Tuple[Template, List[bytes]]:
    """Split a redeem script into a template and its compressed public keys.

    Keys must come in runs terminated by CHECKSIG(VERIFY), or by a number
    followed by CHECKMULTISIG(VERIFY). Arbitrary pushes are only accepted
    outside such runs.
    """
    elements: List[Element] = []
    keys: List[bytes] = []
    mode = _Seek.KEYS
    for ins in iter_instructions(script):
        if ins.data is not None:
            if _parse_pubkey(ins.data) is not None:
                if len(ins.data) == UNCOMPRESSED_KEY_LEN:
                    raise TemplateError(f'uncompressed key at byte {ins.offset}')
                if mode is _Seek.CHECKMULTISIG:
                    raise TemplateError(f'expected CHECKMULTISIG at byte {ins.offset}')
                keys.append(ins.data)
                elements.append(KEY)
                mode = _Seek.COPYING_KEYS
                continue
            if mode is _Seek.COPYING_KEYS:
                raise TemplateError(f'expected key at byte {ins.offset}')
            if mode is _Seek.CHECKMULTISIG:
                raise TemplateError(f'expected CHECKMULTISIG at byte {ins.offset}')
        elif ins.opcode in (OP_CHECKSIG, OP_CHECKSIGVERIFY):
            if mode is _Seek.KEYS:
                raise TemplateError(f'CHECKSIG without key at byte {ins.offset}')
            mode = _Seek.KEYS
        elif ins.opcode in (OP_CHECKMULTISIG, OP_CHECKMULTISIGVERIFY):
            if mode is not _Seek.CHECKMULTISIG:
                raise TemplateError(f'CHECKMULTISIG without key count at byte {ins.offset}')
            mode = _Seek.KEYS
        elif is_small_num(ins.opcode):
            if mode is _Seek.CHECKMULTISIG:
                raise TemplateError(f'expected CHECKMULTISIG at byte {ins.offset}')
            if mode is _Seek.COPYING_KEYS:
                mode = _Seek.CHECKMULTISIG
        elements.append(ins.raw)
    return Template(tuple(elements)), keys


def compute_tweak(pubkey: bytes, contract: bytes) -> bytes:
    """HMAC-SHA256 of the contract keyed by the compressed public key."""
    if len(pubkey) != COMPRESSED_KEY_LEN:
        raise TweakError('tweak must be keyed by a 33-byte compressed public key')
    tweak = hmac.new(pubkey, contract, hashlib.sha256).digest()
    t_int = int.from_bytes(tweak, 'big')
    if t_int == 0 or t_int >= SECP256K1_ORDER:
        raise TweakError('contract hash is not a valid secp256k1 scalar')
    return tweak


def tweak_keys(keys: Sequence[bytes], contract: bytes) -> List[bytes]:
    """Tweak each compressed public key by the contract; returns compressed keys."""
    PublicKey = _imp_coincurve().PublicKey
    out: List[bytes] = []
    for k in keys:
        try:
            pk = PublicKey(k)
        except ValueError as exc:
            raise TweakError(f'invalid public key {k.hex()}: {exc}')
        tweak = compute_tweak(pk.format(compressed=True), contract)
        try:
            tweaked = pk.add(tweak)
        except ValueError as exc:
            raise TweakError(f'failed to apply tweak: {exc}')
        out.append(tweaked.format(compressed=True))
    return out


def tweak_secret_key(secret: bytes, contract: bytes) -> bytes:
    """Tweak a 32-byte secret so it matches ``tweak_keys`` of its public key."""
    PrivateKey = _imp_coincurve().PrivateKey
    try:
        sk = PrivateKey(secret)
    except ValueError as exc:
        raise TweakError(f'invalid secret key: {exc}')
    tweak = compute_tweak(sk.public_key.format(compressed=True), contract)
    try:
        return sk.add(tweak).secret
    except ValueError as exc:
        raise TweakError(f'failed to apply tweak: {exc}')
