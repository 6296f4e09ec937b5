"""
Base58check codec for legacy addresses and WIF private keys.

Thin, network-aware wrappers around the ``base58`` package: decoding returns
the network the string was encoded for so callers can compare it with the
network they were configured for.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

import base58

from .errors import Base58Error
from .network import Network, network_for_address_version, network_for_secret_version
from .script import hash160

HASH_LEN = 20
SECRET_LEN = 32
COMPRESSED_SUFFIX = b"\x01"


class AddressType(Enum):
    PUBKEY_HASH = "p2pkh"
    SCRIPT_HASH = "p2sh"


@dataclass(frozen=True)
class Address:
    network: Network
    type: AddressType
    hash: bytes

    def version(self) -> int:
        p = self.network.params
        return p.script_hash if self.type is AddressType.SCRIPT_HASH else p.pubkey_hash


@dataclass(frozen=True)
class PrivateKey:
    """Decoded WIF private key.

    Attributes:
        network: network the key was encoded for.
        secret: 32-byte secp256k1 scalar.
        compressed: whether the matching public key is used compressed.
    """
    network: Network
    secret: bytes
    compressed: bool = True


def _b58decode_check(s: str) -> bytes:
    try:
        return base58.b58decode_check(s.strip())
    except ValueError as exc:
        raise Base58Error(s, str(exc) or 'decode failed') from exc


def decode_address(s: str) -> Address:
    raw = _b58decode_check(s)
    if len(raw) != 1 + HASH_LEN:
        raise Base58Error(s, f'address payload must be {1 + HASH_LEN} bytes (got {len(raw)})')
    found = network_for_address_version(raw[0])
    if found is None:
        raise Base58Error(s, f'unknown address version 0x{raw[0]:02x}')
    network, is_p2sh = found
    return Address(network, AddressType.SCRIPT_HASH if is_p2sh else AddressType.PUBKEY_HASH, raw[1:])


def encode_address(addr: Address) -> str:
    if len(addr.hash) != HASH_LEN:
        raise ValueError(f'address hash must be {HASH_LEN} bytes')
    return base58.b58encode_check(bytes([addr.version()]) + addr.hash).decode('ascii')


def p2sh_address(script: bytes, network: Network) -> str:
    """Base58check P2SH address of a redeem script on the given network."""
    return encode_address(Address(network, AddressType.SCRIPT_HASH, hash160(script)))


def decode_privkey(s: str) -> PrivateKey:
    raw = _b58decode_check(s)
    if len(raw) == 1 + SECRET_LEN + 1 and raw[-1:] == COMPRESSED_SUFFIX:
        compressed = True
    elif len(raw) == 1 + SECRET_LEN:
        compressed = False
    else:
        raise Base58Error(s, f'private key payload has invalid length {len(raw)}')
    network = network_for_secret_version(raw[0])
    if network is None:
        raise Base58Error(s, f'unknown private key version 0x{raw[0]:02x}')
    return PrivateKey(network, raw[1:1 + SECRET_LEN], compressed)


def encode_privkey(key: PrivateKey) -> str:
    if len(key.secret) != SECRET_LEN:
        raise ValueError(f'secret key must be {SECRET_LEN} bytes')
    payload = bytes([key.network.params.secret_key]) + key.secret
    if key.compressed:
        payload += COMPRESSED_SUFFIX
    return base58.b58encode_check(payload).decode('ascii')
