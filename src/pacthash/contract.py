"""
Pay-to-contract commitments.

A contract is the 40-byte string fed to the contract-hash key tweak:

    type tag (4) || nonce (16) || data (20)

It can be given in full as hex, as a base58check address (the nonce is then
supplied separately) or as a 20-byte ASCII string (likewise). All three
paths must yield byte-identical serializations for the same logical
contract, otherwise the committing and verifying parties derive different
keys.
"""
from __future__ import annotations

import secrets
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional

from .address import AddressType, decode_address
from .errors import BadLengthError, BadTypeError, WrongNetworkError
from .hexutil import parse_hex
from .network import Network

#: Total length of a serialized contract
CONTRACT_LEN = 40
#: Length of the data portion of a contract
DATA_LEN = 20
NONCE_LEN = 16
TYPE_LEN = 4


class ContractType(Enum):
    TEXT = b"TEXT"
    PUBKEY_HASH = b"P2PH"
    SCRIPT_HASH = b"P2SH"

    def serialize(self) -> bytes:
        return self.value

    @classmethod
    def deserialize(cls, data: bytes) -> ContractType:
        """Interpret a 4-byte tag; exact match only."""
        try:
            return cls(bytes(data))
        except ValueError:
            raise BadTypeError(data) from None


_ADDRESS_TYPES = {
    AddressType.PUBKEY_HASH: ContractType.PUBKEY_HASH,
    AddressType.SCRIPT_HASH: ContractType.SCRIPT_HASH,
}


@dataclass(frozen=True)
class Nonce:
    """16 opaque bytes salting a contract."""
    data: bytes

    def __post_init__(self) -> None:
        if len(self.data) != NONCE_LEN:
            raise BadLengthError('nonce', len(self.data), NONCE_LEN)

    @classmethod
    def from_hex(cls, s: str) -> Nonce:
        return cls(parse_hex('nonce', s, length=NONCE_LEN))

    @classmethod
    def random(cls, source: Optional[Callable[[int], bytes]] = None) -> Nonce:
        """Draw a fresh nonce; ``source(n)`` must return n random bytes."""
        data = (source or secrets.token_bytes)(NONCE_LEN)
        if len(data) != NONCE_LEN:
            raise BadLengthError('random nonce source output', len(data), NONCE_LEN)
        return cls(data)

    @staticmethod
    def from_contract(contract: Contract) -> Nonce:
        return contract.nonce

    def serialize(self) -> bytes:
        return bytes(self.data)

    def hex(self) -> str:
        return self.data.hex()

    def __str__(self) -> str:
        return self.hex()

    def __format__(self, spec: str) -> str:
        if spec in ('', 'x'):
            return self.hex()
        return format(str(self), spec)


@dataclass(frozen=True)
class Contract:
    type: ContractType
    nonce: Nonce
    data: bytes

    def __post_init__(self) -> None:
        if not isinstance(self.type, ContractType):
            raise TypeError(f'contract type must be a ContractType (got {self.type!r})')
        if not isinstance(self.nonce, Nonce):
            raise TypeError(f'contract nonce must be a Nonce (got {self.nonce!r})')
        if len(self.data) != DATA_LEN:
            raise BadLengthError('contract data', len(self.data), DATA_LEN)

    def serialize(self) -> bytes:
        """Canonical tweak input: tag || nonce || data."""
        return self.type.serialize() + self.nonce.serialize() + bytes(self.data)

    def hex(self) -> str:
        return self.serialize().hex()

    @classmethod
    def from_hex(cls, s: str) -> Contract:
        """Decode a full contract; the blob carries its own nonce."""
        b = parse_hex('contract', s, length=CONTRACT_LEN)
        ty = ContractType.deserialize(b[:TYPE_LEN])
        return cls(ty, Nonce(b[TYPE_LEN:TYPE_LEN + NONCE_LEN]), b[TYPE_LEN + NONCE_LEN:])

    @classmethod
    def from_p2sh_address(cls, s: str, nonce: Nonce, expected_network: Network) -> Contract:
        """Use a P2SH (or P2PKH) address hash as contract data.

        Raises:
            Base58Error: the address does not decode.
            WrongNetworkError: the address belongs to another network.
        """
        addr = decode_address(s)
        if addr.network is not expected_network:
            raise WrongNetworkError(addr.network, expected_network)
        return cls(_ADDRESS_TYPES[addr.type], nonce, addr.hash)

    @classmethod
    def from_ascii(cls, s: str, nonce: Nonce) -> Contract:
        data = s.encode('utf-8')
        if len(data) != DATA_LEN:
            raise BadLengthError('ascii contract', len(data), DATA_LEN)
        return cls(ContractType.TEXT, nonce, data)
