"""
Network selection and base58 version bytes.

The tool only distinguishes Bitcoin mainnet from testnet; every encoded
address or private key carries one of these version bytes.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional, Tuple


@dataclass(frozen=True)
class NetworkParams:
    """Base58check version bytes for one network.

    Attributes:
        pubkey_hash: version byte of P2PKH addresses.
        script_hash: version byte of P2SH addresses.
        secret_key: version byte of WIF private keys.
    """
    pubkey_hash: int
    script_hash: int
    secret_key: int


class Network(Enum):
    MAINNET = "mainnet"
    TESTNET = "testnet"

    def __str__(self) -> str:
        return self.value

    @property
    def params(self) -> NetworkParams:
        return _PARAMS[self]


_PARAMS: Dict[Network, NetworkParams] = {
    Network.MAINNET: NetworkParams(pubkey_hash=0x00, script_hash=0x05, secret_key=0x80),
    Network.TESTNET: NetworkParams(pubkey_hash=0x6F, script_hash=0xC4, secret_key=0xEF),
}


def network_for_address_version(version: int) -> Optional[Tuple[Network, bool]]:
    """Map an address version byte to (network, is_script_hash), or None."""
    for net, p in _PARAMS.items():
        if version == p.pubkey_hash:
            return net, False
        if version == p.script_hash:
            return net, True
    return None


def network_for_secret_version(version: int) -> Optional[Network]:
    for net, p in _PARAMS.items():
        if version == p.secret_key:
            return net
    return None
