"""
Option resolution: turn the raw command options into one consistent request.

Rules, checked in this order:
1. exactly one of gen-address / gen-privkey;
2. gen-address needs a redeem script and no private key, gen-privkey needs a
   private key (for the configured network) and no redeem script;
3. exactly one contract source: full hex, address or ASCII text;
4. address and ASCII contracts need a nonce in gen-privkey mode; in
   gen-address mode a missing nonce is generated and reported;
5. a full hex contract already carries its nonce, so no separate nonce may
   be given.

Nothing here prints; every violation raises a PactHashError subclass.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, NamedTuple, Optional

from .address import PrivateKey, decode_privkey
from .contract import Contract, Nonce
from .errors import UsageError, WrongNetworkError
from .hexutil import parse_hex
from .network import Network


class Mode(Enum):
    GEN_ADDRESS = "gen-address"   # tweak a redeem script, derive its P2SH address
    GEN_PRIVKEY = "gen-privkey"   # tweak a private key


@dataclass
class ContractOptions:
    """Raw option values as given by the operator (all strings unparsed)."""
    gen_address: bool = False
    gen_privkey: bool = False
    redeem_script: Optional[str] = None
    private_key: Optional[str] = None
    nonce: Optional[str] = None
    hex_contract: Optional[str] = None
    p2sh_address: Optional[str] = None
    ascii_contract: Optional[str] = None


class Resolution(NamedTuple):
    mode: Mode
    contract: Contract
    redeem_script: Optional[bytes]
    private_key: Optional[PrivateKey]
    nonce_generated: bool


def resolve_mode(opts: ContractOptions) -> Mode:
    if opts.gen_address and opts.gen_privkey:
        raise UsageError('At most one of --gen-address or --gen-privkey may be specified')
    if opts.gen_address:
        return Mode.GEN_ADDRESS
    if opts.gen_privkey:
        return Mode.GEN_PRIVKEY
    raise UsageError('One of --gen-address or --gen-privkey must be specified')


def _resolve_redeem_script(mode: Mode, value: Optional[str]) -> Optional[bytes]:
    if mode is Mode.GEN_ADDRESS:
        if value is None:
            raise UsageError('--redeem-script must be specified in gen-address mode')
        return parse_hex('redeem script', value)
    if value is not None:
        raise UsageError('--redeem-script may only be used in gen-address mode')
    return None


def _resolve_private_key(mode: Mode, value: Optional[str], network: Network) -> Optional[PrivateKey]:
    if mode is Mode.GEN_PRIVKEY:
        if value is None:
            raise UsageError('--private-key must be specified in gen-privkey mode')
        key = decode_privkey(value)
        if key.network is not network:
            raise WrongNetworkError(key.network, network)
        return key
    if value is not None:
        raise UsageError('--private-key may only be used in gen-privkey mode')
    return None


def resolve(opts: ContractOptions, network: Network,
            nonce_source: Optional[Callable[[int], bytes]] = None) -> Resolution:
    """Validate ``opts`` and build the contract to commit to.

    Args:
        opts: raw option values.
        network: network addresses and keys must belong to.
        nonce_source: ``n -> n random bytes``, used only when a nonce has to
            be generated (defaults to ``secrets.token_bytes``).
    """
    mode = resolve_mode(opts)
    redeem_script = _resolve_redeem_script(mode, opts.redeem_script)
    private_key = _resolve_private_key(mode, opts.private_key, network)

    sources = [s for s in (opts.hex_contract, opts.p2sh_address, opts.ascii_contract) if s is not None]
    if len(sources) != 1:
        raise UsageError('Must specify exactly one of: --hex-contract; --ascii-contract [--nonce]; '
                         'or --p2sh-address [--nonce]')

    if opts.hex_contract is not None:
        if opts.nonce is not None:
            raise UsageError('--nonce cannot be combined with --hex-contract (the contract carries its own nonce)')
        return Resolution(mode, Contract.from_hex(opts.hex_contract), redeem_script, private_key, False)

    if opts.nonce is None and mode is Mode.GEN_PRIVKEY:
        src = '--p2sh-address' if opts.p2sh_address is not None else '--ascii-contract'
        raise UsageError(f'--nonce is required when using --gen-privkey with {src}')
    generated = opts.nonce is None
    nonce = Nonce.random(nonce_source) if generated else Nonce.from_hex(opts.nonce)

    if opts.p2sh_address is not None:
        contract = Contract.from_p2sh_address(opts.p2sh_address, nonce, network)
    else:
        contract = Contract.from_ascii(opts.ascii_contract, nonce)
    return Resolution(mode, contract, redeem_script, private_key, generated)
