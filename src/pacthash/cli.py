#!/usr/bin/env python3
"""
pacthash CLI — pay-to-contract key and address tweaking

Quick start
1) Commit a multisig redeem script to a 20-byte text contract (nonce is generated):
   python -m pacthash.cli -g -r <redeem_script_hex> -a "01234567890123456789"
2) Publish the printed P2SH address; keep the printed nonce.
3) Later, derive the matching private key for one of the script's keys:
   python -m pacthash.cli -c -p <wif> -a "01234567890123456789" -n <nonce>

Notes
- The contract may instead be a full 40-byte hex blob (-f) or an address (-d).
- Use -t for testnet; addresses and keys must match the selected network.
"""
import argparse
import json
import sys
from typing import Any, Dict

from .address import PrivateKey, encode_privkey, p2sh_address
from .contract import Nonce
from .contracthash import tweak_keys, tweak_secret_key, untemplate
from .errors import PactHashError
from .network import Network
from .resolver import ContractOptions, Mode, Resolution, resolve
from .script import disasm

USAGE = '%(prog)s [-t] <-g|-c> <-f contract | -d address [-n nonce] | -a ascii [-n nonce]>'


def _options_from_args(args: argparse.Namespace) -> ContractOptions:
    return ContractOptions(
        gen_address=args.gen_address,
        gen_privkey=args.gen_privkey,
        redeem_script=args.redeem_script,
        private_key=args.private_key,
        nonce=args.nonce,
        hex_contract=args.hex_contract,
        p2sh_address=args.p2sh_address,
        ascii_contract=args.ascii_contract,
    )


def gen_address(res: Resolution, network: Network) -> Dict[str, Any]:
    if res.redeem_script is None:
        raise RuntimeError('gen-address resolution has no redeem script')
    template, keys = untemplate(res.redeem_script)
    new_keys = tweak_keys(keys, res.contract.serialize())
    new_script = template.to_script(new_keys)
    return {
        'redeem_script': new_script.hex(),
        'p2sh_address': p2sh_address(new_script, network),
    }


def gen_privkey(res: Resolution, network: Network) -> Dict[str, Any]:
    if res.private_key is None:
        raise RuntimeError('gen-privkey resolution has no private key')
    tweaked = tweak_secret_key(res.private_key.secret, res.contract.serialize())
    return {'secret_key': encode_privkey(PrivateKey(network, tweaked, compressed=True))}


def run(args: argparse.Namespace) -> None:
    network = Network.TESTNET if args.testnet else Network.MAINNET
    res = resolve(_options_from_args(args), network)
    if res.mode is Mode.GEN_ADDRESS:
        result = gen_address(res, network)
    else:
        result = gen_privkey(res, network)
    if args.disasm and res.mode is Mode.GEN_ADDRESS:
        result['disasm'] = disasm(bytes.fromhex(result['redeem_script']))

    out: Dict[str, Any] = {
        'network': str(network),
        'mode': res.mode.value,
        'nonce': format(Nonce.from_contract(res.contract), 'x'),
        'nonce_generated': res.nonce_generated,
        'contract': res.contract.hex(),
    }
    out.update(result)
    if args.json:
        print(json.dumps(out))
    else:
        print("network       =", out['network'])
        print("nonce         =", out['nonce'])
        print("contract      =", out['contract'])
        if res.mode is Mode.GEN_ADDRESS:
            print("redeem_script =", out['redeem_script'])
            print("p2sh_address  =", out['p2sh_address'])
            if args.disasm:
                print("disasm        =", out['disasm'])
        else:
            print("secret_key    =", out['secret_key'])
    if res.nonce_generated:
        print("Note: nonce was generated randomly; keep it to reproduce this contract.", file=sys.stderr)


def main():
    epilog = (
        "Quick start:\n"
        "  1) Tweak a redeem script: -g -r <script_hex> -a <20 ascii bytes>  (nonce generated and printed)\n"
        "  2) Publish the P2SH address, keep the nonce\n"
        "  3) Tweak a signer's key: -c -p <wif> -a <same text> -n <nonce>\n"
        "Notes: -f takes a full 40-byte contract (type || nonce || data) and needs no -n."
    )
    ap = argparse.ArgumentParser(usage=USAGE, description="pacthash (pay-to-contract key/address tweaking)",
                                 epilog=epilog, formatter_class=argparse.RawDescriptionHelpFormatter)
    ap.add_argument('-g', '--gen-address', action='store_true',
                    help='generate a tweaked redemption script and its P2SH address')
    ap.add_argument('-c', '--gen-privkey', action='store_true', help='generate a tweaked private key')
    ap.add_argument('-r', '--redeem-script', help='hex redemption script (-g mode)')
    ap.add_argument('-p', '--private-key', help='base58 WIF private key (-c mode)')
    ap.add_argument('-d', '--p2sh-address', help='contract given as a P2SH (or P2PKH) address')
    ap.add_argument('-a', '--ascii-contract', help='contract given as a 20-byte ASCII string')
    ap.add_argument('-f', '--hex-contract', help='contract given as 40-byte hex (includes nonce)')
    ap.add_argument('-n', '--nonce', help='16-byte hex nonce (required with -c and -d/-a)')
    ap.add_argument('-t', '--testnet', action='store_true', help='testnet mode (defaults to mainnet)')
    ap.add_argument('--disasm', action='store_true', help='print disassembly of the modified script')
    ap.add_argument('--json', action='store_true', help='print JSON output')
    args = ap.parse_args()
    try:
        run(args)
    except PactHashError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        raise SystemExit(1)

if __name__ == '__main__':
    main()
