import hashlib
import json
import sys

import pytest

from typing import Sequence
from pacthash.address import PrivateKey, decode_address, decode_privkey, encode_privkey
from pacthash.cli import main as pacthash_main
from pacthash.network import Network

G = '0279be667ef9dcbbac55a06295ce870b07029bfcdb2dce28d959f2815b16f81798'
G2 = '02c6047f9441ed7d6d3045406e95c07cd85c778e4b8cef3ca7abac09b95c709ee5'
MULTISIG = '52' + '21' + G + '21' + G2 + '52ae'
TEXT = '01234567890123456789'
NONCE = '00112233445566778899aabbccddeeff'


def _ripemd_available() -> bool:
    try:
        hashlib.new('ripemd160')
        return True
    except ValueError:
        return False


def run_cli(argv: Sequence[str]) -> str:
    old = sys.argv[:]
    try:
        sys.argv = ['pacthash'] + list(argv)
        from io import StringIO
        import contextlib
        buf = StringIO()
        with contextlib.redirect_stdout(buf):
            pacthash_main()
        return buf.getvalue()
    finally:
        sys.argv = old


@pytest.mark.skipif(not _ripemd_available(), reason='hashlib lacks ripemd160')
def test_cli_gen_address_json_generates_nonce(capsys):
    pytest.importorskip('coincurve', reason='coincurve not installed')
    out = run_cli(['-g', '-r', MULTISIG, '-a', TEXT, '--json', '--disasm'])
    data = json.loads(out)
    assert data['network'] == 'mainnet'
    assert data['mode'] == 'gen-address'
    assert data['nonce_generated'] is True
    assert len(data['nonce']) == 32
    assert data['contract'] == b'TEXT'.hex() + data['nonce'] + TEXT.encode().hex()
    assert data['p2sh_address'].startswith('3')
    assert data['redeem_script'] != MULTISIG
    assert data['disasm'].startswith('OP_2 ')
    assert 'nonce was generated' in capsys.readouterr().err

    # the reported nonce reproduces the same script
    out2 = run_cli(['-g', '-r', MULTISIG, '-a', TEXT, '-n', data['nonce'], '--json'])
    data2 = json.loads(out2)
    assert data2['nonce_generated'] is False
    assert data2['redeem_script'] == data['redeem_script']
    assert data2['p2sh_address'] == data['p2sh_address']
    assert 'disasm' not in data2


@pytest.mark.skipif(not _ripemd_available(), reason='hashlib lacks ripemd160')
def test_cli_privkey_matches_tweaked_script():
    coincurve = pytest.importorskip('coincurve', reason='coincurve not installed')
    wif = encode_privkey(PrivateKey(Network.TESTNET, (1).to_bytes(32, 'big')))
    contract = b'TEXT'.hex() + NONCE + TEXT.encode().hex()
    addr_out = json.loads(run_cli(['-t', '-g', '-r', MULTISIG, '-f', contract, '--json']))
    key_out = json.loads(run_cli(['-t', '-c', '-p', wif, '-a', TEXT, '-n', NONCE, '--json']))
    assert addr_out['contract'] == key_out['contract'] == contract
    assert decode_address(addr_out['p2sh_address']).network is Network.TESTNET

    key = decode_privkey(key_out['secret_key'])
    assert key.network is Network.TESTNET and key.compressed
    pub = coincurve.PrivateKey(key.secret).public_key.format(compressed=True).hex()
    # first key in the 2-of-2 script belongs to secret 1
    assert addr_out['redeem_script'][4:70] == pub


def test_cli_text_output():
    pytest.importorskip('coincurve', reason='coincurve not installed')
    wif = encode_privkey(PrivateKey(Network.MAINNET, (2).to_bytes(32, 'big')))
    out = run_cli(['-c', '-p', wif, '-a', TEXT, '-n', NONCE])
    assert 'network       = mainnet' in out
    assert f'nonce         = {NONCE}' in out
    assert 'secret_key    = ' in out


@pytest.mark.parametrize('argv,message', [
    (['-g', '-c', '-a', TEXT], 'At most one'),
    (['-a', TEXT], 'One of'),
    (['-c', '-p', 'x', '-a', TEXT], 'invalid base58check'),
    (['-g', '-r', '51', '-a', TEXT[:-1]], 'must be 20 bytes (got 19)'),
    (['-g', '-r', '51', '-f', 'aa' * 40, '-n', NONCE], 'carries its own nonce'),
])
def test_cli_usage_errors_exit_nonzero(argv, message, capsys):
    with pytest.raises(SystemExit) as ei:
        run_cli(argv)
    assert ei.value.code == 1
    err = capsys.readouterr().err
    assert err.startswith('ERROR: ')
    assert message in err


@pytest.mark.skipif(not _ripemd_available(), reason='hashlib lacks ripemd160')
def test_cli_disasm_only_computed_on_request(monkeypatch):
    pytest.importorskip('coincurve', reason='coincurve not installed')
    from pacthash import cli

    def no_disasm(script):
        raise AssertionError('disasm should not run without --disasm')

    monkeypatch.setattr(cli, 'disasm', no_disasm)
    out = run_cli(['-g', '-r', MULTISIG, '-a', TEXT, '-n', NONCE, '--json'])
    assert 'disasm' not in json.loads(out)


def test_cli_missing_ripemd_is_reported(monkeypatch, capsys):
    pytest.importorskip('coincurve', reason='coincurve not installed')
    from pacthash import script

    real_new = hashlib.new

    def fake_new(name, *args, **kwargs):
        if name == 'ripemd160':
            raise ValueError('unsupported hash type ripemd160')
        return real_new(name, *args, **kwargs)

    monkeypatch.setattr(script.hashlib, 'new', fake_new)
    with pytest.raises(SystemExit) as ei:
        run_cli(['-g', '-r', MULTISIG, '-a', TEXT, '-n', NONCE])
    assert ei.value.code == 1
    assert 'ERROR: ripemd160 is not available' in capsys.readouterr().err
