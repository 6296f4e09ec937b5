import hashlib

import pytest

from pacthash.errors import ScriptError
from pacthash.script import OP_CHECKMULTISIG, disasm, hash160, iter_instructions, pushdata


def _ripemd_available() -> bool:
    try:
        hashlib.new('ripemd160')
        return True
    except ValueError:
        return False


def test_pushdata_sizes():
    assert pushdata(b'') == b'\x00'
    assert pushdata(b'\xaa' * 33)[:1] == b'\x21'
    assert pushdata(b'\xaa' * 76)[:2] == b'\x4c\x4c'
    assert pushdata(b'\xaa' * 256)[:3] == b'\x4d\x00\x01'


def test_iter_instructions_keeps_raw_bytes():
    script = bytes.fromhex('52' '21' + '02' * 33 + '4c01ff' '00' '52ae')
    ins = list(iter_instructions(script))
    assert [i.opcode for i in ins] == [0x52, 0x21, 0x4c, 0x00, 0x52, OP_CHECKMULTISIG]
    assert ins[1].data == b'\x02' * 33
    assert ins[2].data == b'\xff' and ins[2].raw == b'\x4c\x01\xff'
    assert ins[3].data == b''
    assert ins[0].data is None
    assert b''.join(i.raw for i in ins) == script


@pytest.mark.parametrize('script_hex', ['21' + '02' * 10, '4c', '4d01'])
def test_iter_instructions_truncated(script_hex):
    with pytest.raises(ScriptError):
        list(iter_instructions(bytes.fromhex(script_hex)))


def test_disasm():
    script = bytes.fromhex('5221' + '02' * 33 + '51ae')
    assert disasm(script) == 'OP_2 ' + '02' * 33 + ' OP_1 OP_CHECKMULTISIG'
    assert disasm(b'\xba') == 'OP_UNKNOWN_0xba'


@pytest.mark.skipif(not _ripemd_available(), reason='hashlib lacks ripemd160')
def test_hash160_empty():
    assert hash160(b'').hex() == 'b472a266d0bd89c13706a4132ccfb16f7c3b9fcb'


def test_hash160_reports_missing_ripemd(monkeypatch):
    from pacthash import script
    from pacthash.errors import HashUnavailableError, PactHashError

    real_new = hashlib.new

    def fake_new(name, *args, **kwargs):
        if name == 'ripemd160':
            raise ValueError('unsupported hash type ripemd160')
        return real_new(name, *args, **kwargs)

    monkeypatch.setattr(script.hashlib, 'new', fake_new)
    with pytest.raises(HashUnavailableError) as ei:
        hash160(b'')
    assert ei.value.algorithm == 'ripemd160'
    assert isinstance(ei.value, PactHashError)
