"""
Bitcoin script utilities (lean)

Only what redeem-script templating needs: opcode constants, push encoding,
an instruction iterator that keeps the raw bytes of every instruction, a
simple disassembly for debugging and HASH160 for P2SH addresses.
"""
from __future__ import annotations

import hashlib
from typing import Dict, Iterator, NamedTuple, Optional

from .errors import HashUnavailableError, ScriptError

# Opcodes
OP_0 = 0x00
OP_PUSHDATA1 = 0x4c
OP_PUSHDATA2 = 0x4d
OP_PUSHDATA4 = 0x4e
OP_1NEGATE = 0x4f
OP_1 = 0x51
OP_16 = 0x60
OP_IF = 0x63
OP_NOTIF = 0x64
OP_ELSE = 0x67
OP_ENDIF = 0x68
OP_VERIFY = 0x69
OP_RETURN = 0x6a
OP_DROP = 0x75
OP_DUP = 0x76
OP_EQUAL = 0x87
OP_EQUALVERIFY = 0x88
OP_SHA256 = 0xa8
OP_HASH160 = 0xa9
OP_CHECKSIG = 0xac
OP_CHECKSIGVERIFY = 0xad
OP_CHECKMULTISIG = 0xae
OP_CHECKMULTISIGVERIFY = 0xaf
OP_CHECKLOCKTIMEVERIFY = 0xb1
OP_CHECKSEQUENCEVERIFY = 0xb2

_OP_NAMES: Dict[int, str] = {
    OP_0: 'OP_0',
    OP_1NEGATE: 'OP_1NEGATE',
    OP_IF: 'OP_IF',
    OP_NOTIF: 'OP_NOTIF',
    OP_ELSE: 'OP_ELSE',
    OP_ENDIF: 'OP_ENDIF',
    OP_VERIFY: 'OP_VERIFY',
    OP_RETURN: 'OP_RETURN',
    OP_DROP: 'OP_DROP',
    OP_DUP: 'OP_DUP',
    OP_EQUAL: 'OP_EQUAL',
    OP_EQUALVERIFY: 'OP_EQUALVERIFY',
    OP_SHA256: 'OP_SHA256',
    OP_HASH160: 'OP_HASH160',
    OP_CHECKSIG: 'OP_CHECKSIG',
    OP_CHECKSIGVERIFY: 'OP_CHECKSIGVERIFY',
    OP_CHECKMULTISIG: 'OP_CHECKMULTISIG',
    OP_CHECKMULTISIGVERIFY: 'OP_CHECKMULTISIGVERIFY',
    OP_CHECKLOCKTIMEVERIFY: 'OP_CHECKLOCKTIMEVERIFY',
    OP_CHECKSEQUENCEVERIFY: 'OP_CHECKSEQUENCEVERIFY',
}
_OP_NAMES.update({op: f'OP_{op - OP_1 + 1}' for op in range(OP_1, OP_16 + 1)})


class Instruction(NamedTuple):
    """One parsed script instruction.

    ``data`` is the pushed payload for push instructions (``b''`` for OP_0)
    and None for every other opcode; ``raw`` is the exact encoding found in
    the script.
    """
    opcode: int
    data: Optional[bytes]
    raw: bytes
    offset: int


def pushdata(data: bytes) -> bytes:
    n = len(data)
    if n < OP_PUSHDATA1:
        return bytes([n]) + data
    elif n <= 0xff:
        return bytes([OP_PUSHDATA1, n]) + data
    elif n <= 0xffff:
        return bytes([OP_PUSHDATA2]) + n.to_bytes(2, "little") + data
    else:
        return bytes([OP_PUSHDATA4]) + n.to_bytes(4, "little") + data


def is_small_num(op: int) -> bool:
    """True for OP_1NEGATE and OP_1..OP_16."""
    return op == OP_1NEGATE or OP_1 <= op <= OP_16


def iter_instructions(script: bytes) -> Iterator[Instruction]:
    i = 0
    while i < len(script):
        start = i
        op = script[i]; i += 1
        if op < OP_PUSHDATA1:
            ln = op
        elif op == OP_PUSHDATA1:
            width = 1
        elif op == OP_PUSHDATA2:
            width = 2
        elif op == OP_PUSHDATA4:
            width = 4
        else:
            yield Instruction(op, None, script[start:i], start)
            continue
        if OP_PUSHDATA1 <= op <= OP_PUSHDATA4:
            if i + width > len(script):
                raise ScriptError(start, 'truncated push length')
            ln = int.from_bytes(script[i:i + width], 'little'); i += width
        if i + ln > len(script):
            raise ScriptError(start, f'push of {ln} bytes runs past end of script')
        data = script[i:i + ln]; i += ln
        yield Instruction(op, data, script[start:i], start)


def disasm(script: bytes) -> str:
    out: list[str] = []
    for ins in iter_instructions(script):
        if ins.opcode in _OP_NAMES:
            out.append(_OP_NAMES[ins.opcode])
        elif ins.data is not None:
            out.append(ins.data.hex())
        else:
            out.append(f'OP_UNKNOWN_0x{ins.opcode:02x}')
    return ' '.join(out)


def hash160(data: bytes) -> bytes:
    """RIPEMD160(SHA256(data)); needs RIPEMD160 support in hashlib's OpenSSL."""
    try:
        h = hashlib.new('ripemd160')
    except ValueError as exc:
        raise HashUnavailableError('ripemd160') from exc
    h.update(hashlib.sha256(data).digest())
    return h.digest()
