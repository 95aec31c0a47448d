"""Frame builder and incremental parser for the headset control stream.

Frame layout::

    +-------+-------+----------+----------+--------+--------+-----------+--------+
    | START | BLOCK | FUNCTION | OPERATOR | LENGTH | HCHECK |  PAYLOAD  | CRC16  |
    | 0xAA  | 1 B   | 1 B      | 1 B      | 1 B    | 1 B    | LENGTH B  | 2 B BE |
    +-------+-------+----------+----------+--------+--------+-----------+--------+

- BLOCK/FUNCTION: the 16-bit opcode, function block in the high byte
- HCHECK: XOR of BLOCK, FUNCTION, OPERATOR and LENGTH
- CRC16: CRC-16/CCITT (init 0xFFFF) over BLOCK..HCHECK followed by PAYLOAD
"""

from __future__ import annotations

import binascii
from dataclasses import dataclass
from enum import IntEnum
from typing import Union

from basedctl.core.errors import FrameEncodeError

START_MARKER = 0xAA
HEADER_SIZE = 6
TRAILER_SIZE = 2
MAX_PAYLOAD_LEN = 64
MIN_FRAME_SIZE = HEADER_SIZE + TRAILER_SIZE
_CRC_INIT = 0xFFFF


class Operator(IntEnum):
    """Request and reply kinds carried in the operator byte."""

    SET = 0x00
    GET = 0x01
    SET_GET = 0x02
    STATUS = 0x03
    ERROR = 0x04
    START = 0x05
    RESULT = 0x06
    PROCESSING = 0x07


@dataclass(frozen=True)
class Frame:
    """A parsed protocol frame."""

    opcode: int
    operator: int
    payload: bytes

    def __repr__(self) -> str:
        return (
            f"Frame(opcode=0x{self.opcode:04X}, operator=0x{self.operator:02X}, "
            f"payload={self.payload.hex(' ') if self.payload else '(empty)'})"
        )


@dataclass(frozen=True)
class DecodeComplete:
    frame: Frame
    consumed: int


@dataclass(frozen=True)
class DecodeIncomplete:
    needed: int


@dataclass(frozen=True)
class DecodeError:
    reason: str


DecodeResult = Union[DecodeComplete, DecodeIncomplete, DecodeError]


def header_check(block: int, function: int, operator: int, length: int) -> int:
    return block ^ function ^ operator ^ length


def crc16(data: bytes) -> int:
    return binascii.crc_hqx(data, _CRC_INIT)


def encode(opcode: int, payload: bytes = b"", operator: int = Operator.SET_GET) -> bytes:
    """Build one frame.

    Args:
        opcode: 16-bit opcode, function block in the high byte.
        payload: Command-specific payload bytes.
        operator: Operator byte, ``SET_GET`` for setting changes.

    Returns:
        The complete frame, ready to write to the transport.
    """
    if not 0 <= opcode <= 0xFFFF:
        raise FrameEncodeError(f"Opcode 0x{opcode:X} does not fit in 16 bits")
    if not 0 <= operator <= 0xFF:
        raise FrameEncodeError(f"Operator 0x{operator:X} does not fit in one byte")
    if len(payload) > MAX_PAYLOAD_LEN:
        raise FrameEncodeError(
            f"Payload of {len(payload)} bytes exceeds maximum of {MAX_PAYLOAD_LEN}"
        )

    block, function = opcode >> 8, opcode & 0xFF
    length = len(payload)
    header = bytes([block, function, operator, length, header_check(block, function, operator, length)])
    checksum = crc16(header + payload).to_bytes(2, "big")
    return bytes([START_MARKER]) + header + payload + checksum


def decode(buffer: bytes | bytearray, *, at_boundary: bool = False) -> DecodeResult:
    """Decode the frame at the start of ``buffer``.

    Args:
        buffer: Bytes received so far; only the leading frame is examined.
        at_boundary: True when no more bytes will follow (end of stream), so
            a short buffer is an error instead of a request for more data.

    Returns:
        ``DecodeComplete`` with the frame and number of bytes it occupied,
        ``DecodeIncomplete`` with the total size still required, or
        ``DecodeError`` describing why the bytes cannot be a valid frame.
    """
    if not buffer:
        if at_boundary:
            return DecodeError("stream ended before any frame bytes")
        return DecodeIncomplete(needed=MIN_FRAME_SIZE)

    if buffer[0] != START_MARKER:
        return DecodeError(f"unrecognized start marker 0x{buffer[0]:02X}")

    if len(buffer) < HEADER_SIZE:
        return _short(len(buffer), HEADER_SIZE, at_boundary)

    block, function, operator, length, check = buffer[1:HEADER_SIZE]
    expected_check = header_check(block, function, operator, length)
    if expected_check != check:
        return DecodeError(
            f"header check mismatch (expected 0x{expected_check:02X}, got 0x{check:02X})"
        )
    if length > MAX_PAYLOAD_LEN:
        return DecodeError(f"declared length {length} exceeds maximum of {MAX_PAYLOAD_LEN}")

    total = HEADER_SIZE + length + TRAILER_SIZE
    if len(buffer) < total:
        return _short(len(buffer), total, at_boundary)

    payload = bytes(buffer[HEADER_SIZE : HEADER_SIZE + length])
    expected = crc16(bytes(buffer[1:HEADER_SIZE]) + payload)
    actual = int.from_bytes(buffer[HEADER_SIZE + length : total], "big")
    if expected != actual:
        return DecodeError(f"checksum mismatch (expected 0x{expected:04X}, got 0x{actual:04X})")

    return DecodeComplete(
        frame=Frame(opcode=(block << 8) | function, operator=operator, payload=payload),
        consumed=total,
    )


def _short(have: int, needed: int, at_boundary: bool) -> DecodeResult:
    if at_boundary:
        return DecodeError(f"stream ended after {have} of {needed} frame bytes")
    return DecodeIncomplete(needed=needed)
