"""Opcode table and setting-to-payload mapping.

Each setting addresses one opcode; enumerated settings map to exactly one
payload byte.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum

from basedctl.core.errors import SettingValueError
from basedctl.core.model import (
    AutoOff,
    AutoOffTimeout,
    Language,
    Name,
    NoiseCancelling,
    NoiseLevel,
    PromptLanguage,
    Setting,
)
from basedctl.protocol.frame import Operator

DEFAULT_MAX_NAME_LEN = 31


class Opcode(IntEnum):
    """Function block (high byte) and function (low byte) identifiers."""

    CONNECTION = 0x0001
    PRODUCT_NAME = 0x0102
    VOICE_PROMPTS = 0x0103
    AUTO_OFF = 0x0104
    NOISE_CANCELLING = 0x0106


NOISE_LEVEL_CODES: dict[NoiseLevel, int] = {
    NoiseLevel.HIGH: 0x01,
    NoiseLevel.LOW: 0x03,
    NoiseLevel.OFF: 0x00,
}

AUTO_OFF_CODES: dict[AutoOffTimeout, int] = {
    AutoOffTimeout.NEVER: 0x00,
    AutoOffTimeout.MIN_5: 5,
    AutoOffTimeout.MIN_20: 20,
    AutoOffTimeout.MIN_40: 40,
    AutoOffTimeout.MIN_60: 60,
    AutoOffTimeout.MIN_180: 180,
}

# Bit 0x20 enables prompts; "off" keeps the English code with prompts disabled.
LANGUAGE_CODES: dict[Language, int] = {
    Language.OFF: 0x01,
    Language.EN: 0x21,
    Language.FR: 0x22,
    Language.IT: 0x23,
    Language.DE: 0x24,
    Language.ES: 0x26,
    Language.PT: 0x27,
    Language.ZH: 0x28,
    Language.KO: 0x29,
    Language.NL: 0x2E,
    Language.JA: 0x2F,
    Language.SV: 0x32,
}

# Reply ERROR payload codes.
NACK_REASONS: dict[int, str] = {
    0x01: "invalid length",
    0x02: "invalid checksum",
    0x03: "function block not supported",
    0x04: "function not supported",
    0x05: "operator not supported",
    0x06: "invalid data",
    0x07: "data unavailable",
    0x08: "runtime error",
    0x09: "timeout",
    0x0A: "invalid state",
    0x0B: "device not found",
    0x0C: "busy",
}


@dataclass(frozen=True)
class EncodedCommand:
    opcode: Opcode
    payload: bytes
    operator: Operator = Operator.SET_GET
    truncated: bool = False


def handshake() -> EncodedCommand:
    return EncodedCommand(opcode=Opcode.CONNECTION, payload=b"", operator=Operator.GET)


def truncate_name(value: str, max_len: int) -> tuple[bytes, bool]:
    """Encode ``value`` as UTF-8 and cut it to at most ``max_len`` bytes.

    The cut never splits a multi-byte character, and a name that would lose
    every character is rejected rather than sent empty.
    """
    raw = value.encode("utf-8")
    if len(raw) <= max_len:
        return raw, False
    cut = raw[:max_len].decode("utf-8", errors="ignore").encode("utf-8")
    if not cut:
        raise SettingValueError(
            f"Name cannot be shortened to {max_len} byte(s) without splitting its first character"
        )
    return cut, True


def encode_setting(setting: Setting, *, max_name_len: int = DEFAULT_MAX_NAME_LEN) -> EncodedCommand:
    if isinstance(setting, Name):
        payload, truncated = truncate_name(setting.value, max_name_len)
        return EncodedCommand(opcode=Opcode.PRODUCT_NAME, payload=payload, truncated=truncated)
    if isinstance(setting, NoiseCancelling):
        return EncodedCommand(
            opcode=Opcode.NOISE_CANCELLING,
            payload=bytes([NOISE_LEVEL_CODES[setting.level]]),
        )
    if isinstance(setting, AutoOff):
        return EncodedCommand(
            opcode=Opcode.AUTO_OFF,
            payload=bytes([AUTO_OFF_CODES[setting.timeout]]),
        )
    if isinstance(setting, PromptLanguage):
        return EncodedCommand(
            opcode=Opcode.VOICE_PROMPTS,
            payload=bytes([LANGUAGE_CODES[setting.language]]),
        )
    raise TypeError(f"Unsupported setting type: {type(setting).__name__}")


def nack_reason(payload: bytes) -> str:
    if not payload:
        return "no error code"
    code = payload[0]
    return NACK_REASONS.get(code, f"unknown error 0x{code:02X}")
