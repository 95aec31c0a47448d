"""Core data models used across protocol, session, service, and CLI."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union

from basedctl.core.errors import MalformedResponse, SettingRejected, SettingTimedOut


class NoiseLevel(str, Enum):
    HIGH = "high"
    LOW = "low"
    OFF = "off"


class AutoOffTimeout(Enum):
    NEVER = 0
    MIN_5 = 5
    MIN_20 = 20
    MIN_40 = 40
    MIN_60 = 60
    MIN_180 = 180

    @property
    def token(self) -> str:
        return "never" if self is AutoOffTimeout.NEVER else str(self.value)


class Language(str, Enum):
    OFF = "off"
    EN = "en"
    FR = "fr"
    IT = "it"
    DE = "de"
    ES = "es"
    PT = "pt"
    ZH = "zh"
    KO = "ko"
    NL = "nl"
    JA = "ja"
    SV = "sv"


@dataclass(frozen=True)
class Name:
    value: str

    @property
    def label(self) -> str:
        return f"name={self.value}"


@dataclass(frozen=True)
class NoiseCancelling:
    level: NoiseLevel

    @property
    def label(self) -> str:
        return f"noise-cancelling={self.level.value}"


@dataclass(frozen=True)
class AutoOff:
    timeout: AutoOffTimeout

    @property
    def label(self) -> str:
        return f"auto-off={self.timeout.token}"


@dataclass(frozen=True)
class PromptLanguage:
    language: Language

    @property
    def label(self) -> str:
        return f"prompt-language={self.language.value}"


Setting = Union[Name, NoiseCancelling, AutoOff, PromptLanguage]


class OutcomeKind(str, Enum):
    ACKED = "acked"
    NACKED = "nacked"
    TIMED_OUT = "timed_out"
    MALFORMED = "malformed"


@dataclass(frozen=True)
class Outcome:
    """Result of one command attempt."""

    kind: OutcomeKind
    detail: str | None = None

    @classmethod
    def acked(cls) -> Outcome:
        return cls(OutcomeKind.ACKED)

    @classmethod
    def nacked(cls, reason: str) -> Outcome:
        return cls(OutcomeKind.NACKED, reason)

    @classmethod
    def timed_out(cls) -> Outcome:
        return cls(OutcomeKind.TIMED_OUT)

    @classmethod
    def malformed(cls, detail: str) -> Outcome:
        return cls(OutcomeKind.MALFORMED, detail)

    @property
    def ok(self) -> bool:
        return self.kind is OutcomeKind.ACKED

    def __str__(self) -> str:
        if self.detail:
            return f"{self.kind.value}: {self.detail}"
        return self.kind.value


@dataclass(frozen=True)
class TransportSpec:
    type: str
    channel: int
    send_timeout_s: float = 5.0
    receive_timeout_s: float = 1.0


@dataclass(frozen=True)
class DeviceProfile:
    id: str
    name: str
    transport: TransportSpec
    max_name_len: int = 31
    retries: int = 0


@dataclass(frozen=True)
class ApplyResult:
    setting: Setting
    outcome: Outcome
    request_hex: str
    response_hex: str | None = None
    attempts: int = 1
    truncated: bool = False

    @property
    def ok(self) -> bool:
        return self.outcome.ok


@dataclass(frozen=True)
class BatchResult:
    results: tuple[ApplyResult, ...]
    skipped: tuple[Setting, ...] = ()
    warnings: tuple[str, ...] = ()

    @property
    def ok(self) -> bool:
        return all(result.ok for result in self.results)

    @property
    def failure(self) -> ApplyResult | None:
        for result in self.results:
            if not result.ok:
                return result
        return None

    def raise_for_failure(self) -> None:
        """Raise the error matching the first non-acked outcome, if any."""
        failed = self.failure
        if failed is None:
            return
        label = failed.setting.label
        kind = failed.outcome.kind
        if kind is OutcomeKind.NACKED:
            raise SettingRejected(f"Device rejected {label} ({failed.outcome.detail})", failed)
        if kind is OutcomeKind.TIMED_OUT:
            raise SettingTimedOut(
                f"No response for {label} after {failed.attempts} attempt(s)", failed
            )
        raise MalformedResponse(
            f"Malformed response for {label}: {failed.outcome.detail}", failed
        )
