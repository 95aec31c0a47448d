"""Stable public API for building tooling on top of basedctl.

This module is the supported integration surface for third-party callers.
Avoid importing from private/internal modules unless intentionally depending on
non-stable internals.
"""

from __future__ import annotations

from collections.abc import Sequence

from basedctl.core.errors import (
    AddressError,
    BasedctlError,
    BasedctlWarning,
    HandshakeFailed,
    InputTruncated,
    MalformedResponse,
    ProfileLoadError,
    ProfileSelectionError,
    ProfileValidationError,
    ProtocolError,
    SessionNotActive,
    SettingFailed,
    SettingRejected,
    SettingTimedOut,
    SettingValueError,
    TransportConnectError,
    TransportError,
    TransportReceiveError,
    TransportSendError,
    TransportTimeoutError,
)
from basedctl.core.model import (
    ApplyResult,
    AutoOff,
    AutoOffTimeout,
    BatchResult,
    DeviceProfile,
    Language,
    Name,
    NoiseCancelling,
    NoiseLevel,
    Outcome,
    OutcomeKind,
    PromptLanguage,
    Setting,
    TransportSpec,
)
from basedctl.core.service import BasedService, TransportFactory
from basedctl.core.session import Session, SessionState
from basedctl.core.settings import (
    AUTO_OFF_TOKENS,
    NOISE_CANCELLING_TOKENS,
    PROMPT_LANGUAGE_TOKENS,
    build_settings,
)
from basedctl.transports.rfcomm import RFCOMMTransport

__all__ = [
    "AddressError",
    "BasedctlError",
    "BasedctlWarning",
    "HandshakeFailed",
    "InputTruncated",
    "MalformedResponse",
    "ProfileLoadError",
    "ProfileSelectionError",
    "ProfileValidationError",
    "ProtocolError",
    "SessionNotActive",
    "SettingFailed",
    "SettingRejected",
    "SettingTimedOut",
    "SettingValueError",
    "TransportError",
    "TransportConnectError",
    "TransportReceiveError",
    "TransportSendError",
    "TransportTimeoutError",
    "ApplyResult",
    "AutoOff",
    "AutoOffTimeout",
    "BatchResult",
    "DeviceProfile",
    "Language",
    "Name",
    "NoiseCancelling",
    "NoiseLevel",
    "Outcome",
    "OutcomeKind",
    "PromptLanguage",
    "Setting",
    "TransportSpec",
    "RFCOMMTransport",
    "Session",
    "SessionState",
    "SETTING_VALUES",
    "Client",
]

SETTING_VALUES: dict[str, tuple[str, ...]] = {
    "noise-cancelling": NOISE_CANCELLING_TOKENS,
    "auto-off": AUTO_OFF_TOKENS,
    "prompt-language": PROMPT_LANGUAGE_TOKENS,
}


class Client:
    """Public client for interacting with basedctl core capabilities.

    A `Client` instance wraps profile loading, RFCOMM connection setup and the
    control session behind a stable API intended for third-party tools
    (GUI/TUI/services/scripts).
    """

    def __init__(self, *, transport_factory: TransportFactory | None = None) -> None:
        self._service = BasedService(transport_factory=transport_factory)

    @property
    def load_warnings(self) -> tuple[str, ...]:
        return self._service.load_warnings

    @property
    def runtime_warnings(self) -> tuple[str, ...]:
        return self._service.runtime_warnings

    def list_profiles(self) -> list[DeviceProfile]:
        return self._service.list_profiles()

    def get_profile(self, profile_id: str | None = None) -> DeviceProfile:
        return self._service.resolve_profile(profile_id)

    def apply_settings(
        self,
        address: str,
        settings: Sequence[Setting],
        *,
        profile_id: str | None = None,
        channel: int | None = None,
    ) -> BatchResult:
        return self._service.apply_settings(
            address,
            settings,
            profile_id=profile_id,
            channel=channel,
        )

    def configure(
        self,
        address: str,
        *,
        name: str | None = None,
        noise_cancelling: str | None = None,
        auto_off: str | None = None,
        prompt_language: str | None = None,
        profile_id: str | None = None,
    ) -> BatchResult:
        """Parse raw option values and apply them, raising on the first failure."""
        settings = build_settings(
            name=name,
            noise_cancelling=noise_cancelling,
            auto_off=auto_off,
            prompt_language=prompt_language,
        )
        result = self.apply_settings(address, settings, profile_id=profile_id)
        result.raise_for_failure()
        return result
