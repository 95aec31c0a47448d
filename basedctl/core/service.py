"""Service layer used by CLI and future UI frontends."""

from __future__ import annotations

import logging
import socket
from collections.abc import Callable, Sequence

from basedctl.core.errors import ProfileSelectionError
from basedctl.core.model import BatchResult, DeviceProfile, Setting, TransportSpec
from basedctl.core.profile_loader import DEFAULT_PROFILE_ID, load_profiles
from basedctl.core.session import Session
from basedctl.core.settings import normalize_address
from basedctl.transports.base import ConnectableTransport
from basedctl.transports.rfcomm import RFCOMMTransport

LOGGER = logging.getLogger(__name__)

TransportFactory = Callable[[TransportSpec], ConnectableTransport]


def _rfcomm_factory(spec: TransportSpec) -> ConnectableTransport:
    return RFCOMMTransport(
        send_timeout_s=spec.send_timeout_s,
        receive_timeout_s=spec.receive_timeout_s,
    )


class BasedService:
    def __init__(self, *, transport_factory: TransportFactory | None = None) -> None:
        loaded = load_profiles()
        self.profiles = loaded.profiles
        self.load_warnings = loaded.warnings
        self.runtime_warnings = _runtime_warnings()
        self.transport_factory = transport_factory or _rfcomm_factory

    def list_profiles(self) -> list[DeviceProfile]:
        return sorted(self.profiles.values(), key=lambda p: p.id)

    def resolve_profile(self, profile_id: str | None = None) -> DeviceProfile:
        wanted = profile_id or DEFAULT_PROFILE_ID
        profile = self.profiles.get(wanted)
        if profile is None:
            available = ", ".join(sorted(self.profiles)) or "<none>"
            raise ProfileSelectionError(f"Unknown profile '{wanted}'. Available: {available}")
        return profile

    def apply_settings(
        self,
        address: str,
        settings: Sequence[Setting],
        profile_id: str | None = None,
        channel: int | None = None,
    ) -> BatchResult:
        """Connect to ``address``, handshake, and apply ``settings`` in order.

        Raises on connect and handshake failures; per-setting failures are
        reported in the returned batch.
        """
        mac = normalize_address(address)
        profile = self.resolve_profile(profile_id)
        target_channel = channel if channel is not None else profile.transport.channel

        transport = self.transport_factory(profile.transport)
        LOGGER.debug("Connecting to %s via %s (channel %d)", mac, profile.id, target_channel)
        transport.connect(mac, target_channel)

        with Session(
            transport,
            receive_timeout_s=profile.transport.receive_timeout_s,
            max_name_len=profile.max_name_len,
            retries=profile.retries,
        ) as session:
            session.init()
            return session.apply_all(settings)


def _runtime_warnings() -> tuple[str, ...]:
    warnings: list[str] = []
    if not hasattr(socket, "AF_BLUETOOTH") or not hasattr(socket, "BTPROTO_RFCOMM"):
        warnings.append(
            "Python runtime missing AF_BLUETOOTH/BTPROTO_RFCOMM; RFCOMM control commands will fail."
        )
    return tuple(warnings)
