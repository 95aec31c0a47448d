from __future__ import annotations

from pathlib import Path

import pytest

from basedctl.core.errors import (
    AddressError,
    HandshakeFailed,
    ProfileSelectionError,
    TransportConnectError,
    TransportTimeoutError,
)
from basedctl.core.model import (
    AutoOff,
    AutoOffTimeout,
    NoiseCancelling,
    NoiseLevel,
    OutcomeKind,
    TransportSpec,
)
from basedctl.core.service import BasedService
from basedctl.protocol.commands import Opcode
from basedctl.protocol.frame import Operator, encode


@pytest.fixture(autouse=True)
def _isolated_xdg(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "cfg"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))


class FakeTransport:
    def __init__(self, reads: list[bytes] | None = None, connect_error: Exception | None = None) -> None:
        self.reads = list(reads or [])
        self.connect_error = connect_error
        self.connected_to: tuple[str, int] | None = None
        self.writes: list[bytes] = []
        self.close_calls = 0

    def connect(self, address: str, channel: int) -> None:
        if self.connect_error is not None:
            raise self.connect_error
        self.connected_to = (address, channel)

    def write(self, data: bytes) -> int:
        self.writes.append(data)
        return len(data)

    def read(self, max_bytes: int, timeout_s: float | None = None) -> bytes:
        if not self.reads:
            raise TransportTimeoutError("RFCOMM receive timed out")
        return self.reads.pop(0)

    def close(self) -> None:
        self.close_calls += 1


def _service(transport: FakeTransport, specs: list[TransportSpec] | None = None) -> BasedService:
    def factory(spec: TransportSpec) -> FakeTransport:
        if specs is not None:
            specs.append(spec)
        return transport

    return BasedService(transport_factory=factory)


def test_apply_settings_happy_path() -> None:
    transport = FakeTransport(
        [
            encode(Opcode.CONNECTION, b"\x05", Operator.STATUS),
            encode(Opcode.NOISE_CANCELLING, b"\x01", Operator.STATUS),
            encode(Opcode.AUTO_OFF, b"\x14", Operator.STATUS),
        ]
    )
    specs: list[TransportSpec] = []
    service = _service(transport, specs)

    result = service.apply_settings(
        "04:52:c7:0b:d6:1a",
        [NoiseCancelling(NoiseLevel.HIGH), AutoOff(AutoOffTimeout.MIN_20)],
    )

    assert result.ok
    assert transport.connected_to == ("04:52:C7:0B:D6:1A", 8)
    assert specs[0].send_timeout_s == 5.0
    assert specs[0].receive_timeout_s == 1.0
    assert len(transport.writes) == 3
    assert transport.close_calls == 1


def test_channel_override() -> None:
    transport = FakeTransport([encode(Opcode.CONNECTION, b"", Operator.STATUS)])
    service = _service(transport)

    service.apply_settings("04:52:C7:0B:D6:1A", [], channel=9)

    assert transport.connected_to == ("04:52:C7:0B:D6:1A", 9)


def test_failed_setting_is_reported_not_raised() -> None:
    transport = FakeTransport(
        [
            encode(Opcode.CONNECTION, b"", Operator.STATUS),
            encode(Opcode.NOISE_CANCELLING, b"\x06", Operator.ERROR),
        ]
    )
    service = _service(transport)

    result = service.apply_settings(
        "04:52:C7:0B:D6:1A",
        [NoiseCancelling(NoiseLevel.LOW), AutoOff(AutoOffTimeout.NEVER)],
    )

    assert not result.ok
    assert result.results[0].outcome.kind is OutcomeKind.NACKED
    assert result.skipped == (AutoOff(AutoOffTimeout.NEVER),)
    assert transport.close_calls == 1


def test_handshake_failure_closes_transport() -> None:
    transport = FakeTransport([])
    service = _service(transport)

    with pytest.raises(HandshakeFailed):
        service.apply_settings("04:52:C7:0B:D6:1A", [NoiseCancelling(NoiseLevel.OFF)])

    assert transport.close_calls == 1
    assert len(transport.writes) == 1


def test_connect_error_propagates_before_any_write() -> None:
    transport = FakeTransport(connect_error=TransportConnectError("Could not connect"))
    service = _service(transport)

    with pytest.raises(TransportConnectError):
        service.apply_settings("04:52:C7:0B:D6:1A", [NoiseCancelling(NoiseLevel.OFF)])

    assert transport.writes == []


def test_unknown_profile() -> None:
    service = _service(FakeTransport())

    with pytest.raises(ProfileSelectionError) as exc:
        service.apply_settings("04:52:C7:0B:D6:1A", [], profile_id="sony_wh1000")

    assert "bose_qc35" in str(exc.value)


def test_invalid_address() -> None:
    transport = FakeTransport()
    service = _service(transport)

    with pytest.raises(AddressError):
        service.apply_settings("04:52:C7", [])

    assert transport.connected_to is None


def test_list_profiles_includes_packaged_default() -> None:
    service = _service(FakeTransport())
    assert [p.id for p in service.list_profiles()] == ["bose_qc35"]
