from __future__ import annotations

from pathlib import Path

import pytest

from basedctl.core.errors import ProfileValidationError
from basedctl.core.profile_loader import load_profiles


def _write_profile(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


@pytest.fixture(autouse=True)
def _isolated_xdg(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "cfg"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))


def test_load_packaged_profile() -> None:
    loaded = load_profiles()
    assert "bose_qc35" in loaded.profiles
    profile = loaded.profiles["bose_qc35"]
    assert profile.transport.channel == 8
    assert profile.transport.send_timeout_s == 5.0
    assert profile.transport.receive_timeout_s == 1.0
    assert profile.max_name_len == 31
    assert profile.retries == 0
    assert loaded.warnings == ()


def test_user_profile_override_packaged(tmp_path: Path) -> None:
    _write_profile(
        tmp_path / "cfg" / "basedctl" / "profiles" / "override.yaml",
        """
id: bose_qc35
name: User Override
transport:
  type: rfcomm
  channel: 8
  receive_timeout_s: 2.5
protocol:
  retries: 2
""",
    )

    loaded = load_profiles()
    profile = loaded.profiles["bose_qc35"]
    assert profile.name == "User Override"
    assert profile.transport.receive_timeout_s == 2.5
    assert profile.transport.send_timeout_s == 5.0
    assert profile.retries == 2
    assert any("overrides" in warning for warning in loaded.warnings)


def test_data_dir_profile_is_added(tmp_path: Path) -> None:
    _write_profile(
        tmp_path / "data" / "basedctl" / "profiles" / "qc35_ii.yml",
        """
id: bose_qc_ii
name: Bose QC35 II
transport:
  type: rfcomm
  channel: 9
""",
    )

    loaded = load_profiles()
    assert loaded.profiles["bose_qc_ii"].transport.channel == 9
    assert loaded.profiles["bose_qc_ii"].max_name_len == 31


def test_missing_required_keys_rejected(tmp_path: Path) -> None:
    _write_profile(
        tmp_path / "cfg" / "basedctl" / "profiles" / "missing.yaml",
        """
id: missing
name: Missing
""",
    )

    with pytest.raises(ProfileValidationError):
        load_profiles()


def test_out_of_range_retries_rejected(tmp_path: Path) -> None:
    _write_profile(
        tmp_path / "cfg" / "basedctl" / "profiles" / "retries.yaml",
        """
id: eager
name: Eager
transport:
  type: rfcomm
  channel: 8
protocol:
  retries: 5
""",
    )

    with pytest.raises(ProfileValidationError) as exc:
        load_profiles()
    assert "protocol.retries" in str(exc.value)


def test_non_rfcomm_transport_rejected(tmp_path: Path) -> None:
    _write_profile(
        tmp_path / "cfg" / "basedctl" / "profiles" / "ble.yaml",
        """
id: ble_buds
name: BLE Buds
transport:
  type: ble
  channel: 1
""",
    )

    with pytest.raises(ProfileValidationError):
        load_profiles()


def test_duplicate_yaml_keys_rejected(tmp_path: Path) -> None:
    _write_profile(
        tmp_path / "cfg" / "basedctl" / "profiles" / "dup.yaml",
        """
id: dup
name: Duplicate
transport:
  type: rfcomm
  channel: 8
  channel: 9
""",
    )

    with pytest.raises(ProfileValidationError):
        load_profiles()


def test_non_mapping_root_rejected(tmp_path: Path) -> None:
    _write_profile(tmp_path / "cfg" / "basedctl" / "profiles" / "list.yaml", "- a\n- b\n")

    with pytest.raises(ProfileValidationError):
        load_profiles()


def test_name_limit_below_one_utf8_character_rejected(tmp_path: Path) -> None:
    _write_profile(
        tmp_path / "cfg" / "basedctl" / "profiles" / "tiny.yaml",
        """
id: tiny
name: Tiny names
transport:
  type: rfcomm
  channel: 8
protocol:
  max_name_len: 3
""",
    )

    with pytest.raises(ProfileValidationError) as exc:
        load_profiles()
    assert "protocol.max_name_len" in str(exc.value)
