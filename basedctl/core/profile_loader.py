"""Device profiles: packaged defaults plus user YAML files from the XDG dirs."""

from __future__ import annotations

import functools
import json
import logging
import os
from collections.abc import Iterator
from dataclasses import dataclass
from importlib import resources
from importlib.resources.abc import Traversable
from pathlib import Path
from typing import Any

import yaml
from jsonschema import validators
from jsonschema.exceptions import best_match

from basedctl.core.errors import ProfileLoadError, ProfileValidationError
from basedctl.core.model import DeviceProfile, TransportSpec

DEFAULT_PROFILE_ID = "bose_qc35"
PROFILE_SUFFIXES = (".yaml", ".yml")
LOGGER = logging.getLogger(__name__)


class UniqueKeyLoader(yaml.SafeLoader):
    """Safe loader that refuses mappings with repeated keys."""

    def construct_mapping(self, node, deep=False):
        seen = set()
        for key_node, _ in node.value:
            key = self.construct_object(key_node, deep=deep)
            if key in seen:
                raise ProfileValidationError(f"Duplicate key '{key}' in YAML document")
            seen.add(key)
        return super().construct_mapping(node, deep=deep)


@dataclass(frozen=True)
class LoadedProfiles:
    profiles: dict[str, DeviceProfile]
    warnings: tuple[str, ...]


@functools.cache
def _schema_validator() -> Any:
    schema = json.loads(
        resources.files("basedctl.schemas").joinpath("profile.schema.json").read_text(encoding="utf-8")
    )
    validator_cls = validators.validator_for(schema)
    validator_cls.check_schema(schema)
    return validator_cls(schema)


def _user_profile_dirs() -> list[Path]:
    config_home = os.environ.get("XDG_CONFIG_HOME") or Path.home() / ".config"
    data_home = os.environ.get("XDG_DATA_HOME") or Path.home() / ".local" / "share"
    return [Path(config_home) / "basedctl" / "profiles", Path(data_home) / "basedctl" / "profiles"]


def _profile_files() -> Iterator[tuple[bool, Path | Traversable]]:
    """Yield ``(is_user, path)``, packaged profiles first."""
    packaged = resources.files("basedctl.profiles").iterdir()
    for item in sorted(packaged, key=lambda item: item.name):
        if item.name.endswith(PROFILE_SUFFIXES):
            yield False, item
    for directory in _user_profile_dirs():
        if directory.is_dir():
            for path in sorted(directory.iterdir()):
                if path.suffix in PROFILE_SUFFIXES:
                    yield True, path


def _parse_profile(source: Path | Traversable) -> DeviceProfile:
    try:
        text = source.read_text(encoding="utf-8")
    except OSError as exc:
        raise ProfileLoadError(f"Could not read profile file {source}: {exc}") from exc
    try:
        doc = yaml.load(text, Loader=UniqueKeyLoader)
    except yaml.YAMLError as exc:
        raise ProfileValidationError(f"Invalid YAML in {source}: {exc}") from exc
    if not isinstance(doc, dict):
        raise ProfileValidationError(f"Profile file {source} must contain a mapping at root")

    error = best_match(_schema_validator().iter_errors(doc))
    if error is not None:
        location = ".".join(str(part) for part in error.absolute_path) or "<root>"
        raise ProfileValidationError(f"Invalid profile {source} at {location}: {error.message}")

    transport = doc["transport"]
    timeouts = {
        key: float(transport[key]) for key in ("send_timeout_s", "receive_timeout_s") if key in transport
    }
    protocol = doc.get("protocol", {})
    extras = {key: int(protocol[key]) for key in ("max_name_len", "retries") if key in protocol}
    return DeviceProfile(
        id=doc["id"],
        name=doc["name"],
        transport=TransportSpec(type=transport["type"], channel=int(transport["channel"]), **timeouts),
        **extras,
    )


def load_profiles() -> LoadedProfiles:
    """Load every profile; user files replace packaged ones with the same id."""
    profiles: dict[str, DeviceProfile] = {}
    warnings: list[str] = []
    for is_user, source in _profile_files():
        profile = _parse_profile(source)
        if is_user and profile.id in profiles:
            message = f"User profile '{profile.id}' overrides packaged profile"
            LOGGER.warning(message)
            warnings.append(message)
        profiles[profile.id] = profile
    return LoadedProfiles(profiles=profiles, warnings=tuple(warnings))
