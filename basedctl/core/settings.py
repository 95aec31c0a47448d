"""Raw token parsing into typed settings.

Parsers reject anything outside the enumerated domains so invalid input never
reaches the protocol layer.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable

from basedctl.core.errors import AddressError, SettingValueError
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

_MAC_RE = re.compile(r"^[0-9A-F]{2}(?::[0-9A-F]{2}){5}$", re.IGNORECASE)

NOISE_CANCELLING_TOKENS = tuple(level.value for level in NoiseLevel)
AUTO_OFF_TOKENS = tuple(timeout.token for timeout in AutoOffTimeout)
PROMPT_LANGUAGE_TOKENS = tuple(language.value for language in Language)


def parse_name(raw: str) -> Name:
    if not raw:
        raise SettingValueError("Name must not be empty")
    if "\x00" in raw:
        raise SettingValueError("Name must not contain NUL characters")
    return Name(raw)


def parse_noise_cancelling(raw: str) -> NoiseCancelling:
    try:
        return NoiseCancelling(NoiseLevel(raw))
    except ValueError:
        allowed = ", ".join(NOISE_CANCELLING_TOKENS)
        raise SettingValueError(
            f"Invalid noise cancelling argument: {raw}. Allowed: {allowed}"
        ) from None


def parse_auto_off(raw: str) -> AutoOff:
    """Parse an auto-off token.

    Numeric tokens must match one of the enumerated minute values exactly;
    otherwise only the literal ``never`` is accepted.
    """
    for timeout in AutoOffTimeout:
        if timeout is not AutoOffTimeout.NEVER and raw == str(timeout.value):
            return AutoOff(timeout)
    if raw == "never":
        return AutoOff(AutoOffTimeout.NEVER)

    allowed = ", ".join(AUTO_OFF_TOKENS)
    raise SettingValueError(f"Invalid auto-off argument: {raw}. Allowed: {allowed}")


def parse_prompt_language(raw: str) -> PromptLanguage:
    try:
        return PromptLanguage(Language(raw))
    except ValueError:
        allowed = ", ".join(PROMPT_LANGUAGE_TOKENS)
        raise SettingValueError(
            f"Invalid prompt language argument: {raw}. Allowed: {allowed}"
        ) from None


SETTING_PARSERS: dict[str, Callable[[str], Setting]] = {
    "name": parse_name,
    "noise_cancelling": parse_noise_cancelling,
    "auto_off": parse_auto_off,
    "prompt_language": parse_prompt_language,
}


def settings_from_options(options: Iterable[tuple[str, str]]) -> list[Setting]:
    """Parse ``(option, raw)`` pairs into settings, keeping order and repeats."""
    settings: list[Setting] = []
    for option, raw in options:
        parser = SETTING_PARSERS.get(option)
        if parser is None:
            raise SettingValueError(f"Unknown setting option '{option}'")
        settings.append(parser(raw))
    return settings


def build_settings(
    *,
    name: str | None = None,
    noise_cancelling: str | None = None,
    auto_off: str | None = None,
    prompt_language: str | None = None,
) -> list[Setting]:
    """Build a batch from keyword values.

    Keywords carry no order of their own, so the batch is name, noise
    cancelling, auto-off, prompt language.
    """
    candidates = (
        ("name", name),
        ("noise_cancelling", noise_cancelling),
        ("auto_off", auto_off),
        ("prompt_language", prompt_language),
    )
    return settings_from_options((option, raw) for option, raw in candidates if raw is not None)


def normalize_address(raw: str) -> str:
    address = raw.strip().upper()
    if not _MAC_RE.match(address):
        raise AddressError(f"Invalid Bluetooth address '{raw}'. Expected XX:XX:XX:XX:XX:XX")
    return address
