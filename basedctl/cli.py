"""Typer CLI entrypoint."""

from __future__ import annotations

import logging

import typer
from typer.core import TyperCommand

from basedctl.core.errors import AddressError, BasedctlError, SettingValueError
from basedctl.core.service import BasedService
from basedctl.core.settings import (
    AUTO_OFF_TOKENS,
    NOISE_CANCELLING_TOKENS,
    PROMPT_LANGUAGE_TOKENS,
    normalize_address,
    settings_from_options,
)

_OPTION_ORDER = "basedctl.option_order"

app = typer.Typer(
    help="Change settings of Bose QC35 class headphones over Bluetooth RFCOMM",
    context_settings={"help_option_names": ["-h", "--help"]},
    add_completion=False,
)


class OrderedOptionsCommand(TyperCommand):
    """Command that remembers the order in which options appeared in argv.

    Click groups repeated values per option, which loses how settings were
    interleaved on the command line.
    """

    def parse_args(self, ctx, args):
        parser = self.make_parser(ctx)
        _, _, param_order = parser.parse_args(args=list(args))
        ctx.meta[_OPTION_ORDER] = [param.name for param in param_order]
        return super().parse_args(ctx, args)


def _ordered_options(ctx: typer.Context, values: dict[str, list[str] | None]) -> list[tuple[str, str]]:
    pending = {option: list(raw or ()) for option, raw in values.items()}
    ordered: list[tuple[str, str]] = []
    for option in ctx.meta.get(_OPTION_ORDER, ()):
        queue = pending.get(option)
        if queue:
            ordered.append((option, queue.pop(0)))
    for option, queue in pending.items():
        ordered.extend((option, raw) for raw in queue)
    return ordered


def _build_service() -> BasedService:
    service = BasedService()
    for warning in getattr(service, "load_warnings", ()):
        typer.echo(f"Warning: {warning}", err=True)
    for warning in getattr(service, "runtime_warnings", ()):
        typer.echo(f"Warning: {warning}", err=True)
    return service


@app.command(cls=OrderedOptionsCommand)
def main(
    ctx: typer.Context,
    address: str = typer.Argument(..., help="The Bluetooth address of the headphones."),
    name: list[str] | None = typer.Option(None, "-n", "--name", help="Change the name of the headphones."),
    noise_cancelling: list[str] | None = typer.Option(
        None,
        "-c",
        "--noise-cancelling",
        help=f"Change the noise cancelling level: {', '.join(NOISE_CANCELLING_TOKENS)}",
    ),
    auto_off: list[str] | None = typer.Option(
        None,
        "-o",
        "--auto-off",
        help=f"Change the auto-off time in minutes: {', '.join(AUTO_OFF_TOKENS)}",
    ),
    prompt_language: list[str] | None = typer.Option(
        None,
        "-l",
        "--prompt-language",
        help=f"Change the voice-prompt language: {', '.join(PROMPT_LANGUAGE_TOKENS)}",
    ),
    profile: str | None = typer.Option(None, "-p", "--profile", help="Device profile ID"),
    channel: int | None = typer.Option(None, "--channel", min=1, max=30, help="Override RFCOMM channel"),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="Log protocol frames"),
) -> None:
    """Connect to ADDRESS and apply the requested settings.

    Settings are applied in the order given, repeated options included; the
    first failure stops the batch.
    """
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")

    try:
        mac = normalize_address(address)
    except AddressError as exc:
        raise typer.BadParameter(str(exc), param_hint="ADDRESS") from None
    values = {
        "name": name,
        "noise_cancelling": noise_cancelling,
        "auto_off": auto_off,
        "prompt_language": prompt_language,
    }
    try:
        settings = settings_from_options(_ordered_options(ctx, values))
    except SettingValueError as exc:
        raise typer.BadParameter(str(exc)) from None

    try:
        service = _build_service()
        result = service.apply_settings(mac, settings, profile_id=profile, channel=channel)
        for warning in result.warnings:
            typer.echo(f"Warning: {warning}", err=True)
        for applied in result.results:
            if applied.ok:
                typer.echo(f"Set {applied.setting.label} on {mac} payload={applied.request_hex}")
        for skipped in result.skipped:
            typer.echo(f"Skipped {skipped.label}", err=True)
        result.raise_for_failure()
    except BasedctlError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1) from None


def run() -> None:
    app()


if __name__ == "__main__":
    run()
