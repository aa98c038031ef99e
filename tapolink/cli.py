"""tapolink cli tool."""

from __future__ import annotations

import asyncio
import logging
import sys
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import asyncclick as click

from tapolink import (
    CloudClient,
    CloudConfig,
    CommandRejected,
    Credentials,
    DeviceConfig,
    ErrorCode,
    TapoDevice,
)
from tapolink.json import dumps as json_dumps

_LOGGER = logging.getLogger(__name__)

echo = click.echo


def CatchAllExceptions(cls):
    """Capture all exceptions and prints them nicely.

    Idea from https://stackoverflow.com/a/44347763 and
    https://stackoverflow.com/questions/52213375
    """

    def _handle_exception(debug, exc):
        if isinstance(exc, click.ClickException | click.exceptions.Exit):
            raise
        echo(f"Raised error: {exc}")
        if debug:
            raise
        echo("Run with --debug enabled to see stacktrace")
        sys.exit(1)

    class _CommandCls(cls):
        _debug = False

        async def make_context(self, info_name, args, parent=None, **extra):
            self._debug = any([arg for arg in args if arg in ["--debug", "-d"]])
            try:
                return await super().make_context(
                    info_name, args, parent=parent, **extra
                )
            except Exception as exc:
                _handle_exception(self._debug, exc)

        async def invoke(self, ctx):
            try:
                return await super().invoke(ctx)
            except Exception as exc:
                _handle_exception(self._debug, exc)

    return _CommandCls


def json_formatter_cb(result, **kwargs):
    """Format and output the result as JSON, if requested."""
    if not kwargs.get("json") or result is None:
        return
    print(json_dumps(result, default=str, indent=True))


@dataclass
class CliContext:
    """Options shared by all commands."""

    hosts: tuple[str, ...]
    port: int | None
    timeout: int
    credentials: Credentials | None
    json: bool

    def device_config(self, host: str) -> DeviceConfig:
        """Return the connection config for a host."""
        return DeviceConfig(
            host=host,
            port_override=self.port,
            timeout=self.timeout,
            credentials=self.credentials,
        )


pass_ctx = click.make_pass_decorator(CliContext)


async def _run_on_device(
    config: DeviceConfig, action: Callable[[TapoDevice], Awaitable[Any]]
) -> Any:
    async with await TapoDevice.connect(config=config) as dev:
        try:
            return await action(dev)
        except CommandRejected as ex:
            if ex.error_code is not ErrorCode.DEVICE_TOKEN_EXPIRED:
                raise
            _LOGGER.debug("%s: device token expired, logging in again", dev.host)
            await dev.relogin()
            return await action(dev)


async def run_on_devices(
    ctx: CliContext, action: Callable[[TapoDevice], Awaitable[Any]]
) -> dict[str, Any]:
    """Run the action on every host concurrently and wait for all of them.

    Failures are reported per host, under an ``errors`` key in json mode,
    and the command exits with status 1 if any host failed.
    """
    if not ctx.hosts:
        raise click.UsageError("At least one --host is required.")
    if ctx.credentials is None:
        raise click.UsageError("--username and --password are required.")

    results = await asyncio.gather(
        *(_run_on_device(ctx.device_config(host), action) for host in ctx.hosts),
        return_exceptions=True,
    )

    failures: dict[str, BaseException] = {}
    output: dict[str, Any] = {}
    for host, res in zip(ctx.hosts, results, strict=True):
        if isinstance(res, BaseException):
            failures[host] = res
            if not ctx.json:
                echo(f"{host}: failed: {res}")
        else:
            output[host] = res

    if failures:
        _LOGGER.debug("Failed hosts: %s", ", ".join(failures))
        if ctx.json:
            errors = {host: str(exc) for host, exc in failures.items()}
            print(json_dumps({**output, "errors": errors}, default=str, indent=True))
        sys.exit(1)
    return output


@click.group(cls=CatchAllExceptions(click.Group), result_callback=json_formatter_cb)
@click.option(
    "--host",
    "hosts",
    envvar="TAPO_HOST",
    multiple=True,
    help="Address of a device, can be given multiple times.",
)
@click.option("--port", envvar="TAPO_PORT", type=int, help="Port of the devices.")
@click.option(
    "--username",
    envvar="TAPO_USERNAME",
    required=False,
    help="Email address of the Tapo account.",
)
@click.option(
    "--password",
    envvar="TAPO_PASSWORD",
    required=False,
    help="Password of the Tapo account.",
)
@click.option(
    "--timeout",
    envvar="TAPO_TIMEOUT",
    default=DeviceConfig.DEFAULT_TIMEOUT,
    show_default=True,
    type=int,
    help="Timeout for device communications.",
)
@click.option("-d", "--debug", envvar="TAPO_DEBUG", default=False, is_flag=True)
@click.option("--json/--no-json", envvar="TAPO_JSON", default=False, is_flag=True)
@click.version_option(package_name="tapolink")
@click.pass_context
async def cli(ctx, hosts, port, username, password, timeout, debug, json):
    """A tool for controlling Tapo plugs and bulbs."""
    logging.basicConfig(level=logging.DEBUG if debug else logging.INFO)

    if bool(password) != bool(username):
        raise click.BadOptionUsage(
            "username", "Using authentication requires both --username and --password"
        )
    credentials = Credentials(username, password) if username else None

    # TAPO_HOST may hold several whitespace separated addresses
    expanded = tuple(h for host in hosts for h in host.split())
    ctx.obj = CliContext(
        hosts=expanded,
        port=port,
        timeout=timeout,
        credentials=credentials,
        json=json,
    )


@cli.command(name="list")
@click.option("--device-type", help="Only list devices of this type.")
@pass_ctx
async def list_devices(ctx: CliContext, device_type: str | None):
    """List the devices registered to the cloud account."""
    if ctx.credentials is None:
        raise click.UsageError("--username and --password are required.")
    client = CloudClient(CloudConfig())
    try:
        await client.login(ctx.credentials)
        if device_type:
            devices = await client.list_devices_by_type(device_type)
        else:
            devices = await client.list_devices()
    finally:
        await client.close()

    if not ctx.json:
        for dev in devices:
            echo(f"{dev.alias} ({dev.device_type}, {dev.device_mac})")
    return [dev.to_dict() for dev in devices]


@cli.command()
@click.option("--transition", type=int, required=False)
@pass_ctx
async def on(ctx: CliContext, transition: int | None):
    """Turn the devices on."""
    return await run_on_devices(ctx, lambda dev: dev.turn_on(transition))


@cli.command()
@click.option("--transition", type=int, required=False)
@pass_ctx
async def off(ctx: CliContext, transition: int | None):
    """Turn the devices off."""
    return await run_on_devices(ctx, lambda dev: dev.turn_off(transition))


@cli.command()
@click.argument("brightness", type=click.IntRange(1, 100))
@click.option("--transition", type=int, required=False)
@pass_ctx
async def brightness(ctx: CliContext, brightness: int, transition: int | None):
    """Set the brightness."""
    if not ctx.json:
        echo(f"Setting brightness to {brightness}")
    return await run_on_devices(
        ctx, lambda dev: dev.set_brightness(brightness, transition=transition)
    )


@cli.command()
@click.argument("temperature", type=click.IntRange(2500, 9000))
@click.option("--transition", type=int, required=False)
@pass_ctx
async def temperature(ctx: CliContext, temperature: int, transition: int | None):
    """Set the color temperature."""
    if not ctx.json:
        echo(f"Setting color temperature to {temperature}")
    return await run_on_devices(
        ctx, lambda dev: dev.set_color_temp(temperature, transition=transition)
    )


@cli.command()
@click.argument("name", default="white")
@pass_ctx
async def color(ctx: CliContext, name: str):
    """Set a named color or #rrggbb value."""
    return await run_on_devices(ctx, lambda dev: dev.set_color(name))


@cli.command()
@pass_ctx
async def state(ctx: CliContext):
    """Print the state of the devices."""

    async def _state(dev: TapoDevice) -> dict[str, Any]:
        info = await dev.get_device_info()
        if not ctx.json:
            echo(f"== {info.nickname} - {info.model} ({dev.host}) ==")
            echo(f"\tDevice state: {'ON' if info.device_on else 'OFF'}")
            echo(f"\tSSID: {info.ssid}")
            if info.brightness is not None:
                echo(f"\tBrightness: {info.brightness}")
            if info.color_temp is not None:
                echo(f"\tColor temperature: {info.color_temp}")
        return info.to_dict()

    return await run_on_devices(ctx, _state)


if __name__ == "__main__":
    cli()
