"""presence-ipc CLI.

Usage:
    presence-ipc --client-id 123456 set --state "In a match" --details Ranked
    presence-ipc set --large-image logo --button Website https://example.com
    presence-ipc set --state Idle --hold 60   # keep presence for a minute
    presence-ipc clear                        # remove presence
    presence-ipc status                       # print the READY payload

The client id can also come from PRESENCE_IPC_CLIENT_ID.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from collections.abc import Awaitable, Callable
from typing import Any

import click

from .activity import Activity
from .config import ENV_CLIENT_ID, ENV_PREFIX, ClientConfig
from .errors import PresenceIPCError
from .protocol import EventKind
from .session import Session

SessionAction = Callable[[Session], Awaitable[Any]]


@click.group()
@click.option(
    "--client-id",
    default=None,
    help=f"Application id sent in the handshake (env: {ENV_CLIENT_ID})",
)
@click.option(
    "--ipc-prefix",
    default=None,
    help=f"Endpoint name prefix (env: {ENV_PREFIX})",
)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def main(ctx: click.Context, client_id: str | None, ipc_prefix: str | None, verbose: bool) -> None:
    """Talk to the local desktop presence service."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )
    try:
        config = ClientConfig.from_env(client_id)
    except ValueError as e:
        raise click.UsageError(f"Pass --client-id or set {ENV_CLIENT_ID}") from e
    if ipc_prefix:
        config.ipc_prefix = ipc_prefix
    ctx.obj = config


def _run(config: ClientConfig, action: SessionAction) -> Any:
    """Open a session, run ``action`` on it and always disconnect."""

    async def run() -> Any:
        async with Session(config) as session:
            if not session.is_connected:
                raise click.ClickException("Service did not accept the handshake")
            return await action(session)

    try:
        return asyncio.run(run())
    except PresenceIPCError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    except TimeoutError:
        click.echo("Error: timed out waiting for the service", err=True)
        sys.exit(1)


@main.command("set")
@click.option("--state", help="Current party status")
@click.option("--details", help="What the player is doing")
@click.option("--large-image", help="Large image asset key")
@click.option("--large-text", help="Hover text for the large image")
@click.option("--small-image", help="Small image asset key")
@click.option("--small-text", help="Hover text for the small image")
@click.option("--start", type=int, help="Start time (unix seconds)")
@click.option("--end", type=int, help="End time (unix seconds)")
@click.option(
    "--button",
    "buttons",
    type=(str, str),
    multiple=True,
    metavar="LABEL URL",
    help="Add a button (repeatable)",
)
@click.option(
    "--hold",
    type=float,
    default=0.0,
    help="Seconds to keep the session open after setting presence",
)
@click.pass_obj
def set_command(
    config: ClientConfig,
    state: str | None,
    details: str | None,
    large_image: str | None,
    large_text: str | None,
    small_image: str | None,
    small_text: str | None,
    start: int | None,
    end: int | None,
    buttons: tuple[tuple[str, str], ...],
    hold: float,
) -> None:
    """Set presence for this process."""
    activity = build_activity(
        state=state,
        details=details,
        large_image=large_image,
        large_text=large_text,
        small_image=small_image,
        small_text=small_text,
        start=start,
        end=end,
        buttons=buttons,
    )

    async def action(session: Session) -> None:
        await session.set_activity(activity)
        click.echo("Presence set", err=True)
        if hold > 0:
            await asyncio.sleep(hold)

    _run(config, action)


@main.command("clear")
@click.pass_obj
def clear_command(config: ClientConfig) -> None:
    """Clear presence for this process."""

    async def action(session: Session) -> None:
        await session.clear_activity()
        click.echo("Presence cleared", err=True)

    _run(config, action)


@main.command("status")
@click.option("--timeout", type=float, default=5.0, help="Seconds to wait for READY")
@click.pass_obj
def status_command(config: ClientConfig, timeout: float) -> None:
    """Connect and print the service's READY payload as JSON."""

    async def action(session: Session) -> Any:
        ready = await session.wait_for(EventKind.READY, timeout=timeout)
        return ready.data

    data = _run(config, action)
    click.echo(json.dumps(data, indent=2))


def build_activity(
    *,
    state: str | None = None,
    details: str | None = None,
    large_image: str | None = None,
    large_text: str | None = None,
    small_image: str | None = None,
    small_text: str | None = None,
    start: int | None = None,
    end: int | None = None,
    buttons: tuple[tuple[str, str], ...] = (),
) -> Activity:
    """Build an Activity from optional CLI values."""
    activity = Activity()
    if state:
        activity.set_state(state)
    if details:
        activity.set_details(details)
    if start is not None or end is not None:
        activity.set_timestamps(start, end)
    if large_image:
        activity.set_large_image(large_image)
    if large_text:
        activity.set_large_text(large_text)
    if small_image:
        activity.set_small_image(small_image)
    if small_text:
        activity.set_small_text(small_text)
    if buttons:
        activity.set_buttons(buttons)
    return activity
