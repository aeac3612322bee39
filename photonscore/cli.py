"""Click CLI: set-wallet, score, profile, refresh, history, show, clear."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

import click

from photonscore.config import build_service, get_settings
from photonscore.errors import PhotonError
from photonscore.scoring.tiers import gauge_percentage

T = TypeVar("T")


def _run(fn: Callable[..., Awaitable[T]], remote: bool = False) -> T:
    """Open a service, run one coroutine against it, always close it."""

    async def _main():
        service = build_service(require_api_key=remote)
        try:
            return await fn(service)
        finally:
            await service.aclose()

    try:
        return asyncio.run(_main())
    except (PhotonError, ValueError) as e:
        raise click.ClickException(str(e)) from e


async def _resolve_address(service, address: str | None) -> str:
    address = address or await service.get_wallet_address()
    if not address:
        raise click.ClickException("No wallet address set. Run `photonscore set-wallet ADDRESS` first.")
    return address


def _echo_score(score) -> None:
    click.echo(f"Wallet:    {score.wallet_address}")
    click.echo(f"Score:     {score.fico_score} ({score.tier_label}, {score.tier_color})")
    click.echo(f"Composite: {score.composite_score:.1f}/100")
    click.echo(f"Gauge:     {gauge_percentage(score.fico_score):.0f}% of the 300-850 range")
    s = score.subscores
    click.echo(
        f"Subscores: capacity={s.capacity:g} stability={s.stability:g} "
        f"behavior={s.behavior:g} diversity={s.diversity:g}"
    )
    flags = {k: v for k, v in score.risk_flags.model_dump().items() if v}
    if flags:
        click.echo("Risk flags: " + ", ".join(f"{k}={v}" for k, v in flags.items()))
    for r in score.top_reasons:
        click.echo(f"  {r.impact:+g}  {r.reason}")
    click.echo(f"Fetched:   {score.fetched_at}")


def _echo_profile(profile) -> None:
    from photonscore.formatting import assets_frame, chains_frame, format_usd

    click.echo(f"Wallet:  {profile.wallet_address}")
    click.echo(f"Balance: {format_usd(profile.total_balance_usd)}")
    if profile.chains:
        click.echo("\n--- Chains ---")
        click.echo(chains_frame(profile).to_string(index=False))
        drift = profile.chain_value_drift()
        if abs(drift) >= 0.01:
            click.echo(f"Unattributed to a chain: {format_usd(drift)}")
    assets = assets_frame(profile, limit=20)
    if not assets.empty:
        click.echo("\n--- Assets ---")
        click.echo(assets.to_string(index=False))
    click.echo(f"\n{len(profile.transactions)} transactions, fetched {profile.fetched_at}")


@click.group()
@click.version_option(version="1.0.0")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def cli(verbose: bool):
    """Photon - wallet credit score client."""
    level = "DEBUG" if verbose else get_settings().log_level
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


@cli.command("set-wallet")
@click.argument("address")
def set_wallet(address: str):
    """Save the active wallet address."""

    async def _set(service):
        await service.set_wallet_address(address)

    _run(_set)
    click.echo(f"Wallet set to {address.strip()}")


@cli.command()
def wallet():
    """Print the active wallet address."""

    async def _get(service):
        return await service.get_wallet_address()

    address = _run(_get)
    click.echo(address or "No wallet address set.")


@cli.command()
@click.option("--address", default=None, help="Wallet address (defaults to the saved one)")
def score(address: str | None):
    """Fetch a fresh score and cache it."""

    async def _fetch(service):
        return await service.fetch_score(await _resolve_address(service, address))

    _echo_score(_run(_fetch, remote=True))


@cli.command()
@click.option("--address", default=None, help="Wallet address (defaults to the saved one)")
def profile(address: str | None):
    """Fetch a fresh cross-chain portfolio and cache it."""

    async def _fetch(service):
        return await service.fetch_profile(await _resolve_address(service, address))

    _echo_profile(_run(_fetch, remote=True))


@cli.command()
@click.option("--address", default=None, help="Wallet address (defaults to the saved one)")
def refresh(address: str | None):
    """Fetch score and portfolio together."""

    async def _fetch(service):
        return await service.refresh_all(await _resolve_address(service, address))

    new_score, new_profile = _run(_fetch, remote=True)
    _echo_score(new_score)
    click.echo("")
    _echo_profile(new_profile)


@cli.command()
@click.option("--limit", default=20, type=click.IntRange(min=1), help="Number of most recent entries to show")
def history(limit: int):
    """Show score history, oldest first."""
    from photonscore.history import history_frame, score_change

    async def _get(service):
        return await service.get_history()

    entries = _run(_get)
    if not entries:
        click.echo("No score history yet.")
        return

    click.echo(history_frame(entries[-limit:]).to_string(index=False))
    change = score_change(entries)
    if change is not None:
        click.echo(f"\nChange since previous: {change:+d}")


@cli.command()
def show():
    """Show everything cached on this device."""

    async def _load(service):
        return await service.load_cached_state()

    state = _run(_load)
    click.echo(f"Wallet: {state.wallet_address or '-'}")
    click.echo(f"History entries: {len(state.history)}")
    if state.score:
        click.echo("\n--- Cached score ---")
        _echo_score(state.score)
    if state.profile:
        click.echo("\n--- Cached portfolio ---")
        _echo_profile(state.profile)


@cli.command()
@click.confirmation_option(prompt="Remove the wallet address and all cached data?")
def clear():
    """Remove the wallet address, cached score, portfolio and history."""

    async def _clear(service):
        await service.clear_all_data()

    _run(_clear)
    click.echo("All cached data cleared.")


if __name__ == "__main__":
    cli()
