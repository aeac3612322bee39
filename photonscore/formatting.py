"""Display helpers for CLI output."""

from __future__ import annotations

import pandas as pd

from photonscore.models.schema import PortfolioSnapshot


def format_usd(value: float) -> str:
    sign = "-" if value < 0 else ""
    value = abs(value)
    if value >= 1_000_000:
        return f"{sign}${value / 1_000_000:.2f}M"
    if value >= 1_000:
        return f"{sign}${value / 1_000:.2f}K"
    if value >= 0.01:
        return f"{sign}${value:.2f}"
    return f"{sign}${value:.4f}"


def format_change(pct: float | None) -> str:
    if pct is None:
        return "-"
    sign = "+" if pct >= 0 else ""
    return f"{sign}{pct:.2f}%"


def chains_frame(profile: PortfolioSnapshot) -> pd.DataFrame:
    """Per-chain balances with their share of the total, in API order."""
    rows = [
        {
            "chain": c.name,
            "value": format_usd(c.value_usd),
            "share": f"{profile.chain_share(c):.1f}%",
        }
        for c in profile.chains
    ]
    return pd.DataFrame(rows, columns=["chain", "value", "share"])


def assets_frame(profile: PortfolioSnapshot, limit: int | None = None) -> pd.DataFrame:
    """Assets across all chains, largest first."""
    assets = profile.all_assets()
    if limit is not None:
        assets = assets[:limit]
    rows = [
        {
            "symbol": a.symbol,
            "chain": a.chain_id,
            "balance": format_usd(a.balance_usd),
            "price": format_usd(a.price_usd) if a.price_usd is not None else "-",
            "24h": format_change(a.price_change_24h),
        }
        for a in assets
    ]
    return pd.DataFrame(rows, columns=["symbol", "chain", "balance", "price", "24h"])
