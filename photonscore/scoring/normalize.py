"""Map remote API responses (camelCase, nested) into client snapshots (snake_case, flat).

Both functions validate the raw payload against its schema before extracting
anything, so a missing or ill-typed field surfaces as one NormalizationError
carrying every offending path in `.fields`. The message itself is the
endpoint's generic failure text, fit for display.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from photonscore.errors import NormalizationError
from photonscore.models.schema import (
    Asset,
    ChainBalance,
    CryptoProfileResponse,
    PortfolioSnapshot,
    PortfolioTransaction,
    ScoreResponse,
    ScoreSnapshot,
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


def _timestamp(now: datetime | str) -> str:
    return now if isinstance(now, str) else now.isoformat()


def _validate(model: type[ModelT], raw: Any, what: str, message: str) -> ModelT:
    try:
        return model.model_validate(raw)
    except ValidationError as e:
        fields = [".".join(str(p) for p in err["loc"]) or "<root>" for err in e.errors()]
        logger.error(f"Unexpected {what} response shape: {', '.join(fields)}")
        raise NormalizationError(message, fields=fields) from e


def normalize_score(raw: Any, wallet_address: str, now: datetime | str) -> ScoreSnapshot:
    """Build a ScoreSnapshot from a /score response. Pure in (raw, wallet_address, now)."""
    data = _validate(ScoreResponse, raw, "score", "Failed to fetch score")
    summary = data.credit_summary

    return ScoreSnapshot(
        wallet_address=wallet_address,
        fico_score=summary.scores.fico_equivalent,
        composite_score=summary.scores.composite_0_100,
        subscores=summary.scores.subscores,
        risk_flags=summary.risk_flags,
        top_reasons=list(summary.top_reasons),
        owner_report=list(data.owner_report),
        fetched_at=_timestamp(now),
    )


def normalize_profile(raw: Any, wallet_address: str, now: datetime | str) -> PortfolioSnapshot:
    """Build a PortfolioSnapshot from a /crypto-profile response."""
    data = _validate(
        CryptoProfileResponse, raw, "crypto profile", "Failed to fetch crypto profile"
    )

    chains = [
        ChainBalance(id=c.id, name=c.name, value_usd=c.value_usd)
        for c in data.multi_chain_balances.by_chain
    ]

    assets = {
        chain_id: [
            Asset(
                id=a.id,
                name=a.name,
                symbol=a.symbol,
                logo=a.logo,
                balance_usd=a.balance_usd,
                price_usd=a.price_usd,
                price_change_24h=a.price_change_24h,
                chain_id=a.chain_id,
            )
            for a in chain_assets
        ]
        for chain_id, chain_assets in data.assets.items()
    }

    transactions = [
        PortfolioTransaction(
            id=tx.id,
            hash=tx.hash,
            chain=tx.chain,
            type=tx.tx_type,
            classification=tx.tx_classification,
            date=tx.iso_date,
            successful=tx.successful,
            fee_usd=tx.tx_fee_usd,
        )
        for tx in data.transaction_history
    ]

    return PortfolioSnapshot(
        wallet_address=wallet_address,
        total_balance_usd=data.total_balance_usd,
        chains=chains,
        assets=assets,
        transactions=transactions,
        fetched_at=_timestamp(now),
    )
