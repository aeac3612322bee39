"""Pydantic v2 models: remote response schemas and normalized client snapshots."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from photonscore.scoring.tiers import TierInfo, classify


# --- Remote response shapes (GET /score, GET /crypto-profile) ---


class Subscores(BaseModel):
    capacity: float
    stability: float
    behavior: float
    diversity: float


class RiskFlags(BaseModel):
    """Named adverse-pattern counters. Unknown counters are kept as extras."""

    model_config = ConfigDict(extra="allow")

    auto_decline_blacklisted_ge_5pct: int = Field(ge=0)
    capped_blacklisted_1_to_5pct: int = Field(ge=0)
    capped_scam_ge_10pct: int = Field(ge=0)
    capped_inactive_young: int = Field(ge=0)


class TopReason(BaseModel):
    reason: str
    impact: float


class OwnerReportItem(BaseModel):
    category: str
    metric: str
    value: str | int | float
    percentile: float


class Scores(BaseModel):
    fico_equivalent: int
    composite_0_100: float
    subscores: Subscores


class CreditSummary(BaseModel):
    scores: Scores
    risk_flags: RiskFlags
    top_reasons: list[TopReason]


class ScoreResponse(BaseModel):
    credit_summary: CreditSummary
    owner_report: list[OwnerReportItem] = Field(default_factory=list)

    @field_validator("owner_report", mode="before")
    @classmethod
    def _null_report_is_empty(cls, v):
        return [] if v is None else v


class RawChainBalance(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    value_usd: float = Field(alias="valueUsd")


class RawMultiChainBalances(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    by_chain: list[RawChainBalance] = Field(alias="byChain")
    total_value_usd: float | None = Field(default=None, alias="totalValueUsd")


class RawAsset(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    symbol: str
    logo: str | None = None
    balance_usd: float = Field(alias="balanceUsd")
    price_usd: float | None = Field(default=None, alias="priceUsd")
    price_change_24h: float | None = Field(default=None, alias="priceChange24h")
    chain_id: str = Field(alias="chainId")


class RawTransaction(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    hash: str
    chain: str
    tx_type: str = Field(alias="txType")
    tx_classification: str = Field(alias="txClassification")
    iso_date: str = Field(alias="isoDate")
    successful: bool
    tx_fee_usd: float | None = Field(default=None, alias="txFeeUsd")


class CryptoProfileResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_balance_usd: float = Field(alias="totalBalanceUsd")
    multi_chain_balances: RawMultiChainBalances = Field(alias="multiChainBalances")
    assets: dict[str, list[RawAsset]]
    transaction_history: list[RawTransaction] = Field(alias="transactionHistory")


# --- Normalized client snapshots ---


class ScoreSnapshot(BaseModel):
    """One scoring result for one wallet. Tier fields are always derived from fico_score."""

    model_config = ConfigDict(frozen=True)

    wallet_address: str
    fico_score: int
    composite_score: float
    subscores: Subscores
    risk_flags: RiskFlags
    top_reasons: list[TopReason]
    owner_report: list[OwnerReportItem] = Field(default_factory=list)
    fetched_at: str

    @property
    def tier_info(self) -> TierInfo:
        return classify(self.fico_score)

    @computed_field
    @property
    def tier(self) -> str:
        return self.tier_info.tier

    @computed_field
    @property
    def tier_label(self) -> str:
        return self.tier_info.label

    @computed_field
    @property
    def tier_color(self) -> str:
        return self.tier_info.color


class ChainBalance(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    value_usd: float


class Asset(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    symbol: str
    logo: str | None = None
    balance_usd: float
    price_usd: float | None = None
    price_change_24h: float | None = None
    chain_id: str


class PortfolioTransaction(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    hash: str
    chain: str
    type: str
    classification: str
    date: str
    successful: bool
    fee_usd: float | None = None


class PortfolioSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    wallet_address: str
    total_balance_usd: float
    chains: list[ChainBalance]
    assets: dict[str, list[Asset]]
    transactions: list[PortfolioTransaction]
    fetched_at: str

    def chain_share(self, chain: ChainBalance) -> float:
        """Percentage of the total balance held on one chain."""
        if not self.total_balance_usd:
            return 0.0
        return chain.value_usd / self.total_balance_usd * 100

    def all_assets(self) -> list[Asset]:
        """Assets across every chain, largest USD balance first."""
        flat = [a for chain_assets in self.assets.values() for a in chain_assets]
        return sorted(flat, key=lambda a: a.balance_usd, reverse=True)

    def chain_value_drift(self) -> float:
        """total_balance_usd minus the per-chain sum. Informational only."""
        return self.total_balance_usd - sum(c.value_usd for c in self.chains)


class HistoryEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    fico_score: int
    composite_score: float
    fetched_at: str


class CachedState(BaseModel):
    """Everything persisted on device, read once at startup."""

    model_config = ConfigDict(frozen=True)

    wallet_address: str | None = None
    score: ScoreSnapshot | None = None
    profile: PortfolioSnapshot | None = None
    history: list[HistoryEntry] = Field(default_factory=list)
