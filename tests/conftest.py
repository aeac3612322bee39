"""
Pytest fixtures for photonscore tests. In-memory DuckDB cache, httpx.MockTransport for the API.
"""

from __future__ import annotations

import copy
from datetime import datetime, timezone

import httpx
import pytest

from photonscore.api.client import PhotonClient
from photonscore.service import PhotonService
from photonscore.storage.cache import PersistentCache, get_connection

WALLET = "0xABC0000000000000000000000000000000000001"
FETCHED_AT = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)
FETCHED_AT_ISO = "2026-01-15T12:00:00+00:00"

SCORE_RESPONSE = {
    "credit_summary": {
        "scores": {
            "fico_equivalent": 742,
            "composite_0_100": 68.5,
            "subscores": {"capacity": 85, "stability": 78, "behavior": 92, "diversity": 45},
        },
        "risk_flags": {
            "auto_decline_blacklisted_ge_5pct": 0,
            "capped_blacklisted_1_to_5pct": 0,
            "capped_scam_ge_10pct": 1,
            "capped_inactive_young": 0,
        },
        "top_reasons": [
            {"reason": "Long wallet history", "impact": 35},
            {"reason": "Consistent repayments", "impact": 22.5},
            {"reason": "Low asset diversity", "impact": -18},
        ],
    },
    "owner_report": [
        {"category": "activity", "metric": "tx_count_90d", "value": 142, "percentile": 81},
        {"category": "holdings", "metric": "largest_asset", "value": "ETH", "percentile": 64},
    ],
}

PROFILE_RESPONSE = {
    "totalBalanceUsd": 12500.0,
    "multiChainBalances": {
        "byChain": [
            {"id": "eth", "name": "Ethereum", "valueUsd": 10000.0},
            {"id": "base", "name": "Base", "valueUsd": 2500.0},
        ],
        "totalValueUsd": 12500.0,
    },
    "assets": {
        "eth": [
            {
                "id": "eth-native",
                "name": "Ether",
                "symbol": "ETH",
                "logo": "https://cdn.example/eth.png",
                "balanceUsd": 9000.0,
                "priceUsd": 3000.0,
                "priceChange24h": -1.25,
                "chainId": "eth",
            },
            {
                "id": "eth-usdc",
                "name": "USD Coin",
                "symbol": "USDC",
                "balanceUsd": 1000.0,
                "chainId": "eth",
            },
        ],
        "base": [
            {
                "id": "base-native",
                "name": "Ether",
                "symbol": "ETH",
                "balanceUsd": 2500.0,
                "priceUsd": 3000.0,
                "priceChange24h": 0.5,
                "chainId": "base",
            },
        ],
    },
    "transactionHistory": [
        {
            "id": "tx1",
            "hash": "0xdead",
            "chain": "eth",
            "txType": "send",
            "txClassification": "transfer",
            "isoDate": "2026-01-10T08:00:00Z",
            "successful": True,
            "txFeeUsd": 1.73,
        },
        {
            "id": "tx2",
            "hash": "0xbeef",
            "chain": "base",
            "txType": "swap",
            "txClassification": "defi",
            "isoDate": "2026-01-09T08:00:00Z",
            "successful": False,
        },
    ],
}


@pytest.fixture
def score_payload() -> dict:
    return copy.deepcopy(SCORE_RESPONSE)


@pytest.fixture
def profile_payload() -> dict:
    return copy.deepcopy(PROFILE_RESPONSE)


@pytest.fixture
def cache():
    cache = PersistentCache(get_connection(":memory:"))
    yield cache
    cache.close()


def make_client(handler) -> PhotonClient:
    return PhotonClient(
        base_url="https://photon.test/api",
        api_key="test-key",
        transport=httpx.MockTransport(handler),
    )


def api_handler(score=None, profile=None, status: int = 200):
    """MockTransport handler serving fixed /score and /crypto-profile bodies."""

    def handler(request: httpx.Request) -> httpx.Response:
        if "/score/" in request.url.path:
            return httpx.Response(status, json=score if score is not None else SCORE_RESPONSE)
        if "/crypto-profile/" in request.url.path:
            return httpx.Response(status, json=profile if profile is not None else PROFILE_RESPONSE)
        return httpx.Response(404, json={"message": "Not found"})

    return handler


@pytest.fixture
def make_service(cache):
    """Build a PhotonService over the in-memory cache with a fixed clock."""

    def _make(handler=None, clock=None) -> PhotonService:
        return PhotonService(
            make_client(handler or api_handler()),
            cache,
            clock=clock or (lambda: FETCHED_AT),
        )

    return _make
