"""Tests for score and profile normalization."""

import pytest

from conftest import FETCHED_AT, FETCHED_AT_ISO, WALLET
from photonscore.errors import NormalizationError
from photonscore.models.schema import ScoreSnapshot
from photonscore.scoring.normalize import normalize_profile, normalize_score


class TestNormalizeScore:
    def test_scenario(self, score_payload):
        snap = normalize_score(score_payload, WALLET, FETCHED_AT)

        assert snap.wallet_address == WALLET
        assert snap.fico_score == 742
        assert snap.composite_score == 68.5
        assert snap.subscores.model_dump() == {
            "capacity": 85, "stability": 78, "behavior": 92, "diversity": 45,
        }
        assert snap.tier == "very_good"
        assert snap.tier_label == "Very Good"
        assert snap.tier_color == "#84CC16"
        assert snap.fetched_at == FETCHED_AT_ISO

    def test_reasons_and_report_keep_order(self, score_payload):
        snap = normalize_score(score_payload, WALLET, FETCHED_AT)
        assert [r.reason for r in snap.top_reasons] == [
            "Long wallet history", "Consistent repayments", "Low asset diversity",
        ]
        assert [r.impact for r in snap.top_reasons] == [35, 22.5, -18]
        assert snap.owner_report[0].value == 142
        assert snap.owner_report[1].value == "ETH"

    def test_risk_flags_copied_verbatim(self, score_payload):
        score_payload["credit_summary"]["risk_flags"]["new_server_flag"] = 3
        snap = normalize_score(score_payload, WALLET, FETCHED_AT)
        flags = snap.risk_flags.model_dump()
        assert flags["capped_scam_ge_10pct"] == 1
        assert flags["new_server_flag"] == 3

    def test_idempotent(self, score_payload):
        a = normalize_score(score_payload, WALLET, FETCHED_AT)
        b = normalize_score(score_payload, WALLET, FETCHED_AT)
        assert a.model_dump_json() == b.model_dump_json()

    def test_string_timestamp_used_verbatim(self, score_payload):
        snap = normalize_score(score_payload, WALLET, "2026-01-15T12:00:00.000Z")
        assert snap.fetched_at == "2026-01-15T12:00:00.000Z"

    def test_owner_report_optional(self, score_payload):
        del score_payload["owner_report"]
        assert normalize_score(score_payload, WALLET, FETCHED_AT).owner_report == []

    def test_null_owner_report_is_empty(self, score_payload):
        score_payload["owner_report"] = None
        assert normalize_score(score_payload, WALLET, FETCHED_AT).owner_report == []

    def test_missing_nested_field(self, score_payload):
        del score_payload["credit_summary"]["scores"]["subscores"]["diversity"]
        with pytest.raises(NormalizationError) as exc:
            normalize_score(score_payload, WALLET, FETCHED_AT)
        assert "credit_summary.scores.subscores.diversity" in exc.value.fields
        assert exc.value.message == "Failed to fetch score"

    def test_missing_summary(self):
        with pytest.raises(NormalizationError) as exc:
            normalize_score({"owner_report": []}, WALLET, FETCHED_AT)
        assert exc.value.fields == ("credit_summary",)

    def test_non_object_body(self):
        with pytest.raises(NormalizationError):
            normalize_score(["not", "a", "dict"], WALLET, FETCHED_AT)

    def test_negative_risk_flag_rejected(self, score_payload):
        score_payload["credit_summary"]["risk_flags"]["capped_inactive_young"] = -1
        with pytest.raises(NormalizationError):
            normalize_score(score_payload, WALLET, FETCHED_AT)

    def test_tier_rederived_when_reloaded(self, score_payload):
        data = normalize_score(score_payload, WALLET, FETCHED_AT).model_dump()
        data["tier"] = "poor"
        data["tier_color"] = "#EF4444"
        reloaded = ScoreSnapshot.model_validate(data)
        assert reloaded.tier == "very_good"
        assert reloaded.tier_color == "#84CC16"


class TestNormalizeProfile:
    def test_chains_renamed_in_order(self, profile_payload):
        snap = normalize_profile(profile_payload, WALLET, FETCHED_AT)
        assert snap.total_balance_usd == 12500.0
        assert [(c.id, c.name, c.value_usd) for c in snap.chains] == [
            ("eth", "Ethereum", 10000.0),
            ("base", "Base", 2500.0),
        ]

    def test_assets_renamed(self, profile_payload):
        snap = normalize_profile(profile_payload, WALLET, FETCHED_AT)
        assert list(snap.assets) == ["eth", "base"]
        eth = snap.assets["eth"][0]
        assert eth.balance_usd == 9000.0
        assert eth.price_usd == 3000.0
        assert eth.price_change_24h == -1.25
        assert eth.chain_id == "eth"
        assert eth.logo == "https://cdn.example/eth.png"
        assert [a.symbol for a in snap.assets["eth"]] == ["ETH", "USDC"]

    def test_optional_fields_stay_absent(self, profile_payload):
        snap = normalize_profile(profile_payload, WALLET, FETCHED_AT)
        usdc = snap.assets["eth"][1]
        assert usdc.logo is None
        assert usdc.price_usd is None
        assert usdc.price_change_24h is None
        dumped = snap.model_dump(exclude_none=True)
        assert "price_usd" not in dumped["assets"]["eth"][1]
        assert "fee_usd" not in dumped["transactions"][1]

    def test_transactions_renamed(self, profile_payload):
        snap = normalize_profile(profile_payload, WALLET, FETCHED_AT)
        tx = snap.transactions[0]
        assert (tx.type, tx.classification, tx.date, tx.fee_usd) == (
            "send", "transfer", "2026-01-10T08:00:00Z", 1.73,
        )
        assert [t.id for t in snap.transactions] == ["tx1", "tx2"]
        assert snap.transactions[1].successful is False
        assert snap.fetched_at == FETCHED_AT_ISO

    def test_helpers(self, profile_payload):
        snap = normalize_profile(profile_payload, WALLET, FETCHED_AT)
        assert snap.chain_share(snap.chains[0]) == pytest.approx(80.0)
        assert [a.balance_usd for a in snap.all_assets()] == [9000.0, 2500.0, 1000.0]
        assert snap.chain_value_drift() == pytest.approx(0.0)

    def test_missing_field(self, profile_payload):
        del profile_payload["transactionHistory"][0]["txType"]
        with pytest.raises(NormalizationError) as exc:
            normalize_profile(profile_payload, WALLET, FETCHED_AT)
        assert "transactionHistory.0.txType" in exc.value.fields
        assert exc.value.message == "Failed to fetch crypto profile"
