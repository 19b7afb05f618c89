"""Tests for the derived-metrics calculator."""

import math

import pytest

from pnlcard.calculations import pnl_calcs
from pnlcard.calculations.pnl_calcs import DERIVED_FIELDS, calculate_pnl_values


@pytest.fixture
def position():
    """A 2 BTC long at 100, marked at 110."""
    return {
        "symbol": "BTCUSDT",
        "entry_price": 100.0,
        "mark_price": 110.0,
        "size": 2.0,
        "size_unit": "BTC",
        "leverage": 10,
        "position_type": "Long",
        "margin_mode": "Cross",
        "wallet_balance": 1000.0,
    }


class TestEarlyExit:
    def test_returns_input_when_entry_price_missing(self, position):
        del position["entry_price"]
        result = calculate_pnl_values(position)
        assert result == position
        assert "unrealized_pnl" not in result

    def test_returns_input_when_size_zero(self, position):
        position["size"] = 0
        assert calculate_pnl_values(position) == position

    def test_returns_input_when_entry_price_zero(self, position):
        position["entry_price"] = 0
        assert calculate_pnl_values(position) == position

    def test_empty_input(self):
        assert calculate_pnl_values({}) == {}

    def test_does_not_mutate_input(self, position):
        original = dict(position)
        calculate_pnl_values(position)
        assert position == original


class TestUnitInterpretation:
    def test_base_asset_size(self, position):
        # position value = 100 * 2 = 200, margin = 200 / 10
        result = calculate_pnl_values(position)
        assert result["unrealized_pnl"] == 20.00
        assert result["margin"] == 20.00
        assert result["roi"] == 100.00

    def test_notional_size_matches_base_asset(self, position):
        base = calculate_pnl_values(position)
        position.update(size=200.0, size_unit="USDT")
        notional = calculate_pnl_values(position)
        for field in DERIVED_FIELDS:
            assert notional[field] == base[field]

    def test_notional_unit_is_case_insensitive(self, position):
        position.update(size=200.0, size_unit="usdt")
        assert calculate_pnl_values(position)["unrealized_pnl"] == 20.00

    def test_other_fields_pass_through(self, position):
        result = calculate_pnl_values(position)
        assert result["symbol"] == "BTCUSDT"
        assert result["mark_price"] == 110.0


class TestDirection:
    def test_short_flips_sign(self, position):
        position["position_type"] = "Short"
        result = calculate_pnl_values(position)
        assert result["unrealized_pnl"] == -20.00
        assert result["roi"] == -100.00


class TestMarginRatio:
    def test_ratio_of_maintenance_to_balance(self, position):
        # maintenance = 200 * 0.004 = 0.8, balance = 1000 + 20
        result = calculate_pnl_values(position)
        assert result["margin_ratio"] == round(0.8 / 1020 * 100, 2)

    def test_clamped_to_100_when_balance_wiped_out(self, position):
        position.update(wallet_balance=10.0, mark_price=50.0)
        # pnl = -100, balance = 10 - 100 <= 0
        result = calculate_pnl_values(position)
        assert result["margin_ratio"] == 100.00

    def test_stays_within_bounds(self, position):
        position.update(wallet_balance=1.0, mark_price=100.4)
        result = calculate_pnl_values(position)
        assert 0 <= result["margin_ratio"] <= 100


class TestLiquidationPrice:
    def test_isolated_long_uses_leverage(self, position):
        position["margin_mode"] = "Isolated"
        # 100 * (1 - 1/10 + 0.004)
        assert calculate_pnl_values(position)["liq_price"] == 90.40

    def test_isolated_short_uses_leverage(self, position):
        position.update(margin_mode="Isolated", position_type="Short")
        # 100 * (1 + 1/10 - 0.004)
        assert calculate_pnl_values(position)["liq_price"] == 109.60

    def test_cross_short_uses_wallet(self, position):
        position["position_type"] = "Short"
        # 100 * (1 + 1000/200 - 0.004)
        assert calculate_pnl_values(position)["liq_price"] == 599.60

    def test_cross_long_clamped_at_zero(self, position):
        # 100 * (1 - 1000/200 + 0.004) is negative
        assert calculate_pnl_values(position)["liq_price"] == 0.00

    def test_cross_and_isolated_diverge(self, position):
        position["wallet_balance"] = 50.0
        cross = calculate_pnl_values(position)
        position["margin_mode"] = "Isolated"
        isolated = calculate_pnl_values(position)
        # cross: 100 * (1 - 50/200 + 0.004)
        assert cross["liq_price"] == 75.40
        assert isolated["liq_price"] == 90.40
        assert cross["liq_price"] != isolated["liq_price"]
        assert cross["liq_price"] >= 0
        assert isolated["liq_price"] >= 0

    def test_isolated_ignores_wallet(self, position):
        position["margin_mode"] = "Isolated"
        first = calculate_pnl_values(position)
        position["wallet_balance"] = 5.0
        assert calculate_pnl_values(position)["liq_price"] == first["liq_price"]

    def test_zero_position_value_does_not_raise(self):
        assert pnl_calcs.liquidation_price(100.0, 0.0, 10, 1000.0, "Long", "Cross") == 0.0
        short = pnl_calcs.liquidation_price(100.0, 0.0, 10, 1000.0, "Short", "Cross")
        assert math.isinf(short)


class TestDefaults:
    def test_missing_fields_use_defaults(self):
        result = calculate_pnl_values({"entry_price": 100.0, "size": 2.0})
        # leverage 20, mark = entry, Long, BTC, wallet 10000, Cross
        assert result["unrealized_pnl"] == 0.00
        assert result["margin"] == 10.00
        assert result["roi"] == 0.00
        assert result["liq_price"] == 0.00

    def test_zero_leverage_treated_as_default(self, position):
        position["leverage"] = 0
        assert calculate_pnl_values(position)["margin"] == 10.00

    def test_zero_mark_price_treated_as_entry(self, position):
        position["mark_price"] = 0
        assert calculate_pnl_values(position)["unrealized_pnl"] == 0.00

    def test_zero_wallet_treated_as_default(self, position):
        position["wallet_balance"] = 0
        position["position_type"] = "Short"
        # 100 * (1 + 10000/200 - 0.004)
        assert calculate_pnl_values(position)["liq_price"] == 5099.60


class TestNumericEdges:
    def test_all_outputs_rounded_to_cents(self, position):
        position.update(entry_price=89493.2, mark_price=87689.94, size=0.768, leverage=7)
        result = calculate_pnl_values(position)
        for field in DERIVED_FIELDS:
            assert round(result[field], 2) == result[field]

    def test_non_finite_inputs_propagate(self):
        result = calculate_pnl_values({"entry_price": math.inf, "size": 2.0})
        assert math.isnan(result["unrealized_pnl"])
        assert math.isnan(result["roi"])
        assert math.isinf(result["margin"])
        assert math.isnan(result["margin_ratio"])

    def test_idempotent(self, position):
        once = calculate_pnl_values(position)
        twice = calculate_pnl_values(once)
        for field in DERIVED_FIELDS:
            assert abs(twice[field] - once[field]) <= 0.01


class TestMetricsChanged:
    def test_tiny_difference_is_ignored(self):
        previous = {field: 1.0 for field in DERIVED_FIELDS}
        computed = {field: 1.004 for field in DERIVED_FIELDS}
        assert pnl_calcs.metrics_changed(previous, computed) is False

    def test_difference_above_epsilon(self):
        previous = {field: 1.0 for field in DERIVED_FIELDS}
        computed = dict(previous, roi=1.02)
        assert pnl_calcs.metrics_changed(previous, computed) is True

    def test_missing_previous_value_counts_as_change(self):
        computed = {field: 1.0 for field in DERIVED_FIELDS}
        assert pnl_calcs.metrics_changed({}, computed) is True

    def test_early_exit_result_never_changes(self):
        assert pnl_calcs.metrics_changed({}, {"symbol": "BTCUSDT"}) is False


class TestRounding:
    def test_exact_ties_round_away_from_zero(self):
        # pnl = 0.125 * 1 and margin = 2.5 / 20 are exact binary ties
        result = calculate_pnl_values(
            {"entry_price": 2.5, "mark_price": 2.625, "size": 1.0, "leverage": 20}
        )
        assert result["unrealized_pnl"] == 0.13
        assert result["margin"] == 0.13

    def test_negative_tie_rounds_away_from_zero(self):
        result = calculate_pnl_values(
            {
                "entry_price": 2.5,
                "mark_price": 2.625,
                "size": 1.0,
                "leverage": 20,
                "position_type": "Short",
            }
        )
        assert result["unrealized_pnl"] == -0.13

    def test_uses_exact_binary_value(self):
        # 2.675 is stored just below the tie
        assert pnl_calcs._round2(2.675) == 2.67
        assert pnl_calcs._round2(1.005) == 1.0

    def test_large_and_non_finite_values_pass_through(self):
        assert pnl_calcs._round2(1e300) == 1e300
        assert math.isinf(pnl_calcs._round2(-math.inf))
        assert math.isnan(pnl_calcs._round2(math.nan))
