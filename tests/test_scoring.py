"""Tests for pulsetrade.strategy.scoring — rule contributions, mapping, signal."""

from dataclasses import replace

import pytest

from pulsetrade.strategy.models import Candle, IndicatorSnapshot
from pulsetrade.strategy.scoring import (
    HOLD_CONFIDENCE,
    HOLD_PROBABILITY,
    TIER_CONFIDENCE,
    historical_accuracy,
    map_score,
    score_indicators,
    score_signal,
)
from pulsetrade.strategy.thresholds import INSTRUMENT_THRESHOLDS, get_thresholds


FX = get_thresholds("forex_major")
TS = 1_700_000_000_000


# ── Fixtures ─────────────────────────────────────────────────────────────


def _candles(n: int, close: float = 1.1010) -> list[Candle]:
    return [
        Candle(TS + i * 60_000, close, close + 0.0002, close - 0.0002, close, 1000.0)
        for i in range(n)
    ]


def _bullish_snapshot(**overrides) -> IndicatorSnapshot:
    """Every rule leans bullish: RSI 30, MACD cross, price/EMA above, trend up."""
    snap = IndicatorSnapshot(
        sma20=1.1000,
        sma50=1.0995,
        ema12=1.1005,
        ema26=1.1000,
        rsi=30.0,
        macd=0.0002,
        macd_signal=0.0001,
        macd_histogram=0.0001,
        atr=0.0004,
        current_volume=1000.0,
        average_volume=1000.0,
        trend="BULLISH",
        momentum="STRONG_UP",
        current_price=1.1010,
        price_change=0.0002,
    )
    return replace(snap, **overrides)


def _bearish_snapshot(**overrides) -> IndicatorSnapshot:
    """Mirror image of ``_bullish_snapshot``."""
    snap = IndicatorSnapshot(
        sma20=1.1000,
        sma50=1.1005,
        ema12=1.0995,
        ema26=1.1000,
        rsi=70.0,
        macd=-0.0002,
        macd_signal=-0.0001,
        macd_histogram=-0.0001,
        atr=0.0004,
        current_volume=1000.0,
        average_volume=1000.0,
        trend="BEARISH",
        momentum="STRONG_DOWN",
        current_price=1.0990,
        price_change=-0.0002,
    )
    return replace(snap, **overrides)


def _neutral_snapshot(**overrides) -> IndicatorSnapshot:
    """Price above SMA20 (+2) but EMA12 below EMA26 (-2), RSI 50, flat MACD."""
    snap = IndicatorSnapshot(
        sma20=1.1000,
        sma50=1.1000,
        ema12=1.0999,
        ema26=1.1000,
        rsi=50.0,
        macd=0.0,
        macd_signal=0.0,
        macd_histogram=0.0,
        atr=0.0004,
        current_volume=1000.0,
        average_volume=1000.0,
        trend="SIDEWAYS",
        momentum="NEUTRAL",
        current_price=1.1010,
        price_change=0.0,
    )
    return replace(snap, **overrides)


# ── Rules ────────────────────────────────────────────────────────────────


class TestScoreIndicators:
    def test_all_bullish(self):
        score, reasons = score_indicators(_bullish_snapshot(), FX)
        # RSI +3, MACD +2, price +2, EMA +2, trend +2
        assert score == 11
        assert "RSI deep oversold (30.0)" in reasons
        assert "MACD bullish crossover" in reasons
        assert "Price above SMA20" in reasons
        assert "EMA12 above EMA26" in reasons
        assert "Bullish trend confirmed" in reasons

    def test_all_bearish_mirrors(self):
        bull, _ = score_indicators(_bullish_snapshot(), FX)
        bear, reasons = score_indicators(_bearish_snapshot(), FX)
        assert bear == -bull
        assert "RSI deep overbought (70.0)" in reasons
        assert "MACD bearish crossover" in reasons

    def test_neutral_is_zero(self):
        score, _ = score_indicators(_neutral_snapshot(), FX)
        assert score == 0

    @pytest.mark.parametrize(
        "rsi, delta",
        [
            (34.9, 3),
            (35.0, 1),
            (44.9, 1),
            (45.0, 0),
            (55.0, 0),
            (55.1, -1),
            (65.0, -1),
            (65.1, -3),
        ],
    )
    def test_rsi_zones(self, rsi, delta):
        score, _ = score_indicators(_neutral_snapshot(rsi=rsi), FX)
        assert score == delta

    @pytest.mark.parametrize(
        "macd, signal, hist, delta",
        [
            (0.00003, 0.00001, 0.00002, 2),
            (0.000015, 0.00001, 0.000005, 1),
            (0.00002, 0.00001, 0.00001, 1),  # exactly at threshold → mild
            (-0.00003, -0.00001, -0.00002, -2),
            (-0.000015, -0.00001, -0.000005, -1),
            (-0.00002, -0.00001, -0.00001, -1),
        ],
    )
    def test_macd_rules(self, macd, signal, hist, delta):
        snap = _neutral_snapshot(macd=macd, macd_signal=signal, macd_histogram=hist)
        score, _ = score_indicators(snap, FX)
        assert score == delta

    def test_price_and_ema_always_fire(self):
        snap = _neutral_snapshot(current_price=1.0990, ema12=1.1001)
        score, reasons = score_indicators(snap, FX)
        assert score == 0  # price -2, EMA +2
        assert "Price below SMA20" in reasons
        assert "EMA12 above EMA26" in reasons

    def test_volume_spike_amplifies_sign(self):
        bull, _ = score_indicators(_bullish_snapshot(current_volume=2500.0), FX)
        bear, _ = score_indicators(_bearish_snapshot(current_volume=2500.0), FX)
        assert bull == 12
        assert bear == -12

    def test_volume_spike_needs_multiplier(self):
        score, _ = score_indicators(_bullish_snapshot(current_volume=2000.0), FX)
        assert score == 11

    def test_volume_spike_ignored_at_zero_score(self):
        score, reasons = score_indicators(_neutral_snapshot(current_volume=5000.0), FX)
        assert score == 0
        assert not any("Volume" in r for r in reasons)


# ── Mapping ──────────────────────────────────────────────────────────────


class TestMapScore:
    @pytest.mark.parametrize(
        "score, expected",
        [
            (0, ("HOLD", "WEAK")),
            (3, ("HOLD", "WEAK")),
            (-3, ("HOLD", "WEAK")),
            (4, ("BUY", "MODERATE")),
            (6, ("BUY", "MODERATE")),
            (7, ("BUY", "STRONG")),
            (9, ("BUY", "STRONG")),
            (10, ("BUY", "VERY_STRONG")),
            (13, ("BUY", "VERY_STRONG")),
            (-4, ("SELL", "MODERATE")),
            (-7, ("SELL", "STRONG")),
            (-10, ("SELL", "VERY_STRONG")),
        ],
    )
    def test_mapping(self, score, expected):
        assert map_score(score, FX) == expected

    def test_symmetric(self):
        for score in range(1, 15):
            buy = map_score(score, FX)
            sell = map_score(-score, FX)
            assert buy[1] == sell[1]
            if buy[0] == "BUY":
                assert sell[0] == "SELL"


# ── Accuracy heuristic ───────────────────────────────────────────────────


class TestHistoricalAccuracy:
    def test_base(self):
        assert historical_accuracy(_neutral_snapshot(), FX) == pytest.approx(0.75)

    def test_extreme_rsi_nudges(self):
        assert historical_accuracy(_neutral_snapshot(rsi=20.0), FX) == pytest.approx(0.85)
        assert historical_accuracy(_neutral_snapshot(rsi=80.0), FX) == pytest.approx(0.85)

    def test_large_histogram_nudges(self):
        snap = _neutral_snapshot(macd_histogram=-0.0001)
        assert historical_accuracy(snap, FX) == pytest.approx(0.85)

    def test_both_nudges(self):
        assert historical_accuracy(_bullish_snapshot(), FX) == pytest.approx(0.95)

    def test_capped(self):
        generous = get_thresholds("forex_major", accuracy_step=0.2)
        assert historical_accuracy(_bullish_snapshot(), generous) == 0.95


# ── Signal ───────────────────────────────────────────────────────────────


class TestScoreSignal:
    def test_insufficient_history_hold(self):
        signal = score_signal(_candles(49), _bullish_snapshot(), FX, timestamp=TS)
        assert signal.action == "HOLD"
        assert signal.confidence == 25
        assert signal.strength == "WEAK"
        assert signal.reason == "Insufficient data"
        assert signal.entry_price == signal.stop_loss == signal.take_profit == 1.101

    def test_empty_history_hold(self):
        signal = score_signal([], _bullish_snapshot(), FX, timestamp=TS)
        assert signal.action == "HOLD"
        assert signal.entry_price == 0.0

    def test_very_strong_buy(self):
        signal = score_signal(_candles(60), _bullish_snapshot(), FX, timestamp=TS)
        assert signal.action == "BUY"
        assert signal.strength == "VERY_STRONG"
        assert signal.confidence == TIER_CONFIDENCE["VERY_STRONG"]
        expected_prob = round(90 * historical_accuracy(_bullish_snapshot(), FX))
        assert signal.probability == expected_prob
        assert signal.timestamp == TS
        assert "score +11" in signal.reason

    def test_buy_levels(self):
        signal = score_signal(_candles(60), _bullish_snapshot(), FX, timestamp=TS)
        # distance = 0.0004 × 1.5 = 0.0006, TP distance = 0.0009
        assert signal.entry_price == pytest.approx(1.1010)
        assert signal.stop_loss == pytest.approx(1.1004)
        assert signal.take_profit == pytest.approx(1.1019)
        assert signal.stop_loss < signal.entry_price < signal.take_profit

    def test_sell_levels(self):
        signal = score_signal(_candles(60, close=1.0990), _bearish_snapshot(), FX, timestamp=TS)
        assert signal.action == "SELL"
        assert signal.strength == "VERY_STRONG"
        assert signal.stop_loss == pytest.approx(1.0996)
        assert signal.take_profit == pytest.approx(1.0981)
        assert signal.take_profit < signal.entry_price < signal.stop_loss

    def test_symmetry(self):
        buy = score_signal(_candles(60), _bullish_snapshot(), FX, timestamp=TS)
        sell = score_signal(_candles(60, close=1.0990), _bearish_snapshot(), FX, timestamp=TS)
        assert buy.strength == sell.strength
        assert buy.confidence == sell.confidence
        assert buy.probability == sell.probability

    def test_dead_zone_hold(self):
        signal = score_signal(_candles(60), _neutral_snapshot(), FX, timestamp=TS)
        assert signal.action == "HOLD"
        assert signal.strength == "WEAK"
        assert signal.confidence == HOLD_CONFIDENCE
        assert signal.probability == HOLD_PROBABILITY
        assert signal.entry_price == signal.stop_loss == signal.take_profit

    def test_moderate_buy_probability(self):
        # RSI 50, mild MACD +1, price +2, EMA +2 → 5; no accuracy nudges
        snap = _bullish_snapshot(rsi=50.0, macd_histogram=0.000005, trend="SIDEWAYS")
        signal = score_signal(_candles(60), snap, FX, timestamp=TS)
        assert signal.action == "BUY"
        assert signal.strength == "MODERATE"
        assert signal.confidence == 65
        assert signal.probability == round(65 * 0.75)

    def test_zero_atr_uses_fallback_range(self):
        signal = score_signal(_candles(60), _bullish_snapshot(atr=0.0), FX, timestamp=TS)
        # 1.1010 × 0.0002 = 0.0002202
        assert signal.stop_loss == pytest.approx(1.10078)
        assert signal.take_profit == pytest.approx(1.10133)
        assert signal.stop_loss < signal.entry_price < signal.take_profit

    @pytest.mark.parametrize("category", sorted(INSTRUMENT_THRESHOLDS))
    def test_sub_tick_atr_keeps_bracket_open(self, category):
        thresholds = get_thresholds(category)
        tick = 10 ** -thresholds.price_decimals

        buy = score_signal(
            _candles(60), _bullish_snapshot(atr=tick / 2), thresholds, timestamp=TS,
        )
        sell = score_signal(
            _candles(60, close=1.0990), _bearish_snapshot(atr=tick / 2), thresholds, timestamp=TS,
        )

        assert buy.action == "BUY"
        assert buy.stop_loss < buy.entry_price < buy.take_profit
        assert sell.action == "SELL"
        assert sell.take_profit < sell.entry_price < sell.stop_loss

    def test_prices_rounded_to_decimals(self):
        signal = score_signal(_candles(60, close=1.101234567), _bullish_snapshot(), FX, timestamp=TS)
        for price in (signal.entry_price, signal.stop_loss, signal.take_profit):
            assert round(price, 5) == price

    def test_probability_bounded(self):
        signal = score_signal(_candles(60), _bullish_snapshot(), FX, timestamp=TS)
        assert 0 <= signal.probability <= 100
        assert 0 <= signal.confidence <= 100

    def test_defaults_to_wall_clock(self):
        signal = score_signal(_candles(60), _bullish_snapshot(), FX)
        assert signal.timestamp > TS
