"""
Unit tests for the bullish/bearish indicator counter.

Tests:
- Every check votes in the expected direction
- Neutral bands never count
- Price-relative checks need a positive reference price
- Determinism and the per-snapshot vote bound
"""

from signal_assessor.analysis.indicator_counter import count_bullish_bearish_indicators
from signal_assessor.shared.models.indicators import (
    AroonReading,
    BollingerBandsReading,
    DivergenceReading,
    Indicators,
    MACDReading,
    StochasticReading,
)

MAX_VOTES = 13


def bullish_snapshot() -> Indicators:
    return Indicators(
        price=100.0,
        price_change_24h=2.0,
        rsi14=25.0,
        stochastic=StochasticReading(k=10.0, d=12.0),
        williams_r=-90.0,
        cci=150.0,
        macd=MACDReading(histogram=0.5, macd=1.0, signal=0.5),
        ema20=99.0,
        ema50=97.0,
        aroon=AroonReading(up=80.0, down=20.0),
        parabolic_sar=90.0,
        bollinger_bands=BollingerBandsReading(upper=105.0, middle=95.0, lower=85.0),
        vwap=98.0,
        volume_change=15.0,
        rsi_divergence=DivergenceReading(divergence='hidden bullish'),
    )


def bearish_snapshot() -> Indicators:
    return Indicators(
        price=100.0,
        price_change_24h=-3.0,
        rsi14=80.0,
        stochastic=StochasticReading(k=90.0),
        williams_r=-5.0,
        cci=-150.0,
        macd=MACDReading(histogram=-0.5),
        ema20=101.0,
        ema50=103.0,
        aroon=AroonReading(up=10.0, down=90.0),
        parabolic_sar=110.0,
        bollinger_bands=BollingerBandsReading(middle=105.0),
        vwap=102.0,
        volume_change=-25.0,
        rsi_divergence=DivergenceReading(divergence='Bearish'),
    )


def test_empty_snapshot_is_mixed():
    result = count_bullish_bearish_indicators(Indicators())

    assert result.bullish_count == 0
    assert result.bearish_count == 0
    assert result.summary_dir == 'MIXED'


def test_all_bullish_checks():
    result = count_bullish_bearish_indicators(bullish_snapshot())

    assert result.bullish_count == MAX_VOTES
    assert result.bearish_count == 0
    assert result.summary_dir == 'BUY'


def test_all_bearish_checks():
    result = count_bullish_bearish_indicators(bearish_snapshot())

    assert result.bullish_count == 0
    assert result.bearish_count == MAX_VOTES
    assert result.summary_dir == 'SELL'


def test_neutral_bands_do_not_count():
    snapshot = Indicators(
        volume_change=5.0,
        cci=50.0,
        rsi14=50.0,
        stochastic=StochasticReading(k=50.0),
        williams_r=-50.0,
        rsi_divergence=DivergenceReading(divergence='none found'),
    )
    result = count_bullish_bearish_indicators(snapshot)

    assert (result.bullish_count, result.bearish_count) == (0, 0)


def test_price_checks_skipped_without_price():
    snapshot = Indicators(
        parabolic_sar=90.0,
        vwap=98.0,
        ema20=99.0,
        ema50=97.0,
        bollinger_bands=BollingerBandsReading(middle=95.0),
    )
    result = count_bullish_bearish_indicators(snapshot)

    assert (result.bullish_count, result.bearish_count) == (0, 0)


def test_current_price_fallback():
    result = count_bullish_bearish_indicators(Indicators(vwap=98.0), current_price=100.0)
    assert result.bullish_count == 1


def test_snapshot_price_wins_over_current_price():
    result = count_bullish_bearish_indicators(Indicators(price=90.0, vwap=98.0), current_price=100.0)
    assert result.bearish_count == 1
    assert result.bullish_count == 0


def test_bollinger_without_middle_is_skipped():
    snapshot = Indicators(price=100.0, bollinger_bands=BollingerBandsReading(upper=110.0, lower=90.0))
    result = count_bullish_bearish_indicators(snapshot)

    assert (result.bullish_count, result.bearish_count) == (0, 0)


def test_tied_counts_are_mixed():
    snapshot = Indicators(price_change_24h=1.0, macd=MACDReading(histogram=-0.2))
    result = count_bullish_bearish_indicators(snapshot)

    assert (result.bullish_count, result.bearish_count) == (1, 1)
    assert result.summary_dir == 'MIXED'


def test_counter_is_deterministic_and_bounded():
    for snapshot in (bullish_snapshot(), bearish_snapshot(), Indicators(rsi14=10.0)):
        first = count_bullish_bearish_indicators(snapshot)
        second = count_bullish_bearish_indicators(snapshot)

        assert first == second
        assert first.bullish_count + first.bearish_count <= MAX_VOTES


def test_to_dict_keys():
    result = count_bullish_bearish_indicators(bullish_snapshot()).to_dict()
    assert result == {'bullishCount': MAX_VOTES, 'bearishCount': 0, 'summaryDir': 'BUY'}
