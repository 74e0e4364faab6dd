"""
Unit tests for market regime detection.
"""

import math

import pytest

from signal_assessor.analysis.regime_detector import RegimeDetector, detect_market_regime
from signal_assessor.shared.config.defaults import RegimeConfig
from signal_assessor.tests.fixtures.market_data import flat_candles, make_ohlcv_df


@pytest.mark.parametrize("adx, expected", [
    (30.0, 'trending'),
    (25.0, 'neutral'),
    (22.0, 'neutral'),
    (20.0, 'neutral'),
    (15.0, 'choppy'),
    (None, 'neutral'),
])
def test_trend_classification(adx, expected):
    assert detect_market_regime(adx, None, 100.0).regime == expected


def test_missing_or_invalid_adx_is_reported_as_none():
    assert detect_market_regime(None, None, 100.0).adx is None
    assert detect_market_regime(0, None, 100.0).adx is None
    assert detect_market_regime(math.nan, None, 100.0).adx is None
    assert detect_market_regime(30.0, None, 100.0).adx == 30.0


@pytest.mark.parametrize("adx, expected_score", [
    (30.0, 100.0),  # trending 50 + strong 30 + normal vol 20
    (22.0, 50.0),   # neutral 30 + normal vol 20
    (10.0, 40.0),   # choppy 20 + normal vol 20
])
def test_regime_score_without_atr(adx, expected_score):
    result = detect_market_regime(adx, None, 100.0)

    assert result.volatility == 'normal'
    assert result.atr_percent is None
    assert result.regime_score == expected_score


def test_absolute_volatility_bands_without_history():
    high = detect_market_regime(30.0, 4.0, 100.0)
    low = detect_market_regime(30.0, 0.5, 100.0)
    normal = detect_market_regime(30.0, 2.0, 100.0)

    assert high.volatility == 'high' and high.regime_score == 85.0
    assert low.volatility == 'low' and low.regime_score == 90.0
    assert normal.volatility == 'normal'
    assert normal.atr_percent == pytest.approx(2.0)


def test_relative_volatility_against_history():
    # Flat candles with a 1.0 range give a 1% ATR baseline at price 100
    history = flat_candles(30)

    assert detect_market_regime(30.0, 2.5, 100.0, history).volatility == 'high'
    assert detect_market_regime(30.0, 0.8, 100.0, history).volatility == 'normal'
    assert detect_market_regime(30.0, 0.4, 100.0, history).volatility == 'low'


def test_short_history_falls_back_to_absolute_bands():
    history = flat_candles(10)

    assert detect_market_regime(30.0, 2.5, 100.0, history).volatility == 'normal'
    assert detect_market_regime(30.0, 0.8, 100.0, history).volatility == 'low'


def test_no_price_skips_volatility():
    result = detect_market_regime(30.0, 2.0, 0.0)

    assert result.volatility == 'normal'
    assert result.atr_percent is None


def test_custom_lookback_and_config():
    history = make_ohlcv_df(60)
    config = RegimeConfig(adx_trending=40.0)
    detector = RegimeDetector(config)

    result = detector.detect(30.0, 1.0, float(history['close'].iloc[-1]), history, lookback=40)

    assert result.regime == 'neutral'
    assert result.volatility in ('low', 'normal', 'high')
    assert 0.0 <= result.regime_score <= 100.0


def test_score_always_bounded():
    history = make_ohlcv_df(40)
    for adx in (None, 5.0, 18.0, 22.0, 26.0, 60.0):
        for atr in (None, 0.1, 1.0, 5.0, 50.0):
            result = detect_market_regime(adx, atr, 100.0, history)
            assert 0.0 <= result.regime_score <= 100.0


def test_to_dict_keys():
    result = detect_market_regime(30.0, 2.0, 100.0).to_dict()

    assert result['regime'] == 'trending'
    assert result['atrPercent'] == pytest.approx(2.0)
    assert set(result) == {'regime', 'volatility', 'adx', 'atrPercent', 'regimeScore'}
