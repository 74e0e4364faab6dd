"""
Unit tests for analysis configuration.
"""

import pytest

from signal_assessor.shared.config.defaults import (
    DEFAULT_ANALYSIS_CONFIG,
    AnalysisConfig,
    RegimeConfig,
)


def test_default_values():
    config = AnalysisConfig.defaults()

    assert config.regime.adx_trending == 25.0
    assert config.regime.adx_choppy == 20.0
    assert config.regime.lookback == 20
    assert config.structure.min_candles == 20
    assert config.structure.swing_wing == 3
    assert config.whale.large_order_threshold == 100_000.0
    assert config.whale.spoofing_window_ms == 5000.0
    assert config.whale.cluster_range_pct == 0.02


def test_defaults_validate():
    DEFAULT_ANALYSIS_CONFIG.validate()


def test_defaults_are_fresh_objects():
    first = AnalysisConfig.defaults()
    first.regime.lookback = 50

    assert AnalysisConfig.defaults().regime.lookback == 20


def test_from_dict_partial_override():
    config = AnalysisConfig.from_dict({
        'regime': {'lookback': 30},
        'whale': {'large_order_threshold': 50_000.0, 'not_a_field': 1},
    })

    assert config.regime.lookback == 30
    assert config.regime.adx_trending == 25.0
    assert config.whale.large_order_threshold == 50_000.0
    assert not hasattr(config.whale, 'not_a_field')
    assert config.structure.min_candles == 20


def test_to_dict_round_trips_through_from_dict():
    data = AnalysisConfig.defaults().to_dict()

    assert data['structure']['max_swings'] == 5
    assert AnalysisConfig.from_dict(data) == AnalysisConfig.defaults()


@pytest.mark.parametrize("overrides, message", [
    ({'regime': {'lookback': 0}}, "regime.lookback must be >= 1"),
    ({'structure': {'swing_wing': 0}}, "structure.swing_wing must be >= 1"),
    ({'regime': {'adx_choppy': 30.0}}, "must not exceed"),
    ({'regime': {'low_vol_ratio': 2.0}}, "low_vol_ratio must be below"),
    ({'whale': {'spoofing_price_granularity': 0.5}}, "spoofing_price_granularity"),
    ({'whale': {'cluster_range_pct': 1.5}}, "cluster_range_pct"),
    ({'whale': {'wash_low_move_share': 1.2}}, "wash_low_move_share"),
])
def test_invalid_values_rejected(overrides, message):
    with pytest.raises(ValueError, match=message):
        AnalysisConfig.from_dict(overrides)


def test_section_configs_are_independent():
    config = AnalysisConfig(regime=RegimeConfig(adx_trending=30.0))

    assert config.regime.adx_trending == 30.0
    assert config.whale.min_candles == 20
