"""
Unit tests for the indicator weight/redundancy catalog.
"""

import pytest

from signal_assessor.shared.config.indicator_catalog import (
    DEFAULT_CATALOG,
    INDICATOR_GROUPS,
    INDICATOR_WEIGHTS,
    IndicatorCatalog,
    are_indicators_redundant,
    get_indicator_weight,
)
from signal_assessor.shared.models.scoring import IndicatorGroup, IndicatorWeight


def test_known_weights():
    assert get_indicator_weight('MACD_DIVERGENCE') == 3.0
    assert get_indicator_weight('RSI_DIVERGENCE') == 2.8
    assert get_indicator_weight('PRICE_ABOVE_EMA20') == 0.5
    assert DEFAULT_CATALOG.weight_of('VOLUME_TREND_STABLE') == 0.2


def test_unknown_key_defaults_to_one():
    assert get_indicator_weight('NOT_AN_INDICATOR') == 1.0
    assert DEFAULT_CATALOG.get('NOT_AN_INDICATOR') is None


def test_all_entries_are_well_formed():
    for key, entry in INDICATOR_WEIGHTS.items():
        assert entry.weight > 0, key
        assert 0 <= entry.reliability <= 100, key
        assert entry.impact in ('low', 'medium', 'high'), key


def test_divergence_outweighs_price_position():
    assert DEFAULT_CATALOG.weight_of('MACD_DIVERGENCE') > DEFAULT_CATALOG.weight_of('PRICE_ABOVE_EMA8')


def test_redundancy_is_group_co_membership():
    assert are_indicators_redundant('EMA8', 'VWAP')
    assert are_indicators_redundant('RSI', 'WILLIAMS_R')
    assert not are_indicators_redundant('EMA8', 'MACD')
    assert not are_indicators_redundant('RSI', 'UNKNOWN')


def test_redundancy_is_not_transitive():
    groups = (
        IndicatorGroup(name='A', weight=1.0, indicators=frozenset({'X', 'Y'}), description=''),
        IndicatorGroup(name='B', weight=1.0, indicators=frozenset({'Y', 'Z'}), description=''),
    )
    catalog = IndicatorCatalog.build({}, groups)

    assert catalog.are_redundant('X', 'Y')
    assert catalog.are_redundant('Y', 'Z')
    assert not catalog.are_redundant('X', 'Z')


def test_group_lookup():
    assert DEFAULT_CATALOG.group_of('STOCHASTIC').name == 'Overbought/Oversold'
    assert DEFAULT_CATALOG.group_of('MACD_DIVERGENCE').name == 'Divergence'
    assert DEFAULT_CATALOG.group_of('UNKNOWN') is None
    assert len(INDICATOR_GROUPS) == 8


def test_catalog_is_read_only():
    with pytest.raises(TypeError):
        DEFAULT_CATALOG.weights['MACD_DIVERGENCE'] = IndicatorWeight('x', 1.0, 'low', 10, 'x')


def test_invalid_weight_rejected():
    with pytest.raises(ValueError, match="Weight must be positive"):
        IndicatorWeight(name='Bad', weight=0.0, impact='low', reliability=50, category='Other')

    with pytest.raises(ValueError, match="Reliability must be 0-100"):
        IndicatorWeight(name='Bad', weight=1.0, impact='low', reliability=120, category='Other')
