"""
Unit tests for the end-to-end signal assessment.

Tests:
- Components agree with their standalone results
- Optional stages only run with candle history
- Warnings for conflicts, disagreement, short history, CoC
"""

import pytest

from signal_assessor.analysis.contradictions import detect_contradictions
from signal_assessor.analysis.indicator_counter import count_bullish_bearish_indicators
from signal_assessor.engine.assessment import assess_signal
from signal_assessor.shared.config.defaults import AnalysisConfig
from signal_assessor.shared.models.indicators import (
    DivergenceReading,
    Indicators,
    MACDReading,
    StochasticReading,
)
from signal_assessor.shared.models.scoring import ConflictSeverity
from signal_assessor.shared.utils.logging_utils import format_assessment_summary
from signal_assessor.tests.fixtures.market_data import (
    bullish_coc_candles,
    bullish_structure_candles,
    flat_candles,
    large_order_candles,
)


def bullish_snapshot() -> Indicators:
    return Indicators(
        price=120.0,
        price_change_24h=2.0,
        macd=MACDReading(histogram=0.5, macd=1.0, signal=0.5),
        ema20=118.0,
        ema50=115.0,
        adx=30.0,
        plus_di=25.0,
        minus_di=15.0,
    )


def without_timestamps(data: dict) -> dict:
    structure = data.get('marketStructure')
    if structure:
        structure = {k: v for k, v in structure.items() if k != 'timestamp'}
    return {**data, 'marketStructure': structure}


def test_components_match_standalone_results():
    snapshot = bullish_snapshot()
    result = assess_signal(snapshot, 'buy_to_enter', 120.0, bullish_structure_candles())

    assert result.direction == count_bullish_bearish_indicators(snapshot, 120.0)
    assert result.contradictions == detect_contradictions(snapshot, 'buy_to_enter')
    assert result.confidence == result.justification.adjusted_confidence
    assert result.market_structure.structure == 'bullish'
    assert result.whale_activity is not None
    assert result.market_regime.regime == 'trending'


def test_same_inputs_give_same_assessment():
    snapshot = bullish_snapshot()
    history = bullish_structure_candles()

    first = assess_signal(snapshot, 'buy_to_enter', 120.0, history, atr=1.5)
    second = assess_signal(snapshot, 'buy_to_enter', 120.0, history, atr=1.5)

    assert without_timestamps(first.to_dict()) == without_timestamps(second.to_dict())


def test_without_history_only_regime_runs():
    result = assess_signal(bullish_snapshot(), 'buy_to_enter', 120.0)

    assert result.market_structure is None
    assert result.whale_activity is None
    assert result.market_regime.adx == 30.0
    assert result.warnings == []


def test_adx_override():
    result = assess_signal(bullish_snapshot(), 'buy_to_enter', 120.0, adx=10.0)
    assert result.market_regime.regime == 'choppy'


def test_short_history_warning():
    result = assess_signal(bullish_snapshot(), 'buy_to_enter', 120.0, flat_candles(10))

    assert result.market_structure is None
    assert any('Insufficient history' in w for w in result.warnings)


def test_conflict_and_majority_warnings():
    snapshot = Indicators(
        price=100.0,
        price_change_24h=-2.0,
        macd=MACDReading(histogram=-0.5),
        stochastic=StochasticReading(k=85.0),
        williams_r=-10.0,
        macd_divergence=DivergenceReading(divergence='bearish'),
    )
    result = assess_signal(snapshot, 'buy_to_enter', 100.0)

    assert result.conflict_severity == ConflictSeverity.HIGH
    assert any(w.startswith('Conflict severity HIGH') for w in result.warnings)
    assert any('Indicator majority is SELL' in w for w in result.warnings)


@pytest.mark.parametrize("signal", ['hold', 'reduce', 'close_all', 'buy_to_enter', 'sell_to_enter'])
def test_one_contradiction_list_per_assessment(signal):
    snapshot = Indicators(
        price=100.0,
        stochastic=StochasticReading(k=10.0),
        williams_r=-90.0,
        macd_divergence=DivergenceReading(divergence='bullish'),
    )
    result = assess_signal(snapshot, signal, 100.0)

    assert result.contradictions == result.justification.contradictions
    assert result.conflict_severity == result.justification.conflict_severity


def test_non_trading_verbs_assessed_as_long_entries():
    snapshot = Indicators(price=100.0, stochastic=StochasticReading(k=90.0), williams_r=-10.0)
    result = assess_signal(snapshot, 'hold', 100.0)

    assert [c.type for c in result.contradictions] == ['dual_overbought']
    assert result.conflict_severity == ConflictSeverity.MEDIUM


def test_change_of_character_warning():
    history = bullish_coc_candles()
    result = assess_signal(Indicators(), 'buy_to_enter', history[-1].close, history)

    assert result.market_structure.coc == 'bullish'
    assert any('Change of Character: bullish' in w for w in result.warnings)


def test_whale_activity_from_history():
    result = assess_signal(Indicators(), 'sell_to_enter', 100.0, large_order_candles())

    assert len(result.whale_activity.large_orders) == 1
    assert result.whale_activity.whale_score == pytest.approx(0.25)


def test_custom_config_flows_through():
    config = AnalysisConfig.from_dict({'structure': {'min_candles': 40}})
    result = assess_signal(bullish_snapshot(), 'buy_to_enter', 120.0, bullish_structure_candles(), config=config)

    assert result.market_structure is None


def test_missing_snapshot_is_tolerated():
    result = assess_signal(None, 'hold', 100.0)

    assert result.direction.summary_dir == 'MIXED'
    assert result.confidence == 0.0


def test_to_dict_and_summary():
    result = assess_signal(bullish_snapshot(), 'buy_to_enter', 120.0, bullish_structure_candles())
    data = result.to_dict()

    assert data['signal'] == 'buy_to_enter'
    assert data['confidence'] == data['justification']['adjustedConfidence']
    assert data['marketStructure']['structure'] == 'bullish'

    summary = format_assessment_summary(result)
    assert 'SIGNAL ASSESSMENT: buy_to_enter' in summary
    assert 'Structure:' in summary
