"""
Signal Assessment

Wires the analysis components together for one proposed signal:
1. Directional count
2. Contradictions and conflict severity
3. Quality-weighted justification
4. Market regime
5. Market structure (with history)
6. Whale activity (with history)

Prompt construction and signal validation both call ``assess_signal`` with
the same inputs and therefore see identical counts, contradictions and
confidence.
"""

from typing import List, Optional

from loguru import logger

from signal_assessor.analysis.contradictions import (
    calculate_conflict_severity,
    contradiction_signal,
    detect_contradictions,
)
from signal_assessor.analysis.indicator_counter import count_bullish_bearish_indicators
from signal_assessor.analysis.quality_weighting import calculate_quality_weighted_justification
from signal_assessor.analysis.regime_detector import detect_market_regime
from signal_assessor.analysis.whale_detector import analyze_whale_activity
from signal_assessor.shared.config.defaults import AnalysisConfig, DEFAULT_ANALYSIS_CONFIG
from signal_assessor.shared.config.indicator_catalog import IndicatorCatalog, DEFAULT_CATALOG
from signal_assessor.shared.models.data import CandleHistory, candle_frame_or_empty
from signal_assessor.shared.models.indicators import Indicators
from signal_assessor.shared.models.scoring import ConflictSeverity, SignalAssessment
from signal_assessor.shared.utils.logging_utils import log_analysis_stage, time_operation
from signal_assessor.strategy.smc.swing_structure import detect_change_of_character


def _collect_warnings(assessment_parts: dict, candle_count: int, config: AnalysisConfig) -> List[str]:
    """Human-readable warnings for the consumer."""
    warnings: List[str] = []

    severity = assessment_parts['severity']
    if severity >= ConflictSeverity.HIGH:
        warnings.append(f"Conflict severity {severity.value.upper()}: indicators disagree with the signal")

    direction = assessment_parts['direction']
    signal_side = assessment_parts['signal_side']
    if signal_side and direction.summary_dir not in (signal_side, 'MIXED'):
        warnings.append(
            f"Indicator majority is {direction.summary_dir} "
            f"({direction.bullish_count} bullish / {direction.bearish_count} bearish)"
        )

    if candle_count and candle_count < config.structure.min_candles:
        warnings.append(
            f"Insufficient history for structure analysis ({candle_count} candles, need {config.structure.min_candles})"
        )

    structure = assessment_parts['structure']
    if structure is not None and structure.coc != 'none':
        warnings.append(f"Change of Character: {structure.coc} (reversal signal: {structure.reversal_signal})")

    whale = assessment_parts['whale']
    if whale is not None:
        if whale.spoofing_detected:
            warnings.append("Spoofing pattern detected in large orders")
        if whale.wash_trading_detected:
            warnings.append("Wash trading pattern detected (heavy volume without price movement)")

    return warnings


def assess_signal(
    indicators: Indicators,
    signal: str,
    current_price: Optional[float],
    historical_data: CandleHistory = None,
    adx: Optional[float] = None,
    atr: Optional[float] = None,
    config: AnalysisConfig = DEFAULT_ANALYSIS_CONFIG,
    catalog: IndicatorCatalog = DEFAULT_CATALOG,
) -> SignalAssessment:
    """
    Assess one proposed signal.

    Args:
        indicators: Indicator snapshot
        signal: Signal verb (buy_to_enter, add, sell_to_enter, reduce, close_all, hold)
        current_price: Current price (fallback when the snapshot has none)
        historical_data: Optional candle history for regime/structure/whale analysis
        adx: ADX override (defaults to the snapshot's ADX)
        atr: ATR in price units for volatility classification
        config: Analysis configuration
        catalog: Indicator catalog

    Returns:
        SignalAssessment
    """
    indicators = indicators if indicators is not None else Indicators()
    price = indicators.reference_price(current_price)
    adx = adx if adx is not None else indicators.adx

    log_analysis_stage("ASSESSMENT", signal, "START")

    with time_operation("indicator_count", signal):
        direction = count_bullish_bearish_indicators(indicators, current_price)

    with time_operation("contradictions", signal):
        # Non-trading verbs are checked as long entries, same as the justification
        contradictions = detect_contradictions(indicators, contradiction_signal(signal), catalog)
        severity = calculate_conflict_severity(contradictions)

    with time_operation("justification", signal):
        justification = calculate_quality_weighted_justification(
            signal, indicators, catalog, current_price, contradictions=contradictions,
        )

    candles = candle_frame_or_empty(historical_data, "assessment") if historical_data is not None else None
    candle_count = len(candles) if candles is not None else 0

    with time_operation("market_regime", signal):
        regime = detect_market_regime(adx, atr, price, candles, config=config.regime)

    structure = None
    whale = None
    if candle_count:
        with time_operation("market_structure", signal):
            structure = detect_change_of_character(candles, price, config.structure)
        with time_operation("whale_activity", signal):
            whale = analyze_whale_activity(candles, config.whale)
    else:
        log_analysis_stage("HISTORY", signal, "SKIPPED", {'reason': 'no candle history'})

    signal_side = {'buy_to_enter': 'BUY', 'add': 'BUY', 'sell_to_enter': 'SELL'}.get(signal)
    warnings = _collect_warnings(
        {
            'severity': severity,
            'direction': direction,
            'signal_side': signal_side,
            'structure': structure,
            'whale': whale,
        },
        candle_count,
        config,
    )

    assessment = SignalAssessment(
        signal=signal,
        direction=direction,
        contradictions=contradictions,
        conflict_severity=severity,
        justification=justification,
        market_regime=regime,
        market_structure=structure,
        whale_activity=whale,
        warnings=warnings,
    )

    log_analysis_stage(
        "ASSESSMENT", signal, "COMPLETE",
        {
            'direction': direction.summary_dir,
            'severity': severity.value,
            'confidence': f"{assessment.confidence:.2f}",
        },
    )
    logger.info(
        f"Assessment {signal}: {direction.summary_dir} "
        f"({direction.bullish_count}/{direction.bearish_count}), "
        f"severity={severity.value}, confidence={assessment.confidence:.2f}, regime={regime.regime}"
    )

    return assessment
