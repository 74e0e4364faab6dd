"""
Swing Structure Detection

Extracts swing highs/lows from candle history and classifies market structure:
- HH + HL: bullish continuation
- LH + LL: bearish continuation
- HH + LL: bullish Change of Character (reversal to uptrend)
- LH + HL: bearish Change of Character (reversal to downtrend)

Only the two most recent swings of each kind decide the classification.
"""

from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from loguru import logger

from signal_assessor.shared.config.defaults import StructureConfig, DEFAULT_STRUCTURE_CONFIG
from signal_assessor.shared.models.data import CandleHistory, candle_frame_or_empty, candle_time
from signal_assessor.shared.models.structure import (
    CocState,
    MarketStructure,
    StructureState,
    SwingPoint,
)
from signal_assessor.shared.utils.numeric import clamp, finite_or_zero


def find_swing_points(
    highs: Sequence[float],
    lows: Sequence[float],
    times: Sequence[Optional[float]],
    wing: int = 3,
) -> Tuple[List[SwingPoint], List[SwingPoint]]:
    """
    Find strict swing highs and lows.

    A swing high at ``i`` has a high strictly greater than the ``wing`` candles
    on each side; a swing low is the mirror with strict less-than. Only
    interior indices are scanned, so the first and last ``wing`` candles never
    qualify.

    Args:
        highs: High prices, oldest first
        lows: Low prices, oldest first
        times: Candle times in epoch ms (None/NaN = unknown, replaced by now)
        wing: Candles on each side to compare against

    Returns:
        (swing_highs, swing_lows) in candle order
    """
    swing_highs: List[SwingPoint] = []
    swing_lows: List[SwingPoint] = []

    now_ms = int(datetime.now().timestamp() * 1000)

    for i in range(wing, len(highs) - wing):
        neighbours = [j for j in range(i - wing, i + wing + 1) if j != i]

        if all(highs[i] > highs[j] for j in neighbours):
            swing_highs.append(
                SwingPoint(price=float(highs[i]), index=i, timestamp=candle_time(times[i], now_ms))
            )

        if all(lows[i] < lows[j] for j in neighbours):
            swing_lows.append(
                SwingPoint(price=float(lows[i]), index=i, timestamp=candle_time(times[i], now_ms))
            )

    return swing_highs, swing_lows


def _classify(
    highs: List[SwingPoint],
    lows: List[SwingPoint],
) -> Tuple[StructureState, CocState, bool]:
    """Classify structure from the two most recent highs and lows."""
    higher_high = highs[-1].price > highs[-2].price
    lower_high = highs[-1].price < highs[-2].price
    higher_low = lows[-1].price > lows[-2].price
    lower_low = lows[-1].price < lows[-2].price

    if higher_high and higher_low:
        return 'bullish', 'none', False
    if lower_high and lower_low:
        return 'bearish', 'none', False
    if higher_high and lower_low:
        # LL followed by a break to HH
        return 'bullish', 'bullish', True
    if lower_high and higher_low:
        # HH followed by a break to LL
        return 'bearish', 'bearish', True
    return 'neutral', 'none', False


def _increase_ratio(points: List[SwingPoint]) -> float:
    """Fraction of consecutive swings that rose."""
    if len(points) < 2:
        return 0.0
    rises = sum(1 for prev, curr in zip(points, points[1:]) if curr.price > prev.price)
    return rises / (len(points) - 1)


def _structure_strength(highs: List[SwingPoint], lows: List[SwingPoint], min_swings: int) -> float:
    """
    Consistency score (0-100).

    Both lists are scored on rising swings, so a clean downtrend scores 0.
    """
    if len(highs) < min_swings or len(lows) < min_swings:
        return 0.0
    strength = (_increase_ratio(highs) + _increase_ratio(lows)) / 2 * 100
    return clamp(strength, 0.0, 100.0)


def detect_change_of_character(
    historical_data: CandleHistory,
    current_price: Optional[float],
    config: StructureConfig = DEFAULT_STRUCTURE_CONFIG,
) -> Optional[MarketStructure]:
    """
    Detect market structure and Change of Character.

    Args:
        historical_data: Candle history, oldest first
        current_price: Current price (must be > 0)
        config: Structure parameters

    Returns:
        MarketStructure, or None when fewer than ``config.min_candles`` candles
        are supplied or the price is missing/non-positive
    """
    price = finite_or_zero(current_price)
    df = candle_frame_or_empty(historical_data, "structure")

    if len(df) < config.min_candles or price <= 0:
        logger.debug(
            f"Structure detection skipped: {len(df)} candles (need {config.min_candles}), price={current_price}"
        )
        return None

    swing_highs, swing_lows = find_swing_points(
        df['high'].tolist(),
        df['low'].tolist(),
        df['time'].tolist(),
        wing=config.swing_wing,
    )
    now_ms = int(datetime.now().timestamp() * 1000)

    if len(swing_highs) < 2 or len(swing_lows) < 2:
        logger.debug(f"Not enough swings for structure ({len(swing_highs)} highs, {len(swing_lows)} lows)")
        return MarketStructure(
            structure='neutral',
            coc='none',
            last_swing_high=swing_highs[-1].price if swing_highs else None,
            last_swing_low=swing_lows[-1].price if swing_lows else None,
            structure_strength=0.0,
            reversal_signal=False,
            swing_highs=swing_highs[-config.max_swings:],
            swing_lows=swing_lows[-config.max_swings:],
            timestamp=now_ms,
        )

    recent_highs = swing_highs[-config.max_swings:]
    recent_lows = swing_lows[-config.max_swings:]

    structure, coc, reversal_signal = _classify(recent_highs, recent_lows)

    # Price confirmation can only re-affirm a reversal
    if coc == 'bullish' and price > recent_highs[-1].price:
        reversal_signal = True
    elif coc == 'bearish' and price < recent_lows[-1].price:
        reversal_signal = True

    strength = _structure_strength(recent_highs, recent_lows, config.strength_min_swings)

    if coc != 'none':
        logger.info(f"Change of Character detected: {coc} (last high {recent_highs[-1].price}, last low {recent_lows[-1].price})")

    return MarketStructure(
        structure=structure,
        coc=coc,
        last_swing_high=recent_highs[-1].price,
        last_swing_low=recent_lows[-1].price,
        structure_strength=strength,
        reversal_signal=reversal_signal,
        swing_highs=recent_highs,
        swing_lows=recent_lows,
        timestamp=now_ms,
    )
