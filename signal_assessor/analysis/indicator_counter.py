"""
Bullish/Bearish Indicator Counter

Single source of truth for "does this indicator currently favor long or
short". Prompt construction and signal validation both call
``count_bullish_bearish_indicators`` on the same snapshot so that their
directional counts always agree.

Each check increments at most one counter. Neutral bands never count, and a
check is skipped when its field is missing or, for price-relative checks,
when no positive reference price is available.
"""

from typing import Optional

from loguru import logger

from signal_assessor.shared.models.indicators import Indicators
from signal_assessor.shared.models.scoring import DirectionalCount, SummaryDirection


# Neutral bands
VOLUME_CHANGE_BAND = 10.0
CCI_BAND = 100.0
RSI_OVERSOLD, RSI_OVERBOUGHT = 30.0, 70.0
STOCH_OVERSOLD, STOCH_OVERBOUGHT = 20.0, 80.0
WILLIAMS_OVERSOLD, WILLIAMS_OVERBOUGHT = -80.0, -20.0


def _summary_direction(bullish: int, bearish: int) -> SummaryDirection:
    if bullish > bearish:
        return 'BUY'
    if bearish > bullish:
        return 'SELL'
    return 'MIXED'


def count_bullish_bearish_indicators(
    indicators: Indicators,
    current_price: Optional[float] = None,
) -> DirectionalCount:
    """
    Count bullish vs bearish indicator votes.

    Args:
        indicators: Indicator snapshot
        current_price: Fallback price when the snapshot carries none

    Returns:
        DirectionalCount with summary BUY/SELL/MIXED
    """
    bullish = 0
    bearish = 0
    price = indicators.reference_price(current_price)

    def vote(is_bullish: bool) -> None:
        nonlocal bullish, bearish
        if is_bullish:
            bullish += 1
        else:
            bearish += 1

    # MACD histogram
    if indicators.macd_histogram is not None:
        vote(indicators.macd_histogram > 0)

    # Volume change (proxy for OBV trend)
    if indicators.volume_change is not None:
        if indicators.volume_change > VOLUME_CHANGE_BAND:
            vote(True)
        elif indicators.volume_change < -VOLUME_CHANGE_BAND:
            vote(False)

    # Bollinger middle band
    if indicators.bb_middle is not None and price > 0:
        vote(price > indicators.bb_middle)

    # Parabolic SAR
    if indicators.parabolic_sar is not None and price > 0:
        vote(price > indicators.parabolic_sar)

    # Aroon
    if indicators.aroon is not None:
        vote(indicators.aroon.up > indicators.aroon.down)

    # CCI
    if indicators.cci is not None:
        if indicators.cci > CCI_BAND:
            vote(True)
        elif indicators.cci < -CCI_BAND:
            vote(False)

    # VWAP
    if indicators.vwap is not None and price > 0:
        vote(price > indicators.vwap)

    # 24h price change
    if indicators.price_change_24h is not None:
        vote(indicators.price_change_24h > 0)

    # RSI: oversold = bullish reversal potential
    if indicators.rsi14 is not None:
        if indicators.rsi14 < RSI_OVERSOLD:
            vote(True)
        elif indicators.rsi14 > RSI_OVERBOUGHT:
            vote(False)

    # Stochastic %K
    if indicators.stochastic_k is not None:
        if indicators.stochastic_k < STOCH_OVERSOLD:
            vote(True)
        elif indicators.stochastic_k > STOCH_OVERBOUGHT:
            vote(False)

    # Williams %R
    if indicators.williams_r is not None:
        if indicators.williams_r < WILLIAMS_OVERSOLD:
            vote(True)
        elif indicators.williams_r > WILLIAMS_OVERBOUGHT:
            vote(False)

    # EMA alignment
    if price > 0 and indicators.ema20 is not None and indicators.ema50 is not None:
        if price > indicators.ema20 > indicators.ema50:
            vote(True)
        elif price < indicators.ema20 < indicators.ema50:
            vote(False)

    # RSI divergence text
    if indicators.rsi_divergence is not None and indicators.rsi_divergence.divergence:
        text = indicators.rsi_divergence.divergence.lower()
        if 'bullish' in text:
            vote(True)
        elif 'bearish' in text:
            vote(False)

    summary = _summary_direction(bullish, bearish)
    logger.debug(f"Indicator count: {bullish} bullish / {bearish} bearish -> {summary}")

    return DirectionalCount(bullish_count=bullish, bearish_count=bearish, summary_dir=summary)
