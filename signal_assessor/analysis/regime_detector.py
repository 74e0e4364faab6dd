"""
Market Regime Detector - ADX/ATR classification

Classifies trend regime from ADX and volatility regime from ATR, comparing
the current ATR% against a rolling ATR computed from recent candle history.
"""
from typing import List, Optional

import pandas as pd
from loguru import logger

from signal_assessor.indicators.volatility import compute_atr
from signal_assessor.shared.config.defaults import RegimeConfig, DEFAULT_REGIME_CONFIG
from signal_assessor.shared.models.data import CandleHistory, candle_frame_or_empty
from signal_assessor.shared.models.regime import MarketRegime, RegimeState, VolatilityState
from signal_assessor.shared.utils.numeric import clamp, finite_or_zero, is_finite_number


class RegimeDetector:
    """Detects trend/volatility regime for one symbol."""

    def __init__(self, config: RegimeConfig = DEFAULT_REGIME_CONFIG):
        self.config = config

    def detect(
        self,
        adx: Optional[float],
        atr: Optional[float],
        current_price: Optional[float],
        historical_data: CandleHistory = None,
        lookback: Optional[int] = None,
    ) -> MarketRegime:
        """
        Classify the regime.

        Args:
            adx: Current ADX (None/0 = unavailable)
            atr: Current ATR in price units (None/0 = unavailable)
            current_price: Current price; volatility is only classified when > 0
            historical_data: Optional candle history for the rolling ATR baseline
            lookback: Candles used for the baseline (default config.lookback)

        Returns:
            MarketRegime with adx/atr_percent echoed for traceability
        """
        lookback = lookback or self.config.lookback
        adx_value = float(adx) if is_finite_number(adx) and adx else None
        price = finite_or_zero(current_price)

        regime = self._detect_trend(adx_value)

        atr_percent = None
        volatility: VolatilityState = "normal"
        if is_finite_number(atr) and atr and price > 0:
            atr_percent = finite_or_zero(float(atr) / price * 100)
            baseline = self._average_atr_percent(historical_data, price, lookback)
            volatility = self._detect_volatility(atr_percent, baseline)

        score = self._score_regime(regime, volatility, adx_value)

        logger.debug(
            f"Regime: {regime}/{volatility} (ADX={adx_value}, ATR%={atr_percent}, score={score:.0f})"
        )

        return MarketRegime(
            regime=regime,
            volatility=volatility,
            adx=adx_value,
            atr_percent=atr_percent,
            regime_score=score,
        )

    def _detect_trend(self, adx: Optional[float]) -> RegimeState:
        """ADX > trending threshold = trending, below choppy threshold = choppy."""
        if adx is not None and adx > self.config.adx_trending:
            return "trending"
        if adx is not None and adx < self.config.adx_choppy:
            return "choppy"
        return "neutral"

    def _average_atr_percent(
        self,
        historical_data: CandleHistory,
        price: float,
        lookback: int,
    ) -> Optional[float]:
        """
        Average ATR% over every full ATR window inside the last ``lookback`` candles.

        Returns None when the history is shorter than ``lookback`` or no window
        produces a finite ATR, which makes the caller use absolute thresholds.
        """
        if historical_data is None:
            return None

        df = candle_frame_or_empty(historical_data, "regime")
        if len(df) < lookback:
            return None

        recent = df.iloc[-lookback:].reset_index(drop=True)
        # Missing or zero high/low fall back to close
        recent['high'] = recent['high'].where(recent['high'].fillna(0) != 0, recent['close'])
        recent['low'] = recent['low'].where(recent['low'].fillna(0) != 0, recent['close'])

        period = self.config.atr_period
        atr_values: List[float] = []
        for i in range(period, len(recent)):
            window = recent.iloc[i - period:i]
            window_atr = compute_atr(window, period=period, validate_input=False)
            if len(window_atr) > 0 and is_finite_number(window_atr.iloc[-1]):
                atr_values.append(float(window_atr.iloc[-1]))

        if not atr_values:
            return None

        avg_atr = float(pd.Series(atr_values).mean())
        return finite_or_zero(avg_atr / price * 100)

    def _detect_volatility(self, atr_percent: float, baseline: Optional[float]) -> VolatilityState:
        """Relative classification against the rolling baseline, absolute fallback otherwise."""
        if baseline is not None:
            if atr_percent > baseline * self.config.high_vol_ratio:
                return "high"
            if atr_percent < baseline * self.config.low_vol_ratio:
                return "low"
            return "normal"

        if atr_percent > self.config.high_vol_atr_pct:
            return "high"
        if atr_percent < self.config.low_vol_atr_pct:
            return "low"
        return "normal"

    def _score_regime(self, regime: RegimeState, volatility: VolatilityState, adx: Optional[float]) -> float:
        """Score regime quality (0-100)."""
        score = 0.0

        if regime == "trending":
            score += 50
            if adx is not None and adx > self.config.adx_trending:
                score += 30  # Strong trend
            elif adx is not None and adx > self.config.adx_moderate:
                score += 20  # Moderate trend
            elif adx is not None and adx > self.config.adx_weak:
                score += 10  # Weak trend
        elif regime == "choppy":
            score += 20
        else:
            score += 30

        if volatility == "normal":
            score += 20
        elif volatility == "low":
            score += 10
        else:
            score += 5  # High volatility is less predictable

        return clamp(score, 0.0, 100.0)


def detect_market_regime(
    adx: Optional[float],
    atr: Optional[float],
    current_price: Optional[float],
    historical_data: CandleHistory = None,
    lookback: Optional[int] = None,
    config: RegimeConfig = DEFAULT_REGIME_CONFIG,
) -> MarketRegime:
    """
    Classify trend and volatility regime.

    ADX > 25 is trending, ADX < 20 choppy, anything else (including a missing
    ADX) neutral. Volatility compares ATR% against the average ATR% of every
    14-candle window in the last ``lookback`` (default 20) candles: above 1.5x
    is high, below 0.5x low. Without a usable history the absolute bands
    (>3% high, <1% low) apply.
    """
    return RegimeDetector(config).detect(adx, atr, current_price, historical_data, lookback)
