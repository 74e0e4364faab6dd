"""
Market Regime Models

Trend/volatility regime derived from ADX, ATR and recent candle history.
"""
from dataclasses import dataclass
from typing import Literal, Optional


RegimeState = Literal["trending", "choppy", "neutral"]
VolatilityState = Literal["low", "normal", "high"]


@dataclass(frozen=True)
class MarketRegime:
    """
    Trend and volatility regime for one symbol/timeframe.

    Attributes:
        regime: 'trending' (ADX > 25), 'choppy' (ADX < 20) or 'neutral'
        volatility: 'low', 'normal' or 'high' relative to recent ATR
        adx: ADX input as supplied (None when unavailable)
        atr_percent: ATR as percentage of current price (None when unavailable)
        regime_score: 0-100, higher = cleaner trading conditions
    """
    regime: RegimeState
    volatility: VolatilityState
    adx: Optional[float]
    atr_percent: Optional[float]
    regime_score: float

    def to_dict(self) -> dict:
        return {
            'regime': self.regime,
            'volatility': self.volatility,
            'adx': self.adx,
            'atrPercent': self.atr_percent,
            'regimeScore': self.regime_score,
        }
