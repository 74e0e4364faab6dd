"""
Technical indicators data models.

This module defines the pre-computed indicator snapshot consumed by the
counting, contradiction and justification stages. Indicator computation
itself happens upstream; every field is optional and ``None`` means the value
is not available for this symbol/timeframe, which makes dependent checks skip.
"""

from dataclasses import dataclass
from typing import Optional

from signal_assessor.shared.models.regime import MarketRegime


@dataclass(frozen=True)
class MACDReading:
    """MACD line, signal line and histogram."""
    histogram: Optional[float] = None
    macd: Optional[float] = None
    signal: Optional[float] = None


@dataclass(frozen=True)
class BollingerBandsReading:
    """Bollinger Band boundaries."""
    upper: Optional[float] = None
    middle: Optional[float] = None
    lower: Optional[float] = None


@dataclass(frozen=True)
class AroonReading:
    """Aroon Up/Down (0-100)."""
    up: float
    down: float


@dataclass(frozen=True)
class StochasticReading:
    """Stochastic oscillator %K/%D (0-100)."""
    k: Optional[float] = None
    d: Optional[float] = None


@dataclass(frozen=True)
class DivergenceReading:
    """
    Price/oscillator divergence.

    Attributes:
        divergence: Free text from the divergence detector, e.g. 'bullish',
                    'bearish', 'hidden bullish'; None when nothing was found
    """
    divergence: Optional[str] = None


@dataclass(frozen=True)
class SupportResistanceReading:
    """Nearest support and resistance levels."""
    support: Optional[float] = None
    resistance: Optional[float] = None


@dataclass(frozen=True)
class Indicators:
    """
    Indicator snapshot for a single symbol and timeframe.

    Price:
        price: Last traded price (falls back to the caller's current price)
        price_change_24h: 24h change in percent

    Momentum:
        rsi14: RSI(14), 0-100
        stochastic: Stochastic %K/%D
        williams_r: Williams %R, -100..0
        cci: Commodity Channel Index
        macd: MACD line/signal/histogram

    Trend:
        ema8, ema20, ema50: Exponential moving averages
        adx, plus_di, minus_di: Directional movement system
        aroon: Aroon Up/Down
        parabolic_sar: Parabolic SAR level

    Mean Reversion / Levels:
        bollinger_bands: Bollinger Bands
        vwap: Volume-weighted average price
        support_resistance: Nearest support/resistance

    Volume:
        volume_change: Volume change in percent
        obv: On-Balance Volume
        volume_price_divergence: Volume vs price divergence (-1..1)

    Divergence:
        rsi_divergence, macd_divergence: Divergence detector output

    Context:
        market_regime: Regime classification used for context-aware weighting
        funding_rate: Perpetual funding rate (fraction, 0.001 = 0.1%)
    """
    # Price
    price: Optional[float] = None
    price_change_24h: Optional[float] = None

    # Momentum
    rsi14: Optional[float] = None
    stochastic: Optional[StochasticReading] = None
    williams_r: Optional[float] = None
    cci: Optional[float] = None
    macd: Optional[MACDReading] = None

    # Trend
    ema8: Optional[float] = None
    ema20: Optional[float] = None
    ema50: Optional[float] = None
    adx: Optional[float] = None
    plus_di: Optional[float] = None
    minus_di: Optional[float] = None
    aroon: Optional[AroonReading] = None
    parabolic_sar: Optional[float] = None

    # Mean Reversion / Levels
    bollinger_bands: Optional[BollingerBandsReading] = None
    vwap: Optional[float] = None
    support_resistance: Optional[SupportResistanceReading] = None

    # Volume
    volume_change: Optional[float] = None
    obv: Optional[float] = None
    volume_price_divergence: Optional[float] = None

    # Divergence
    rsi_divergence: Optional[DivergenceReading] = None
    macd_divergence: Optional[DivergenceReading] = None

    # Context
    market_regime: Optional[MarketRegime] = None
    funding_rate: Optional[float] = None

    def reference_price(self, current_price: Optional[float] = None) -> float:
        """
        Price used for price-relative checks.

        The snapshot's own price wins when it is set and non-zero; otherwise
        the caller-supplied current price is used. Returns 0.0 when neither is
        usable so that callers can skip checks with ``price > 0``.
        """
        if self.price:
            return float(self.price)
        return float(current_price) if current_price else 0.0

    @property
    def stochastic_k(self) -> Optional[float]:
        return self.stochastic.k if self.stochastic is not None else None

    @property
    def macd_histogram(self) -> Optional[float]:
        return self.macd.histogram if self.macd is not None else None

    @property
    def bb_middle(self) -> Optional[float]:
        return self.bollinger_bands.middle if self.bollinger_bands is not None else None
