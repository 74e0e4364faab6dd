"""
Indicator weight and redundancy catalog.

Static reliability weights for indicator signals and the groups used to detect
redundant confirmations (indicators in the same group measure the same thing,
so several of them agreeing is not independent evidence).

The tables are compiled in and wrapped in an immutable :class:`IndicatorCatalog`
built once at import time. Components receive it by reference, defaulting to
``DEFAULT_CATALOG``.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Mapping, Optional, Tuple

from signal_assessor.shared.models.scoring import IndicatorGroup, IndicatorWeight


# ============================================================================
# REDUNDANCY GROUPS
# ============================================================================
#
# Group weight expresses how much the group as a whole is trusted:
#   Price Position (0.5)  - four ways of saying "price above its average"
#   Divergence (2.0)      - most reliable reversal evidence

INDICATOR_GROUPS: Tuple[IndicatorGroup, ...] = (
    IndicatorGroup(
        name='Price Position',
        weight=0.5,
        indicators=frozenset({'EMA8', 'EMA20', 'VWAP', 'BB_MIDDLE'}),
        description='Price above/below moving averages',
    ),
    IndicatorGroup(
        name='Trend Momentum',
        weight=1.0,
        indicators=frozenset({'MACD', 'ADX', 'PLUS_DI', 'EMA_ALIGNMENT'}),
        description='Trend strength and momentum',
    ),
    IndicatorGroup(
        name='Overbought/Oversold',
        weight=1.5,
        indicators=frozenset({'RSI', 'STOCHASTIC', 'WILLIAMS_R', 'CCI'}),
        description='Momentum extremes',
    ),
    IndicatorGroup(
        name='Volume Confirmation',
        weight=1.0,
        indicators=frozenset({'OBV', 'VOLUME_TREND', 'VOLUME_PRICE_DIVERGENCE'}),
        description='Volume-based confirmation',
    ),
    IndicatorGroup(
        name='Support/Resistance',
        weight=1.2,
        indicators=frozenset({'SUPPORT_RESISTANCE', 'FIBONACCI', 'PARABOLIC_SAR'}),
        description='Key price levels',
    ),
    IndicatorGroup(
        name='Structure & Regime',
        weight=1.3,
        indicators=frozenset({'MARKET_STRUCTURE', 'MARKET_REGIME', 'AROON'}),
        description='Market structure and regime',
    ),
    IndicatorGroup(
        name='Divergence',
        weight=2.0,
        indicators=frozenset({'MACD_DIVERGENCE', 'RSI_DIVERGENCE'}),
        description='Price vs momentum divergence',
    ),
    IndicatorGroup(
        name='Pattern Recognition',
        weight=0.8,
        indicators=frozenset({'CANDLESTICK_PATTERNS', 'TREND_DETECTION'}),
        description='Chart patterns',
    ),
)


# ============================================================================
# INDIVIDUAL WEIGHTS
# ============================================================================

def _w(name: str, weight: float, impact: str, reliability: int, category: str) -> IndicatorWeight:
    return IndicatorWeight(name=name, weight=weight, impact=impact, reliability=reliability, category=category)


INDICATOR_WEIGHTS: Mapping[str, IndicatorWeight] = {
    # High impact (2.0-3.0)
    'MACD_DIVERGENCE': _w('MACD Divergence', 3.0, 'high', 85, 'Divergence'),
    'RSI_DIVERGENCE': _w('RSI Divergence', 2.8, 'high', 80, 'Divergence'),
    'TRIPLE_OVERBOUGHT': _w('Triple Overbought (RSI + Stoch + Williams)', 2.5, 'high', 80, 'Overbought/Oversold'),
    'TRIPLE_OVERSOLD': _w('Triple Oversold (RSI + Stoch + Williams)', 2.5, 'high', 80, 'Overbought/Oversold'),
    'VOLUME_DIVERGENCE': _w('Volume Divergence', 2.2, 'high', 75, 'Volume Confirmation'),
    'DUAL_OVERBOUGHT': _w('Dual Overbought (Stoch + Williams)', 2.0, 'high', 75, 'Overbought/Oversold'),
    'DUAL_OVERSOLD': _w('Dual Oversold (Stoch + Williams)', 2.0, 'high', 75, 'Overbought/Oversold'),

    # Medium-high impact (1.5-2.0)
    'OBV_DIVERGENCE': _w('OBV Divergence', 1.8, 'high', 70, 'Volume Confirmation'),
    'AROON_CONTRADICTION': _w('Aroon Contradiction', 1.8, 'high', 70, 'Structure & Regime'),
    'ADX_STRONG': _w('ADX Strong Trend', 1.8, 'high', 75, 'Trend Momentum'),
    'SUPPORT_RESISTANCE_PROXIMITY': _w('Support/Resistance Proximity', 1.6, 'medium', 65, 'Support/Resistance'),
    'FUNDING_RATE_EXTREME': _w('Funding Rate Extreme', 1.5, 'medium', 60, 'External'),
    'EMA_ALIGNMENT': _w('EMA Alignment', 1.5, 'high', 70, 'Trend Momentum'),

    # Medium impact (1.0-1.5)
    'SUPPORT_RESISTANCE': _w('Support/Resistance Level', 1.3, 'medium', 65, 'Support/Resistance'),
    'MACD_CROSSOVER': _w('MACD Crossover', 1.2, 'medium', 65, 'Trend Momentum'),
    'PLUS_DI_DOMINANCE': _w('+DI > -DI', 1.2, 'medium', 60, 'Trend Momentum'),
    'FIBONACCI_LEVEL': _w('Fibonacci Level', 1.2, 'medium', 60, 'Support/Resistance'),
    'MARKET_REGIME': _w('Market Regime', 1.2, 'medium', 65, 'Structure & Regime'),

    # Lower impact, redundant price-position signals (0.3-0.8)
    'PRICE_ABOVE_EMA8': _w('Price > EMA8', 0.4, 'low', 50, 'Price Position'),
    'PRICE_ABOVE_EMA20': _w('Price > EMA20', 0.5, 'low', 55, 'Price Position'),
    'PRICE_ABOVE_VWAP': _w('Price > VWAP', 0.4, 'low', 50, 'Price Position'),
    'PRICE_ABOVE_BB_MIDDLE': _w('Price > BB Middle', 0.4, 'low', 50, 'Price Position'),
    'MACD_HISTOGRAM': _w('MACD Histogram', 0.6, 'low', 45, 'Trend Momentum'),
    'PRICE_CHANGE_24H': _w('24h Price Change', 0.6, 'low', 50, 'Price Position'),

    # Neutral / minor
    'OBV_POSITIVE': _w('OBV Positive', 0.8, 'medium', 60, 'Volume Confirmation'),
    'CANDLESTICK_PATTERN': _w('Candlestick Pattern', 0.7, 'medium', 55, 'Pattern Recognition'),
    'PARABOLIC_SAR': _w('Parabolic SAR', 0.7, 'medium', 55, 'Support/Resistance'),
    'FUNDING_RATE_POSITIVE': _w('Funding Rate Positive', 0.5, 'low', 45, 'External'),
    'RSI_NEUTRAL': _w('RSI Neutral', 0.3, 'low', 40, 'Overbought/Oversold'),
    'CCI_NEUTRAL': _w('CCI Neutral', 0.3, 'low', 40, 'Overbought/Oversold'),
    'VOLUME_TREND_STABLE': _w('Volume Trend Stable', 0.2, 'low', 30, 'Volume Confirmation'),
}

DEFAULT_WEIGHT = 1.0


@dataclass(frozen=True)
class IndicatorCatalog:
    """
    Read-only lookup over indicator weights and redundancy groups.

    Attributes:
        weights: Mapping of indicator key -> IndicatorWeight
        groups: Redundancy groups, checked in order
    """
    weights: Mapping[str, IndicatorWeight]
    groups: Tuple[IndicatorGroup, ...]

    @classmethod
    def build(
        cls,
        weights: Mapping[str, IndicatorWeight],
        groups: Iterable[IndicatorGroup],
    ) -> "IndicatorCatalog":
        """Create a catalog from plain tables, freezing both."""
        return cls(weights=MappingProxyType(dict(weights)), groups=tuple(groups))

    def get(self, key: str) -> Optional[IndicatorWeight]:
        """Get the catalog entry for an indicator key, if any."""
        return self.weights.get(key)

    def weight_of(self, key: str) -> float:
        """Weight for an indicator key; 1.0 for keys the catalog does not know."""
        entry = self.weights.get(key)
        return entry.weight if entry is not None else DEFAULT_WEIGHT

    def are_redundant(self, key_a: str, key_b: str) -> bool:
        """
        Check whether two indicator keys share a group.

        Only direct co-membership counts: A~B and B~C does not make A~C.
        """
        return any(group.contains(key_a) and group.contains(key_b) for group in self.groups)

    def group_of(self, key: str) -> Optional[IndicatorGroup]:
        """First group containing the key, or None."""
        return next((group for group in self.groups if group.contains(key)), None)


DEFAULT_CATALOG = IndicatorCatalog.build(INDICATOR_WEIGHTS, INDICATOR_GROUPS)


def get_indicator_weight(indicator_key: str) -> float:
    """Get weight for an indicator from the default catalog (1.0 if unknown)."""
    return DEFAULT_CATALOG.weight_of(indicator_key)


def are_indicators_redundant(indicator1: str, indicator2: str) -> bool:
    """Check if two indicators are in the same default-catalog group."""
    return DEFAULT_CATALOG.are_redundant(indicator1, indicator2)
