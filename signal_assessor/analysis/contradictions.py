"""
Contradiction Detection

Cross-checks an indicator snapshot against a proposed signal for logical
conflicts (trend indicators disagreeing, stacked overbought/oversold readings,
momentum divergence against the trade) and reduces them to one severity tier.

Rules are evaluated independently and reported in detection order; missing
inputs skip a rule silently.
"""

from collections import Counter
from typing import Iterable, List, Mapping

from loguru import logger

from signal_assessor.shared.config.indicator_catalog import IndicatorCatalog, DEFAULT_CATALOG
from signal_assessor.shared.models.indicators import Indicators
from signal_assessor.shared.models.scoring import ConflictSeverity, Contradiction


BULLISH_SIGNALS = frozenset({'buy_to_enter', 'add'})
# Verbs that carry no direction are checked for contradictions as long entries
NON_TRADING_SIGNALS = frozenset({'reduce', 'close_all', 'hold'})

# Contradiction type -> catalog key carrying its weight
CONTRADICTION_WEIGHT_KEYS: Mapping[str, str] = {
    'aroon_ema_contradiction': 'AROON_CONTRADICTION',
    'triple_overbought': 'TRIPLE_OVERBOUGHT',
    'triple_oversold': 'TRIPLE_OVERSOLD',
    'dual_overbought': 'DUAL_OVERBOUGHT',
    'dual_oversold': 'DUAL_OVERSOLD',
    'macd_divergence': 'MACD_DIVERGENCE',
}

AROON_STRONG = 70.0
STOCH_OVERBOUGHT, STOCH_OVERSOLD = 80.0, 20.0
WILLIAMS_OVERBOUGHT, WILLIAMS_OVERSOLD = -20.0, -80.0
RSI_OVERBOUGHT, RSI_OVERSOLD = 70.0, 30.0


def is_bullish_intent(signal: str) -> bool:
    """``buy_to_enter`` and ``add`` are bullish; every other verb is bearish."""
    return signal in BULLISH_SIGNALS


def contradiction_signal(signal: str) -> str:
    """Verb used for contradiction checks: non-trading verbs are checked as ``buy_to_enter``."""
    return 'buy_to_enter' if signal in NON_TRADING_SIGNALS else signal


class ContradictionDetector:
    """
    Detects indicator contradictions for a proposed signal.

    Holds the indicator catalog used to weigh contradiction types.
    """

    def __init__(self, catalog: IndicatorCatalog = DEFAULT_CATALOG):
        self.catalog = catalog

    def weight_of(self, contradiction_type: str) -> float:
        """Catalog weight for a contradiction type (1.0 if unknown)."""
        key = CONTRADICTION_WEIGHT_KEYS.get(contradiction_type, contradiction_type.upper())
        return self.catalog.weight_of(key)

    def detect(self, indicators: Indicators, signal: str) -> List[Contradiction]:
        """
        Detect contradictions between the snapshot and the signal.

        Args:
            indicators: Indicator snapshot
            signal: Signal verb (buy_to_enter, add, sell_to_enter, ...)

        Returns:
            Contradictions in detection order (empty list when none fire)
        """
        if indicators is None:
            return []

        bullish = is_bullish_intent(signal)
        contradictions: List[Contradiction] = []

        contradictions.extend(self._aroon_ema(indicators, bullish))
        contradictions.extend(self._overbought_oversold(indicators, bullish))
        contradictions.extend(self._macd_divergence(indicators, bullish))

        if contradictions:
            logger.debug(
                f"Contradictions for {signal}: " + ", ".join(f"{c.type}({c.severity.value})" for c in contradictions)
            )

        return contradictions

    def _aroon_ema(self, ind: Indicators, bullish: bool) -> List[Contradiction]:
        # Uses the snapshot's own price; no current-price fallback here
        if not (ind.aroon is not None and ind.ema20 and ind.ema50 and ind.price):
            return []

        up, down = ind.aroon.up, ind.aroon.down
        ema_uptrend = ind.price > ind.ema20 > ind.ema50
        involved = ('AROON', 'EMA20', 'EMA50')

        if bullish and ema_uptrend and down > up and down > AROON_STRONG:
            return [Contradiction(
                type='aroon_ema_contradiction',
                severity=ConflictSeverity.CRITICAL,
                description=f"EMA shows uptrend but Aroon shows strong downtrend (Down: {down:.2f}% > Up: {up:.2f}%)",
                indicators=involved,
            )]
        if not bullish and not ema_uptrend and up > down and up > AROON_STRONG:
            return [Contradiction(
                type='aroon_ema_contradiction',
                severity=ConflictSeverity.CRITICAL,
                description=f"EMA shows downtrend but Aroon shows strong uptrend (Up: {up:.2f}% > Down: {down:.2f}%)",
                indicators=involved,
            )]
        return []

    def _overbought_oversold(self, ind: Indicators, bullish: bool) -> List[Contradiction]:
        stoch_k = ind.stochastic_k
        williams_r = ind.williams_r
        if stoch_k is None or williams_r is None:
            return []

        rsi = ind.rsi14

        # Only the branch matching intent is checked
        if bullish:
            stoch_hit = stoch_k > STOCH_OVERBOUGHT
            williams_hit = williams_r > WILLIAMS_OVERBOUGHT
            rsi_hit = rsi is not None and rsi > RSI_OVERBOUGHT
            label = 'overbought'
        else:
            stoch_hit = stoch_k < STOCH_OVERSOLD
            williams_hit = williams_r < WILLIAMS_OVERSOLD
            rsi_hit = rsi is not None and rsi < RSI_OVERSOLD
            label = 'oversold'

        if stoch_hit and williams_hit and rsi_hit:
            return [Contradiction(
                type=f'triple_{label}',
                severity=ConflictSeverity.CRITICAL,
                description=(
                    f"TRIPLE {label}: RSI {rsi:.2f} + Stochastic {stoch_k:.2f} + "
                    f"Williams %R {williams_r:.2f} (extremely high reversal risk)"
                ),
                indicators=('RSI', 'STOCHASTIC', 'WILLIAMS_R'),
            )]
        if stoch_hit and williams_hit:
            return [Contradiction(
                type=f'dual_{label}',
                severity=ConflictSeverity.HIGH,
                description=(
                    f"Dual {label}: Stochastic K {stoch_k:.2f} + Williams %R {williams_r:.2f} (high reversal risk)"
                ),
                indicators=('STOCHASTIC', 'WILLIAMS_R'),
            )]
        return []

    def _macd_divergence(self, ind: Indicators, bullish: bool) -> List[Contradiction]:
        if ind.macd_divergence is None:
            return []

        divergence = ind.macd_divergence.divergence
        if bullish and divergence == 'bearish':
            return [Contradiction(
                type='macd_divergence',
                severity=ConflictSeverity.CRITICAL,
                description='MACD Bearish Divergence: Price rising but momentum declining (strong reversal warning)',
                indicators=('MACD_DIVERGENCE',),
            )]
        if not bullish and divergence == 'bullish':
            return [Contradiction(
                type='macd_divergence',
                severity=ConflictSeverity.CRITICAL,
                description='MACD Bullish Divergence: Price falling but momentum rising (strong reversal warning)',
                indicators=('MACD_DIVERGENCE',),
            )]
        return []


def detect_contradictions(
    indicators: Indicators,
    signal: str,
    catalog: IndicatorCatalog = DEFAULT_CATALOG,
) -> List[Contradiction]:
    """Detect contradictions between an indicator snapshot and a signal."""
    return ContradictionDetector(catalog).detect(indicators, signal)


def calculate_conflict_severity(contradictions: Iterable[Contradiction]) -> ConflictSeverity:
    """
    Reduce contradictions to one severity tier.

    Depends only on the number of critical (c) and high (h) contradictions:
        c >= 2, or c >= 1 and h >= 2     -> CRITICAL
        c == 1 and h >= 1, or h >= 2     -> HIGH
        c == 1 or h == 1                 -> MEDIUM
        otherwise (including no input)   -> LOW
    """
    counts = Counter(c.severity for c in contradictions)
    critical = counts[ConflictSeverity.CRITICAL]
    high = counts[ConflictSeverity.HIGH]

    if critical >= 2 or (critical >= 1 and high >= 2):
        return ConflictSeverity.CRITICAL
    if (critical == 1 and high >= 1) or high >= 2:
        return ConflictSeverity.HIGH
    if critical == 1 or high == 1:
        return ConflictSeverity.MEDIUM
    return ConflictSeverity.LOW
