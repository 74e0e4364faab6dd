"""
Quality-Weighted Justification

Instead of simply counting indicators, every indicator that speaks to the
proposed signal becomes a weighted vote:

- Supporting trend/momentum votes add to the signal's side.
- Trend/momentum votes pointing against the signal are recorded on the
  opposite side but add no score; the conflict is already priced in through
  the contradiction severity.
- Warning votes (stacked overbought/oversold, divergences, S/R proximity,
  funding extremes) add to the side they point to.

Weights come from the indicator catalog and are adjusted for the market
regime: trend indicators matter more in trending markets, oscillators more in
ranging ones, and divergences are discounted under high volatility.
"""

from typing import List, Optional, Tuple

from loguru import logger

from signal_assessor.analysis.contradictions import (
    CONTRADICTION_WEIGHT_KEYS,
    ContradictionDetector,
    calculate_conflict_severity,
    contradiction_signal,
    is_bullish_intent,
)
from signal_assessor.shared.config.indicator_catalog import IndicatorCatalog, DEFAULT_CATALOG
from signal_assessor.shared.models.indicators import Indicators
from signal_assessor.shared.models.scoring import (
    ConflictSeverity,
    Contradiction,
    Impact,
    IndicatorVote,
    QualityWeightedJustification,
)
from signal_assessor.shared.utils.numeric import clamp, safe_ratio


TREND_MOMENTUM = 'Trend Momentum'
OVERBOUGHT_OVERSOLD = 'Overbought/Oversold'
DIVERGENCE = 'Divergence'
PRICE_POSITION = 'Price Position'

SEVERITY_FACTORS = {
    ConflictSeverity.CRITICAL: 0.70,
    ConflictSeverity.HIGH: 0.85,
    ConflictSeverity.MEDIUM: 0.95,
    ConflictSeverity.LOW: 1.0,
}
REDUNDANCY_PENALTY_RATE = 0.1

ADX_STRONG = 25.0
VOLUME_DIVERGENCE_THRESHOLD = 0.5
OBV_VOLUME_THRESHOLD = 20.0
SR_PROXIMITY_PCT = 2.0
FUNDING_EXTREME_PCT = 0.1


class _VoteBook:
    """Accumulates bullish/bearish votes and scores for one justification."""

    def __init__(self, detector: ContradictionDetector, regime: str, volatility: str):
        self.detector = detector
        self.catalog = detector.catalog
        self.regime = regime
        self.volatility = volatility
        self.bullish: List[IndicatorVote] = []
        self.bearish: List[IndicatorVote] = []
        self.bullish_score = 0.0
        self.bearish_score = 0.0

    def context_weight(self, base_weight: float, category: str) -> float:
        """Apply regime-aware weighting to a catalog weight."""
        if self.regime == 'trending':
            if category == TREND_MOMENTUM:
                return base_weight * 1.3
            if category == OVERBOUGHT_OVERSOLD:
                return base_weight * 0.7
        if self.regime in ('ranging', 'choppy'):
            if category == OVERBOUGHT_OVERSOLD:
                return base_weight * 1.3
            if category == TREND_MOMENTUM:
                return base_weight * 0.7
        if self.volatility == 'high' and category == DIVERGENCE:
            return base_weight * 0.8
        return base_weight

    def make_vote(
        self,
        key: str,
        name: str,
        description: str,
        category: Optional[str] = None,
        impact: Optional[Impact] = None,
        contextual: bool = True,
        base_weight: Optional[float] = None,
    ) -> IndicatorVote:
        entry = self.catalog.get(key)
        category = category or (entry.category if entry else 'Other')
        impact = impact or (entry.impact if entry else 'medium')
        weight = self.catalog.weight_of(key) if base_weight is None else base_weight
        if contextual:
            weight = self.context_weight(weight, category)
        return IndicatorVote(name=name, weight=weight, category=category, impact=impact, description=description)

    def make_contradiction_vote(self, contradiction_type: str, name: str, description: str,
                                category: Optional[str] = None) -> IndicatorVote:
        """Vote for a warning that mirrors a contradiction rule, weighted like that contradiction."""
        return self.make_vote(
            CONTRADICTION_WEIGHT_KEYS.get(contradiction_type, contradiction_type.upper()),
            name, description, category=category,
            base_weight=self.detector.weight_of(contradiction_type),
        )

    def add(self, vote: IndicatorVote, bullish: bool, counted: bool = True) -> None:
        vote.counted = counted
        if bullish:
            self.bullish.append(vote)
            if counted:
                self.bullish_score += vote.weight
        else:
            self.bearish.append(vote)
            if counted:
                self.bearish_score += vote.weight


def _directional_vote(book: _VoteBook, vote: IndicatorVote, vote_bullish: bool, buy: bool) -> None:
    """Record a trend vote; it only scores when it agrees with the signal."""
    book.add(vote, bullish=vote_bullish, counted=(vote_bullish == buy))


def _trend_votes(book: _VoteBook, ind: Indicators, price: float, buy: bool) -> None:
    # MACD histogram
    hist = ind.macd_histogram
    if hist is not None and hist != 0:
        bullish = hist > 0
        label = 'bullish momentum' if bullish else 'bearish momentum'
        if bullish != buy:
            label = f"CONTRADICTS {'BUY' if buy else 'SELL'} - {label}"
        vote = book.make_vote('MACD_HISTOGRAM', 'MACD Histogram', f"MACD histogram {hist:+.4f} ({label})",
                              category=TREND_MOMENTUM)
        _directional_vote(book, vote, bullish, buy)

    # MACD crossover
    if ind.macd is not None and ind.macd.macd is not None and ind.macd.signal is not None:
        line, signal_line = ind.macd.macd, ind.macd.signal
        if line != signal_line:
            bullish = line > signal_line
            relation = 'above' if bullish else 'below'
            label = 'bullish crossover' if bullish else 'bearish crossover'
            if bullish != buy:
                label = f"CONTRADICTS {'BUY' if buy else 'SELL'} - {label}"
            vote = book.make_vote(
                'MACD_CROSSOVER', 'MACD Crossover',
                f"MACD line {line:.4f} {relation} Signal {signal_line:.4f} ({label})",
                category=TREND_MOMENTUM,
            )
            _directional_vote(book, vote, bullish, buy)

    # EMA alignment (catalog weight, no regime adjustment)
    if ind.ema20 is not None and ind.ema50 is not None and price > 0:
        uptrend = price > ind.ema20 > ind.ema50
        downtrend = price < ind.ema20 < ind.ema50
        if uptrend or downtrend:
            ordering = 'Price > EMA20 > EMA50' if uptrend else 'Price < EMA20 < EMA50'
            label = 'uptrend structure' if uptrend else 'downtrend structure'
            if uptrend != buy:
                label = f"CONTRADICTS {'BUY' if buy else 'SELL'} - {label}"
            vote = book.make_vote('EMA_ALIGNMENT', 'EMA Alignment', f"EMA alignment: {ordering} ({label})",
                                  category=TREND_MOMENTUM, contextual=False)
            _directional_vote(book, vote, uptrend, buy)

    # ADX strong trend backs whichever direction is proposed
    if ind.adx is not None and ind.adx > ADX_STRONG:
        vote = book.make_vote('ADX_STRONG', 'ADX Strong Trend', f"ADX {ind.adx:.2f} (strong trend)",
                              category=TREND_MOMENTUM, contextual=False)
        book.add(vote, bullish=buy)

    # +DI / -DI dominance, supporting side only
    if ind.plus_di is not None and ind.minus_di is not None:
        if buy and ind.plus_di > ind.minus_di:
            vote = book.make_vote('PLUS_DI_DOMINANCE', '+DI > -DI',
                                  f"+DI {ind.plus_di:.2f} > -DI {ind.minus_di:.2f} (bullish trend)",
                                  category=TREND_MOMENTUM, contextual=False)
            book.add(vote, bullish=True)
        elif not buy and ind.minus_di > ind.plus_di:
            vote = book.make_vote('PLUS_DI_DOMINANCE', '-DI > +DI',
                                  f"-DI {ind.minus_di:.2f} > +DI {ind.plus_di:.2f} (bearish trend)",
                                  category=TREND_MOMENTUM, contextual=False)
            book.add(vote, bullish=False)


def _price_position_votes(book: _VoteBook, ind: Indicators, price: float, buy: bool) -> List[str]:
    """
    Price-position votes.

    Levels that share a catalog redundancy group collapse to the heaviest
    firing one; levels the catalog does not group vote on their own.

    Returns the redundant group names detected.
    """
    if price <= 0:
        return []

    levels = [
        ('EMA8', 'PRICE_ABOVE_EMA8', 'EMA8', ind.ema8),
        ('EMA20', 'PRICE_ABOVE_EMA20', 'EMA20', ind.ema20),
        ('VWAP', 'PRICE_ABOVE_VWAP', 'VWAP', ind.vwap),
        ('BB_MIDDLE', 'PRICE_ABOVE_BB_MIDDLE', 'BB Middle', ind.bb_middle),
    ]

    fired: List[Tuple[str, IndicatorVote]] = []
    for member, key, label, level in levels:
        if level is None:
            continue
        if (buy and price > level) or (not buy and price < level):
            relation = '>' if buy else '<'
            where = 'above' if buy else 'below'
            fired.append((member, book.make_vote(
                key, f"Price {relation} {label}", f"Price {where} {label} ${level:.2f}",
                category=PRICE_POSITION, impact='low',
            )))

    if not fired:
        return []

    group = next((g for g in (book.catalog.group_of(m) for m, _ in fired) if g is not None), None)
    grouped = [(m, v) for m, v in fired if group is not None and group.contains(m)]
    for member, vote in fired:
        if group is None or not group.contains(member):
            book.add(vote, bullish=buy)

    if not grouped:
        return []

    best_member, best = max(grouped, key=lambda mv: mv[1].weight)
    best.is_redundant = any(book.catalog.are_redundant(best_member, m) for m, _ in grouped if m != best_member)
    best.redundancy_group = group.name
    book.add(best, bullish=buy)

    return [group.name] if best.is_redundant else []


def _warning_votes(book: _VoteBook, ind: Indicators, price: float, buy: bool) -> None:
    # Stacked overbought (buy) / oversold (sell)
    stoch_k = ind.stochastic_k
    if ind.williams_r is not None and stoch_k is not None:
        rsi = ind.rsi14
        if buy:
            stoch_hit, williams_hit = stoch_k > 80, ind.williams_r > -20
            rsi_hit = rsi is not None and rsi > 70
            label = 'overbought'
        else:
            stoch_hit, williams_hit = stoch_k < 20, ind.williams_r < -80
            rsi_hit = rsi is not None and rsi < 30
            label = 'oversold'

        if stoch_hit and williams_hit and rsi_hit:
            vote = book.make_contradiction_vote(
                f'triple_{label}', f'Triple {label.capitalize()}',
                f"TRIPLE {label}: RSI {rsi:.2f} + Stochastic K {stoch_k:.2f} + "
                f"Williams %R {ind.williams_r:.2f} (extremely high reversal risk)",
                category=OVERBOUGHT_OVERSOLD,
            )
            book.add(vote, bullish=not buy)
        elif stoch_hit and williams_hit:
            vote = book.make_contradiction_vote(
                f'dual_{label}', f'Dual {label.capitalize()}',
                f"Dual {label}: Stochastic K {stoch_k:.2f} + Williams %R {ind.williams_r:.2f} (high reversal risk)",
                category=OVERBOUGHT_OVERSOLD,
            )
            book.add(vote, bullish=not buy)

    # Aroon against EMA trend
    if ind.aroon is not None and ind.ema20 and ind.ema50 and price > 0:
        up, down = ind.aroon.up, ind.aroon.down
        ema_uptrend = price > ind.ema20 > ind.ema50
        if buy and ema_uptrend and down > up and down > 70:
            vote = book.make_contradiction_vote(
                'aroon_ema_contradiction', 'Aroon Contradiction',
                f"Aroon contradiction: EMA shows uptrend but Aroon Down {down:.2f}% > Up {up:.2f}% (downtrend)",
            )
            book.add(vote, bullish=False)
        elif not buy and not ema_uptrend and up > down and up > 70:
            vote = book.make_contradiction_vote(
                'aroon_ema_contradiction', 'Aroon Contradiction',
                f"Aroon contradiction: EMA shows downtrend but Aroon Up {up:.2f}% > Down {down:.2f}% (uptrend)",
            )
            book.add(vote, bullish=True)

    # Divergences
    divergences = (
        ('MACD_DIVERGENCE', 'MACD', ind.macd_divergence,
         'Price rising but momentum declining (strong reversal warning)',
         'Price falling but momentum rising (strong reversal warning)'),
        ('RSI_DIVERGENCE', 'RSI', ind.rsi_divergence,
         'Price making higher highs but RSI making lower highs (reversal warning)',
         'Price making lower lows but RSI making higher lows (reversal warning)'),
    )
    for key, label, reading, bearish_text, bullish_text in divergences:
        if reading is None:
            continue
        if buy and reading.divergence == 'bearish':
            vote = book.make_vote(key, f'{label} Bearish Divergence', f"{label} Bearish Divergence: {bearish_text}",
                                  category=DIVERGENCE)
            book.add(vote, bullish=False)
        elif not buy and reading.divergence == 'bullish':
            vote = book.make_vote(key, f'{label} Bullish Divergence', f"{label} Bullish Divergence: {bullish_text}",
                                  category=DIVERGENCE)
            book.add(vote, bullish=True)

    # Volume vs price divergence
    vpd = ind.volume_price_divergence
    if vpd is not None:
        if buy and vpd < -VOLUME_DIVERGENCE_THRESHOLD:
            vote = book.make_vote('VOLUME_DIVERGENCE', 'Volume Divergence',
                                  f"Volume Divergence: Price rising but volume declining ({vpd:.2f}, bearish signal)")
            book.add(vote, bullish=False)
        elif not buy and vpd > VOLUME_DIVERGENCE_THRESHOLD:
            vote = book.make_vote('VOLUME_DIVERGENCE', 'Volume Divergence',
                                  f"Volume Divergence: Price falling but volume increasing ({vpd:.2f}, bullish signal)")
            book.add(vote, bullish=True)

    # OBV divergence, volume change as the OBV change proxy
    if ind.obv is not None and price > 0 and ind.price_change_24h is not None:
        change = ind.price_change_24h
        volume_change = ind.volume_change or 0.0
        if buy and change > 0 and volume_change < -OBV_VOLUME_THRESHOLD:
            vote = book.make_vote(
                'OBV_DIVERGENCE', 'OBV Divergence',
                f"OBV Divergence: Price rising (+{change:.2f}%) but volume declining ({volume_change:.2f}%, no confirmation)",
            )
            book.add(vote, bullish=False)
        elif not buy and change < 0 and volume_change > OBV_VOLUME_THRESHOLD:
            vote = book.make_vote(
                'OBV_DIVERGENCE', 'OBV Divergence',
                f"OBV Divergence: Price falling ({change:.2f}%) but volume increasing (+{volume_change:.2f}%, bullish signal)",
            )
            book.add(vote, bullish=True)

    # Support/resistance proximity, long entries only
    sr = ind.support_resistance
    if sr is not None and buy and price > 0:
        if sr.support:
            distance = (price - sr.support) / price * 100
            if 0 <= distance <= SR_PROXIMITY_PCT:
                vote = book.make_vote(
                    'SUPPORT_RESISTANCE_PROXIMITY', 'Support Proximity',
                    f"Price near support ${sr.support:.2f} (within {distance:.2f}% - potential bounce)",
                )
                book.add(vote, bullish=True)
        if sr.resistance:
            distance = (sr.resistance - price) / price * 100
            if 0 <= distance <= SR_PROXIMITY_PCT:
                vote = book.make_vote(
                    'SUPPORT_RESISTANCE_PROXIMITY', 'Resistance Proximity',
                    f"Price near resistance ${sr.resistance:.2f} (within {distance:.2f}% - potential rejection)",
                )
                book.add(vote, bullish=False)

    # Funding rate extremes
    if ind.funding_rate is not None:
        funding_pct = ind.funding_rate * 100
        if buy and funding_pct > FUNDING_EXTREME_PCT:
            vote = book.make_vote('FUNDING_RATE_EXTREME', 'Funding Rate Extreme',
                                  f"Funding rate extremely positive {funding_pct:.4f}% (bearish for longs)")
            book.add(vote, bullish=False)
        elif not buy and funding_pct < -FUNDING_EXTREME_PCT:
            vote = book.make_vote('FUNDING_RATE_EXTREME', 'Funding Rate Extreme',
                                  f"Funding rate extremely negative {funding_pct:.4f}% (bullish for shorts)")
            book.add(vote, bullish=True)


def _adjusted_confidence(
    base: float,
    severity: ConflictSeverity,
    contradictions: List[Contradiction],
    redundancy: float,
) -> float:
    """Apply conflict-severity and redundancy penalties, clamped to [0, 1]."""
    has_aroon = any(c.type == 'aroon_ema_contradiction' for c in contradictions)
    if has_aroon and severity == ConflictSeverity.MEDIUM:
        # A lone Aroon/EMA conflict is penalised like a critical one
        factor = SEVERITY_FACTORS[ConflictSeverity.CRITICAL]
    else:
        factor = SEVERITY_FACTORS[severity]

    adjusted = base * factor * (1 - redundancy * REDUNDANCY_PENALTY_RATE)
    return clamp(adjusted, 0.0, 1.0)


def calculate_quality_weighted_justification(
    signal: str,
    indicators: Optional[Indicators],
    catalog: IndicatorCatalog = DEFAULT_CATALOG,
    current_price: Optional[float] = None,
    contradictions: Optional[List[Contradiction]] = None,
) -> QualityWeightedJustification:
    """
    Weigh the indicator evidence for a proposed signal.

    Args:
        signal: Signal verb (buy_to_enter, add, sell_to_enter, reduce, ...)
        indicators: Indicator snapshot (None yields an empty justification)
        catalog: Indicator catalog supplying weights
        current_price: Fallback price when the snapshot carries none
        contradictions: Contradictions already detected for
            ``contradiction_signal(signal)``; detected here when omitted

    Returns:
        QualityWeightedJustification with adjusted confidence in [0, 1]
    """
    buy = is_bullish_intent(signal)

    if indicators is None:
        return QualityWeightedJustification(
            bullish_score=0.0, bearish_score=0.0, bullish_votes=[], bearish_votes=[],
            contradictions=[], redundant_groups=[], quality_ratio=0.0,
            conflict_severity=ConflictSeverity.LOW, conflict_score=0.0,
            redundancy_penalty=0.0, adjusted_confidence=0.0,
        )

    detector = ContradictionDetector(catalog)
    if contradictions is None:
        contradictions = detector.detect(indicators, contradiction_signal(signal))

    regime = indicators.market_regime
    book = _VoteBook(
        detector,
        regime=regime.regime if regime is not None else 'trending',
        volatility=regime.volatility if regime is not None else 'normal',
    )
    price = indicators.reference_price(current_price)

    _trend_votes(book, indicators, price, buy)
    redundant_groups = _price_position_votes(book, indicators, price, buy)
    _warning_votes(book, indicators, price, buy)

    total = book.bullish_score + book.bearish_score
    quality_ratio = safe_ratio(book.bullish_score if buy else book.bearish_score, total)

    severity = calculate_conflict_severity(contradictions)
    conflict_score = sum(c.severity_score for c in contradictions)

    all_votes = book.bullish + book.bearish
    redundancy = safe_ratio(sum(1 for v in all_votes if v.is_redundant), len(all_votes))

    adjusted = _adjusted_confidence(quality_ratio, severity, contradictions, redundancy)

    logger.debug(
        f"Justification for {signal}: bull={book.bullish_score:.2f} bear={book.bearish_score:.2f} "
        f"ratio={quality_ratio:.2f} severity={severity.value} confidence={adjusted:.2f}"
    )

    return QualityWeightedJustification(
        bullish_score=book.bullish_score,
        bearish_score=book.bearish_score,
        bullish_votes=book.bullish,
        bearish_votes=book.bearish,
        contradictions=contradictions,
        redundant_groups=redundant_groups,
        quality_ratio=quality_ratio,
        conflict_severity=severity,
        conflict_score=conflict_score,
        redundancy_penalty=redundancy,
        adjusted_confidence=adjusted,
    )
