"""
Signal scoring models.

This module defines the data structures shared by the directional counter,
the contradiction detector, the quality-weighted justification and the final
signal assessment. Prompt construction and signal validation both serialise
these records, so their ``to_dict`` keys are part of the contract.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Literal, Optional, Tuple

from signal_assessor.shared.models.regime import MarketRegime
from signal_assessor.shared.models.structure import MarketStructure
from signal_assessor.shared.models.whale import WhaleActivity


Impact = Literal['low', 'medium', 'high']
SummaryDirection = Literal['BUY', 'SELL', 'MIXED']


@dataclass(frozen=True)
class IndicatorWeight:
    """
    Reliability weight for one indicator signal.

    Attributes:
        name: Display name (e.g., 'MACD Divergence')
        weight: Positive multiplier applied to the indicator's vote
        impact: 'low', 'medium' or 'high'
        reliability: Historical reliability estimate (0-100)
        category: Group/category label (e.g., 'Divergence')
    """
    name: str
    weight: float
    impact: Impact
    reliability: int
    category: str

    def __post_init__(self):
        if self.weight <= 0:
            raise ValueError(f"Weight must be positive, got {self.weight} for {self.name}")
        if not 0 <= self.reliability <= 100:
            raise ValueError(f"Reliability must be 0-100, got {self.reliability} for {self.name}")


@dataclass(frozen=True)
class IndicatorGroup:
    """Set of indicator keys that measure the same thing."""
    name: str
    weight: float
    indicators: frozenset
    description: str

    def contains(self, key: str) -> bool:
        return key in self.indicators


class ConflictSeverity(str, Enum):
    """
    Ordered conflict tier.

    Tiers compare by :attr:`rank` (LOW=1, MEDIUM=1.5, HIGH=2, CRITICAL=3).
    The rank is exposed for reporting only; tiers are not numbers.
    """
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> float:
        return _SEVERITY_RANKS[self]

    def __lt__(self, other):
        if not isinstance(other, ConflictSeverity):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other):
        if not isinstance(other, ConflictSeverity):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other):
        if not isinstance(other, ConflictSeverity):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other):
        if not isinstance(other, ConflictSeverity):
            return NotImplemented
        return self.rank >= other.rank


_SEVERITY_RANKS = {
    ConflictSeverity.LOW: 1.0,
    ConflictSeverity.MEDIUM: 1.5,
    ConflictSeverity.HIGH: 2.0,
    ConflictSeverity.CRITICAL: 3.0,
}


@dataclass(frozen=True)
class Contradiction:
    """
    Logical conflict between indicators and the proposed signal.

    Attributes:
        type: Rule identifier (e.g., 'aroon_ema_contradiction', 'dual_overbought')
        severity: Conflict tier of this single contradiction
        description: Human-readable explanation
        indicators: Catalog keys of the indicators involved
    """
    type: str
    severity: ConflictSeverity
    description: str
    indicators: Tuple[str, ...] = ()

    @property
    def severity_score(self) -> float:
        return self.severity.rank

    def to_dict(self) -> dict:
        return {
            'type': self.type,
            'severity': self.severity.value,
            'severityScore': self.severity_score,
            'description': self.description,
            'indicators': list(self.indicators),
        }


@dataclass(frozen=True)
class DirectionalCount:
    """Bullish/bearish vote count from one indicator snapshot."""
    bullish_count: int
    bearish_count: int
    summary_dir: SummaryDirection

    def to_dict(self) -> dict:
        return {
            'bullishCount': self.bullish_count,
            'bearishCount': self.bearish_count,
            'summaryDir': self.summary_dir,
        }


@dataclass
class IndicatorVote:
    """
    Weighted contribution of one indicator to the justification.

    ``counted`` is False for votes that contradict the proposed signal; they
    are kept for transparency but add nothing to the directional score.
    """
    name: str
    weight: float
    category: str
    impact: Impact
    description: str
    counted: bool = True
    is_redundant: bool = False
    redundancy_group: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            'name': self.name,
            'weight': self.weight,
            'category': self.category,
            'impact': self.impact,
            'description': self.description,
            'counted': self.counted,
            'isRedundant': self.is_redundant,
            'redundancyGroup': self.redundancy_group,
        }


@dataclass(frozen=True)
class QualityWeightedJustification:
    """
    Quality-weighted support for a proposed signal.

    Attributes:
        bullish_score / bearish_score: Sum of counted vote weights per side
        bullish_votes / bearish_votes: All votes per side (counted or not)
        contradictions: Contradictions detected for the signal
        redundant_groups: Catalog groups where more than one indicator fired
        quality_ratio: Directional score / total score (0 when no score)
        conflict_severity: Aggregated conflict tier
        conflict_score: Sum of contradiction severity ranks
        redundancy_penalty: Share of votes flagged redundant (0-1)
        adjusted_confidence: quality_ratio after conflict and redundancy penalties (0-1)
    """
    bullish_score: float
    bearish_score: float
    bullish_votes: List[IndicatorVote]
    bearish_votes: List[IndicatorVote]
    contradictions: List[Contradiction]
    redundant_groups: List[str]
    quality_ratio: float
    conflict_severity: ConflictSeverity
    conflict_score: float
    redundancy_penalty: float
    adjusted_confidence: float

    @property
    def bullish_count(self) -> int:
        return len(self.bullish_votes)

    @property
    def bearish_count(self) -> int:
        return len(self.bearish_votes)

    @property
    def unique_bullish_count(self) -> int:
        return sum(1 for v in self.bullish_votes if not v.is_redundant)

    @property
    def unique_bearish_count(self) -> int:
        return sum(1 for v in self.bearish_votes if not v.is_redundant)

    @property
    def base_confidence(self) -> float:
        return self.quality_ratio

    def to_dict(self) -> dict:
        return {
            'bullishScore': self.bullish_score,
            'bearishScore': self.bearish_score,
            'bullishCount': self.bullish_count,
            'bearishCount': self.bearish_count,
            'uniqueBullishCount': self.unique_bullish_count,
            'uniqueBearishCount': self.unique_bearish_count,
            'bullishIndicators': [v.to_dict() for v in self.bullish_votes],
            'bearishIndicators': [v.to_dict() for v in self.bearish_votes],
            'contradictions': [c.description for c in self.contradictions],
            'redundantGroups': list(self.redundant_groups),
            'qualityRatio': self.quality_ratio,
            'conflictSeverity': self.conflict_severity.value,
            'conflictScore': self.conflict_score,
            'totalContradictions': len(self.contradictions),
            'baseConfidence': self.base_confidence,
            'adjustedConfidence': self.adjusted_confidence,
            'redundancyPenalty': self.redundancy_penalty,
        }


@dataclass(frozen=True)
class SignalAssessment:
    """
    Complete assessment of one proposed signal.

    Everything a prompt builder or a signal validator needs, computed once
    from the same inputs.
    """
    signal: str
    direction: DirectionalCount
    contradictions: List[Contradiction]
    conflict_severity: ConflictSeverity
    justification: QualityWeightedJustification
    market_regime: MarketRegime
    market_structure: Optional[MarketStructure] = None
    whale_activity: Optional[WhaleActivity] = None
    warnings: List[str] = field(default_factory=list)

    @property
    def confidence(self) -> float:
        return self.justification.adjusted_confidence

    def to_dict(self) -> dict:
        return {
            'signal': self.signal,
            'direction': self.direction.to_dict(),
            'contradictions': [c.to_dict() for c in self.contradictions],
            'conflictSeverity': self.conflict_severity.value,
            'confidence': self.confidence,
            'justification': self.justification.to_dict(),
            'marketRegime': self.market_regime.to_dict(),
            'marketStructure': self.market_structure.to_dict() if self.market_structure else None,
            'whaleActivity': self.whale_activity.to_dict() if self.whale_activity else None,
            'warnings': list(self.warnings),
        }
