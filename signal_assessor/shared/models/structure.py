"""
Market structure models.

Swing points and the Change-of-Character (COC) classification built from them.
"""

from dataclasses import dataclass, field
from typing import List, Literal, Optional


StructureState = Literal['bullish', 'bearish', 'neutral']
CocState = Literal['bullish', 'bearish', 'none']


@dataclass(frozen=True)
class SwingPoint:
    """A swing high or low."""
    price: float
    index: int  # Position in the supplied history
    timestamp: int  # Candle time (epoch ms)

    def to_dict(self) -> dict:
        return {'price': self.price, 'index': self.index, 'timestamp': self.timestamp}


@dataclass(frozen=True)
class MarketStructure:
    """
    Trend structure and Change-of-Character state.

    Attributes:
        structure: 'bullish' (HH+HL), 'bearish' (LH+LL) or 'neutral'
        coc: 'bullish'/'bearish' when the last swings break the prior
             sequence, else 'none'
        last_swing_high: Price of the most recent swing high (None if none found)
        last_swing_low: Price of the most recent swing low (None if none found)
        structure_strength: 0-100 consistency of rising swings
        reversal_signal: True when a COC is present or confirmed by price
        swing_highs: Up to 5 most recent swing highs, oldest first
        swing_lows: Up to 5 most recent swing lows, oldest first
        timestamp: Evaluation time (epoch ms)
    """
    structure: StructureState
    coc: CocState
    last_swing_high: Optional[float]
    last_swing_low: Optional[float]
    structure_strength: float
    reversal_signal: bool
    swing_highs: List[SwingPoint] = field(default_factory=list)
    swing_lows: List[SwingPoint] = field(default_factory=list)
    timestamp: int = 0

    def to_dict(self) -> dict:
        return {
            'structure': self.structure,
            'coc': self.coc,
            'lastSwingHigh': self.last_swing_high,
            'lastSwingLow': self.last_swing_low,
            'structureStrength': self.structure_strength,
            'reversalSignal': self.reversal_signal,
            'swingHighs': [sp.to_dict() for sp in self.swing_highs],
            'swingLows': [sp.to_dict() for sp in self.swing_lows],
            'timestamp': self.timestamp,
        }
