"""
Whale activity models.

Large orders here are inferred from volume spikes in candle history, not read
from a live order book.
"""

from dataclasses import dataclass, field
from typing import List, Literal, Optional


OrderSide = Literal['buy', 'sell']


@dataclass(frozen=True)
class LargeOrder:
    """
    Inferred large order.

    Attributes:
        price: Close of the spike candle
        size: Estimated USD notional (volume * close)
        side: 'buy' if the candle closed above its open, else 'sell'
        timestamp: Candle time (epoch ms), None when the candle carries no time
        is_active: Always False for orders inferred from history
    """
    price: float
    size: float
    side: OrderSide
    timestamp: Optional[int]
    is_active: bool = False

    def to_dict(self) -> dict:
        return {
            'price': self.price,
            'size': self.size,
            'side': self.side,
            'timestamp': self.timestamp,
            'isActive': self.is_active,
        }


@dataclass(frozen=True)
class PriceZone:
    """Price band where large orders clustered."""
    price_low: float
    price_high: float
    size: int  # Number of contributing orders

    @property
    def midpoint(self) -> float:
        return (self.price_low + self.price_high) / 2

    def to_dict(self) -> dict:
        return {'priceLow': self.price_low, 'priceHigh': self.price_high, 'size': self.size}


@dataclass(frozen=True)
class WhaleActivity:
    """
    Composite whale/manipulation assessment.

    Attributes:
        large_orders: Inferred large orders in candle order
        spoofing_detected: Clustered short-lived orders at one price level
        wash_trading_detected: High volume without price movement
        accumulation_zones: Buy-side clusters with more than 3 orders
        distribution_zones: Sell-side clusters with more than 3 orders
        smart_money_flow: Net flow in [-1, 1], positive = accumulation
        whale_score: Activity intensity in [0, 1]
    """
    large_orders: List[LargeOrder] = field(default_factory=list)
    spoofing_detected: bool = False
    wash_trading_detected: bool = False
    accumulation_zones: List[PriceZone] = field(default_factory=list)
    distribution_zones: List[PriceZone] = field(default_factory=list)
    smart_money_flow: float = 0.0
    whale_score: float = 0.0

    def to_dict(self) -> dict:
        return {
            'largeOrders': [o.to_dict() for o in self.large_orders],
            'spoofingDetected': self.spoofing_detected,
            'washTradingDetected': self.wash_trading_detected,
            'accumulationZones': [z.to_dict() for z in self.accumulation_zones],
            'distributionZones': [z.to_dict() for z in self.distribution_zones],
            'smartMoneyFlow': self.smart_money_flow,
            'whaleScore': self.whale_score,
        }
