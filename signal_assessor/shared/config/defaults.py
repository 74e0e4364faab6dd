"""
Default configuration for the signal assessment core.

Every threshold used by the regime, structure and whale stages lives here so
prompt construction and signal validation run with identical numbers. The
defaults reproduce the production constants; override them only for research.
"""
from dataclasses import dataclass, asdict, field, fields
from typing import Any, Dict


@dataclass
class RegimeConfig:
    """Market regime classification thresholds."""
    # ADX bands
    adx_trending: float = 25.0
    adx_choppy: float = 20.0
    adx_moderate: float = 20.0  # Score tier: ADX > 20
    adx_weak: float = 15.0      # Score tier: ADX > 15

    # Rolling ATR comparison
    lookback: int = 20
    atr_period: int = 14
    high_vol_ratio: float = 1.5
    low_vol_ratio: float = 0.5

    # Absolute ATR% fallback when no rolling average is available
    high_vol_atr_pct: float = 3.0
    low_vol_atr_pct: float = 1.0


@dataclass
class StructureConfig:
    """Swing structure / Change-of-Character parameters."""
    min_candles: int = 20
    swing_wing: int = 3          # Candles on each side a swing must beat
    max_swings: int = 5          # Most recent swings kept per side
    strength_min_swings: int = 3  # Swings per side needed to score strength


@dataclass
class WhaleConfig:
    """Whale / manipulation heuristics."""
    # Large order inference
    min_candles: int = 20
    volume_std_multiplier: float = 2.0
    large_order_threshold: float = 100_000.0  # USD notional

    # Spoofing
    spoofing_min_orders: int = 3
    spoofing_window_ms: float = 5000.0
    spoofing_price_granularity: float = 0.001  # 0.1% price buckets

    # Wash trading
    wash_min_candles: int = 10
    wash_window: int = 20
    wash_volume_multiplier: float = 2.0
    wash_max_move_pct: float = 0.1
    wash_high_volume_share: float = 0.5
    wash_low_move_share: float = 0.7

    # Accumulation/distribution zones
    zone_min_candles: int = 10
    cluster_range_pct: float = 0.02
    zone_min_orders: int = 3  # A zone needs strictly more orders than this

    # Smart money flow / whale score weights
    flow_weight: float = 0.7
    zone_weight: float = 0.3
    score_order_weight: float = 0.4
    score_order_saturation: int = 10
    score_spoofing_weight: float = 0.2
    score_wash_weight: float = 0.1
    score_flow_weight: float = 0.3


@dataclass
class AnalysisConfig:
    """Aggregate configuration passed through the assessment engine."""
    regime: RegimeConfig = field(default_factory=RegimeConfig)
    structure: StructureConfig = field(default_factory=StructureConfig)
    whale: WhaleConfig = field(default_factory=WhaleConfig)

    @staticmethod
    def defaults() -> "AnalysisConfig":
        """Return a fresh default configuration object."""
        return AnalysisConfig()

    def validate(self) -> None:
        """Validate configuration values, raising ValueError on invalid entries."""
        minimums = [
            ("regime.lookback", self.regime.lookback, 1),
            ("regime.atr_period", self.regime.atr_period, 2),
            ("regime.high_vol_ratio", self.regime.high_vol_ratio, 0),
            ("regime.low_vol_ratio", self.regime.low_vol_ratio, 0),
            ("structure.min_candles", self.structure.min_candles, 1),
            ("structure.swing_wing", self.structure.swing_wing, 1),
            ("structure.max_swings", self.structure.max_swings, 2),
            ("whale.min_candles", self.whale.min_candles, 1),
            ("whale.large_order_threshold", self.whale.large_order_threshold, 0),
            ("whale.spoofing_min_orders", self.whale.spoofing_min_orders, 1),
            ("whale.spoofing_window_ms", self.whale.spoofing_window_ms, 0),
            ("whale.wash_window", self.whale.wash_window, 1),
            ("whale.score_order_saturation", self.whale.score_order_saturation, 1),
        ]
        for name, value, minimum in minimums:
            if value < minimum:
                raise ValueError(f"{name} must be >= {minimum}, got {value}")
        if self.regime.adx_choppy > self.regime.adx_trending:
            raise ValueError(
                f"regime.adx_choppy ({self.regime.adx_choppy}) must not exceed "
                f"regime.adx_trending ({self.regime.adx_trending})"
            )
        if self.regime.low_vol_ratio >= self.regime.high_vol_ratio:
            raise ValueError("regime.low_vol_ratio must be below regime.high_vol_ratio")
        if not 0 < self.whale.spoofing_price_granularity < 0.1:
            raise ValueError(
                f"whale.spoofing_price_granularity must be between 0 and 0.1, "
                f"got {self.whale.spoofing_price_granularity}"
            )
        if not 0 < self.whale.cluster_range_pct < 1:
            raise ValueError(f"whale.cluster_range_pct must be between 0 and 1, got {self.whale.cluster_range_pct}")
        for name in ("wash_high_volume_share", "wash_low_move_share"):
            value = getattr(self.whale, name)
            if not 0 <= value <= 1:
                raise ValueError(f"whale.{name} must be between 0 and 1, got {value}")

    def to_dict(self) -> Dict[str, Any]:
        """Return a dict representation suitable for serialization."""
        return asdict(self)

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> "AnalysisConfig":
        """Create configuration from a partial nested dict, applying defaults for missing keys."""
        base = AnalysisConfig.defaults()
        for section in fields(base):
            overrides = data.get(section.name) or {}
            target = getattr(base, section.name)
            for key, value in overrides.items():
                if hasattr(target, key):
                    setattr(target, key, value)
        base.validate()
        return base


# Default instances
DEFAULT_REGIME_CONFIG = RegimeConfig()
DEFAULT_STRUCTURE_CONFIG = StructureConfig()
DEFAULT_WHALE_CONFIG = WhaleConfig()
DEFAULT_ANALYSIS_CONFIG = AnalysisConfig(
    regime=DEFAULT_REGIME_CONFIG,
    structure=DEFAULT_STRUCTURE_CONFIG,
    whale=DEFAULT_WHALE_CONFIG,
)
