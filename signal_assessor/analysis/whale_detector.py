"""
Whale Activity Detection

Infers large-player behaviour from candle history alone:

1. Large orders    - volume spikes above mean + 2 std, sized as volume * close
2. Spoofing        - several large orders at one price level within seconds
3. Wash trading    - persistent heavy volume without price movement
4. Zones           - greedy price clustering of buy/sell orders
5. Smart money     - net large-order flow adjusted by zone balance
6. Whale score     - composite activity intensity

Every stage is a pure function; ``analyze_whale_activity`` runs them in order.
"""

import math
from collections import defaultdict
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
from loguru import logger

from signal_assessor.shared.config.defaults import WhaleConfig, DEFAULT_WHALE_CONFIG
from signal_assessor.shared.models.data import CandleHistory, candle_frame_or_empty, known_candle_time
from signal_assessor.shared.models.whale import LargeOrder, PriceZone, WhaleActivity
from signal_assessor.shared.utils.numeric import clamp, finite_or_zero, safe_ratio


def detect_large_orders(
    historical_data: CandleHistory,
    min_size: Optional[float] = None,
    config: WhaleConfig = DEFAULT_WHALE_CONFIG,
) -> List[LargeOrder]:
    """
    Infer large orders from volume spikes.

    Args:
        historical_data: Candle history, oldest first
        min_size: Minimum USD notional (default config.large_order_threshold)
        config: Whale detection parameters

    Returns:
        Inferred orders in candle order (empty with fewer than 20 candles)
    """
    min_size = config.large_order_threshold if min_size is None else min_size
    df = candle_frame_or_empty(historical_data, "whale")

    if len(df) < config.min_candles:
        logger.debug(f"Large order detection skipped: {len(df)} candles (need {config.min_candles})")
        return []

    volumes = df['volume'].to_numpy(dtype=float)
    mean = float(np.nanmean(volumes))
    std = float(np.nanstd(volumes))  # Population std
    spike_level = mean + config.volume_std_multiplier * std

    orders: List[LargeOrder] = []
    for row in df[volumes > spike_level].itertuples(index=False):
        size = finite_or_zero(row.volume * row.close)
        if size < min_size:
            continue
        orders.append(LargeOrder(
            price=float(row.close),
            size=size,
            side='buy' if row.close > row.open else 'sell',
            timestamp=known_candle_time(row.time),
            is_active=False,
        ))

    if orders:
        logger.debug(f"Detected {len(orders)} large orders (spike level {spike_level:.2f})")

    return orders


def _price_level(price: float, granularity: float) -> Optional[int]:
    """Index of the logarithmic price bucket of relative width ``granularity``."""
    if not price or price <= 0 or not math.isfinite(price):
        return None
    return math.floor(math.log(price) / math.log1p(granularity))


def detect_spoofing(
    orders: Sequence[LargeOrder],
    config: WhaleConfig = DEFAULT_WHALE_CONFIG,
) -> bool:
    """
    Detect spoofing: at least 3 same-side orders in one 0.1% price bucket
    placed within 5 seconds of each other.
    """
    if len(orders) < config.spoofing_min_orders:
        return False

    groups: Dict[Tuple[int, str], List[LargeOrder]] = defaultdict(list)
    for order in orders:
        # An order without a candle time has no time span to measure
        if order.timestamp is None:
            continue
        level = _price_level(order.price, config.spoofing_price_granularity)
        if level is None:
            continue
        groups[(level, order.side)].append(order)

    for (level, side), group in groups.items():
        if len(group) < config.spoofing_min_orders:
            continue
        timestamps = [o.timestamp for o in group]
        if max(timestamps) - min(timestamps) < config.spoofing_window_ms:
            logger.info(f"Spoofing pattern: {len(group)} {side} orders at level {level}")
            return True

    return False


def detect_wash_trading(
    historical_data: CandleHistory,
    config: WhaleConfig = DEFAULT_WHALE_CONFIG,
) -> bool:
    """
    Detect wash trading: over the last 20 candles, more than half trade at
    over 2x mean volume AND more than 70% move less than 0.1%.
    """
    df = candle_frame_or_empty(historical_data, "whale")
    if len(df) < config.wash_min_candles:
        return False

    recent = df.iloc[-config.wash_window:]
    volumes = recent['volume'].to_numpy(dtype=float)
    closes = recent['close'].to_numpy(dtype=float)

    with np.errstate(divide='ignore', invalid='ignore'):
        moves = np.abs(np.diff(closes) / closes[:-1]) * 100
    # First candle has no predecessor and counts as no move
    moves = np.concatenate([[0.0], moves])

    avg_volume = float(np.nanmean(volumes))
    high_volume = int(np.sum(volumes > avg_volume * config.wash_volume_multiplier))
    low_move = int(np.sum(moves < config.wash_max_move_pct))

    n = len(recent)
    return high_volume > n * config.wash_high_volume_share and low_move > n * config.wash_low_move_share


def cluster_orders_by_price(
    orders: Sequence[LargeOrder],
    range_pct: float = 0.02,
) -> List[PriceZone]:
    """
    Greedy first-fit price clustering.

    Each order joins the first cluster whose midpoint is within ``range_pct``
    (relative), widening its bounds, or opens a new cluster. Results depend on
    arrival order.
    """
    clusters: List[dict] = []

    for order in orders:
        for cluster in clusters:
            mid = (cluster['low'] + cluster['high']) / 2
            if mid == 0:
                distance = 0.0 if order.price == 0 else math.inf
            else:
                distance = abs(order.price - mid) / abs(mid)
            if distance < range_pct:
                cluster['low'] = min(cluster['low'], order.price)
                cluster['high'] = max(cluster['high'], order.price)
                cluster['size'] += 1
                break
        else:
            clusters.append({'low': order.price, 'high': order.price, 'size': 1})

    return [PriceZone(price_low=c['low'], price_high=c['high'], size=c['size']) for c in clusters]


def identify_accumulation_distribution_zones(
    historical_data: CandleHistory,
    large_orders: Sequence[LargeOrder],
    config: WhaleConfig = DEFAULT_WHALE_CONFIG,
) -> Tuple[List[PriceZone], List[PriceZone]]:
    """
    Split clustered large orders into accumulation (buy) and distribution (sell) zones.

    Returns:
        (accumulation_zones, distribution_zones); both empty with fewer than 10 candles
    """
    df = candle_frame_or_empty(historical_data, "whale")
    if len(df) < config.zone_min_candles:
        return [], []

    buys = [o for o in large_orders if o.side == 'buy']
    sells = [o for o in large_orders if o.side == 'sell']

    accumulation = [
        z for z in cluster_orders_by_price(buys, config.cluster_range_pct) if z.size > config.zone_min_orders
    ]
    distribution = [
        z for z in cluster_orders_by_price(sells, config.cluster_range_pct) if z.size > config.zone_min_orders
    ]

    return accumulation, distribution


def calculate_smart_money_flow(
    large_orders: Sequence[LargeOrder],
    accumulation_zones: Sequence[PriceZone],
    distribution_zones: Sequence[PriceZone],
    config: WhaleConfig = DEFAULT_WHALE_CONFIG,
) -> float:
    """
    Net smart-money flow in [-1, 1]; positive = accumulation.

    0.7 * (buy - sell) / total notional + 0.3 * zone balance.
    """
    if not large_orders:
        return 0.0

    buy_volume = sum(o.size for o in large_orders if o.side == 'buy')
    sell_volume = sum(o.size for o in large_orders if o.side == 'sell')
    total = buy_volume + sell_volume
    if total == 0:
        return 0.0

    flow = safe_ratio(buy_volume - sell_volume, total)

    acc, dist = len(accumulation_zones), len(distribution_zones)
    zone_adjustment = (acc - dist) / max(1, acc + dist)

    combined = flow * config.flow_weight + zone_adjustment * config.zone_weight
    return clamp(combined, -1.0, 1.0)


def calculate_whale_score(
    large_orders: Sequence[LargeOrder],
    spoofing_detected: bool,
    wash_trading_detected: bool,
    smart_money_flow: float,
    config: WhaleConfig = DEFAULT_WHALE_CONFIG,
) -> float:
    """Whale activity intensity in [0, 1]."""
    order_score = config.score_order_weight * min(1.0, len(large_orders) / config.score_order_saturation)
    score = order_score
    if spoofing_detected:
        score += config.score_spoofing_weight
    if wash_trading_detected:
        score += config.score_wash_weight
    score += abs(finite_or_zero(smart_money_flow)) * config.score_flow_weight
    return clamp(score, 0.0, 1.0)


def analyze_whale_activity(
    historical_data: CandleHistory,
    config: WhaleConfig = DEFAULT_WHALE_CONFIG,
) -> WhaleActivity:
    """Run the full whale pipeline over one candle history."""
    large_orders = detect_large_orders(historical_data, config=config)
    spoofing = detect_spoofing(large_orders, config)
    wash_trading = detect_wash_trading(historical_data, config)
    accumulation, distribution = identify_accumulation_distribution_zones(historical_data, large_orders, config)
    flow = calculate_smart_money_flow(large_orders, accumulation, distribution, config)
    score = calculate_whale_score(large_orders, spoofing, wash_trading, flow, config)

    return WhaleActivity(
        large_orders=large_orders,
        spoofing_detected=spoofing,
        wash_trading_detected=wash_trading,
        accumulation_zones=accumulation,
        distribution_zones=distribution,
        smart_money_flow=finite_or_zero(flow),
        whale_score=finite_or_zero(score),
    )
