"""
Reusable market data fixtures for testing.

Provides deterministic candle histories with known swing structure and
volume patterns, plus a random-walk generator for general OHLCV input.
"""

from typing import List, Sequence, Tuple

import numpy as np
import pandas as pd

from signal_assessor.shared.models.data import Candle


HOUR_MS = 3_600_000
BASE_TIME_MS = 1_700_000_000_000


def make_ohlcv_df(
    n: int = 50,
    base_price: float = 100.0,
    volatility: float = 0.02,
    base_volume: float = 1000.0,
    seed: int = 42,
) -> pd.DataFrame:
    """Generate a random-walk OHLCV frame with a 1h DatetimeIndex."""
    np.random.seed(seed)

    dates = pd.date_range(start='2024-01-01', periods=n, freq='1h')

    returns = np.random.normal(0, volatility, n)
    close = base_price * np.exp(np.cumsum(returns))

    high = close * (1 + np.abs(np.random.normal(0, volatility / 2, n)))
    low = close * (1 - np.abs(np.random.normal(0, volatility / 2, n)))
    open_price = np.roll(close, 1)
    open_price[0] = base_price

    high = np.maximum(high, np.maximum(close, open_price))
    low = np.minimum(low, np.minimum(close, open_price))

    volume = base_volume * np.abs(np.random.normal(1, 0.3, n))

    return pd.DataFrame({
        'open': open_price,
        'high': high,
        'low': low,
        'close': close,
        'volume': volume,
    }, index=dates)


def zigzag_closes(n: int = 30, base: float = 100.0, slope: float = 0.5, amplitude: float = 3.0) -> List[float]:
    """
    Trending zig-zag: peaks at i = 4, 12, 20, ... and troughs at i = 8, 16, 24, ...

    A positive slope gives higher highs and higher lows, a negative slope
    lower highs and lower lows.
    """
    triangle = [0, 1, 2, 3, 4, 3, 2, 1]
    return [base + slope * i + amplitude * triangle[i % 8] for i in range(n)]


def pivot_closes(pivots: Sequence[Tuple[int, float]]) -> List[float]:
    """Linearly interpolate a close path through (index, price) pivots."""
    closes: List[float] = []
    for (i0, p0), (i1, p1) in zip(pivots, pivots[1:]):
        step = (p1 - p0) / (i1 - i0)
        for k in range(i1 - i0):
            closes.append(p0 + step * k)
    closes.append(pivots[-1][1])
    return closes


def closes_to_frame_candles(closes: Sequence[float]) -> List[Candle]:
    """Candles whose high/low equal close +/- 0.5 so swings follow the close path."""
    candles = []
    for i, close in enumerate(closes):
        candles.append(Candle(
            time=BASE_TIME_MS + i * HOUR_MS,
            open=float(close),
            high=float(close + 0.5),
            low=float(close - 0.5),
            close=float(close),
            volume=1000.0,
        ))
    return candles


def bullish_structure_candles() -> List[Candle]:
    """30 candles of HH + HL structure (swing highs 114.5/118.5/122.5, lows 103.5/107.5/111.5)."""
    return closes_to_frame_candles(zigzag_closes(30, slope=0.5))


def bearish_structure_candles() -> List[Candle]:
    """30 candles of LH + LL structure."""
    return closes_to_frame_candles(zigzag_closes(30, slope=-0.5))


def bullish_coc_candles() -> List[Candle]:
    """21 candles: swing highs 110.5 -> 112.5 (HH), swing lows 103.5 -> 100.5 (LL)."""
    return closes_to_frame_candles(
        pivot_closes([(0, 100.0), (4, 110.0), (8, 104.0), (12, 112.0), (16, 101.0), (20, 108.0)])
    )


def bearish_coc_candles() -> List[Candle]:
    """21 candles: swing highs 110.5 -> 105.5 (LH), swing lows 89.5 -> 94.5 (HL)."""
    return closes_to_frame_candles(
        pivot_closes([(0, 100.0), (4, 90.0), (8, 110.0), (12, 95.0), (16, 105.0), (20, 97.0)])
    )


def flat_candles(n: int = 30, price: float = 100.0, volume: float = 1000.0) -> List[Candle]:
    """Flat market: identical candles, no swings and no volume spikes."""
    return [
        Candle(time=BASE_TIME_MS + i * HOUR_MS, open=price, high=price + 0.5,
               low=price - 0.5, close=price, volume=volume)
        for i in range(n)
    ]


def large_order_candles(
    n: int = 30,
    spike_index: int = 25,
    spike_volume: float = 10_000.0,
    price: float = 100.0,
    bullish: bool = True,
) -> List[Candle]:
    """
    Flat history with one volume spike.

    The spike candle opens 1.0 below (bullish) or above (bearish) its close, so
    it infers a buy or sell order of ``spike_volume * price`` notional.
    """
    candles = flat_candles(n, price)
    spike_open = price - 1.0 if bullish else price + 1.0
    candles[spike_index] = Candle(
        time=BASE_TIME_MS + spike_index * HOUR_MS,
        open=spike_open,
        high=max(spike_open, price) + 0.5,
        low=min(spike_open, price) - 0.5,
        close=price,
        volume=spike_volume,
    )
    return candles


def candles_to_frame(candles: Sequence[Candle]) -> pd.DataFrame:
    """Plain DataFrame view of candles (time column in epoch ms)."""
    return pd.DataFrame([{
        'time': c.time, 'open': c.open, 'high': c.high,
        'low': c.low, 'close': c.close, 'volume': c.volume,
    } for c in candles])
