"""
Signal Assessor CLI - Command-line interface.

Loads candles and an indicator snapshot from disk, runs the assessment and
prints it as console text or JSON.
"""
import json
from enum import Enum
from pathlib import Path
from typing import List, Optional

import pandas as pd
import typer
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from signal_assessor.indicators.validation_utils import DataValidationError, validate_ohlcv
from signal_assessor.shared.models.data import Candle, to_candle_frame
from signal_assessor.shared.models.indicators import (
    AroonReading,
    BollingerBandsReading,
    DivergenceReading,
    Indicators,
    MACDReading,
    StochasticReading,
    SupportResistanceReading,
)
from signal_assessor.shared.models.regime import MarketRegime

app = typer.Typer(help="📊 Signal Assessor - Indicator, regime, structure and whale analysis for trading signals")


# =============================================================================
# Pydantic Models
# =============================================================================

class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra='ignore')


class MACDPayload(_Payload):
    histogram: Optional[float] = None
    macd: Optional[float] = None
    signal: Optional[float] = None


class BollingerBandsPayload(_Payload):
    upper: Optional[float] = None
    middle: Optional[float] = None
    lower: Optional[float] = None


class AroonPayload(_Payload):
    up: float
    down: float


class StochasticPayload(_Payload):
    k: Optional[float] = None
    d: Optional[float] = None


class DivergencePayload(_Payload):
    divergence: Optional[str] = None


class SupportResistancePayload(_Payload):
    support: Optional[float] = None
    resistance: Optional[float] = None


class MarketRegimePayload(_Payload):
    regime: str = 'neutral'
    volatility: str = 'normal'
    adx: Optional[float] = None
    atr_percent: Optional[float] = Field(default=None, alias='atrPercent')
    regime_score: float = Field(default=0.0, alias='regimeScore')


class IndicatorsPayload(_Payload):
    """Indicator snapshot in the camelCase wire vocabulary."""
    price: Optional[float] = None
    price_change_24h: Optional[float] = Field(default=None, alias='priceChange24h')
    rsi14: Optional[float] = None
    stochastic: Optional[StochasticPayload] = None
    williams_r: Optional[float] = Field(default=None, alias='williamsR')
    cci: Optional[float] = None
    macd: Optional[MACDPayload] = None
    ema8: Optional[float] = None
    ema20: Optional[float] = None
    ema50: Optional[float] = None
    adx: Optional[float] = None
    plus_di: Optional[float] = Field(default=None, alias='plusDI')
    minus_di: Optional[float] = Field(default=None, alias='minusDI')
    aroon: Optional[AroonPayload] = None
    parabolic_sar: Optional[float] = Field(default=None, alias='parabolicSAR')
    bollinger_bands: Optional[BollingerBandsPayload] = Field(default=None, alias='bollingerBands')
    vwap: Optional[float] = None
    support_resistance: Optional[SupportResistancePayload] = Field(default=None, alias='supportResistance')
    volume_change: Optional[float] = Field(default=None, alias='volumeChange')
    obv: Optional[float] = None
    volume_price_divergence: Optional[float] = Field(default=None, alias='volumePriceDivergence')
    rsi_divergence: Optional[DivergencePayload] = Field(default=None, alias='rsiDivergence')
    macd_divergence: Optional[DivergencePayload] = Field(default=None, alias='macdDivergence')
    market_regime: Optional[MarketRegimePayload] = Field(default=None, alias='marketRegime')
    funding_rate: Optional[float] = Field(default=None, alias='fundingRate')

    @field_validator('adx', mode='before')
    @classmethod
    def _unwrap_adx(cls, value):
        # Some producers send {"adx": .., "plusDI": .., "minusDI": ..}
        if isinstance(value, dict):
            return value.get('adx')
        return value

    def to_indicators(self) -> Indicators:
        """Convert the payload into the analysis snapshot."""
        def reading(payload, model):
            return model(**payload.model_dump(by_alias=False)) if payload is not None else None

        regime = None
        if self.market_regime is not None:
            regime = MarketRegime(
                regime=self.market_regime.regime,
                volatility=self.market_regime.volatility,
                adx=self.market_regime.adx,
                atr_percent=self.market_regime.atr_percent,
                regime_score=self.market_regime.regime_score,
            )

        return Indicators(
            price=self.price,
            price_change_24h=self.price_change_24h,
            rsi14=self.rsi14,
            stochastic=reading(self.stochastic, StochasticReading),
            williams_r=self.williams_r,
            cci=self.cci,
            macd=reading(self.macd, MACDReading),
            ema8=self.ema8,
            ema20=self.ema20,
            ema50=self.ema50,
            adx=self.adx,
            plus_di=self.plus_di,
            minus_di=self.minus_di,
            aroon=reading(self.aroon, AroonReading),
            parabolic_sar=self.parabolic_sar,
            bollinger_bands=reading(self.bollinger_bands, BollingerBandsReading),
            vwap=self.vwap,
            support_resistance=reading(self.support_resistance, SupportResistanceReading),
            volume_change=self.volume_change,
            obv=self.obv,
            volume_price_divergence=self.volume_price_divergence,
            rsi_divergence=reading(self.rsi_divergence, DivergenceReading),
            macd_divergence=reading(self.macd_divergence, DivergenceReading),
            market_regime=regime,
            funding_rate=self.funding_rate,
        )


class CandlePayload(_Payload):
    """One candle object from a JSON candle file."""
    time: int = 0
    open: Optional[float] = None
    high: float
    low: float
    close: float
    volume: float = 0.0

    @field_validator('time', mode='before')
    @classmethod
    def _coerce_time(cls, value):
        if isinstance(value, str):
            return int(pd.Timestamp(value).timestamp() * 1000)
        return value or 0

    def to_candle(self) -> Candle:
        return Candle(
            time=self.time,
            open=self.open if self.open is not None else self.close,
            high=self.high,
            low=self.low,
            close=self.close,
            volume=self.volume,
        )


class SignalVerb(str, Enum):
    """Signal verbs accepted by the assessment."""
    BUY_TO_ENTER = "buy_to_enter"
    SELL_TO_ENTER = "sell_to_enter"
    ADD = "add"
    REDUCE = "reduce"
    CLOSE_ALL = "close_all"
    HOLD = "hold"


class OutputFormat(str, Enum):
    CONSOLE = "console"
    JSON = "json"


# =============================================================================
# Loaders
# =============================================================================

def load_candles(path: Path) -> pd.DataFrame:
    """
    Load a candle history from CSV or JSON.

    Raises:
        DataValidationError: If the file cannot be parsed or fails OHLCV checks
    """
    if not path.exists():
        raise DataValidationError(f"Candle file not found: {path}")

    if path.suffix.lower() == '.csv':
        try:
            raw = pd.read_csv(path)
        except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
            raise DataValidationError(f"Cannot parse candle CSV {path}: {e}") from e
        raw.columns = [str(col).strip().lower() for col in raw.columns]
        if 'timestamp' in raw.columns and 'time' not in raw.columns:
            raw = raw.rename(columns={'timestamp': 'time'})
        df = to_candle_frame(raw)
    else:
        try:
            items = json.loads(path.read_text())
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise DataValidationError(f"Cannot parse candle JSON {path}: {e}") from e
        if not isinstance(items, list):
            raise DataValidationError(f"Candle JSON must be an array of candle objects: {path}")
        try:
            candles: List[Candle] = []
            for item in items:
                if isinstance(item, dict) and 'time' not in item and 'timestamp' in item:
                    item = {**item, 'time': item['timestamp']}
                candles.append(CandlePayload.model_validate(item).to_candle())
        except (ValidationError, ValueError) as e:
            raise DataValidationError(f"Invalid candle in {path}: {e}") from e
        df = to_candle_frame(candles)

    validate_ohlcv(df, check_nan=True, raise_on_error=True)
    logger.info(f"Loaded {len(df)} candles from {path}")
    return df


def load_indicators(path: Optional[Path]) -> Indicators:
    """
    Load an indicator snapshot from a JSON object.

    Raises:
        DataValidationError: If the file is missing, not JSON, or not a valid snapshot
    """
    if path is None:
        return Indicators()
    if not path.exists():
        raise DataValidationError(f"Indicator file not found: {path}")

    try:
        data = json.loads(path.read_text())
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise DataValidationError(f"Cannot parse indicator JSON {path}: {e}") from e

    if not isinstance(data, dict):
        raise DataValidationError(f"Indicator JSON must be an object: {path}")

    try:
        return IndicatorsPayload.model_validate(data).to_indicators()
    except ValidationError as e:
        raise DataValidationError(f"Invalid indicator snapshot in {path}: {e}") from e


# =============================================================================
# Commands
# =============================================================================

@app.command()
def assess(
    candles: Path = typer.Option(..., "--candles", help="Candle history (CSV or JSON array)"),
    signal: SignalVerb = typer.Option(..., "--signal", help="Proposed signal verb"),
    indicators: Optional[Path] = typer.Option(None, "--indicators", help="Indicator snapshot (JSON object)"),
    price: Optional[float] = typer.Option(None, "--price", help="Current price (default: last close)"),
    adx: Optional[float] = typer.Option(None, "--adx", help="ADX override (default: snapshot ADX)"),
    atr: Optional[float] = typer.Option(None, "--atr", help="Current ATR in price units"),
    output: OutputFormat = typer.Option(OutputFormat.CONSOLE, "--output", help="Output format (console/json)"),
):
    """
    📊 Assess a proposed signal against indicators and candle history.

    Runs:
    - Bullish/bearish indicator count
    - Contradiction detection and conflict severity
    - Quality-weighted justification
    - Market regime, structure and whale activity
    """
    from signal_assessor.engine.assessment import assess_signal
    from signal_assessor.shared.utils.logging_utils import format_assessment_summary

    try:
        history = load_candles(candles)
        snapshot = load_indicators(indicators)
    except DataValidationError as e:
        typer.echo(f"❌ Invalid input: {e}", err=True)
        raise typer.Exit(code=1)

    current_price = price
    if current_price is None and len(history) > 0:
        current_price = float(history['close'].iloc[-1])

    assessment = assess_signal(
        snapshot,
        signal.value,
        current_price,
        historical_data=history,
        adx=adx,
        atr=atr,
    )

    if output == OutputFormat.JSON:
        typer.echo(json.dumps(assessment.to_dict(), indent=2, default=str))
    else:
        typer.echo(format_assessment_summary(assessment))


@app.command()
def version():
    """Display Signal Assessor version information."""
    typer.echo("📊 Signal Assessor v0.1.0")
    typer.echo("Indicator weighting, regime, structure and whale analysis for trading signals")


if __name__ == "__main__":
    app()
