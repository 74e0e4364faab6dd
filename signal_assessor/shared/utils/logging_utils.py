"""
Logging utilities for the assessment pipeline.

Provides consistent, structured logging helpers for tracking analysis stages,
timing, and assessment summaries across all components.
"""

import time
from typing import Any, Dict, Optional

from loguru import logger


def log_analysis_stage(
    stage_name: str,
    signal: str,
    status: str = "START",
    data: Optional[Dict[str, Any]] = None,
    level: str = "DEBUG"
) -> None:
    """
    Log an analysis stage with consistent formatting.

    Args:
        stage_name: Name of the stage (e.g., "CONTRADICTIONS", "WHALE_ACTIVITY")
        signal: Signal verb being assessed
        status: Stage status ("START", "COMPLETE", "SKIPPED")
        data: Optional additional data to log
        level: Log level ("DEBUG", "INFO", "WARNING", "ERROR")
    """
    log_func = getattr(logger, level.lower(), logger.debug)

    if status == "START":
        log_func(f"🔄 [{stage_name}] Starting for {signal}")
    elif status == "COMPLETE":
        duration_msg = f" ({data.get('duration_ms', 0):.0f}ms)" if data and 'duration_ms' in data else ""
        log_func(f"✅ [{stage_name}] Completed for {signal}{duration_msg}")
        if data:
            for key, value in data.items():
                if key != 'duration_ms':
                    log_func(f"   └─ {key}: {value}")
    elif status == "SKIPPED":
        reason = data.get('reason', 'Unknown') if data else 'Unknown'
        log_func(f"⏭️  [{stage_name}] Skipped for {signal}: {reason}")


def log_timing(
    operation_name: str,
    duration_ms: float,
    signal: Optional[str] = None,
    level: str = "DEBUG"
) -> None:
    """
    Log timing information for performance monitoring.

    Args:
        operation_name: Name of the operation being timed
        duration_ms: Duration in milliseconds
        signal: Optional signal context
        level: Log level
    """
    log_func = getattr(logger, level.lower(), logger.debug)

    signal_str = f" [{signal}]" if signal else ""

    if duration_ms < 100:
        emoji = "⚡"  # Fast
    elif duration_ms < 1000:
        emoji = "⏱️"  # Normal
    else:
        emoji = "🐌"  # Slow

    log_func(f"{emoji} {operation_name}{signal_str}: {duration_ms:.0f}ms")


def format_assessment_summary(assessment) -> str:
    """
    Format a completed signal assessment for console output.

    Args:
        assessment: SignalAssessment returned by ``assess_signal``

    Returns:
        Formatted summary string
    """
    direction = assessment.direction
    justification = assessment.justification
    regime = assessment.market_regime

    lines = [
        "=" * 80,
        f"📊 SIGNAL ASSESSMENT: {assessment.signal}",
        "=" * 80,
        f"Direction:          {direction.summary_dir} "
        f"({direction.bullish_count} bullish / {direction.bearish_count} bearish)",
        f"Confidence:         {assessment.confidence * 100:.1f}%",
        f"Quality Ratio:      {justification.quality_ratio * 100:.1f}%",
        f"Conflict Severity:  {assessment.conflict_severity.value.upper()}",
        f"Regime:             {regime.regime} / {regime.volatility} volatility (score {regime.regime_score:.0f})",
    ]

    structure = assessment.market_structure
    if structure is not None:
        lines.append(
            f"Structure:          {structure.structure} (CoC {structure.coc}, "
            f"strength {structure.structure_strength:.0f}, reversal {structure.reversal_signal})"
        )

    whale = assessment.whale_activity
    if whale is not None:
        lines.append(
            f"Whale Activity:     score {whale.whale_score:.2f}, flow {whale.smart_money_flow:+.2f}, "
            f"{len(whale.large_orders)} large orders"
        )

    if assessment.contradictions:
        lines.append("")
        lines.append("Contradictions:")
        for contradiction in assessment.contradictions:
            lines.append(f"  • [{contradiction.severity.value.upper()}] {contradiction.description}")

    if assessment.warnings:
        lines.append("")
        lines.append("Warnings:")
        for warning in assessment.warnings:
            lines.append(f"  • {warning}")

    lines.append("=" * 80)

    return "\n".join(lines)


class TimingContext:
    """Context manager for timing operations."""

    def __init__(self, operation_name: str, signal: Optional[str] = None):
        self.operation_name = operation_name
        self.signal = signal
        self.start_time = None
        self.duration_ms = None

    def __enter__(self):
        self.start_time = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.duration_ms = (time.perf_counter() - self.start_time) * 1000
        log_timing(self.operation_name, self.duration_ms, self.signal)
        return False  # Don't suppress exceptions


def time_operation(operation_name: str, signal: Optional[str] = None) -> TimingContext:
    """
    Context manager for timing operations.

    Usage:
        with time_operation("whale_activity", "buy_to_enter"):
            # ... operation ...
    """
    return TimingContext(operation_name, signal)
