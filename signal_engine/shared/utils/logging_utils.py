"""
Logging utilities for the analysis pipeline.

Provides consistent logging helpers for tracking analysis stages,
rejections, timing, and pattern counts across all components.
"""

from typing import Any, Dict, Optional
from loguru import logger


def log_analysis_stage(
    stage_name: str,
    timeframe: str,
    status: str = "START",
    data: Optional[Dict[str, Any]] = None,
    level: str = "DEBUG"
) -> None:
    """
    Log an analysis stage with consistent formatting.

    Args:
        stage_name: Name of the stage (e.g., "INDICATORS", "STRUCTURE")
        timeframe: Timeframe label being analysed
        status: Stage status ("START", "COMPLETE", "SKIPPED")
        data: Optional additional data to log
        level: Log level ("DEBUG", "INFO", "WARNING", "ERROR")
    """
    log_func = getattr(logger, level.lower(), logger.debug)

    if status == "START":
        log_func(f"🔄 [{stage_name}] Starting for {timeframe}")
    elif status == "COMPLETE":
        duration_msg = f" ({data.get('duration_ms', 0):.0f}ms)" if data and 'duration_ms' in data else ""
        log_func(f"✅ [{stage_name}] Completed for {timeframe}{duration_msg}")
        if data:
            for key, value in data.items():
                if key != 'duration_ms':
                    log_func(f"   └─ {key}: {value}")
    elif status == "SKIPPED":
        log_func(f"⏭️ [{stage_name}] Skipped for {timeframe}")
        if data:
            log_func(f"   └─ Reason: {data.get('reason', 'Unknown')}")


def log_rejection(
    stage: str,
    reason: str,
    diagnostics: Optional[Dict[str, Any]] = None,
    level: str = "DEBUG"
) -> None:
    """
    Log a signal rejection with diagnostic context.

    Args:
        stage: Stage where rejection occurred
        reason: Human-readable rejection reason
        diagnostics: Detailed diagnostic data
        level: Log level
    """
    log_func = getattr(logger, level.lower(), logger.debug)

    log_func(f"🚫 REJECTED at {stage}")
    log_func(f"   └─ Reason: {reason}")

    if diagnostics:
        log_func("   └─ Diagnostics:")
        for key, value in diagnostics.items():
            if isinstance(value, float):
                log_func(f"      • {key}: {value:.4f}")
            else:
                log_func(f"      • {key}: {value}")


def log_timing(
    operation_name: str,
    duration_ms: float,
    timeframe: Optional[str] = None,
    level: str = "DEBUG"
) -> None:
    """
    Log timing information for performance monitoring.

    Args:
        operation_name: Name of the operation being timed
        duration_ms: Duration in milliseconds
        timeframe: Optional timeframe context
        level: Log level
    """
    log_func = getattr(logger, level.lower(), logger.debug)

    tf_str = f" [{timeframe}]" if timeframe else ""

    if duration_ms < 100:
        emoji = "⚡"
    elif duration_ms < 1000:
        emoji = "⏱️"
    else:
        emoji = "🐌"

    log_func(f"{emoji} {operation_name}{tf_str}: {duration_ms:.0f}ms")


def log_pattern_detection_summary(patterns: Dict[str, int]) -> None:
    """
    Log structure pattern detection summary.

    Args:
        patterns: Dict of pattern type -> count
    """
    logger.debug("📐 Pattern Detection Summary:")
    for pattern_type, count in patterns.items():
        if count > 0:
            logger.debug(f"   └─ {pattern_type}: {count}")
