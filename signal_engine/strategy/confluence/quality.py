"""
Signal Quality Grader

Turns a confluence signal into a 0-100 quality score and a letter grade.

Quality points:
- Confluence count (max 35)
- Score magnitude (max 25)
- Volume participation (max 15)
- CVD confirmation (max 10)
- VWAP proximity (max 10)
- RSI divergence (5)

Five safety filters run alongside; failing liquidity, momentum, fakeout or
volatility checks subtracts penalties before the grade ladder is applied.
"""

import logging
from typing import List, Tuple

import pandas as pd

from signal_engine.indicators.filters import detect_fakeout
from signal_engine.shared.config.defaults import (
    DEFAULT_PENALTIES,
    QualityLadder,
    QualityPenalties,
    STANDARD_LADDER,
)
from signal_engine.shared.models.indicators import FakeoutResult, IndicatorSet
from signal_engine.shared.models.scoring import ConfluenceSignal, SafetyFilters, SignalQuality

logger = logging.getLogger(__name__)


MINIMUM_QUALITY = 35
MINIMUM_CONFLUENCE = 2


def evaluate_safety_filters(
    df: pd.DataFrame,
    indicators: IndicatorSet,
    confluence: ConfluenceSignal,
) -> Tuple[SafetyFilters, FakeoutResult]:
    """
    Run the five safety filters for the signal's binary lean.

    Returns:
        Tuple of (SafetyFilters, the fakeout reading used by no_fakeout)
    """
    lean = confluence.signal_direction
    score = confluence.score
    momentum_signal = indicators.momentum.signal
    fakeout = detect_fakeout(df, lean)

    filters = SafetyFilters(
        liquidity_ok=indicators.liquidity.sufficient,
        momentum_aligned=(
            (score > 0 and 'bullish' in momentum_signal)
            or (score < 0 and 'bearish' in momentum_signal)
            or score == 0
        ),
        trend_confirmed=indicators.adx.trending and indicators.adx.trend_direction == lean,
        no_fakeout=not fakeout.is_fakeout,
        volatility_ok=indicators.atr.volatility != 'extreme',
    )
    return filters, fakeout


def quality_points(confluence: ConfluenceSignal, indicators: IndicatorSet) -> Tuple[float, List[str]]:
    """Raw quality points before safety penalties, with the contributing factors."""
    points = 0.0
    factors = []
    count = confluence.confluence_count

    if count >= 5:
        points += 35
        factors.append('Excellent confluence (5+ indicators)')
    elif count >= 4:
        points += 28
        factors.append('Good confluence (4 indicators)')
    elif count >= 3:
        points += 20
        factors.append('Acceptable confluence (3 indicators)')
    else:
        points += count * 5
        factors.append(f"Weak confluence ({count} indicators)")

    magnitude = abs(confluence.score)
    if magnitude >= 50:
        points += 25
        factors.append('Very strong signal')
    elif magnitude >= 35:
        points += 20
        factors.append('Strong signal')
    elif magnitude >= 20:
        points += 12
        factors.append('Moderate signal')
    else:
        points += 5
        factors.append('Weak signal')

    volume = indicators.volume
    if volume.spike and volume.ratio >= 2.0:
        points += 15
        factors.append('Strong volume spike')
    elif volume.spike:
        points += 10
        factors.append('Volume above average')
    elif volume.ratio >= 1.0:
        points += 5
        factors.append('Normal volume')

    cvd = indicators.cvd
    if cvd.divergence:
        points += 10
        factors.append(f"{cvd.divergence.capitalize()} CVD divergence")
    elif cvd.strength > 0.5:
        points += 5
        factors.append('Strong CVD momentum')

    vwap = indicators.vwap
    if vwap.position in ('above', 'below'):
        if abs(vwap.distance_pct) < 1:
            points += 10
            factors.append('Price close to VWAP')
        else:
            points += 5
            factors.append('Price away from VWAP')

    if indicators.rsi_divergence.divergence:
        points += 5
        factors.append(f"{indicators.rsi_divergence.divergence.capitalize()} RSI divergence")

    return points, factors


def grade_signal(
    confluence: ConfluenceSignal,
    indicators: IndicatorSet,
    filters: SafetyFilters,
    fakeout: FakeoutResult,
    ladder: QualityLadder = STANDARD_LADDER,
    penalties: QualityPenalties = DEFAULT_PENALTIES,
) -> SignalQuality:
    """
    Grade a confluence signal.

    Args:
        confluence: Scored confluence signal
        indicators: Indicator readings behind the signal
        filters: Safety filter results
        fakeout: Fakeout reading (first reason is reported in the factors)
        ladder: Grade ladder (STANDARD_LADDER or SCALPING_LADDER)
        penalties: Points removed per failed safety check

    Returns:
        SignalQuality with score clamped to [0, 100]
    """
    points, factors = quality_points(confluence, indicators)

    if not filters.liquidity_ok:
        points -= penalties.liquidity
        factors.append('⚠️ Insufficient liquidity')
    if not filters.momentum_aligned:
        points -= penalties.momentum
        factors.append('⚠️ Momentum not aligned')
    if fakeout.is_fakeout:
        points -= penalties.fakeout
        reason = fakeout.reasons[0] if fakeout.reasons else 'inconsistent signal'
        factors.append(f"⚠️ Fakeout suspected: {reason}")
    if indicators.atr.volatility == 'extreme':
        points -= penalties.extreme_volatility
        factors.append('⚠️ Extreme volatility')

    score = max(0.0, min(100.0, points))
    rung = ladder.rung_for(score)
    count = confluence.confluence_count
    tradeable = (
        rung.tradeable
        and count >= rung.min_confluence
        and filters.passed >= rung.min_filters_passed
    )

    logger.debug(
        "Signal quality %.0f -> grade %s (%s ladder), tradeable=%s, filters %d/%d",
        score, rung.grade, ladder.name, tradeable, filters.passed, filters.total,
    )

    return SignalQuality(
        score=score,
        grade=rung.grade,
        tradeable=tradeable,
        minimum_met=score >= MINIMUM_QUALITY and count >= MINIMUM_CONFLUENCE,
        factors=tuple(factors),
        filters_passed=filters.passed,
        filters_total=filters.total,
    )
