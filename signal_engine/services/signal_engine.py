"""
Signal Engine - single entry point for analysing one candle series.

Pipeline:
1. Validate the frame and resolve the timeframe profile
2. Indicator set (confluence path, >= 30 candles)
3. Confluence score, safety filters and quality grade
4. Structure analysis and trade evaluation (>= 100 candles)

SignalEngine is an immutable value: weights, bands, ladder and structure
settings are fixed at construction and the profile is resolved per call,
so one engine can be shared across threads and tasks.
"""

import time
from dataclasses import dataclass, field
from typing import Literal

from signal_engine.indicators.validation_utils import validate_ohlcv
from signal_engine.services.indicator_service import IndicatorService
from signal_engine.services.smc_service import StructureService
from signal_engine.shared.config.defaults import (
    CONFLUENCE_MIN_CANDLES,
    ConfluenceWeights,
    DEFAULT_PENALTIES,
    DEFAULT_SCORE_BANDS,
    DEFAULT_WEIGHTS,
    QualityLadder,
    QualityPenalties,
    ScoreBands,
    STANDARD_LADDER,
)
from signal_engine.shared.config.smc_config import SMCConfig, StructureTradeConfig
from signal_engine.shared.config.timeframe_profiles import get_timeframe_profile, get_timeframe_tpsl
from signal_engine.shared.models.data import CandleInput, ensure_frame
from signal_engine.shared.models.scoring import ExternalSignalConfirmation, SignalReport
from signal_engine.shared.utils.logging_utils import log_analysis_stage, log_timing
from signal_engine.strategy.confluence.quality import evaluate_safety_filters, grade_signal
from signal_engine.strategy.confluence.scorer import score_confluence


@dataclass(frozen=True)
class SignalEngine:
    """
    Combines indicator confluence and market structure into a SignalReport.

    Usage:
        engine = SignalEngine(ladder=SCALPING_LADDER)
        report = engine.analyze(candles, '5m')
    """
    weights: ConfluenceWeights = DEFAULT_WEIGHTS
    bands: ScoreBands = DEFAULT_SCORE_BANDS
    ladder: QualityLadder = STANDARD_LADDER
    penalties: QualityPenalties = DEFAULT_PENALTIES
    smc_config: SMCConfig = field(default_factory=SMCConfig.defaults)
    trade_config: StructureTradeConfig = field(default_factory=StructureTradeConfig)

    def analyze(self, candles: CandleInput, timeframe: str = '1h') -> SignalReport:
        """
        Analyse a candle series.

        Args:
            candles: Candle sequence or OHLCV DataFrame, oldest first
            timeframe: Timeframe label selecting the indicator profile
                (unknown labels use the 1h profile)

        Returns:
            SignalReport. Below 30 candles it is flagged insufficient_data
            with score 0, neutral direction and grade D.

        Raises:
            DataValidationError: If OHLCV columns are missing
        """
        started = time.perf_counter()
        df = ensure_frame(candles)
        validate_ohlcv(df, raise_on_error=True)

        profile = get_timeframe_profile(timeframe)
        count = len(df)
        price = float(df['close'].iloc[-1]) if count else 0.0
        base = dict(
            timeframe=timeframe,
            profile=profile.name,
            candle_count=count,
            price=price,
            ichimoku=profile.ichimoku,
            tpsl=get_timeframe_tpsl(timeframe),
        )

        if count < CONFLUENCE_MIN_CANDLES:
            log_analysis_stage(
                "CONFLUENCE", timeframe, "SKIPPED",
                {'reason': f"need {CONFLUENCE_MIN_CANDLES} candles, got {count}"},
            )
            return SignalReport(insufficient_data=True, **base)

        log_analysis_stage("INDICATORS", timeframe, "START")
        indicators = IndicatorService().compute(df, profile)

        confluence = score_confluence(indicators, self.weights, self.bands)
        filters, fakeout = evaluate_safety_filters(df, indicators, confluence)
        quality = grade_signal(confluence, indicators, filters, fakeout, self.ladder, self.penalties)
        log_analysis_stage("CONFLUENCE", timeframe, "COMPLETE", {
            'score': round(confluence.score, 1),
            'direction': confluence.direction.value,
            'grade': quality.grade,
        })

        structure, evaluation = StructureService(self.smc_config, self.trade_config).analyze(df, indicators)
        if structure is None:
            log_analysis_stage(
                "STRUCTURE", timeframe, "SKIPPED",
                {'reason': f"need {self.smc_config.min_candles} candles, got {count}"},
            )

        log_timing("Signal analysis", (time.perf_counter() - started) * 1000, timeframe)

        return SignalReport(
            confluence=confluence,
            quality=quality,
            filters=filters,
            fakeout=fakeout,
            indicators=indicators,
            structure=structure,
            structure_evaluation=evaluation,
            **base,
        )


def analyze_signal(candles: CandleInput, timeframe: str = '1h') -> SignalReport:
    """Analyse ``candles`` with the default engine settings."""
    return SignalEngine().analyze(candles, timeframe)


def confirm_external_signal(
    direction: Literal['long', 'short'],
    report: SignalReport,
) -> ExternalSignalConfirmation:
    """
    Rate an externally generated long/short signal against a report.

    Each agreeing reading adds confirmations (divergences and VWAP mean
    reversion count double); contradicting extremes add rejections.

    Returns:
        ExternalSignalConfirmation, confirmed when confirmations minus
        rejections reaches 3
    """
    ind = report.indicators
    if ind is None or direction not in ('long', 'short'):
        return ExternalSignalConfirmation(confirmed=False, confirmations=0, rejections=0, confidence='low')

    long = direction == 'long'
    side = 'bullish' if long else 'bearish'
    opposite = 'bearish' if long else 'bullish'
    confirmations = 0
    rejections = 0
    reasons = []

    def confirm(points: int, reason: str) -> None:
        nonlocal confirmations
        confirmations += points
        reasons.append(f"✓ {reason}")

    def reject(points: int, reason: str) -> None:
        nonlocal rejections
        rejections += points
        reasons.append(f"⚠️ {reason}")

    rsi = ind.rsi.value
    if long:
        if rsi < 70:
            confirm(1, 'RSI < 70')
        if rsi < 30:
            confirm(1, 'RSI oversold')
    else:
        if rsi > 30:
            confirm(1, 'RSI > 30')
        if rsi > 70:
            confirm(1, 'RSI overbought')

    strong = 'strong_buy' if long else 'strong_sell'
    if ind.stoch_rsi.signal == strong or ind.stoch_rsi.crossover == side:
        confirm(1, f"StochRSI {side}")
    if ind.macd.crossover == side or side in ind.macd.trend:
        confirm(1, f"MACD {side}")
    if ind.ema_trend.position == ('above' if long else 'below'):
        confirm(1, f"Price {'above' if long else 'below'} trend EMA")
    if ind.ema_cross.crossover == side or side in ind.ema_cross.trend:
        confirm(1, f"Fast EMA pair {side}")
    if ind.vwap.position == ('above' if long else 'below') or ind.vwap.signal == f"{side}_vwap":
        confirm(1, f"Price {'above' if long else 'below'} VWAP")
    if ind.vwap.signal == ('oversold_vwap' if long else 'overbought_vwap'):
        confirm(2, f"VWAP mean reversion {side}")
    if ind.cvd.trend == side:
        confirm(1, f"CVD {side}")
    if ind.cvd.divergence == side:
        confirm(2, f"{side.capitalize()} CVD divergence")
    if ind.obv.trend == side or ind.obv.divergence == side:
        confirm(1, f"OBV {side}")
    if ind.volume.spike:
        if ind.volume.price_volume_signal == f"{side}_confirmation":
            confirm(1, f"{side.capitalize()} volume spike")
        else:
            confirm(1, 'High volume')
    if ind.rsi_divergence.divergence == side:
        confirm(2, f"{side.capitalize()} RSI divergence")

    if long and rsi > 80:
        reject(2, 'RSI > 80 (overbought)')
    if not long and rsi < 20:
        reject(2, 'RSI < 20 (oversold)')
    if ind.ema_trend.position == ('below' if long else 'above') and ind.ema_trend.slope == ('falling' if long else 'rising'):
        reject(1, f"{opposite.capitalize()} trend EMA")
    if ind.ema_cross.trend == f"strong_{opposite}":
        reject(1, f"Fast EMA pair strongly {opposite}")
    if ind.vwap.signal == ('overbought_vwap' if long else 'oversold_vwap'):
        reject(1, f"Price stretched far {'above' if long else 'below'} VWAP")
    if ind.cvd.divergence == opposite:
        reject(2, f"{opposite.capitalize()} CVD divergence")
    if ind.obv.divergence == opposite:
        reject(2, f"{opposite.capitalize()} OBV divergence")
    if ind.rsi_divergence.divergence == opposite:
        reject(2, f"{opposite.capitalize()} RSI divergence")

    if confirmations >= 7:
        confidence = 'high'
    elif confirmations >= 5:
        confidence = 'medium'
    else:
        confidence = 'low'

    return ExternalSignalConfirmation(
        confirmed=confirmations - rejections >= 3,
        confirmations=confirmations,
        rejections=rejections,
        confidence=confidence,
        reasons=tuple(reasons),
    )
