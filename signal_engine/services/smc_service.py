"""
SMC Detection Service - structural analysis plus trade filtering.

Runs the structure analyzer over one candle series and evaluates the
resulting structural signal against the trade filters:
- Minimum |score| and confluence count
- RSI filter (no longs into overbought, no shorts into oversold)
- Optional MACD, volume and session filters

Tradeable signals get a recommendation: structural stop/target when the
analyzer produced them, ATR-based levels otherwise.
"""

import logging
from typing import Optional, Tuple

import pandas as pd

from signal_engine.indicators.volatility import compute_atr
from signal_engine.shared.config.smc_config import SMCConfig, StructureTradeConfig
from signal_engine.shared.models.indicators import IndicatorSet
from signal_engine.shared.models.scoring import StructureTradeEvaluation
from signal_engine.shared.models.smc import StructureAnalysis
from signal_engine.shared.utils.logging_utils import log_pattern_detection_summary, log_rejection
from signal_engine.strategy.smc.analyzer import analyze_structure

logger = logging.getLogger(__name__)


BASE_WIN_PROBABILITY = 0.5


def estimate_win_probability(analysis: StructureAnalysis, config: StructureTradeConfig) -> float:
    """
    Heuristic hit rate for the structural signal.

    0.5 + 0.03 per score point + 0.02 per confluence, +0.05 in the
    London/New York overlap, +0.05 when the zone agrees with the direction
    (discount for longs, premium for shorts); capped at max_win_probability.
    """
    signal = analysis.signal
    if signal.direction is None:
        return BASE_WIN_PROBABILITY

    probability = BASE_WIN_PROBABILITY + abs(signal.score) * 0.03 + signal.confluence_count * 0.02
    if analysis.session.is_high_volume:
        probability += 0.05

    zone = analysis.premium_discount.current_zone if analysis.premium_discount else None
    if (signal.direction == 'long' and zone == 'discount') or (signal.direction == 'short' and zone == 'premium'):
        probability += 0.05

    return min(probability, config.max_win_probability)


def _reject_reason(
    analysis: StructureAnalysis,
    indicators: Optional[IndicatorSet],
    config: StructureTradeConfig,
) -> Optional[str]:
    signal = analysis.signal
    if signal.direction is None:
        return 'no structural direction'
    if abs(signal.score) < config.min_score:
        return f"insufficient score ({abs(signal.score)}/{config.min_score})"
    if signal.confluence_count < config.min_confluence:
        return f"insufficient confluence ({signal.confluence_count}/{config.min_confluence})"

    if indicators is not None:
        rsi = indicators.rsi.value
        if config.use_rsi_filter and not indicators.rsi.insufficient_data:
            if signal.direction == 'long' and rsi > config.rsi_overbought:
                return f"RSI overbought ({rsi:.1f})"
            if signal.direction == 'short' and rsi < config.rsi_oversold:
                return f"RSI oversold ({rsi:.1f})"

        if config.use_macd_filter and not indicators.macd.insufficient_data:
            if signal.direction == 'long' and indicators.macd.histogram < config.macd_min_histogram:
                return 'MACD histogram strongly negative'

        if config.use_volume_filter and indicators.volume.ratio < config.min_volume_ratio:
            return f"insufficient volume ({indicators.volume.ratio * 100:.0f}%)"

    if config.use_session_filter and not analysis.session.is_trading_session:
        return 'outside London / New York sessions'

    return None


def evaluate_structure_trade(
    df: pd.DataFrame,
    analysis: StructureAnalysis,
    indicators: Optional[IndicatorSet] = None,
    config: StructureTradeConfig = StructureTradeConfig(),
) -> StructureTradeEvaluation:
    """
    Filter a structural signal and build its trade recommendation.

    Args:
        df: OHLCV DataFrame the analysis was computed on (used for ATR levels)
        analysis: Output of analyze_structure
        indicators: Indicator readings used by the RSI/MACD/volume filters
        config: Trade filter settings

    Returns:
        StructureTradeEvaluation; levels are only set for tradeable signals
    """
    signal = analysis.signal
    win_probability = estimate_win_probability(analysis, config)
    reason = _reject_reason(analysis, indicators, config)

    if reason is not None:
        if signal.direction is not None:
            log_rejection(
                "STRUCTURE_FILTERS",
                reason,
                {'score': signal.score, 'confluences': signal.confluence_count},
            )
        return StructureTradeEvaluation(
            tradeable=False,
            reject_reason=reason,
            win_probability=win_probability,
            direction=signal.direction,
        )

    price = analysis.price
    stop_loss, take_profit = signal.stop_loss, signal.take_profit
    sl_pct, tp_pct = signal.sl_pct, signal.tp_pct
    source = 'structure'

    if not stop_loss:
        atr = compute_atr(df, config.atr_period)
        if atr.insufficient_data:
            logger.debug("No structural levels and not enough data for ATR levels")
        else:
            sign = 1 if signal.direction == 'long' else -1
            stop_loss = price - sign * atr.atr * config.atr_stop_multiplier
            take_profit = price + sign * atr.atr * config.atr_target_multiplier
            sl_pct = abs(price - stop_loss) / price * 100
            tp_pct = abs(take_profit - price) / price * 100
            source = 'atr'

    rrr = tp_pct / sl_pct if tp_pct and sl_pct else 2.0

    logger.debug(
        "Structure trade %s: entry=%.4f SL=%s TP=%s RRR=%.2f win=%.2f (%s levels)",
        signal.direction, price, stop_loss, take_profit, rrr, win_probability, source,
    )

    return StructureTradeEvaluation(
        tradeable=True,
        win_probability=win_probability,
        direction=signal.direction,
        entry=price,
        stop_loss=stop_loss,
        take_profit=take_profit,
        rrr=rrr,
        level_source=source if stop_loss else None,
    )


class StructureService:
    """
    Service for structural (SMC) analysis of one candle series.

    Usage:
        service = StructureService(smc_config=SMCConfig())
        analysis, evaluation = service.analyze(df, indicators)
    """

    def __init__(
        self,
        smc_config: Optional[SMCConfig] = None,
        trade_config: Optional[StructureTradeConfig] = None,
    ):
        self._smc_config = smc_config or SMCConfig.defaults()
        self._trade_config = trade_config or StructureTradeConfig()

    def analyze(
        self,
        df: pd.DataFrame,
        indicators: Optional[IndicatorSet] = None,
    ) -> Tuple[Optional[StructureAnalysis], Optional[StructureTradeEvaluation]]:
        """
        Run structure analysis and trade evaluation.

        Returns:
            (analysis, evaluation), both None when the series is shorter than
            the structure minimum
        """
        analysis = analyze_structure(df, self._smc_config)
        if analysis is None:
            return None, None

        log_pattern_detection_summary({
            'swing_highs': len(analysis.swings.highs),
            'swing_lows': len(analysis.swings.lows),
            'order_blocks': len(analysis.order_blocks),
            'fair_value_gaps': len(analysis.fair_value_gaps),
            'structure_breaks': len(analysis.structure_breaks),
            'liquidity_sweeps': len(analysis.liquidity_sweeps),
        })

        evaluation = evaluate_structure_trade(df, analysis, indicators, self._trade_config)
        return analysis, evaluation
