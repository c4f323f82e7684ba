"""
Confluence Scorer Module

Implements the weighted multi-indicator confluence score.

Each indicator reading adds signed points (positive is bullish) from the
ConfluenceWeights table and a fractional vote to the bullish or bearish
agreement count:
- Full signals (crossovers, divergences, extremes) vote 1
- Soft leans (RSI side of 50, trend labels) vote 0.5 or 0.3
- Volume weakness adjusts points without voting
- Ichimoku and the Keltner squeeze add bonus points outside the base table

The summed score is clamped to [-100, 100] and mapped onto five direction
bands.
"""

import logging
import math
from typing import List

from signal_engine.shared.config.defaults import (
    ConfluenceWeights,
    DEFAULT_SCORE_BANDS,
    DEFAULT_WEIGHTS,
    ScoreBands,
)
from signal_engine.shared.models.indicators import IndicatorSet
from signal_engine.shared.models.scoring import ConfluenceSignal, Contribution, SignalDirection

logger = logging.getLogger(__name__)


class _Tally:
    """Accumulates weighted points, votes and contributions."""

    def __init__(self):
        self.score = 0.0
        self.bullish = 0.0
        self.bearish = 0.0
        self.contributions: List[Contribution] = []

    def add(self, indicator: str, points: float, vote: float, reason: str) -> None:
        self.score += points
        if points > 0:
            self.bullish += vote
            direction = 'bullish'
        elif points < 0:
            self.bearish += vote
            direction = 'bearish'
        else:
            direction = 'neutral'
        self.contributions.append(Contribution(indicator, direction, reason, points))


def _score_momentum(ind: IndicatorSet, w: ConfluenceWeights, tally: _Tally) -> None:
    rsi = ind.rsi
    if rsi.signal == 'oversold':
        tally.add('RSI', w.rsi, 1, f"RSI oversold ({rsi.value})")
    elif rsi.signal == 'overbought':
        tally.add('RSI', -w.rsi, 1, f"RSI overbought ({rsi.value})")
    # RSI exactly 50 (including the flat-series fallback) leans neither way
    elif rsi.value > 50:
        tally.add('RSI', w.rsi * 0.3, 0.5, f"RSI above 50 ({rsi.value})")
    elif rsi.value < 50:
        tally.add('RSI', -w.rsi * 0.3, 0.5, f"RSI below 50 ({rsi.value})")

    divergence = ind.rsi_divergence.divergence
    if divergence == 'bullish':
        tally.add('RSI_DIV', w.rsi_divergence_bonus, 1, 'Bullish RSI divergence')
    elif divergence == 'bearish':
        tally.add('RSI_DIV', -w.rsi_divergence_bonus, 1, 'Bearish RSI divergence')

    stoch = ind.stoch_rsi
    if stoch.signal == 'strong_buy':
        tally.add('StochRSI', w.stoch_rsi, 1, f"StochRSI bullish cross in oversold (K={stoch.k})")
    elif stoch.signal == 'strong_sell':
        tally.add('StochRSI', -w.stoch_rsi, 1, f"StochRSI bearish cross in overbought (K={stoch.k})")
    elif stoch.crossover == 'bullish':
        tally.add('StochRSI', w.stoch_rsi * 0.6, 0.5, 'StochRSI bullish cross')
    elif stoch.crossover == 'bearish':
        tally.add('StochRSI', -w.stoch_rsi * 0.6, 0.5, 'StochRSI bearish cross')

    macd = ind.macd
    if macd.crossover == 'bullish':
        tally.add('MACD', w.macd, 1, 'MACD bullish cross')
    elif macd.crossover == 'bearish':
        tally.add('MACD', -w.macd, 1, 'MACD bearish cross')
    if macd.trend == 'strong_bullish':
        tally.add('MACD', w.macd * 0.4, 0.3, 'MACD strongly bullish')
    elif macd.trend == 'strong_bearish':
        tally.add('MACD', -w.macd * 0.4, 0.3, 'MACD strongly bearish')


def _score_trend(ind: IndicatorSet, w: ConfluenceWeights, tally: _Tally) -> None:
    ema = ind.ema_trend
    if ema.position == 'above':
        factor = 1.0 if ema.slope == 'rising' else 0.6
        tally.add('EMA_TREND', w.ema_trend * factor, 1, f"Price above trend EMA ({ema.distance_pct}%)")
    elif ema.position == 'below':
        factor = 1.0 if ema.slope == 'falling' else 0.6
        tally.add('EMA_TREND', -w.ema_trend * factor, 1, f"Price below trend EMA ({ema.distance_pct}%)")

    cross = ind.ema_cross
    if cross.crossover == 'bullish':
        tally.add('EMA_CROSS', w.ema_cross, 1, 'Fast EMA crossed above slow EMA')
    elif cross.crossover == 'bearish':
        tally.add('EMA_CROSS', -w.ema_cross, 1, 'Fast EMA crossed below slow EMA')
    elif cross.trend == 'strong_bullish':
        tally.add('EMA_CROSS', w.ema_cross * 0.7, 0.5, 'Fast EMA pair strongly bullish')
    elif cross.trend == 'strong_bearish':
        tally.add('EMA_CROSS', -w.ema_cross * 0.7, 0.5, 'Fast EMA pair strongly bearish')

    ichimoku = ind.ichimoku
    if ichimoku.direction != 'neutral':
        points = w.ichimoku_bonus * ichimoku.score / 7
        tally.add(
            'Ichimoku', points, 0.5,
            f"Ichimoku {ichimoku.direction} ({ichimoku.score:+d}/7, price {ichimoku.price_position} cloud)",
        )
    if ichimoku.kumo_twist is not None:
        tally.add('Ichimoku', 0.0, 0, f"Kumo twist {ichimoku.kumo_twist} (projected cloud changed colour)")


def _score_flow(ind: IndicatorSet, w: ConfluenceWeights, tally: _Tally) -> None:
    vwap = ind.vwap
    if vwap.signal == 'bullish_vwap' or vwap.position == 'above':
        points = w.vwap if vwap.slope == 'rising' else w.vwap * 0.7
        tally.add('VWAP', points, 1, f"Price above VWAP ({vwap.distance_pct}%)")
    elif vwap.signal == 'bearish_vwap' or vwap.position == 'below':
        points = w.vwap if vwap.slope == 'falling' else w.vwap * 0.7
        tally.add('VWAP', -points, 1, f"Price below VWAP ({vwap.distance_pct}%)")
    if vwap.signal == 'oversold_vwap':
        tally.add('VWAP', w.vwap * 0.8, 1, 'Price stretched far below VWAP (mean reversion)')
    elif vwap.signal == 'overbought_vwap':
        tally.add('VWAP', -w.vwap * 0.8, 1, 'Price stretched far above VWAP (mean reversion)')

    cvd = ind.cvd
    if cvd.trend == 'bullish':
        tally.add('CVD', w.cvd * 0.6, 0.5, 'CVD rising')
    elif cvd.trend == 'bearish':
        tally.add('CVD', -w.cvd * 0.6, 0.5, 'CVD falling')
    if cvd.divergence == 'bullish':
        tally.add('CVD', w.cvd, 1, 'Bullish CVD divergence (accumulation)')
    elif cvd.divergence == 'bearish':
        tally.add('CVD', -w.cvd, 1, 'Bearish CVD divergence (distribution)')

    obv = ind.obv
    if obv.divergence == 'bullish':
        tally.add('OBV', w.obv, 1, 'Bullish OBV divergence')
    elif obv.divergence == 'bearish':
        tally.add('OBV', -w.obv, 1, 'Bearish OBV divergence')
    elif obv.trend == 'bullish':
        tally.add('OBV', w.obv * 0.4, 0.3, 'OBV rising')
    elif obv.trend == 'bearish':
        tally.add('OBV', -w.obv * 0.4, 0.3, 'OBV falling')

    volume = ind.volume
    if volume.spike and volume.price_volume_signal == 'bullish_confirmation':
        tally.add('Volume', w.volume, 1, f"Bullish volume spike ({volume.ratio}x)")
    elif volume.spike and volume.price_volume_signal == 'bearish_confirmation':
        tally.add('Volume', -w.volume, 1, f"Bearish volume spike ({volume.ratio}x)")
    elif volume.price_volume_signal == 'weak_rally':
        tally.add('Volume', -w.volume * 0.5, 0, 'Weak rally on low volume')
    elif volume.price_volume_signal == 'weak_decline':
        tally.add('Volume', w.volume * 0.5, 0, 'Weak decline on low volume')

    bollinger = ind.bollinger
    if bollinger.signal == 'oversold':
        tally.add('Bollinger', w.bollinger_extreme_bonus, 0.5, 'Price below lower Bollinger band')
    elif bollinger.signal == 'overbought':
        tally.add('Bollinger', -w.bollinger_extreme_bonus, 0.5, 'Price above upper Bollinger band')
    if bollinger.squeeze:
        tally.add('Bollinger', 0.0, 0, 'Bollinger squeeze (breakout pending)')

    squeeze = ind.squeeze
    if squeeze.signal == 'bullish':
        tally.add('Squeeze', w.squeeze_breakout_bonus, 1, f"Bullish squeeze breakout (momentum {squeeze.momentum_pct}%)")
    elif squeeze.signal == 'bearish':
        tally.add('Squeeze', -w.squeeze_breakout_bonus, 1, f"Bearish squeeze breakout (momentum {squeeze.momentum_pct}%)")
    elif squeeze.signal is not None:
        side = squeeze.signal.split('_')[0]
        tally.add('Squeeze', 0.0, 0, f"Keltner squeeze for {squeeze.squeeze_count} candles, {side} breakout pending")


def classify_direction(score: float, bands: ScoreBands = DEFAULT_SCORE_BANDS) -> SignalDirection:
    """Map a clamped score onto the five direction bands."""
    if score >= bands.strong:
        return SignalDirection.STRONG_BUY
    if score >= bands.normal:
        return SignalDirection.BUY
    if score <= -bands.strong:
        return SignalDirection.STRONG_SELL
    if score <= -bands.normal:
        return SignalDirection.SELL
    return SignalDirection.NEUTRAL


def score_confluence(
    indicators: IndicatorSet,
    weights: ConfluenceWeights = DEFAULT_WEIGHTS,
    bands: ScoreBands = DEFAULT_SCORE_BANDS,
) -> ConfluenceSignal:
    """
    Combine an indicator set into one weighted confluence signal.

    Args:
        indicators: Readings produced by the indicator service
        weights: Per-indicator weight table
        bands: Direction and confluence-label thresholds

    Returns:
        ConfluenceSignal with clamped score, direction, strength and the
        list of applied contributions
    """
    tally = _Tally()
    _score_momentum(indicators, weights, tally)
    _score_trend(indicators, weights, tally)
    _score_flow(indicators, weights, tally)

    score = max(-100.0, min(100.0, tally.score))
    confluence = math.floor(max(tally.bullish, tally.bearish))
    direction = classify_direction(score, bands)

    if direction in (SignalDirection.STRONG_BUY, SignalDirection.STRONG_SELL):
        strength = 'strong'
    elif direction is SignalDirection.NEUTRAL:
        strength = 'weak'
    else:
        strength = 'strong' if confluence >= bands.strong_confluence else 'medium'

    if confluence >= bands.excellent_confluence:
        label = 'excellent'
    elif confluence >= bands.high_confluence:
        label = 'high'
    elif confluence >= bands.medium_confluence:
        label = 'medium'
    else:
        label = 'low'

    logger.debug(
        "Confluence score %.1f (raw %.1f) -> %s, confluence %d (%s)",
        score, tally.score, direction.value, confluence, label,
    )

    return ConfluenceSignal(
        score=score,
        weighted_score=tally.score,
        direction=direction,
        strength=strength,
        confluence_count=confluence,
        total_indicators=math.floor(tally.bullish + tally.bearish),
        bullish_count=tally.bullish,
        bearish_count=tally.bearish,
        confluence_label=label,
        contributions=tuple(tally.contributions),
    )
