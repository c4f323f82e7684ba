"""
Structure Analyzer

Runs every SMC detector over one candle series and synthesises a
directional structural signal with suggested stop and target levels.

Pipeline:
1. Swings and market structure
2. Order blocks, fair value gaps
3. BOS / CHoCH (swings come back with break status)
4. Liquidity sweeps
5. Premium / discount zone and session context
6. Signal synthesis
"""

import math
from typing import List, Optional

from loguru import logger

from signal_engine.shared.config.smc_config import SMCConfig, resolve_smc_config
from signal_engine.shared.models.data import CandleInput, ensure_frame, frame_timestamps
from signal_engine.shared.models.smc import (
    FairValueGap,
    LiquiditySweep,
    MarketStructure,
    OrderBlock,
    PremiumDiscount,
    SessionContext,
    StructureAnalysis,
    StructureBreak,
    StructureSignal,
)
from signal_engine.strategy.smc.bos_choch import detect_structural_breaks
from signal_engine.strategy.smc.fvg import detect_fair_value_gaps
from signal_engine.strategy.smc.liquidity_sweeps import detect_liquidity_sweeps
from signal_engine.strategy.smc.order_blocks import detect_order_blocks
from signal_engine.strategy.smc.premium_discount import calculate_premium_discount
from signal_engine.strategy.smc.sessions import get_session_context
from signal_engine.strategy.smc.swing_structure import analyze_market_structure, detect_swings


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def generate_structure_signal(
    price: float,
    structure: MarketStructure,
    order_blocks: List[OrderBlock],
    fair_value_gaps: List[FairValueGap],
    structure_breaks: List[StructureBreak],
    liquidity_sweeps: List[LiquiditySweep],
    premium_discount: Optional[PremiumDiscount],
    session: SessionContext,
    config: SMCConfig | dict | None = None,
) -> StructureSignal:
    """
    Score the structural features and derive a trade direction.

    Scoring (positive is bullish):
        - Structure trend with strength > 0.5: +/-2
        - Most recent break aged <= recent_break_age: +/-2
        - First order block price is trading inside: +/-2
        - Nearest FVG midpoint within fvg_proximity_pct: +/-1
        - Most recent sweep aged <= recent_sweep_age: +/-2
        - Discount zone with a bullish score, premium with a bearish one: +/-1
        - London/New York overlap pushes the score one point further from zero;
          outside both sessions the score is scaled by off_session_factor

    Long at score >= signal_threshold, short at <= -signal_threshold.

    Returns:
        StructureSignal; stop/target levels only when a direction exists and
        the opposing swing is known
    """
    cfg = resolve_smc_config(config)
    score = 0
    reasons = []
    confluences = []

    def add(points: int, reason: str, tag: str) -> None:
        nonlocal score
        score += points
        reasons.append(reason)
        confluences.append(tag)

    if structure.strength > 0.5:
        if structure.trend == 'bullish':
            add(2, 'Bullish market structure (HH + HL)', 'structure')
        elif structure.trend == 'bearish':
            add(-2, 'Bearish market structure (LH + LL)', 'structure')

    recent_break = next((b for b in structure_breaks if b.age <= cfg.recent_break_age), None)
    if recent_break is not None:
        sign = 1 if recent_break.direction == 'bullish' else -1
        add(2 * sign, f"Recent {recent_break.direction} {recent_break.type.upper()}", 'structure_break')

    active_ob = next((ob for ob in order_blocks if ob.tested), None)
    if active_ob is not None:
        sign = 1 if active_ob.type == 'bullish' else -1
        add(2 * sign, f"Price inside {active_ob.type} order block", 'order_block')

    if fair_value_gaps and price:
        nearest = fair_value_gaps[0]
        if abs(price - nearest.midpoint) / price * 100 < cfg.fvg_proximity_pct:
            sign = 1 if nearest.type == 'bullish' else -1
            add(sign, f"Price near {nearest.type} FVG", 'fvg')

    recent_sweep = next((s for s in liquidity_sweeps if s.age <= cfg.recent_sweep_age), None)
    if recent_sweep is not None:
        sign = 1 if recent_sweep.type == 'bullish' else -1
        add(2 * sign, f"Recent {recent_sweep.type} liquidity sweep", 'liquidity_sweep')

    if premium_discount is not None:
        if premium_discount.current_zone == 'discount' and score > 0:
            add(1, 'Price in discount zone', 'discount_zone')
        elif premium_discount.current_zone == 'premium' and score < 0:
            add(-1, 'Price in premium zone', 'premium_zone')

    if session.hour is not None:
        if session.is_high_volume:
            if score > 0:
                score += 1
            elif score < 0:
                score -= 1
            reasons.append('London / New York overlap (high volume)')
        elif not session.is_trading_session:
            score = _round_half_up(score * cfg.off_session_factor)
            reasons.append('Outside London / New York sessions (low volume)')

    direction = None
    if score >= cfg.signal_threshold:
        direction = 'long'
    elif score <= -cfg.signal_threshold:
        direction = 'short'
    confidence = min(abs(score) / 10, 1.0) if direction else 0.0

    stop_loss = take_profit = sl_pct = tp_pct = rrr = None
    swing_high, swing_low = structure.last_swing_high, structure.last_swing_low

    if direction == 'long' and swing_low is not None:
        stop_loss = swing_low.price * (1 - cfg.stop_buffer)
        if swing_high is not None and swing_high.price > price:
            take_profit = swing_high.price
        else:
            take_profit = price + (price - stop_loss) * cfg.fallback_reward_risk
        sl_pct = (price - stop_loss) / price * 100
        tp_pct = (take_profit - price) / price * 100
    elif direction == 'short' and swing_high is not None:
        stop_loss = swing_high.price * (1 + cfg.stop_buffer)
        if swing_low is not None and swing_low.price < price:
            take_profit = swing_low.price
        else:
            take_profit = price - (stop_loss - price) * cfg.fallback_reward_risk
        sl_pct = (stop_loss - price) / price * 100
        tp_pct = (price - take_profit) / price * 100

    if sl_pct and tp_pct:
        rrr = tp_pct / sl_pct

    return StructureSignal(
        direction=direction,
        score=score,
        confidence=confidence,
        reasons=tuple(reasons),
        confluences=tuple(confluences),
        stop_loss=stop_loss,
        take_profit=take_profit,
        sl_pct=sl_pct,
        tp_pct=tp_pct,
        rrr=rrr,
    )


def analyze_structure(
    data: CandleInput,
    config: SMCConfig | dict | None = None,
) -> Optional[StructureAnalysis]:
    """
    Full structural analysis of a candle series.

    Args:
        data: Candle sequence or OHLCV DataFrame, oldest first
        config: SMCConfig, partial override dict, or None for defaults

    Returns:
        StructureAnalysis, or None when fewer than ``min_candles`` candles
        are supplied
    """
    cfg = resolve_smc_config(config)
    df = ensure_frame(data)
    if len(df) < cfg.min_candles:
        logger.debug(f"Structure analysis skipped: need {cfg.min_candles} candles, got {len(df)}")
        return None

    price = float(df['close'].iloc[-1])

    swings = detect_swings(df, cfg)
    structure = analyze_market_structure(swings)
    order_blocks = detect_order_blocks(df, swings, cfg)
    fair_value_gaps = detect_fair_value_gaps(df, cfg)
    structure_breaks, swings = detect_structural_breaks(df, swings, cfg)
    liquidity_sweeps = detect_liquidity_sweeps(df, swings, cfg)
    premium_discount = calculate_premium_discount(price, swings, cfg)
    session = get_session_context(frame_timestamps(df)[-1], cfg)

    signal = generate_structure_signal(
        price,
        structure,
        order_blocks,
        fair_value_gaps,
        structure_breaks,
        liquidity_sweeps,
        premium_discount,
        session,
        cfg,
    )

    logger.debug(
        f"Structure: trend={structure.trend} ({structure.strength:.2f}), "
        f"OBs={len(order_blocks)}, FVGs={len(fair_value_gaps)}, breaks={len(structure_breaks)}, "
        f"sweeps={len(liquidity_sweeps)}, signal={signal.direction or 'none'} ({signal.score:+d})"
    )

    return StructureAnalysis(
        price=price,
        swings=swings,
        structure=structure,
        order_blocks=order_blocks,
        fair_value_gaps=fair_value_gaps,
        structure_breaks=structure_breaks,
        liquidity_sweeps=liquidity_sweeps,
        premium_discount=premium_discount,
        session=session,
        signal=signal,
    )
