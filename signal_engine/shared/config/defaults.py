"""
Default scoring configuration for the signal engine.

Holds the confluence weight table, the quality point schedule, safety
penalties and the grade ladders. Everything is a frozen dataclass so a
single default instance can be shared by concurrent analyses.
"""
from dataclasses import asdict, dataclass
from typing import Any, Dict, Literal, Optional, Tuple


CONFLUENCE_MIN_CANDLES = 30
STRUCTURE_MIN_CANDLES = 100


@dataclass(frozen=True)
class ConfluenceWeights:
    """Per-indicator weights; the base table sums to 100."""
    rsi: float = 8.0
    stoch_rsi: float = 10.0
    macd: float = 12.0
    ema_trend: float = 10.0
    ema_cross: float = 12.0
    vwap: float = 15.0
    cvd: float = 15.0
    obv: float = 8.0
    volume: float = 10.0

    # Bonus inputs outside the base table
    rsi_divergence_bonus: float = 15.0
    bollinger_extreme_bonus: float = 8.0
    ichimoku_bonus: float = 8.0  # Scaled by |cloud score| / 7
    squeeze_breakout_bonus: float = 6.0

    @property
    def total(self) -> float:
        return (
            self.rsi + self.stoch_rsi + self.macd + self.ema_trend + self.ema_cross
            + self.vwap + self.cvd + self.obv + self.volume
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ScoreBands:
    """Score cut-offs for the five direction bands and confluence labels."""
    strong: float = 50.0
    normal: float = 25.0
    strong_confluence: int = 4
    excellent_confluence: int = 5
    high_confluence: int = 4
    medium_confluence: int = 3


@dataclass(frozen=True)
class QualityPenalties:
    liquidity: float = 15.0
    momentum: float = 10.0
    fakeout: float = 20.0
    extreme_volatility: float = 10.0


@dataclass(frozen=True)
class GradeRung:
    """
    One step of a grade ladder.

    Attributes:
        min_score: Inclusive quality floor for the rung
        grade: Letter assigned on this rung
        tradeable: False for rungs that never allow a trade
        min_confluence: Confluence count required to be tradeable
        min_filters_passed: Safety filters required to be tradeable
    """
    min_score: float
    grade: Literal['A', 'B', 'C', 'D']
    tradeable: bool = True
    min_confluence: int = 0
    min_filters_passed: int = 0


@dataclass(frozen=True)
class QualityLadder:
    """Ordered grade rungs, highest first. The last rung catches everything."""
    name: str
    rungs: Tuple[GradeRung, ...]

    def rung_for(self, score: float) -> GradeRung:
        for rung in self.rungs:
            if score >= rung.min_score:
                return rung
        return self.rungs[-1]


STANDARD_LADDER = QualityLadder(
    name="standard",
    rungs=(
        GradeRung(min_score=80, grade='A'),
        GradeRung(min_score=65, grade='B'),
        GradeRung(min_score=50, grade='C', min_confluence=3, min_filters_passed=3),
        GradeRung(min_score=0, grade='D', tradeable=False),
    ),
)

SCALPING_LADDER = QualityLadder(
    name="scalping",
    rungs=(
        GradeRung(min_score=70, grade='A'),
        GradeRung(min_score=55, grade='B'),
        GradeRung(min_score=40, grade='C', min_confluence=2),
        GradeRung(min_score=30, grade='D', min_confluence=3),
        GradeRung(min_score=0, grade='D', tradeable=False),
    ),
)

LADDERS: Dict[str, QualityLadder] = {
    STANDARD_LADDER.name: STANDARD_LADDER,
    SCALPING_LADDER.name: SCALPING_LADDER,
}


def get_ladder(name: Optional[str]) -> QualityLadder:
    """Resolve a ladder by name, defaulting to the standard ladder."""
    return LADDERS.get((name or "").lower(), STANDARD_LADDER)


# Default instances
DEFAULT_WEIGHTS = ConfluenceWeights()
DEFAULT_SCORE_BANDS = ScoreBands()
DEFAULT_PENALTIES = QualityPenalties()
