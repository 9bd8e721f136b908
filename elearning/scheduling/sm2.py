"""SM-2 review scheduling.

The scheduler is a pure function of the prior scheduling state, the quality
rating and the review time. It never touches storage, which keeps it usable
from the review recorder, from migrations that replay history, and from tests.

Quality ratings follow the SuperMemo scale:

    0 - complete blackout
    1 - incorrect, but the answer was recognised
    2 - incorrect, but the answer seemed easy once shown
    3 - correct with serious difficulty
    4 - correct after hesitation
    5 - perfect recall
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from elearning.errors import ValidationError

MIN_QUALITY = 0
MAX_QUALITY = 5
PASSING_QUALITY = 3

INITIAL_EASE = 2.5
MINIMUM_EASE = 1.3
FIRST_INTERVAL = 1
SECOND_INTERVAL = 6


@dataclass(frozen=True)
class SchedulerConfig:
    initial_ease: float = INITIAL_EASE
    minimum_ease: float = MINIMUM_EASE
    first_interval: int = FIRST_INTERVAL
    second_interval: int = SECOND_INTERVAL


DEFAULT_CONFIG = SchedulerConfig()


def phase_for(repetition_count: int) -> str:
    """Cards with no successful repetition in a row are still being learned."""
    return "learning" if repetition_count == 0 else "review"


@dataclass(frozen=True)
class ScheduleState:
    ease_factor: float = INITIAL_EASE
    interval_days: int = 0
    repetition_count: int = 0

    @classmethod
    def initial(cls, config: SchedulerConfig = DEFAULT_CONFIG) -> "ScheduleState":
        return cls(ease_factor=config.initial_ease, interval_days=0, repetition_count=0)


@dataclass(frozen=True)
class ScheduleResult:
    ease_factor: float
    interval_days: int
    repetition_count: int
    due_at: datetime

    @property
    def phase(self) -> str:
        return phase_for(self.repetition_count)

    def as_state(self) -> ScheduleState:
        return ScheduleState(
            ease_factor=self.ease_factor,
            interval_days=self.interval_days,
            repetition_count=self.repetition_count,
        )


def validate_quality(quality: int) -> int:
    if isinstance(quality, bool) or not isinstance(quality, int):
        raise ValidationError("Quality rating must be an integer")
    if quality < MIN_QUALITY or quality > MAX_QUALITY:
        raise ValidationError(f"Quality rating must be between {MIN_QUALITY} and {MAX_QUALITY}")
    return quality


def adjust_ease(ease_factor: float, quality: int, minimum: float = MINIMUM_EASE) -> float:
    miss = MAX_QUALITY - quality
    return max(minimum, ease_factor + (0.1 - miss * (0.08 + miss * 0.02)))


def compute_next_schedule(
    state: ScheduleState,
    quality: int,
    now: datetime,
    config: SchedulerConfig = DEFAULT_CONFIG,
) -> ScheduleResult:
    """Return the schedule that follows reviewing a card in ``state`` with ``quality``."""
    validate_quality(quality)
    ease = adjust_ease(state.ease_factor, quality, config.minimum_ease)

    if quality < PASSING_QUALITY:
        repetitions = 0
        interval = config.first_interval
    else:
        repetitions = state.repetition_count + 1
        if repetitions == 1:
            interval = config.first_interval
        elif repetitions == 2:
            interval = config.second_interval
        else:
            # Strictly growing once past the seed intervals
            interval = max(round(state.interval_days * ease), state.interval_days + 1)

    return ScheduleResult(
        ease_factor=ease,
        interval_days=interval,
        repetition_count=repetitions,
        due_at=now + timedelta(days=interval),
    )
