from datetime import datetime, timedelta, timezone
from itertools import product

import pytest

from elearning.errors import ValidationError
from elearning.scheduling import ScheduleResult, ScheduleState, SchedulerConfig, compute_next_schedule, phase_for
from elearning.scheduling.sm2 import MINIMUM_EASE, adjust_ease

NOW = datetime(2024, 3, 15, 9, 0, tzinfo=timezone.utc)

PRIOR_STATES = [
    ScheduleState(),
    ScheduleState(ease_factor=2.5, interval_days=1, repetition_count=1),
    ScheduleState(ease_factor=2.1, interval_days=6, repetition_count=2),
    ScheduleState(ease_factor=1.3, interval_days=40, repetition_count=7),
    ScheduleState(ease_factor=2.9, interval_days=300, repetition_count=12),
]


def _replay(qualities, state=None):
    state = state or ScheduleState.initial()
    results = []
    for quality in qualities:
        result = compute_next_schedule(state, quality, NOW)
        results.append(result)
        state = result.as_state()
    return results


@pytest.mark.parametrize("quality", [0, 1, 2])
@pytest.mark.parametrize("state", PRIOR_STATES)
def test_failed_recall_resets_to_learning(state: ScheduleState, quality: int) -> None:
    result = compute_next_schedule(state, quality, NOW)
    assert result.repetition_count == 0
    assert result.interval_days == 1
    assert result.phase == "learning"
    assert result.ease_factor <= state.ease_factor
    assert result.due_at == NOW + timedelta(days=1)


@pytest.mark.parametrize("quality", [3, 4, 5])
@pytest.mark.parametrize("state", [s for s in PRIOR_STATES if s.repetition_count >= 2])
def test_successful_recall_grows_interval(state: ScheduleState, quality: int) -> None:
    result = compute_next_schedule(state, quality, NOW)
    assert result.repetition_count == state.repetition_count + 1
    assert result.interval_days > state.interval_days
    assert result.phase == "review"


def test_growth_is_strict_even_at_minimum_ease() -> None:
    state = ScheduleState(ease_factor=MINIMUM_EASE, interval_days=1, repetition_count=2)
    result = compute_next_schedule(state, 3, NOW)
    assert result.interval_days == 2


@pytest.mark.parametrize("qualities", list(product(range(6), repeat=4)))
def test_ease_never_drops_below_floor(qualities) -> None:
    for result in _replay(qualities):
        assert result.ease_factor >= MINIMUM_EASE


def test_seed_intervals_then_multiplicative_growth() -> None:
    first, second, third = _replay([4, 4, 5])

    assert (first.repetition_count, first.interval_days) == (1, 1)
    assert first.ease_factor == pytest.approx(2.5)
    assert (second.repetition_count, second.interval_days) == (2, 6)
    assert third.repetition_count == 3
    assert third.ease_factor == pytest.approx(2.6)
    assert third.interval_days == round(6 * third.ease_factor) == 16


def test_lapse_after_growth_resets() -> None:
    *_, lapse = _replay([4, 4, 5, 2])
    assert lapse.repetition_count == 0
    assert lapse.interval_days == 1
    assert lapse.ease_factor == pytest.approx(2.28)


def test_due_date_is_review_time_plus_interval() -> None:
    state = ScheduleState(ease_factor=2.5, interval_days=6, repetition_count=2)
    result = compute_next_schedule(state, 4, NOW)
    assert result.due_at == NOW + timedelta(days=result.interval_days)


def test_same_inputs_give_same_schedule() -> None:
    state = ScheduleState(ease_factor=2.2, interval_days=10, repetition_count=3)
    assert compute_next_schedule(state, 4, NOW) == compute_next_schedule(state, 4, NOW)


@pytest.mark.parametrize("quality", [-1, 6, 10])
def test_out_of_range_quality_is_rejected(quality: int) -> None:
    with pytest.raises(ValidationError):
        compute_next_schedule(ScheduleState(), quality, NOW)


def test_non_integer_quality_is_rejected() -> None:
    with pytest.raises(ValidationError):
        compute_next_schedule(ScheduleState(), 3.5, NOW)


def test_adjust_ease_matches_sm2_table() -> None:
    assert adjust_ease(2.5, 5) == pytest.approx(2.6)
    assert adjust_ease(2.5, 4) == pytest.approx(2.5)
    assert adjust_ease(2.5, 3) == pytest.approx(2.36)
    assert adjust_ease(2.5, 0) == pytest.approx(1.7)
    assert adjust_ease(1.4, 0) == MINIMUM_EASE


def test_custom_seed_intervals() -> None:
    config = SchedulerConfig(first_interval=2, second_interval=5)
    state = ScheduleState.initial(config)
    first = compute_next_schedule(state, 5, NOW, config)
    second = compute_next_schedule(first.as_state(), 5, NOW, config)
    assert (first.interval_days, second.interval_days) == (2, 5)


@pytest.mark.parametrize("repetitions, phase", [(0, "learning"), (1, "review"), (9, "review")])
def test_phase_follows_repetition_count(repetitions, phase) -> None:
    result = ScheduleResult(ease_factor=2.5, interval_days=1, repetition_count=repetitions, due_at=NOW)
    assert phase_for(repetitions) == phase
    assert result.phase == phase
