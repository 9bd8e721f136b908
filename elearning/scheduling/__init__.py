from .sm2 import (
    ScheduleResult,
    ScheduleState,
    SchedulerConfig,
    compute_next_schedule,
    phase_for,
    validate_quality,
)

__all__ = [
    "ScheduleResult",
    "ScheduleState",
    "SchedulerConfig",
    "compute_next_schedule",
    "phase_for",
    "validate_quality",
]
