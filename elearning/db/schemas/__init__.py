from .profile import Profile
from .lesson import Lesson, LessonParticipant
from .card import Card
from .review import SchedulingState, ReviewEvent
from .progress import StudyProgress
from .moderation import ContentFlag

__all__ = [
    "Profile",
    "Lesson",
    "LessonParticipant",
    "Card",
    "SchedulingState",
    "ReviewEvent",
    "StudyProgress",
    "ContentFlag",
]
