"""
Result Models

Values returned to callers after an update. They are not persisted.
"""

from pydantic import Field

from .base import DocumentModel
from .user_progress_models import LeagueState, XPState


class XPResult(DocumentModel):
    xp: XPState
    league: LeagueState
    leveled_up: bool = False


class StreakResult(DocumentModel):
    current_streak: int = Field(ge=0)
    longest_streak: int = Field(ge=0)


class AttemptResult(DocumentModel):
    """
    Consolidated outcome of one practice attempt.

    The presentation layer reacts to it, e.g. shows a level-up toast when
    `leveled_up` is true.

    Example:
    {
        "masteryLevel": 1,
        "currentStreak": 3,
        "xpLevel": 2,
        "leveledUp": true,
        "gemsEarned": 10
    }
    """
    mastery_level: int = Field(ge=0, le=5)
    current_streak: int = Field(ge=0)
    xp_level: int = Field(ge=1)
    leveled_up: bool = False
    gems_earned: int = Field(default=0, ge=0)
