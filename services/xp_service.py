"""
Experience Ledger - XP, level and league standing.

Level and league are both pure step functions of the user's cumulative XP
and are recomputed from scratch on every XP change.
"""

import logging
from typing import Optional

from services.clock import utcnow
from services.document_store import DocumentStore
from services.errors import InvalidArgument
from services.progress_models import LeagueState, UserProgress, XPResult, XPState
from services.user_progress_service import modify_user_progress

logger = logging.getLogger(__name__)

# XP needed to reach level i + 1
XP_LEVELS = [0, 100, 300, 600, 1000, 1500, 2100, 2800, 3600, 4500]

# League ladder, lowest first: (name, xp per rank)
LEAGUES = [
    ('bronze', 50),
    ('silver', 75),
    ('gold', 100),
    ('sapphire', 150),
    ('ruby', 200),
    ('emerald', 250),
]
DIVISIONS_PER_LEAGUE = 3
RANKS_PER_DIVISION = 5
RANKS_PER_LEAGUE = DIVISIONS_PER_LEAGUE * RANKS_PER_DIVISION


def calculate_level(xp: int) -> XPState:
    """
    Level for a cumulative XP total.

    Example:
        >>> calculate_level(299).level
        2
        >>> calculate_level(300).next_level_at
        600
    """
    level = 1
    for index, threshold in enumerate(XP_LEVELS):
        if xp >= threshold:
            level = index + 1
        else:
            break

    # Past the last level there is no next threshold; keep pointing at the last one
    next_level_at = XP_LEVELS[level] if level < len(XP_LEVELS) else XP_LEVELS[-1]
    return XPState(current=xp, level=level, next_level_at=next_level_at)


def calculate_league(xp: int) -> LeagueState:
    """
    League, division and rank for a cumulative XP total.

    Each league holds 3 divisions of 5 ranks. Walking up the ladder, a league
    whose full XP span fits in the remaining XP is consumed; the first league
    that does not fit is the current one.

    Example:
        >>> calculate_league(0).name
        'bronze'
        >>> calculate_league(750).name
        'silver'
    """
    remaining = xp
    for name, xp_per_rank in LEAGUES:
        league_span = RANKS_PER_LEAGUE * xp_per_rank
        if remaining < league_span:
            ranks = remaining // xp_per_rank
            return LeagueState(
                name=name,
                rank=ranks % RANKS_PER_DIVISION + 1,
                division=ranks // RANKS_PER_DIVISION + 1,
                xp=remaining,
                next_rank_at=xp_per_rank
            )
        remaining -= league_span

    # Every league consumed: emerald starts over at rank 1 with the leftover XP
    name, xp_per_rank = LEAGUES[-1]
    return LeagueState(
        name=name,
        rank=1,
        division=1,
        xp=remaining,
        next_rank_at=xp_per_rank
    )


class ExperienceLedger:
    """Adds XP to a user and recomputes their level and league"""

    def __init__(self, store: Optional[DocumentStore] = None):
        self.store = store or DocumentStore()

    def add_xp(self, user_id: str, amount: int, now=None) -> XPResult:
        """
        Add XP to a user's total.

        Args:
            user_id: Opaque user identifier
            amount: XP to add (>= 0)
            now: Creation time if the user has no progress yet

        Returns:
            XPResult with the new XP state, league and whether the level went up

        Raises:
            InvalidArgument: If amount is negative or not an integer
            StorageUnavailable: If progress cannot be read or written
        """
        if not isinstance(amount, int) or isinstance(amount, bool):
            raise InvalidArgument(f"XP amount must be an integer, got: {amount!r}")
        if amount < 0:
            raise InvalidArgument(f"XP amount must not be negative, got: {amount}")

        outcome = {}

        def _change(progress: UserProgress) -> None:
            previous_level = progress.xp.level
            progress.xp = calculate_level(progress.xp.current + amount)
            progress.league = calculate_league(progress.xp.current)
            outcome['leveled_up'] = progress.xp.level > previous_level

        if now is None:
            now = utcnow()
        progress = modify_user_progress(user_id, _change, now, store=self.store)
        result = XPResult(xp=progress.xp, league=progress.league, leveled_up=outcome['leveled_up'])

        if result.leveled_up:
            logger.info(f"User leveled up: user_id={user_id}, level={result.xp.level}, xp={result.xp.current}")
        else:
            logger.debug(f"Added {amount} XP for user_id={user_id}, total={result.xp.current}")
        return result
