"""User Progress Service - lazily created per-user progress document"""
import logging
from datetime import datetime
from typing import Callable, Optional

from services.clock import ensure_utc, utcnow
from services.document_store import DocumentStore, Increment
from services.errors import InvalidArgument, require_id
from services.progress_models import UserProgress

logger = logging.getLogger(__name__)

USER_PROGRESS_COLLECTION = 'userProgress'


def _initial_document(user_id: str, now: datetime) -> Callable[[], dict]:
    return lambda: UserProgress.initial(user_id, now).to_document()


def get_user_progress(
    user_id: str,
    now: Optional[datetime] = None,
    store: Optional[DocumentStore] = None
) -> UserProgress:
    """
    Get a user's progress, creating it with default values if absent.

    Args:
        user_id: Opaque user identifier
        now: Creation time used for a new document (default: current UTC time)
        store: Document store (default: a new DocumentStore)

    Returns:
        The UserProgress for the user

    Example:
        >>> progress = get_user_progress('u-1')
        >>> progress.daily_goal
        20
    """
    require_id('user_id', user_id)
    store = store or DocumentStore()
    now = ensure_utc(now) if now is not None else utcnow()

    data = store.get_or_create(USER_PROGRESS_COLLECTION, user_id, _initial_document(user_id, now))
    return UserProgress.from_document(data)


def modify_user_progress(
    user_id: str,
    change: Callable[[UserProgress], None],
    now: datetime,
    store: Optional[DocumentStore] = None
) -> UserProgress:
    """
    Apply `change` to the user's progress in one atomic read-modify-write.

    `change` edits the UserProgress in place. It may run more than once when
    concurrent writes conflict, so it must not have side effects of its own.
    A missing document is created with defaults first.
    """
    require_id('user_id', user_id)
    store = store or DocumentStore()

    def _mutate(data: dict) -> dict:
        progress = UserProgress.from_document(data)
        change(progress)
        return progress.to_document()

    document = store.atomic_update(
        USER_PROGRESS_COLLECTION,
        user_id,
        _mutate,
        default=_initial_document(user_id, ensure_utc(now))
    )
    return UserProgress.from_document(document)


def update_daily_goal(user_id: str, daily_goal: int, store: Optional[DocumentStore] = None) -> int:
    """
    Change the user's target number of words per day.

    Raises:
        InvalidArgument: If daily_goal is not a positive integer
    """
    if not isinstance(daily_goal, int) or isinstance(daily_goal, bool) or daily_goal < 1:
        raise InvalidArgument(f"daily_goal must be a positive integer, got: {daily_goal!r}")

    store = store or DocumentStore()
    get_user_progress(user_id, store=store)
    document = store.update(USER_PROGRESS_COLLECTION, user_id, {'dailyGoal': daily_goal})

    logger.info(f"Updated daily goal to {daily_goal} for user_id={user_id}")
    return document['dailyGoal']


def add_gems(user_id: str, amount: int, store: Optional[DocumentStore] = None) -> int:
    """
    Add gems to the user's balance.

    Returns:
        The new gem balance

    Raises:
        InvalidArgument: If amount is negative
    """
    if not isinstance(amount, int) or isinstance(amount, bool) or amount < 0:
        raise InvalidArgument(f"gem amount must be a non-negative integer, got: {amount!r}")

    store = store or DocumentStore()
    get_user_progress(user_id, store=store)
    document = store.update(USER_PROGRESS_COLLECTION, user_id, {'gems': Increment(amount)})

    logger.info(f"Added {amount} gems for user_id={user_id}, balance={document['gems']}")
    return document['gems']
