"""
Progress Routes - Endpoints for practice attempts and progress state.

This module provides API endpoints for the practice UI including:
- POST /progress/attempts - Apply one practice attempt
- GET /progress/me - Full progress document of the caller
- GET /progress/streak - Current streak
- PATCH /progress/daily-goal - Change the daily word goal
- GET /progress/quests - Daily quest board
- GET /progress/lessons - Progress of every lesson
- PUT /progress/lessons/<lesson_id> - Store lesson completion percent
- GET /progress/lessons/<lesson_id>/vocabulary - Mastery records of a lesson
- GET /progress/lessons/<lesson_id>/due - Items due for review

The caller is identified by the X-User-Id header (see auth.utils).
"""

import logging

from flask import Blueprint, jsonify, request
from flask_login import current_user, login_required

from services.clock import utcnow
from services.errors import AttemptStepFailed, InvalidArgument, NotFound, StorageUnavailable
from services.lesson_progress_service import get_all_lesson_progress, update_lesson_progress
from services.quest_service import QuestCatalog
from services.reward_coordinator import RewardCoordinator
from services.spaced_repetition import SpacedRepetitionService
from services.streak_service import StreakTracker
from services.user_progress_service import get_user_progress, update_daily_goal

logger = logging.getLogger(__name__)

bp = Blueprint('progress', __name__, url_prefix='/progress')

SAVE_FAILED_MESSAGE = 'Could not save progress'


@bp.errorhandler(InvalidArgument)
def handle_invalid_argument(e):
    return jsonify({'error': str(e)}), 400


@bp.errorhandler(NotFound)
def handle_not_found(e):
    return jsonify({'error': str(e)}), 404


@bp.errorhandler(StorageUnavailable)
def handle_storage_unavailable(e):
    logger.error(f"Storage unavailable on {request.path}: {str(e)}")
    return jsonify({'error': SAVE_FAILED_MESSAGE}), 503


def _json_body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise InvalidArgument('No JSON data provided')
    return data


@bp.route('/attempts', methods=['POST'])
@login_required
def submit_attempt():
    """
    Apply one practice attempt.

    Request Body:
        {
            "lessonId": "lesson-articles",
            "vocabularyId": "v-7",
            "isCorrect": true,
            "timeSpentSeconds": 5
        }

    Returns:
        200: Attempt result
            {
                "masteryLevel": 1,
                "currentStreak": 1,
                "xpLevel": 1,
                "leveledUp": false,
                "gemsEarned": 0
            }
        400: Missing or invalid fields
        404: Unknown lesson or vocabulary item (when lesson checks are enabled)
        503: Progress could not be saved
            {
                "error": "Could not save progress",
                "step": "xp",
                "appliedSteps": ["mastery", "streak", "quest"]
            }

    Implementation Notes:
        - Not idempotent: a resubmitted attempt is counted again
        - On 503 the steps listed in appliedSteps were saved and are not rolled back
    """
    data = _json_body()

    try:
        result = RewardCoordinator().submit_attempt(
            user_id=current_user.get_id(),
            lesson_id=data.get('lessonId'),
            vocabulary_id=data.get('vocabularyId'),
            is_correct=data.get('isCorrect'),
            time_spent_seconds=data.get('timeSpentSeconds', 0),
            now=utcnow()
        )
    except AttemptStepFailed as e:
        return jsonify({
            'error': SAVE_FAILED_MESSAGE,
            'step': e.step,
            'appliedSteps': e.completed_steps
        }), 503

    return jsonify(result.to_document())


@bp.route('/me', methods=['GET'])
@login_required
def get_progress():
    progress = get_user_progress(current_user.get_id(), now=utcnow())
    return jsonify(progress.to_document())


@bp.route('/streak', methods=['GET'])
@login_required
def get_streak():
    return jsonify({'currentStreak': StreakTracker().get_user_streak(current_user.get_id())})


@bp.route('/daily-goal', methods=['PATCH'])
@login_required
def set_daily_goal():
    """
    Update the user's daily word goal.

    Request Body:
        {
            "dailyGoal": int (>= 1)
        }
    """
    data = _json_body()
    if 'dailyGoal' not in data:
        raise InvalidArgument('Missing dailyGoal in request body')

    daily_goal = update_daily_goal(current_user.get_id(), data['dailyGoal'])
    return jsonify({'success': True, 'dailyGoal': daily_goal})


@bp.route('/quests', methods=['GET'])
@login_required
def get_quests():
    """Daily quest board; quests whose targets were reached are marked completed first"""
    now = utcnow()
    catalog = QuestCatalog()
    newly_completed = catalog.complete_quests(current_user.get_id(), now)
    return jsonify({
        'quests': catalog.quest_board(current_user.get_id(), now),
        'newlyCompleted': newly_completed
    })


@bp.route('/lessons', methods=['GET'])
@login_required
def get_lessons_progress():
    lessons = get_all_lesson_progress(current_user.get_id())
    return jsonify({lesson_id: progress.to_document() for lesson_id, progress in lessons.items()})


@bp.route('/lessons/<lesson_id>', methods=['PUT'])
@login_required
def put_lesson_progress(lesson_id):
    """
    Store how far the user got through a lesson.

    Request Body:
        {
            "progress": int (0-100)
        }
    """
    data = _json_body()
    if 'progress' not in data:
        raise InvalidArgument('Missing progress in request body')

    lesson_progress = update_lesson_progress(
        current_user.get_id(),
        lesson_id,
        data['progress'],
        utcnow()
    )
    return jsonify(lesson_progress.to_document())


@bp.route('/lessons/<lesson_id>/vocabulary', methods=['GET'])
@login_required
def get_lesson_vocabulary(lesson_id):
    records = SpacedRepetitionService().get_vocabulary_progress(current_user.get_id(), lesson_id)
    return jsonify({'items': [record.to_document() for record in records]})


@bp.route('/lessons/<lesson_id>/due', methods=['GET'])
@login_required
def get_due_vocabulary(lesson_id):
    """
    Items due for review, most overdue first.

    Query Parameters:
        limit (int, optional): Maximum number of items
    """
    limit = request.args.get('limit', type=int)
    if limit is not None and limit < 1:
        raise InvalidArgument('limit must be a positive integer')

    records = SpacedRepetitionService().get_due_items(
        current_user.get_id(),
        lesson_id,
        utcnow(),
        limit=limit
    )
    return jsonify({'items': [record.to_document() for record in records]})
