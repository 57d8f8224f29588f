from flask_login import UserMixin
import logging

logger = logging.getLogger(__name__)

# Identity is established upstream (gateway / frontend auth provider);
# this service only receives the opaque user id.
USER_ID_HEADER = 'X-User-Id'


class ApiUser(UserMixin):
    """Authenticated caller identified only by an opaque user id"""

    def __init__(self, user_id):
        self.id = user_id

    def __repr__(self):
        return f'<ApiUser {self.id}>'


def load_user_from_request(request):
    """
    Flask-Login request loader.

    Args:
        request: The incoming Flask request

    Returns:
        ApiUser for the X-User-Id header, or None if the header is missing or blank
    """
    user_id = (request.headers.get(USER_ID_HEADER) or '').strip()
    if not user_id:
        logger.debug(f"Request to {request.path} without {USER_ID_HEADER} header")
        return None
    return ApiUser(user_id)
