from flask import Blueprint, request, abort
from flask_login import login_required, current_user
import logging

logger = logging.getLogger(__name__)

admin_post_bp = Blueprint('admin_post', __name__)

# action name -> view function
ADMIN_POST_ACTIONS = {}

def admin_post_action(action):
    """Register ``f`` as the handler for form posts whose ``action`` field is ``action``."""
    def decorator(f):
        if action in ADMIN_POST_ACTIONS and ADMIN_POST_ACTIONS[action] is not f:
            logger.debug(f"Replacing admin-post handler for {action}")
        ADMIN_POST_ACTIONS[action] = f
        return f
    return decorator

@admin_post_bp.route('/admin/admin-post', methods=['POST'], strict_slashes=False)
@login_required
def dispatch():
    action = request.form.get('action', '').strip()
    handler = ADMIN_POST_ACTIONS.get(action)
    if handler is None:
        logger.warning(f"User {current_user.username} posted unknown admin action: {action!r}")
        abort(400, description='Unknown admin action.')
    logger.debug(f"User {current_user.username} dispatching admin action {action}")
    return handler()
