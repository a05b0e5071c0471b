import logging
from flask import current_app
from flask_login import current_user
from itsdangerous import URLSafeTimedSerializer, BadSignature, SignatureExpired
from markupsafe import Markup
from smoothbook_app.utils.constants import NONCE_FIELD

logger = logging.getLogger(__name__)

NONCE_SALT = 'smooth-booking-nonce'

def _serializer():
    return URLSafeTimedSerializer(current_app.config['SECRET_KEY'], salt=NONCE_SALT)

def _current_user_id():
    return int(current_user.get_id() or 0) if current_user else 0

def create_nonce(action):
    """Signed token bound to ``action`` and the current user."""
    return _serializer().dumps({'action': action, 'user': _current_user_id()})

def verify_nonce(action, token):
    if not token:
        return False
    max_age = current_app.config.get('NONCE_LIFETIME', 86400)
    try:
        data = _serializer().loads(token, max_age=max_age)
    except SignatureExpired:
        logger.warning(f"Expired nonce for action {action}")
        return False
    except BadSignature:
        logger.warning(f"Invalid nonce signature for action {action}")
        return False
    return (
        isinstance(data, dict)
        and data.get('action') == action
        and data.get('user') == _current_user_id()
    )

def nonce_field(action):
    """Hidden form input carrying the nonce for ``action``."""
    return Markup('<input type="hidden" name="{}" value="{}" />').format(
        NONCE_FIELD, create_nonce(action)
    )
