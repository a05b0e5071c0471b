import logging
from flask import current_app
from flask_login import current_user
from smoothbook_app.utils.transients import set_transient, get_transient, delete_transient

logger = logging.getLogger(__name__)

NOTICE_TYPES = ('success', 'error', 'warning', 'info')

class UserTransientStore:
    """Per-user transient slot built from a ``%d`` key template."""

    def __init__(self, key_template, ttl=None):
        self.key_template = key_template
        self.ttl = ttl

    def key_for(self, user_id=None):
        if user_id is None:
            user_id = int(current_user.get_id() or 0)
        return self.key_template % user_id

    def _ttl(self):
        if self.ttl is not None:
            return self.ttl
        return current_app.config.get('NOTICE_TTL', 60)

    def _pop(self, key, is_valid):
        value = get_transient(key)
        if value is not None and is_valid(value):
            delete_transient(key)
            return value
        return None

class NoticeStore(UserTransientStore):
    """One-shot admin notices.

    A notice written by a POST handler is shown on the next page render for
    the same user and then removed.
    """

    def add(self, notice_type, message, user_id=None):
        if notice_type not in NOTICE_TYPES:
            raise ValueError(f"Unknown notice type: {notice_type}")
        key = self.key_for(user_id)
        logger.debug(f"Queueing {notice_type} notice under {key}")
        set_transient(key, {'type': notice_type, 'message': message}, self._ttl())

    def consume(self, user_id=None):
        return self._pop(
            self.key_for(user_id),
            lambda notice: isinstance(notice, dict) and 'type' in notice and 'message' in notice
        )

class FormStateStore(UserTransientStore):
    """Keeps the fields of a rejected form submission for the next render."""

    def save(self, values, user_id=None):
        set_transient(self.key_for(user_id), dict(values), self._ttl())

    def consume(self, user_id=None):
        return self._pop(self.key_for(user_id), lambda values: isinstance(values, dict))
