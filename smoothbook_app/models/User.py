from flask_login import UserMixin
from smoothbook_app.models.database import get_db
from smoothbook_app.utils.constants import ROLE_CAPABILITIES
from werkzeug.security import check_password_hash, generate_password_hash

USER_COLUMNS = "id, username, role, theme"

class User(UserMixin):
    """Login account; what it may do follows from its role's capabilities."""

    def __init__(self, id, username, role, theme=None):
        self.id = id
        self.username = username
        self.role = role
        self.theme = theme or 'light'

    def get_id(self):
        return str(self.id)

    @classmethod
    def from_row(cls, row):
        return cls(id=row['id'], username=row['username'], role=row['role'], theme=row['theme'])

    @property
    def capabilities(self):
        return ROLE_CAPABILITIES.get(self.role, [])

    def can(self, capability):
        return capability in self.capabilities

    @classmethod
    def get(cls, user_id):
        try:
            user_id = int(user_id)
        except (TypeError, ValueError):
            return None
        row = get_db().execute(f"SELECT {USER_COLUMNS} FROM users WHERE id = ?", (user_id,)).fetchone()
        return cls.from_row(row) if row else None

    @classmethod
    def authenticate(cls, username, password):
        """Return the user when the password matches its stored hash."""
        if not isinstance(username, str) or not username or not password:
            return None
        row = get_db().execute(
            f"SELECT {USER_COLUMNS}, password FROM users WHERE username = ?", (username,)
        ).fetchone()
        if row is None or not check_password_hash(row['password'], password):
            return None
        return cls.from_row(row)

    @classmethod
    def create(cls, username, password, role):
        """Insert a user with a hashed password and return it.

        Raises sqlite3.IntegrityError when the username is taken.
        """
        with get_db() as conn:
            cursor = conn.execute(
                "INSERT INTO users (username, password, role) VALUES (?, ?, ?)",
                (username, generate_password_hash(password), role)
            )
        return cls(id=cursor.lastrowid, username=username, role=role)

    def __repr__(self):
        return f"<User {self.username!r} ({self.role})>"
