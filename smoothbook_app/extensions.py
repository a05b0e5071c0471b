from flask_login import LoginManager, current_user
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

login_manager = LoginManager()
login_manager.login_view = 'auth.login'
login_manager.login_message = "Please log in to access this page."
login_manager.login_message_category = 'warning'

def user_key_func():
    """Return the username for authenticated users, else the remote address."""
    if current_user.is_authenticated:
        return current_user.username
    return get_remote_address()

# Initialised in create_app(); storage comes from RATELIMIT_STORAGE_URI
limiter = Limiter(
    key_func=user_key_func,
    default_limits=["1000 per day", "200 per hour"],
)
