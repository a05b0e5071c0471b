from flask import Blueprint, render_template, request, redirect, url_for, flash, abort, current_app
from flask_login import login_user, logout_user, login_required, current_user
from functools import wraps
from smoothbook_app.extensions import limiter, user_key_func
from smoothbook_app.models.database import get_db
from smoothbook_app.models.User import User
from smoothbook_app.utils.audit_logging import log_audit_action, current_username
from smoothbook_app.utils.constants import ROLE_REDIRECTS, MIN_PASSWORD_LENGTH, NONCE_FIELD
from smoothbook_app.utils.nonces import verify_nonce
import logging
from datetime import datetime
import sqlite3
import pytz
from urllib.parse import urlparse, urljoin
import re

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__)

USERNAME_RE = re.compile(r'^[a-zA-Z0-9_]{1,50}$')
DENIED_MESSAGE = 'Sorry, you are not allowed to access this page.'
EXPIRED_LINK_MESSAGE = 'The link you followed has expired.'

# --- Authorization ---

def capability_required(capability, message=DENIED_MESSAGE):
    """Gate a view on a capability of the current user's role.

    Anonymous users are sent to the login page and come back afterwards;
    logged-in users without the capability get the access-denied page.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not current_user.is_authenticated:
                logger.warning(f"Anonymous request to {request.path} redirected to login")
                log_audit_action('anonymous', 'unauthenticated_access', request.path, f'No session for {request.method} {request.path}')
                flash("Please log in to access this page.", "warning")
                return redirect(url_for('auth.login', next=request.full_path))

            if not current_user.can(capability):
                logger.warning(f"{current_user.username} ({current_user.role}) lacks '{capability}' for {request.path}")
                log_audit_action(current_user.username, 'unauthorized_access', request.path, f'Missing capability {capability}')
                return render_template('common/403.html', message=message), 403

            return f(*args, **kwargs)
        return decorated_function
    return decorator

def check_admin_referer(action):
    """Abort with 403 unless the submitted form carries a valid nonce for ``action``."""
    token = request.form.get(NONCE_FIELD) or request.args.get(NONCE_FIELD)
    if verify_nonce(action, token):
        return
    username = current_username()
    logger.warning(f"Rejected {action} from {username}: missing or invalid nonce")
    log_audit_action(username, 'nonce_failed', request.path, f"Invalid nonce for {action}")
    abort(403, description=EXPIRED_LINK_MESSAGE)

# --- Login helpers ---

def is_safe_url(target):
    """True when ``target`` points back at this host over http(s)."""
    if not target:
        return False
    host = urlparse(request.host_url)
    candidate = urlparse(urljoin(request.host_url, target))
    return candidate.scheme in ('http', 'https') and candidate.hostname == host.hostname

def get_role_redirect(user):
    """Landing page for a role; roles without one go to their account page."""
    return url_for(ROLE_REDIRECTS.get(user.role, 'auth.account'))

def _next_page():
    return request.form.get('next') or request.args.get('next', '')

def _login_page():
    return render_template('common/login.html', next=_next_page())

def _reject_login(username, reason, message):
    logger.warning(f"Login failed for {username}: {reason}")
    log_audit_action(username, 'login_failed', 'login', reason)
    flash(message, "warning")
    return _login_page()

def _record_last_login(user):
    stamp = datetime.now(pytz.timezone(current_app.config['TIMEZONE'])).strftime('%Y-%m-%d %H:%M:%S')
    with get_db() as conn:
        conn.execute("UPDATE users SET last_login = ? WHERE id = ?", (stamp, user.id))

# --- Routes ---

@auth_bp.route('/')
def index():
    if current_user.is_authenticated:
        return redirect(get_role_redirect(current_user))
    return redirect(url_for('auth.login'))

@auth_bp.route('/login', methods=['GET', 'POST'])
@limiter.limit("50/hour", key_func=user_key_func)
def login():
    if request.method == 'GET':
        return _login_page()

    username = request.form.get('username', '').strip()
    password = request.form.get('password', '').strip()

    if not USERNAME_RE.match(username):
        return _reject_login(
            username, 'Invalid username format',
            "Invalid username format. Use alphanumeric characters and underscores, max 50 characters."
        )
    if len(password) < MIN_PASSWORD_LENGTH:
        return _reject_login(
            username, f'Password shorter than {MIN_PASSWORD_LENGTH} characters',
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters."
        )

    try:
        user = User.authenticate(username, password)
        if user is None:
            return _reject_login(username, 'Invalid username or password', "Invalid username or password")
        login_user(user)
        _record_last_login(user)
    except sqlite3.Error as e:
        logger.error(f"Database error while logging in {username}: {str(e)}")
        log_audit_action(username, 'error', 'login', f"Database error during login: {str(e)}")
        flash("Database error. Please try again later.", "danger")
        return _login_page()

    logger.info(f"{username} logged in as {user.role}")
    log_audit_action(username, 'login_success', 'login', f'Role: {user.role}')
    flash("Login successful!", "success")

    next_page = _next_page()
    if is_safe_url(next_page):
        return redirect(next_page)
    return redirect(get_role_redirect(user))

@auth_bp.route('/account')
@login_required
def account():
    return render_template('common/account.html', user=current_user)

@auth_bp.route('/logout')
@login_required
def logout():
    username = current_user.username
    logout_user()
    logger.info(f"{username} logged out")
    log_audit_action(username, 'logout', 'logout', 'User logged out')
    flash("Logged out successfully.", "info")
    return redirect(url_for('auth.login'))
