"""
Helper Functions
Utility functions used across the application
"""
from datetime import datetime, timezone
from flask import session, redirect, url_for, flash, current_app, request
from functools import wraps
import uuid
import pytz

from quizlink.errors import UnauthorizedError, ForbiddenError


def now_utc():
    """Get current UTC timestamp"""
    return datetime.now(timezone.utc)


def as_utc(dt):
    """Treat naive datetimes (SQLite drops tzinfo) as UTC"""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def isoformat(dt):
    if dt is None:
        return None
    return as_utc(dt).isoformat()


def parse_datetime(value):
    """
    Parse an ISO-8601 string (trailing 'Z' allowed) into an aware UTC datetime.
    Returns None when the value is not a valid timestamp.
    """
    if isinstance(value, datetime):
        return as_utc(value)
    if not isinstance(value, str) or not value.strip():
        return None
    text = value.strip()
    if text.endswith('Z') or text.endswith('z'):
        text = text[:-1] + '+00:00'
    try:
        return as_utc(datetime.fromisoformat(text))
    except ValueError:
        return None


def utc_to_local(utc_dt, tz_name=None):
    """Convert UTC datetime to the configured display timezone"""
    if not utc_dt:
        return None
    local_tz = pytz.timezone(tz_name or current_app.config['TIMEZONE'])
    return as_utc(utc_dt).astimezone(local_tz)


def generate_shareable_link():
    """Random, unguessable link token for a quiz"""
    return str(uuid.uuid4())


def get_current_user():
    """Get current signed-in profile"""
    from quizlink.extensions import db
    from quizlink.models import Profile

    user = None
    user_id = session.get('user_id')
    if user_id is not None:
        user = db.session.get(Profile, user_id)
        if user is None:
            # Profile was deleted; drop the stale session
            session.clear()
    return user


def login_user(profile):
    session.clear()
    session.permanent = True
    session['user_id'] = profile.id


def logout_user():
    session.clear()


# Decorators for JSON API routes
def api_login_required(f):
    """Reject anonymous API calls with 401"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if get_current_user() is None:
            raise UnauthorizedError('Not authenticated')
        return f(*args, **kwargs)
    return decorated_function


def api_admin_required(f):
    """Reject non-admin API calls with 401/403"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        user = get_current_user()
        if user is None:
            raise UnauthorizedError('Not authenticated')
        if not user.is_admin:
            raise ForbiddenError('Admin access required')
        return f(*args, **kwargs)
    return decorated_function


# Decorators for server-rendered pages
def require_login(f):
    """Redirect anonymous visitors to the sign-in page"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if get_current_user() is None:
            flash("Please sign in first", "warning")
            return redirect(url_for("pages.signin", next=request.path))
        return f(*args, **kwargs)
    return decorated_function


def require_admin(f):
    """Redirect non-admins to the sign-in page"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        user = get_current_user()
        if user is None or not user.is_admin:
            flash("Admin access required", "danger")
            return redirect(url_for("pages.signin", next=request.path))
        return f(*args, **kwargs)
    return decorated_function
