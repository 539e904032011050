"""
Utils Package
"""
from quizlink.utils.helpers import (
    now_utc,
    as_utc,
    isoformat,
    parse_datetime,
    utc_to_local,
    generate_shareable_link,
    get_current_user,
    login_user,
    logout_user,
    api_login_required,
    api_admin_required,
    require_login,
    require_admin
)

__all__ = [
    'now_utc',
    'as_utc',
    'isoformat',
    'parse_datetime',
    'utc_to_local',
    'generate_shareable_link',
    'get_current_user',
    'login_user',
    'logout_user',
    'api_login_required',
    'api_admin_required',
    'require_login',
    'require_admin'
]
