"""
Input Validation
Payload checks shared by the API routes; failures raise ValidationError
"""
import math
import re

from flask import current_app

from quizlink.errors import ValidationError
from quizlink.utils.helpers import parse_datetime


EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')
PHONE_PATTERN = re.compile(r'^\+?[1-9]\d{0,15}$')
PHONE_SEPARATORS = re.compile(r'[\s\-()]')

MAX_NAME_LENGTH = 100
MAX_EMAIL_LENGTH = 254
MAX_PHONE_LENGTH = 20
MIN_PASSWORD_LENGTH = 8
MAX_PASSWORD_LENGTH = 128
MAX_TITLE_LENGTH = 200
MIN_OPTIONS = 2


def get_json_payload(request):
    """Return the request body as a dict, or raise 400"""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError('Request body must be a JSON object')
    return data


def _text(value):
    return value.strip() if isinstance(value, str) else ''


def validate_email(email):
    email = _text(email)
    if not email:
        raise ValidationError('Email is required')
    if len(email) > MAX_EMAIL_LENGTH:
        raise ValidationError('Email is too long')
    if not EMAIL_PATTERN.match(email):
        raise ValidationError('Invalid email format')
    return email.lower()


def validate_signup(data):
    """Validate a signup payload and return normalized fields"""
    full_name = _text(data.get('full_name'))
    if not full_name:
        raise ValidationError('Full name is required')
    if len(full_name) > MAX_NAME_LENGTH:
        raise ValidationError(f'Full name must be less than {MAX_NAME_LENGTH} characters')

    email = validate_email(data.get('email'))

    phone = _text(data.get('phone'))
    if not phone:
        raise ValidationError('Phone number is required')
    if len(phone) > MAX_PHONE_LENGTH:
        raise ValidationError(f'Phone number must be less than {MAX_PHONE_LENGTH} characters')
    if not PHONE_PATTERN.match(PHONE_SEPARATORS.sub('', phone)):
        raise ValidationError('Invalid phone number format')

    password = data.get('password')
    if not password or not isinstance(password, str):
        raise ValidationError('Password is required')
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f'Password must be at least {MIN_PASSWORD_LENGTH} characters long')
    if len(password) > MAX_PASSWORD_LENGTH:
        raise ValidationError(f'Password must be less than {MAX_PASSWORD_LENGTH} characters')

    return {
        'full_name': full_name,
        'email': email,
        'phone': phone,
        'password': password,
    }


def validate_title(title):
    title = _text(title)
    if not title:
        raise ValidationError('Title is required')
    if len(title) > MAX_TITLE_LENGTH:
        raise ValidationError(f'Title must be at most {MAX_TITLE_LENGTH} characters')
    return title


def validate_time_window(start_value, end_value):
    start_time = parse_datetime(start_value)
    if start_time is None:
        raise ValidationError('A valid start time is required')
    end_time = parse_datetime(end_value)
    if end_time is None:
        raise ValidationError('A valid end time is required')
    if start_time >= end_time:
        raise ValidationError('End time must be after start time')
    return start_time, end_time


def _is_int(value):
    # bool is an int subclass; JSON true/false are not option indexes
    return isinstance(value, int) and not isinstance(value, bool)


def validate_question(data, partial=False):
    """
    Validate question fields.

    With partial=True only the supplied keys are checked (used by updates);
    the caller is responsible for re-checking correct_answer against the
    stored options.
    """
    cleaned = {}

    if not partial or 'question' in data:
        text = _text(data.get('question'))
        if not text:
            raise ValidationError('Question text is required')
        cleaned['question'] = text

    if not partial or 'options' in data:
        options = data.get('options')
        if not isinstance(options, list) or len(options) < MIN_OPTIONS:
            raise ValidationError(f'At least {MIN_OPTIONS} options are required')
        if any(not _text(opt) for opt in options):
            raise ValidationError('Options must be non-empty strings')
        cleaned['options'] = [opt.strip() for opt in options]

    if not partial or 'correct_answer' in data:
        correct = data.get('correct_answer')
        if not _is_int(correct):
            raise ValidationError('correct_answer must be an option index')
        cleaned['correct_answer'] = correct

    if 'options' in cleaned and 'correct_answer' in cleaned:
        if not 0 <= cleaned['correct_answer'] < len(cleaned['options']):
            raise ValidationError('correct_answer is out of range')

    if not partial or 'time_limit_seconds' in data:
        limit = data.get('time_limit_seconds')
        if limit is None and not partial:
            limit = current_app.config['DEFAULT_TIME_LIMIT_SECONDS']
        max_limit = current_app.config['MAX_TIME_LIMIT_SECONDS']
        if not _is_int(limit) or not 0 < limit <= max_limit:
            raise ValidationError(f'time_limit_seconds must be between 1 and {max_limit}')
        cleaned['time_limit_seconds'] = limit

    return cleaned


def optional_int(value):
    """Integer from a JSON int or integral float (1.0), or None"""
    if _is_int(value):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def optional_seconds(value):
    """Whole seconds from any finite JSON number (fractions truncated), or None"""
    if _is_int(value):
        return value
    if isinstance(value, float) and math.isfinite(value):
        return int(value)
    return None


def coerce_id(value):
    """Row id from a JSON int or digit string, or None"""
    if _is_int(value):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None
