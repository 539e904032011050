"""
Authentication Routes
JSON API for signup, signin, session check and signout
"""
from flask import Blueprint, request, jsonify, current_app
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from werkzeug.security import generate_password_hash, check_password_hash

from quizlink.errors import ConflictError, UnauthorizedError, ValidationError
from quizlink.extensions import db
from quizlink.models import Profile
from quizlink.utils import get_current_user, login_user, logout_user
from quizlink.utils.validators import get_json_payload, validate_signup, validate_email

auth_bp = Blueprint('auth', __name__)


@auth_bp.route('/signup', methods=['POST'])
def signup():
    """Create a profile and sign it in"""
    fields = validate_signup(get_json_payload(request))

    existing = Profile.query.filter(
        or_(Profile.email == fields['email'], Profile.phone == fields['phone'])
    ).first()
    if existing:
        raise ConflictError('Email or phone already registered')

    profile = Profile(
        full_name=fields['full_name'],
        email=fields['email'],
        phone=fields['phone'],
        password_hash=generate_password_hash(fields['password']),
        role=Profile.ROLE_USER,
    )
    db.session.add(profile)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError('Email or phone already registered')

    login_user(profile)
    current_app.logger.info("Profile %s registered", profile.id)
    return jsonify({'user': profile.to_dict(), 'message': 'Account created successfully'})


@auth_bp.route('/signin', methods=['POST'])
def signin():
    """Verify credentials and start a session"""
    data = get_json_payload(request)
    email = validate_email(data.get('email'))
    password = data.get('password')
    if not password:
        raise ValidationError('Password is required')

    profile = Profile.query.filter_by(email=email).first()
    if not profile or not check_password_hash(profile.password_hash, password):
        current_app.logger.warning("Failed sign-in for %s", email)
        raise UnauthorizedError('Invalid email or password')

    login_user(profile)
    return jsonify({'user': profile.to_dict(), 'message': 'Login successful'})


@auth_bp.route('/check')
def check():
    """Report whether the session belongs to a signed-in profile"""
    user = get_current_user()
    if user is None:
        return jsonify({'authenticated': False, 'error': 'Not authenticated'}), 401
    return jsonify({'authenticated': True, 'user': user.to_dict()})


@auth_bp.route('/signout', methods=['POST'])
def signout():
    logout_user()
    return jsonify({'success': True, 'message': 'Signed out'})
