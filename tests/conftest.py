"""
Pytest configuration and fixtures for testing.
Each test gets a fresh app bound to an in-memory SQLite database.
"""
from datetime import timedelta

import pytest
from werkzeug.security import generate_password_hash

from quizlink import create_app
from quizlink.extensions import db
from quizlink.models import Profile, Quiz, Question, Attempt
from quizlink.utils import now_utc, generate_shareable_link


PASSWORD = 'password123'


@pytest.fixture
def app():
    """Create application for testing."""
    app = create_app('testing')
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture
def make_profile(app):
    """Create a profile directly in the database and return its id."""
    counter = {'n': 0}

    def _make(role=Profile.ROLE_USER, email=None, full_name=None):
        counter['n'] += 1
        n = counter['n']
        with app.app_context():
            profile = Profile(
                full_name=full_name or f'User {n}',
                email=email or f'user{n}@example.com',
                phone=f'+9199999{n:05d}',
                password_hash=generate_password_hash(PASSWORD),
                role=role,
            )
            db.session.add(profile)
            db.session.commit()
            return profile.id, profile.email

    return _make


@pytest.fixture
def login(client):
    """Sign the test client in as the given email."""
    def _login(email, test_client=None):
        response = (test_client or client).post('/api/auth/signin', json={
            'email': email,
            'password': PASSWORD,
        })
        assert response.status_code == 200
        return response.get_json()['user']

    return _login


@pytest.fixture
def admin(make_profile, login):
    """Signed-in admin; returns the profile id."""
    admin_id, email = make_profile(role=Profile.ROLE_ADMIN, email='admin@example.com', full_name='Admin')
    login(email)
    return admin_id


@pytest.fixture
def make_quiz(app):
    """
    Create a quiz with questions directly in the database.

    starts_in / ends_in are offsets from now in seconds (negative = past).
    Every question's correct answer is option 0 unless answers are given.
    """
    def _make(starts_in=-60, ends_in=3600, questions=2, answers=None, time_limit=60, title='Sample Quiz'):
        now = now_utc()
        with app.app_context():
            quiz = Quiz(
                title=title,
                start_time=now + timedelta(seconds=starts_in),
                end_time=now + timedelta(seconds=ends_in),
                shareable_link=generate_shareable_link(),
            )
            for i in range(questions):
                quiz.questions.append(Question(
                    question=f'Question {i + 1}?',
                    options=['A', 'B', 'C', 'D'],
                    correct_answer=answers[i] if answers else 0,
                    time_limit_seconds=time_limit,
                ))
            db.session.add(quiz)
            db.session.commit()
            return {
                'id': quiz.id,
                'link': quiz.shareable_link,
                'question_ids': [q.id for q in quiz.questions],
            }

    return _make


@pytest.fixture
def make_attempt(app):
    """Insert an incomplete attempt that started `started_ago` seconds ago."""
    def _make(user_id, quiz_id, started_ago=10):
        with app.app_context():
            attempt = Attempt(
                user_id=user_id,
                quiz_id=quiz_id,
                started_at=now_utc() - timedelta(seconds=started_ago),
                is_completed=False,
            )
            db.session.add(attempt)
            db.session.commit()
            return attempt.id

    return _make


@pytest.fixture
def student(make_profile, login):
    """Signed-in regular user; returns the profile id."""
    user_id, email = make_profile(email='student@example.com', full_name='Student One')
    login(email)
    return user_id
