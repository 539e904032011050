"""
Page Routes
Server-rendered pages; the browser talks to the JSON API for changes
"""
from flask import Blueprint, render_template, redirect, url_for, flash, request, abort

from quizlink.extensions import db
from quizlink.models import Quiz, Question, Attempt
from quizlink.services import ResultsService
from quizlink.utils import (
    get_current_user,
    logout_user,
    now_utc,
    utc_to_local,
    require_login,
    require_admin,
)

pages_bp = Blueprint('pages', __name__)


@pages_bp.app_context_processor
def inject_user():
    return {'current_user': get_current_user(), 'to_local': utc_to_local}


def _safe_next(default):
    """Only follow relative redirect targets"""
    target = request.args.get('next', '')
    if target.startswith('/') and not target.startswith('//'):
        return target
    return default


@pages_bp.route('/')
def index():
    """Homepage"""
    return render_template('index.html')


@pages_bp.route('/signin')
def signin():
    user = get_current_user()
    if user:
        return redirect(url_for('pages.admin_dashboard') if user.is_admin else url_for('pages.index'))
    return render_template('auth.html', mode='signin', next_url=_safe_next(''))


@pages_bp.route('/signup')
def signup():
    if get_current_user():
        return redirect(url_for('pages.index'))
    return render_template('auth.html', mode='signup', next_url=_safe_next(''))


@pages_bp.route('/logout')
def logout():
    logout_user()
    flash('Logged out successfully.', 'info')
    return redirect(url_for('pages.index'))


# ============================================
# ADMIN PAGES
# ============================================

@pages_bp.route('/admin')
@require_admin
def admin_dashboard():
    """Admin dashboard"""
    quizzes = Quiz.query.order_by(Quiz.created_at.desc(), Quiz.id.desc()).all()
    return render_template('admin/dashboard.html', quizzes=quizzes, now=now_utc())


@pages_bp.route('/admin/create-quiz')
@require_admin
def create_quiz():
    return render_template('admin/quiz_form.html', quiz=None)


@pages_bp.route('/admin/quiz/<int:quiz_id>/edit')
@require_admin
def edit_quiz(quiz_id):
    quiz = db.get_or_404(Quiz, quiz_id)
    return render_template('admin/quiz_form.html', quiz=quiz)


@pages_bp.route('/admin/quiz/<int:quiz_id>/questions')
@require_admin
def quiz_questions(quiz_id):
    quiz = db.get_or_404(Quiz, quiz_id)
    questions = Question.query.filter_by(quiz_id=quiz_id).order_by(Question.id).all()
    return render_template('admin/questions.html', quiz=quiz, questions=questions)


@pages_bp.route('/admin/results/<int:quiz_id>')
@require_admin
def results(quiz_id):
    """Ranked results with export links"""
    quiz = db.get_or_404(Quiz, quiz_id)
    return render_template(
        'admin/results.html',
        quiz=quiz,
        results=ResultsService.build_results_payload(quiz_id),
        summary=ResultsService.build_summary(quiz_id),
    )


# ============================================
# STUDENT PAGES
# ============================================

@pages_bp.route('/quiz/<link>')
def quiz_landing(link):
    """Landing page behind a shareable link"""
    quiz = Quiz.query.filter_by(shareable_link=link).first()
    if not quiz:
        abort(404)

    now = now_utc()
    status = 'open'
    if not quiz.has_started(now):
        status = 'upcoming'
    elif quiz.has_ended(now):
        status = 'closed'

    user = get_current_user()
    attempt = None
    if user:
        attempt = Attempt.query.filter_by(user_id=user.id, quiz_id=quiz.id).first()

    return render_template(
        'quiz/landing.html',
        quiz=quiz,
        status=status,
        attempt=attempt,
        question_count=Question.query.filter_by(quiz_id=quiz.id).count(),
    )


@pages_bp.route('/quiz/take/<int:attempt_id>')
@require_login
def take_quiz(attempt_id):
    user = get_current_user()
    attempt = Attempt.query.filter_by(id=attempt_id, user_id=user.id).first_or_404()
    if attempt.is_completed:
        return redirect(url_for('pages.quiz_complete', attempt_id=attempt.id))
    return render_template('quiz/take.html', attempt=attempt, quiz=attempt.quiz)


@pages_bp.route('/quiz/complete/<int:attempt_id>')
@require_login
def quiz_complete(attempt_id):
    user = get_current_user()
    attempt = Attempt.query.filter_by(id=attempt_id, user_id=user.id).first_or_404()
    if not attempt.is_completed:
        flash('This attempt is still in progress.', 'info')
        return redirect(url_for('pages.take_quiz', attempt_id=attempt.id))
    return render_template(
        'quiz/complete.html',
        attempt=attempt,
        quiz=attempt.quiz,
        max_score=Question.query.filter_by(quiz_id=attempt.quiz_id).count(),
    )
