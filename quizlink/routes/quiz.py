"""
Quiz Routes
Student-facing JSON API: open a shared quiz, start/resume, answer, submit
"""
from flask import Blueprint, request, jsonify

from quizlink.errors import ForbiddenError, NotFoundError, ValidationError
from quizlink.models import Quiz, Question
from quizlink.services import AttemptService
from quizlink.utils import api_login_required, get_current_user, isoformat
from quizlink.utils.validators import get_json_payload

quiz_bp = Blueprint('quiz', __name__)


@quiz_bp.route('/<link>')
def quiz_by_link(link):
    """Public quiz info behind a shareable link, only while it is open"""
    quiz = Quiz.query.filter_by(shareable_link=link).first()
    if not quiz:
        raise NotFoundError('Quiz not found')

    if not quiz.is_open():
        raise ForbiddenError('Quiz not available')

    return jsonify({
        'quiz': {
            'id': quiz.id,
            'title': quiz.title,
            'start_time': isoformat(quiz.start_time),
            'end_time': isoformat(quiz.end_time),
            'question_count': Question.query.filter_by(quiz_id=quiz.id).count(),
        }
    })


@quiz_bp.route('/start-attempt', methods=['POST'])
@api_login_required
def start_attempt():
    data = get_json_payload(request)
    quiz_id = data.get('quiz_id')
    attempt_id = data.get('attempt_id')

    if not attempt_id and quiz_id is None:
        raise ValidationError('Quiz ID or Attempt ID required')

    payload = AttemptService.start(
        get_current_user(),
        quiz_id=quiz_id,
        attempt_id=attempt_id or None,
    )
    return jsonify(payload)


@quiz_bp.route('/get-question', methods=['POST'])
@api_login_required
def get_question():
    data = get_json_payload(request)
    attempt = AttemptService.get_open_attempt(data.get('attempt_id'), get_current_user())
    return jsonify(AttemptService.question_at(attempt, data.get('question_index', 0)))


@quiz_bp.route('/submit-answer', methods=['POST'])
@api_login_required
def submit_answer():
    data = get_json_payload(request)
    attempt = AttemptService.get_open_attempt(data.get('attempt_id'), get_current_user())
    return jsonify(AttemptService.record_answer(
        attempt,
        data.get('question_id'),
        data.get('selected_option'),
        data.get('time_taken_seconds'),
    ))


@quiz_bp.route('/submit-all-answers', methods=['POST'])
@api_login_required
def submit_all_answers():
    data = get_json_payload(request)

    if not data.get('attempt_id'):
        raise ValidationError('Attempt ID required')

    answers = data.get('answers')
    if not isinstance(answers, list):
        raise ValidationError('Answers must be an array')

    attempt = AttemptService.get_open_attempt(data['attempt_id'], get_current_user())
    return jsonify(AttemptService.submit_all(attempt, answers))
