"""
Admin Routes
Admin-only JSON API: admin management, quizzes, questions, results
"""
from flask import Blueprint, request, jsonify, current_app, send_file
from sqlalchemy import func

from quizlink.errors import ValidationError, NotFoundError
from quizlink.extensions import db
from quizlink.models import Profile, Quiz, Question, Attempt
from quizlink.services import ResultsService
from quizlink.utils import (
    api_admin_required,
    get_current_user,
    generate_shareable_link,
    isoformat,
    now_utc,
)
from quizlink.utils.validators import (
    get_json_payload,
    validate_title,
    validate_time_window,
    validate_question,
    coerce_id,
)

admin_bp = Blueprint('admin', __name__)


def get_quiz_or_404(quiz_id):
    quiz = db.session.get(Quiz, quiz_id) if quiz_id is not None else None
    if not quiz:
        raise NotFoundError('Quiz not found')
    return quiz


def get_question_or_404(question_id):
    question = db.session.get(Question, question_id)
    if not question:
        raise NotFoundError('Question not found')
    return question


def new_quiz(data):
    """Build an unsaved quiz from a create payload"""
    title = validate_title(data.get('title'))
    start_time, end_time = validate_time_window(data.get('startTime'), data.get('endTime'))
    return Quiz(
        title=title,
        start_time=start_time,
        end_time=end_time,
        created_by=get_current_user().id,
        shareable_link=generate_shareable_link(),
    )


# ============================================
# ADMIN MANAGEMENT
# ============================================

@admin_bp.route('/admin/admins')
@api_admin_required
def list_admins():
    """All admins, newest first"""
    admins = (
        Profile.query
        .filter_by(role=Profile.ROLE_ADMIN)
        .order_by(Profile.created_at.desc())
        .all()
    )
    return jsonify({
        'admins': [
            {'id': a.id, 'full_name': a.full_name, 'email': a.email}
            for a in admins
        ]
    })


@admin_bp.route('/admin/add-admin', methods=['POST'])
@api_admin_required
def add_admin():
    """Promote a registered profile to admin"""
    data = get_json_payload(request)
    email = data.get('email')
    if not email or not isinstance(email, str):
        raise ValidationError('Email is required')

    user = Profile.query.filter_by(email=email.strip().lower()).first()
    if not user:
        raise NotFoundError('User not found. Only registered users can be made admins.')
    if user.is_admin:
        raise ValidationError('User is already an admin.')

    user.role = Profile.ROLE_ADMIN
    db.session.commit()
    current_app.logger.info("Profile %s promoted to admin by %s", user.id, get_current_user().id)

    return jsonify({
        'success': True,
        'message': f'{user.full_name} has been added as an admin.',
        'admin': {'id': user.id, 'full_name': user.full_name, 'email': user.email},
    })


# ============================================
# QUIZZES
# ============================================

@admin_bp.route('/create-quiz', methods=['POST'])
@api_admin_required
def create_quiz():
    """Create a quiz together with its questions"""
    data = get_json_payload(request)
    quiz = new_quiz(data)

    questions = data.get('questions') or []
    if not isinstance(questions, list):
        raise ValidationError('Questions must be an array')

    for index, raw in enumerate(questions, start=1):
        if not isinstance(raw, dict):
            raise ValidationError(f'Question {index} is invalid')
        try:
            fields = validate_question(raw)
        except ValidationError as e:
            raise ValidationError(f'Question {index}: {e.message}')
        quiz.questions.append(Question(**fields))

    db.session.add(quiz)
    db.session.commit()
    current_app.logger.info(
        "Quiz %s created with %d questions", quiz.id, len(quiz.questions)
    )

    return jsonify({
        'success': True,
        'shareableLink': quiz.shareable_link,
        'quiz': quiz.to_dict(),
    })


@admin_bp.route('/create-quiz-basic', methods=['POST'])
@api_admin_required
def create_quiz_basic():
    """Create a quiz without questions"""
    quiz = new_quiz(get_json_payload(request))
    db.session.add(quiz)
    db.session.commit()
    current_app.logger.info("Quiz %s created", quiz.id)
    return jsonify({'success': True, 'quiz': quiz.to_dict()})


@admin_bp.route('/quizzes')
@api_admin_required
def list_quizzes():
    """Quiz list for the dashboard, newest first"""
    question_counts = dict(
        db.session.query(Question.quiz_id, func.count(Question.id))
        .group_by(Question.quiz_id).all()
    )
    attempt_counts = dict(
        db.session.query(Attempt.quiz_id, func.count(Attempt.id))
        .filter(Attempt.is_completed == True)
        .group_by(Attempt.quiz_id).all()
    )

    quizzes = Quiz.query.order_by(Quiz.created_at.desc(), Quiz.id.desc()).all()
    now = now_utc()
    return jsonify([
        {
            'id': q.id,
            'title': q.title,
            'shareable_link': q.shareable_link,
            'start_time': isoformat(q.start_time),
            'end_time': isoformat(q.end_time),
            'is_open': q.is_open(now),
            'question_count': question_counts.get(q.id, 0),
            'attempt_count': attempt_counts.get(q.id, 0),
        }
        for q in quizzes
    ])


@admin_bp.route('/quizzes/<int:quiz_id>')
@api_admin_required
def get_quiz(quiz_id):
    return jsonify({'quiz': get_quiz_or_404(quiz_id).to_dict()})


@admin_bp.route('/quizzes/<int:quiz_id>', methods=['PUT'])
@api_admin_required
def update_quiz(quiz_id):
    """Update title and/or time window"""
    quiz = get_quiz_or_404(quiz_id)
    data = get_json_payload(request)

    if 'title' in data:
        quiz.title = validate_title(data.get('title'))

    if 'startTime' in data or 'endTime' in data:
        start_time, end_time = validate_time_window(
            data.get('startTime', quiz.start_time),
            data.get('endTime', quiz.end_time),
        )
        quiz.start_time = start_time
        quiz.end_time = end_time

    db.session.commit()
    current_app.logger.info("Quiz %s updated", quiz.id)
    return jsonify({'success': True, 'quiz': quiz.to_dict()})


@admin_bp.route('/quizzes/<int:quiz_id>', methods=['DELETE'])
@api_admin_required
def delete_quiz(quiz_id):
    """Delete quiz and all associated data"""
    quiz = get_quiz_or_404(quiz_id)
    db.session.delete(quiz)
    db.session.commit()
    current_app.logger.info("Quiz %s deleted", quiz_id)
    return jsonify({'success': True})


# ============================================
# QUESTIONS
# ============================================

@admin_bp.route('/add-question', methods=['POST'])
@api_admin_required
def add_question():
    data = get_json_payload(request)
    quiz = get_quiz_or_404(coerce_id(data.get('quizId')))

    question = Question(quiz_id=quiz.id, **validate_question(data))
    db.session.add(question)
    db.session.commit()
    return jsonify({'success': True, 'question': question.to_dict()})


@admin_bp.route('/question/<int:question_id>')
@api_admin_required
def get_question(question_id):
    return jsonify({'question': get_question_or_404(question_id).to_dict()})


@admin_bp.route('/question/<int:question_id>', methods=['PUT'])
@api_admin_required
def update_question(question_id):
    question = get_question_or_404(question_id)
    fields = validate_question(get_json_payload(request), partial=True)

    options = fields.get('options', question.options)
    correct = fields.get('correct_answer', question.correct_answer)
    if not 0 <= correct < len(options):
        raise ValidationError('correct_answer is out of range')

    for key, value in fields.items():
        setattr(question, key, value)
    db.session.commit()
    return jsonify({'success': True, 'question': question.to_dict()})


@admin_bp.route('/question/<int:question_id>', methods=['DELETE'])
@api_admin_required
def delete_question(question_id):
    question = get_question_or_404(question_id)
    db.session.delete(question)
    db.session.commit()
    return jsonify({'success': True})


@admin_bp.route('/questions/<int:quiz_id>')
@api_admin_required
def list_questions(quiz_id):
    questions = Question.query.filter_by(quiz_id=quiz_id).order_by(Question.id).all()
    return jsonify({'questions': [q.to_dict() for q in questions]})


# ============================================
# RESULTS
# ============================================

@admin_bp.route('/results/<int:quiz_id>')
@api_admin_required
def results(quiz_id):
    """Ranked results with answers"""
    get_quiz_or_404(quiz_id)
    return jsonify(ResultsService.build_results_payload(quiz_id))


@admin_bp.route('/results/<int:quiz_id>/summary')
@api_admin_required
def results_summary(quiz_id):
    get_quiz_or_404(quiz_id)
    return jsonify(ResultsService.build_summary(quiz_id))


@admin_bp.route('/results/<int:quiz_id>/export')
@api_admin_required
def export_results(quiz_id):
    """Download ranked results as CSV (default) or Excel"""
    quiz = get_quiz_or_404(quiz_id)
    export_format = request.args.get('format', 'csv').lower()
    stamp = now_utc().strftime('%Y%m%d_%H%M%S')

    if export_format == 'csv':
        return send_file(
            ResultsService.export_csv(quiz_id),
            as_attachment=True,
            download_name=f"quiz_{quiz.id}_results_{stamp}.csv",
            mimetype='text/csv'
        )
    if export_format == 'xlsx':
        return send_file(
            ResultsService.export_xlsx(quiz_id, quiz.title),
            as_attachment=True,
            download_name=f"quiz_{quiz.id}_results_{stamp}.xlsx",
            mimetype='application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'
        )
    raise ValidationError('Unsupported export format')


@admin_bp.route('/attempt/<int:attempt_id>')
@api_admin_required
def attempt_details(attempt_id):
    details = ResultsService.attempt_details(attempt_id)
    if details is None:
        raise NotFoundError('Attempt not found')
    return jsonify(details)
