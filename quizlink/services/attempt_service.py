"""
Attempt Service
Attempt lifecycle: start/resume, answer, time expiry, auto-submit, score
"""
from flask import current_app
from sqlalchemy.exc import IntegrityError

from quizlink.errors import ForbiddenError, NotFoundError, ConflictError
from quizlink.extensions import db, socketio
from quizlink.models import Quiz, Question, Attempt, Answer
from quizlink.services.scoring_service import ScoringService
from quizlink.sockets.results_events import results_room
from quizlink.utils import now_utc, as_utc, isoformat
from quizlink.utils.validators import optional_int, optional_seconds, coerce_id


class AttemptService:
    """Quiz attempt lifecycle"""

    # ================= LOOKUPS =================

    @staticmethod
    def get_open_attempt(attempt_id, user):
        """Attempt owned by user that can still take answers, else 403"""
        attempt = None
        if coerce_id(attempt_id) is not None:
            attempt = Attempt.query.filter_by(id=coerce_id(attempt_id), user_id=user.id).first()
        if not attempt or attempt.is_completed:
            raise ForbiddenError('Invalid attempt')
        return attempt

    @staticmethod
    def quiz_questions(quiz_id):
        return Question.query.filter_by(quiz_id=quiz_id).order_by(Question.id).all()

    @staticmethod
    def _payload(attempt, quiz, resumed=False):
        answered_ids = [
            row.question_id for row in
            db.session.query(Answer.question_id).filter_by(attempt_id=attempt.id).all()
        ]
        payload = {
            'attempt_id': attempt.id,
            'quiz': {
                'id': quiz.id,
                'title': quiz.title,
                'start_time': isoformat(quiz.start_time),
                'end_time': isoformat(quiz.end_time),
            },
            'questions': [
                q.to_dict(include_answer=False)
                for q in AttemptService.quiz_questions(quiz.id)
            ],
            'answered_question_ids': answered_ids,
        }
        if resumed:
            payload['resumed'] = True
        return payload

    # ================= START / RESUME =================

    @staticmethod
    def start(user, quiz_id=None, attempt_id=None):
        """
        Start a new attempt or resume an incomplete one.

        Resuming by attempt_id requires ownership; starting by quiz_id checks
        the quiz window and the one-attempt-per-student rule.
        """
        now = now_utc()

        if attempt_id is not None:
            attempt = None
            if coerce_id(attempt_id) is not None:
                attempt = Attempt.query.filter_by(id=coerce_id(attempt_id), user_id=user.id).first()
            if not attempt:
                raise NotFoundError('Attempt not found')
            if attempt.is_completed:
                raise ForbiddenError('Attempt already completed')
            if attempt.quiz.has_ended(now):
                AttemptService.auto_submit(attempt)
                raise ForbiddenError('Quiz has expired')
            return AttemptService._payload(attempt, attempt.quiz, resumed=True)

        quiz = db.session.get(Quiz, coerce_id(quiz_id)) if coerce_id(quiz_id) is not None else None
        if not quiz:
            raise NotFoundError('Quiz not found')

        if not quiz.has_started(now):
            raise ForbiddenError(
                f'Quiz not yet available. Starts at {as_utc(quiz.start_time).isoformat()}'
            )
        if quiz.has_ended(now):
            abandoned = Attempt.query.filter_by(
                user_id=user.id, quiz_id=quiz.id, is_completed=False
            ).first()
            if abandoned:
                AttemptService.auto_submit(abandoned)
            raise ForbiddenError(
                f'Quiz has expired. Ended at {as_utc(quiz.end_time).isoformat()}'
            )

        existing = Attempt.query.filter_by(user_id=user.id, quiz_id=quiz.id).first()
        if existing:
            if existing.is_completed:
                raise ForbiddenError('Already attempted')
            return AttemptService._payload(existing, quiz, resumed=True)

        attempt = Attempt(user_id=user.id, quiz_id=quiz.id, started_at=now, is_completed=False)
        db.session.add(attempt)
        try:
            db.session.commit()
        except IntegrityError:
            # A parallel request created the attempt first
            db.session.rollback()
            existing = Attempt.query.filter_by(user_id=user.id, quiz_id=quiz.id).first()
            if existing is None or existing.is_completed:
                raise ForbiddenError('Already attempted')
            return AttemptService._payload(existing, quiz, resumed=True)

        current_app.logger.info(
            "Attempt %s started: quiz=%s user=%s", attempt.id, quiz.id, user.id
        )
        return AttemptService._payload(attempt, quiz)

    # ================= QUESTION FLOW =================

    @staticmethod
    def question_at(attempt, question_index):
        """
        Question at a position of the attempt's quiz.

        Auto-submits when the quiz has ended or the index runs past the last
        question.
        """
        quiz = attempt.quiz
        if quiz.has_ended():
            AttemptService.auto_submit(attempt)
            raise ForbiddenError('Quiz ended')

        index = optional_int(question_index)
        if index is None or index < 0:
            index = 0

        questions = AttemptService.quiz_questions(quiz.id)
        if index >= len(questions):
            AttemptService.auto_submit(attempt)
            return {'completed': True, 'total_score': attempt.total_score}

        return {
            'question': questions[index].to_dict(include_answer=False),
            'question_index': index,
            'question_count': len(questions),
        }

    @staticmethod
    def record_answer(attempt, question_id, selected_option, time_taken_seconds):
        """Store a single answer, graded against the question time limit"""
        question = None
        if coerce_id(question_id) is not None:
            question = Question.query.filter_by(
                id=coerce_id(question_id), quiz_id=attempt.quiz_id
            ).first()
        if not question:
            raise NotFoundError('Question not found')

        if attempt.quiz.has_ended(grace_seconds=current_app.config['SUBMISSION_GRACE_SECONDS']):
            AttemptService.auto_submit(attempt)
            raise ForbiddenError('Quiz ended')

        if Answer.query.filter_by(attempt_id=attempt.id, question_id=question.id).first():
            raise ConflictError('Question already answered')

        selected_option = optional_int(selected_option)
        time_taken = max(0, optional_seconds(time_taken_seconds) or 0)
        is_correct, marks = ScoringService.grade(question, selected_option, time_taken)

        db.session.add(Answer(
            attempt_id=attempt.id,
            question_id=question.id,
            selected_option=selected_option,
            time_taken_seconds=time_taken,
            is_correct=is_correct,
            marks_obtained=marks,
        ))
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            raise ConflictError('Question already answered')

        return {'success': True}

    @staticmethod
    def submit_all(attempt, answers):
        """
        Save a batch of answers and complete the attempt.

        Unknown question ids are ignored. Correctness here does not depend on
        the per-question time limit; the browser already caps time taken.
        """
        grace = current_app.config['SUBMISSION_GRACE_SECONDS']
        if attempt.quiz.has_ended(grace_seconds=grace):
            AttemptService.auto_submit(attempt)
            raise ForbiddenError('Quiz ended')

        questions = {q.id: q for q in AttemptService.quiz_questions(attempt.quiz_id)}
        stored = {a.question_id: a for a in attempt.answers}

        for item in answers:
            if not isinstance(item, dict):
                continue
            question = questions.get(coerce_id(item.get('question_id')))
            if question is None:
                continue

            selected_option = optional_int(item.get('selected_option'))
            time_taken = max(0, optional_seconds(item.get('time_taken_seconds')) or 0)
            is_correct, marks = ScoringService.grade(
                question, selected_option, time_taken, enforce_time_limit=False
            )

            answer = stored.get(question.id)
            if answer is None:
                answer = Answer(attempt_id=attempt.id, question_id=question.id)
                db.session.add(answer)
                stored[question.id] = answer
            answer.selected_option = selected_option
            answer.time_taken_seconds = time_taken
            answer.is_correct = is_correct
            answer.marks_obtained = marks

        AttemptService.auto_submit(attempt)
        return {'success': True, 'total_score': attempt.total_score}

    # ================= COMPLETION =================

    @staticmethod
    def auto_submit(attempt):
        """
        Fill unanswered questions as skipped, score and close the attempt.
        Completing an already completed attempt changes nothing.
        """
        if attempt.is_completed:
            return attempt

        answered = {
            row.question_id for row in
            db.session.query(Answer.question_id).filter_by(attempt_id=attempt.id).all()
        }
        for question in AttemptService.quiz_questions(attempt.quiz_id):
            if question.id not in answered:
                db.session.add(ScoringService.skipped_answer(attempt.id, question))
        db.session.flush()

        submitted_at = now_utc()
        attempt.total_score = ScoringService.attempt_score(attempt.id)
        attempt.submitted_at = submitted_at
        attempt.time_taken = max(
            0, int((submitted_at - as_utc(attempt.started_at)).total_seconds())
        )
        attempt.is_completed = True
        db.session.commit()

        current_app.logger.info(
            "Attempt %s completed: quiz=%s score=%s",
            attempt.id, attempt.quiz_id, attempt.total_score
        )
        socketio.emit(
            'attempt_completed',
            {
                'quiz_id': attempt.quiz_id,
                'attempt_id': attempt.id,
                'total_score': attempt.total_score,
            },
            room=results_room(attempt.quiz_id)
        )
        return attempt
