"""
Scoring Service
One mark per correct answer; an attempt's score is the sum of its marks
"""
from quizlink.extensions import db
from quizlink.models import Answer


class ScoringService:
    """Service for scoring answers"""

    MARKS_PER_CORRECT = 1

    @staticmethod
    def grade(question, selected_option, time_taken_seconds, enforce_time_limit=True):
        """
        Grade one answer.

        When enforce_time_limit is set an answer given after the question's
        time limit counts as wrong.

        Returns:
            tuple: (is_correct, marks)
        """
        is_correct = question.is_correct_option(selected_option)
        if enforce_time_limit and time_taken_seconds > question.time_limit_seconds:
            is_correct = False
        return is_correct, ScoringService.MARKS_PER_CORRECT if is_correct else 0

    @staticmethod
    def skipped_answer(attempt_id, question):
        """Answer row for a question left unanswered when time ran out"""
        return Answer(
            attempt_id=attempt_id,
            question_id=question.id,
            selected_option=None,
            time_taken_seconds=question.time_limit_seconds,
            is_correct=False,
            marks_obtained=0,
        )

    @staticmethod
    def attempt_score(attempt_id):
        """Sum of marks stored for an attempt"""
        total = db.session.query(
            db.func.coalesce(db.func.sum(Answer.marks_obtained), 0)
        ).filter(Answer.attempt_id == attempt_id).scalar()
        return int(total or 0)
