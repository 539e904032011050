"""
Question Model
Multiple-choice question; correct_answer is an index into options
"""
from quizlink.extensions import db
from quizlink.utils.helpers import now_utc, isoformat


class Question(db.Model):
    """Question model"""
    __tablename__ = 'questions'

    id = db.Column(db.Integer, primary_key=True)
    quiz_id = db.Column(db.Integer, db.ForeignKey('quizzes.id', ondelete='CASCADE'), nullable=False, index=True)

    question = db.Column(db.Text, nullable=False)
    options = db.Column(db.JSON, nullable=False)  # list of option strings
    correct_answer = db.Column(db.Integer, nullable=False)  # 0-based
    time_limit_seconds = db.Column(db.Integer, nullable=False, default=60)

    created_at = db.Column(db.DateTime(timezone=True), default=now_utc)

    answers = db.relationship(
        'Answer', backref='question', lazy=True, cascade='all, delete-orphan'
    )

    def __repr__(self):
        return f'<Question {self.id}: {self.question[:50]}...>'

    def is_correct_option(self, selected_option):
        return selected_option is not None and selected_option == self.correct_answer

    def to_dict(self, include_answer=True):
        """Serialize; students never receive the correct answer"""
        data = {
            'id': self.id,
            'quiz_id': self.quiz_id,
            'question': self.question,
            'options': list(self.options or []),
            'time_limit_seconds': self.time_limit_seconds,
        }
        if include_answer:
            data['correct_answer'] = self.correct_answer
            data['created_at'] = isoformat(self.created_at)
        return data
