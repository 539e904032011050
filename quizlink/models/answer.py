"""
Answer Model
Stores individual question answers of an attempt
"""
from quizlink.extensions import db


class Answer(db.Model):
    """Answer model"""
    __tablename__ = 'answers'

    id = db.Column(db.Integer, primary_key=True)
    attempt_id = db.Column(db.Integer, db.ForeignKey('attempts.id', ondelete='CASCADE'), nullable=False, index=True)
    question_id = db.Column(db.Integer, db.ForeignKey('questions.id', ondelete='CASCADE'), nullable=False, index=True)
    selected_option = db.Column(db.Integer, nullable=True)  # NULL = skipped
    time_taken_seconds = db.Column(db.Integer, nullable=False, default=0)
    is_correct = db.Column(db.Boolean, nullable=False, default=False)
    marks_obtained = db.Column(db.Integer, nullable=False, default=0)

    __table_args__ = (
        db.UniqueConstraint(
            'attempt_id', 'question_id',
            name='unique_answer_per_question'
        ),
    )

    def __repr__(self):
        return f'<Answer Q{self.question_id} attempt={self.attempt_id}>'

    def to_dict(self):
        return {
            'question_id': self.question_id,
            'selected_option': self.selected_option,
            'time_taken_seconds': self.time_taken_seconds,
            'is_correct': self.is_correct,
            'marks_obtained': self.marks_obtained,
        }
