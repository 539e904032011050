"""
Attempt Model
One student's sitting of a quiz
"""
from quizlink.extensions import db
from quizlink.utils.helpers import now_utc, isoformat


class Attempt(db.Model):
    """Attempt model"""
    __tablename__ = 'attempts'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False, index=True)
    quiz_id = db.Column(db.Integer, db.ForeignKey('quizzes.id', ondelete='CASCADE'), nullable=False, index=True)
    started_at = db.Column(db.DateTime(timezone=True), default=now_utc)
    submitted_at = db.Column(db.DateTime(timezone=True))
    total_score = db.Column(db.Integer, default=0)
    time_taken = db.Column(db.Integer)  # seconds from start to submission
    is_completed = db.Column(db.Boolean, nullable=False, default=False)
    updated_at = db.Column(db.DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    answers = db.relationship(
        'Answer', backref='attempt', lazy=True, cascade='all, delete-orphan',
        order_by='Answer.question_id'
    )

    __table_args__ = (
        db.UniqueConstraint('user_id', 'quiz_id', name='unique_attempt_per_quiz'),
    )

    def __repr__(self):
        return f'<Attempt {self.id} quiz={self.quiz_id} user={self.user_id}>'

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'quiz_id': self.quiz_id,
            'started_at': isoformat(self.started_at),
            'submitted_at': isoformat(self.submitted_at),
            'total_score': self.total_score,
            'time_taken': self.time_taken,
            'is_completed': self.is_completed,
        }
