"""
Quiz Model
A quiz is open to students between start_time and end_time
"""
from quizlink.extensions import db
from quizlink.utils.helpers import now_utc, as_utc, isoformat


class Quiz(db.Model):
    """Quiz model"""
    __tablename__ = 'quizzes'

    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(200), nullable=False)
    start_time = db.Column(db.DateTime(timezone=True), nullable=False)
    end_time = db.Column(db.DateTime(timezone=True), nullable=False)
    created_by = db.Column(db.Integer, db.ForeignKey('profiles.id', ondelete='SET NULL'), nullable=True)
    shareable_link = db.Column(db.String(64), unique=True, nullable=False, index=True)
    created_at = db.Column(db.DateTime(timezone=True), default=now_utc)
    updated_at = db.Column(db.DateTime(timezone=True), default=now_utc, onupdate=now_utc)

    # Relationships
    questions = db.relationship(
        'Question', backref='quiz', lazy=True, order_by='Question.id',
        cascade='all, delete-orphan'
    )
    attempts = db.relationship(
        'Attempt', backref='quiz', lazy=True, cascade='all, delete-orphan'
    )

    def __repr__(self):
        return f'<Quiz {self.title}>'

    def has_started(self, now=None):
        return (now or now_utc()) >= as_utc(self.start_time)

    def has_ended(self, now=None, grace_seconds=0):
        now = now or now_utc()
        return (now - as_utc(self.end_time)).total_seconds() > grace_seconds

    def is_open(self, now=None):
        """True while the quiz is inside its availability window"""
        now = now or now_utc()
        return self.has_started(now) and not self.has_ended(now)

    def to_dict(self):
        return {
            'id': self.id,
            'title': self.title,
            'start_time': isoformat(self.start_time),
            'end_time': isoformat(self.end_time),
            'created_by': self.created_by,
            'shareable_link': self.shareable_link,
            'created_at': isoformat(self.created_at),
            'updated_at': isoformat(self.updated_at),
        }
