"""
Profile Model
Registered users; role decides admin access
"""
from quizlink.extensions import db
from quizlink.utils.helpers import now_utc, isoformat


class Profile(db.Model):
    """User profile model"""
    __tablename__ = 'profiles'

    ROLE_USER = 'user'
    ROLE_ADMIN = 'admin'

    id = db.Column(db.Integer, primary_key=True)
    full_name = db.Column(db.String(100), nullable=False)
    email = db.Column(db.String(254), unique=True, nullable=False, index=True)
    phone = db.Column(db.String(20), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(20), nullable=False, default=ROLE_USER)
    created_at = db.Column(db.DateTime(timezone=True), default=now_utc)

    attempts = db.relationship(
        'Attempt', backref='profile', lazy=True, cascade='all, delete-orphan'
    )

    def __repr__(self):
        return f'<Profile {self.email} ({self.role})>'

    @property
    def is_admin(self):
        return self.role == self.ROLE_ADMIN

    def to_dict(self):
        """Public representation (never includes the password hash)"""
        return {
            'id': self.id,
            'full_name': self.full_name,
            'email': self.email,
            'phone': self.phone,
            'role': self.role,
            'created_at': isoformat(self.created_at),
        }
