from labtrack.data.core.user_created_base import UserCreatedBase
from labtrack import db


class OneTimeLink(UserCreatedBase):
    """Single-use token a custodian hands out so one form can be submitted without login"""
    __tablename__ = 'one_time_links'

    token = db.Column(db.String(64), unique=True, nullable=False, index=True)
    lab_id = db.Column(db.Integer, db.ForeignKey('laboratories.id'), nullable=False)
    generated_by_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    expires_at = db.Column(db.DateTime, nullable=False)
    used_at = db.Column(db.DateTime)
    form_type = db.Column(db.String(30))
    form_id = db.Column(db.Integer)

    laboratory = db.relationship('Laboratory')
    generated_by = db.relationship('User', foreign_keys=[generated_by_id])

    def is_usable(self, now):
        return self.used_at is None and self.expires_at > now
