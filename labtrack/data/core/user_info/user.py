from labtrack import db, login_manager
from werkzeug.security import generate_password_hash, check_password_hash
from flask_login import UserMixin
from datetime import datetime
from labtrack.business.core.data_insertion_mixin import DataInsertionMixin


class User(UserMixin, DataInsertionMixin, db.Model):
    __tablename__ = 'users'

    ROLE_ADMIN = 'Admin'
    ROLE_CUSTODIAN = 'Custodian'
    ROLES = (ROLE_ADMIN, ROLE_CUSTODIAN)

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(80), unique=True, nullable=False)
    email = db.Column(db.String(120), unique=True, nullable=False)
    full_name = db.Column(db.String(150), nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(db.String(20), nullable=False, default=ROLE_CUSTODIAN)
    lab_id = db.Column(db.Integer, db.ForeignKey('laboratories.id', ondelete='SET NULL', use_alter=True, name='fk_users_lab_id'),
                       nullable=True, index=True)
    is_active = db.Column(db.Boolean, default=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    assigned_lab = db.relationship('Laboratory', foreign_keys=[lab_id], back_populates='users')

    def set_password(self, password):
        self.password_hash = generate_password_hash(password)

    def check_password(self, password):
        return check_password_hash(self.password_hash, password)

    @property
    def is_admin(self):
        return self.role == self.ROLE_ADMIN

    @property
    def is_custodian(self):
        return self.role == self.ROLE_CUSTODIAN

    def to_dict(self, include_audit_fields=True):
        result = super().to_dict(include_audit_fields=include_audit_fields)
        result['assigned_lab'] = (
            {'id': self.assigned_lab.id, 'lab_name': self.assigned_lab.lab_name, 'location': self.assigned_lab.location}
            if self.assigned_lab else None
        )
        result['has_lab'] = self.assigned_lab is not None
        return result

    def __repr__(self):
        return f'<User {self.username}>'


@login_manager.user_loader
def load_user(user_id):
    return db.session.get(User, int(user_id))
