from labtrack.data.core.user_created_base import UserCreatedBase
from labtrack import db


class Laboratory(UserCreatedBase):
    __tablename__ = 'laboratories'

    lab_name = db.Column(db.String(100), unique=True, nullable=False)
    location = db.Column(db.String(200))
    description = db.Column(db.Text)

    users = db.relationship('User', foreign_keys='User.lab_id', back_populates='assigned_lab', lazy='dynamic')
    workstations = db.relationship('Workstation', back_populates='laboratory', lazy='dynamic')
    assets = db.relationship('InventoryAsset', back_populates='laboratory', lazy='dynamic')

    @property
    def custodian(self):
        """The single Custodian assigned to this lab, or None"""
        from labtrack.data.core.user_info.user import User
        return self.users.filter(User.role == User.ROLE_CUSTODIAN).first()

    def to_dict(self, include_audit_fields=True):
        result = super().to_dict(include_audit_fields=include_audit_fields)
        custodian = self.custodian
        result['custodian'] = (
            {'id': custodian.id, 'full_name': custodian.full_name, 'email': custodian.email}
            if custodian else None
        )
        return result

    def __repr__(self):
        return f'<Laboratory {self.lab_name}>'
