from labtrack.data.core.user_created_base import UserCreatedBase
from sqlalchemy.ext.declarative import declared_attr
from labtrack import db


class FormRequestBase(UserCreatedBase):
    """
    Abstract base for request forms routed through custodian and admin approval.

    user_id is the custodian the form is assigned to; status values are owned by
    the form state machines in labtrack.business.forms.state_machine.
    """
    __abstract__ = True

    # Fields accepted when a form is submitted
    SUBMIT_FIELDS = ()
    # Fields the assigned custodian may edit after submission
    DETAIL_FIELDS = ()
    FORM_TYPE = None

    status = db.Column(db.String(30), nullable=False, default='Pending')
    date = db.Column(db.Date, nullable=False)
    remarks = db.Column(db.Text)
    monitored_by = db.Column(db.String(150))
    requested_by = db.Column(db.String(150))
    approved_by = db.Column(db.String(150))
    rejection_reason = db.Column(db.Text)
    submitted_via = db.Column(db.String(20), nullable=False, default='portal')
    custodian_approved_at = db.Column(db.DateTime)
    admin_approved_at = db.Column(db.DateTime)

    @declared_attr
    def lab_id(cls):
        return db.Column(db.Integer, db.ForeignKey('laboratories.id'), nullable=False, index=True)

    @declared_attr
    def user_id(cls):
        return db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'), nullable=True, index=True)

    @declared_attr
    def custodian_approved_by_id(cls):
        return db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'), nullable=True)

    @declared_attr
    def admin_approved_by_id(cls):
        return db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'), nullable=True)

    @declared_attr
    def laboratory(cls):
        return db.relationship('Laboratory')

    @declared_attr
    def user(cls):
        return db.relationship('User', foreign_keys=lambda: [cls.user_id])

    def to_dict(self, include_audit_fields=True):
        result = super().to_dict(include_audit_fields=include_audit_fields)
        result['form_type'] = self.FORM_TYPE
        result['lab_name'] = self.laboratory.lab_name if self.laboratory else None
        result['custodian'] = (
            {'full_name': self.user.full_name, 'email': self.user.email} if self.user else None
        )
        return result


class LabRequest(FormRequestBase):
    __tablename__ = 'lab_requests'

    FORM_TYPE = 'lab-request'
    SUBMIT_FIELDS = ('date', 'usage_type', 'faculty_student_name', 'year_level', 'printing_pages',
                     'ws_number', 'time_in', 'time_out', 'purpose', 'requested_by', 'approved_by',
                     'remarks')
    DETAIL_FIELDS = ('time_out', 'remarks')

    usage_type = db.Column(db.String(50))
    faculty_student_name = db.Column(db.String(150), nullable=False)
    year_level = db.Column(db.String(50))
    printing_pages = db.Column(db.String(50))
    ws_number = db.Column(db.String(50))
    time_in = db.Column(db.String(10))
    time_out = db.Column(db.String(10))
    purpose = db.Column(db.Text)


class EquipmentBorrow(FormRequestBase):
    __tablename__ = 'equipment_borrows'

    FORM_TYPE = 'equipment-borrow'
    SUBMIT_FIELDS = ('date', 'faculty_student_name', 'year_level', 'release_time', 'returned_time',
                     'equipment_list', 'purpose', 'requested_by', 'approved_by', 'remarks')
    DETAIL_FIELDS = ('returned_time', 'remarks')

    faculty_student_name = db.Column(db.String(150), nullable=False)
    year_level = db.Column(db.String(50))
    release_time = db.Column(db.String(10))
    returned_time = db.Column(db.String(10))
    equipment_list = db.Column(db.Text)
    purpose = db.Column(db.Text)


class SoftwareInstallation(FormRequestBase):
    __tablename__ = 'software_installations'

    FORM_TYPE = 'software-installation'
    SUBMIT_FIELDS = ('date', 'faculty_name', 'software_list', 'requested_by', 'installation_remarks',
                     'prepared_by')
    DETAIL_FIELDS = ('installation_remarks', 'feedback_date')

    faculty_name = db.Column(db.String(150), nullable=False)
    software_list = db.Column(db.Text, nullable=False)
    installation_remarks = db.Column(db.Text)
    prepared_by = db.Column(db.String(150))
    feedback_date = db.Column(db.Date)


FORM_MODELS = {model.FORM_TYPE: model for model in (LabRequest, EquipmentBorrow, SoftwareInstallation)}
