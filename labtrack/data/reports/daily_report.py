from labtrack.data.core.user_created_base import UserCreatedBase
from labtrack.business.core.data_insertion_mixin import DataInsertionMixin
from labtrack import db


class DailyReport(UserCreatedBase):
    """Daily accomplishment report (DAR) filed by a lab custodian"""
    __tablename__ = 'daily_reports'

    PENDING = 'Pending'
    APPROVED = 'Approved'
    STATUSES = (PENDING, APPROVED)

    lab_id = db.Column(db.Integer, db.ForeignKey('laboratories.id'), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'), nullable=True, index=True)
    report_date = db.Column(db.Date, nullable=False)
    general_remarks = db.Column(db.Text)
    status = db.Column(db.String(20), nullable=False, default=PENDING)

    laboratory = db.relationship('Laboratory')
    user = db.relationship('User', foreign_keys=[user_id])
    procedures = db.relationship('DailyReportProcedure', back_populates='report',
                                 cascade='all, delete-orphan', order_by='DailyReportProcedure.id')
    workstation_items = db.relationship('ReportWorkstationItem', back_populates='report',
                                        cascade='all, delete-orphan', order_by='ReportWorkstationItem.id')

    def to_dict(self, include_audit_fields=True, include_children=False):
        result = super().to_dict(include_audit_fields=include_audit_fields)
        result['lab_name'] = self.laboratory.lab_name if self.laboratory else None
        result['author'] = self.user.full_name if self.user else None
        if include_children:
            result['procedures'] = [p.to_dict(include_audit_fields=False) for p in self.procedures]
            result['workstation_items'] = [w.to_dict(include_audit_fields=False) for w in self.workstation_items]
        return result


class DailyReportProcedure(DataInsertionMixin, db.Model):
    __tablename__ = 'daily_report_procedures'

    id = db.Column(db.Integer, primary_key=True)
    daily_report_id = db.Column(db.Integer, db.ForeignKey('daily_reports.id', ondelete='CASCADE'), nullable=False)
    procedure_id = db.Column(db.Integer, db.ForeignKey('procedures.id'), nullable=False)
    overall_status = db.Column(db.String(50), nullable=False, default='Pending')
    overall_remarks = db.Column(db.Text)

    report = db.relationship('DailyReport', back_populates='procedures')
    procedure = db.relationship('Procedure')

    def to_dict(self, include_audit_fields=True):
        result = super().to_dict(include_audit_fields=include_audit_fields)
        result['procedure_name'] = self.procedure.procedure_name if self.procedure else None
        result['category'] = self.procedure.category if self.procedure else None
        return result


class ReportWorkstationItem(DataInsertionMixin, db.Model):
    """One workstation row of a daily report's checklist"""
    __tablename__ = 'report_workstation_items'

    id = db.Column(db.Integer, primary_key=True)
    daily_report_id = db.Column(db.Integer, db.ForeignKey('daily_reports.id', ondelete='CASCADE'), nullable=False)
    workstation_id = db.Column(db.Integer, db.ForeignKey('workstations.id', ondelete='CASCADE'), nullable=False)
    status = db.Column(db.String(50), nullable=False, default='Working')
    remarks = db.Column(db.Text)

    report = db.relationship('DailyReport', back_populates='workstation_items')
    workstation = db.relationship('Workstation')

    def to_dict(self, include_audit_fields=True):
        result = super().to_dict(include_audit_fields=include_audit_fields)
        result['workstation_name'] = self.workstation.workstation_name if self.workstation else None
        return result
