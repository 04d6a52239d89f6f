from labtrack.data.core.user_created_base import UserCreatedBase
from labtrack.business.core.data_insertion_mixin import DataInsertionMixin
from labtrack import db


class PMCReport(UserCreatedBase):
    """
    Quarterly preventive maintenance (QPMC) report.

    One row per workstation per fiscal year and quarter. Repeated services in the
    same quarter update this row and bump service_count; history lives in ServiceLog.
    """
    __tablename__ = 'pmc_reports'
    __table_args__ = (
        db.UniqueConstraint('workstation_id', 'fiscal_year', 'quarter', name='uq_pmc_report_quarter'),
    )

    # Network and software fields overwritten on every service
    NETWORK_FIELDS = (
        'software_name', 'software_status',
        'connectivity_type', 'connectivity_type_status',
        'connectivity_speed', 'connectivity_speed_status',
    )

    lab_id = db.Column(db.Integer, db.ForeignKey('laboratories.id'), nullable=False, index=True)
    workstation_id = db.Column(db.Integer, db.ForeignKey('workstations.id'), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    report_date = db.Column(db.Date, nullable=False)
    fiscal_year = db.Column(db.Integer, nullable=False)
    quarter = db.Column(db.String(3), nullable=False)
    workstation_status = db.Column(db.String(50), nullable=False)
    overall_remarks = db.Column(db.Text)
    software_name = db.Column(db.String(150))
    software_status = db.Column(db.String(50))
    connectivity_type = db.Column(db.String(50))
    connectivity_type_status = db.Column(db.String(50))
    connectivity_speed = db.Column(db.String(50))
    connectivity_speed_status = db.Column(db.String(50))
    service_count = db.Column(db.Integer, nullable=False, default=1)

    laboratory = db.relationship('Laboratory')
    workstation = db.relationship('Workstation')
    user = db.relationship('User', foreign_keys=[user_id])
    procedures = db.relationship('PMCReportProcedure', back_populates='report',
                                 cascade='all, delete-orphan')
    service_logs = db.relationship('ServiceLog', back_populates='pmc_report',
                                   order_by='ServiceLog.id.desc()')

    def to_dict(self, include_audit_fields=True):
        result = super().to_dict(include_audit_fields=include_audit_fields)
        result['workstation_name'] = self.workstation.workstation_name if self.workstation else None
        result['lab_name'] = self.laboratory.lab_name if self.laboratory else None
        result['technician'] = self.user.full_name if self.user else None
        result['procedures'] = [p.to_dict() for p in self.procedures]
        return result

    def __repr__(self):
        return f'<PMCReport ws={self.workstation_id} {self.fiscal_year} {self.quarter}>'


class PMCReportProcedure(DataInsertionMixin, db.Model):
    __tablename__ = 'pmc_report_procedures'

    id = db.Column(db.Integer, primary_key=True)
    pmc_report_id = db.Column(db.Integer, db.ForeignKey('pmc_reports.id', ondelete='CASCADE'), nullable=False)
    procedure_id = db.Column(db.Integer, db.ForeignKey('procedures.id'), nullable=False)
    is_checked = db.Column(db.Boolean, nullable=False, default=True)

    report = db.relationship('PMCReport', back_populates='procedures')
    procedure = db.relationship('Procedure')

    def to_dict(self, include_audit_fields=True):
        result = super().to_dict(include_audit_fields=include_audit_fields)
        result['procedure_name'] = self.procedure.procedure_name if self.procedure else None
        return result
