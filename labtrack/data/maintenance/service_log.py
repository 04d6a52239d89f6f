from labtrack.data.core.user_created_base import UserCreatedBase
from labtrack.business.core.data_insertion_mixin import DataInsertionMixin
from labtrack import db


class ServiceLog(UserCreatedBase):
    """Append-only record of one service performed on a workstation"""
    __tablename__ = 'service_logs'

    ROUTINE = 'ROUTINE'
    REPAIR = 'REPAIR'
    REPLACE = 'REPLACE'
    UPGRADE = 'UPGRADE'
    SERVICE_TYPES = (ROUTINE, REPAIR, REPLACE, UPGRADE)

    pmc_id = db.Column(db.Integer, db.ForeignKey('pmc_reports.id', ondelete='SET NULL'), nullable=True)
    workstation_id = db.Column(db.Integer, db.ForeignKey('workstations.id', ondelete='SET NULL'),
                               nullable=True, index=True)
    lab_id = db.Column(db.Integer, db.ForeignKey('laboratories.id'), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    fiscal_year = db.Column(db.Integer, nullable=False)
    quarter = db.Column(db.String(3), nullable=False)
    service_date = db.Column(db.Date, nullable=False)
    service_type = db.Column(db.String(20), nullable=False)
    remarks = db.Column(db.Text)
    workstation_status_before = db.Column(db.String(50))
    workstation_status_after = db.Column(db.String(50))

    pmc_report = db.relationship('PMCReport', back_populates='service_logs')
    workstation = db.relationship('Workstation')
    user = db.relationship('User', foreign_keys=[user_id])
    actions = db.relationship('ServiceLogAssetAction', back_populates='service_log',
                              cascade='all, delete-orphan', order_by='ServiceLogAssetAction.id')

    def to_dict(self, include_audit_fields=True):
        result = super().to_dict(include_audit_fields=include_audit_fields)
        result['workstation_name'] = self.workstation.workstation_name if self.workstation else None
        result['technician'] = self.user.full_name if self.user else None
        result['asset_actions'] = [a.to_dict(include_audit_fields=False) for a in self.actions]
        return result


class ServiceLogAssetAction(DataInsertionMixin, db.Model):
    __tablename__ = 'service_log_asset_actions'

    CHECKED = 'CHECKED'
    REPAIRED = 'REPAIRED'
    REPLACED = 'REPLACED'
    UPGRADED = 'UPGRADED'

    # Asset action written for each repair-flow service type
    ACTION_FOR_SERVICE = {
        ServiceLog.REPAIR: REPAIRED,
        ServiceLog.REPLACE: REPLACED,
        ServiceLog.UPGRADE: UPGRADED,
    }

    id = db.Column(db.Integer, primary_key=True)
    service_log_id = db.Column(db.Integer, db.ForeignKey('service_logs.id', ondelete='CASCADE'), nullable=False)
    asset_id = db.Column(db.Integer, db.ForeignKey('inventory_assets.id', ondelete='SET NULL'), nullable=True)
    action = db.Column(db.String(20), nullable=False)
    status_before = db.Column(db.String(50))
    status_after = db.Column(db.String(50))
    old_property_tag = db.Column(db.String(100))
    new_property_tag = db.Column(db.String(100))
    old_serial_number = db.Column(db.String(100))
    new_serial_number = db.Column(db.String(100))
    new_description = db.Column(db.String(255))

    service_log = db.relationship('ServiceLog', back_populates='actions')
    asset = db.relationship('InventoryAsset')

    def to_dict(self, include_audit_fields=True):
        result = super().to_dict(include_audit_fields=include_audit_fields)
        result['unit_name'] = self.asset.unit_name if self.asset else None
        return result
