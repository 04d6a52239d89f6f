from labtrack.data.core.user_created_base import UserCreatedBase
from labtrack.business.core.data_insertion_mixin import DataInsertionMixin
from labtrack import db


class InventoryAsset(UserCreatedBase):
    __tablename__ = 'inventory_assets'

    lab_id = db.Column(db.Integer, db.ForeignKey('laboratories.id'), nullable=False, index=True)
    unit_id = db.Column(db.Integer, db.ForeignKey('units.id'), nullable=False)
    workstation_id = db.Column(db.Integer, db.ForeignKey('workstations.id', ondelete='SET NULL'),
                               nullable=True, index=True)

    laboratory = db.relationship('Laboratory', back_populates='assets')
    unit = db.relationship('Unit')
    workstation = db.relationship('Workstation', back_populates='assets')
    detail = db.relationship('AssetDetail', back_populates='asset', uselist=False,
                             cascade='all, delete-orphan')

    @property
    def unit_name(self):
        return self.unit.unit_name if self.unit else None

    @property
    def status_name(self):
        if self.detail and self.detail.status:
            return self.detail.status.status_name
        return None

    @property
    def property_tag_no(self):
        return self.detail.property_tag_no if self.detail else None

    def to_dict(self, include_audit_fields=True):
        result = super().to_dict(include_audit_fields=include_audit_fields)
        result['unit_name'] = self.unit_name
        result['lab_name'] = self.laboratory.lab_name if self.laboratory else None
        result['workstation_name'] = self.workstation.workstation_name if self.workstation else None
        result['status_name'] = self.status_name
        result['detail'] = self.detail.to_dict(include_audit_fields=False) if self.detail else None
        return result

    def __repr__(self):
        return f'<InventoryAsset {self.id} {self.unit_name}>'


class AssetDetail(DataInsertionMixin, db.Model):
    """Descriptive and mutable state of an asset; one row per asset"""
    __tablename__ = 'asset_details'

    # Fields a client may set through create/update payloads
    EDITABLE_FIELDS = ('description', 'property_tag_no', 'serial_number', 'quantity',
                       'date_of_purchase', 'asset_remarks', 'status_id')

    id = db.Column(db.Integer, primary_key=True)
    asset_id = db.Column(db.Integer, db.ForeignKey('inventory_assets.id', ondelete='CASCADE'),
                         unique=True, nullable=False)
    description = db.Column(db.String(255))
    property_tag_no = db.Column(db.String(100), unique=True, nullable=True)
    serial_number = db.Column(db.String(100))
    quantity = db.Column(db.Integer, default=1)
    date_of_purchase = db.Column(db.Date)
    asset_remarks = db.Column(db.Text)
    status_id = db.Column(db.Integer, db.ForeignKey('asset_statuses.id'), nullable=True)

    asset = db.relationship('InventoryAsset', back_populates='detail')
    status = db.relationship('AssetStatus')

    def to_dict(self, include_audit_fields=True):
        result = super().to_dict(include_audit_fields=include_audit_fields)
        result['status_name'] = self.status.status_name if self.status else None
        return result
