from labtrack import db
from labtrack.business.core.data_insertion_mixin import DataInsertionMixin


class DeviceType(DataInsertionMixin, db.Model):
    __tablename__ = 'device_types'

    id = db.Column(db.Integer, primary_key=True)
    device_type_name = db.Column(db.String(100), unique=True, nullable=False)

    units = db.relationship('Unit', back_populates='device_type', lazy='dynamic')

    def __repr__(self):
        return f'<DeviceType {self.device_type_name}>'


class Unit(DataInsertionMixin, db.Model):
    """Unit type of an asset (CPU, RAM, Keyboard...)"""
    __tablename__ = 'units'

    id = db.Column(db.Integer, primary_key=True)
    unit_name = db.Column(db.String(100), unique=True, nullable=False)
    device_type_id = db.Column(db.Integer, db.ForeignKey('device_types.id'), nullable=True)

    device_type = db.relationship('DeviceType', back_populates='units')

    def to_dict(self, include_audit_fields=True):
        result = super().to_dict(include_audit_fields=include_audit_fields)
        result['device_type_name'] = self.device_type.device_type_name if self.device_type else None
        return result

    def __repr__(self):
        return f'<Unit {self.unit_name}>'
