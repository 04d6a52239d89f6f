from labtrack.data.core.user_created_base import UserCreatedBase
from labtrack import db


class Workstation(UserCreatedBase):
    __tablename__ = 'workstations'
    __table_args__ = (
        db.UniqueConstraint('lab_id', 'workstation_name', name='uq_workstation_name_per_lab'),
    )

    lab_id = db.Column(db.Integer, db.ForeignKey('laboratories.id'), nullable=False, index=True)
    workstation_name = db.Column(db.String(100), nullable=False)
    workstation_remarks = db.Column(db.Text)

    laboratory = db.relationship('Laboratory', back_populates='workstations')
    assets = db.relationship('InventoryAsset', back_populates='workstation')

    def __repr__(self):
        return f'<Workstation {self.workstation_name}>'
