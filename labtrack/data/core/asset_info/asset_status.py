from labtrack import db
from labtrack.business.core.data_insertion_mixin import DataInsertionMixin


class AssetStatus(DataInsertionMixin, db.Model):
    """Closed lookup set of asset statuses, inserted as critical data"""
    __tablename__ = 'asset_statuses'

    FUNCTIONAL = 'Functional'
    FOR_REPAIR = 'For Repair'

    id = db.Column(db.Integer, primary_key=True)
    status_name = db.Column(db.String(50), unique=True, nullable=False)

    @classmethod
    def by_name(cls, status_name):
        if not status_name:
            return None
        return cls.query.filter(db.func.lower(cls.status_name) == status_name.strip().lower()).first()

    def __repr__(self):
        return f'<AssetStatus {self.status_name}>'
