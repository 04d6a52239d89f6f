from labtrack import db
from labtrack.business.core.data_insertion_mixin import DataInsertionMixin


class Procedure(DataInsertionMixin, db.Model):
    """Checklist procedure used by daily (DAR) and quarterly (QPMC) reports"""
    __tablename__ = 'procedures'
    __table_args__ = (
        db.UniqueConstraint('procedure_name', 'category', name='uq_procedure_name_category'),
    )

    CATEGORY_DAR = 'DAR'
    CATEGORY_QPMC = 'QPMC'
    CATEGORIES = (CATEGORY_DAR, CATEGORY_QPMC)

    id = db.Column(db.Integer, primary_key=True)
    procedure_name = db.Column(db.String(150), nullable=False)
    category = db.Column(db.String(10), nullable=False)

    def __repr__(self):
        return f'<Procedure {self.category}:{self.procedure_name}>'
