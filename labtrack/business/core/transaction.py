"""
Transaction scope used by the managers

Everything written inside atomic() is committed together or rolled back together.
"""

from contextlib import contextmanager
from sqlalchemy.exc import IntegrityError
from labtrack import db
from labtrack.business.core.errors import LabUniquenessError
from labtrack.logger import get_logger

logger = get_logger("labtrack.business.core.transaction")


@contextmanager
def atomic(description='operation'):
    """
    Commit on success, roll back on any exception.

    IntegrityError raised at flush or commit is re-raised as LabUniquenessError.
    """
    try:
        yield db.session
        db.session.commit()
    except IntegrityError as e:
        db.session.rollback()
        logger.warning(f"Integrity error during {description}: {e.orig}")
        raise LabUniquenessError(f"{description} conflicts with an existing record") from e
    except Exception:
        db.session.rollback()
        raise
