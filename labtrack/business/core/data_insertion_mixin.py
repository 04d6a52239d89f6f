"""
Generic data insertion mixin for SQLAlchemy models
Provides from_dict, update_from_dict and to_dict for the JSON API

Lives in the business layer: it owns the audit fields (created_by_id,
updated_by_id) and the wire shape of every model.
"""

from datetime import datetime, date
from sqlalchemy import inspect
from labtrack.logger import get_logger

logger = get_logger("labtrack.business.core.data_insertion")

AUDIT_FIELDS = ('created_at', 'updated_at', 'created_by_id', 'updated_by_id')


class DataInsertionMixin:
    """
    Mixin that provides generic data insertion capabilities for SQLAlchemy models

    This mixin adds:
    - from_dict(): Create model instance from dictionary
    - update_from_dict(): Apply a partial update from a dictionary
    - to_dict(): Convert model instance to dictionary
    """

    # Columns that API payloads may never set directly
    protected_fields = ('id',) + AUDIT_FIELDS

    @classmethod
    def _column_keys(cls):
        return {c.key for c in inspect(cls).columns}

    @classmethod
    def from_dict(cls, data_dict, user_id=None, skip_fields=None):
        """
        Create a model instance from a dictionary

        Args:
            data_dict (dict): Dictionary containing model data
            user_id (int, optional): User ID for audit fields
            skip_fields (list, optional): Fields to skip during creation

        Returns:
            Model instance (not saved to database)
        """
        skip = set(skip_fields or []) | set(cls.protected_fields)
        columns = cls._column_keys()

        filtered_data = {}
        for key, value in data_dict.items():
            if key in columns and key not in skip:
                if key == 'password' and hasattr(cls, 'set_password'):
                    continue
                filtered_data[key] = value

        instance = cls(**filtered_data)

        if 'password' in data_dict and hasattr(instance, 'set_password'):
            instance.set_password(data_dict['password'])

        if user_id is not None:
            if hasattr(instance, 'created_by_id') and not instance.created_by_id:
                instance.created_by_id = user_id
            if hasattr(instance, 'updated_by_id'):
                instance.updated_by_id = user_id

        return instance

    @classmethod
    def find_or_create_from_dict(cls, data_dict, user_id=None, lookup_fields=None):
        """
        Find an existing instance or add a new one to the session

        Args:
            data_dict (dict): Dictionary containing model data
            user_id (int, optional): User ID for audit fields
            lookup_fields (list, optional): Fields to use for lookup (default: unique fields)

        Returns:
            tuple: (instance, created) where created is boolean
        """
        from labtrack import db

        if lookup_fields is None:
            lookup_fields = [c.key for c in inspect(cls).columns if c.unique and c.key in data_dict]

        lookup_data = {field: data_dict[field] for field in lookup_fields if field in data_dict}
        if lookup_data:
            existing = cls.query.filter_by(**lookup_data).first()
            if existing:
                logger.debug(f"Found existing {cls.__name__}: {existing}")
                return existing, False

        instance = cls.from_dict(data_dict, user_id=user_id)
        db.session.add(instance)
        db.session.flush()
        return instance, True

    def update_from_dict(self, data_dict, user_id=None, allowed_fields=None):
        """
        Apply the keys present in data_dict to this instance.

        Keys that are absent are left untouched, so callers can send partial updates.

        Returns:
            set: Names of the fields that were assigned
        """
        columns = self._column_keys()
        changed = set()
        for key, value in data_dict.items():
            if key not in columns or key in self.protected_fields:
                continue
            if allowed_fields is not None and key not in allowed_fields:
                continue
            setattr(self, key, value)
            changed.add(key)

        if user_id is not None and hasattr(self, 'updated_by_id'):
            self.updated_by_id = user_id
        return changed

    def to_dict(self, include_audit_fields=True):
        """
        Convert model instance to dictionary

        Args:
            include_audit_fields (bool): Whether to include audit fields

        Returns:
            dict: Dictionary representation of the model
        """
        result = {}
        for column in inspect(self.__class__).columns:
            if column.key == 'password_hash':
                continue
            if not include_audit_fields and column.key in AUDIT_FIELDS:
                continue
            value = getattr(self, column.key)
            if isinstance(value, (datetime, date)):
                result[column.key] = value.isoformat()
            else:
                result[column.key] = value
        return result
