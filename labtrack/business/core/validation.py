"""
Payload field helpers shared by the managers

Each helper raises LabValidationError naming the offending field.
"""

from labtrack import db
from labtrack.business.core.errors import LabValidationError, LabNotFoundError


def require_fields(payload, fields):
    missing = [f for f in fields if payload.get(f) in (None, '')]
    if missing:
        raise LabValidationError(
            f"Missing required fields: {', '.join(missing)}",
            details=[{'field': f, 'error': 'required'} for f in missing]
        )


def as_int(value, field, required=True):
    if value is None or value == '':
        if required:
            raise LabValidationError(f"{field} is required", details=[{'field': field, 'error': 'required'}])
        return None
    if isinstance(value, bool):
        raise LabValidationError(f"{field} must be an integer", details=[{'field': field}])
    try:
        return int(value)
    except (TypeError, ValueError):
        raise LabValidationError(f"{field} must be an integer", details=[{'field': field}])


def clean_str(value):
    """Strip strings; empty strings become None"""
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def get_or_raise(model, entity_id, label=None, error=LabNotFoundError):
    """
    Load model by primary key.

    Raises:
        LabNotFoundError by default; LabValidationError when the id came from a
        payload field that must reference an existing row
    """
    instance = db.session.get(model, entity_id) if entity_id is not None else None
    if instance is None:
        raise error(f"{label or model.__name__} {entity_id} not found")
    return instance
