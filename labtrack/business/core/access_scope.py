"""
Caller scoping

Every read of lab-owned rows goes through scope_to_caller, and every mutation
of a lab-owned row is guarded by ensure_lab_access. Admins see every lab;
custodians see only their assigned lab, and a custodian without a lab sees nothing.
"""

from dataclasses import dataclass
from typing import Optional
from sqlalchemy import false
from labtrack.business.core.errors import LabAuthorizationError


@dataclass(frozen=True)
class CallerScope:
    """Identity and role of the caller, detached from the ORM session"""
    user_id: int
    role: str
    lab_id: Optional[int] = None

    @property
    def is_admin(self) -> bool:
        from labtrack.data.core.user_info.user import User
        return self.role == User.ROLE_ADMIN

    @classmethod
    def from_user(cls, user) -> 'CallerScope':
        return cls(user_id=user.id, role=user.role, lab_id=user.lab_id)


def scope_to_caller(query, model, caller: CallerScope):
    """
    Restrict a query over a lab-owned model to what the caller may see.

    Args:
        query: SQLAlchemy query selecting model rows
        model: Mapped class with a lab_id column
        caller: CallerScope of the requesting user

    Returns:
        The filtered query
    """
    if caller.is_admin:
        return query
    if caller.lab_id is None:
        return query.filter(false())
    return query.filter(model.lab_id == caller.lab_id)


def can_access_lab(caller: CallerScope, lab_id) -> bool:
    if caller.is_admin:
        return True
    return caller.lab_id is not None and lab_id is not None and int(lab_id) == caller.lab_id


def ensure_lab_access(caller: CallerScope, lab_id, action='access'):
    """
    Raise LabAuthorizationError unless the caller may act on lab_id.

    Called before any mutation so nothing is written for an out-of-scope lab.
    """
    if not can_access_lab(caller, lab_id):
        raise LabAuthorizationError(
            f"You can only {action} records of your assigned laboratory",
            details=[{'lab_id': lab_id}]
        )


def ensure_admin(caller: CallerScope, action='perform this action'):
    if not caller.is_admin:
        raise LabAuthorizationError(f"Only an Admin can {action}")
