"""
UserManager - Domain service for user accounts and lab assignments
"""

from typing import Any, Dict, Optional
from labtrack import db
from labtrack.data.core.laboratory import Laboratory
from labtrack.data.core.user_info.user import User
from labtrack.business.core.access_scope import CallerScope, ensure_admin
from labtrack.business.core.errors import LabValidationError, LabUniquenessError
from labtrack.business.core.transaction import atomic
from labtrack.business.core.validation import as_int, clean_str, get_or_raise
from labtrack.logger import get_logger

logger = get_logger("labtrack.business.users.user_manager")

MIN_PASSWORD_LENGTH = 8


class UserManager:
    """
    User management is Admin only.

    A laboratory has at most one Custodian; every path that sets a user's lab
    or role goes through _ensure_custodian_slot.
    """

    def __init__(self, caller: CallerScope):
        self.caller = caller

    @staticmethod
    def _ensure_custodian_slot(lab_id: Optional[int], role: str, user_id: Optional[int] = None):
        if lab_id is None or role != User.ROLE_CUSTODIAN:
            return
        existing = User.query.filter(User.lab_id == lab_id, User.role == User.ROLE_CUSTODIAN).first()
        if existing is not None and existing.id != user_id:
            raise LabValidationError(
                "This laboratory already has a custodian assigned. Only one custodian per laboratory is allowed.",
                details=[{'lab_id': lab_id, 'custodian_id': existing.id}]
            )

    @staticmethod
    def _validate_role(role):
        if role not in User.ROLES:
            raise LabValidationError(f"Invalid role: {role}", details=[{'field': 'role', 'allowed': list(User.ROLES)}])

    @staticmethod
    def _ensure_unique(field, value, exclude_id=None):
        query = User.query.filter(getattr(User, field) == value)
        if exclude_id is not None:
            query = query.filter(User.id != exclude_id)
        if query.first() is not None:
            raise LabUniquenessError(f"User with this {field} already exists", details=[{'field': field}])

    def create(self, payload: Dict[str, Any]) -> User:
        ensure_admin(self.caller, 'create users')
        email = clean_str(payload.get('email'))
        full_name = clean_str(payload.get('full_name'))
        password = payload.get('password') or ''
        if not email or not full_name:
            raise LabValidationError("email and full_name are required")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise LabValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
                                     details=[{'field': 'password'}])
        username = clean_str(payload.get('username')) or email
        role = clean_str(payload.get('role')) or User.ROLE_CUSTODIAN
        self._validate_role(role)
        lab_id = as_int(payload.get('lab_id'), 'lab_id', required=False)
        if lab_id is not None:
            get_or_raise(Laboratory, lab_id, 'Laboratory', error=LabValidationError)

        self._ensure_unique('email', email)
        self._ensure_unique('username', username)
        self._ensure_custodian_slot(lab_id, role)

        with atomic('user creation'):
            user = User.from_dict({
                'username': username,
                'email': email,
                'full_name': full_name,
                'role': role,
                'lab_id': lab_id,
                'password': password,
            })
            db.session.add(user)
        logger.info(f"User {user.id} ({user.role}) created by user {self.caller.user_id}")
        return user

    def update(self, user_id: int, payload: Dict[str, Any]) -> User:
        ensure_admin(self.caller, 'update users')
        user = get_or_raise(User, user_id, 'User')

        updates = {}
        for field in ('full_name', 'email', 'username'):
            if field in payload:
                value = clean_str(payload[field])
                if not value:
                    raise LabValidationError(f"{field} cannot be empty", details=[{'field': field}])
                if field != 'full_name' and value != getattr(user, field):
                    self._ensure_unique(field, value, exclude_id=user.id)
                updates[field] = value
        if 'role' in payload:
            role = clean_str(payload['role'])
            self._validate_role(role)
            if user.id == self.caller.user_id and role != User.ROLE_ADMIN:
                raise LabValidationError("You cannot remove your own Admin role")
            updates['role'] = role
        if 'is_active' in payload:
            updates['is_active'] = bool(payload['is_active'])

        self._ensure_custodian_slot(user.lab_id, updates.get('role', user.role), user.id)

        with atomic('user update'):
            user.update_from_dict(updates)
            if payload.get('password'):
                if len(payload['password']) < MIN_PASSWORD_LENGTH:
                    raise LabValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
                                             details=[{'field': 'password'}])
                user.set_password(payload['password'])
        return user

    def assign_lab(self, user_id, lab_id) -> User:
        """Assign a user to a lab, or clear the assignment when lab_id is None"""
        ensure_admin(self.caller, 'assign laboratories')
        user = get_or_raise(User, as_int(user_id, 'user_id'), 'User')
        lab_id = as_int(lab_id, 'lab_id', required=False)
        if lab_id is not None:
            get_or_raise(Laboratory, lab_id, 'Laboratory')
            self._ensure_custodian_slot(lab_id, user.role, user.id)

        with atomic('lab assignment'):
            user.lab_id = lab_id
        logger.info(f"User {user.id} assigned to lab {lab_id}")
        return user

    def delete(self, user_id: int) -> None:
        ensure_admin(self.caller, 'delete users')
        user = get_or_raise(User, user_id, 'User')
        if user.id == self.caller.user_id:
            raise LabValidationError("Cannot delete your own account")
        with atomic('user deletion'):
            db.session.delete(user)
        logger.info(f"User {user_id} deleted by user {self.caller.user_id}")
