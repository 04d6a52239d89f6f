"""
Directory Service
Read-only presentation of laboratories and users with their assignments.
"""

from typing import Dict, List
from labtrack import db
from labtrack.data.core.laboratory import Laboratory
from labtrack.data.core.user_info.user import User
from labtrack.business.core.access_scope import CallerScope, ensure_admin, ensure_lab_access
from labtrack.business.core.errors import LabNotFoundError


class DirectoryService:

    @staticmethod
    def list_laboratories(caller: CallerScope) -> List[Dict]:
        """Every lab for Admins; a custodian sees only their assigned lab"""
        query = Laboratory.query
        if not caller.is_admin:
            if caller.lab_id is None:
                return []
            query = query.filter(Laboratory.id == caller.lab_id)
        return [lab.to_dict() for lab in query.order_by(Laboratory.lab_name).all()]

    @staticmethod
    def get_laboratory(caller: CallerScope, lab_id: int) -> Dict:
        lab = db.session.get(Laboratory, lab_id)
        if lab is None:
            raise LabNotFoundError(f"Laboratory {lab_id} not found")
        ensure_lab_access(caller, lab.id, action='view')
        result = lab.to_dict()
        result['workstation_count'] = lab.workstations.count()
        result['asset_count'] = lab.assets.count()
        return result

    @staticmethod
    def list_users(caller: CallerScope, role=None, lab_id=None) -> List[Dict]:
        ensure_admin(caller, 'list users')
        query = User.query
        if role:
            query = query.filter(User.role == role)
        if lab_id:
            query = query.filter(User.lab_id == lab_id)
        return [user.to_dict(include_audit_fields=False) for user in query.order_by(User.full_name).all()]

    @staticmethod
    def get_user(caller: CallerScope, user_id: int) -> Dict:
        if not caller.is_admin and user_id != caller.user_id:
            ensure_admin(caller, 'view other users')
        user = db.session.get(User, user_id)
        if user is None:
            raise LabNotFoundError(f"User {user_id} not found")
        return user.to_dict(include_audit_fields=False)

    @staticmethod
    def assigned_lab(user: User) -> Dict:
        """The caller's lab assignment, shaped for the profile page"""
        lab = user.assigned_lab
        return {
            'has_lab': lab is not None,
            'laboratory': lab.to_dict(include_audit_fields=False) if lab else None,
        }
