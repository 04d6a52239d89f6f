"""
LabManager - Domain service for laboratories
"""

import re
from typing import Any, Dict, Optional
from labtrack import db
from labtrack.data.core.laboratory import Laboratory
from labtrack.data.core.user_info.user import User
from labtrack.data.core.asset_info.asset import InventoryAsset
from labtrack.data.reports.daily_report import DailyReport
from labtrack.data.maintenance.service_log import ServiceLog
from labtrack.data.forms.form_request import FORM_MODELS
from labtrack.data.forms.one_time_link import OneTimeLink
from labtrack.business.core.access_scope import CallerScope, ensure_admin
from labtrack.business.core.errors import LabValidationError, LabUniquenessError, LabNotFoundError
from labtrack.business.core.transaction import atomic
from labtrack.business.core.validation import clean_str, get_or_raise
from labtrack.logger import get_logger

logger = get_logger("labtrack.business.users.lab_manager")


def normalize_lab_name(name) -> str:
    """Lower-case, treat hyphens as spaces and collapse whitespace"""
    return re.sub(r'\s+', ' ', str(name).replace('-', ' ')).strip().lower()


def find_lab(lab_ref) -> Optional[Laboratory]:
    """
    Resolve a laboratory from an id or a loosely spelled name.

    "Comp-Lab  1" and "comp lab 1" both resolve to "Comp Lab 1".
    """
    if lab_ref is None or lab_ref == '':
        return None
    if isinstance(lab_ref, int) or str(lab_ref).strip().isdigit():
        lab = db.session.get(Laboratory, int(lab_ref))
        if lab is not None:
            return lab
    wanted = normalize_lab_name(lab_ref)
    lab = Laboratory.query.filter(Laboratory.lab_name == str(lab_ref).strip()).first()
    if lab is not None:
        return lab
    for candidate in Laboratory.query.order_by(Laboratory.id).all():
        if normalize_lab_name(candidate.lab_name) == wanted:
            return candidate
    return None


class LabManager:
    """
    Laboratory writes are Admin only. Lab names are unique, and a lab cannot be
    deleted while users, assets, workstations, reports or forms still reference it.
    """

    def __init__(self, caller: CallerScope):
        self.caller = caller

    @staticmethod
    def _ensure_name_available(lab_name, exclude_id=None):
        query = Laboratory.query.filter(db.func.lower(Laboratory.lab_name) == lab_name.lower())
        if exclude_id is not None:
            query = query.filter(Laboratory.id != exclude_id)
        if query.first() is not None:
            raise LabUniquenessError(f"Laboratory {lab_name} already exists", details=[{'field': 'lab_name'}])

    def create(self, payload: Dict[str, Any]) -> Laboratory:
        ensure_admin(self.caller, 'create laboratories')
        lab_name = clean_str(payload.get('lab_name'))
        if not lab_name:
            raise LabValidationError("lab_name is required", details=[{'field': 'lab_name'}])
        self._ensure_name_available(lab_name)

        with atomic('laboratory creation'):
            lab = Laboratory.from_dict({
                'lab_name': lab_name,
                'location': clean_str(payload.get('location')),
                'description': clean_str(payload.get('description')),
            }, user_id=self.caller.user_id)
            db.session.add(lab)
        logger.info(f"Laboratory {lab.id} '{lab.lab_name}' created")
        return lab

    def update(self, lab_id: int, payload: Dict[str, Any]) -> Laboratory:
        ensure_admin(self.caller, 'update laboratories')
        lab = get_or_raise(Laboratory, lab_id, 'Laboratory')

        updates = {}
        if 'lab_name' in payload:
            lab_name = clean_str(payload['lab_name'])
            if not lab_name:
                raise LabValidationError("lab_name cannot be empty", details=[{'field': 'lab_name'}])
            self._ensure_name_available(lab_name, exclude_id=lab.id)
            updates['lab_name'] = lab_name
        for field in ('location', 'description'):
            if field in payload:
                updates[field] = clean_str(payload[field])

        with atomic('laboratory update'):
            lab.update_from_dict(updates, user_id=self.caller.user_id)
        return lab

    def delete(self, lab_id: int) -> None:
        ensure_admin(self.caller, 'delete laboratories')
        lab = get_or_raise(Laboratory, lab_id, 'Laboratory')

        blockers = {
            'users': User.query.filter(User.lab_id == lab.id).count(),
            'assets': InventoryAsset.query.filter(InventoryAsset.lab_id == lab.id).count(),
            'workstations': lab.workstations.count(),
            'daily_reports': DailyReport.query.filter(DailyReport.lab_id == lab.id).count(),
            'service_logs': ServiceLog.query.filter(ServiceLog.lab_id == lab.id).count(),
        }
        for model in FORM_MODELS.values():
            blockers[model.__tablename__] = model.query.filter(model.lab_id == lab.id).count()
        in_use = {name: count for name, count in blockers.items() if count}
        if in_use:
            raise LabValidationError(
                f"Laboratory {lab.lab_name} is still referenced by "
                + ', '.join(f"{count} {name.replace('_', ' ')}" for name, count in in_use.items()),
                details=[in_use]
            )

        with atomic('laboratory deletion'):
            OneTimeLink.query.filter(OneTimeLink.lab_id == lab.id).delete(synchronize_session=False)
            db.session.delete(lab)
        logger.info(f"Laboratory {lab_id} deleted by user {self.caller.user_id}")

    @staticmethod
    def resolve(lab_ref) -> Laboratory:
        lab = find_lab(lab_ref)
        if lab is None:
            raise LabNotFoundError(f"Laboratory {lab_ref} not found")
        return lab
