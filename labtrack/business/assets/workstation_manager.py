"""
WorkstationManager - Domain service for workstation writes
"""

from typing import Any, Dict, List
from labtrack import db
from labtrack.data.core.laboratory import Laboratory
from labtrack.data.core.asset_info.asset import InventoryAsset
from labtrack.data.core.asset_info.workstation import Workstation
from labtrack.data.maintenance.pmc_report import PMCReport
from labtrack.data.maintenance.service_log import ServiceLog
from labtrack.data.reports.daily_report import ReportWorkstationItem
from labtrack.business.core.access_scope import CallerScope, ensure_lab_access
from labtrack.business.core.errors import LabValidationError, LabUniquenessError
from labtrack.business.core.transaction import atomic
from labtrack.business.core.validation import as_int, clean_str, get_or_raise
from labtrack.logger import get_logger

logger = get_logger("labtrack.business.assets.workstation_manager")


class WorkstationManager:
    """
    Domain service for workstations.

    Workstation names are unique per laboratory. Deleting a workstation keeps
    its assets (unassigned) and its service logs, and removes its daily checklist
    items and PMC reports.
    """

    def __init__(self, caller: CallerScope):
        self.caller = caller

    def _validate_row(self, row: Dict[str, Any]) -> Dict[str, Any]:
        name = clean_str(row.get('workstation_name'))
        if not name:
            raise LabValidationError("workstation_name is required", details=[{'field': 'workstation_name'}])
        lab_id = as_int(row.get('lab_id'), 'lab_id')
        get_or_raise(Laboratory, lab_id, 'Laboratory', error=LabValidationError)
        ensure_lab_access(self.caller, lab_id, action='add workstations to')
        return {
            'workstation_name': name,
            'lab_id': lab_id,
            'workstation_remarks': clean_str(row.get('workstation_remarks')),
        }

    @staticmethod
    def _name_taken(lab_id, name, exclude_id=None) -> bool:
        query = Workstation.query.filter(Workstation.lab_id == lab_id, Workstation.workstation_name == name)
        if exclude_id is not None:
            query = query.filter(Workstation.id != exclude_id)
        return query.first() is not None

    def create(self, payload: Dict[str, Any]) -> Workstation:
        values = self._validate_row(payload)
        if self._name_taken(values['lab_id'], values['workstation_name']):
            raise LabUniquenessError(
                f"Workstation {values['workstation_name']} already exists in this laboratory",
                details=[{'field': 'workstation_name'}]
            )
        with atomic('workstation creation'):
            workstation = Workstation.from_dict(values, user_id=self.caller.user_id)
            db.session.add(workstation)
        logger.info(f"Workstation {workstation.id} created in lab {workstation.lab_id}")
        return workstation

    def batch_create(self, rows: List[Dict[str, Any]]) -> List[Workstation]:
        """Create every workstation or none; duplicate names reject the batch"""
        if not isinstance(rows, list) or not rows:
            raise LabValidationError("Expected a non-empty list of workstations")

        validated = []
        seen = set()
        for index, row in enumerate(rows):
            if not isinstance(row, dict):
                raise LabValidationError(f"Workstation #{index + 1} is not an object", details=[{'index': index}])
            try:
                values = self._validate_row(row)
            except LabValidationError as e:
                e.details.append({'index': index})
                raise
            key = (values['lab_id'], values['workstation_name'])
            if key in seen or self._name_taken(*key):
                raise LabUniquenessError(
                    f"Duplicate workstation name {values['workstation_name']} in lab {values['lab_id']}",
                    details=[{'index': index, 'field': 'workstation_name'}]
                )
            seen.add(key)
            validated.append(values)

        with atomic('batch workstation creation'):
            workstations = [Workstation.from_dict(values, user_id=self.caller.user_id) for values in validated]
            db.session.add_all(workstations)
        logger.info(f"Batch created {len(workstations)} workstations")
        return workstations

    def update(self, workstation_id: int, payload: Dict[str, Any]) -> Workstation:
        workstation = get_or_raise(Workstation, workstation_id, 'Workstation')
        ensure_lab_access(self.caller, workstation.lab_id, action='update workstations of')

        updates = {}
        if 'workstation_name' in payload:
            name = clean_str(payload['workstation_name'])
            if not name:
                raise LabValidationError("workstation_name cannot be empty", details=[{'field': 'workstation_name'}])
            updates['workstation_name'] = name
        if 'workstation_remarks' in payload:
            updates['workstation_remarks'] = clean_str(payload['workstation_remarks'])
        if payload.get('lab_id') not in (None, ''):
            lab_id = as_int(payload['lab_id'], 'lab_id')
            get_or_raise(Laboratory, lab_id, 'Laboratory', error=LabValidationError)
            ensure_lab_access(self.caller, lab_id, action='move workstations to')
            updates['lab_id'] = lab_id

        target_lab = updates.get('lab_id', workstation.lab_id)
        target_name = updates.get('workstation_name', workstation.workstation_name)
        if self._name_taken(target_lab, target_name, exclude_id=workstation.id):
            raise LabUniquenessError(f"Workstation {target_name} already exists in this laboratory")

        with atomic('workstation update'):
            workstation.update_from_dict(updates, user_id=self.caller.user_id)
            if 'lab_id' in updates:
                # Assets follow their workstation
                for asset in workstation.assets:
                    asset.lab_id = updates['lab_id']
        return workstation

    def delete(self, workstation_id: int) -> None:
        workstation = get_or_raise(Workstation, workstation_id, 'Workstation')
        ensure_lab_access(self.caller, workstation.lab_id, action='delete workstations of')

        with atomic('workstation deletion'):
            (InventoryAsset.query
             .filter(InventoryAsset.workstation_id == workstation.id)
             .update({'workstation_id': None}, synchronize_session=False))
            (ReportWorkstationItem.query
             .filter(ReportWorkstationItem.workstation_id == workstation.id)
             .delete(synchronize_session=False))
            (ServiceLog.query
             .filter(ServiceLog.workstation_id == workstation.id)
             .update({'workstation_id': None, 'pmc_id': None}, synchronize_session=False))
            for report in PMCReport.query.filter(PMCReport.workstation_id == workstation.id).all():
                db.session.delete(report)
            db.session.delete(workstation)
        db.session.expire_all()
        logger.info(f"Workstation {workstation_id} deleted by user {self.caller.user_id}")
