"""
Maintenance Context
Quarterly preventive maintenance (QPMC) reports and the append-only service log.

Lifecycle per (workstation, fiscal year, quarter):
- Unserviced: no PMCReport row
- Serviced: exactly one PMCReport row; each further routine service in the same
  quarter updates it, bumps service_count and appends a ServiceLog

Repairs, replacements and upgrades are logged independently of the quarterly
cadence and never touch service_count.
"""

from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, List, Optional
from sqlalchemy.exc import IntegrityError
from labtrack import db
from labtrack.data.core.asset_info.asset import InventoryAsset, AssetDetail
from labtrack.data.core.asset_info.asset_status import AssetStatus
from labtrack.data.core.asset_info.workstation import Workstation
from labtrack.data.core.laboratory import Laboratory
from labtrack.data.core.procedure import Procedure
from labtrack.data.maintenance.pmc_report import PMCReport, PMCReportProcedure
from labtrack.data.maintenance.service_log import ServiceLog, ServiceLogAssetAction
from labtrack.business.assets.status_aggregation import aggregate_system_status
from labtrack.business.assets.workstation_context import WorkstationContext
from labtrack.business.core.access_scope import CallerScope, ensure_lab_access
from labtrack.business.core.errors import LabValidationError, LabUniquenessError
from labtrack.business.core.quarter import normalize_quarter
from labtrack.business.core.transaction import atomic
from labtrack.business.core.validation import as_int, clean_str, get_or_raise
from labtrack.logger import get_logger

logger = get_logger("labtrack.business.maintenance")


@dataclass
class PlannedAction:
    """One validated asset action, resolved before the transaction opens"""
    asset: InventoryAsset
    action: str
    status_after: Optional[AssetStatus]
    new_property_tag: Optional[str] = None
    new_serial_number: Optional[str] = None
    new_description: Optional[str] = None


class MaintenanceContext:
    """
    Domain service for workstation maintenance.

    Operations take an explicit quarter and date; nothing here reads the clock.
    """

    def __init__(self, caller: CallerScope):
        self.caller = caller

    # ------------------------------------------------------------------
    # Validation helpers
    # ------------------------------------------------------------------

    def _load_workstation(self, workstation_id, payload_lab_id=None) -> Workstation:
        workstation_id = as_int(workstation_id, 'workstation_id')
        workstation = get_or_raise(Workstation, workstation_id, 'Workstation', error=LabValidationError)
        ensure_lab_access(self.caller, workstation.lab_id, action='service workstations of')
        if payload_lab_id not in (None, ''):
            lab_id = as_int(payload_lab_id, 'lab_id')
            get_or_raise(Laboratory, lab_id, 'Laboratory', error=LabValidationError)
            if lab_id != workstation.lab_id:
                raise LabValidationError(
                    f"Workstation {workstation.id} does not belong to laboratory {lab_id}",
                    details=[{'field': 'lab_id'}]
                )
        return workstation

    @staticmethod
    def _resolve_status(status_name, index) -> AssetStatus:
        status = AssetStatus.by_name(status_name) if status_name else None
        if status is None:
            raise LabValidationError(
                f"Unknown status: {status_name}",
                details=[{'index': index, 'field': 'status_after'}]
            )
        return status

    def _plan_actions(self, workstation, raw_actions, default_action, require_status=False) -> List[PlannedAction]:
        if not isinstance(raw_actions, list) or not raw_actions:
            raise LabValidationError("At least one asset must be selected", details=[{'field': 'asset_actions'}])

        planned = []
        seen = set()
        for index, raw in enumerate(raw_actions):
            if not isinstance(raw, dict):
                raise LabValidationError(f"Asset action #{index + 1} is not an object", details=[{'index': index}])
            asset_id = as_int(raw.get('asset_id'), 'asset_id')
            if asset_id in seen:
                raise LabValidationError(f"Asset {asset_id} selected twice", details=[{'index': index}])
            seen.add(asset_id)

            asset = get_or_raise(InventoryAsset, asset_id, 'Asset', error=LabValidationError)
            if asset.workstation_id != workstation.id:
                raise LabValidationError(
                    f"Asset {asset_id} is not assigned to workstation {workstation.workstation_name}",
                    details=[{'index': index, 'field': 'asset_id'}]
                )

            status_name = clean_str(raw.get('status_after'))
            if status_name is None and require_status:
                raise LabValidationError("status_after is required",
                                         details=[{'index': index, 'field': 'status_after'}])
            status_after = self._resolve_status(status_name, index) if status_name else None

            if default_action == ServiceLogAssetAction.CHECKED:
                action = ServiceLogAssetAction.CHECKED
            else:
                action = (clean_str(raw.get('action')) or default_action).upper()
                if action not in ServiceLogAssetAction.ACTION_FOR_SERVICE.values():
                    raise LabValidationError(f"Invalid action: {action}",
                                             details=[{'index': index, 'field': 'action'}])

            planned_action = PlannedAction(asset=asset, action=action, status_after=status_after)
            # Only a replacement brings a new tag, serial number or description
            if action == ServiceLogAssetAction.REPLACED:
                planned_action.new_property_tag = clean_str(raw.get('new_property_tag'))
                planned_action.new_serial_number = clean_str(raw.get('new_serial_number'))
                planned_action.new_description = clean_str(raw.get('new_description'))
            planned.append(planned_action)
        return planned

    @staticmethod
    def _qpmc_procedures(payload) -> Optional[List[Dict[str, Any]]]:
        """
        Normalize procedure_ids ([1, 2]) or procedures ([{procedure_id, is_checked}]).

        Returns None when neither key is present.
        """
        if 'procedures' in payload and payload['procedures'] is not None:
            raw = payload['procedures']
        elif 'procedure_ids' in payload and payload['procedure_ids'] is not None:
            raw = [{'procedure_id': pid, 'is_checked': True} for pid in payload['procedure_ids']]
        else:
            return None
        if not isinstance(raw, list):
            raise LabValidationError("procedures must be a list", details=[{'field': 'procedures'}])

        rows = []
        for index, item in enumerate(raw):
            if isinstance(item, dict):
                procedure_id = as_int(item.get('procedure_id'), 'procedure_id')
                is_checked = bool(item.get('is_checked', True))
            else:
                procedure_id = as_int(item, 'procedure_id')
                is_checked = True
            procedure = db.session.get(Procedure, procedure_id)
            if procedure is None or procedure.category != Procedure.CATEGORY_QPMC:
                raise LabValidationError(f"Unknown QPMC procedure {procedure_id}",
                                         details=[{'index': index, 'field': 'procedure_id'}])
            rows.append({'procedure_id': procedure_id, 'is_checked': is_checked})
        return rows

    @staticmethod
    def _find_report(workstation_id, fiscal_year, quarter) -> Optional[PMCReport]:
        return PMCReport.query.filter_by(
            workstation_id=workstation_id, fiscal_year=fiscal_year, quarter=quarter
        ).first()

    @staticmethod
    def _apply_status(action: PlannedAction) -> None:
        if action.status_after is None:
            return
        if action.asset.detail is None:
            action.asset.detail = AssetDetail()
        action.asset.detail.status = action.status_after

    # ------------------------------------------------------------------
    # Quarterly report
    # ------------------------------------------------------------------

    def create_or_update_report(self, workstation_id, quarter, payload: Dict[str, Any], report_date: date,
                                fiscal_year=None):
        """
        Record a routine service for the workstation's quarter.

        Creates the quarter's PMCReport with service_count 1, or updates the
        existing one and increments service_count. Always appends one ROUTINE
        ServiceLog with a CHECKED action per selected asset.

        The report is filed under fiscal_year, which defaults to the year of
        report_date.

        Returns:
            tuple: (report, service_log, created)
        """
        quarter = normalize_quarter(quarter)
        if report_date is None:
            raise LabValidationError("report_date is required", details=[{'field': 'report_date'}])
        fiscal_year = report_date.year if fiscal_year is None else as_int(fiscal_year, 'fiscal_year')

        try:
            return self._record_routine_service(workstation_id, fiscal_year, quarter, payload, report_date)
        except LabUniquenessError as e:
            if not isinstance(e.__cause__, IntegrityError):
                raise
            # Another request inserted the quarter's report first; take the update path
            logger.warning(f"Concurrent PMC report insert for workstation {workstation_id} {quarter}, retrying")
            return self._record_routine_service(workstation_id, fiscal_year, quarter, payload, report_date)

    def _record_routine_service(self, workstation_id, fiscal_year, quarter, payload, report_date):
        workstation = self._load_workstation(workstation_id, payload.get('lab_id'))

        if payload.get('asset_actions') is None:
            # No explicit selection: every asset is checked with its status unchanged
            raw_actions = [{'asset_id': a.id} for a in WorkstationContext(workstation).assets]
        else:
            raw_actions = payload['asset_actions']
        planned = self._plan_actions(workstation, raw_actions, ServiceLogAssetAction.CHECKED)
        procedures = self._qpmc_procedures(payload)

        ws_context = WorkstationContext(workstation)
        with atomic('quarterly maintenance report'):
            status_before = aggregate_system_status(ws_context.assets)
            before = {a.asset.id: a.asset.status_name for a in planned}
            for action in planned:
                self._apply_status(action)
            db.session.flush()
            status_after = aggregate_system_status(ws_context.assets)

            report = self._find_report(workstation.id, fiscal_year, quarter)
            created = report is None
            if created:
                report = PMCReport(
                    lab_id=workstation.lab_id,
                    workstation_id=workstation.id,
                    fiscal_year=fiscal_year,
                    quarter=quarter,
                    report_date=report_date,
                    workstation_status=status_after,
                    service_count=1,
                    created_by_id=self.caller.user_id,
                )
                db.session.add(report)
            else:
                report.service_count = (report.service_count or 0) + 1

            report.user_id = self.caller.user_id
            report.updated_by_id = self.caller.user_id
            report.report_date = report_date
            report.workstation_status = status_after
            report.overall_remarks = clean_str(payload.get('overall_remarks'))
            for field in PMCReport.NETWORK_FIELDS:
                setattr(report, field, clean_str(payload.get(field)))
            if procedures is not None:
                report.procedures = [PMCReportProcedure(**row) for row in procedures]
            db.session.flush()

            log = ServiceLog(
                pmc_id=report.id,
                workstation_id=workstation.id,
                lab_id=workstation.lab_id,
                user_id=self.caller.user_id,
                fiscal_year=fiscal_year,
                quarter=quarter,
                service_date=report_date,
                service_type=ServiceLog.ROUTINE,
                remarks=report.overall_remarks,
                workstation_status_before=status_before,
                workstation_status_after=status_after,
                created_by_id=self.caller.user_id,
            )
            log.actions = [
                ServiceLogAssetAction(
                    asset_id=a.asset.id,
                    action=ServiceLogAssetAction.CHECKED,
                    status_before=before[a.asset.id],
                    status_after=a.asset.status_name,
                )
                for a in planned
            ]
            db.session.add(log)

        logger.info(
            f"PMC report {report.id} {'created' if created else 'updated'} for workstation {workstation.id} "
            f"{fiscal_year} {quarter}: {status_after}, service #{report.service_count}"
        )
        return report, log, created

    # ------------------------------------------------------------------
    # Repairs
    # ------------------------------------------------------------------

    def create_repair_log(self, workstation_id, quarter, payload: Dict[str, Any], service_date: date,
                          fiscal_year=None) -> ServiceLog:
        """
        Append a REPAIR/REPLACE/UPGRADE service log.

        Each selected asset gets its status_after; REPLACED actions may also carry a
        new property tag, serial number and description. The log links to the
        quarter's report when one exists. service_count is left alone.
        """
        quarter = normalize_quarter(quarter)
        if service_date is None:
            raise LabValidationError("service_date is required", details=[{'field': 'service_date'}])
        fiscal_year = service_date.year if fiscal_year is None else as_int(fiscal_year, 'fiscal_year')

        service_type = (clean_str(payload.get('service_type')) or '').upper()
        if service_type not in ServiceLogAssetAction.ACTION_FOR_SERVICE:
            raise LabValidationError(
                f"Invalid service_type: {payload.get('service_type')}",
                details=[{'field': 'service_type', 'allowed': sorted(ServiceLogAssetAction.ACTION_FOR_SERVICE)}]
            )

        workstation = self._load_workstation(workstation_id, payload.get('lab_id'))
        planned = self._plan_actions(
            workstation, payload.get('asset_actions'),
            ServiceLogAssetAction.ACTION_FOR_SERVICE[service_type],
            require_status=True,
        )

        new_tags = {}
        for index, action in enumerate(planned):
            tag = action.new_property_tag
            if not tag or tag == action.asset.property_tag_no:
                continue
            taken = AssetDetail.query.filter(AssetDetail.property_tag_no == tag,
                                             AssetDetail.asset_id != action.asset.id).first()
            if tag in new_tags or taken is not None:
                raise LabUniquenessError(
                    f"Property tag {tag} is already in use",
                    details=[{'index': index, 'field': 'new_property_tag', 'value': tag}]
                )
            new_tags[tag] = index

        ws_context = WorkstationContext(workstation)
        with atomic('repair log'):
            status_before = aggregate_system_status(ws_context.assets)
            log = ServiceLog(
                workstation_id=workstation.id,
                lab_id=workstation.lab_id,
                user_id=self.caller.user_id,
                fiscal_year=fiscal_year,
                quarter=quarter,
                service_date=service_date,
                service_type=service_type,
                remarks=clean_str(payload.get('remarks')),
                workstation_status_before=status_before,
                created_by_id=self.caller.user_id,
            )
            report = self._find_report(workstation.id, fiscal_year, quarter)
            if report is not None:
                log.pmc_id = report.id
            db.session.add(log)

            for action in planned:
                asset = action.asset
                if asset.detail is None:
                    asset.detail = AssetDetail()
                row = ServiceLogAssetAction(
                    asset_id=asset.id,
                    action=action.action,
                    status_before=asset.status_name,
                    old_property_tag=asset.detail.property_tag_no,
                    old_serial_number=asset.detail.serial_number,
                )
                self._apply_status(action)
                row.status_after = action.status_after.status_name
                if action.new_property_tag:
                    asset.detail.property_tag_no = action.new_property_tag
                    row.new_property_tag = action.new_property_tag
                if action.new_serial_number:
                    asset.detail.serial_number = action.new_serial_number
                    row.new_serial_number = action.new_serial_number
                if action.new_description:
                    asset.detail.description = action.new_description
                    row.new_description = action.new_description
                asset.updated_by_id = self.caller.user_id
                log.actions.append(row)

            db.session.flush()
            log.workstation_status_after = aggregate_system_status(ws_context.assets)

        logger.info(
            f"{service_type} log {log.id} for workstation {workstation.id}: "
            f"{log.workstation_status_before} -> {log.workstation_status_after}"
        )
        return log

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def service_history(self, workstation_id, quarter=None, fiscal_year=None) -> List[ServiceLog]:
        """Service logs for a workstation, newest first"""
        workstation = get_or_raise(Workstation, as_int(workstation_id, 'workstation_id'), 'Workstation')
        ensure_lab_access(self.caller, workstation.lab_id, action='view maintenance of')
        query = ServiceLog.query.filter(ServiceLog.workstation_id == workstation.id)
        if quarter is not None:
            query = query.filter(ServiceLog.quarter == normalize_quarter(quarter))
        if fiscal_year is not None:
            query = query.filter(ServiceLog.fiscal_year == as_int(fiscal_year, 'fiscal_year'))
        return query.order_by(ServiceLog.service_date.desc(), ServiceLog.id.desc()).all()

    def lab_reports(self, lab_id, quarter, fiscal_year) -> List[Dict[str, Any]]:
        """Every workstation of a lab with its report for the quarter, or Unserviced"""
        lab = get_or_raise(Laboratory, as_int(lab_id, 'lab_id'), 'Laboratory')
        ensure_lab_access(self.caller, lab.id, action='view maintenance of')
        quarter = normalize_quarter(quarter)
        fiscal_year = as_int(fiscal_year, 'fiscal_year')

        reports = {
            r.workstation_id: r
            for r in PMCReport.query.filter_by(lab_id=lab.id, fiscal_year=fiscal_year, quarter=quarter).all()
        }
        rows = []
        for workstation in lab.workstations.order_by(Workstation.workstation_name).all():
            report = reports.get(workstation.id)
            rows.append({
                'workstation_id': workstation.id,
                'workstation_name': workstation.workstation_name,
                'system_status': WorkstationContext(workstation).system_status,
                'maintenance_state': 'Serviced' if report else 'Unserviced',
                'report': report.to_dict() if report else None,
            })
        return rows

    def report_detail(self, workstation_id, quarter, fiscal_year) -> Dict[str, Any]:
        workstation = get_or_raise(Workstation, as_int(workstation_id, 'workstation_id'), 'Workstation')
        ensure_lab_access(self.caller, workstation.lab_id, action='view maintenance of')
        quarter = normalize_quarter(quarter)
        fiscal_year = as_int(fiscal_year, 'fiscal_year')

        report = self._find_report(workstation.id, fiscal_year, quarter)
        return {
            'workstation': WorkstationContext(workstation).to_dict(),
            'fiscal_year': fiscal_year,
            'quarter': quarter,
            'maintenance_state': 'Serviced' if report else 'Unserviced',
            'report': report.to_dict() if report else None,
            'service_logs': [log.to_dict() for log in self.service_history(workstation.id, quarter, fiscal_year)],
        }
