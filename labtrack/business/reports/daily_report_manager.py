"""
DailyReportManager - Domain service for daily accomplishment reports (DAR)
"""

from typing import Any, Dict, List
from labtrack import db
from labtrack.data.core.laboratory import Laboratory
from labtrack.data.core.procedure import Procedure
from labtrack.data.core.asset_info.workstation import Workstation
from labtrack.data.reports.daily_report import DailyReport, DailyReportProcedure, ReportWorkstationItem
from labtrack.business.core.access_scope import CallerScope, ensure_lab_access, ensure_admin, scope_to_caller
from labtrack.business.core.errors import LabValidationError, LabAuthorizationError, LabNotFoundError
from labtrack.business.core.quarter import parse_date
from labtrack.business.core.transaction import atomic
from labtrack.business.core.validation import as_int, clean_str, get_or_raise
from labtrack.logger import get_logger

logger = get_logger("labtrack.business.reports.daily_reports")

DEFAULT_WORKSTATION_STATUS = 'Working'


class DailyReportManager:
    """
    Domain service for daily reports.

    - Custodians file reports only for their own lab, at most max_per_day per
      author, lab and date
    - Only the author or an Admin may edit; only an Admin may approve or delete
    """

    def __init__(self, caller: CallerScope):
        self.caller = caller

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _filtered(self, status=None, start_date=None, end_date=None, exclude_status=None, lab_id=None, user_id=None):
        query = scope_to_caller(DailyReport.query, DailyReport, self.caller)
        if status:
            query = query.filter(DailyReport.status == status)
        elif exclude_status:
            query = query.filter(DailyReport.status != exclude_status)
        if lab_id:
            query = query.filter(DailyReport.lab_id == as_int(lab_id, 'lab_id'))
        if user_id:
            query = query.filter(DailyReport.user_id == as_int(user_id, 'user_id'))
        start = parse_date(start_date, 'start_date')
        end = parse_date(end_date, 'end_date')
        if start:
            query = query.filter(DailyReport.report_date >= start)
        if end:
            query = query.filter(DailyReport.report_date <= end)
        return query.order_by(DailyReport.report_date.desc(), DailyReport.id.desc())

    def list_reports(self, **filters) -> List[DailyReport]:
        return self._filtered(**filters).all()

    def my_reports(self, status=None, start_date=None, end_date=None, exclude_status=None) -> List[DailyReport]:
        """The caller's own reports; approved ones are hidden unless a status is asked for"""
        if not status and not exclude_status:
            exclude_status = DailyReport.APPROVED
        return self._filtered(status=status, start_date=start_date, end_date=end_date,
                              exclude_status=exclude_status, user_id=self.caller.user_id).all()

    def archived(self, start_date=None, end_date=None, page=1, per_page=10):
        """Approved reports, paginated"""
        query = self._filtered(status=DailyReport.APPROVED, start_date=start_date, end_date=end_date)
        page = max(as_int(page, 'page', required=False) or 1, 1)
        per_page = min(max(as_int(per_page, 'limit', required=False) or 10, 1), 100)
        total = query.count()
        items = query.offset((page - 1) * per_page).limit(per_page).all()
        return items, total, page, per_page

    def get(self, report_id: int) -> DailyReport:
        report = db.session.get(DailyReport, report_id)
        if report is None:
            raise LabNotFoundError(f"Daily report {report_id} not found")
        ensure_lab_access(self.caller, report.lab_id, action='access reports of')
        return report

    def lab_workstations(self, lab_id) -> List[Dict[str, Any]]:
        """Checklist template: every workstation of the lab, defaulting to Working"""
        lab = get_or_raise(Laboratory, as_int(lab_id, 'lab_id'), 'Laboratory')
        ensure_lab_access(self.caller, lab.id, action='access workstations of')
        return [
            {'workstation_id': ws.id, 'workstation_name': ws.workstation_name,
             'status': DEFAULT_WORKSTATION_STATUS, 'remarks': None}
            for ws in lab.workstations.order_by(Workstation.workstation_name).all()
        ]

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def _ensure_can_edit(self, report: DailyReport):
        if not self.caller.is_admin and report.user_id != self.caller.user_id:
            raise LabAuthorizationError("Not authorized to update this report")

    @staticmethod
    def _workstation_rows(report_lab_id, items) -> List[Dict[str, Any]]:
        if not isinstance(items, list):
            raise LabValidationError("workstation_items must be a list", details=[{'field': 'workstation_items'}])
        rows = []
        seen = set()
        for index, item in enumerate(items):
            if not isinstance(item, dict):
                raise LabValidationError(f"Workstation item #{index + 1} is not an object", details=[{'index': index}])
            workstation_id = as_int(item.get('workstation_id'), 'workstation_id')
            workstation = db.session.get(Workstation, workstation_id)
            if workstation is None or workstation.lab_id != report_lab_id:
                raise LabValidationError(
                    f"Workstation {workstation_id} is not in the report's laboratory",
                    details=[{'index': index, 'field': 'workstation_id'}]
                )
            if workstation_id in seen:
                raise LabValidationError(f"Workstation {workstation_id} listed twice", details=[{'index': index}])
            seen.add(workstation_id)
            rows.append({
                'workstation_id': workstation_id,
                'status': clean_str(item.get('status')) or DEFAULT_WORKSTATION_STATUS,
                'remarks': clean_str(item.get('remarks')),
            })
        return rows

    @staticmethod
    def _procedure_rows(procedures) -> List[Dict[str, Any]]:
        if not isinstance(procedures, list):
            raise LabValidationError("procedures must be a list", details=[{'field': 'procedures'}])
        rows = []
        for index, item in enumerate(procedures):
            if isinstance(item, dict):
                procedure_id = as_int(item.get('procedure_id'), 'procedure_id')
            else:
                procedure_id, item = as_int(item, 'procedure_id'), {}
            procedure = db.session.get(Procedure, procedure_id)
            if procedure is None or procedure.category != Procedure.CATEGORY_DAR:
                raise LabValidationError(f"Unknown DAR procedure {procedure_id}",
                                         details=[{'index': index, 'field': 'procedure_id'}])
            rows.append({
                'procedure_id': procedure_id,
                'overall_status': clean_str(item.get('overall_status')) or 'Pending',
                'overall_remarks': clean_str(item.get('overall_remarks')),
            })
        return rows

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def create(self, payload: Dict[str, Any], max_per_day: int = 10) -> DailyReport:
        lab_id = as_int(payload.get('lab_id'), 'lab_id', required=False)
        if lab_id is None:
            lab_id = self.caller.lab_id
        if lab_id is None:
            raise LabValidationError("lab_id is required", details=[{'field': 'lab_id'}])
        get_or_raise(Laboratory, lab_id, 'Laboratory', error=LabValidationError)
        ensure_lab_access(self.caller, lab_id, action='create reports for')

        report_date = parse_date(payload.get('report_date'), 'report_date')
        if report_date is None:
            raise LabValidationError("report_date is required", details=[{'field': 'report_date'}])

        filed = DailyReport.query.filter_by(user_id=self.caller.user_id, lab_id=lab_id,
                                            report_date=report_date).count()
        if filed >= max_per_day:
            raise LabValidationError(
                f"Maximum {max_per_day} reports allowed per day for each laboratory",
                details=[{'report_date': report_date.isoformat(), 'count': filed}]
            )

        workstation_rows = (self._workstation_rows(lab_id, payload['workstation_items'])
                            if payload.get('workstation_items') is not None else [])
        procedure_rows = (self._procedure_rows(payload['procedures'])
                          if payload.get('procedures') is not None else [])

        with atomic('daily report creation'):
            report = DailyReport(
                lab_id=lab_id,
                user_id=self.caller.user_id,
                report_date=report_date,
                general_remarks=clean_str(payload.get('general_remarks')),
                status=DailyReport.PENDING,
                created_by_id=self.caller.user_id,
                updated_by_id=self.caller.user_id,
            )
            report.workstation_items = [ReportWorkstationItem(**row) for row in workstation_rows]
            report.procedures = [DailyReportProcedure(**row) for row in procedure_rows]
            db.session.add(report)
        logger.info(f"Daily report {report.id} created for lab {lab_id} on {report_date.isoformat()}")
        return report

    def update(self, report_id: int, payload: Dict[str, Any]) -> DailyReport:
        report = self.get(report_id)
        self._ensure_can_edit(report)

        updates = {}
        if 'general_remarks' in payload:
            updates['general_remarks'] = clean_str(payload['general_remarks'])
        if 'report_date' in payload:
            updates['report_date'] = parse_date(payload['report_date'], 'report_date')
            if updates['report_date'] is None:
                raise LabValidationError("report_date cannot be empty", details=[{'field': 'report_date'}])
        status = clean_str(payload.get('status'))
        if status:
            if status not in DailyReport.STATUSES:
                raise LabValidationError(
                    f"Invalid status. Valid statuses are: {', '.join(DailyReport.STATUSES)}",
                    details=[{'field': 'status'}]
                )
            if status == DailyReport.APPROVED and not self.caller.is_admin:
                raise LabAuthorizationError("Only Admin can approve reports")
            updates['status'] = status

        with atomic('daily report update'):
            report.update_from_dict(updates, user_id=self.caller.user_id)
        return report

    def delete(self, report_id: int) -> None:
        ensure_admin(self.caller, 'delete daily reports')
        report = self.get(report_id)
        with atomic('daily report deletion'):
            db.session.delete(report)
        logger.info(f"Daily report {report_id} deleted by user {self.caller.user_id}")

    def replace_workstation_items(self, report_id: int, items) -> DailyReport:
        report = self.get(report_id)
        self._ensure_can_edit(report)
        rows = self._workstation_rows(report.lab_id, items)
        with atomic('workstation checklist save'):
            report.workstation_items = [ReportWorkstationItem(**row) for row in rows]
            report.updated_by_id = self.caller.user_id
        return report

    def replace_procedures(self, report_id: int, procedures) -> DailyReport:
        report = self.get(report_id)
        self._ensure_can_edit(report)
        rows = self._procedure_rows(procedures)
        with atomic('report procedures save'):
            report.procedures = [DailyReportProcedure(**row) for row in rows]
            report.updated_by_id = self.caller.user_id
        return report
