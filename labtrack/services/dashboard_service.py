"""
Dashboard Service
Scoped counts for the landing page.
"""

from typing import Dict
from labtrack.data.core.laboratory import Laboratory
from labtrack.data.core.asset_info.asset import InventoryAsset
from labtrack.data.core.asset_info.workstation import Workstation
from labtrack.data.reports.daily_report import DailyReport
from labtrack.business.core.access_scope import CallerScope, scope_to_caller
from labtrack.business.assets.workstation_context import WorkstationContext
from labtrack.business.assets.status_aggregation import FUNCTIONAL
from labtrack.business.forms.form_manager import FormManager


class DashboardService:

    @staticmethod
    def get_counts(caller: CallerScope) -> Dict[str, int]:
        workstations = scope_to_caller(Workstation.query, Workstation, caller).all()
        functional = sum(1 for ws in workstations if WorkstationContext(ws).system_status == FUNCTIONAL)
        reports = scope_to_caller(DailyReport.query, DailyReport, caller)

        if caller.is_admin:
            laboratories = Laboratory.query.count()
        else:
            laboratories = 1 if caller.lab_id is not None else 0

        return {
            'laboratories': laboratories,
            'assets': scope_to_caller(InventoryAsset.query, InventoryAsset, caller).count(),
            'workstations': len(workstations),
            'functional_workstations': functional,
            'for_repair_workstations': len(workstations) - functional,
            'daily_reports': reports.count(),
            'pending_daily_reports': reports.filter(DailyReport.status == DailyReport.PENDING).count(),
            'pending_forms': FormManager(caller).pending_count(),
        }
