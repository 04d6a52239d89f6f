"""
Workstation Service
Presentation service for workstation lists and details with derived status.
"""

from typing import Dict, List, Optional
from labtrack.data.core.asset_info.workstation import Workstation
from labtrack.business.assets.workstation_context import WorkstationContext
from labtrack.business.core.access_scope import CallerScope, scope_to_caller, ensure_lab_access


class WorkstationService:
    """
    Service for workstation presentation data.

    The system status is never stored; every row is built through
    WorkstationContext so it reflects the current asset statuses.
    """

    @staticmethod
    def build_filtered_query(caller: CallerScope, lab_id: Optional[int] = None, search: Optional[str] = None):
        query = scope_to_caller(Workstation.query, Workstation, caller)
        if lab_id:
            query = query.filter(Workstation.lab_id == lab_id)
        if search:
            query = query.filter(Workstation.workstation_name.ilike(f'%{search.strip()}%'))
        return query.order_by(Workstation.lab_id, Workstation.workstation_name)

    @staticmethod
    def list_workstations(caller: CallerScope, lab_id=None, search=None, include_assets=False) -> List[Dict]:
        return [
            WorkstationContext(ws).to_dict(include_assets=include_assets)
            for ws in WorkstationService.build_filtered_query(caller, lab_id=lab_id, search=search).all()
        ]

    @staticmethod
    def get_detail(caller: CallerScope, workstation_id: int) -> Dict:
        context = WorkstationContext(workstation_id)
        ensure_lab_access(caller, context.lab_id, action='view workstations of')
        return context.to_dict()

    @staticmethod
    def get_detail_by_name(caller: CallerScope, workstation_name: str, lab_id: Optional[int] = None) -> Dict:
        """Look up by name; custodians are confined to their own lab"""
        if lab_id is None and not caller.is_admin:
            lab_id = caller.lab_id
        context = WorkstationContext.from_name(workstation_name, lab_id=lab_id)
        ensure_lab_access(caller, context.lab_id, action='view workstations of')
        return context.to_dict()
