"""
Inventory Service
Presentation service for inventory list views and form lookups.

Handles:
- Query building and filtering for the inventory list, scoped to the caller
- Lookup options (statuses, units, device types)
"""

from typing import Dict, List, Optional
from labtrack.data.core.asset_info.asset import InventoryAsset, AssetDetail
from labtrack.data.core.asset_info.asset_status import AssetStatus
from labtrack.data.core.asset_info.unit import Unit, DeviceType
from labtrack.business.core.access_scope import CallerScope, scope_to_caller, ensure_lab_access
from labtrack.business.core.errors import LabNotFoundError
from labtrack import db


class InventoryService:
    """
    Service for inventory presentation data.

    Provides methods for:
    - Building filtered asset queries
    - Retrieving lookup options
    """

    @staticmethod
    def build_filtered_query(
        caller: CallerScope,
        workstation_id: Optional[int] = None,
        lab_id: Optional[int] = None,
        status: Optional[str] = None,
        unit_id: Optional[int] = None,
        search: Optional[str] = None
    ):
        """
        Build a filtered inventory query.

        Args:
            caller: Requesting user's scope
            workstation_id: Filter by workstation
            lab_id: Filter by laboratory
            status: Filter by status name (case-insensitive)
            unit_id: Filter by unit type
            search: Partial match on description, property tag or serial number

        Returns:
            SQLAlchemy query object
        """
        query = scope_to_caller(InventoryAsset.query, InventoryAsset, caller)
        query = query.outerjoin(AssetDetail, AssetDetail.asset_id == InventoryAsset.id)

        if workstation_id:
            query = query.filter(InventoryAsset.workstation_id == workstation_id)

        if lab_id:
            query = query.filter(InventoryAsset.lab_id == lab_id)

        if unit_id:
            query = query.filter(InventoryAsset.unit_id == unit_id)

        if status:
            query = (query.join(AssetStatus, AssetStatus.id == AssetDetail.status_id)
                     .filter(db.func.lower(AssetStatus.status_name) == status.strip().lower()))

        if search:
            like = f'%{search.strip()}%'
            query = query.filter(
                AssetDetail.description.ilike(like)
                | AssetDetail.property_tag_no.ilike(like)
                | AssetDetail.serial_number.ilike(like)
            )

        return query.order_by(InventoryAsset.id.desc())

    @staticmethod
    def list_assets(caller: CallerScope, **filters) -> List[Dict]:
        return [asset.to_dict() for asset in InventoryService.build_filtered_query(caller, **filters).all()]

    @staticmethod
    def get_asset(caller: CallerScope, asset_id: int) -> InventoryAsset:
        asset = db.session.get(InventoryAsset, asset_id)
        if asset is None:
            raise LabNotFoundError(f"Asset {asset_id} not found")
        ensure_lab_access(caller, asset.lab_id, action='view assets of')
        return asset

    @staticmethod
    def get_lookups() -> Dict[str, List[Dict]]:
        """
        Get lookup options for asset creation and editing.

        Returns:
            Dictionary with 'statuses', 'units' and 'device_types' keys
        """
        return {
            'statuses': [s.to_dict(include_audit_fields=False)
                         for s in AssetStatus.query.order_by(AssetStatus.id).all()],
            'units': [u.to_dict(include_audit_fields=False)
                      for u in Unit.query.order_by(Unit.unit_name).all()],
            'device_types': [d.to_dict(include_audit_fields=False)
                             for d in DeviceType.query.order_by(DeviceType.device_type_name).all()],
        }
