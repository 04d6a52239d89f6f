"""
AssetManager - Domain service for inventory asset writes

Validates payloads, enforces caller scope and property tag uniqueness, and owns
the transaction for single and batch creation.
"""

from typing import Any, Dict, List
from labtrack import db
from labtrack.data.core.laboratory import Laboratory
from labtrack.data.core.asset_info.asset import InventoryAsset, AssetDetail
from labtrack.data.core.asset_info.asset_status import AssetStatus
from labtrack.data.core.asset_info.unit import Unit
from labtrack.data.core.asset_info.workstation import Workstation
from labtrack.data.maintenance.service_log import ServiceLogAssetAction
from labtrack.business.core.access_scope import CallerScope, ensure_lab_access
from labtrack.business.core.errors import LabValidationError, LabUniquenessError
from labtrack.business.core.quarter import parse_date
from labtrack.business.core.transaction import atomic
from labtrack.business.core.validation import as_int, clean_str, get_or_raise
from labtrack.logger import get_logger

logger = get_logger("labtrack.business.assets.asset_manager")


class AssetManager:
    """
    Domain service for inventory assets.

    Responsibilities:
    - Create one asset or a batch of assets in a single transaction
    - Partial updates of asset and detail fields
    - Delete assets while keeping their service history rows
    """

    def __init__(self, caller: CallerScope):
        self.caller = caller

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def _resolve_status(self, payload: Dict[str, Any], default=AssetStatus.FUNCTIONAL):
        status_id = as_int(payload.get('status_id'), 'status_id', required=False)
        if status_id is not None:
            return get_or_raise(AssetStatus, status_id, 'Status', error=LabValidationError)
        status_name = clean_str(payload.get('status_name') or payload.get('status'))
        if status_name is None:
            status_name = default
        if status_name is None:
            raise LabValidationError("status is required", details=[{'field': 'status'}])
        status = AssetStatus.by_name(status_name)
        if status is None:
            raise LabValidationError(f"Unknown status: {status_name}", details=[{'field': 'status'}])
        return status

    def _validate_row(self, row: Dict[str, Any]) -> Dict[str, Any]:
        """Check one create payload and return the normalized values"""
        lab_id = as_int(row.get('lab_id'), 'lab_id')
        unit_id = as_int(row.get('unit_id'), 'unit_id')
        get_or_raise(Laboratory, lab_id, 'Laboratory', error=LabValidationError)
        get_or_raise(Unit, unit_id, 'Unit', error=LabValidationError)
        ensure_lab_access(self.caller, lab_id, action='add assets to')

        workstation_id = as_int(row.get('workstation_id'), 'workstation_id', required=False)
        if workstation_id is not None:
            workstation = get_or_raise(Workstation, workstation_id, 'Workstation', error=LabValidationError)
            if workstation.lab_id != lab_id:
                raise LabValidationError(
                    f"Workstation {workstation_id} does not belong to laboratory {lab_id}",
                    details=[{'field': 'workstation_id'}]
                )

        quantity = as_int(row.get('quantity'), 'quantity', required=False)
        if quantity is not None and quantity < 1:
            raise LabValidationError("quantity must be at least 1", details=[{'field': 'quantity'}])

        return {
            'lab_id': lab_id,
            'unit_id': unit_id,
            'workstation_id': workstation_id,
            'detail': {
                'description': clean_str(row.get('description')),
                'property_tag_no': clean_str(row.get('property_tag_no')),
                'serial_number': clean_str(row.get('serial_number')),
                'quantity': quantity or 1,
                'date_of_purchase': parse_date(row.get('date_of_purchase'), field='date_of_purchase'),
                'asset_remarks': clean_str(row.get('asset_remarks')),
                'status_id': self._resolve_status(row).id,
            },
        }

    @staticmethod
    def _ensure_tag_available(property_tag_no, exclude_asset_id=None):
        if not property_tag_no:
            return
        query = AssetDetail.query.filter(AssetDetail.property_tag_no == property_tag_no)
        if exclude_asset_id is not None:
            query = query.filter(AssetDetail.asset_id != exclude_asset_id)
        if query.first() is not None:
            raise LabUniquenessError(
                f"Property tag {property_tag_no} is already in use",
                details=[{'field': 'property_tag_no', 'value': property_tag_no}]
            )

    def _build(self, values: Dict[str, Any]) -> InventoryAsset:
        asset = InventoryAsset.from_dict(values, user_id=self.caller.user_id, skip_fields=['detail'])
        asset.detail = AssetDetail.from_dict(values['detail'])
        db.session.add(asset)
        return asset

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def create(self, payload: Dict[str, Any]) -> InventoryAsset:
        values = self._validate_row(payload)
        with atomic('asset creation'):
            self._ensure_tag_available(values['detail']['property_tag_no'])
            asset = self._build(values)
        logger.info(f"Asset {asset.id} created in lab {asset.lab_id} by user {self.caller.user_id}")
        return asset

    def batch_create(self, rows: List[Dict[str, Any]]) -> List[InventoryAsset]:
        """
        Create every row or none of them.

        All rows are validated before anything is written. A property tag repeated
        inside the batch or already stored rejects the whole batch.
        """
        if not isinstance(rows, list) or not rows:
            raise LabValidationError("At least one asset is required")

        validated = []
        seen_tags = {}
        for index, row in enumerate(rows):
            if not isinstance(row, dict):
                raise LabValidationError(f"Asset #{index + 1} is not an object", details=[{'index': index}])
            try:
                values = self._validate_row(row)
            except LabValidationError as e:
                e.details.append({'index': index})
                raise
            tag = values['detail']['property_tag_no']
            if tag:
                if tag in seen_tags:
                    raise LabUniquenessError(
                        f"Duplicate property tag {tag} in batch (assets #{seen_tags[tag] + 1} and #{index + 1})",
                        details=[{'index': index, 'field': 'property_tag_no', 'value': tag}]
                    )
                seen_tags[tag] = index
            validated.append(values)

        existing = (AssetDetail.query
                    .filter(AssetDetail.property_tag_no.in_(list(seen_tags)))
                    .all()) if seen_tags else []
        if existing:
            taken = sorted(d.property_tag_no for d in existing)
            raise LabUniquenessError(
                f"Property tags already in use: {', '.join(taken)}",
                details=[{'index': seen_tags[t], 'field': 'property_tag_no', 'value': t} for t in taken]
            )

        with atomic('batch asset creation'):
            assets = [self._build(values) for values in validated]
        logger.info(f"Batch created {len(assets)} assets by user {self.caller.user_id}")
        return assets

    def update(self, asset_id: int, payload: Dict[str, Any]) -> InventoryAsset:
        """Apply only the fields present in payload"""
        asset = get_or_raise(InventoryAsset, asset_id, 'Asset')
        ensure_lab_access(self.caller, asset.lab_id, action='update assets of')

        asset_updates = {}
        if 'lab_id' in payload:
            lab_id = as_int(payload['lab_id'], 'lab_id')
            get_or_raise(Laboratory, lab_id, 'Laboratory', error=LabValidationError)
            ensure_lab_access(self.caller, lab_id, action='move assets to')
            asset_updates['lab_id'] = lab_id
        if 'unit_id' in payload:
            unit_id = as_int(payload['unit_id'], 'unit_id')
            get_or_raise(Unit, unit_id, 'Unit', error=LabValidationError)
            asset_updates['unit_id'] = unit_id
        if 'workstation_id' in payload:
            workstation_id = as_int(payload['workstation_id'], 'workstation_id', required=False)
            if workstation_id is not None:
                workstation = get_or_raise(Workstation, workstation_id, 'Workstation', error=LabValidationError)
                if workstation.lab_id != asset_updates.get('lab_id', asset.lab_id):
                    raise LabValidationError(
                        f"Workstation {workstation_id} belongs to another laboratory",
                        details=[{'field': 'workstation_id'}]
                    )
            asset_updates['workstation_id'] = workstation_id
        elif asset_updates.get('lab_id', asset.lab_id) != asset.lab_id and asset.workstation_id is not None:
            # Moving to another lab leaves the old lab's workstation
            asset_updates['workstation_id'] = None

        detail_updates = {}
        for field in AssetDetail.EDITABLE_FIELDS:
            if field in payload:
                detail_updates[field] = payload[field]
        for field in ('description', 'property_tag_no', 'serial_number', 'asset_remarks'):
            if field in detail_updates:
                detail_updates[field] = clean_str(detail_updates[field])
        if 'date_of_purchase' in detail_updates:
            detail_updates['date_of_purchase'] = parse_date(detail_updates['date_of_purchase'], 'date_of_purchase')
        if 'quantity' in detail_updates:
            detail_updates['quantity'] = as_int(detail_updates['quantity'], 'quantity')
        if any(key in payload for key in ('status_id', 'status_name', 'status')):
            detail_updates['status_id'] = self._resolve_status(payload, default=None).id

        with atomic('asset update'):
            if 'property_tag_no' in detail_updates:
                self._ensure_tag_available(detail_updates['property_tag_no'], exclude_asset_id=asset.id)
            asset.update_from_dict(asset_updates, user_id=self.caller.user_id)
            if asset.detail is None:
                asset.detail = AssetDetail()
            asset.detail.update_from_dict(detail_updates)
        logger.info(f"Asset {asset.id} updated fields {sorted(set(asset_updates) | set(detail_updates))}")
        return asset

    def delete(self, asset_id: int) -> None:
        asset = get_or_raise(InventoryAsset, asset_id, 'Asset')
        ensure_lab_access(self.caller, asset.lab_id, action='delete assets of')
        with atomic('asset deletion'):
            # Service history outlives the asset
            (ServiceLogAssetAction.query
             .filter(ServiceLogAssetAction.asset_id == asset.id)
             .update({'asset_id': None}, synchronize_session=False))
            db.session.delete(asset)
        logger.info(f"Asset {asset_id} deleted by user {self.caller.user_id}")
