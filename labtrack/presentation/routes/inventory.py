"""
Inventory routes
Asset list, lookups and asset writes
"""

from flask import Blueprint, request
from flask_login import login_required
from labtrack.auth import current_caller
from labtrack.business.assets.asset_manager import AssetManager
from labtrack.services.inventory_service import InventoryService
from labtrack.presentation.routes.common import json_payload, success
from labtrack.utils.logging_sanitizer import sanitize_dict
from labtrack.logger import get_logger

bp = Blueprint('inventory', __name__)
logger = get_logger("labtrack.routes.inventory")


@bp.route('', methods=['GET'])
@login_required
def list_assets():
    assets = InventoryService.list_assets(
        current_caller(),
        workstation_id=request.args.get('workstation_id', type=int),
        lab_id=request.args.get('lab_id', type=int),
        status=request.args.get('status'),
        unit_id=request.args.get('unit_id', type=int),
        search=request.args.get('search'),
    )
    return success(assets=assets, count=len(assets))


@bp.route('/lookups', methods=['GET'])
@login_required
def lookups():
    return success(**InventoryService.get_lookups())


@bp.route('/<int:asset_id>', methods=['GET'])
@login_required
def asset_detail(asset_id):
    asset = InventoryService.get_asset(current_caller(), asset_id)
    return success(asset=asset.to_dict())


@bp.route('', methods=['POST'])
@login_required
def create_asset():
    data = json_payload()
    logger.debug(f"Create asset: {sanitize_dict(data)}")
    asset = AssetManager(current_caller()).create(data)
    return success(201, message="Asset created", asset=asset.to_dict())


@bp.route('/batch', methods=['POST'])
@login_required
def batch_create_assets():
    data = request.get_json(silent=True)
    rows = data.get('assets') if isinstance(data, dict) else data
    logger.debug(f"Batch create of {len(rows) if isinstance(rows, list) else 0} assets")
    assets = AssetManager(current_caller()).batch_create(rows)
    return success(201, message=f"{len(assets)} assets created", assets=[a.to_dict() for a in assets])


@bp.route('/<int:asset_id>', methods=['PUT', 'PATCH'])
@login_required
def update_asset(asset_id):
    data = json_payload()
    logger.debug(f"Update asset {asset_id}: {sanitize_dict(data)}")
    asset = AssetManager(current_caller()).update(asset_id, data)
    return success(message="Asset updated", asset=asset.to_dict())


@bp.route('/<int:asset_id>', methods=['DELETE'])
@login_required
def delete_asset(asset_id):
    AssetManager(current_caller()).delete(asset_id)
    return success(message="Asset deleted")
