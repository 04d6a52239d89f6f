"""
Workstation routes
Lists and details carry the derived system status
"""

from flask import Blueprint, request
from flask_login import login_required
from labtrack.auth import current_caller
from labtrack.business.assets.workstation_manager import WorkstationManager
from labtrack.business.assets.workstation_context import WorkstationContext
from labtrack.services.workstation_service import WorkstationService
from labtrack.presentation.routes.common import json_payload, success
from labtrack.utils.logging_sanitizer import sanitize_dict
from labtrack.logger import get_logger

bp = Blueprint('workstations', __name__)
logger = get_logger("labtrack.routes.workstations")


@bp.route('', methods=['GET'])
@login_required
def list_workstations():
    workstations = WorkstationService.list_workstations(
        current_caller(),
        lab_id=request.args.get('lab_id', type=int),
        search=request.args.get('search'),
        include_assets=request.args.get('include_assets', '').lower() in ('1', 'true', 'yes'),
    )
    return success(workstations=workstations, count=len(workstations))


@bp.route('/lab/<int:lab_id>', methods=['GET'])
@login_required
def list_lab_workstations(lab_id):
    workstations = WorkstationService.list_workstations(current_caller(), lab_id=lab_id)
    return success(workstations=workstations, count=len(workstations))


@bp.route('/<int:workstation_id>', methods=['GET'])
@login_required
def workstation_detail(workstation_id):
    return success(workstation=WorkstationService.get_detail(current_caller(), workstation_id))


@bp.route('/by-name/<path:workstation_name>', methods=['GET'])
@login_required
def workstation_detail_by_name(workstation_name):
    workstation = WorkstationService.get_detail_by_name(
        current_caller(), workstation_name, lab_id=request.args.get('lab_id', type=int)
    )
    return success(workstation=workstation)


@bp.route('', methods=['POST'])
@login_required
def create_workstation():
    data = json_payload()
    logger.debug(f"Create workstation: {sanitize_dict(data)}")
    workstation = WorkstationManager(current_caller()).create(data)
    return success(201, message="Workstation created",
                   workstation=WorkstationContext(workstation).to_dict())


@bp.route('/batch', methods=['POST'])
@login_required
def batch_create_workstations():
    data = request.get_json(silent=True)
    rows = data.get('workstations') if isinstance(data, dict) else data
    workstations = WorkstationManager(current_caller()).batch_create(rows)
    return success(201, message=f"{len(workstations)} workstations created",
                   workstations=[ws.to_dict() for ws in workstations])


@bp.route('/<int:workstation_id>', methods=['PUT', 'PATCH'])
@login_required
def update_workstation(workstation_id):
    data = json_payload()
    logger.debug(f"Update workstation {workstation_id}: {sanitize_dict(data)}")
    workstation = WorkstationManager(current_caller()).update(workstation_id, data)
    return success(message="Workstation updated", workstation=WorkstationContext(workstation).to_dict())


@bp.route('/<int:workstation_id>', methods=['DELETE'])
@login_required
def delete_workstation(workstation_id):
    WorkstationManager(current_caller()).delete(workstation_id)
    return success(message="Workstation deleted")
