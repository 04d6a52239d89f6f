"""
Laboratory routes
"""

from flask import Blueprint
from flask_login import login_required
from labtrack.auth import current_caller, admin_required
from labtrack.business.users.lab_manager import LabManager
from labtrack.services.directory_service import DirectoryService
from labtrack.presentation.routes.common import json_payload, success

bp = Blueprint('laboratories', __name__)


@bp.route('', methods=['GET'])
@login_required
def list_laboratories():
    laboratories = DirectoryService.list_laboratories(current_caller())
    return success(laboratories=laboratories, count=len(laboratories))


@bp.route('/<int:lab_id>', methods=['GET'])
@login_required
def laboratory_detail(lab_id):
    return success(laboratory=DirectoryService.get_laboratory(current_caller(), lab_id))


@bp.route('', methods=['POST'])
@login_required
@admin_required
def create_laboratory():
    lab = LabManager(current_caller()).create(json_payload())
    return success(201, message="Laboratory created", laboratory=lab.to_dict())


@bp.route('/<int:lab_id>', methods=['PUT', 'PATCH'])
@login_required
@admin_required
def update_laboratory(lab_id):
    lab = LabManager(current_caller()).update(lab_id, json_payload())
    return success(message="Laboratory updated", laboratory=lab.to_dict())


@bp.route('/<int:lab_id>', methods=['DELETE'])
@login_required
@admin_required
def delete_laboratory(lab_id):
    LabManager(current_caller()).delete(lab_id)
    return success(message="Laboratory deleted")
