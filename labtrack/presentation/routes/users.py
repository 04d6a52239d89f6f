"""
User routes
Profile and lab assignment for everyone; account management for Admins
"""

from flask import Blueprint, request
from flask_login import login_required, current_user
from labtrack.auth import current_caller, admin_required
from labtrack.business.users.user_manager import UserManager
from labtrack.services.directory_service import DirectoryService
from labtrack.presentation.routes.common import json_payload, success
from labtrack.utils.logging_sanitizer import sanitize_dict
from labtrack.logger import get_logger

bp = Blueprint('users', __name__)
logger = get_logger("labtrack.routes.users")


@bp.route('/profile', methods=['GET'])
@login_required
def profile():
    return success(user=current_user.to_dict(include_audit_fields=False))


@bp.route('/assigned-lab', methods=['GET'])
@login_required
def assigned_lab():
    return success(**DirectoryService.assigned_lab(current_user))


@bp.route('', methods=['GET'])
@login_required
@admin_required
def list_users():
    users = DirectoryService.list_users(
        current_caller(),
        role=request.args.get('role'),
        lab_id=request.args.get('lab_id', type=int),
    )
    return success(users=users, count=len(users))


@bp.route('/<int:user_id>', methods=['GET'])
@login_required
def user_detail(user_id):
    return success(user=DirectoryService.get_user(current_caller(), user_id))


@bp.route('', methods=['POST'])
@login_required
@admin_required
def create_user():
    data = json_payload()
    logger.info(f"Create user: {sanitize_dict(data)}")
    user = UserManager(current_caller()).create(data)
    return success(201, message="User created", user=user.to_dict(include_audit_fields=False))


@bp.route('/<int:user_id>', methods=['PUT', 'PATCH'])
@login_required
@admin_required
def update_user(user_id):
    data = json_payload()
    logger.info(f"Update user {user_id}: {sanitize_dict(data)}")
    user = UserManager(current_caller()).update(user_id, data)
    return success(message="User updated", user=user.to_dict(include_audit_fields=False))


@bp.route('/<int:user_id>/lab', methods=['PUT'])
@login_required
@admin_required
def assign_lab(user_id):
    data = json_payload()
    user = UserManager(current_caller()).assign_lab(user_id, data.get('lab_id'))
    message = "Laboratory assignment cleared" if user.lab_id is None else "User assigned to laboratory"
    return success(message=message, user=user.to_dict(include_audit_fields=False))


@bp.route('/<int:user_id>', methods=['DELETE'])
@login_required
@admin_required
def delete_user(user_id):
    UserManager(current_caller()).delete(user_id)
    return success(message="User deleted")
