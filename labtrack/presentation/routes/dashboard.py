"""
Dashboard route
"""

from flask import Blueprint
from flask_login import login_required, current_user
from labtrack.auth import current_caller
from labtrack.services.dashboard_service import DashboardService
from labtrack.presentation.routes.common import success

bp = Blueprint('dashboard', __name__)


@bp.route('/dashboard', methods=['GET'])
@login_required
def dashboard():
    return success(
        user={'id': current_user.id, 'full_name': current_user.full_name, 'role': current_user.role},
        counts=DashboardService.get_counts(current_caller()),
    )
