"""
Daily accomplishment report routes
"""

from flask import Blueprint, current_app, request
from flask_login import login_required
from labtrack.auth import current_caller
from labtrack.business.reports.daily_report_manager import DailyReportManager
from labtrack.business.core.quarter import reporting_date
from labtrack.data.core.procedure import Procedure
from labtrack.presentation.routes.common import json_payload, success
from labtrack.utils.logging_sanitizer import sanitize_dict
from labtrack.logger import get_logger

bp = Blueprint('daily_reports', __name__)
logger = get_logger("labtrack.routes.daily_reports")


def _date_filters():
    return {
        'status': request.args.get('status'),
        'start_date': request.args.get('start_date'),
        'end_date': request.args.get('end_date'),
    }


@bp.route('', methods=['GET'])
@login_required
def list_reports():
    reports = DailyReportManager(current_caller()).list_reports(
        lab_id=request.args.get('lab_id', type=int), **_date_filters()
    )
    return success(reports=[r.to_dict() for r in reports], count=len(reports))


@bp.route('/mine', methods=['GET'])
@login_required
def my_reports():
    reports = DailyReportManager(current_caller()).my_reports(**_date_filters())
    return success(reports=[r.to_dict() for r in reports], count=len(reports))


@bp.route('/archived', methods=['GET'])
@login_required
def archived_reports():
    reports, total, page, per_page = DailyReportManager(current_caller()).archived(
        start_date=request.args.get('start_date'),
        end_date=request.args.get('end_date'),
        page=request.args.get('page', 1),
        per_page=request.args.get('limit', 10),
    )
    return success(
        reports=[r.to_dict() for r in reports],
        pagination={
            'page': page,
            'limit': per_page,
            'total': total,
            'total_pages': (total + per_page - 1) // per_page,
        },
    )


@bp.route('/procedures', methods=['GET'])
@login_required
def dar_procedures():
    procedures = Procedure.query.filter_by(category=Procedure.CATEGORY_DAR).order_by(Procedure.id).all()
    return success(procedures=[p.to_dict(include_audit_fields=False) for p in procedures])


@bp.route('/lab-workstations/<int:lab_id>', methods=['GET'])
@login_required
def lab_workstations(lab_id):
    return success(workstations=DailyReportManager(current_caller()).lab_workstations(lab_id))


@bp.route('/<int:report_id>', methods=['GET'])
@login_required
def report_detail(report_id):
    report = DailyReportManager(current_caller()).get(report_id)
    return success(report=report.to_dict(include_children=True))


@bp.route('', methods=['POST'])
@login_required
def create_report():
    data = json_payload()
    logger.debug(f"Create daily report: {sanitize_dict(data)}")
    data['report_date'] = reporting_date(current_app.config, data.get('report_date'))
    report = DailyReportManager(current_caller()).create(
        data, max_per_day=current_app.config['MAX_DAILY_REPORTS_PER_DAY']
    )
    return success(201, message="Report created successfully", report=report.to_dict(include_children=True))


@bp.route('/<int:report_id>', methods=['PUT', 'PATCH'])
@login_required
def update_report(report_id):
    report = DailyReportManager(current_caller()).update(report_id, json_payload())
    return success(message="Report updated successfully", report=report.to_dict())


@bp.route('/<int:report_id>', methods=['DELETE'])
@login_required
def delete_report(report_id):
    DailyReportManager(current_caller()).delete(report_id)
    return success(message="Report deleted successfully")


@bp.route('/<int:report_id>/workstations', methods=['GET'])
@login_required
def report_workstations(report_id):
    report = DailyReportManager(current_caller()).get(report_id)
    return success(workstation_items=[w.to_dict(include_audit_fields=False) for w in report.workstation_items])


@bp.route('/<int:report_id>/workstations', methods=['PUT'])
@login_required
def replace_report_workstations(report_id):
    data = request.get_json(silent=True)
    items = data.get('workstation_items') if isinstance(data, dict) else data
    report = DailyReportManager(current_caller()).replace_workstation_items(report_id, items)
    return success(message="Workstation checklist saved",
                   workstation_items=[w.to_dict(include_audit_fields=False) for w in report.workstation_items])


@bp.route('/<int:report_id>/procedures', methods=['GET'])
@login_required
def report_procedures(report_id):
    report = DailyReportManager(current_caller()).get(report_id)
    return success(procedures=[p.to_dict(include_audit_fields=False) for p in report.procedures])


@bp.route('/<int:report_id>/procedures', methods=['PUT'])
@login_required
def replace_report_procedures(report_id):
    data = request.get_json(silent=True)
    procedures = data.get('procedures') if isinstance(data, dict) else data
    report = DailyReportManager(current_caller()).replace_procedures(report_id, procedures)
    return success(message="Procedures saved",
                   procedures=[p.to_dict(include_audit_fields=False) for p in report.procedures])
