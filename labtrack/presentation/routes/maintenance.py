"""
Maintenance routes
Quarterly PMC reports, service history and repair logs
"""

from flask import Blueprint, request
from flask_login import login_required
from labtrack.auth import current_caller
from labtrack.business.maintenance.maintenance_context import MaintenanceContext
from labtrack.business.core.quarter import normalize_quarter
from labtrack.business.core.validation import as_int
from labtrack.data.core.procedure import Procedure
from labtrack.presentation.routes.common import json_payload, success, service_period
from labtrack.utils.logging_sanitizer import sanitize_dict
from labtrack.logger import get_logger

bp = Blueprint('maintenance', __name__)
logger = get_logger("labtrack.routes.maintenance")


@bp.route('/pmc', methods=['POST'])
@login_required
def submit_pmc_report():
    """Record a routine service; the quarter's report is created or updated"""
    data = json_payload()
    logger.debug(f"PMC submission: {sanitize_dict(data)}")
    report_date, quarter, fiscal_year = service_period(data)
    report, log, created = MaintenanceContext(current_caller()).create_or_update_report(
        data.get('workstation_id'), quarter, data, report_date, fiscal_year=fiscal_year
    )
    return success(
        201 if created else 200,
        message="Maintenance report created" if created else "Maintenance report updated",
        created=created,
        report=report.to_dict(),
        service_log=log.to_dict(),
    )


@bp.route('/pmc', methods=['GET'])
@login_required
def lab_pmc_reports():
    _, quarter, fiscal_year = service_period(request.args)
    rows = MaintenanceContext(current_caller()).lab_reports(
        request.args.get('lab_id'), quarter, fiscal_year
    )
    return success(quarter=normalize_quarter(quarter), fiscal_year=as_int(fiscal_year, 'fiscal_year'),
                   workstations=rows)


@bp.route('/pmc/detail', methods=['GET'])
@login_required
def pmc_report_detail():
    _, quarter, fiscal_year = service_period(request.args)
    detail = MaintenanceContext(current_caller()).report_detail(
        request.args.get('workstation_id'), quarter, fiscal_year
    )
    return success(**detail)


@bp.route('/pmc/history', methods=['GET'])
@login_required
def pmc_service_history():
    logs = MaintenanceContext(current_caller()).service_history(
        request.args.get('workstation_id'),
        quarter=request.args.get('quarter'),
        fiscal_year=request.args.get('fiscal_year'),
    )
    return success(service_logs=[log.to_dict() for log in logs], count=len(logs))


@bp.route('/pmc/repair', methods=['POST'])
@login_required
def submit_repair_log():
    data = json_payload()
    logger.debug(f"Repair log submission: {sanitize_dict(data)}")
    service_date, quarter, fiscal_year = service_period(data)
    log = MaintenanceContext(current_caller()).create_repair_log(
        data.get('workstation_id'), quarter, data, service_date, fiscal_year=fiscal_year
    )
    return success(201, message="Service log recorded", service_log=log.to_dict())


@bp.route('/procedures', methods=['GET'])
@login_required
def qpmc_procedures():
    procedures = Procedure.query.filter_by(category=Procedure.CATEGORY_QPMC).order_by(Procedure.id).all()
    return success(procedures=[p.to_dict(include_audit_fields=False) for p in procedures])
