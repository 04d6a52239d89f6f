"""
Request form routes (logged-in portal)
Lab requests, equipment borrows and software installations
"""

from flask import Blueprint, request
from flask_login import login_required
from labtrack.auth import current_caller
from labtrack.business.forms.form_manager import FormManager
from labtrack.business.forms.state_machine import STATE_MACHINES
from labtrack.presentation.routes.common import json_payload, success
from labtrack.utils.logging_sanitizer import sanitize_dict
from labtrack.logger import get_logger

bp = Blueprint('forms', __name__)
logger = get_logger("labtrack.routes.forms")


def _form_dict(form_type, form):
    result = form.to_dict()
    result['allowed_transitions'] = sorted(STATE_MACHINES[form_type].get_allowed_transitions(form.status))
    return result


@bp.route('/pending-count', methods=['GET'])
@login_required
def pending_count():
    return success(pending=FormManager(current_caller()).pending_count())


@bp.route('/<form_type>', methods=['GET'])
@login_required
def list_forms(form_type):
    forms = FormManager(current_caller()).list_forms(
        form_type,
        status=request.args.get('status'),
        start_date=request.args.get('start_date'),
        end_date=request.args.get('end_date'),
        lab_id=request.args.get('lab_id', type=int),
    )
    return success(forms=[_form_dict(form_type, f) for f in forms], count=len(forms))


@bp.route('/<form_type>', methods=['POST'])
@login_required
def submit_form(form_type):
    data = json_payload()
    logger.debug(f"Portal {form_type} submission: {sanitize_dict(data)}")
    caller = current_caller()
    form = FormManager(caller).submit(form_type, data, lab_ref=data.get('lab_id') or caller.lab_id)
    return success(201, message="Form submitted", form=_form_dict(form_type, form))


@bp.route('/<form_type>/<int:form_id>', methods=['GET'])
@login_required
def form_detail(form_type, form_id):
    form = FormManager(current_caller()).get(form_type, form_id)
    return success(form=_form_dict(form_type, form))


@bp.route('/<form_type>/<int:form_id>', methods=['PUT', 'PATCH'])
@login_required
def update_form(form_type, form_id):
    form = FormManager(current_caller()).update_details(form_type, form_id, json_payload())
    return success(message="Form updated", form=_form_dict(form_type, form))


@bp.route('/<form_type>/<int:form_id>/status', methods=['POST'])
@login_required
def change_form_status(form_type, form_id):
    data = json_payload()
    form = FormManager(current_caller()).transition(
        form_type, form_id, data.get('status'), reason=data.get('reason')
    )
    return success(message=f"Form {form.status.replace('_', ' ').lower()}", form=_form_dict(form_type, form))
