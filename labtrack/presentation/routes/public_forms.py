"""
Public form routes
Submission without login for a laboratory given by id or name
"""

from flask import Blueprint
from labtrack import limiter
from labtrack.business.forms.form_manager import FormManager
from labtrack.data.core.laboratory import Laboratory
from labtrack.presentation.routes.common import json_payload, success
from labtrack.utils.logging_sanitizer import sanitize_dict
from labtrack.logger import get_logger

bp = Blueprint('public_forms', __name__)
logger = get_logger("labtrack.routes.public_forms")


@bp.route('/laboratories', methods=['GET'])
def laboratory_options():
    labs = Laboratory.query.order_by(Laboratory.lab_name).all()
    return success(laboratories=[{'id': lab.id, 'lab_name': lab.lab_name} for lab in labs])


@bp.route('/<form_type>', methods=['POST'])
@limiter.limit("30 per hour")
def submit_public_form(form_type):
    data = json_payload()
    logger.info(f"Public {form_type} submission: {sanitize_dict(data)}")
    form = FormManager().submit(form_type, data, submitted_via='public')
    return success(201, message="Form submitted", form_id=form.id, status=form.status,
                   laboratory=form.laboratory.lab_name)
