"""
One-time form link routes

Generating a link needs a login; validating and submitting through it do not.
"""

from datetime import datetime
from flask import Blueprint, current_app
from flask_login import login_required
from labtrack import limiter
from labtrack.auth import current_caller
from labtrack.business.forms.one_time_link_manager import OneTimeLinkManager
from labtrack.business.core.validation import clean_str
from labtrack.business.core.errors import LabValidationError
from labtrack.presentation.routes.common import json_payload, success
from labtrack.utils.logging_sanitizer import sanitize_dict
from labtrack.logger import get_logger

bp = Blueprint('one_time_forms', __name__)
logger = get_logger("labtrack.routes.one_time_forms")


@bp.route('/generate', methods=['POST'])
@login_required
def generate_link():
    data = json_payload()
    link = OneTimeLinkManager(current_caller()).generate(
        datetime.utcnow(),
        lab_id=data.get('lab_id'),
        expires_in_hours=data.get('expires_in_hours') or current_app.config['ONE_TIME_LINK_HOURS'],
    )
    return success(201, token=link.token, lab_id=link.lab_id, expires_at=link.expires_at.isoformat())


@bp.route('/validate/<token>', methods=['GET'])
def validate_link(token):
    link = OneTimeLinkManager.validate(token, datetime.utcnow())
    return success(
        valid=True,
        laboratory={'id': link.lab_id, 'lab_name': link.laboratory.lab_name},
        expires_at=link.expires_at.isoformat(),
    )


@bp.route('/submit/<token>', methods=['POST'])
@limiter.limit("30 per hour")
def submit_through_link(token):
    data = json_payload()
    form_type = clean_str(data.pop('form_type', None))
    if not form_type:
        raise LabValidationError("form_type is required", details=[{'field': 'form_type'}])
    logger.info(f"One-time {form_type} submission: {sanitize_dict(data)}")
    form = OneTimeLinkManager().submit(token, form_type, data, datetime.utcnow())
    return success(201, message="Form submitted", form_type=form_type, form_id=form.id, status=form.status)
