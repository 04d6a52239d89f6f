"""
Request helpers shared by the route modules
"""

from flask import current_app, jsonify, request
from labtrack.business.core.errors import LabValidationError
from labtrack.business.core.quarter import reporting_date, quarter_for_date


def json_payload(expect=dict):
    """Request body as JSON; a body of the wrong shape is a validation error"""
    data = request.get_json(silent=True)
    if data is None:
        data = expect()
    if not isinstance(data, expect):
        raise LabValidationError(f"Request body must be a JSON {'object' if expect is dict else 'array'}")
    return data


def success(status=200, /, **body):
    return jsonify({"success": True, **body}), status


def service_period(source):
    """
    Resolve (report_date, quarter, fiscal_year) for a request.

    The quarter comes from the request's quarter, else from report_date, else
    from the REPORTING_DATE setting, else from today.
    """
    when = reporting_date(current_app.config, source.get('report_date') or source.get('service_date'))
    quarter = source.get('quarter') or quarter_for_date(when)
    fiscal_year = source.get('fiscal_year') or when.year
    return when, quarter, fiscal_year
