"""
Routes package for LabTrack
One blueprint per resource, all JSON
"""

from labtrack.logger import get_logger

logger = get_logger("labtrack.routes")


def init_app(app):
    """Initialize all route blueprints with the Flask app"""
    from labtrack import csrf
    from . import (
        inventory, workstations, laboratories, users, daily_reports,
        maintenance, forms, public_forms, one_time_forms, dashboard,
    )

    logger.debug("Initializing route blueprints")

    app.register_blueprint(inventory.bp, url_prefix='/inventory')
    app.register_blueprint(workstations.bp, url_prefix='/workstations')
    app.register_blueprint(laboratories.bp, url_prefix='/laboratories')
    app.register_blueprint(users.bp, url_prefix='/users')
    app.register_blueprint(daily_reports.bp, url_prefix='/daily-reports')
    app.register_blueprint(maintenance.bp, url_prefix='/maintenance')
    app.register_blueprint(forms.bp, url_prefix='/forms')
    app.register_blueprint(dashboard.bp)

    # Anonymous submission endpoints
    csrf.exempt(public_forms.bp)
    csrf.exempt(one_time_forms.submit_through_link)
    app.register_blueprint(public_forms.bp, url_prefix='/public-forms')
    app.register_blueprint(one_time_forms.bp, url_prefix='/one-time-forms')

    logger.info("Route blueprints registered")
