"""
Models build module for LabTrack
Importing the model modules registers them with SQLAlchemy
"""

from labtrack.logger import get_logger

logger = get_logger("labtrack.models.core")


def build_models():
    """
    Register all models - this is a no-op beyond the imports, which
    attach every table to db.metadata
    """
    import labtrack.data.core.user_info.user
    import labtrack.data.core.laboratory
    import labtrack.data.core.procedure
    import labtrack.data.core.asset_info.asset_status
    import labtrack.data.core.asset_info.unit
    import labtrack.data.core.asset_info.workstation
    import labtrack.data.core.asset_info.asset
    import labtrack.data.maintenance.pmc_report
    import labtrack.data.maintenance.service_log
    import labtrack.data.reports.daily_report
    import labtrack.data.forms.form_request
    import labtrack.data.forms.one_time_link

    logger.debug("Models registered")
