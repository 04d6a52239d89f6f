"""
Database build for LabTrack
Creates tables and inserts the critical lookup data the application cannot run without
"""

from labtrack import db
from flask import current_app
from pathlib import Path
import json
from labtrack.logger import get_logger

logger = get_logger("labtrack.build")

CRITICAL_DATA_FILE = Path(__file__).parent / 'data' / 'core' / 'build_data_critical.json'


def load_critical_data():
    """
    Load build_data_critical.json

    Raises:
        FileNotFoundError: If critical data file not found
    """
    if not CRITICAL_DATA_FILE.exists():
        error_msg = f"Critical data file not found: {CRITICAL_DATA_FILE}"
        logger.error(error_msg)
        raise FileNotFoundError(error_msg)

    with open(CRITICAL_DATA_FILE, 'r', encoding='utf-8') as f:
        return json.load(f)


def verify_critical_data(critical_data=None):
    """
    Verify that critical data is present in the database

    Returns:
        bool: True if all critical data is present, False otherwise
    """
    from labtrack.data.core.user_info.user import User
    from labtrack.data.core.asset_info.asset_status import AssetStatus
    from labtrack.data.core.asset_info.unit import Unit
    from labtrack.data.core.procedure import Procedure

    critical_data = critical_data or load_critical_data()
    core = critical_data.get('Core', {})

    existing_statuses = {s.status_name for s in AssetStatus.query.all()}
    missing = set(core.get('Asset_Statuses', [])) - existing_statuses
    if missing:
        logger.warning(f"Asset statuses missing: {sorted(missing)}")
        return False

    existing_units = {u.unit_name for u in Unit.query.all()}
    for unit_names in core.get('Device_Types', {}).values():
        if set(unit_names) - existing_units:
            logger.warning("Unit types missing")
            return False

    for category, names in core.get('Procedures', {}).items():
        found = Procedure.query.filter(Procedure.category == category,
                                       Procedure.procedure_name.in_(names)).count()
        if found != len(names):
            logger.warning(f"{category} procedures missing")
            return False

    for user_data in critical_data.get('Essential', {}).get('Users', {}).values():
        if not User.query.filter_by(username=user_data['username']).first():
            logger.warning(f"Essential user {user_data['username']} not found")
            return False

    logger.info("Critical data verification passed")
    return True


def insert_critical_data():
    """
    Insert critical data that must always be present

    Must run inside an application context. Lookup rows are found-or-created,
    so running it against a populated database is a no-op.

    Raises:
        RuntimeError: If insertion fails or the admin password is not configured
    """
    from labtrack.data.core.user_info.user import User
    from labtrack.data.core.asset_info.asset_status import AssetStatus
    from labtrack.data.core.asset_info.unit import Unit, DeviceType
    from labtrack.data.core.procedure import Procedure

    critical_data = load_critical_data()

    if verify_critical_data(critical_data):
        logger.info("Critical data already present, skipping insertion")
        return

    logger.warning("Critical data missing, attempting insertion...")
    core = critical_data.get('Core', {})

    try:
        for status_name in core.get('Asset_Statuses', []):
            AssetStatus.find_or_create_from_dict({'status_name': status_name})

        for device_type_name, unit_names in core.get('Device_Types', {}).items():
            device_type, _ = DeviceType.find_or_create_from_dict({'device_type_name': device_type_name})
            for unit_name in unit_names:
                Unit.find_or_create_from_dict(
                    {'unit_name': unit_name, 'device_type_id': device_type.id},
                    lookup_fields=['unit_name']
                )

        for category, names in core.get('Procedures', {}).items():
            for procedure_name in names:
                Procedure.find_or_create_from_dict(
                    {'procedure_name': procedure_name, 'category': category},
                    lookup_fields=['procedure_name', 'category']
                )

        for user_data in critical_data.get('Essential', {}).get('Users', {}).values():
            if User.query.filter_by(username=user_data['username']).first():
                continue
            password = current_app.config.get('ADMIN_USER_PASSWORD')
            if not password:
                raise RuntimeError("ADMIN_USER_PASSWORD must be set to create the admin user")
            User.find_or_create_from_dict(dict(user_data, password=password), lookup_fields=['username'])
            logger.info(f"Inserted essential user: {user_data['username']}")

        db.session.commit()
        logger.info("Successfully inserted critical data")
    except Exception as e:
        db.session.rollback()
        error_msg = f"Critical data insertion failed: {e}"
        logger.error(error_msg)
        raise RuntimeError(error_msg) from e

    if not verify_critical_data(critical_data):
        error_msg = "Critical data insertion completed but verification failed"
        logger.error(error_msg)
        raise RuntimeError(error_msg)


def build_database(app=None, create_tables=True):
    """
    Create tables and insert critical data

    Args:
        app: Flask application; one is created from the environment when omitted
        create_tables (bool): Run db.create_all() before inserting data
    """
    if app is None:
        from labtrack import create_app
        app = create_app()

    with app.app_context():
        logger.info("Starting database build")
        if create_tables:
            db.create_all()
            logger.info("All database tables created")

        # Critical data must be present for the application to function
        insert_critical_data()
        logger.info("Database build completed successfully")
    return app
