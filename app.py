#!/usr/bin/env python3
#USE VENV: source venv/bin/activate
"""
Run script for the Laboratory Management System
"""

import argparse
import os
import sys
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

from labtrack import create_app
from labtrack.build import build_database
from labtrack.logger import get_logger

# Note: Default user credentials are configured via environment variables.
# Run 'python generate_env.py' to create .env file with secure passwords.

logger = get_logger("labtrack.run")


def parse_arguments():
    """Parse command line arguments"""
    parser = argparse.ArgumentParser(description='Laboratory Management System')
    parser.add_argument('--build-only', action='store_true',
                        help='Create tables and insert critical data, then exit without starting the server')
    parser.add_argument('--skip-create', action='store_true',
                        help='Do not run create_all (schema is managed by Flask-Migrate); critical data is still verified')
    return parser.parse_args()


if __name__ == '__main__':
    args = parse_arguments()

    logger.debug("Starting Laboratory Management System...")
    app = create_app()

    # Critical data is ALWAYS checked and inserted regardless of flags
    build_database(app, create_tables=not args.skip_create)

    if args.build_only:
        logger.debug("Build completed. Exiting without starting web server.")
        sys.exit(0)

    # FLASK_DEBUG: Enable/disable debug mode (default: False for security)
    debug_mode = os.environ.get('FLASK_DEBUG', 'False').lower() in ('true', '1', 'yes', 'on')

    # USE_RELOADER: Enable/disable auto-reloader (default: False in production)
    use_reloader = os.environ.get('USE_RELOADER', 'False').lower() in ('true', '1', 'yes', 'on')

    host = os.environ.get('FLASK_HOST', '127.0.0.1')
    port = int(os.environ.get('FLASK_PORT', '5000'))

    if debug_mode:
        logger.warning("DEBUG MODE ENABLED - Do not use in production!")

    logger.info(f"Starting server on {host}:{port} (debug={debug_mode}, reloader={use_reloader})")
    app.run(debug=debug_mode, host=host, port=port, use_reloader=use_reloader)
