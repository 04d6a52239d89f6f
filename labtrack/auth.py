from functools import wraps
from flask import Blueprint, jsonify, request
from flask_login import login_user, logout_user, login_required, current_user
from flask_wtf.csrf import generate_csrf
from labtrack.data.core.user_info.user import User
from labtrack.business.core.access_scope import CallerScope
from labtrack.services.directory_service import DirectoryService
from labtrack import limiter
from labtrack.logger import get_logger

logger = get_logger("labtrack.auth")
auth = Blueprint('auth', __name__)


def current_caller() -> CallerScope:
    """Scope of the logged-in user, handed to the business layer"""
    return CallerScope.from_user(current_user)


def admin_required(view):
    """Reject non-Admin callers with a 403 before the view runs"""
    @wraps(view)
    def wrapper(*args, **kwargs):
        if not current_user.is_admin:
            logger.warning(f"User {current_user.username} denied admin route {request.path}")
            return jsonify({"success": False, "error": "forbidden", "message": "Admin access required"}), 403
        return view(*args, **kwargs)
    return wrapper


@auth.route('/login', methods=['POST'])
@limiter.limit("10 per minute")
def login():
    data = request.get_json(silent=True) or request.form
    identifier = (data.get('username') or data.get('email') or '').strip()
    password = data.get('password') or ''

    logger.debug(f"Login attempt for: {identifier}")

    if not identifier or not password:
        logger.warning(f"Login attempt with missing credentials for: {identifier}")
        return jsonify({"success": False, "error": "validation_error",
                        "message": "Please enter both username and password"}), 400

    user = User.query.filter((User.username == identifier) | (User.email == identifier)).first()

    if user is None or not user.check_password(password):
        logger.warning(f"Failed login attempt for: {identifier}")
        return jsonify({"success": False, "error": "unauthenticated",
                        "message": "Invalid username or password"}), 401

    if not user.is_active:
        logger.warning(f"Login attempt for disabled account: {identifier}")
        return jsonify({"success": False, "error": "forbidden", "message": "Account is disabled"}), 403

    login_user(user)
    logger.info(f"Successful login for user: {user.username}")
    return jsonify({"success": True, "user": user.to_dict(include_audit_fields=False)})


@auth.route('/logout', methods=['POST'])
@login_required
def logout():
    username = current_user.username
    logout_user()
    logger.info(f"User logged out: {username}")
    return jsonify({"success": True, "message": "You have been logged out"})


@auth.route('/me', methods=['GET'])
@login_required
def me():
    result = current_user.to_dict(include_audit_fields=False)
    result.update(DirectoryService.assigned_lab(current_user))
    return jsonify({"success": True, "user": result})


@auth.route('/csrf-token', methods=['GET'])
def csrf_token():
    return jsonify({"csrf_token": generate_csrf()})
