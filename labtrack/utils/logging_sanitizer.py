"""
Logging Sanitizer Utility

Provides utilities to sanitize request payloads before logging.
Prevents accidental logging of passwords, one-time link tokens and session secrets.
"""

from typing import Any, Dict


# Fields that should never be logged
SENSITIVE_FIELDS = {
    'password',
    'password_confirm',
    'confirm_password',
    'current_password',
    'new_password',
    'old_password',
    'secret',
    'secret_key',
    'token',
    'auth_token',
    'access_token',
    'session_id',
    'csrf_token',
}


def sanitize_value(value: Any, redact_text: str = '[REDACTED]') -> Any:
    if isinstance(value, dict):
        return sanitize_dict(value, redact_text)
    if isinstance(value, list):
        return [sanitize_value(item, redact_text) for item in value]
    return value


def sanitize_dict(data: Dict[str, Any], redact_text: str = '[REDACTED]') -> Dict[str, Any]:
    """
    Sanitize a dictionary by replacing sensitive field values with redaction text.

    Nested dictionaries and lists of dictionaries (batch payloads) are sanitized too.

    Example:
        >>> sanitize_dict({'username': 'admin', 'password': 'secret123'})
        {'username': 'admin', 'password': '[REDACTED]'}
    """
    if not data:
        return data

    sanitized = {}
    for key, value in data.items():
        if str(key).lower() in SENSITIVE_FIELDS:
            sanitized[key] = redact_text
        else:
            sanitized[key] = sanitize_value(value, redact_text)

    return sanitized


def sanitize_exception_message(exception: Exception) -> str:
    """Replace an exception message that mentions a sensitive field"""
    message = str(exception)
    if any(field in message.lower() for field in SENSITIVE_FIELDS):
        return f"{type(exception).__name__}: [Message contains sensitive data]"
    return message
