"""
Test the logging sanitizer utility.
Verifies passwords and link tokens are redacted before payloads are logged.
"""

from labtrack.utils.logging_sanitizer import sanitize_dict, sanitize_exception_message, SENSITIVE_FIELDS


def test_sanitize_dict():
    """Test dictionary sanitization"""
    test_data = {
        'username': 'admin',
        'password': 'secret123',
        'email': 'admin@example.com'
    }
    result = sanitize_dict(test_data)
    assert result['username'] == 'admin', "Username should not be redacted"
    assert result['password'] == '[REDACTED]', "Password should be redacted"
    assert result['email'] == 'admin@example.com', "Email should not be redacted"

    result = sanitize_dict({'Password': 'a', 'TOKEN': 'b'})
    assert result == {'Password': '[REDACTED]', 'TOKEN': '[REDACTED]'}, "Matching should be case-insensitive"


def test_nested_and_batch_payloads():
    """Nested dicts and lists of dicts are sanitized"""
    test_data = {
        'user': {'username': 'admin', 'password': 'secret123'},
        'rows': [{'full_name': 'Ana', 'new_password': 'x'}, 'plain'],
    }
    result = sanitize_dict(test_data)
    assert result['user']['password'] == '[REDACTED]'
    assert result['rows'][0] == {'full_name': 'Ana', 'new_password': '[REDACTED]'}
    assert result['rows'][1] == 'plain'
    assert test_data['user']['password'] == 'secret123', "Input must not be modified"


def test_empty_and_custom_redaction():
    assert sanitize_dict({}) == {}
    assert sanitize_dict(None) is None
    assert sanitize_dict({'secret': 1}, redact_text='***') == {'secret': '***'}


def test_sanitize_exception_message():
    assert sanitize_exception_message(ValueError("bad lab id")) == "bad lab id"
    message = sanitize_exception_message(ValueError("password was hunter2"))
    assert 'hunter2' not in message
    assert 'password' in SENSITIVE_FIELDS
