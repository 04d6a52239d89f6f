"""
Reporting quarter helpers

Quarters are labelled "1st".."4th" and derived from the month of a date.
Business code is handed a reporting date; it never reads the clock itself.
"""

from datetime import date, datetime
from labtrack.business.core.errors import LabValidationError

QUARTERS = ('1st', '2nd', '3rd', '4th')

# Accepted spellings of each quarter, lower-cased
_QUARTER_ALIASES = {
    alias: label
    for index, label in enumerate(QUARTERS, start=1)
    for alias in (label, str(index), f'q{index}', f'{index}q')
}


def quarter_for_date(value: date) -> str:
    """Return the quarter label for a date: Jan-Mar is "1st", Oct-Dec is "4th"."""
    return QUARTERS[(value.month - 1) // 3]


def normalize_quarter(value) -> str:
    """
    Normalize 1, "1", "Q1", "q1" or "1st" to the stored label "1st".

    Raises:
        LabValidationError: If value is not a quarter
    """
    if value is None:
        raise LabValidationError("Quarter is required")
    label = _QUARTER_ALIASES.get(str(value).strip().lower())
    if label is None:
        raise LabValidationError(f"Invalid quarter: {value}", details=[{'allowed': list(QUARTERS)}])
    return label


def parse_date(value, field='date'):
    """
    Parse an ISO date string (or datetime string) into a date.

    Raises:
        LabValidationError: If the value cannot be parsed
    """
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        raise LabValidationError(f"Invalid {field}: {value}", details=[{'field': field}])


def reporting_date(config, requested=None) -> date:
    """
    Resolve the date a service or report is recorded against.

    Order: the requested value, the REPORTING_DATE setting, then today.
    """
    resolved = parse_date(requested, field='report_date')
    if resolved:
        return resolved
    configured = parse_date(config.get('REPORTING_DATE'), field='REPORTING_DATE')
    if configured:
        return configured
    return date.today()
