"""
Tests for reporting quarter helpers
"""

from datetime import date
import pytest
from labtrack.business.core.errors import LabValidationError
from labtrack.business.core.quarter import quarter_for_date, normalize_quarter, parse_date, reporting_date


@pytest.mark.parametrize('month, expected', [(1, '1st'), (3, '1st'), (4, '2nd'), (9, '3rd'), (12, '4th')])
def test_quarter_for_date(month, expected):
    assert quarter_for_date(date(2024, month, 1)) == expected


@pytest.mark.parametrize('value', [1, '1', 'Q1', 'q1', '1st', ' 1ST '])
def test_normalize_quarter_spellings(value):
    assert normalize_quarter(value) == '1st'


@pytest.mark.parametrize('value', [None, '5', 'Q0', 'first'])
def test_normalize_quarter_rejects_unknown(value):
    with pytest.raises(LabValidationError):
        normalize_quarter(value)


def test_parse_date():
    assert parse_date('2024-02-29') == date(2024, 2, 29)
    assert parse_date('2024-02-29T10:15:00') == date(2024, 2, 29)
    assert parse_date('') is None
    with pytest.raises(LabValidationError):
        parse_date('29/02/2024', field='report_date')


def test_reporting_date_precedence():
    config = {'REPORTING_DATE': '2024-08-01'}
    assert reporting_date(config, '2024-01-10') == date(2024, 1, 10)
    assert reporting_date(config) == date(2024, 8, 1)
    assert reporting_date({}) == date.today()
