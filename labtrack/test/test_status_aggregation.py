"""
Tests for workstation status aggregation
"""

from types import SimpleNamespace
from labtrack.business.assets.status_aggregation import (
    aggregate_system_status, split_assets, is_system_unit, FUNCTIONAL, FOR_REPAIR,
)


def asset(unit_name, status_name):
    return SimpleNamespace(unit_name=unit_name, status_name=status_name)


def test_all_system_units_functional():
    assets = [asset('CPU', 'Functional'), asset('RAM', 'Functional'), asset('PSU', 'Working')]
    assert aggregate_system_status(assets) == FUNCTIONAL


def test_one_failing_system_unit_means_for_repair():
    assets = [asset('CPU', 'Functional'), asset('RAM', 'For Repair')]
    assert aggregate_system_status(assets) == FOR_REPAIR


def test_peripherals_do_not_affect_status():
    assets = [asset('CPU', 'Functional'), asset('Mouse', 'For Repair'), asset('Monitor', 'For Replacement')]
    assert aggregate_system_status(assets) == FUNCTIONAL


def test_no_system_units_is_for_repair():
    assert aggregate_system_status([]) == FOR_REPAIR
    assert aggregate_system_status([asset('Keyboard', 'Functional')]) == FOR_REPAIR


def test_status_and_unit_matching_is_case_insensitive():
    assets = [asset('cpu', 'OPERATIONAL'), asset(' Video Card ', 'working')]
    assert aggregate_system_status(assets) == FUNCTIONAL


def test_missing_status_is_not_functional():
    assert aggregate_system_status([asset('CPU', None)]) == FOR_REPAIR


def test_split_assets():
    cpu, mouse = asset('CPU', 'Functional'), asset('Mouse', 'Functional')
    system_units, peripherals = split_assets([cpu, mouse])
    assert system_units == [cpu]
    assert peripherals == [mouse]
    assert not is_system_unit(None)
