"""
Workstation status aggregation

A workstation is Functional only when it has at least one system-unit asset and
every system-unit asset is in a functional status. Peripherals never affect it.
The aggregate is recomputed on each read and snapshotted onto PMC reports and
service logs.
"""

from typing import Iterable, List, Tuple

SYSTEM_UNIT_TYPES = frozenset(name.lower() for name in (
    'SSD', 'PSU', 'RAM', 'CPU', 'HDD', 'Case', 'CPU Fan',
    'Motherboard', 'System Fan', 'GPU', 'Video Card',
))

FUNCTIONAL_STATUSES = frozenset(('functional', 'working', 'operational'))

FUNCTIONAL = 'Functional'
FOR_REPAIR = 'For Repair'


def is_system_unit(unit_name) -> bool:
    return bool(unit_name) and unit_name.strip().lower() in SYSTEM_UNIT_TYPES


def is_functional_status(status_name) -> bool:
    return bool(status_name) and status_name.strip().lower() in FUNCTIONAL_STATUSES


def split_assets(assets: Iterable) -> Tuple[List, List]:
    """
    Partition assets into (system_units, peripherals) by unit type name.

    Assets are anything exposing unit_name and status_name attributes.
    """
    system_units, peripherals = [], []
    for asset in assets:
        if is_system_unit(asset.unit_name):
            system_units.append(asset)
        else:
            peripherals.append(asset)
    return system_units, peripherals


def aggregate_system_status(assets: Iterable) -> str:
    """
    Derive a workstation's overall status from its assets.

    Returns "Functional" iff the system-unit list is non-empty and all of its
    statuses are functional; otherwise "For Repair". A workstation with no
    system units is reported For Repair.
    """
    system_units, _ = split_assets(assets)
    if not system_units:
        return FOR_REPAIR
    if all(is_functional_status(asset.status_name) for asset in system_units):
        return FUNCTIONAL
    return FOR_REPAIR
