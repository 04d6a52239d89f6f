"""
Tests for caller scoping of lab-owned rows
"""

import pytest
from labtrack.business.core.access_scope import CallerScope, scope_to_caller, ensure_lab_access, ensure_admin
from labtrack.business.core.errors import LabAuthorizationError
from labtrack.data.core.asset_info.asset import InventoryAsset
from labtrack.test.conftest import caller_for


def test_admin_sees_every_lab(ctx, seed):
    admin = caller_for(seed, 'admin')
    rows = scope_to_caller(InventoryAsset.query, InventoryAsset, admin).all()
    assert len(rows) == 3


def test_custodian_sees_only_own_lab(ctx, seed):
    assert scope_to_caller(InventoryAsset.query, InventoryAsset, caller_for(seed, 'custodian_a')).count() == 3
    assert scope_to_caller(InventoryAsset.query, InventoryAsset, caller_for(seed, 'custodian_b')).count() == 0


def test_custodian_without_lab_sees_nothing(ctx, seed):
    unassigned = CallerScope(user_id=seed['custodian_a'], role='Custodian', lab_id=None)
    assert scope_to_caller(InventoryAsset.query, InventoryAsset, unassigned).count() == 0
    with pytest.raises(LabAuthorizationError):
        ensure_lab_access(unassigned, seed['lab_a'])


def test_ensure_lab_access(seed):
    ensure_lab_access(caller_for(seed, 'admin'), seed['lab_b'])
    ensure_lab_access(caller_for(seed, 'custodian_a'), seed['lab_a'])
    with pytest.raises(LabAuthorizationError) as exc:
        ensure_lab_access(caller_for(seed, 'custodian_a'), seed['lab_b'], action='update')
    assert exc.value.http_status == 403


def test_ensure_admin(seed):
    ensure_admin(caller_for(seed, 'admin'), 'manage users')
    with pytest.raises(LabAuthorizationError):
        ensure_admin(caller_for(seed, 'custodian_a'), 'manage users')
