"""
Tests for asset and workstation writes, including all-or-nothing batches
"""

from datetime import date
import pytest
from labtrack import db
from labtrack.business.assets.asset_manager import AssetManager
from labtrack.business.assets.workstation_manager import WorkstationManager
from labtrack.business.assets.workstation_context import WorkstationContext
from labtrack.business.core.errors import LabUniquenessError, LabValidationError, LabAuthorizationError
from labtrack.data.core.asset_info.asset import InventoryAsset
from labtrack.data.core.asset_info.unit import Unit
from labtrack.data.core.asset_info.workstation import Workstation
from labtrack.data.maintenance.service_log import ServiceLog
from labtrack.data.maintenance.pmc_report import PMCReport
from labtrack.business.maintenance.maintenance_context import MaintenanceContext
from labtrack.test.conftest import caller_for


def _rows(seed, tags):
    unit_id = Unit.query.filter_by(unit_name='Keyboard').one().id
    return [{'lab_id': seed['lab_a'], 'unit_id': unit_id, 'property_tag_no': tag, 'description': 'USB keyboard'}
            for tag in tags]


def test_batch_with_duplicate_tag_persists_nothing(ctx, seed):
    """A batch of 5 with a duplicate tag at #3 is rejected with 0 assets persisted"""
    before = InventoryAsset.query.count()
    rows = _rows(seed, ['KB-1', 'KB-2', 'KB-1', 'KB-4', 'KB-5'])
    with pytest.raises(LabUniquenessError) as exc:
        AssetManager(caller_for(seed, 'custodian_a')).batch_create(rows)
    assert exc.value.details[0]['index'] == 2
    assert InventoryAsset.query.count() == before


def test_batch_with_stored_tag_persists_nothing(ctx, seed):
    before = InventoryAsset.query.count()
    with pytest.raises(LabUniquenessError):
        AssetManager(caller_for(seed, 'custodian_a')).batch_create(_rows(seed, ['KB-1', 'PT-0001']))
    assert InventoryAsset.query.count() == before


def test_batch_creates_every_row(ctx, seed):
    assets = AssetManager(caller_for(seed, 'custodian_a')).batch_create(_rows(seed, ['KB-1', 'KB-2', None]))
    assert len(assets) == 3
    assert all(a.status_name == 'Functional' for a in assets)


def test_batch_row_outside_lab_is_refused(ctx, seed):
    rows = _rows(seed, ['KB-1'])
    rows[0]['lab_id'] = seed['lab_b']
    with pytest.raises(LabAuthorizationError):
        AssetManager(caller_for(seed, 'custodian_a')).batch_create(rows)


def test_update_is_partial(ctx, seed):
    manager = AssetManager(caller_for(seed, 'custodian_a'))
    asset = manager.update(seed['ram'], {'status': 'Functional'})
    assert asset.status_name == 'Functional'
    assert asset.property_tag_no == 'PT-0002'
    assert WorkstationContext(seed['ws_a']).system_status == 'Functional'

    with pytest.raises(LabUniquenessError):
        manager.update(seed['ram'], {'property_tag_no': 'PT-0001'})


def test_asset_delete_keeps_service_history(ctx, seed):
    MaintenanceContext(caller_for(seed, 'admin')).create_or_update_report(
        seed['ws_a'], '2nd', {'asset_actions': [{'asset_id': seed['mouse']}]}, date(2024, 5, 1)
    )
    AssetManager(caller_for(seed, 'admin')).delete(seed['mouse'])
    assert db.session.get(InventoryAsset, seed['mouse']) is None
    log = ServiceLog.query.one()
    assert log.actions[0].asset_id is None


def test_workstation_batch_rejects_duplicate_names(ctx, seed):
    manager = WorkstationManager(caller_for(seed, 'custodian_a'))
    with pytest.raises(LabUniquenessError):
        manager.batch_create([
            {'lab_id': seed['lab_a'], 'workstation_name': 'WS-02'},
            {'lab_id': seed['lab_a'], 'workstation_name': 'WS-02'},
        ])
    with pytest.raises(LabUniquenessError):
        manager.create({'lab_id': seed['lab_a'], 'workstation_name': 'WS-01'})
    assert Workstation.query.filter_by(lab_id=seed['lab_a']).count() == 1

    created = manager.batch_create([{'lab_id': seed['lab_a'], 'workstation_name': f'WS-0{n}'} for n in (2, 3)])
    assert [ws.workstation_name for ws in created] == ['WS-02', 'WS-03']


def test_workstation_name_is_required(ctx, seed):
    with pytest.raises(LabValidationError):
        WorkstationManager(caller_for(seed, 'admin')).create({'lab_id': seed['lab_a']})


def test_workstation_delete_unassigns_assets(ctx, seed):
    MaintenanceContext(caller_for(seed, 'admin')).create_or_update_report(seed['ws_a'], '2nd', {}, date(2024, 5, 1))

    WorkstationManager(caller_for(seed, 'custodian_a')).delete(seed['ws_a'])

    assert db.session.get(Workstation, seed['ws_a']) is None
    assert db.session.get(InventoryAsset, seed['cpu']).workstation_id is None
    assert PMCReport.query.count() == 0
    log = ServiceLog.query.one()
    assert log.workstation_id is None


def test_moving_asset_to_another_lab_leaves_its_workstation(ctx, seed):
    asset = AssetManager(caller_for(seed, 'admin')).update(seed['ram'], {'lab_id': seed['lab_b']})
    assert asset.lab_id == seed['lab_b']
    assert asset.workstation_id is None
    assert WorkstationContext(seed['ws_a']).system_status == 'Functional'

    moved = AssetManager(caller_for(seed, 'admin')).update(
        seed['cpu'], {'lab_id': seed['lab_b'], 'workstation_id': seed['ws_b']}
    )
    assert moved.workstation_id == seed['ws_b']

    same_lab = AssetManager(caller_for(seed, 'admin')).update(seed['mouse'], {'lab_id': seed['lab_a']})
    assert same_lab.workstation_id == seed['ws_a']
