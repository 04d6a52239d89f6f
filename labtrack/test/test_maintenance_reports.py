"""
Tests for the quarterly maintenance report lifecycle and repair logs
"""

from datetime import date
import pytest
from labtrack import db
from labtrack.business.core.errors import LabValidationError, LabAuthorizationError, LabUniquenessError
from labtrack.business.maintenance.maintenance_context import MaintenanceContext
from labtrack.data.core.asset_info.asset import InventoryAsset
from labtrack.data.core.procedure import Procedure
from labtrack.data.maintenance.pmc_report import PMCReport
from labtrack.data.maintenance.service_log import ServiceLog, ServiceLogAssetAction
from labtrack.test.conftest import caller_for

REPORT_DATE = date(2024, 5, 15)


def test_first_service_creates_report(ctx, seed):
    """W1 {CPU: Functional, RAM: For Repair} is recorded For Repair with service_count 1"""
    context = MaintenanceContext(caller_for(seed, 'custodian_a'))
    report, log, created = context.create_or_update_report(seed['ws_a'], '2nd', {}, REPORT_DATE)

    assert created
    assert report.workstation_status == 'For Repair'
    assert report.service_count == 1
    assert report.fiscal_year == 2024 and report.quarter == '2nd'
    assert log.service_type == ServiceLog.ROUTINE
    assert log.pmc_id == report.id
    assert {a.asset_id for a in log.actions} == {seed['cpu'], seed['ram'], seed['mouse']}
    assert all(a.action == ServiceLogAssetAction.CHECKED for a in log.actions)


def test_second_service_same_quarter_updates_report(ctx, seed):
    context = MaintenanceContext(caller_for(seed, 'custodian_a'))
    first, _, _ = context.create_or_update_report(seed['ws_a'], '2nd', {}, REPORT_DATE)
    payload = {
        'asset_actions': [{'asset_id': seed['ram'], 'status_after': 'Functional'}],
        'overall_remarks': 'RAM reseated',
    }
    second, log, created = context.create_or_update_report(seed['ws_a'], 'Q2', payload, date(2024, 6, 1))

    assert not created
    assert second.id == first.id
    assert second.service_count == 2
    assert second.workstation_status == 'Functional'
    assert PMCReport.query.filter_by(workstation_id=seed['ws_a']).count() == 1
    assert ServiceLog.query.filter_by(workstation_id=seed['ws_a']).count() == 2

    action = log.actions[0]
    assert (action.status_before, action.status_after) == ('For Repair', 'Functional')
    assert (log.workstation_status_before, log.workstation_status_after) == ('For Repair', 'Functional')


def test_new_quarter_starts_a_new_report(ctx, seed):
    context = MaintenanceContext(caller_for(seed, 'custodian_a'))
    context.create_or_update_report(seed['ws_a'], '2nd', {}, REPORT_DATE)
    report, _, created = context.create_or_update_report(seed['ws_a'], '3rd', {}, date(2024, 8, 1))
    assert created
    assert report.service_count == 1


def test_qpmc_procedures_are_recorded(ctx, seed):
    qpmc = Procedure.query.filter_by(category=Procedure.CATEGORY_QPMC).order_by(Procedure.id).limit(2).all()
    context = MaintenanceContext(caller_for(seed, 'custodian_a'))
    report, _, _ = context.create_or_update_report(
        seed['ws_a'], '2nd', {'procedure_ids': [p.id for p in qpmc], 'software_name': 'Windows 11'}, REPORT_DATE
    )
    assert [p.procedure_id for p in report.procedures] == [p.id for p in qpmc]
    assert report.software_name == 'Windows 11'

    dar = Procedure.query.filter_by(category=Procedure.CATEGORY_DAR).first()
    with pytest.raises(LabValidationError):
        context.create_or_update_report(seed['ws_a'], '2nd', {'procedure_ids': [dar.id]}, REPORT_DATE)


def test_service_outside_lab_is_refused(ctx, seed):
    context = MaintenanceContext(caller_for(seed, 'custodian_b'))
    with pytest.raises(LabAuthorizationError):
        context.create_or_update_report(seed['ws_a'], '2nd', {}, REPORT_DATE)
    assert PMCReport.query.count() == 0


def test_invalid_selection_writes_nothing(ctx, seed):
    context = MaintenanceContext(caller_for(seed, 'admin'))
    with pytest.raises(LabValidationError):
        context.create_or_update_report(seed['ws_a'], '2nd', {'asset_actions': []}, REPORT_DATE)
    with pytest.raises(LabValidationError):
        context.create_or_update_report(
            seed['ws_a'], '2nd', {'asset_actions': [{'asset_id': seed['cpu'], 'status_after': 'Broken'}]}, REPORT_DATE
        )
    with pytest.raises(LabValidationError):
        context.create_or_update_report(999, '2nd', {}, REPORT_DATE)
    assert PMCReport.query.count() == 0
    assert ServiceLog.query.count() == 0


def test_repair_log_leaves_service_count_alone(ctx, seed):
    context = MaintenanceContext(caller_for(seed, 'custodian_a'))
    report, _, _ = context.create_or_update_report(seed['ws_a'], '2nd', {}, REPORT_DATE)

    log = context.create_repair_log(seed['ws_a'], '2nd', {
        'service_type': 'REPLACE',
        'asset_actions': [{
            'asset_id': seed['ram'],
            'action': 'REPLACED',
            'status_after': 'Functional',
            'new_property_tag': 'PT-0099',
            'new_serial_number': 'SN-NEW',
        }],
    }, date(2024, 5, 20))

    assert log.pmc_id == report.id
    assert log.workstation_status_after == 'Functional'
    action = log.actions[0]
    assert action.old_property_tag == 'PT-0002'
    assert action.new_property_tag == 'PT-0099'
    db.session.refresh(report)
    assert report.service_count == 1
    assert db.session.get(InventoryAsset, seed['ram']).property_tag_no == 'PT-0099'


def test_repair_requires_status_and_unique_tag(ctx, seed):
    context = MaintenanceContext(caller_for(seed, 'custodian_a'))
    with pytest.raises(LabValidationError):
        context.create_repair_log(seed['ws_a'], '2nd', {
            'service_type': 'REPAIR', 'asset_actions': [{'asset_id': seed['ram']}],
        }, REPORT_DATE)
    with pytest.raises(LabUniquenessError):
        context.create_repair_log(seed['ws_a'], '2nd', {
            'service_type': 'REPLACE',
            'asset_actions': [{'asset_id': seed['ram'], 'status_after': 'Functional', 'new_property_tag': 'PT-0001'}],
        }, REPORT_DATE)
    assert ServiceLog.query.count() == 0


def test_lab_reports_and_history(ctx, seed):
    context = MaintenanceContext(caller_for(seed, 'admin'))
    context.create_or_update_report(seed['ws_a'], '2nd', {}, REPORT_DATE)

    rows = context.lab_reports(seed['lab_a'], '2nd', 2024)
    assert [r['maintenance_state'] for r in rows] == ['Serviced']
    assert context.lab_reports(seed['lab_b'], '2nd', 2024)[0]['maintenance_state'] == 'Unserviced'

    detail = context.report_detail(seed['ws_a'], '2nd', 2024)
    assert detail['report']['service_count'] == 1
    assert len(detail['service_logs']) == 1
    assert len(context.service_history(seed['ws_a'])) == 1
    assert context.service_history(seed['ws_a'], quarter='1st') == []


def test_report_is_filed_under_the_given_fiscal_year(ctx, seed):
    """A late 4th-quarter service dated in January still completes that quarter"""
    context = MaintenanceContext(caller_for(seed, 'custodian_a'))
    report, log, created = context.create_or_update_report(
        seed['ws_a'], '4th', {}, date(2024, 1, 10), fiscal_year='2023'
    )
    assert created
    assert (report.fiscal_year, report.quarter) == (2023, '4th')
    assert log.fiscal_year == 2023
    assert context.report_detail(seed['ws_a'], '4th', 2023)['maintenance_state'] == 'Serviced'
    assert context.report_detail(seed['ws_a'], '4th', 2024)['maintenance_state'] == 'Unserviced'

    repair = context.create_repair_log(seed['ws_a'], '4th', {
        'service_type': 'REPAIR', 'asset_actions': [{'asset_id': seed['ram'], 'status_after': 'Functional'}],
    }, date(2024, 1, 12), fiscal_year=2023)
    assert repair.fiscal_year == 2023
    assert repair.pmc_id == report.id

    with pytest.raises(LabValidationError):
        context.create_or_update_report(seed['ws_a'], '4th', {}, date(2024, 1, 10), fiscal_year='last year')


def test_concurrent_insert_takes_the_update_path(ctx, seed, monkeypatch):
    context = MaintenanceContext(caller_for(seed, 'custodian_a'))
    first, _, _ = context.create_or_update_report(seed['ws_a'], '2nd', {}, REPORT_DATE)

    real_find = MaintenanceContext._find_report
    calls = []

    def find_after_race(workstation_id, fiscal_year, quarter):
        # The first lookup misses the row another request already committed
        calls.append(workstation_id)
        if len(calls) == 1:
            return None
        return real_find(workstation_id, fiscal_year, quarter)

    monkeypatch.setattr(MaintenanceContext, '_find_report', staticmethod(find_after_race))
    report, log, created = context.create_or_update_report(seed['ws_a'], '2nd', {}, date(2024, 6, 1))

    assert len(calls) == 2
    assert not created
    assert report.id == first.id
    assert report.service_count == 2
    assert PMCReport.query.filter_by(workstation_id=seed['ws_a']).count() == 1
    assert ServiceLog.query.filter_by(workstation_id=seed['ws_a']).count() == 2
    assert log.pmc_id == first.id


def test_new_tag_is_only_taken_from_replacements(ctx, seed):
    context = MaintenanceContext(caller_for(seed, 'custodian_a'))
    log = context.create_repair_log(seed['ws_a'], '2nd', {
        'service_type': 'REPAIR',
        'asset_actions': [{
            'asset_id': seed['ram'],
            'status_after': 'Functional',
            'new_property_tag': 'PT-0099',
            'new_serial_number': 'SN-NEW',
            'new_description': 'Replacement stick',
        }],
    }, REPORT_DATE)

    action = log.actions[0]
    assert action.action == ServiceLogAssetAction.REPAIRED
    assert action.new_property_tag is None and action.new_serial_number is None
    ram = db.session.get(InventoryAsset, seed['ram'])
    assert ram.property_tag_no == 'PT-0002'
    assert ram.status_name == 'Functional'
