"""
Tests for daily accomplishment reports
"""

from datetime import date
import pytest
from labtrack.business.core.errors import LabAuthorizationError, LabValidationError
from labtrack.business.reports.daily_report_manager import DailyReportManager
from labtrack.data.core.procedure import Procedure
from labtrack.data.reports.daily_report import DailyReport
from labtrack.test.conftest import caller_for

TODAY = date(2024, 5, 15)


def test_custodian_files_report_for_own_lab(ctx, seed):
    dar = Procedure.query.filter_by(category=Procedure.CATEGORY_DAR).first()
    report = DailyReportManager(caller_for(seed, 'custodian_a')).create({
        'report_date': TODAY,
        'general_remarks': 'All good',
        'workstation_items': [{'workstation_id': seed['ws_a'], 'status': 'Not Working', 'remarks': 'No display'}],
        'procedures': [{'procedure_id': dar.id, 'overall_status': 'Done'}],
    })
    assert report.lab_id == seed['lab_a']
    assert report.status == DailyReport.PENDING
    assert report.workstation_items[0].status == 'Not Working'
    assert report.procedures[0].overall_status == 'Done'


def test_report_for_other_lab_is_refused(ctx, seed):
    with pytest.raises(LabAuthorizationError):
        DailyReportManager(caller_for(seed, 'custodian_a')).create({'lab_id': seed['lab_b'], 'report_date': TODAY})
    with pytest.raises(LabValidationError):
        DailyReportManager(caller_for(seed, 'custodian_a')).create({
            'report_date': TODAY, 'workstation_items': [{'workstation_id': seed['ws_b']}],
        })
    assert DailyReport.query.count() == 0


def test_daily_limit(ctx, seed):
    manager = DailyReportManager(caller_for(seed, 'custodian_a'))
    for _ in range(2):
        manager.create({'report_date': TODAY}, max_per_day=2)
    with pytest.raises(LabValidationError):
        manager.create({'report_date': TODAY}, max_per_day=2)
    manager.create({'report_date': date(2024, 5, 16)}, max_per_day=2)


def test_only_admin_approves(ctx, seed):
    report = DailyReportManager(caller_for(seed, 'custodian_a')).create({'report_date': TODAY})
    with pytest.raises(LabAuthorizationError):
        DailyReportManager(caller_for(seed, 'custodian_a')).update(report.id, {'status': 'Approved'})
    with pytest.raises(LabValidationError):
        DailyReportManager(caller_for(seed, 'admin')).update(report.id, {'status': 'Archived'})

    updated = DailyReportManager(caller_for(seed, 'admin')).update(report.id, {'status': 'Approved'})
    assert updated.status == DailyReport.APPROVED


def test_my_reports_hide_approved_and_archive_shows_them(ctx, seed):
    custodian = DailyReportManager(caller_for(seed, 'custodian_a'))
    first = custodian.create({'report_date': TODAY})
    custodian.create({'report_date': TODAY})
    DailyReportManager(caller_for(seed, 'admin')).update(first.id, {'status': 'Approved'})

    assert len(custodian.my_reports()) == 1
    assert len(custodian.my_reports(status='Approved')) == 1
    items, total, page, per_page = custodian.archived(page=1, per_page=10)
    assert total == 1 and items[0].id == first.id
    assert DailyReportManager(caller_for(seed, 'custodian_b')).list_reports() == []


def test_checklist_and_procedures_replace(ctx, seed):
    manager = DailyReportManager(caller_for(seed, 'custodian_a'))
    report = manager.create({'report_date': TODAY})

    template = manager.lab_workstations(seed['lab_a'])
    assert template == [{'workstation_id': seed['ws_a'], 'workstation_name': 'WS-01',
                         'status': 'Working', 'remarks': None}]

    report = manager.replace_workstation_items(report.id, template)
    assert [item.status for item in report.workstation_items] == ['Working']

    qpmc = Procedure.query.filter_by(category=Procedure.CATEGORY_QPMC).first()
    with pytest.raises(LabValidationError):
        manager.replace_procedures(report.id, [qpmc.id])

    with pytest.raises(LabAuthorizationError):
        DailyReportManager(caller_for(seed, 'custodian_b')).replace_workstation_items(report.id, [])


def test_delete_is_admin_only(ctx, seed):
    report = DailyReportManager(caller_for(seed, 'custodian_a')).create({'report_date': TODAY})
    with pytest.raises(LabAuthorizationError):
        DailyReportManager(caller_for(seed, 'custodian_a')).delete(report.id)
    DailyReportManager(caller_for(seed, 'admin')).delete(report.id)
    assert DailyReport.query.count() == 0
