"""
End-to-end tests of the JSON API through the Flask test client
"""

from labtrack.test.conftest import login, CUSTODIAN_PASSWORD


def test_login_required(client):
    response = client.get('/inventory')
    assert response.status_code == 401
    assert response.get_json()['error'] == 'unauthenticated'


def test_login_with_email_and_bad_password(client, seed):
    assert login(client, 'custodian_a@labtrack.local', 'wrong-password').status_code == 401
    response = login(client, 'custodian_a@labtrack.local', CUSTODIAN_PASSWORD)
    assert response.status_code == 200
    me = client.get('/me').get_json()['user']
    assert me['role'] == 'Custodian'
    assert me['laboratory']['lab_name'] == 'Comp Lab 1'
    assert client.post('/logout').status_code == 200
    assert client.get('/me').status_code == 401


def test_csrf_token_and_security_headers(client):
    response = client.get('/csrf-token')
    assert response.status_code == 200
    assert response.get_json()['csrf_token']
    assert response.headers['X-Content-Type-Options'] == 'nosniff'


def test_inventory_is_scoped(custodian_client, admin_client, seed):
    mine = custodian_client.get('/inventory').get_json()
    assert mine['count'] == 3
    assert custodian_client.get(f"/inventory?lab_id={seed['lab_b']}").get_json()['count'] == 0
    assert admin_client.get('/inventory?search=PT-000').get_json()['count'] == 3
    assert admin_client.get('/inventory?status=for repair').get_json()['count'] == 1

    lookups = custodian_client.get('/inventory/lookups').get_json()
    assert {'statuses', 'units', 'device_types'} <= set(lookups)


def test_batch_endpoint_is_all_or_nothing(custodian_client, seed):
    units = custodian_client.get('/inventory/lookups').get_json()['units']
    keyboard = next(u['id'] for u in units if u['unit_name'] == 'Keyboard')
    rows = [{'lab_id': seed['lab_a'], 'unit_id': keyboard, 'property_tag_no': tag}
            for tag in ('KB-1', 'KB-2', 'KB-1', 'KB-4', 'KB-5')]

    response = custodian_client.post('/inventory/batch', json={'assets': rows})
    assert response.status_code == 409
    body = response.get_json()
    assert body['success'] is False
    assert body['error'] == 'conflict'
    assert custodian_client.get('/inventory').get_json()['count'] == 3


def test_custodian_cannot_touch_other_lab(custodian_client, seed):
    response = custodian_client.post('/workstations', json={'lab_id': seed['lab_b'], 'workstation_name': 'WS-09'})
    assert response.status_code == 403
    assert response.get_json()['error'] == 'forbidden'
    assert custodian_client.get(f"/workstations/{seed['ws_b']}").status_code == 403
    assert custodian_client.get('/workstations/999').status_code == 404


def test_workstation_detail_has_derived_status(custodian_client, seed):
    body = custodian_client.get(f"/workstations/{seed['ws_a']}").get_json()['workstation']
    assert body['system_status'] == 'For Repair'
    assert {a['unit_name'] for a in body['system_units']} == {'CPU', 'RAM'}
    assert [a['unit_name'] for a in body['peripherals']] == ['Mouse']

    by_name = custodian_client.get('/workstations/by-name/WS-01').get_json()['workstation']
    assert by_name['id'] == seed['ws_a']


def test_pmc_submit_twice_in_quarter(custodian_client, seed):
    payload = {'workstation_id': seed['ws_a'], 'report_date': '2024-05-15'}
    first = custodian_client.post('/maintenance/pmc', json=payload)
    assert first.status_code == 201
    report = first.get_json()['report']
    assert report['quarter'] == '2nd'
    assert report['workstation_status'] == 'For Repair'
    assert report['service_count'] == 1

    second = custodian_client.post('/maintenance/pmc', json=dict(payload, report_date='2024-06-20'))
    assert second.status_code == 200
    assert second.get_json()['report']['id'] == report['id']
    assert second.get_json()['report']['service_count'] == 2

    rows = custodian_client.get(f"/maintenance/pmc?lab_id={seed['lab_a']}&quarter=2&fiscal_year=2024").get_json()
    assert rows['workstations'][0]['maintenance_state'] == 'Serviced'

    history = custodian_client.get(f"/maintenance/pmc/history?workstation_id={seed['ws_a']}").get_json()
    assert history['count'] == 2

    detail = custodian_client.get(f"/maintenance/pmc/detail?workstation_id={seed['ws_a']}").get_json()
    assert detail['quarter'] == '2nd'
    assert detail['report']['service_count'] == 2


def test_pmc_unknown_workstation(custodian_client):
    response = custodian_client.post('/maintenance/pmc', json={'workstation_id': 999})
    assert response.status_code == 400
    assert response.get_json()['error'] == 'validation_error'


def test_repair_endpoint(custodian_client, seed):
    response = custodian_client.post('/maintenance/pmc/repair', json={
        'workstation_id': seed['ws_a'],
        'service_type': 'REPAIR',
        'asset_actions': [{'asset_id': seed['ram'], 'status_after': 'Functional'}],
    })
    assert response.status_code == 201
    log = response.get_json()['service_log']
    assert log['workstation_status_after'] == 'Functional'
    assert log['quarter'] == '2nd'


def test_public_form_to_approval(client, custodian_client, admin_client, seed):
    response = client.post('/public-forms/equipment-borrow', json={
        'laboratory': 'Comp-Lab 1',
        'date': '2024-05-20',
        'faculty_student_name': 'Juan Dela Cruz',
        'equipment_list': 'Projector, HDMI cable',
    })
    assert response.status_code == 201
    form_id = response.get_json()['form_id']

    url = f'/forms/equipment-borrow/{form_id}/status'
    assert admin_client.post(url, json={'status': 'Custodian_Approved'}).status_code == 403
    approved = custodian_client.post(url, json={'status': 'Custodian_Approved'})
    assert approved.status_code == 200
    assert approved.get_json()['form']['allowed_transitions'] == ['Admin_Approved', 'Rejected']

    again = custodian_client.post(url, json={'status': 'Custodian_Approved'})
    assert again.status_code == 409
    assert again.get_json()['error'] == 'invalid_transition'

    assert admin_client.post(url, json={'status': 'Admin_Approved'}).status_code == 200
    assert admin_client.get('/forms/equipment-borrow?status=Admin_Approved').get_json()['count'] == 1


def test_one_time_link_flow(client, custodian_client, seed):
    generated = custodian_client.post('/one-time-forms/generate', json={'expires_in_hours': 2})
    assert generated.status_code == 201
    token = generated.get_json()['token']

    assert client.get(f'/one-time-forms/validate/{token}').get_json()['laboratory']['lab_name'] == 'Comp Lab 1'
    payload = {'form_type': 'lab-request', 'date': '2024-05-20', 'faculty_student_name': 'Maria Clara'}
    assert client.post(f'/one-time-forms/submit/{token}', json=payload).status_code == 201
    assert client.post(f'/one-time-forms/submit/{token}', json=payload).status_code == 404
    assert client.get(f'/one-time-forms/validate/{token}').status_code == 404


def test_daily_report_endpoints(custodian_client, admin_client, seed):
    created = custodian_client.post('/daily-reports', json={'general_remarks': 'Opened lab at 7AM'})
    assert created.status_code == 201
    report = created.get_json()['report']
    assert report['report_date'] == '2024-05-15'

    items = custodian_client.get(f"/daily-reports/lab-workstations/{seed['lab_a']}").get_json()['workstations']
    saved = custodian_client.put(f"/daily-reports/{report['id']}/workstations", json={'workstation_items': items})
    assert saved.status_code == 200

    assert custodian_client.put(f"/daily-reports/{report['id']}", json={'status': 'Approved'}).status_code == 403
    assert admin_client.put(f"/daily-reports/{report['id']}", json={'status': 'Approved'}).status_code == 200
    assert custodian_client.get('/daily-reports/mine').get_json()['count'] == 0
    archived = custodian_client.get('/daily-reports/archived').get_json()
    assert archived['pagination']['total'] == 1


def test_admin_only_management(custodian_client, admin_client, seed):
    assert custodian_client.get('/users').status_code == 403
    assert custodian_client.post('/laboratories', json={'lab_name': 'Comp Lab 9'}).status_code == 403

    created = admin_client.post('/laboratories', json={'lab_name': 'Comp Lab 9'})
    assert created.status_code == 201
    duplicate = admin_client.post('/laboratories', json={'lab_name': 'comp lab 9'})
    assert duplicate.status_code == 409

    users = admin_client.get('/users').get_json()['users']
    assert {u['username'] for u in users} >= {'admin', 'custodian.a', 'custodian.b'}
    assert admin_client.delete(f"/laboratories/{seed['lab_a']}").status_code == 400


def test_dashboard_counts(custodian_client, admin_client):
    counts = custodian_client.get('/dashboard').get_json()['counts']
    assert counts['assets'] == 3
    assert counts['workstations'] == 1
    assert counts['for_repair_workstations'] == 1
    assert admin_client.get('/dashboard').get_json()['counts']['laboratories'] == 2


def test_pmc_submit_files_under_requested_fiscal_year(custodian_client, seed):
    response = custodian_client.post('/maintenance/pmc', json={
        'workstation_id': seed['ws_a'], 'quarter': '4th', 'fiscal_year': 2023, 'report_date': '2024-01-10',
    })
    assert response.status_code == 201
    assert response.get_json()['report']['fiscal_year'] == 2023

    detail = custodian_client.get(
        f"/maintenance/pmc/detail?workstation_id={seed['ws_a']}&quarter=4th&fiscal_year=2023"
    ).get_json()
    assert detail['maintenance_state'] == 'Serviced'
