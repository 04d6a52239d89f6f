"""
Pytest configuration and fixtures

Each test gets a fresh in-memory database with the critical data inserted.
The app context is pushed only where a fixture needs it, so Flask-Login state
never leaks between test client requests.
"""
import pytest
from labtrack import create_app
from labtrack import db as _db
from labtrack.build import insert_critical_data
from labtrack.business.core.access_scope import CallerScope

ADMIN_PASSWORD = 'admin-test-password'
CUSTODIAN_PASSWORD = 'custodian-pass-123'


@pytest.fixture(scope='function')
def app():
    """Create Flask application for testing"""
    app = create_app({
        'TESTING': True,
        'SECRET_KEY': 'test-secret-key',
        'SQLALCHEMY_DATABASE_URI': 'sqlite://',
        'WTF_CSRF_ENABLED': False,
        'RATELIMIT_ENABLED': False,
        'SESSION_COOKIE_SECURE': False,
        'ADMIN_USER_PASSWORD': ADMIN_PASSWORD,
        'REPORTING_DATE': '2024-05-15',
    })

    with app.app_context():
        _db.create_all()
        insert_critical_data()

    yield app

    with app.app_context():
        _db.session.remove()
        _db.drop_all()


@pytest.fixture(scope='function')
def ctx(app):
    """Application context for tests that call the business layer directly"""
    with app.app_context():
        yield app


def _add_asset(lab_id, workstation_id, unit_name, status_name, tag):
    from labtrack.data.core.asset_info.asset import InventoryAsset, AssetDetail
    from labtrack.data.core.asset_info.asset_status import AssetStatus
    from labtrack.data.core.asset_info.unit import Unit

    asset = InventoryAsset(
        lab_id=lab_id,
        workstation_id=workstation_id,
        unit_id=Unit.query.filter_by(unit_name=unit_name).one().id,
    )
    asset.detail = AssetDetail(
        description=f'{unit_name} {tag}',
        property_tag_no=tag,
        status=AssetStatus.by_name(status_name),
    )
    _db.session.add(asset)
    _db.session.flush()
    return asset.id


@pytest.fixture(scope='function')
def seed(app):
    """
    Two laboratories, one custodian each, and workstation WS-01 in Lab A with
    a Functional CPU, a RAM For Repair and a Functional mouse.

    Returns ids only; tests reload whatever they need.
    """
    from labtrack.data.core.laboratory import Laboratory
    from labtrack.data.core.user_info.user import User
    from labtrack.data.core.asset_info.workstation import Workstation

    with app.app_context():
        admin = User.query.filter_by(username='admin').one()
        lab_a = Laboratory(lab_name='Comp Lab 1', location='Room 101')
        lab_b = Laboratory(lab_name='Comp Lab 2', location='Room 102')
        _db.session.add_all([lab_a, lab_b])
        _db.session.flush()

        custodians = {}
        for key, lab, name in (('custodian_a', lab_a, 'Ana Cruz'), ('custodian_b', lab_b, 'Ben Reyes')):
            user = User(
                username=key.replace('_', '.'),
                email=f'{key}@labtrack.local',
                full_name=name,
                role=User.ROLE_CUSTODIAN,
                lab_id=lab.id,
            )
            user.set_password(CUSTODIAN_PASSWORD)
            _db.session.add(user)
            custodians[key] = user
        _db.session.flush()

        ws_a = Workstation(lab_id=lab_a.id, workstation_name='WS-01')
        ws_b = Workstation(lab_id=lab_b.id, workstation_name='WS-01')
        _db.session.add_all([ws_a, ws_b])
        _db.session.flush()

        ids = {
            'admin': admin.id,
            'lab_a': lab_a.id,
            'lab_b': lab_b.id,
            'custodian_a': custodians['custodian_a'].id,
            'custodian_b': custodians['custodian_b'].id,
            'ws_a': ws_a.id,
            'ws_b': ws_b.id,
            'cpu': _add_asset(lab_a.id, ws_a.id, 'CPU', 'Functional', 'PT-0001'),
            'ram': _add_asset(lab_a.id, ws_a.id, 'RAM', 'For Repair', 'PT-0002'),
            'mouse': _add_asset(lab_a.id, ws_a.id, 'Mouse', 'Functional', 'PT-0003'),
        }
        _db.session.commit()
    return ids


def caller_for(seed, who):
    """CallerScope for 'admin', 'custodian_a' or 'custodian_b'"""
    if who == 'admin':
        return CallerScope(user_id=seed['admin'], role='Admin', lab_id=None)
    lab_key = 'lab_a' if who == 'custodian_a' else 'lab_b'
    return CallerScope(user_id=seed[who], role='Custodian', lab_id=seed[lab_key])


def login(client, username, password):
    """Helper function to login a user"""
    return client.post('/login', json={'username': username, 'password': password})


@pytest.fixture(scope='function')
def client(app):
    """Create Flask test client"""
    return app.test_client()


@pytest.fixture(scope='function')
def admin_client(app, seed):
    client = app.test_client()
    response = login(client, 'admin', ADMIN_PASSWORD)
    assert response.status_code == 200, response.get_json()
    return client


@pytest.fixture(scope='function')
def custodian_client(app, seed):
    """Logged in as the custodian of Lab A"""
    client = app.test_client()
    response = login(client, 'custodian.a', CUSTODIAN_PASSWORD)
    assert response.status_code == 200, response.get_json()
    return client
