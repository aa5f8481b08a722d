import pytest
import uuid

from app import create_app
from app.database import get_session, create_all, drop_all
from app.models import ApiKey, BusinessProfile, Supplier


API_PREFIX = '/invoice-api'


@pytest.fixture(scope='function')
def app():
    """Create application instance with a fresh in-memory database."""
    app = create_app('config.TestConfig')
    with app.app_context():
        create_all()
    yield app
    with app.app_context():
        drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def session(app):
    """Database session bound to the test app."""
    ctx = app.app_context()
    ctx.push()
    session = get_session()
    yield session
    session.rollback()
    ctx.pop()


def _make_business(session, name):
    suffix = str(uuid.uuid4())[:8]
    business = BusinessProfile(
        user_id=f'user-{suffix}',
        business_name=f'{name} {suffix}',
        contact_email=f'owner-{suffix}@test.com',
        default_currency='USD',
        timezone='UTC'
    )
    session.add(business)
    session.commit()
    return business


def _make_key(session, user_id, permissions=None):
    api_key, plain_key = ApiKey.generate(user_id, 'test key', permissions)
    session.add(api_key)
    session.commit()
    return plain_key


@pytest.fixture(scope='function')
def business1(session):
    """First test business."""
    return _make_business(session, 'Business One')


@pytest.fixture(scope='function')
def business2(session):
    """Second test business for isolation tests."""
    return _make_business(session, 'Business Two')


@pytest.fixture(scope='function')
def business1_id(business1):
    return business1.id


@pytest.fixture(scope='function')
def headers1(session, business1):
    """X-API-Key header with every permission for business1."""
    return {'X-API-Key': _make_key(session, business1.user_id)}


@pytest.fixture(scope='function')
def headers2(session, business2):
    """X-API-Key header with every permission for business2."""
    return {'X-API-Key': _make_key(session, business2.user_id)}


@pytest.fixture(scope='function')
def make_headers(session):
    """Factory: headers for a user with a restricted permission set."""
    def _factory(user_id, permissions):
        return {'X-API-Key': _make_key(session, user_id, permissions)}
    return _factory


@pytest.fixture(scope='function')
def supplier1(session, business1):
    supplier = Supplier(business_id=business1.id, name='Acme Supplies')
    session.add(supplier)
    session.commit()
    return supplier


@pytest.fixture(scope='function')
def api(client):
    """Small helper around the test client that prefixes API paths."""
    class _Api:
        def get(self, path, **kwargs):
            return client.get(API_PREFIX + path, **kwargs)

        def post(self, path, **kwargs):
            return client.post(API_PREFIX + path, **kwargs)

        def put(self, path, **kwargs):
            return client.put(API_PREFIX + path, **kwargs)

        def delete(self, path, **kwargs):
            return client.delete(API_PREFIX + path, **kwargs)

    return _Api()
