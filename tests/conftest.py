import pytest

from storefront import create_app
from storefront.auth import Identity
from storefront.models import PromoCode, Product, User, db
from storefront.utils import to_money


@pytest.fixture
def app(tmp_path):
    app = create_app(
        TESTING=True,
        SQLALCHEMY_DATABASE_URI=f"sqlite:///{tmp_path / 'store.db'}",
        SECRET_KEY='test',
        SEED_DATA=False,
        ORDER_STATUS_MODE='lenient',
        LOG_LEVEL='WARNING',
    )
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


def register(client, name, email, password='password123'):
    resp = client.post('/auth/register', json={'name': name, 'email': email, 'password': password})
    assert resp.status_code == 201, resp.get_json()
    return resp.get_json()['id']


def login(client, email, password='password123'):
    resp = client.post('/auth/login', json={'email': email, 'password': password})
    assert resp.status_code == 200, resp.get_json()
    return resp.get_json()['user']


@pytest.fixture
def admin_client(app):
    c = app.test_client()
    register(c, 'Admin', 'admin@example.com')
    login(c, 'admin@example.com')
    return c


@pytest.fixture
def customer_client(app, admin_client):
    # admin_client first so the customer is not the first (admin) account
    c = app.test_client()
    register(c, 'Carla', 'carla@example.com')
    login(c, 'carla@example.com')
    return c


@pytest.fixture
def customer(customer_client):
    user = User.query.filter_by(email='carla@example.com').first()
    return Identity(user_id=user.id, role=user.role)


@pytest.fixture
def admin(admin_client):
    user = User.query.filter_by(email='admin@example.com').first()
    return Identity(user_id=user.id, role=user.role)


@pytest.fixture
def make_product(app):
    def _make(name='Cacao Nibs', price=100, stock=10, **fields):
        p = Product(name=name, price=to_money(price), stock=stock, **fields)
        db.session.add(p)
        db.session.commit()
        return p
    return _make


@pytest.fixture
def make_promo(app):
    def _make(code='SAVE10', type='PERCENT', value=10, active=True, start_at=None, end_at=None):
        promo = PromoCode(
            code=code.upper(),
            type=type,
            value=to_money(value),
            active=active,
            start_at=start_at,
            end_at=end_at,
        )
        db.session.add(promo)
        db.session.commit()
        return promo
    return _make


SHIPPING = {
    'shipping_name': 'Carla Cruz',
    'shipping_address': '12 Mabini St, Davao City',
    'shipping_phone': '+63 912 345 6789',
}
