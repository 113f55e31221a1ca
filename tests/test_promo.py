from decimal import Decimal

import pytest

from storefront import promo
from storefront.errors import NotFound, OutOfWindow

NOW = 1_700_000_000_000


@pytest.mark.parametrize(
    'subtotal, value, expected',
    [
        ('250.00', 10, '25.00'),
        ('0.00', 10, '0.00'),
        ('99.99', 15, '15.00'),
        ('80.00', 100, '80.00'),
        ('80.00', 150, '80.00'),
        ('80.00', -5, '0.00'),
    ],
)
def test_percent_discount_is_clamped(subtotal, value, expected):
    assert promo.compute_discount('PERCENT', value, Decimal(subtotal)) == Decimal(expected)


@pytest.mark.parametrize(
    'subtotal, value, expected',
    [
        ('250.00', 50, '50.00'),
        ('30.00', 50, '30.00'),
        ('0.00', 50, '0.00'),
        ('30.00', -10, '0.00'),
    ],
)
def test_fixed_discount_is_clamped(subtotal, value, expected):
    assert promo.compute_discount('FIXED', value, Decimal(subtotal)) == Decimal(expected)


def test_validate_is_case_insensitive(make_promo):
    make_promo('SAVE10', 'PERCENT', 10)
    quote = promo.validate('  save10 ', 200, now=NOW)
    assert quote.promo == 'SAVE10'
    assert quote.discount == Decimal('20.00')
    assert quote.to_dict() == {'discount': 20.0, 'promo': 'SAVE10', 'type': 'PERCENT', 'value': 10.0}


def test_validate_unknown_code(app):
    with pytest.raises(NotFound):
        promo.validate('NOPE', 100, now=NOW)


def test_validate_inactive_code(make_promo):
    make_promo('OLD', 'FIXED', 5, active=False)
    with pytest.raises(NotFound):
        promo.validate('OLD', 100, now=NOW)


def test_future_start_rejected_even_when_active(make_promo):
    make_promo('SOON', 'PERCENT', 20, start_at=NOW + 60_000)
    with pytest.raises(OutOfWindow):
        promo.validate('SOON', 100, now=NOW)


def test_past_end_rejected(make_promo):
    make_promo('GONE', 'PERCENT', 20, end_at=NOW - 1)
    with pytest.raises(OutOfWindow):
        promo.validate('GONE', 100, now=NOW)


def test_inside_window_accepted(make_promo):
    make_promo('WEEK', 'FIXED', 20, start_at=NOW - 1000, end_at=NOW + 1000)
    assert promo.validate('WEEK', 100, now=NOW).discount == Decimal('20.00')


def test_window_bounds_are_inclusive(make_promo):
    make_promo('EDGE', 'FIXED', 5, start_at=NOW, end_at=NOW)
    assert promo.validate('EDGE', 100, now=NOW).discount == Decimal('5.00')


def test_validate_endpoint(customer_client, make_promo):
    make_promo('LESS50', 'FIXED', 50)
    resp = customer_client.post('/promo/validate', json={'code': 'less50', 'subtotal': 30})
    assert resp.status_code == 200
    assert resp.get_json() == {'discount': 30.0, 'promo': 'LESS50', 'type': 'FIXED', 'value': 50.0}


def test_validate_endpoint_errors(customer_client, make_promo):
    make_promo('SOON', 'PERCENT', 20, start_at=4_000_000_000_000)

    assert customer_client.post('/promo/validate', json={'code': '', 'subtotal': 10}).status_code == 400
    assert customer_client.post('/promo/validate', json={'code': 'NOPE', 'subtotal': 10}).status_code == 404
    resp = customer_client.post('/promo/validate', json={'code': 'SOON', 'subtotal': 10})
    assert resp.status_code == 400
    assert 'error' in resp.get_json()


def test_validate_requires_login(client):
    assert client.post('/promo/validate', json={'code': 'SAVE10', 'subtotal': 10}).status_code == 401


def test_admin_promo_crud(admin_client):
    resp = admin_client.post('/admin/promo', json={'code': 'spring', 'type': 'percent', 'value': 12})
    assert resp.status_code == 201
    assert resp.get_json()['data']['code'] == 'SPRING'

    assert admin_client.post('/admin/promo', json={'code': 'SPRING', 'type': 'FIXED', 'value': 1}).status_code == 409
    assert admin_client.post('/admin/promo', json={'code': 'X', 'type': 'BOGO', 'value': 1}).status_code == 400
    assert admin_client.post('/admin/promo', json={'code': 'Y', 'type': 'PERCENT', 'value': 120}).status_code == 400
    bad_window = {'code': 'Z', 'type': 'FIXED', 'value': 1, 'start_at': 10, 'end_at': 5}
    assert admin_client.post('/admin/promo', json=bad_window).status_code == 400

    resp = admin_client.patch('/admin/promo/spring', json={'value': 15, 'end_at': NOW})
    assert resp.get_json()['data']['value'] == 15.0
    assert resp.get_json()['data']['end_at'] == NOW

    resp = admin_client.delete('/admin/promo/SPRING')
    assert resp.get_json()['data']['active'] is False
    codes = [p['code'] for p in admin_client.get('/admin/promo').get_json()['data']]
    assert codes == ['SPRING']


@pytest.mark.parametrize('subtotal', ['NaN', 'Infinity', float('inf'), 1e30, '1e30', -0.001, '-5'])
def test_validate_rejects_out_of_range_subtotal(customer_client, make_promo, subtotal):
    make_promo('SAVE10', 'PERCENT', 10)
    resp = customer_client.post('/promo/validate', json={'code': 'SAVE10', 'subtotal': subtotal})
    assert resp.status_code == 400
    assert 'error' in resp.get_json()


def test_validate_accepts_largest_amount(make_promo):
    make_promo('SAVE10', 'PERCENT', 10)
    assert promo.validate('SAVE10', '99999999.99', now=NOW).discount == Decimal('10000000.00')


@pytest.mark.parametrize('value', ['NaN', '-Infinity', 1e30, -0.001])
def test_admin_promo_rejects_bad_value(admin_client, value):
    resp = admin_client.post('/admin/promo', json={'code': 'ODD', 'type': 'FIXED', 'value': value})
    assert resp.status_code == 400
    assert admin_client.get('/admin/promo').get_json()['data'] == []
