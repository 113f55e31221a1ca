import pytest

from storefront import cart
from storefront.errors import NotFound, ValidationError
from storefront.models import CartItem, WishlistItem


def qty_of(identity, product_id):
    item = CartItem.query.filter_by(user_id=identity.user_id, product_id=product_id).first()
    return item.qty if item else None


def test_add_increments_existing_row(customer, make_product):
    p = make_product()
    cart.add(customer, p.id, 2)
    cart.add(customer, p.id, 3)
    assert qty_of(customer, p.id) == 5
    assert CartItem.query.count() == 1


@pytest.mark.parametrize('qty', [0, -1, 'abc', True])
def test_add_rejects_bad_qty(customer, make_product, qty):
    p = make_product()
    with pytest.raises(ValidationError):
        cart.add(customer, p.id, qty)
    assert qty_of(customer, p.id) is None


def test_add_defaults_to_one(customer, make_product):
    p = make_product()
    cart.add(customer, p.id, None)
    assert qty_of(customer, p.id) == 1


def test_add_unknown_product(customer):
    with pytest.raises(NotFound):
        cart.add(customer, 424242, 1)
    with pytest.raises(ValidationError):
        cart.add(customer, 'x', 1)


def test_add_respects_line_limit(app, customer, make_product):
    app.config['MAX_QTY_PER_LINE'] = 5
    p = make_product()
    cart.add(customer, p.id, 4)
    with pytest.raises(ValidationError):
        cart.add(customer, p.id, 2)
    assert qty_of(customer, p.id) == 4


def test_set_many_overwrites_deletes_and_skips(customer, make_product):
    a, b, c = make_product('A'), make_product('B'), make_product('C')
    cart.add(customer, a.id, 5)
    cart.add(customer, b.id, 1)

    updated, skipped = cart.set_many(
        customer,
        [
            {'product_id': a.id, 'qty': 2},
            {'product_id': b.id, 'qty': 0},
            {'product_id': c.id, 'qty': 3},
            {'product_id': 'bogus', 'qty': 1},
            {'product_id': 999999, 'qty': 1},
            'not-an-object',
        ],
    )

    assert qty_of(customer, a.id) == 2
    assert qty_of(customer, b.id) is None
    assert qty_of(customer, c.id) == 3
    assert updated == 3
    assert skipped == ['bogus', 999999, None]


def test_set_many_requires_list(customer):
    with pytest.raises(ValidationError):
        cart.set_many(customer, {'product_id': 1, 'qty': 1})


def test_clear_only_touches_own_cart(customer, admin, make_product):
    p = make_product()
    cart.add(customer, p.id, 1)
    cart.add(admin, p.id, 1)
    cart.clear(customer)
    assert qty_of(customer, p.id) is None
    assert qty_of(admin, p.id) == 1


def test_cart_endpoints(customer_client, make_product):
    a = make_product('Nibs', price='12.50')
    b = make_product('Butter', price=20)

    assert customer_client.post('/cart/add', json={'product_id': a.id, 'qty': 2}).status_code == 200
    assert customer_client.post('/cart/add', json={'product_id': b.id}).status_code == 200
    assert customer_client.post('/cart/add', json={'product_id': a.id, 'qty': -3}).status_code == 400
    assert customer_client.post('/cart/add', json={'product_id': 98765}).status_code == 404

    body = customer_client.get('/cart').get_json()
    assert body['total'] == 45.0
    assert {(row['name'], row['qty']) for row in body['data']} == {('Nibs', 2), ('Butter', 1)}

    resp = customer_client.post('/cart/update', json={'items': [{'product_id': a.id, 'qty': 0}, {'product_id': '?'}]})
    assert resp.get_json() == {'updated': 1, 'skipped': ['?']}
    assert customer_client.post('/cart/update', json={'items': 'nope'}).status_code == 400

    assert customer_client.post('/cart/remove', json={'product_id': b.id}).get_json() == {'removed': 1}
    assert customer_client.get('/cart').get_json() == {'data': [], 'total': 0.0}

    customer_client.post('/cart/add', json={'product_id': a.id})
    customer_client.post('/cart/clear')
    assert customer_client.get('/cart').get_json()['data'] == []


def test_cart_requires_login(client):
    assert client.get('/cart').status_code == 401
    assert client.post('/cart/add', json={'product_id': 1}).status_code == 401


def test_wishlist_flow(customer, make_product):
    p = make_product()
    cart.wishlist_add(customer, p.id)
    cart.wishlist_add(customer, p.id)
    assert WishlistItem.query.count() == 1
    assert [row['id'] for row in cart.wishlist_view(customer)] == [p.id]

    cart.add(customer, p.id, 2)
    cart.move_to_cart(customer, p.id)
    assert qty_of(customer, p.id) == 3
    assert cart.wishlist_view(customer) == []

    with pytest.raises(NotFound):
        cart.move_to_cart(customer, p.id)


def test_wishlist_endpoints(customer_client, make_product):
    p = make_product('Gift Box')
    assert customer_client.post('/wishlist/add', json={'product_id': p.id}).status_code == 200
    assert customer_client.post('/wishlist/add', json={'product_id': 5555}).status_code == 404
    assert [row['name'] for row in customer_client.get('/wishlist').get_json()['data']] == ['Gift Box']

    customer_client.post('/wishlist/remove', json={'product_id': p.id})
    assert customer_client.get('/wishlist').get_json()['data'] == []

    customer_client.post('/wishlist/add', json={'product_id': p.id})
    assert customer_client.post('/wishlist/move-to-cart', json={'product_id': p.id}).status_code == 200
    assert customer_client.get('/cart').get_json()['data'][0]['qty'] == 1


@pytest.mark.parametrize('product_id', [True, 1.5, float('inf'), '1.0', -3])
def test_add_rejects_malformed_product_id(customer, make_product, product_id):
    make_product()
    with pytest.raises(ValidationError):
        cart.add(customer, product_id, 1)
    assert CartItem.query.count() == 0


def test_move_to_cart_respects_line_limit(app, customer, make_product):
    app.config['MAX_QTY_PER_LINE'] = 3
    p = make_product()
    cart.add(customer, p.id, 3)
    cart.wishlist_add(customer, p.id)

    with pytest.raises(ValidationError):
        cart.move_to_cart(customer, p.id)
    assert qty_of(customer, p.id) == 3
    assert len(cart.wishlist_view(customer)) == 1


def test_huge_qty_is_rejected_not_crashing(customer_client, make_product):
    p = make_product()
    resp = customer_client.post('/cart/add', json={'product_id': p.id, 'qty': 10 ** 400})
    assert resp.status_code == 400
    resp = customer_client.post('/cart/add', json={'product_id': p.id, 'qty': 1e30})
    assert resp.status_code == 400
