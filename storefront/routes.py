from flask import Blueprint, current_app, jsonify, request
from sqlalchemy import or_

from . import cart as cart_store
from . import orders as order_engine
from . import promo as promo_engine
from .auth import login_required
from .errors import Conflict, NotFound, ValidationError
from .models import PRODUCT_TAGS, Order, Product, Review, ReturnRequest, Setting, ShippingZone, db
from .utils import get_json, log_action, money, now_ms, to_int, to_money

bp = Blueprint('shop', __name__)


@bp.route('/health')
def health():
    return jsonify({'status': 'ok', 'version': current_app.config['APP_VERSION'], 'timestamp': now_ms()})


@bp.route('/version')
def version():
    return jsonify({'version': current_app.config['APP_VERSION']})


# ---------- CATALOG ----------

@bp.route('/categories', methods=['GET'])
def list_categories():
    rows = (
        db.session.query(Product.category)
        .filter(Product.category.isnot(None), Product.category != '')
        .distinct()
        .order_by(Product.category)
        .all()
    )
    return jsonify({'data': [r[0] for r in rows]})


@bp.route('/products', methods=['GET'])
def list_products():
    q = request.args.get('q', '').strip()
    category = request.args.get('category', '').strip()
    tag = request.args.get('tag', '').strip().lower()
    min_price = to_money(request.args.get('min_price'))
    max_price = to_money(request.args.get('max_price'))

    query = Product.query
    if q:
        like = f'%{q}%'
        query = query.filter(or_(Product.name.ilike(like), Product.description.ilike(like)))
    if min_price is not None:
        query = query.filter(Product.price >= min_price)
    if max_price is not None:
        query = query.filter(Product.price <= max_price)
    if category:
        query = query.filter(Product.category == category)
    if tag:
        if tag not in PRODUCT_TAGS:
            raise ValidationError(f"tag must be one of {', '.join(PRODUCT_TAGS)}")
        query = query.filter(getattr(Product, tag).is_(True))

    return jsonify({'data': [p.to_dict() for p in query.order_by(Product.id.desc()).all()]})


@bp.route('/products/<int:pid>', methods=['GET'])
def get_product(pid):
    p = db.session.get(Product, pid)
    if p is None:
        raise NotFound()
    result = p.to_dict()

    approved = Review.query.filter_by(product_id=pid, status='APPROVED').all()
    if approved:
        result['review_count'] = len(approved)
        result['avg_rating'] = round(sum(r.rating for r in approved) / len(approved), 1)
    return jsonify({'data': result})


@bp.route('/products/<int:pid>/reviews', methods=['GET'])
def get_product_reviews(pid):
    if db.session.get(Product, pid) is None:
        raise NotFound('Product not found')
    reviews = (
        Review.query.filter_by(product_id=pid, status='APPROVED')
        .order_by(Review.created_at.desc(), Review.id.desc())
        .all()
    )
    return jsonify({'data': [r.to_dict() for r in reviews]})


@bp.route('/products/<int:pid>/reviews', methods=['POST'])
@login_required
def add_product_review(identity, pid):
    if db.session.get(Product, pid) is None:
        raise NotFound('Product not found')

    data = get_json()
    rating = to_int(data.get('rating'))
    text = str(data.get('text') or '').strip()

    if rating is None or rating < 1 or rating > 5:
        raise ValidationError('Rating must be 1-5')
    min_len = current_app.config['REVIEW_MIN_LENGTH']
    max_len = current_app.config['REVIEW_MAX_LENGTH']
    if len(text) < min_len:
        raise ValidationError(f'Review must be at least {min_len} characters')
    if len(text) > max_len:
        raise ValidationError(f'Review cannot exceed {max_len} characters')

    review = Review(product_id=pid, user_id=identity.user_id, rating=rating, text=text, status='PENDING')
    db.session.add(review)
    db.session.commit()

    log_action('add_review', identity.user_id, {'product_id': pid, 'rating': rating})
    return jsonify({'data': review.to_dict()}), 201


# ---------- CART ----------

@bp.route('/cart', methods=['GET'])
@login_required
def get_cart(identity):
    items, total = cart_store.view(identity)
    return jsonify({'data': items, 'total': money(total)})


@bp.route('/cart/add', methods=['POST'])
@login_required
def add_to_cart(identity):
    data = get_json()
    item = cart_store.add(identity, data.get('product_id'), data.get('qty', 1))
    log_action('add_to_cart', identity.user_id, {'product_id': item.product_id, 'qty': item.qty})
    return jsonify({'product_id': item.product_id, 'qty': item.qty})


@bp.route('/cart/update', methods=['POST', 'PUT'])
@login_required
def update_cart(identity):
    data = get_json()
    updated, skipped = cart_store.set_many(identity, data.get('items'))
    return jsonify({'updated': updated, 'skipped': skipped})


@bp.route('/cart/remove', methods=['POST', 'DELETE'])
@login_required
def remove_from_cart(identity):
    removed = cart_store.remove(identity, get_json().get('product_id'))
    return jsonify({'removed': removed})


@bp.route('/cart/clear', methods=['POST'])
@login_required
def clear_cart(identity):
    cart_store.clear(identity)
    log_action('clear_cart', identity.user_id)
    return jsonify({'message': 'Cart cleared'})


# ---------- WISHLIST ----------

@bp.route('/wishlist', methods=['GET'])
@login_required
def get_wishlist(identity):
    return jsonify({'data': cart_store.wishlist_view(identity)})


@bp.route('/wishlist/add', methods=['POST'])
@login_required
def add_to_wishlist(identity):
    cart_store.wishlist_add(identity, get_json().get('product_id'))
    return jsonify({'message': 'Added to wishlist'})


@bp.route('/wishlist/remove', methods=['POST', 'DELETE'])
@login_required
def remove_from_wishlist(identity):
    cart_store.wishlist_remove(identity, get_json().get('product_id'))
    return jsonify({'message': 'Removed from wishlist'})


@bp.route('/wishlist/move-to-cart', methods=['POST'])
@login_required
def move_wishlist_to_cart(identity):
    cart_store.move_to_cart(identity, get_json().get('product_id'))
    return jsonify({'message': 'Moved to cart'})


# ---------- PROMO / CHECKOUT ----------

@bp.route('/promo/validate', methods=['POST'])
@login_required
def validate_promo(identity):
    data = get_json()
    code = promo_engine.normalize_code(data.get('code'))
    if not code:
        raise ValidationError('code required')
    quote = promo_engine.validate(code, data.get('subtotal') or 0)
    return jsonify(quote.to_dict())


@bp.route('/checkout', methods=['POST'])
@login_required
def checkout(identity):
    data = get_json()
    result = order_engine.checkout(identity, data, promo_code=data.get('promo_code'))
    return jsonify(result.to_dict())


# ---------- ORDERS ----------

@bp.route('/orders', methods=['GET'])
@login_required
def list_orders(identity):
    rows = Order.query.filter_by(user_id=identity.user_id).order_by(Order.id.desc()).all()
    return jsonify({'data': [o.to_dict() for o in rows]})


@bp.route('/orders/<int:oid>', methods=['GET'])
@login_required
def get_order(identity, oid):
    order = order_engine.get_user_order(identity, oid)
    return jsonify({'data': order.to_dict()})


@bp.route('/orders/<int:oid>/items', methods=['GET'])
@login_required
def get_order_items(identity, oid):
    order = order_engine.get_user_order(identity, oid)
    return jsonify({'data': [i.to_dict() for i in order.items]})


@bp.route('/orders/<int:oid>/timeline', methods=['GET'])
@login_required
def get_order_timeline(identity, oid):
    order = order_engine.get_user_order(identity, oid)
    return jsonify({'data': [t.to_dict() for t in order.timeline]})


@bp.route('/orders/<int:oid>/return', methods=['POST'])
@login_required
def request_return(identity, oid):
    order = order_engine.get_user_order(identity, oid)
    if order.status != 'DELIVERED':
        raise ValidationError('Only delivered orders can be returned')
    reason = str(get_json().get('reason') or '').strip()
    if not reason:
        raise ValidationError('reason required')

    open_request = (
        ReturnRequest.query.filter_by(order_id=oid)
        .filter(ReturnRequest.status.in_(('REQUESTED', 'APPROVED')))
        .first()
    )
    if open_request is not None:
        raise Conflict('A return is already open for this order')

    rr = ReturnRequest(order_id=oid, user_id=identity.user_id, reason=reason, status='REQUESTED')
    db.session.add(rr)
    db.session.commit()

    log_action('request_return', identity.user_id, {'order_id': oid})
    return jsonify({'data': rr.to_dict()}), 201


# ---------- STORE INFO ----------

@bp.route('/shipping-zones', methods=['GET'])
def list_shipping_zones():
    zones = ShippingZone.query.filter_by(active=True).order_by(ShippingZone.name).all()
    return jsonify({'data': [z.to_dict() for z in zones]})


@bp.route('/settings', methods=['GET'])
def get_settings():
    return jsonify({'data': {s.key: s.value for s in Setting.query.order_by(Setting.key).all()}})
