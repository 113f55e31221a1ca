"""Admin console: catalog, promos, orders, zones, reviews, returns, settings, users."""
import logging

from flask import Blueprint, jsonify, request
from sqlalchemy.exc import IntegrityError

from . import orders as order_engine
from . import promo as promo_engine
from .auth import admin_required, staff_required
from .errors import Conflict, NotFound, ValidationError
from .models import (
    PRODUCT_TAGS,
    RETURN_STATUSES,
    ROLES,
    CartItem,
    Order,
    Product,
    PromoCode,
    ReturnRequest,
    Review,
    Setting,
    ShippingZone,
    User,
    WishlistItem,
    db,
)
from .utils import get_json, log_action, now_ms, to_amount, to_bool, to_int, to_money

logger = logging.getLogger(__name__)

admin_bp = Blueprint('admin', __name__)


# ---------- PRODUCTS ----------

def apply_product_fields(p, data):
    """Copy supplied product fields onto p. Returns how many fields were set."""
    changed = 0
    if 'name' in data:
        name = str(data.get('name') or '').strip()
        if not name:
            raise ValidationError('name cannot be empty')
        p.name = name
        changed += 1
    if 'price' in data:
        price = to_amount(data.get('price'))
        if price is None:
            raise ValidationError('Invalid price')
        p.price = price
        changed += 1
    if 'stock' in data:
        stock = to_int(data.get('stock'))
        if stock is None or stock < 0:
            raise ValidationError('Invalid stock')
        p.stock = stock
        changed += 1
    for field in ('description', 'image_url', 'category'):
        if field in data:
            setattr(p, field, str(data.get(field) or ''))
            changed += 1
    for tag in PRODUCT_TAGS:
        if tag in data:
            setattr(p, tag, to_bool(data.get(tag)))
            changed += 1
    return changed


@admin_bp.route('/admin/products', methods=['POST'])
@admin_required
def create_product(identity):
    data = get_json()
    if not str(data.get('name') or '').strip() or 'price' not in data:
        raise ValidationError('name and price required')

    p = Product(stock=0)
    apply_product_fields(p, data)
    db.session.add(p)
    db.session.commit()

    log_action('create_product', identity.user_id, {'product_id': p.id})
    return jsonify({'id': p.id, 'data': p.to_dict()}), 201


@admin_bp.route('/admin/products/<int:pid>', methods=['PUT', 'PATCH'])
@admin_required
def update_product(identity, pid):
    p = db.session.get(Product, pid)
    if p is None:
        raise NotFound('Product not found')
    if not apply_product_fields(p, get_json()):
        raise ValidationError('No fields to update')
    p.updated_at = now_ms()
    db.session.commit()

    log_action('update_product', identity.user_id, {'product_id': pid})
    return jsonify({'updated': 1, 'data': p.to_dict()})


@admin_bp.route('/admin/products/<int:pid>', methods=['DELETE'])
@admin_required
def delete_product(identity, pid):
    p = db.session.get(Product, pid)
    if p is None:
        return jsonify({'deleted': 0})
    CartItem.query.filter_by(product_id=pid).delete()
    WishlistItem.query.filter_by(product_id=pid).delete()
    Review.query.filter_by(product_id=pid).delete()
    db.session.delete(p)
    db.session.commit()

    log_action('delete_product', identity.user_id, {'product_id': pid})
    return jsonify({'deleted': 1})


# ---------- PROMO CODES ----------

@admin_bp.route('/admin/promo', methods=['GET'])
@admin_required
def list_promos(identity):
    promos = PromoCode.query.order_by(PromoCode.code).all()
    return jsonify({'data': [p.to_dict() for p in promos]})


@admin_bp.route('/admin/promo', methods=['POST'])
@admin_required
def create_promo(identity):
    promo = promo_engine.create_promo(get_json())
    log_action('create_promo', identity.user_id, {'code': promo.code})
    return jsonify({'data': promo.to_dict()}), 201


@admin_bp.route('/admin/promo/<code>', methods=['PUT', 'PATCH'])
@admin_required
def update_promo(identity, code):
    promo = promo_engine.find_promo(code)
    if promo is None:
        raise NotFound('Promo code not found')
    promo_engine.apply_promo_fields(promo, get_json())
    db.session.commit()

    log_action('update_promo', identity.user_id, {'code': promo.code})
    return jsonify({'data': promo.to_dict()})


@admin_bp.route('/admin/promo/<code>', methods=['DELETE'])
@admin_required
def deactivate_promo(identity, code):
    # codes are kept so old orders' promo_code snapshots still resolve
    promo = promo_engine.find_promo(code)
    if promo is None:
        raise NotFound('Promo code not found')
    promo.active = False
    db.session.commit()

    log_action('deactivate_promo', identity.user_id, {'code': promo.code})
    return jsonify({'data': promo.to_dict()})


# ---------- ORDERS ----------

@admin_bp.route('/admin/orders', methods=['GET'])
@staff_required
def list_orders(identity):
    query = db.session.query(Order, User).join(User, User.id == Order.user_id)
    status = request.args.get('status', '').strip().upper()
    if status:
        query = query.filter(Order.status == order_engine.normalize_status(status))

    result = []
    for o, u in query.order_by(Order.id.desc()).all():
        row = o.to_dict()
        row['user_name'] = u.name
        row['user_email'] = u.email
        result.append(row)
    return jsonify({'data': result})


@admin_bp.route('/admin/orders/<int:oid>', methods=['GET'])
@staff_required
def get_order(identity, oid):
    order = db.session.get(Order, oid)
    if order is None:
        raise NotFound('Order not found')
    return jsonify({'data': order_engine.order_detail(order)})


@admin_bp.route('/orders/<int:oid>/status', methods=['POST'])
@staff_required
def update_order_status(identity, oid):
    """Set one order's status.

    A missing order is a 404 rather than {'updated': 0}; only the bulk route
    reports bare counts.
    """
    data = get_json()
    order_engine.set_status(oid, data.get('status'), identity, note=data.get('note'))
    return jsonify({'updated': 1})


@admin_bp.route('/admin/orders/bulk-status', methods=['POST'])
@staff_required
def bulk_update_order_status(identity):
    data = get_json()
    updated = order_engine.bulk_set_status(data.get('ids'), data.get('status'), identity, note=data.get('note'))
    return jsonify({'updated': updated})


# ---------- SHIPPING ZONES ----------

def apply_zone_fields(zone, data):
    if 'name' in data:
        name = str(data.get('name') or '').strip()
        if not name:
            raise ValidationError('name cannot be empty')
        zone.name = name
    if 'fee' in data:
        fee = to_amount(data.get('fee'))
        if fee is None:
            raise ValidationError('Invalid fee')
        zone.fee = fee
    if 'active' in data:
        zone.active = to_bool(data.get('active'))


def commit_unique(message):
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise Conflict(message)


@admin_bp.route('/admin/shipping-zones', methods=['GET'])
@admin_required
def list_zones(identity):
    zones = ShippingZone.query.order_by(ShippingZone.name).all()
    return jsonify({'data': [z.to_dict() for z in zones]})


@admin_bp.route('/admin/shipping-zones', methods=['POST'])
@admin_required
def create_zone(identity):
    data = get_json()
    if not str(data.get('name') or '').strip():
        raise ValidationError('name required')
    zone = ShippingZone(fee=to_money(0), active=True)
    apply_zone_fields(zone, data)
    db.session.add(zone)
    commit_unique('Zone already exists')

    log_action('create_zone', identity.user_id, {'zone_id': zone.id})
    return jsonify({'data': zone.to_dict()}), 201


@admin_bp.route('/admin/shipping-zones/<int:zid>', methods=['PUT', 'PATCH'])
@admin_required
def update_zone(identity, zid):
    zone = db.session.get(ShippingZone, zid)
    if zone is None:
        raise NotFound('Zone not found')
    apply_zone_fields(zone, get_json())
    commit_unique('Zone already exists')
    return jsonify({'data': zone.to_dict()})


@admin_bp.route('/admin/shipping-zones/<int:zid>', methods=['DELETE'])
@admin_required
def delete_zone(identity, zid):
    deleted = ShippingZone.query.filter_by(id=zid).delete()
    db.session.commit()
    log_action('delete_zone', identity.user_id, {'zone_id': zid})
    return jsonify({'deleted': deleted})


# ---------- REVIEWS ----------

@admin_bp.route('/admin/reviews', methods=['GET'])
@staff_required
def list_reviews(identity):
    query = Review.query
    status = request.args.get('status', '').strip().upper()
    if status:
        query = query.filter_by(status=status)
    reviews = query.order_by(Review.id.desc()).all()
    return jsonify({'data': [r.to_dict() for r in reviews]})


def _moderate(identity, rid, status):
    review = db.session.get(Review, rid)
    if review is None:
        raise NotFound('Review not found')
    review.status = status
    db.session.commit()
    log_action('moderate_review', identity.user_id, {'review_id': rid, 'status': status})
    return jsonify({'data': review.to_dict()})


@admin_bp.route('/admin/reviews/<int:rid>/approve', methods=['POST'])
@staff_required
def approve_review(identity, rid):
    return _moderate(identity, rid, 'APPROVED')


@admin_bp.route('/admin/reviews/<int:rid>/reject', methods=['POST'])
@staff_required
def reject_review(identity, rid):
    return _moderate(identity, rid, 'REJECTED')


@admin_bp.route('/admin/reviews/<int:rid>', methods=['DELETE'])
@staff_required
def delete_review(identity, rid):
    deleted = Review.query.filter_by(id=rid).delete()
    db.session.commit()
    return jsonify({'deleted': deleted})


# ---------- RETURNS ----------

@admin_bp.route('/admin/returns', methods=['GET'])
@staff_required
def list_returns(identity):
    query = ReturnRequest.query
    status = request.args.get('status', '').strip().upper()
    if status:
        query = query.filter_by(status=status)
    returns = query.order_by(ReturnRequest.id.desc()).all()
    return jsonify({'data': [r.to_dict() for r in returns]})


@admin_bp.route('/admin/returns/<int:rid>/status', methods=['POST'])
@staff_required
def update_return_status(identity, rid):
    rr = db.session.get(ReturnRequest, rid)
    if rr is None:
        raise NotFound('Return not found')
    data = get_json()
    status = str(data.get('status') or '').strip().upper()
    if status not in RETURN_STATUSES or status == 'REQUESTED':
        raise ValidationError('status must be APPROVED, REJECTED or REFUNDED')

    rr.status = status
    if 'note' in data:
        rr.admin_note = str(data.get('note') or '')
    rr.updated_at = now_ms()
    db.session.commit()

    log_action('return_status', identity.user_id, {'return_id': rid, 'status': status})
    return jsonify({'data': rr.to_dict()})


# ---------- SETTINGS ----------

@admin_bp.route('/admin/settings', methods=['PUT', 'POST'])
@admin_required
def update_settings(identity):
    data = get_json()
    if not data:
        raise ValidationError('No settings to update')
    for key, value in data.items():
        key = str(key).strip()
        if not key:
            raise ValidationError('Setting keys cannot be empty')
        setting = db.session.get(Setting, key)
        if setting is None:
            setting = Setting(key=key)
            db.session.add(setting)
        setting.value = None if value is None else str(value)
    db.session.commit()

    log_action('update_settings', identity.user_id, {'keys': sorted(data)})
    return jsonify({'data': {s.key: s.value for s in Setting.query.order_by(Setting.key).all()}})


# ---------- USERS ----------

@admin_bp.route('/admin/users', methods=['GET'])
@admin_required
def list_users(identity):
    users = User.query.order_by(User.id).all()
    return jsonify({'data': [u.to_dict() for u in users]})


@admin_bp.route('/admin/users/<int:uid>/role', methods=['POST'])
@admin_required
def set_user_role(identity, uid):
    user = db.session.get(User, uid)
    if user is None:
        raise NotFound('User not found')
    role = str(get_json().get('role') or '').strip().lower()
    if role not in ROLES:
        raise ValidationError(f"role must be one of {', '.join(ROLES)}")
    if user.id == identity.user_id and role != 'admin':
        raise ValidationError('Admins cannot demote themselves')

    user.role = role
    db.session.commit()

    log_action('set_role', identity.user_id, {'user_id': uid, 'role': role})
    return jsonify({'data': user.to_dict()})
