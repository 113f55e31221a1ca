"""Checkout and the order status lifecycle."""
import logging
from dataclasses import dataclass
from decimal import Decimal

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from . import promo as promo_engine
from .cart import cart_rows
from .errors import (
    EmptyCart,
    InternalError,
    InvalidPromo,
    InvalidStatus,
    InvalidTransition,
    NotFound,
    ValidationError,
)
from .models import ORDER_STATUSES, CartItem, Order, OrderItem, OrderTimeline, db
from .utils import log_action, money, now_ms, to_id

logger = logging.getLogger(__name__)

# allowed edges in strict mode; DELIVERED and CANCELLED are terminal
TRANSITIONS = {
    'PENDING': ('PAID', 'CANCELLED'),
    'PAID': ('SHIPPED', 'CANCELLED'),
    'SHIPPED': ('DELIVERED', 'CANCELLED'),
    'DELIVERED': (),
    'CANCELLED': (),
}

SHIPPING_FIELDS = ('shipping_name', 'shipping_address', 'shipping_phone')


@dataclass(frozen=True)
class CheckoutResult:
    order_id: int
    subtotal: Decimal
    discount: Decimal
    total: Decimal

    def to_dict(self):
        return {
            'order_id': self.order_id,
            'subtotal': money(self.subtotal),
            'discount': money(self.discount),
            'total': money(self.total),
        }


def checkout(identity, shipping, promo_code=None, now=None):
    """Turn the caller's cart into a PENDING order.

    Prices and the promo are read fresh here. The order, its items, the
    cart clear and the first timeline row commit together or not at all.
    """
    if now is None:
        now = now_ms()
    shipping = {f: str(shipping.get(f) or '').strip() for f in SHIPPING_FIELDS}
    if not all(shipping.values()):
        raise ValidationError('Shipping info required')

    rows = cart_rows(identity)
    if not rows:
        raise EmptyCart()

    # price snapshot: (product_id, qty, price) as of now
    lines = [(p.id, ci.qty, p.price) for ci, p in rows]
    subtotal = sum((price * qty for _, qty, price in lines), Decimal('0.00'))

    discount = Decimal('0.00')
    promo = None
    code = promo_engine.normalize_code(promo_code)
    if code:
        try:
            quote = promo_engine.validate(code, subtotal, now=now)
        except (NotFound, ValidationError):
            raise InvalidPromo()
        discount = quote.discount
        promo = quote.promo

    total = subtotal - discount

    try:
        order = Order(
            user_id=identity.user_id,
            total=total,
            status='PENDING',
            promo_code=promo,
            discount=discount,
            created_at=now,
            updated_at=now,
            **shipping,
        )
        db.session.add(order)
        db.session.flush()
        for product_id, qty, price in lines:
            db.session.add(OrderItem(order_id=order.id, product_id=product_id, qty=qty, price_each=price))
        CartItem.query.filter_by(user_id=identity.user_id).delete()
        append_timeline(order, 'PENDING', 'Order placed', identity.user_id, now)
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception('checkout failed for user %s', identity.user_id)
        raise InternalError('Checkout failed')

    logger.info(
        'Checkout complete order=%s user=%s total=%s promo=%s discount=%s',
        order.id, identity.user_id, total, promo, discount,
    )
    log_action('checkout', identity.user_id, {'order_id': order.id, 'total': str(total)})
    return CheckoutResult(order_id=order.id, subtotal=subtotal, discount=discount, total=total)


def append_timeline(order, status, note, actor_id, now=None):
    entry = OrderTimeline(
        order_id=order.id,
        status=status,
        note=note,
        actor_id=actor_id,
        created_at=now if now is not None else now_ms(),
    )
    db.session.add(entry)
    return entry


def normalize_status(status):
    status = str(status or '').strip().upper()
    if status not in ORDER_STATUSES:
        raise InvalidStatus()
    return status


def strict_mode():
    return current_app.config.get('ORDER_STATUS_MODE', 'lenient') == 'strict'


def check_transition(current, new_status):
    if strict_mode() and new_status not in TRANSITIONS.get(current, ()):
        raise InvalidTransition(f'Cannot move order from {current} to {new_status}')


def _apply_status(order, new_status, identity, note, now):
    old = order.status
    check_transition(old, new_status)
    order.status = new_status
    order.updated_at = now
    append_timeline(order, new_status, note or f'Status changed from {old} to {new_status}', identity.user_id, now)
    return old


def set_status(order_id, new_status, identity, note=None, now=None):
    """Admin status change. Inventory is never touched.

    Raises NotFound for a missing order instead of reporting zero updates.
    """
    new_status = normalize_status(new_status)
    if now is None:
        now = now_ms()
    order = db.session.get(Order, order_id)
    if order is None:
        raise NotFound('Order not found')

    old = _apply_status(order, new_status, identity, note, now)
    try:
        db.session.commit()
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception('status update failed for order %s', order_id)
        raise InternalError()

    log_action('order_status', identity.user_id, {'order_id': order_id, 'old': old, 'new': new_status})
    return order


def bulk_set_status(order_ids, new_status, identity, note=None, now=None):
    """Apply one status to many orders; returns how many were updated.

    Every id is committed on its own, so a bad id never undoes earlier ones.
    """
    new_status = normalize_status(new_status)
    if not isinstance(order_ids, list):
        raise ValidationError('ids[] required')
    if now is None:
        now = now_ms()

    updated = 0
    for raw in order_ids:
        oid = to_id(raw)
        order = db.session.get(Order, oid) if oid is not None else None
        if order is None:
            continue
        try:
            _apply_status(order, new_status, identity, note, now)
            db.session.commit()
        except InvalidTransition:
            continue
        except SQLAlchemyError:
            db.session.rollback()
            logger.exception('bulk status update failed for order %s', oid)
            continue
        updated += 1

    log_action('order_bulk_status', identity.user_id, {'ids': order_ids, 'status': new_status, 'updated': updated})
    return updated


def get_user_order(identity, order_id):
    order = Order.query.filter_by(id=order_id, user_id=identity.user_id).first()
    if order is None:
        raise NotFound()
    return order


def order_detail(order):
    data = order.to_dict()
    data['items'] = [i.to_dict() for i in order.items]
    data['timeline'] = [t.to_dict() for t in order.timeline]
    return data
