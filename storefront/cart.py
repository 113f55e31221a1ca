"""Per-user cart and wishlist storage."""
import logging
from decimal import Decimal

from flask import current_app

from .errors import NotFound, ValidationError
from .models import CartItem, Product, WishlistItem, db
from .utils import to_id

logger = logging.getLogger(__name__)


def _parse_qty(value):
    if isinstance(value, bool):
        return None
    try:
        q = float(value)
    except (TypeError, ValueError, OverflowError):
        return None
    if q != q or q in (float('inf'), float('-inf')):
        return None
    return int(q)


def cart_rows(identity):
    """Cart rows joined with the current product row."""
    return (
        db.session.query(CartItem, Product)
        .join(Product, Product.id == CartItem.product_id)
        .filter(CartItem.user_id == identity.user_id)
        .order_by(Product.id.desc())
        .all()
    )


def view(identity):
    items = []
    total = Decimal('0.00')
    for ci, p in cart_rows(identity):
        row = p.to_dict()
        row['qty'] = ci.qty
        items.append(row)
        total += p.price * ci.qty
    return items, total


def add(identity, product_id, qty=1):
    pid = to_id(product_id)
    if pid is None:
        raise ValidationError('Invalid product_id')
    q = _parse_qty(1 if qty is None else qty)
    if q is None or q <= 0:
        raise ValidationError('Invalid qty')
    if db.session.get(Product, pid) is None:
        raise NotFound('Product not found')

    item = db.session.get(CartItem, (identity.user_id, pid))
    if item is None:
        item = CartItem(user_id=identity.user_id, product_id=pid, qty=0)
        db.session.add(item)
    new_qty = item.qty + q
    max_qty = current_app.config['MAX_QTY_PER_LINE']
    if new_qty > max_qty:
        db.session.rollback()
        raise ValidationError(f'Maximum {max_qty} per item')
    item.qty = new_qty
    db.session.commit()
    return item


def set_many(identity, items):
    """Overwrite quantities; qty <= 0 removes the row.

    Entries with a malformed or unknown product id are skipped, never fatal,
    and returned so the client can resync.
    """
    if not isinstance(items, list):
        raise ValidationError('items[] required')

    max_qty = current_app.config['MAX_QTY_PER_LINE']
    updated = 0
    skipped = []
    for entry in items:
        entry = entry if isinstance(entry, dict) else {}
        pid = to_id(entry.get('product_id'))
        q = _parse_qty(entry.get('qty'))
        if pid is None:
            skipped.append(entry.get('product_id'))
            continue

        item = db.session.get(CartItem, (identity.user_id, pid))
        if q is None or q <= 0:
            if item is not None:
                db.session.delete(item)
                updated += 1
            continue

        if item is None:
            if db.session.get(Product, pid) is None:
                skipped.append(pid)
                continue
            item = CartItem(user_id=identity.user_id, product_id=pid, qty=q)
            db.session.add(item)
        item.qty = min(q, max_qty)
        updated += 1

    db.session.commit()
    if skipped:
        logger.debug('cart update for user %s skipped %s', identity.user_id, skipped)
    return updated, skipped


def remove(identity, product_id):
    pid = to_id(product_id)
    if pid is None:
        raise ValidationError('Invalid product_id')
    removed = CartItem.query.filter_by(user_id=identity.user_id, product_id=pid).delete()
    db.session.commit()
    return removed


def clear(identity):
    removed = CartItem.query.filter_by(user_id=identity.user_id).delete()
    db.session.commit()
    return removed


# ---------- wishlist ----------

def wishlist_view(identity):
    rows = (
        db.session.query(WishlistItem, Product)
        .join(Product, Product.id == WishlistItem.product_id)
        .filter(WishlistItem.user_id == identity.user_id)
        .order_by(Product.id.desc())
        .all()
    )
    return [p.to_dict() for _, p in rows]


def wishlist_add(identity, product_id):
    pid = to_id(product_id)
    if pid is None:
        raise ValidationError('Invalid product_id')
    if db.session.get(Product, pid) is None:
        raise NotFound('Product not found')
    if db.session.get(WishlistItem, (identity.user_id, pid)) is None:
        db.session.add(WishlistItem(user_id=identity.user_id, product_id=pid))
        db.session.commit()


def wishlist_remove(identity, product_id):
    pid = to_id(product_id)
    if pid is None:
        raise ValidationError('Invalid product_id')
    WishlistItem.query.filter_by(user_id=identity.user_id, product_id=pid).delete()
    db.session.commit()


def move_to_cart(identity, product_id):
    pid = to_id(product_id)
    if pid is None:
        raise ValidationError('Invalid product_id')
    wished = db.session.get(WishlistItem, (identity.user_id, pid))
    if wished is None:
        raise NotFound('Item not in wishlist')
    if db.session.get(Product, pid) is None:
        raise NotFound('Product not found')

    item = db.session.get(CartItem, (identity.user_id, pid))
    if item is None:
        db.session.add(CartItem(user_id=identity.user_id, product_id=pid, qty=1))
    else:
        max_qty = current_app.config['MAX_QTY_PER_LINE']
        if item.qty + 1 > max_qty:
            raise ValidationError(f'Maximum {max_qty} per item')
        item.qty += 1
    db.session.delete(wished)
    db.session.commit()
