from flask_sqlalchemy import SQLAlchemy
from sqlalchemy import Enum

from .utils import money, now_ms

db = SQLAlchemy()

ROLE_CUSTOMER = 'customer'
ROLE_STAFF = 'staff'
ROLE_ADMIN = 'admin'
ROLES = (ROLE_CUSTOMER, ROLE_STAFF, ROLE_ADMIN)

PROMO_PERCENT = 'PERCENT'
PROMO_FIXED = 'FIXED'
PROMO_TYPES = (PROMO_PERCENT, PROMO_FIXED)

ORDER_STATUSES = ('PENDING', 'PAID', 'SHIPPED', 'DELIVERED', 'CANCELLED')
REVIEW_STATUSES = ('PENDING', 'APPROVED', 'REJECTED')
RETURN_STATUSES = ('REQUESTED', 'APPROVED', 'REJECTED', 'REFUNDED')

PRODUCT_TAGS = ('best_seller', 'new', 'limited')


class User(db.Model):
    __tablename__ = 'users'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    role = db.Column(Enum(*ROLES, name='user_role'), nullable=False, default=ROLE_CUSTOMER)
    created_at = db.Column(db.BigInteger, nullable=False, default=now_ms)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'role': self.role,
            'created_at': self.created_at,
        }

    def __repr__(self):
        return f'<User {self.id} {self.email}>'


class Product(db.Model):
    __tablename__ = 'products'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    price = db.Column(db.Numeric(10, 2), nullable=False)
    stock = db.Column(db.Integer, nullable=False, default=0)
    category = db.Column(db.String(120), nullable=True, index=True)
    description = db.Column(db.Text, nullable=True)
    image_url = db.Column(db.String(512), nullable=True)
    best_seller = db.Column(db.Boolean, nullable=False, default=False)
    new = db.Column(db.Boolean, nullable=False, default=False)
    limited = db.Column(db.Boolean, nullable=False, default=False)
    created_at = db.Column(db.BigInteger, nullable=False, default=now_ms)
    updated_at = db.Column(db.BigInteger, nullable=False, default=now_ms, onupdate=now_ms)

    __table_args__ = (
        db.CheckConstraint('price >= 0', name='ck_product_price'),
        db.CheckConstraint('stock >= 0', name='ck_product_stock'),
    )

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'price': money(self.price),
            'stock': self.stock,
            'category': self.category,
            'description': self.description,
            'image_url': self.image_url,
            'best_seller': self.best_seller,
            'new': self.new,
            'limited': self.limited,
        }


class CartItem(db.Model):
    __tablename__ = 'cart_items'

    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey('products.id', ondelete='CASCADE'), primary_key=True)
    qty = db.Column(db.Integer, nullable=False)

    product = db.relationship('Product')

    __table_args__ = (db.CheckConstraint('qty > 0', name='ck_cart_qty'),)


class WishlistItem(db.Model):
    __tablename__ = 'wishlist_items'

    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey('products.id', ondelete='CASCADE'), primary_key=True)
    created_at = db.Column(db.BigInteger, nullable=False, default=now_ms)

    product = db.relationship('Product')


class PromoCode(db.Model):
    __tablename__ = 'promo_codes'

    code = db.Column(db.String(64), primary_key=True)  # stored upper-case
    type = db.Column(Enum(*PROMO_TYPES, name='promo_type'), nullable=False)
    value = db.Column(db.Numeric(10, 2), nullable=False)
    active = db.Column(db.Boolean, nullable=False, default=True)
    start_at = db.Column(db.BigInteger, nullable=True)
    end_at = db.Column(db.BigInteger, nullable=True)

    def in_window(self, now):
        if self.start_at is not None and now < self.start_at:
            return False
        if self.end_at is not None and now > self.end_at:
            return False
        return True

    def to_dict(self):
        return {
            'code': self.code,
            'type': self.type,
            'value': money(self.value),
            'active': self.active,
            'start_at': self.start_at,
            'end_at': self.end_at,
        }


class Order(db.Model):
    __tablename__ = 'orders'

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False, index=True)
    total = db.Column(db.Numeric(10, 2), nullable=False)
    status = db.Column(Enum(*ORDER_STATUSES, name='order_status'), nullable=False, default='PENDING')
    # snapshot of the code text, not a live reference
    promo_code = db.Column(db.String(64), nullable=True)
    discount = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    shipping_name = db.Column(db.String(255), nullable=False)
    shipping_address = db.Column(db.Text, nullable=False)
    shipping_phone = db.Column(db.String(64), nullable=False)
    created_at = db.Column(db.BigInteger, nullable=False, default=now_ms)
    updated_at = db.Column(db.BigInteger, nullable=False, default=now_ms)

    user = db.relationship('User')
    items = db.relationship('OrderItem', back_populates='order', cascade='all, delete-orphan')
    timeline = db.relationship(
        'OrderTimeline',
        back_populates='order',
        cascade='all, delete-orphan',
        order_by='OrderTimeline.id',
    )

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'total': money(self.total),
            'status': self.status,
            'promo_code': self.promo_code,
            'discount': money(self.discount),
            'shipping_name': self.shipping_name,
            'shipping_address': self.shipping_address,
            'shipping_phone': self.shipping_phone,
            'created_at': self.created_at,
            'updated_at': self.updated_at,
        }


class OrderItem(db.Model):
    __tablename__ = 'order_items'

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey('orders.id', ondelete='CASCADE'), nullable=False, index=True)
    # no FK: line items outlive deleted products
    product_id = db.Column(db.Integer, nullable=False)
    qty = db.Column(db.Integer, nullable=False)
    price_each = db.Column(db.Numeric(10, 2), nullable=False)

    order = db.relationship('Order', back_populates='items')
    product = db.relationship(
        'Product',
        primaryjoin='foreign(OrderItem.product_id) == Product.id',
        viewonly=True,
    )

    def to_dict(self):
        return {
            'product_id': self.product_id,
            'name': self.product.name if self.product else None,
            'qty': self.qty,
            'price_each': money(self.price_each),
        }


class OrderTimeline(db.Model):
    __tablename__ = 'order_timeline'

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey('orders.id', ondelete='CASCADE'), nullable=False, index=True)
    status = db.Column(db.String(16), nullable=False)
    note = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.BigInteger, nullable=False, default=now_ms)
    actor_id = db.Column(db.Integer, nullable=True)

    order = db.relationship('Order', back_populates='timeline')

    def to_dict(self):
        return {
            'status': self.status,
            'note': self.note,
            'created_at': self.created_at,
            'actor_id': self.actor_id,
        }


class ShippingZone(db.Model):
    __tablename__ = 'shipping_zones'

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), unique=True, nullable=False)
    fee = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    active = db.Column(db.Boolean, nullable=False, default=True)

    def to_dict(self):
        return {'id': self.id, 'name': self.name, 'fee': money(self.fee), 'active': self.active}


class Review(db.Model):
    __tablename__ = 'reviews'

    id = db.Column(db.Integer, primary_key=True)
    product_id = db.Column(db.Integer, db.ForeignKey('products.id', ondelete='CASCADE'), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    rating = db.Column(db.Integer, nullable=False)
    text = db.Column(db.Text, nullable=False)
    status = db.Column(Enum(*REVIEW_STATUSES, name='review_status'), nullable=False, default='PENDING')
    created_at = db.Column(db.BigInteger, nullable=False, default=now_ms)

    user = db.relationship('User')

    def to_dict(self):
        return {
            'id': self.id,
            'product_id': self.product_id,
            'user_id': self.user_id,
            'user_name': self.user.name if self.user else None,
            'rating': self.rating,
            'text': self.text,
            'status': self.status,
            'created_at': self.created_at,
        }


class ReturnRequest(db.Model):
    __tablename__ = 'return_requests'

    id = db.Column(db.Integer, primary_key=True)
    order_id = db.Column(db.Integer, db.ForeignKey('orders.id', ondelete='CASCADE'), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id'), nullable=False)
    reason = db.Column(db.Text, nullable=False)
    status = db.Column(Enum(*RETURN_STATUSES, name='return_status'), nullable=False, default='REQUESTED')
    admin_note = db.Column(db.Text, nullable=True)
    created_at = db.Column(db.BigInteger, nullable=False, default=now_ms)
    updated_at = db.Column(db.BigInteger, nullable=False, default=now_ms)

    def to_dict(self):
        return {
            'id': self.id,
            'order_id': self.order_id,
            'user_id': self.user_id,
            'reason': self.reason,
            'status': self.status,
            'admin_note': self.admin_note,
            'created_at': self.created_at,
            'updated_at': self.updated_at,
        }


class Setting(db.Model):
    __tablename__ = 'settings'

    key = db.Column(db.String(120), primary_key=True)
    value = db.Column(db.Text, nullable=True)
