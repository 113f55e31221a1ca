"""Promo code validation and discount computation."""
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy import func

from .errors import Conflict, NotFound, OutOfWindow, ValidationError
from .models import PROMO_PERCENT, PROMO_TYPES, PromoCode, db
from .utils import CENTS, money, now_ms, to_amount, to_int


@dataclass(frozen=True)
class PromoQuote:
    promo: str
    type: str
    value: Decimal
    discount: Decimal

    def to_dict(self):
        return {
            'discount': money(self.discount),
            'promo': self.promo,
            'type': self.type,
            'value': money(self.value),
        }


def normalize_code(code):
    return str(code or '').strip().upper()


def find_promo(code):
    code = normalize_code(code)
    if not code:
        return None
    return PromoCode.query.filter(func.upper(PromoCode.code) == code).first()


def compute_discount(promo_type, value, subtotal):
    """Discount for a subtotal, clamped to [0, subtotal]."""
    value = Decimal(value)
    subtotal = Decimal(subtotal)
    if promo_type == PROMO_PERCENT:
        discount = subtotal * value / Decimal(100)
    else:
        discount = value
    discount = discount.quantize(CENTS, rounding=ROUND_HALF_UP)
    return max(Decimal('0.00'), min(subtotal, discount))


def validate(code, subtotal, now=None):
    """Check a code against its active flag and window and quote the discount.

    Always reads the promo row fresh; callers must not reuse a quote across
    requests.
    """
    if now is None:
        now = now_ms()
    subtotal = to_amount(subtotal)
    if subtotal is None:
        raise ValidationError('subtotal must be a non-negative amount')

    promo = find_promo(code)
    if promo is None or not promo.active:
        raise NotFound('Invalid code')
    if not promo.in_window(now):
        raise OutOfWindow()

    discount = compute_discount(promo.type, promo.value, subtotal)
    return PromoQuote(promo=promo.code, type=promo.type, value=promo.value, discount=discount)


def apply_promo_fields(promo, data):
    """Validate and copy admin-supplied promo fields onto a PromoCode."""
    if 'type' in data:
        ptype = str(data.get('type') or '').strip().upper()
        if ptype not in PROMO_TYPES:
            raise ValidationError('type must be PERCENT or FIXED')
        promo.type = ptype
    if 'value' in data:
        value = to_amount(data.get('value'))
        if value is None:
            raise ValidationError('value must be a non-negative amount')
        promo.value = value
    if 'active' in data:
        promo.active = bool(data.get('active'))
    for field in ('start_at', 'end_at'):
        if field in data:
            raw = data.get(field)
            ts = None if raw in (None, '') else to_int(raw)
            if raw not in (None, '') and ts is None:
                raise ValidationError(f'{field} must be epoch milliseconds')
            setattr(promo, field, ts)

    if promo.type == PROMO_PERCENT and promo.value is not None and promo.value > 100:
        raise ValidationError('PERCENT value cannot exceed 100')
    if promo.start_at is not None and promo.end_at is not None and promo.start_at > promo.end_at:
        raise ValidationError('start_at must be before end_at')
    return promo


def create_promo(data):
    code = normalize_code(data.get('code'))
    if not code:
        raise ValidationError('code required')
    if 'type' not in data or 'value' not in data:
        raise ValidationError('type and value required')
    if find_promo(code) is not None:
        raise Conflict('Code already exists')

    promo = PromoCode(code=code, active=True)
    apply_promo_fields(promo, data)
    db.session.add(promo)
    db.session.commit()
    return promo
