import logging
import time
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from flask import has_request_context, request

audit_logger = logging.getLogger('storefront.audit')

CENTS = Decimal('0.01')
# largest value a Numeric(10, 2) column holds
MAX_MONEY = Decimal('99999999.99')


def now_ms():
    return int(time.time() * 1000)


def to_money(value):
    """Coerce to a Decimal rounded to cents.

    Returns None for anything that is not a finite number within the range of
    a stored amount.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        d = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    if not d.is_finite() or abs(d) > MAX_MONEY:
        return None
    return d.quantize(CENTS, rounding=ROUND_HALF_UP)


def to_amount(value):
    """Like to_money, but also None for negatives (including -0.001)."""
    d = to_money(value)
    if d is None or d.is_signed():
        return None
    return d


def money(value):
    # JSON view of a Decimal amount
    if value is None:
        return None
    return float(value)


def to_int(value):
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


def to_id(value):
    """Positive integer id, or None. Bools and fractional numbers are rejected."""
    if isinstance(value, bool):
        return None
    if isinstance(value, float) and not value.is_integer():
        return None
    try:
        n = int(value)
    except (TypeError, ValueError, OverflowError):
        return None
    return n if n > 0 else None


def to_bool(value):
    if isinstance(value, str):
        return value.strip().lower() in ('1', 'true', 'yes', 'on')
    return bool(value)


def get_json():
    # missing or malformed bodies read as {}
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def log_action(action, user_id=None, data=None):
    """Audit trail for business actions."""
    audit_logger.info(
        'action=%s user=%s data=%s ip=%s',
        action,
        user_id,
        data,
        request.remote_addr if has_request_context() else None,
    )
