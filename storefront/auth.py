import logging
from dataclasses import dataclass
from functools import wraps

from flask import Blueprint, current_app, jsonify, session
from sqlalchemy.exc import IntegrityError
from werkzeug.security import check_password_hash, generate_password_hash

from .errors import Conflict, Forbidden, Unauthorized, ValidationError
from .models import ROLE_ADMIN, ROLE_CUSTOMER, ROLE_STAFF, User, db
from .utils import get_json, log_action

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__, url_prefix='/auth')


@dataclass(frozen=True)
class Identity:
    """Caller identity for one request. Core operations take this as a parameter."""

    user_id: int
    role: str

    @property
    def is_admin(self):
        return self.role == ROLE_ADMIN

    @property
    def is_staff(self):
        return self.role in (ROLE_STAFF, ROLE_ADMIN)


def load_identity():
    """Resolve the session cookie into an Identity, or None.

    The role is re-read from the database so role changes apply immediately.
    """
    uid = session.get('user_id')
    if uid is None:
        return None
    user = db.session.get(User, uid)
    if user is None:
        session.pop('user_id', None)
        return None
    return Identity(user_id=user.id, role=user.role)


def login_required(f):
    @wraps(f)
    def decorated(*args, **kwargs):
        identity = load_identity()
        if identity is None:
            raise Unauthorized()
        return f(identity, *args, **kwargs)
    return decorated


def roles_required(*roles):
    def decorator(f):
        @wraps(f)
        def decorated(*args, **kwargs):
            identity = load_identity()
            if identity is None:
                raise Unauthorized()
            if identity.role not in roles:
                raise Forbidden()
            return f(identity, *args, **kwargs)
        return decorated
    return decorator


admin_required = roles_required(ROLE_ADMIN)
staff_required = roles_required(ROLE_STAFF, ROLE_ADMIN)


def public_user(user):
    # legacy clients still read is_admin
    data = user.to_dict()
    data['is_admin'] = user.role == ROLE_ADMIN
    return data


@auth_bp.route('/register', methods=['POST'])
def register():
    data = get_json()
    name = str(data.get('name') or '').strip()
    email = str(data.get('email') or '').strip().lower()
    password = str(data.get('password') or '')

    if not name or not email or not password:
        raise ValidationError('name, email, password required')
    if '@' not in email:
        raise ValidationError('Invalid email format')
    min_len = current_app.config['PASSWORD_MIN_LENGTH']
    if len(password) < min_len:
        raise ValidationError(f'Password must be at least {min_len} characters')
    if User.query.filter_by(email=email).first():
        raise Conflict('Email already registered')

    # the first account on a fresh install runs the store
    make_admin = User.query.filter_by(role=ROLE_ADMIN).count() == 0
    user = User(
        name=name,
        email=email,
        password_hash=generate_password_hash(password),
        role=ROLE_ADMIN if make_admin else ROLE_CUSTOMER,
    )
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise Conflict('Email already registered')

    log_action('register', user.id)
    return jsonify({'id': user.id, 'role': user.role, 'is_admin': make_admin}), 201


@auth_bp.route('/login', methods=['POST'])
def login():
    data = get_json()
    email = str(data.get('email') or '').strip().lower()
    password = str(data.get('password') or '')
    if not email or not password:
        raise ValidationError('email and password required')

    user = User.query.filter_by(email=email).first()
    if not user or not check_password_hash(user.password_hash, password):
        logger.info('failed login for %s', email)
        raise Unauthorized('Invalid login')

    session.clear()
    session['user_id'] = user.id
    log_action('login', user.id)
    return jsonify({'user': public_user(user)})


@auth_bp.route('/logout', methods=['POST'])
def logout():
    uid = session.pop('user_id', None)
    if uid is not None:
        log_action('logout', uid)
    return jsonify({'message': 'Logged out'})


@auth_bp.route('/me', methods=['GET'])
def me():
    identity = load_identity()
    if identity is None:
        return jsonify({'user': None})
    return jsonify({'user': public_user(db.session.get(User, identity.user_id))})
