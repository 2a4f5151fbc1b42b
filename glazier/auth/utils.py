# glazier/auth/utils.py

"""Password hashing, signed session tokens and the ``login_required`` gate."""

import logging
from datetime import datetime, timedelta, timezone
from functools import wraps

import jwt
from flask import current_app, request
from sqlalchemy.exc import IntegrityError
from werkzeug.security import check_password_hash, generate_password_hash

from glazier import db
from glazier.errors import Conflict, InvalidCredentials, Unauthenticated, ValidationFailed
from glazier.fields import clean_text
from glazier.models import User

PROFILE_FIELDS = {
    'companyName'   : 'company_name',
    'companyAddress': 'company_address',
    'companyPhone'  : 'company_phone',
    'companyEmail'  : 'company_email',
    'logoUrl'       : 'logo_url',
}

# Compared against when the email is unknown so both failure paths hash once.
_DUMMY_HASH = generate_password_hash('glazier-dummy-password')


def hash_password(password: str) -> str:
    return generate_password_hash(password)


def verify_password(password: str, hashed: str) -> bool:
    return check_password_hash(hashed, password)


def generate_token(user_id: int) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        'sub': str(user_id),
        'iat': now,
        'exp': now + timedelta(days=current_app.config['TOKEN_TTL_DAYS']),
    }
    return jwt.encode(payload, current_app.config['JWT_SECRET'], algorithm='HS256')


def verify_token(token: str | None) -> int | None:
    """Return the user id carried by ``token`` or None if it does not verify."""
    if not token:
        return None
    try:
        payload = jwt.decode(
            token, current_app.config['JWT_SECRET'], algorithms=['HS256']
        )
        return int(payload['sub'])
    except (jwt.PyJWTError, KeyError, ValueError):
        return None


def resolve_session(token: str | None) -> User | None:
    user_id = verify_token(token)
    if user_id is None:
        return None
    return db.session.get(User, user_id)


def _normalise_email(value) -> str | None:
    value = clean_text(value)
    return value.lower() if value else None


def register(fields: dict):
    """Create a user and return ``(user, token)``."""
    email = _normalise_email(fields.get('email'))
    password = fields.get('password') or None
    if password is not None and not isinstance(password, str):
        raise ValidationFailed('password must be a string')
    company_name = clean_text(fields.get('companyName'))
    for name, value in (('email', email), ('password', password), ('companyName', company_name)):
        if not value:
            raise ValidationFailed(f'{name} is required')

    if User.query.filter_by(email=email).first():
        raise Conflict('Email already registered')

    user = User(
        email           = email,
        password_hash   = hash_password(password),
        company_name    = company_name,
        company_address = clean_text(fields.get('companyAddress')),
        company_phone   = clean_text(fields.get('companyPhone')),
        company_email   = clean_text(fields.get('companyEmail')),
    )
    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise Conflict('Email already registered')
    logging.info('registered user id=%s', user.id)
    return user, generate_token(user.id)


def authenticate(email, password):
    """Return ``(user, token)``; unknown email and bad password look the same."""
    email = _normalise_email(email)
    if not email or not password:
        raise ValidationFailed('Email and password required')
    if not isinstance(password, str):
        raise ValidationFailed('password must be a string')

    user = User.query.filter_by(email=email).first()
    hashed = user.password_hash if user else _DUMMY_HASH
    if not verify_password(password, hashed) or user is None:
        logging.info('login failed')
        raise InvalidCredentials()
    logging.info('login user id=%s', user.id)
    return user, generate_token(user.id)


def update_profile(user: User, fields: dict) -> User:
    for key, attr in PROFILE_FIELDS.items():
        if key in fields:
            setattr(user, attr, clean_text(fields[key]))
    if not user.company_name:
        db.session.rollback()
        raise ValidationFailed('companyName is required')
    db.session.commit()
    return user


def request_token() -> str | None:
    token = request.cookies.get(current_app.config['AUTH_COOKIE_NAME'])
    if token:
        return token
    header = request.headers.get('Authorization', '')
    if header.startswith('Bearer '):
        return header[len('Bearer '):].strip()
    return None


def login_required(view):
    """Resolve the session and hand the user to ``view`` as ``user=``."""
    @wraps(view)
    def decorated(*args, **kwargs):
        user = resolve_session(request_token())
        if user is None:
            raise Unauthenticated()
        return view(*args, user=user, **kwargs)
    return decorated


def set_auth_cookie(response, token: str):
    cfg = current_app.config
    response.set_cookie(
        cfg['AUTH_COOKIE_NAME'],
        token,
        max_age=60 * 60 * 24 * cfg['TOKEN_TTL_DAYS'],
        path='/',
        httponly=True,
        secure=cfg['SESSION_COOKIE_SECURE'],
        samesite=cfg['SESSION_COOKIE_SAMESITE'],
    )
    return response


def clear_auth_cookie(response):
    response.delete_cookie(current_app.config['AUTH_COOKIE_NAME'], path='/')
    return response
