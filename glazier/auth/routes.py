# glazier/auth/routes.py

from flask import Blueprint, jsonify

from glazier.auth.utils import (
    authenticate,
    clear_auth_cookie,
    login_required,
    register,
    set_auth_cookie,
    update_profile,
)
from glazier.fields import json_body

bp = Blueprint('auth', __name__)


@bp.route('/register', methods=['POST'])
def register_user():
    data = json_body()
    user, token = register(data)
    resp = jsonify(success=True, user=user.to_dict())
    return set_auth_cookie(resp, token)


@bp.route('/login', methods=['POST'])
def login():
    data = json_body()
    user, token = authenticate(data.get('email'), data.get('password'))
    resp = jsonify(success=True, user=user.to_dict())
    return set_auth_cookie(resp, token)


@bp.route('/logout', methods=['POST'])
def logout():
    return clear_auth_cookie(jsonify(success=True))


@bp.route('/me')
@login_required
def me(user):
    return jsonify(user=user.to_dict())


@bp.route('/profile', methods=['PUT'])
@login_required
def edit_profile(user):
    data = json_body()
    return jsonify(user=update_profile(user, data).to_dict())
