# glazier/customers/routes.py

from flask import Blueprint, jsonify

from glazier.auth.utils import login_required
from glazier.customers.utils import (
    create_customer,
    customer_detail,
    delete_customer,
    get_customer,
    list_customers,
    update_customer,
)
from glazier.fields import json_body

bp = Blueprint('customers', __name__)


@bp.route('', methods=['GET'])
@login_required
def list_all(user):
    return jsonify(customers=list_customers(user.id))


@bp.route('', methods=['POST'])
@login_required
def create(user):
    data = json_body()
    customer = create_customer(user.id, data)
    return jsonify(customer=customer.to_dict())


@bp.route('/<int:customer_id>', methods=['GET'])
@login_required
def view(customer_id, user):
    customer = get_customer(user.id, customer_id)
    return jsonify(customer=customer_detail(customer))


@bp.route('/<int:customer_id>', methods=['PUT'])
@login_required
def update(customer_id, user):
    data = json_body()
    customer = update_customer(user.id, customer_id, data)
    return jsonify(success=True, customer=customer.to_dict())


@bp.route('/<int:customer_id>', methods=['DELETE'])
@login_required
def delete(customer_id, user):
    removed = delete_customer(user.id, customer_id)
    return jsonify(success=True, deletedEstimates=removed)
