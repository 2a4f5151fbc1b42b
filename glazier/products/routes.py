# glazier/products/routes.py

from flask import Blueprint, jsonify, request

from glazier.auth.utils import login_required
from glazier.fields import json_body
from glazier.products.utils import (
    create_product,
    delete_product,
    get_product,
    list_products,
    update_product,
)

bp = Blueprint('products', __name__)


@bp.route('', methods=['GET'])
@login_required
def list_all(user):
    """
    Catalog listing.
    Optional ?active=1|0 limits to products shown (or hidden) in quick-add.
    """
    active = request.args.get('active')
    if active is not None:
        active = active.lower() in ('1', 'true', 'yes')
    prods = list_products(user.id, active=active)
    return jsonify(products=[p.to_dict() for p in prods])


@bp.route('', methods=['POST'])
@login_required
def create(user):
    data = json_body()
    return jsonify(product=create_product(user.id, data).to_dict())


@bp.route('/<int:product_id>', methods=['GET'])
@login_required
def view(product_id, user):
    return jsonify(product=get_product(user.id, product_id).to_dict())


@bp.route('/<int:product_id>', methods=['PUT'])
@login_required
def update(product_id, user):
    data = json_body()
    product = update_product(user.id, product_id, data)
    return jsonify(success=True, product=product.to_dict())


@bp.route('/<int:product_id>', methods=['DELETE'])
@login_required
def delete(product_id, user):
    delete_product(user.id, product_id)
    return jsonify(success=True)
