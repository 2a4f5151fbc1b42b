# glazier/products/utils.py

"""Owner-scoped catalog operations for reusable priced products/services."""

import logging

from glazier import db
from glazier.errors import NotFound, ValidationFailed
from glazier.fields import clean_text
from glazier.models import Product
from glazier.pricing import money

TEXT_FIELDS = {
    'name'       : 'name',
    'description': 'description',
    'category'   : 'category',
}

DEFAULT_UNIT = 'ea'


def _price(value, field: str):
    try:
        amount = money(value)
    except ValueError:
        raise ValidationFailed(f'{field} must be a number') from None
    if amount < 0:
        raise ValidationFailed(f'{field} must not be negative')
    return amount


def _flag(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() not in ('', '0', 'false', 'no', 'off')
    return bool(value)


def _apply(product: Product, fields: dict) -> None:
    for key, attr in TEXT_FIELDS.items():
        if key in fields:
            setattr(product, attr, clean_text(fields[key]))
    if 'unit' in fields:
        product.unit = clean_text(fields['unit']) or DEFAULT_UNIT
    if 'unitPrice' in fields:
        product.unit_price = _price(fields['unitPrice'], 'unitPrice')
    if 'cost' in fields:
        cost = fields['cost']
        product.cost = None if cost in (None, '') else _price(cost, 'cost')
    if 'isActive' in fields:
        product.is_active = _flag(fields['isActive'])


def list_products(user_id: int, active: bool | None = None) -> list:
    """Catalog ordered by category, then name."""
    q = Product.query.filter_by(user_id=user_id)
    if active is not None:
        q = q.filter_by(is_active=active)
    return q.order_by(
        Product.category.is_(None).desc(),
        Product.category,
        Product.name,
    ).all()


def get_product(user_id: int, product_id: int) -> Product:
    product = Product.query.filter_by(id=product_id, user_id=user_id).first()
    if product is None:
        raise NotFound('Product not found')
    return product


def create_product(user_id: int, fields: dict) -> Product:
    if not clean_text(fields.get('name')):
        raise ValidationFailed('name is required')
    if fields.get('unitPrice') in (None, ''):
        raise ValidationFailed('unitPrice is required')
    product = Product(user_id=user_id, unit=DEFAULT_UNIT, is_active=True)
    _apply(product, fields)
    db.session.add(product)
    db.session.commit()
    logging.info('created product id=%s user=%s', product.id, user_id)
    return product


def update_product(user_id: int, product_id: int, fields: dict) -> Product:
    product = get_product(user_id, product_id)
    if 'name' in fields and not clean_text(fields.get('name')):
        raise ValidationFailed('name is required')
    if 'unitPrice' in fields and fields['unitPrice'] in (None, ''):
        raise ValidationFailed('unitPrice is required')
    try:
        _apply(product, fields)
    except ValidationFailed:
        db.session.rollback()
        raise
    db.session.commit()
    return product


def delete_product(user_id: int, product_id: int) -> None:
    """Remove a catalog entry; estimate line items keep their snapshot."""
    product = get_product(user_id, product_id)
    db.session.delete(product)
    db.session.commit()
    logging.info('deleted product id=%s user=%s', product_id, user_id)
