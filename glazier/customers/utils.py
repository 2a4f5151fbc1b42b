# glazier/customers/utils.py

"""Owner-scoped customer operations.

Every lookup filters on ``user_id`` so another tenant's customer is reported
exactly like a missing one.
"""

import logging

from sqlalchemy import func

from glazier import db
from glazier.errors import NotFound, ValidationFailed
from glazier.fields import clean_text
from glazier.models import Customer, Estimate

# JSON key -> column
FIELDS = {
    'name'   : 'name',
    'email'  : 'email',
    'phone'  : 'phone',
    'address': 'address',
    'city'   : 'city',
    'state'  : 'state',
    'zip'    : 'zip',
    'notes'  : 'notes',
}

RECENT_ESTIMATES = 10


def list_customers(user_id: int) -> list:
    """Newest first, each with its estimate count."""
    counts = (
        db.session.query(Estimate.customer_id, func.count(Estimate.id))
        .filter(Estimate.user_id == user_id)
        .group_by(Estimate.customer_id)
        .all()
    )
    by_customer = dict(counts)
    rows = (
        Customer.query.filter_by(user_id=user_id)
        .order_by(Customer.created_at.desc(), Customer.id.desc())
        .all()
    )
    out = []
    for c in rows:
        d = c.to_dict()
        d['estimateCount'] = by_customer.get(c.id, 0)
        out.append(d)
    return out


def get_customer(user_id: int, customer_id: int) -> Customer:
    customer = Customer.query.filter_by(id=customer_id, user_id=user_id).first()
    if customer is None:
        raise NotFound('Customer not found')
    return customer


def customer_detail(customer: Customer) -> dict:
    recent = (
        Estimate.query.filter_by(customer_id=customer.id, user_id=customer.user_id)
        .order_by(Estimate.created_at.desc(), Estimate.id.desc())
        .limit(RECENT_ESTIMATES)
        .all()
    )
    data = customer.to_dict()
    data['estimates'] = [e.to_dict() for e in recent]
    return data


def create_customer(user_id: int, fields: dict) -> Customer:
    name = clean_text(fields.get('name'))
    if not name:
        raise ValidationFailed('name is required')
    customer = Customer(user_id=user_id, name=name)
    for key, attr in FIELDS.items():
        if key != 'name':
            setattr(customer, attr, clean_text(fields.get(key)))
    db.session.add(customer)
    db.session.commit()
    logging.info('created customer id=%s user=%s', customer.id, user_id)
    return customer


def update_customer(user_id: int, customer_id: int, fields: dict) -> Customer:
    customer = get_customer(user_id, customer_id)
    if 'name' in fields and not clean_text(fields.get('name')):
        raise ValidationFailed('name is required')
    for key, attr in FIELDS.items():
        if key in fields:
            setattr(customer, attr, clean_text(fields[key]))
    db.session.commit()
    return customer


def delete_customer(user_id: int, customer_id: int) -> int:
    """Delete the customer and, through the relationship cascade, its estimates.

    Returns the number of estimates removed along with it.
    """
    customer = get_customer(user_id, customer_id)
    removed = len(customer.estimates)
    db.session.delete(customer)
    db.session.commit()
    logging.info(
        'deleted customer id=%s user=%s estimates=%s', customer_id, user_id, removed
    )
    return removed
