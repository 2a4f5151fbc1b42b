# glazier/estimates/utils.py

"""Estimate engine: owner-scoped CRUD, line-item pricing and the job pipeline.

Line items are always replaced as a whole.  Whenever they change the
subtotal, tax and total are recomputed from the new set and written in the
same transaction, so a failure part way through leaves the previous items
(and figures) untouched.
"""

import logging
import random
import string
import time
from datetime import datetime

from sqlalchemy import func

from glazier import db
from glazier.errors import NotFound, ValidationFailed
from glazier.fields import clean_text
from glazier.models import (
    JOB_STATUSES,
    Customer,
    Estimate,
    EstimateLineItem,
    Product,
)
from glazier.pricing import ZERO, compute_totals, line_total, money, rate, to_decimal

SOLD_STATUSES = JOB_STATUSES[1:]

DEFAULT_STATUS = 'draft'
DEFAULT_JOB_STATUS = 'quote'
DEFAULT_UNIT = 'ea'

TEXT_FIELDS = {
    'status'    : 'status',
    'jobStatus' : 'job_status',
    'jobAddress': 'job_address',
    'jobCity'   : 'job_city',
    'jobState'  : 'job_state',
    'jobZip'    : 'job_zip',
    'notes'     : 'notes',
}
DATE_FIELDS = {
    'validUntil'   : 'valid_until',
    'scheduledDate': 'scheduled_date',
    'completedDate': 'completed_date',
    'paidDate'     : 'paid_date',
}
REQUIRED_TEXT = {'status': DEFAULT_STATUS, 'jobStatus': DEFAULT_JOB_STATUS}

NUMBER_ATTEMPTS = 5
RECENT_ESTIMATES = 5

_BASE36 = string.digits + string.ascii_uppercase


def _base36(n: int) -> str:
    out = ''
    while True:
        n, r = divmod(n, 36)
        out = _BASE36[r] + out
        if n == 0:
            return out


def generate_estimate_number() -> str:
    """``EST-<ms timestamp in base36>-<4 random base36 chars>``."""
    stamp = _base36(int(time.time() * 1000))
    suffix = ''.join(random.choices(_BASE36, k=4))
    return f'EST-{stamp}-{suffix}'


def _unused_estimate_number() -> str:
    for _ in range(NUMBER_ATTEMPTS):
        number = generate_estimate_number()
        if not Estimate.query.filter_by(estimate_number=number).first():
            return number
        logging.warning('estimate number collision on %s, retrying', number)
    raise RuntimeError('could not allocate a unique estimate number')


def _parse_date(value, field):
    if value in (None, ''):
        return None
    if isinstance(value, datetime):
        return value
    text = str(value).strip()
    if text.endswith('Z'):
        text = text[:-1] + '+00:00'
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        raise ValidationFailed(f'{field} must be an ISO-8601 date') from None
    # Stored naive (UTC), like created_at.
    if parsed.tzinfo is not None:
        parsed = parsed.replace(tzinfo=None) - parsed.utcoffset()
    return parsed


def _number(value, field):
    try:
        return to_decimal(value, field)
    except ValueError as e:
        raise ValidationFailed(str(e)) from None


def _tax_rate(value):
    if value in (None, ''):
        return ZERO
    try:
        return rate(value)
    except ValueError:
        raise ValidationFailed('taxRate must be a number') from None


def _build_line_item(user_id: int, data: dict, position: int) -> EstimateLineItem:
    """Turn one submitted row into an unsaved line item.

    ``total`` is taken as supplied (callers may apply manual discounts); it is
    only derived from quantity * unitPrice when omitted.
    """
    if not isinstance(data, dict):
        raise ValidationFailed(f'lineItems[{position}] must be an object')
    description = clean_text(data.get('description'))
    if not description:
        raise ValidationFailed(f'lineItems[{position}].description is required')
    # derived totals are computed from the values as stored
    quantity = money(_number(data.get('quantity', 1), f'lineItems[{position}].quantity'))
    unit_price = money(_number(data.get('unitPrice', 0), f'lineItems[{position}].unitPrice'))
    if data.get('total') in (None, ''):
        total = line_total(quantity, unit_price)
    else:
        total = money(_number(data['total'], f'lineItems[{position}].total'))

    product_id = data.get('productId') or None
    if product_id is not None:
        owned = Product.query.filter_by(id=product_id, user_id=user_id).first()
        # Snapshot only; a stale or foreign product link is dropped.
        product_id = owned.id if owned else None

    return EstimateLineItem(
        product_id  = product_id,
        description = description,
        quantity    = quantity,
        unit        = clean_text(data.get('unit')) or DEFAULT_UNIT,
        unit_price  = unit_price,
        total       = total,
        sort_order  = position,
    )


def _build_line_items(user_id: int, rows) -> list:
    if rows is None:
        return []
    if not isinstance(rows, list):
        raise ValidationFailed('lineItems must be a list')
    return [_build_line_item(user_id, row, i) for i, row in enumerate(rows)]


def _apply_totals(est: Estimate, items: list, tax_rate) -> None:
    subtotal, tax_amount, total = compute_totals((i.total for i in items), tax_rate)
    est.subtotal = subtotal
    est.tax_rate = tax_rate
    est.tax_amount = tax_amount
    est.total = total


def _apply_fields(est: Estimate, fields: dict) -> None:
    for key, attr in TEXT_FIELDS.items():
        if key in fields:
            value = clean_text(fields[key])
            setattr(est, attr, value or REQUIRED_TEXT.get(key))
    for key, attr in DATE_FIELDS.items():
        if key in fields:
            setattr(est, attr, _parse_date(fields[key], key))


def create_estimate(user_id: int, fields: dict) -> Estimate:
    customer_id = fields.get('customerId')
    customer = None
    if customer_id not in (None, ''):
        customer = Customer.query.filter_by(id=customer_id, user_id=user_id).first()
    if customer is None:
        raise ValidationFailed('customerId must reference one of your customers')

    try:
        items = _build_line_items(user_id, fields.get('lineItems'))
        est = Estimate(
            user_id         = user_id,
            customer_id     = customer.id,
            estimate_number = _unused_estimate_number(),
            status          = DEFAULT_STATUS,
            job_status      = DEFAULT_JOB_STATUS,
        )
        _apply_fields(est, fields)
        _apply_totals(est, items, _tax_rate(fields.get('taxRate')))
        est.line_items = items
        db.session.add(est)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    logging.info(
        'created estimate %s id=%s user=%s items=%s total=%s',
        est.estimate_number, est.id, user_id, len(items), est.total,
    )
    return est


def get_estimate(user_id: int, estimate_id: int) -> Estimate:
    """Estimate with customer, ordered line items and (via ``user``) the issuer."""
    est = Estimate.query.filter_by(id=estimate_id, user_id=user_id).first()
    if est is None:
        raise NotFound('Estimate not found')
    return est


def update_estimate(user_id: int, estimate_id: int, fields: dict) -> Estimate:
    """Patch an estimate.

    With ``lineItems`` the whole set is replaced and totals recomputed, using
    ``taxRate`` from the patch or else the stored rate.  Without it the
    financial figures are left exactly as stored.
    """
    est = get_estimate(user_id, estimate_id)
    try:
        _apply_fields(est, fields)
        if 'lineItems' in fields and fields['lineItems'] is not None:
            if 'taxRate' in fields and fields['taxRate'] is not None:
                tax_rate = _tax_rate(fields['taxRate'])
            else:
                tax_rate = est.tax_rate
            items = _build_line_items(user_id, fields['lineItems'])
            # old rows are deleted before the new ones insert
            est.line_items.clear()
            db.session.flush()
            est.line_items.extend(items)
            _apply_totals(est, items, tax_rate)
            logging.info(
                'replaced line items on estimate id=%s count=%s', est.id, len(items)
            )
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return est


def list_estimates(user_id: int, status: str | None = None, job_status: str | None = None) -> list:
    q = Estimate.query.filter_by(user_id=user_id)
    if status:
        q = q.filter_by(status=status)
    if job_status:
        q = q.filter_by(job_status=job_status)
    return q.order_by(Estimate.created_at.desc(), Estimate.id.desc()).all()


def delete_estimate(user_id: int, estimate_id: int) -> None:
    est = get_estimate(user_id, estimate_id)
    db.session.delete(est)
    db.session.commit()
    logging.info('deleted estimate id=%s user=%s', estimate_id, user_id)


def pipeline_summary(user_id: int) -> dict:
    """Dashboard figures: counts, pipeline/sold value and per-stage counts."""
    rows = (
        db.session.query(Estimate.job_status, func.count(Estimate.id), func.sum(Estimate.total))
        .filter(Estimate.user_id == user_id)
        .group_by(Estimate.job_status)
        .all()
    )
    status_counts = {}
    pipeline_value = ZERO
    sold_value = ZERO
    estimate_count = 0
    for job_status, count, value in rows:
        value = to_decimal(value or 0)
        status_counts[job_status] = count
        estimate_count += count
        pipeline_value += value
        if job_status in SOLD_STATUSES:
            sold_value += value

    recent = (
        Estimate.query.filter_by(user_id=user_id)
        .order_by(Estimate.created_at.desc(), Estimate.id.desc())
        .limit(RECENT_ESTIMATES)
        .all()
    )
    return {
        'customerCount': Customer.query.filter_by(user_id=user_id).count(),
        'productCount' : Product.query.filter_by(user_id=user_id).count(),
        'estimateCount': estimate_count,
        'pipelineValue': float(money(pipeline_value)),
        'soldValue'    : float(money(sold_value)),
        'statusCounts' : status_counts,
        'recentEstimates': [e.to_dict() for e in recent],
    }
