from datetime import datetime

from glazier import db
from glazier.pricing import as_number


# Ordered pipeline; order drives progress display only, any value may be set.
JOB_STATUSES = ['quote', 'sold', 'scheduled', 'in_progress', 'completed', 'paid']


def _iso(value):
    return value.isoformat() if value else None


def job_status_index(job_status: str) -> int:
    """Position in the pipeline, -1 for values outside it."""
    try:
        return JOB_STATUSES.index(job_status)
    except ValueError:
        return -1


class User(db.Model):
    __tablename__ = 'user'
    id              = db.Column(db.Integer, primary_key=True)
    email           = db.Column(db.String(255), unique=True, nullable=False)
    password_hash   = db.Column(db.String(255), nullable=False)
    company_name    = db.Column(db.String(200), nullable=False)
    company_address = db.Column(db.String(255))
    company_phone   = db.Column(db.String(50))
    company_email   = db.Column(db.String(255))
    logo_url        = db.Column(db.String(500))
    created_at      = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    def to_dict(self):
        return {
            'id'            : self.id,
            'email'         : self.email,
            'companyName'   : self.company_name,
            'companyAddress': self.company_address,
            'companyPhone'  : self.company_phone,
            'companyEmail'  : self.company_email,
            'logoUrl'       : self.logo_url,
        }

    def issuer_profile(self):
        """Company block printed on estimates; read live, never snapshotted."""
        return {
            'companyName'   : self.company_name,
            'companyAddress': self.company_address,
            'companyPhone'  : self.company_phone,
            'companyEmail'  : self.company_email,
            'logoUrl'       : self.logo_url,
        }


class Customer(db.Model):
    __tablename__ = 'customer'
    id         = db.Column(db.Integer, primary_key=True)
    user_id    = db.Column(
                    db.Integer,
                    db.ForeignKey('user.id', ondelete='CASCADE'),
                    nullable=False,
                    index=True
                 )
    name       = db.Column(db.String(200), nullable=False)
    email      = db.Column(db.String(255))
    phone      = db.Column(db.String(50))
    address    = db.Column(db.String(255))
    city       = db.Column(db.String(100))
    state      = db.Column(db.String(50))
    zip        = db.Column(db.String(20))
    notes      = db.Column(db.Text)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    # Deleting a customer takes its estimates (and their line items) with it.
    estimates  = db.relationship(
                    'Estimate',
                    back_populates='customer',
                    cascade='all, delete-orphan'
                 )

    def to_dict(self):
        return {
            'id'       : self.id,
            'userId'   : self.user_id,
            'name'     : self.name,
            'email'    : self.email,
            'phone'    : self.phone,
            'address'  : self.address,
            'city'     : self.city,
            'state'    : self.state,
            'zip'      : self.zip,
            'notes'    : self.notes,
            'createdAt': _iso(self.created_at),
        }


class Product(db.Model):
    __tablename__ = 'product'
    id          = db.Column(db.Integer, primary_key=True)
    user_id     = db.Column(
                    db.Integer,
                    db.ForeignKey('user.id', ondelete='CASCADE'),
                    nullable=False,
                    index=True
                  )
    name        = db.Column(db.String(200), nullable=False)
    description = db.Column(db.Text)
    category    = db.Column(db.String(100))
    unit        = db.Column(db.String(32), nullable=False, default='ea')
    unit_price  = db.Column(db.Numeric(12, 2), nullable=False)
    cost        = db.Column(db.Numeric(12, 2))
    is_active   = db.Column(db.Boolean, nullable=False, default=True)
    created_at  = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    # No delete cascade: line items keep their snapshot, only the link is nulled.
    line_items  = db.relationship('EstimateLineItem', back_populates='product')

    def to_dict(self):
        return {
            'id'         : self.id,
            'userId'     : self.user_id,
            'name'       : self.name,
            'description': self.description,
            'category'   : self.category,
            'unit'       : self.unit,
            'unitPrice'  : as_number(self.unit_price),
            'cost'       : as_number(self.cost),
            'isActive'   : self.is_active,
            'createdAt'  : _iso(self.created_at),
        }


class Estimate(db.Model):
    __tablename__ = 'estimate'
    id              = db.Column(db.Integer, primary_key=True)
    user_id         = db.Column(
                        db.Integer,
                        db.ForeignKey('user.id', ondelete='CASCADE'),
                        nullable=False,
                        index=True
                      )
    customer_id     = db.Column(
                        db.Integer,
                        db.ForeignKey('customer.id', ondelete='CASCADE'),
                        nullable=False,
                        index=True
                      )
    estimate_number = db.Column(db.String(32), unique=True, nullable=False)
    status          = db.Column(db.String(32), nullable=False, default='draft')
    job_status      = db.Column(db.String(32), nullable=False, default='quote')
    job_address     = db.Column(db.String(255))
    job_city        = db.Column(db.String(100))
    job_state       = db.Column(db.String(50))
    job_zip         = db.Column(db.String(20))
    subtotal        = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    tax_rate        = db.Column(db.Numeric(6, 3), nullable=False, default=0)
    tax_amount      = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    total           = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    notes           = db.Column(db.Text)
    valid_until     = db.Column(db.DateTime)
    scheduled_date  = db.Column(db.DateTime)
    completed_date  = db.Column(db.DateTime)
    paid_date       = db.Column(db.DateTime)
    created_at      = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at      = db.Column(
                        db.DateTime,
                        nullable=False,
                        default=datetime.utcnow,
                        onupdate=datetime.utcnow
                      )

    customer   = db.relationship('Customer', back_populates='estimates')
    user       = db.relationship('User')
    line_items = db.relationship(
                    'EstimateLineItem',
                    back_populates='estimate',
                    order_by='EstimateLineItem.sort_order',
                    cascade='all, delete-orphan'
                 )

    def to_dict(self, detail=False):
        data = {
            'id'            : self.id,
            'userId'        : self.user_id,
            'customerId'    : self.customer_id,
            'estimateNumber': self.estimate_number,
            'status'        : self.status,
            'jobStatus'     : self.job_status,
            'jobStage'      : job_status_index(self.job_status),
            'jobAddress'    : self.job_address,
            'jobCity'       : self.job_city,
            'jobState'      : self.job_state,
            'jobZip'        : self.job_zip,
            'subtotal'      : as_number(self.subtotal),
            'taxRate'       : as_number(self.tax_rate),
            'taxAmount'     : as_number(self.tax_amount),
            'total'         : as_number(self.total),
            'notes'         : self.notes,
            'validUntil'    : _iso(self.valid_until),
            'scheduledDate' : _iso(self.scheduled_date),
            'completedDate' : _iso(self.completed_date),
            'paidDate'      : _iso(self.paid_date),
            'createdAt'     : _iso(self.created_at),
            'updatedAt'     : _iso(self.updated_at),
            'customer'      : self.customer.to_dict() if self.customer else None,
            'lineItems'     : [li.to_dict() for li in self.line_items],
        }
        if detail:
            data['user'] = self.user.issuer_profile()
        return data


class EstimateLineItem(db.Model):
    __tablename__ = 'estimate_line_item'
    id          = db.Column(db.Integer, primary_key=True)
    estimate_id = db.Column(
                    db.Integer,
                    db.ForeignKey('estimate.id', ondelete='CASCADE'),
                    nullable=False,
                    index=True
                  )
    product_id  = db.Column(
                    db.Integer,
                    db.ForeignKey('product.id', ondelete='SET NULL'),
                    nullable=True
                  )
    description = db.Column(db.Text, nullable=False)
    quantity    = db.Column(db.Numeric(12, 2), nullable=False, default=1)
    unit        = db.Column(db.String(32), nullable=False, default='ea')
    unit_price  = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    total       = db.Column(db.Numeric(12, 2), nullable=False, default=0)
    sort_order  = db.Column(db.Integer, nullable=False, default=0)

    estimate = db.relationship('Estimate', back_populates='line_items')
    product  = db.relationship('Product', back_populates='line_items')

    def to_dict(self):
        return {
            'id'        : self.id,
            'estimateId': self.estimate_id,
            'productId' : self.product_id,
            'description': self.description,
            'quantity'  : as_number(self.quantity),
            'unit'      : self.unit,
            'unitPrice' : as_number(self.unit_price),
            'total'     : as_number(self.total),
            'sortOrder' : self.sort_order,
        }
