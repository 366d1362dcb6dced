import enum
from furrchum import db
from furrchum.utils.util import new_id, utcnow


class TransactionStatus(enum.Enum):
    PENDING = 'pending'
    COMPLETED = 'completed'
    FAILED = 'failed'
    REFUNDED = 'refunded'
    SUCCESS = 'success'


class Transaction(db.Model):
    __tablename__ = 'transactions'
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    booking_id = db.Column(db.String(36), db.ForeignKey('bookings.id'), nullable=True, index=True)
    pet_owner_id = db.Column(db.String(36), db.ForeignKey('profiles.id'), nullable=True, index=True)
    amount = db.Column(db.Numeric(10, 2), nullable=False)
    currency = db.Column(db.String(10), nullable=False, default='INR')
    status = db.Column(db.String(20), nullable=False, default=TransactionStatus.PENDING.value)
    provider = db.Column(db.String(30), nullable=False, default='razorpay')
    provider_payment_id = db.Column(db.String(120))
    provider_order_id = db.Column(db.String(120), index=True)
    description = db.Column(db.String(300))
    refund_amount = db.Column(db.Numeric(10, 2))
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        db.CheckConstraint('amount > 0', name='ck_transaction_amount_positive'),
    )

    def __repr__(self):
        return f'<Transaction {self.id} {self.amount} {self.currency} ({self.status})>'
