# Transaction service module: payment records, signature checks and money roll-ups
import hashlib
import hmac
import logging

from flask import current_app

from ..models import Booking, Transaction, Role, ADMIN_ROLES, TransactionStatus
from ..errors import ConflictError, ExternalServiceError, NotFoundError, PermissionDenied, ValidationError
from ..scheduling.reconciliation import booking_earnings, transaction_stats
from ..scheduling.state_machine import BookingStatus
from ..utils.util import utcnow
from .. import db
from . import payment_gateway

logger = logging.getLogger(__name__)


def format_transaction(transaction):
    return {
        'id': transaction.id,
        'booking_id': transaction.booking_id,
        'pet_owner_id': transaction.pet_owner_id,
        'amount': float(transaction.amount),
        'currency': transaction.currency,
        'status': transaction.status,
        'provider': transaction.provider,
        'provider_payment_id': transaction.provider_payment_id,
        'provider_order_id': transaction.provider_order_id,
        'description': transaction.description,
        'refund_amount': float(transaction.refund_amount) if transaction.refund_amount is not None else None,
        'created_at': transaction.created_at.isoformat() if transaction.created_at else None,
    }


def _platform_fee():
    return current_app.config.get('PLATFORM_FEE', 121)


def get_transactions(identity, status=None):
    user_id, role = identity
    role = Role(role)
    query = Transaction.query
    if role == Role.PET_OWNER:
        query = query.filter_by(pet_owner_id=user_id)
    elif role == Role.VET:
        query = query.join(Booking, Transaction.booking_id == Booking.id).filter(Booking.vet_id == user_id)
    if status:
        query = query.filter(Transaction.status == status)
    return query.order_by(Transaction.created_at.desc()).all()


def _is_admin(identity):
    return Role(identity[1]) in ADMIN_ROLES


def _payable_booking(booking_id, identity):
    booking = db.session.get(Booking, booking_id)
    if not booking:
        raise NotFoundError('Booking not found')
    if booking.pet_owner_id != identity[0] and not _is_admin(identity):
        raise PermissionDenied('You can only pay for your own bookings')
    if booking.status == BookingStatus.CANCELLED.value:
        raise ConflictError('Cannot pay for a cancelled booking')
    if booking.payment_status == 'paid':
        raise ConflictError('Booking is already paid')
    return booking


def booking_amount(booking):
    """Consultation fee owed for a booking; the client never sets it."""
    amount = float(booking.vet.consultation_fee or 0) if booking.vet else 0
    if amount <= 0:
        raise ValidationError('This vet has no consultation fee to pay')
    return amount


def _record(**fields):
    transaction = Transaction(status=TransactionStatus.PENDING.value, **fields)
    try:
        db.session.add(transaction)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return transaction


def create_transaction(data, identity):
    """Record a pending payment.

    Booking payments are charged the vet's consultation fee; a client amount that
    disagrees with it is rejected. Only admins may record payments with no booking.
    """
    if not data:
        raise ValidationError('No data provided')
    amount = data.get('amount')
    if amount is not None and (not isinstance(amount, (int, float)) or isinstance(amount, bool) or amount <= 0):
        raise ValidationError('amount must be a positive number')

    booking_id = data.get('booking_id')
    if booking_id:
        booking = _payable_booking(booking_id, identity)
        fee = booking_amount(booking)
        if amount is not None and abs(amount - fee) > 0.005:
            raise ValidationError(f'amount does not match the consultation fee of {fee:.2f}')
        amount = fee
    elif not _is_admin(identity):
        raise ValidationError('booking_id is required')
    elif amount is None:
        raise ValidationError('amount must be a positive number')

    return _record(
        booking_id=booking_id,
        pet_owner_id=identity[0],
        amount=amount,
        currency=data.get('currency', 'INR'),
        provider=data.get('provider', 'razorpay'),
        description=data.get('description'),
    )


def _receipt(booking):
    return f"bk_{booking.id.split('-')[0]}_{int(utcnow().timestamp()) % 1000000:06d}"


def create_checkout(data, identity):
    """Open a Razorpay order for a booking's fee and record it as a pending transaction."""
    booking_id = (data or {}).get('booking_id')
    if not booking_id:
        raise ValidationError('booking_id is required')
    booking = _payable_booking(booking_id, identity)
    amount = booking_amount(booking)

    order = payment_gateway.create_order(amount, _receipt(booking), notes={
        'booking_id': booking.id,
        'vet_id': booking.vet_id,
        'pet_id': booking.pet_id,
        'consultation_type': booking.consultation_type,
        'user_id': identity[0],
    })
    transaction = _record(
        booking_id=booking.id,
        pet_owner_id=booking.pet_owner_id,
        amount=amount,
        currency=order['currency'],
        provider='razorpay',
        provider_order_id=order['order_id'],
        description=f'Consultation booking {booking.id}',
    )
    logger.info(f"Checkout order {order['order_id']} opened for booking {booking.id}")
    return {
        'order_id': order['order_id'],
        'amount': order['amount'],
        'currency': order['currency'],
        'receipt': order['receipt'],
        'key_id': current_app.config.get('RAZORPAY_KEY_ID'),
        'transaction': format_transaction(transaction),
    }


def payment_signature(order_id, payment_id, secret):
    message = f'{order_id}|{payment_id}'.encode('utf-8')
    return hmac.new(secret.encode('utf-8'), message, hashlib.sha256).hexdigest()


def verify_payment(data, identity):
    """Check the Razorpay signature and settle the caller's pending transaction for the booking."""
    required = ('razorpay_order_id', 'razorpay_payment_id', 'razorpay_signature', 'booking_id')
    missing = [f for f in required if not (data or {}).get(f)]
    if missing:
        raise ValidationError('Missing required payment verification data')

    secret = current_app.config.get('RAZORPAY_KEY_SECRET')
    if not secret:
        raise ExternalServiceError('Payment verification not configured')

    expected = payment_signature(data['razorpay_order_id'], data['razorpay_payment_id'], secret)
    if not hmac.compare_digest(expected, data['razorpay_signature']):
        logger.warning(f"Payment signature mismatch for order {data['razorpay_order_id']}")
        raise ValidationError('Payment verification failed')

    transaction = Transaction.query.filter_by(provider_order_id=data['razorpay_order_id']).first()
    if not transaction:
        raise NotFoundError('Transaction not found for this order')
    if transaction.pet_owner_id != identity[0] and not _is_admin(identity):
        raise PermissionDenied('You can only verify your own payments')
    if not transaction.booking_id:
        raise ValidationError('Order is not linked to a booking')
    if transaction.booking_id != data['booking_id']:
        raise ValidationError('Order does not belong to this booking')
    if transaction.status != TransactionStatus.PENDING.value:
        raise ConflictError(f'Transaction is already {transaction.status}')

    transaction.status = TransactionStatus.COMPLETED.value
    transaction.provider_payment_id = data['razorpay_payment_id']
    transaction.booking.payment_status = 'paid'
    db.session.commit()
    logger.info(f"Payment {transaction.provider_payment_id} verified for booking {transaction.booking_id}")
    return transaction


def get_stats(identity):
    transactions = get_transactions(identity)
    return transaction_stats(transactions, utcnow().date(), platform_fee=_platform_fee())


def get_earnings(identity):
    return booking_earnings(get_transactions(identity), platform_fee=_platform_fee())
