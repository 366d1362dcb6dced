from flask_restx import Namespace, Resource, fields
from flask import request
from flask_jwt_extended import jwt_required

from ..models import Role
from ..services import transaction_service
from ..utils.util import current_identity, role_required

transaction_ns = Namespace('transactions', description='Payments, earnings and fee reconciliation')

transaction_model = transaction_ns.model('Transaction', {
    'booking_id': fields.String(description='Booking being paid for'),
    'amount': fields.Float(description='Must equal the consultation fee when booking_id is set'),
    'currency': fields.String(default='INR'),
    'provider': fields.String(default='razorpay'),
    'description': fields.String(),
})

checkout_model = transaction_ns.model('Checkout', {
    'booking_id': fields.String(required=True, description='Booking to pay for'),
})

verify_model = transaction_ns.model('VerifyPayment', {
    'razorpay_order_id': fields.String(required=True),
    'razorpay_payment_id': fields.String(required=True),
    'razorpay_signature': fields.String(required=True),
    'booking_id': fields.String(required=True),
})


@transaction_ns.route('')
class TransactionList(Resource):
    @jwt_required()
    @transaction_ns.doc(params={'status': 'Filter by status'})
    def get(self):
        """Transactions visible to the caller"""
        transactions = transaction_service.get_transactions(current_identity(), status=request.args.get('status'))
        return [transaction_service.format_transaction(t) for t in transactions], 200

    @role_required(Role.PET_OWNER, Role.ADMIN, Role.SUPERADMIN)
    @transaction_ns.expect(transaction_model)
    def post(self):
        """Record a pending payment"""
        transaction = transaction_service.create_transaction(request.get_json(), current_identity())
        return transaction_service.format_transaction(transaction), 201


@transaction_ns.route('/checkout')
class Checkout(Resource):
    @role_required(Role.PET_OWNER, Role.ADMIN, Role.SUPERADMIN)
    @transaction_ns.expect(checkout_model)
    def post(self):
        """Open a payment order for the booking's consultation fee"""
        return transaction_service.create_checkout(request.get_json(), current_identity()), 201


@transaction_ns.route('/verify')
class VerifyPayment(Resource):
    @jwt_required()
    @transaction_ns.expect(verify_model)
    def post(self):
        """Verify the provider signature and mark the payment completed"""
        transaction = transaction_service.verify_payment(request.get_json(), current_identity())
        return {
            'success': True,
            'message': 'Payment verified successfully',
            'transaction': transaction_service.format_transaction(transaction),
        }, 200


@transaction_ns.route('/stats')
class TransactionStats(Resource):
    @jwt_required()
    def get(self):
        """Totals, monthly comparison and platform fees"""
        return transaction_service.get_stats(current_identity()), 200


@transaction_ns.route('/earnings')
class TransactionEarnings(Resource):
    @role_required(Role.VET, Role.ADMIN, Role.SUPERADMIN)
    def get(self):
        """Per-booking vet earnings after the platform fee"""
        return transaction_service.get_earnings(current_identity()), 200
