import logging

from flask_restx import Namespace, Resource, fields
from flask import request
from flask_jwt_extended import jwt_required

from ..errors import ExternalServiceError, ValidationError
from ..services import booking_service, email_service
from ..utils.util import current_identity

logger = logging.getLogger(__name__)

notification_ns = Namespace('notifications', description='Transactional email and the contact form')

booking_confirmation_model = notification_ns.model('BookingConfirmation', {
    'bookingId': fields.String(required=True, description='Booking to resend the confirmation for'),
})

contact_model = notification_ns.model('ContactMessage', {
    'name': fields.String(required=True),
    'email': fields.String(required=True),
    'subject': fields.String(required=True),
    'message': fields.String(required=True),
    'recaptchaToken': fields.String(),
})


def _deliver(send, payload):
    try:
        return send(payload), 200
    except ValidationError as e:
        return {'success': False, 'error': e.message}, 400
    except ExternalServiceError as e:
        logger.error(f"Email delivery failed: {e.message}")
        return {'success': False, 'error': e.message}, 502


@notification_ns.route('/booking-confirmation')
class BookingConfirmation(Resource):
    @jwt_required()
    @notification_ns.expect(booking_confirmation_model)
    def post(self):
        """Resend the confirmation for one of the caller's bookings to its owner and vet"""
        booking_id = (request.get_json(silent=True) or {}).get('bookingId')
        if not booking_id:
            return {'success': False, 'error': 'Missing bookingId'}, 400
        booking = booking_service.get_booking(booking_id, current_identity())
        return _deliver(email_service.send_booking_confirmation, booking_service.booking_email_payload(booking))


@notification_ns.route('/contact')
class ContactMessage(Resource):
    @notification_ns.expect(contact_model)
    def post(self):
        """Forward a contact form message to the support inbox"""
        return _deliver(email_service.send_contact_message, request.get_json(silent=True) or {})
