from flask_restx import Namespace, Resource, fields
from flask import request
from flask_jwt_extended import jwt_required

from ..models import Role
from ..errors import ValidationError
from ..scheduling.state_machine import Action, actor_for_role
from ..services import booking_service
from ..utils.util import current_identity, role_required

booking_ns = Namespace('bookings', description='Consultation bookings')

booking_model = booking_ns.model('Booking', {
    'vet_id': fields.String(required=True, description='ID of the veterinarian'),
    'pet_id': fields.String(required=True, description='ID of the pet'),
    'booking_date': fields.String(required=True, description='Date, YYYY-MM-DD'),
    'start_time': fields.String(required=True, description='Slot start, HH:MM'),
    'end_time': fields.String(description='Slot end, HH:MM (defaults to one slot)'),
    'consultation_type': fields.String(description='video or in_person', enum=['video', 'in_person']),
    'notes': fields.String(description='Notes for the vet'),
})

reschedule_model = booking_ns.model('Reschedule', {
    'booking_date': fields.String(required=True, description='New date, YYYY-MM-DD'),
    'start_time': fields.String(required=True, description='New start, HH:MM'),
    'end_time': fields.String(description='New end, HH:MM'),
})

cancel_model = booking_ns.model('Cancel', {
    'reason': fields.String(description='Cancellation reason'),
    'no_show': fields.Boolean(description='The pet owner did not attend'),
    'technical_failure': fields.Boolean(description='Evidence of a technical failure was provided'),
})

status_model = booking_ns.model('ForceStatus', {
    'status': fields.String(required=True, enum=['pending', 'confirmed', 'completed', 'cancelled']),
    'reason': fields.String(),
})


def _respond(booking, code=200):
    return booking_service.format_booking(booking, current_identity()[1]), code


@booking_ns.route('')
class BookingList(Resource):
    @jwt_required()
    @booking_ns.doc(params={'status': 'Filter by status', 'date': 'Filter by date (YYYY-MM-DD)'})
    def get(self):
        """Bookings visible to the caller, in date order"""
        return booking_service.get_bookings(
            current_identity(), status=request.args.get('status'), booking_date=request.args.get('date')
        ), 200

    @role_required(Role.PET_OWNER)
    @booking_ns.expect(booking_model)
    def post(self):
        """Book a slot with an approved vet"""
        booking = booking_service.create_booking(request.get_json(), current_identity())
        return _respond(booking, 201)


@booking_ns.route('/<string:booking_id>')
class BookingResource(Resource):
    @jwt_required()
    def get(self, booking_id):
        """Get a booking by ID"""
        return _respond(booking_service.get_booking(booking_id, current_identity()))


@booking_ns.route('/<string:booking_id>/confirm')
class BookingConfirm(Resource):
    @jwt_required()
    def post(self, booking_id):
        """Vet confirms a pending booking"""
        return _respond(booking_service.transition_booking(booking_id, Action.CONFIRM, current_identity()))


@booking_ns.route('/<string:booking_id>/complete')
class BookingComplete(Resource):
    @jwt_required()
    def post(self, booking_id):
        """Vet marks a confirmed booking completed"""
        return _respond(booking_service.transition_booking(booking_id, Action.COMPLETE, current_identity()))


@booking_ns.route('/<string:booking_id>/cancel')
class BookingCancel(Resource):
    @jwt_required()
    @booking_ns.expect(cancel_model)
    def post(self, booking_id):
        """Cancel a live booking; the refund percentage is recorded on it"""
        data = request.get_json(silent=True) or {}
        return _respond(booking_service.transition_booking(booking_id, Action.CANCEL, current_identity(), data))


@booking_ns.route('/<string:booking_id>/reschedule')
class BookingReschedule(Resource):
    @jwt_required()
    @booking_ns.expect(reschedule_model)
    def post(self, booking_id):
        """Move a live booking to another date/time"""
        return _respond(booking_service.reschedule_booking(booking_id, request.get_json(), current_identity()))


@booking_ns.route('/<string:booking_id>/status')
class BookingForceStatus(Resource):
    @role_required(Role.ADMIN, Role.SUPERADMIN)
    @booking_ns.expect(status_model)
    def post(self, booking_id):
        """Admin override of a booking status"""
        data = request.get_json() or {}
        if not data.get('status'):
            raise ValidationError('Missing status field')
        booking = booking_service.force_booking_status(booking_id, data['status'], current_identity(),
                                                       reason=data.get('reason'))
        return _respond(booking)


@booking_ns.route('/<string:booking_id>/meeting')
class BookingMeeting(Resource):
    @jwt_required()
    def post(self, booking_id):
        """Retry creating the video room for a booking"""
        booking = booking_service.get_booking(booking_id, current_identity())
        if booking.meeting_url:
            return _respond(booking)
        booking_service.provision_meeting(booking, raise_errors=True)
        return _respond(booking)


@booking_ns.route('/<string:booking_id>/refund-quote')
class BookingRefundQuote(Resource):
    @jwt_required()
    def get(self, booking_id):
        """Refund percentage the caller would trigger by cancelling now"""
        identity = current_identity()
        booking = booking_service.get_booking(booking_id, identity)
        return {
            'booking_id': booking.id,
            'refund_percentage': booking_service.quote_refund(booking, actor_for_role(identity[1])),
        }, 200
