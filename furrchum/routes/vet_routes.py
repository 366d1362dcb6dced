from flask_restx import Namespace, Resource, fields
from flask import request
from flask_jwt_extended import jwt_required, verify_jwt_in_request

from ..models import Role, ADMIN_ROLES
from ..errors import PermissionDenied
from ..services import booking_service, vet_service
from ..utils.util import current_identity, parse_date, role_required

vet_ns = Namespace('vets', description='Veterinarians, availability and approvals')

vet_model = vet_ns.model('Vet', {
    'first_name': fields.String(),
    'last_name': fields.String(),
    'specialization': fields.String(),
    'consultation_fee': fields.Float(),
    'years_of_experience': fields.Integer(),
    'about': fields.String(),
    'account_holder_name': fields.String(),
    'account_number': fields.String(),
    'ifsc_code': fields.String(),
    'pan_number': fields.String(),
    'gst_number': fields.String(),
    'clinic_images': fields.List(fields.String),
})

availability_rule = vet_ns.model('AvailabilityRule', {
    'day_of_week': fields.Integer(required=True, description='0 = Sunday ... 6 = Saturday'),
    'start_time': fields.String(required=True, description='HH:MM'),
    'end_time': fields.String(required=True, description='HH:MM'),
    'is_available': fields.Boolean(default=True),
})

availability_model = vet_ns.model('Availability', {
    'availability': fields.List(fields.Nested(availability_rule), required=True),
})

rejection_model = vet_ns.model('Rejection', {
    'reason': fields.String(description='Why the application was rejected'),
})


def _is_admin_or_self(vet_id):
    user_id, role = current_identity()
    return Role(role) in ADMIN_ROLES or user_id == vet_id


@vet_ns.route('')
class VetList(Resource):
    def get(self):
        """Approved veterinarians, optionally filtered by specialization"""
        vets = vet_service.get_vets(specialization=request.args.get('specialization'))
        return [vet_service.format_vet(v) for v in vets], 200


@vet_ns.route('/pending')
class PendingVetList(Resource):
    @role_required(Role.ADMIN, Role.SUPERADMIN)
    def get(self):
        """Vet applications waiting for a decision"""
        vets = vet_service.get_vets(status='pending')
        return [vet_service.format_vet(v, private=True) for v in vets], 200


@vet_ns.route('/me')
class MyVetProfile(Resource):
    @role_required(Role.VET)
    def get(self):
        """The calling vet's own profile, approved or not"""
        vet = vet_service.get_vet(current_identity()[0], include_unapproved=True)
        return vet_service.format_vet(vet, private=True), 200

    @role_required(Role.VET)
    @vet_ns.expect(vet_model)
    def put(self):
        """Update the calling vet's profile"""
        vet = vet_service.update_vet(current_identity()[0], request.get_json())
        return vet_service.format_vet(vet, private=True), 200


@vet_ns.route('/<string:vet_id>')
class VetResource(Resource):
    def get(self, vet_id):
        """Get a veterinarian by ID"""
        verify_jwt_in_request(optional=True)
        privileged = current_identity()[0] is not None and _is_admin_or_self(vet_id)
        vet = vet_service.get_vet(vet_id, include_unapproved=privileged)
        return vet_service.format_vet(vet, private=privileged), 200


@vet_ns.route('/<string:vet_id>/availability')
class VetAvailabilityResource(Resource):
    def get(self, vet_id):
        """Weekly availability rules"""
        return [vet_service.format_availability(r) for r in vet_service.get_availability(vet_id)], 200

    @jwt_required()
    @vet_ns.expect(availability_model)
    def put(self, vet_id):
        """Replace weekly availability rules"""
        if not _is_admin_or_self(vet_id):
            raise PermissionDenied('You can only edit your own availability')
        rules = vet_service.set_availability(vet_id, (request.get_json() or {}).get('availability'))
        return [vet_service.format_availability(r) for r in rules], 200


@vet_ns.route('/<string:vet_id>/slots')
class VetSlots(Resource):
    @vet_ns.doc(params={'date': 'Target date, YYYY-MM-DD'})
    def get(self, vet_id):
        """Bookable slots for a date"""
        target_date = parse_date(request.args.get('date'), 'date')
        return {
            'vet_id': vet_id,
            'date': target_date.isoformat(),
            'slots': booking_service.get_available_slots(vet_id, target_date),
        }, 200


@vet_ns.route('/<string:vet_id>/approve')
class VetApprove(Resource):
    @role_required(Role.ADMIN, Role.SUPERADMIN)
    def post(self, vet_id):
        """Approve a pending vet"""
        vet = vet_service.approve_vet(vet_id, current_identity()[0])
        return vet_service.format_vet(vet, private=True), 200


@vet_ns.route('/<string:vet_id>/reject')
class VetReject(Resource):
    @role_required(Role.ADMIN, Role.SUPERADMIN)
    @vet_ns.expect(rejection_model)
    def post(self, vet_id):
        """Reject a pending vet"""
        reason = (request.get_json(silent=True) or {}).get('reason')
        vet = vet_service.reject_vet(vet_id, current_identity()[0], reason)
        return vet_service.format_vet(vet, private=True), 200
