from flask_restx import Namespace, Resource, fields
from flask import request
from flask_jwt_extended import jwt_required

from ..models import Role
from ..services import prescription_service
from ..utils.util import current_identity, role_required

prescription_ns = Namespace('prescriptions', description='Prescriptions written by vets')

prescription_model = prescription_ns.model('Prescription', {
    'pet_id': fields.String(required=True),
    'medication_name': fields.String(required=True),
    'dosage': fields.String(required=True),
    'frequency': fields.String(required=True),
    'duration': fields.String(),
    'diagnosis': fields.String(),
    'instructions': fields.String(),
    'prescribed_date': fields.String(description='YYYY-MM-DD, defaults to today'),
})

status_model = prescription_ns.model('PrescriptionStatus', {
    'status': fields.String(required=True, enum=['completed', 'discontinued']),
})


@prescription_ns.route('')
class PrescriptionList(Resource):
    @jwt_required()
    @prescription_ns.doc(params={'pet_id': 'Filter by pet', 'status': 'Filter by status'})
    def get(self):
        """Prescriptions visible to the caller"""
        prescriptions = prescription_service.get_prescriptions(
            current_identity(), pet_id=request.args.get('pet_id'), status=request.args.get('status')
        )
        return [prescription_service.format_prescription(p) for p in prescriptions], 200

    @role_required(Role.VET)
    @prescription_ns.expect(prescription_model)
    def post(self):
        """Write a prescription"""
        prescription = prescription_service.create_prescription(request.get_json(), current_identity())
        return prescription_service.format_prescription(prescription), 201


@prescription_ns.route('/<string:prescription_id>')
class PrescriptionResource(Resource):
    @jwt_required()
    def get(self, prescription_id):
        prescription = prescription_service.get_prescription(prescription_id, current_identity())
        return prescription_service.format_prescription(prescription), 200

    @jwt_required()
    @prescription_ns.expect(prescription_model)
    def put(self, prescription_id):
        prescription = prescription_service.update_prescription(prescription_id, request.get_json(),
                                                                current_identity())
        return prescription_service.format_prescription(prescription), 200


@prescription_ns.route('/<string:prescription_id>/status')
class PrescriptionStatusResource(Resource):
    @jwt_required()
    @prescription_ns.expect(status_model)
    def post(self, prescription_id):
        """Complete or discontinue an active prescription"""
        status = (request.get_json() or {}).get('status')
        prescription = prescription_service.change_status(prescription_id, status, current_identity())
        return prescription_service.format_prescription(prescription), 200
