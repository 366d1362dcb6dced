from flask_restx import Namespace, Resource, fields
from flask import request
from flask_jwt_extended import jwt_required

from ..models import Role
from ..services import pet_service
from ..utils.util import current_identity, role_required

pet_ns = Namespace('pets', description='Pet operations', path='/pets')

pet_model = pet_ns.model('Pet', {
    'name': fields.String(required=True),
    'type': fields.String(required=True, description='Species, e.g. dog or cat'),
    'breed': fields.String(),
    'age': fields.Integer(),
    'weight': fields.Float(),
    'gender': fields.String(),
    'allergies': fields.String(),
    'medication': fields.String(),
    'vaccination_status': fields.String(),
    'medical_history': fields.String(),
    'photo_url': fields.String(),
})


@pet_ns.route('')
class PetList(Resource):
    @jwt_required()
    def get(self):
        """Pets visible to the caller (own pets, patients, or all for admins)"""
        return pet_service.get_pets(current_identity()), 200

    @role_required(Role.PET_OWNER)
    @pet_ns.expect(pet_model)
    def post(self):
        """Add a pet"""
        pet = pet_service.create_pet(request.get_json(), current_identity())
        return pet_service.format_pet(pet), 201


@pet_ns.route('/<string:pet_id>')
class PetResource(Resource):
    @jwt_required()
    def get(self, pet_id):
        """Get a pet by ID"""
        return pet_service.format_pet(pet_service.get_pet(pet_id, current_identity())), 200

    @jwt_required()
    @pet_ns.expect(pet_model)
    def put(self, pet_id):
        """Update a pet"""
        pet = pet_service.update_pet(pet_id, request.get_json(), current_identity())
        return pet_service.format_pet(pet), 200

    @jwt_required()
    def delete(self, pet_id):
        """Delete a pet"""
        pet_service.delete_pet(pet_id, current_identity())
        return {'message': 'Pet deleted'}, 200
