from flask_restx import Namespace, Resource, fields
from flask import request, current_app
from flask_jwt_extended import create_access_token, jwt_required, get_jwt_identity
from sqlalchemy.exc import IntegrityError
import datetime
import logging
import re

from .. import db, bcrypt
from ..errors import ExternalServiceError, ValidationError
from ..models import Profile, Role, VetProfile
from ..services import email_service

logger = logging.getLogger(__name__)

auth_ns = Namespace('auth', description='Authentication operations')

register_model = auth_ns.model('Register', {
    'email': fields.String(required=True, description='Email address'),
    'password': fields.String(required=True, description='Password'),
    'full_name': fields.String(required=True, description='Full name'),
    'user_type': fields.String(description='pet_owner (default) or vet', enum=['pet_owner', 'vet']),
    'phone_number': fields.String(description='Phone number'),
    'address': fields.String(description='Postal address'),
    'first_name': fields.String(description='Vet first name'),
    'last_name': fields.String(description='Vet last name'),
    'specialization': fields.String(description='Vet specialization'),
    'consultation_fee': fields.Float(description='Vet consultation fee'),
})

login_model = auth_ns.model('Login', {
    'email': fields.String(required=True, description='Email address'),
    'password': fields.String(required=True, description='Password')
})

PASSWORD_REGEX = re.compile(r'^(?=.*[A-Za-z])(?=.*\d).{6,}$')
EMAIL_REGEX = re.compile(r'^[a-zA-Z0-9_.+-]+@[a-zA-Z0-9-]+\.[a-zA-Z0-9-.]+$')


def issue_token(profile):
    return create_access_token(
        identity=profile.id,
        additional_claims={'role': profile.user_type.value},
        expires_delta=datetime.timedelta(minutes=current_app.config.get('JWT_ACCESS_TOKEN_MINUTES', 60)),
    )


def format_profile(profile):
    return {
        'id': profile.id,
        'email': profile.email,
        'full_name': profile.full_name,
        'user_type': profile.user_type.value,
        'phone_number': profile.phone_number,
        'address': profile.address,
        'approval_status': profile.vet_profile.approval_status if profile.vet_profile else None,
    }


def _send_welcome(profile):
    # registration succeeds whether or not the mail goes out
    try:
        email_service.send_welcome_email(profile.email, profile.full_name, profile.user_type.value)
    except (ExternalServiceError, ValidationError) as e:
        logger.warning(f"Welcome email for {profile.id} not sent: {e.message}")


@auth_ns.route('/register')
class Register(Resource):
    @auth_ns.expect(register_model)
    def post(self):
        """Register a pet owner or a vet (vets start pending approval)"""
        data = request.get_json() or {}
        if not all(data.get(k) for k in ('email', 'password', 'full_name')):
            return {'message': 'Missing required fields: email, password, full_name.'}, 400

        if not EMAIL_REGEX.match(data['email']):
            return {'message': 'Invalid email format.'}, 400

        if not PASSWORD_REGEX.match(data['password']):
            return {'message': 'Password must be at least 6 characters and contain a letter and a digit.'}, 400

        try:
            user_type = Role(data.get('user_type', Role.PET_OWNER.value))
        except ValueError:
            return {'message': 'user_type must be pet_owner or vet.'}, 400
        if user_type not in (Role.PET_OWNER, Role.VET):
            return {'message': 'user_type must be pet_owner or vet.'}, 400

        if Profile.query.filter_by(email=data['email']).first():
            return {'message': 'Email already registered.'}, 400

        profile = Profile(
            email=data['email'],
            password=bcrypt.generate_password_hash(data['password']).decode('utf-8'),
            full_name=data['full_name'],
            user_type=user_type,
            phone_number=data.get('phone_number'),
            address=data.get('address'),
        )
        db.session.add(profile)

        if user_type == Role.VET:
            first_name, _, last_name = data['full_name'].partition(' ')
            db.session.flush()
            db.session.add(VetProfile(
                id=profile.id,
                first_name=data.get('first_name') or first_name,
                last_name=data.get('last_name') or last_name or first_name,
                specialization=data.get('specialization'),
                consultation_fee=data.get('consultation_fee') or 0,
            ))

        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            return {'message': 'Database error: unable to register user.'}, 500

        logger.info(f"Registered {user_type.value} {profile.id}")
        _send_welcome(profile)
        return {
            'message': 'User registered successfully.',
            'access_token': issue_token(profile),
            'user': format_profile(profile)
        }, 201


@auth_ns.route('/login')
class Login(Resource):
    @auth_ns.expect(login_model)
    def post(self):
        """Log in and receive a bearer token"""
        data = request.get_json() or {}
        if not all(k in data for k in ('email', 'password')):
            return {'message': 'Missing required fields: email, password.'}, 400

        profile = Profile.query.filter_by(email=data['email']).first()
        if not profile or not bcrypt.check_password_hash(profile.password, data['password']):
            return {'message': 'Invalid email or password.'}, 401

        return {
            'message': 'Logged in successfully.',
            'access_token': issue_token(profile),
            'user': format_profile(profile)
        }, 200


@auth_ns.route('/me')
class Me(Resource):
    @jwt_required()
    def get(self):
        """Current user profile"""
        profile = db.session.get(Profile, get_jwt_identity())
        if not profile:
            return {'message': 'User not found.'}, 404
        return format_profile(profile), 200
