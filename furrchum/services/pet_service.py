# Pet service module for business logic
from ..models import Pet, Booking, Prescription, Role, ADMIN_ROLES
from ..errors import NotFoundError, PermissionDenied, ValidationError
from .. import db

PET_FIELDS = (
    'name', 'type', 'breed', 'age', 'weight', 'gender', 'allergies', 'medication',
    'vaccination_status', 'medical_history', 'photo_url',
)


def format_pet(pet):
    return {
        'id': pet.id,
        'owner_id': pet.owner_id,
        'name': pet.name,
        'type': pet.type,
        'breed': pet.breed,
        'age': int(pet.age) if pet.age is not None else None,
        'weight': float(pet.weight) if pet.weight is not None else None,
        'gender': pet.gender,
        'allergies': pet.allergies,
        'medication': pet.medication,
        'vaccination_status': pet.vaccination_status,
        'medical_history': pet.medical_history,
        'photo_url': pet.photo_url,
        'created_at': pet.created_at.isoformat() if pet.created_at else None,
    }


def _validate(data, partial=False):
    if not data:
        raise ValidationError('No data provided')
    if not partial:
        missing = [f for f in ('name', 'type') if not data.get(f)]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}")
    if data.get('age') is not None and (not isinstance(data['age'], int) or data['age'] < 0):
        raise ValidationError('age must be a non-negative integer')
    if data.get('weight') is not None and (not isinstance(data['weight'], (int, float)) or data['weight'] <= 0):
        raise ValidationError('weight must be a positive number')


def can_view_pet(pet, identity):
    user_id, role = identity
    if Role(role) in ADMIN_ROLES or pet.owner_id == user_id:
        return True
    if Role(role) == Role.VET:
        # vets see the pets they have treated or are booked to see
        return Booking.query.filter_by(pet_id=pet.id, vet_id=user_id).first() is not None \
            or Prescription.query.filter_by(pet_id=pet.id, vet_id=user_id).first() is not None
    return False


def get_pets(identity):
    user_id, role = identity
    query = Pet.query
    if Role(role) == Role.PET_OWNER:
        query = query.filter_by(owner_id=user_id)
    elif Role(role) == Role.VET:
        pet_ids = [b.pet_id for b in Booking.query.filter_by(vet_id=user_id).all()]
        query = query.filter(Pet.id.in_(pet_ids))
    return [format_pet(p) for p in query.order_by(Pet.created_at.asc()).all()]


def get_pet(pet_id, identity):
    pet = db.session.get(Pet, pet_id)
    if not pet:
        raise NotFoundError('Pet not found')
    if not can_view_pet(pet, identity):
        raise PermissionDenied('No permission to view this pet')
    return pet


def create_pet(data, identity):
    _validate(data)
    pet = Pet(owner_id=identity[0], **{f: data.get(f) for f in PET_FIELDS})
    try:
        db.session.add(pet)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return pet


def update_pet(pet_id, data, identity):
    pet = get_pet(pet_id, identity)
    if pet.owner_id != identity[0] and Role(identity[1]) not in ADMIN_ROLES:
        raise PermissionDenied('No permission to modify pet')
    _validate(data, partial=True)
    for field in PET_FIELDS:
        if field in data:
            setattr(pet, field, data[field])
    if not pet.name or not pet.type:
        raise ValidationError('name and type cannot be empty')
    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return pet


def delete_pet(pet_id, identity):
    pet = get_pet(pet_id, identity)
    if pet.owner_id != identity[0] and Role(identity[1]) not in ADMIN_ROLES:
        raise PermissionDenied('No permission to delete pet')
    if Booking.query.filter_by(pet_id=pet.id).first() or Prescription.query.filter_by(pet_id=pet.id).first():
        raise ValidationError('Pets with bookings or prescriptions cannot be deleted')
    try:
        db.session.delete(pet)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
