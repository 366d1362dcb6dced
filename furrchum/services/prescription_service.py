# Prescription service module for business logic
from ..models import Booking, Prescription, Pet, Role, ADMIN_ROLES, PrescriptionStatus
from ..errors import InvalidTransition, NotFoundError, PermissionDenied, ValidationError
from ..utils.util import clinic_now, parse_date
from .. import db

REQUIRED_FIELDS = ('pet_id', 'medication_name', 'dosage', 'frequency')
EDITABLE_FIELDS = ('medication_name', 'dosage', 'frequency', 'duration', 'diagnosis', 'instructions')

STATUS_TRANSITIONS = {
    PrescriptionStatus.ACTIVE.value: {PrescriptionStatus.COMPLETED.value, PrescriptionStatus.DISCONTINUED.value},
    PrescriptionStatus.COMPLETED.value: set(),
    PrescriptionStatus.DISCONTINUED.value: set(),
}


def format_prescription(prescription):
    return {
        'id': prescription.id,
        'vet_id': prescription.vet_id,
        'pet_id': prescription.pet_id,
        'pet_owner_id': prescription.pet_owner_id,
        'pet_name': prescription.pet.name if prescription.pet else None,
        'medication_name': prescription.medication_name,
        'dosage': prescription.dosage,
        'frequency': prescription.frequency,
        'duration': prescription.duration,
        'diagnosis': prescription.diagnosis,
        'instructions': prescription.instructions,
        'status': prescription.status,
        'prescribed_date': prescription.prescribed_date.isoformat(),
    }


def _check_access(prescription, identity):
    user_id, role = identity
    role = Role(role)
    if role in ADMIN_ROLES:
        return
    if role == Role.VET and prescription.vet_id == user_id:
        return
    if role == Role.PET_OWNER and prescription.pet_owner_id == user_id:
        return
    raise PermissionDenied('No permission to access this prescription')


def get_prescriptions(identity, pet_id=None, status=None):
    user_id, role = identity
    query = Prescription.query
    if Role(role) == Role.VET:
        query = query.filter_by(vet_id=user_id)
    elif Role(role) == Role.PET_OWNER:
        query = query.filter_by(pet_owner_id=user_id)
    if pet_id:
        query = query.filter_by(pet_id=pet_id)
    if status:
        query = query.filter_by(status=status)
    return query.order_by(Prescription.prescribed_date.desc()).all()


def get_prescription(prescription_id, identity):
    prescription = db.session.get(Prescription, prescription_id)
    if not prescription:
        raise NotFoundError('Prescription not found')
    _check_access(prescription, identity)
    return prescription


def create_prescription(data, identity):
    """Vets prescribe only for pets booked with them; the owner is taken from the pet."""
    if not data:
        raise ValidationError('No data provided')
    missing = [f for f in REQUIRED_FIELDS if not data.get(f)]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")
    pet = db.session.get(Pet, data['pet_id'])
    if not pet:
        raise NotFoundError('Pet not found')
    if Booking.query.filter_by(pet_id=pet.id, vet_id=identity[0]).first() is None:
        raise PermissionDenied('You can only prescribe for pets booked with you')

    prescribed_date = parse_date(data['prescribed_date'], 'prescribed_date') \
        if data.get('prescribed_date') else clinic_now().date()
    prescription = Prescription(
        vet_id=identity[0],
        pet_id=pet.id,
        pet_owner_id=pet.owner_id,
        prescribed_date=prescribed_date,
        status=PrescriptionStatus.ACTIVE.value,
        **{f: data.get(f) for f in EDITABLE_FIELDS},
    )
    try:
        db.session.add(prescription)
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return prescription


def update_prescription(prescription_id, data, identity):
    prescription = get_prescription(prescription_id, identity)
    if Role(identity[1]) == Role.PET_OWNER:
        raise PermissionDenied('Only the prescribing vet can edit a prescription')
    if prescription.status != PrescriptionStatus.ACTIVE.value:
        raise ValidationError('Only active prescriptions can be edited')
    for field in EDITABLE_FIELDS:
        if field in (data or {}):
            setattr(prescription, field, data[field])
    db.session.commit()
    return prescription


def change_status(prescription_id, status, identity):
    prescription = get_prescription(prescription_id, identity)
    if Role(identity[1]) == Role.PET_OWNER:
        raise PermissionDenied('Only the prescribing vet can change prescription status')
    if status not in STATUS_TRANSITIONS:
        raise ValidationError(f"Invalid status. Allowed: {', '.join(STATUS_TRANSITIONS)}")
    if status not in STATUS_TRANSITIONS[prescription.status]:
        raise InvalidTransition(prescription.status, status)
    prescription.status = status
    db.session.commit()
    return prescription
