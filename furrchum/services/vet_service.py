# Vet service module for business logic
import logging

from ..models import VetProfile, VetAvailability, ApprovalStatus
from ..errors import ConflictError, NotFoundError, ValidationError
from ..utils.util import parse_time, utcnow
from .. import db

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = (
    'first_name', 'last_name', 'specialization', 'consultation_fee', 'years_of_experience',
    'about', 'account_holder_name', 'account_number', 'ifsc_code', 'pan_number',
    'gst_number', 'clinic_images',
)


def format_vet(vet, private=False):
    data = {
        'id': vet.id,
        'first_name': vet.first_name,
        'last_name': vet.last_name,
        'specialization': vet.specialization,
        'consultation_fee': float(vet.consultation_fee or 0),
        'years_of_experience': vet.years_of_experience,
        'about': vet.about,
        'approval_status': vet.approval_status,
        'clinic_images': vet.clinic_images or [],
        'rating': vet.rating,
    }
    if private:
        data.update({
            'email': vet.profile.email if vet.profile else None,
            'approved_at': vet.approved_at.isoformat() if vet.approved_at else None,
            'approved_by': vet.approved_by,
            'rejection_reason': vet.rejection_reason,
            'account_holder_name': vet.account_holder_name,
            'account_number': vet.account_number,
            'ifsc_code': vet.ifsc_code,
            'pan_number': vet.pan_number,
            'gst_number': vet.gst_number,
        })
    return data


def format_availability(rule):
    return {
        'id': rule.id,
        'day_of_week': rule.day_of_week,
        'start_time': rule.start_time.strftime('%H:%M'),
        'end_time': rule.end_time.strftime('%H:%M'),
        'is_available': rule.is_available,
    }


def get_vet(vet_id, include_unapproved=False):
    vet = db.session.get(VetProfile, vet_id)
    if not vet or (not include_unapproved and not vet.is_bookable):
        raise NotFoundError('Veterinarian not found')
    return vet


def get_vets(specialization=None, status=ApprovalStatus.APPROVED.value):
    query = VetProfile.query
    if status:
        query = query.filter_by(approval_status=status)
    if specialization:
        query = query.filter(VetProfile.specialization.ilike(f'%{specialization}%'))
    return query.order_by(VetProfile.created_at.asc()).all()


def update_vet(vet_id, data):
    vet = get_vet(vet_id, include_unapproved=True)
    if not data:
        raise ValidationError('No data provided')
    if 'consultation_fee' in data:
        fee = data['consultation_fee']
        if not isinstance(fee, (int, float)) or fee < 0:
            raise ValidationError('consultation_fee must be a non-negative number')
    if 'clinic_images' in data and not isinstance(data['clinic_images'], list):
        raise ValidationError('clinic_images must be a list of URLs')
    for field in EDITABLE_FIELDS:
        if field in data:
            setattr(vet, field, data[field])
    try:
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return vet


def _decide(vet_id, status, admin_id, reason=None):
    vet = get_vet(vet_id, include_unapproved=True)
    if vet.approval_status != ApprovalStatus.PENDING.value:
        raise ConflictError(f'Veterinarian is already {vet.approval_status}')
    vet.approval_status = status.value
    vet.approved_at = utcnow()
    vet.approved_by = admin_id
    vet.rejection_reason = reason
    db.session.commit()
    logger.info(f"Vet {vet.id} {status.value} by admin {admin_id}")
    return vet


def approve_vet(vet_id, admin_id):
    return _decide(vet_id, ApprovalStatus.APPROVED, admin_id)


def reject_vet(vet_id, admin_id, reason=None):
    return _decide(vet_id, ApprovalStatus.REJECTED, admin_id, reason)


def get_availability(vet_id):
    vet = get_vet(vet_id, include_unapproved=True)
    return sorted(vet.availability, key=lambda r: (r.day_of_week, r.start_time))


def set_availability(vet_id, rules):
    """Replace the vet's weekly availability with ``rules``."""
    vet = get_vet(vet_id, include_unapproved=True)
    if not isinstance(rules, list):
        raise ValidationError('availability must be a list')

    parsed = []
    for index, rule in enumerate(rules):
        if not isinstance(rule, dict):
            raise ValidationError(f'Invalid availability rule at index {index}')
        day = rule.get('day_of_week')
        if not isinstance(day, int) or not 0 <= day <= 6:
            raise ValidationError(f'day_of_week must be 0 (Sunday) to 6 (Saturday) at index {index}')
        start = parse_time(rule.get('start_time'), 'start_time')
        end = parse_time(rule.get('end_time'), 'end_time')
        if start >= end:
            raise ValidationError(f'start_time must be before end_time at index {index}')
        parsed.append(VetAvailability(day_of_week=day, start_time=start, end_time=end,
                                      is_available=rule.get('is_available', True)))

    try:
        vet.availability = parsed
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    return get_availability(vet_id)
