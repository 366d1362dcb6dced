# Booking service module: lifecycle orchestration around the pure scheduling rules
import logging
from datetime import datetime, timedelta

from flask import current_app
from sqlalchemy.exc import IntegrityError

from .. import db
from ..errors import ConflictError, ExternalServiceError, NotFoundError, PermissionDenied, ValidationError
from ..models import Booking, Pet, VetProfile
from ..scheduling import availability
from ..scheduling.refund_policy import policy_from_config, refund_amount, refund_percentage
from ..scheduling.reconciliation import is_completed
from ..scheduling.state_machine import (
    Action, Actor, BookingStatus, ConsultationType, actor_for_role, allowed_actions,
    force_status as forced_status, initial_status, next_status,
)
from ..utils.util import clinic_now, parse_date, parse_time
from . import email_service, meeting_client

logger = logging.getLogger(__name__)


def format_booking(booking, role=None):
    data = {
        'id': booking.id,
        'pet_owner_id': booking.pet_owner_id,
        'vet_id': booking.vet_id,
        'pet_id': booking.pet_id,
        'booking_date': booking.booking_date.isoformat(),
        'start_time': booking.start_time.strftime('%H:%M'),
        'end_time': booking.end_time.strftime('%H:%M'),
        'consultation_type': booking.consultation_type,
        'status': booking.status,
        'notes': booking.notes,
        'payment_status': booking.payment_status,
        'meeting_id': booking.meeting_id,
        'meeting_url': booking.meeting_url,
        'meeting_status': _meeting_status(booking),
        'refund_percentage': booking.refund_percentage,
        'cancelled_by': booking.cancelled_by,
        'cancellation_reason': booking.cancellation_reason,
        'created_at': booking.created_at.isoformat() if booking.created_at else None,
        'updated_at': booking.updated_at.isoformat() if booking.updated_at else None,
    }
    if role is not None:
        data['allowed_actions'] = allowed_actions(booking.status, actor_for_role(role))
        # host link is only for the vet running the room
        if role != Actor.PET_OWNER.value:
            data['host_meeting_url'] = booking.host_meeting_url
    return data


def _meeting_status(booking):
    if booking.consultation_type != ConsultationType.VIDEO.value:
        return None
    return 'ready' if booking.meeting_url else 'pending'


def _slot_minutes():
    return current_app.config.get('SLOT_MINUTES', availability.DEFAULT_SLOT_MINUTES)


def _end_time(start_time, end_value):
    if end_value:
        return parse_time(end_value, 'end_time')
    end = datetime.combine(datetime.min, start_time) + timedelta(minutes=_slot_minutes())
    if end.date() != datetime.min.date():
        raise ValidationError('Booking must end on the same day')
    return end.time()


def _parse_window(data):
    booking_date = parse_date(data.get('booking_date'), 'booking_date')
    start_time = parse_time(data.get('start_time'), 'start_time')
    end_time = _end_time(start_time, data.get('end_time'))
    if start_time >= end_time:
        raise ValidationError('start_time must be before end_time')
    return booking_date, start_time, end_time


def _lock_vet(vet_id):
    """Serialize booking writes per vet: the vet row is held for the rest of the transaction."""
    vet = db.session.query(VetProfile).filter_by(id=vet_id).with_for_update().first()
    if not vet:
        raise NotFoundError('Veterinarian not found')
    return vet


def _bookings_on(vet_id, booking_date):
    return Booking.query.filter(
        Booking.vet_id == vet_id,
        Booking.booking_date == booking_date,
        Booking.status != BookingStatus.CANCELLED.value,
    ).all()


def _commit_slot(action):
    try:
        db.session.commit()
    except IntegrityError as e:
        db.session.rollback()
        logger.warning(f"Slot conflict on {action}: {e.orig}")
        raise ConflictError('This time slot has just been booked. Please pick another one.')


def _authorize(booking, identity):
    user_id, role = identity
    actor = actor_for_role(role)
    if actor == Actor.PET_OWNER and booking.pet_owner_id != user_id:
        raise PermissionDenied('You can only manage your own bookings')
    if actor == Actor.VET and booking.vet_id != user_id:
        raise PermissionDenied('You can only manage bookings assigned to you')
    return actor


def get_bookings(identity, status=None, booking_date=None):
    user_id, role = identity
    actor = actor_for_role(role)
    query = Booking.query
    if actor == Actor.PET_OWNER:
        query = query.filter_by(pet_owner_id=user_id)
    elif actor == Actor.VET:
        query = query.filter_by(vet_id=user_id)
    if status:
        query = query.filter_by(status=status)
    if booking_date:
        query = query.filter_by(booking_date=parse_date(booking_date, 'booking_date'))
    bookings = query.order_by(Booking.booking_date.asc(), Booking.start_time.asc()).all()
    return [format_booking(b, role) for b in bookings]


def get_booking(booking_id, identity):
    booking = db.session.get(Booking, booking_id)
    if not booking:
        raise NotFoundError('Booking not found')
    _authorize(booking, identity)
    return booking


def get_available_slots(vet_id, target_date, now=None):
    vet = db.session.get(VetProfile, vet_id)
    if not vet or not vet.is_bookable:
        raise NotFoundError('Veterinarian not found')
    slots = availability.available_slots(
        vet.availability, _bookings_on(vet_id, target_date), target_date,
        now=now or clinic_now(), slot_minutes=_slot_minutes(),
    )
    return [{'start_time': s.start_time.strftime('%H:%M'), 'end_time': s.end_time.strftime('%H:%M')} for s in slots]


def create_booking(data, identity):
    user_id, role = identity
    if not data:
        raise ValidationError('No data provided')
    missing = [f for f in ('vet_id', 'pet_id', 'booking_date', 'start_time') if not data.get(f)]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    status = initial_status(actor_for_role(role))
    consultation_type = data.get('consultation_type', ConsultationType.VIDEO.value)
    if consultation_type not in [c.value for c in ConsultationType]:
        raise ValidationError(f"Invalid consultation_type. Allowed: {', '.join(c.value for c in ConsultationType)}")
    booking_date, start_time, end_time = _parse_window(data)

    pet = db.session.get(Pet, data['pet_id'])
    if not pet:
        raise NotFoundError('Pet not found')
    if pet.owner_id != user_id:
        raise PermissionDenied('You can only book appointments for your own pets')

    vet = _lock_vet(data['vet_id'])
    if not vet.is_bookable:
        raise ValidationError('This veterinarian is not accepting bookings')

    existing = _bookings_on(vet.id, booking_date)
    if not availability.is_slot_available(vet.availability, existing, booking_date,
                                          start_time, end_time, now=clinic_now()):
        db.session.rollback()
        raise ConflictError('Requested time slot is not available')

    booking = Booking(
        pet_owner_id=user_id,
        vet_id=vet.id,
        pet_id=pet.id,
        booking_date=booking_date,
        start_time=start_time,
        end_time=end_time,
        consultation_type=consultation_type,
        status=status.value,
        notes=data.get('notes'),
    )
    db.session.add(booking)
    _commit_slot('create')
    logger.info(f"Booking {booking.id} created for vet {vet.id} on {booking_date} {start_time}")

    if booking.consultation_type == ConsultationType.VIDEO.value:
        provision_meeting(booking)
    notify_booking_confirmation(booking)
    return booking


def provision_meeting(booking, raise_errors=False):
    """Attach a video room to the booking. Failures leave the booking untouched."""
    if booking.consultation_type != ConsultationType.VIDEO.value:
        raise ValidationError('Only video consultations get a meeting room')
    try:
        meeting = meeting_client.create_meeting(
            booking.starts_at - timedelta(minutes=5),
            booking.ends_at + timedelta(minutes=30),
            room_name_prefix=f'vet{booking.id[:8]}',
        )
    except ExternalServiceError as e:
        logger.warning(f"Meeting for booking {booking.id} not created, will retry later: {e.message}")
        if raise_errors:
            raise
        return False

    booking.meeting_id = meeting['meeting_id']
    booking.meeting_url = meeting['room_url']
    booking.host_meeting_url = meeting['host_room_url']
    db.session.commit()
    return True


def booking_email_payload(booking):
    vet = booking.vet
    owner = booking.pet_owner
    vet_name = f'Dr. {vet.first_name} {vet.last_name}'
    return {
        'clientEmail': owner.email,
        'clientName': owner.full_name,
        'vetEmail': vet.profile.email if vet.profile else None,
        'vetName': vet_name,
        'bookingId': booking.id,
        'bookingDate': booking.booking_date.isoformat(),
        'startTime': booking.start_time.strftime('%H:%M'),
        'endTime': booking.end_time.strftime('%H:%M'),
        'consultationType': booking.consultation_type,
        'petName': booking.pet.name,
        'ownerName': owner.full_name,
        'notes': booking.notes,
    }


def notify_booking_confirmation(booking):
    """Best effort: a failed email never fails the booking."""
    try:
        email_service.send_booking_confirmation(booking_email_payload(booking))
        return True
    except (ExternalServiceError, ValidationError) as e:
        logger.warning(f"Booking confirmation email for {booking.id} not sent: {e.message}")
        return False


def _apply_refund(booking, percentage):
    paid = [t for t in booking.transactions if is_completed(t)]
    if not paid:
        return
    for transaction in paid:
        transaction.refund_amount = refund_amount(float(transaction.amount), percentage)
        if percentage > 0:
            transaction.status = 'refunded'
    if percentage == 100:
        booking.payment_status = 'refunded'
    elif percentage > 0:
        booking.payment_status = 'partially_refunded'


def quote_refund(booking, actor, at=None, no_show=False, technical_failure=False):
    # a no-show is always judged by the owner's rules, whoever records it
    if no_show:
        actor = Actor.PET_OWNER
    elif actor == Actor.ADMIN:
        actor = Actor.PLATFORM
    return refund_percentage(
        booking.starts_at, at or clinic_now(), actor,
        no_show=no_show, technical_failure=technical_failure,
        policy=policy_from_config(current_app.config),
    )


def _cancel(booking, actor, reason=None, no_show=False, technical_failure=False):
    percentage = quote_refund(booking, actor, no_show=no_show, technical_failure=technical_failure)
    booking.status = BookingStatus.CANCELLED.value
    booking.cancelled_by = actor.value
    booking.cancellation_reason = reason
    booking.refund_percentage = percentage
    _apply_refund(booking, percentage)
    return percentage


def transition_booking(booking_id, action, identity, data=None):
    """Apply confirm, complete or cancel as the calling user."""
    data = data or {}
    booking = get_booking(booking_id, identity)
    actor = _authorize(booking, identity)
    new_status = next_status(booking.status, action, actor)

    try:
        if Action(action) == Action.CANCEL:
            _cancel(booking, actor, reason=data.get('reason'),
                    no_show=bool(data.get('no_show')),
                    technical_failure=bool(data.get('technical_failure')))
        else:
            booking.status = new_status.value
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    logger.info(f"Booking {booking.id} -> {booking.status} by {actor.value}")
    return booking


def reschedule_booking(booking_id, data, identity):
    """Move a live booking to a new date/time; the status is kept.

    Pet owners may only move into a free slot inside the vet's availability.
    Admins may force any time, but never onto another live booking.
    """
    booking = get_booking(booking_id, identity)
    actor = _authorize(booking, identity)
    next_status(booking.status, Action.RESCHEDULE, actor)
    if not data:
        raise ValidationError('No data provided')
    booking_date, start_time, end_time = _parse_window(data)

    vet = _lock_vet(booking.vet_id)
    existing = _bookings_on(vet.id, booking_date)
    if actor == Actor.PET_OWNER:
        free = availability.is_slot_available(vet.availability, existing, booking_date, start_time,
                                              end_time, now=clinic_now(), exclude_id=booking.id)
    else:
        free = availability.find_overlap(existing, booking_date, start_time, end_time,
                                         exclude_id=booking.id) is None
    if not free:
        db.session.rollback()
        raise ConflictError('Requested time slot is not available')

    booking.booking_date = booking_date
    booking.start_time = start_time
    booking.end_time = end_time
    booking.meeting_id = booking.meeting_url = booking.host_meeting_url = None
    _commit_slot('reschedule')
    logger.info(f"Booking {booking.id} rescheduled to {booking_date} {start_time} by {actor.value}")

    if booking.consultation_type == ConsultationType.VIDEO.value:
        provision_meeting(booking)
    return booking


def force_booking_status(booking_id, status, identity, reason=None):
    """Admin override to any status; a forced cancel refunds as a platform cancellation."""
    booking = get_booking(booking_id, identity)
    actor = _authorize(booking, identity)
    target = forced_status(booking.status, status, actor)
    try:
        if target == BookingStatus.CANCELLED:
            _cancel(booking, Actor.PLATFORM, reason=reason)
        else:
            booking.status = target.value
        db.session.commit()
    except Exception:
        db.session.rollback()
        raise
    logger.info(f"Booking {booking.id} forced to {booking.status} by admin {identity[0]}")
    return booking
