"""Booking lifecycle rules.

pending -> confirmed -> completed, with cancelled reachable from pending or
confirmed. Rescheduling moves the date/time in place and keeps the status.
completed and cancelled are terminal for everyone, admins included.
"""
import enum

from furrchum.errors import InvalidTransition, PermissionDenied


class BookingStatus(str, enum.Enum):
    PENDING = 'pending'
    CONFIRMED = 'confirmed'
    COMPLETED = 'completed'
    CANCELLED = 'cancelled'


class ConsultationType(str, enum.Enum):
    VIDEO = 'video'
    IN_PERSON = 'in_person'


class Actor(str, enum.Enum):
    PET_OWNER = 'pet_owner'
    VET = 'vet'
    ADMIN = 'admin'
    PLATFORM = 'platform'


class Action(str, enum.Enum):
    CREATE = 'create'
    CONFIRM = 'confirm'
    COMPLETE = 'complete'
    CANCEL = 'cancel'
    RESCHEDULE = 'reschedule'


TERMINAL_STATUSES = frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED})

# action -> (statuses it may start from, resulting status); None keeps the status
TRANSITIONS = {
    Action.CONFIRM: ({BookingStatus.PENDING}, BookingStatus.CONFIRMED),
    Action.COMPLETE: ({BookingStatus.CONFIRMED}, BookingStatus.COMPLETED),
    Action.CANCEL: ({BookingStatus.PENDING, BookingStatus.CONFIRMED}, BookingStatus.CANCELLED),
    Action.RESCHEDULE: ({BookingStatus.PENDING, BookingStatus.CONFIRMED}, None),
}

ACTOR_ACTIONS = {
    Actor.PET_OWNER: {Action.CREATE, Action.CANCEL, Action.RESCHEDULE},
    Actor.VET: {Action.CONFIRM, Action.COMPLETE, Action.CANCEL},
    Actor.ADMIN: set(Action),
    Actor.PLATFORM: set(Action),
}

PRIVILEGED_ACTORS = frozenset({Actor.ADMIN, Actor.PLATFORM})


def _status(value):
    try:
        return BookingStatus(value)
    except ValueError:
        raise InvalidTransition(value, value, f'Unknown booking status: {value}')


def actor_for_role(role):
    """Map a profile role value to the actor the state machine knows."""
    if role in ('admin', 'superadmin'):
        return Actor.ADMIN
    return Actor(role)


def can_perform(actor, action):
    return Action(action) in ACTOR_ACTIONS[Actor(actor)]


def initial_status(actor=Actor.PET_OWNER):
    if not can_perform(actor, Action.CREATE):
        raise PermissionDenied(f'{Actor(actor).value} cannot create bookings')
    return BookingStatus.PENDING


def next_status(current, action, actor):
    """Status a booking in ``current`` ends up in after ``actor`` performs ``action``.

    Raises PermissionDenied when the actor may never perform the action and
    InvalidTransition when the current status does not allow it.
    """
    current = _status(current)
    action = Action(action)
    actor = Actor(actor)
    if action == Action.CREATE:
        raise InvalidTransition(current.value, BookingStatus.PENDING.value, 'Booking already exists')
    if not can_perform(actor, action):
        raise PermissionDenied(f'{actor.value} cannot {action.value} a booking')

    allowed_from, target = TRANSITIONS[action]
    requested = (target or current).value
    if current in TERMINAL_STATUSES or current not in allowed_from:
        raise InvalidTransition(current.value, requested if target else action.value)
    return target or current


def force_status(current, requested, actor):
    """Admin override: move a live booking straight to any status."""
    current = _status(current)
    actor = Actor(actor)
    if actor not in PRIVILEGED_ACTORS:
        raise PermissionDenied(f'{actor.value} cannot force booking status')
    try:
        requested = BookingStatus(requested)
    except ValueError:
        raise InvalidTransition(current.value, requested, f'Unknown booking status: {requested}')
    if current in TERMINAL_STATUSES or requested == current:
        raise InvalidTransition(current.value, requested.value)
    return requested


def allowed_actions(current, actor):
    current = _status(current)
    if current in TERMINAL_STATUSES:
        return []
    return [
        action.value for action, (allowed_from, _) in TRANSITIONS.items()
        if current in allowed_from and can_perform(actor, action)
    ]
