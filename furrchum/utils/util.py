# furrchum/utils/util.py
import uuid
from datetime import datetime, time, timezone
from functools import wraps
from zoneinfo import ZoneInfo

from dateutil.parser import isoparse
from flask import current_app
from flask_jwt_extended import jwt_required, get_jwt, get_jwt_identity

from furrchum.errors import ValidationError


def new_id():
    return str(uuid.uuid4())


def utcnow():
    """Naive UTC timestamp, the form stored in every created_at column."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def clinic_now():
    """Naive wall-clock time in the clinic timezone; booking dates and times are stored in it."""
    tz = ZoneInfo(current_app.config.get('CLINIC_TIMEZONE', 'UTC'))
    return datetime.now(tz).replace(tzinfo=None)


def parse_date(value, field='date'):
    if not value:
        raise ValidationError(f"Missing {field}")
    try:
        return isoparse(value).date()
    except (ValueError, TypeError, AttributeError):
        raise ValidationError(f'Invalid {field}. Use ISO format (YYYY-MM-DD)')


def parse_time(value, field='time'):
    if not value:
        raise ValidationError(f"Missing {field}")
    try:
        parsed = time.fromisoformat(value)
    except (ValueError, TypeError):
        raise ValidationError(f'Invalid {field}. Use HH:MM or HH:MM:SS')
    # clinic wall-clock only; offsets cannot be compared with stored naive times
    if parsed.tzinfo is not None:
        raise ValidationError(f'Invalid {field}. Times must not carry a UTC offset')
    return parsed


def current_identity():
    """Return (profile_id, role value) of the authenticated user."""
    return get_jwt_identity(), get_jwt().get('role')


def role_required(*roles):
    def wrapper(fn):
        @wraps(fn)
        @jwt_required()
        def decorator(*args, **kwargs):
            role = get_jwt().get('role')
            if role not in [r.value for r in roles]:
                return {'message': 'Access denied', 'error': 'PermissionDenied'}, 403
            return fn(*args, **kwargs)
        return decorator
    return wrapper
