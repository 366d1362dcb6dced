"""Bookable slot calculation from weekly availability rules minus existing bookings."""
from collections import namedtuple
from datetime import datetime, timedelta

DEFAULT_SLOT_MINUTES = 30

Slot = namedtuple('Slot', ['start_time', 'end_time'])


def day_of_week(target_date):
    """Day index with Sunday as 0, the convention availability rows are stored in."""
    return (target_date.weekday() + 1) % 7


def _minutes(value):
    return value.hour * 60 + value.minute


def _to_time(minutes):
    return (datetime.min + timedelta(minutes=minutes)).time()


def _overlaps(start_a, end_a, start_b, end_b):
    return start_a < end_b and start_b < end_a


def _booked_ranges(bookings, target_date):
    ranges = []
    for booking in bookings:
        if getattr(booking, 'status', None) == 'cancelled':
            continue
        booking_date = getattr(booking, 'booking_date', target_date)
        if booking_date != target_date:
            continue
        ranges.append((_minutes(booking.start_time), _minutes(booking.end_time)))
    return ranges


def _windows(rules, target_date):
    dow = day_of_week(target_date)
    windows = []
    for rule in rules or []:
        if rule.day_of_week != dow or not rule.is_available:
            continue
        start, end = _minutes(rule.start_time), _minutes(rule.end_time)
        if start < end:
            windows.append((start, end))
    return windows


def available_slots(rules, bookings, target_date, now=None, slot_minutes=DEFAULT_SLOT_MINUTES):
    """Ordered bookable slots for ``target_date``.

    ``rules`` are a vet's weekly availability rows (day_of_week, start_time,
    end_time, is_available). ``bookings`` are that vet's bookings; cancelled ones
    and ones on other dates are ignored. When ``now`` is given, past dates yield
    nothing and on today's date slots starting at or before ``now`` are dropped.
    """
    if slot_minutes <= 0:
        raise ValueError('slot_minutes must be positive')
    if now is not None and target_date < now.date():
        return []

    windows = _windows(rules, target_date)
    if not windows:
        return []

    booked = _booked_ranges(bookings, target_date)
    cutoff = _minutes(now) if now is not None and target_date == now.date() else None

    starts = set()
    for window_start, window_end in windows:
        start = window_start
        while start + slot_minutes <= window_end:
            end = start + slot_minutes
            if cutoff is not None and start <= cutoff:
                start = end
                continue
            if not any(_overlaps(start, end, b_start, b_end) for b_start, b_end in booked):
                starts.add(start)
            start = end

    return [Slot(_to_time(s), _to_time(s + slot_minutes)) for s in sorted(starts)]


def is_within_availability(rules, target_date, start_time, end_time):
    start, end = _minutes(start_time), _minutes(end_time)
    return any(w_start <= start and end <= w_end for w_start, w_end in _windows(rules, target_date))


def find_overlap(bookings, target_date, start_time, end_time, exclude_id=None):
    """First non-cancelled booking on ``target_date`` overlapping [start_time, end_time), if any."""
    start, end = _minutes(start_time), _minutes(end_time)
    for booking in bookings:
        if exclude_id is not None and getattr(booking, 'id', None) == exclude_id:
            continue
        if getattr(booking, 'status', None) == 'cancelled':
            continue
        if getattr(booking, 'booking_date', target_date) != target_date:
            continue
        if _overlaps(start, end, _minutes(booking.start_time), _minutes(booking.end_time)):
            return booking
    return None


def is_slot_available(rules, bookings, target_date, start_time, end_time, now=None, exclude_id=None):
    """Whether [start_time, end_time) lies inside an available window, is in the future and is free."""
    if start_time >= end_time:
        return False
    if now is not None and datetime.combine(target_date, start_time) <= now:
        return False
    if not is_within_availability(rules, target_date, start_time, end_time):
        return False
    return find_overlap(bookings, target_date, start_time, end_time, exclude_id=exclude_id) is None
