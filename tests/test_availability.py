from collections import namedtuple
from datetime import date, datetime, time

import pytest

from furrchum.scheduling.availability import (
    Slot, available_slots, day_of_week, find_overlap, is_slot_available,
)

Rule = namedtuple('Rule', 'day_of_week start_time end_time is_available')
Booked = namedtuple('Booked', 'id booking_date start_time end_time status')

MONDAY = date(2030, 1, 7)


def rule(start, end, day=1, available=True):
    return Rule(day, time.fromisoformat(start), time.fromisoformat(end), available)


def booked(start, end, on=MONDAY, status='confirmed', id='b1'):
    return Booked(id, on, time.fromisoformat(start), time.fromisoformat(end), status)


def starts(slots):
    return [s.start_time.strftime('%H:%M') for s in slots]


def test_day_of_week_counts_from_sunday():
    assert day_of_week(date(2030, 1, 6)) == 0
    assert day_of_week(MONDAY) == 1
    assert day_of_week(date(2030, 1, 12)) == 6


def test_booked_slot_is_removed():
    slots = available_slots([rule('09:00', '12:00')], [booked('10:00', '10:30')], MONDAY)
    assert starts(slots) == ['09:00', '09:30', '10:30', '11:00', '11:30']
    assert slots[0] == Slot(time(9, 0), time(9, 30))


def test_partial_overlap_blocks_both_slots():
    slots = available_slots([rule('09:00', '11:00')], [booked('09:15', '09:45')], MONDAY)
    assert starts(slots) == ['10:00', '10:30']


def test_cancelled_and_other_day_bookings_are_ignored():
    bookings = [booked('09:00', '09:30', status='cancelled'), booked('09:30', '10:00', on=date(2030, 1, 8))]
    assert starts(available_slots([rule('09:00', '10:00')], bookings, MONDAY)) == ['09:00', '09:30']


def test_trailing_fragment_is_dropped():
    assert starts(available_slots([rule('09:00', '10:15')], [], MONDAY)) == ['09:00', '09:30']


def test_overlapping_rules_do_not_duplicate_slots():
    rules = [rule('09:00', '10:00'), rule('09:30', '10:30')]
    assert starts(available_slots(rules, [], MONDAY)) == ['09:00', '09:30', '10:00']


def test_no_rules_or_unavailable_day_gives_nothing():
    assert available_slots([], [], MONDAY) == []
    assert available_slots([rule('09:00', '12:00', available=False)], [], MONDAY) == []
    assert available_slots([rule('09:00', '12:00', day=2)], [], MONDAY) == []


def test_today_excludes_started_slots():
    now = datetime.combine(MONDAY, time(10, 10))
    assert starts(available_slots([rule('09:00', '12:00')], [], MONDAY, now=now)) == ['10:30', '11:00', '11:30']


def test_slot_starting_exactly_now_is_excluded():
    now = datetime.combine(MONDAY, time(10, 0))
    assert starts(available_slots([rule('09:00', '11:00')], [], MONDAY, now=now)) == ['10:30']


def test_past_date_gives_nothing():
    now = datetime(2030, 1, 8, 8, 0)
    assert available_slots([rule('09:00', '12:00')], [], MONDAY, now=now) == []


def test_custom_slot_length():
    assert starts(available_slots([rule('09:00', '10:00')], [], MONDAY, slot_minutes=20)) == \
        ['09:00', '09:20', '09:40']
    with pytest.raises(ValueError):
        available_slots([rule('09:00', '10:00')], [], MONDAY, slot_minutes=0)


def test_find_overlap_skips_excluded_booking():
    existing = [booked('10:00', '10:30')]
    assert find_overlap(existing, MONDAY, time(10, 15), time(10, 45)) is existing[0]
    assert find_overlap(existing, MONDAY, time(10, 15), time(10, 45), exclude_id='b1') is None
    assert find_overlap(existing, MONDAY, time(10, 30), time(11, 0)) is None


def test_is_slot_available():
    rules = [rule('09:00', '12:00')]
    existing = [booked('10:00', '10:30')]
    assert is_slot_available(rules, existing, MONDAY, time(9, 0), time(9, 30))
    assert not is_slot_available(rules, existing, MONDAY, time(10, 0), time(10, 30))
    assert not is_slot_available(rules, existing, MONDAY, time(11, 45), time(12, 15))
    assert not is_slot_available(rules, existing, MONDAY, time(9, 0), time(9, 30),
                                 now=datetime.combine(MONDAY, time(9, 0)))


def test_slots_never_overlap_live_bookings():
    rules = [rule('08:00', '18:00')]
    bookings = [booked('08:10', '08:50'), booked('12:00', '13:30', id='b2'), booked('17:45', '18:00', id='b3'),
                booked('10:00', '11:00', id='b4', status='cancelled')]
    live = [b for b in bookings if b.status != 'cancelled']
    for slot in available_slots(rules, bookings, MONDAY):
        assert find_overlap(live, MONDAY, slot.start_time, slot.end_time) is None
    assert '10:00' in starts(available_slots(rules, bookings, MONDAY))
