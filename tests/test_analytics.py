from datetime import date, datetime
from types import SimpleNamespace as Row

from furrchum.scheduling.analytics import build_analytics, day_buckets, top_vets

TODAY = date(2030, 3, 15)


def vet(id, first, specialization=None, status='approved'):
    return Row(id=id, first_name=first, last_name='Vet', specialization=specialization,
               approval_status=status, created_at=datetime(2030, 3, 14), rating=4.5)


def booking(id, vet_id, status='confirmed', kind='video', day=date(2030, 3, 15)):
    return Row(id=id, vet_id=vet_id, status=status, consultation_type=kind, booking_date=day)


def dataset():
    users = [
        Row(user_type='pet_owner', created_at=datetime(2030, 3, 15, 9)),
        Row(user_type='pet_owner', created_at=datetime(2030, 3, 10)),
        Row(user_type='vet', created_at=datetime(2030, 3, 14)),
        Row(user_type='vet', created_at=datetime(2030, 3, 14)),
        Row(user_type='admin', created_at=datetime(2030, 1, 1)),
    ]
    vets = [vet('v1', 'Asha', 'Dermatology'), vet('v2', 'Ravi', status='pending')]
    pets = [Row(type='dog'), Row(type='dog'), Row(type='cat')]
    bookings = [
        booking('b1', 'v1'),
        booking('b2', 'v1', status='completed', kind='in_person', day=date(2030, 3, 14)),
        booking('b3', 'v2', status='pending'),
    ]
    prescriptions = [Row(prescribed_date=date(2030, 3, 15))]
    transactions = [
        Row(booking_id='b1', amount=500, status='completed', created_at=datetime(2030, 3, 15, 10)),
        Row(booking_id='b3', amount=600, status='pending', created_at=datetime(2030, 3, 15, 11)),
    ]
    return users, vets, pets, bookings, prescriptions, transactions


def test_day_buckets_oldest_first():
    assert day_buckets(TODAY, 3) == ['2030-03-13', '2030-03-14', '2030-03-15']


def test_overview():
    overview = build_analytics(*dataset(), today=TODAY)['overview']
    assert overview == {
        'total_users': 5,
        'total_vets': 2,
        'total_pets': 3,
        'total_appointments': 3,
        'total_prescriptions': 1,
        'total_revenue': 500.0,
        'pending_vet_approvals': 1,
        'active_appointments': 1,
    }


def test_trends_cover_thirty_days():
    trends = build_analytics(*dataset(), today=TODAY)['trends']
    growth = trends['user_growth']
    assert len(growth) == 30
    assert growth[-1] == {'date': '2030-03-15', 'users': 1, 'vets': 0}
    assert growth[-2] == {'date': '2030-03-14', 'users': 2, 'vets': 2}
    assert trends['appointment_trends'][-1] == {'date': '2030-03-15', 'appointments': 2, 'revenue': 500.0}
    assert trends['prescription_trends'][-1]['prescriptions'] == 1


def test_distribution():
    distribution = build_analytics(*dataset(), today=TODAY)['distribution']
    assert [(d['name'], d['value']) for d in distribution['user_types']] == \
        [('Pet Owners', 2), ('Veterinarians', 2), ('Others', 1)]
    assert [(d['name'], d['value']) for d in distribution['appointment_types']] == \
        [('Video Call', 2), ('In-Person', 1)]
    status = {d['name']: d for d in distribution['appointment_status']}
    assert status['Confirmed']['color'] == '#10b981'
    assert status['Pending']['color'] == '#f59e0b'
    assert [(d['name'], d['value']) for d in distribution['pet_types']] == [('Dog', 2), ('Cat', 1)]
    assert [d['name'] for d in distribution['vet_specializations']] == ['Dermatology', 'General Practice']


def test_user_types_drop_empty_groups():
    users = [Row(user_type='pet_owner', created_at=datetime(2030, 3, 1))]
    distribution = build_analytics(users, [], [], [], [], [], today=TODAY)['distribution']
    assert [d['name'] for d in distribution['user_types']] == ['Pet Owners']


def test_top_vets_ranked_and_limited():
    vets = [vet(f'v{i}', f'Vet{i}') for i in range(7)]
    bookings = [booking(f'b{i}', 'v3') for i in range(3)] + [booking('bx', 'v5')]
    ranked = top_vets(vets, bookings, [])
    assert len(ranked) == 5
    assert [r['vet_id'] for r in ranked[:3]] == ['v3', 'v5', 'v0']
    assert ranked[0]['name'] == 'Dr. Vet3 Vet'
    assert ranked[0]['appointments'] == 3


def test_recent_activity_is_seven_days():
    activity = build_analytics(*dataset(), today=TODAY)['performance']['recent_activity']
    assert len(activity) == 7
    assert activity[-1] == {'date': '2030-03-15', 'users': 1, 'appointments': 2, 'prescriptions': 1}
    assert activity[0]['date'] == '2030-03-09'
