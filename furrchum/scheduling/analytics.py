"""Admin dashboard roll-ups over already loaded rows.

Every function here is a pure reducer: rows in, plain dicts out. Rows only
need the attributes the reducer reads, so ORM objects and test doubles work
alike.
"""
from datetime import datetime, timedelta

from furrchum.scheduling.reconciliation import is_completed

PALETTE = ['#3b82f6', '#10b981', '#f59e0b', '#ef4444', '#8b5cf6', '#ec4899']
APPOINTMENT_TYPE_COLORS = ['#8b5cf6', '#ec4899']
STATUS_COLORS = {
    'confirmed': '#10b981',
    'completed': '#3b82f6',
    'cancelled': '#ef4444',
    'pending': '#f59e0b',
}
FALLBACK_COLOR = '#6b7280'
USER_TYPE_COLORS = {
    'Pet Owners': '#3b82f6',
    'Veterinarians': '#10b981',
    'Others': '#f59e0b',
}
TOP_VETS = 5
RECENT_ACTIVITY_DAYS = 7


def _day(value):
    """Calendar-day string of a date, datetime or ISO string."""
    if value is None:
        return None
    if isinstance(value, str):
        return value[:10]
    if isinstance(value, datetime):
        value = value.date()
    return value.isoformat()


def _value(row, name):
    value = getattr(row, name, None)
    return getattr(value, 'value', value)


def count_by(rows, key):
    """Category counts keyed in first-seen order."""
    counts = {}
    for row in rows:
        category = key(row)
        counts[category] = counts.get(category, 0) + 1
    return counts


def histogram(counts, colors=PALETTE, label=None):
    return [
        {
            'name': label(name) if label else name,
            'value': value,
            'color': colors[index % len(colors)],
        }
        for index, (name, value) in enumerate(counts.items())
    ]


def day_buckets(today, days):
    return [(today - timedelta(days=offset)).isoformat() for offset in range(days - 1, -1, -1)]


def _completed_revenue(transactions):
    return sum(float(t.amount) for t in transactions if is_completed(t))


def overview(users, vets, pets, appointments, prescriptions, transactions):
    return {
        'total_users': len(users),
        'total_vets': len(vets),
        'total_pets': len(pets),
        'total_appointments': len(appointments),
        'total_prescriptions': len(prescriptions),
        'total_revenue': _completed_revenue(transactions),
        'pending_vet_approvals': sum(
            1 for v in vets if _value(v, 'approval_status') in (None, 'pending')
        ),
        'active_appointments': sum(1 for a in appointments if _value(a, 'status') == 'confirmed'),
    }


def trends(users, vets, appointments, prescriptions, transactions, today, days=30):
    user_days = count_by(users, lambda u: _day(u.created_at))
    vet_days = count_by(vets, lambda v: _day(v.created_at))
    appointment_days = count_by(appointments, lambda a: _day(a.booking_date))
    prescription_days = count_by(prescriptions, lambda p: _day(p.prescribed_date))
    revenue_days = {}
    for transaction in transactions:
        if is_completed(transaction):
            day = _day(transaction.created_at)
            revenue_days[day] = revenue_days.get(day, 0.0) + float(transaction.amount)

    buckets = day_buckets(today, days)
    return {
        'user_growth': [
            {'date': d, 'users': user_days.get(d, 0), 'vets': vet_days.get(d, 0)} for d in buckets
        ],
        'appointment_trends': [
            {'date': d, 'appointments': appointment_days.get(d, 0), 'revenue': revenue_days.get(d, 0.0)}
            for d in buckets
        ],
        'prescription_trends': [
            {'date': d, 'prescriptions': prescription_days.get(d, 0)} for d in buckets
        ],
    }


def distribution(users, vets, pets, appointments):
    user_type_counts = {
        'Pet Owners': sum(1 for u in users if _value(u, 'user_type') == 'pet_owner'),
        'Veterinarians': len(vets),
        'Others': sum(1 for u in users if _value(u, 'user_type') not in ('pet_owner', 'vet')),
    }
    return {
        'user_types': [
            {'name': name, 'value': value, 'color': USER_TYPE_COLORS[name]}
            for name, value in user_type_counts.items() if value > 0
        ],
        'appointment_types': histogram(
            count_by(appointments, lambda a: 'Video Call' if _value(a, 'consultation_type') == 'video' else 'In-Person'),
            colors=APPOINTMENT_TYPE_COLORS,
        ),
        'appointment_status': [
            {
                'name': status.capitalize(),
                'value': value,
                'color': STATUS_COLORS.get(status, FALLBACK_COLOR),
            }
            for status, value in count_by(appointments, lambda a: _value(a, 'status') or 'pending').items()
        ],
        'pet_types': histogram(
            count_by(pets, lambda p: p.type or 'Unknown'), label=lambda name: name.capitalize()
        ),
        'vet_specializations': histogram(
            count_by(vets, lambda v: v.specialization or 'General Practice')
        ),
    }


def top_vets(vets, appointments, transactions, limit=TOP_VETS):
    """Vets ranked by appointment count; ties keep the order vets were given in."""
    appointments_by_vet = {}
    vet_by_booking = {}
    for appointment in appointments:
        appointments_by_vet[appointment.vet_id] = appointments_by_vet.get(appointment.vet_id, 0) + 1
        vet_by_booking[appointment.id] = appointment.vet_id

    revenue_by_vet = {}
    for transaction in transactions:
        vet_id = vet_by_booking.get(transaction.booking_id)
        if vet_id is not None and is_completed(transaction):
            revenue_by_vet[vet_id] = revenue_by_vet.get(vet_id, 0.0) + float(transaction.amount)

    ranked = [
        {
            'vet_id': vet.id,
            'name': f'Dr. {vet.first_name or ""} {vet.last_name or ""}'.strip(),
            'appointments': appointments_by_vet.get(vet.id, 0),
            'revenue': revenue_by_vet.get(vet.id, 0.0),
            'rating': getattr(vet, 'rating', None) or 0,
        }
        for vet in vets
    ]
    # sorted() is stable, so equal counts stay in input order
    return sorted(ranked, key=lambda row: row['appointments'], reverse=True)[:limit]


def recent_activity(users, appointments, prescriptions, today, days=RECENT_ACTIVITY_DAYS):
    user_days = count_by(users, lambda u: _day(u.created_at))
    appointment_days = count_by(appointments, lambda a: _day(a.booking_date))
    prescription_days = count_by(prescriptions, lambda p: _day(p.prescribed_date))
    return [
        {
            'date': d,
            'users': user_days.get(d, 0),
            'appointments': appointment_days.get(d, 0),
            'prescriptions': prescription_days.get(d, 0),
        }
        for d in day_buckets(today, days)
    ]


def build_analytics(users, vets, pets, appointments, prescriptions, transactions, today, trend_days=30):
    return {
        'overview': overview(users, vets, pets, appointments, prescriptions, transactions),
        'trends': trends(users, vets, appointments, prescriptions, transactions, today, days=trend_days),
        'distribution': distribution(users, vets, pets, appointments),
        'performance': {
            'top_vets': top_vets(vets, appointments, transactions),
            'recent_activity': recent_activity(users, appointments, prescriptions, today),
        },
    }
