from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from furrchum import bcrypt, create_app, db
from furrchum.config import TestConfig
from furrchum.models import Profile, Role
from furrchum.scheduling.availability import day_of_week
from furrchum.services import email_service, meeting_client

PASSWORD = 'secret123'


@pytest.fixture(scope='session')
def app():
    # the restx Api is module level, so one app serves the whole session
    return create_app(TestConfig)


@pytest.fixture(autouse=True)
def reset_db(app):
    with app.app_context():
        db.drop_all()
        db.create_all()
    yield


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture(autouse=True)
def sent_emails(monkeypatch):
    sent = []
    monkeypatch.setattr(email_service, 'send_email',
                        lambda to, subject, html: sent.append({'to': to, 'subject': subject}))
    return sent


@pytest.fixture(autouse=True)
def meetings(monkeypatch):
    created = []

    def fake_create_meeting(start, end, room_name_prefix='furrchum', **kwargs):
        created.append({'start': start, 'end': end, 'prefix': room_name_prefix})
        return {
            'meeting_id': f'm{len(created)}',
            'room_url': f'https://whereby.test/room{len(created)}',
            'host_room_url': f'https://whereby.test/room{len(created)}?host',
        }

    monkeypatch.setattr(meeting_client, 'create_meeting', fake_create_meeting)
    return created


def auth(token):
    return {'Authorization': f'Bearer {token}'}


def clinic_today():
    return datetime.now(ZoneInfo(TestConfig.CLINIC_TIMEZONE)).date()


def future_day(days=3):
    return clinic_today() + timedelta(days=days)


def register(client, email, user_type='pet_owner', **extra):
    payload = {'email': email, 'password': PASSWORD, 'full_name': extra.pop('full_name', 'Test User'),
               'user_type': user_type}
    payload.update(extra)
    response = client.post('/auth/register', json=payload)
    assert response.status_code == 201, response.get_json()
    body = response.get_json()
    return body['access_token'], body['user']


@pytest.fixture
def admin_token(app, client):
    with app.app_context():
        db.session.add(Profile(
            email='admin@furrchum.test',
            password=bcrypt.generate_password_hash(PASSWORD).decode('utf-8'),
            full_name='Admin',
            user_type=Role.ADMIN,
        ))
        db.session.commit()
    response = client.post('/auth/login', json={'email': 'admin@furrchum.test', 'password': PASSWORD})
    return response.get_json()['access_token']


@pytest.fixture
def owner(client):
    token, user = register(client, 'owner@furrchum.test', full_name='Priya Sharma')
    return {'token': token, 'id': user['id']}


@pytest.fixture
def pet(client, owner):
    response = client.post('/pets', json={'name': 'Bruno', 'type': 'dog', 'breed': 'Beagle', 'age': 3},
                           headers=auth(owner['token']))
    assert response.status_code == 201
    return response.get_json()


def make_vet(client, admin_token, email='vet@furrchum.test', target=None, start='09:00', end='12:00'):
    """Register, approve and open availability for ``target``'s weekday."""
    token, user = register(client, email, user_type='vet', full_name='Asha Rao',
                           specialization='Dermatology', consultation_fee=500)
    assert client.post(f"/vets/{user['id']}/approve", headers=auth(admin_token)).status_code == 200
    target = target or future_day()
    response = client.put(f"/vets/{user['id']}/availability", headers=auth(token), json={'availability': [
        {'day_of_week': day_of_week(target), 'start_time': start, 'end_time': end},
    ]})
    assert response.status_code == 200
    return {'token': token, 'id': user['id']}


@pytest.fixture
def vet(client, admin_token):
    return make_vet(client, admin_token)


def book(client, owner, vet, pet, start='10:00', day=None, consultation_type='video'):
    return client.post('/bookings', headers=auth(owner['token']), json={
        'vet_id': vet['id'],
        'pet_id': pet['id'],
        'booking_date': (day or future_day()).isoformat(),
        'start_time': start,
        'consultation_type': consultation_type,
    })
