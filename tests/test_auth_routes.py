from furrchum.errors import ExternalServiceError
from furrchum.services import email_service
from tests.conftest import PASSWORD, auth, register


def test_register_and_login(client):
    token, user = register(client, 'new@furrchum.test', full_name='New Owner')
    assert user['user_type'] == 'pet_owner'

    response = client.post('/auth/login', json={'email': 'new@furrchum.test', 'password': PASSWORD})
    assert response.status_code == 200
    me = client.get('/auth/me', headers=auth(response.get_json()['access_token']))
    assert me.get_json()['email'] == 'new@furrchum.test'


def test_vet_registration_starts_pending(client):
    _, user = register(client, 'doc@furrchum.test', user_type='vet', full_name='Asha Rao')
    assert user['approval_status'] == 'pending'


def test_admin_cannot_self_register(client):
    response = client.post('/auth/register', json={
        'email': 'boss@furrchum.test', 'password': PASSWORD, 'full_name': 'Boss', 'user_type': 'admin',
    })
    assert response.status_code == 400


def test_duplicate_email_and_weak_password(client):
    register(client, 'dup@furrchum.test')
    response = client.post('/auth/register', json={
        'email': 'dup@furrchum.test', 'password': PASSWORD, 'full_name': 'Again',
    })
    assert response.status_code == 400
    response = client.post('/auth/register', json={
        'email': 'weak@furrchum.test', 'password': 'abc', 'full_name': 'Weak',
    })
    assert response.status_code == 400


def test_bad_credentials_and_missing_token(client):
    register(client, 'who@furrchum.test')
    response = client.post('/auth/login', json={'email': 'who@furrchum.test', 'password': 'wrong123'})
    assert response.status_code == 401
    assert client.get('/auth/me').status_code == 401


def test_registration_sends_welcome_email(client, sent_emails):
    register(client, 'new@furrchum.test', full_name='New Owner')
    register(client, 'doc@furrchum.test', user_type='vet', full_name='Asha Rao')
    assert sent_emails == [
        {'to': 'new@furrchum.test', 'subject': 'Welcome to Furrchum, New Owner!'},
        {'to': 'doc@furrchum.test', 'subject': 'Welcome to Furrchum, Asha Rao!'},
    ]


def test_registration_survives_email_failure(client, monkeypatch):
    def broken(to, subject, html):
        raise ExternalServiceError('Email service not configured')

    monkeypatch.setattr(email_service, 'send_email', broken)
    token, user = register(client, 'new@furrchum.test')
    assert token and user['email'] == 'new@furrchum.test'
