import httpx
import pytest

from furrchum.errors import ExternalServiceError
from furrchum.services import email_service
from tests.conftest import auth, book, register

REAL_CLIENT = httpx.Client

CONTACT = {'name': 'Ravi', 'email': 'ravi@example.com', 'subject': 'Hello', 'message': 'Do you treat rabbits?'}


def test_booking_confirmation_requires_login(client, sent_emails):
    response = client.post('/notifications/booking-confirmation', json={'bookingId': 'b-1'})
    assert response.status_code == 401
    assert sent_emails == []


def test_booking_confirmation_goes_to_booking_parties(client, owner, vet, pet, sent_emails):
    booking_id = book(client, owner, vet, pet).get_json()['id']
    sent_emails.clear()

    response = client.post('/notifications/booking-confirmation', headers=auth(owner['token']), json={
        'bookingId': booking_id, 'clientEmail': 'victim@example.com', 'vetEmail': 'spam@example.com',
    })
    assert response.status_code == 200
    assert response.get_json()['success'] is True
    assert [e['to'] for e in sent_emails] == ['owner@furrchum.test', 'vet@furrchum.test']


def test_booking_confirmation_for_someone_elses_booking(client, owner, vet, pet, sent_emails):
    booking_id = book(client, owner, vet, pet).get_json()['id']
    token, _ = register(client, 'other@furrchum.test')
    sent_emails.clear()

    response = client.post('/notifications/booking-confirmation', headers=auth(token), json={'bookingId': booking_id})
    assert response.status_code == 403
    assert sent_emails == []


def test_booking_confirmation_missing_booking_id(client, owner, sent_emails):
    response = client.post('/notifications/booking-confirmation', headers=auth(owner['token']), json={})
    assert response.status_code == 400
    assert response.get_json()['success'] is False


def test_delivery_failure(client, owner, vet, pet, monkeypatch):
    booking_id = book(client, owner, vet, pet).get_json()['id']

    def broken(to, subject, html):
        raise ExternalServiceError('Email service not configured')

    monkeypatch.setattr(email_service, 'send_email', broken)
    response = client.post('/notifications/booking-confirmation', headers=auth(owner['token']),
                           json={'bookingId': booking_id})
    assert response.status_code == 502
    assert response.get_json() == {'success': False, 'error': 'Email service not configured'}


def test_contact_message(client, sent_emails):
    response = client.post('/notifications/contact', json=CONTACT)
    assert response.status_code == 200
    assert sent_emails == [{'to': 'support@furrchum.com', 'subject': 'Contact form: Hello'}]


@pytest.mark.parametrize('captcha_ok, expected', [(True, 200), (False, 400)])
def test_contact_recaptcha(app, client, monkeypatch, sent_emails, captcha_ok, expected):
    monkeypatch.setitem(app.config, 'RECAPTCHA_SECRET_KEY', 'captcha-secret')
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json={'success': captcha_ok}))
    monkeypatch.setattr(httpx, 'Client', lambda **kw: REAL_CLIENT(transport=transport, **kw))

    response = client.post('/notifications/contact', json=dict(CONTACT, recaptchaToken='token'))
    assert response.status_code == expected
    assert len(sent_emails) == (1 if captcha_ok else 0)
