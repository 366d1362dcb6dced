import json

import httpx
import pytest

from furrchum.errors import ExternalServiceError
from furrchum.services.meeting_client import create_meeting

REAL_CLIENT = httpx.Client


@pytest.fixture
def whereby(app, monkeypatch):
    """Route the client's HTTP calls to a handler the test controls."""
    monkeypatch.setitem(app.config, 'WHEREBY_API_KEY', 'whereby-key')
    state = {'requests': [], 'response': httpx.Response(201, json={
        'meetingId': 42, 'roomUrl': 'https://furrchum.whereby.com/room', 'hostRoomUrl': 'https://host',
    })}

    def handler(request):
        state['requests'].append(request)
        response = state['response']
        if isinstance(response, Exception):
            raise response
        return response

    monkeypatch.setattr(httpx, 'Client', lambda **kw: REAL_CLIENT(transport=httpx.MockTransport(handler), **kw))
    with app.app_context():
        yield state


def test_request_body(whereby):
    meeting = create_meeting('2030-01-07T09:55:00', '2030-01-07T11:00:00', room_name_prefix='vetabcdef1234567890')
    assert meeting == {'meeting_id': '42', 'room_url': 'https://furrchum.whereby.com/room',
                       'host_room_url': 'https://host'}

    request = whereby['requests'][0]
    assert request.url.path.endswith('/meetings')
    assert request.headers['Authorization'] == 'Bearer whereby-key'
    body = json.loads(request.content)
    assert body['roomNamePrefix'] == 'vetabcdef1234567'
    assert body['roomMode'] == 'group'
    assert body['fields'] == ['hostRoomUrl']
    assert body['startDate'] == '2030-01-07T09:55:00'


def test_provider_error(whereby):
    whereby['response'] = httpx.Response(503, text='unavailable')
    with pytest.raises(ExternalServiceError):
        create_meeting('2030-01-07T09:55:00', '2030-01-07T11:00:00')


def test_incomplete_response(whereby):
    whereby['response'] = httpx.Response(201, json={'roomUrl': 'https://furrchum.whereby.com/room'})
    with pytest.raises(ExternalServiceError):
        create_meeting('2030-01-07T09:55:00', '2030-01-07T11:00:00')


def test_transport_error(whereby):
    whereby['response'] = httpx.ConnectError('refused')
    with pytest.raises(ExternalServiceError):
        create_meeting('2030-01-07T09:55:00', '2030-01-07T11:00:00')


def test_missing_api_key(app):
    with app.app_context():
        with pytest.raises(ExternalServiceError):
            create_meeting('2030-01-07T09:55:00', '2030-01-07T11:00:00')
