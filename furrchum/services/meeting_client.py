"""Whereby meeting-room provisioning."""
import logging

import httpx
from flask import current_app

from furrchum.errors import ExternalServiceError

logger = logging.getLogger(__name__)

MAX_ROOM_PREFIX = 16


def create_meeting(start, end, room_name_prefix='furrchum', room_mode='group', room_mode_props=None):
    """Create a meeting room valid between ``start`` and ``end`` (datetimes or ISO strings).

    Returns a dict with meeting_id, room_url and host_room_url. Raises
    ExternalServiceError on any provider or transport failure.
    """
    api_key = current_app.config.get('WHEREBY_API_KEY')
    if not api_key:
        raise ExternalServiceError('Meeting provider is not configured')

    body = {
        'startDate': start if isinstance(start, str) else start.isoformat(),
        'endDate': end if isinstance(end, str) else end.isoformat(),
        'roomNamePrefix': room_name_prefix[:MAX_ROOM_PREFIX],
        'roomMode': room_mode,
        'fields': ['hostRoomUrl'],
    }
    if room_mode_props:
        body['roomModeProps'] = room_mode_props

    url = f"{current_app.config['WHEREBY_API_URL'].rstrip('/')}/meetings"
    try:
        with httpx.Client(timeout=current_app.config.get('HTTP_TIMEOUT', 10.0)) as client:
            response = client.post(url, json=body, headers={'Authorization': f'Bearer {api_key}'})
    except httpx.HTTPError as e:
        logger.error(f"Meeting provider request failed: {e}")
        raise ExternalServiceError(f'Meeting provider unreachable: {e}') from e

    if response.status_code not in (200, 201):
        logger.error(f"Meeting provider error [{response.status_code}]: {response.text[:200]}")
        raise ExternalServiceError(f'Meeting provider returned {response.status_code}')

    data = response.json()
    if not data.get('meetingId') or not data.get('roomUrl'):
        raise ExternalServiceError('Meeting provider response is missing meetingId or roomUrl')

    logger.info(f"Meeting {data['meetingId']} created")
    return {
        'meeting_id': str(data['meetingId']),
        'room_url': data['roomUrl'],
        'host_room_url': data.get('hostRoomUrl'),
    }
