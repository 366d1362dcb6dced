"""Razorpay order creation. Signature verification lives in transaction_service."""
import logging

import httpx
from flask import current_app

from furrchum.errors import ExternalServiceError

logger = logging.getLogger(__name__)

MAX_RECEIPT = 40


def to_paise(amount):
    return int(round(float(amount) * 100))


def create_order(amount, receipt, currency='INR', notes=None):
    """Create an order for ``amount`` (rupees) and return its id, amount in paise and status."""
    key_id = current_app.config.get('RAZORPAY_KEY_ID')
    key_secret = current_app.config.get('RAZORPAY_KEY_SECRET')
    if not key_id or not key_secret:
        raise ExternalServiceError('Payment system not configured')

    body = {
        'amount': to_paise(amount),
        'currency': currency,
        'receipt': receipt[:MAX_RECEIPT],
        'notes': notes or {},
    }
    url = f"{current_app.config['RAZORPAY_API_URL'].rstrip('/')}/orders"
    try:
        with httpx.Client(timeout=current_app.config.get('HTTP_TIMEOUT', 10.0)) as client:
            response = client.post(url, json=body, auth=(key_id, key_secret))
    except httpx.HTTPError as e:
        logger.error(f"Razorpay request failed: {e}")
        raise ExternalServiceError(f'Payment provider unreachable: {e}') from e

    if response.status_code not in (200, 201):
        logger.error(f"Razorpay error [{response.status_code}]: {response.text[:200]}")
        raise ExternalServiceError(f'Payment provider returned {response.status_code}')

    data = response.json()
    if not data.get('id'):
        raise ExternalServiceError('Payment provider response is missing the order id')

    logger.info(f"Razorpay order {data['id']} created for {body['amount']} paise")
    return {
        'order_id': data['id'],
        'amount': data.get('amount', body['amount']),
        'currency': data.get('currency', currency),
        'receipt': data.get('receipt', body['receipt']),
        'status': data.get('status'),
    }
