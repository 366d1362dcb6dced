"""Transactional email through Resend, plus reCAPTCHA checks for the contact form."""
import logging
from html import escape

import httpx
import resend
from flask import current_app

from furrchum.errors import ExternalServiceError, ValidationError

logger = logging.getLogger(__name__)

RECAPTCHA_VERIFY_URL = 'https://www.google.com/recaptcha/api/siteverify'

BOOKING_REQUIRED_FIELDS = (
    'clientEmail', 'clientName', 'vetName', 'bookingId', 'bookingDate',
    'startTime', 'endTime', 'consultationType', 'petName',
)
CONTACT_REQUIRED_FIELDS = ('name', 'email', 'subject', 'message')


def send_email(to, subject, html):
    api_key = current_app.config.get('RESEND_API_KEY')
    if not api_key:
        raise ExternalServiceError('Email service not configured')

    resend.api_key = api_key
    recipients = to if isinstance(to, list) else [to]
    try:
        logger.info(f"Sending email '{subject}' to {recipients}")
        response = resend.Emails.send({
            'from': current_app.config['EMAIL_FROM'],
            'to': recipients,
            'subject': subject,
            'html': html,
        })
    except Exception as e:
        logger.error(f"Email send error to {recipients}: {e}")
        raise ExternalServiceError(f'Failed to send email: {e}') from e
    return response


def _missing(payload, fields):
    return [f for f in fields if not payload.get(f)]


def _booking_html(payload, greeting_name):
    consultation = 'Video consultation' if payload['consultationType'] in ('video', 'video_call') else 'In-person visit'
    rows = [
        ('Booking ID', payload['bookingId']),
        ('Date', payload['bookingDate']),
        ('Time', f"{payload['startTime']} - {payload['endTime']}"),
        ('Consultation', consultation),
        ('Pet', payload['petName']),
        ('Veterinarian', payload['vetName']),
    ]
    if payload.get('ownerName'):
        rows.append(('Pet owner', payload['ownerName']))
    if payload.get('notes'):
        rows.append(('Notes', payload['notes']))
    table = ''.join(f'<tr><td><strong>{escape(k)}</strong></td><td>{escape(str(v))}</td></tr>' for k, v in rows)
    return f'<p>Hi {escape(greeting_name)},</p><p>Your appointment is booked.</p><table>{table}</table>'


def send_booking_confirmation(payload):
    """Mail the booking summary to the client and, when an address is known, the vet."""
    missing = _missing(payload, BOOKING_REQUIRED_FIELDS)
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")

    subject = f"Appointment confirmed: {payload['bookingDate']} at {payload['startTime']}"
    send_email(payload['clientEmail'], subject, _booking_html(payload, payload['clientName']))
    if payload.get('vetEmail'):
        send_email(payload['vetEmail'], f"New appointment: {payload['petName']}",
                   _booking_html(payload, payload['vetName']))
    return {'success': True, 'message': 'Booking confirmation emails sent'}


USER_TYPE_LABELS = {'pet_owner': 'Pet Owner', 'vet': 'Veterinarian'}


def send_welcome_email(email, full_name, user_type):
    if not email or not full_name or not user_type:
        raise ValidationError('Missing required fields: email, fullName, userType')

    label = USER_TYPE_LABELS.get(user_type, 'Member')
    path = '/vet-dashboard' if user_type == 'vet' else '/dashboard'
    dashboard_url = f"{current_app.config['APP_URL'].rstrip('/')}{path}"
    html = (
        f'<p>Hi {escape(full_name)},</p>'
        f'<p>Welcome to Furrchum! Your {label} account is ready.</p>'
        f'<p><a href="{escape(dashboard_url)}">Go to your dashboard</a></p>'
        f"<p>Questions? Write to {escape(current_app.config['CONTACT_EMAIL'])}.</p>"
    )
    send_email(email, f'Welcome to Furrchum, {full_name}!', html)
    return {'success': True, 'message': 'Welcome email sent'}


def verify_recaptcha(token):
    secret = current_app.config.get('RECAPTCHA_SECRET_KEY')
    if not secret:
        return True
    if not token:
        return False
    try:
        with httpx.Client(timeout=current_app.config.get('HTTP_TIMEOUT', 10.0)) as client:
            response = client.post(RECAPTCHA_VERIFY_URL, data={'secret': secret, 'response': token})
        data = response.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.error(f"reCAPTCHA verification error: {e}")
        raise ExternalServiceError('reCAPTCHA verification unavailable') from e
    if not data.get('success'):
        logger.warning(f"reCAPTCHA verification failed: {data.get('error-codes')}")
    return bool(data.get('success'))


def send_contact_message(payload):
    missing = _missing(payload, CONTACT_REQUIRED_FIELDS)
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")
    if not verify_recaptcha(payload.get('recaptchaToken')):
        raise ValidationError('reCAPTCHA verification failed')

    html = (
        f"<p><strong>From:</strong> {escape(payload['name'])} &lt;{escape(payload['email'])}&gt;</p>"
        f"<p><strong>Subject:</strong> {escape(payload['subject'])}</p>"
        f"<p>{escape(payload['message'])}</p>"
    )
    send_email(current_app.config['CONTACT_EMAIL'], f"Contact form: {payload['subject']}", html)
    return {'success': True, 'message': 'Your message has been sent'}
