# Dashboard service: load rows once, hand them to the pure aggregator
from flask import current_app

from ..models import Booking, Pet, Prescription, Profile, Transaction, VetProfile
from ..scheduling.analytics import build_analytics
from ..utils.util import clinic_now


def get_analytics(today=None):
    return build_analytics(
        users=Profile.query.order_by(Profile.created_at.asc()).all(),
        vets=VetProfile.query.order_by(VetProfile.created_at.asc()).all(),
        pets=Pet.query.order_by(Pet.created_at.asc()).all(),
        appointments=Booking.query.order_by(Booking.created_at.asc()).all(),
        prescriptions=Prescription.query.all(),
        transactions=Transaction.query.all(),
        today=today or clinic_now().date(),
        trend_days=current_app.config.get('TREND_DAYS', 30),
    )
