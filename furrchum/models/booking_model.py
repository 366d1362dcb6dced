from datetime import datetime

from furrchum import db
from furrchum.scheduling.state_machine import BookingStatus, ConsultationType
from furrchum.utils.util import new_id, utcnow

_LIVE = "status != 'cancelled'"


class Booking(db.Model):
    __tablename__ = 'bookings'
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    pet_owner_id = db.Column(db.String(36), db.ForeignKey('profiles.id'), nullable=False, index=True)
    vet_id = db.Column(db.String(36), db.ForeignKey('vet_profiles.id'), nullable=False, index=True)
    pet_id = db.Column(db.String(36), db.ForeignKey('pets.id'), nullable=False, index=True)
    booking_date = db.Column(db.Date, nullable=False)
    start_time = db.Column(db.Time, nullable=False)
    end_time = db.Column(db.Time, nullable=False)
    consultation_type = db.Column(db.String(20), nullable=False, default=ConsultationType.VIDEO.value)
    status = db.Column(db.String(20), nullable=False, default=BookingStatus.PENDING.value)
    notes = db.Column(db.Text)
    meeting_id = db.Column(db.String(120))
    meeting_url = db.Column(db.String(500))
    host_meeting_url = db.Column(db.String(500))
    payment_status = db.Column(db.String(30), nullable=False, default='unpaid')
    refund_percentage = db.Column(db.Integer)
    cancelled_by = db.Column(db.String(20))
    cancellation_reason = db.Column(db.String(300))
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    pet = db.relationship('Pet', lazy=True)
    vet = db.relationship('VetProfile', lazy=True)
    pet_owner = db.relationship('Profile', lazy=True)
    transactions = db.relationship('Transaction', backref='booking', lazy=True)

    __table_args__ = (
        db.CheckConstraint('start_time < end_time', name='ck_booking_window'),
        # at most one live booking per vet slot
        db.Index(
            'uq_booking_vet_slot', 'vet_id', 'booking_date', 'start_time',
            unique=True,
            postgresql_where=db.text(_LIVE),
            sqlite_where=db.text(_LIVE),
        ),
    )

    @property
    def starts_at(self):
        return datetime.combine(self.booking_date, self.start_time)

    @property
    def ends_at(self):
        return datetime.combine(self.booking_date, self.end_time)

    def __repr__(self):
        return f'<Booking {self.id} {self.booking_date} {self.start_time} ({self.status})>'
