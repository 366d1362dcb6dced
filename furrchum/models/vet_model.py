import enum
from furrchum import db
from furrchum.utils.util import new_id, utcnow


class ApprovalStatus(enum.Enum):
    PENDING = 'pending'
    APPROVED = 'approved'
    REJECTED = 'rejected'


class VetProfile(db.Model):
    __tablename__ = 'vet_profiles'
    id = db.Column(db.String(36), db.ForeignKey('profiles.id'), primary_key=True)
    first_name = db.Column(db.String(80), nullable=False)
    last_name = db.Column(db.String(80), nullable=False)
    specialization = db.Column(db.String(120))
    consultation_fee = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    years_of_experience = db.Column(db.Integer)
    about = db.Column(db.Text)
    approval_status = db.Column(db.String(20), nullable=False, default=ApprovalStatus.PENDING.value)
    approved_at = db.Column(db.DateTime)
    approved_by = db.Column(db.String(36), db.ForeignKey('profiles.id'))
    rejection_reason = db.Column(db.String(300))
    account_holder_name = db.Column(db.String(120))
    account_number = db.Column(db.String(40))
    ifsc_code = db.Column(db.String(20))
    pan_number = db.Column(db.String(20))
    gst_number = db.Column(db.String(20))
    clinic_images = db.Column(db.JSON, nullable=False, default=list)
    rating = db.Column(db.Float)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    availability = db.relationship('VetAvailability', backref='vet', lazy=True,
                                   cascade='all, delete-orphan',
                                   order_by='VetAvailability.day_of_week')

    @property
    def is_bookable(self):
        return self.approval_status == ApprovalStatus.APPROVED.value

    def __repr__(self):
        return f'<VetProfile Dr. {self.first_name} {self.last_name} ({self.approval_status})>'


class VetAvailability(db.Model):
    __tablename__ = 'vet_availability'
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    vet_id = db.Column(db.String(36), db.ForeignKey('vet_profiles.id'), nullable=False, index=True)
    # 0 = Sunday ... 6 = Saturday
    day_of_week = db.Column(db.Integer, nullable=False)
    start_time = db.Column(db.Time, nullable=False)
    end_time = db.Column(db.Time, nullable=False)
    is_available = db.Column(db.Boolean, nullable=False, default=True)

    __table_args__ = (
        db.CheckConstraint('day_of_week BETWEEN 0 AND 6', name='ck_availability_day'),
        db.CheckConstraint('start_time < end_time', name='ck_availability_window'),
    )
