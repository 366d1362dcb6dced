import enum
from furrchum import db
from furrchum.utils.util import new_id, utcnow


class PrescriptionStatus(enum.Enum):
    ACTIVE = 'active'
    COMPLETED = 'completed'
    DISCONTINUED = 'discontinued'


class Prescription(db.Model):
    __tablename__ = 'prescriptions'
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    vet_id = db.Column(db.String(36), db.ForeignKey('vet_profiles.id'), nullable=False, index=True)
    pet_id = db.Column(db.String(36), db.ForeignKey('pets.id'), nullable=False, index=True)
    pet_owner_id = db.Column(db.String(36), db.ForeignKey('profiles.id'), nullable=False, index=True)
    medication_name = db.Column(db.String(200), nullable=False)
    dosage = db.Column(db.String(100), nullable=False)
    frequency = db.Column(db.String(100), nullable=False)
    duration = db.Column(db.String(100))
    diagnosis = db.Column(db.Text)
    instructions = db.Column(db.Text)
    status = db.Column(db.String(20), nullable=False, default=PrescriptionStatus.ACTIVE.value)
    prescribed_date = db.Column(db.Date, nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    pet = db.relationship('Pet', lazy=True)
    vet = db.relationship('VetProfile', lazy=True)

    def __repr__(self):
        return f'<Prescription {self.medication_name} for {self.pet_id} ({self.status})>'
