from furrchum import db
from furrchum.utils.util import new_id, utcnow


class Pet(db.Model):
    __tablename__ = 'pets'
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    owner_id = db.Column(db.String(36), db.ForeignKey('profiles.id'), nullable=False, index=True)
    name = db.Column(db.String(100), nullable=False)
    type = db.Column(db.String(50), nullable=False)
    breed = db.Column(db.String(50))
    age = db.Column(db.Integer)
    weight = db.Column(db.Float)
    gender = db.Column(db.String(20))
    allergies = db.Column(db.String(300))
    medication = db.Column(db.String(300))
    vaccination_status = db.Column(db.String(50))
    medical_history = db.Column(db.Text)
    photo_url = db.Column(db.String(255))
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    def __repr__(self):
        return f'<Pet {self.name} ({self.type})>'
