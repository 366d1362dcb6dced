import enum
from furrchum import db
from furrchum.utils.util import new_id, utcnow


class Role(enum.Enum):
    PET_OWNER = 'pet_owner'
    VET = 'vet'
    ADMIN = 'admin'
    SUPERADMIN = 'superadmin'


ADMIN_ROLES = (Role.ADMIN, Role.SUPERADMIN)


class Profile(db.Model):
    __tablename__ = 'profiles'
    id = db.Column(db.String(36), primary_key=True, default=new_id)
    email = db.Column(db.String(120), unique=True, nullable=False)
    password = db.Column(db.String(200), nullable=False)
    full_name = db.Column(db.String(120), nullable=False)
    user_type = db.Column(db.Enum(Role), nullable=False, default=Role.PET_OWNER)
    phone_number = db.Column(db.String(30))
    address = db.Column(db.String(300))
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    vet_profile = db.relationship('VetProfile', backref='profile', uselist=False, lazy=True,
                                  foreign_keys='VetProfile.id')
    pets = db.relationship('Pet', backref='owner', lazy=True)

    def __repr__(self):
        return f'<Profile {self.email} ({self.user_type})>'
