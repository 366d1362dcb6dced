from .user_model import Profile, Role, ADMIN_ROLES
from .vet_model import VetProfile, VetAvailability, ApprovalStatus
from .pet_model import Pet
from .booking_model import Booking
from .prescription_model import Prescription, PrescriptionStatus
from .transaction_model import Transaction, TransactionStatus
