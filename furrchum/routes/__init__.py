from .auth_routes import auth_ns
from .pet_routes import pet_ns
from .vet_routes import vet_ns
from .booking_routes import booking_ns
from .prescription_routes import prescription_ns
from .transaction_routes import transaction_ns
from .dashboard_routes import dashboard_ns
from .notification_routes import notification_ns


def register_namespaces(api):
    api.add_namespace(auth_ns, path='/auth')
    api.add_namespace(pet_ns, path='/pets')
    api.add_namespace(vet_ns, path='/vets')
    api.add_namespace(booking_ns, path='/bookings')
    api.add_namespace(prescription_ns, path='/prescriptions')
    api.add_namespace(transaction_ns, path='/transactions')
    api.add_namespace(dashboard_ns, path='/dashboard')
    api.add_namespace(notification_ns, path='/notifications')
