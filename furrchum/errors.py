# Domain errors shared by the scheduling core, services and routes
import logging

logger = logging.getLogger(__name__)


class FurrchumError(Exception):
    status_code = 500

    def __init__(self, message=None):
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__

    def to_dict(self):
        return {'message': self.message, 'error': self.__class__.__name__}


class ValidationError(FurrchumError):
    """Malformed or missing input."""
    status_code = 400


class PermissionDenied(FurrchumError):
    status_code = 403


class NotFoundError(FurrchumError):
    status_code = 404


class ConflictError(FurrchumError):
    """The requested change would double-book a slot or repeat a one-time decision."""
    status_code = 409


class InvalidTransition(FurrchumError):
    """Booking state machine misuse."""
    status_code = 409

    def __init__(self, current, requested, message=None):
        self.current = current
        self.requested = requested
        super().__init__(message or f'Invalid transition from {current} to {requested}')

    def to_dict(self):
        data = super().to_dict()
        data.update({'current': self.current, 'requested': self.requested})
        return data


class ExternalServiceError(FurrchumError):
    """Email, meeting provider or payment gateway call failed."""
    status_code = 502


def register_error_handlers(api):
    @api.errorhandler(FurrchumError)
    def handle_domain_error(error):
        if error.status_code >= 500:
            logger.error(f'{error.__class__.__name__}: {error.message}')
        return error.to_dict(), error.status_code
