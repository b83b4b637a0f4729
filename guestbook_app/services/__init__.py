"""Services package — expose all concrete services from one import."""
from .guest_service import GuestService, GuestValidationError, MAX_NAME_LENGTH
from .visit_service import VisitCounter

__all__ = [
    'GuestService',
    'GuestValidationError',
    'MAX_NAME_LENGTH',
    'VisitCounter',
]
