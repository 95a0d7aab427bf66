class HallsmartError(Exception):
    """Base class for business-rule failures."""


class NotFoundError(HallsmartError):
    pass


class ValidationError(HallsmartError):
    pass


class PermissionDenied(HallsmartError):
    pass


class InvalidTransition(HallsmartError):
    """A change request is no longer pending."""
