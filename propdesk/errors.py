"""Exceptions raised by the domain package and shown by the views."""


class PropDeskError(Exception):
    """Base class for all Property Desk errors."""


class ValidationError(PropDeskError):
    """User input that cannot be stored or calculated with."""


class RecordNotFound(PropDeskError):
    """Lookup of an id that is not in the store."""


class BankImportError(PropDeskError):
    """Bank statement CSV that cannot be imported."""


class AssistantError(PropDeskError):
    """AI assistant not configured, request failed, or unusable answer."""
