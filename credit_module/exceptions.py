"""Exception hierarchy for the credit module."""


class CreditModuleError(Exception):
    """Base exception for all credit module errors."""


class NotFoundError(CreditModuleError):
    """Raised when a customer or loan id does not resolve."""


class InvalidArgumentError(CreditModuleError, ValueError):
    """Raised when loan or payment parameters are outside the allowed values."""


class InsufficientCreditError(CreditModuleError):
    """Raised when the customer's available credit is below the requested total."""


class AuthenticationError(CreditModuleError):
    """Raised when a username/password pair cannot be verified."""
