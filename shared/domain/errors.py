"""
Domain Errors

Typed failures raised by the booking core. The request layer maps each
kind to a response; the core never retries them except for
ConcurrentWriteError inside the bounded retry loop.

Hierarchy:
- DomainError
  - ValidationError (InvalidAmount, InvalidMethod, InvalidStatus, InvalidDuration)
  - Forbidden
  - NotFound
  - InvalidTransition
  - Conflict
  - InternalError
  - ConcurrentWriteError
"""


class DomainError(Exception):
    """Base class for every error raised by the core."""

    code = 'domain_error'
    default_message = 'Domain error'

    def __init__(self, message: str | None = None, **details):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> dict:
        payload = {'code': self.code, 'message': self.message}
        if self.details:
            payload['details'] = self.details
        return payload


class ValidationError(DomainError):
    """Malformed or out-of-range input."""

    code = 'validation_error'
    default_message = 'Invalid input'


class InvalidAmount(ValidationError):
    code = 'invalid_amount'
    default_message = 'Invalid payment amount'


class InvalidMethod(ValidationError):
    code = 'invalid_method'
    default_message = 'Invalid payment method'


class InvalidStatus(ValidationError):
    code = 'invalid_status'
    default_message = 'Invalid payment status'


class InvalidDuration(ValidationError):
    code = 'invalid_duration'
    default_message = 'Invalid number of nights'


class Forbidden(DomainError):
    """Permission or role-rank check failed."""

    code = 'forbidden'
    default_message = 'Forbidden'


class NotFound(DomainError):
    """
    Referenced object is absent or belongs to another tenant.

    The two cases are deliberately indistinguishable to the caller.
    """

    code = 'not_found'
    default_message = 'Not found'


class InvalidTransition(DomainError):
    code = 'invalid_transition'
    default_message = 'Invalid booking status transition'


class Conflict(DomainError):
    """Availability overlap, exhausted write retries or duplicate key."""

    code = 'conflict'
    default_message = 'Conflict'


class InternalError(DomainError):
    """Persistence or collaborator failure."""

    code = 'internal_error'
    default_message = 'Internal error'


class ConcurrentWriteError(DomainError):
    """A conditional write lost against a concurrent writer; safe to retry."""

    code = 'concurrent_write'
    default_message = 'Concurrent modification detected'
