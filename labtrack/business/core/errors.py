"""
Domain exceptions for LabTrack business logic

These exceptions represent business rule violations and domain-specific errors.
They are raised by the business layer and mapped to JSON responses by
labtrack.presentation.errors.
"""


class LabDomainError(Exception):
    """Base exception for all LabTrack domain errors"""
    kind = 'domain_error'
    http_status = 400

    def __init__(self, message, details=None):
        super().__init__(message)
        self.message = message
        self.details = list(details or [])


class LabValidationError(LabDomainError):
    """Raised when input is missing, malformed or references unknown records"""
    kind = 'validation_error'
    http_status = 400


class LabAuthorizationError(LabDomainError):
    """Raised when the caller is outside the allowed scope or lacks the role"""
    kind = 'forbidden'
    http_status = 403


class LabNotFoundError(LabDomainError):
    """Raised when a requested entity does not exist"""
    kind = 'not_found'
    http_status = 404


class LabUniquenessError(LabDomainError):
    """Raised when a unique value (property tag, lab name, workstation name) is taken"""
    kind = 'conflict'
    http_status = 409


class LabTransitionError(LabDomainError):
    """Raised when a state transition is invalid or not allowed"""
    kind = 'invalid_transition'
    http_status = 409
