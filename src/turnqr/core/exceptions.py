from __future__ import annotations

from .enums import RejectionReason


class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class AuthenticationError(DomainError):
    """Raised when login credentials are invalid."""


class AuthorizationError(DomainError):
    """Raised when a user lacks permission for an action."""


class NotFoundError(DomainError):
    """Raised when the target record no longer exists."""


class ConcurrentUpdateError(DomainError):
    """Raised when a record changed since it was read."""


class BackendError(DomainError):
    """Raised when the data store fails or returns malformed data."""


class OpenSessionExists(DomainError):
    """Raised by repositories when an employee already has an open session."""


_REJECTION_MESSAGES = {
    RejectionReason.UNCONFIGURED: "QR no configurado. Contacta con el administrador.",
    RejectionReason.ABSENT: "Debes escanear el QR del local para fichar.",
    RejectionReason.MISMATCHED: "Debes escanear el QR del local para fichar.",
    RejectionReason.UNASSIGNED_LOCATION: "Este local no está asignado a tu perfil.",
}


class TokenRejected(DomainError):
    """Raised when a QR token does not authorize a clock action."""

    def __init__(self, reason: RejectionReason, message: str | None = None):
        super().__init__(message or _REJECTION_MESSAGES[reason])
        self.reason = reason
