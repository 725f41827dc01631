"""Typed failures raised by the session store, repositories and status workflow.

Every error carries a human-readable message and the fields a client needs to
point the user at the problem (``field`` for form errors, ``entity``/``key``
for lookups).  None of them is fatal: the API layer turns each into a JSON
response and the caller may retry.
"""
from __future__ import annotations

from enum import Enum
from typing import Any


class PortalError(Exception):
    status_code: int = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def fields(self) -> dict[str, Any]:
        return {}

    def to_dict(self) -> dict[str, Any]:
        return {"detail": self.message, "error": type(self).__name__, **self.fields()}


class AuthErrorKind(str, Enum):
    INVALID_CREDENTIALS = "invalid_credentials"
    ACCOUNT_DISABLED = "account_disabled"
    ACCOUNT_NOT_FOUND = "account_not_found"
    NETWORK_FAILURE = "network_failure"
    WEAK_PASSWORD = "weak_password"
    EMAIL_IN_USE = "email_in_use"


_AUTH_STATUS = {
    AuthErrorKind.INVALID_CREDENTIALS: 401,
    AuthErrorKind.ACCOUNT_DISABLED: 403,
    AuthErrorKind.ACCOUNT_NOT_FOUND: 401,
    AuthErrorKind.NETWORK_FAILURE: 503,
    AuthErrorKind.WEAK_PASSWORD: 422,
    AuthErrorKind.EMAIL_IN_USE: 409,
}


class AuthError(PortalError):
    def __init__(self, kind: AuthErrorKind, message: str, field: str = "general"):
        super().__init__(message)
        self.kind = kind
        self.field = field
        self.status_code = _AUTH_STATUS[kind]

    def fields(self) -> dict[str, Any]:
        return {"kind": self.kind.value, "field": self.field}


class ValidationError(PortalError):
    status_code = 422

    def __init__(self, field: str, reason: str):
        super().__init__(f"{field}: {reason}")
        self.field = field
        self.reason = reason

    def fields(self) -> dict[str, Any]:
        return {"field": self.field, "reason": self.reason}


class DuplicateKey(PortalError):
    status_code = 409

    def __init__(self, entity: str, key: str, message: str | None = None):
        super().__init__(message or f"{entity} {key} already exists")
        self.entity = entity
        self.key = key

    def fields(self) -> dict[str, Any]:
        return {"entity": self.entity, "key": self.key}


class PermissionDenied(PortalError):
    status_code = 403

    def __init__(self, action: str, role: str | None, message: str | None = None):
        super().__init__(message or f"Role {role or 'anonymous'} may not {action}")
        self.action = action
        self.role = role

    def fields(self) -> dict[str, Any]:
        return {"action": self.action, "role": self.role}


class NotFound(PortalError):
    status_code = 404

    def __init__(self, entity: str, key: str):
        super().__init__(f"{entity} {key} not found")
        self.entity = entity
        self.key = key

    def fields(self) -> dict[str, Any]:
        return {"entity": self.entity, "key": self.key}


class AlreadyFinalized(PortalError):
    """The beneficiary already carries a terminal status."""

    status_code = 409

    def __init__(self, cnic: str, status: str):
        super().__init__(f"Beneficiary {cnic} is already {status} and cannot be changed")
        self.cnic = cnic
        self.status = status

    def fields(self) -> dict[str, Any]:
        return {"cnic": self.cnic, "status": self.status}


class AlreadyDistributed(PortalError):
    """Re-marking a picked-up package; callers treat this as a no-op."""

    status_code = 409

    def __init__(self, schedule_id: str, schedule: Any = None):
        super().__init__(f"Package {schedule_id} was already distributed")
        self.schedule_id = schedule_id
        self.schedule = schedule

    def fields(self) -> dict[str, Any]:
        return {"schedule_id": self.schedule_id}


class OperationInProgress(PortalError):
    status_code = 409

    def __init__(self, action: str, key: str):
        super().__init__(f"{action} for {key} is already in progress")
        self.action = action
        self.key = key

    def fields(self) -> dict[str, Any]:
        return {"action": self.action, "key": self.key}
