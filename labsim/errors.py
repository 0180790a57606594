"""Structured error helpers and the engine's denial taxonomy."""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import Request
from fastapi.responses import JSONResponse


def build_error_payload(code: str, message: str, details: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    payload = {"error": {"code": code, "message": message}}
    if details is not None:
        payload["error"]["details"] = details
    return payload


class AppError(Exception):
    """Application-scoped error for standardized API responses."""

    def __init__(self, status_code: int, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.status_code = status_code
        self.code = code
        self.message = message
        self.details = details
        self.payload = build_error_payload(code, message, details)


async def app_error_handler(_: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.payload)


# ---------------------------------------------------------------------------
# Engine taxonomy
#
# Raised synchronously from start/purchase entry points; never retried by the
# engine. Each carries one human-readable reason.
# ---------------------------------------------------------------------------


class EngineError(AppError):
    status_code = 400
    code = "engine_error"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None, code: Optional[str] = None):
        super().__init__(self.status_code, code or self.code, message, details)


class AdmissionDenied(EngineError):
    """Capacity, queue, cooldown or staff limits refused the request."""

    status_code = 409
    code = "admission_denied"

    def __init__(self, reason: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.reason = reason
        super().__init__(message, details={"reason": reason, **(details or {})}, code=self.code)


class Shortfall:
    """Missing amount of one resource."""

    __slots__ = ("resource", "required", "available")

    def __init__(self, resource: str, required: int, available: int):
        self.resource = resource
        self.required = required
        self.available = available

    @property
    def missing(self) -> int:
        return max(0, self.required - self.available)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "resource": self.resource,
            "required": self.required,
            "available": self.available,
            "shortfall": self.missing,
        }

    def describe(self) -> str:
        return f"missing {self.missing} {self.resource.replace('_', ' ')}"


class InsufficientResource(EngineError):
    """One or more resources fall short; every shortfall is reported."""

    status_code = 409
    code = "insufficient_resource"

    def __init__(self, shortfalls: List[Shortfall]):
        if not shortfalls:
            raise ValueError("InsufficientResource needs at least one shortfall")
        self.shortfalls = shortfalls
        first = shortfalls[0]
        self.resource = first.resource
        self.required = first.required
        self.available = first.available
        self.shortfall = first.missing
        message = "Not enough resources: " + ", ".join(s.describe() for s in shortfalls)
        super().__init__(message, details={"shortfalls": [s.as_dict() for s in shortfalls]})


class PrerequisiteUnmet(EngineError):
    """Level or dependency requirement not met."""

    status_code = 403
    code = "prerequisite_unmet"

    def __init__(self, message: str, requirement: str, details: Optional[Dict[str, Any]] = None):
        self.requirement = requirement
        super().__init__(message, details={"requirement": requirement, **(details or {})})


class AlreadyCompleted(EngineError):
    status_code = 409
    code = "already_completed"


class AlreadyInProgress(EngineError):
    status_code = 409
    code = "already_in_progress"


class NotFound(EngineError):
    status_code = 404
    code = "not_found"
