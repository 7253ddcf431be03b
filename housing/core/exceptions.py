"""
Application exceptions.

Every business rule violation raised by the occupancy engine, the unit
registry or a route is a HousingError subclass. The kind is carried by
`error_code` so callers (the HTTP layer, bulk ImportLog rows) can tell
failures apart without parsing messages.
"""
from enum import Enum
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse


class ErrorCode(str, Enum):
    NOT_FOUND = "NOT_FOUND"
    CAPACITY_EXCEEDED = "CAPACITY_EXCEEDED"
    POPULATION_MISMATCH = "POPULATION_MISMATCH"
    MISSING_FIELD = "MISSING_FIELD"
    INVALID_FIELD = "INVALID_FIELD"
    NOT_ASSIGNED = "NOT_ASSIGNED"
    DUPLICATE_CODE = "DUPLICATE_CODE"
    CONFLICT = "CONFLICT"
    SERVICE_UNAVAILABLE = "SERVICE_UNAVAILABLE"
    EXTERNAL_SERVICE_ERROR = "EXTERNAL_SERVICE_ERROR"


class HousingError(Exception):
    """Base class for all housing exceptions."""

    error_code: ErrorCode = ErrorCode.CONFLICT
    status_code: int = 400

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": {
                "code": self.error_code.value,
                "message": self.message,
                "details": self.details,
            }
        }

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={self.message!r}, error_code={self.error_code.value!r})"


class NotFoundError(HousingError):
    error_code = ErrorCode.NOT_FOUND
    status_code = 404

    def __init__(self, entity: str, identifier: Any = None):
        self.entity = entity
        message = f"{entity.capitalize()} not found"
        if identifier is not None:
            message = f"{entity.capitalize()} {identifier} not found"
        super().__init__(message, {"entity": entity, "identifier": identifier})


class CapacityExceededError(HousingError):
    error_code = ErrorCode.CAPACITY_EXCEEDED
    status_code = 409

    def __init__(self, available: int, requested: int, unit_code: Optional[str] = None):
        self.available = available
        self.requested = requested
        where = f"unit {unit_code}" if unit_code else "unit"
        super().__init__(
            f"Not enough free beds in {where}: available {available}, requested {requested}",
            {"available": available, "requested": requested, "unit_code": unit_code},
        )


class PopulationMismatchError(HousingError):
    error_code = ErrorCode.POPULATION_MISMATCH
    status_code = 422

    def __init__(self, expected_unit_type: str, resident_type: str):
        self.expected_unit_type = expected_unit_type
        super().__init__(
            f"{resident_type.capitalize()} residents can only be housed in a {expected_unit_type}",
            {"expected_unit_type": expected_unit_type, "resident_type": resident_type},
        )


class MissingFieldError(HousingError):
    error_code = ErrorCode.MISSING_FIELD
    status_code = 422

    def __init__(self, field: str):
        self.field = field
        super().__init__(f"Field '{field}' is required", {"field": field})


class InvalidFieldError(HousingError):
    error_code = ErrorCode.INVALID_FIELD
    status_code = 422

    def __init__(self, field: str, value: Any):
        self.field = field
        super().__init__(f"Field '{field}' has an invalid value: {value!r}", {"field": field, "value": str(value)})


class NotAssignedError(HousingError):
    error_code = ErrorCode.NOT_ASSIGNED
    status_code = 409

    def __init__(self, resident_name: str, unit_code: Optional[str] = None):
        if unit_code:
            message = f"Resident {resident_name} is not housed in unit {unit_code}"
        else:
            message = f"Resident {resident_name} is not currently housed in any unit"
        super().__init__(message, {"resident": resident_name, "unit_code": unit_code})


class DuplicateCodeError(HousingError):
    error_code = ErrorCode.DUPLICATE_CODE
    status_code = 409

    def __init__(self, entity: str, code: str):
        self.code = code
        super().__init__(f"{entity.capitalize()} code {code} already exists", {"entity": entity, "code": code})


class ConflictError(HousingError):
    error_code = ErrorCode.CONFLICT
    status_code = 409

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason, {"reason": reason})


class ServiceUnavailableError(HousingError):
    error_code = ErrorCode.SERVICE_UNAVAILABLE
    status_code = 503


class ExternalServiceError(HousingError):
    error_code = ErrorCode.EXTERNAL_SERVICE_ERROR
    status_code = 502


async def housing_error_handler(request: Request, exc: HousingError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(HousingError, housing_error_handler)
