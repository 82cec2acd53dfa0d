"""
API errors.

Every failure a route can report is an HTTPException subclass so handlers
keep raising and re-raising them the usual FastAPI way; main.py renders
them into the JSON envelope the frontend expects.
"""

from typing import Any, List, Optional

from fastapi import HTTPException


class ApiError(HTTPException):
    status_code_default = 500

    def __init__(self, message: str, errors: Optional[List[Any]] = None, error: Optional[str] = None):
        super().__init__(status_code=self.status_code_default, detail=message)
        self.message = message
        self.errors = errors
        self.error = error


class InvalidInput(ApiError):
    status_code_default = 400


class DuplicateField(ApiError):
    status_code_default = 400


class Conflict(ApiError):
    status_code_default = 400


class InvalidCredentials(ApiError):
    status_code_default = 400


class Unauthenticated(ApiError):
    status_code_default = 401


class Forbidden(ApiError):
    status_code_default = 403


class NotFound(ApiError):
    status_code_default = 404


class InternalError(ApiError):
    status_code_default = 500


class PayloadTooLarge(ApiError):
    status_code_default = 413
