"""
Typed errors raised by the sharing, resolver and enrollment services.

Capability checks never raise these; they return False/None instead.
Mutations raise them and the API layer renders them with
``creator_hub_error_handler``.
"""

from __future__ import annotations

from fastapi import Request
from fastapi.responses import JSONResponse

from creator_hub_shared.schemas.common import ErrorBody, ErrorResponse


class CreatorHubError(Exception):
    code = "ERROR"
    status_code = 400

    def __init__(self, message: str = ""):
        super().__init__(message or self.code)
        self.message = message or self.code


class InvalidRoleError(CreatorHubError):
    code = "INVALID_ROLE"
    status_code = 422


class InvalidEmailError(CreatorHubError):
    code = "INVALID_EMAIL"
    status_code = 422


class SelfInviteError(CreatorHubError):
    code = "SELF_INVITE"
    status_code = 422


class NotFoundError(CreatorHubError):
    code = "NOT_FOUND"
    status_code = 404


class PermissionDeniedError(CreatorHubError):
    code = "PERMISSION_DENIED"
    status_code = 403


class ShareStateError(CreatorHubError):
    code = "INVALID_SHARE_STATE"
    status_code = 409


class StoreError(CreatorHubError):
    """Wraps any failure of the underlying record store."""

    code = "STORE_ERROR"
    status_code = 503


async def creator_hub_error_handler(request: Request, exc: CreatorHubError) -> JSONResponse:
    body = ErrorResponse(
        error=ErrorBody(code=exc.code, message=exc.message, status=exc.status_code)
    )
    return JSONResponse(status_code=exc.status_code, content=body.model_dump())
