"""
Translation of service errors into JSON responses of the form
`{"message": ..., "errors": [...]}`.
"""

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from structlog import get_logger

from groupadmin.core.tokens import KeyDecodeError, KeyExpiredError
from groupadmin.core.validation import Violation
from groupadmin.service.groups import GroupServiceError
from groupadmin.service.mail import MailDeliveryError
from groupadmin.service.roles import RoleExistsError


def error_response(
    status_code: int, message: str, errors: list | None = None
) -> JSONResponse:
    content = {"message": message}

    if errors is not None:
        content["errors"] = [
            e.model_dump() if hasattr(e, "model_dump") else e for e in errors
        ]

    return JSONResponse(status_code=status_code, content=content)


async def group_service_error_handler(request: Request, exc: GroupServiceError):
    return error_response(exc.status_code, exc.message, exc.errors)


async def request_validation_handler(request: Request, exc: RequestValidationError):
    errors = [
        Violation(
            field=".".join(str(x) for x in error["loc"] if x != "body"),
            message=error["msg"],
        )
        for error in exc.errors()
    ]
    return error_response(
        status.HTTP_400_BAD_REQUEST, "Input data validation failed", errors
    )


async def role_exists_handler(request: Request, exc: RoleExistsError):
    return error_response(status.HTTP_409_CONFLICT, str(exc))


async def mail_delivery_handler(request: Request, exc: MailDeliveryError):
    await get_logger().aerror("mail.delivery_failed", path=request.url.path)
    return error_response(status.HTTP_502_BAD_GATEWAY, "Message could not be sent")


async def key_error_handler(request: Request, exc: KeyDecodeError | KeyExpiredError):
    return error_response(status.HTTP_401_UNAUTHORIZED, str(exc) or "Invalid token")


def add_exception_handlers(app: FastAPI) -> FastAPI:
    app.add_exception_handler(GroupServiceError, group_service_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(RoleExistsError, role_exists_handler)
    app.add_exception_handler(MailDeliveryError, mail_delivery_handler)
    app.add_exception_handler(KeyDecodeError, key_error_handler)
    app.add_exception_handler(KeyExpiredError, key_error_handler)
    return app
