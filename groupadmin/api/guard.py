"""
Authentication guard for the API.

Access tokens arrive either as a `Bearer` token in the `Authorization` header
or as the `access_token` cookie. To use the dependencies:

```
from groupadmin.api.guard import AuthenticatedUserDependency

# Raises a 401 HTTPException if there is no valid token
@router.get("/completely_secure")
async def secure_endpoint(user: AuthenticatedUserDependency):
    assert user.is_authenticated
```
"""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from pydantic import BaseModel, Field
from structlog import get_logger

from groupadmin.core.tokens import KeyDecodeError, KeyExpiredError, decode_access_token
from groupadmin.core.uuid import UUID

from .dependencies import SettingsDependency

ACCESS_TOKEN_NAME = "access_token"


class RequestUser(BaseModel):
    is_authenticated: bool = False
    user_id: UUID | None = None
    user_name: str | None = None
    email: str | None = None
    group_name: str | None = None
    grants: set[str] = Field(default_factory=set)


async def handle_user(request: Request, settings: SettingsDependency) -> RequestUser:
    """
    Decode the access token, if any. You will _always_ be returned a
    `RequestUser`; check whether or not it `is_authenticated`.

    Raises
    ------
    KeyDecodeError
        If a token is present but malformed or badly signed.
    KeyExpiredError
        If a token is present but expired.
    """
    log = get_logger()
    log = log.bind(client=request.client)

    if "Authorization" in request.headers:
        contents = request.headers["Authorization"].split(" ")
        if len(contents) != 2 or contents[0] != "Bearer":
            log.debug("guard.auth.bad_header")
            raise KeyDecodeError("Invalid authorization header")
        access_token = contents[1]
    elif ACCESS_TOKEN_NAME in request.cookies:
        access_token = request.cookies[ACCESS_TOKEN_NAME]
    else:
        log.debug("guard.auth.no_token")
        return RequestUser(is_authenticated=False)

    try:
        user_data = decode_access_token(
            encrypted_access_token=access_token,
            secret=settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
        )
    except KeyDecodeError as e:
        log.debug("guard.auth.no_decode")
        raise e
    except KeyExpiredError as e:
        log.debug("guard.auth.expired")
        raise e

    user = RequestUser(
        is_authenticated=True,
        user_id=user_data.user_id,
        user_name=user_data.user_name,
        email=user_data.email,
        group_name=user_data.group_name,
        grants=user_data.grants,
    )

    log.debug("guard.auth.success", user_id=user.user_id)

    return user


async def handle_authenticated_user(
    request: Request, settings: SettingsDependency
) -> RequestUser:
    """
    The same as `handle_user` but raises a 401 if there is no user, whatever
    the reason.
    """
    try:
        user = await handle_user(request=request, settings=settings)
    except (KeyDecodeError, KeyExpiredError) as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail=str(e)
        ) from e

    if not user.is_authenticated:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="Log in first"
        )

    return user


AuthenticatedUserDependency = Annotated[
    RequestUser, Depends(handle_authenticated_user)
]


async def handle_admin_user(
    user: AuthenticatedUserDependency, settings: SettingsDependency
) -> RequestUser:
    """
    Require the admin grant on top of authentication; raises a 403 otherwise.
    """
    if settings.admin_grant not in user.grants:
        get_logger().warning(
            "guard.auth.access_denied", user_id=user.user_id, grant=settings.admin_grant
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail="Access denied"
        )

    return user


AdminUserDependency = Annotated[RequestUser, Depends(handle_admin_user)]
