"""
Tools for encoding and decoding access tokens (JWTs).
"""

from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from pydantic import ValidationError

from groupadmin.core.user import UserData
from groupadmin.core.uuid import UUID


class KeyDecodeError(Exception):
    pass


class KeyExpiredError(Exception):
    pass


def filter_payload_item_for_serialization(p) -> Any:
    match p:
        case UUID():
            return p.hex
        case set():
            return sorted(p)
        case _:
            return p


def encode_access_token(
    user: UserData,
    secret: str,
    algorithm: str,
    expiry: timedelta,
) -> str:
    """
    Sign an access token for `user`.

    Parameters
    ----------
    user
        The user the token identifies.
    secret
        The signing secret.
    algorithm
        The PyJWT algorithm name (e.g. HS256).
    expiry
        How long the token remains valid for.
    """
    current_time = datetime.now(timezone.utc)

    payload = {
        x: filter_payload_item_for_serialization(p)
        for x, p in user.model_dump().items()
    }
    payload["iat"] = current_time
    payload["exp"] = current_time + expiry

    return jwt.encode(payload=payload, key=secret, algorithm=algorithm)


def decode_access_token(
    encrypted_access_token: str | bytes, secret: str, algorithm: str
) -> UserData:
    """
    Raises
    ------
    KeyDecodeError
        When there is a problem decoding the key
    KeyExpiredError
        When the key has expired
    """
    try:
        payload = jwt.decode(
            jwt=encrypted_access_token,
            key=secret,
            algorithms=[algorithm],
            options={"require": ["exp"]},
        )
    except jwt.ExpiredSignatureError:
        raise KeyExpiredError("Access token has expired")
    except jwt.InvalidTokenError as e:
        raise KeyDecodeError(f"Error decoding access token: {e}")

    try:
        return UserData.model_validate(payload)
    except ValidationError:
        raise KeyDecodeError("Error reconstructing the user model")
