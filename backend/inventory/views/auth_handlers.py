"""Auth endpoints: account registration and login."""

from __future__ import annotations

import json
from http import HTTPStatus
from typing import TYPE_CHECKING

from starlette.responses import JSONResponse

from shared.auth.service import CredentialsRequiredError, DuplicateUsernameError, InvalidCredentialsError
from shared.dal.errors import StorageError

if TYPE_CHECKING:
    from starlette.requests import Request

    from shared.auth.service import AuthService

_CREDENTIALS_REQUIRED = "Username and password are required."


async def _parse_json_body(request: Request) -> dict:
    """Parse a JSON object body. Anything else counts as an empty body."""
    try:
        body = await request.json()
    except (ValueError, json.JSONDecodeError):  # fmt: skip
        return {}
    if not isinstance(body, dict):
        return {}
    return body


def _read_credentials(body: dict) -> tuple[str, str] | None:
    username = body.get("username")
    password = body.get("password")
    if not isinstance(username, str) or not isinstance(password, str) or not username or not password:
        return None
    return username, password


def _message(text: str, status: HTTPStatus) -> JSONResponse:
    return JSONResponse({"message": text}, status_code=status)


async def register(request: Request) -> JSONResponse:
    """POST /register {username, password} - create an account."""
    auth_service: AuthService = request.app.state.auth_service
    credentials = _read_credentials(await _parse_json_body(request))
    if credentials is None:
        return _message(_CREDENTIALS_REQUIRED, HTTPStatus.BAD_REQUEST)

    try:
        await auth_service.register(*credentials)
    except CredentialsRequiredError as e:
        return _message(str(e), HTTPStatus.BAD_REQUEST)
    except DuplicateUsernameError:
        return _message("User already exists or registration failed.", HTTPStatus.BAD_REQUEST)
    except StorageError:
        return _message("Internal server error.", HTTPStatus.INTERNAL_SERVER_ERROR)
    return _message("User registered successfully!", HTTPStatus.OK)


async def login(request: Request) -> JSONResponse:
    """POST /login {username, password} - exchange credentials for a session token."""
    auth_service: AuthService = request.app.state.auth_service
    credentials = _read_credentials(await _parse_json_body(request))
    if credentials is None:
        return _message(_CREDENTIALS_REQUIRED, HTTPStatus.BAD_REQUEST)

    try:
        token = await auth_service.login(*credentials)
    except CredentialsRequiredError as e:
        return _message(str(e), HTTPStatus.BAD_REQUEST)
    except InvalidCredentialsError:
        return _message("Invalid credentials.", HTTPStatus.UNAUTHORIZED)
    except StorageError:
        return _message("Internal server error.", HTTPStatus.INTERNAL_SERVER_ERROR)
    return JSONResponse({"token": token})
