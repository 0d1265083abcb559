"""FastAPI dependencies for API authentication."""

from typing import Annotated

from fastapi import Header, HTTPException, Request

from menu_import_service.auth.api_key_validator import APIKeyValidator


def require_api_key(
    request: Request,
    x_api_key: Annotated[str | None, Header()] = None,
) -> str:
    """Validate the X-API-Key header against the app's validator.

    The validator is read from ``request.app.state.api_key_validator``.

    Raises:
        HTTPException: 401 if the key is missing or invalid
    """
    if not x_api_key:
        raise HTTPException(status_code=401, detail="Missing API key")

    validator: APIKeyValidator = request.app.state.api_key_validator
    if not validator.validate(x_api_key):
        raise HTTPException(status_code=401, detail="Invalid API key")

    return x_api_key
