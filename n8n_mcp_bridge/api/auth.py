"""
Authentication Utilities
=======================

Optional shared bearer-token gate for the MCP endpoints.
"""

import secrets
from typing import Optional

from fastapi import Depends, HTTPException, Query, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from n8n_mcp_bridge.config.settings import Settings, get_settings

bearer_scheme = HTTPBearer(auto_error=False)


def get_request_settings(request: Request) -> Settings:
    """Settings bound to the running app, falling back to the global settings."""
    return getattr(request.app.state, "settings", None) or get_settings()


async def validate_bearer_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    token: Optional[str] = Query(None, description="Token for clients that cannot set headers"),
) -> Optional[str]:
    """
    Validate the bearer token when one is configured.

    EventSource clients cannot set headers, so ``?token=`` is accepted too.

    Args:
        request: FastAPI request
        credentials: Parsed ``Authorization: Bearer`` header
        token: Token from the query string

    Returns:
        The accepted token, or None when the gate is disabled

    Raises:
        HTTPException: 401 when the token is missing or wrong
    """
    expected = get_request_settings(request).auth_token
    if not expected:
        return None

    supplied = credentials.credentials if credentials else token
    if not supplied:
        raise HTTPException(
            status_code=401,
            detail={"error": "missing_bearer"},
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not secrets.compare_digest(supplied.encode(), expected.encode()):
        raise HTTPException(
            status_code=401,
            detail={"error": "invalid_token"},
            headers={"WWW-Authenticate": "Bearer"},
        )

    return supplied
