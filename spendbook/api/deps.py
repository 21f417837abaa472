# spendbook/api/deps.py
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from spendbook.core.auth import TokenVerifier
from spendbook.core.exceptions import Unauthorized

# Security scheme; errors are raised by get_current_user instead
optional_security = HTTPBearer(auto_error=False)

# Cookie the identity provider's frontend SDK stores the session token in
SESSION_COOKIE = "__session"


def get_token_verifier(request: Request) -> TokenVerifier:
    return request.app.state.token_verifier


def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(optional_security),
    verifier: TokenVerifier = Depends(get_token_verifier),
) -> str:
    """
    Resolve the caller's identity from the session token.

    The token is taken from the Authorization header, falling back to the
    session cookie. Declared sync so FastAPI runs the (possibly networked)
    verification in its threadpool. Returns the owner id.
    """
    token = None
    if credentials and credentials.credentials:
        token = credentials.credentials

    if not token:
        token = request.cookies.get(SESSION_COOKIE)

    if not token:
        raise Unauthorized()

    return verifier.verify(token)
