"""
Token authentication and ownership authorization.

Flow for a mutating request:
1. `current_account` pulls the bearer token and claimed user id
2. `Authenticator.authenticate` resolves the token and matches the id
3. The route fetches the resource and calls `require_ownership`
4. Only then is the write applied
"""

from kitnet.auth.authenticator import Authenticator, LoginResult, Owned
from kitnet.auth.credentials import CredentialStore
from kitnet.auth.dependencies import (
    current_account,
    extract_token,
    get_authenticator,
    get_store,
)
from kitnet.auth.errors import (
    AuthError,
    AuthenticationFailed,
    DuplicateAccount,
    Forbidden,
    MissingAccountId,
    MissingToken,
)
from kitnet.auth.hashing import generate_token, hash_secret, verify_secret
from kitnet.auth.routes import router as auth_router

__all__ = [
    # Main interface
    "Authenticator",
    "CredentialStore",
    "LoginResult",
    "Owned",
    # FastAPI
    "current_account",
    "extract_token",
    "get_authenticator",
    "get_store",
    "auth_router",
    # Errors
    "AuthError",
    "AuthenticationFailed",
    "DuplicateAccount",
    "Forbidden",
    "MissingAccountId",
    "MissingToken",
    # Hashing
    "generate_token",
    "hash_secret",
    "verify_secret",
]
