"""
Auth error taxonomy.

Each error carries the HTTP status the API layer answers with. Messages are
fixed per class so a response never reveals which check failed inside
AuthenticationFailed.
"""

from __future__ import annotations


class AuthError(Exception):
    """Base exception for authentication/authorization failures."""

    status_code: int = 401
    message: str = "Not authorized."

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        if message:
            self.message = message


class MissingToken(AuthError):
    """No bearer token was presented."""

    status_code = 403
    message = "No token provided."


class MissingAccountId(AuthError):
    """No account id was claimed."""

    status_code = 400
    message = "User ID is required."


class AuthenticationFailed(AuthError):
    """
    Identity could not be established.

    Covers unknown tokens, tokens belonging to another account, and bad
    login credentials alike.
    """

    status_code = 401
    message = "Failed to authenticate token and user ID."


class Forbidden(AuthError):
    """Identity is established but the account does not own the resource."""

    status_code = 403
    message = "You do not have permission to modify this resource."


class DuplicateAccount(ValueError):
    """Username or email already taken."""
    pass
