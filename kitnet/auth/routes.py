# =============================================================================
# Auth API Routes
# =============================================================================
#
# Endpoints:
#   POST /api/register     - Create account (and its empty profile)
#   POST /api/login        - Verify password, get a fresh bearer token
#   POST /api/verifyToken  - Check a token/user id pair
#
# =============================================================================

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, EmailStr

from kitnet.auth.authenticator import Authenticator
from kitnet.auth.dependencies import get_authenticator
from kitnet.auth.errors import DuplicateAccount

router = APIRouter(prefix="/api", tags=["auth"])


# =============================================================================
# Request Models
# =============================================================================

class RegisterRequest(BaseModel):
    username: str | None = None
    password: str | None = None
    email: EmailStr | None = None


class LoginRequest(BaseModel):
    username: str | None = None
    password: str | None = None


class VerifyTokenRequest(BaseModel):
    userId: Any = None
    token: str | None = None


# =============================================================================
# Endpoints
# =============================================================================

@router.post("/register")
async def register(
    data: RegisterRequest,
    authenticator: Authenticator = Depends(get_authenticator),
):
    """Create a new account. Returns the new account id."""
    if not data.username or not data.password or not data.email:
        return JSONResponse(
            status_code=400,
            content={"success": False, "message": "All fields are required."},
        )

    try:
        account = await authenticator.credentials.register(
            data.username, data.password, data.email
        )
    except ValueError as e:
        # DuplicateAccount, or a password bcrypt refuses
        message = str(e) if isinstance(e, DuplicateAccount) else "Password is too long."
        return JSONResponse(status_code=400, content={"success": False, "message": message})

    return JSONResponse(status_code=201, content={"success": True, "userId": account.id})


@router.post("/login")
async def login(
    data: LoginRequest,
    authenticator: Authenticator = Depends(get_authenticator),
):
    """
    Authenticate and get a bearer token.

    The token is returned only here. Logging in again replaces it.
    """
    if not data.username or not data.password:
        return JSONResponse(status_code=400, content={"success": False})

    result = await authenticator.login(data.username, data.password)
    return {
        "success": True,
        "userId": result.account_id,
        "nameofuser": result.username,
        "token": result.token,
    }


@router.post("/verifyToken")
async def verify_token(
    data: VerifyTokenRequest,
    authenticator: Authenticator = Depends(get_authenticator),
):
    """Check that a token is live and belongs to the given user id."""
    await authenticator.authenticate(data.token, data.userId)
    return {"success": True, "message": "Token and User ID verified successfully."}
