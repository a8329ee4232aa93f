"""Auth Routes — registration and login.

Invariants:
    - POST /register → 201 {user_id}; duplicate username/email → 409
    - POST /login → {access_token, token_type}; bad credentials → 401
"""

import logging

from fastapi import APIRouter, Depends, status

from ember.api.deps import get_account_service
from ember.schemas.user import (
    LoginRequest, RegisterRequest, RegisterResponse, TokenResponse,
)
from ember.services.account_service import AccountService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


@router.post(
    "/register", response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register(
    body: RegisterRequest,
    accounts: AccountService = Depends(get_account_service),
):
    """Create an account."""
    user = await accounts.register(
        body.username, body.email, body.password, body.display_name,
    )
    return RegisterResponse(user_id=user.id)


@router.post("/login", response_model=TokenResponse)
async def login(
    body: LoginRequest,
    accounts: AccountService = Depends(get_account_service),
):
    """Exchange email + password for an access token."""
    token = await accounts.login(body.email, body.password)
    return TokenResponse(access_token=token)
