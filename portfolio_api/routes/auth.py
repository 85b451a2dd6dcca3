"""
Auth routes: login, current user, profile and password.
"""

import logging

from fastapi import APIRouter, Request

from ..auth import CurrentUser
from ..rate_limit import client_ip
from ..schemas import (
    ChangePasswordRequest,
    LoginRequest,
    ProfileUpdateRequest,
    UserResponse,
    envelope,
)
from ..services import AuthServiceDep

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login")
async def login(request: Request, body: LoginRequest, service: AuthServiceDep) -> dict:
    """Exchange username and password for a bearer token."""
    user, token = service.login(body.username, body.password, client_ip=client_ip(request))
    return envelope(
        {"user": UserResponse.from_db(user).model_dump(), "token": token},
        message="Login successful",
    )


@router.get("/me")
async def get_me(user: CurrentUser) -> dict:
    return envelope({"user": UserResponse.from_db(user).model_dump()})


@router.put("/profile")
async def update_profile(body: ProfileUpdateRequest, user: CurrentUser, service: AuthServiceDep) -> dict:
    updated = service.update_profile(user, body.email)
    return envelope(
        {"user": UserResponse.from_db(updated).model_dump()},
        message="Profile updated successfully",
    )


@router.put("/change-password")
async def change_password(body: ChangePasswordRequest, user: CurrentUser, service: AuthServiceDep) -> dict:
    service.change_password(user, body.current_password, body.new_password)
    return envelope(message="Password updated successfully")


@router.post("/logout")
async def logout(user: CurrentUser) -> dict:
    """Tokens are stateless; the client discards its copy."""
    logger.info(f"User {user.username} logged out")
    return envelope(message="Logout successful")
