from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, EmailStr, Field

from src.backend.domain.models.user import User, UserRole
from src.backend.infra.latency import latency_dependency
from src.backend.security import get_current_user, get_session_token
from src.backend.services.audit.service import audit_service
from src.backend.services.users.service import user_service

router = APIRouter(
    prefix="/auth",
    tags=["auth"],
    dependencies=[Depends(latency_dependency)],
)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)


class RegisterRequest(BaseModel):
    name: str = Field(min_length=1)
    email: EmailStr
    password: str = Field(min_length=1)
    role: UserRole


class AuthResponse(BaseModel):
    token: str
    user: User


@router.post("/login", response_model=AuthResponse)
async def login(payload: LoginRequest) -> AuthResponse:
    try:
        token, user = user_service.login(email=payload.email, password=payload.password)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    audit_service.log_event(
        action="login",
        resource_type="user",
        resource_id=user.id,
        subject=user.id,
        extra={"role": user.role.value},
    )

    return AuthResponse(token=token, user=user)


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(payload: RegisterRequest) -> AuthResponse:
    try:
        token, user = user_service.register(
            name=payload.name,
            email=payload.email,
            password=payload.password,
            role=payload.role,
        )
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    audit_service.log_event(
        action="register",
        resource_type="user",
        resource_id=user.id,
        subject=user.id,
        extra={"role": user.role.value},
    )

    return AuthResponse(token=token, user=user)


@router.get("/me", response_model=User)
async def me(current_user: User = Depends(get_current_user)) -> User:
    return current_user


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    token: str = Depends(get_session_token),
    current_user: User = Depends(get_current_user),
) -> None:
    user_service.logout(token)

    audit_service.log_event(
        action="logout",
        resource_type="user",
        resource_id=current_user.id,
    )
