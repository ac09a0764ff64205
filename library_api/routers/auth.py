from fastapi import APIRouter, Depends, Request

from library_api import auth, models, schemas
from library_api.dependencies import get_account_service
from library_api.rate_limiter import default_limit, limiter
from library_api.services import AccountService

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post("/register", response_model=schemas.TokenResponse)
@limiter.limit(default_limit)
def register(
    request: Request,
    payload: schemas.RegisterRequest,
    accounts: AccountService = Depends(get_account_service),
):
    token, refresh_token = accounts.register(
        user_name=payload.user_name,
        email=payload.email,
        full_name=payload.full_name,
        password=payload.password,
        role=payload.role,
    )
    return schemas.TokenResponse(token=token, refresh_token=refresh_token)


@router.post("/login", response_model=schemas.TokenResponse)
@limiter.limit(default_limit)
def login(
    request: Request,
    payload: schemas.LoginRequest,
    accounts: AccountService = Depends(get_account_service),
):
    token, refresh_token = accounts.login(payload.email, payload.password)
    return schemas.TokenResponse(token=token, refresh_token=refresh_token)


@router.post("/refresh", response_model=schemas.TokenResponse)
@limiter.limit(default_limit)
def refresh(
    request: Request,
    payload: schemas.RefreshTokenRequest,
    accounts: AccountService = Depends(get_account_service),
):
    token, refresh_token = accounts.refresh(payload.refresh_token, payload.token)
    return schemas.TokenResponse(token=token, refresh_token=refresh_token)


@router.post("/logout", response_model=schemas.MessageResponse)
@limiter.limit(default_limit)
def logout(
    request: Request,
    user: models.User = Depends(auth.get_current_user),
    accounts: AccountService = Depends(get_account_service),
):
    accounts.logout(user)
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=schemas.UserPublic)
@limiter.limit(default_limit)
def me(request: Request, user: models.User = Depends(auth.get_current_user)):
    return schemas.UserPublic(
        id=user.id,
        user_name=user.user_name,
        email=user.email,
        full_name=user.full_name,
        roles=user.role_names,
    )
