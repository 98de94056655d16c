# Authentication router
from typing import Optional

from fastapi import APIRouter, Depends, Header
from sqlalchemy.orm import Session

from bloodbank.database import get_db
from bloodbank.models.schemas import (
    UserCreate,
    UserLogin,
    AuthResponse,
    TokenValidationRequest,
    TokenValidationResponse,
    UserResponse
)
from bloodbank.services import auth_service
from bloodbank.services.access_filter import BEARER_PREFIX

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post("/register", response_model=AuthResponse)
def register(user_data: UserCreate, db: Session = Depends(get_db)):
    """
    Register a new user and return a token for it.

    Raises:
        DuplicateIdentityException: If the username or email is taken (409)
    """
    return auth_service.register(user_data, db)


@router.post("/login", response_model=AuthResponse)
def login(credentials: UserLogin, db: Session = Depends(get_db)):
    """
    Authenticate with username and password.

    Raises:
        InvalidCredentialsException: Unknown user or wrong password (401)
        InactivePrincipalException: Account is deactivated (403)
    """
    return auth_service.login(credentials.username, credentials.password, db)


@router.post("/validate", response_model=TokenValidationResponse)
def validate_token(request: TokenValidationRequest, db: Session = Depends(get_db)):
    """Check that a token verifies and its owner is still active."""
    return {"valid": auth_service.validate(request.token, db)}


@router.get("/me", response_model=UserResponse)
def current_user(
    authorization: Optional[str] = Header(None),
    db: Session = Depends(get_db)
):
    """
    Resolve the bearer token to its principal. Unlike protected routes this
    reports why the token was refused.

    Raises:
        InvalidOrExpiredTokenException: Missing, invalid or expired token (401)
        InactivePrincipalException: Account is deactivated (403)
    """
    token = ""
    if authorization and authorization.startswith(BEARER_PREFIX):
        token = authorization[len(BEARER_PREFIX):].strip()
    return auth_service.resolve_principal(token, db)
