"""
Token Service
Issues and verifies signed, time-bound JWTs binding a username to a role.
Tokens are never stored server-side; expiry is the only way they stop working.
"""
from datetime import datetime, timedelta
from typing import Optional, Tuple
import os

import structlog
from dotenv import load_dotenv
from jose import ExpiredSignatureError, JWTError, jwt
from jose.exceptions import JWTClaimsError

from bloodbank.database import Role, User
from bloodbank.models.schemas import TokenData

load_dotenv()

logger = structlog.get_logger(__name__)

# JWT Configuration
SECRET_KEY = os.getenv("SECRET_KEY", "change-this-secret-key-in-production")
ALGORITHM = os.getenv("ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "1440"))

# Failure reasons, kept apart for logs only
MALFORMED = "malformed"
BAD_SIGNATURE = "bad_signature"
EXPIRED = "expired"


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    to_encode = data.copy()
    now = datetime.utcnow()
    if expires_delta is not None:
        expire = now + expires_delta
    else:
        expire = now + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode.update({"iat": now, "exp": expire})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def issue_token(user: User, expires_delta: Optional[timedelta] = None) -> str:
    """Issue a token carrying the principal's username and role."""
    role = user.role.value if isinstance(user.role, Role) else str(user.role)
    return create_access_token({"sub": user.username, "role": role}, expires_delta)


def inspect_token(token: str) -> Tuple[Optional[TokenData], Optional[str]]:
    """
    Verify a token and report why it failed.

    Returns:
        (TokenData, None) for a valid token, otherwise (None, reason) where
        reason is one of MALFORMED, BAD_SIGNATURE or EXPIRED.
    """
    if not token:
        return None, MALFORMED

    try:
        jwt.get_unverified_claims(token)
    except JWTError:
        return None, MALFORMED

    try:
        payload = jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except ExpiredSignatureError:
        return None, EXPIRED
    except JWTClaimsError:
        # Signature checked out but a registered claim has the wrong type
        return None, MALFORMED
    except JWTError:
        return None, BAD_SIGNATURE

    username = payload.get("sub")
    if not username or payload.get("exp") is None:
        return None, MALFORMED

    try:
        role = Role(payload.get("role"))
    except ValueError:
        return None, MALFORMED

    return TokenData(username=username, role=role), None


def verify_token(token: str) -> Optional[TokenData]:
    token_data, reason = inspect_token(token)
    if token_data is None:
        logger.debug("Token rejected", reason=reason, username=extract_identity(token))
    return token_data


def extract_identity(token: str) -> Optional[str]:
    """Best-effort read of the subject without verification. Diagnostics only."""
    if not token:
        return None
    try:
        claims = jwt.get_unverified_claims(token)
    except JWTError:
        return None
    subject = claims.get("sub")
    return subject if isinstance(subject, str) else None
