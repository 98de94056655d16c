"""
Authentication Service
Handles password hashing, registration, login and token re-validation
"""
import bcrypt
import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from bloodbank.database import User
from bloodbank.exceptions import (
    DuplicateIdentityException,
    InactivePrincipalException,
    InvalidCredentialsException,
    InvalidOrExpiredTokenException,
)
from bloodbank.models.schemas import AuthResponse, UserCreate
from bloodbank.services.credential_store import CredentialStore
from bloodbank.services.token_service import issue_token, verify_token

logger = structlog.get_logger(__name__)


# ==================== Password Utilities ====================

def verify_password(plain_password: str, hashed_password: str) -> bool:
    password_bytes = plain_password.encode('utf-8')
    hashed_bytes = hashed_password.encode('utf-8')

    # Bcrypt has a 72-byte limit
    if len(password_bytes) > 72:
        password_bytes = password_bytes[:72]

    try:
        return bcrypt.checkpw(password_bytes, hashed_bytes)
    except ValueError:
        # Stored value is not a bcrypt hash
        return False


def hash_password(password: str) -> str:
    password_bytes = password.encode('utf-8')

    # Bcrypt has a 72-byte limit
    if len(password_bytes) > 72:
        password_bytes = password_bytes[:72]

    salt = bcrypt.gensalt()
    hashed = bcrypt.hashpw(password_bytes, salt)
    return hashed.decode('utf-8')


# Compared against when the username is unknown
_DUMMY_HASH = hash_password("no-such-user-placeholder")


# ==================== Registration & Login ====================

def _auth_response(user: User) -> AuthResponse:
    return AuthResponse(
        token=issue_token(user),
        username=user.username,
        role=user.role
    )


def register(candidate: UserCreate, db: Session) -> AuthResponse:
    """
    Create an active principal and issue a token for it.

    Raises:
        DuplicateIdentityException: If the username or email is taken
    """
    store = CredentialStore(db)

    if store.exists_by_username(candidate.username):
        raise DuplicateIdentityException("username")
    if store.exists_by_email(candidate.email):
        raise DuplicateIdentityException("email")

    user = User(
        username=candidate.username,
        email=candidate.email,
        password=hash_password(candidate.password),
        first_name=candidate.first_name,
        last_name=candidate.last_name,
        phone_number=candidate.phone_number,
        role=candidate.role,
        blood_type=candidate.blood_type,
        is_active=True
    )

    try:
        user = store.save(user)
    except IntegrityError:
        # Lost a race with a concurrent registration of the same identity
        raise DuplicateIdentityException("username or email")

    logger.info("User registered", username=user.username, role=user.role.value)
    return _auth_response(user)


def login(username: str, password: str, db: Session) -> AuthResponse:
    """
    Check credentials and issue a token.

    Raises:
        InvalidCredentialsException: Unknown username or wrong password
        InactivePrincipalException: Credentials are correct but the account is deactivated
    """
    user = CredentialStore(db).find_by_username(username)

    # Unknown usernames go through the same bcrypt check as known ones
    stored_hash = user.password if user is not None else _DUMMY_HASH
    password_ok = verify_password(password, stored_hash)

    if user is None or not password_ok:
        logger.info("Login failed", username=username)
        raise InvalidCredentialsException()

    if not user.is_active:
        logger.info("Login refused for deactivated account", username=username)
        raise InactivePrincipalException()

    logger.info("User logged in", username=user.username)
    return _auth_response(user)


def resolve_principal(token: str, db: Session) -> User:
    """
    Return the active principal a token belongs to.

    Raises:
        InvalidOrExpiredTokenException: Token fails verification or its subject no longer exists
        InactivePrincipalException: Subject exists but is deactivated
    """
    token_data = verify_token(token)
    if token_data is None:
        raise InvalidOrExpiredTokenException()

    user = CredentialStore(db).find_by_username(token_data.username)
    if user is None:
        raise InvalidOrExpiredTokenException()
    if not user.is_active:
        raise InactivePrincipalException()
    return user


def validate(token: str, db: Session) -> bool:
    """Signature and expiry check plus a live lookup that the principal is still active."""
    try:
        resolve_principal(token, db)
    except (InvalidOrExpiredTokenException, InactivePrincipalException):
        return False
    return True
