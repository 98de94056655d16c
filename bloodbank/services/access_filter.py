"""
Access Filter
Runs for every request as an application-wide dependency. It turns the bearer
token into an AuthContext and evaluates the role predicate each protected
route declares.

Missing or invalid tokens are not errors here: the request simply continues
as anonymous and the route's own predicate rejects it.
"""
from dataclasses import dataclass
from typing import FrozenSet, Mapping, Optional

import structlog
from fastapi import Depends, Request
from sqlalchemy.orm import Session

from bloodbank.database import get_db, Role
from bloodbank.exceptions import AuthenticationRequiredException, UnauthorizedException
from bloodbank.services.credential_store import CredentialStore
from bloodbank.services.token_service import inspect_token, extract_identity

logger = structlog.get_logger(__name__)

AUTH_HEADER = "Authorization"
BEARER_PREFIX = "Bearer "

PUBLIC_PATHS = {"/", "/health", "/docs", "/redoc", "/openapi.json"}
PUBLIC_PREFIXES = ("/auth/", "/public/", "/docs/")


@dataclass(frozen=True)
class AuthContext:
    user_id: Optional[int] = None
    username: Optional[str] = None
    role: Optional[Role] = None

    @property
    def is_authenticated(self) -> bool:
        return self.username is not None


ANONYMOUS = AuthContext()


def is_public_path(path: str) -> bool:
    return path in PUBLIC_PATHS or path.startswith(PUBLIC_PREFIXES)


# ==================== Request Authentication ====================

def _resolve_context(request: Request, db: Session) -> AuthContext:
    path = request.url.path
    if is_public_path(path):
        return ANONYMOUS

    header = request.headers.get(AUTH_HEADER)
    if not header or not header.startswith(BEARER_PREFIX):
        logger.debug("No bearer token on request", path=path)
        return ANONYMOUS

    token = header[len(BEARER_PREFIX):].strip()
    token_data, reason = inspect_token(token)
    if token_data is None:
        logger.warning(
            "Rejected bearer token",
            path=path,
            reason=reason,
            username=extract_identity(token)
        )
        return ANONYMOUS

    user = CredentialStore(db).find_by_username(token_data.username)
    if user is None:
        logger.warning("Token subject no longer exists", path=path, username=token_data.username)
        return ANONYMOUS
    if not user.is_active:
        logger.warning("Token subject is deactivated", path=path, username=token_data.username)
        return ANONYMOUS

    # Role comes from the live record so role changes apply immediately
    return AuthContext(user_id=user.id, username=user.username, role=user.role)


def authenticate_request(request: Request, db: Session = Depends(get_db)) -> AuthContext:
    """Establish the request's AuthContext once; later calls return the bound value."""
    bound = getattr(request.state, "auth", None)
    if bound is not None:
        return bound

    context = _resolve_context(request, db)
    request.state.auth = context
    return context


# ==================== Role Predicates ====================

@dataclass(frozen=True)
class HasAnyRole:
    roles: FrozenSet[Role]

    def allows(self, context: AuthContext, path_params: Mapping[str, str]) -> bool:
        return context.role in self.roles

    def describe(self) -> str:
        return "Required roles: " + ", ".join(sorted(role.value for role in self.roles))


@dataclass(frozen=True)
class Authenticated:
    def allows(self, context: AuthContext, path_params: Mapping[str, str]) -> bool:
        return context.is_authenticated

    def describe(self) -> str:
        return "Authentication required"


@dataclass(frozen=True)
class SelfOrAdmin:
    """Admins, or the principal whose id is the named path parameter."""
    path_param: str = "user_id"

    def allows(self, context: AuthContext, path_params: Mapping[str, str]) -> bool:
        if context.role == Role.ADMIN:
            return True
        target = path_params.get(self.path_param)
        return target is not None and str(context.user_id) == str(target)

    def describe(self) -> str:
        return "Only the account owner or an administrator may access this resource"


def any_of(*roles: Role) -> HasAnyRole:
    return HasAnyRole(frozenset(roles))


def enforce(predicate, context: AuthContext, path_params: Mapping[str, str] = None) -> AuthContext:
    """
    Evaluate a role predicate against an AuthContext.

    Raises:
        AuthenticationRequiredException: The request is anonymous
        UnauthorizedException: The principal does not satisfy the predicate
    """
    if not context.is_authenticated:
        raise AuthenticationRequiredException()

    if not predicate.allows(context, path_params or {}):
        logger.info(
            "Access denied",
            username=context.username,
            role=context.role.value if context.role else None,
            rule=predicate.describe()
        )
        raise UnauthorizedException(f"Access forbidden. {predicate.describe()}")

    return context


def require(predicate):
    """Build a route dependency that enforces `predicate` and yields the AuthContext."""
    def checker(
        request: Request,
        context: AuthContext = Depends(authenticate_request)
    ) -> AuthContext:
        return enforce(predicate, context, request.path_params)

    return checker


def require_role(*roles: Role):
    return require(any_of(*roles))


require_authentication = require(Authenticated())
