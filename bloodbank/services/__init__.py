# Services package
"""
Centralized services for the blood bank application

Modules:
- token_service: JWT issuance and verification
- credential_store: Principal persistence
- access_filter: Per-request authentication context and role predicates
- auth_service: Password hashing, registration, login, token validation
- user_service: Profile updates, activation, bulk operations, search
- inventory_store: Blood inventory queries and atomic writes
- inventory_service: Blood unit lifecycle and expiry sweep
"""

from .token_service import (
    create_access_token,
    issue_token,
    inspect_token,
    verify_token,
    extract_identity,
    SECRET_KEY,
    ALGORITHM,
    ACCESS_TOKEN_EXPIRE_MINUTES
)

from .credential_store import CredentialStore

from .access_filter import (
    AuthContext,
    ANONYMOUS,
    HasAnyRole,
    Authenticated,
    SelfOrAdmin,
    any_of,
    enforce,
    authenticate_request,
    require,
    require_role,
    require_authentication
)

from .auth_service import (
    verify_password,
    hash_password,
    register,
    login,
    validate,
    resolve_principal
)

from .inventory_store import InventoryStore

from .inventory_service import (
    add_blood_unit,
    update_blood_unit,
    remove_blood_unit,
    sweep_expired,
    get_blood_unit,
    list_blood_units,
    units_by_type,
    available_units,
    available_units_by_type,
    expired_units,
    total_available_quantity
)

__all__ = [
    # Token
    "create_access_token",
    "issue_token",
    "inspect_token",
    "verify_token",
    "extract_identity",
    "SECRET_KEY",
    "ALGORITHM",
    "ACCESS_TOKEN_EXPIRE_MINUTES",
    # Credentials
    "CredentialStore",
    # Access filter
    "AuthContext",
    "ANONYMOUS",
    "HasAnyRole",
    "Authenticated",
    "SelfOrAdmin",
    "any_of",
    "enforce",
    "authenticate_request",
    "require",
    "require_role",
    "require_authentication",
    # Auth
    "verify_password",
    "hash_password",
    "register",
    "login",
    "validate",
    "resolve_principal",
    # Inventory
    "InventoryStore",
    "add_blood_unit",
    "update_blood_unit",
    "remove_blood_unit",
    "sweep_expired",
    "get_blood_unit",
    "list_blood_units",
    "units_by_type",
    "available_units",
    "available_units_by_type",
    "expired_units",
    "total_available_quantity"
]
