# Models package
from .schemas import (
    UserBase,
    UserCreate,
    UserLogin,
    UserResponse,
    UserUpdate,
    ProfileUpdate,
    PasswordChange,
    BulkResult,
    AuthResponse,
    TokenData,
    TokenValidationRequest,
    TokenValidationResponse,
    BloodUnitCreate,
    BloodUnitUpdate,
    BloodUnitResponse,
    TotalQuantityResponse,
    SweepResponse,
)

__all__ = [
    "UserBase",
    "UserCreate",
    "UserLogin",
    "UserResponse",
    "UserUpdate",
    "ProfileUpdate",
    "PasswordChange",
    "BulkResult",
    "AuthResponse",
    "TokenData",
    "TokenValidationRequest",
    "TokenValidationResponse",
    "BloodUnitCreate",
    "BloodUnitUpdate",
    "BloodUnitResponse",
    "TotalQuantityResponse",
    "SweepResponse",
]
