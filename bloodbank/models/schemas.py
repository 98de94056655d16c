from pydantic import BaseModel, BeforeValidator, EmailStr, Field
from typing import Annotated, Optional, List
from datetime import datetime

from bloodbank.database import Role, BloodType, InventoryStatus


def _parse_blood_type(value):
    if value is None or isinstance(value, BloodType):
        return value
    return BloodType.parse(str(value))


# Accepts "A_POSITIVE" as well as the display form "A+"
BloodTypeField = Annotated[BloodType, BeforeValidator(_parse_blood_type)]


# User Schemas
class UserBase(BaseModel):
    username: str = Field(..., min_length=3, max_length=100)
    email: EmailStr
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    phone_number: Optional[str] = Field(None, max_length=30)
    role: Role
    blood_type: Optional[BloodTypeField] = None


class UserCreate(UserBase):
    password: str = Field(..., min_length=6, max_length=100)


class UserLogin(BaseModel):
    username: str
    password: str


class UserResponse(BaseModel):
    id: int
    username: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone_number: Optional[str] = None
    role: Role
    blood_type: Optional[BloodType] = None
    is_active: bool
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserUpdate(BaseModel):
    """Partial update; fields left as None are not touched."""
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    email: Optional[EmailStr] = None
    phone_number: Optional[str] = Field(None, max_length=30)
    blood_type: Optional[BloodTypeField] = None
    role: Optional[Role] = None
    is_active: Optional[bool] = None


class ProfileUpdate(BaseModel):
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    email: Optional[EmailStr] = None
    phone_number: Optional[str] = Field(None, max_length=30)
    blood_type: Optional[BloodTypeField] = None


class PasswordChange(BaseModel):
    old_password: str
    new_password: str = Field(..., min_length=6, max_length=100)


class BulkResult(BaseModel):
    message: str
    count: int


# Auth Schemas
class AuthResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    username: str
    role: Role


class TokenData(BaseModel):
    username: Optional[str] = None
    role: Optional[Role] = None


class TokenValidationRequest(BaseModel):
    token: str


class TokenValidationResponse(BaseModel):
    valid: bool


# Blood Inventory Schemas
class BloodUnitBase(BaseModel):
    blood_type: BloodTypeField
    quantity: int = Field(..., ge=0)
    unit_of_measure: str = Field("ml", max_length=20)
    expiry_date: datetime
    status: InventoryStatus = InventoryStatus.AVAILABLE
    notes: Optional[str] = None


class BloodUnitCreate(BloodUnitBase):
    collection_date: Optional[datetime] = None
    donor_id: Optional[int] = None
    batch_number: Optional[str] = Field(None, max_length=100)


class BloodUnitUpdate(BloodUnitBase):
    """Full replacement of the mutable fields of a blood unit; no defaults are filled in."""
    unit_of_measure: str = Field(..., max_length=20)
    status: InventoryStatus


class BloodUnitResponse(BaseModel):
    id: int
    blood_type: BloodType
    quantity: int
    unit_of_measure: Optional[str] = None
    expiry_date: datetime
    collection_date: Optional[datetime] = None
    donor_id: Optional[int] = None
    batch_number: Optional[str] = None
    status: InventoryStatus
    notes: Optional[str] = None
    created_at: datetime
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TotalQuantityResponse(BaseModel):
    blood_type: BloodType
    total_quantity: int


class SweepResponse(BaseModel):
    affected: int
    units: List[BloodUnitResponse]
