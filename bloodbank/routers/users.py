# User management router
from typing import List, Optional

from fastapi import APIRouter, Depends, Response, status
from sqlalchemy.orm import Session

from bloodbank.database import get_db, Role, BloodType
from bloodbank.models.schemas import (
    UserResponse,
    UserUpdate,
    ProfileUpdate,
    PasswordChange,
    BulkResult
)
from bloodbank.routers.common import parse_blood_type
from bloodbank.services import user_service
from bloodbank.services.access_filter import (
    AuthContext,
    SelfOrAdmin,
    require,
    require_role,
    require_authentication
)

router = APIRouter(prefix="/users", tags=["users"])

admin_only = require_role(Role.ADMIN)
self_or_admin = require(SelfOrAdmin("user_id"))


@router.get("", response_model=List[UserResponse])
def list_users(
    context: AuthContext = Depends(admin_only),
    db: Session = Depends(get_db)
):
    return user_service.list_users(db)


# ==================== Current User ====================

@router.get("/profile", response_model=UserResponse)
def get_profile(
    context: AuthContext = Depends(require_authentication),
    db: Session = Depends(get_db)
):
    return user_service.get_user(context.user_id, db)


@router.put("/profile", response_model=UserResponse)
def update_profile(
    data: ProfileUpdate,
    context: AuthContext = Depends(require_authentication),
    db: Session = Depends(get_db)
):
    return user_service.update_profile(context.user_id, data, db)


@router.put("/password")
def change_own_password(
    data: PasswordChange,
    context: AuthContext = Depends(require_authentication),
    db: Session = Depends(get_db)
):
    user_service.change_password(context.user_id, data.old_password, data.new_password, db)
    return {"message": "Password changed successfully"}


# ==================== Directory ====================

@router.get("/stats")
def user_statistics(
    context: AuthContext = Depends(admin_only),
    db: Session = Depends(get_db)
):
    return user_service.user_statistics(db)


@router.get("/donors", response_model=List[UserResponse])
def list_donors(
    context: AuthContext = Depends(require_authentication),
    db: Session = Depends(get_db)
):
    return user_service.active_donors(db)


@router.get("/donors/{blood_type}", response_model=List[UserResponse])
def donors_by_blood_type(
    blood_type: str,
    context: AuthContext = Depends(require_authentication),
    db: Session = Depends(get_db)
):
    return user_service.donors_by_blood_type(parse_blood_type(blood_type), db)


@router.get("/search", response_model=List[UserResponse])
def search_users(
    name: Optional[str] = None,
    blood_type: Optional[str] = None,
    role: Optional[Role] = None,
    active: Optional[bool] = None,
    context: AuthContext = Depends(require_role(Role.ADMIN, Role.DOCTOR, Role.NURSE)),
    db: Session = Depends(get_db)
):
    parsed_type = parse_blood_type(blood_type) if blood_type else None
    return user_service.search_users(db, name=name, blood_type=parsed_type, role=role, active=active)


@router.get("/roles")
def available_roles(context: AuthContext = Depends(require_authentication)):
    return [role.value for role in Role]


@router.get("/blood-types")
def available_blood_types(context: AuthContext = Depends(require_authentication)):
    return [{"value": bt.value, "display": bt.display} for bt in BloodType]


@router.get("/validate-username/{username}")
def validate_username(
    username: str,
    context: AuthContext = Depends(require_authentication),
    db: Session = Depends(get_db)
):
    return {"available": user_service.is_username_available(username, db)}


@router.get("/validate-email/{email}")
def validate_email(
    email: str,
    context: AuthContext = Depends(require_authentication),
    db: Session = Depends(get_db)
):
    return {"available": user_service.is_email_available(email, db)}


# ==================== Bulk Operations ====================

@router.post("/bulk-activate", response_model=BulkResult)
def bulk_activate(
    user_ids: List[int],
    context: AuthContext = Depends(admin_only),
    db: Session = Depends(get_db)
):
    count = user_service.bulk_activate(user_ids, db)
    return {"message": f"{count} users activated successfully", "count": count}


@router.post("/bulk-deactivate", response_model=BulkResult)
def bulk_deactivate(
    user_ids: List[int],
    context: AuthContext = Depends(admin_only),
    db: Session = Depends(get_db)
):
    count = user_service.bulk_deactivate(user_ids, db)
    return {"message": f"{count} users deactivated successfully", "count": count}


# ==================== Single User ====================

@router.get("/{user_id}", response_model=UserResponse)
def get_user(
    user_id: int,
    context: AuthContext = Depends(self_or_admin),
    db: Session = Depends(get_db)
):
    return user_service.get_user(user_id, db)


@router.put("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: int,
    data: UserUpdate,
    context: AuthContext = Depends(self_or_admin),
    db: Session = Depends(get_db)
):
    # Only administrators may change role or activation
    if context.role != Role.ADMIN:
        data = data.model_copy(update={"role": None, "is_active": None})
    return user_service.update_user(user_id, data, db)


@router.put("/{user_id}/password")
def change_password(
    user_id: int,
    data: PasswordChange,
    context: AuthContext = Depends(self_or_admin),
    db: Session = Depends(get_db)
):
    user_service.change_password(user_id, data.old_password, data.new_password, db)
    return {"message": "Password changed successfully"}


@router.put("/{user_id}/activate", response_model=UserResponse)
def activate_user(
    user_id: int,
    context: AuthContext = Depends(admin_only),
    db: Session = Depends(get_db)
):
    return user_service.activate_user(user_id, db)


@router.put("/{user_id}/deactivate", response_model=UserResponse)
def deactivate_user(
    user_id: int,
    context: AuthContext = Depends(admin_only),
    db: Session = Depends(get_db)
):
    return user_service.deactivate_user(user_id, db)


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: int,
    context: AuthContext = Depends(admin_only),
    db: Session = Depends(get_db)
):
    user_service.delete_user(user_id, db)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
