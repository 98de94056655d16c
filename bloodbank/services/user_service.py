"""
User Management Service
Profile updates, password changes, activation (soft delete), bulk operations,
search and statistics over principals.
"""
from collections import Counter
from typing import Any, Dict, List, Optional

import structlog
from sqlalchemy.orm import Session

from bloodbank.database import User, Role, BloodType
from bloodbank.exceptions import (
    DuplicateIdentityException,
    InvalidCredentialsException,
    NotFoundException,
)
from bloodbank.models.schemas import UserUpdate, ProfileUpdate
from bloodbank.services.auth_service import hash_password, verify_password
from bloodbank.services.credential_store import CredentialStore

logger = structlog.get_logger(__name__)


# ==================== Lookups ====================

def get_user(user_id: int, db: Session) -> User:
    user = CredentialStore(db).find_by_id(user_id)
    if user is None:
        raise NotFoundException("User", user_id)
    return user


def list_users(db: Session) -> List[User]:
    return CredentialStore(db).find_all()


def active_donors(db: Session) -> List[User]:
    return CredentialStore(db).find_active_donors()


def donors_by_blood_type(blood_type: BloodType, db: Session) -> List[User]:
    return CredentialStore(db).find_donors_by_blood_type(blood_type)


def is_username_available(username: str, db: Session) -> bool:
    return not CredentialStore(db).exists_by_username(username)


def is_email_available(email: str, db: Session) -> bool:
    return not CredentialStore(db).exists_by_email(email)


# ==================== Updates ====================

def _apply_changes(user: User, changes: Dict[str, Any], db: Session) -> User:
    store = CredentialStore(db)

    email = changes.get("email")
    if email is not None and email != user.email:
        existing = store.find_by_email(email)
        if existing is not None and existing.id != user.id:
            raise DuplicateIdentityException("email")

    for field, value in changes.items():
        setattr(user, field, value)

    return store.save(user)


def update_user(user_id: int, data: UserUpdate, db: Session) -> User:
    """Partial update; only fields present in the request are changed."""
    user = get_user(user_id, db)
    changes = data.model_dump(exclude_none=True)
    user = _apply_changes(user, changes, db)
    logger.info("User updated", user_id=user.id, fields=sorted(changes))
    return user


def update_profile(user_id: int, data: ProfileUpdate, db: Session) -> User:
    """Self-service variant of update_user; role and active flag are not reachable."""
    user = get_user(user_id, db)
    changes = data.model_dump(exclude_none=True)
    return _apply_changes(user, changes, db)


def change_password(user_id: int, old_password: str, new_password: str, db: Session) -> None:
    user = get_user(user_id, db)

    if not verify_password(old_password, user.password):
        raise InvalidCredentialsException("Old password is incorrect")

    user.password = hash_password(new_password)
    CredentialStore(db).save(user)
    logger.info("Password changed", user_id=user.id)


# ==================== Activation ====================

def _set_active(user_id: int, active: bool, db: Session) -> User:
    user = get_user(user_id, db)
    user.is_active = active
    user = CredentialStore(db).save(user)
    logger.info("User activation changed", user_id=user.id, is_active=active)
    return user


def activate_user(user_id: int, db: Session) -> User:
    return _set_active(user_id, True, db)


def deactivate_user(user_id: int, db: Session) -> User:
    return _set_active(user_id, False, db)


def delete_user(user_id: int, db: Session) -> None:
    """Soft delete: the record stays and can be re-activated."""
    deactivate_user(user_id, db)


def _bulk_set_active(user_ids: List[int], active: bool, db: Session) -> int:
    count = 0
    for user_id in user_ids:
        try:
            _set_active(user_id, active, db)
            count += 1
        except Exception as e:
            logger.warning(
                "Bulk activation change failed",
                user_id=user_id,
                is_active=active,
                error=str(e)
            )
    return count


def bulk_activate(user_ids: List[int], db: Session) -> int:
    """Activate each id independently and return how many succeeded."""
    return _bulk_set_active(user_ids, True, db)


def bulk_deactivate(user_ids: List[int], db: Session) -> int:
    return _bulk_set_active(user_ids, False, db)


# ==================== Search & Statistics ====================

def search_users(
    db: Session,
    name: Optional[str] = None,
    blood_type: Optional[BloodType] = None,
    role: Optional[Role] = None,
    active: Optional[bool] = None
) -> List[User]:
    query = db.query(User)

    if name:
        pattern = f"%{name.lower()}%"
        query = query.filter(
            User.first_name.ilike(pattern)
            | User.last_name.ilike(pattern)
            | User.username.ilike(pattern)
        )
    if blood_type is not None:
        query = query.filter(User.blood_type == blood_type)
    if role is not None:
        query = query.filter(User.role == role)
    if active is not None:
        query = query.filter(User.is_active.is_(active))

    return query.order_by(User.id).all()


def user_statistics(db: Session) -> Dict[str, Any]:
    users = CredentialStore(db).find_all()
    active = [u for u in users if u.is_active]

    return {
        "total_users": len(users),
        "active_users": len(active),
        "inactive_users": len(users) - len(active),
        "users_by_role": dict(Counter(u.role.value for u in users)),
        "users_by_blood_type": dict(Counter(u.blood_type.value for u in users if u.blood_type)),
        "active_donors": sum(1 for u in active if u.role == Role.DONOR),
    }
