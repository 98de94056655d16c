"""
Credential Store
Persistence of principal records behind the small set of operations the
authentication core relies on.
"""
from typing import List, Optional

from sqlalchemy.orm import Session

from bloodbank.database import User, Role, BloodType


class CredentialStore:
    def __init__(self, db: Session):
        self.db = db

    def find_by_username(self, username: str) -> Optional[User]:
        return self.db.query(User).filter(User.username == username).first()

    def find_by_email(self, email: str) -> Optional[User]:
        return self.db.query(User).filter(User.email == email).first()

    def find_by_id(self, user_id: int) -> Optional[User]:
        return self.db.query(User).filter(User.id == user_id).first()

    def exists_by_username(self, username: str) -> bool:
        return self.db.query(User.id).filter(User.username == username).first() is not None

    def exists_by_email(self, email: str) -> bool:
        return self.db.query(User.id).filter(User.email == email).first() is not None

    def save(self, user: User) -> User:
        """Insert or update a principal and commit."""
        try:
            self.db.add(user)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(user)
        return user

    def find_all(self) -> List[User]:
        return self.db.query(User).order_by(User.id).all()

    def find_by_role(self, role: Role) -> List[User]:
        return self.db.query(User).filter(User.role == role).order_by(User.id).all()

    def find_all_active(self) -> List[User]:
        return self.db.query(User).filter(User.is_active.is_(True)).order_by(User.id).all()

    def find_active_donors(self) -> List[User]:
        return self.db.query(User).filter(
            User.role == Role.DONOR,
            User.is_active.is_(True)
        ).order_by(User.id).all()

    def find_donors_by_blood_type(self, blood_type: BloodType) -> List[User]:
        return self.db.query(User).filter(
            User.blood_type == blood_type,
            User.role == Role.DONOR,
            User.is_active.is_(True)
        ).order_by(User.id).all()
