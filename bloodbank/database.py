from sqlalchemy import (
    create_engine, Column, Integer, String, DateTime, Boolean, Text,
    Enum, CheckConstraint
)
from sqlalchemy.orm import sessionmaker, declarative_base
from datetime import datetime
import enum
import os
from dotenv import load_dotenv

load_dotenv()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./bloodbank.db")

connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}
engine = create_engine(DATABASE_URL, connect_args=connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


# ==================== Enumerations ====================

class Role(str, enum.Enum):
    ADMIN = "ADMIN"
    DOCTOR = "DOCTOR"
    NURSE = "NURSE"
    TECHNICIAN = "TECHNICIAN"
    DONOR = "DONOR"
    RECIPIENT = "RECIPIENT"


class BloodType(str, enum.Enum):
    A_POSITIVE = "A_POSITIVE"
    A_NEGATIVE = "A_NEGATIVE"
    B_POSITIVE = "B_POSITIVE"
    B_NEGATIVE = "B_NEGATIVE"
    AB_POSITIVE = "AB_POSITIVE"
    AB_NEGATIVE = "AB_NEGATIVE"
    O_POSITIVE = "O_POSITIVE"
    O_NEGATIVE = "O_NEGATIVE"

    @property
    def display(self) -> str:
        group, _, sign = self.value.partition("_")
        return group + ("+" if sign == "POSITIVE" else "-")

    @classmethod
    def parse(cls, value: str) -> "BloodType":
        """Accept either the enum name (any case) or the display form ("AB+")."""
        value = value.strip()
        for blood_type in cls:
            if value.upper() == blood_type.value or value.upper() == blood_type.display:
                return blood_type
        raise ValueError(f"Unknown blood type: {value}")


class InventoryStatus(str, enum.Enum):
    AVAILABLE = "AVAILABLE"
    RESERVED = "RESERVED"
    EXPIRED = "EXPIRED"
    DISCARDED = "DISCARDED"
    IN_TRANSIT = "IN_TRANSIT"


# ==================== Models ====================

class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(100), unique=True, nullable=False)
    email = Column(String(200), unique=True, nullable=False)
    password = Column(String(255), nullable=False)
    first_name = Column(String(100))
    last_name = Column(String(100))
    phone_number = Column(String(30))
    role = Column(Enum(Role), nullable=False)
    blood_type = Column(Enum(BloodType), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class BloodInventory(Base):
    __tablename__ = "blood_inventory"
    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_blood_inventory_quantity_non_negative"),
    )
    id = Column(Integer, primary_key=True, index=True)
    blood_type = Column(Enum(BloodType), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    unit_of_measure = Column(String(20), default="ml")
    expiry_date = Column(DateTime, nullable=False, index=True)
    collection_date = Column(DateTime, nullable=True)
    donor_id = Column(Integer, nullable=True)
    batch_number = Column(String(100), unique=True, nullable=True)
    status = Column(Enum(InventoryStatus), default=InventoryStatus.AVAILABLE, nullable=False)
    notes = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


if __name__ == "__main__":
    Base.metadata.create_all(bind=engine)
