"""
Blood Inventory Service
Lifecycle of blood units: creation, full-replace updates, quantity removal
and the expiry sweep, plus the read queries used by the API.

Status rules:
- removing the last of a unit forces DISCARDED, whatever the prior status
- the expiry sweep marks every unit at or past its expiry as EXPIRED,
  except DISCARDED units, which stay as they are
"""
from datetime import datetime
from typing import List, Optional

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from bloodbank.database import BloodInventory, BloodType
from bloodbank.exceptions import (
    DuplicateBatchException,
    InsufficientQuantityException,
    InvalidQuantityException,
    NotFoundException,
)
from bloodbank.models.schemas import BloodUnitCreate, BloodUnitUpdate
from bloodbank.services.inventory_store import InventoryStore

logger = structlog.get_logger(__name__)


def _now(now: Optional[datetime]) -> datetime:
    return now if now is not None else datetime.utcnow()


# ==================== Mutations ====================

def add_blood_unit(data: BloodUnitCreate, db: Session) -> BloodInventory:
    store = InventoryStore(db)

    if data.batch_number and store.find_by_batch_number(data.batch_number):
        raise DuplicateBatchException(data.batch_number)

    unit = BloodInventory(**data.model_dump())
    try:
        unit = store.save(unit)
    except IntegrityError:
        raise DuplicateBatchException(data.batch_number)

    logger.info(
        "Blood unit added",
        unit_id=unit.id,
        blood_type=unit.blood_type.value,
        quantity=unit.quantity,
        batch_number=unit.batch_number
    )
    return unit


def update_blood_unit(unit_id: int, data: BloodUnitUpdate, db: Session) -> BloodInventory:
    """Overwrite blood type, quantity, unit of measure, expiry, status and notes."""
    store = InventoryStore(db)
    unit = store.find_by_id(unit_id)
    if unit is None:
        raise NotFoundException("Blood inventory", unit_id)

    unit.blood_type = data.blood_type
    unit.quantity = data.quantity
    unit.unit_of_measure = data.unit_of_measure
    unit.expiry_date = data.expiry_date
    unit.status = data.status
    unit.notes = data.notes

    unit = store.save(unit)
    logger.info("Blood unit updated", unit_id=unit.id, status=unit.status.value)
    return unit


def remove_blood_unit(unit_id: int, quantity: int, db: Session) -> None:
    """
    Take `quantity` out of a unit.

    Raises:
        InvalidQuantityException: quantity is not positive
        NotFoundException: unknown unit id
        InsufficientQuantityException: more requested than the unit holds;
            the stored quantity is left unchanged
    """
    if quantity is None or quantity <= 0:
        raise InvalidQuantityException()

    store = InventoryStore(db)
    if store.find_by_id(unit_id) is None:
        raise NotFoundException("Blood inventory", unit_id)

    try:
        removed = store.decrement_quantity(unit_id, quantity)
        discarded = store.discard_if_exhausted(unit_id) if removed else False
        db.commit()
    except Exception:
        db.rollback()
        raise

    if not removed:
        current = store.find_by_id(unit_id)
        if current is None:
            raise NotFoundException("Blood inventory", unit_id)
        logger.info(
            "Blood removal refused",
            unit_id=unit_id,
            requested=quantity,
            available=current.quantity
        )
        raise InsufficientQuantityException(quantity, current.quantity)

    logger.info("Blood removed from unit", unit_id=unit_id, quantity=quantity, discarded=discarded)


def sweep_expired(db: Session, now: Optional[datetime] = None) -> List[BloodInventory]:
    """
    Mark every unit whose expiry is at or before `now` as EXPIRED.
    Safe to repeat and to run concurrently with itself.
    """
    now = _now(now)
    store = InventoryStore(db)

    unit_ids = store.find_expirable_ids(now)
    if unit_ids:
        try:
            store.mark_expired(unit_ids)
            db.commit()
        except Exception:
            db.rollback()
            raise

    logger.info("Expiry sweep finished", now=now.isoformat(), affected=len(unit_ids))
    return store.find_by_ids(unit_ids)


# ==================== Queries ====================

def get_blood_unit(unit_id: int, db: Session) -> BloodInventory:
    unit = InventoryStore(db).find_by_id(unit_id)
    if unit is None:
        raise NotFoundException("Blood inventory", unit_id)
    return unit


def list_blood_units(db: Session) -> List[BloodInventory]:
    return InventoryStore(db).find_all()


def units_by_type(blood_type: BloodType, db: Session) -> List[BloodInventory]:
    return InventoryStore(db).find_by_blood_type(blood_type)


def available_units(db: Session, now: Optional[datetime] = None) -> List[BloodInventory]:
    return InventoryStore(db).find_available(_now(now))


def available_units_by_type(
    blood_type: BloodType, db: Session, now: Optional[datetime] = None
) -> List[BloodInventory]:
    return InventoryStore(db).find_available_by_blood_type(blood_type, _now(now))


def expired_units(db: Session, now: Optional[datetime] = None) -> List[BloodInventory]:
    return InventoryStore(db).find_expired(_now(now))


def total_available_quantity(blood_type: BloodType, db: Session, now: Optional[datetime] = None) -> int:
    return InventoryStore(db).total_available_quantity(blood_type, _now(now))
