"""
Inventory Store
Queries and atomic writes over the blood_inventory table.
"""
from datetime import datetime
from typing import List, Optional

from sqlalchemy import func, update
from sqlalchemy.orm import Session

from bloodbank.database import BloodInventory, BloodType, InventoryStatus


class InventoryStore:
    def __init__(self, db: Session):
        self.db = db

    def find_by_id(self, unit_id: int) -> Optional[BloodInventory]:
        return self.db.query(BloodInventory).filter(BloodInventory.id == unit_id).first()

    def find_by_batch_number(self, batch_number: str) -> Optional[BloodInventory]:
        return self.db.query(BloodInventory).filter(
            BloodInventory.batch_number == batch_number
        ).first()

    def save(self, unit: BloodInventory) -> BloodInventory:
        try:
            self.db.add(unit)
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise
        self.db.refresh(unit)
        return unit

    def find_all(self) -> List[BloodInventory]:
        return self.db.query(BloodInventory).order_by(BloodInventory.id).all()

    def find_by_blood_type(self, blood_type: BloodType) -> List[BloodInventory]:
        return self.db.query(BloodInventory).filter(
            BloodInventory.blood_type == blood_type
        ).order_by(BloodInventory.id).all()

    def _available_query(self, now: datetime):
        return self.db.query(BloodInventory).filter(
            BloodInventory.status == InventoryStatus.AVAILABLE,
            BloodInventory.expiry_date > now
        )

    def find_available(self, now: datetime) -> List[BloodInventory]:
        return self._available_query(now).order_by(BloodInventory.expiry_date).all()

    def find_available_by_blood_type(self, blood_type: BloodType, now: datetime) -> List[BloodInventory]:
        return self._available_query(now).filter(
            BloodInventory.blood_type == blood_type
        ).order_by(BloodInventory.expiry_date).all()

    def find_expired(self, now: datetime) -> List[BloodInventory]:
        return self.db.query(BloodInventory).filter(
            BloodInventory.expiry_date <= now
        ).order_by(BloodInventory.id).all()

    def total_available_quantity(self, blood_type: BloodType, now: datetime) -> int:
        total = self.db.query(func.coalesce(func.sum(BloodInventory.quantity), 0)).filter(
            BloodInventory.blood_type == blood_type,
            BloodInventory.status == InventoryStatus.AVAILABLE,
            BloodInventory.expiry_date > now
        ).scalar()
        return int(total or 0)

    # ==================== Atomic Writes ====================
    # These statements do not commit; the caller owns the transaction.

    def decrement_quantity(self, unit_id: int, quantity: int) -> bool:
        """
        Subtract `quantity` only if at least that much is left.
        The check and the write are one statement, so concurrent callers
        cannot both pass the check. Returns False when no row was changed.
        """
        result = self.db.execute(
            update(BloodInventory)
            .where(BloodInventory.id == unit_id, BloodInventory.quantity >= quantity)
            .values(quantity=BloodInventory.quantity - quantity),
            execution_options={"synchronize_session": False}
        )
        return result.rowcount == 1

    def discard_if_exhausted(self, unit_id: int) -> bool:
        result = self.db.execute(
            update(BloodInventory)
            .where(BloodInventory.id == unit_id, BloodInventory.quantity == 0)
            .values(status=InventoryStatus.DISCARDED),
            execution_options={"synchronize_session": False}
        )
        return result.rowcount == 1

    def find_expirable_ids(self, now: datetime) -> List[int]:
        """Ids of units past expiry that the sweep may still mark (DISCARDED is left alone)."""
        rows = self.db.query(BloodInventory.id).filter(
            BloodInventory.expiry_date <= now,
            BloodInventory.status != InventoryStatus.DISCARDED
        ).order_by(BloodInventory.id).all()
        return [row[0] for row in rows]

    def mark_expired(self, unit_ids: List[int]) -> int:
        if not unit_ids:
            return 0
        result = self.db.execute(
            update(BloodInventory)
            .where(
                BloodInventory.id.in_(unit_ids),
                BloodInventory.status != InventoryStatus.DISCARDED
            )
            .values(status=InventoryStatus.EXPIRED),
            execution_options={"synchronize_session": False}
        )
        return result.rowcount

    def find_by_ids(self, unit_ids: List[int]) -> List[BloodInventory]:
        if not unit_ids:
            return []
        return self.db.query(BloodInventory).filter(
            BloodInventory.id.in_(unit_ids)
        ).order_by(BloodInventory.id).all()
