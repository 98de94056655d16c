# Blood inventory router
from typing import List

import structlog
from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from bloodbank.database import get_db, Role
from bloodbank.models.schemas import (
    BloodUnitCreate,
    BloodUnitUpdate,
    BloodUnitResponse,
    TotalQuantityResponse,
    SweepResponse
)
from bloodbank.routers.common import parse_blood_type
from bloodbank.services import inventory_service
from bloodbank.services.access_filter import (
    AuthContext,
    require_role,
    require_authentication
)


router = APIRouter(prefix="/inventory", tags=["inventory"])
logger = structlog.get_logger(__name__)

STOCK_MANAGERS = (Role.ADMIN, Role.TECHNICIAN, Role.NURSE)
DISPENSERS = (Role.ADMIN, Role.DOCTOR, Role.NURSE)
EXPIRY_MANAGERS = (Role.ADMIN, Role.TECHNICIAN)


@router.get("", response_model=List[BloodUnitResponse])
def list_inventory(
    context: AuthContext = Depends(require_authentication),
    db: Session = Depends(get_db)
):
    return inventory_service.list_blood_units(db)


@router.get("/available", response_model=List[BloodUnitResponse])
def available_inventory(
    context: AuthContext = Depends(require_authentication),
    db: Session = Depends(get_db)
):
    """Units with status AVAILABLE whose expiry is still in the future."""
    return inventory_service.available_units(db)


@router.get("/available/{blood_type}", response_model=List[BloodUnitResponse])
def available_inventory_by_type(
    blood_type: str,
    context: AuthContext = Depends(require_authentication),
    db: Session = Depends(get_db)
):
    return inventory_service.available_units_by_type(parse_blood_type(blood_type), db)


@router.get("/total/{blood_type}", response_model=TotalQuantityResponse)
def total_available(
    blood_type: str,
    context: AuthContext = Depends(require_authentication),
    db: Session = Depends(get_db)
):
    parsed = parse_blood_type(blood_type)
    return {
        "blood_type": parsed,
        "total_quantity": inventory_service.total_available_quantity(parsed, db)
    }


@router.get("/type/{blood_type}", response_model=List[BloodUnitResponse])
def inventory_by_type(
    blood_type: str,
    context: AuthContext = Depends(require_authentication),
    db: Session = Depends(get_db)
):
    return inventory_service.units_by_type(parse_blood_type(blood_type), db)


@router.get("/expired", response_model=List[BloodUnitResponse])
def expired_inventory(
    context: AuthContext = Depends(require_role(*EXPIRY_MANAGERS)),
    db: Session = Depends(get_db)
):
    return inventory_service.expired_units(db)


@router.post("/sweep-expired", response_model=SweepResponse)
def sweep_expired_inventory(
    context: AuthContext = Depends(require_role(*EXPIRY_MANAGERS)),
    db: Session = Depends(get_db)
):
    """
    Run the expiry sweep on demand at server time. The scheduled job calls
    the same service function.
    """
    units = inventory_service.sweep_expired(db)
    logger.info("Expiry sweep requested", username=context.username, affected=len(units))
    return {"affected": len(units), "units": units}


@router.post("/add", response_model=BloodUnitResponse)
def add_blood_unit(
    unit: BloodUnitCreate,
    context: AuthContext = Depends(require_role(*STOCK_MANAGERS)),
    db: Session = Depends(get_db)
):
    logger.debug("Adding blood unit", username=context.username, role=context.role.value)
    return inventory_service.add_blood_unit(unit, db)


@router.get("/{unit_id}", response_model=BloodUnitResponse)
def get_blood_unit(
    unit_id: int,
    context: AuthContext = Depends(require_authentication),
    db: Session = Depends(get_db)
):
    return inventory_service.get_blood_unit(unit_id, db)


@router.put("/{unit_id}", response_model=BloodUnitResponse)
def update_blood_unit(
    unit_id: int,
    unit: BloodUnitUpdate,
    context: AuthContext = Depends(require_role(*STOCK_MANAGERS)),
    db: Session = Depends(get_db)
):
    logger.debug("Updating blood unit", unit_id=unit_id, username=context.username)
    return inventory_service.update_blood_unit(unit_id, unit, db)


@router.post("/{unit_id}/remove", status_code=status.HTTP_204_NO_CONTENT)
def remove_blood_unit(
    unit_id: int,
    quantity: int = Query(...),
    context: AuthContext = Depends(require_role(*DISPENSERS)),
    db: Session = Depends(get_db)
):
    inventory_service.remove_blood_unit(unit_id, quantity, db)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
