from fastapi import HTTPException, status

from bloodbank.database import BloodType


def parse_blood_type(value: str) -> BloodType:
    """Path parameter parsing: unknown blood types are a 400, not a 422."""
    try:
        return BloodType.parse(value)
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown blood type: {value}"
        )
