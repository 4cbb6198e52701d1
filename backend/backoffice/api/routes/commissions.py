"""
Commission receipt routes.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from backoffice.db.session import get_db
from backoffice.schemas.commission import CommissionCreate, CommissionResponse
from backoffice.services.commission_service import record_commission

router = APIRouter(prefix="/commissions", tags=["commissions"])


@router.post("", response_model=CommissionResponse, status_code=status.HTTP_201_CREATED)
def create_commission(commission: CommissionCreate, db: Session = Depends(get_db)):
    """Record a commission receipt; the amount is given in major units (e.g. 125.50)."""
    return record_commission(
        db,
        activity_pricing_id=commission.activity_pricing_id,
        commission_amount=commission.commission_amount,
        commission_status=commission.commission_status,
        commission_rate=commission.commission_rate,
        notes=commission.notes,
    )
