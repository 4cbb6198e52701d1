"""
Service fee routes.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List
from backoffice.db.session import get_db
from backoffice.api.dependencies import get_resolver
from backoffice.schemas.service_fee import RefundRequest, ServiceFeeCreate, ServiceFeeResponse, ServiceFeeUpdate
from backoffice.services.fx_service import ExchangeRateResolver
from backoffice.services.service_fee_service import ServiceFeeService

router = APIRouter(tags=["service-fees"])


def get_service_fee_service(
    db: Session = Depends(get_db),
    resolver: ExchangeRateResolver = Depends(get_resolver),
) -> ServiceFeeService:
    return ServiceFeeService(db, resolver)


@router.get("/trips/{trip_id}/service-fees", response_model=List[ServiceFeeResponse])
def list_service_fees(trip_id: int, service: ServiceFeeService = Depends(get_service_fee_service)):
    """List all service fees of a trip, newest first."""
    return service.list_fees(trip_id)


@router.post(
    "/trips/{trip_id}/service-fees",
    response_model=ServiceFeeResponse,
    status_code=status.HTTP_201_CREATED,
)
def create_service_fee(
    trip_id: int,
    fee_data: ServiceFeeCreate,
    service: ServiceFeeService = Depends(get_service_fee_service),
):
    """Create a draft service fee. Foreign-currency fees get today's rate snapshotted."""
    return service.create_fee(trip_id, fee_data)


@router.get("/service-fees/{fee_id}", response_model=ServiceFeeResponse)
def get_service_fee(fee_id: int, service: ServiceFeeService = Depends(get_service_fee_service)):
    return service.get_fee(fee_id)


@router.patch("/service-fees/{fee_id}", response_model=ServiceFeeResponse)
def update_service_fee(
    fee_id: int,
    fee_update: ServiceFeeUpdate,
    service: ServiceFeeService = Depends(get_service_fee_service),
):
    """Update a draft service fee."""
    return service.update_fee(fee_id, fee_update)


@router.delete("/service-fees/{fee_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_service_fee(fee_id: int, service: ServiceFeeService = Depends(get_service_fee_service)):
    """Delete a draft service fee."""
    service.delete_fee(fee_id)
    return None


@router.post("/service-fees/{fee_id}/send", response_model=ServiceFeeResponse)
def send_service_fee(fee_id: int, service: ServiceFeeService = Depends(get_service_fee_service)):
    return service.send_fee(fee_id)


@router.post("/service-fees/{fee_id}/pay", response_model=ServiceFeeResponse)
def pay_service_fee(fee_id: int, service: ServiceFeeService = Depends(get_service_fee_service)):
    return service.mark_paid(fee_id)


@router.post("/service-fees/{fee_id}/refund", response_model=ServiceFeeResponse)
def refund_service_fee(
    fee_id: int,
    refund: RefundRequest,
    service: ServiceFeeService = Depends(get_service_fee_service),
):
    """Refund part or all of a paid service fee."""
    return service.refund_fee(fee_id, refund)


@router.post("/service-fees/{fee_id}/cancel", response_model=ServiceFeeResponse)
def cancel_service_fee(fee_id: int, service: ServiceFeeService = Depends(get_service_fee_service)):
    return service.cancel_fee(fee_id)
