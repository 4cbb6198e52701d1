"""
Activity traveller split routes.
"""
from typing import List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from backoffice.db.session import get_db
from backoffice.api.dependencies import get_resolver
from backoffice.schemas.split import ActivitySplitsSummary, DeletedSplits, SetActivitySplitsRequest, SplitResponse
from backoffice.services.fx_service import ExchangeRateResolver
from backoffice.services.traveller_split_service import TravellerSplitService

router = APIRouter(tags=["splits"])


def get_split_service(
    db: Session = Depends(get_db),
    resolver: ExchangeRateResolver = Depends(get_resolver),
) -> TravellerSplitService:
    return TravellerSplitService(db, resolver)


@router.get("/activities/{activity_id}/splits", response_model=ActivitySplitsSummary)
def get_activity_splits(activity_id: int, service: TravellerSplitService = Depends(get_split_service)):
    """Get an activity's splits and the travellers not yet covered."""
    return service.get_activity_splits(activity_id)


@router.put("/activities/{activity_id}/splits", response_model=ActivitySplitsSummary)
def set_activity_splits(
    activity_id: int,
    request: SetActivitySplitsRequest,
    service: TravellerSplitService = Depends(get_split_service),
):
    """Replace an activity's splits with an equal or custom division."""
    return service.set_activity_splits(activity_id, request.split_type, request.splits)


@router.delete("/activities/{activity_id}/splits", status_code=status.HTTP_204_NO_CONTENT)
def delete_activity_splits(activity_id: int, service: TravellerSplitService = Depends(get_split_service)):
    service.delete_activity_splits(activity_id)
    return None


@router.get("/trips/{trip_id}/travellers/{traveller_id}/splits", response_model=List[SplitResponse])
def get_traveller_splits(
    trip_id: int,
    traveller_id: int,
    service: TravellerSplitService = Depends(get_split_service),
):
    """List one traveller's splits across the trip."""
    return service.get_traveller_splits(trip_id, traveller_id)


@router.delete("/trips/{trip_id}/travellers/{traveller_id}/splits", response_model=DeletedSplits)
def delete_traveller_splits(
    trip_id: int,
    traveller_id: int,
    service: TravellerSplitService = Depends(get_split_service),
):
    """Remove a traveller's splits, e.g. before removing them from the trip."""
    return DeletedSplits(affected_activity_ids=service.delete_traveller_splits(trip_id, traveller_id))
