"""
Main API router that includes all route modules.
"""
from fastapi import APIRouter
from backoffice.api.routes import commissions, financials, fx_rates, service_fees, splits

api_router = APIRouter()

# Include all route modules
api_router.include_router(financials.router)
api_router.include_router(fx_rates.router)
api_router.include_router(service_fees.router)
api_router.include_router(splits.router)
api_router.include_router(commissions.router)
