"""
Background jobs: the daily exchange rate refresh.
"""
import logging
from typing import Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger

from backoffice.core.config import settings
from backoffice.schemas.exchange_rate import RefreshResult

logger = logging.getLogger(__name__)

FX_REFRESH_JOB_ID = "fx_daily_refresh"


def run_daily_rate_refresh() -> Optional[RefreshResult]:
    """Refresh today's rates in a session of its own."""
    from backoffice.db.session import SessionLocal
    from backoffice.services.fx_service import ExchangeRateResolver, get_rate_cache, get_rate_provider

    db = SessionLocal()
    try:
        resolver = ExchangeRateResolver(db, provider=get_rate_provider(), cache=get_rate_cache())
        result = resolver.refresh_daily_rates()
        if result.failed_bases:
            logger.warning(f"FX refresh failed for: {', '.join(result.failed_bases)}")
        return result
    except Exception as e:
        logger.exception(f"FX refresh job failed: {e}")
        return None
    finally:
        db.close()


def create_scheduler() -> BackgroundScheduler:
    """Scheduler with the daily refresh registered at FX_REFRESH_HOUR_UTC."""
    scheduler = BackgroundScheduler(timezone="UTC")
    scheduler.add_job(
        run_daily_rate_refresh,
        CronTrigger(hour=settings.FX_REFRESH_HOUR_UTC, minute=0, timezone="UTC"),
        id=FX_REFRESH_JOB_ID,
        max_instances=1,
        coalesce=True,
        replace_existing=True,
    )
    return scheduler
