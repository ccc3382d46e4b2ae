import asyncio
import logging
from app.config import settings
from app.database.supabase_client import get_service_supabase
from app.modules.pending_automations.service import PendingAutomationService

logger = logging.getLogger(__name__)


async def cleanup_expired_pending_automations() -> int:
    """Delete expired pending automations; errors are logged and reported as 0 deleted"""
    try:
        service = PendingAutomationService(get_service_supabase())
        return service.cleanup_expired()
    except Exception as e:
        logger.error(f"Error in pending cleanup: {str(e)}")
        return 0


async def pending_cleanup_loop():
    """Background task that periodically removes expired pending automations"""
    while True:
        try:
            await cleanup_expired_pending_automations()
        except Exception as e:
            logger.error(f"Error in pending cleanup loop: {str(e)}")

        await asyncio.sleep(settings.pending_cleanup_interval_sec)
