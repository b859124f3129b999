from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)

async def log_liveness() -> str:
    """Периодическая отметка о том, что сервер жив. Состояние не трогает."""
    now = datetime.now(timezone.utc).isoformat()
    logger.info("Server is alive and running at %s", now)
    return now
