# relay/core/retention.py

import logging
import random
from relay.core.records import trim_to_tail
from relay.infra.postgres import db_session

logger = logging.getLogger(__name__)

RETENTION_CAP = 1000
TRIM_PROBABILITY = 0.10


def trim_due(rng: random.Random | None = None) -> bool:
    """Independent coin flip made after every successful append"""
    return (rng or random).random() < TRIM_PROBABILITY


def enforce_tail_cap(keep: int = RETENTION_CAP) -> None:
    """
    Best-effort FIFO trim, run outside the request that triggered it.
    Uses its own session; errors are logged and never reach the client.
    """
    try:
        with db_session() as db:
            deleted = trim_to_tail(db, keep)
    except Exception:
        logger.exception("Message cleanup failed")
        return

    if deleted:
        logger.info("🗑️ Trimmed %d records beyond the newest %d", deleted, keep)
