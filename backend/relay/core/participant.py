# relay/core/participant.py

import logging
from datetime import datetime
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from relay.models.participant import Participant
from relay.utils.clock import utcnow

logger = logging.getLogger(__name__)


def touch(db: Session, token: str) -> None:
    """
    Insert the token or refresh its last_seen.
    Never raises: a failed touch is logged and the caller carries on.
    """
    try:
        _upsert(db, token)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Participant touch failed for %s", token)


def _upsert(db: Session, token: str) -> None:
    now = utcnow()

    existing = db.query(Participant).filter(Participant.token == token).first()
    if existing:
        existing.last_seen = now
        db.commit()
        return

    db.add(Participant(token=token, last_seen=now))
    try:
        db.commit()
    except IntegrityError:
        # A concurrent request inserted the same token first
        db.rollback()
        db.query(Participant).filter(Participant.token == token).update(
            {Participant.last_seen: now}, synchronize_session=False
        )
        db.commit()


def count_active_since(db: Session, cutoff: datetime) -> int:
    """Distinct tokens seen at or after cutoff"""
    count = (
        db.query(func.count(func.distinct(Participant.token)))
        .filter(Participant.last_seen >= cutoff)
        .scalar()
    )
    return count or 0
