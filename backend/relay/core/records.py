# relay/core/records.py

from datetime import datetime
from sqlalchemy import or_, select
from sqlalchemy.orm import Session, aliased
from relay.models.record import Record

DEFAULT_FETCH_LIMIT = 100


def append(
    db: Session,
    sender: str,
    recipient: str,
    envelope: str,
    padding: str,
    instant: datetime
) -> int:
    """Persist one sealed record and return its id"""
    if not sender or not recipient or not envelope or padding is None or instant is None:
        raise ValueError("sender, recipient, envelope, padding and instant are required")

    record = Record(
        sender=sender,
        recipient=recipient,
        envelope=envelope,
        padding=padding,
        instant=instant
    )

    db.add(record)
    db.commit()
    db.refresh(record)
    return record.id


def recent_for(db: Session, token: str, limit: int = DEFAULT_FETCH_LIMIT):
    """
    Youngest records where the token is sender or recipient.
    Rows expose id, sender, recipient, envelope and instant only.
    """
    return (
        db.query(
            Record.id,
            Record.sender,
            Record.recipient,
            Record.envelope,
            Record.instant,
        )
        .filter(or_(Record.sender == token, Record.recipient == token))
        .order_by(Record.instant.desc(), Record.id.desc())
        .limit(limit)
        .all()
    )


def delete_for(db: Session, token: str) -> int:
    """Delete every record touching the token; returns the row count"""
    deleted = (
        db.query(Record)
        .filter(or_(Record.sender == token, Record.recipient == token))
        .delete(synchronize_session=False)
    )
    db.commit()
    return deleted


def trim_to_tail(db: Session, keep: int) -> int:
    """
    Keep only the `keep` youngest records (instant desc, then id desc)
    and delete the rest. Returns the row count deleted.
    """
    # Aliased so the subquery is not correlated against the DELETE target
    kept = aliased(Record)
    tail = (
        select(kept.id)
        .order_by(kept.instant.desc(), kept.id.desc())
        .limit(keep)
    )

    deleted = (
        db.query(Record)
        .filter(Record.id.not_in(tail))
        .delete(synchronize_session=False)
    )
    db.commit()
    return deleted


def count(db: Session) -> int:
    return db.query(Record).count()
