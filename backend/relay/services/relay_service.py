# relay/services/relay_service.py

import logging
import random
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from relay.core import crypto, participant, records, retention
from relay.core.errors import BadRequest, StorageUnavailable
from relay.core.padding import generate_padding
from relay.core.tokens import is_valid_token
from relay.utils.clock import parse_instant, utcnow

logger = logging.getLogger(__name__)

PLACEHOLDER_PAYLOAD = "[Decryption failed]"
ACTIVE_WINDOW = timedelta(minutes=5)


@dataclass
class SubmitReceipt:
    message_id: int
    server_instant: datetime


def _require_token(token, message: str) -> None:
    if not is_valid_token(token):
        raise BadRequest(message)


def submit_message(
    db: Session,
    sender: Optional[str],
    recipient: Optional[str],
    payload: Optional[str],
    timestamp: Optional[str] = None,
    schedule: Optional[Callable] = None,
    rng: Optional[random.Random] = None,
) -> SubmitReceipt:
    """
    Validate, touch both participants, re-seal the payload and store it.
    When the retention coin flip comes up, the trim is handed to `schedule`
    (e.g. BackgroundTasks.add_task) or run inline if none is given.
    """
    # 1. Validate everything before the first storage call
    if not sender or not recipient or not payload:
        raise BadRequest("Missing required fields")
    _require_token(sender, "Invalid key format")
    _require_token(recipient, "Invalid key format")
    if not isinstance(payload, str):
        raise BadRequest("Missing required fields")
    try:
        plaintext = payload.encode("utf-8")
    except UnicodeEncodeError:
        raise BadRequest("Invalid message encoding")

    if timestamp:
        try:
            instant = parse_instant(timestamp)
        except (TypeError, ValueError, OverflowError):
            raise BadRequest("Invalid timestamp")
    else:
        instant = utcnow().replace(microsecond=0)

    # 2. Activity is recorded even if sealing or the insert fails below
    participant.touch(db, sender)
    participant.touch(db, recipient)

    # 3-4. Outer envelope bound to (sender, recipient), plus size noise
    envelope = crypto.seal(plaintext, sender, recipient)
    padding = generate_padding()

    # 5. Store
    try:
        message_id = records.append(db, sender, recipient, envelope, padding, instant)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Message send failed (%s -> %s)", sender, recipient)
        raise StorageUnavailable("Failed to send message")

    # 6. Probabilistic FIFO cleanup, never awaited by the sender
    if retention.trim_due(rng):
        (schedule or _run_now)(retention.enforce_tail_cap)

    return SubmitReceipt(message_id=message_id, server_instant=utcnow())


def _run_now(task: Callable) -> None:
    task()


def _open(row) -> str:
    try:
        plaintext = crypto.unseal(row.envelope, row.sender, row.recipient)
        return plaintext.decode("utf-8")
    except (crypto.TamperOrWrongKey, UnicodeDecodeError):
        logger.debug("Decryption failed for record %s", row.id)
        return PLACEHOLDER_PAYLOAD


def fetch_messages(db: Session, token: Optional[str]) -> list[dict]:
    """
    Every recent record touching the token, newest first, unsealed.
    Pair filtering is left to the client.
    """
    _require_token(token, "Invalid device key")

    try:
        rows = records.recent_for(db, token, records.DEFAULT_FETCH_LIMIT)
    except SQLAlchemyError:
        logger.exception("Message retrieval failed for %s", token)
        raise StorageUnavailable("Failed to retrieve messages")

    return [
        {
            "id": row.id,
            "senderKey": row.sender,
            "recipientKey": row.recipient,
            "encryptedData": _open(row),
            "timestamp": row.instant.isoformat(),
        }
        for row in rows
    ]


def purge_messages(db: Session, token: Optional[str]) -> int:
    _require_token(token, "Invalid device key")

    try:
        deleted = records.delete_for(db, token)
    except SQLAlchemyError:
        db.rollback()
        logger.exception("Message deletion failed for %s", token)
        raise StorageUnavailable("Failed to delete messages")

    logger.info("🗑️ Purged %d records for %s", deleted, token)
    return deleted


def count_active_nodes(db: Session, now: Optional[datetime] = None) -> int:
    """Participants seen within the last five minutes"""
    cutoff = (now or utcnow()) - ACTIVE_WINDOW
    try:
        return participant.count_active_since(db, cutoff)
    except SQLAlchemyError:
        logger.exception("Node count failed")
        raise StorageUnavailable("Failed to get node count")
