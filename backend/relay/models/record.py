# relay/models/record.py

from sqlalchemy import Column, Integer, String, Text, DateTime
from relay.models.base import Base
from relay.utils.clock import utcnow


class Record(Base):
    __tablename__ = "records"

    id = Column(Integer, primary_key=True, autoincrement=True)

    # 16-digit participant tokens, never mutated after insert
    sender = Column(String(16), nullable=False, index=True)
    recipient = Column(String(16), nullable=False, index=True)

    # Base64 envelope from core.crypto; the store never parses it
    envelope = Column(Text, nullable=False)

    # Random base64 noise, written once and never selected on the read path
    padding = Column(Text, nullable=True)

    # Client-supplied, truncated to seconds; drives ordering and retention
    instant = Column(DateTime, nullable=False, index=True)

    created = Column(DateTime, nullable=False, default=utcnow)
