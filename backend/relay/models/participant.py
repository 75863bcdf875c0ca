# relay/models/participant.py

from sqlalchemy import Column, Integer, String, DateTime
from relay.models.base import Base
from relay.utils.clock import utcnow


class Participant(Base):
    __tablename__ = "participants"

    id = Column(Integer, primary_key=True, autoincrement=True)
    token = Column(String(16), unique=True, nullable=False, index=True)
    last_seen = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)
