from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, DateTime, JSON

from .database import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ConvoSession(Base):
    __tablename__ = "convo_sessions"

    id = Column(Integer, primary_key=True, index=True)
    session_key = Column(String, unique=True, index=True, nullable=False)
    state = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    last_updated = Column(DateTime(timezone=True), nullable=False, default=utcnow)
