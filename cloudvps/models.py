from sqlalchemy import Column, String, Text, DateTime
from datetime import datetime, timezone

from cloudvps.database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class KeyValue(Base):
    """Durable key/value row holding one JSON blob"""
    __tablename__ = "kv_store"

    key = Column(String, primary_key=True, index=True)
    value = Column(Text, nullable=False)  # JSON-encoded
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)
