from sqlalchemy import Column, String, Text, DateTime
from datetime import datetime, timezone
from .database import Base


def _now():
    return datetime.now(timezone.utc)


class StorageSlot(Base):
    """One named slot of the key-value store; the value is a serialized document."""
    __tablename__ = "storage_slots"

    key = Column(String(255), primary_key=True, index=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime, default=_now, onupdate=_now, nullable=False)
