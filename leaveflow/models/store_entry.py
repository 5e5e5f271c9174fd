from sqlalchemy import Column, Integer, String, JSON, DateTime
from sqlalchemy.sql import func
from leaveflow.database import Base

class StoreEntry(Base):
    """One JSON-serialized collection (users, balances, applications, ...) per row."""
    __tablename__ = "store_entries"

    key = Column(String, primary_key=True)
    payload = Column(JSON, nullable=False, default=list)
    version = Column(Integer, nullable=False, default=1)  # bumped on every write, used for compare-and-set
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
