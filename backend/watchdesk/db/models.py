# backend/watchdesk/db/models.py

import datetime
import uuid

from sqlalchemy import Boolean, Column, DateTime, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class WatchlistItem(Base):
    __tablename__ = "watchlist_items"
    __table_args__ = (UniqueConstraint("user_id", "symbol", name="uq_watchlist_user_symbol"),)

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    # Opaque identity handed over by the auth layer
    user_id = Column(String, nullable=False, index=True)
    symbol = Column(String, nullable=False, index=True)
    company_name = Column(String, nullable=False)
    active = Column(Boolean, default=True, nullable=False)
    added_at = Column(DateTime, default=datetime.datetime.utcnow, nullable=False)
    removed_at = Column(DateTime)

    def __repr__(self):
        return f"<WatchlistItem(user_id='{self.user_id}', symbol='{self.symbol}')>"
