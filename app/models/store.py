# app/models/store.py
import uuid
from datetime import datetime
from sqlalchemy import Column, Text, DateTime, ForeignKey, CheckConstraint, Index, Uuid
from app.db.base import Base


class Store(Base):
    __tablename__ = "stores"
    __table_args__ = (
        CheckConstraint("length(name) >= 20 AND length(name) <= 60", name="ck_stores_name_length"),
        CheckConstraint("length(address) >= 1 AND length(address) <= 400", name="ck_stores_address_length"),
        Index("idx_stores_owner_id", "owner_id"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_id = Column(Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    name = Column(Text, nullable=False)
    email = Column(Text, nullable=False)
    address = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
