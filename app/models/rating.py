# app/models/rating.py
import uuid
from datetime import datetime
from sqlalchemy import Column, Integer, DateTime, ForeignKey, CheckConstraint, UniqueConstraint, Index, Uuid
from app.db.base import Base


class Rating(Base):
    __tablename__ = "ratings"
    __table_args__ = (
        UniqueConstraint("user_id", "store_id", name="uq_ratings_user_store"),
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_ratings_rating_range"),
        Index("idx_ratings_user_id", "user_id"),
        Index("idx_ratings_store_id", "store_id"),
        Index("idx_ratings_user_store", "user_id", "store_id"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    # rater profile, not the auth account
    user_id = Column(Uuid, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    store_id = Column(Uuid, ForeignKey("stores.id", ondelete="CASCADE"), nullable=False)
    rating = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
