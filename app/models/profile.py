# app/models/profile.py
import uuid
from datetime import datetime
from sqlalchemy import Column, Text, DateTime, Enum, ForeignKey, CheckConstraint, Index, Uuid
from app.db.base import Base
from app.models.enums import UserRole


class Profile(Base):
    __tablename__ = "profiles"
    __table_args__ = (
        CheckConstraint("length(name) >= 20 AND length(name) <= 60", name="ck_profiles_name_length"),
        CheckConstraint("length(address) <= 400", name="ck_profiles_address_length"),
        Index("idx_profiles_user_id", "user_id"),
        Index("idx_profiles_role", "role"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    name = Column(Text, nullable=False)
    email = Column(Text, nullable=False)
    address = Column(Text)
    role = Column(Enum(UserRole, name="user_role"), nullable=False, default=UserRole.normal_user)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
