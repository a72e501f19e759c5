# app/models/user.py
import uuid
from datetime import datetime
from sqlalchemy import Column, Text, DateTime, JSON, Uuid
from app.db.base import Base


class User(Base):
    """Authentication account. Registering one provisions its Profile."""

    __tablename__ = "users"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    email = Column(Text, unique=True, nullable=False)
    hashed_password = Column(Text, nullable=False)
    raw_user_meta_data = Column(JSON, default=dict, nullable=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
