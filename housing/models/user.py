from sqlalchemy import Column, String, Integer, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from housing.core.database import Base


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)

    # Supabase JWT "sub"
    open_id = Column(String(64), nullable=False, unique=True, index=True)
    name = Column(String(200), nullable=True)
    email = Column(String(320), nullable=True)
    role = Column(String(20), nullable=False, default="user")  # user/admin

    sector_id = Column(Integer, ForeignKey("sectors.id"), nullable=True, index=True)
    sector = relationship("Sector", back_populates="users")

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now(), server_default=func.now(), nullable=False)
    last_signed_in = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
