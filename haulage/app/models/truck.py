"""
Truck database model.
"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime
from sqlalchemy.sql import func
from haulage.app.db.session import Base


class Truck(Base):
    """
    Truck model.

    A dump truck that a driver takes out for the day.
    """
    __tablename__ = "trucks"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    number = Column(String(50), nullable=False, index=True)
    type = Column(String(100), nullable=False)  # Side Dump, Super Side Dump, Tri-Axle...
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Truck(id={self.id}, number='{self.number}')>"
