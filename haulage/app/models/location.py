"""
Location database model.
"""

from sqlalchemy import Column, Integer, String, Float, DateTime, Enum
from sqlalchemy.sql import func
from haulage.app.db.session import Base
from haulage.app.models.activity_enums import LocationKind


class Location(Base):
    """Load site (source) or dump site (destination)."""
    __tablename__ = "locations"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    address = Column(String(500), nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    kind = Column(Enum(LocationKind), nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Location(id={self.id}, name='{self.name}', kind='{self.kind.value}')>"
