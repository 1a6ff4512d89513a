"""
Material database model.
"""

from sqlalchemy import Column, Integer, String, Float, DateTime
from sqlalchemy.sql import func
from haulage.app.db.session import Base


class Material(Base):
    """
    Material model.

    The type drives the loading popup: "export" materials skip ticket
    and weight collection.
    """
    __tablename__ = "materials"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    type = Column(String(100), nullable=False)  # A1A, A1B, State Spec Road Base, Export Fill...
    price_per_load = Column(Float, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Material(id={self.id}, type='{self.type}')>"
