"""
Job database model.
"""

from sqlalchemy import Column, Integer, String, Text, DateTime
from sqlalchemy.sql import func
from haulage.app.db.session import Base


class Job(Base):
    """Job a dispatch hauls material for."""
    __tablename__ = "jobs"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    customer_name = Column(String(255), nullable=True)
    status = Column(String(50), default="active", nullable=False)  # active, completed, cancelled
    description = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Job(id={self.id}, name='{self.name}')>"
