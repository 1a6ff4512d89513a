"""
Activity database model.

Append-only log of GPS-stamped driver actions. Rows are never deleted;
rewind only sets the cancellation flag.
"""

from sqlalchemy import Column, Integer, String, Float, Text, Boolean, ForeignKey, DateTime, Enum, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from haulage.app.db.session import Base
from haulage.app.models.activity_enums import ActivityType


class Activity(Base):
    """
    Activity record model.

    Ordering for state derivation is by `timestamp` (client clock), with
    `id` as the tie-breaker, never by insertion order alone.
    """
    __tablename__ = "activities"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    work_day_id = Column(Integer, ForeignKey('work_days.id'), nullable=False, index=True)
    load_number = Column(Integer, nullable=False)
    activity_type = Column(Enum(ActivityType), nullable=False)
    timestamp = Column(DateTime(timezone=True), nullable=False)

    # GPS (optional metadata)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)

    # Load data, only on loaded_with_material
    ticket_number = Column(String(100), nullable=True)
    net_weight = Column(Float, nullable=True)  # tons
    notes = Column(Text, nullable=True)

    # Soft cancellation (audit trail)
    cancelled = Column(Boolean, default=False, nullable=False)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    work_day = relationship("WorkDay", back_populates="activities", lazy="noload")

    __table_args__ = (
        Index('ix_activities_work_day_timestamp', 'work_day_id', 'timestamp'),
    )

    def __repr__(self):
        return (
            f"<Activity(id={self.id}, work_day_id={self.work_day_id}, "
            f"type='{self.activity_type.value}', cancelled={self.cancelled})>"
        )
