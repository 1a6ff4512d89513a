"""
Work Day database model.

One driver, one truck, one job for the whole day. Owns the day's activity log.
"""

from sqlalchemy import Column, Integer, String, Text, ForeignKey, DateTime, Enum
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from haulage.app.db.session import Base
from haulage.app.models.activity_enums import WorkDayStatus


class WorkDay(Base):
    """
    Work Day model.

    Only one ACTIVE work day per driver; enforced by lookup in the
    lifecycle service, not by a constraint.
    """
    __tablename__ = "work_days"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Assignment (fixed for the day)
    driver_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)
    truck_id = Column(Integer, ForeignKey('trucks.id'), nullable=False, index=True)
    job_id = Column(Integer, ForeignKey('jobs.id'), nullable=False, index=True)
    material_id = Column(Integer, ForeignKey('materials.id'), nullable=False)
    source_location_id = Column(Integer, ForeignKey('locations.id'), nullable=False)
    destination_location_id = Column(Integer, ForeignKey('locations.id'), nullable=False)
    work_date = Column(DateTime(timezone=True), nullable=False)

    # Status
    status = Column(Enum(WorkDayStatus), default=WorkDayStatus.ACTIVE, nullable=False, index=True)
    total_loads = Column(Integer, default=0, nullable=False)  # Set on completion only

    # End-of-day sign-off
    driver_signature = Column(Text, nullable=True)
    operator_name = Column(String(255), nullable=True)
    operator_signature = Column(Text, nullable=True)

    # Timestamps
    start_time = Column(DateTime(timezone=True), nullable=True)
    end_time = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    activities = relationship(
        "Activity", back_populates="work_day", cascade="all, delete-orphan", lazy="noload"
    )

    def __repr__(self):
        return f"<WorkDay(id={self.id}, driver_id={self.driver_id}, status='{self.status.value}')>"
