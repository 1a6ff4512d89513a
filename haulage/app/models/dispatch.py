"""
Dispatch database models.

A dispatch is a broker's order for a number of trucks on a job for one day.
Trucks are sourced from lease-hauler companies through assignments.
"""

from sqlalchemy import Column, Integer, String, Text, ForeignKey, DateTime, Enum
from sqlalchemy.sql import func
from haulage.app.db.session import Base
from haulage.app.models.dispatch_enums import DispatchStatus


class Dispatch(Base):
    __tablename__ = "dispatches"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    broker_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)
    job_id = Column(Integer, ForeignKey('jobs.id'), nullable=True, index=True)

    # Order
    job_name = Column(String(255), nullable=False)
    invoice_job_name = Column(String(255), nullable=True)
    date = Column(DateTime(timezone=True), nullable=False)
    start_time = Column(String(20), nullable=False)  # Local wall-clock, e.g. "06:30"
    truck_type = Column(String(100), nullable=False)
    quantity = Column(Integer, nullable=False)  # Trucks requested
    material_type = Column(String(100), nullable=False)
    material_from = Column(String(500), nullable=False)
    delivered_to = Column(String(500), nullable=False)
    account = Column(String(255), nullable=True)
    travel_time = Column(Integer, default=0, nullable=False)  # Minutes
    material_from_gps_pin = Column(String(100), nullable=True)
    delivered_to_gps_pin = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)

    status = Column(Enum(DispatchStatus), default=DispatchStatus.CREATED, nullable=False, index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Dispatch(id={self.id}, job_name='{self.job_name}', status='{self.status.value}')>"


class CompanyDispatchAssignment(Base):
    """Trucks a lease-hauler company commits to a dispatch."""
    __tablename__ = "company_dispatch_assignments"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    dispatch_id = Column(Integer, ForeignKey('dispatches.id'), nullable=False, index=True)
    company_id = Column(Integer, ForeignKey('companies.id'), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    assigned_by = Column(Integer, ForeignKey('users.id'), nullable=False)

    assigned_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return (
            f"<CompanyDispatchAssignment(dispatch_id={self.dispatch_id}, "
            f"company_id={self.company_id}, quantity={self.quantity})>"
        )
