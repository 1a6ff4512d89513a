"""
Dispatch enumerations.
"""

import enum


class DispatchStatus(str, enum.Enum):
    """Dispatch status enumeration."""
    CREATED = "created"
    ASSIGNED_TO_LH = "assigned_to_lh"  # At least one lease hauler holds trucks on it
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
