"""
Work day and activity enumerations.
"""

import enum


class ActivityType(str, enum.Enum):
    """Activity type enumeration."""
    ARRIVED_AT_LOAD_SITE = "arrived_at_load_site"
    LOADED_WITH_MATERIAL = "loaded_with_material"
    ARRIVED_AT_DUMP_SITE = "arrived_at_dump_site"
    DUMPED_MATERIAL = "dumped_material"
    BREAK = "break"  # Suspends the cycle
    BREAKDOWN = "breakdown"  # Suspends the cycle
    DRIVING = "driving"  # Resumes after break/breakdown


class WorkDayStatus(str, enum.Enum):
    """Work day status enumeration."""
    ACTIVE = "active"
    COMPLETED = "completed"  # Terminal, signed off


class LocationKind(str, enum.Enum):
    """Location kind enumeration."""
    SOURCE = "source"  # Load site / pit
    DESTINATION = "destination"  # Dump site
