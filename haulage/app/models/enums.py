"""
User roles enumeration.

Defines the role types for the haulage dispatch system.
"""

import enum


class UserRole(str, enum.Enum):
    """
    User role enumeration.

    Roles:
        ADMIN: Supreme user with system-level access
        BROKER: Creates dispatches and watches the truck dashboard
        DRIVER: Runs the daily load cycle from the cab (default role)
    """
    ADMIN = "ADMIN"
    BROKER = "BROKER"
    DRIVER = "DRIVER"
