"""
TaxDesk Server - Role Enumeration

The two roles a user can hold. Administrators manage tasks, users and the
obligation calendar; standard users work on the tasks assigned to them.
"""

from enum import Enum


class Role(str, Enum):
    """Closed set of user roles"""
    ADMIN = "admin"
    STANDARD = "standard"

    @classmethod
    def Parse(cls, value: str) -> "Role":
        """
        Convert a raw string into a Role

        Args:
            value: Role name as sent by the client

        Returns:
            Role: Matching role

        Raises:
            ValueError: If value is not a known role
        """
        try:
            return cls(value)
        except ValueError:
            raise ValueError(f"Invalid role: {value}. Must be one of {[r.value for r in cls]}")
