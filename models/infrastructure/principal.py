"""
TaxDesk Server - Principal Model

Dataclass for the authenticated actor resolved from a request credential.
"""

from dataclasses import dataclass

from models.database.role import Role


@dataclass(frozen=True)
class Principal:
    """Authenticated caller of a request"""
    user_id: str
    email: str
    full_name: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def ToDict(self) -> dict:
        """Serialize for JSON responses"""
        return {
            "user_id": self.user_id,
            "email": self.email,
            "full_name": self.full_name,
            "role": self.role.value
        }
