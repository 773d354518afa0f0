"""
User and squad models for the CoachPro club manager.

Users carry a role and, unless they are administrators, the list of squads
they are allowed to manage.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class UserRole(Enum):
    """Roles recognised by the admin screens."""
    ADMIN = "Administrador"
    COACH = "Treinador"
    STAFF = "Staff"


@dataclass
class Squad:
    """A club age group or team (e.g. ``Sub-11``)."""
    id: str
    name: str

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {"id": self.id, "name": self.name}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Squad':
        """Create from dictionary for JSON deserialization."""
        return cls(id=str(data["id"]), name=data.get("name", ""))


@dataclass
class User:
    """
    An account that can log in to the application.

    Attributes:
        id: Unique identifier
        name: Display name
        username: Login name (unique)
        role: Access role
        password_hash: Hashed password, never sent to clients
        allowed_squads: Squad ids a coach or staff member manages
    """
    id: str
    name: str
    username: str
    role: UserRole = UserRole.STAFF
    password_hash: Optional[str] = None
    allowed_squads: List[str] = field(default_factory=list)

    @property
    def is_admin(self) -> bool:
        """Admins see every squad and the admin screens."""
        return self.role == UserRole.ADMIN or self.username == "admin"

    def to_dict(self, include_secret: bool = True) -> Dict[str, Any]:
        """
        Convert to dictionary for JSON serialization.

        Args:
            include_secret: Whether to include the password hash (storage only)
        """
        data = {
            "id": self.id,
            "name": self.name,
            "username": self.username,
            "role": self.role.value,
            "allowed_squads": list(self.allowed_squads),
        }
        if include_secret:
            data["password_hash"] = self.password_hash
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'User':
        """Create from dictionary for JSON deserialization."""
        role_value = data.get("role") or UserRole.STAFF.value
        try:
            role = UserRole(role_value)
        except ValueError:
            role = UserRole[str(role_value).upper()]
        return cls(
            id=str(data["id"]),
            name=data.get("name", ""),
            username=data.get("username", ""),
            role=role,
            password_hash=data.get("password_hash"),
            allowed_squads=list(data.get("allowed_squads") or []),
        )
