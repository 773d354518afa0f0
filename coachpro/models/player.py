"""
Player model for the CoachPro club manager.

This module contains the Player dataclass, the athlete record kept per squad,
and PlayerStats, the optional sports sheet attached to it.
"""
from dataclasses import dataclass
from datetime import date
from typing import Any, Dict, Optional, Union

from ..utils.time_utils import calculate_age


@dataclass
class PlayerStats:
    """Sports sheet: 0-100 ratings plus free-text scouting notes."""
    technique: int = 50
    speed: int = 50
    tactical: int = 50
    physical: int = 50
    behavior: str = ""
    strong_foot: str = "Direito"
    positions: str = ""

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "technique": self.technique,
            "speed": self.speed,
            "tactical": self.tactical,
            "physical": self.physical,
            "behavior": self.behavior,
            "strong_foot": self.strong_foot,
            "positions": self.positions,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional['PlayerStats']:
        """Create from dictionary for JSON deserialization."""
        if not data:
            return None
        return cls(
            technique=int(data.get("technique", 50)),
            speed=int(data.get("speed", 50)),
            tactical=int(data.get("tactical", 50)),
            physical=int(data.get("physical", 50)),
            behavior=data.get("behavior", ""),
            strong_foot=data.get("strong_foot", "Direito"),
            positions=data.get("positions", ""),
        )


@dataclass
class Player:
    """
    Represents an athlete registered in one squad.

    Attributes:
        id: Unique identifier
        squad_id: Squad the athlete belongs to
        name: Full name
        address: Postal address
        birth_date: ISO date string (``YYYY-MM-DD``)
        jersey_number: Shirt number
        jersey_name: Name printed on the shirt
        kit_size: Match kit size
        tracksuit_size: Tracksuit size
        notes: Free-text notes
        photo_url: Optional photo location
        emergency_name: Emergency contact person
        emergency_contact: Emergency contact phone
        sports_details: Optional sports sheet
    """
    id: str
    squad_id: str
    name: str
    address: str = ""
    birth_date: str = ""
    jersey_number: Union[int, str] = 0
    jersey_name: str = ""
    kit_size: str = "M"
    tracksuit_size: str = "M"
    notes: str = ""
    photo_url: Optional[str] = None
    emergency_name: Optional[str] = None
    emergency_contact: Optional[str] = None
    sports_details: Optional[PlayerStats] = None

    def age(self, today: Optional[date] = None) -> Optional[int]:
        """Player's age in whole years, or None if no birth date is set."""
        return calculate_age(self.birth_date, today)

    def jersey_sort_key(self) -> int:
        """Numeric shirt number for ordering; blanks sort first."""
        try:
            return int(self.jersey_number)
        except (TypeError, ValueError):
            return 0

    def to_dict(self) -> Dict[str, Any]:
        """Convert player to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "squad_id": self.squad_id,
            "name": self.name,
            "address": self.address,
            "birth_date": self.birth_date,
            "jersey_number": self.jersey_number,
            "jersey_name": self.jersey_name,
            "kit_size": self.kit_size,
            "tracksuit_size": self.tracksuit_size,
            "notes": self.notes,
            "photo_url": self.photo_url,
            "emergency_name": self.emergency_name,
            "emergency_contact": self.emergency_contact,
            "sports_details": self.sports_details.to_dict() if self.sports_details else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Player':
        """Create player from dictionary for JSON deserialization."""
        return cls(
            id=str(data["id"]),
            squad_id=str(data.get("squad_id", "")),
            name=data.get("name", ""),
            address=data.get("address") or "",
            birth_date=data.get("birth_date") or "",
            jersey_number=data.get("jersey_number", 0),
            jersey_name=data.get("jersey_name") or "",
            kit_size=data.get("kit_size") or "M",
            tracksuit_size=data.get("tracksuit_size") or "M",
            notes=data.get("notes") or "",
            photo_url=data.get("photo_url"),
            emergency_name=data.get("emergency_name"),
            emergency_contact=data.get("emergency_contact"),
            sports_details=PlayerStats.from_dict(data.get("sports_details")),
        )
