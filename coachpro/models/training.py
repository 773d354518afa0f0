"""Training session and attendance models."""
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict


class AttendanceStatus(Enum):
    """Attendance marks available on the training sheet."""
    PRESENT = "Presente"
    ABSENT = "Ausente"
    LATE = "Atrasado"
    INJURED = "Lesionado"


@dataclass
class TrainingSession:
    """A scheduled training for one squad."""
    id: str
    squad_id: str
    date: str
    time: str
    description: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "squad_id": self.squad_id,
            "date": self.date,
            "time": self.time,
            "description": self.description,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'TrainingSession':
        return cls(
            id=str(data["id"]),
            squad_id=str(data.get("squad_id", "")),
            date=data.get("date", ""),
            time=data.get("time", ""),
            description=data.get("description", ""),
        )


@dataclass
class AttendanceRecord:
    """One player's mark for one session. At most one per (session, player)."""
    id: str
    session_id: str
    player_id: str
    status: AttendanceStatus

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "session_id": self.session_id,
            "player_id": self.player_id,
            "status": self.status.value,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'AttendanceRecord':
        return cls(
            id=str(data["id"]),
            session_id=str(data["session_id"]),
            player_id=str(data["player_id"]),
            status=AttendanceStatus(data["status"]),
        )
