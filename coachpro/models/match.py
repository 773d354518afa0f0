"""
Match models for the CoachPro club manager.

This module contains the Match record (a fixture with its convocation) and
MatchData, the live game state stored on the match once tracking begins.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from ..utils.constants import DEFAULT_FORMATION, DEFAULT_LOCATION


class EventType(Enum):
    """Kinds of in-game events recorded on the match sheet."""
    GOAL = "GOAL"
    SUBSTITUTION = "SUBSTITUTION"
    CARD_YELLOW = "CARD_YELLOW"
    CARD_RED = "CARD_RED"


class MatchPeriod(Enum):
    """Match phases, in the only order they can occur."""
    PRE = "PRE"
    FIRST_HALF = "1H"
    HALF_TIME = "HT"
    SECOND_HALF = "2H"
    FULL_TIME = "FT"


@dataclass
class MatchEvent:
    """A goal, card or substitution at a given match minute."""
    type: EventType
    minute: int
    player_id: str
    player_out_id: Optional[str] = None
    note: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.type.value,
            "minute": self.minute,
            "player_id": self.player_id,
            "player_out_id": self.player_out_id,
            "note": self.note,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'MatchEvent':
        return cls(
            type=EventType(data["type"]),
            minute=int(data.get("minute", 0)),
            player_id=str(data["player_id"]),
            player_out_id=data.get("player_out_id"),
            note=data.get("note"),
        )


@dataclass
class MatchData:
    """
    Live game state for one match.

    Attributes:
        starters: Ids of the players currently on the field
        substitutes: Ids of convoked players on the bench
        formation: Formation label, e.g. ``4-3-3 (F11)``
        events: Goals, cards and substitutions in order
        player_minutes: Minutes played per player id
        current_period: Active match phase
        timer: Match clock in seconds
        is_timer_running: Whether the clock is ticking
        player_positions: Tactics board coordinates (percent) per player id
        running_since: Epoch seconds up to which the clock has been folded in
        dismissed: Players sent off, who cannot come back on
    """
    starters: List[str] = field(default_factory=list)
    substitutes: List[str] = field(default_factory=list)
    formation: str = DEFAULT_FORMATION
    events: List[MatchEvent] = field(default_factory=list)
    player_minutes: Dict[str, int] = field(default_factory=dict)
    current_period: MatchPeriod = MatchPeriod.PRE
    timer: int = 0
    is_timer_running: bool = False
    player_positions: Dict[str, Dict[str, float]] = field(default_factory=dict)
    running_since: Optional[float] = None
    dismissed: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "starters": list(self.starters),
            "substitutes": list(self.substitutes),
            "formation": self.formation,
            "events": [e.to_dict() for e in self.events],
            "player_minutes": dict(self.player_minutes),
            "current_period": self.current_period.value,
            "timer": self.timer,
            "is_timer_running": self.is_timer_running,
            "player_positions": {k: dict(v) for k, v in self.player_positions.items()},
            "running_since": self.running_since,
            "dismissed": list(self.dismissed),
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> Optional['MatchData']:
        """Create from dictionary for JSON deserialization."""
        if not data:
            return None
        return cls(
            starters=list(data.get("starters") or []),
            substitutes=list(data.get("substitutes") or []),
            formation=data.get("formation") or DEFAULT_FORMATION,
            events=[MatchEvent.from_dict(e) for e in data.get("events") or []],
            player_minutes={k: int(v) for k, v in (data.get("player_minutes") or {}).items()},
            current_period=MatchPeriod(data.get("current_period") or MatchPeriod.PRE.value),
            timer=int(data.get("timer", 0)),
            is_timer_running=bool(data.get("is_timer_running", False)),
            player_positions={
                k: {"x": float(v["x"]), "y": float(v["y"])}
                for k, v in (data.get("player_positions") or {}).items()
            },
            running_since=data.get("running_since"),
            dismissed=list(data.get("dismissed") or []),
        )


@dataclass
class Match:
    """
    A fixture for one squad together with its convocation.

    Attributes:
        id: Unique identifier
        squad_id: Squad playing the match
        date: ISO date string
        time: Kick-off time ``HH:MM``
        opponent: Opposing team
        location: ``Casa`` (home) or ``Fora`` (away)
        convoked_ids: Ids of called-up players
        notes: Notes printed on the convocation
        player_kit: Outfield kit description
        goalkeeper_kit: Goalkeeper kit description
        game_data: Live game state once tracking has started
    """
    id: str
    squad_id: str
    date: str
    time: str
    opponent: str
    location: str = DEFAULT_LOCATION
    convoked_ids: List[str] = field(default_factory=list)
    notes: Optional[str] = None
    player_kit: Optional[str] = None
    goalkeeper_kit: Optional[str] = None
    game_data: Optional[MatchData] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert match to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "squad_id": self.squad_id,
            "date": self.date,
            "time": self.time,
            "opponent": self.opponent,
            "location": self.location,
            "convoked_ids": list(self.convoked_ids),
            "notes": self.notes,
            "player_kit": self.player_kit,
            "goalkeeper_kit": self.goalkeeper_kit,
            "game_data": self.game_data.to_dict() if self.game_data else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Match':
        """Create match from dictionary for JSON deserialization."""
        return cls(
            id=str(data["id"]),
            squad_id=str(data.get("squad_id", "")),
            date=data.get("date", ""),
            time=data.get("time", ""),
            opponent=data.get("opponent", ""),
            location=data.get("location") or DEFAULT_LOCATION,
            convoked_ids=list(data.get("convoked_ids") or []),
            notes=data.get("notes"),
            player_kit=data.get("player_kit"),
            goalkeeper_kit=data.get("goalkeeper_kit"),
            game_data=MatchData.from_dict(data.get("game_data")),
        )
