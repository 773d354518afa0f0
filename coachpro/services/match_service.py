"""
Match service for the CoachPro club manager.

Handles fixtures and their convocations (the list of called-up athletes).
"""
import logging
import uuid
from datetime import date
from typing import Any, Dict, List

from ..errors import NotFoundError, ValidationError
from ..models import Match, Player, User
from ..utils.constants import DEFAULT_LOCATION, DEFAULT_MATCH_TIME, LOCATIONS, TABLE_MATCHES
from ..utils.time_utils import parse_iso_date
from .access_service import AccessService
from .persistence_service import ClubRepository

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("date", "time", "opponent", "location", "notes", "player_kit", "goalkeeper_kit")


class MatchService:
    """Fixtures and convocations."""

    def __init__(self, repository: ClubRepository, access: AccessService):
        self.repository = repository
        self.access = access

    @staticmethod
    def _check_location(location: str) -> str:
        if location not in LOCATIONS:
            raise ValidationError(f"Local inválido: {location}")
        return location

    def create_match(self, user: User, data: Dict[str, Any]) -> Match:
        """
        Create a fixture with an empty convocation.

        Raises:
            ValidationError: If date, squad or opponent is missing
        """
        if not data.get("date") or not data.get("squad_id") or not data.get("opponent"):
            raise ValidationError("Data, escalão e adversário são obrigatórios")
        if parse_iso_date(data["date"]) is None:
            raise ValidationError(f"Data inválida: {data['date']}")
        self.access.ensure_squad_access(user, data["squad_id"])

        match = Match(
            id=str(uuid.uuid4()),
            squad_id=data["squad_id"],
            date=data["date"],
            time=data.get("time") or DEFAULT_MATCH_TIME,
            opponent=data["opponent"].strip(),
            location=self._check_location(data.get("location") or DEFAULT_LOCATION),
            convoked_ids=[],
        )
        self.repository.matches.append(match)
        self.repository.persist(TABLE_MATCHES, [match])
        logger.info("Created match %s vs %s", match.id, match.opponent)
        return match

    def get_match(self, user: User, match_id: str) -> Match:
        match = self.repository.find(TABLE_MATCHES, match_id)
        if match is None:
            raise NotFoundError("Jogo não encontrado")
        self.access.ensure_squad_access(user, match.squad_id)
        return match

    def update_match(self, user: User, match_id: str, data: Dict[str, Any]) -> Match:
        """
        Edit fixture details, notes and kits. Convocation and live data are untouched.

        Every field is validated before any is applied, so a rejected edit
        leaves the match as it was.
        """
        match = self.get_match(user, match_id)
        changes = {}
        for key in EDITABLE_FIELDS:
            if key not in data:
                continue
            value = data[key]
            if key in ("date", "opponent") and not value:
                raise ValidationError(f"Campo obrigatório: {key}")
            if key == "date" and parse_iso_date(value) is None:
                raise ValidationError(f"Data inválida: {value}")
            if key == "location":
                value = self._check_location(value)
            changes[key] = value
        for key, value in changes.items():
            setattr(match, key, value)
        self.repository.persist(TABLE_MATCHES, [match])
        return match

    def delete_match(self, user: User, match_id: str) -> None:
        match = self.get_match(user, match_id)
        self.repository.matches = [m for m in self.repository.matches if m.id != match.id]
        self.repository.persist(TABLE_MATCHES, [], deleted_ids=[match.id])

    def matches_for(self, user: User) -> List[Match]:
        """Visible matches, newest first."""
        return sorted(
            self.access.visible_matches(user),
            key=lambda m: parse_iso_date(m.date) or date.min,
            reverse=True,
        )

    # ------------------------------------------------------------------
    # Convocation
    # ------------------------------------------------------------------
    def toggle_convocation(self, user: User, match_id: str, player_id: str) -> Match:
        """Call up a player, or release one who was already called up."""
        match = self.get_match(user, match_id)
        player = self.repository.find("players", player_id)
        if player is None or player.squad_id != match.squad_id:
            raise NotFoundError("Atleta não pertence ao escalão deste jogo")

        if player_id in match.convoked_ids:
            match.convoked_ids = [pid for pid in match.convoked_ids if pid != player_id]
        else:
            match.convoked_ids = match.convoked_ids + [player_id]
        self.repository.persist(TABLE_MATCHES, [match])
        return match

    def convoked_players(self, match: Match) -> List[Player]:
        """Called-up athletes in roster order."""
        return [p for p in self.repository.players if p.id in match.convoked_ids]

    def squad_players(self, match: Match) -> List[Dict[str, Any]]:
        """Every athlete of the match's squad with a ``convoked`` flag for the picker."""
        return [
            {**p.to_dict(), "convoked": p.id in match.convoked_ids}
            for p in self.repository.players if p.squad_id == match.squad_id
        ]

    def convocation_text(self, user: User, match_id: str) -> str:
        """Plain-text convocation for pasting into messages."""
        match = self.get_match(user, match_id)
        squad = self.repository.find("squads", match.squad_id)
        squad_name = squad.name.upper() if squad else ""
        lines = [
            f"CONVOCATÓRIA {squad_name}",
            f"Vs: {match.opponent} ({match.location})",
            f"Data: {match.date} {match.time}",
            "",
            "ATLETAS:",
        ]
        lines.extend(f"- {p.name} ({p.jersey_number})" for p in self.convoked_players(match))
        return "\n".join(lines) + "\n"
