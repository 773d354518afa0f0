"""
Player service for the CoachPro club manager.

This module provides the roster operations: validation, saving and deleting
athletes, the per-squad listing and the text and CSV exports of a squad.
"""
import csv
import io
import logging
import uuid
from datetime import date
from typing import Any, Dict, List, Optional

from ..errors import NotFoundError, ValidationError
from ..models import Player, PlayerStats, User
from ..utils.constants import (
    DEFAULT_KIT_SIZE, RATING_MAX, RATING_MIN, STRONG_FOOT_OPTIONS, TABLE_PLAYERS
)
from .access_service import AccessService
from .persistence_service import ClubRepository

logger = logging.getLogger(__name__)

CSV_FIELDS = [
    "jersey_number", "name", "jersey_name", "birth_date", "address",
    "kit_size", "tracksuit_size", "emergency_name", "emergency_contact", "notes",
]


class PlayerValidationError(ValidationError):
    """Raised when athlete data fails validation."""
    pass


class PlayerService:
    """
    Service class for managing the athletes of every squad.

    All reads and writes are filtered through the caller's visible squads.
    """

    def __init__(self, repository: ClubRepository, access: AccessService):
        self.repository = repository
        self.access = access

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------
    def validate_player_data(self, player: Player) -> List[str]:
        """
        Validate player data and return list of validation errors.

        Args:
            player: Player instance to validate

        Returns:
            List of validation error messages (empty if valid)
        """
        errors = []

        if not player.name or not player.name.strip():
            errors.append("Nome é obrigatório")
        if not player.squad_id:
            errors.append("Escalão é obrigatório")
        elif self.repository.find("squads", player.squad_id) is None:
            errors.append(f"Escalão desconhecido: {player.squad_id}")

        if not 0 <= player.jersey_sort_key() <= 99:
            errors.append("Número da camisola deve estar entre 0 e 99")

        stats = player.sports_details
        if stats is not None:
            for label in ("technique", "speed", "tactical", "physical"):
                value = getattr(stats, label)
                if not RATING_MIN <= value <= RATING_MAX:
                    errors.append(f"{label} deve estar entre {RATING_MIN} e {RATING_MAX}")
            if stats.strong_foot not in STRONG_FOOT_OPTIONS:
                errors.append(f"Pé dominante inválido: {stats.strong_foot}")

        return errors

    @staticmethod
    def _coerce_jersey_number(value: Any) -> int:
        if value is None or str(value).strip() == "":
            return 0
        try:
            return int(str(value).strip())
        except ValueError:
            raise PlayerValidationError(f"Número da camisola inválido: {value}")

    def build_player(self, data: Dict[str, Any], existing: Optional[Player] = None) -> Player:
        """Create a Player from form data, keeping the id of an existing record."""
        try:
            stats = PlayerStats.from_dict(data.get("sports_details"))
        except (TypeError, ValueError) as e:
            raise PlayerValidationError(f"Ficha desportiva inválida: {e}")

        player = Player.from_dict({
            **data,
            "id": existing.id if existing else (data.get("id") or str(uuid.uuid4())),
            "name": (data.get("name") or "").strip(),
            "kit_size": data.get("kit_size") or DEFAULT_KIT_SIZE,
            "tracksuit_size": data.get("tracksuit_size") or DEFAULT_KIT_SIZE,
            "sports_details": None,
        })
        player.jersey_number = self._coerce_jersey_number(data.get("jersey_number"))
        player.sports_details = stats
        return player

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------
    def save_player(self, user: User, data: Dict[str, Any]) -> Player:
        """
        Insert a new athlete or replace an existing one with the same id.

        Raises:
            PlayerValidationError: If the athlete data is invalid
            PermissionDeniedError: If the user cannot manage the squad
        """
        existing = self.repository.find(TABLE_PLAYERS, data.get("id"))
        if existing is not None:
            self.access.ensure_squad_access(user, existing.squad_id)

        player = self.build_player(data, existing)
        errors = self.validate_player_data(player)
        if errors:
            raise PlayerValidationError("; ".join(errors))
        self.access.ensure_squad_access(user, player.squad_id)

        if existing is not None:
            self.repository.players = [
                player if p.id == player.id else p for p in self.repository.players
            ]
        else:
            self.repository.players.append(player)
        self.repository.persist(TABLE_PLAYERS, [player])
        logger.info("Saved player %s (%s)", player.id, player.name)
        return player

    def delete_player(self, user: User, player_id: str) -> None:
        player = self.get_player(user, player_id)
        self.repository.players = [p for p in self.repository.players if p.id != player.id]
        self.repository.persist(TABLE_PLAYERS, [], deleted_ids=[player.id])
        logger.info("Deleted player %s", player.id)

    def get_player(self, user: User, player_id: str) -> Player:
        player = self.repository.find(TABLE_PLAYERS, player_id)
        if player is None:
            raise NotFoundError("Atleta não encontrado")
        self.access.ensure_squad_access(user, player.squad_id)
        return player

    # ------------------------------------------------------------------
    # Listings
    # ------------------------------------------------------------------
    def filtered_players(self, user: User, squad_filter: str = "all") -> List[Player]:
        """Visible athletes, optionally limited to one squad, sorted by shirt number."""
        players = self.access.visible_players(user)
        if squad_filter and squad_filter != "all":
            players = [p for p in players if p.squad_id == squad_filter]
        return sorted(players, key=Player.jersey_sort_key)

    def player_summary(self, player: Player, today: Optional[date] = None) -> Dict[str, Any]:
        """Player dict plus the derived age and squad name for list views."""
        squad = self.repository.find("squads", player.squad_id)
        data = player.to_dict()
        data["age"] = player.age(today)
        data["squad_name"] = squad.name if squad else None
        return data

    def _require_single_squad(self, user: User, squad_id: Optional[str]):
        if not squad_id or squad_id == "all":
            raise ValidationError(
                "Por favor selecione um escalão específico para exportar a listagem."
            )
        self.access.ensure_squad_access(user, squad_id)
        squad = self.repository.find("squads", squad_id)
        if squad is None:
            raise NotFoundError("Escalão não encontrado")
        return squad

    def squad_list_text(self, user: User, squad_id: str, today: Optional[date] = None) -> str:
        """
        Plain-text roster of one squad for pasting into messages.

        Example:
            LISTAGEM - SUB-11

            10. Tomás Silva (11 anos)
        """
        squad = self._require_single_squad(user, squad_id)
        lines = [f"LISTAGEM - {squad.name.upper()}", ""]
        for p in self.filtered_players(user, squad_id):
            age = p.age(today)
            lines.append(f"{p.jersey_number}. {p.name} ({age if age is not None else '-'} anos)")
        return "\n".join(lines) + "\n"

    # ------------------------------------------------------------------
    # CSV
    # ------------------------------------------------------------------
    def export_squad_csv(self, user: User, squad_id: str) -> str:
        """Export one squad's athletes as CSV text."""
        self._require_single_squad(user, squad_id)
        output = io.StringIO()
        writer = csv.DictWriter(output, fieldnames=CSV_FIELDS, extrasaction="ignore")
        writer.writeheader()
        for player in self.filtered_players(user, squad_id):
            writer.writerow(player.to_dict())
        return output.getvalue()

    def import_squad_csv(self, user: User, squad_id: str, csv_text: str) -> Dict[str, Any]:
        """
        Import athletes from CSV text into one squad.

        Rows that fail validation are skipped and reported; the rest are saved.

        Returns:
            Dictionary with the imported players and per-row errors
        """
        self._require_single_squad(user, squad_id)
        reader = csv.DictReader(io.StringIO(csv_text))
        if not reader.fieldnames or "name" not in reader.fieldnames:
            raise ValidationError("CSV sem coluna 'name'")

        imported: List[Player] = []
        errors: List[str] = []
        for line_no, row in enumerate(reader, start=2):
            data = {k: (v or "").strip() for k, v in row.items() if k in CSV_FIELDS}
            data["squad_id"] = squad_id
            try:
                player = self.build_player(data)
                problems = self.validate_player_data(player)
                if problems:
                    raise PlayerValidationError("; ".join(problems))
            except PlayerValidationError as e:
                errors.append(f"Linha {line_no}: {e}")
                continue
            imported.append(player)

        if imported:
            self.repository.players.extend(imported)
            self.repository.persist(TABLE_PLAYERS, imported)
        logger.info("Imported %d players into %s (%d rejected)", len(imported), squad_id, len(errors))
        return {"players": imported, "errors": errors}
