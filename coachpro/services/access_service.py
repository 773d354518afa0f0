"""
Authentication and role-based visibility for the CoachPro club manager.

Admins see every squad. Coaches and staff see only the squads listed on their
account, and see nothing when that list is empty.
"""
import logging
from typing import List, Optional

from werkzeug.security import check_password_hash

from ..errors import PermissionDeniedError
from ..models import Match, Player, Squad, TrainingSession, User
from .persistence_service import ClubRepository

logger = logging.getLogger(__name__)


class AccessService:
    """Login checks and per-user filtering of the club records."""

    def __init__(self, repository: ClubRepository):
        self.repository = repository

    def login(self, username: str, password: str) -> Optional[User]:
        """
        Authenticate a user.

        Args:
            username: Exact login name (no trimming or case folding)
            password: Clear-text password

        Returns:
            The matching user, or None for bad credentials
        """
        user = next((u for u in self.repository.users if u.username == username), None)
        if user is None or not user.password_hash:
            logger.info("Rejected login for unknown user %r", username)
            return None
        if not check_password_hash(user.password_hash, password or ""):
            logger.info("Rejected login for %r: wrong password", username)
            return None
        logger.info("User %r logged in", username)
        return user

    def get_user(self, user_id: Optional[str]) -> Optional[User]:
        return self.repository.find("users", user_id)

    # ------------------------------------------------------------------
    # Visibility
    # ------------------------------------------------------------------
    def visible_squads(self, user: Optional[User]) -> List[Squad]:
        if user is None:
            return []
        if user.is_admin:
            return list(self.repository.squads)
        if not user.allowed_squads:
            return []
        return [s for s in self.repository.squads if s.id in user.allowed_squads]

    def visible_squad_ids(self, user: Optional[User]) -> List[str]:
        return [s.id for s in self.visible_squads(user)]

    def visible_players(self, user: Optional[User]) -> List[Player]:
        squad_ids = self.visible_squad_ids(user)
        return [p for p in self.repository.players if p.squad_id in squad_ids]

    def visible_sessions(self, user: Optional[User]) -> List[TrainingSession]:
        squad_ids = self.visible_squad_ids(user)
        return [s for s in self.repository.sessions if s.squad_id in squad_ids]

    def visible_matches(self, user: Optional[User]) -> List[Match]:
        squad_ids = self.visible_squad_ids(user)
        return [m for m in self.repository.matches if m.squad_id in squad_ids]

    # ------------------------------------------------------------------
    # Guards
    # ------------------------------------------------------------------
    def ensure_squad_access(self, user: Optional[User], squad_id: str) -> None:
        """Raise PermissionDeniedError unless the user can manage the squad."""
        if squad_id not in self.visible_squad_ids(user):
            raise PermissionDeniedError("Sem acesso a este escalão")

    def ensure_admin(self, user: Optional[User]) -> None:
        if user is None or not user.is_admin:
            raise PermissionDeniedError("Apenas administradores")
