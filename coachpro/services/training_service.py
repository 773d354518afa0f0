"""
Training service for the CoachPro club manager.

Sessions are scheduled per squad; each athlete gets at most one attendance mark
per session, toggled from the attendance sheet.
"""
import logging
import uuid
from datetime import date
from typing import Any, Dict, List, Optional

from ..errors import NotFoundError, ValidationError
from ..models import AttendanceRecord, AttendanceStatus, TrainingSession, User
from ..utils.constants import (
    DEFAULT_SESSION_DESCRIPTION, DEFAULT_SESSION_TIME, TABLE_ATTENDANCE,
    TABLE_SESSIONS, UPCOMING_SESSIONS_LIMIT
)
from ..utils.time_utils import parse_iso_date, week_bounds
from .access_service import AccessService
from .persistence_service import ClubRepository

logger = logging.getLogger(__name__)


def _session_day(session: TrainingSession) -> date:
    return parse_iso_date(session.date) or date.min


class TrainingService:
    """Scheduling of training sessions and the attendance sheet."""

    def __init__(self, repository: ClubRepository, access: AccessService):
        self.repository = repository
        self.access = access

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------
    def create_session(self, user: User, data: Dict[str, Any]) -> TrainingSession:
        """
        Schedule a training session.

        Raises:
            ValidationError: If date or squad is missing
            PermissionDeniedError: If the user cannot manage the squad
        """
        if not data.get("date") or not data.get("squad_id"):
            raise ValidationError("Data e escalão são obrigatórios")
        if parse_iso_date(data["date"]) is None:
            raise ValidationError(f"Data inválida: {data['date']}")
        self.access.ensure_squad_access(user, data["squad_id"])

        session = TrainingSession(
            id=str(uuid.uuid4()),
            squad_id=data["squad_id"],
            date=data["date"],
            time=data.get("time") or DEFAULT_SESSION_TIME,
            description=data.get("description") or DEFAULT_SESSION_DESCRIPTION,
        )
        self.repository.sessions.append(session)
        self.repository.persist(TABLE_SESSIONS, [session])
        logger.info("Created session %s for squad %s on %s", session.id, session.squad_id, session.date)
        return session

    def get_session(self, user: User, session_id: str) -> TrainingSession:
        session = self.repository.find(TABLE_SESSIONS, session_id)
        if session is None:
            raise NotFoundError("Treino não encontrado")
        self.access.ensure_squad_access(user, session.squad_id)
        return session

    def delete_session(self, user: User, session_id: str) -> None:
        """Remove a session together with its attendance marks."""
        session = self.get_session(user, session_id)
        marks = [a.id for a in self.repository.attendance if a.session_id == session.id]
        self.repository.sessions = [s for s in self.repository.sessions if s.id != session.id]
        self.repository.attendance = [
            a for a in self.repository.attendance if a.session_id != session.id
        ]
        self.repository.persist(TABLE_SESSIONS, [], deleted_ids=[session.id])
        if marks:
            self.repository.persist(TABLE_ATTENDANCE, [], deleted_ids=marks)

    def sessions_for(self, user: User) -> List[TrainingSession]:
        """Visible sessions, newest first."""
        return sorted(self.access.visible_sessions(user), key=_session_day, reverse=True)

    def upcoming_sessions(
        self, user: User, limit: int = UPCOMING_SESSIONS_LIMIT
    ) -> List[TrainingSession]:
        """Visible sessions in ascending date order, first ``limit`` of them."""
        return sorted(self.access.visible_sessions(user), key=_session_day)[:limit]

    # ------------------------------------------------------------------
    # Attendance
    # ------------------------------------------------------------------
    def _find_mark(self, player_id: str, session_id: str) -> Optional[AttendanceRecord]:
        return next(
            (a for a in self.repository.attendance
             if a.player_id == player_id and a.session_id == session_id),
            None,
        )

    def toggle_attendance(
        self, user: User, player_id: str, session_id: str, status: AttendanceStatus
    ) -> Optional[AttendanceRecord]:
        """
        Toggle a player's mark on a session.

        Choosing the current status again clears the mark, a different status
        replaces it, and a player without a mark gets a new one.

        Returns:
            The resulting record, or None if the mark was cleared
        """
        session = self.get_session(user, session_id)
        player = self.repository.find("players", player_id)
        if player is None or player.squad_id != session.squad_id:
            raise NotFoundError("Atleta não pertence ao escalão deste treino")

        existing = self._find_mark(player_id, session_id)
        if existing is not None and existing.status == status:
            self.repository.attendance = [
                a for a in self.repository.attendance if a.id != existing.id
            ]
            self.repository.persist(TABLE_ATTENDANCE, [], deleted_ids=[existing.id])
            return None

        if existing is not None:
            existing.status = status
            record = existing
        else:
            record = AttendanceRecord(
                id=str(uuid.uuid4()),
                session_id=session_id,
                player_id=player_id,
                status=status,
            )
            self.repository.attendance.append(record)
        self.repository.persist(TABLE_ATTENDANCE, [record])
        return record

    def attendance_status(self, player_id: str, session_id: Optional[str]) -> Optional[AttendanceStatus]:
        if not session_id:
            return None
        record = self._find_mark(player_id, session_id)
        return record.status if record else None

    def attendance_sheet(self, user: User, session_id: str) -> List[Dict[str, Any]]:
        """One row per athlete of the session's squad with their current mark."""
        session = self.get_session(user, session_id)
        players = sorted(
            (p for p in self.repository.players if p.squad_id == session.squad_id),
            key=lambda p: p.jersey_sort_key(),
        )
        sheet = []
        for player in players:
            status = self.attendance_status(player.id, session.id)
            sheet.append({
                "player_id": player.id,
                "name": player.name,
                "jersey_number": player.jersey_number,
                "status": status.value if status else None,
            })
        return sheet

    def weekly_stats(self, user: User, today: Optional[date] = None) -> Dict[str, int]:
        """
        Count absences, late arrivals and injuries in the current week.

        The week runs Sunday to Saturday and only visible squads count.
        """
        start, end = week_bounds(today)
        session_ids = {
            s.id for s in self.access.visible_sessions(user)
            if start <= _session_day(s) <= end
        }
        week_marks = [a for a in self.repository.attendance if a.session_id in session_ids]
        return {
            "absent": sum(1 for a in week_marks if a.status == AttendanceStatus.ABSENT),
            "late": sum(1 for a in week_marks if a.status == AttendanceStatus.LATE),
            "injured": sum(1 for a in week_marks if a.status == AttendanceStatus.INJURED),
        }
