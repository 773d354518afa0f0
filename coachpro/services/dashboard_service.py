"""Overview screen: counts and short lists derived from the visible records."""
from datetime import date
from typing import Any, Dict, Optional

from ..models import User
from ..utils.time_utils import parse_iso_date
from .access_service import AccessService
from .training_service import TrainingService


class DashboardService:
    def __init__(self, access: AccessService, training: TrainingService):
        self.access = access
        self.training = training

    def overview(self, user: User, today: Optional[date] = None) -> Dict[str, Any]:
        today = today or date.today()
        upcoming_matches = sorted(
            (m for m in self.access.visible_matches(user)
             if (parse_iso_date(m.date) or date.min) >= today),
            key=lambda m: (m.date, m.time),
        )
        next_match = upcoming_matches[0] if upcoming_matches else None
        return {
            "squad_count": len(self.access.visible_squads(user)),
            "player_count": len(self.access.visible_players(user)),
            "upcoming_sessions": [s.to_dict() for s in self.training.upcoming_sessions(user)],
            "weekly_stats": self.training.weekly_stats(user, today),
            "next_match": next_match.to_dict() if next_match else None,
        }
