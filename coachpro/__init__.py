"""
CoachPro club manager

A club-management web service: athletes per squad, training attendance,
match convocations, live match tracking with a tactics board, PDF exports,
a training plan assistant and role-based admin screens.
"""
from .models import Player, Match, MatchData, User, Squad
from .services import ClubRepository, JsonFileStore, SupabaseStore, ServiceFactory
from .ui import create_app, run_web_app
from .utils import fmt_mmss, now_ts, APP_TITLE

__version__ = "1.0.0"

__all__ = [
    "Player", "Match", "MatchData", "User", "Squad",
    "ClubRepository", "JsonFileStore", "SupabaseStore", "ServiceFactory",
    "create_app", "run_web_app", "fmt_mmss", "now_ts", "APP_TITLE"
]
