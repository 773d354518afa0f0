"""
Services package for the CoachPro club manager.

This package contains service classes that handle business logic.
Includes factory for proper dependency injection.
"""
from .persistence_service import ClubRepository, JsonFileStore, RecordStore, SupabaseStore
from .access_service import AccessService
from .player_service import PlayerService, PlayerValidationError
from .training_service import TrainingService
from .match_service import MatchService
from .live_match_service import LiveMatchService, event_minute
from .tactics_service import parse_formation, formation_slots, default_positions
from .pdf_service import PdfService
from .ai_service import TrainingAssistant
from .admin_service import AdminService
from .dashboard_service import DashboardService
from .service_factory import ServiceFactory

__all__ = [
    "ClubRepository", "JsonFileStore", "RecordStore", "SupabaseStore",
    "AccessService", "PlayerService", "PlayerValidationError", "TrainingService",
    "MatchService", "LiveMatchService", "event_minute", "parse_formation",
    "formation_slots", "default_positions", "PdfService", "TrainingAssistant",
    "AdminService", "DashboardService", "ServiceFactory"
]
