"""
Service Factory for dependency injection.

This module builds the backend store from the settings and creates every
service around one shared ClubRepository.
"""
import logging
from typing import Optional

from ..config import STORAGE_SUPABASE, Settings
from .access_service import AccessService
from .admin_service import AdminService
from .ai_service import TrainingAssistant
from .dashboard_service import DashboardService
from .live_match_service import LiveMatchService
from .match_service import MatchService
from .pdf_service import PdfService
from .persistence_service import ClubRepository, JsonFileStore, RecordStore, SupabaseStore
from .player_service import PlayerService
from .training_service import TrainingService

logger = logging.getLogger(__name__)


class ServiceFactory:
    """
    Factory for creating service instances with their dependencies injected.

    Services that hold no state of their own are created once and reused.
    """

    def __init__(self, settings: Settings, store: Optional[RecordStore] = None):
        self.settings = settings
        self._store = store
        self._repository: Optional[ClubRepository] = None
        self._access: Optional[AccessService] = None
        self._matches: Optional[MatchService] = None
        self._training: Optional[TrainingService] = None

    def create_store(self) -> RecordStore:
        """Build the record store named by the settings."""
        if self._store is None:
            if self.settings.storage_backend == STORAGE_SUPABASE:
                self._store = SupabaseStore(self.settings.supabase_url, self.settings.supabase_key)
            else:
                self._store = JsonFileStore(self.settings.data_dir)
            logger.info("Using %s storage backend", self.settings.storage_backend)
        return self._store

    def get_repository(self) -> ClubRepository:
        """Get the singleton in-memory repository."""
        if self._repository is None:
            self._repository = ClubRepository(self.create_store())
        return self._repository

    def get_access_service(self) -> AccessService:
        if self._access is None:
            self._access = AccessService(self.get_repository())
        return self._access

    def get_match_service(self) -> MatchService:
        if self._matches is None:
            self._matches = MatchService(self.get_repository(), self.get_access_service())
        return self._matches

    def get_training_service(self) -> TrainingService:
        if self._training is None:
            self._training = TrainingService(self.get_repository(), self.get_access_service())
        return self._training

    def create_complete_service_suite(self) -> dict:
        """
        Create a complete suite of services with proper dependencies.

        Returns:
            Dictionary containing all configured services
        """
        repository = self.get_repository()
        access = self.get_access_service()
        return {
            'repository': repository,
            'access': access,
            'players': PlayerService(repository, access),
            'training': self.get_training_service(),
            'matches': self.get_match_service(),
            'live': LiveMatchService(repository, self.get_match_service()),
            'admin': AdminService(repository, access),
            'dashboard': DashboardService(access, self.get_training_service()),
            'pdf': PdfService(self.settings.club_name, self.settings.club_logo_url),
            'assistant': TrainingAssistant(self.settings.gemini_api_key, self.settings.gemini_model),
        }
