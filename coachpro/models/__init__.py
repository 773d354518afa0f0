"""
Models package for the CoachPro club manager.

This package contains the flat records kept in memory and mirrored to the backend.
"""
from .user import User, UserRole, Squad
from .player import Player, PlayerStats
from .training import TrainingSession, AttendanceRecord, AttendanceStatus
from .match import Match, MatchData, MatchEvent, EventType, MatchPeriod

__all__ = [
    "User", "UserRole", "Squad", "Player", "PlayerStats",
    "TrainingSession", "AttendanceRecord", "AttendanceStatus",
    "Match", "MatchData", "MatchEvent", "EventType", "MatchPeriod"
]
