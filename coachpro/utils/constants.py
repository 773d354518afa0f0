"""
Constants for the CoachPro club manager.

This module contains the club identity, default records used to seed an empty
backend, and the fixed vocabularies shared by the services.
"""

# Application metadata
APP_TITLE = "CoachPro"
CLUB_NAME = "Clube Desportivo O Nogueirense"
CLUB_LOGO_URL = "https://i.imgur.com/vH0k1mO.png"
CLUB_SUBTITLE = "Gestão de Equipas"

# Backend tables
TABLE_USERS = "users"
TABLE_SQUADS = "squads"
TABLE_PLAYERS = "players"
TABLE_SESSIONS = "sessions"
TABLE_ATTENDANCE = "attendance"
TABLE_MATCHES = "matches"
TABLES = (
    TABLE_USERS,
    TABLE_SQUADS,
    TABLE_PLAYERS,
    TABLE_SESSIONS,
    TABLE_ATTENDANCE,
    TABLE_MATCHES,
)

# Defaults applied when a form leaves a field blank
DEFAULT_PASSWORD = "123"
DEFAULT_SESSION_TIME = "19:00"
DEFAULT_SESSION_DESCRIPTION = "Treino"
DEFAULT_MATCH_TIME = "15:00"
DEFAULT_LOCATION = "Casa"
LOCATIONS = ("Casa", "Fora")
DEFAULT_KIT_SIZE = "M"
UPCOMING_SESSIONS_LIMIT = 5

# Sports sheet
STRONG_FOOT_OPTIONS = ("Direito", "Esquerdo", "Ambos")
RATING_MIN = 0
RATING_MAX = 100

# Tactics board
FORMATIONS = [
    "1-3-1 (F5)", "1-2-1 (F5)", "2-3-1 (F7)", "3-2-1 (F7)",
    "4-3-3 (F11)", "4-4-2 (F11)", "3-5-2 (F11)", "3-4-3 (F11)",
]
DEFAULT_FORMATION = "4-3-3 (F11)"
GOALKEEPER_SPOT = (50.0, 92.0)

# Seed data for an empty backend
INITIAL_SQUADS = [
    {"id": "s1", "name": "Sub-11"},
    {"id": "s2", "name": "Sub-15"},
    {"id": "s3", "name": "Seniores"},
]

SEED_USERS = [
    {
        "id": "u1",
        "name": "Administrador",
        "username": "admin",
        "role": "Administrador",
        "allowed_squads": [],
    },
    {
        "id": "u2",
        "name": "Mister João",
        "username": "mister",
        "role": "Treinador",
        "allowed_squads": ["s1"],
    },
    {
        "id": "u3",
        "name": "Staff Apoio",
        "username": "staff",
        "role": "Staff",
        "allowed_squads": ["s1", "s2"],
    },
]

SEED_PLAYERS = [
    {
        "id": "p1",
        "squad_id": "s1",
        "name": "Tomás Silva",
        "address": "Rua das Flores, 12",
        "birth_date": "2014-05-12",
        "jersey_number": 10,
        "jersey_name": "T. Silva",
        "kit_size": "S",
        "tracksuit_size": "12A",
        "notes": "Médio criativo.",
        "emergency_name": "Maria Silva",
        "emergency_contact": "912345678",
        "sports_details": {
            "technique": 85,
            "speed": 70,
            "tactical": 60,
            "physical": 50,
            "behavior": "Exemplar",
            "strong_foot": "Esquerdo",
            "positions": "MOC, ME",
        },
    },
    {
        "id": "p2",
        "squad_id": "s3",
        "name": "André Costa",
        "address": "Av. Liberdade, 50",
        "birth_date": "1998-02-20",
        "jersey_number": 9,
        "jersey_name": "Costa",
        "kit_size": "L",
        "tracksuit_size": "L",
        "notes": "Ponta de lança.",
        "emergency_name": "Pedro Costa",
        "emergency_contact": "966554433",
        "sports_details": {
            "technique": 75,
            "speed": 85,
            "tactical": 80,
            "physical": 90,
            "behavior": "Bom",
            "strong_foot": "Direito",
            "positions": "PL",
        },
    },
]
