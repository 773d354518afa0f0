import unittest
from datetime import date

from coachpro.errors import NotFoundError, ValidationError
from coachpro.models import AttendanceStatus
from coachpro.services.access_service import AccessService
from coachpro.services.dashboard_service import DashboardService
from coachpro.services.persistence_service import ClubRepository
from coachpro.services.training_service import TrainingService

from club_fixtures import MemoryStore, add_players


class TrainingServiceTests(unittest.TestCase):
    def setUp(self) -> None:
        self.store = MemoryStore()
        self.repository = ClubRepository(self.store)
        self.service = TrainingService(self.repository, AccessService(self.repository))
        self.coach = self.repository.find("users", "u2")
        self.admin = self.repository.find("users", "u1")
        add_players(self.repository, "s1", 2)

    def _session(self, day: str, squad_id: str = "s1", user=None):
        return self.service.create_session(user or self.admin, {"date": day, "squad_id": squad_id})

    def test_create_session_defaults(self) -> None:
        session = self._session("2025-06-03")
        self.assertEqual(session.time, "19:00")
        self.assertEqual(session.description, "Treino")
        self.assertIn(session.id, self.store.ids("sessions"))

    def test_create_session_validation(self) -> None:
        with self.assertRaises(ValidationError):
            self.service.create_session(self.coach, {"squad_id": "s1"})
        with self.assertRaises(ValidationError):
            self.service.create_session(self.coach, {"date": "03/06/2025", "squad_id": "s1"})

    def test_toggle_adds_replaces_and_removes(self) -> None:
        session = self._session("2025-06-03")

        record = self.service.toggle_attendance(self.coach, "q1", session.id, AttendanceStatus.PRESENT)
        self.assertEqual(record.status, AttendanceStatus.PRESENT)

        record = self.service.toggle_attendance(self.coach, "q1", session.id, AttendanceStatus.LATE)
        self.assertEqual(record.status, AttendanceStatus.LATE)
        self.assertEqual(len(self.repository.attendance), 1)

        self.assertIsNone(
            self.service.toggle_attendance(self.coach, "q1", session.id, AttendanceStatus.LATE)
        )
        self.assertEqual(self.repository.attendance, [])
        self.assertEqual(self.store.ids("attendance"), [])
        self.assertIsNone(self.service.attendance_status("q1", session.id))

    def test_toggle_rejects_player_from_other_squad(self) -> None:
        session = self._session("2025-06-03")
        with self.assertRaises(NotFoundError):
            self.service.toggle_attendance(self.admin, "p2", session.id, AttendanceStatus.PRESENT)

    def test_delete_session_drops_its_attendance(self) -> None:
        session = self._session("2025-06-03")
        self.service.toggle_attendance(self.coach, "q1", session.id, AttendanceStatus.ABSENT)
        self.service.delete_session(self.coach, session.id)
        self.assertEqual(self.repository.sessions, [])
        self.assertEqual(self.repository.attendance, [])
        self.assertEqual(self.store.ids("attendance"), [])

    def test_session_ordering(self) -> None:
        days = ["2025-06-03", "2025-06-10", "2025-05-27", "2025-06-05", "2025-06-01", "2025-06-08"]
        for day in days:
            self._session(day)
        self._session("2025-06-04", squad_id="s3")

        newest_first = [s.date for s in self.service.sessions_for(self.coach)]
        self.assertEqual(newest_first, sorted(days, reverse=True))

        upcoming = [s.date for s in self.service.upcoming_sessions(self.coach)]
        self.assertEqual(upcoming, sorted(days)[:5])

    def test_attendance_sheet(self) -> None:
        session = self._session("2025-06-03")
        self.service.toggle_attendance(self.coach, "q2", session.id, AttendanceStatus.INJURED)
        sheet = self.service.attendance_sheet(self.coach, session.id)
        self.assertEqual([row["player_id"] for row in sheet], ["q1", "q2", "p1"])
        self.assertEqual(sheet[1]["status"], "Lesionado")
        self.assertIsNone(sheet[0]["status"])

    def test_weekly_stats_sunday_to_saturday(self) -> None:
        sunday = self._session("2025-06-01")
        saturday = self._session("2025-06-07")
        last_week = self._session("2025-05-31")
        hidden = self._session("2025-06-03", squad_id="s3")

        self.service.toggle_attendance(self.coach, "q1", sunday.id, AttendanceStatus.ABSENT)
        self.service.toggle_attendance(self.coach, "q2", sunday.id, AttendanceStatus.LATE)
        self.service.toggle_attendance(self.coach, "q1", saturday.id, AttendanceStatus.INJURED)
        self.service.toggle_attendance(self.coach, "q2", saturday.id, AttendanceStatus.ABSENT)
        self.service.toggle_attendance(self.coach, "q1", last_week.id, AttendanceStatus.ABSENT)
        self.service.toggle_attendance(self.admin, "p2", hidden.id, AttendanceStatus.ABSENT)

        stats = self.service.weekly_stats(self.coach, today=date(2025, 6, 4))
        self.assertEqual(stats, {"absent": 2, "late": 1, "injured": 1})

        admin_stats = self.service.weekly_stats(self.admin, today=date(2025, 6, 4))
        self.assertEqual(admin_stats["absent"], 3)


class DashboardServiceTests(unittest.TestCase):
    def test_overview(self) -> None:
        repository = ClubRepository(MemoryStore())
        access = AccessService(repository)
        training = TrainingService(repository, access)
        coach = repository.find("users", "u2")
        training.create_session(coach, {"date": "2025-06-03", "squad_id": "s1"})

        overview = DashboardService(access, training).overview(coach, today=date(2025, 6, 2))
        self.assertEqual(overview["squad_count"], 1)
        self.assertEqual(overview["player_count"], 1)
        self.assertEqual(len(overview["upcoming_sessions"]), 1)
        self.assertEqual(overview["weekly_stats"], {"absent": 0, "late": 0, "injured": 0})
        self.assertIsNone(overview["next_match"])


if __name__ == "__main__":
    unittest.main()
