import io
import tempfile
import unittest
from unittest.mock import patch

from flask import Flask

from coachpro.config import Settings
from coachpro.services.ai_service import MISSING_KEY_MESSAGE
from coachpro.ui.web_app import create_app, run_web_app

from club_fixtures import MemoryStore

NOW = "coachpro.services.live_match_service.now_ts"


class WebAppTests(unittest.TestCase):
    def setUp(self) -> None:
        self.store = MemoryStore()
        settings = Settings(secret_key="test-secret", club_logo_url="", gemini_api_key="")
        self.app = create_app(settings, store=self.store)
        self.app.testing = True
        self.client = self.app.test_client()

    def _login(self, username: str = "mister", password: str = "123"):
        return self.client.post("/api/login", json={"username": username, "password": password})

    def _create_match(self) -> str:
        resp = self.client.post(
            "/api/matches", json={"date": "2025-06-07", "squad_id": "s1", "opponent": "Rival FC"}
        )
        self.assertEqual(resp.status_code, 200)
        return resp.get_json()["match"]["id"]

    # Auth

    def test_requires_login(self) -> None:
        resp = self.client.get("/api/players")
        self.assertEqual(resp.status_code, 401)
        self.assertFalse(resp.get_json()["success"])

    def test_bad_login(self) -> None:
        resp = self._login(password="nope")
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.get_json()["error"], "Credenciais inválidas.")

    def test_login_me_and_logout(self) -> None:
        data = self._login().get_json()
        self.assertTrue(data["success"])
        self.assertNotIn("password_hash", data["user"])

        me = self.client.get("/api/me").get_json()
        self.assertFalse(me["is_admin"])
        self.assertEqual([s["id"] for s in me["squads"]], ["s1"])

        self.client.post("/api/logout")
        self.assertEqual(self.client.get("/api/me").status_code, 401)

    def test_admin_routes_need_admin(self) -> None:
        self._login()
        resp = self.client.get("/api/admin/users")
        self.assertEqual(resp.status_code, 403)

    def test_admin_creates_user_who_can_log_in(self) -> None:
        self._login("admin")
        resp = self.client.post(
            "/api/admin/users",
            json={"name": "Rita", "username": "rita", "role": "Treinador", "allowed_squads": ["s2"]},
        )
        self.assertEqual(resp.status_code, 200)
        dup = self.client.post("/api/admin/users", json={"name": "Rita", "username": "rita"})
        self.assertEqual(dup.status_code, 409)

        self.client.post("/api/logout")
        self.assertEqual(self._login("rita").status_code, 200)
        squads = self.client.get("/api/squads").get_json()["squads"]
        self.assertEqual([s["name"] for s in squads], ["Sub-15"])

    # Athletes

    def test_players_are_filtered_by_role(self) -> None:
        self._login()
        data = self.client.get("/api/players").get_json()
        self.assertEqual([p["id"] for p in data["players"]], ["p1"])
        self.assertEqual(data["players"][0]["squad_name"], "Sub-11")

    def test_player_crud_and_errors(self) -> None:
        self._login()
        resp = self.client.post("/api/players", json={"name": "Novo", "squad_id": "s1", "jersey_number": "5"})
        self.assertEqual(resp.status_code, 200)
        player_id = resp.get_json()["player"]["id"]

        resp = self.client.put(f"/api/players/{player_id}", json={"name": "Novo Nome", "squad_id": "s1"})
        self.assertEqual(resp.get_json()["player"]["name"], "Novo Nome")

        self.assertEqual(self.client.post("/api/players", json={"squad_id": "s1"}).status_code, 400)
        forbidden = self.client.post("/api/players", json={"name": "X", "squad_id": "s3"})
        self.assertEqual(forbidden.status_code, 403)
        self.assertEqual(forbidden.get_json()["error"], "Sem acesso a este escalão")

        self.assertEqual(self.client.delete(f"/api/players/{player_id}").status_code, 200)
        self.assertEqual(self.client.get(f"/api/players/{player_id}").status_code, 404)

    def test_listing_and_csv(self) -> None:
        self._login()
        text = self.client.get("/api/squads/s1/listing").get_json()["text"]
        self.assertTrue(text.startswith("LISTAGEM - SUB-11\n\n10. Tomás Silva"))
        self.assertEqual(self.client.get("/api/squads/all/listing").status_code, 400)

        resp = self.client.get("/api/squads/s1/players.csv")
        self.assertEqual(resp.mimetype, "text/csv")
        self.assertIn("Tomás Silva", resp.get_data(as_text=True))

        resp = self.client.post(
            "/api/squads/s1/players/import",
            data="jersey_number,name\n4,Importado\n",
            content_type="text/csv",
        )
        self.assertEqual(len(resp.get_json()["imported"]), 1)

    def test_csv_upload_must_be_utf8(self) -> None:
        self._login()
        resp = self.client.post(
            "/api/squads/s1/players/import",
            data={"file": (io.BytesIO(b"name\n\xff\xfe bad\n"), "atletas.csv")},
            content_type="multipart/form-data",
        )
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.get_json()["error"], "Ficheiro CSV deve estar em UTF-8")

    def test_csv_upload_as_file(self) -> None:
        self._login()
        resp = self.client.post(
            "/api/squads/s1/players/import",
            data={"file": (io.BytesIO("name\nJoão\n".encode("utf-8-sig")), "atletas.csv")},
            content_type="multipart/form-data",
        )
        self.assertEqual([p["name"] for p in resp.get_json()["imported"]], ["João"])

    # Training

    def test_attendance_toggle(self) -> None:
        self._login()
        session_id = self.client.post(
            "/api/sessions", json={"date": "2025-06-03", "squad_id": "s1"}
        ).get_json()["session"]["id"]

        url = f"/api/sessions/{session_id}/attendance"
        first = self.client.post(url, json={"player_id": "p1", "status": "Presente"}).get_json()
        self.assertEqual(first["status"], "Presente")
        second = self.client.post(url, json={"player_id": "p1", "status": "LATE"}).get_json()
        self.assertEqual(second["status"], "Atrasado")
        third = self.client.post(url, json={"player_id": "p1", "status": "Atrasado"}).get_json()
        self.assertIsNone(third["status"])

        bad = self.client.post(url, json={"player_id": "p1", "status": "Talvez"})
        self.assertEqual(bad.status_code, 400)

        sheet = self.client.get(url).get_json()["attendance"]
        self.assertEqual(sheet, [{"player_id": "p1", "name": "Tomás Silva", "jersey_number": 10, "status": None}])

    def test_storage_outage_is_reported_not_fatal(self) -> None:
        self._login()
        self.store.fail_writes = True
        resp = self.client.post("/api/sessions", json={"date": "2025-06-03", "squad_id": "s1"})
        self.assertEqual(resp.status_code, 200)

        health = self.client.get("/api/health").get_json()
        self.assertFalse(health["success"])
        self.assertEqual(health["dirty_tables"], ["sessions"])

    # Matches

    def test_convocation_text_and_pdf(self) -> None:
        self._login()
        match_id = self._create_match()
        toggle = self.client.post(f"/api/matches/{match_id}/convocation", json={"player_id": "p1"})
        self.assertEqual(toggle.get_json()["total_convoked"], 1)

        text = self.client.get(f"/api/matches/{match_id}/convocation/text").get_json()["text"]
        self.assertIn("- Tomás Silva (10)", text)

        pdf = self.client.get(f"/api/matches/{match_id}/convocation.pdf")
        self.assertEqual(pdf.status_code, 200)
        self.assertEqual(pdf.mimetype, "application/pdf")
        self.assertIn("Convocatoria_Sub-11_vs_Rival_FC.pdf", pdf.headers["Content-Disposition"])
        self.assertTrue(pdf.data.startswith(b"%PDF"))

    def test_live_match_flow(self) -> None:
        self._login()
        match_id = self._create_match()
        self.client.post(f"/api/matches/{match_id}/convocation", json={"player_id": "p1"})
        base = f"/api/matches/{match_id}/live"

        self.assertEqual(self.client.get(base).status_code, 409)
        started = self.client.post(base, json={"formation": "1-2-1 (F5)"}).get_json()
        self.assertEqual(started["live"]["period"], "PRE")

        lineup = self.client.post(f"{base}/lineup", json={"starters": ["p1"]}).get_json()
        self.assertEqual(lineup["live"]["on_field"][0]["position"], {"x": 50.0, "y": 92.0})

        with patch(NOW, return_value=1000):
            kick_off = self.client.post(f"{base}/period", json={"period": "1H"})
        self.assertTrue(kick_off.get_json()["live"]["is_timer_running"])

        with patch(NOW, return_value=1200):
            goal = self.client.post(f"{base}/goal", json={"player_id": "p1"}).get_json()
            self.assertEqual(goal["live"]["goals_for"], 1)
            self.assertEqual(goal["live"]["events"][0]["minute"], 4)

            undo = self.client.post(f"{base}/undo").get_json()
            self.assertEqual(undo["undone"]["type"], "GOAL")
            nothing_left = self.client.post(f"{base}/undo")
            self.assertEqual(nothing_left.status_code, 400)
            self.assertEqual(nothing_left.get_json(), {"success": False, "error": "Nada para desfazer"})

            bad_period = self.client.post(f"{base}/period", json={"period": "3H"})
            self.assertEqual(bad_period.status_code, 400)
            illegal = self.client.post(f"{base}/period", json={"period": "FT"})
            self.assertEqual(illegal.status_code, 409)

            state = self.client.get(base).get_json()["live"]
        self.assertEqual(state["clock"], "03:20")
        self.assertEqual(state["minutes"], {"p1": 3})

        with patch(NOW, return_value=1200):
            report = self.client.get(f"/api/matches/{match_id}/report.pdf")
        self.assertEqual(report.mimetype, "application/pdf")

    # Misc

    def test_assistant_without_key(self) -> None:
        self._login()
        resp = self.client.post(
            "/api/assistant/training-plan", json={"squad_id": "s1", "focus": "Passe", "duration": 60}
        )
        self.assertEqual(resp.get_json()["plan"], MISSING_KEY_MESSAGE)
        hidden = self.client.post("/api/assistant/training-plan", json={"squad_id": "s3"})
        self.assertEqual(hidden.status_code, 403)

    def test_dashboard(self) -> None:
        self._login("staff")
        data = self.client.get("/api/dashboard").get_json()
        self.assertTrue(data["success"])
        self.assertEqual(data["squad_count"], 2)
        self.assertEqual(data["player_count"], 1)

    def test_server_handles_one_request_at_a_time(self) -> None:
        with tempfile.TemporaryDirectory() as data_dir:
            settings = Settings(data_dir=data_dir, club_logo_url="", host="0.0.0.0", port=8123)
            with patch("coachpro.ui.web_app.load_settings", return_value=settings), \
                    patch.object(Flask, "run") as mock_run:
                run_web_app()
        mock_run.assert_called_once_with(host="0.0.0.0", port=8123, threaded=False)

    def test_unknown_route_is_json(self) -> None:
        resp = self.client.get("/api/nothing-here")
        self.assertEqual(resp.status_code, 404)
        self.assertFalse(resp.get_json()["success"])


if __name__ == "__main__":
    unittest.main()
