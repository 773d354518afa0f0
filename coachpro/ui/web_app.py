"""
Web application module for the CoachPro club manager.

This module contains the Flask server exposing the club screens as JSON API
endpoints: login, overview, athletes, training attendance, matches and
convocations, the live match tracker, PDF exports, the training assistant
and the admin screens.
"""
import logging
import os
from datetime import date
from functools import wraps
from typing import Any, Dict, Optional

from flask import Flask, Response, jsonify, request, send_from_directory, session
from werkzeug.exceptions import HTTPException

from ..config import Settings, load_settings
from ..errors import CoachProError, NotFoundError, PermissionDeniedError, ValidationError
from ..models import AttendanceStatus, MatchPeriod, User
from ..services.persistence_service import RecordStore
from ..services.service_factory import ServiceFactory
from ..utils import APP_TITLE, FORMATIONS

logger = logging.getLogger(__name__)


class WebAppState:
    """
    State holder for the web application.

    Builds every service once through the ServiceFactory.
    """

    def __init__(self, settings: Settings, store: Optional[RecordStore] = None):
        self.settings = settings
        self.service_factory = ServiceFactory(settings, store)

        services = self.service_factory.create_complete_service_suite()
        self.repository = services['repository']
        self.access = services['access']
        self.player_service = services['players']
        self.training_service = services['training']
        self.match_service = services['matches']
        self.live_service = services['live']
        self.admin_service = services['admin']
        self.dashboard_service = services['dashboard']
        self.pdf_service = services['pdf']
        self.assistant = services['assistant']


def _json_body() -> Dict[str, Any]:
    """Request JSON as a dict; empty or non-JSON bodies count as ``{}``."""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _parse_attendance_status(value: Any) -> AttendanceStatus:
    try:
        return AttendanceStatus(value)
    except ValueError:
        pass
    try:
        return AttendanceStatus[str(value).upper()]
    except KeyError:
        raise ValidationError(f"Estado de presença inválido: {value}")


def _parse_period(value: Any) -> MatchPeriod:
    try:
        return MatchPeriod(value)
    except ValueError:
        raise ValidationError(f"Período inválido: {value}")


def _pdf_response(content: bytes, filename: str) -> Response:
    return Response(
        content,
        mimetype="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[RecordStore] = None,
    static_folder: Optional[str] = None,
) -> Flask:
    """
    Create and configure the Flask application with API endpoints.

    Args:
        settings: Runtime settings, read from the environment when omitted
        store: Record store override (tests pass a temporary one)
        static_folder: Directory holding the front end's ``index.html``

    Returns:
        Configured Flask application instance
    """
    settings = settings or load_settings()
    app = Flask(__name__, static_folder=static_folder, static_url_path="")
    app.secret_key = settings.secret_key
    state = WebAppState(settings, store)
    app.extensions["coachpro"] = state

    # ==================== Helpers ==================== #

    def current_user() -> Optional[User]:
        return state.access.get_user(session.get("user_id"))

    def login_required(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            user = current_user()
            if user is None:
                return jsonify({"success": False, "error": "Sessão não iniciada"}), 401
            return view(user, *args, **kwargs)
        return wrapper

    def admin_required(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            user = current_user()
            if user is None:
                return jsonify({"success": False, "error": "Sessão não iniciada"}), 401
            if not user.is_admin:
                return jsonify({"success": False, "error": "Apenas administradores"}), 403
            return view(user, *args, **kwargs)
        return wrapper

    def live_payload(match) -> Dict[str, Any]:
        return {"success": True, "live": state.live_service.summary(match)}

    @app.errorhandler(CoachProError)
    def handle_domain_error(error: CoachProError):
        return jsonify({"success": False, "error": str(error)}), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error: HTTPException):
        return jsonify({"success": False, "error": error.description}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return jsonify({"success": False, "error": str(error)}), 500

    @app.route("/")
    def index():
        """Serve the front end when present, else a short API description."""
        if static_folder and os.path.exists(os.path.join(static_folder, "index.html")):
            response = send_from_directory(static_folder, "index.html")
            response.headers['Cache-Control'] = 'no-cache, no-store, must-revalidate'
            return response
        return jsonify({"success": True, "app": APP_TITLE, "club": settings.club_name})

    @app.route("/api/health", methods=["GET"])
    def health():
        dirty = sorted(state.repository.dirty_tables)
        return jsonify({"success": not dirty, "dirty_tables": dirty})

    # ==================== Auth ==================== #

    @app.route("/api/login", methods=["POST"])
    def login():
        data = _json_body()
        user = state.access.login(data.get("username", ""), data.get("password", ""))
        if user is None:
            return jsonify({"success": False, "error": "Credenciais inválidas."}), 401
        session["user_id"] = user.id
        return jsonify({"success": True, "user": user.to_dict(include_secret=False)})

    @app.route("/api/logout", methods=["POST"])
    def logout():
        session.pop("user_id", None)
        return jsonify({"success": True})

    @app.route("/api/me", methods=["GET"])
    @login_required
    def me(user: User):
        return jsonify({
            "success": True,
            "user": user.to_dict(include_secret=False),
            "is_admin": user.is_admin,
            "squads": [s.to_dict() for s in state.access.visible_squads(user)],
        })

    @app.route("/api/me/password", methods=["POST"])
    @login_required
    def change_password(user: User):
        data = _json_body()
        state.admin_service.change_password(user, data.get("current", ""), data.get("new", ""))
        return jsonify({"success": True, "message": "Password alterada"})

    # ==================== Overview ==================== #

    @app.route("/api/dashboard", methods=["GET"])
    @login_required
    def dashboard(user: User):
        return jsonify({"success": True, **state.dashboard_service.overview(user)})

    @app.route("/api/squads", methods=["GET"])
    @login_required
    def list_squads(user: User):
        return jsonify({
            "success": True,
            "squads": [s.to_dict() for s in state.access.visible_squads(user)],
        })

    # ==================== Athletes ==================== #

    @app.route("/api/players", methods=["GET"])
    @login_required
    def list_players(user: User):
        squad_filter = request.args.get("squad", "all")
        players = state.player_service.filtered_players(user, squad_filter)
        today = date.today()
        return jsonify({
            "success": True,
            "players": [state.player_service.player_summary(p, today) for p in players],
            "count": len(players),
        })

    @app.route("/api/players", methods=["POST"])
    @login_required
    def save_player(user: User):
        player = state.player_service.save_player(user, _json_body())
        return jsonify({"success": True, "player": player.to_dict()})

    @app.route("/api/players/<player_id>", methods=["GET"])
    @login_required
    def get_player(user: User, player_id: str):
        player = state.player_service.get_player(user, player_id)
        return jsonify({"success": True, "player": state.player_service.player_summary(player)})

    @app.route("/api/players/<player_id>", methods=["PUT"])
    @login_required
    def update_player(user: User, player_id: str):
        state.player_service.get_player(user, player_id)
        player = state.player_service.save_player(user, {**_json_body(), "id": player_id})
        return jsonify({"success": True, "player": player.to_dict()})

    @app.route("/api/players/<player_id>", methods=["DELETE"])
    @login_required
    def delete_player(user: User, player_id: str):
        state.player_service.delete_player(user, player_id)
        return jsonify({"success": True, "message": "Atleta eliminado"})

    @app.route("/api/squads/<squad_id>/listing", methods=["GET"])
    @login_required
    def squad_listing(user: User, squad_id: str):
        return jsonify({
            "success": True,
            "text": state.player_service.squad_list_text(user, squad_id),
        })

    @app.route("/api/squads/<squad_id>/players.csv", methods=["GET"])
    @login_required
    def export_players(user: User, squad_id: str):
        content = state.player_service.export_squad_csv(user, squad_id)
        return Response(
            content,
            mimetype="text/csv",
            headers={"Content-Disposition": f'attachment; filename="atletas_{squad_id}.csv"'},
        )

    @app.route("/api/squads/<squad_id>/players/import", methods=["POST"])
    @login_required
    def import_players(user: User, squad_id: str):
        upload = request.files.get("file")
        try:
            raw = upload.read() if upload else request.get_data()
            csv_text = raw.decode("utf-8-sig")
        except UnicodeDecodeError:
            raise ValidationError("Ficheiro CSV deve estar em UTF-8")
        result = state.player_service.import_squad_csv(user, squad_id, csv_text)
        return jsonify({
            "success": not result["errors"],
            "imported": [p.to_dict() for p in result["players"]],
            "errors": result["errors"],
        })

    # ==================== Training ==================== #

    @app.route("/api/sessions", methods=["GET"])
    @login_required
    def list_sessions(user: User):
        sessions = state.training_service.sessions_for(user)
        return jsonify({"success": True, "sessions": [s.to_dict() for s in sessions]})

    @app.route("/api/sessions", methods=["POST"])
    @login_required
    def create_session(user: User):
        training_session = state.training_service.create_session(user, _json_body())
        return jsonify({"success": True, "session": training_session.to_dict()})

    @app.route("/api/sessions/<session_id>", methods=["DELETE"])
    @login_required
    def delete_session(user: User, session_id: str):
        state.training_service.delete_session(user, session_id)
        return jsonify({"success": True, "message": "Treino eliminado"})

    @app.route("/api/sessions/<session_id>/attendance", methods=["GET"])
    @login_required
    def attendance_sheet(user: User, session_id: str):
        training_session = state.training_service.get_session(user, session_id)
        return jsonify({
            "success": True,
            "session": training_session.to_dict(),
            "attendance": state.training_service.attendance_sheet(user, session_id),
        })

    @app.route("/api/sessions/<session_id>/attendance", methods=["POST"])
    @login_required
    def toggle_attendance(user: User, session_id: str):
        data = _json_body()
        if not data.get("player_id"):
            raise ValidationError("player_id é obrigatório")
        record = state.training_service.toggle_attendance(
            user, data["player_id"], session_id, _parse_attendance_status(data.get("status"))
        )
        return jsonify({
            "success": True,
            "status": record.status.value if record else None,
        })

    # ==================== Matches ==================== #

    @app.route("/api/matches", methods=["GET"])
    @login_required
    def list_matches(user: User):
        matches = state.match_service.matches_for(user)
        return jsonify({"success": True, "matches": [m.to_dict() for m in matches]})

    @app.route("/api/matches", methods=["POST"])
    @login_required
    def create_match(user: User):
        match = state.match_service.create_match(user, _json_body())
        return jsonify({"success": True, "match": match.to_dict()})

    @app.route("/api/matches/<match_id>", methods=["GET"])
    @login_required
    def get_match(user: User, match_id: str):
        match = state.match_service.get_match(user, match_id)
        return jsonify({
            "success": True,
            "match": match.to_dict(),
            "squad_players": state.match_service.squad_players(match),
            "total_convoked": len(match.convoked_ids),
        })

    @app.route("/api/matches/<match_id>", methods=["PUT"])
    @login_required
    def update_match(user: User, match_id: str):
        match = state.match_service.update_match(user, match_id, _json_body())
        return jsonify({"success": True, "match": match.to_dict()})

    @app.route("/api/matches/<match_id>", methods=["DELETE"])
    @login_required
    def delete_match(user: User, match_id: str):
        state.match_service.delete_match(user, match_id)
        return jsonify({"success": True, "message": "Jogo eliminado"})

    @app.route("/api/matches/<match_id>/convocation", methods=["POST"])
    @login_required
    def toggle_convocation(user: User, match_id: str):
        data = _json_body()
        if not data.get("player_id"):
            raise ValidationError("player_id é obrigatório")
        match = state.match_service.toggle_convocation(user, match_id, data["player_id"])
        return jsonify({
            "success": True,
            "convoked_ids": match.convoked_ids,
            "total_convoked": len(match.convoked_ids),
        })

    @app.route("/api/matches/<match_id>/convocation/text", methods=["GET"])
    @login_required
    def convocation_text(user: User, match_id: str):
        return jsonify({
            "success": True,
            "text": state.match_service.convocation_text(user, match_id),
        })

    def _match_and_squad(user: User, match_id: str):
        match = state.match_service.get_match(user, match_id)
        squad = state.repository.find("squads", match.squad_id)
        if squad is None:
            raise NotFoundError("Escalão não encontrado")
        return match, squad

    @app.route("/api/matches/<match_id>/convocation.pdf", methods=["GET"])
    @login_required
    def convocation_pdf(user: User, match_id: str):
        match, squad = _match_and_squad(user, match_id)
        players = state.match_service.convoked_players(match)
        content, filename = state.pdf_service.generate_convocation_pdf(match, squad, players)
        return _pdf_response(content, filename)

    @app.route("/api/matches/<match_id>/report.pdf", methods=["GET"])
    @login_required
    def match_report_pdf(user: User, match_id: str):
        match, squad = _match_and_squad(user, match_id)
        if match.game_data is not None:
            match = state.live_service.get_match_state(user, match_id)
        players = state.match_service.convoked_players(match)
        content, filename = state.pdf_service.generate_match_report_pdf(match, squad, players)
        return _pdf_response(content, filename)

    # ==================== Live match ==================== #

    @app.route("/api/formations", methods=["GET"])
    @login_required
    def list_formations(user: User):
        return jsonify({"success": True, "formations": FORMATIONS})

    @app.route("/api/matches/<match_id>/live", methods=["POST"])
    @login_required
    def start_tracking(user: User, match_id: str):
        data = _json_body()
        match = state.live_service.start_tracking(
            user, match_id, formation=data.get("formation"), field_size=data.get("field_size")
        )
        return jsonify(live_payload(match))

    @app.route("/api/matches/<match_id>/live", methods=["GET"])
    @login_required
    def live_state(user: User, match_id: str):
        return jsonify(live_payload(state.live_service.get_match_state(user, match_id)))

    @app.route("/api/matches/<match_id>/live/lineup", methods=["POST"])
    @login_required
    def set_lineup(user: User, match_id: str):
        data = _json_body()
        match = state.live_service.set_lineup(
            user, match_id, list(data.get("starters") or []), data.get("formation")
        )
        return jsonify(live_payload(match))

    @app.route("/api/matches/<match_id>/live/formation", methods=["POST"])
    @login_required
    def set_formation(user: User, match_id: str):
        data = _json_body()
        match = state.live_service.set_formation(user, match_id, data.get("formation", ""))
        return jsonify(live_payload(match))

    @app.route("/api/matches/<match_id>/live/period", methods=["POST"])
    @login_required
    def advance_period(user: User, match_id: str):
        period = _parse_period(_json_body().get("period"))
        match = state.live_service.advance_period(user, match_id, period)
        return jsonify(live_payload(match))

    @app.route("/api/matches/<match_id>/live/pause", methods=["POST"])
    @login_required
    def pause_timer(user: User, match_id: str):
        return jsonify(live_payload(state.live_service.pause(user, match_id)))

    @app.route("/api/matches/<match_id>/live/resume", methods=["POST"])
    @login_required
    def resume_timer(user: User, match_id: str):
        return jsonify(live_payload(state.live_service.resume(user, match_id)))

    @app.route("/api/matches/<match_id>/live/adjust", methods=["POST"])
    @login_required
    def adjust_timer(user: User, match_id: str):
        try:
            seconds = int(_json_body().get("seconds", 0))
        except (TypeError, ValueError):
            raise ValidationError("seconds deve ser um número inteiro")
        return jsonify(live_payload(state.live_service.adjust_timer(user, match_id, seconds)))

    @app.route("/api/matches/<match_id>/live/substitution", methods=["POST"])
    @login_required
    def substitution(user: User, match_id: str):
        data = _json_body()
        match = state.live_service.substitute(
            user, match_id, data.get("player_out_id"), data.get("player_in_id")
        )
        return jsonify(live_payload(match))

    @app.route("/api/matches/<match_id>/live/goal", methods=["POST"])
    @login_required
    def goal(user: User, match_id: str):
        data = _json_body()
        match = state.live_service.record_goal(user, match_id, data.get("player_id"), data.get("note"))
        return jsonify(live_payload(match))

    @app.route("/api/matches/<match_id>/live/card", methods=["POST"])
    @login_required
    def card(user: User, match_id: str):
        data = _json_body()
        colour = (data.get("colour") or "yellow").lower()
        if colour not in ("yellow", "red"):
            raise ValidationError(f"Cor de cartão inválida: {colour}")
        match = state.live_service.record_card(
            user, match_id, data.get("player_id"), red=colour == "red", note=data.get("note")
        )
        return jsonify(live_payload(match))

    @app.route("/api/matches/<match_id>/live/undo", methods=["POST"])
    @login_required
    def undo_event(user: User, match_id: str):
        event = state.live_service.undo_last_event(user, match_id)
        if event is None:
            return jsonify({"success": False, "error": "Nada para desfazer"}), 400
        match = state.live_service.get_match_state(user, match_id)
        return jsonify({**live_payload(match), "undone": event.to_dict()})

    @app.route("/api/matches/<match_id>/live/positions", methods=["POST"])
    @login_required
    def move_player(user: User, match_id: str):
        data = _json_body()
        match = state.live_service.move_player(
            user, match_id, data.get("player_id"), data.get("x"), data.get("y")
        )
        return jsonify(live_payload(match))

    # ==================== Training assistant ==================== #

    @app.route("/api/assistant/training-plan", methods=["POST"])
    @login_required
    def training_plan(user: User):
        data = _json_body()
        squad_id = data.get("squad_id")
        if not squad_id:
            raise ValidationError("Selecione um escalão.")
        state.access.ensure_squad_access(user, squad_id)
        squad = state.repository.find("squads", squad_id)
        if squad is None:
            raise NotFoundError("Escalão não encontrado")
        try:
            duration = int(data.get("duration", 60))
        except (TypeError, ValueError):
            raise ValidationError("Duração inválida")
        player_count = sum(1 for p in state.repository.players if p.squad_id == squad.id)
        plan = state.assistant.generate_training_plan(
            squad, data.get("focus", ""), duration, player_count
        )
        return jsonify({"success": True, "plan": plan})

    # ==================== Admin ==================== #

    @app.route("/api/admin/squads", methods=["POST"])
    @admin_required
    def add_squad(user: User):
        squad = state.admin_service.add_squad(user, _json_body().get("name", ""))
        return jsonify({"success": True, "squad": squad.to_dict()})

    @app.route("/api/admin/users", methods=["GET"])
    @admin_required
    def list_users(user: User):
        return jsonify({"success": True, "users": state.admin_service.list_users(user)})

    @app.route("/api/admin/users", methods=["POST"])
    @admin_required
    def add_user(user: User):
        data = _json_body()
        created = state.admin_service.add_user(
            user,
            name=data.get("name", ""),
            username=data.get("username", ""),
            role=data.get("role"),
            allowed_squads=data.get("allowed_squads"),
        )
        return jsonify({"success": True, "user": created.to_dict(include_secret=False)})

    @app.route("/api/admin/users/<user_id>/reset-password", methods=["POST"])
    @admin_required
    def reset_password(user: User, user_id: str):
        if user_id == user.id:
            raise PermissionDeniedError("Use a alteração de password para a sua conta")
        state.admin_service.reset_password(user, user_id)
        return jsonify({"success": True, "message": "Password reposta para '123'."})

    return app


def run_web_app(host: Optional[str] = None, port: Optional[int] = None,
                static_folder: Optional[str] = None) -> None:
    """
    Run the Flask web application.

    Args:
        host: Host address to bind to (defaults to the settings)
        port: Port number to listen on (defaults to the settings)
        static_folder: Directory to serve the front end from
    """
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    settings = load_settings()
    app = create_app(settings, static_folder=static_folder)
    # one request at a time: the repository is a single in-memory writer
    app.run(host=host or settings.host, port=port or settings.port, threaded=False)


def main() -> None:
    run_web_app()
