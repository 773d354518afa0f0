"""
Live match tracking for the CoachPro club manager.

The match clock is stored as whole seconds on the match's game data. While it
runs, wall-clock time since ``running_since`` is folded into the clock lazily
whenever the match is read or changed, and every whole minute boundary the
clock crosses credits one minute to each player on the field.
"""
import logging
import math
from typing import Any, Dict, List, Optional

from ..errors import MatchStateError, ValidationError
from ..models import EventType, Match, MatchData, MatchEvent, MatchPeriod, User
from ..utils.constants import DEFAULT_FORMATION, TABLE_MATCHES
from ..utils.time_utils import fmt_mmss, now_ts
from .match_service import MatchService
from .persistence_service import ClubRepository
from .tactics_service import (
    clamp_percent, default_positions, formation_for_size, parse_formation
)

logger = logging.getLogger(__name__)

RUNNING_PERIODS = (MatchPeriod.FIRST_HALF, MatchPeriod.SECOND_HALF)

# period -> (allowed source periods, clock runs afterwards)
TRANSITIONS = {
    MatchPeriod.FIRST_HALF: ((MatchPeriod.PRE,), True),
    MatchPeriod.HALF_TIME: ((MatchPeriod.FIRST_HALF,), False),
    MatchPeriod.SECOND_HALF: ((MatchPeriod.HALF_TIME,), True),
    MatchPeriod.FULL_TIME: ((MatchPeriod.SECOND_HALF,), False),
}


def event_minute(timer_seconds: int) -> int:
    """Match minute shown for an event: 00:01-01:00 is minute 1."""
    return max(1, math.ceil(timer_seconds / 60))


class LiveMatchService:
    """Service for the live game screen: clock, periods, lineup and events."""

    def __init__(self, repository: ClubRepository, matches: MatchService):
        self.repository = repository
        self.matches = matches

    # ------------------------------------------------------------------
    # Clock
    # ------------------------------------------------------------------
    @staticmethod
    def advance_timer(data: MatchData, seconds: int) -> None:
        """Move the clock forward and credit minutes to the players on the field."""
        if seconds <= 0:
            return
        before = data.timer
        data.timer = before + seconds
        crossed = data.timer // 60 - before // 60
        if crossed:
            for pid in data.starters:
                data.player_minutes[pid] = data.player_minutes.get(pid, 0) + crossed

    def sync(self, data: MatchData, current_time: Optional[float] = None) -> bool:
        """
        Fold elapsed wall-clock time into a running clock.

        Returns:
            True if the clock moved
        """
        if not data.is_timer_running or data.running_since is None:
            return False
        current_time = now_ts() if current_time is None else current_time
        elapsed = int(current_time - data.running_since)
        if elapsed <= 0:
            return False
        self.advance_timer(data, elapsed)
        data.running_since += elapsed
        return True

    def _start_clock(self, data: MatchData) -> None:
        data.is_timer_running = True
        data.running_since = now_ts()

    def _stop_clock(self, data: MatchData) -> None:
        self.sync(data)
        data.is_timer_running = False
        data.running_since = None

    # ------------------------------------------------------------------
    # Loading helpers
    # ------------------------------------------------------------------
    def _load(self, user: User, match_id: str) -> Match:
        match = self.matches.get_match(user, match_id)
        if match.game_data is None:
            raise MatchStateError("O acompanhamento ao vivo ainda não foi iniciado")
        return match

    def _save(self, match: Match) -> None:
        data = match.game_data
        on_field = set(data.starters)
        data.substitutes = [
            pid for pid in match.convoked_ids
            if pid not in on_field and pid not in data.dismissed
        ]
        self.repository.persist(TABLE_MATCHES, [match])

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------
    def start_tracking(
        self,
        user: User,
        match_id: str,
        formation: Optional[str] = None,
        field_size: Optional[int] = None,
    ) -> Match:
        """Attach fresh game data to a match. Existing game data is kept as is."""
        match = self.matches.get_match(user, match_id)
        if match.game_data is not None:
            return match
        if not match.convoked_ids:
            raise MatchStateError("Convoque atletas antes de iniciar o jogo")

        if formation:
            parse_formation(formation)
        elif field_size:
            formation = formation_for_size(int(field_size))
        match.game_data = MatchData(
            formation=formation or DEFAULT_FORMATION,
            player_minutes={pid: 0 for pid in match.convoked_ids},
        )
        self._save(match)
        logger.info("Live tracking started for match %s", match.id)
        return match

    def set_lineup(
        self, user: User, match_id: str, starters: List[str], formation: Optional[str] = None
    ) -> Match:
        """
        Choose the starting players (goalkeeper first) before kick-off.

        Raises:
            MatchStateError: If the match has already kicked off
            ValidationError: If a starter is not convoked or there are too many
        """
        match = self._load(user, match_id)
        data = match.game_data
        if data.current_period != MatchPeriod.PRE:
            raise MatchStateError("O onze só pode ser alterado antes do início; use substituições")

        label = formation or data.formation
        shape = parse_formation(label)
        unique = list(dict.fromkeys(starters))
        unknown = [pid for pid in unique if pid not in match.convoked_ids]
        if unknown:
            raise ValidationError(f"Atletas não convocados: {', '.join(unknown)}")
        if len(unique) > shape.player_count:
            raise ValidationError(
                f"A formação {label} permite {shape.player_count} titulares, recebidos {len(unique)}"
            )

        data.formation = label
        data.starters = unique
        data.player_positions = default_positions(label, unique)
        self._save(match)
        return match

    def set_formation(self, user: User, match_id: str, formation: str) -> Match:
        """
        Switch formation and re-lay the current starters on the board.

        Every starter moves to the new formation's slots in lineup order, so
        manual board moves are discarded.
        """
        match = self._load(user, match_id)
        data = match.game_data
        shape = parse_formation(formation)
        if len(data.starters) > shape.player_count:
            raise ValidationError(f"Demasiados titulares para {formation}")
        self.sync(data)
        data.formation = formation
        data.player_positions.update(default_positions(formation, data.starters))
        self._save(match)
        return match

    def move_player(self, user: User, match_id: str, player_id: str, x: Any, y: Any) -> Match:
        """Drag a player on the tactics board; coordinates are clamped to 0-100."""
        match = self._load(user, match_id)
        data = match.game_data
        if player_id not in data.starters:
            raise ValidationError("Só jogadores em campo podem ser movidos no quadro")
        data.player_positions[player_id] = {"x": clamp_percent(x), "y": clamp_percent(y)}
        self._save(match)
        return match

    # ------------------------------------------------------------------
    # Periods and clock control
    # ------------------------------------------------------------------
    def advance_period(self, user: User, match_id: str, target: MatchPeriod) -> Match:
        """
        Move to the next match phase: kick-off, half-time, second half, full-time.

        Raises:
            MatchStateError: If the transition is not the next legal one
        """
        match = self._load(user, match_id)
        data = match.game_data
        if target not in TRANSITIONS:
            raise MatchStateError(f"Transição inválida para {target.value}")
        sources, runs = TRANSITIONS[target]
        if data.current_period not in sources:
            raise MatchStateError(
                f"Não é possível passar de {data.current_period.value} para {target.value}"
            )
        if target == MatchPeriod.FIRST_HALF and not data.starters:
            raise MatchStateError("Defina o onze inicial antes do apito inicial")

        if runs:
            data.current_period = target
            self._start_clock(data)
        else:
            self._stop_clock(data)
            data.current_period = target
        self._save(match)
        logger.info("Match %s now in period %s at %s", match.id, target.value, fmt_mmss(data.timer))
        return match

    def pause(self, user: User, match_id: str) -> Match:
        match = self._load(user, match_id)
        data = match.game_data
        if data.current_period not in RUNNING_PERIODS:
            raise MatchStateError("O relógio só pode ser pausado durante uma parte")
        if data.is_timer_running:
            self._stop_clock(data)
            self._save(match)
        return match

    def resume(self, user: User, match_id: str) -> Match:
        match = self._load(user, match_id)
        data = match.game_data
        if data.current_period not in RUNNING_PERIODS:
            raise MatchStateError("O relógio só pode correr durante uma parte")
        if not data.is_timer_running:
            self._start_clock(data)
            self._save(match)
        return match

    def adjust_timer(self, user: User, match_id: str, seconds: int) -> Match:
        """
        Manually correct the clock during a half or at half-time.

        Forward corrections credit minutes to the players on the field;
        backward corrections take back the minutes of the boundaries undone.

        Raises:
            MatchStateError: Before kick-off or after full-time
        """
        match = self._load(user, match_id)
        data = match.game_data
        if data.current_period not in RUNNING_PERIODS + (MatchPeriod.HALF_TIME,):
            raise MatchStateError("O relógio só pode ser corrigido durante o jogo")
        self.sync(data)
        if seconds >= 0:
            self.advance_timer(data, seconds)
        else:
            before = data.timer
            data.timer = max(0, before + seconds)
            uncrossed = before // 60 - data.timer // 60
            if uncrossed:
                for pid in data.starters:
                    data.player_minutes[pid] = max(0, data.player_minutes.get(pid, 0) - uncrossed)
        self._save(match)
        return match

    # ------------------------------------------------------------------
    # Events
    # ------------------------------------------------------------------
    def _require_in_play(self, data: MatchData) -> None:
        if data.current_period in (MatchPeriod.PRE, MatchPeriod.FULL_TIME):
            raise MatchStateError("Eventos só podem ser registados com o jogo a decorrer")

    def substitute(self, user: User, match_id: str, player_out: str, player_in: str) -> Match:
        """
        Replace a player on the field with one from the bench.

        The incoming player takes the outgoing player's board position.
        """
        match = self._load(user, match_id)
        data = match.game_data
        self._require_in_play(data)
        self.sync(data)

        if player_out not in data.starters:
            raise ValidationError("O jogador a sair não está em campo")
        if player_in not in match.convoked_ids:
            raise ValidationError("O jogador a entrar não está convocado")
        if player_in in data.starters:
            raise ValidationError("O jogador a entrar já está em campo")
        if player_in in data.dismissed:
            raise ValidationError("Jogador expulso não pode voltar a entrar")

        self._swap(data, player_out, player_in)
        data.events.append(MatchEvent(
            type=EventType.SUBSTITUTION,
            minute=event_minute(data.timer),
            player_id=player_in,
            player_out_id=player_out,
        ))
        self._save(match)
        return match

    @staticmethod
    def _swap(data: MatchData, player_out: str, player_in: str) -> None:
        data.starters = [player_in if pid == player_out else pid for pid in data.starters]
        position = data.player_positions.pop(player_out, None)
        if position is not None:
            data.player_positions[player_in] = position
        data.player_minutes.setdefault(player_in, 0)

    def record_goal(self, user: User, match_id: str, player_id: str, note: Optional[str] = None) -> Match:
        match = self._load(user, match_id)
        data = match.game_data
        self._require_in_play(data)
        if player_id not in match.convoked_ids:
            raise ValidationError("Marcador não está convocado")
        self.sync(data)
        data.events.append(MatchEvent(
            type=EventType.GOAL, minute=event_minute(data.timer), player_id=player_id, note=note
        ))
        self._save(match)
        return match

    def record_card(
        self, user: User, match_id: str, player_id: str, red: bool = False, note: Optional[str] = None
    ) -> Match:
        """Book a player. A red card sends the player off for the rest of the match."""
        match = self._load(user, match_id)
        data = match.game_data
        self._require_in_play(data)
        if player_id not in match.convoked_ids:
            raise ValidationError("Atleta não está convocado")
        if player_id in data.dismissed:
            raise ValidationError("Atleta já foi expulso")
        self.sync(data)

        sent_off_field = red and player_id in data.starters
        data.events.append(MatchEvent(
            type=EventType.CARD_RED if red else EventType.CARD_YELLOW,
            minute=event_minute(data.timer),
            player_id=player_id,
            # a red card to a player on the field also takes them off it
            player_out_id=player_id if sent_off_field else None,
            note=note,
        ))
        if red:
            data.starters = [pid for pid in data.starters if pid != player_id]
            data.dismissed.append(player_id)
        self._save(match)
        return match

    def undo_last_event(self, user: User, match_id: str) -> Optional[MatchEvent]:
        """
        Remove the most recent event and revert its effect on the lineup.

        Returns:
            The removed event, or None when there was nothing to undo
        """
        match = self._load(user, match_id)
        data = match.game_data
        if not data.events:
            return None
        self.sync(data)
        event = data.events.pop()

        if event.type == EventType.SUBSTITUTION and event.player_out_id:
            if event.player_id in data.starters:
                self._swap(data, event.player_id, event.player_out_id)
        elif event.type == EventType.CARD_RED:
            if event.player_id in data.dismissed:
                data.dismissed.remove(event.player_id)
                if event.player_out_id:
                    data.starters.append(event.player_id)
        self._save(match)
        return event

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def get_match_state(self, user: User, match_id: str) -> Match:
        """Load a match with its clock brought up to date."""
        match = self._load(user, match_id)
        if self.sync(match.game_data):
            self._save(match)
        return match

    def summary(self, match: Match) -> Dict[str, Any]:
        """Live screen payload: clock, score, lineup, bench, minutes and events."""
        data = match.game_data
        players = {p.id: p for p in self.repository.players if p.id in match.convoked_ids}

        def _label(pid: Optional[str]) -> Optional[Dict[str, Any]]:
            if pid is None:
                return None
            player = players.get(pid)
            return {
                "id": pid,
                "name": player.name if player else pid,
                "jersey_number": player.jersey_number if player else None,
            }

        goals = [e for e in data.events if e.type == EventType.GOAL]
        return {
            "match_id": match.id,
            "period": data.current_period.value,
            "timer": data.timer,
            "clock": fmt_mmss(data.timer),
            "is_timer_running": data.is_timer_running,
            "formation": data.formation,
            "goals_for": len(goals),
            "on_field": [
                {**_label(pid), "position": data.player_positions.get(pid)}
                for pid in data.starters
            ],
            "bench": [_label(pid) for pid in data.substitutes],
            "dismissed": [_label(pid) for pid in data.dismissed],
            "minutes": {pid: data.player_minutes.get(pid, 0) for pid in match.convoked_ids},
            "events": [
                {**e.to_dict(), "player": _label(e.player_id), "player_out": _label(e.player_out_id)}
                for e in data.events
            ],
        }
