"""
Tactics board helpers for the CoachPro club manager.

Formation labels look like ``4-3-3 (F11)``: outfield lines from defence to
attack, followed by the match format. Board coordinates are percentages of
the pitch, x from left to right and y from the attacking end (0) to our own
goal line (100).
"""
import re
from dataclasses import dataclass
from typing import Dict, List, Optional

from ..errors import ValidationError
from ..utils.constants import FORMATIONS, GOALKEEPER_SPOT

_FORMATION_RE = re.compile(r"^\s*(\d+(?:-\d+)*)\s*(?:\(F(\d+)\))?\s*$", re.IGNORECASE)

DEFENCE_Y = 75.0
ATTACK_Y = 20.0


@dataclass
class FormationShape:
    """Parsed formation: outfield lines and number of players on the field."""
    label: str
    lines: List[int]
    player_count: int

    @property
    def outfield_count(self) -> int:
        return self.player_count - 1


def parse_formation(label: str) -> FormationShape:
    """
    Parse a formation label.

    The ``(F<n>)`` suffix, when present, fixes the number of players on the
    field. Some small-sided labels count the goalkeeper as their first line
    (``1-3-1 (F5)``); that line is dropped so only outfield lines remain.

    Raises:
        ValidationError: If the label cannot be parsed
    """
    match = _FORMATION_RE.match(label or "")
    if not match:
        raise ValidationError(f"Formação inválida: {label}")

    lines = [int(n) for n in match.group(1).split("-")]
    if any(n <= 0 for n in lines):
        raise ValidationError(f"Formação inválida: {label}")

    player_count = int(match.group(2)) if match.group(2) else sum(lines) + 1
    if sum(lines) >= player_count and lines[0] == 1 and len(lines) > 1:
        lines = lines[1:]
    if sum(lines) + 1 != player_count:
        raise ValidationError(f"Formação inconsistente: {label}")
    return FormationShape(label=label, lines=lines, player_count=player_count)


def formation_for_size(size: int) -> str:
    """First known formation for a match format, falling back to 11-a-side."""
    for label in FORMATIONS:
        if parse_formation(label).player_count == size:
            return label
    return FORMATIONS[4]


def formation_slots(label: str) -> List[Dict[str, float]]:
    """Board coordinates for every slot of a formation, goalkeeper first."""
    shape = parse_formation(label)
    slots = [{"x": GOALKEEPER_SPOT[0], "y": GOALKEEPER_SPOT[1]}]
    line_count = len(shape.lines)
    for i, players_in_line in enumerate(shape.lines):
        if line_count > 1:
            y = DEFENCE_Y - i * (DEFENCE_Y - ATTACK_Y) / (line_count - 1)
        else:
            y = (DEFENCE_Y + ATTACK_Y) / 2
        for j in range(players_in_line):
            x = (j + 1) * 100.0 / (players_in_line + 1)
            slots.append({"x": round(x, 2), "y": round(y, 2)})
    return slots


def default_positions(label: str, starters: List[str]) -> Dict[str, Dict[str, float]]:
    """Place starters on the formation's slots in order; the first is the goalkeeper."""
    slots = formation_slots(label)
    return {pid: dict(slot) for pid, slot in zip(starters, slots)}


def clamp_percent(value: Optional[float]) -> float:
    if value is None:
        raise ValidationError("Coordenada em falta")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise ValidationError(f"Coordenada inválida: {value}")
    return max(0.0, min(100.0, number))
