import unittest

from coachpro.errors import ValidationError
from coachpro.services.tactics_service import (
    clamp_percent, default_positions, formation_for_size, formation_slots, parse_formation
)
from coachpro.utils.constants import FORMATIONS


class FormationParsingTests(unittest.TestCase):
    def test_eleven_a_side(self) -> None:
        shape = parse_formation("4-3-3 (F11)")
        self.assertEqual(shape.lines, [4, 3, 3])
        self.assertEqual(shape.player_count, 11)
        self.assertEqual(shape.outfield_count, 10)

    def test_goalkeeper_line_is_dropped_when_counted(self) -> None:
        self.assertEqual(parse_formation("1-3-1 (F5)").lines, [3, 1])
        self.assertEqual(parse_formation("1-2-1 (F5)").lines, [1, 2, 1])

    def test_label_without_format_assumes_goalkeeper(self) -> None:
        self.assertEqual(parse_formation("4-4-2").player_count, 11)

    def test_every_offered_formation_parses(self) -> None:
        for label in FORMATIONS:
            with self.subTest(label=label):
                shape = parse_formation(label)
                self.assertEqual(sum(shape.lines) + 1, shape.player_count)

    def test_invalid_labels(self) -> None:
        for label in ("", "abc", "4-0-6", "4-4-2 (F7)"):
            with self.subTest(label=label):
                with self.assertRaises(ValidationError):
                    parse_formation(label)

    def test_formation_for_size(self) -> None:
        self.assertEqual(formation_for_size(7), "2-3-1 (F7)")
        self.assertEqual(formation_for_size(5), "1-3-1 (F5)")
        self.assertEqual(formation_for_size(9), "4-3-3 (F11)")


class BoardLayoutTests(unittest.TestCase):
    def test_slots_start_with_goalkeeper(self) -> None:
        slots = formation_slots("4-3-3 (F11)")
        self.assertEqual(len(slots), 11)
        self.assertEqual(slots[0], {"x": 50.0, "y": 92.0})
        self.assertEqual(slots[1], {"x": 20.0, "y": 75.0})
        self.assertEqual(slots[-1]["y"], 20.0)

    def test_default_positions_only_cover_given_starters(self) -> None:
        positions = default_positions("2-3-1 (F7)", ["gk", "d1", "d2"])
        self.assertEqual(set(positions), {"gk", "d1", "d2"})
        self.assertEqual(positions["gk"], {"x": 50.0, "y": 92.0})
        self.assertEqual(positions["d1"]["y"], positions["d2"]["y"])

    def test_clamp_percent(self) -> None:
        self.assertEqual(clamp_percent(150), 100.0)
        self.assertEqual(clamp_percent("-5"), 0.0)
        self.assertEqual(clamp_percent(42.5), 42.5)
        with self.assertRaises(ValidationError):
            clamp_percent("left")
        with self.assertRaises(ValidationError):
            clamp_percent(None)


if __name__ == "__main__":
    unittest.main()
