import unittest
from unittest.mock import MagicMock

import requests

from coachpro.models import Squad
from coachpro.services.ai_service import (
    EMPTY_ANSWER_MESSAGE, ERROR_MESSAGE, MISSING_KEY_MESSAGE, TrainingAssistant,
    build_training_prompt
)


class TrainingAssistantTests(unittest.TestCase):
    def setUp(self) -> None:
        self.session = MagicMock()
        self.squad = Squad(id="s1", name="Sub-11")

    def _assistant(self, key: str = "test-key") -> TrainingAssistant:
        return TrainingAssistant(key, model="gemini-test", session=self.session)

    def test_prompt_mentions_request_details(self) -> None:
        prompt = build_training_prompt(self.squad, "Finalização", 75, 14)
        self.assertIn("escalão Sub-11", prompt)
        self.assertIn("Foco do treino: Finalização", prompt)
        self.assertIn("Duração: 75 minutos", prompt)
        self.assertIn("Número de jogadores: 14", prompt)

    def test_missing_key_skips_request(self) -> None:
        result = self._assistant(key="").generate_training_plan(self.squad, "Passe", 60, 12)
        self.assertEqual(result, MISSING_KEY_MESSAGE)
        self.session.post.assert_not_called()

    def test_successful_plan(self) -> None:
        self.session.post.return_value.json.return_value = {
            "candidates": [{"content": {"parts": [{"text": "# Plano"}, {"text": "\n1. Aquecimento"}]}}]
        }
        result = self._assistant().generate_training_plan(self.squad, "Passe", 60, 12)
        self.assertEqual(result, "# Plano\n1. Aquecimento")

        args, kwargs = self.session.post.call_args
        self.assertIn("models/gemini-test:generateContent", args[0])
        self.assertEqual(kwargs["headers"], {"x-goog-api-key": "test-key"})
        self.assertIn("Passe", kwargs["json"]["contents"][0]["parts"][0]["text"])

    def test_empty_answer(self) -> None:
        self.session.post.return_value.json.return_value = {"candidates": []}
        result = self._assistant().generate_training_plan(self.squad, "Passe", 60, 12)
        self.assertEqual(result, EMPTY_ANSWER_MESSAGE)

    def test_network_error(self) -> None:
        self.session.post.side_effect = requests.Timeout("slow")
        result = self._assistant().generate_training_plan(self.squad, "Passe", 60, 12)
        self.assertEqual(result, ERROR_MESSAGE)

    def test_http_error(self) -> None:
        self.session.post.return_value.raise_for_status.side_effect = requests.HTTPError("403")
        result = self._assistant().generate_training_plan(self.squad, "Passe", 60, 12)
        self.assertEqual(result, ERROR_MESSAGE)

    def test_invalid_json(self) -> None:
        self.session.post.return_value.json.side_effect = ValueError("not json")
        result = self._assistant().generate_training_plan(self.squad, "Passe", 60, 12)
        self.assertEqual(result, ERROR_MESSAGE)


if __name__ == "__main__":
    unittest.main()
