"""
Training plan assistant backed by the Gemini text generation endpoint.

The assistant never raises to the caller: a missing key, a network failure or
an empty answer each produce a fixed message that is shown instead of a plan.
"""
import logging
from typing import Any, Dict, Optional

import requests

from ..models import Squad

logger = logging.getLogger(__name__)

GEMINI_ENDPOINT = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"
REQUEST_TIMEOUT_SECONDS = 60

MISSING_KEY_MESSAGE = (
    "API Key não configurada. Por favor configure a chave da API para usar o assistente."
)
EMPTY_ANSWER_MESSAGE = "Não foi possível gerar o plano de treino."
ERROR_MESSAGE = "Ocorreu um erro ao contactar a IA. Verifique a sua ligação ou a chave API."


def build_training_prompt(squad: Squad, focus_area: str, duration_minutes: int, player_count: int) -> str:
    return f"""
Como treinador de futebol profissional, crie um plano de treino detalhado para o escalão {squad.name}.

Detalhes:
- Foco do treino: {focus_area}
- Duração: {duration_minutes} minutos
- Número de jogadores: {player_count}

O plano deve incluir:
1. Aquecimento (com tempo)
2. Exercícios principais (descrição, objetivos e tempo)
3. Retorno à calma

Formate a resposta em Markdown limpo e organizado, em Português de Portugal.
Seja prático e direto.
""".strip()


def _extract_text(payload: Dict[str, Any]) -> str:
    candidates = payload.get("candidates") or []
    if not candidates:
        return ""
    parts = (candidates[0].get("content") or {}).get("parts") or []
    return "".join(part.get("text", "") for part in parts).strip()


class TrainingAssistant:
    """Client for the generative training-plan endpoint."""

    def __init__(self, api_key: str, model: str = "gemini-3-flash-preview",
                 session: Optional[requests.Session] = None):
        self.api_key = api_key
        self.model = model
        self.session = session or requests.Session()

    def generate_training_plan(
        self, squad: Squad, focus_area: str, duration_minutes: int, player_count: int
    ) -> str:
        """
        Ask the model for a Markdown training plan.

        Args:
            squad: Squad the plan is for
            focus_area: Technical or tactical focus, free text
            duration_minutes: Session length
            player_count: Number of athletes in the squad

        Returns:
            The plan in Markdown, or one of the fixed fallback messages
        """
        if not self.api_key:
            return MISSING_KEY_MESSAGE

        prompt = build_training_prompt(squad, focus_area, duration_minutes, player_count)
        try:
            response = self.session.post(
                GEMINI_ENDPOINT.format(model=self.model),
                headers={"x-goog-api-key": self.api_key},
                json={"contents": [{"parts": [{"text": prompt}]}]},
                timeout=REQUEST_TIMEOUT_SECONDS,
            )
            response.raise_for_status()
            text = _extract_text(response.json())
        except (requests.RequestException, ValueError) as e:
            logger.error("Erro ao gerar plano: %s", e)
            return ERROR_MESSAGE

        return text or EMPTY_ANSWER_MESSAGE
