"""
Interpretation of the model reply.

The reply is parsed as strict JSON. Only a JSON array of recommendation
objects counts as structured; anything else is passed through as raw text.
"""

import json
from dataclasses import dataclass

from pydantic import TypeAdapter, ValidationError

from config.logging_config import get_logger
from models.models import AnalysisResponse, Recommendation

logger = get_logger(__name__)

_recommendations = TypeAdapter(list[Recommendation])


@dataclass(frozen=True)
class InterpretedReply:
    """Outcome of interpreting a model reply."""
    recommendations: list[Recommendation] | None = None
    raw: str | None = None

    @property
    def structured(self) -> bool:
        return self.recommendations is not None

    def to_response(self) -> AnalysisResponse:
        if self.structured:
            return AnalysisResponse(recomendacoes=self.recommendations)
        return AnalysisResponse(raw=self.raw)


def interpret_reply(raw: str) -> InterpretedReply:
    """Parse the model reply, falling back to the untouched text."""
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError as e:
        logger.info("Model reply is not JSON, relaying raw text", error=str(e))
        return InterpretedReply(raw=raw)

    if not isinstance(parsed, list):
        logger.info("Model reply is JSON but not an array", json_type=type(parsed).__name__)
        return InterpretedReply(raw=raw)

    try:
        recommendations = _recommendations.validate_python(parsed)
    except ValidationError as e:
        logger.info("Model reply does not match the recommendation schema", errors=e.error_count())
        return InterpretedReply(raw=raw)

    return InterpretedReply(recommendations=recommendations)
