"""
Gateway to the chat-completion API.

Performs exactly one outbound call per prompt and reports the outcome as a
tagged result: success with the reply text, rate limited (HTTP 429), or
failure with the upstream status and message. The SDK's own retries are
disabled.
"""

import time
from dataclasses import dataclass
from enum import Enum

from openai import APIConnectionError, APIStatusError, APITimeoutError, AsyncOpenAI, OpenAIError

from config.config import Settings, get_settings
from config.logging_config import get_logger

logger = get_logger(__name__)

RATE_LIMIT_STATUS = 429
EMPTY_REPLY = "Sem resposta."


class GatewayOutcome(str, Enum):
    """Outcome of a gateway call."""
    SUCCESS = "success"
    RATE_LIMITED = "rate_limited"
    FAILURE = "failure"


@dataclass(frozen=True)
class GatewayResult:
    """
    Result of one gateway call.

    Attributes:
        outcome: Which branch the call ended in.
        text: Reply content, set on SUCCESS.
        status_code: Upstream HTTP status, when one was received.
        message: Error message, set on RATE_LIMITED and FAILURE.
    """
    outcome: GatewayOutcome
    text: str | None = None
    status_code: int | None = None
    message: str | None = None

    @classmethod
    def success(cls, text: str) -> "GatewayResult":
        return cls(GatewayOutcome.SUCCESS, text=text, status_code=200)

    @classmethod
    def rate_limited(cls, message: str) -> "GatewayResult":
        return cls(GatewayOutcome.RATE_LIMITED, status_code=RATE_LIMIT_STATUS, message=message)

    @classmethod
    def failure(cls, message: str, status_code: int | None = None) -> "GatewayResult":
        return cls(GatewayOutcome.FAILURE, status_code=status_code, message=message)


class ModelGateway:
    """
    Sends prompts to an OpenAI-compatible chat-completion endpoint.

    Model, credential, base URL and timeout come from settings, never from
    the request.
    """

    def __init__(self, settings: Settings | None = None, client: AsyncOpenAI | None = None):
        """
        Initialize the gateway.

        Args:
            settings: Application settings. Uses default if not provided.
            client: Pre-built client, mainly for tests.
        """
        self.settings = settings or get_settings()
        self._client = client

    @property
    def client(self) -> AsyncOpenAI:
        """Get or create the OpenAI client."""
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self.settings.openai_api_key,
                base_url=self.settings.openai_base_url,
                timeout=self.settings.llm_timeout_seconds,
                max_retries=0,
            )
        return self._client

    async def complete(self, prompt: str) -> GatewayResult:
        """
        Send the prompt as a single user message.

        Args:
            prompt: Prompt text.

        Returns:
            GatewayResult; this method does not raise for upstream errors.
        """
        if not self.settings.llm_configured:
            logger.error(
                "LLM not configured",
                has_api_key=bool(self.settings.openai_api_key),
                has_model=bool(self.settings.openai_model),
            )
            return GatewayResult.failure("OPENAI_API_KEY e OPENAI_MODEL precisam estar configurados")

        start_time = time.perf_counter()
        try:
            response = await self.client.chat.completions.create(
                model=self.settings.openai_model,
                messages=[{"role": "user", "content": prompt}],
                temperature=self.settings.llm_temperature,
            )
        except APIStatusError as e:
            if e.status_code == RATE_LIMIT_STATUS:
                logger.warning("OpenAI rate limit reached", error=e.message)
                return GatewayResult.rate_limited(e.message)
            logger.error("OpenAI API error", status_code=e.status_code, error=e.message)
            return GatewayResult.failure(e.message, status_code=e.status_code)
        except APITimeoutError as e:
            logger.error("OpenAI request timed out", timeout_seconds=self.settings.llm_timeout_seconds)
            return GatewayResult.failure(f"Tempo limite excedido: {e}")
        except APIConnectionError as e:
            logger.error("OpenAI connection error", error=str(e))
            return GatewayResult.failure(str(e))
        except OpenAIError as e:
            logger.error("OpenAI client error", error=str(e))
            return GatewayResult.failure(str(e))

        choices = response.choices or []
        text = (choices[0].message.content if choices else None) or EMPTY_REPLY

        logger.info(
            "Model reply received",
            model=self.settings.openai_model,
            reply_length=len(text),
            processing_time_ms=int((time.perf_counter() - start_time) * 1000),
        )
        return GatewayResult.success(text)


# Singleton instance
_model_gateway: ModelGateway | None = None


def get_model_gateway() -> ModelGateway:
    """Get the model gateway singleton."""
    global _model_gateway
    if _model_gateway is None:
        _model_gateway = ModelGateway()
    return _model_gateway
