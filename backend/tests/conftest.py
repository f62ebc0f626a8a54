"""
Shared fixtures.

The OpenAI client is replaced by FakeChatClient so no test reaches the
network; each fake records the calls it receives.
"""

from types import SimpleNamespace

import httpx
import openai
import pytest
from fastapi.testclient import TestClient

from config.config import Settings
from main import create_app
from services.analysis_service import AnalysisService, get_analysis_service
from services.model_gateway import ModelGateway

COMPLETIONS_URL = "https://api.openai.com/v1/chat/completions"


def status_error(status_code: int, message: str) -> openai.APIStatusError:
    """Build the SDK exception raised for a non-2xx upstream response."""
    request = httpx.Request("POST", COMPLETIONS_URL)
    response = httpx.Response(status_code, request=request)
    if status_code == 429:
        return openai.RateLimitError(message, response=response, body=None)
    if status_code >= 500:
        return openai.InternalServerError(message, response=response, body=None)
    return openai.APIStatusError(message, response=response, body=None)


class FakeChatClient:
    """Stand-in for AsyncOpenAI exposing chat.completions.create."""

    def __init__(self, reply: str | None = None, error: Exception | None = None):
        self.reply = reply
        self.error = error
        self.calls: list[dict] = []
        self.chat = SimpleNamespace(completions=SimpleNamespace(create=self._create))

    async def _create(self, **kwargs):
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        message = SimpleNamespace(content=self.reply)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        openai_api_key="sk-test",
        openai_model="gpt-test",
        locality_name="Contagem",
        locality_population=621863,
        case_extrapolation_multiplier=10,
    )


@pytest.fixture
def fake_client() -> FakeChatClient:
    return FakeChatClient(reply="[]")


@pytest.fixture
def client(settings: Settings, fake_client: FakeChatClient) -> TestClient:
    app = create_app(settings)
    gateway = ModelGateway(settings, client=fake_client)
    app.dependency_overrides[get_analysis_service] = lambda: AnalysisService(settings, gateway)
    return TestClient(app)


@pytest.fixture
def sample_records() -> list[dict]:
    return [
        {"address": "Rua das Flores, Centro", "diagnosis": "Dengue"},
        {"address": "Rua Sete, Centro", "diagnosis": "Dengue"},
        {"address": "Av. Brasil, Bairro Novo", "diagnosis": "Gripe"},
        {"address": "", "diagnosis": "Gripe"},
    ]


@pytest.fixture
def make_status_error():
    return status_error


@pytest.fixture
def make_fake_client():
    return FakeChatClient


@pytest.fixture
def upstream_request() -> httpx.Request:
    return httpx.Request("POST", COMPLETIONS_URL)
