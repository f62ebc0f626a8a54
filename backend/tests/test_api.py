"""End-to-end tests of the HTTP surface with a fake model client."""

import json

from services.analysis_service import RATE_LIMIT_PLACEHOLDER, SIMULATED_MARK

MODEL_REPLY = [
    {
        "disease": "Dengue",
        "neighborhood": "Centro",
        "probable_cause": "Água parada",
        "mitigation": "Eliminar criadouros",
        "mitigation_rationale": "Interrompe o ciclo do mosquito",
        "reduction_estimate_percent": "35",
        "reduction_rationale": "Campanhas anteriores",
    }
]


def test_structured_reply_is_returned_as_recommendations(client, fake_client, sample_records):
    fake_client.reply = json.dumps(MODEL_REPLY)

    response = client.post("/analise", json={"dados": sample_records})

    assert response.status_code == 200
    assert response.json() == {"recomendacoes": MODEL_REPLY}
    assert "X-Request-ID" in response.headers


def test_prompt_sent_upstream_contains_aggregated_cases(client, fake_client, sample_records):
    client.post("/analise", json={"dados": sample_records})

    assert len(fake_client.calls) == 1
    prompt = fake_client.calls[0]["messages"][0]["content"]
    assert "Dengue | Centro: 2" in prompt
    assert "Gripe | Bairro Novo: 1" in prompt
    assert "Gripe | não informado: 1" in prompt
    assert "621863" in prompt


def test_non_json_reply_is_relayed_raw(client, fake_client, sample_records):
    fake_client.reply = "A doença mais frequente é Dengue."

    response = client.post("/analise", json={"dados": sample_records})

    assert response.status_code == 200
    assert response.json() == {"raw": "A doença mais frequente é Dengue."}


def test_non_array_dados_is_rejected_before_upstream_call(client, fake_client):
    response = client.post("/analise", json={"dados": {"address": "Rua X, Centro"}})

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "VALIDATION_ERROR"
    assert body["message"] == "Formato inválido. Envie um array de dados."
    assert fake_client.calls == []


def test_missing_dados_is_rejected(client, fake_client):
    response = client.post("/analise", json={"cases": []})

    assert response.status_code == 400
    assert fake_client.calls == []


def test_malformed_json_body_is_rejected(client, fake_client):
    response = client.post(
        "/analise",
        content="{not json",
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert fake_client.calls == []


def test_rate_limit_returns_placeholder(client, fake_client, make_status_error, sample_records):
    fake_client.error = make_status_error(429, "Rate limit reached")

    response = client.post("/analise", json={"dados": sample_records})

    assert response.status_code == 200
    recomendacoes = response.json()["recomendacoes"]
    assert recomendacoes == [r.model_dump() for r in RATE_LIMIT_PLACEHOLDER]
    assert all(SIMULATED_MARK in r["probable_cause"] for r in recomendacoes)


def test_rate_limit_placeholder_ignores_input(client, fake_client, make_status_error):
    fake_client.error = make_status_error(429, "Rate limit reached")

    first = client.post("/analise", json={"dados": []}).json()
    second = client.post(
        "/analise",
        json={"dados": [{"address": "Rua A, Eldorado", "diagnosis": "Zika"}]},
    ).json()

    assert first == second


def test_upstream_error_returns_500_with_details(client, fake_client, make_status_error, sample_records):
    fake_client.error = make_status_error(500, "The server had an error")

    response = client.post("/analise", json={"dados": sample_records})

    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "GATEWAY_ERROR"
    assert body["message"] == "Erro ao consultar a API OpenAI"
    assert body["details"] == {
        "upstream_status": 500,
        "upstream_message": "The server had an error",
    }
    assert body["request_id"] == response.headers["X-Request-ID"]


def test_unconfigured_credentials_fail_without_call(settings, fake_client, sample_records):
    from fastapi.testclient import TestClient

    from main import create_app
    from services.analysis_service import AnalysisService, get_analysis_service
    from services.model_gateway import ModelGateway

    unconfigured = settings.model_copy(update={"openai_model": ""})
    app = create_app(unconfigured)
    gateway = ModelGateway(unconfigured, client=fake_client)
    app.dependency_overrides[get_analysis_service] = lambda: AnalysisService(unconfigured, gateway)

    response = TestClient(app).post("/analise", json={"dados": sample_records})

    assert response.status_code == 500
    assert response.json()["details"]["upstream_status"] is None
    assert fake_client.calls == []


def test_index_page_is_served(client):
    response = client.get("/")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    assert "Agente de Saúde IA" in response.text


def test_static_assets_are_served(client):
    response = client.get("/static/app.js")

    assert response.status_code == 200
    assert "/analise" in response.text


def test_health_reports_configuration(client):
    body = client.get("/health").json()

    assert body["status"] == "healthy"
    assert body["checks"]["openai_api_key_configured"] is True
    assert body["checks"]["openai_model_configured"] is True


def test_numeric_address_is_aggregated(client, fake_client):
    response = client.post("/analise", json={"dados": [{"address": 42, "diagnosis": "Dengue"}]})

    assert response.status_code == 200
    prompt = fake_client.calls[0]["messages"][0]["content"]
    assert "Dengue | 42: 1" in prompt


def test_null_record_counts_as_not_informed(client, fake_client):
    response = client.post(
        "/analise",
        json={"dados": [None, {"address": "Rua A, Centro", "diagnosis": "Dengue"}]},
    )

    assert response.status_code == 200
    prompt = fake_client.calls[0]["messages"][0]["content"]
    assert "não informado | não informado: 1" in prompt
    assert "Dengue | Centro: 1" in prompt


def test_null_optional_fields_stay_structured(client, fake_client, sample_records):
    fake_client.reply = json.dumps(
        [{"disease": "Dengue", "neighborhood": "Centro", "probable_cause": None}]
    )

    body = client.post("/analise", json={"dados": sample_records}).json()

    assert "raw" not in body
    assert body["recomendacoes"][0]["probable_cause"] == ""


def test_wrong_method_on_analysis_route_is_405(client):
    assert client.get("/analise").status_code == 405


def test_unconfigured_health_is_unhealthy(settings):
    from fastapi.testclient import TestClient

    from main import create_app

    unconfigured = settings.model_copy(update={"openai_api_key": "", "openai_model": ""})
    body = TestClient(create_app(unconfigured)).get("/health").json()

    assert body["status"] == "unhealthy"


def test_partial_configuration_is_degraded(settings):
    from fastapi.testclient import TestClient

    from main import create_app

    partial = settings.model_copy(update={"openai_model": ""})
    body = TestClient(create_app(partial)).get("/health").json()

    assert body["status"] == "degraded"
    assert body["checks"] == {"openai_api_key_configured": True, "openai_model_configured": False}
