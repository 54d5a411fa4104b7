import pytest
from fastapi.testclient import TestClient

from backend.main import create_app
from config import WELCOME_MESSAGE
from core.service import QueryPipeline


@pytest.fixture
def index_html(tmp_path):
    path = tmp_path / "index.html"
    path.write_text("<html><body>HealthAI Pro+</body></html>", encoding="utf-8")
    return path


@pytest.fixture
def client(pipeline, index_html):
    return TestClient(create_app(pipeline=pipeline, index_html_path=index_html))


def test_ask_knowledge_base(client):
    response = client.post("/ask", json={"message": "What is dengue"})
    assert response.status_code == 200
    data = response.json()
    assert data["source"] == "local"
    assert data["structured"] is True
    assert data["query"] == "What is dengue"
    assert data["reply"].startswith("Dengue\n\n")


def test_ask_greeting(client):
    data = client.post("/ask", json={"message": "hello"}).json()
    assert data == {**data, "source": "local", "structured": False, "reply": WELCOME_MESSAGE}


def test_ask_trims_message(client):
    assert client.post("/ask", json={"message": "  malaria  "}).json()["query"] == "malaria"


def test_ask_second_call_is_cached(client):
    client.post("/ask", json={"message": "asthma"})
    assert client.post("/ask", json={"message": "asthma"}).json()["source"] == "cache"


def test_ask_unknown_without_generator(client):
    data = client.post("/ask", json={"message": "explain gout"}).json()
    assert data["source"] == "none"
    assert data["structured"] is False


@pytest.mark.parametrize("body", [{}, {"message": ""}, {"message": "   "}, {"text": "malaria"}])
def test_ask_missing_message(client, body):
    response = client.post("/ask", json=body)
    assert response.status_code == 400
    assert response.json() == {"error": "Missing 'message'"}


def test_ask_invalid_json(client):
    response = client.post(
        "/ask", content=b"{not json", headers={"Content-Type": "application/json"}
    )
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid JSON"}


def test_ask_unexpected_error_is_500(index_html):
    class BrokenPipeline:
        def answer(self, message):
            raise RuntimeError("boom")

    app = create_app(pipeline=BrokenPipeline(), index_html_path=index_html)
    client = TestClient(app, raise_server_exceptions=False)

    response = client.post("/ask", json={"message": "malaria"})
    assert response.status_code == 500
    assert response.json() == {"error": "Internal server error"}


def test_ask_method_not_allowed(client):
    response = client.get("/ask")
    assert response.status_code == 405
    assert response.json() == {"error": "Method Not Allowed"}
    assert "POST" in response.headers["allow"]


def test_unknown_route_uses_error_body(client):
    response = client.get("/nope")
    assert response.status_code == 404
    assert response.json() == {"error": "Not Found"}


@pytest.mark.parametrize("content", [b"", b"   "])
def test_ask_empty_body(client, content):
    response = client.post("/ask", content=content, headers={"Content-Type": "application/json"})
    assert response.status_code == 400
    assert response.json() == {"error": "Empty body"}


@pytest.mark.parametrize("value, text", [(123, "123"), (1.5, "1.5"), (True, "true")])
def test_ask_scalar_message_is_read_as_text(client, value, text):
    response = client.post("/ask", json={"message": value})
    assert response.status_code == 200
    assert response.json()["query"] == text


def test_ask_null_message(client):
    response = client.post("/ask", json={"message": None})
    assert response.status_code == 400
    assert response.json() == {"error": "Missing 'message'"}


def test_cors_preflight(client):
    response = client.options(
        "/ask",
        headers={
            "Origin": "http://example.com",
            "Access-Control-Request-Method": "POST",
            "Access-Control-Request-Headers": "Content-Type",
        },
    )
    assert response.status_code == 200
    assert response.headers["access-control-allow-origin"] == "*"
    assert "POST" in response.headers["access-control-allow-methods"]


def test_cors_header_on_ask(client):
    response = client.post("/ask", json={"message": "malaria"}, headers={"Origin": "http://example.com"})
    assert response.headers["access-control-allow-origin"] == "*"


def test_index_page(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    assert "HealthAI Pro+" in response.text


def test_index_page_missing(pipeline, tmp_path):
    client = TestClient(create_app(pipeline=pipeline, index_html_path=tmp_path / "missing.html"))
    response = client.get("/")
    assert response.status_code == 404
    assert response.json() == {"error": "index.html not found"}


def test_health(client):
    client.post("/ask", json={"message": "malaria"})
    data = client.get("/health").json()
    assert data == {
        "status": "healthy",
        "knowledge_base_entries": 9,
        "cache_entries": 1,
        "generator_configured": True,
    }


def test_startup_with_lifespan(pipeline, index_html):
    app = create_app(pipeline=pipeline, index_html_path=index_html, worker_threads=4)
    with TestClient(app) as client:
        assert client.post("/ask", json={"message": "typhoid"}).json()["source"] == "local"


def test_health_generator_without_configured_flag(knowledge_base, cache, clock, index_html):
    class BareGenerator:
        def generate(self, user_message):
            return None

    pipeline = QueryPipeline(knowledge_base, cache, BareGenerator(), clock=clock)
    client = TestClient(create_app(pipeline=pipeline, index_html_path=index_html))
    assert client.get("/health").json()["generator_configured"] is False
