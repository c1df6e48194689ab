import io

import pytest
from fastapi.testclient import TestClient
from pptx import Presentation

import gemini_client
import main

DECK = {
    "narrative": "Two slides",
    "slides": [
        {"title": "Intro", "content": ["a", "b"], "imagePrompt": "A map"},
        {"title": "End", "content": ["c"], "imagePrompt": "A flag"},
    ],
}


@pytest.fixture
def client():
    return TestClient(main.app)


def _fake_generation(text):
    def fake(user_prompt, prior_deck=None, compact=False):
        return text
    return fake


def test_root(client):
    assert client.get("/").status_code == 200


class TestGenerateDeck:

    def test_model_response_is_parsed(self, client, monkeypatch):
        monkeypatch.setattr(gemini_client, "request_deck_text", _fake_generation(
            '```json\n{"thoughtProcess": "x", "slides": [{"title": "A", "content": ["b1", "b2"]}]}\n```'
        ))
        body = client.post("/generate_deck/", json={"text": "Anything"}).json()
        assert body["status"] == "success"
        assert body["message"] is None
        assert body["narrative"] == "x"
        assert body["source"] == "strict"
        assert body["slides"] == [{"title": "A", "content": ["b1", "b2"], "imagePrompt": "Image for A"}]

    def test_transport_error_still_returns_deck(self, client, monkeypatch):
        def failing(user_prompt, prior_deck=None, compact=False):
            raise gemini_client.GenerationServiceError("Gemini API error: 503")

        monkeypatch.setattr(gemini_client, "request_deck_text", failing)
        body = client.post("/generate_deck/", json={"text": "Create a presentation about Node.js basics"}).json()
        assert body["message"] == "Error: Gemini API error: 503"
        assert body["source"] == "synthesized"
        assert body["failures"] == [{"stage": "transport", "reason": "Gemini API error: 503"}]
        assert len(body["slides"]) == 4

    def test_prior_deck_is_passed_to_generation(self, client, monkeypatch):
        seen = {}

        def fake(user_prompt, prior_deck=None, compact=False):
            seen["prior"] = prior_deck
            return "Sorry, no JSON this time."

        monkeypatch.setattr(gemini_client, "request_deck_text", fake)
        body = client.post("/generate_deck/", json={"text": "expand", "priorDeck": DECK}).json()
        assert seen["prior"].slides[0].title == "Intro"
        assert body["slides"][0]["content"] == ["a (expanded)", "b (expanded)"]
        assert body["slides"][0]["imagePrompt"] == "A map"

    def test_compact_flag_is_passed_to_generation(self, client, monkeypatch):
        seen = {}

        def fake(user_prompt, prior_deck=None, compact=False):
            seen["compact"] = compact
            return '{"slides": [{"title": "A", "content": ["b"]}]}'

        monkeypatch.setattr(gemini_client, "request_deck_text", fake)
        client.post("/generate_deck/", json={"text": "Solar energy", "compact": True})
        assert seen["compact"] is True
        client.post("/generate_deck/", json={"text": "Solar energy"})
        assert seen["compact"] is False


def test_recover_deck_without_network(client):
    body = client.post("/recover_deck/", json={
        "text": "make it shorter",
        "rawText": '{"slides": [{"title": "A", "content": ["b"]',
    }).json()
    assert body["source"] == "strict"
    assert body["slides"][0]["title"] == "A"


def test_recover_deck_with_no_text_synthesizes(client):
    body = client.post("/recover_deck/", json={"text": "Node.js"}).json()
    assert body["source"] == "synthesized"
    assert body["slides"][0]["title"] == "What is Node.js?"


class TestExport:

    def test_download(self, client):
        response = client.post("/export_pptx/", json=DECK)
        assert response.status_code == 200
        assert response.headers["content-type"] == main.ppt_generator.PPTX_CONTENT_TYPE
        assert "presentation-" in response.headers["content-disposition"]
        assert len(Presentation(io.BytesIO(response.content)).slides) == 2

    def test_invalid_deck_is_rejected(self, client):
        response = client.post("/export_pptx/", json={"narrative": "n", "slides": []})
        assert response.status_code == 422

    def test_upload_requires_bucket(self, client, monkeypatch):
        monkeypatch.setattr(main, "BUCKET_NAME", None)
        response = client.post("/export_pptx/?upload=true", json=DECK)
        assert response.status_code == 400

    def test_upload(self, client, monkeypatch):
        uploaded = {}

        def fake_upload(data, file_name):
            uploaded["name"] = file_name
            return f"https://storage.googleapis.com/decks/{file_name}"

        monkeypatch.setattr(main, "BUCKET_NAME", "decks")
        monkeypatch.setattr(main, "upload_presentation", fake_upload)
        body = client.post("/export_pptx/?upload=true", json=DECK).json()
        assert body["status"] == "success"
        assert body["file_url"].endswith(uploaded["name"])
