import io

import pytest

from cockpit.api import summaries as summaries_api
from cockpit.services.llm_service import LLMCompletion


def save(client, headers, customer="ACME GmbH", **extra):
    payload = {"customer_name": customer, "transcript": "Notiz", "summary": "Zusammenfassung", **extra}
    response = client.post("/summaries", json=payload, headers=headers)
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def team(make_profile, auth_headers):
    jane = make_profile("jane@example.com", "Jane", "Doe", roles=["sales"])
    bob = make_profile("bob@example.com", "Bob", None, roles=["sales"])
    support = make_profile("support@example.com", roles=["sales_support"])
    return {
        "jane": auth_headers(jane),
        "bob": auth_headers(bob),
        "support": auth_headers(support),
        "jane_id": jane.id,
    }


class TestSavedSummaries:
    def test_save_sets_owner(self, client, team):
        body = save(client, team["jane"], customer_email="buyer@acme.com")

        assert body["user_id"] == team["jane_id"]
        assert body["customer_email"] == "buyer@acme.com"
        assert body["language"] == "german"

    def test_sales_sees_only_own(self, client, team):
        save(client, team["jane"], "Jane's customer")
        save(client, team["bob"], "Bob's customer")

        response = client.get("/summaries", headers=team["jane"])

        assert response.status_code == 200
        assert [s["customer_name"] for s in response.json()] == ["Jane's customer"]

    def test_support_sees_all_with_author(self, client, team):
        save(client, team["jane"], "Jane's customer")
        save(client, team["bob"], "Bob's customer")

        rows = client.get("/summaries", headers=team["support"]).json()

        authors = {s["customer_name"]: (s["user_email"], s["user_name"]) for s in rows}
        assert authors == {
            "Jane's customer": ("jane@example.com", "Jane Doe"),
            "Bob's customer": ("bob@example.com", "Bob"),
        }

    def test_update_own(self, client, team):
        summary = save(client, team["jane"])

        response = client.patch(f"/summaries/{summary['id']}", json={"summary": "Neu"}, headers=team["jane"])

        assert response.status_code == 200
        assert response.json()["summary"] == "Neu"
        assert response.json()["customer_name"] == "ACME GmbH"

    @pytest.mark.parametrize("field", ["summary", "transcript", "customer_name", "language"])
    def test_required_field_cannot_be_nulled(self, client, team, field):
        summary = save(client, team["jane"])

        response = client.patch(f"/summaries/{summary['id']}", json={field: None}, headers=team["jane"])

        assert response.status_code == 422
        stored = client.get("/summaries", headers=team["jane"]).json()[0]
        assert stored[field] == summary[field]

    def test_optional_contact_can_be_cleared(self, client, team):
        summary = save(client, team["jane"], customer_email="buyer@acme.com")

        response = client.patch(f"/summaries/{summary['id']}", json={"customer_email": None}, headers=team["jane"])

        assert response.status_code == 200
        assert response.json()["customer_email"] is None

    def test_other_users_summary_is_not_found(self, client, team):
        summary = save(client, team["bob"])

        assert client.delete(f"/summaries/{summary['id']}", headers=team["jane"]).status_code == 404
        assert client.patch(f"/summaries/{summary['id']}", json={"summary": "x"}, headers=team["jane"]).status_code == 404

    def test_support_may_delete_any(self, client, team):
        summary = save(client, team["bob"])

        assert client.delete(f"/summaries/{summary['id']}", headers=team["support"]).status_code == 200
        assert client.get("/summaries", headers=team["bob"]).json() == []

    def test_invalid_customer_email(self, client, team):
        response = client.post(
            "/summaries",
            json={"customer_name": "ACME", "customer_email": "not-an-email", "transcript": "t", "summary": "s"},
            headers=team["jane"],
        )
        assert response.status_code == 422

    def test_requires_session(self, client):
        assert client.get("/summaries").status_code == 401


class TestGenerateAndTranscribe:
    def test_generate(self, client, team, monkeypatch):
        seen = {}

        def fake_generate(transcript, language, customer_name, interlocutor, model):
            seen.update(transcript=transcript, language=language, customer_name=customer_name, model=model)
            return LLMCompletion(content="1. Gesprächsheader", model=model, usage={"output_tokens": 5})

        monkeypatch.setattr(summaries_api, "generate_summary", fake_generate)

        response = client.post(
            "/summaries/generate",
            json={"transcript": "Kunde will 500 Stück", "customer_name": "ACME", "model": "claude-sonnet-4"},
            headers=team["jane"],
        )

        assert response.status_code == 200
        assert response.json() == {"content": "1. Gesprächsheader", "model": "claude-sonnet-4", "usage": {"output_tokens": 5}}
        assert seen == {"transcript": "Kunde will 500 Stück", "language": "german", "customer_name": "ACME", "model": "claude-sonnet-4"}

    def test_transcribe_upload(self, client, team, monkeypatch):
        seen = {}

        def fake_transcribe(path, language):
            with open(path, "rb") as f:
                seen["bytes"] = f.read()
            seen["language"] = language
            return "hello world"

        monkeypatch.setattr(summaries_api, "transcribe_file", fake_transcribe)

        response = client.post(
            "/summaries/transcribe",
            files={"audio": ("note.webm", io.BytesIO(b"fake-audio"), "audio/webm")},
            data={"language": "en"},
            headers=team["jane"],
        )

        assert response.status_code == 200
        assert response.json() == {"transcript": "hello world", "language": "en"}
        assert seen == {"bytes": b"fake-audio", "language": "en"}

    def test_transcribe_rejects_unknown_language(self, client, team):
        response = client.post(
            "/summaries/transcribe",
            files={"audio": ("note.wav", io.BytesIO(b"x"), "audio/wav")},
            data={"language": "fr"},
            headers=team["jane"],
        )

        assert response.status_code == 400
        assert response.json()["error"] == "invalid_request"
