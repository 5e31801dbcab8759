from datetime import datetime, timezone

import pytest

from cockpit.services import summary_generator
from cockpit.services.llm_service import LLMCompletion
from cockpit.services.summary_generator import build_summary_prompt, generate_summary

NOW = datetime(2025, 12, 22, 10, 55, tzinfo=timezone.utc)


class TestBuildSummaryPrompt:
    @pytest.mark.parametrize("language", ["german", "de"])
    def test_german(self, language):
        prompt = build_summary_prompt("Kunde will 500 Stück", language, "ACME", "Herr Meier", NOW)

        assert "1. Gesprächsheader (Pflicht)" in prompt
        assert "SPRACHNOTIZ ZUR ANALYSE:\nKunde will 500 Stück" in prompt
        assert "Client / Customer name: ACME" in prompt
        assert "Interlocutor (person spoken to at customer): Herr Meier" in prompt
        assert NOW.isoformat() in prompt

    def test_english(self):
        prompt = build_summary_prompt("Wants 500 units", "english", "", "", NOW)

        assert "1. Conversation Header (Mandatory)" in prompt
        assert "VOICE NOTE TO ANALYZE:\nWants 500 units" in prompt
        assert "Gesprächsheader" not in prompt


class TestGenerateSummary:
    def test_calls_langdock(self, monkeypatch):
        calls = []

        def fake_complete(prompt, provider, model, temperature, max_tokens):
            calls.append((provider, model, temperature, max_tokens))
            return LLMCompletion(content="1. Conversation Header", model=model)

        monkeypatch.setattr(summary_generator, "complete", fake_complete)

        result = generate_summary("Wants 500 units", "english", "ACME", None, "claude-sonnet-4")

        assert result.content == "1. Conversation Header"
        assert calls == [("langdock", "claude-sonnet-4", 0.7, 3000)]

    def test_empty_transcript_is_rejected(self):
        with pytest.raises(ValueError):
            generate_summary("  ", "german", "", "", "gpt-4.1")
