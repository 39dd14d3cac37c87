from __future__ import annotations

from app.roleplay import feedback
from app.roleplay.feedback import format_conversation, generate_feedback
from app.roleplay.models import ConversationTurn, Speaker
from app.roleplay.prompts.coaching import FEEDBACK_FALLBACK, MAX_CONVERSATION_CHARS


HISTORY = [
    ConversationTurn(speaker=Speaker.TRAINEE, message="What are your goals this quarter?"),
    ConversationTurn(speaker=Speaker.COUNTERPART, message="More foot traffic."),
]


class TestFormatConversation:
    def test_labels_speakers(self) -> None:
        text = format_conversation(HISTORY)

        assert text == "Salesperson: What are your goals this quarter?\nCustomer: More foot traffic."

    def test_transcript_used_without_history(self) -> None:
        assert format_conversation([], "  just a transcript ") == "just a transcript"

    def test_truncated(self) -> None:
        long_turn = ConversationTurn(speaker=Speaker.TRAINEE, message="x" * 5000)

        assert len(format_conversation([long_turn])) == MAX_CONVERSATION_CHARS


class TestGenerateFeedback:
    def test_generic_feedback(self, monkeypatch) -> None:
        calls = []

        def fake_completion(messages, **kwargs):
            calls.append((messages, kwargs))
            return "Ask more open questions."

        monkeypatch.setattr(feedback, "request_chat_completion", fake_completion)

        result = generate_feedback(HISTORY)

        assert result == "Ask more open questions."
        messages, kwargs = calls[0]
        assert kwargs["max_tokens"] == 300
        assert messages[0]["content"].startswith("You are a sales coach.")
        assert "Salesperson: What are your goals" in messages[1]["content"]

    def test_scenario_feedback(self, monkeypatch, scenario) -> None:
        calls = []

        def fake_completion(messages, **kwargs):
            calls.append((messages, kwargs))
            return "Good recovery on the budget objection."

        monkeypatch.setattr(feedback, "request_chat_completion", fake_completion)

        generate_feedback(HISTORY, scenario=scenario)

        messages, kwargs = calls[0]
        assert kwargs["max_tokens"] == 400
        assert scenario.title in messages[0]["content"]

    def test_fallback_on_failure(self, monkeypatch) -> None:
        def failing_completion(messages, **kwargs):
            raise RuntimeError("Coaching feedback request timed out.")

        monkeypatch.setattr(feedback, "request_chat_completion", failing_completion)

        assert generate_feedback(HISTORY) == FEEDBACK_FALLBACK

    def test_empty_conversation_skips_llm(self, monkeypatch) -> None:
        calls = []
        monkeypatch.setattr(feedback, "request_chat_completion", lambda messages, **kwargs: calls.append(messages))

        assert generate_feedback([], None) == FEEDBACK_FALLBACK
        assert calls == []
