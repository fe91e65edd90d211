"""
Tests for backend/llm.py. Ollama is stubbed, so no local model is needed.
"""

import pytest

import llm


def _reply(content):
    return {"message": {"role": "assistant", "content": content}}


class FakeChat:
    def __init__(self, *replies):
        self.replies = list(replies)
        self.calls = []

    def __call__(self, **kwargs):
        self.calls.append(kwargs)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return _reply(reply)


@pytest.fixture
def fake_chat(monkeypatch):
    def install(*replies):
        chat = FakeChat(*replies)
        monkeypatch.setattr(llm.ollama, "chat", chat)
        return chat

    return install


def test_generate_feedback_returns_model_text(fake_chat):
    chat = fake_chat("<think>hmm</think>\nGreat energy. Cut the fillers.")
    feedback = llm.generate_feedback("um so I like dogs", "freeform")

    assert feedback == "Great energy. Cut the fillers."
    assert chat.calls[0]["model"] == llm.OLLAMA_MODEL
    messages = chat.calls[0]["messages"]
    assert messages[0]["content"] == llm.COACH_SYSTEM_PROMPT
    assert "um so I like dogs" in messages[1]["content"]
    assert "freeform speaking practice session" in messages[1]["content"]


def test_generate_feedback_retries_after_failure(fake_chat):
    chat = fake_chat(ConnectionError("ollama down"), "Second time lucky.")
    assert llm.generate_feedback("hello there", "custom") == "Second time lucky."
    assert len(chat.calls) == 2


def test_generate_feedback_falls_back(fake_chat):
    fake_chat("", ConnectionError("ollama down"))
    assert llm.generate_feedback("hello there") == llm.FALLBACK_FEEDBACK


def test_generate_feedback_skips_empty_transcript(fake_chat):
    chat = fake_chat()
    assert llm.generate_feedback("   ") == llm.EMPTY_TRANSCRIPT_FEEDBACK
    assert chat.calls == []


def test_feedback_message_uses_prompt_and_metrics():
    message = llm.build_feedback_message(
        "I lead a team",
        "interview",
        prompt="Tell me about yourself.",
        metrics={
            "filler_words_count": 3,
            "speaking_pace": 142,
            "vocab_diversity": 0.81,
            "filler_breakdown": {"um": 2, "like": 1},
        },
    )
    assert 'responding to this prompt: "Tell me about yourself."' in message
    assert "Speaking pace: 142 WPM" in message
    assert '"um" x2, "like" x1' in message


def test_feedback_message_truncates_long_transcripts(monkeypatch):
    monkeypatch.setattr(llm, "MAX_TRANSCRIPT_WORDS", 3)
    message = llm.build_feedback_message("one two three four five", "freeform")
    assert "one two three [...transcript truncated at 3 words]" in message
    assert "four" not in message


def test_generate_speaking_prompt(fake_chat):
    fake_chat('"Describe the best meal you ever had."')
    assert llm.generate_speaking_prompt() == "Describe the best meal you ever had."


def test_generate_speaking_prompt_fallback(fake_chat):
    fake_chat(RuntimeError("boom"))
    assert llm.generate_speaking_prompt() in llm.FALLBACK_PROMPTS


def test_pick_interview_prompt():
    assert llm.pick_interview_prompt() in llm.INTERVIEW_PROMPTS
