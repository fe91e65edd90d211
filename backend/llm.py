from __future__ import annotations

import logging
import os
import random
import re
from typing import Any, Literal

import ollama

logger = logging.getLogger(__name__)

OLLAMA_MODEL = os.getenv("OLLAMA_MODEL", "qwen3:8b")
OLLAMA_PROMPT_MODEL = os.getenv("OLLAMA_PROMPT_MODEL", OLLAMA_MODEL)
MAX_TRANSCRIPT_WORDS = int(os.getenv("MAX_TRANSCRIPT_WORDS", "2000"))

SessionMode = Literal["freeform", "interview", "custom"]

COACH_SYSTEM_PROMPT = (
    "You are an expert public speaking coach. Analyze speech transcripts and provide "
    "concise, actionable, and encouraging feedback."
)

PROMPT_REQUEST = (
    "Generate a single interesting speaking prompt for a 2-3 minute public speaking "
    "practice session. Return only the prompt text, nothing else."
)

FALLBACK_FEEDBACK = (
    "AI feedback is unavailable right now. Your metrics were still calculated; "
    "check that Ollama is running and try again."
)
EMPTY_TRANSCRIPT_FEEDBACK = "No speech was detected in this recording, so there is nothing to coach yet."

FALLBACK_PROMPTS = [
    "Describe your ideal weekend in detail.",
    "Explain your favorite hobby to someone who has never heard of it.",
    "Talk about a recent challenge you overcame.",
    "Describe a person who has had a significant impact on your life.",
    "Explain a topic you are passionate about.",
]

INTERVIEW_PROMPTS = [
    "Tell me about yourself.",
    "Describe a time you showed leadership.",
    "What's your greatest weakness?",
    "Why do you want this role?",
    "Where do you see yourself in 5 years?",
    "Tell me about a challenge you overcame.",
    "What are your greatest strengths?",
    "Describe a time you worked in a team.",
]


def _clean_reply(raw: str) -> str:
    """Strip qwen3 <think> blocks and surrounding quotes/whitespace."""
    text = re.sub(r"<think>.*?</think>", "", raw or "", flags=re.DOTALL)
    return text.strip().strip('"').strip()


def _truncate(transcript: str) -> str:
    words = transcript.split()
    if len(words) <= MAX_TRANSCRIPT_WORDS:
        return transcript.strip()
    kept = " ".join(words[:MAX_TRANSCRIPT_WORDS])
    return f"{kept} [...transcript truncated at {MAX_TRANSCRIPT_WORDS} words]"


def _format_metrics(metrics: dict[str, Any] | None) -> str:
    if not metrics:
        return ""
    lines = [
        f"- Filler words: {metrics.get('filler_words_count', 0)}",
        f"- Speaking pace: {metrics.get('speaking_pace', 0)} WPM",
        f"- Vocabulary diversity: {metrics.get('vocab_diversity', 0)}",
    ]
    breakdown = metrics.get("filler_breakdown") or {}
    if breakdown:
        common = ", ".join(f'"{label}" x{count}' for label, count in breakdown.items())
        lines.append(f"- Most common fillers: {common}")
    return "Measured metrics:\n" + "\n".join(lines) + "\n\n"


def build_feedback_message(
    transcript: str,
    session_mode: SessionMode,
    prompt: str | None = None,
    metrics: dict[str, Any] | None = None,
) -> str:
    if prompt:
        context = f'The speaker was responding to this prompt: "{prompt}".'
    else:
        context = f"This was a {session_mode} speaking practice session."

    return (
        f"{context}\n\n"
        f"{_format_metrics(metrics)}"
        f'Here is the transcript:\n"{_truncate(transcript)}"\n\n'
        "Provide 2-3 paragraphs of personalized, actionable feedback on the speaker's public "
        "speaking skills. Cover: vocabulary use, filler words, speaking clarity, pacing, "
        "confidence, and specific improvement suggestions. Be encouraging but direct."
    )


def _chat(model: str, messages: list[dict[str, str]]) -> str:
    response = ollama.chat(model=model, messages=messages, think=False)
    return _clean_reply(response["message"]["content"])


def generate_feedback(
    transcript: str,
    session_mode: SessionMode = "freeform",
    prompt: str | None = None,
    metrics: dict[str, Any] | None = None,
) -> str:
    """
    Ask the local Ollama coach for written feedback on a transcript.

    Never raises. Returns FALLBACK_FEEDBACK when the model is unreachable or
    keeps replying with nothing.
    """
    if not transcript.strip():
        return EMPTY_TRANSCRIPT_FEEDBACK

    messages = [
        {"role": "system", "content": COACH_SYSTEM_PROMPT},
        {"role": "user", "content": build_feedback_message(transcript, session_mode, prompt, metrics)},
    ]

    for attempt in (1, 2):
        try:
            feedback = _chat(OLLAMA_MODEL, messages)
            if feedback:
                return feedback
            logger.warning("LLM returned empty feedback on attempt %d", attempt)
        except Exception as exc:
            logger.error("Ollama feedback attempt %d failed: %s", attempt, exc)

    return FALLBACK_FEEDBACK


def generate_speaking_prompt() -> str:
    try:
        generated = _chat(OLLAMA_PROMPT_MODEL, [{"role": "user", "content": PROMPT_REQUEST}])
        if generated:
            return generated
        logger.warning("LLM returned an empty speaking prompt, using fallback")
    except Exception as exc:
        logger.error("Ollama prompt generation failed: %s", exc)
    return random.choice(FALLBACK_PROMPTS)


def pick_interview_prompt() -> str:
    return random.choice(INTERVIEW_PROMPTS)
