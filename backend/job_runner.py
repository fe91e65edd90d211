from __future__ import annotations

import asyncio
import logging
from typing import Any

from llm import generate_feedback
from metrics import analyze_transcript

logger = logging.getLogger(__name__)

SESSIONS_TABLE = "sessions"


def _update_session(supabase: Any, session_id: str, values: dict[str, Any]) -> None:
    supabase.table(SESSIONS_TABLE).update(values).eq("id", session_id).execute()


async def run_session_job(
    session_id: str,
    transcript: str,
    duration_seconds: float,
    session_mode: str,
    prompt: str | None,
    supabase: Any,
) -> None:
    """Background pipeline: metrics, then LLM feedback, then store results on the session row."""
    try:
        _update_session(supabase, session_id, {"status": "processing"})

        report = await asyncio.to_thread(analyze_transcript, transcript, duration_seconds)
        feedback = await asyncio.to_thread(
            generate_feedback,
            transcript,
            session_mode,
            prompt,
            report,
        )

        results: dict[str, Any] = {
            "status": "done",
            "filler_words_count": report["filler_words_count"],
            "speaking_pace": report["speaking_pace"],
            "vocab_diversity": report["vocab_diversity"],
            "filler_breakdown": report["filler_breakdown"],
            "ai_feedback": feedback,
        }
        _update_session(supabase, session_id, results)
        logger.info("Session %s analyzed: %s", session_id, report["pace_label"]["label"])

    except Exception as exc:
        logger.exception("Session job %s failed: %s", session_id, exc)
        _update_session(supabase, session_id, {"status": "error", "error_message": str(exc)})
