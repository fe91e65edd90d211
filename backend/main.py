from __future__ import annotations

import logging
import os
import uuid
from functools import lru_cache
from typing import Any

from fastapi import BackgroundTasks, FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from job_runner import SESSIONS_TABLE, run_session_job
from llm import SessionMode, generate_feedback, generate_speaking_prompt, pick_interview_prompt
from metrics import PaceLabel, analyze_transcript, count_filler_words, get_filler_word_breakdown, get_pace_label
from progress import (
    MetricRating,
    ProgressSummary,
    metric_series,
    rate_filler_count,
    rate_vocab_diversity,
    summarize_progress,
)

logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO").upper())
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Speech Practice Metrics API",
    version="0.1.0",
    description="Score practice transcripts and return coaching feedback.",
)

allowed_origins = [
    origin.strip()
    for origin in os.getenv("CORS_ALLOW_ORIGINS", "*").split(",")
    if origin.strip()
]
allow_credentials = "*" not in allowed_origins
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins or ["*"],
    allow_credentials=allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)


class AnalyzeRequest(BaseModel):
    transcript: str = ""
    duration_seconds: float = Field(ge=0)
    session_mode: SessionMode = "freeform"
    prompt: str | None = None
    include_feedback: bool = True


class AnalyzeResponse(BaseModel):
    transcript: str
    metrics: dict[str, Any]
    pace_label: PaceLabel
    filler_breakdown: dict[str, int]
    filler_rating: MetricRating
    vocab_rating: MetricRating
    feedback: str | None
    notes: list[str]


class TranscriptRequest(BaseModel):
    transcript: str = ""


class FillerBreakdownResponse(BaseModel):
    total: int
    breakdown: dict[str, int]


class StoredSession(BaseModel):
    speaking_pace: float = Field(default=0, ge=0)
    filler_words_count: float = Field(default=0, ge=0)
    vocab_diversity: float = Field(default=0, ge=0, le=1)


class ProgressRequest(BaseModel):
    sessions: list[StoredSession] = Field(default_factory=list)


class ProgressSeriesResponse(BaseModel):
    metric: str
    values: list[float]


class PromptResponse(BaseModel):
    prompt: str


class CreateSessionRequest(AnalyzeRequest):
    user_id: str


class CreateSessionResponse(BaseModel):
    session_id: str
    status: str


@lru_cache(maxsize=1)
def get_supabase_client():
    url = os.getenv("SUPABASE_URL")
    key = os.getenv("SUPABASE_KEY")
    if not url or not key:
        return None

    from supabase import create_client

    return create_client(url, key)


@app.get("/")
async def root() -> dict[str, str]:
    return {"message": "Speech Practice Metrics API is running."}


@app.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


@app.post("/analyze", response_model=AnalyzeResponse)
async def analyze(payload: AnalyzeRequest) -> AnalyzeResponse:
    notes: list[str] = []
    transcript = payload.transcript.strip()
    if not transcript:
        notes.append("Transcript is empty. Speaking metrics may be limited.")
    if payload.duration_seconds == 0:
        notes.append("Duration is zero. Speaking pace was reported as 0 WPM.")

    report = analyze_transcript(transcript, payload.duration_seconds)

    feedback: str | None = None
    if payload.include_feedback:
        feedback = generate_feedback(
            transcript,
            session_mode=payload.session_mode,
            prompt=payload.prompt,
            metrics=report,
        )
    else:
        notes.append("Coaching feedback was not requested.")

    return AnalyzeResponse(
        transcript=transcript,
        metrics=report,
        pace_label=PaceLabel(**report["pace_label"]),
        filler_breakdown=report["filler_breakdown"],
        filler_rating=rate_filler_count(report["filler_words_count"]),
        vocab_rating=rate_vocab_diversity(report["vocab_diversity"]),
        feedback=feedback,
        notes=notes,
    )


@app.get("/pace-label", response_model=PaceLabel)
async def pace_label(wpm: float = Query(ge=0)) -> PaceLabel:
    return get_pace_label(wpm)


@app.post("/filler-breakdown", response_model=FillerBreakdownResponse)
async def filler_breakdown(payload: TranscriptRequest) -> FillerBreakdownResponse:
    return FillerBreakdownResponse(
        total=count_filler_words(payload.transcript),
        breakdown=get_filler_word_breakdown(payload.transcript),
    )


@app.post("/progress", response_model=ProgressSummary)
async def progress(payload: ProgressRequest) -> ProgressSummary:
    return summarize_progress([session.model_dump() for session in payload.sessions])


@app.post("/progress/series", response_model=ProgressSeriesResponse)
async def progress_series(payload: ProgressRequest, metric: str = "speaking_pace") -> ProgressSeriesResponse:
    sessions = [session.model_dump() for session in payload.sessions]
    try:
        values = metric_series(sessions, metric)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return ProgressSeriesResponse(metric=metric, values=values)


@app.get("/prompt", response_model=PromptResponse)
async def speaking_prompt(mode: SessionMode = "freeform") -> PromptResponse:
    if mode == "interview":
        return PromptResponse(prompt=pick_interview_prompt())
    return PromptResponse(prompt=generate_speaking_prompt())


@app.post("/sessions", response_model=CreateSessionResponse, status_code=202)
async def create_session(
    payload: CreateSessionRequest,
    background_tasks: BackgroundTasks,
) -> CreateSessionResponse:
    supabase = get_supabase_client()
    if supabase is None:
        raise HTTPException(status_code=503, detail="Session storage is not configured.")
    if not payload.user_id.strip():
        raise HTTPException(status_code=400, detail="user_id is required.")

    session_id = str(uuid.uuid4())
    supabase.table(SESSIONS_TABLE).insert(
        {
            "id": session_id,
            "user_id": payload.user_id,
            "transcript": payload.transcript,
            "duration": payload.duration_seconds,
            "session_mode": payload.session_mode,
            "prompt_used": payload.prompt or None,
            "status": "pending",
        }
    ).execute()

    background_tasks.add_task(
        run_session_job,
        session_id,
        payload.transcript,
        payload.duration_seconds,
        payload.session_mode,
        payload.prompt,
        supabase,
    )
    logger.info("Queued session %s for user %s", session_id, payload.user_id)
    return CreateSessionResponse(session_id=session_id, status="pending")
