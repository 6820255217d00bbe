from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class ResumeDocument(BaseModel):
    url: str
    content: bytes
    content_type: str = "application/octet-stream"


class AIScoreResult(BaseModel):
    score: int | None = Field(default=None, ge=0, le=100)
    summary: str = ""
    recommendations: list[str] = Field(default_factory=list)


class ScoringRecord(BaseModel):
    computed_at: datetime
    raw: Any = None
    reply: str = ""
    parsed: dict[str, Any] | None = None
    score: int | None = Field(default=None, ge=0, le=100)
    heuristic: bool = False
    recommendations: list[str] = Field(default_factory=list)


class ATSScoreResponse(BaseModel):
    success: bool = True
    score: int | None = Field(default=None, ge=0, le=100)
    reply: str = ""
    parsed: dict[str, Any] | None = None
    recommendations: list[str] = Field(default_factory=list)
    heuristic: bool = False
    notice: str | None = None
    raw: Any = None
