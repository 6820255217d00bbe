from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from app.schemas.ats import ScoringRecord


class UserProfile(BaseModel):
    user_id: str = Field(min_length=1, max_length=120)
    fullname: str = ""
    email: str = ""
    phone_number: str = ""
    bio: str = ""
    skills: list[str] = Field(default_factory=list)
    resume_url: str | None = None
    resume_original_name: str | None = None
    ats_ai: ScoringRecord | None = None

    @field_validator("skills", mode="before")
    @classmethod
    def _split_skills(cls, value):
        # Profile forms submit skills as one comma-separated string.
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value
