from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Sequence

from app.core.config.scoring import get_scoring_value

WORD_RE = re.compile(r"\b\w+\b", re.ASCII)
EXPERIENCE_RE = re.compile(r"\b(work experience|experience|employment|professional experience)\b")
EDUCATION_SCORE_RE = re.compile(r"\b(education|degrees|academic)\b")
EDUCATION_ADVICE_RE = re.compile(r"\b(education|degree|university|school)\b")
SKILLS_RE = re.compile(r"\b(skills?|technical skills|competencies)\b")
CONTACT_RE = re.compile(r"\b(contact|email|phone|linkedin)\b")

REC_ADD_EXPERIENCE = (
    'Add a "Work Experience" section with company, role, dates and 2–4 bullet achievements '
    "per role (use metrics)."
)
REC_EXPAND_BULLETS = (
    "Expand each role with 2–4 achievement-focused bullet points that include measurable "
    "results (%, numbers)."
)
REC_ADD_EDUCATION = "Include an Education section with degree, institution and graduation year (if recent)."
REC_LIST_SKILLS = "List relevant technical and soft skills near the top (comma-separated or short bullets)."
REC_TAILOR = "Tailor the resume for the target job: add keywords from the job description to improve ATS match."
REC_FORMATTING = (
    "Use simple formatting: plain text, bullet points, standard headings and avoid images/complex "
    "tables so ATS can parse your resume."
)
REC_MORE_DETAIL = (
    "Resume is short — add more detail about responsibilities and outcomes to help ATS and recruiters."
)


@dataclass(frozen=True)
class ResumeSignals:
    words: int
    has_experience: bool
    has_education: bool
    has_education_detail: bool
    has_skills: bool
    has_contact: bool


def resume_signals(text: str) -> ResumeSignals:
    lowered = (text or "").lower()
    return ResumeSignals(
        words=len(WORD_RE.findall(lowered)),
        has_experience=bool(EXPERIENCE_RE.search(lowered)),
        has_education=bool(EDUCATION_SCORE_RE.search(lowered)),
        has_education_detail=bool(EDUCATION_ADVICE_RE.search(lowered)),
        has_skills=bool(SKILLS_RE.search(lowered)),
        has_contact=bool(CONTACT_RE.search(lowered)),
    )


def _weight(path: str, default: int) -> int:
    return int(get_scoring_value(f"heuristic.{path}", default))


def compute_heuristic_score(text: str, skills: Sequence[str] | None = None) -> int:
    """Rule-based ATS score in ``[min_score, max_score]`` (10..95 by default).

    Raises ``RuntimeError`` when the scoring config cannot be loaded.
    """
    signals = resume_signals(text)
    score = _weight("base", 50)
    score += min(_weight("length_bonus_cap", 20), signals.words // max(1, _weight("words_per_point", 200)))

    if signals.has_experience:
        score += _weight("sections.experience", 10)
    if signals.has_education:
        score += _weight("sections.education", 8)
    if signals.has_skills:
        score += _weight("sections.skills", 10)
    if signals.has_contact:
        score += _weight("sections.contact", 5)

    if skills is not None:
        score += min(_weight("profile_skills_cap", 10), len(skills))

    if signals.words < _weight("short_resume_words", 100):
        score -= _weight("short_resume_penalty", 15)

    return max(_weight("min_score", 10), min(_weight("max_score", 95), score))


def generate_recommendations(text: str, skills: Sequence[str] | None = None) -> list[str]:
    signals = resume_signals(text)
    recs: list[str] = []

    if not signals.has_experience:
        recs.append(REC_ADD_EXPERIENCE)
    elif signals.words < 400:
        recs.append(REC_EXPAND_BULLETS)

    if not signals.has_education_detail:
        recs.append(REC_ADD_EDUCATION)

    if not signals.has_skills and not skills:
        recs.append(REC_LIST_SKILLS)

    recs.append(REC_TAILOR)
    recs.append(REC_FORMATTING)

    if signals.words < 200:
        recs.append(REC_MORE_DETAIL)

    return list(dict.fromkeys(recs))[:6]
