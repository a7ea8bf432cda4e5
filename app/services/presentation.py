"""Shape stored career data for the web client."""

from __future__ import annotations

import re
from typing import Any, Dict, List, Optional, Sequence, Tuple
from urllib.parse import quote

from ..models import CareerOptionRecord
from ..schemas.generation import Roadmap

SKILLS_PREVIEW = 4
DEFAULT_STEP_DURATION = "2-4 weeks"
DEFAULT_TIMELINE = "18-24 months"
DEFAULT_DIFFICULTY = "Intermediate"

# First matching keyword group wins.
STEP_LINKS: Sequence[Tuple[Tuple[str, ...], str]] = (
    (("foundation", "basic"), "https://www.coursera.org/"),
    (("skill", "learn"), "https://www.udemy.com/"),
    (("project", "practice"), "https://github.com/"),
    (("network", "connect"), "https://www.linkedin.com/"),
    (("certification", "certificate"), "https://www.edx.org/"),
    (("job", "apply"), "https://www.naukri.com/"),
)

STEP_ICONS: Sequence[Tuple[Tuple[str, ...], str]] = (
    (("foundation", "basic"), "\U0001f3d7\ufe0f"),
    (("skill", "learn"), "\U0001f4da"),
    (("project", "practice"), "\U0001f4bb"),
    (("network", "connect"), "\U0001f91d"),
    (("certification", "certificate"), "\U0001f3c6"),
    (("job", "apply"), "\U0001f4bc"),
    (("experience", "internship"), "\U0001f3af"),
)
DEFAULT_ICON = "\U0001f4cb"


def _compact_amount(amount: Optional[int]) -> str:
    if amount is None:
        return "N/A"
    if amount >= 10_000_000:
        return f"{amount / 10_000_000:.1f}Cr"
    if amount >= 100_000:
        return f"{amount / 100_000:.1f}L"
    if amount >= 1_000:
        return f"{amount / 1_000:.0f}K"
    return str(amount)


def format_salary(minimum: Optional[int], maximum: Optional[int], currency: str = "INR") -> str:
    """Render a salary band the Indian way, e.g. ``5.0L - 15.0L INR``."""
    return f"{_compact_amount(minimum)} - {_compact_amount(maximum)} {currency or 'INR'}"


def format_growth_rate(rate: Optional[float]) -> str:
    if rate is None:
        return "N/A"
    return f"{rate:g}% growth"


def career_option_payload(record: CareerOptionRecord) -> Dict[str, Any]:
    skills: List[str] = list(record.required_skills or [])
    return {
        "career_id": record.career_id,
        "user_id": record.user_id,
        "name": record.name,
        "description": record.description,
        "salary_range_min": record.salary_range_min,
        "salary_range_max": record.salary_range_max,
        "currency": record.currency,
        "required_skills": skills,
        "growth_rate": record.growth_rate,
        "experience_level": record.experience_level,
        "industry_sector": record.industry_sector,
        "work_environment": record.work_environment,
        "key_responsibilities": record.key_responsibilities or [],
        "created_at": record.created_at,
        "updated_at": record.updated_at,
        "formatted_salary": format_salary(record.salary_range_min, record.salary_range_max, record.currency),
        "formatted_growth_rate": format_growth_rate(record.growth_rate),
        "skills_display": skills[:SKILLS_PREVIEW],
        "additional_skills_count": max(0, len(skills) - SKILLS_PREVIEW),
    }


def decode_career_title(slug: str) -> str:
    """Turn a URL slug like ``data-scientist`` back into ``Data Scientist``.

    Hyphens become spaces and underscores become slashes, so
    ``ui_ux-designer`` decodes to ``Ui/Ux Designer``.
    """

    title = slug.replace("-", " ").replace("_", "/")
    return re.sub(r"\b\w", lambda match: match.group(0).upper(), title)


def _match(step_name: str, table: Sequence[Tuple[Tuple[str, ...], str]]) -> Optional[str]:
    lowered = step_name.lower()
    for keywords, value in table:
        if any(keyword in lowered for keyword in keywords):
            return value
    return None


def step_link(step_name: str) -> str:
    return _match(step_name, STEP_LINKS) or f"https://www.google.com/search?q={quote(step_name, safe='')}"


def step_icon(step_name: str) -> str:
    return _match(step_name, STEP_ICONS) or DEFAULT_ICON


def roadmap_for_display(roadmap: Roadmap) -> Dict[str, Any]:
    steps = [
        {
            "id": f"step_{index}",
            "name": step.step,
            "description": step.description,
            "link": step_link(step.step),
            "icon": step_icon(step.step),
            "completed": False,
            "sub_steps": step.sub_steps or [],
            "duration": step.duration or DEFAULT_STEP_DURATION,
            "key_outcomes": step.key_outcomes or [],
        }
        for index, step in enumerate(roadmap.roadmap, start=1)
    ]
    return {
        "name": roadmap.career,
        "description": f"Personalized roadmap for {roadmap.career} career path",
        "steps": steps,
        "estimated_timeline": roadmap.estimated_timeline or DEFAULT_TIMELINE,
        "difficulty_level": roadmap.difficulty_level or DEFAULT_DIFFICULTY,
    }
