"""Narrow parsed model output into typed pipeline values.

Individual malformed entries are dropped or patched and logged; only a
top-level value of the wrong shape raises :class:`ValidationRejected`.
"""

from __future__ import annotations

import json
import logging
import math
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..schemas.generation import (
    QUESTION_TYPES,
    CareerOption,
    CareerRecommendationSet,
    GeneratedQuestion,
    Roadmap,
    RoadmapStep,
)
from .errors import ValidationRejected

logger = logging.getLogger(__name__)

BUNDLED_FALLBACK_ROADMAP = Path(__file__).resolve().parent.parent / "data" / "fallback_roadmap.json"
DEFAULT_CHOICE_OPTIONS = ("Yes", "No")
DEFAULT_CURRENCY = "INR"


# ---------------------------------------------------------------------------
# Coercion helpers
# ---------------------------------------------------------------------------

def _text(value: Any) -> Optional[str]:
    if isinstance(value, str):
        return value.strip() or None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return None


def _string_list(value: Any) -> List[str]:
    if isinstance(value, str):
        value = value.split(",")
    if not isinstance(value, (list, tuple)):
        return []
    items: List[str] = []
    for item in value:
        text = _text(item)
        if text:
            items.append(text)
    return items


def _number(value: Any) -> Optional[float]:
    if isinstance(value, bool):
        return None
    if isinstance(value, str):
        cleaned = value.strip().rstrip("%").replace(",", "").strip()
        try:
            value = float(cleaned)
        except ValueError:
            return None
    if not isinstance(value, (int, float)):
        return None
    number = float(value)
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _whole_number(value: Any) -> Optional[int]:
    number = _number(value)
    return int(round(number)) if number is not None else None


def _unwrap_list(value: Any, task: str) -> List[Any]:
    """Accept a JSON array, or an object whose only member is an array."""

    if isinstance(value, list):
        return value
    if isinstance(value, dict) and len(value) == 1:
        (inner,) = value.values()
        if isinstance(inner, list):
            return inner
    raise ValidationRejected(task, f"expected a JSON array, got {type(value).__name__}")


# ---------------------------------------------------------------------------
# Follow-up questions
# ---------------------------------------------------------------------------

def validate_follow_up_questions(value: Any) -> List[GeneratedQuestion]:
    questions: List[GeneratedQuestion] = []
    for index, entry in enumerate(_unwrap_list(value, "follow_up_questions")):
        if not isinstance(entry, dict):
            logger.warning("Skipping non-object question at index %s: %r", index, entry)
            continue
        question_text = _text(entry.get("question_text"))
        question_type = _text(entry.get("question_type"))
        category = _text(entry.get("category"))
        if not (question_text and question_type and category):
            logger.warning("Skipping invalid question at index %s: %r", index, entry)
            continue

        question_type = question_type.lower()
        if question_type not in QUESTION_TYPES:
            question_type = "text"

        options = _string_list(entry.get("options")) or None
        if question_type == "multiple_choice" and not options:
            options = list(DEFAULT_CHOICE_OPTIONS)

        required = entry.get("is_required")
        is_required = not (required is False or (isinstance(required, str) and required.strip().lower() == "false"))

        questions.append(
            GeneratedQuestion(
                question_text=question_text,
                question_type=question_type,
                category=category,
                options=options,
                is_required=is_required,
            )
        )
    return questions


# ---------------------------------------------------------------------------
# Recommendations
# ---------------------------------------------------------------------------

def validate_career_recommendations(value: Any) -> CareerRecommendationSet:
    # The consumer renders fields defensively, so only the top level is checked.
    if not isinstance(value, dict):
        raise ValidationRejected("career_recommendations", f"expected a JSON object, got {type(value).__name__}")
    return value


# ---------------------------------------------------------------------------
# Career options
# ---------------------------------------------------------------------------

def validate_career_options(value: Any) -> List[CareerOption]:
    options: List[CareerOption] = []
    for index, entry in enumerate(_unwrap_list(value, "career_options")):
        if isinstance(entry, CareerOption):
            entry = entry.model_dump()
        if not isinstance(entry, dict):
            logger.warning("Skipping non-object career option at index %s: %r", index, entry)
            continue
        name = _text(entry.get("name"))
        description = _text(entry.get("description"))
        if not (name and description):
            logger.warning("Skipping career option without name or description at index %s: %r", index, entry)
            continue
        options.append(
            CareerOption(
                name=name,
                description=description,
                salary_range_min=_whole_number(entry.get("salary_range_min")),
                salary_range_max=_whole_number(entry.get("salary_range_max")),
                currency=_text(entry.get("currency")) or DEFAULT_CURRENCY,
                required_skills=_string_list(entry.get("required_skills")),
                growth_rate=_number(entry.get("growth_rate")),
                experience_level=_text(entry.get("experience_level")),
                industry_sector=_text(entry.get("industry_sector")),
                work_environment=_text(entry.get("work_environment")),
                key_responsibilities=_string_list(entry.get("key_responsibilities")) or None,
            )
        )
    return options


# ---------------------------------------------------------------------------
# Roadmap
# ---------------------------------------------------------------------------

@lru_cache(maxsize=4)
def _load_roadmap_template(path: str) -> Dict[str, Any]:
    with open(path, encoding="utf-8") as handle:
        return json.load(handle)


def _render(value: Any, career: str) -> Any:
    if isinstance(value, str):
        return value.replace("{career}", career)
    if isinstance(value, list):
        return [_render(item, career) for item in value]
    if isinstance(value, dict):
        return {key: _render(item, career) for key, item in value.items()}
    return value


def fallback_roadmap(career: str, path: Optional[str] = None) -> Roadmap:
    """Return the canned six-step roadmap for ``career``."""

    try:
        template = _load_roadmap_template(path or str(BUNDLED_FALLBACK_ROADMAP))
    except (OSError, ValueError):
        if not path:
            raise
        logger.exception("Could not load fallback roadmap from %s, using the bundled copy", path)
        template = _load_roadmap_template(str(BUNDLED_FALLBACK_ROADMAP))

    rendered = _render(template, career)
    return Roadmap(
        career=career,
        roadmap=[RoadmapStep(**step) for step in rendered["roadmap"]],
        estimated_timeline=rendered.get("estimated_timeline"),
        difficulty_level=rendered.get("difficulty_level"),
    )


def validate_roadmap(value: Any, career: str, *, fallback_path: Optional[str] = None) -> Roadmap:
    """Return a usable roadmap for ``career`` whatever ``value`` holds."""

    if not isinstance(value, dict) or not isinstance(value.get("roadmap"), list):
        logger.warning("Roadmap payload for %r has no roadmap list, using fallback", career)
        return fallback_roadmap(career, fallback_path)

    steps: List[RoadmapStep] = []
    for entry in value["roadmap"]:
        if not isinstance(entry, dict):
            continue
        step = _text(entry.get("step"))
        description = _text(entry.get("description"))
        if not (step and description):
            continue
        sub_steps = entry.get("sub_steps")
        steps.append(
            RoadmapStep(
                step=step,
                description=description,
                duration=_text(entry.get("duration")),
                key_outcomes=_string_list(entry.get("key_outcomes")) or None,
                sub_steps=sub_steps if isinstance(sub_steps, list) else None,
            )
        )

    if not steps:
        logger.warning("Roadmap payload for %r has no usable steps, using fallback", career)
        return fallback_roadmap(career, fallback_path)

    return Roadmap(
        career=_text(value.get("career")) or career,
        roadmap=steps,
        estimated_timeline=_text(value.get("estimated_timeline")),
        difficulty_level=_text(value.get("difficulty_level")),
    )
