"""Career generation pipeline built on top of the Gemini client.

Each public operation renders a prompt, calls the model once, recovers JSON
from the reply and narrows it through the matching validator.  Only the
roadmap operation absorbs failures (into the canned roadmap); the other
operations raise and leave degradation to the caller.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime
from enum import Enum
from functools import lru_cache
from typing import Any, Callable, Iterable, List, Optional, Protocol, Tuple, Type, TypeVar

from tenacity import Retrying, before_sleep_log, retry_if_exception_type, stop_after_attempt, wait_exponential
from tenacity.wait import wait_base

from ..config import get_settings
from ..monitoring import record_dropped_entries, record_generation
from ..schemas.generation import (
    CareerRecommendationSet,
    GeneratedQuestion,
    OwnedCareerOption,
    QuestionAnswer,
    Roadmap,
    UserProfile,
    drop_blank_answers,
)
from ..utils.security import generate_id, utcnow
from .errors import CareerAIError, GenerationFailure, ModelOutputNotJSON
from .gemini import GeminiClient
from .json_repair import extract_json_with_strategy
from .prompts import (
    build_career_options_prompt,
    build_follow_up_questions_prompt,
    build_recommendations_prompt,
    build_roadmap_prompt,
)
from .validators import (
    fallback_roadmap,
    validate_career_options,
    validate_career_recommendations,
    validate_follow_up_questions,
    validate_roadmap,
)

T = TypeVar("T")

logger = logging.getLogger(__name__)

RECOVERABLE_ROADMAP_ERRORS: Tuple[Type[CareerAIError], ...] = (GenerationFailure, ModelOutputNotJSON)


class GenerationStage(str, Enum):
    IDLE = "idle"
    PROMPTING = "prompting"
    INVOKING = "invoking"
    EXTRACTING = "extracting"
    VALIDATING = "validating"
    SUCCESS = "success"
    FALLBACK_APPLIED = "fallback_applied"
    FAILED = "failed"


class TextGenerator(Protocol):
    def generate(self, prompt: str, *, task: str, expected_items: Optional[int] = None) -> str:
        ...


class CareerAIPipeline:
    def __init__(
        self,
        client: TextGenerator,
        *,
        max_attempts: int = 1,
        option_count: int = 5,
        fallback_roadmap_path: Optional[str] = None,
        clock: Callable[[], datetime] = utcnow,
        retry_wait: Optional[wait_base] = None,
    ):
        self.client = client
        self.max_attempts = max(1, max_attempts)
        self.option_count = option_count
        self.fallback_roadmap_path = fallback_roadmap_path
        self._clock = clock
        self._retry_wait = retry_wait or wait_exponential(multiplier=1, min=1, max=10)

    # ------------------------------------------------------------------
    # Shared stage runner
    # ------------------------------------------------------------------
    def _invoke(self, prompt: str, task: str, expected_items: Optional[int]) -> str:
        retrying = Retrying(
            retry=retry_if_exception_type(GenerationFailure),
            stop=stop_after_attempt(self.max_attempts),
            wait=self._retry_wait,
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        return retrying(self.client.generate, prompt, task=task, expected_items=expected_items)

    def _run(
        self,
        task: str,
        build_prompt: Callable[[], str],
        validate: Callable[[Any], T],
        *,
        expected_items: Optional[int] = None,
        fallback: Optional[Callable[[], T]] = None,
    ) -> T:
        started = time.perf_counter()
        stage = GenerationStage.IDLE
        try:
            stage = GenerationStage.PROMPTING
            prompt = build_prompt()
            stage = GenerationStage.INVOKING
            raw_text = self._invoke(prompt, task, expected_items)
            stage = GenerationStage.EXTRACTING
            parsed, strategy = extract_json_with_strategy(raw_text)
            stage = GenerationStage.VALIDATING
            result = validate(parsed)
        except CareerAIError as exc:
            elapsed = time.perf_counter() - started
            if fallback is not None and isinstance(exc, RECOVERABLE_ROADMAP_ERRORS):
                logger.warning("%s failed while %s, applying fallback: %s", task, stage.value, exc)
                record_generation(task, GenerationStage.FALLBACK_APPLIED.value, elapsed)
                return fallback()
            logger.warning("%s failed while %s: %s", task, stage.value, exc)
            record_generation(task, GenerationStage.FAILED.value, elapsed)
            raise

        if isinstance(parsed, list) and isinstance(result, list):
            record_dropped_entries(task, len(parsed) - len(result))
        logger.info("%s generated (json strategy: %s)", task, strategy)
        record_generation(task, GenerationStage.SUCCESS.value, time.perf_counter() - started)
        return result

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------
    def generate_follow_up_questions(
        self, previous_qa: Iterable[QuestionAnswer], count: int = 5
    ) -> List[GeneratedQuestion]:
        context = drop_blank_answers(list(previous_qa))
        questions = self._run(
            "follow_up_questions",
            lambda: build_follow_up_questions_prompt(context, count),
            validate_follow_up_questions,
            expected_items=count,
        )
        batch = generate_id()[:12]
        return [
            question.model_copy(update={"id": f"ai_{batch}_{index}"})
            for index, question in enumerate(questions)
        ]

    def generate_career_recommendations(self, all_qa: Iterable[QuestionAnswer]) -> CareerRecommendationSet:
        context = drop_blank_answers(list(all_qa))
        return self._run(
            "career_recommendations",
            lambda: build_recommendations_prompt(context),
            validate_career_recommendations,
        )

    def generate_career_options(self, all_qa: Iterable[QuestionAnswer], owner_id: str) -> List[OwnedCareerOption]:
        context = drop_blank_answers(list(all_qa))
        options = self._run(
            "career_options",
            lambda: build_career_options_prompt(context, self.option_count),
            validate_career_options,
            expected_items=self.option_count,
        )
        now = self._clock()
        return [
            OwnedCareerOption(**option.model_dump(), user_id=owner_id, created_at=now, updated_at=now)
            for option in options
        ]

    def generate_career_roadmap(
        self,
        career_title: str,
        profile: UserProfile,
        supplemental_qa: Optional[Iterable[QuestionAnswer]] = None,
    ) -> Roadmap:
        supplemental = drop_blank_answers(list(supplemental_qa)) if supplemental_qa else None
        return self._run(
            "career_roadmap",
            lambda: build_roadmap_prompt(career_title, profile, supplemental),
            lambda parsed: validate_roadmap(parsed, career_title, fallback_path=self.fallback_roadmap_path),
            fallback=lambda: fallback_roadmap(career_title, self.fallback_roadmap_path),
        )


@lru_cache(maxsize=1)
def get_career_pipeline() -> CareerAIPipeline:
    settings = get_settings()
    return CareerAIPipeline(
        GeminiClient.from_settings(settings),
        max_attempts=settings.generation_max_attempts,
        option_count=settings.career_option_count,
        fallback_roadmap_path=settings.fallback_roadmap_path,
    )
