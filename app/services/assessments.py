"""Database helpers for assessments and generated career data.

All functions work inside the caller's session and only flush; the request
scope in :func:`app.deps.get_db` commits once at the end, so a failure
anywhere in a request rolls back every write made during it.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Sequence

from fastapi import HTTPException, status
from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from ..models import CareerAssessment, CareerOptionRecord, User
from ..schemas.generation import (
    CareerRecommendationSet,
    GeneratedQuestion,
    OwnedCareerOption,
    QuestionAnswer,
    UserProfile,
)
from ..utils.security import Identity, generate_id

logger = logging.getLogger(__name__)

AI_ANSWER_CATEGORY = "ai_generated"


def get_or_create_user(db: Session, identity: Identity) -> User:
    user = db.execute(select(User).where(User.uid == identity.subject_id)).scalar_one_or_none()
    if user is None:
        user = User(user_id=generate_id(), uid=identity.subject_id, email=identity.email)
        db.add(user)
        db.flush()
        logger.info("Provisioned user %s for identity %s", user.user_id, identity.subject_id)
    elif identity.email and user.email != identity.email:
        user.email = identity.email
    return user


def create_assessment(db: Session, user: User, profile: UserProfile) -> CareerAssessment:
    assessment = CareerAssessment(user_id=user.user_id, **profile.model_dump())
    db.add(assessment)
    db.flush()
    return assessment


def get_owned_assessment(db: Session, user: User, recommendation_id: int) -> CareerAssessment:
    assessment = db.get(CareerAssessment, recommendation_id)
    if assessment is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Recommendation not found")
    if assessment.user_id != user.user_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
    return assessment


def list_assessments(db: Session, user: User) -> List[CareerAssessment]:
    stmt = (
        select(CareerAssessment)
        .where(CareerAssessment.user_id == user.user_id)
        .order_by(CareerAssessment.created_at.desc(), CareerAssessment.recommendation_id.desc())
    )
    return list(db.execute(stmt).scalars())


def assessment_profile(assessment: CareerAssessment) -> UserProfile:
    return UserProfile(**{field: getattr(assessment, field) for field in UserProfile.model_fields})


def assessment_ai_answers(assessment: CareerAssessment) -> List[QuestionAnswer]:
    answers: List[QuestionAnswer] = []
    for entry in assessment.ai_answers or []:
        if not isinstance(entry, dict) or not entry.get("question"):
            continue
        answers.append(
            QuestionAnswer(
                question=entry["question"],
                answer=entry.get("answer"),
                category=entry.get("category") or AI_ANSWER_CATEGORY,
            )
        )
    return answers


def save_generated_questions(db: Session, assessment: CareerAssessment, questions: Sequence[GeneratedQuestion]) -> None:
    assessment.ai_questions = [question.model_dump() for question in questions]
    db.flush()


def save_ai_answers(db: Session, assessment: CareerAssessment, answers: Iterable[Dict[str, Any]]) -> None:
    assessment.ai_answers = [dict(answer) for answer in answers]
    db.flush()


def save_final_recommendations(
    db: Session, assessment: CareerAssessment, recommendations: CareerRecommendationSet
) -> None:
    assessment.final_recommendations = recommendations
    db.flush()


def replace_career_options(
    db: Session, user_id: str, options: Sequence[OwnedCareerOption]
) -> List[CareerOptionRecord]:
    """Swap the user's stored career options for ``options``."""

    db.execute(delete(CareerOptionRecord).where(CareerOptionRecord.user_id == user_id))
    records = [CareerOptionRecord(**option.model_dump(exclude={"user_id"}), user_id=user_id) for option in options]
    db.add_all(records)
    db.flush()
    logger.info("Stored %s career options for user %s", len(records), user_id)
    return records


def list_career_options(db: Session, user: User) -> List[CareerOptionRecord]:
    stmt = (
        select(CareerOptionRecord)
        .where(CareerOptionRecord.user_id == user.user_id)
        .order_by(CareerOptionRecord.career_id)
    )
    return list(db.execute(stmt).scalars())

