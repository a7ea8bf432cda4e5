"""Career assessment, recommendation and roadmap endpoints."""

import logging
from typing import Any, Dict, List

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ..config import get_settings
from ..deps import get_current_user, get_db, get_pipeline
from ..models import User
from ..schemas import (
    AIAnswersResult,
    AIAnswersSubmission,
    AIQuestionsRead,
    ApiEnvelope,
    AssessmentRead,
    CareerFormSubmission,
    CareerOptionRead,
    FormSubmissionResponse,
    RoadmapRead,
)
from ..services.assessments import (
    assessment_ai_answers,
    assessment_profile,
    create_assessment,
    get_owned_assessment,
    list_assessments,
    list_career_options,
    replace_career_options,
    save_ai_answers,
    save_final_recommendations,
    save_generated_questions,
)
from ..services.career_ai import CareerAIPipeline
from ..services.errors import CareerAIError
from ..services.presentation import career_option_payload, decode_career_title, roadmap_for_display

router = APIRouter(prefix="/api/career", tags=["career"])

logger = logging.getLogger(__name__)


def _options_envelope(db: Session, user: User) -> Dict[str, Any]:
    return {"success": True, "data": [career_option_payload(record) for record in list_career_options(db, user)]}


@router.post("/ai-submit", response_model=FormSubmissionResponse, status_code=status.HTTP_201_CREATED)
def submit_career_form(
    payload: CareerFormSubmission,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    pipeline: CareerAIPipeline = Depends(get_pipeline),
) -> FormSubmissionResponse:
    """Store the static questionnaire and try to generate follow-up questions.

    The form is saved even when generation fails; the response then carries
    ``has_ai_questions: false`` and an ``ai_error`` message instead.
    """

    assessment = create_assessment(db, current_user, payload)
    settings = get_settings()
    try:
        questions = pipeline.generate_follow_up_questions(
            payload.to_question_answers(), settings.follow_up_question_count
        )
    except CareerAIError as exc:
        logger.warning("Follow-up questions unavailable for assessment %s: %s", assessment.recommendation_id, exc)
        return FormSubmissionResponse(
            message="Form submitted successfully!",
            user_id=current_user.user_id,
            recommendation_id=assessment.recommendation_id,
            has_ai_questions=False,
            ai_error="AI questions could not be generated",
        )

    save_generated_questions(db, assessment, questions)
    return FormSubmissionResponse(
        message="Form submitted and AI questions generated successfully!",
        user_id=current_user.user_id,
        recommendation_id=assessment.recommendation_id,
        ai_questions=questions,
        has_ai_questions=bool(questions),
    )


@router.get("/ai-questions/{recommendation_id}", response_model=ApiEnvelope[AIQuestionsRead])
def get_ai_questions(
    recommendation_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Dict[str, Any]:
    assessment = get_owned_assessment(db, current_user, recommendation_id)
    questions = assessment.ai_questions or []
    return {
        "success": True,
        "data": {
            "recommendation_id": assessment.recommendation_id,
            "ai_questions": questions,
            "has_ai_questions": bool(questions),
        },
    }


@router.post("/ai-answers", response_model=ApiEnvelope[AIAnswersResult])
def submit_ai_answers(
    payload: AIAnswersSubmission,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    pipeline: CareerAIPipeline = Depends(get_pipeline),
) -> Dict[str, Any]:
    """Record follow-up answers, then generate recommendations and career options.

    The two generations are independent: each failure is reported in its own
    ``*_error`` field and leaves the other result (and any previously stored
    career options) untouched.
    """

    assessment = get_owned_assessment(db, current_user, payload.recommendation_id)
    save_ai_answers(db, assessment, [answer.model_dump() for answer in payload.ai_answers])
    all_qa = assessment_profile(assessment).to_question_answers() + [
        answer.to_question_answer() for answer in payload.ai_answers
    ]

    result: Dict[str, Any] = {
        "user_id": current_user.user_id,
        "recommendation_id": assessment.recommendation_id,
    }

    try:
        recommendations = pipeline.generate_career_recommendations(all_qa)
    except CareerAIError as exc:
        logger.warning("Recommendations unavailable for assessment %s: %s", assessment.recommendation_id, exc)
        result["recommendations_error"] = "Career recommendations could not be generated"
    else:
        save_final_recommendations(db, assessment, recommendations)
        result["final_recommendations"] = recommendations

    try:
        options = pipeline.generate_career_options(all_qa, current_user.user_id)
    except CareerAIError as exc:
        logger.warning("Career options unavailable for user %s: %s", current_user.user_id, exc)
        result["career_options_error"] = "Career options could not be generated"
    else:
        records = replace_career_options(db, current_user.user_id, options)
        result["career_options_count"] = len(records)

    if "recommendations_error" in result or "career_options_error" in result:
        result["message"] = "AI answers submitted; some results could not be generated."
    else:
        result["message"] = "AI answers submitted, recommendations generated, and career options saved!"
    return {"success": True, "data": result}


@router.get("/recommendations", response_model=ApiEnvelope[List[CareerOptionRead]])
def get_career_recommendations(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Dict[str, Any]:
    return _options_envelope(db, current_user)


@router.get("/recommendations/{recommendation_id}", response_model=ApiEnvelope[List[CareerOptionRead]])
def get_assessment_recommendations(
    recommendation_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> Dict[str, Any]:
    get_owned_assessment(db, current_user, recommendation_id)
    return _options_envelope(db, current_user)


@router.get("/roadmap/{recommendation_id}/{title}", response_model=ApiEnvelope[RoadmapRead])
def get_career_roadmap(
    recommendation_id: int,
    title: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
    pipeline: CareerAIPipeline = Depends(get_pipeline),
) -> Dict[str, Any]:
    assessment = get_owned_assessment(db, current_user, recommendation_id)
    roadmap = pipeline.generate_career_roadmap(
        decode_career_title(title),
        assessment_profile(assessment),
        assessment_ai_answers(assessment),
    )
    return {"success": True, "data": roadmap_for_display(roadmap)}


@router.get("/assessments", response_model=List[AssessmentRead])
def get_assessments(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> List[AssessmentRead]:
    return [AssessmentRead.model_validate(assessment) for assessment in list_assessments(db, current_user)]


@router.get("/assessments/{recommendation_id}", response_model=AssessmentRead)
def get_assessment(
    recommendation_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> AssessmentRead:
    return AssessmentRead.model_validate(get_owned_assessment(db, current_user, recommendation_id))
