"""Pydantic schemas for API payloads."""

from datetime import datetime
from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

from .generation import GeneratedQuestion, QuestionAnswer, UserProfile

T = TypeVar("T")


class CareerFormSubmission(UserProfile):
    """Static questionnaire as posted by the multi-step form."""


class AIAnswer(BaseModel):
    question_id: Optional[str] = None
    question: str = Field(min_length=1)
    answer: Any = None
    category: Optional[str] = None

    def to_question_answer(self) -> QuestionAnswer:
        return QuestionAnswer(question=self.question, answer=self.answer, category=self.category or "ai_generated")


class AIAnswersSubmission(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    recommendation_id: int = Field(validation_alias=AliasChoices("recommendation_id", "recommendationId"))
    ai_answers: List[AIAnswer] = Field(default_factory=list)


class FormSubmissionResponse(BaseModel):
    success: bool = True
    message: str
    user_id: str
    recommendation_id: int
    has_ai_questions: bool
    ai_questions: Optional[List[GeneratedQuestion]] = None
    ai_error: Optional[str] = None


class AIQuestionsRead(BaseModel):
    recommendation_id: int
    ai_questions: List[GeneratedQuestion]
    has_ai_questions: bool


class AIAnswersResult(BaseModel):
    message: str
    user_id: str
    recommendation_id: int
    final_recommendations: Optional[Dict[str, Any]] = None
    career_options_count: int = 0
    recommendations_error: Optional[str] = None
    career_options_error: Optional[str] = None


class CareerOptionRead(BaseModel):
    career_id: int
    user_id: str
    name: str
    description: str
    salary_range_min: Optional[int] = None
    salary_range_max: Optional[int] = None
    currency: str
    required_skills: List[str]
    growth_rate: Optional[float] = None
    experience_level: Optional[str] = None
    industry_sector: Optional[str] = None
    work_environment: Optional[str] = None
    key_responsibilities: List[str] = Field(default_factory=list)
    created_at: datetime
    updated_at: Optional[datetime] = None
    formatted_salary: str
    formatted_growth_rate: str
    skills_display: List[str]
    additional_skills_count: int


class RoadmapStepRead(BaseModel):
    id: str
    name: str
    description: str
    link: str
    icon: str
    completed: bool = False
    sub_steps: List[Any] = Field(default_factory=list)
    duration: str
    key_outcomes: List[str] = Field(default_factory=list)


class RoadmapRead(BaseModel):
    name: str
    description: str
    steps: List[RoadmapStepRead]
    estimated_timeline: str
    difficulty_level: str


class AssessmentRead(UserProfile):
    model_config = ConfigDict(from_attributes=True)

    recommendation_id: int
    user_id: str
    ai_questions: Optional[List[Dict[str, Any]]] = None
    ai_answers: Optional[List[Dict[str, Any]]] = None
    final_recommendations: Optional[Dict[str, Any]] = None
    created_at: datetime
    updated_at: Optional[datetime] = None


class UserRead(BaseModel):
    uid: str
    email: Optional[str] = None


class ApiEnvelope(BaseModel, Generic[T]):
    success: bool = True
    data: T
