"""Typed values produced and consumed by the career generation pipeline."""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

QuestionType = Literal["text", "multiple_choice", "checkbox", "number", "textarea"]

QUESTION_TYPES = ("text", "multiple_choice", "checkbox", "number", "textarea")


class QuestionAnswer(BaseModel):
    """One fact elicited from the user."""

    model_config = ConfigDict(frozen=True)

    question: str
    answer: str
    category: Optional[str] = None

    @field_validator("answer", mode="before")
    @classmethod
    def _stringify_answer(cls, value: Any) -> Any:
        """Accept numbers, booleans and lists from AI answer forms."""
        if value is None:
            return ""
        if isinstance(value, bool):
            return "Yes" if value else "No"
        if isinstance(value, (list, tuple)):
            return ", ".join(str(item) for item in value if item not in (None, ""))
        if isinstance(value, (int, float)):
            return str(value)
        return value


def drop_blank_answers(pairs: List[QuestionAnswer]) -> List[QuestionAnswer]:
    return [qa for qa in pairs if qa.answer and qa.answer.strip()]


class UserProfile(BaseModel):
    """Static questionnaire answers as submitted by the profile form."""

    name: Optional[str] = None
    age: Optional[int] = Field(default=None, ge=0, le=120)
    highschool_name: Optional[str] = None
    highschool_stream: Optional[str] = None
    college: Optional[str] = None
    course_type: Optional[str] = None
    course: Optional[str] = None
    specialisation: Optional[str] = None
    no_experience: bool = False
    job_title: Optional[str] = None
    company_name: Optional[str] = None
    duration: Optional[str] = None
    skills: Optional[str] = None
    interests: Optional[str] = None
    preferred_work_env: Optional[str] = None

    def to_question_answers(self) -> List[QuestionAnswer]:
        """Render the profile as the fixed form questions, skipping blank answers."""

        rows = [
            ("What is your name?", self.name, "personal"),
            ("What is your age?", str(self.age) if self.age is not None else None, "personal"),
            ("What high school did you attend?", self.highschool_name, "education"),
            ("What was your high school stream?", self.highschool_stream, "education"),
            ("What college did you attend?", self.college, "education"),
            ("What type of course did you pursue?", self.course_type, "education"),
            ("What was your course/degree?", self.course, "education"),
            ("What was your specialization?", self.specialisation, "education"),
            ("Do you have work experience?", "No" if self.no_experience else "Yes", "experience"),
            ("What is your job title?", self.job_title, "experience"),
            ("What company do you work for?", self.company_name, "experience"),
            ("How long have you been working?", self.duration, "experience"),
            ("What are your key skills?", self.skills, "skills"),
            ("What are your interests?", self.interests, "interests"),
            ("What is your preferred work environment?", self.preferred_work_env, "preferences"),
        ]
        return drop_blank_answers(
            [QuestionAnswer(question=question, answer=answer, category=category) for question, answer, category in rows]
        )


class GeneratedQuestion(BaseModel):
    id: Optional[str] = None
    question_text: str
    question_type: QuestionType = "text"
    category: str
    options: Optional[List[str]] = None
    is_required: bool = True


class CareerOption(BaseModel):
    name: str
    description: str
    salary_range_min: Optional[int] = None
    salary_range_max: Optional[int] = None
    currency: str = "INR"
    required_skills: List[str] = Field(default_factory=list)
    growth_rate: Optional[float] = None
    experience_level: Optional[str] = None
    industry_sector: Optional[str] = None
    work_environment: Optional[str] = None
    key_responsibilities: Optional[List[str]] = None


class OwnedCareerOption(CareerOption):
    user_id: str
    created_at: datetime
    updated_at: datetime


class RoadmapStep(BaseModel):
    step: str
    description: str
    duration: Optional[str] = None
    key_outcomes: Optional[List[str]] = None
    sub_steps: Optional[List[Any]] = None


class Roadmap(BaseModel):
    career: str
    roadmap: List[RoadmapStep]
    estimated_timeline: Optional[str] = None
    difficulty_level: Optional[str] = None


CareerRecommendationSet = Dict[str, Any]
