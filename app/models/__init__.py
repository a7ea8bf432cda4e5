"""SQLAlchemy models for the CareerPath application."""

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    JSON,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from ..database import Base
from ..utils.security import utcnow


class User(Base):
    __tablename__ = "users"

    user_id = Column(String, primary_key=True)
    uid = Column(String, nullable=False, unique=True)
    email = Column(String)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    assessments = relationship("CareerAssessment", back_populates="user", cascade="all, delete")
    career_options = relationship("CareerOptionRecord", back_populates="user", cascade="all, delete")


class CareerAssessment(Base):
    """One submitted questionnaire together with everything generated from it."""

    __tablename__ = "career_assessments"

    recommendation_id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String)
    age = Column(Integer)
    highschool_name = Column(String)
    highschool_stream = Column(String)
    college = Column(String)
    course_type = Column(String)
    course = Column(String)
    specialisation = Column(String)
    no_experience = Column(Boolean, nullable=False, default=False)
    job_title = Column(String)
    company_name = Column(String)
    duration = Column(String)
    skills = Column(Text)
    interests = Column(Text)
    preferred_work_env = Column(String)
    ai_questions = Column(JSON)
    ai_answers = Column(JSON)
    final_recommendations = Column(JSON)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    user = relationship("User", back_populates="assessments")


class CareerOptionRecord(Base):
    __tablename__ = "career_options"

    career_id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=False)
    salary_range_min = Column(Integer)
    salary_range_max = Column(Integer)
    currency = Column(String, nullable=False, default="INR")
    required_skills = Column(JSON, default=list)
    growth_rate = Column(Float)
    experience_level = Column(String)
    industry_sector = Column(String)
    work_environment = Column(String)
    key_responsibilities = Column(JSON)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    user = relationship("User", back_populates="career_options")

