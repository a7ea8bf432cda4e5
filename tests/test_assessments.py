from datetime import datetime

import pytest
from fastapi import HTTPException

from app.database import get_session
from app.models import CareerOptionRecord
from app.schemas.generation import GeneratedQuestion, OwnedCareerOption, UserProfile
from app.services.assessments import (
    assessment_ai_answers,
    assessment_profile,
    create_assessment,
    get_or_create_user,
    get_owned_assessment,
    list_career_options,
    replace_career_options,
    save_ai_answers,
    save_generated_questions,
)
from app.utils.security import Identity

NOW = datetime(2024, 5, 1)


def _option(name, user_id):
    return OwnedCareerOption(name=name, description=f"{name} work", user_id=user_id, created_at=NOW, updated_at=NOW)


def test_users_are_provisioned_once_per_identity():
    with get_session() as session:
        first = get_or_create_user(session, Identity("uid-1", "a@example.com"))
        again = get_or_create_user(session, Identity("uid-1", "new@example.com"))

        assert first.user_id == again.user_id
        assert again.email == "new@example.com"


def test_assessment_round_trips_profile_and_answers():
    profile = UserProfile(name="Asha", age=22, no_experience=True, skills="Python")
    with get_session() as session:
        user = get_or_create_user(session, Identity("uid-1"))
        assessment = create_assessment(session, user, profile)
        save_generated_questions(
            session, assessment, [GeneratedQuestion(id="ai_x_0", question_text="Why?", category="values")]
        )
        save_ai_answers(
            session,
            assessment,
            [{"question": "Why?", "answer": "Impact"}, {"question": "", "answer": "dropped"}],
        )
        recommendation_id = assessment.recommendation_id

    with get_session() as session:
        user = get_or_create_user(session, Identity("uid-1"))
        stored = get_owned_assessment(session, user, recommendation_id)

        assert assessment_profile(stored) == profile
        assert stored.ai_questions[0]["id"] == "ai_x_0"
        answers = assessment_ai_answers(stored)
        assert [(qa.question, qa.answer, qa.category) for qa in answers] == [("Why?", "Impact", "ai_generated")]


def test_owned_assessment_lookup_distinguishes_missing_and_foreign():
    with get_session() as session:
        owner = get_or_create_user(session, Identity("owner"))
        other = get_or_create_user(session, Identity("other"))
        assessment = create_assessment(session, owner, UserProfile(name="Owner"))

        with pytest.raises(HTTPException) as missing:
            get_owned_assessment(session, owner, assessment.recommendation_id + 100)
        with pytest.raises(HTTPException) as foreign:
            get_owned_assessment(session, other, assessment.recommendation_id)

    assert missing.value.status_code == 404
    assert foreign.value.status_code == 403


def test_replace_career_options_swaps_the_whole_batch():
    with get_session() as session:
        user = get_or_create_user(session, Identity("uid-1"))
        other = get_or_create_user(session, Identity("uid-2"))
        replace_career_options(session, user.user_id, [_option("Analyst", user.user_id), _option("Designer", user.user_id)])
        replace_career_options(session, other.user_id, [_option("Chef", other.user_id)])

    with get_session() as session:
        user = get_or_create_user(session, Identity("uid-1"))
        replace_career_options(session, user.user_id, [_option("Engineer", user.user_id)])

    with get_session() as session:
        user = get_or_create_user(session, Identity("uid-1"))
        other = get_or_create_user(session, Identity("uid-2"))
        assert [record.name for record in list_career_options(session, user)] == ["Engineer"]
        assert [record.name for record in list_career_options(session, other)] == ["Chef"]


def test_failed_replacement_rolls_back_to_the_previous_batch():
    with get_session() as session:
        user = get_or_create_user(session, Identity("uid-1"))
        user_id = user.user_id
        replace_career_options(session, user_id, [_option("Analyst", user_id)])

    with pytest.raises(RuntimeError):
        with get_session() as session:
            replace_career_options(session, user_id, [_option("Engineer", user_id)])
            raise RuntimeError("persisting recommendations failed")

    with get_session() as session:
        names = [record.name for record in session.query(CareerOptionRecord).filter_by(user_id=user_id)]
    assert names == ["Analyst"]
