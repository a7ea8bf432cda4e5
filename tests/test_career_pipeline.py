import json
import re
from datetime import datetime

import httpx
import pytest
from tenacity import wait_none

from app.schemas.generation import QuestionAnswer, UserProfile
from app.services.career_ai import CareerAIPipeline
from app.services.errors import GenerationFailure, ModelOutputNotJSON, ValidationRejected
from app.services.gemini import GeminiClient

FIXED_NOW = datetime(2024, 5, 1, 12, 0, 0)

PREVIOUS_QA = [
    QuestionAnswer(question="What are your key skills?", answer="Python", category="skills"),
    QuestionAnswer(question="What are your interests?", answer="Data", category="interests"),
]

PROFILE = UserProfile(name="Asha", skills="Python", interests="Data")


def _pipeline(client, **kwargs):
    kwargs.setdefault("clock", lambda: FIXED_NOW)
    return CareerAIPipeline(client, **kwargs)


def test_follow_up_questions_are_validated_and_stamped(scripted_client):
    reply = (
        "```json\n"
        + json.dumps(
            [
                {"question_text": "Team or solo?", "question_type": "multiple_choice", "category": "work_style"},
                {"question_text": "Dream company?", "question_type": "text", "category": "career_goals"},
                {"question_text": "", "question_type": "text", "category": "values"},
            ]
        )
        + "\n```"
    )
    client = scripted_client(reply)

    questions = _pipeline(client).generate_follow_up_questions(PREVIOUS_QA, count=3)

    assert [question.question_text for question in questions] == ["Team or solo?", "Dream company?"]
    assert questions[0].options == ["Yes", "No"]
    assert all(re.fullmatch(r"ai_[0-9a-f]{12}_\d", question.id) for question in questions)
    assert questions[0].id.endswith("_0") and questions[1].id.endswith("_1")
    assert client.calls[0]["task"] == "follow_up_questions"
    assert client.calls[0]["expected_items"] == 3
    assert "exactly 3 follow-up questions" in client.calls[0]["prompt"]


def test_recommendations_are_returned_verbatim(scripted_client):
    payload = {"user_profile_summary": {"key_strengths": ["Curiosity"]}, "recommendations": []}
    client = scripted_client(json.dumps(payload))

    assert _pipeline(client).generate_career_recommendations(PREVIOUS_QA) == payload


def test_recommendations_with_wrong_shape_are_rejected(scripted_client):
    client = scripted_client("[1, 2, 3]")

    with pytest.raises(ValidationRejected):
        _pipeline(client).generate_career_recommendations(PREVIOUS_QA)


def test_career_options_are_owned_and_timestamped(scripted_client):
    reply = json.dumps(
        [
            {"name": "Data Analyst", "description": "Insights", "salary_range_min": 500000, "growth_rate": 12},
            {"name": "ML Engineer", "description": "Models", "required_skills": ["Python", "Math"]},
        ]
    )
    client = scripted_client(reply)

    options = _pipeline(client, option_count=2).generate_career_options(PREVIOUS_QA, "user-1")

    assert [option.name for option in options] == ["Data Analyst", "ML Engineer"]
    assert {option.user_id for option in options} == {"user-1"}
    assert all(option.created_at == FIXED_NOW and option.updated_at == FIXED_NOW for option in options)
    assert options[0].currency == "INR"
    assert client.calls[0]["expected_items"] == 2


def test_non_json_output_propagates_for_career_options(scripted_client):
    client = scripted_client("I cannot answer that.")

    with pytest.raises(ModelOutputNotJSON):
        _pipeline(client).generate_career_options(PREVIOUS_QA, "user-1")


def test_generation_failure_propagates_for_follow_up_questions(scripted_client):
    client = scripted_client(GenerationFailure("follow_up_questions", "quota exceeded"))

    with pytest.raises(GenerationFailure):
        _pipeline(client).generate_follow_up_questions(PREVIOUS_QA)


def test_roadmap_uses_model_output_when_usable(scripted_client):
    reply = json.dumps(
        {
            "career": "Data Scientist",
            "difficulty_level": "Advanced",
            "roadmap": [{"step": "Learn statistics", "description": "Foundations", "duration": "2 months"}],
        }
    )
    client = scripted_client(reply)

    roadmap = _pipeline(client).generate_career_roadmap("Data Scientist", PROFILE, PREVIOUS_QA)

    assert roadmap.roadmap[0].step == "Learn statistics"
    assert roadmap.difficulty_level == "Advanced"
    assert "Additional Assessment Insights" in client.calls[0]["prompt"]


@pytest.mark.parametrize(
    "reply",
    [GenerationFailure("career_roadmap", "timed out"), "not json at all", '{"roadmap": []}', "[" * 2000],
    ids=["provider-failure", "not-json", "no-steps", "runaway-nesting"],
)
def test_roadmap_falls_back_instead_of_failing(scripted_client, reply):
    client = scripted_client(reply)

    roadmap = _pipeline(client).generate_career_roadmap("Product Manager", PROFILE)

    assert roadmap.career == "Product Manager"
    assert len(roadmap.roadmap) == 6
    assert "Product Manager" in roadmap.roadmap[0].description


def test_retries_are_opt_in(scripted_client):
    payload = {"recommendations": []}
    client = scripted_client(GenerationFailure("career_recommendations", "503"), json.dumps(payload))

    pipeline = _pipeline(client, max_attempts=2, retry_wait=wait_none())

    assert pipeline.generate_career_recommendations(PREVIOUS_QA) == payload
    assert len(client.calls) == 2


def test_default_policy_makes_a_single_attempt(scripted_client):
    client = scripted_client(GenerationFailure("career_recommendations", "503"), "{}")

    with pytest.raises(GenerationFailure):
        _pipeline(client).generate_career_recommendations(PREVIOUS_QA)

    assert len(client.calls) == 1


def test_extraction_failures_are_not_retried(scripted_client):
    client = scripted_client("nope", "{}")

    with pytest.raises(ModelOutputNotJSON):
        _pipeline(client, max_attempts=3, retry_wait=wait_none()).generate_career_recommendations(PREVIOUS_QA)

    assert len(client.calls) == 1


def test_malformed_gemini_reply_still_yields_the_fallback_roadmap():
    def handler(request):
        return httpx.Response(200, json={"candidates": [{"content": {"parts": [{"text": None}]}}]})

    client = GeminiClient("test-key", transport=httpx.MockTransport(handler))

    roadmap = _pipeline(client).generate_career_roadmap("Data Scientist", UserProfile())

    assert roadmap.career == "Data Scientist"
    assert len(roadmap.roadmap) == 6


def test_fenced_questions_after_prose_pass_through_unchanged(scripted_client):
    client = scripted_client(
        "Here is your answer:\n```json\n"
        '[{"question_text":"Q1","question_type":"text","category":"skills","is_required":true}]\n```'
    )

    questions = _pipeline(client).generate_follow_up_questions(PREVIOUS_QA, count=1)

    assert len(questions) == 1
    assert questions[0].model_dump(exclude={"id"}) == {
        "question_text": "Q1",
        "question_type": "text",
        "category": "skills",
        "options": None,
        "is_required": True,
    }


def test_trailing_comma_is_repaired_and_choice_defaults_injected(scripted_client):
    client = scripted_client('[{"question_text":"Q1","question_type":"multiple_choice","category":"values"},]')

    (question,) = _pipeline(client).generate_follow_up_questions(PREVIOUS_QA, count=1)

    assert question.question_text == "Q1"
    assert question.options == ["Yes", "No"]
    assert question.is_required is True


def test_missing_currency_defaults_without_touching_the_rest_of_the_batch(scripted_client):
    entries = [
        {"name": f"Career {index}", "description": f"Role {index}", "currency": "USD", "salary_range_min": 1000 * index}
        for index in range(1, 5)
    ]
    entries.insert(2, {"name": "Career X", "description": "No currency given"})
    client = scripted_client(json.dumps(entries))

    options = _pipeline(client).generate_career_options(PREVIOUS_QA, "user-1")

    assert len(options) == 5
    assert options[2].name == "Career X"
    assert options[2].currency == "INR"
    others = [option for index, option in enumerate(options) if index != 2]
    assert [(option.name, option.currency, option.salary_range_min) for option in others] == [
        (f"Career {index}", "USD", 1000 * index) for index in range(1, 5)
    ]
