"""Prompt builders for the career generation tasks.

Every builder is a pure function of its inputs so identical context always
renders the identical prompt.  The schema examples mirror what the
validators in :mod:`app.services.validators` accept.
"""

from __future__ import annotations

from typing import Iterable, List, Optional

from ..schemas.generation import QUESTION_TYPES, QuestionAnswer, UserProfile, drop_blank_answers

QUESTION_CATEGORIES = (
    "career_goals",
    "work_style",
    "values",
    "interests",
    "skills",
    "personality",
    "growth",
)

JSON_ONLY_RULES = """**Output Rules:**
- Respond with a single JSON value and nothing else
- Do not wrap the JSON in Markdown code fences
- Do not add explanations before or after the JSON
- Use double quotes for every key and string value
- No trailing commas after the last element of an array or object"""


def format_qa_context(pairs: Iterable[QuestionAnswer], *, include_category: bool = False) -> str:
    """Render question/answer pairs as a numbered list, skipping blank answers."""

    entries: List[str] = []
    for index, qa in enumerate(drop_blank_answers(list(pairs)), start=1):
        entry = f"{index}. Q: {qa.question}\n   A: {qa.answer}"
        if include_category:
            entry += f"\n   Category: {qa.category or 'general'}"
        entries.append(entry)
    return "\n\n".join(entries)


def format_profile(profile: UserProfile) -> str:
    if profile.highschool_name:
        stream = f" ({profile.highschool_stream})" if profile.highschool_stream else ""
        education = f"{profile.highschool_name}{stream}"
    else:
        education = "Not specified"
    course = profile.course or "Not specified"
    if profile.specialisation:
        course = f"{course} ({profile.specialisation})"
    if profile.no_experience:
        experience = "No experience"
    elif profile.job_title or profile.company_name:
        experience = f"{profile.job_title or 'Role not specified'} at {profile.company_name or 'company not specified'}"
        if profile.duration:
            experience += f" ({profile.duration})"
    else:
        experience = "Not specified"

    lines = [
        "**User Profile:**",
        f"- Name: {profile.name or 'Not specified'}",
        f"- Age: {profile.age if profile.age is not None else 'Not specified'}",
        f"- Education: {education}",
        f"- College: {profile.college or 'Not specified'}",
        f"- Course: {course}",
        f"- Current Experience: {experience}",
        f"- Skills: {profile.skills or 'Not specified'}",
        f"- Interests: {profile.interests or 'Not specified'}",
        f"- Work Environment: {profile.preferred_work_env or 'Not specified'}",
    ]
    return "\n".join(lines)


def build_follow_up_questions_prompt(previous_qa: Iterable[QuestionAnswer], count: int = 5) -> str:
    context = format_qa_context(previous_qa, include_category=True)
    question_types = "|".join(QUESTION_TYPES)
    categories = "|".join(QUESTION_CATEGORIES)
    return f"""You are an expert career counseling assistant. Based on the user's previous answers to a career assessment, generate exactly {count} follow-up questions that reveal deeper insight into their career potential and preferences.

**Current Assessment Data:**
{context}

**Goals:**
Uncover natural aptitudes, core values and motivations, work environment preferences, collaboration and leadership style, growth aspirations, risk tolerance, and industry interests.

**Quality Standards:**
1. Every question must ask for NEW information not already covered above
2. Prefer specific, situational questions over generic ones
3. Keep each question short enough to answer in a form field

**Question Types:**
- text: short, specific answers
- textarea: detailed explanations or stories
- multiple_choice: one selection from 2-4 options listed in "options"
- checkbox: yes/no or binary choices
- number: ratings, years of experience and other numeric input

**Categories:** {", ".join(QUESTION_CATEGORIES)}

**Response Format:**
A JSON array of exactly {count} objects:
[
  {{
    "question_text": "Your question here",
    "question_type": "{question_types}",
    "category": "{categories}",
    "options": ["Option 1", "Option 2", "Option 3"],
    "is_required": true
  }}
]
"options" is required for multiple_choice questions and must be omitted for every other type.

{JSON_ONLY_RULES}
"""


def build_recommendations_prompt(all_qa: Iterable[QuestionAnswer]) -> str:
    context = format_qa_context(all_qa)
    return f"""You are an expert career counselor with deep knowledge of the Indian job market. Analyze the assessment below and provide personalized career recommendations.

**Complete User Assessment:**
{context}

**Analysis Framework:**
1. Identify patterns in interests, skills and values
2. Match personality traits with suitable work environments
3. Consider education background and experience level
4. Factor in growth potential and market demand
5. Account for salary expectations and lifestyle preferences

**Response Format:**
A single JSON object:
{{
  "user_profile_summary": {{
    "key_strengths": ["strength1", "strength2", "strength3"],
    "core_interests": ["interest1", "interest2", "interest3"],
    "work_style": "Brief description of their ideal work style",
    "career_readiness": "Assessment of their preparation level"
  }},
  "recommendations": [
    {{
      "title": "Specific Career Title",
      "description": "Why this career matches their specific responses",
      "match_percentage": 85,
      "salary_range_inr": "4-12 LPA",
      "growth_potential": "High|Medium|Stable",
      "required_skills": ["skill1", "skill2", "skill3"],
      "next_steps": ["Immediate action", "Medium-term goal", "Long-term objective"],
      "potential_challenges": ["Challenge they might face"],
      "success_indicators": ["Milestone to aim for"]
    }}
  ],
  "development_priorities": [
    {{
      "area": "Skill or knowledge area to focus on",
      "importance": "High|Medium|Low",
      "timeline": "3 months|6 months|1 year",
      "resources": ["Specific learning resource"]
    }}
  ],
  "market_insights": {{
    "trending_sectors": ["sector1", "sector2"],
    "emerging_opportunities": "Brief note on new opportunities",
    "location_advantage": "How their location affects opportunities"
  }}
}}

**Constraints:**
- Provide exactly 5 diverse recommendations, ranked by match_percentage (0-100, highest first)
- Base every recommendation on specific assessment responses
- Salary ranges are annual, in Indian Rupees, written in LPA (lakhs per annum)

{JSON_ONLY_RULES}
"""


def build_career_options_prompt(all_qa: Iterable[QuestionAnswer], count: int = 5) -> str:
    context = format_qa_context(all_qa)
    return f"""Based on the career assessment responses below, generate exactly {count} personalized career options for the Indian job market. They will be stored for the user to explore in detail.

**Complete User Assessment:**
{context}

**Generation Criteria:**
1. Match the user's education, skills and interests
2. Consider their experience level and career stage
3. Include diverse options across different sectors, traditional and emerging
4. Focus on careers with good growth potential

**Response Format:**
A JSON array of exactly {count} objects:
[
  {{
    "name": "Career title as used in the industry",
    "description": "Why this career suits this specific user, referencing their answers",
    "salary_range_min": 500000,
    "salary_range_max": 1500000,
    "currency": "INR",
    "experience_level": "Entry|Mid|Senior",
    "required_skills": ["Core technical skill", "Soft skill", "Industry-specific skill"],
    "growth_rate": 18.5,
    "industry_sector": "Technology|Healthcare|Finance|Education|Marketing|Consulting|Manufacturing|Other",
    "work_environment": "Office|Remote|Hybrid|Field|Creative Studio",
    "key_responsibilities": ["Primary responsibility", "Secondary responsibility"]
  }}
]

**Field Rules:**
- "name" and "description" are required strings
- "salary_range_min" and "salary_range_max" are whole numbers of Indian Rupees per year, min <= max
- "currency" is always "INR"
- "growth_rate" is the expected annual job-market growth as a percentage number (for example 12.5), not a string
- "required_skills" lists 3-6 skills as strings

**Indian Market Salary Guidelines (annual, INR):**
- Fresh graduate: 300000 - 800000
- 1-3 years experience: 600000 - 1500000
- 3-5 years experience: 1200000 - 2500000
- 5+ years experience: 2000000 - 5000000

{JSON_ONLY_RULES}
"""


def build_roadmap_prompt(
    career: str,
    profile: UserProfile,
    supplemental_qa: Optional[Iterable[QuestionAnswer]] = None,
) -> str:
    additional = ""
    if supplemental_qa:
        context = format_qa_context(supplemental_qa)
        if context:
            additional = f"\n**Additional Assessment Insights:**\n{context}\n"
    return f"""You are a senior career strategist creating a personalized roadmap for "{career}".

{format_profile(profile)}
{additional}
**Roadmap Requirements:**
1. Create 6-8 progressive steps spanning 2-3 years, each building on the previous one
2. Give each step 2-3 concrete key outcomes
3. Start from the user's current level and background
4. Cover skill development, practical projects, networking and experience building
5. Keep it realistic for the Indian job market

**Response Format:**
A single JSON object:
{{
  "career": "{career}",
  "estimated_timeline": "18-24 months",
  "difficulty_level": "Beginner|Intermediate|Advanced",
  "roadmap": [
    {{
      "step": "Clear, actionable step title",
      "description": "What to do and why it matters for this user",
      "duration": "2-4 weeks|1-2 months|3-6 months",
      "key_outcomes": ["What they will have achieved after this step"]
    }}
  ]
}}
Every roadmap entry must have a non-empty "step" and "description".

{JSON_ONLY_RULES}
"""
