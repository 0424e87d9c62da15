"""Prompt builders for screening-question answers."""

from __future__ import annotations

from applypilot.models import QuestionType
from applypilot.profile import CandidateProfile

_DESCRIPTION_LIMIT = 1_500

_TYPE_INSTRUCTIONS: dict[QuestionType, str] = {
    QuestionType.SELECT: "Choose exactly one of the available options and repeat it verbatim.",
    QuestionType.RADIO: "Choose exactly one of the available options and repeat it verbatim.",
    QuestionType.NUMBER: "Provide only a number, without units.",
    QuestionType.MULTISELECT: "List the applicable options separated by commas.",
    QuestionType.CHECKBOX: "List the applicable options separated by commas, or answer Yes or No.",
}


def _or(value: object, fallback: str) -> str:
    return str(value) if value not in (None, "") else fallback


def _lpa(value: float | None, fallback: str) -> str:
    return f"{value:g} LPA" if value is not None else fallback


def _yes_no(flag: bool) -> str:
    return "Yes" if flag else "No"


def build_profile_system_prompt(profile: CandidateProfile) -> str:
    skills = ", ".join(
        f"{s.name} ({s.years_of_experience:g} years, {s.proficiency.value})" for s in profile.skills
    )
    education = "; ".join(
        f"{e.degree} from {e.institution} ({e.year})" for e in profile.education
    )
    return f"""You are an AI assistant helping to fill out job application forms. You have access to the following candidate profile:

**Personal Information:**
- Name: {profile.name}
- Email: {profile.email}
- Phone: {_or(profile.phone, "Not specified")}
- Current Title: {_or(profile.current_title, "Not specified")}
- Current Company: {_or(profile.current_company, "Not specified")}
- Total Experience: {profile.total_experience:g} years

**Skills & Technologies:**
{skills or "Not specified"}

**Education:**
{education or "Not specified"}

**Job Preferences:**
- Preferred Titles: {", ".join(profile.preferred_titles) or "Any"}
- Preferred Locations: {", ".join(profile.preferred_locations) or "Any"}
- Keywords: {", ".join(profile.keywords) or "None"}

**Compensation & Availability:**
- Current CTC: {_lpa(profile.current_ctc, "Not specified")}
- Expected CTC: {_lpa(profile.expected_ctc, "Negotiable")}
- Notice Period: {profile.notice_period.label}
- Immediate Joiner: {_yes_no(profile.immediate_joiner)}
- Willing to Relocate: {_yes_no(profile.willing_to_relocate)}
- Preferred Work Mode: {profile.preferred_work_mode.value}

When answering questions:
1. Always use the profile information to provide accurate, consistent answers
2. Be concise and direct - form fields often have character limits
3. For experience questions, calculate based on the skills listed
4. For salary questions, use the expected CTC unless asked about current
5. Match the format expected by the question (numbers, dates, etc.)
6. If a question asks for a number, provide ONLY the number without units
7. Be professional and positive in tone"""


def build_question_prompt(
    question: str,
    question_type: QuestionType,
    options: tuple[str, ...] | list[str],
    job_title: str,
    job_company: str,
    job_description: str = "",
) -> str:
    lines = [
        f'I am applying for the position of "{job_title}" at "{job_company}".',
        "",
    ]
    if job_description:
        lines += ["Job Description:", job_description.strip()[:_DESCRIPTION_LIMIT], ""]
    lines += [
        "The application form has the following question:",
        f'Question: "{question}"',
        f"Question Type: {question_type.value}",
    ]
    if options and question_type in (QuestionType.SELECT, QuestionType.RADIO, QuestionType.MULTISELECT):
        lines.append(f"Available Options: {', '.join(options)}")

    lines += ["", "Please provide the best answer based on my profile."]
    instruction = _TYPE_INSTRUCTIONS.get(question_type)
    if instruction:
        lines.append(instruction)
    lines += [
        "",
        'Reply with a JSON object: {"answer": "<answer>", "confidence": <0 to 1>}.',
        "Provide ONLY the JSON object, no explanations.",
    ]
    return "\n".join(lines)
