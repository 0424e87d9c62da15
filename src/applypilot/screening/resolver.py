"""Turn a screening question plus the candidate profile into a form answer."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any

from applypilot.llm.client import LLMClient, first_choice_content
from applypilot.models import JobListing, QuestionType, ScreeningQuestion
from applypilot.profile import CandidateProfile
from applypilot.screening.prompts import build_profile_system_prompt, build_question_prompt

logger = logging.getLogger(__name__)

SCREENING_TEMPERATURE = 0.3
SCREENING_MAX_TOKENS = 150

RAW_TEXT_CONFIDENCE = 0.5
DEFAULT_JSON_CONFIDENCE = 0.8

_NUMBER_RE = re.compile(r"-?\d+(?:\.\d+)?")
_JSON_OBJECT_RE = re.compile(r"\{.*\}", re.DOTALL)
_QUOTES = "\"'`"
_WORD_SPLIT_RE = re.compile(r"[\s,;/()]+")
_TRAILING_PUNCT = ".!?:"


@dataclass(frozen=True)
class ScreeningAnswer:
    answer: str
    confidence: float
    reasoning: str | None = None


class ScreeningAnswerResolver:
    """Stateless apart from the system prompt rendered once from the profile.

    Transport errors propagate; the caller decides what a failed answer means.
    """

    def __init__(self, llm: LLMClient, profile: CandidateProfile) -> None:
        self._llm = llm
        self._profile = profile
        self._system_prompt = build_profile_system_prompt(profile)

    @property
    def system_prompt(self) -> str:
        return self._system_prompt

    async def answer_question(
        self, question: ScreeningQuestion, job: JobListing
    ) -> ScreeningAnswer:
        user_prompt = build_question_prompt(
            question.question,
            question.type,
            question.options,
            job.title,
            job.company,
            job.description,
        )
        response = await self._llm.chat_completion(
            [
                {"role": "system", "content": self._system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            temperature=SCREENING_TEMPERATURE,
            max_tokens=SCREENING_MAX_TOKENS,
        )
        content = first_choice_content(response)
        answer = parse_answer(content, question.type, question.options)
        logger.debug("Answered %s (%s) -> %r", question.id, question.type.value, answer.answer)
        return answer


def _clean(text: str) -> str:
    return text.strip().strip(_QUOTES).strip()


def _extract_json(content: str) -> dict[str, Any] | None:
    match = _JSON_OBJECT_RE.search(content)
    if not match:
        return None
    try:
        data = json.loads(match.group(0))
    except ValueError:
        return None
    if not isinstance(data, dict) or "answer" not in data:
        return None
    return data


def _tokens(text: str) -> set[str]:
    parts = {p.strip() for p in text.split(",")}
    parts.update(w.strip(_TRAILING_PUNCT) for w in _WORD_SPLIT_RE.split(text))
    return {p for p in parts if p}


def _starts_with_option(wanted: str, option: str) -> bool:
    if not wanted.startswith(option):
        return False
    rest = wanted[len(option):]
    return not rest or not rest[0].isalnum()


def _match_option(answer: str, options: tuple[str, ...]) -> str | None:
    """Return the single option *answer* names, or ``None`` when unsure.

    An option matches on a case-insensitive exact match, as a whole
    comma- or word-delimited token of the answer, or as a word-bounded
    prefix of it. Of overlapping matches the longest wins; two unrelated
    matches are ambiguous.
    """
    wanted = answer.strip().lower()
    if not wanted:
        return None
    for option in options:
        if option.strip().lower() == wanted:
            return option

    tokens = _tokens(wanted)
    matches = []
    for option in options:
        low = option.strip().lower()
        if low and (low in tokens or _starts_with_option(wanted, low)):
            matches.append(option)
    longest = [
        m for m in matches
        if not any(m.lower() != o.lower() and m.lower() in o.lower() for o in matches)
    ]
    if len(longest) == 1:
        return longest[0]
    return None


def normalize_answer(answer: str, qtype: QuestionType, options: tuple[str, ...]) -> str:
    """Coerce *answer* into what the form control expects."""
    answer = _clean(answer)
    if qtype is QuestionType.NUMBER:
        match = _NUMBER_RE.search(answer.replace(",", ""))
        return match.group(0) if match else answer
    if qtype in (QuestionType.SELECT, QuestionType.RADIO) and options:
        return _match_option(answer, options) or answer
    if qtype is QuestionType.MULTISELECT and options:
        picked = [_match_option(_clean(p), options) or _clean(p) for p in answer.split(",") if p.strip()]
        return ", ".join(picked)
    return answer


def parse_answer(content: str, qtype: QuestionType, options: tuple[str, ...] = ()) -> ScreeningAnswer:
    """Read the model's reply; fall back to the raw text when it is not the requested JSON."""
    data = _extract_json(content)
    if data is None:
        return ScreeningAnswer(
            answer=normalize_answer(content, qtype, options),
            confidence=RAW_TEXT_CONFIDENCE,
        )

    try:
        confidence = float(data.get("confidence", DEFAULT_JSON_CONFIDENCE))
    except (TypeError, ValueError):
        confidence = DEFAULT_JSON_CONFIDENCE
    answer = data["answer"]
    if isinstance(answer, list):
        answer = ", ".join(str(a) for a in answer)
    reasoning = data.get("reasoning")
    return ScreeningAnswer(
        answer=normalize_answer(str(answer), qtype, options),
        confidence=min(max(confidence, 0.0), 1.0),
        reasoning=str(reasoning) if reasoning else None,
    )
