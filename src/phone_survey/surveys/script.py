"""
The primary-care access survey as a static, ordered script.

Live calls read questions from the database; this script is the seed used
by ``PUT /api/questions`` when the questions table is empty.
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

FOLLOW_UP_ANY = "*"


class ScriptQuestionType(str, Enum):
    INTRO = "intro"
    CHOICE = "choice"
    OPEN = "open"
    OUTRO = "outro"


@dataclass(frozen=True)
class FollowUp:
    """Secondary question asked when the primary answer matches ``condition``."""

    condition: str
    question: str

    def applies_to(self, answer: str) -> bool:
        if self.condition == FOLLOW_UP_ANY:
            return True
        pattern = rf"\b{re.escape(self.condition)}\b"
        return re.search(pattern, answer or "", re.IGNORECASE) is not None


@dataclass(frozen=True)
class ScriptQuestion:
    id: str
    text: str
    type: ScriptQuestionType
    options: tuple[str, ...] = field(default_factory=tuple)
    follow_up: FollowUp | None = None


_YES_NO = ("Yes", "No")
_IMPACT = ("No impact", "Minor impact", "Moderate impact", "Severe impact")

SURVEY_SCRIPT: tuple[ScriptQuestion, ...] = (
    ScriptQuestion(
        id="intro",
        text=(
            "Hello, this is an automated research assistant calling to ask about your "
            "experiences with primary care. This survey will take about 5 minutes, and your "
            "responses will be anonymous. Your participation is voluntary, and you can stop at "
            'any time. To continue, please say "Yes" or press 1. To decline, say "No" or press 2.'
        ),
        type=ScriptQuestionType.INTRO,
        options=_YES_NO,
    ),
    ScriptQuestion(
        id="q1",
        text=(
            "Do you have a primary care doctor you see regularly? "
            'Please say "Yes," "No," or "I don\'t know."'
        ),
        type=ScriptQuestionType.CHOICE,
        options=("Yes", "No", "I don't know"),
        follow_up=FollowUp(
            condition="No",
            question=(
                "Can you tell me why not? For example, you don't need one, "
                "can't find one, or it's too expensive."
            ),
        ),
    ),
    ScriptQuestion(
        id="q2",
        text=(
            "How do you usually contact your primary care doctor? Please say one: "
            '"Phone," "Online," "In-person," "Email," or "Other."'
        ),
        type=ScriptQuestionType.CHOICE,
        options=("Phone", "Online", "In-person", "Email", "Other"),
        follow_up=FollowUp(condition="Other", question="What other way do you use?"),
    ),
    ScriptQuestion(
        id="q3",
        text=(
            "How do you schedule appointments with your doctor? Please say one: "
            '"Call the office," "Online," "Walk-in," or "Other."'
        ),
        type=ScriptQuestionType.CHOICE,
        options=("Call the office", "Online", "Walk-in", "Other"),
        follow_up=FollowUp(
            condition=FOLLOW_UP_ANY,
            question=(
                "On a scale of 1 to 5, where 1 is very easy and 5 is very difficult, how easy "
                "is it to schedule an appointment? Please say a number from 1 to 5."
            ),
        ),
    ),
    ScriptQuestion(
        id="q4",
        text=(
            "How long does it usually take to get an appointment? Please say one: "
            '"Same day," "1 to 3 days," "1 to 2 weeks," "1 month or more," or "I can\'t get one."'
        ),
        type=ScriptQuestionType.CHOICE,
        options=("Same day", "1 to 3 days", "1 to 2 weeks", "1 month or more", "I can't get one"),
    ),
    ScriptQuestion(
        id="q5",
        text=(
            "Have you used telehealth to connect with a doctor in the past year? "
            'Please say "Yes" or "No."'
        ),
        type=ScriptQuestionType.CHOICE,
        options=_YES_NO,
        follow_up=FollowUp(
            condition="Yes",
            question=(
                "On a scale of 1 to 5, where 1 is poor and 5 is excellent, how was your "
                "telehealth experience? Please say a number from 1 to 5."
            ),
        ),
    ),
    ScriptQuestion(
        id="q6",
        text=(
            "Have you ever had trouble contacting or seeing a primary care doctor? "
            'Please say "Yes" or "No."'
        ),
        type=ScriptQuestionType.CHOICE,
        options=_YES_NO,
        follow_up=FollowUp(
            condition="Yes",
            question=(
                'Which challenges have you faced? You can say multiple options: "Long wait '
                'times," "Hard to contact office," "No doctors available," "Cost," '
                '"Transportation," "Language barriers," "Technology issues," or "Other."'
            ),
        ),
    ),
    ScriptQuestion(
        id="q7",
        text=(
            "What is the biggest barrier to accessing primary care for you? "
            "Please describe in a few words."
        ),
        type=ScriptQuestionType.OPEN,
    ),
    ScriptQuestion(
        id="q8",
        text=(
            "Have you ever avoided seeking primary care because of these challenges? "
            'Please say "Yes" or "No."'
        ),
        type=ScriptQuestionType.CHOICE,
        options=_YES_NO,
        follow_up=FollowUp(
            condition="Yes",
            question=(
                "What did you do instead? For example, went to the emergency room, "
                "treated yourself, or ignored the issue."
            ),
        ),
    ),
    ScriptQuestion(
        id="q9",
        text=(
            "How have challenges accessing primary care affected your health? Please say one: "
            '"No impact," "Minor impact," "Moderate impact," or "Severe impact."'
        ),
        type=ScriptQuestionType.CHOICE,
        options=_IMPACT,
        follow_up=FollowUp(
            condition=FOLLOW_UP_ANY,
            question="Can you share an example, like an untreated condition getting worse?",
        ),
    ),
    ScriptQuestion(
        id="q10",
        text=(
            "Have access issues ever caused you to miss work or hurt your job performance? "
            'Please say "Yes" or "No."'
        ),
        type=ScriptQuestionType.CHOICE,
        options=_YES_NO,
        follow_up=FollowUp(
            condition="Yes",
            question=(
                "How did it affect your work? For example, took sick leave or lower productivity."
            ),
        ),
    ),
    ScriptQuestion(
        id="q11",
        text=(
            "How have these challenges impacted your quality of life? Please say one: "
            '"No impact," "Minor impact," "Moderate impact," or "Severe impact."'
        ),
        type=ScriptQuestionType.CHOICE,
        options=_IMPACT,
        follow_up=FollowUp(
            condition=FOLLOW_UP_ANY,
            question="Can you describe how, like stress or mental health effects?",
        ),
    ),
    ScriptQuestion(
        id="q12",
        text=(
            "Have you or a family member had a serious health issue due to delayed or no "
            'primary care? Please say "Yes" or "No."'
        ),
        type=ScriptQuestionType.CHOICE,
        options=_YES_NO,
        follow_up=FollowUp(
            condition="Yes",
            question="If you're comfortable, please share what happened.",
        ),
    ),
    ScriptQuestion(
        id="q13",
        text=(
            'What is your age group? Please say one: "18 to 24," "25 to 34," "35 to 44," '
            '"45 to 54," "55 to 64," or "65 and older."'
        ),
        type=ScriptQuestionType.CHOICE,
        options=("18 to 24", "25 to 34", "35 to 44", "45 to 54", "55 to 64", "65 and older"),
    ),
    ScriptQuestion(
        id="q14",
        text=(
            'What is your insurance status? Please say one: "Private insurance," "Medicare," '
            '"Medicaid," "Uninsured," or "Other."'
        ),
        type=ScriptQuestionType.CHOICE,
        options=("Private insurance", "Medicare", "Medicaid", "Uninsured", "Other"),
    ),
    ScriptQuestion(
        id="q15",
        text='Where do you live? Please say one: "Urban," "Suburban," or "Rural."',
        type=ScriptQuestionType.CHOICE,
        options=("Urban", "Suburban", "Rural"),
    ),
    ScriptQuestion(
        id="q16",
        text=(
            'What is your household income? Please say one: "Under 25,000," "25,000 to '
            '50,000," "50,000 to 100,000," "Over 100,000," or "Prefer not to say."'
        ),
        type=ScriptQuestionType.CHOICE,
        options=(
            "Under 25,000",
            "25,000 to 50,000",
            "50,000 to 100,000",
            "Over 100,000",
            "Prefer not to say",
        ),
    ),
    ScriptQuestion(
        id="outro",
        text=(
            "Thank you for participating in this survey. Your responses will help improve "
            "primary care access. Have a great day!"
        ),
        type=ScriptQuestionType.OUTRO,
    ),
)

_BY_ID = {q.id: q for q in SURVEY_SCRIPT}


def get_script_question(question_id: str) -> ScriptQuestion | None:
    return _BY_ID.get(question_id)


def follow_up_for(question: ScriptQuestion, answer: str) -> str | None:
    """Return the follow-up text triggered by ``answer``, if any."""
    if question.follow_up is None:
        return None
    if question.follow_up.applies_to(answer):
        return question.follow_up.question
    return None


def primary_questions() -> list[ScriptQuestion]:
    """Questions that are actually asked, without intro and outro."""
    return [
        q
        for q in SURVEY_SCRIPT
        if q.type in (ScriptQuestionType.CHOICE, ScriptQuestionType.OPEN)
    ]


def _metadata_for(question: ScriptQuestion) -> dict[str, Any]:
    metadata: dict[str, Any] = {}
    if question.type == ScriptQuestionType.CHOICE:
        metadata["response_type"] = "Multiple-Choice"
        metadata["options"] = list(question.options)
    else:
        metadata["response_type"] = "Open-Ended"
    if question.follow_up is not None:
        metadata["follow_up_trigger"] = question.follow_up.condition
        metadata["follow_up_text"] = question.follow_up.question
    return metadata


def seed_question_rows() -> list[dict[str, Any]]:
    """Column values for inserting the script into the questions table."""
    return [
        {
            "question_text": q.text,
            "is_follow_up": False,
            "question_metadata": _metadata_for(q),
        }
        for q in primary_questions()
    ]
