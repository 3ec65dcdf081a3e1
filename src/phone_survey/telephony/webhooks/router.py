"""
Twilio webhook endpoints driving the survey call.

Each endpoint is one state of the call flow (see ``flow``). Twilio must
always receive parseable TwiML: every handler converts internal errors
into a polite goodbye instead of an HTTP error.
"""

from typing import Annotated, Any
from uuid import UUID

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from phone_survey.analytics.capabilities import detect_capabilities
from phone_survey.calls.models import CallQueueEntry, CallQueueStatus
from phone_survey.calls.repository import CallQueueRepository
from phone_survey.config import get_settings
from phone_survey.contacts.repository import PhoneContactRepository
from phone_survey.dialogue.analysis import AnswerAnalysis, ResponseAnalyzer
from phone_survey.dialogue.llm.factory import get_optional_llm_gateway
from phone_survey.responses.repository import ResponseRepository
from phone_survey.shared.database import get_db_session
from phone_survey.shared.logging import get_logger
from phone_survey.surveys.repository import QuestionRepository, SurveyRepository
from phone_survey.telephony.factory import get_telephony_provider
from phone_survey.telephony.interface import (
    CallStatus,
    TelephonyProvider,
    WebhookParseError,
)
from phone_survey.telephony.twiml import (
    gather,
    hangup,
    make_url,
    pause,
    redirect,
    say,
    twiml_response,
)
from phone_survey.telephony.webhooks.flow import (
    FlowState,
    next_after_response,
    record_transition,
)
from phone_survey.telephony.webhooks.names import (
    DEFAULT_NAME,
    GENERIC_NAMES,
    detect_greeting_name,
    extract_stated_name,
)

logger = get_logger(__name__)

router = APIRouter(prefix="/api/twilio", tags=["twilio"])

GREETING_PATH = "/api/twilio/greeting"
CONTINUE_PATH = "/api/twilio/continue-survey"
RESPONSE_PATH = "/api/twilio/response"

DEFAULT_QUESTIONS = (
    "How satisfied are you with your healthcare provider? Please rate on a scale from 1 to 5, "
    "where 1 is very dissatisfied and 5 is very satisfied.",
    "How easy was it to schedule your last appointment? Please rate on a scale from 1 to 5, "
    "where 1 is very difficult and 5 is very easy.",
    "Would you recommend your healthcare provider to friends or family? "
    "Please respond with yes or no.",
)

SURVEY_INTRO = (
    "About this survey: This is a healthcare research survey. Your feedback will help improve "
    "healthcare services in your area. Your responses will be kept confidential. Each question "
    "will be followed by a beep. After the beep, please speak your answer clearly. Let's begin."
)

GREETING_TEXT = "Hello {name}. This is an automated healthcare research survey."
ANSWER_PROMPT = "Please respond after the beep."
NO_INPUT_TEXT = "I didn't hear your response. Let me repeat the question."
NO_MORE_QUESTIONS_TEXT = (
    "Thank you for participating in our survey. Your responses have been recorded. Goodbye."
)
ANSWER_ACK_TEXT = "Thank you for your answer."
SURVEY_COMPLETE_TEXT = (
    "Thank you for completing our survey. Your feedback is valuable to us. Have a great day!"
)
NO_RESPONSE_ANSWER = "No response detected"
MOCK_TRANSCRIPTION = "This is a mock transcription for development"

SURVEY_ERROR_TEXT = "There was an error with the survey. Thank you for your time. Goodbye."
RESPONSE_GOODBYE_TEXT = "Thank you for your response. Goodbye."
TRANSCRIPTION_ERROR_TEXT = "We encountered an error processing your response. Goodbye."

INTERRUPT_INTRO = "Hello. This is a test of the interruption feature with standard TTS."
INTERRUPT_PROMPTS = (
    "Try speaking or pressing a key while this message is playing to test interrupting me.",
    "You should be able to interrupt this long message by speaking at any point during "
    "playback. This makes the experience more natural and conversational for users who want "
    "to respond quickly without waiting for the entire message to finish.",
)


def get_response_analyzer() -> ResponseAnalyzer:
    return ResponseAnalyzer(get_optional_llm_gateway())


async def _read_form(request: Request) -> dict[str, str]:
    """Twilio posts application/x-www-form-urlencoded; GETs carry no body."""
    if request.method != "POST":
        return {}
    form = await request.form()
    return {k: v for k, v in form.items() if isinstance(v, str)}


def _int_param(value: str | None, default: int) -> int:
    try:
        return int(value) if value not in (None, "") else default
    except ValueError:
        return default


def _uuid_param(value: str | None) -> UUID | None:
    try:
        return UUID(value) if value else None
    except ValueError:
        return None


def _voice_options(entry: CallQueueEntry | None) -> tuple[str, str]:
    settings = get_settings()
    voice, language = settings.twilio_voice, settings.twilio_language
    if entry is not None:
        voice = entry.voice_option or voice
        language = entry.language_option or language
    return voice, language


async def _survey_questions(session: AsyncSession, entry: CallQueueEntry | None) -> list[str]:
    """Question texts for the call's survey, or the built-in sample survey."""
    if entry is not None:
        questions = await SurveyRepository(session).get_ordered_questions(entry.survey_id)
        if questions:
            return [q.question_text for q in questions]
    return list(DEFAULT_QUESTIONS)


@router.post("/greeting")
async def greeting(
    request: Request,
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> Response:
    """Greet the callee, using a name heard in their answer when possible."""
    qs = request.query_params
    default_name = qs.get("name") or DEFAULT_NAME

    try:
        form = await _read_form(request)
        speech = (form.get("SpeechResult") or "").strip()
        call_sid = (form.get("CallSid") or qs.get("callSid") or "").strip()
        name = detect_greeting_name(speech, default_name)

        logger.info(
            "Greeting webhook",
            extra={"call_sid": call_sid, "speech": speech[:80], "greeting_name": name},
        )

        if call_sid:
            await _note_greeting(session, call_sid, speech, name)

        return twiml_response(
            say(GREETING_TEXT.format(name=name)),
            redirect(make_url(request, CONTINUE_PATH, {"callSid": call_sid})),
        )
    except Exception:
        logger.exception("Greeting failed (returning safe TwiML)")
        return twiml_response(
            say(GREETING_TEXT.format(name=DEFAULT_NAME)),
            redirect(make_url(request, CONTINUE_PATH)),
        )


async def _note_greeting(session: AsyncSession, call_sid: str, speech: str, name: str) -> None:
    """Best effort: a failure here must not change the greeting."""
    try:
        entry = await CallQueueRepository(session).get_by_call_sid(call_sid)
        if entry is None:
            return
        if speech:
            entry.notes = f'Greeting detected: "{speech}", Using name: {name}'
        record_transition(entry, FlowState.GREETING)
        await session.commit()
    except Exception:
        logger.exception("Could not record greeting on call queue", extra={"call_sid": call_sid})
        await session.rollback()


@router.post("/continue-survey")
async def continue_survey(
    request: Request,
    session: Annotated[AsyncSession, Depends(get_db_session)],
) -> Response:
    """Ask question ``startQuestion`` (1-based) or end the call when none remain."""
    qs = request.query_params
    try:
        form = await _read_form(request)
        call_sid = (qs.get("callSid") or form.get("CallSid") or "").strip()
        start = max(_int_param(qs.get("startQuestion"), 1), 1)

        entry = await CallQueueRepository(session).get_by_call_sid(call_sid) if call_sid else None
        voice, language = _voice_options(entry)
        questions = await _survey_questions(session, entry)
        total = len(questions)

        verbs: list[str] = []
        if start == 1 and not qs.get("repeat"):
            verbs += [say(SURVEY_INTRO, voice, language), pause(1)]

        if start > total:
            record_transition(entry, FlowState.TERMINATED, start)
            await session.commit()
            verbs += [say(NO_MORE_QUESTIONS_TEXT, voice, language), hangup()]
            return twiml_response(*verbs)

        record_transition(entry, FlowState.CONTINUE_SURVEY, start)
        await session.commit()

        action = make_url(
            request,
            RESPONSE_PATH,
            {"question": start, "callSid": call_sid, "totalQuestions": total},
        )
        retry_url = make_url(
            request,
            CONTINUE_PATH,
            {"callSid": call_sid, "startQuestion": start, "repeat": 1},
        )
        verbs += [
            say(questions[start - 1], voice, language),
            gather(action, say(ANSWER_PROMPT, voice, language), timeout=10),
            say(NO_INPUT_TEXT, voice, language),
            redirect(retry_url),
        ]
        return twiml_response(*verbs)
    except Exception:
        logger.exception("Continue-survey failed (returning safe TwiML)")
        return twiml_response(say(SURVEY_ERROR_TEXT), hangup())


@router.post("/response")
async def response(
    request: Request,
    session: Annotated[AsyncSession, Depends(get_db_session)],
    analyzer: Annotated[ResponseAnalyzer, Depends(get_response_analyzer)],
) -> Response:
    """Store the answer to question ``question``, then advance or finish."""
    qs = request.query_params
    try:
        form = await _read_form(request)
        question_num = max(_int_param(qs.get("question"), 1), 1)
        total = _int_param(qs.get("totalQuestions"), 1)
        call_sid = (qs.get("callSid") or form.get("CallSid") or "").strip()
        answer = (
            (form.get("SpeechResult") or "").strip()
            or (form.get("Digits") or "").strip()
            or NO_RESPONSE_ANSWER
        )

        entry = await CallQueueRepository(session).get_by_call_sid(call_sid) if call_sid else None
        voice, language = _voice_options(entry)
        voice = qs.get("voice") or voice

        logger.info(
            "Response webhook",
            extra={"call_sid": call_sid, "question": question_num, "total_questions": total},
        )

        if entry is not None:
            await _store_answer(session, entry, question_num, answer, analyzer)
            record_transition(entry, FlowState.RESPONSE, question_num)

        step = next_after_response(question_num, total)
        if step.state == FlowState.TERMINATED:
            if entry is not None:
                entry.status = CallQueueStatus.COMPLETED
                record_transition(entry, FlowState.TERMINATED, question_num)
            await session.commit()
            return twiml_response(say(SURVEY_COMPLETE_TEXT, voice, language), hangup())

        await session.commit()
        next_url = make_url(
            request,
            CONTINUE_PATH,
            {"callSid": call_sid, "startQuestion": step.question},
        )
        return twiml_response(say(ANSWER_ACK_TEXT, voice, language), redirect(next_url))
    except Exception:
        logger.exception("Response handling failed (returning safe TwiML)")
        return twiml_response(say(RESPONSE_GOODBYE_TEXT), hangup())


async def _store_answer(
    session: AsyncSession,
    entry: CallQueueEntry,
    question_num: int,
    answer: str,
    analyzer: ResponseAnalyzer,
) -> None:
    questions = await SurveyRepository(session).get_ordered_questions(entry.survey_id)
    if not 1 <= question_num <= len(questions):
        logger.warning(
            "Answer for unknown question position",
            extra={"call_sid": entry.call_sid, "question": question_num},
        )
        return

    question = questions[question_num - 1]
    if answer == NO_RESPONSE_ANSWER:
        analysis = AnswerAnalysis(numeric_value=None, key_insights=None)
    else:
        analysis = await analyzer.analyze(question.question_text, answer)
    capabilities = await detect_capabilities(session)
    await ResponseRepository(session, capabilities).add(
        phone_list_id=entry.phone_list_id,
        question_id=question.id,
        call_sid=entry.call_sid,
        answer_text=answer,
        numeric_value=analysis.numeric_value,
        key_insights=analysis.key_insights,
    )
    entry.questions_answered = max(entry.questions_answered or 0, question_num)

    stated_name = extract_stated_name(answer)
    if stated_name:
        contact = await PhoneContactRepository(session).get_by_id(entry.phone_list_id)
        if contact is not None and (
            not contact.name or contact.name.strip().lower() in GENERIC_NAMES
        ):
            contact.name = stated_name


@router.post("/transcription")
async def transcription(
    request: Request,
    session: Annotated[AsyncSession, Depends(get_db_session)],
    analyzer: Annotated[ResponseAnalyzer, Depends(get_response_analyzer)],
) -> Response:
    """Recording callback: store the transcribed answer and a drafted follow-up, then hang up."""
    qs = request.query_params
    try:
        form = await _read_form(request)
        phone_list_id = _uuid_param(qs.get("phoneListId"))
        question_id = _uuid_param(qs.get("questionId"))
        call_sid = (form.get("CallSid") or "").strip() or None
        recording_url = form.get("RecordingUrl") or None
        recording_status = (form.get("RecordingStatus") or "").lower()
        transcription_text = (form.get("TranscriptionText") or "").strip()

        if recording_status == "completed" and transcription_text:
            answer = transcription_text
        else:
            answer = MOCK_TRANSCRIPTION

        questions = QuestionRepository(session)
        question = await questions.get_by_id(question_id) if question_id else None
        question_text = question.question_text if question is not None else ""

        analysis = await analyzer.analyze(question_text, answer)
        capabilities = await detect_capabilities(session)
        await ResponseRepository(session, capabilities).add(
            phone_list_id=phone_list_id,
            question_id=question.id if question is not None else None,
            call_sid=call_sid,
            answer_text=answer,
            recording_url=recording_url,
            numeric_value=analysis.numeric_value,
            key_insights=analysis.key_insights,
        )

        if question is not None:
            follow_up = await analyzer.generate_follow_up(question_text, answer)
            await questions.create(
                question_text=follow_up,
                is_follow_up=True,
                parent_question_id=question.id,
            )

        if call_sid:
            entry = await CallQueueRepository(session).get_by_call_sid(call_sid)
            record_transition(entry, FlowState.TERMINATED)

        await session.commit()
        return twiml_response(say(RESPONSE_GOODBYE_TEXT), hangup())
    except Exception:
        logger.exception("Transcription handling failed (returning safe TwiML)")
        return twiml_response(say(TRANSCRIPTION_ERROR_TEXT), hangup())


@router.get("/test-interrupt")
async def test_interrupt(request: Request) -> Response:
    """Barge-in demo: the second and third prompts can be interrupted."""
    voice = request.query_params.get("voice") or get_settings().twilio_voice
    action = make_url(request, RESPONSE_PATH, {"interrupt": "true"})
    return twiml_response(
        say(INTERRUPT_INTRO, voice),
        gather(action, *(say(text, voice) for text in INTERRUPT_PROMPTS), timeout=10, barge_in=True),
    )


_TERMINAL_QUEUE_STATUS: dict[CallStatus, CallQueueStatus] = {
    CallStatus.FAILED: CallQueueStatus.FAILED,
    CallStatus.BUSY: CallQueueStatus.FAILED,
    CallStatus.NO_ANSWER: CallQueueStatus.FAILED,
    CallStatus.CANCELED: CallQueueStatus.ABANDONED,
}


@router.post("/status")
async def status_callback(
    request: Request,
    session: Annotated[AsyncSession, Depends(get_db_session)],
    provider: Annotated[TelephonyProvider, Depends(get_telephony_provider)],
) -> dict[str, Any]:
    """Twilio call status callback. Always acknowledged with 200."""
    try:
        signature = request.headers.get("x-twilio-signature")
        if signature is not None:
            body = await request.body()
            if not provider.validate_signature(body, signature, str(request.url)):
                logger.warning("Rejected status callback with invalid signature")
                return {"ok": True}

        payload: dict[str, Any] = dict(await _read_form(request))
        payload.update(dict(request.query_params))

        event = provider.parse_status_callback(payload)
        if not event.status.is_final:
            return {"ok": True}
        entry = await CallQueueRepository(session).get_by_call_sid(event.call_sid)
        if entry is None:
            return {"ok": True}

        if event.status == CallStatus.COMPLETED:
            if entry.questions_answered:
                entry.status = CallQueueStatus.COMPLETED
        elif event.status in _TERMINAL_QUEUE_STATUS:
            entry.status = _TERMINAL_QUEUE_STATUS[event.status]
            if event.error_message:
                entry.notes = f"Error: {event.error_message}"
        await session.commit()
    except WebhookParseError as e:
        logger.warning("Ignoring malformed status callback", extra={"error": str(e)})
    except Exception:
        logger.exception("Failed to process status callback (ACKing 200 to Twilio)")
    return {"ok": True}
