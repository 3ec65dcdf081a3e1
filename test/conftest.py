"""
Shared fixtures: a throwaway SQLite database per test and an HTTP client
bound to the application with its external services replaced.
"""

from collections.abc import AsyncGenerator, Callable
from datetime import datetime, timezone
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

import phone_survey.models  # noqa: F401
from phone_survey.analytics.capabilities import clear_capabilities_cache
from phone_survey.dialogue.analysis import ResponseAnalyzer
from phone_survey.main import create_app
from phone_survey.shared.database import Base, get_db_session, get_session_factory
from phone_survey.telephony.config import TelephonyConfig
from phone_survey.telephony.factory import get_cached_telephony_config, get_telephony_provider
from phone_survey.telephony.interface import (
    PlacedCall,
    CallStatus,
    TelephonyProvider,
)
from phone_survey.telephony.twilio_adapter import TwilioAdapter
from phone_survey.telephony.webhooks.router import get_response_analyzer


@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep developer .env values (API keys, base URLs) out of the tests."""
    monkeypatch.setenv("OPENAI_API_KEY", "")
    monkeypatch.setenv("PUBLIC_BASE_URL", "")
    monkeypatch.setenv("TWILIO_VOICE", "Polly.Joanna")
    monkeypatch.setenv("TWILIO_LANGUAGE", "en-US")


@pytest.fixture(autouse=True)
def _clear_capabilities() -> None:
    clear_capabilities_cache()
    yield
    clear_capabilities_cache()


@pytest_asyncio.fixture
async def engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'survey.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db_session(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest.fixture
def telephony_config() -> TelephonyConfig:
    return TelephonyConfig(
        twilio_account_sid="AC_TEST_ACCOUNT_SID",
        twilio_auth_token="",
        twilio_from_number="+14155550000",
        webhook_base_url="https://survey.example.com",
        call_timeout_seconds=60,
    )


@pytest.fixture
def telephony_provider(telephony_config: TelephonyConfig) -> MagicMock:
    """Twilio adapter whose outbound call is mocked; webhook parsing is real."""
    real = TwilioAdapter(config=telephony_config, http_client=MagicMock())
    provider = MagicMock(spec=TelephonyProvider)
    provider.place_call = AsyncMock(
        return_value=PlacedCall(
            call_sid="CA_NEW_CALL",
            status=CallStatus.QUEUED,
            created_at=datetime.now(timezone.utc),
        )
    )
    provider.parse_status_callback.side_effect = real.parse_status_callback
    provider.validate_signature.side_effect = real.validate_signature
    return provider


@pytest.fixture
def client_factory(
    telephony_provider: MagicMock,
    telephony_config: TelephonyConfig,
) -> Callable[..., Any]:
    """Build an ``AsyncClient`` for an app bound to the given session factory."""

    def _make(
        factory: async_sessionmaker[AsyncSession],
        analyzer: ResponseAnalyzer | None = None,
    ) -> AsyncClient:
        app = create_app()

        async def _override_session() -> AsyncGenerator[AsyncSession, None]:
            async with factory() as session:
                try:
                    yield session
                    await session.commit()
                except Exception:
                    await session.rollback()
                    raise

        app.dependency_overrides[get_db_session] = _override_session
        app.dependency_overrides[get_session_factory] = lambda: factory
        app.dependency_overrides[get_telephony_provider] = lambda: telephony_provider
        app.dependency_overrides[get_cached_telephony_config] = lambda: telephony_config
        app.dependency_overrides[get_response_analyzer] = lambda: analyzer or ResponseAnalyzer()

        return AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver")

    return _make


@pytest_asyncio.fixture
async def async_client(
    client_factory: Callable[..., AsyncClient],
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncClient, None]:
    async with client_factory(session_factory) as client:
        yield client


class SeededCall:
    """Ids of a survey, its questions, a contact and their call queue entry."""

    def __init__(self, survey_id, question_ids, contact_id, entry_id, call_sid) -> None:
        self.survey_id = survey_id
        self.question_ids = question_ids
        self.contact_id = contact_id
        self.entry_id = entry_id
        self.call_sid = call_sid


DEFAULT_SEED_QUESTIONS = (
    ("How satisfied are you with your doctor? Please say a number from 1 to 5.", None),
    ("Have you used telehealth in the past year?", {"response_type": "Yes-No"}),
    ("What is the biggest barrier to care for you?", {"response_type": "Open-Ended"}),
)


@pytest.fixture
def seed_call(session_factory: async_sessionmaker[AsyncSession]) -> Callable[..., Any]:
    """Insert a survey with questions, a contact and an in-progress call."""
    from phone_survey.calls.models import CallQueueStatus
    from phone_survey.calls.repository import CallQueueRepository
    from phone_survey.contacts.repository import PhoneContactRepository
    from phone_survey.surveys.repository import QuestionRepository, SurveyRepository

    async def _seed(
        questions: tuple[tuple[str, dict[str, Any] | None], ...] = DEFAULT_SEED_QUESTIONS,
        contact_name: str = "Jane Smith",
        call_sid: str | None = "CA_TEST_CALL",
        status: CallQueueStatus = CallQueueStatus.IN_PROGRESS,
        **entry_values: Any,
    ) -> SeededCall:
        async with session_factory() as session:
            question_repo = QuestionRepository(session)
            created = [
                await question_repo.create(question_text=text, metadata=metadata)
                for text, metadata in questions
            ]
            survey = await SurveyRepository(session).create(
                name="Primary care access",
                description="Access to primary care",
                question_ids=[q.id for q in created],
            )
            contact = await PhoneContactRepository(session).create(contact_name, "+14155551234")
            entry = await CallQueueRepository(session).create(
                phone_list_id=contact.id,
                survey_id=survey.id,
                call_sid=call_sid,
                status=status,
                **entry_values,
            )
            await session.commit()
            return SeededCall(
                survey_id=survey.id,
                question_ids=[q.id for q in created],
                contact_id=contact.id,
                entry_id=entry.id,
                call_sid=call_sid,
            )

    return _seed
