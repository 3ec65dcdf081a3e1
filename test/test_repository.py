"""
Tests for the repositories against a throwaway SQLite database.
"""

from datetime import datetime, timedelta, timezone

from sqlalchemy import select

from phone_survey.analytics.capabilities import SchemaCapabilities
from phone_survey.calls.models import CallQueueStatus
from phone_survey.calls.repository import CallQueueRepository
from phone_survey.contacts.repository import PhoneContactRepository
from phone_survey.responses.models import Response
from phone_survey.responses.repository import ResponseRepository
from phone_survey.surveys.repository import QuestionRepository, SurveyRepository


class TestPhoneContactRepository:
    async def test_create_bulk_and_count(self, db_session) -> None:
        repo = PhoneContactRepository(db_session)

        created = await repo.create_bulk([("Ann", "+14155550001"), ("Bob", "+14155550002")])

        assert [c.name for c in created] == ["Ann", "Bob"]
        assert all(c.id is not None for c in created)
        assert await repo.count() == 2
        assert await repo.create_bulk([]) == []


class TestSurveyRepository:
    async def test_questions_keep_survey_order(self, db_session) -> None:
        questions = QuestionRepository(db_session)
        first = await questions.create("First question?")
        second = await questions.create("Second question?")
        third = await questions.create("Third question?")
        surveys = SurveyRepository(db_session)

        survey = await surveys.create("Ordered", question_ids=[third.id, first.id, second.id])

        ordered = await surveys.get_ordered_questions(survey.id)
        assert [q.id for q in ordered] == [third.id, first.id, second.id]
        assert await surveys.count_questions(survey.id) == 3

    async def test_question_metadata_round_trip(self, db_session) -> None:
        question = await QuestionRepository(db_session).create(
            "Pick one.", metadata={"response_type": "Multiple-Choice", "options": ["A", "B"]}
        )
        assert question.question_metadata["options"] == ["A", "B"]
        assert await QuestionRepository(db_session).exists_any() is True


class TestCallQueueRepository:
    async def test_get_by_call_sid_prefers_latest(self, db_session, seed_call) -> None:
        seeded = await seed_call(call_sid="CA_SHARED")
        repo = CallQueueRepository(db_session)
        newer = await repo.create(
            phone_list_id=seeded.contact_id,
            survey_id=seeded.survey_id,
            call_sid="CA_SHARED",
            updated_at=datetime.now(timezone.utc) + timedelta(minutes=5),
        )

        found = await repo.get_by_call_sid("CA_SHARED")

        assert found.id == newer.id
        assert await repo.get_by_call_sid("") is None
        assert await repo.get_by_call_sid("CA_MISSING") is None

    async def test_record_attempt_and_mark_failed(self, db_session, seed_call) -> None:
        seeded = await seed_call(status=CallQueueStatus.PENDING, call_sid=None)
        repo = CallQueueRepository(db_session)
        entry = await repo.get_by_id(seeded.entry_id)

        await repo.record_attempt(entry, "CA_1")
        assert (entry.attempt_count, entry.call_sid, entry.status) == (1, "CA_1", CallQueueStatus.IN_PROGRESS)
        assert entry.last_attempt_at is not None

        await repo.mark_failed(entry, "busy line")
        assert entry.status == CallQueueStatus.FAILED
        assert entry.notes == "Error: busy line"

    async def test_get_for_pair(self, db_session, seed_call) -> None:
        seeded = await seed_call()
        entry = await CallQueueRepository(db_session).get_for_pair(seeded.contact_id, seeded.survey_id)
        assert entry.id == seeded.entry_id


class TestResponseRepository:
    async def test_drops_unsupported_columns(self, db_session, seed_call) -> None:
        seeded = await seed_call()
        legacy = SchemaCapabilities(
            frozenset({"id", "phone_list_id", "question_id", "call_sid", "answer_text", "recorded_at"})
        )

        await ResponseRepository(db_session, legacy).add(
            question_id=seeded.question_ids[0],
            answer_text="4",
            numeric_value=4.0,
            key_insights="ignored",
        )

        row = (await db_session.execute(select(Response))).scalars().one()
        assert row.answer_text == "4"
        assert row.numeric_value is None
        assert row.key_insights is None

    async def test_list_for_questions(self, db_session, seed_call) -> None:
        seeded = await seed_call()
        repo = ResponseRepository(db_session)
        await repo.add(question_id=seeded.question_ids[0], answer_text="a", numeric_value=1.0)
        await repo.add(question_id=seeded.question_ids[1], answer_text="b")

        rows = await repo.list_for_questions([seeded.question_ids[0]])

        assert len(rows) == 1
        assert rows[0]["answer_text"] == "a"
        assert rows[0]["numeric_value"] == 1.0
        assert await repo.list_for_questions([]) == []
        assert await repo.count() == 2
