"""
Question and survey repositories.
"""

from typing import Any, Sequence
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from phone_survey.surveys.models import Question, Survey, SurveyQuestion


class QuestionRepository:
    """Repository for question database operations."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_all(self) -> Sequence[Question]:
        stmt = select(Question).order_by(Question.created_at.desc())
        result = await self._session.execute(stmt)
        return result.scalars().all()

    async def get_by_id(self, question_id: UUID) -> Question | None:
        return await self._session.get(Question, question_id)

    async def exists_any(self) -> bool:
        result = await self._session.execute(select(Question.id).limit(1))
        return result.first() is not None

    async def count(self) -> int:
        result = await self._session.execute(select(func.count(Question.id)))
        return result.scalar() or 0

    async def create(
        self,
        question_text: str,
        is_follow_up: bool = False,
        parent_question_id: UUID | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> Question:
        """Create a question.

        Args:
            question_text: Text read to the callee.
            is_follow_up: Whether the question follows up another one.
            parent_question_id: The question this one follows up.
            metadata: Optional response type, options and follow-up hints.

        Returns:
            Created question with ID.
        """
        question = Question(
            question_text=question_text,
            is_follow_up=is_follow_up,
            parent_question_id=parent_question_id,
            question_metadata=metadata,
        )
        self._session.add(question)
        await self._session.flush()
        await self._session.refresh(question)
        return question

    async def create_bulk(self, rows: list[dict[str, Any]]) -> list[Question]:
        questions = [Question(**row) for row in rows]
        self._session.add_all(questions)
        await self._session.flush()
        return questions


class SurveyRepository:
    """Repository for surveys and their ordered questions."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def list_all(self) -> Sequence[Survey]:
        stmt = select(Survey).order_by(Survey.created_at.desc())
        result = await self._session.execute(stmt)
        return result.scalars().all()

    async def get_by_id(self, survey_id: UUID) -> Survey | None:
        return await self._session.get(Survey, survey_id)

    async def count(self) -> int:
        result = await self._session.execute(select(func.count(Survey.id)))
        return result.scalar() or 0

    async def count_questions(self, survey_id: UUID) -> int:
        """Count the questions placed in a survey.

        Args:
            survey_id: Survey UUID.

        Returns:
            Number of survey_questions rows for the survey.
        """
        stmt = select(func.count(SurveyQuestion.id)).where(SurveyQuestion.survey_id == survey_id)
        result = await self._session.execute(stmt)
        count = result.scalar()
        return count if count is not None else 0

    async def create(
        self,
        name: str,
        description: str | None = None,
        question_ids: list[UUID] | None = None,
    ) -> Survey:
        """Create a survey, placing ``question_ids`` at orders 1..n."""
        survey = Survey(name=name, description=description)
        self._session.add(survey)
        await self._session.flush()
        for position, question_id in enumerate(question_ids or [], start=1):
            self._session.add(
                SurveyQuestion(survey_id=survey.id, question_id=question_id, order=position)
            )
        await self._session.flush()
        await self._session.refresh(survey)
        return survey

    async def get_ordered_questions(self, survey_id: UUID) -> list[Question]:
        """Questions of a survey in playback order."""
        stmt = (
            select(Question)
            .join(SurveyQuestion, SurveyQuestion.question_id == Question.id)
            .where(SurveyQuestion.survey_id == survey_id)
            .order_by(SurveyQuestion.order)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

