"""
Import every ORM model so ``Base.metadata`` knows all tables.
"""

from phone_survey.auth.models import User, UserRole
from phone_survey.calls.models import CallQueueEntry, CallQueueStatus
from phone_survey.contacts.models import PhoneContact
from phone_survey.responses.models import Response
from phone_survey.shared.database import Base
from phone_survey.surveys.models import Question, Survey, SurveyQuestion

__all__ = [
    "Base",
    "CallQueueEntry",
    "CallQueueStatus",
    "PhoneContact",
    "Question",
    "Response",
    "Survey",
    "SurveyQuestion",
    "User",
    "UserRole",
]
