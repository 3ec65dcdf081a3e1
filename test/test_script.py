"""Tests for the built-in survey script and its seed rows."""

from phone_survey.surveys.script import (
    FOLLOW_UP_ANY,
    SURVEY_SCRIPT,
    FollowUp,
    ScriptQuestionType,
    follow_up_for,
    get_script_question,
    primary_questions,
    seed_question_rows,
)


class TestScript:
    def test_intro_first_and_outro_last(self) -> None:
        assert SURVEY_SCRIPT[0].type == ScriptQuestionType.INTRO
        assert SURVEY_SCRIPT[-1].type == ScriptQuestionType.OUTRO

    def test_ids_are_unique(self) -> None:
        ids = [q.id for q in SURVEY_SCRIPT]
        assert len(ids) == len(set(ids))

    def test_primary_questions_skip_intro_and_outro(self) -> None:
        primary = primary_questions()
        assert len(primary) == 16
        assert all(q.type in (ScriptQuestionType.CHOICE, ScriptQuestionType.OPEN) for q in primary)

    def test_lookup(self) -> None:
        assert get_script_question("q1") is not None
        assert get_script_question("missing") is None


class TestFollowUps:
    def test_condition_matches_whole_word_case_insensitive(self) -> None:
        follow_up = FollowUp(condition="No", question="Why not?")
        assert follow_up.applies_to("no, I don't")
        assert not follow_up.applies_to("I know one")

    def test_wildcard_always_applies(self) -> None:
        assert FollowUp(condition=FOLLOW_UP_ANY, question="More?").applies_to("anything")

    def test_follow_up_for_q1(self) -> None:
        q1 = get_script_question("q1")
        assert follow_up_for(q1, "No") is not None
        assert follow_up_for(q1, "Yes") is None

    def test_question_without_follow_up(self) -> None:
        assert follow_up_for(get_script_question("q4"), "Same day") is None


class TestSeedRows:
    def test_rows_carry_metadata(self) -> None:
        rows = seed_question_rows()
        assert len(rows) == 16
        first = rows[0]
        assert first["is_follow_up"] is False
        assert first["question_metadata"]["response_type"] == "Multiple-Choice"
        assert first["question_metadata"]["options"] == ["Yes", "No", "I don't know"]
        assert first["question_metadata"]["follow_up_trigger"] == "No"

    def test_open_question_row(self) -> None:
        q7 = get_script_question("q7")
        row = next(r for r in seed_question_rows() if r["question_text"] == q7.text)
        assert row["question_metadata"]["response_type"] == "Open-Ended"
        assert "options" not in row["question_metadata"]
