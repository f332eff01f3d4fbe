"""Tests for follow-up question generation."""
import pytest

from answer_engine.schemas.answer import Role
from answer_engine.services.query.related import (
    InvalidQuestionsError,
    generate_similar_questions,
    parse_questions,
)

QUESTIONS = [
    "What is the population of Paris?",
    "When did Paris become the capital of France?",
    "What are the main landmarks in Paris?",
]


def test_parse_questions_plain_array():
    reply = '["What is the population of Paris?", "When did Paris become the capital of France?", "What are the main landmarks in Paris?"]'
    assert parse_questions(reply) == QUESTIONS


def test_parse_questions_tolerates_code_fence():
    reply = 'Here you go:\n```json\n["a?", "b?", "c?"]\n```'
    assert parse_questions(reply) == ["a?", "b?", "c?"]


@pytest.mark.parametrize(
    "reply",
    [
        "No questions today.",
        '["only one?"]',
        '["a?", "b?", "c?", "d?"]',
        "[1, 2, 3]",
        '["a?", "b?", ]',
    ],
)
def test_parse_questions_rejects_bad_replies(reply):
    with pytest.raises(InvalidQuestionsError):
        parse_questions(reply)


def test_parse_questions_reports_details():
    with pytest.raises(InvalidQuestionsError) as exc_info:
        parse_questions('["only one?"]')
    assert exc_info.value.details


@pytest.mark.asyncio
async def test_generate_similar_questions_uses_completion(make_backend):
    backend = make_backend(completion='["a?", "b?", "c?"]')

    result = await generate_similar_questions("What is the capital of France?", backend)

    assert result == ["a?", "b?", "c?"]
    messages = backend.complete_calls[0]
    assert messages[0].role == Role.SYSTEM
    assert "JSON array of 3 strings" in messages[0].content
    assert messages[1].content == "Original Question: What is the capital of France?"
    assert backend.stream_calls == []
