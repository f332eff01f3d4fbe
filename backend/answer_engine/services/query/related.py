"""Follow-up question generation."""
import json
import logging
import re

from pydantic import ValidationError

from answer_engine.schemas.answer import ChatMessage, Role
from answer_engine.schemas.query import SimilarQuestions
from answer_engine.services.llm.client import GenerationBackend

logger = logging.getLogger(__name__)

RELATED_QUESTIONS_PROMPT = """You are a helpful assistant that helps the user to ask related questions, based on user's original question. Please identify worthwhile topics that can be follow-ups, and write 3 questions no longer than 20 words each. Please make sure that specifics, like events, names, locations, are included in follow up questions so they can be asked standalone. For example, if the original question asks about "the Manhattan project", in the follow up question, do not just say "the project", but use the full name "the Manhattan project". Your related questions must be in the same language as the original question.

Please provide these 3 related questions as a JSON array of 3 strings. Do NOT repeat the original question. ONLY return the JSON array."""

_JSON_ARRAY = re.compile(r"\[.*\]", re.DOTALL)


class InvalidQuestionsError(ValueError):
    """The model reply was not a JSON array of exactly 3 strings."""

    def __init__(self, message: str, details: list | None = None):
        super().__init__(message)
        self.details = details or []


def parse_questions(reply: str) -> list[str]:
    """
    Pull the question list out of a model reply.

    Tolerates prose or code fences around the array.

    Raises:
        InvalidQuestionsError: If no valid 3-string array is found
    """
    match = _JSON_ARRAY.search(reply)
    if not match:
        raise InvalidQuestionsError("Reply contains no JSON array")
    try:
        data = json.loads(match.group(0))
    except json.JSONDecodeError as e:
        raise InvalidQuestionsError(f"Reply is not valid JSON: {e}") from e

    try:
        return SimilarQuestions(questions=data).questions
    except ValidationError as e:
        raise InvalidQuestionsError("Reply is not an array of 3 strings", details=e.errors(include_url=False)) from e


async def generate_similar_questions(question: str, backend: GenerationBackend) -> list[str]:
    """Ask the backend for three standalone follow-up questions."""
    messages = [
        ChatMessage(role=Role.SYSTEM, content=RELATED_QUESTIONS_PROMPT),
        ChatMessage(role=Role.USER, content=f"Original Question: {question}"),
    ]
    reply = await backend.complete(messages)
    try:
        return parse_questions(reply)
    except InvalidQuestionsError as e:
        logger.warning(f"Unusable follow-up questions reply: {e}")
        raise
