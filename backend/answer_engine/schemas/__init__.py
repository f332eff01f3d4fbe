from answer_engine.schemas.answer import (
    AnswerRequest,
    ChatMessage,
    ErrorResponse,
    Role,
    Source,
    SourceResult,
    SourceStatus,
)
from answer_engine.schemas.query import (
    SimilarQuestions,
    SimilarQuestionsRequest,
)

__all__ = [
    "AnswerRequest",
    "ChatMessage",
    "ErrorResponse",
    "Role",
    "Source",
    "SourceResult",
    "SourceStatus",
    "SimilarQuestions",
    "SimilarQuestionsRequest",
]
