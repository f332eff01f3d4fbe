import logging

from fastapi import APIRouter, Depends, status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from answer_engine.core.deps import get_llm_client
from answer_engine.core.errors import GenerationError
from answer_engine.schemas.answer import ErrorResponse
from answer_engine.schemas.query import SimilarQuestionsRequest
from answer_engine.services.llm.client import GenerationBackend
from answer_engine.services.query.related import InvalidQuestionsError, generate_similar_questions

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/similar-questions", tags=["query"])


@router.post(
    "",
    response_model=list[str],
    responses={
        400: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
    },
)
async def similar_questions(
    data: SimilarQuestionsRequest,
    backend: GenerationBackend = Depends(get_llm_client),
):
    """Suggest three standalone follow-up questions."""
    try:
        return await generate_similar_questions(data.question, backend)
    except InvalidQuestionsError as e:
        return JSONResponse(
            status_code=status.HTTP_502_BAD_GATEWAY,
            content={"error": "Invalid response format", "details": jsonable_encoder(e.details)},
        )
    except GenerationError as e:
        logger.error(f"Error generating similar questions: {e}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Failed to generate similar questions"},
        )
