from pydantic import BaseModel, Field


class SimilarQuestionsRequest(BaseModel):
    question: str = Field(min_length=3, max_length=500)


class SimilarQuestions(BaseModel):
    """Exactly three follow-up questions."""
    questions: list[str] = Field(min_length=3, max_length=3)
