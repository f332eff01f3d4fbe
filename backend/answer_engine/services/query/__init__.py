"""Follow-up question generation service."""
from answer_engine.services.query.related import generate_similar_questions, parse_questions

__all__ = ["generate_similar_questions", "parse_questions"]
