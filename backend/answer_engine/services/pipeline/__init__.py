from answer_engine.services.pipeline.aggregator import SourceAggregator
from answer_engine.services.pipeline.extractor import extract_content, extract_main_text
from answer_engine.services.pipeline.orchestrator import AnswerPipeline
from answer_engine.services.pipeline.prompt import compose_messages
from answer_engine.services.pipeline.text_cleaner import clean_text
from answer_engine.services.pipeline.url_fetcher import fetch_source

__all__ = [
    "AnswerPipeline",
    "SourceAggregator",
    "clean_text",
    "compose_messages",
    "extract_content",
    "extract_main_text",
    "fetch_source",
]
