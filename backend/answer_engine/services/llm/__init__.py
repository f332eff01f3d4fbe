from answer_engine.services.llm.client import GenerationBackend, LLMClient, LLMProvider

__all__ = ["GenerationBackend", "LLMClient", "LLMProvider"]
