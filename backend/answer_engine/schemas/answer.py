"""Schemas for the answer pipeline."""
import enum

from pydantic import BaseModel, ConfigDict, Field, HttpUrl

MAX_SOURCES = 10


class Source(BaseModel):
    """A caller-supplied web page to ground the answer in."""
    model_config = ConfigDict(frozen=True)

    url: HttpUrl
    name: str | None = None


class AnswerRequest(BaseModel):
    question: str = Field(min_length=3, max_length=500)
    sources: list[Source] = Field(default_factory=list, max_length=MAX_SOURCES)


class SourceStatus(str, enum.Enum):
    OK = "ok"
    FAILED = "failed"


class SourceResult(BaseModel):
    """Outcome of fetching and extracting one source.

    `content` is always set; failed sources carry a placeholder.
    """
    source: Source
    content: str
    status: SourceStatus = SourceStatus.OK
    failure_reason: str | None = None

    @property
    def ok(self) -> bool:
        return self.status == SourceStatus.OK


class Role(str, enum.Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


class ChatMessage(BaseModel):
    role: Role
    content: str


class ErrorResponse(BaseModel):
    error: str
    details: list | dict | None = None
