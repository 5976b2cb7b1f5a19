from enum import Enum
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator


class Message(BaseModel):
    role: Literal["user", "assistant"]
    content: str | list[dict[str, Any]]


class _ModelOptions(BaseModel):
    model: str | None = Field(default=None, description="Remote model id; server default when omitted.")
    max_tokens: int | None = Field(default=None, gt=0)
    temperature: float | None = Field(default=None, ge=0.0, le=1.0)
    system: str | None = None


class MessagesRequest(_ModelOptions):
    messages: list[Message] = Field(..., min_length=1)

    def to_messages(self) -> list[dict[str, Any]]:
        return [message.model_dump() for message in self.messages]


class PromptRequest(_ModelOptions):
    prompt: str = Field(..., min_length=1)

    def to_messages(self) -> list[dict[str, Any]]:
        return [{"role": "user", "content": self.prompt}]


ProxyRequest = Union[MessagesRequest, PromptRequest]


class ResponseFormat(str, Enum):
    PLAIN = "plain"
    STRUCTURED = "structured"


class GenerationRequest(_ModelOptions):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    prompt: str = Field(..., min_length=1, description="What the plugin wants written.")
    context: str = Field(default="general", description="Free-form topic hint, e.g. spine/cardiac.")
    response_format: ResponseFormat = Field(default=ResponseFormat.STRUCTURED, alias="format")

    @field_validator("context", mode="before")
    @classmethod
    def _default_context(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return "general"
        return value


class ContentLibraryRequest(BaseModel):
    specialties: list[str] | None = Field(default=None, min_length=1)
    batch_size: int | None = Field(default=None, ge=1, le=100)
    include_cross_specialty: bool = True
