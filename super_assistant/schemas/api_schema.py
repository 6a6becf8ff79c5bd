"""Request and response bodies for the HTTP API."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from super_assistant.schemas.conversation_schema import DisplayDirective, TurnResult


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ChatRequest(_CamelModel):
    message: Optional[str] = None


class ChatResponse(_CamelModel):
    intent: str
    response: str


class SlotFillRequest(_CamelModel):
    message: Optional[str] = None
    slot_type: Optional[str] = None


class SlotFillResponse(_CamelModel):
    value: str = ""
    error: Optional[str] = None


class SpeechRequest(_CamelModel):
    text: Optional[str] = None


class SpeechResponse(_CamelModel):
    audio_content: str


class RecognizeRequest(_CamelModel):
    audio_content: Optional[str] = None


class RecognizeResponse(_CamelModel):
    transcript: str


class SessionMessageResponse(_CamelModel):
    replies: list[str] = Field(default_factory=list)
    displays: list[DisplayDirective] = Field(default_factory=list)
    state: str


class SessionEventsResponse(_CamelModel):
    events: list[TurnResult] = Field(default_factory=list)
