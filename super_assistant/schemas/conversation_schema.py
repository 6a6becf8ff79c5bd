"""Conversation transcript and turn result models."""

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field


class Speaker(str, Enum):
    ASSISTANT = "assistant"
    USER = "user"
    SYSTEM = "system"


class TranscriptTurn(BaseModel):
    """A single turn in a conversation transcript."""

    speaker: Speaker
    text: str
    timestamp: float
    phase: Optional[str] = None
    intent: Optional[str] = None


class DisplayDirective(BaseModel):
    """A UI card the front end should render, with its data."""

    view: str
    payload: dict[str, Any] = Field(default_factory=dict)


class TurnResult(BaseModel):
    """Everything the assistant produced in response to one input."""

    replies: list[str] = Field(default_factory=list)
    displays: list[DisplayDirective] = Field(default_factory=list)
    phase: str

    @property
    def text(self) -> str:
        return " ".join(self.replies)
