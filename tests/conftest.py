"""Shared test fixtures and helpers."""

from types import SimpleNamespace
from typing import Optional

import pytest

from super_assistant.conversation.intents import ClassifierResult, Intent, KeywordIntentClassifier
from super_assistant.conversation.session import DialogueSession
from super_assistant.conversation.slot_extractor import SlotKind
from super_assistant.conversation.state_machine import (
    ConversationState,
    DialoguePolicy,
    IntentClassified,
    PendingUpdate,
)
from super_assistant.services.llm_client import PassthroughSlotNormalizer
from super_assistant.tools.customer import CustomerStore

FIXED_CODE = "123456"


class ScriptedClassifier:
    """Classifier double returning queued results, then a general reply."""

    def __init__(self, *results: ClassifierResult) -> None:
        self.results = list(results)
        self.calls: list[str] = []

    async def classify(self, message: str) -> ClassifierResult:
        self.calls.append(message)
        if self.results:
            return self.results.pop(0)
        return classified(Intent.GENERAL_QUESTION, "How else can I help?")


class RecordingSlotNormalizer:
    """Slot hint double returning a fixed hint (or the message) and recording calls."""

    def __init__(self, hint: Optional[str] = None) -> None:
        self.hint = hint
        self.calls: list[tuple[SlotKind, str]] = []

    async def normalize(self, slot_kind: SlotKind, message: str) -> str:
        self.calls.append((slot_kind, message))
        return message if self.hint is None else self.hint


class FakeTextToSpeechClient:
    """Stands in for texttospeech.TextToSpeechClient."""

    def __init__(self, audio: bytes = b"mp3-bytes", error: Optional[Exception] = None) -> None:
        self.audio = audio
        self.error = error
        self.requests: list[dict] = []

    def synthesize_speech(self, input, voice, audio_config):
        self.requests.append({"input": input, "voice": voice, "audio_config": audio_config})
        if self.error:
            raise self.error
        return SimpleNamespace(audio_content=self.audio)


class FakeSpeechClient:
    """Stands in for speech.SpeechClient; an empty transcript means no results."""

    def __init__(self, transcript: str = "update my email", error: Optional[Exception] = None) -> None:
        self.transcript = transcript
        self.error = error
        self.requests: list[dict] = []

    def recognize(self, config, audio):
        self.requests.append({"config": config, "audio": audio})
        if self.error:
            raise self.error
        if not self.transcript:
            return SimpleNamespace(results=[])
        alternative = SimpleNamespace(transcript=self.transcript, confidence=0.93)
        return SimpleNamespace(results=[SimpleNamespace(alternatives=[alternative])])


def classified(intent: Intent, reply: str = "", degraded: bool = False) -> ClassifierResult:
    """Helper to build a ClassifierResult for an intent."""
    return ClassifierResult(intent=intent, reply=reply, label=intent.value, degraded=degraded)


def intent_event(utterance: str, intent: Intent, reply: str = "") -> IntentClassified:
    return IntentClassified(utterance=utterance, result=classified(intent, reply))


def make_policy(code: str = FIXED_CODE, max_otp_attempts: int = 3, delay: float = 0.01) -> DialoguePolicy:
    """A policy with a predictable OTP and a short fund-offer delay."""
    return DialoguePolicy(
        max_otp_attempts=max_otp_attempts,
        fund_offer_delay=delay,
        otp_generator=lambda: code,
    )


def awaiting_otp_state(kind: SlotKind = SlotKind.EMAIL, value: str = "jane@new.com",
                       code: str = FIXED_CODE) -> ConversationState:
    return ConversationState.awaiting_otp(
        PendingUpdate(slot_kind=kind, candidate_value=value, otp_code=code)
    )


@pytest.fixture
def policy():
    return make_policy()


@pytest.fixture
def store():
    return CustomerStore()


@pytest.fixture
def session(store, policy):
    return DialogueSession(
        store=store,
        classifier=KeywordIntentClassifier(),
        slot_normalizer=PassthroughSlotNormalizer(),
        policy=policy,
        session_id="SES-TEST",
    )
