"""
HTTP API for the voice assistant front end.

Exposes the stateless building blocks (intent classification, slot
extraction, speech, the member record) used by the browser
client, plus session endpoints that run whole dialogue turns server-side.

Run with:
    uvicorn super_assistant.api.server:app --reload
"""

import base64
import binascii
import logging
from typing import Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware

from super_assistant.config import settings
from super_assistant.conversation.session import Classifier, DialogueSession, SlotHintSource
from super_assistant.conversation.slot_extractor import SlotKind, extract
from super_assistant.schemas.api_schema import (
    ChatRequest,
    ChatResponse,
    RecognizeRequest,
    RecognizeResponse,
    SessionEventsResponse,
    SessionMessageResponse,
    SlotFillRequest,
    SlotFillResponse,
    SpeechRequest,
    SpeechResponse,
)
from super_assistant.schemas.customer_schema import (
    CustomerRecord,
    CustomerUpdate,
    CustomerUpdateResponse,
)
from super_assistant.services.llm_client import IntentClassifier, SlotNormalizer
from super_assistant.services.speech import SpeechError, SpeechService
from super_assistant.tools.customer import CustomerStore, get_customer_store

logger = logging.getLogger(__name__)


def get_store(request: Request) -> CustomerStore:
    return request.app.state.store


def get_classifier(request: Request) -> Classifier:
    return request.app.state.classifier


def get_slot_normalizer(request: Request) -> SlotHintSource:
    return request.app.state.slot_normalizer


def get_speech(request: Request) -> SpeechService:
    return request.app.state.speech


def get_session(request: Request) -> DialogueSession:
    return request.app.state.session


def _require_text(value: Optional[str], detail: str) -> str:
    if not value or not value.strip():
        raise HTTPException(status_code=400, detail=detail)
    return value.strip()


def create_app(
    store: Optional[CustomerStore] = None,
    classifier: Optional[Classifier] = None,
    slot_normalizer: Optional[SlotHintSource] = None,
    speech: Optional[SpeechService] = None,
) -> FastAPI:
    """Build the API with its collaborators; tests pass fakes for the external services."""
    app = FastAPI(title=f"{settings.assistant.company_name} Voice Assistant", version="1.0.0")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.server.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.store = store or get_customer_store()
    app.state.classifier = classifier or IntentClassifier()
    app.state.slot_normalizer = slot_normalizer or SlotNormalizer()
    app.state.speech = speech or SpeechService()
    app.state.session = DialogueSession(
        store=app.state.store,
        classifier=app.state.classifier,
        slot_normalizer=app.state.slot_normalizer,
    )

    @app.post("/api/chat", response_model=ChatResponse)
    async def chat(body: ChatRequest, classifier: Classifier = Depends(get_classifier)):
        message = _require_text(body.message, "Message is required")
        result = await classifier.classify(message)
        return ChatResponse(intent=result.label or result.intent.value, response=result.reply)

    @app.post("/api/slotfill", response_model=SlotFillResponse, response_model_exclude_none=True)
    async def slotfill(
        body: SlotFillRequest,
        normalizer: SlotHintSource = Depends(get_slot_normalizer),
    ):
        if not body.message or not body.message.strip() or not body.slot_type:
            raise HTTPException(status_code=400, detail="Both message and slotType are required")
        try:
            kind = SlotKind.parse(body.slot_type)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e)) from None

        hint = await normalizer.normalize(kind, body.message)
        result = extract(kind, body.message, hint)
        return SlotFillResponse(value=result.value, error=result.error)

    @app.get("/api/customer", response_model=CustomerRecord)
    async def get_customer(store: CustomerStore = Depends(get_store)):
        return store.get()

    @app.put("/api/customer", response_model=CustomerUpdateResponse)
    async def update_customer(body: CustomerUpdate, store: CustomerStore = Depends(get_store)):
        record = store.update(email=body.email, address=body.address)
        return CustomerUpdateResponse(data=record)

    @app.post("/api/speech", response_model=SpeechResponse)
    def synthesize(body: SpeechRequest, speech: SpeechService = Depends(get_speech)):
        text = _require_text(body.text, "Text is required")
        try:
            audio = speech.synthesize(text)
        except SpeechError as e:
            logger.error("Text-to-speech request failed: %s", e)
            raise HTTPException(status_code=500, detail="Failed to synthesize speech") from None
        return SpeechResponse(audio_content=base64.b64encode(audio).decode("ascii"))

    @app.post("/api/speech/recognize", response_model=RecognizeResponse)
    def recognize(body: RecognizeRequest, speech: SpeechService = Depends(get_speech)):
        encoded = _require_text(body.audio_content, "audioContent is required")
        try:
            audio = base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError):
            raise HTTPException(status_code=400, detail="audioContent must be base64") from None
        try:
            transcript = speech.recognize(audio)
        except SpeechError as e:
            logger.error("Speech-to-text request failed: %s", e)
            raise HTTPException(status_code=500, detail="Failed to recognize speech") from None
        return RecognizeResponse(transcript=transcript)

    @app.post("/api/session/message", response_model=SessionMessageResponse)
    async def session_message(body: ChatRequest, session: DialogueSession = Depends(get_session)):
        message = _require_text(body.message, "Message is required")
        result = await session.submit(message)
        return SessionMessageResponse(
            replies=result.replies, displays=result.displays, state=result.phase,
        )

    @app.get("/api/session/events", response_model=SessionEventsResponse)
    async def session_events(session: DialogueSession = Depends(get_session)):
        return SessionEventsResponse(events=session.drain_outbox())

    @app.post("/api/session/reset", response_model=SessionMessageResponse)
    async def session_reset(session: DialogueSession = Depends(get_session)):
        await session.reset()
        return SessionMessageResponse(state=session.phase.value)

    return app


app = create_app()
